"""FastAPI application entry point."""
import logging

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.orm import Session

from agencyhub.core.config import settings
from agencyhub.core.deps import get_db

# ============================================================================
# Sentry Integration (optional, for production error tracking)
# ============================================================================

if settings.SENTRY_DSN and settings.ENV != "dev":
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENV,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=0.1,  # 10% of requests for performance monitoring
        send_default_pii=False,  # Don't send PII to Sentry
    )
    logging.info("Sentry initialized for error tracking")


# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="AgencyHub API",
    description="Multi-tenant client request portal for agencies",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENV == "dev" else None,
    redoc_url="/redoc" if settings.ENV == "dev" else None,
)

# CORS middleware - must be added before routers
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,  # Required for cookies
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "X-Requested-With"],
    expose_headers=["Content-Disposition"],
)

# ============================================================================
# Routers
# ============================================================================

from agencyhub.routers import (  # noqa: E402
    agencies,
    attachments,
    auth,
    automation,
    billing,
    invites,
    messages,
    notes,
    notifications,
    projects,
    requests,
    tags,
    templates,
    time_entries,
)

app.include_router(auth.router, prefix="/auth", tags=["auth"])
app.include_router(agencies.router, prefix="/agency", tags=["agency"])
app.include_router(projects.router, prefix="/projects", tags=["projects"])
app.include_router(requests.router, prefix="/requests", tags=["requests"])
app.include_router(messages.router, tags=["messages"])  # Mixed paths: /requests/{id}/messages and /messages/{id}
app.include_router(notes.router, tags=["notes"])  # Mixed paths: /projects/{id}/notes and /notes/{id}
app.include_router(time_entries.router, tags=["time"])
app.include_router(attachments.router, tags=["attachments"])
app.include_router(tags.router)  # Already has /tags prefix
app.include_router(templates.router)
app.include_router(automation.router)
app.include_router(invites.router)
app.include_router(billing.router)
app.include_router(notifications.router, tags=["notifications"])


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
def health(db: Session = Depends(get_db)):
    """
    Health check endpoint.

    Verifies database connectivity and returns environment info.
    """
    db.execute(text("SELECT 1"))
    return {"status": "ok", "env": settings.ENV, "version": settings.VERSION}
