"""FastAPI dependencies for authentication, authorization, and database access."""

from typing import Generator
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from agencyhub.core.config import settings
from agencyhub.core.exceptions import AgencyHubError
from agencyhub.core.permissions import has_capability
from agencyhub.core.security import decode_session_token
from agencyhub.db.session import SessionLocal
from agencyhub.schemas.auth import UserSession

# Cookie and header names
COOKIE_NAME = "agencyhub_session"
CSRF_HEADER = "X-Requested-With"
CSRF_HEADER_VALUE = "XMLHttpRequest"


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields a database session and ensures it's closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(
    request: Request,
    db: Session = Depends(get_db)
):
    """
    Get authenticated user from session cookie.

    Validates:
    - Session cookie exists
    - JWT is valid and not expired
    - User exists and is active
    - Token version matches (for revocation support)

    Returns (user, payload).

    Raises:
        HTTPException 401: Authentication failed
    """
    from agencyhub.db.models import User

    token = request.cookies.get(COOKIE_NAME)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    try:
        payload = decode_session_token(token)
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid session")

    try:
        user_id = UUID(payload["sub"])
    except (KeyError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid session")

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=401, detail="User not found")

    if not user.is_active:
        raise HTTPException(status_code=401, detail="Account disabled")

    # Token version check (revocation support)
    if user.token_version != payload.get("token_version"):
        raise HTTPException(status_code=401, detail="Session revoked")

    return user, payload


def get_current_session(
    request: Request,
    db: Session = Depends(get_db)
) -> UserSession:
    """
    Get full session context: user_id, agency_id, viewer kind.

    The viewer kind is re-resolved from membership rows on every request, so
    a removed member loses access immediately.

    Raises:
        HTTPException 401: Not authenticated
        HTTPException 403: No membership in the session's agency
    """
    from agencyhub.services import auth_service

    user, payload = get_current_user(request, db)

    kind = auth_service.resolve_viewer_kind(db, user.id, payload.get("agency_id"))
    if kind is None:
        raise HTTPException(status_code=403, detail="No agency membership")

    if kind.value != payload.get("viewer"):
        # Role changed since login; force a fresh session
        raise HTTPException(status_code=401, detail="Session revoked")

    return UserSession(
        user_id=user.id,
        agency_id=payload["agency_id"],
        viewer_kind=kind,
        email=user.email,
        name=user.name,
    )


def require_capability(capability: str):
    """
    Dependency factory for capability-based authorization.

    Usage:
        @router.post("/tags", dependencies=[Depends(require_capability("manage_tags"))])
    """
    def dependency(session: UserSession = Depends(get_current_session)) -> UserSession:
        if not has_capability(session.viewer, capability):
            raise HTTPException(
                status_code=403,
                detail=f"Viewer '{session.viewer_kind.value}' not authorized for this action",
            )
        return session
    return dependency


def require_csrf_header(request: Request) -> None:
    """
    Verify CSRF header on mutations.

    Apply to state-changing endpoints (POST, PATCH, PUT, DELETE).

    Raises:
        HTTPException 403: Missing or invalid CSRF header
    """
    if request.headers.get(CSRF_HEADER) != CSRF_HEADER_VALUE:
        raise HTTPException(
            status_code=403,
            detail=f"Missing CSRF header. Include '{CSRF_HEADER}: {CSRF_HEADER_VALUE}'"
        )


def set_session_cookie(response: Response, token: str) -> None:
    """Attach the session JWT as an HttpOnly cookie."""
    response.set_cookie(
        key=COOKIE_NAME,
        value=token,
        max_age=settings.JWT_EXPIRES_HOURS * 3600,
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
        path="/",
    )


def http_error(exc: AgencyHubError) -> HTTPException:
    """Translate a service exception into its HTTP response."""
    return HTTPException(status_code=exc.status_code, detail=exc.message)
