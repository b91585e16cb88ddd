"""Billing service - tier catalog and hosted payment-processor sessions.

Checkout and billing-portal sessions are created by POSTing to the
processor's REST API; the returned URL is handed to the browser. Calls are
not retried: a failure surfaces as PaymentProviderError.
"""

import logging
from dataclasses import dataclass, field
from uuid import UUID

import httpx
from sqlalchemy.orm import Session

from agencyhub.core.config import settings
from agencyhub.core.exceptions import PaymentProviderError, PermissionDeniedError, ValidationError
from agencyhub.core.permissions import Viewer, require_capability
from agencyhub.core.structured_logging import build_log_context
from agencyhub.db.enums import BillingInterval, Tier
from agencyhub.db.models import Agency, User

logger = logging.getLogger(__name__)


# =============================================================================
# Tier catalog
# =============================================================================

@dataclass(frozen=True)
class TierInfo:
    name: str
    description: str
    monthly_price: int | None  # USD; None = contact sales
    annual_price: int | None
    project_limit: int | None  # None = unlimited
    staff_limit: int | None
    active_client_limit: int | None
    features: tuple[str, ...] = field(default_factory=tuple)


_BASE = ("email_notifications", "client_portal")
_STARTER = _BASE + ("logo_branding", "basic_activity_log")
_GROWTH = _STARTER + ("full_branding", "advanced_activity_log", "realtime_updates", "csv_import")
_SCALE = _GROWTH + ("api_access", "webhooks", "export", "priority_support")
_ENTERPRISE = _SCALE + ("sso", "custom_domain", "white_label")

TIER_CATALOG: dict[Tier, TierInfo] = {
    Tier.FREE: TierInfo("Free", "For trying out the platform", 0, 0, 1, 1, 3, _BASE),
    Tier.STARTER: TierInfo("Starter", "For freelancers and small agencies", 29, 290, 5, 3, 10, _STARTER),
    Tier.GROWTH: TierInfo("Growth", "Most popular for established agencies", 79, 790, 20, 10, 30, _GROWTH),
    Tier.SCALE: TierInfo("Scale", "For larger agencies with high volume", 149, 1490, None, 25, 50, _SCALE),
    Tier.ENTERPRISE: TierInfo(
        "Enterprise", "Custom solutions for 50+ active clients", None, None, None, None, None, _ENTERPRISE
    ),
}


def tier_info(tier: Tier | str) -> TierInfo:
    try:
        return TIER_CATALOG[Tier(tier)]
    except ValueError:
        return TIER_CATALOG[Tier.FREE]


def has_feature(tier: Tier | str, feature: str) -> bool:
    """Feature gate; unknown tiers get free-tier features."""
    return feature in tier_info(tier).features


def get_price_id(tier: Tier, interval: BillingInterval) -> str:
    """
    Price id for a (tier, interval) pair from PAYMENT_PRICE_IDS.

    Raises:
        ValidationError: no price configured (free and enterprise never have one)
    """
    price_id = settings.PAYMENT_PRICE_IDS.get(f"{Tier(tier).value}:{BillingInterval(interval).value}")
    if not price_id:
        raise ValidationError(f"No price available for {tier.value} ({interval.value})")
    return price_id


def tier_for_price(price_id: str) -> Tier | None:
    for key, value in settings.PAYMENT_PRICE_IDS.items():
        if value == price_id:
            return Tier(key.split(":", 1)[0])
    return None


# =============================================================================
# Payment processor client
# =============================================================================

def _get_client() -> httpx.AsyncClient:
    """HTTP client for the processor API (replaced in tests)."""
    return httpx.AsyncClient(
        base_url=settings.PAYMENT_API_BASE,
        timeout=settings.PAYMENT_TIMEOUT_SECONDS,
    )


async def _post(path: str, data: dict, log_context: dict) -> dict:
    if not settings.PAYMENT_SECRET_KEY:
        raise PaymentProviderError("Payment provider is not configured")
    try:
        async with _get_client() as client:
            response = await client.post(
                path,
                data=data,
                headers={"Authorization": f"Bearer {settings.PAYMENT_SECRET_KEY}"},
            )
    except httpx.HTTPError as exc:
        logger.warning("Payment provider request failed", exc_info=exc, extra=log_context)
        raise PaymentProviderError()

    if response.status_code >= 400:
        logger.warning(
            "Payment provider returned %s", response.status_code, extra=log_context
        )
        raise PaymentProviderError()
    try:
        return response.json()
    except ValueError:
        raise PaymentProviderError("Payment provider returned an invalid response")


def _check_owner(viewer: Viewer, agency_id: UUID) -> None:
    require_capability(viewer, "manage_billing")
    if agency_id != viewer.agency_id:
        raise PermissionDeniedError("Not authorized to manage billing for this agency")


async def _ensure_customer(db: Session, agency: Agency, email: str, log_context: dict) -> str:
    if agency.payment_customer_id:
        return agency.payment_customer_id
    customer = await _post(
        "/v1/customers",
        {"email": email, "name": agency.name, "metadata[agency_id]": str(agency.id)},
        log_context,
    )
    agency.payment_customer_id = customer["id"]
    db.commit()
    return agency.payment_customer_id


async def create_checkout_session(
    db: Session,
    viewer: Viewer,
    agency_id: UUID,
    price_id: str,
    success_url: str | None = None,
    cancel_url: str | None = None,
) -> str:
    """Create a subscription checkout session and return its redirect URL."""
    _check_owner(viewer, agency_id)
    if tier_for_price(price_id) is None:
        raise ValidationError("Unknown price")

    log_context = build_log_context(user_id=str(viewer.user_id), agency_id=str(agency_id))
    agency = db.get(Agency, agency_id)
    owner = db.get(User, viewer.user_id)
    customer_id = await _ensure_customer(db, agency, owner.email, log_context)

    base = settings.FRONTEND_URL.rstrip("/")
    session = await _post(
        "/v1/checkout/sessions",
        {
            "mode": "subscription",
            "customer": customer_id,
            "client_reference_id": str(agency_id),
            "line_items[0][price]": price_id,
            "line_items[0][quantity]": "1",
            "success_url": success_url or f"{base}/settings/billing?success=true",
            "cancel_url": cancel_url or f"{base}/settings/billing?canceled=true",
            "metadata[agency_id]": str(agency_id),
        },
        log_context,
    )
    logger.info("Checkout session created", extra=log_context)
    return session["url"]


async def create_billing_portal_session(
    db: Session,
    viewer: Viewer,
    agency_id: UUID,
    return_url: str | None = None,
) -> str:
    """Create a billing-portal session for the agency's customer and return its URL."""
    _check_owner(viewer, agency_id)
    agency = db.get(Agency, agency_id)
    if not agency.payment_customer_id:
        raise ValidationError("Agency has no billing account yet")

    log_context = build_log_context(user_id=str(viewer.user_id), agency_id=str(agency_id))
    session = await _post(
        "/v1/billing_portal/sessions",
        {
            "customer": agency.payment_customer_id,
            "return_url": return_url or f"{settings.FRONTEND_URL.rstrip('/')}/settings/billing",
        },
        log_context,
    )
    return session["url"]
