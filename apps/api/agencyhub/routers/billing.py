"""Billing endpoints: tier catalog, subscription status and hosted sessions."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from agencyhub.core.deps import get_current_session, get_db, http_error, require_csrf_header
from agencyhub.core.exceptions import AgencyHubError
from agencyhub.db.enums import Tier
from agencyhub.schemas.auth import UserSession
from agencyhub.schemas.billing import CheckoutRequest, RedirectResponse, SubscriptionRead, TierRead
from agencyhub.services import agency_service, billing_service

router = APIRouter(prefix="/billing", tags=["billing"])


@router.get("/tiers", response_model=list[TierRead])
def list_tiers():
    return [
        TierRead(
            tier=tier,
            name=info.name,
            description=info.description,
            monthly_price=info.monthly_price,
            annual_price=info.annual_price,
            project_limit=info.project_limit,
            staff_limit=info.staff_limit,
            active_client_limit=info.active_client_limit,
            features=list(info.features),
        )
        for tier, info in billing_service.TIER_CATALOG.items()
    ]


@router.get("/subscription", response_model=SubscriptionRead)
def get_subscription(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    agency = agency_service.get_agency(db, session.agency_id)
    return SubscriptionRead(
        agency_id=agency.id,
        tier=Tier(agency.tier),
        has_billing_account=agency.payment_customer_id is not None,
        features=list(billing_service.tier_info(agency.tier).features),
    )


@router.post("/checkout", response_model=RedirectResponse, dependencies=[Depends(require_csrf_header)])
async def create_checkout(
    data: CheckoutRequest,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Owner only. Returns the hosted checkout URL to redirect to."""
    try:
        price_id = billing_service.get_price_id(data.tier, data.interval)
        url = await billing_service.create_checkout_session(
            db, session.viewer, session.agency_id, price_id
        )
    except AgencyHubError as e:
        raise http_error(e)
    return RedirectResponse(url=url)


@router.post("/portal", response_model=RedirectResponse, dependencies=[Depends(require_csrf_header)])
async def create_portal(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    try:
        url = await billing_service.create_billing_portal_session(
            db, session.viewer, session.agency_id
        )
    except AgencyHubError as e:
        raise http_error(e)
    return RedirectResponse(url=url)
