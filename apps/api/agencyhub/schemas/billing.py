"""Pydantic schemas for billing."""

from uuid import UUID

from pydantic import BaseModel

from agencyhub.db.enums import BillingInterval, Tier


class CheckoutRequest(BaseModel):
    """Start a hosted checkout for a tier; the price id is resolved from config."""
    tier: Tier
    interval: BillingInterval = BillingInterval.MONTHLY


class RedirectResponse(BaseModel):
    url: str


class TierRead(BaseModel):
    tier: Tier
    name: str
    description: str
    monthly_price: int | None
    annual_price: int | None
    project_limit: int | None
    staff_limit: int | None
    active_client_limit: int | None
    features: list[str]


class SubscriptionRead(BaseModel):
    agency_id: UUID
    tier: Tier
    has_billing_account: bool
    features: list[str]
