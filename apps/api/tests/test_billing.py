"""Tests for the tier catalog and hosted payment sessions."""
import httpx
import pytest

from agencyhub.core.config import settings
from agencyhub.core.exceptions import PaymentProviderError, PermissionDeniedError, ValidationError
from agencyhub.db.enums import BillingInterval, Tier, ViewerKind
from agencyhub.services import billing_service

PRICES = {"starter:monthly": "price_starter_m", "growth:annual": "price_growth_y"}


@pytest.fixture
def processor(monkeypatch):
    """Fake payment processor; records every call."""
    calls: list[httpx.Request] = []
    state = {"status": 200}

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if state["status"] != 200:
            return httpx.Response(state["status"], json={"error": {"message": "boom"}})
        if request.url.path == "/v1/customers":
            return httpx.Response(200, json={"id": "cus_123"})
        if request.url.path == "/v1/checkout/sessions":
            return httpx.Response(200, json={"id": "cs_1", "url": "https://pay.test/cs_1"})
        if request.url.path == "/v1/billing_portal/sessions":
            return httpx.Response(200, json={"id": "bps_1", "url": "https://pay.test/portal"})
        return httpx.Response(404)

    monkeypatch.setattr(settings, "PAYMENT_SECRET_KEY", "sk_test")
    monkeypatch.setattr(settings, "PAYMENT_PRICE_IDS", PRICES)
    monkeypatch.setattr(
        billing_service,
        "_get_client",
        lambda: httpx.AsyncClient(
            transport=httpx.MockTransport(handler), base_url="https://processor.test"
        ),
    )
    return calls, state


# =============================================================================
# Catalog
# =============================================================================

def test_tier_catalog():
    assert billing_service.tier_info(Tier.FREE).project_limit == 1
    assert billing_service.tier_info("enterprise").monthly_price is None
    assert billing_service.tier_info("platinum") == billing_service.tier_info(Tier.FREE)
    assert billing_service.has_feature(Tier.GROWTH, "csv_import")
    assert not billing_service.has_feature(Tier.STARTER, "csv_import")


def test_price_lookup(processor):
    assert billing_service.get_price_id(Tier.STARTER, BillingInterval.MONTHLY) == "price_starter_m"
    assert billing_service.tier_for_price("price_growth_y") == Tier.GROWTH
    assert billing_service.tier_for_price("price_unknown") is None
    with pytest.raises(ValidationError):
        billing_service.get_price_id(Tier.FREE, BillingInterval.MONTHLY)


# =============================================================================
# Hosted sessions
# =============================================================================

@pytest.mark.asyncio
async def test_checkout_creates_customer_once(db, tenant, processor):
    calls, _ = processor
    url = await billing_service.create_checkout_session(
        db, tenant.owner_viewer, tenant.agency.id, "price_starter_m"
    )
    assert url == "https://pay.test/cs_1"
    assert tenant.agency.payment_customer_id == "cus_123"
    assert [c.url.path for c in calls] == ["/v1/customers", "/v1/checkout/sessions"]
    assert calls[0].headers["Authorization"] == "Bearer sk_test"
    assert b"line_items%5B0%5D%5Bprice%5D=price_starter_m" in calls[1].content

    await billing_service.create_checkout_session(
        db, tenant.owner_viewer, tenant.agency.id, "price_starter_m"
    )
    assert [c.url.path for c in calls[2:]] == ["/v1/checkout/sessions"]


@pytest.mark.asyncio
async def test_checkout_is_owner_only(db, tenant, other_tenant, processor):
    with pytest.raises(PermissionDeniedError):
        await billing_service.create_checkout_session(
            db, tenant.staff_viewer, tenant.agency.id, "price_starter_m"
        )
    with pytest.raises(PermissionDeniedError):
        await billing_service.create_checkout_session(
            db, tenant.owner_viewer, other_tenant.agency.id, "price_starter_m"
        )


@pytest.mark.asyncio
async def test_unknown_price_rejected(db, tenant, processor):
    with pytest.raises(ValidationError):
        await billing_service.create_checkout_session(
            db, tenant.owner_viewer, tenant.agency.id, "price_forged"
        )


@pytest.mark.asyncio
async def test_portal_requires_customer(db, tenant, processor):
    with pytest.raises(ValidationError):
        await billing_service.create_billing_portal_session(db, tenant.owner_viewer, tenant.agency.id)

    tenant.agency.payment_customer_id = "cus_existing"
    db.commit()
    url = await billing_service.create_billing_portal_session(db, tenant.owner_viewer, tenant.agency.id)
    assert url == "https://pay.test/portal"


@pytest.mark.asyncio
async def test_provider_failure(db, tenant, processor):
    _, state = processor
    state["status"] = 500
    with pytest.raises(PaymentProviderError):
        await billing_service.create_checkout_session(
            db, tenant.owner_viewer, tenant.agency.id, "price_starter_m"
        )
    assert tenant.agency.payment_customer_id is None


@pytest.mark.asyncio
async def test_unconfigured_provider(db, tenant, processor, monkeypatch):
    monkeypatch.setattr(settings, "PAYMENT_SECRET_KEY", "")
    with pytest.raises(PaymentProviderError):
        await billing_service.create_checkout_session(
            db, tenant.owner_viewer, tenant.agency.id, "price_starter_m"
        )


@pytest.mark.asyncio
async def test_checkout_endpoint(client_for, tenant, processor):
    _, state = processor
    async with client_for(tenant.owner, tenant.agency, ViewerKind.OWNER) as owner:
        response = await owner.post("/billing/checkout", json={"tier": "starter"})
        assert response.status_code == 200
        assert response.json() == {"url": "https://pay.test/cs_1"}

        response = await owner.post("/billing/checkout", json={"tier": "enterprise"})
        assert response.status_code == 422

        state["status"] = 503
        response = await owner.post("/billing/portal")
        assert response.status_code == 502

    async with client_for(tenant.staff, tenant.agency, ViewerKind.STAFF) as staff:
        response = await staff.post("/billing/checkout", json={"tier": "starter"})
        assert response.status_code == 403
        response = await staff.get("/billing/subscription")
        assert response.json()["tier"] == "growth"
