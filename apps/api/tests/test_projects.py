"""Tests for projects and tier limits."""
import pytest

from agencyhub.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from agencyhub.db.enums import NotificationType, Tier, ViewerKind
from agencyhub.db.models import Notification
from agencyhub.services import project_service


def _set_tier(db, tenant, tier: Tier):
    tenant.agency.tier = tier.value
    db.commit()


def test_free_tier_allows_one_project(db, tenant):
    _set_tier(db, tenant, Tier.FREE)
    with pytest.raises(ValidationError):
        project_service.create_project(db, tenant.staff_viewer, "Second")


def test_last_slot_warns_creator(db, tenant):
    _set_tier(db, tenant, Tier.STARTER)
    for i in range(3):
        project_service.create_project(db, tenant.staff_viewer, f"P{i}")
    assert db.query(Notification).filter(
        Notification.type == NotificationType.TIER_LIMIT_WARNING.value
    ).count() == 0

    project_service.create_project(db, tenant.staff_viewer, "Last")
    warning = db.query(Notification).filter(
        Notification.type == NotificationType.TIER_LIMIT_WARNING.value
    ).one()
    assert warning.user_id == tenant.staff.id

    with pytest.raises(ValidationError):
        project_service.create_project(db, tenant.staff_viewer, "One too many")


def test_deleted_projects_free_a_slot(db, tenant):
    _set_tier(db, tenant, Tier.FREE)
    project_service.delete_project(db, tenant.owner_viewer, tenant.project)
    project_service.create_project(db, tenant.staff_viewer, "Replacement")


def test_clients_see_only_their_projects(db, tenant):
    hidden = project_service.create_project(db, tenant.staff_viewer, "Internal")

    visible = project_service.list_projects(db, tenant.client_viewer)
    assert [p.id for p in visible] == [tenant.project.id]
    with pytest.raises(NotFoundError):
        project_service.get_project(db, tenant.client_viewer, hidden.id)
    with pytest.raises(PermissionDeniedError):
        project_service.create_project(db, tenant.client_viewer, "Mine")


def test_projects_are_tenant_isolated(db, tenant, other_tenant):
    with pytest.raises(NotFoundError):
        project_service.get_project(db, tenant.owner_viewer, other_tenant.project.id)


@pytest.mark.asyncio
async def test_project_endpoints(client_for, tenant):
    async with client_for(tenant.staff, tenant.agency, ViewerKind.STAFF) as c:
        response = await c.post("/projects", json={"name": "Brand refresh"})
        assert response.status_code == 201
        project_id = response.json()["id"]

        response = await c.patch(f"/projects/{project_id}", json={"status": "archived"})
        assert response.status_code == 200
        assert response.json()["status"] == "archived"

        response = await c.get(f"/projects/{tenant.project.id}/clients")
        assert [row["email"] for row in response.json()] == [tenant.client.email]

    async with client_for(tenant.client, tenant.agency, ViewerKind.CLIENT) as c:
        response = await c.get(f"/projects/{project_id}")
        assert response.status_code == 404
