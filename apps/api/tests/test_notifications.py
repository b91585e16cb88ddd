"""Tests for in-app notifications."""
import pytest

from agencyhub.db.enums import NotificationType, ViewerKind
from agencyhub.services import notification_service


def test_notify_users_dedupes_and_skips_actor(db, tenant):
    created = notification_service.notify_users(
        db,
        agency_id=tenant.agency.id,
        user_ids=[tenant.staff.id, tenant.owner.id, tenant.staff.id, None],
        type=NotificationType.NEW_REQUEST,
        title="New request",
        exclude_user_id=tenant.owner.id,
    )
    db.commit()
    assert [n.user_id for n in created] == [tenant.staff.id]


def test_read_state(db, tenant, other_tenant):
    for i in range(3):
        notification_service.create_notification(
            db, tenant.agency.id, tenant.staff.id, NotificationType.NEW_REPLY, f"n{i}"
        )
    db.commit()
    items = notification_service.list_notifications(db, tenant.staff.id, tenant.agency.id)
    assert notification_service.count_unread(db, tenant.staff.id, tenant.agency.id) == 3

    assert notification_service.mark_read(db, items[0].id, tenant.owner.id) is None
    assert notification_service.mark_read(db, items[0].id, tenant.staff.id).read_at is not None
    assert len(notification_service.list_notifications(db, tenant.staff.id, tenant.agency.id, unread_only=True)) == 2

    assert notification_service.mark_all_read(db, tenant.staff.id, tenant.agency.id) == 2
    assert notification_service.count_unread(db, tenant.staff.id, tenant.agency.id) == 0


@pytest.mark.asyncio
async def test_notification_endpoints(db, client_for, tenant):
    note = notification_service.create_notification(
        db, tenant.agency.id, tenant.staff.id, NotificationType.ASSIGNMENT, "You were assigned"
    )
    db.commit()

    async with client_for(tenant.staff, tenant.agency, ViewerKind.STAFF) as c:
        response = await c.get("/notifications")
        assert response.json()["unread_count"] == 1
        assert response.json()["items"][0]["title"] == "You were assigned"

        response = await c.patch(f"/notifications/{note.id}/read")
        assert response.status_code == 200
        assert response.json()["read_at"] is not None

        response = await c.post("/notifications/read-all")
        assert response.json() == {"marked_read": 0}

    async with client_for(tenant.owner, tenant.agency, ViewerKind.OWNER) as c:
        response = await c.patch(f"/notifications/{note.id}/read")
        assert response.status_code == 404
