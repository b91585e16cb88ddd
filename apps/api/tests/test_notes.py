"""Tests for staff-only project notes."""
from datetime import timedelta

import pytest

from agencyhub.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from agencyhub.db.enums import ViewerKind
from agencyhub.db.types import utcnow
from agencyhub.services import note_service, project_service


def test_create_sanitizes_and_strips_title(db, tenant):
    note = note_service.create_note(
        db,
        tenant.staff_viewer,
        tenant.project,
        "<p>Kickoff</p><script>alert(1)</script>",
        title="  Meeting  ",
    )
    assert note.content == "<p>Kickoff</p>"
    assert note.title == "Meeting"
    assert note.is_pinned is False


def test_empty_content_rejected(db, tenant):
    with pytest.raises(ValidationError):
        note_service.create_note(db, tenant.staff_viewer, tenant.project, "<script></script>")


def test_clients_cannot_use_notes(db, tenant):
    with pytest.raises(PermissionDeniedError):
        note_service.create_note(db, tenant.client_viewer, tenant.project, "hello")
    with pytest.raises(PermissionDeniedError):
        note_service.list_notes(db, tenant.client_viewer, tenant.project.id)


def test_pinned_first_then_recently_updated(db, tenant):
    older = note_service.create_note(db, tenant.staff_viewer, tenant.project, "older")
    newer = note_service.create_note(db, tenant.staff_viewer, tenant.project, "newer")
    pinned = note_service.create_note(db, tenant.staff_viewer, tenant.project, "pinned")

    now = utcnow()
    older.updated_at = now - timedelta(hours=2)
    newer.updated_at = now - timedelta(hours=1)
    pinned.updated_at = now - timedelta(hours=3)
    pinned.is_pinned = True
    db.commit()

    ids = [n.id for n in note_service.list_notes(db, tenant.staff_viewer, tenant.project.id)]
    assert ids == [pinned.id, newer.id, older.id]


def test_any_staff_can_pin_but_only_author_or_owner_edits(db, tenant):
    note = note_service.create_note(db, tenant.owner_viewer, tenant.project, "Owner's note")

    pinned = note_service.update_note(db, tenant.staff_viewer, note, {"is_pinned": True})
    assert pinned.is_pinned is True

    with pytest.raises(PermissionDeniedError):
        note_service.update_note(db, tenant.staff_viewer, note, {"content": "rewritten"})
    with pytest.raises(PermissionDeniedError):
        note_service.delete_note(db, tenant.staff_viewer, note)

    staff_note = note_service.create_note(db, tenant.staff_viewer, tenant.project, "Mine")
    edited = note_service.update_note(
        db, tenant.owner_viewer, staff_note, {"title": "Owner fixed", "content": "Better"}
    )
    assert edited.title == "Owner fixed"
    assert edited.content == "Better"


def test_soft_delete_hides_note(db, tenant):
    note = note_service.create_note(db, tenant.staff_viewer, tenant.project, "Temporary")
    note_service.delete_note(db, tenant.staff_viewer, note)

    assert note.deleted_at is not None
    assert note_service.list_notes(db, tenant.staff_viewer, tenant.project.id) == []
    with pytest.raises(NotFoundError):
        note_service.get_note(db, tenant.staff_viewer, note.id)


def test_notes_scoped_to_agency_and_live_projects(db, tenant, other_tenant):
    note = note_service.create_note(db, tenant.staff_viewer, tenant.project, "Private")
    with pytest.raises(NotFoundError):
        note_service.get_note(db, other_tenant.staff_viewer, note.id)

    project_service.delete_project(db, tenant.owner_viewer, tenant.project)
    with pytest.raises(NotFoundError):
        note_service.get_note(db, tenant.staff_viewer, note.id)


@pytest.mark.asyncio
async def test_notes_endpoints(client_for, tenant):
    async with client_for(tenant.staff, tenant.agency, ViewerKind.STAFF) as c:
        created = await c.post(
            f"/projects/{tenant.project.id}/notes",
            json={"title": "Brand", "content": "Use the blue logo"},
        )
        assert created.status_code == 201
        note_id = created.json()["id"]

        pinned = await c.patch(f"/notes/{note_id}", json={"is_pinned": True})
        assert pinned.status_code == 200
        assert pinned.json()["is_pinned"] is True

        listed = await c.get(f"/projects/{tenant.project.id}/notes")
        assert [n["id"] for n in listed.json()] == [note_id]
        assert listed.json()[0]["author_name"] == tenant.staff.name

        assert (await c.delete(f"/notes/{note_id}")).status_code == 204
        assert (await c.get(f"/projects/{tenant.project.id}/notes")).json() == []

    async with client_for(tenant.client, tenant.agency, ViewerKind.CLIENT) as c:
        response = await c.get(f"/projects/{tenant.project.id}/notes")
        assert response.status_code == 403
