"""Tests for request threads and the internal/public partition."""
from datetime import timedelta

import pytest

from agencyhub.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from agencyhub.db.enums import NotificationType
from agencyhub.db.models import Notification
from agencyhub.schemas.request import RequestCreate
from agencyhub.services import assignment_service, message_service, request_service


@pytest.fixture
def request_row(db, tenant):
    return request_service.create_request(
        db,
        tenant.client_viewer,
        tenant.project.id,
        RequestCreate(title="Copy tweak", description="Change the tagline"),
    )


def test_clients_never_see_internal_messages(db, tenant, request_row):
    public = message_service.create_message(db, tenant.staff_viewer, request_row, "On it")
    internal = message_service.create_message(
        db, tenant.staff_viewer, request_row, "Client is picky", is_internal=True
    )

    client_ids = [m.id for m in message_service.list_messages(db, tenant.client_viewer, request_row.id)]
    staff_ids = [m.id for m in message_service.list_messages(db, tenant.staff_viewer, request_row.id)]

    assert client_ids == [public.id]
    assert staff_ids == [public.id, internal.id]

    with pytest.raises(NotFoundError):
        message_service.get_message(db, tenant.client_viewer, internal.id)


def test_client_cannot_post_internal(db, tenant, request_row):
    with pytest.raises(PermissionDeniedError):
        message_service.create_message(
            db, tenant.client_viewer, request_row, "psst", is_internal=True
        )


def test_message_html_is_sanitized(db, tenant, request_row):
    message = message_service.create_message(
        db,
        tenant.client_viewer,
        request_row,
        '<p onclick="x()">Hi <strong>there</strong></p><script>alert(1)</script>',
    )
    assert message.content == "<p>Hi <strong>there</strong></p>"


def test_empty_message_rejected(db, tenant, request_row):
    with pytest.raises(ValidationError):
        message_service.create_message(db, tenant.client_viewer, request_row, "<script>x</script>")


def test_public_staff_reply_notifies_author(db, tenant, request_row):
    message_service.create_message(db, tenant.staff_viewer, request_row, "Done")
    message_service.create_message(db, tenant.staff_viewer, request_row, "Note", is_internal=True)

    replies = db.query(Notification).filter(Notification.type == NotificationType.NEW_REPLY.value).all()
    assert [n.user_id for n in replies] == [tenant.client.id]


def test_client_message_notifies_assignees(db, tenant, request_row):
    assignment_service.assign(db, tenant.owner_viewer, request_row, tenant.staff.id)
    message_service.create_message(db, tenant.client_viewer, request_row, "Any update?")

    replies = db.query(Notification).filter(Notification.type == NotificationType.NEW_REPLY.value).all()
    assert [n.user_id for n in replies] == [tenant.staff.id]


def test_author_edit_window(db, tenant, request_row):
    message = message_service.create_message(db, tenant.client_viewer, request_row, "Typo hree")
    created = message.created_at

    edited = message_service.update_message(
        db, tenant.client_viewer, message, "Typo here", now=created + timedelta(minutes=2)
    )
    assert edited.content == "Typo here"
    assert message_service.to_message_read(edited).is_edited

    with pytest.raises(PermissionDeniedError):
        message_service.update_message(
            db, tenant.client_viewer, message, "Too late", now=created + timedelta(minutes=6)
        )
    with pytest.raises(PermissionDeniedError):
        message_service.delete_message(
            db, tenant.client_viewer, message, now=created + timedelta(minutes=6)
        )


def test_staff_may_moderate_any_time(db, tenant, request_row):
    message = message_service.create_message(db, tenant.client_viewer, request_row, "Rude words")
    later = message.created_at + timedelta(days=3)

    assert message_service.can_modify(tenant.staff_viewer, message, later)
    message_service.delete_message(db, tenant.staff_viewer, message, now=later)

    assert message_service.list_messages(db, tenant.staff_viewer, request_row.id) == []


def test_other_client_cannot_edit(db, tenant, request_row):
    message = message_service.create_message(db, tenant.staff_viewer, request_row, "Hello")
    assert not message_service.can_modify(tenant.client_viewer, message, message.created_at)
