"""Tests for request assignment."""
import pytest

from agencyhub.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from agencyhub.db.enums import NotificationType, RequestActivityType
from agencyhub.db.models import Notification, RequestActivity, RequestAssignment
from agencyhub.schemas.request import RequestCreate
from agencyhub.services import assignment_service, request_service


@pytest.fixture
def request_row(db, tenant):
    return request_service.create_request(
        db,
        tenant.client_viewer,
        tenant.project.id,
        RequestCreate(title="Fix form", description="Submit button does nothing"),
    )


def test_assign_creates_one_row(db, tenant, request_row):
    assignment = assignment_service.assign(db, tenant.owner_viewer, request_row, tenant.staff.id)

    assert assignment.user_id == tenant.staff.id
    assert assignment.assigned_by == tenant.owner.id
    assert [a.user_id for a in assignment_service.list_assignments(db, request_row.id)] == [tenant.staff.id]


def test_assign_is_idempotent(db, tenant, request_row):
    first = assignment_service.assign(db, tenant.owner_viewer, request_row, tenant.staff.id)
    second = assignment_service.assign(db, tenant.owner_viewer, request_row, tenant.staff.id)

    assert first.id == second.id
    assert db.query(RequestAssignment).filter(RequestAssignment.request_id == request_row.id).count() == 1
    assert (
        db.query(RequestActivity)
        .filter(RequestActivity.activity_type == RequestActivityType.ASSIGNED.value)
        .count()
        == 1
    )


def test_assign_notifies_assignee_once(db, tenant, request_row):
    assignment_service.assign(db, tenant.owner_viewer, request_row, tenant.staff.id)
    assignment_service.assign(db, tenant.owner_viewer, request_row, tenant.staff.id)

    notes = (
        db.query(Notification)
        .filter(Notification.type == NotificationType.ASSIGNMENT.value)
        .all()
    )
    assert [n.user_id for n in notes] == [tenant.staff.id]


def test_self_assignment_sends_no_notification(db, tenant, request_row):
    assignment_service.assign(db, tenant.staff_viewer, request_row, tenant.staff.id)
    assert (
        db.query(Notification)
        .filter(Notification.type == NotificationType.ASSIGNMENT.value)
        .count()
        == 0
    )


def test_only_staff_can_be_assigned(db, tenant, other_tenant, request_row):
    with pytest.raises(ValidationError):
        assignment_service.assign(db, tenant.owner_viewer, request_row, tenant.client.id)
    with pytest.raises(ValidationError):
        assignment_service.assign(db, tenant.owner_viewer, request_row, other_tenant.staff.id)


def test_client_cannot_assign(db, tenant, request_row):
    with pytest.raises(PermissionDeniedError):
        assignment_service.assign(db, tenant.client_viewer, request_row, tenant.staff.id)


def test_unassign(db, tenant, request_row):
    assignment_service.assign(db, tenant.owner_viewer, request_row, tenant.staff.id)
    assignment_service.unassign(db, tenant.owner_viewer, request_row, tenant.staff.id)

    assert assignment_service.list_assignments(db, request_row.id) == []
    with pytest.raises(NotFoundError):
        assignment_service.unassign(db, tenant.owner_viewer, request_row, tenant.staff.id)
