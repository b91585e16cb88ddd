"""Tests for staff and client invitations."""
from datetime import timedelta

import pytest

from agencyhub.core.exceptions import (
    InvitationAlreadyAcceptedError,
    InvitationExpiredError,
    InvitationInvalidError,
    PermissionDeniedError,
    ValidationError,
)
from agencyhub.db.enums import InvitationKind, NotificationType, ViewerKind
from agencyhub.db.models import Notification, ProjectMember
from agencyhub.db.types import utcnow
from agencyhub.services import auth_service, invite_service
from conftest import PASSWORD, make_user


# =============================================================================
# Creating invitations
# =============================================================================

def test_owner_invites_staff(db, tenant):
    invitation, token = invite_service.create_staff_invitation(
        db, tenant.owner_viewer, "New.Designer@Example.com"
    )
    assert invitation.invitation_email == "new.designer@example.com"
    assert invitation.invitation_token == token
    assert invite_service.invitation_url(token).endswith(f"/invitation/{token}")


def test_staff_cannot_invite_staff(db, tenant):
    with pytest.raises(PermissionDeniedError):
        invite_service.create_staff_invitation(db, tenant.staff_viewer, "x@example.com")


def test_duplicate_pending_invitation_rejected(db, tenant):
    invite_service.create_client_invitation(db, tenant.staff_viewer, tenant.project.id, "c@example.com")
    with pytest.raises(ValidationError):
        invite_service.create_client_invitation(
            db, tenant.staff_viewer, tenant.project.id, "C@example.com"
        )


def test_existing_member_cannot_be_invited(db, tenant):
    with pytest.raises(ValidationError):
        invite_service.create_staff_invitation(db, tenant.owner_viewer, tenant.staff.email)
    with pytest.raises(ValidationError):
        invite_service.create_client_invitation(
            db, tenant.staff_viewer, tenant.project.id, tenant.client.email
        )


def test_existing_account_gets_notified(db, tenant):
    outsider = make_user(db, "Pat Outsider")
    db.commit()
    invite_service.create_client_invitation(db, tenant.staff_viewer, tenant.project.id, outsider.email)

    note = db.query(Notification).filter(Notification.user_id == outsider.id).one()
    assert note.type == NotificationType.INVITATION.value


def test_list_and_revoke(db, tenant):
    staff_inv, _ = invite_service.create_staff_invitation(db, tenant.owner_viewer, "s@example.com")
    client_inv, _ = invite_service.create_client_invitation(
        db, tenant.staff_viewer, tenant.project.id, "c@example.com"
    )
    pending = invite_service.list_pending_invitations(db, tenant.owner_viewer)
    assert {i.id for i in pending} == {staff_inv.id, client_inv.id}

    # Staff may revoke client invitations but not staff ones
    with pytest.raises(PermissionDeniedError):
        invite_service.revoke_invitation(db, tenant.staff_viewer, staff_inv.id)
    invite_service.revoke_invitation(db, tenant.staff_viewer, client_inv.id)

    remaining = invite_service.list_pending_invitations(db, tenant.owner_viewer)
    assert [i.id for i in remaining] == [staff_inv.id]


# =============================================================================
# Token lifecycle
# =============================================================================

def test_accept_then_replay(db, tenant):
    _, token = invite_service.create_client_invitation(
        db, tenant.staff_viewer, tenant.project.id, "newclient@example.com"
    )
    details = invite_service.get_invitation_details(db, token)
    assert details["kind"] == InvitationKind.CLIENT
    assert details["project_name"] == "Website"

    user, agency_id, kind = invite_service.accept_invitation(
        db, token, "New Client", "longenough", "longenough"
    )
    assert agency_id == tenant.agency.id
    assert kind == ViewerKind.CLIENT
    assert auth_service.resolve_viewer_kind(db, user.id, tenant.agency.id) == ViewerKind.CLIENT

    membership = db.query(ProjectMember).filter(ProjectMember.user_id == user.id).one()
    assert membership.invitation_token is None
    assert membership.joined_at is not None

    with pytest.raises(InvitationAlreadyAcceptedError):
        invite_service.accept_invitation(db, token, "New Client", "longenough", "longenough")


def test_unknown_token_is_invalid(db):
    with pytest.raises(InvitationInvalidError):
        invite_service.find_invitation(db, "no-such-token")
    with pytest.raises(InvitationInvalidError):
        invite_service.find_invitation(db, "")


def test_expired_token(db, tenant):
    issued = utcnow() - timedelta(days=8)
    _, token = invite_service.create_staff_invitation(
        db, tenant.owner_viewer, "late@example.com", now=issued
    )
    with pytest.raises(InvitationExpiredError):
        invite_service.find_invitation(db, token)

    # Still valid just before the seven day expiry
    assert invite_service.find_invitation(db, token, now=issued + timedelta(days=6, hours=23))


@pytest.mark.parametrize(
    "name, password, confirmation",
    [
        ("A", "longenough", "longenough"),
        ("Ann", "short", "short"),
        ("Ann", "longenough", "different1"),
    ],
)
def test_acceptance_validation(db, tenant, name, password, confirmation):
    _, token = invite_service.create_staff_invitation(db, tenant.owner_viewer, "v@example.com")
    with pytest.raises(ValidationError):
        invite_service.accept_invitation(db, token, name, password, confirmation)
    # A failed attempt leaves the invitation pending
    assert invite_service.find_invitation(db, token)


def test_existing_account_must_prove_password(db, tenant, other_tenant):
    _, token = invite_service.create_staff_invitation(
        db, tenant.owner_viewer, other_tenant.staff.email
    )
    with pytest.raises(ValidationError):
        invite_service.accept_invitation(db, token, "Sam", "wrong-password", "wrong-password")

    user, _, kind = invite_service.accept_invitation(db, token, "Sam", PASSWORD, PASSWORD)
    assert user.id == other_tenant.staff.id
    assert kind == ViewerKind.STAFF


# =============================================================================
# HTTP
# =============================================================================

@pytest.mark.asyncio
async def test_invitation_endpoints(db, tenant, client, client_for):
    async with client_for(tenant.owner, tenant.agency, ViewerKind.OWNER) as owner:
        response = await owner.post("/invitations/staff", json={"email": "hire@example.com"})
    assert response.status_code == 201
    token = response.json()["invitation_url"].rsplit("/", 1)[-1]

    response = await client.get(f"/invitations/token/{token}")
    assert response.status_code == 200
    assert response.json()["agency_name"] == tenant.agency.name

    payload = {"name": "Hire", "password": "longenough", "password_confirmation": "longenough"}
    response = await client.post(f"/invitations/token/{token}/accept", json=payload)
    assert response.status_code == 200
    assert response.json()["viewer"] == "staff"

    response = await client.post(f"/invitations/token/{token}/accept", json=payload)
    assert response.status_code == 409

    response = await client.get("/invitations/token/unknown-token")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_expired_invitation_returns_410(db, tenant, client):
    _, token = invite_service.create_staff_invitation(
        db, tenant.owner_viewer, "late@example.com", now=utcnow() - timedelta(days=10)
    )
    response = await client.get(f"/invitations/token/{token}")
    assert response.status_code == 410
