"""Invitation service - staff and client invitations.

Lifecycle of a token: pending (token set, not expired) -> accepted (token
nulled, its SHA-256 kept in consumed_token_hash) or expired. A replayed
token is recognised through the hash and reported as already accepted,
distinct from an unknown token.
"""

import logging
from datetime import datetime, timedelta
from uuid import UUID

from sqlalchemy.orm import Session

from agencyhub.core.config import settings
from agencyhub.core.exceptions import (
    InvitationAlreadyAcceptedError,
    InvitationExpiredError,
    InvitationInvalidError,
    NotFoundError,
    ValidationError,
)
from agencyhub.core.permissions import Viewer, require_capability
from agencyhub.core.security import (
    generate_invitation_token,
    hash_invitation_token,
    hash_password,
    verify_password,
)
from agencyhub.db.enums import AgencyRole, InvitationKind, NotificationType, ViewerKind
from agencyhub.db.models import Agency, AgencyMember, Project, ProjectMember, User
from agencyhub.db.types import utcnow
from agencyhub.services import agency_service, notification_service, project_service

logger = logging.getLogger(__name__)

MIN_NAME_LENGTH = 2
MIN_PASSWORD_LENGTH = 8

Invitation = AgencyMember | ProjectMember


def _expiry(now: datetime | None = None) -> datetime:
    return (now or utcnow()) + timedelta(days=settings.INVITATION_EXPIRY_DAYS)


def invitation_url(token: str) -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}/invitation/{token}"


def kind_of(invitation: Invitation) -> InvitationKind:
    if isinstance(invitation, AgencyMember):
        return InvitationKind.STAFF
    return InvitationKind.CLIENT


# =============================================================================
# Create / list / revoke
# =============================================================================

def _notify_existing_user(db: Session, agency_id: UUID, email: str, title: str) -> None:
    user = agency_service.get_user_by_email(db, email)
    if user:
        notification_service.create_notification(
            db, agency_id, user.id, NotificationType.INVITATION, title
        )


def create_staff_invitation(
    db: Session,
    viewer: Viewer,
    email: str,
    now: datetime | None = None,
) -> tuple[AgencyMember, str]:
    """
    Invite a staff member. Returns (invitation, raw token).

    Raises:
        ValidationError: email already staff, or an invitation is pending
    """
    require_capability(viewer, "invite_staff")
    email = email.strip().lower()

    existing_user = agency_service.get_user_by_email(db, email)
    if existing_user and agency_service.is_staff_member(db, viewer.agency_id, existing_user.id):
        raise ValidationError("This user is already a member of the agency")
    pending = (
        db.query(AgencyMember)
        .filter(
            AgencyMember.agency_id == viewer.agency_id,
            AgencyMember.invitation_email == email,
            AgencyMember.user_id.is_(None),
            AgencyMember.invitation_token.isnot(None),
        )
        .first()
    )
    if pending:
        raise ValidationError(f"Pending invitation already exists for {email}")

    token = generate_invitation_token()
    invitation = AgencyMember(
        agency_id=viewer.agency_id,
        role=AgencyRole.STAFF.value,
        invitation_email=email,
        invitation_token=token,
        invitation_expires_at=_expiry(now),
        invited_by=viewer.user_id,
    )
    db.add(invitation)
    _notify_existing_user(db, viewer.agency_id, email, "You were invited to join an agency team")
    db.commit()
    db.refresh(invitation)
    logger.info("Staff invitation created", extra={"agency_id": str(viewer.agency_id)})
    return invitation, token


def create_client_invitation(
    db: Session,
    viewer: Viewer,
    project_id: UUID,
    email: str,
    now: datetime | None = None,
) -> tuple[ProjectMember, str]:
    """Invite a client into a project. Returns (invitation, raw token)."""
    require_capability(viewer, "invite_clients")
    project = project_service.get_project(db, viewer, project_id)
    email = email.strip().lower()

    existing_user = agency_service.get_user_by_email(db, email)
    if existing_user and project_service.is_project_client(db, project.id, existing_user.id):
        raise ValidationError("This user is already a client of the project")
    pending = (
        db.query(ProjectMember)
        .filter(
            ProjectMember.project_id == project.id,
            ProjectMember.invitation_email == email,
            ProjectMember.user_id.is_(None),
            ProjectMember.invitation_token.isnot(None),
        )
        .first()
    )
    if pending:
        raise ValidationError(f"Pending invitation already exists for {email}")

    token = generate_invitation_token()
    invitation = ProjectMember(
        project_id=project.id,
        invitation_email=email,
        invitation_token=token,
        invitation_expires_at=_expiry(now),
        invited_by=viewer.user_id,
    )
    db.add(invitation)
    _notify_existing_user(db, viewer.agency_id, email, f"You were invited to {project.name}")
    db.commit()
    db.refresh(invitation)
    return invitation, token


def list_pending_invitations(db: Session, viewer: Viewer) -> list[Invitation]:
    """Unaccepted invitations of the agency (staff and client), newest first."""
    require_capability(viewer, "invite_clients")
    staff = (
        db.query(AgencyMember)
        .filter(
            AgencyMember.agency_id == viewer.agency_id,
            AgencyMember.user_id.is_(None),
            AgencyMember.invitation_token.isnot(None),
        )
        .all()
    )
    clients = (
        db.query(ProjectMember)
        .join(Project, Project.id == ProjectMember.project_id)
        .filter(
            Project.agency_id == viewer.agency_id,
            Project.deleted_at.is_(None),
            ProjectMember.user_id.is_(None),
            ProjectMember.invitation_token.isnot(None),
        )
        .all()
    )
    return sorted([*staff, *clients], key=lambda i: i.created_at, reverse=True)


def revoke_invitation(db: Session, viewer: Viewer, invitation_id: UUID) -> None:
    """Delete a pending invitation."""
    require_capability(viewer, "invite_clients")
    staff = (
        db.query(AgencyMember)
        .filter(
            AgencyMember.id == invitation_id,
            AgencyMember.agency_id == viewer.agency_id,
            AgencyMember.user_id.is_(None),
        )
        .first()
    )
    if staff:
        require_capability(viewer, "invite_staff")
        db.delete(staff)
        db.commit()
        return

    client = (
        db.query(ProjectMember)
        .join(Project, Project.id == ProjectMember.project_id)
        .filter(
            ProjectMember.id == invitation_id,
            Project.agency_id == viewer.agency_id,
            ProjectMember.user_id.is_(None),
        )
        .first()
    )
    if not client:
        raise NotFoundError("Invitation not found")
    db.delete(client)
    db.commit()


# =============================================================================
# Lookup / accept
# =============================================================================

def find_invitation(db: Session, token: str, now: datetime | None = None) -> Invitation:
    """
    Resolve a token to its pending invitation.

    Raises:
        InvitationAlreadyAcceptedError: token was consumed before
        InvitationExpiredError: token known but past its expiry
        InvitationInvalidError: token unknown
    """
    if not token:
        raise InvitationInvalidError()

    for model in (AgencyMember, ProjectMember):
        invitation = db.query(model).filter(model.invitation_token == token).first()
        if invitation:
            if invitation.user_id is not None:
                raise InvitationAlreadyAcceptedError()
            expires_at = invitation.invitation_expires_at
            if expires_at is not None and expires_at <= (now or utcnow()):
                raise InvitationExpiredError()
            return invitation

    token_hash = hash_invitation_token(token)
    for model in (AgencyMember, ProjectMember):
        if db.query(model.id).filter(model.consumed_token_hash == token_hash).first():
            raise InvitationAlreadyAcceptedError()

    raise InvitationInvalidError()


def _agency_and_project(db: Session, invitation: Invitation) -> tuple[Agency, Project | None]:
    if isinstance(invitation, AgencyMember):
        return db.get(Agency, invitation.agency_id), None
    project = db.get(Project, invitation.project_id)
    return db.get(Agency, project.agency_id), project


def get_invitation_details(db: Session, token: str, now: datetime | None = None) -> dict:
    invitation = find_invitation(db, token, now)
    agency, project = _agency_and_project(db, invitation)
    return {
        "kind": kind_of(invitation),
        "email": invitation.invitation_email,
        "agency_name": agency.name,
        "project_name": project.name if project else None,
        "expires_at": invitation.invitation_expires_at,
    }


def validate_name(name: str) -> None:
    if len((name or "").strip()) < MIN_NAME_LENGTH:
        raise ValidationError(f"Name must be at least {MIN_NAME_LENGTH} characters")


def validate_new_password(password: str, password_confirmation: str) -> None:
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if password != password_confirmation:
        raise ValidationError("Passwords do not match")


def validate_acceptance(name: str, password: str, password_confirmation: str) -> None:
    validate_name(name)
    validate_new_password(password, password_confirmation)


def accept_invitation(
    db: Session,
    token: str,
    name: str,
    password: str,
    password_confirmation: str,
    now: datetime | None = None,
) -> tuple[User, UUID, ViewerKind]:
    """
    Consume an invitation, creating the account when needed.

    An existing account must present its current password.

    Returns:
        (user, agency_id, viewer kind) for the new session
    """
    invitation = find_invitation(db, token, now)
    validate_acceptance(name, password, password_confirmation)

    email = invitation.invitation_email
    user = agency_service.get_user_by_email(db, email)
    if user:
        if not verify_password(password, user.password_hash):
            raise ValidationError("An account with this email exists; enter its password")
    else:
        user = User(email=email, name=name.strip(), password_hash=hash_password(password))
        db.add(user)
        db.flush()

    agency, _ = _agency_and_project(db, invitation)
    kind = ViewerKind.STAFF if isinstance(invitation, AgencyMember) else ViewerKind.CLIENT

    invitation.user_id = user.id
    invitation.joined_at = now or utcnow()
    invitation.consumed_token_hash = hash_invitation_token(token)
    invitation.invitation_token = None
    db.commit()
    db.refresh(user)

    logger.info(
        "Invitation accepted",
        extra={"agency_id": str(agency.id), "user_id": str(user.id), "kind": kind.value},
    )
    return user, agency.id, kind


def to_invite_read(invitation: Invitation) -> dict:
    return {
        "id": invitation.id,
        "kind": kind_of(invitation),
        "email": invitation.invitation_email,
        "project_id": getattr(invitation, "project_id", None),
        "expires_at": invitation.invitation_expires_at,
        "created_at": invitation.created_at,
    }
