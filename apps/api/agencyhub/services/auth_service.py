"""Auth service - credential checks, viewer resolution and account self-service."""

import logging
from uuid import UUID

from sqlalchemy.orm import Session

from agencyhub.core.exceptions import PermissionDeniedError, ValidationError
from agencyhub.core.security import hash_password, verify_password
from agencyhub.db.enums import AgencyRole, ViewerKind
from agencyhub.db.models import AgencyMember, Project, ProjectMember, User
from agencyhub.services import agency_service, invite_service

logger = logging.getLogger(__name__)


def resolve_viewer_kind(
    db: Session,
    user_id: UUID,
    agency_id: UUID | str | None,
) -> ViewerKind | None:
    """
    Work out who the user is inside an agency.

    Staff membership wins over client membership when a user has both.
    Returns None when the user has no joined membership in the agency.
    """
    if agency_id is None:
        return None
    agency_id = UUID(str(agency_id))

    member = agency_service.get_staff_membership(db, agency_id, user_id)
    if member:
        if not AgencyRole.has_value(member.role):
            return None
        return ViewerKind(member.role)

    is_client = (
        db.query(ProjectMember.id)
        .join(Project, Project.id == ProjectMember.project_id)
        .filter(
            ProjectMember.user_id == user_id,
            Project.agency_id == agency_id,
            Project.deleted_at.is_(None),
        )
        .first()
    )
    return ViewerKind.CLIENT if is_client else None


def default_agency_id(db: Session, user_id: UUID) -> UUID | None:
    """First agency the user belongs to, preferring staff memberships."""
    row = (
        db.query(AgencyMember.agency_id)
        .filter(AgencyMember.user_id == user_id)
        .order_by(AgencyMember.created_at)
        .first()
    )
    if row:
        return row[0]
    row = (
        db.query(Project.agency_id)
        .join(ProjectMember, ProjectMember.project_id == Project.id)
        .filter(ProjectMember.user_id == user_id, Project.deleted_at.is_(None))
        .order_by(ProjectMember.created_at)
        .first()
    )
    return row[0] if row else None


def authenticate(
    db: Session,
    email: str,
    password: str,
    agency_id: UUID | None = None,
) -> tuple[User, UUID, ViewerKind]:
    """
    Check credentials and pick the agency context for the session.

    Raises:
        ValidationError: bad credentials (same message for unknown email)
        PermissionDeniedError: no membership in the requested agency
    """
    user = agency_service.get_user_by_email(db, email)
    if not user or not user.is_active or not verify_password(password, user.password_hash):
        raise ValidationError("Invalid email or password")

    agency_id = agency_id or default_agency_id(db, user.id)
    kind = resolve_viewer_kind(db, user.id, agency_id)
    if agency_id is None or kind is None:
        raise PermissionDeniedError("No agency membership")

    logger.info("Login", extra={"user_id": str(user.id), "agency_id": str(agency_id)})
    return user, agency_id, kind


def revoke_sessions(db: Session, user: User) -> None:
    """Invalidate every outstanding session token for the user."""
    user.token_version += 1
    db.commit()


def update_profile(db: Session, user: User, name: str) -> User:
    """Change the display name."""
    invite_service.validate_name(name)
    user.name = name.strip()
    db.commit()
    db.refresh(user)
    return user


def change_password(
    db: Session,
    user: User,
    current_password: str,
    new_password: str,
    password_confirmation: str,
) -> User:
    """
    Replace the password and invalidate every existing session.

    Raises:
        ValidationError: wrong current password, new password too short,
            or confirmation mismatch
    """
    if not verify_password(current_password, user.password_hash):
        raise ValidationError("Current password is incorrect")
    invite_service.validate_new_password(new_password, password_confirmation)

    user.password_hash = hash_password(new_password)
    user.token_version += 1
    db.commit()
    db.refresh(user)
    logger.info("Password changed", extra={"user_id": str(user.id)})
    return user
