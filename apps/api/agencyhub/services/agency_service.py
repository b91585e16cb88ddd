"""Agency service - tenants and staff membership."""

import logging
import re
import uuid
from uuid import UUID

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from agencyhub.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from agencyhub.core.permissions import Viewer, require_capability
from agencyhub.core.security import hash_password
from agencyhub.db.enums import AgencyRole
from agencyhub.db.models import Agency, AgencyMember, User
from agencyhub.db.types import utcnow

logger = logging.getLogger(__name__)


def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return slug or "agency"


def _unique_slug(db: Session, name: str) -> str:
    base = slugify(name)[:80]
    slug = base
    while db.query(Agency.id).filter(Agency.slug == slug).first():
        slug = f"{base}-{uuid.uuid4().hex[:6]}"
    return slug


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()


def create_agency_with_owner(
    db: Session,
    agency_name: str,
    owner_name: str,
    owner_email: str,
    password: str,
) -> tuple[Agency, User]:
    """
    Create a new agency and its owner account.

    Raises:
        ValidationError: email already registered
    """
    if get_user_by_email(db, owner_email):
        raise ValidationError("An account with this email already exists")

    user = User(
        email=owner_email.strip().lower(),
        name=owner_name.strip(),
        password_hash=hash_password(password),
    )
    agency = Agency(name=agency_name.strip(), slug=_unique_slug(db, agency_name))
    db.add_all([user, agency])
    db.flush()

    db.add(
        AgencyMember(
            agency_id=agency.id,
            user_id=user.id,
            role=AgencyRole.OWNER.value,
            joined_at=utcnow(),
        )
    )
    db.commit()
    db.refresh(agency)
    logger.info("Agency created", extra={"agency_id": str(agency.id), "user_id": str(user.id)})
    return agency, user


def get_agency(db: Session, agency_id: UUID) -> Agency:
    agency = db.query(Agency).filter(Agency.id == agency_id).first()
    if not agency:
        raise NotFoundError("Agency not found")
    return agency


def update_agency(
    db: Session,
    viewer: Viewer,
    name: str | None = None,
    timezone: str | None = None,
) -> Agency:
    """Owner-only agency settings update."""
    require_capability(viewer, "manage_agency")
    agency = get_agency(db, viewer.agency_id)
    if name is not None:
        agency.name = name.strip()
    if timezone is not None:
        agency.timezone = timezone
    db.commit()
    db.refresh(agency)
    return agency


# =============================================================================
# Membership
# =============================================================================

def get_staff_membership(db: Session, agency_id: UUID, user_id: UUID) -> AgencyMember | None:
    """Joined staff/owner membership, or None."""
    return (
        db.query(AgencyMember)
        .filter(
            AgencyMember.agency_id == agency_id,
            AgencyMember.user_id == user_id,
        )
        .first()
    )


def is_staff_member(db: Session, agency_id: UUID, user_id: UUID) -> bool:
    return get_staff_membership(db, agency_id, user_id) is not None


def list_members(db: Session, agency_id: UUID) -> list[tuple[AgencyMember, User]]:
    """Joined members with their user rows, owners first."""
    return (
        db.query(AgencyMember, User)
        .join(User, User.id == AgencyMember.user_id)
        .filter(AgencyMember.agency_id == agency_id)
        .order_by(case((AgencyMember.role == AgencyRole.OWNER.value, 0), else_=1), User.name)
        .all()
    )


def remove_member(db: Session, viewer: Viewer, user_id: UUID) -> None:
    """
    Remove a staff member. Owners cannot be removed.

    Bumps the user's token_version so open sessions are revoked.
    """
    require_capability(viewer, "manage_agency")
    membership = get_staff_membership(db, viewer.agency_id, user_id)
    if not membership:
        raise NotFoundError("Member not found")
    if membership.role == AgencyRole.OWNER.value:
        raise PermissionDeniedError("The agency owner cannot be removed")

    user = db.query(User).filter(User.id == user_id).first()
    if user:
        user.token_version += 1
    db.delete(membership)
    db.commit()
