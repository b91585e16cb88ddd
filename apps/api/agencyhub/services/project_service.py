"""Project service - projects and client project membership.

Every entity below a project inherits its visibility from here: staff see
all live projects of their agency, clients see only projects they joined.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Query, Session

from agencyhub.core.exceptions import NotFoundError, ValidationError
from agencyhub.core.permissions import Viewer, require_capability
from agencyhub.db.enums import NotificationType, ProjectStatus
from agencyhub.db.models import Agency, Project, ProjectMember, User
from agencyhub.db.types import utcnow
from agencyhub.services import billing_service, notification_service


def scope_projects(query: Query, viewer: Viewer) -> Query:
    """Restrict a query that already involves Project to what the viewer may see."""
    query = query.filter(
        Project.agency_id == viewer.agency_id,
        Project.deleted_at.is_(None),
    )
    if viewer.is_client:
        member_projects = select(ProjectMember.project_id).where(
            ProjectMember.user_id == viewer.user_id
        )
        query = query.filter(Project.id.in_(member_projects))
    return query


def get_project(db: Session, viewer: Viewer, project_id: UUID) -> Project:
    """
    Fetch a project visible to the viewer.

    Raises:
        NotFoundError: missing, soft-deleted, other agency, or not a member
    """
    project = scope_projects(db.query(Project), viewer).filter(Project.id == project_id).first()
    if not project:
        raise NotFoundError("Project not found")
    return project


def list_projects(
    db: Session,
    viewer: Viewer,
    status: ProjectStatus | None = None,
) -> list[Project]:
    query = scope_projects(db.query(Project), viewer)
    if status:
        query = query.filter(Project.status == status.value)
    return query.order_by(Project.created_at.desc()).all()


def create_project(
    db: Session,
    viewer: Viewer,
    name: str,
    description: str | None = None,
) -> Project:
    """
    Create a project within the agency's tier limit.

    Taking the last project slot of the tier notifies the creator.
    """
    require_capability(viewer, "manage_projects")
    agency = db.get(Agency, viewer.agency_id)
    limit = billing_service.tier_info(agency.tier).project_limit
    live_count = (
        db.query(Project)
        .filter(Project.agency_id == agency.id, Project.deleted_at.is_(None))
        .count()
    )
    if limit is not None and live_count >= limit:
        raise ValidationError(f"Project limit reached for the {agency.tier} tier")

    project = Project(
        agency_id=viewer.agency_id,
        name=name.strip(),
        description=description,
        created_by=viewer.user_id,
    )
    db.add(project)
    if limit is not None and live_count + 1 == limit:
        notification_service.create_notification(
            db,
            agency.id,
            viewer.user_id,
            NotificationType.TIER_LIMIT_WARNING,
            "Project limit reached",
            body=f"Upgrade from {agency.tier} to add more projects",
        )
    db.commit()
    db.refresh(project)
    return project


def update_project(
    db: Session,
    viewer: Viewer,
    project: Project,
    name: str | None = None,
    description: str | None = None,
    status: ProjectStatus | None = None,
) -> Project:
    require_capability(viewer, "manage_projects")
    if name is not None:
        project.name = name.strip()
    if description is not None:
        project.description = description
    if status is not None:
        project.status = status.value
    db.commit()
    db.refresh(project)
    return project


def delete_project(db: Session, viewer: Viewer, project: Project) -> None:
    """Soft delete. Requests under the project disappear with it."""
    require_capability(viewer, "manage_projects")
    project.deleted_at = utcnow()
    db.commit()


def list_clients(db: Session, project_id: UUID) -> list[tuple[ProjectMember, User]]:
    """Joined clients of a project."""
    return (
        db.query(ProjectMember, User)
        .join(User, User.id == ProjectMember.user_id)
        .filter(ProjectMember.project_id == project_id)
        .order_by(User.name)
        .all()
    )


def is_project_client(db: Session, project_id: UUID, user_id: UUID) -> bool:
    return (
        db.query(ProjectMember.id)
        .filter(ProjectMember.project_id == project_id, ProjectMember.user_id == user_id)
        .first()
        is not None
    )
