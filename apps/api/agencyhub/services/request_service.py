"""Request service - CRUD, list filters and the status machine.

Status transitions are free-form; entering complete stamps the completion
fields and leaving complete clears them. Concurrent updates are last write
wins: there is no version column and no conflict detection.
"""

import logging
from datetime import date
from uuid import UUID

import nh3
from sqlalchemy import case, exists, or_
from sqlalchemy.orm import Query, Session, selectinload

from agencyhub.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from agencyhub.core.permissions import Viewer, has_capability, require_capability
from agencyhub.db.enums import (
    AutomationTrigger,
    DueDateFilter,
    NotificationType,
    RequestActivityType,
    RequestPriority,
    RequestSortField,
    RequestStatus,
    RequestType,
)
from agencyhub.db.models import Project, Request, RequestAssignment, RequestTag
from agencyhub.db.types import utcnow
from agencyhub.schemas.request import (
    AssigneeRead,
    RequestCreate,
    RequestFilters,
    RequestRead,
)
from agencyhub.services import (
    activity_service,
    notification_service,
    project_service,
    tag_service,
    template_service,
)
from agencyhub.utils.due_dates import classify_due_date, end_of_week, utc_today
from agencyhub.utils.normalization import escape_like_string
from agencyhub.utils.pagination import PaginationParams, paginate_query

logger = logging.getLogger(__name__)

# Fields a client author may still edit while the request is submitted
CLIENT_EDITABLE_FIELDS = {"title", "description", "due_date"}


def sanitize_text(text: str) -> str:
    """Strip markup from user-supplied text."""
    return nh3.clean(text, tags=set()).strip()


# =============================================================================
# Lookup
# =============================================================================

def _scoped_query(db: Session, viewer: Viewer) -> Query:
    query = db.query(Request).join(Project, Project.id == Request.project_id)
    query = project_service.scope_projects(query, viewer)
    return query.filter(Request.deleted_at.is_(None))


def get_request(db: Session, viewer: Viewer, request_id: UUID) -> Request:
    """
    Fetch a live request visible to the viewer.

    Raises:
        NotFoundError: missing, soft-deleted, or outside the viewer's scope
    """
    request = _scoped_query(db, viewer).filter(Request.id == request_id).first()
    if not request:
        raise NotFoundError("Request not found")
    return request


def agency_id_for(request: Request) -> UUID:
    return request.project.agency_id


# =============================================================================
# Create
# =============================================================================

def create_request(
    db: Session,
    viewer: Viewer,
    project_id: UUID,
    data: RequestCreate,
) -> Request:
    """
    File a request into a project.

    Emits: request_created activity, new_request notifications to agency
    staff, and the request_created automation trigger.
    """
    require_capability(viewer, "create_request")
    project = project_service.get_project(db, viewer, project_id)

    title = data.title
    description = data.description
    request_type = data.type
    priority = data.priority

    if data.template_id:
        template = template_service.get_template(db, viewer.agency_id, data.template_id)
        if not template.is_active:
            raise ValidationError("Template is not active")
        title = title or template.title_template
        description = description or template.description_template
        request_type = request_type or RequestType(template.default_type)
        priority = priority or RequestPriority(template.default_priority)

    if not title or not title.strip():
        raise ValidationError("Title is required")
    if not description or not description.strip():
        raise ValidationError("Description is required")

    request = Request(
        project_id=project.id,
        title=title.strip(),
        description=sanitize_text(description),
        type=(request_type or RequestType.BUG).value,
        priority=(priority or RequestPriority.NORMAL).value,
        status=RequestStatus.SUBMITTED.value,
        due_date=data.due_date,
        estimated_hours=data.estimated_hours,
        created_by=viewer.user_id,
    )
    db.add(request)
    db.flush()

    activity_service.log_activity(
        db,
        request.id,
        RequestActivityType.REQUEST_CREATED,
        user_id=viewer.user_id,
        details={"title": request.title, "type": request.type, "priority": request.priority},
    )
    notification_service.notify_users(
        db,
        agency_id=project.agency_id,
        user_ids=notification_service.get_staff_user_ids(db, project.agency_id),
        type=NotificationType.NEW_REQUEST,
        title=f"New request: {request.title}",
        body=f"Filed in {project.name}",
        request_id=request.id,
        exclude_user_id=viewer.user_id,
    )
    db.commit()

    _fire(db, AutomationTrigger.REQUEST_CREATED, request, {})
    db.refresh(request)
    return request


# =============================================================================
# Status machine
# =============================================================================

def set_status(
    db: Session,
    request: Request,
    status: RequestStatus | str,
    actor_id: UUID | None,
) -> bool:
    """
    Move a request to a new status. Does not commit.

    Any state may follow any state. Returns False when nothing changed.
    """
    new_status = RequestStatus(status)
    old_status = request.status
    if old_status == new_status.value:
        return False

    request.status = new_status.value
    if new_status == RequestStatus.COMPLETE:
        request.completed_at = utcnow()
        request.completed_by = actor_id
    else:
        request.completed_at = None
        request.completed_by = None

    activity_service.log_activity(
        db,
        request.id,
        RequestActivityType.STATUS_CHANGED,
        user_id=actor_id,
        details={"from": old_status, "to": new_status.value},
    )
    notification_service.notify_users(
        db,
        agency_id=agency_id_for(request),
        user_ids=[request.created_by],
        type=NotificationType.STATUS_CHANGED,
        title=f"Request status changed: {request.title}",
        body=f"{old_status} → {new_status.value}",
        request_id=request.id,
        exclude_user_id=actor_id,
    )
    return True


def set_priority(
    db: Session,
    request: Request,
    priority: RequestPriority | str,
    actor_id: UUID | None,
) -> bool:
    """Change priority. Does not commit. Returns False when unchanged."""
    new_priority = RequestPriority(priority)
    old_priority = request.priority
    if old_priority == new_priority.value:
        return False
    request.priority = new_priority.value
    activity_service.log_activity(
        db,
        request.id,
        RequestActivityType.PRIORITY_CHANGED,
        user_id=actor_id,
        details={"from": old_priority, "to": new_priority.value},
    )
    return True


# =============================================================================
# Update / Delete
# =============================================================================

def update_request(
    db: Session,
    viewer: Viewer,
    request: Request,
    changes: dict,
) -> Request:
    """
    Apply a partial update.

    Staff may change every field. A client author may edit title,
    description and due date while the request is still submitted.
    """
    if not has_capability(viewer, "edit_request"):
        is_author = request.created_by == viewer.user_id
        if (
            not is_author
            or request.status != RequestStatus.SUBMITTED.value
            or not set(changes) <= CLIENT_EDITABLE_FIELDS
        ):
            raise PermissionDeniedError("Not authorized to edit this request")
    if changes.get("status") is not None:
        require_capability(viewer, "change_status")

    old_status = request.status
    status_changed = False

    for field in ("title", "description", "type", "due_date", "estimated_hours"):
        if field not in changes:
            continue
        value = changes[field]
        if field in ("title", "description", "type") and value is None:
            raise ValidationError(f"{field} cannot be empty")
        if field == "title":
            value = value.strip()
        elif field == "description":
            value = sanitize_text(value)
        elif field == "type":
            value = RequestType(value).value
        setattr(request, field, value)

    if changes.get("priority") is not None:
        set_priority(db, request, changes["priority"], viewer.user_id)
    if changes.get("status") is not None:
        status_changed = set_status(db, request, changes["status"], viewer.user_id)

    db.commit()

    if status_changed:
        _fire(
            db,
            AutomationTrigger.REQUEST_STATUS_CHANGED,
            request,
            {"from_status": old_status, "to_status": request.status},
        )
    db.refresh(request)
    return request


def delete_request(db: Session, viewer: Viewer, request: Request) -> None:
    """Soft delete; the request vanishes from every listing."""
    require_capability(viewer, "delete_request")
    request.deleted_at = utcnow()
    activity_service.log_activity(
        db, request.id, RequestActivityType.DELETED, user_id=viewer.user_id
    )
    db.commit()


# =============================================================================
# Listing
# =============================================================================

def _apply_filters(
    query: Query,
    viewer: Viewer,
    filters: RequestFilters,
    today: date,
) -> Query:
    if filters.status:
        query = query.filter(Request.status.in_([s.value for s in filters.status]))
    if filters.type:
        query = query.filter(Request.type.in_([t.value for t in filters.type]))
    if filters.priority:
        query = query.filter(Request.priority.in_([p.value for p in filters.priority]))

    if filters.assigned:
        assigned_to = exists().where(RequestAssignment.request_id == Request.id)
        if filters.assigned == "unassigned":
            query = query.filter(~assigned_to)
        else:
            if filters.assigned == "me":
                user_id = viewer.user_id
            else:
                try:
                    user_id = UUID(filters.assigned)
                except ValueError:
                    raise ValidationError("assigned must be 'unassigned', 'me' or a user id")
            query = query.filter(
                exists().where(
                    RequestAssignment.request_id == Request.id,
                    RequestAssignment.user_id == user_id,
                )
            )

    if filters.due == DueDateFilter.OVERDUE:
        query = query.filter(
            Request.due_date < today,
            Request.status != RequestStatus.COMPLETE.value,
        )
    elif filters.due == DueDateFilter.DUE_TODAY:
        query = query.filter(Request.due_date == today)
    elif filters.due == DueDateFilter.DUE_THIS_WEEK:
        query = query.filter(Request.due_date >= today, Request.due_date <= end_of_week(today))
    elif filters.due == DueDateFilter.NO_DUE_DATE:
        query = query.filter(Request.due_date.is_(None))

    if filters.tag_ids:
        query = query.filter(
            exists().where(
                RequestTag.request_id == Request.id,
                RequestTag.tag_id.in_(filters.tag_ids),
            )
        )

    if filters.search and filters.search.strip():
        pattern = f"%{escape_like_string(filters.search.strip())}%"
        query = query.filter(
            or_(
                Request.title.ilike(pattern, escape="\\"),
                Request.description.ilike(pattern, escape="\\"),
            )
        )
    return query


def _sort_column(field: RequestSortField):
    if field == RequestSortField.PRIORITY:
        return case((Request.priority == RequestPriority.URGENT.value, 1), else_=0)
    return getattr(Request, field.value)


def list_requests(
    db: Session,
    viewer: Viewer,
    project_id: UUID,
    filters: RequestFilters | None = None,
    pagination: PaginationParams | None = None,
    today: date | None = None,
) -> tuple[list[Request], int]:
    """
    List live requests of a project with combinable filters.

    Returns:
        (items, total_count)
    """
    project = project_service.get_project(db, viewer, project_id)
    filters = filters or RequestFilters()
    pagination = pagination or PaginationParams()
    today = today or utc_today()

    query = (
        db.query(Request)
        .options(selectinload(Request.assignments), selectinload(Request.tags))
        .filter(Request.project_id == project.id, Request.deleted_at.is_(None))
    )
    query = _apply_filters(query, viewer, filters, today)

    column = _sort_column(filters.sort)
    ordering = column.desc() if filters.descending else column.asc()
    query = query.order_by(ordering.nulls_last(), Request.created_at.desc(), Request.id)

    return paginate_query(query, pagination)


def list_overdue(db: Session, today: date | None = None) -> list[Request]:
    """Every overdue, non-complete, live request across all agencies."""
    today = today or utc_today()
    return (
        db.query(Request)
        .join(Project, Project.id == Request.project_id)
        .filter(
            Request.deleted_at.is_(None),
            Project.deleted_at.is_(None),
            Request.due_date.isnot(None),
            Request.due_date < today,
            Request.status != RequestStatus.COMPLETE.value,
        )
        .order_by(Request.due_date, Request.id)
        .all()
    )


# =============================================================================
# Presentation
# =============================================================================

def to_request_read(request: Request, today: date | None = None) -> RequestRead:
    """Convert a Request to its response model, deriving the due-date state."""
    return RequestRead(
        id=request.id,
        project_id=request.project_id,
        title=request.title,
        description=request.description,
        type=request.type,
        priority=request.priority,
        status=request.status,
        due_date=request.due_date,
        due_state=classify_due_date(request.due_date, request.status, today),
        estimated_hours=request.estimated_hours,
        created_by=request.created_by,
        created_by_name=request.author.name if request.author else None,
        completed_at=request.completed_at,
        completed_by=request.completed_by,
        created_at=request.created_at,
        updated_at=request.updated_at,
        assignees=[
            AssigneeRead(user_id=a.user_id, name=a.user.name, assigned_at=a.assigned_at)
            for a in request.assignments
        ],
        tags=[tag_service.to_tag_read(t) for t in request.tags],
    )


def _fire(db: Session, trigger: AutomationTrigger, request: Request, event_data: dict) -> None:
    from agencyhub.services import automation_engine

    automation_engine.trigger(db, trigger, request, event_data)
