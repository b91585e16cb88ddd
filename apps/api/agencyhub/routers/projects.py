"""Project endpoints, including the request list and request intake of a project."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from agencyhub.core.deps import get_current_session, get_db, http_error, require_csrf_header
from agencyhub.core.exceptions import AgencyHubError
from agencyhub.db.enums import (
    DueDateFilter,
    ProjectStatus,
    RequestPriority,
    RequestSortField,
    RequestStatus,
    RequestType,
)
from agencyhub.schemas.auth import UserSession
from agencyhub.schemas.project import ProjectClientRead, ProjectCreate, ProjectRead, ProjectUpdate
from agencyhub.schemas.request import (
    RequestCreate,
    RequestFilters,
    RequestListResponse,
    RequestRead,
)
from agencyhub.services import project_service, request_service
from agencyhub.utils.due_dates import utc_today
from agencyhub.utils.pagination import PaginationParams, get_pagination, page_count

router = APIRouter()


# =============================================================================
# Projects
# =============================================================================

@router.get("", response_model=list[ProjectRead])
def list_projects(
    status: ProjectStatus | None = None,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Projects visible to the caller: all for staff, joined ones for clients."""
    return project_service.list_projects(db, session.viewer, status)


@router.post(
    "",
    response_model=ProjectRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_project(
    data: ProjectCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    try:
        return project_service.create_project(db, session.viewer, data.name, data.description)
    except AgencyHubError as e:
        raise http_error(e)


@router.get("/{project_id}", response_model=ProjectRead)
def get_project(
    project_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    try:
        return project_service.get_project(db, session.viewer, project_id)
    except AgencyHubError as e:
        raise http_error(e)


@router.patch("/{project_id}", response_model=ProjectRead, dependencies=[Depends(require_csrf_header)])
def update_project(
    project_id: UUID,
    data: ProjectUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    try:
        project = project_service.get_project(db, session.viewer, project_id)
        return project_service.update_project(
            db,
            session.viewer,
            project,
            name=data.name,
            description=data.description,
            status=data.status,
        )
    except AgencyHubError as e:
        raise http_error(e)


@router.delete("/{project_id}", status_code=204, dependencies=[Depends(require_csrf_header)])
def delete_project(
    project_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    try:
        project = project_service.get_project(db, session.viewer, project_id)
        project_service.delete_project(db, session.viewer, project)
    except AgencyHubError as e:
        raise http_error(e)


@router.get("/{project_id}/clients", response_model=list[ProjectClientRead])
def list_clients(
    project_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    try:
        project = project_service.get_project(db, session.viewer, project_id)
    except AgencyHubError as e:
        raise http_error(e)
    return [
        ProjectClientRead(
            user_id=user.id,
            name=user.name,
            email=user.email,
            joined_at=member.joined_at,
        )
        for member, user in project_service.list_clients(db, project.id)
    ]


# =============================================================================
# Requests of a project
# =============================================================================

@router.get("/{project_id}/requests", response_model=RequestListResponse)
def list_requests(
    project_id: UUID,
    status: list[RequestStatus] | None = Query(None),
    type: list[RequestType] | None = Query(None),
    priority: list[RequestPriority] | None = Query(None),
    assigned: str | None = Query(None, description="'unassigned', 'me', or a user id"),
    due: DueDateFilter | None = None,
    tag_ids: list[UUID] | None = Query(None),
    search: str | None = Query(None, max_length=200),
    sort: RequestSortField = RequestSortField.CREATED_AT,
    order: str = Query("desc", pattern="^(asc|desc)$"),
    pagination: PaginationParams = Depends(get_pagination),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """
    List requests with combinable filters.

    Every given filter must hold. Within status, type, priority and tag_ids,
    any listed value matches.
    """
    filters = RequestFilters(
        status=status,
        type=type,
        priority=priority,
        assigned=assigned,
        due=due,
        tag_ids=tag_ids,
        search=search,
        sort=sort,
        descending=order == "desc",
    )
    today = utc_today()
    try:
        items, total = request_service.list_requests(
            db, session.viewer, project_id, filters, pagination, today
        )
    except AgencyHubError as e:
        raise http_error(e)

    return RequestListResponse(
        items=[request_service.to_request_read(r, today) for r in items],
        total=total,
        page=pagination.page,
        per_page=pagination.per_page,
        pages=page_count(total, pagination.per_page),
    )


@router.post(
    "/{project_id}/requests",
    response_model=RequestRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_request(
    project_id: UUID,
    data: RequestCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    try:
        request = request_service.create_request(db, session.viewer, project_id, data)
    except AgencyHubError as e:
        raise http_error(e)
    return request_service.to_request_read(request)
