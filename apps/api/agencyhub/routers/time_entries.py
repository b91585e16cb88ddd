"""Time tracking endpoints.

Mixed paths: /requests/{id}/time-entries and /time-entries/{id}.
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from agencyhub.core.deps import get_db, http_error, require_capability, require_csrf_header
from agencyhub.core.exceptions import AgencyHubError
from agencyhub.schemas.auth import UserSession
from agencyhub.schemas.time_entry import TimeEntryCreate, TimeEntryRead, TimeEntryUpdate, TimeSummary
from agencyhub.services import request_service, time_entry_service
from agencyhub.utils.duration import format_duration

router = APIRouter()


@router.get("/requests/{request_id}/time-entries", response_model=TimeSummary)
def list_time_entries(
    request_id: UUID,
    session: UserSession = Depends(require_capability("view_time")),
    db: Session = Depends(get_db),
):
    try:
        request = request_service.get_request(db, session.viewer, request_id)
    except AgencyHubError as e:
        raise http_error(e)
    total = time_entry_service.total_minutes(db, request.id)
    return TimeSummary(
        total_minutes=total,
        total_display=format_duration(total),
        entries=[
            time_entry_service.to_time_entry_read(e)
            for e in time_entry_service.list_time_entries(db, request.id)
        ],
    )


@router.post(
    "/requests/{request_id}/time-entries",
    response_model=TimeEntryRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_time_entry(
    request_id: UUID,
    data: TimeEntryCreate,
    session: UserSession = Depends(require_capability("log_time")),
    db: Session = Depends(get_db),
):
    """Log time. duration accepts "2h", "30m", "1h30m" or decimal hours like "1.5"."""
    try:
        request = request_service.get_request(db, session.viewer, request_id)
        minutes = time_entry_service.resolve_minutes(data.duration_minutes, data.duration)
        entry = time_entry_service.create_time_entry(
            db,
            session.viewer,
            request,
            minutes,
            description=data.description,
            tracked_date=data.tracked_date,
        )
    except AgencyHubError as e:
        raise http_error(e)
    return time_entry_service.to_time_entry_read(entry)


@router.patch(
    "/time-entries/{entry_id}",
    response_model=TimeEntryRead,
    dependencies=[Depends(require_csrf_header)],
)
def update_time_entry(
    entry_id: UUID,
    data: TimeEntryUpdate,
    session: UserSession = Depends(require_capability("log_time")),
    db: Session = Depends(get_db),
):
    try:
        entry = time_entry_service.get_time_entry(db, session.viewer, entry_id)
        minutes = None
        if data.duration_minutes is not None or data.duration:
            minutes = time_entry_service.resolve_minutes(data.duration_minutes, data.duration)
        entry = time_entry_service.update_time_entry(
            db,
            session.viewer,
            entry,
            duration_minutes=minutes,
            description=data.description,
            tracked_date=data.tracked_date,
        )
    except AgencyHubError as e:
        raise http_error(e)
    return time_entry_service.to_time_entry_read(entry)


@router.delete("/time-entries/{entry_id}", status_code=204, dependencies=[Depends(require_csrf_header)])
def delete_time_entry(
    entry_id: UUID,
    session: UserSession = Depends(require_capability("log_time")),
    db: Session = Depends(get_db),
):
    try:
        entry = time_entry_service.get_time_entry(db, session.viewer, entry_id)
        time_entry_service.delete_time_entry(db, session.viewer, entry)
    except AgencyHubError as e:
        raise http_error(e)
