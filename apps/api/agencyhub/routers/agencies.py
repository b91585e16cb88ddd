"""Agency settings and team endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from agencyhub.core.deps import (
    get_current_session,
    get_db,
    http_error,
    require_capability,
    require_csrf_header,
)
from agencyhub.core.exceptions import AgencyHubError
from agencyhub.db.enums import StorageBucket
from agencyhub.schemas.agency import AgencyRead, AgencyUpdate, MemberRead
from agencyhub.schemas.attachment import ImageUploadRead
from agencyhub.schemas.auth import UserSession
from agencyhub.schemas.rating import RatingStats
from agencyhub.services import agency_service, rating_service, storage_service

router = APIRouter()


@router.get("", response_model=AgencyRead)
def get_agency(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    try:
        return agency_service.get_agency(db, session.agency_id)
    except AgencyHubError as e:
        raise http_error(e)


@router.patch("", response_model=AgencyRead, dependencies=[Depends(require_csrf_header)])
def update_agency(
    data: AgencyUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    try:
        return agency_service.update_agency(
            db, session.viewer, name=data.name, timezone=data.timezone
        )
    except AgencyHubError as e:
        raise http_error(e)


@router.get("/members", response_model=list[MemberRead])
def list_members(
    session: UserSession = Depends(require_capability("view_activity")),
    db: Session = Depends(get_db),
):
    """Staff and owner of the agency."""
    return [
        MemberRead(
            user_id=user.id,
            name=user.name,
            email=user.email,
            role=member.role,
            joined_at=member.joined_at,
        )
        for member, user in agency_service.list_members(db, session.agency_id)
    ]


@router.delete(
    "/members/{user_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def remove_member(
    user_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    try:
        agency_service.remove_member(db, session.viewer, user_id)
    except AgencyHubError as e:
        raise http_error(e)


@router.post("/logo", response_model=ImageUploadRead, dependencies=[Depends(require_csrf_header)])
async def upload_logo(
    file: UploadFile = File(...),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    data = await file.read()
    try:
        agency = storage_service.upload_logo(
            db,
            session.viewer,
            storage_service.UploadFile(
                filename=file.filename or "logo",
                content_type=file.content_type or "",
                data=data,
            ),
        )
    except AgencyHubError as e:
        raise http_error(e)
    return ImageUploadRead(
        path=agency.logo_path,
        url=storage_service.file_url(StorageBucket.LOGOS, agency.logo_path),
    )


@router.get("/rating-stats", response_model=RatingStats)
def rating_stats(
    session: UserSession = Depends(require_capability("view_rating_stats")),
    db: Session = Depends(get_db),
):
    """Average satisfaction over all rated requests of the agency."""
    return rating_service.agency_rating_stats(db, session.agency_id)
