"""Authentication endpoints - signup, password login, logout, session info, account settings."""

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile
from sqlalchemy.orm import Session

from agencyhub.core.deps import (
    COOKIE_NAME,
    get_current_session,
    get_db,
    http_error,
    require_csrf_header,
    set_session_cookie,
)
from agencyhub.core.exceptions import AgencyHubError
from agencyhub.core.security import create_session_token
from agencyhub.db.enums import StorageBucket, ViewerKind
from agencyhub.db.models import Agency, User
from agencyhub.schemas.attachment import ImageUploadRead
from agencyhub.schemas.auth import (
    LoginRequest,
    MeResponse,
    PasswordChange,
    ProfileUpdate,
    SignupRequest,
    UserSession,
)
from agencyhub.services import agency_service, auth_service, storage_service

router = APIRouter()


@router.post("/signup", response_model=MeResponse, status_code=201)
def signup(data: SignupRequest, response: Response, db: Session = Depends(get_db)):
    """Create an agency with its owner account and start a session."""
    try:
        agency, user = agency_service.create_agency_with_owner(
            db, data.agency_name, data.name, data.email, data.password
        )
    except AgencyHubError as e:
        raise http_error(e)

    token = create_session_token(user.id, agency.id, ViewerKind.OWNER.value, user.token_version)
    set_session_cookie(response, token)
    return _me(user, agency, ViewerKind.OWNER)


@router.post("/login", response_model=MeResponse)
def login(data: LoginRequest, response: Response, db: Session = Depends(get_db)):
    try:
        user, agency_id, kind = auth_service.authenticate(
            db, data.email, data.password, data.agency_id
        )
    except AgencyHubError as e:
        # Same status for every credential failure
        if e.status_code == 422:
            raise HTTPException(status_code=401, detail=e.message)
        raise http_error(e)

    token = create_session_token(user.id, agency_id, kind.value, user.token_version)
    set_session_cookie(response, token)
    return _me(user, db.get(Agency, agency_id), kind)


@router.post("/logout", dependencies=[Depends(require_csrf_header)])
def logout(response: Response):
    response.delete_cookie(COOKIE_NAME, path="/")
    return {"status": "logged_out"}


@router.get("/me", response_model=MeResponse)
def me(
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    user = db.get(User, session.user_id)
    agency = db.get(Agency, session.agency_id)
    return _me(user, agency, session.viewer_kind)


@router.patch("/me", response_model=MeResponse, dependencies=[Depends(require_csrf_header)])
def update_me(
    data: ProfileUpdate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    user = db.get(User, session.user_id)
    try:
        user = auth_service.update_profile(db, user, data.name)
    except AgencyHubError as e:
        raise http_error(e)
    return _me(user, db.get(Agency, session.agency_id), session.viewer_kind)


@router.post("/password", dependencies=[Depends(require_csrf_header)])
def change_password(
    data: PasswordChange,
    response: Response,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Change the password. Other sessions are revoked; this one gets a fresh cookie."""
    user = db.get(User, session.user_id)
    try:
        user = auth_service.change_password(
            db,
            user,
            data.current_password,
            data.new_password,
            data.password_confirmation,
        )
    except AgencyHubError as e:
        raise http_error(e)

    token = create_session_token(
        user.id, session.agency_id, session.viewer_kind.value, user.token_version
    )
    set_session_cookie(response, token)
    return {"status": "password_changed"}


@router.post(
    "/me/avatar",
    response_model=ImageUploadRead,
    dependencies=[Depends(require_csrf_header)],
)
async def upload_avatar(
    file: UploadFile = File(...),
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    data = await file.read()
    try:
        user = storage_service.upload_avatar(
            db,
            session.user_id,
            storage_service.UploadFile(
                filename=file.filename or "avatar",
                content_type=file.content_type or "",
                data=data,
            ),
        )
    except AgencyHubError as e:
        raise http_error(e)
    return ImageUploadRead(
        path=user.avatar_path,
        url=storage_service.file_url(StorageBucket.AVATARS, user.avatar_path),
    )


def _me(user: User, agency: Agency, kind: ViewerKind) -> MeResponse:
    return MeResponse(
        user_id=user.id,
        email=user.email,
        name=user.name,
        avatar_path=user.avatar_path,
        agency_id=agency.id,
        agency_name=agency.name,
        agency_slug=agency.slug,
        agency_tier=agency.tier,
        viewer=kind,
    )
