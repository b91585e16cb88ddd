"""Invitation endpoints.

Staff manage pending invitations; the token lookup and acceptance
endpoints are public.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from agencyhub.core.deps import (
    get_current_session,
    get_db,
    http_error,
    require_capability,
    require_csrf_header,
    set_session_cookie,
)
from agencyhub.core.exceptions import AgencyHubError
from agencyhub.core.security import create_session_token
from agencyhub.schemas.auth import MeResponse, UserSession
from agencyhub.schemas.invite import (
    ClientInviteCreate,
    InviteAccept,
    InviteCreated,
    InviteDetails,
    InviteRead,
    StaffInviteCreate,
)
from agencyhub.services import agency_service, invite_service

router = APIRouter(prefix="/invitations", tags=["invitations"])


# =============================================================================
# Staff-side management
# =============================================================================

@router.get("", response_model=list[InviteRead])
def list_invitations(
    session: UserSession = Depends(require_capability("invite_clients")),
    db: Session = Depends(get_db),
):
    try:
        invitations = invite_service.list_pending_invitations(db, session.viewer)
    except AgencyHubError as e:
        raise http_error(e)
    return [InviteRead(**invite_service.to_invite_read(i)) for i in invitations]


@router.post(
    "/staff",
    response_model=InviteCreated,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def invite_staff(
    data: StaffInviteCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    """Owner invites a staff member. The link is returned once."""
    try:
        invitation, token = invite_service.create_staff_invitation(db, session.viewer, data.email)
    except AgencyHubError as e:
        raise http_error(e)
    return InviteCreated(
        **invite_service.to_invite_read(invitation),
        invitation_url=invite_service.invitation_url(token),
    )


@router.post(
    "/client",
    response_model=InviteCreated,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def invite_client(
    data: ClientInviteCreate,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    try:
        invitation, token = invite_service.create_client_invitation(
            db, session.viewer, data.project_id, data.email
        )
    except AgencyHubError as e:
        raise http_error(e)
    return InviteCreated(
        **invite_service.to_invite_read(invitation),
        invitation_url=invite_service.invitation_url(token),
    )


@router.delete("/{invitation_id}", status_code=204, dependencies=[Depends(require_csrf_header)])
def revoke_invitation(
    invitation_id: UUID,
    session: UserSession = Depends(get_current_session),
    db: Session = Depends(get_db),
):
    try:
        invite_service.revoke_invitation(db, session.viewer, invitation_id)
    except AgencyHubError as e:
        raise http_error(e)


# =============================================================================
# Public (token holders)
# =============================================================================

@router.get("/token/{token}", response_model=InviteDetails)
def get_invitation(token: str, db: Session = Depends(get_db)):
    """
    Details for the acceptance page.

    404 for unknown tokens, 410 once expired, 409 once accepted.
    """
    try:
        return InviteDetails(**invite_service.get_invitation_details(db, token))
    except AgencyHubError as e:
        raise http_error(e)


@router.post("/token/{token}/accept", response_model=MeResponse)
def accept_invitation(
    token: str,
    data: InviteAccept,
    response: Response,
    db: Session = Depends(get_db),
):
    """Accept an invitation and sign in to the inviting agency."""
    try:
        user, agency_id, kind = invite_service.accept_invitation(
            db, token, data.name, data.password, data.password_confirmation
        )
        agency = agency_service.get_agency(db, agency_id)
    except AgencyHubError as e:
        raise http_error(e)

    set_session_cookie(
        response,
        create_session_token(user.id, agency_id, kind.value, user.token_version),
    )
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
