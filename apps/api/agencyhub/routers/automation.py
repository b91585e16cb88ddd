"""Automation rule endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from agencyhub.core.deps import get_db, http_error, require_capability, require_csrf_header
from agencyhub.core.exceptions import AgencyHubError
from agencyhub.db.enums import AutomationTrigger
from agencyhub.schemas.auth import UserSession
from agencyhub.schemas.automation import (
    AutomationRuleCreate,
    AutomationRuleRead,
    AutomationRuleUpdate,
)
from agencyhub.services import automation_service

router = APIRouter(
    prefix="/automation-rules",
    tags=["automation"],
)


@router.get("", response_model=list[AutomationRuleRead])
def list_rules(
    trigger_type: AutomationTrigger | None = None,
    session: UserSession = Depends(require_capability("manage_automation")),
    db: Session = Depends(get_db),
):
    """Rules in execution order (sort_order, then name)."""
    return automation_service.list_rules(db, session.agency_id, trigger_type)


@router.post(
    "",
    response_model=AutomationRuleRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_rule(
    data: AutomationRuleCreate,
    session: UserSession = Depends(require_capability("manage_automation")),
    db: Session = Depends(get_db),
):
    try:
        return automation_service.create_rule(db, session.viewer, data.model_dump())
    except AgencyHubError as e:
        raise http_error(e)


@router.get("/{rule_id}", response_model=AutomationRuleRead)
def get_rule(
    rule_id: UUID,
    session: UserSession = Depends(require_capability("manage_automation")),
    db: Session = Depends(get_db),
):
    try:
        return automation_service.get_rule(db, session.agency_id, rule_id)
    except AgencyHubError as e:
        raise http_error(e)


@router.patch("/{rule_id}", response_model=AutomationRuleRead, dependencies=[Depends(require_csrf_header)])
def update_rule(
    rule_id: UUID,
    data: AutomationRuleUpdate,
    session: UserSession = Depends(require_capability("manage_automation")),
    db: Session = Depends(get_db),
):
    try:
        return automation_service.update_rule(
            db, session.viewer, rule_id, data.model_dump(exclude_unset=True)
        )
    except AgencyHubError as e:
        raise http_error(e)


@router.delete("/{rule_id}", status_code=204, dependencies=[Depends(require_csrf_header)])
def delete_rule(
    rule_id: UUID,
    session: UserSession = Depends(require_capability("manage_automation")),
    db: Session = Depends(get_db),
):
    try:
        automation_service.delete_rule(db, session.viewer, rule_id)
    except AgencyHubError as e:
        raise http_error(e)
