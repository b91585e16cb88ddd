"""Pydantic schemas for automation rules."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from agencyhub.db.enums import AutomationAction, AutomationTrigger


class AutomationRuleCreate(BaseModel):
    """
    Rule definition.

    trigger_conditions keys: type, priority, status, from_status, to_status,
    project_id. A list value matches any of its members.

    action_config by action_type:
    - assign_user: {"user_id": "<uuid>"}
    - set_priority: {"priority": "normal" | "urgent"}
    - add_tag: {"tag_id": "<uuid>"}
    - send_notification: {"user_ids": ["<uuid>", ...], "message": "..."}
    - change_status: {"status": "submitted" | "in_progress" | "complete"}
    """
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=2000)
    trigger_type: AutomationTrigger
    trigger_conditions: dict = Field(default_factory=dict)
    action_type: AutomationAction
    action_config: dict = Field(default_factory=dict)
    is_active: bool = True
    sort_order: int = 0


class AutomationRuleUpdate(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=2000)
    trigger_type: AutomationTrigger | None = None
    trigger_conditions: dict | None = None
    action_type: AutomationAction | None = None
    action_config: dict | None = None
    is_active: bool | None = None
    sort_order: int | None = None


class AutomationRuleRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None
    trigger_type: AutomationTrigger
    trigger_conditions: dict
    action_type: AutomationAction
    action_config: dict
    is_active: bool
    sort_order: int
    run_count: int
    last_run_at: datetime | None
    last_error: str | None
    created_at: datetime
    updated_at: datetime
