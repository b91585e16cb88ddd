"""Automation rule service - CRUD and definition validation."""

from uuid import UUID

from sqlalchemy.orm import Session

from agencyhub.core.exceptions import NotFoundError, ValidationError
from agencyhub.core.permissions import Viewer, require_capability
from agencyhub.db.enums import AutomationAction, AutomationTrigger, RequestPriority, RequestStatus, RequestType
from agencyhub.db.models import AutomationRule
from agencyhub.db.types import utcnow
from agencyhub.services import agency_service, tag_service

CONDITION_KEYS = {"type", "priority", "status", "from_status", "to_status", "project_id"}

_CONDITION_VALUES: dict[str, set[str]] = {
    "type": {t.value for t in RequestType},
    "priority": {p.value for p in RequestPriority},
    "status": {s.value for s in RequestStatus},
    "from_status": {s.value for s in RequestStatus},
    "to_status": {s.value for s in RequestStatus},
}

UPDATABLE_FIELDS = (
    "name",
    "description",
    "trigger_type",
    "trigger_conditions",
    "action_type",
    "action_config",
    "is_active",
    "sort_order",
)


# =============================================================================
# Validation
# =============================================================================

def _as_uuid(value, field: str) -> UUID:
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a valid id")


def validate_conditions(conditions: dict | None) -> dict:
    """Normalize conditions; every value becomes a list of strings."""
    normalized: dict[str, list[str]] = {}
    for key, value in (conditions or {}).items():
        if key not in CONDITION_KEYS:
            raise ValidationError(f"Unknown condition '{key}'")
        values = value if isinstance(value, list) else [value]
        if not values:
            raise ValidationError(f"Condition '{key}' needs at least one value")
        values = [str(v) for v in values]
        allowed = _CONDITION_VALUES.get(key)
        if allowed is not None:
            bad = [v for v in values if v not in allowed]
            if bad:
                raise ValidationError(f"Invalid value for '{key}': {', '.join(bad)}")
        else:
            values = [str(_as_uuid(v, key)) for v in values]
        normalized[key] = values
    return normalized


def validate_action(
    db: Session,
    agency_id: UUID,
    action_type: AutomationAction,
    config: dict | None,
) -> dict:
    """Check the action config shape and that referenced rows belong to the agency."""
    config = dict(config or {})
    action = AutomationAction(action_type)

    if action == AutomationAction.ASSIGN_USER:
        user_id = _as_uuid(config.get("user_id"), "user_id")
        if not agency_service.is_staff_member(db, agency_id, user_id):
            raise ValidationError("Assignee must be agency staff")
        return {"user_id": str(user_id)}

    if action == AutomationAction.SET_PRIORITY:
        priority = config.get("priority")
        if priority not in _CONDITION_VALUES["priority"]:
            raise ValidationError("priority must be 'normal' or 'urgent'")
        return {"priority": priority}

    if action == AutomationAction.ADD_TAG:
        tag_id = _as_uuid(config.get("tag_id"), "tag_id")
        tag_service.get_tag(db, agency_id, tag_id)
        return {"tag_id": str(tag_id)}

    if action == AutomationAction.SEND_NOTIFICATION:
        user_ids = config.get("user_ids") or []
        if not isinstance(user_ids, list) or not user_ids:
            raise ValidationError("user_ids must list at least one user")
        result = {"user_ids": [str(_as_uuid(u, "user_ids")) for u in user_ids]}
        if config.get("message"):
            result["message"] = str(config["message"])[:500]
        return result

    # CHANGE_STATUS
    status = config.get("status")
    if status not in _CONDITION_VALUES["status"]:
        raise ValidationError("status must be a valid request status")
    return {"status": status}


# =============================================================================
# CRUD
# =============================================================================

def list_rules(
    db: Session,
    agency_id: UUID,
    trigger_type: AutomationTrigger | None = None,
    active_only: bool = False,
) -> list[AutomationRule]:
    """Live rules ordered by sort_order, then name."""
    query = db.query(AutomationRule).filter(
        AutomationRule.agency_id == agency_id,
        AutomationRule.deleted_at.is_(None),
    )
    if trigger_type:
        query = query.filter(AutomationRule.trigger_type == trigger_type.value)
    if active_only:
        query = query.filter(AutomationRule.is_active.is_(True))
    return query.order_by(AutomationRule.sort_order, AutomationRule.name, AutomationRule.id).all()


def get_rule(db: Session, agency_id: UUID, rule_id: UUID) -> AutomationRule:
    rule = (
        db.query(AutomationRule)
        .filter(
            AutomationRule.id == rule_id,
            AutomationRule.agency_id == agency_id,
            AutomationRule.deleted_at.is_(None),
        )
        .first()
    )
    if not rule:
        raise NotFoundError("Automation rule not found")
    return rule


def create_rule(db: Session, viewer: Viewer, data: dict) -> AutomationRule:
    require_capability(viewer, "manage_automation")
    trigger = AutomationTrigger(data["trigger_type"])
    action = AutomationAction(data["action_type"])
    rule = AutomationRule(
        agency_id=viewer.agency_id,
        name=data["name"].strip(),
        description=data.get("description"),
        trigger_type=trigger.value,
        trigger_conditions=validate_conditions(data.get("trigger_conditions")),
        action_type=action.value,
        action_config=validate_action(db, viewer.agency_id, action, data.get("action_config")),
        is_active=data.get("is_active", True),
        sort_order=data.get("sort_order", 0),
        created_by=viewer.user_id,
    )
    db.add(rule)
    db.commit()
    db.refresh(rule)
    return rule


def update_rule(db: Session, viewer: Viewer, rule_id: UUID, changes: dict) -> AutomationRule:
    require_capability(viewer, "manage_automation")
    rule = get_rule(db, viewer.agency_id, rule_id)
    changes = {k: v for k, v in changes.items() if k in UPDATABLE_FIELDS}

    if changes.get("trigger_type") is not None:
        rule.trigger_type = AutomationTrigger(changes["trigger_type"]).value
    if "trigger_conditions" in changes:
        rule.trigger_conditions = validate_conditions(changes["trigger_conditions"])

    if changes.get("action_type") is not None or changes.get("action_config") is not None:
        action = AutomationAction(changes.get("action_type") or rule.action_type)
        config = changes.get("action_config")
        if config is None:
            config = rule.action_config
        rule.action_type = action.value
        rule.action_config = validate_action(db, viewer.agency_id, action, config)

    for field in ("name", "description", "is_active", "sort_order"):
        if field in changes and (changes[field] is not None or field == "description"):
            setattr(rule, field, changes[field])

    db.commit()
    db.refresh(rule)
    return rule


def delete_rule(db: Session, viewer: Viewer, rule_id: UUID) -> None:
    require_capability(viewer, "manage_automation")
    rule = get_rule(db, viewer.agency_id, rule_id)
    rule.deleted_at = utcnow()
    db.commit()
