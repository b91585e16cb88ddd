"""Automation engine - evaluates rules against request events.

Mutations applied by rules go through the lower-level service helpers that
never fire triggers, so an action can not cascade into further rule runs.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable
from uuid import UUID

from sqlalchemy.orm import Session

from agencyhub.core.structured_logging import build_log_context
from agencyhub.db.enums import AutomationAction, AutomationTrigger, NotificationType
from agencyhub.db.models import AutomationRule, Notification, Request
from agencyhub.db.types import utcnow
from agencyhub.services import (
    assignment_service,
    automation_service,
    notification_service,
    request_service,
    tag_service,
)

logger = logging.getLogger(__name__)


@dataclass
class RuleRun:
    """Outcome of applying one rule to one request."""
    rule_id: UUID
    action_type: str
    success: bool
    changed: bool = False
    error: str | None = None


class AutomationEngine:
    """
    Rule evaluator.

    Selects active rules for the agency and trigger, keeps those whose
    conditions hold, and applies their actions in sort_order. A failing
    action is logged and recorded on the rule; later rules still run.
    """

    def __init__(self) -> None:
        self._handlers: dict[AutomationAction, Callable[[Session, AutomationRule, Request], bool]] = {
            AutomationAction.ASSIGN_USER: self._assign_user,
            AutomationAction.SET_PRIORITY: self._set_priority,
            AutomationAction.ADD_TAG: self._add_tag,
            AutomationAction.SEND_NOTIFICATION: self._send_notification,
            AutomationAction.CHANGE_STATUS: self._change_status,
        }

    def trigger(
        self,
        db: Session,
        trigger_type: AutomationTrigger,
        request: Request,
        event_data: dict | None = None,
    ) -> list[RuleRun]:
        """Run every matching rule for an event. Returns one RuleRun per rule applied."""
        agency_id = request.project.agency_id
        request_id = request.id
        context = self._build_context(request, event_data or {})

        rules = automation_service.list_rules(db, agency_id, trigger_type, active_only=True)
        matching = [r for r in rules if self.conditions_match(r.trigger_conditions, context)]
        if not matching:
            return []

        runs = []
        for rule in matching:
            runs.append(self._run_rule(db, rule.id, agency_id, request_id))
        return runs

    # =========================================================================
    # Conditions
    # =========================================================================

    @staticmethod
    def _build_context(request: Request, event_data: dict) -> dict[str, str]:
        context = {
            "type": request.type,
            "priority": request.priority,
            "status": request.status,
            "project_id": str(request.project_id),
        }
        for key in ("from_status", "to_status"):
            if event_data.get(key) is not None:
                context[key] = str(event_data[key])
        return context

    @staticmethod
    def conditions_match(conditions: dict | None, context: dict[str, str]) -> bool:
        """
        All present conditions must hold. A list value matches any member.
        A condition on a field the event does not carry never matches.
        """
        for key, expected in (conditions or {}).items():
            actual = context.get(key)
            if actual is None:
                return False
            options = expected if isinstance(expected, list) else [expected]
            if actual not in {str(o) for o in options}:
                return False
        return True

    # =========================================================================
    # Execution
    # =========================================================================

    def _run_rule(
        self,
        db: Session,
        rule_id: UUID,
        agency_id: UUID,
        request_id: UUID,
    ) -> RuleRun:
        rule = db.get(AutomationRule, rule_id)
        request = db.get(Request, request_id)
        action = AutomationAction(rule.action_type)
        log_context = build_log_context(
            agency_id=str(agency_id), request_id=str(request_id), rule_id=str(rule_id)
        )

        try:
            changed = self._handlers[action](db, rule, request)
            rule.run_count += 1
            rule.last_run_at = utcnow()
            rule.last_error = None
            db.commit()
        except Exception as e:
            db.rollback()
            logger.exception(
                f"Automation action {action.value} failed", extra=log_context
            )
            rule = db.get(AutomationRule, rule_id)
            rule.last_error = str(e)[:500]
            rule.last_run_at = utcnow()
            db.commit()
            return RuleRun(rule_id=rule_id, action_type=action.value, success=False, error=str(e))

        logger.info(f"Automation action {action.value} applied", extra=log_context)
        return RuleRun(rule_id=rule_id, action_type=action.value, success=True, changed=changed)

    # Each handler is idempotent: re-applying it to an already-updated request
    # changes nothing and returns False.

    def _assign_user(self, db: Session, rule: AutomationRule, request: Request) -> bool:
        user_id = UUID(rule.action_config["user_id"])
        _, created = assignment_service.add_assignment(db, request, user_id, assigned_by=None)
        return created

    def _set_priority(self, db: Session, rule: AutomationRule, request: Request) -> bool:
        return request_service.set_priority(db, request, rule.action_config["priority"], actor_id=None)

    def _add_tag(self, db: Session, rule: AutomationRule, request: Request) -> bool:
        return tag_service.add_tag(db, request, UUID(rule.action_config["tag_id"]), actor_id=None)

    def _change_status(self, db: Session, rule: AutomationRule, request: Request) -> bool:
        return request_service.set_status(db, request, rule.action_config["status"], actor_id=None)

    def _send_notification(self, db: Session, rule: AutomationRule, request: Request) -> bool:
        title = f"{rule.name}: {request.title}"
        body = rule.action_config.get("message")
        agency_id = request.project.agency_id
        # A user is notified at most once per (rule, request)
        already = {
            row[0]
            for row in db.query(Notification.user_id).filter(
                Notification.request_id == request.id,
                Notification.type == NotificationType.AUTOMATION.value,
                Notification.title == title,
            )
        }
        recipients = [
            UUID(u) for u in rule.action_config.get("user_ids", []) if UUID(u) not in already
        ]
        created = notification_service.notify_users(
            db,
            agency_id=agency_id,
            user_ids=recipients,
            type=NotificationType.AUTOMATION,
            title=title,
            body=body,
            request_id=request.id,
        )
        return bool(created)

    # =========================================================================
    # Sweep
    # =========================================================================

    def run_overdue_sweep(self, db: Session, now: datetime | None = None) -> dict[UUID, list[RuleRun]]:
        """
        Fire request_overdue for every overdue, non-complete, live request.

        Returns rule runs keyed by request id (requests with no matching rule
        map to an empty list).
        """
        now = now or datetime.now(timezone.utc)
        today = now.astimezone(timezone.utc).date()
        results: dict[UUID, list[RuleRun]] = {}
        for request in request_service.list_overdue(db, today):
            results[request.id] = self.trigger(
                db,
                AutomationTrigger.REQUEST_OVERDUE,
                request,
                {"due_date": request.due_date.isoformat()},
            )
        logger.info(f"Overdue sweep processed {len(results)} requests")
        return results


engine = AutomationEngine()


def trigger(
    db: Session,
    trigger_type: AutomationTrigger,
    request: Request,
    event_data: dict | None = None,
) -> list[RuleRun]:
    return engine.trigger(db, trigger_type, request, event_data)


def run_overdue_sweep(db: Session, now: datetime | None = None) -> dict[UUID, list[RuleRun]]:
    return engine.run_overdue_sweep(db, now)
