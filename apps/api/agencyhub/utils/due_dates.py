"""Derived due-date state for requests.

The state is never stored; it is a pure function of the due date, the
request status and the current UTC calendar date.
"""

from datetime import date, datetime, timedelta, timezone

from agencyhub.core.config import settings
from agencyhub.db.enums import DueDateState, RequestStatus

# Display color band per state: (text, background)
DUE_DATE_COLORS: dict[DueDateState, tuple[str, str]] = {
    DueDateState.NONE: ("text-gray-500", "bg-transparent"),
    DueDateState.OVERDUE: ("text-red-700", "bg-red-50"),
    DueDateState.DUE_TODAY: ("text-orange-700", "bg-orange-50"),
    DueDateState.DUE_SOON: ("text-yellow-700", "bg-yellow-50"),
    DueDateState.UPCOMING: ("text-gray-700", "bg-gray-50"),
}


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def classify_due_date(
    due_date: date | None,
    status: str | RequestStatus,
    today: date | None = None,
) -> DueDateState:
    """
    Classify a due date.

    A completed request is never overdue, due today or due soon; it reports
    NONE regardless of its date.
    """
    if due_date is None:
        return DueDateState.NONE
    if RequestStatus(status) == RequestStatus.COMPLETE:
        return DueDateState.NONE

    today = today or utc_today()
    if due_date < today:
        return DueDateState.OVERDUE
    if due_date == today:
        return DueDateState.DUE_TODAY
    if due_date - today <= timedelta(days=settings.DUE_SOON_DAYS):
        return DueDateState.DUE_SOON
    return DueDateState.UPCOMING


def due_date_color(state: DueDateState) -> tuple[str, str]:
    return DUE_DATE_COLORS.get(state, DUE_DATE_COLORS[DueDateState.NONE])


def end_of_week(today: date) -> date:
    """The coming Sunday; a week ahead when today is already Sunday."""
    return today + timedelta(days=6 - today.weekday() or 7)
