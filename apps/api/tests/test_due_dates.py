"""Tests for derived due-date classification."""
from datetime import date, timedelta

import pytest

from agencyhub.db.enums import DueDateState, RequestStatus
from agencyhub.utils.due_dates import (
    DUE_DATE_COLORS,
    classify_due_date,
    due_date_color,
    end_of_week,
)

TODAY = date(2026, 3, 11)  # a Wednesday


@pytest.mark.parametrize(
    "offset,expected",
    [
        (-10, DueDateState.OVERDUE),
        (-1, DueDateState.OVERDUE),
        (0, DueDateState.DUE_TODAY),
        (1, DueDateState.DUE_SOON),
        (3, DueDateState.DUE_SOON),
        (4, DueDateState.UPCOMING),
        (30, DueDateState.UPCOMING),
    ],
)
def test_classify_open_request(offset, expected):
    due = TODAY + timedelta(days=offset)
    assert classify_due_date(due, RequestStatus.IN_PROGRESS, TODAY) == expected


def test_no_due_date_is_none():
    assert classify_due_date(None, RequestStatus.SUBMITTED, TODAY) == DueDateState.NONE


@pytest.mark.parametrize("offset", [-365, -1, 0, 2, 10])
def test_complete_request_is_never_overdue(offset):
    due = TODAY + timedelta(days=offset)
    state = classify_due_date(due, RequestStatus.COMPLETE.value, TODAY)
    assert state == DueDateState.NONE


def test_every_state_has_a_color():
    for state in DueDateState:
        assert due_date_color(state) == DUE_DATE_COLORS[state]


def test_end_of_week_is_coming_sunday():
    assert end_of_week(TODAY) == date(2026, 3, 15)
    # Monday
    assert end_of_week(date(2026, 3, 9)) == date(2026, 3, 15)
    # Sunday looks a full week ahead
    assert end_of_week(date(2026, 3, 15)) == date(2026, 3, 22)
