"""Tests for structured logging helpers."""

from agencyhub.core.structured_logging import build_log_context


def test_build_log_context_includes_only_provided_fields():
    context = build_log_context(
        user_id="user-1",
        agency_id="agency-1",
        request_id="req-1",
        rule_id="rule-1",
    )

    assert context == {
        "user_id": "user-1",
        "agency_id": "agency-1",
        "request_id": "req-1",
        "rule_id": "rule-1",
    }


def test_build_log_context_ignores_empty_fields():
    assert build_log_context(user_id="", agency_id=None, request_id="req-1") == {"request_id": "req-1"}
