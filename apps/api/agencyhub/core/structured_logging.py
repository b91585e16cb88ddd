"""Structured logging helpers (PII-safe)."""

from typing import Any


def build_log_context(
    *,
    user_id: str | None = None,
    agency_id: str | None = None,
    request_id: str | None = None,
    rule_id: str | None = None,
    route: str | None = None,
    method: str | None = None,
) -> dict[str, Any]:
    """Return a PII-safe log context dict (identifiers only, never content)."""
    context: dict[str, Any] = {}
    if user_id:
        context["user_id"] = user_id
    if agency_id:
        context["agency_id"] = agency_id
    if request_id:
        context["request_id"] = request_id
    if rule_id:
        context["rule_id"] = rule_id
    if route:
        context["route"] = route
    if method:
        context["method"] = method
    return context
