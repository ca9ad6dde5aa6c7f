"""Structured logging helpers (answer-safe)."""

from typing import Any


def build_log_context(
    *,
    submission_id: str | None = None,
    form_id: str | None = None,
    actor_id: str | None = None,
    status: str | None = None,
    field_id: str | None = None,
    operation: str | None = None,
) -> dict[str, Any]:
    """Return a log context dict.

    Only identifiers go in here. Answer values and review comments can contain
    personal data and are never logged.
    """
    context: dict[str, Any] = {}
    if submission_id:
        context["submission_id"] = submission_id
    if form_id:
        context["form_id"] = form_id
    if actor_id:
        context["actor_id"] = actor_id
    if status:
        context["status"] = status
    if field_id:
        context["field_id"] = field_id
    if operation:
        context["operation"] = operation
    return context
