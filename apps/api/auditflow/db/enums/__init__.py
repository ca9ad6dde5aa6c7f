"""Enum definitions for application constants."""

from auditflow.db.enums.forms import (
    FormSubmissionStatus,
    SubmissionEventType,
)
from auditflow.db.enums.notifications import FormNotificationType

__all__ = [
    "FormNotificationType",
    "FormSubmissionStatus",
    "SubmissionEventType",
]
