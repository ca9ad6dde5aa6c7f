"""SQLAlchemy ORM models."""

from auditflow.db.models.forms import (
    FormSubmission,
    SubmissionEvent,
    SubmissionReview,
    SubmissionReviewComment,
)

__all__ = [
    "FormSubmission",
    "SubmissionEvent",
    "SubmissionReview",
    "SubmissionReviewComment",
]
