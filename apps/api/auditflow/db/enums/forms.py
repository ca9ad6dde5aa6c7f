"""Form-related enums."""

from enum import Enum


class FormSubmissionStatus(str, Enum):
    """Lifecycle status of an audit form submission."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    FLAGGED = "flagged"
    REVIEWED = "reviewed"
    APPROVED = "approved"
    CLEARED = "cleared"


class SubmissionEventType(str, Enum):
    """Entries of the append-only submission event log."""

    CREATED = "created"
    ANSWERS_UPDATED = "answers_updated"
    ASSESSMENT_UPDATED = "assessment_updated"
    SUBMITTED = "submitted"
    RESUBMITTED = "resubmitted"
    REVIEW_STARTED = "review_started"
    FIELD_FLAGGED = "field_flagged"
    FLAG_CLEARED = "flag_cleared"
    COMMENT_ADDED = "comment_added"
    REVIEWED = "reviewed"
    APPROVED = "approved"
    CLEARED = "cleared"
    SCORE_RECORDED = "score_recorded"
    REPORT_ADDED = "report_added"
    REPORT_REMOVED = "report_removed"
