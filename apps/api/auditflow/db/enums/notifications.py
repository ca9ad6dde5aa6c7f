"""Notification-related enums."""

from enum import Enum


class FormNotificationType(str, Enum):
    """Form lifecycle events that produce notifications."""

    # Client-side events (sent to admins and the assigned auditor)
    FORM_SUBMITTED = "form_submitted"
    FORM_RESUBMITTED = "form_resubmitted"

    # Auditor-side events (sent to the submission owner)
    REVIEW_STARTED = "review_started"
    FORM_FLAGGED = "form_flagged"
    FLAG_CLEARED = "flag_cleared"
    REVIEW_ADDED = "review_added"
    FORM_REVIEWED = "form_reviewed"
    FORM_APPROVED = "form_approved"
    FORM_CLEARED = "form_cleared"
    SCORE_UPDATED = "score_updated"
