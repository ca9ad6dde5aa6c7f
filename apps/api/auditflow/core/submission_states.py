"""Submission lifecycle rules: which statuses each operation may start from."""

from auditflow.db.enums import FormSubmissionStatus

S = FormSubmissionStatus

# operation -> statuses it is legal from
ALLOWED_FROM: dict[str, frozenset[FormSubmissionStatus]] = {
    "submit": frozenset({S.DRAFT, S.FLAGGED}),
    "begin_review": frozenset({S.SUBMITTED}),
    "flag_field": frozenset({S.UNDER_REVIEW, S.FLAGGED}),
    "clear_flag": frozenset({S.UNDER_REVIEW, S.FLAGGED}),
    "mark_reviewed": frozenset({S.UNDER_REVIEW}),
    "approve": frozenset({S.REVIEWED}),
    "clear": frozenset({S.APPROVED}),
    "record_score": frozenset({S.UNDER_REVIEW, S.FLAGGED, S.REVIEWED}),
    "manage_reports": frozenset({S.UNDER_REVIEW, S.FLAGGED, S.REVIEWED, S.APPROVED}),
    "edit_answers": frozenset({S.DRAFT, S.FLAGGED}),
    "edit_assessment": frozenset({S.UNDER_REVIEW, S.FLAGGED}),
}

# Comments can be attached at any point after the client has submitted once.
COMMENTABLE_STATUSES: frozenset[FormSubmissionStatus] = frozenset(
    {S.SUBMITTED, S.UNDER_REVIEW, S.FLAGGED, S.REVIEWED, S.APPROVED, S.CLEARED}
)

TERMINAL_STATUSES: frozenset[FormSubmissionStatus] = frozenset({S.CLEARED})


def is_allowed(operation: str, status: str | FormSubmissionStatus) -> bool:
    allowed = ALLOWED_FROM.get(operation)
    if allowed is None:
        raise KeyError(f"Unknown lifecycle operation: {operation}")
    try:
        current = FormSubmissionStatus(status)
    except ValueError:
        return False
    return current in allowed
