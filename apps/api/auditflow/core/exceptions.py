"""Domain exceptions for the audit form engine."""


class AuditFlowError(Exception):
    """Base exception for audit form errors."""

    pass


class InvalidTransition(AuditFlowError):
    """Submission status does not allow the requested operation.

    Raised before anything is written; the submission is left untouched.
    """

    def __init__(self, operation: str, current_status: str, message: str | None = None):
        self.operation = operation
        self.current_status = current_status
        super().__init__(
            message or f"Cannot {operation.replace('_', ' ')} a submission in status '{current_status}'"
        )


class IncompleteSubmission(InvalidTransition):
    """Submission is not ready to be submitted (required answers missing)."""

    def __init__(self, current_status: str, incomplete_sections: dict[str, int]):
        self.incomplete_sections = incomplete_sections
        sections = ", ".join(sorted(incomplete_sections))
        super().__init__(
            "submit",
            current_status,
            f"Submission is incomplete; unfinished sections: {sections}",
        )


class InvalidFieldReference(AuditFlowError, ValueError):
    """Field id does not exist in the form definition."""

    def __init__(self, field_id: str | None, form_id: str):
        self.field_id = field_id
        self.form_id = form_id
        super().__init__(f"Unknown field '{field_id}' for form '{form_id}'")


class ConfigurationError(AuditFlowError):
    """A form definition is malformed."""

    pass


class NotificationDeliveryFailure(AuditFlowError):
    """The mail collaborator failed to deliver a message."""

    pass


class SubmissionNotFound(AuditFlowError):
    """Submission not found."""

    pass


class FormDefinitionNotFound(AuditFlowError):
    """Form definition not found."""

    pass
