"""Schemas for form notifications and outbound email."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict

from auditflow.db.enums import FormNotificationType


class FormNotification(BaseModel):
    """Value object handed from the review engine to the dispatcher."""

    model_config = ConfigDict(frozen=True)

    type: FormNotificationType
    submission_id: UUID
    form_name: str
    section_id: str | None = None
    field_id: str | None = None
    reviewer_name: str | None = None
    review_content: str | None = None


class EmailMessage(BaseModel):
    """Already-rendered message for the mail collaborator."""

    model_config = ConfigDict(frozen=True)

    to: str
    subject: str
    text: str
    html: str
    idempotency_key: str | None = None
