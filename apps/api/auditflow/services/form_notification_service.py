"""Form lifecycle notifications.

The review engine calls ``notify`` after a transition has been committed.
Delivery is best effort: nothing raised by rendering or by the mail
collaborator reaches the caller, so a mail outage never undoes a review
action.
"""

from __future__ import annotations

import html
import logging
import uuid

from auditflow.core.async_utils import run_async
from auditflow.core.config import settings
from auditflow.core.exceptions import NotificationDeliveryFailure
from auditflow.core.structured_logging import build_log_context
from auditflow.db.enums import FormNotificationType
from auditflow.db.models import FormSubmission
from auditflow.schemas.notifications import EmailMessage, FormNotification
from auditflow.services.email_sender import EmailSender, get_email_sender

logger = logging.getLogger(__name__)

# Client-side events go to the audit team; everything else goes to the client.
AUDITOR_BOUND_TYPES: frozenset[FormNotificationType] = frozenset(
    {FormNotificationType.FORM_SUBMITTED, FormNotificationType.FORM_RESUBMITTED}
)

# type -> (subject prefix, headline)
_TEMPLATES: dict[FormNotificationType, tuple[str, str]] = {
    FormNotificationType.FORM_SUBMITTED: ("New Form Submission", "{owner} submitted {form}."),
    FormNotificationType.FORM_RESUBMITTED: ("Form Resubmitted", "{owner} resubmitted {form} after corrections."),
    FormNotificationType.REVIEW_STARTED: ("Review Started", "{reviewer} started reviewing your {form} submission."),
    FormNotificationType.FORM_FLAGGED: (
        "Action Required: Form Flagged for Review",
        "{reviewer} flagged items in your {form} submission.",
    ),
    FormNotificationType.FLAG_CLEARED: ("Flag Cleared", "{reviewer} cleared a flag on your {form} submission."),
    FormNotificationType.REVIEW_ADDED: ("New Review Comment", "{reviewer} added a comment on your {form} submission."),
    FormNotificationType.FORM_REVIEWED: ("Form Reviewed", "Your {form} submission has been reviewed by {reviewer}."),
    FormNotificationType.FORM_APPROVED: ("Form Approved", "Your {form} submission has been approved by {reviewer}."),
    FormNotificationType.FORM_CLEARED: ("Form Cleared", "Your {form} submission has been cleared by {reviewer}."),
    FormNotificationType.SCORE_UPDATED: ("Assessment Score Updated", "{reviewer} updated a score on your {form} assessment."),
}


def submission_link(submission_id: uuid.UUID) -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}/forms/submissions/{submission_id}"


def resolve_recipients(
    notification_type: FormNotificationType, submission: FormSubmission
) -> list[str]:
    if notification_type in AUDITOR_BOUND_TYPES:
        candidates = [*settings.admin_notification_emails_list, submission.assigned_auditor_email]
    else:
        candidates = [submission.owner_email]

    recipients: list[str] = []
    for email in candidates:
        normalized = (email or "").strip().lower()
        if normalized and normalized not in recipients:
            recipients.append(normalized)
    return recipients


def render(notification: FormNotification, submission: FormSubmission) -> tuple[str, str, str]:
    """Return (subject, text, html). User-supplied values are escaped in the HTML part."""
    subject_prefix, headline = _TEMPLATES[notification.type]
    values = {
        "owner": submission.owner_name or "A client",
        "form": notification.form_name,
        "reviewer": notification.reviewer_name or "An auditor",
    }
    subject = f"{subject_prefix}: {notification.form_name}"
    link = submission_link(notification.submission_id)

    text_lines = [headline.format(**values)]
    html_parts = [f"<p>{headline.format(**{k: html.escape(v) for k, v in values.items()})}</p>"]
    if notification.field_id:
        text_lines.append(f"Field: {notification.field_id}")
        html_parts.append(f"<p><strong>Field:</strong> {html.escape(notification.field_id)}</p>")
    if notification.section_id:
        text_lines.append(f"Section: {notification.section_id}")
        html_parts.append(f"<p><strong>Section:</strong> {html.escape(notification.section_id)}</p>")
    if notification.review_content:
        text_lines.extend(["", notification.review_content])
        escaped = html.escape(notification.review_content).replace("\n", "<br>")
        html_parts.append(f"<blockquote>{escaped}</blockquote>")
    text_lines.extend(["", f"View submission: {link}"])
    html_parts.append(f'<p><a href="{html.escape(link, quote=True)}">View submission</a></p>')

    return subject, "\n".join(text_lines), "\n".join(html_parts)


def _deliver(sender: EmailSender, message: EmailMessage, log_context: dict) -> bool:
    try:
        run_async(
            lambda: sender.send(message),
            timeout=settings.NOTIFICATION_SEND_TIMEOUT_SECONDS,
        )
    except NotificationDeliveryFailure as exc:
        logger.warning("Form notification not delivered: %s", exc, extra=log_context)
        return False
    except Exception:
        logger.exception("Form notification sender failed", extra=log_context)
        return False
    return True


def notify(
    notification_type: FormNotificationType,
    submission: FormSubmission,
    form_name: str,
    *,
    section_id: str | None = None,
    field_id: str | None = None,
    reviewer_name: str | None = None,
    review_content: str | None = None,
    sender: EmailSender | None = None,
) -> list[str]:
    """Notify everyone interested in a lifecycle event. Never raises.

    Returns the recipients the message was delivered to.
    """
    if not settings.NOTIFICATIONS_ENABLED:
        return []

    log_context = build_log_context(
        submission_id=str(submission.id),
        form_id=submission.form_id,
        status=submission.status,
        field_id=field_id,
        operation=f"notify:{notification_type.value}",
    )
    delivered: list[str] = []
    try:
        notification = FormNotification(
            type=notification_type,
            submission_id=submission.id,
            form_name=form_name,
            section_id=section_id,
            field_id=field_id,
            reviewer_name=reviewer_name,
            review_content=review_content,
        )
        recipients = resolve_recipients(notification_type, submission)
        if not recipients:
            logger.info("Form notification has no recipients", extra=log_context)
            return delivered

        subject, text, html_body = render(notification, submission)
        sender = sender or get_email_sender()
        batch = uuid.uuid4().hex
        for recipient in recipients:
            message = EmailMessage(
                to=recipient,
                subject=subject,
                text=text,
                html=html_body,
                idempotency_key=f"form-{notification_type.value}/{submission.id}/{batch}/{recipient}",
            )
            if _deliver(sender, message, log_context):
                delivered.append(recipient)
    except Exception:
        logger.exception("Form notification dispatch failed", extra=log_context)
    return delivered
