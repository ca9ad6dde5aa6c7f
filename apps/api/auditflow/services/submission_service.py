"""Submission store: persistence, answer writes and the event log."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from auditflow.core.config import settings
from auditflow.core.exceptions import (
    InvalidFieldReference,
    InvalidTransition,
    SubmissionNotFound,
)
from auditflow.core.structured_logging import build_log_context
from auditflow.core.submission_states import is_allowed
from auditflow.db.enums import FormSubmissionStatus, SubmissionEventType
from auditflow.db.models import (
    FormSubmission,
    SubmissionEvent,
    SubmissionReview,
    SubmissionReviewComment,
)
from auditflow.schemas.auth import Actor
from auditflow.schemas.forms import FormDefinition, SubmissionCreate
from auditflow.services import form_definition_service
from auditflow.services.answer_keys import assessment_key

logger = logging.getLogger(__name__)


# =============================================================================
# Lookups
# =============================================================================


def get_submission(db: Session, submission_id: uuid.UUID) -> FormSubmission | None:
    return db.get(FormSubmission, submission_id)


def require_submission(db: Session, submission_id: uuid.UUID) -> FormSubmission:
    submission = get_submission(db, submission_id)
    if not submission:
        raise SubmissionNotFound(f"Submission {submission_id} not found")
    return submission


def list_submissions(
    db: Session,
    *,
    owner_id: str | None = None,
    form_id: str | None = None,
    status: str | None = None,
    assigned_auditor_id: str | None = None,
) -> list[FormSubmission]:
    query = db.query(FormSubmission)
    if owner_id:
        query = query.filter(FormSubmission.owner_id == owner_id)
    if form_id:
        query = query.filter(FormSubmission.form_id == form_id)
    if status:
        query = query.filter(FormSubmission.status == status)
    if assigned_auditor_id:
        query = query.filter(FormSubmission.assigned_auditor_id == assigned_auditor_id)
    return query.order_by(FormSubmission.updated_at.desc()).all()


def definition_for(submission: FormSubmission) -> FormDefinition:
    return form_definition_service.get_form_definition(submission.form_id)


# =============================================================================
# Writes
# =============================================================================


def save_submission(db: Session, submission: FormSubmission) -> FormSubmission:
    """Insert or update a submission row.

    Updates are version-checked; a concurrent writer raises StaleDataError.
    """
    db.add(submission)
    db.commit()
    db.refresh(submission)
    return submission


def append_event(
    db: Session,
    submission: FormSubmission,
    event_type: SubmissionEventType,
    *,
    actor: Actor | None = None,
    section_id: str | None = None,
    field_id: str | None = None,
    payload: dict | None = None,
) -> SubmissionEvent:
    """Add a lifecycle event. Committed together with the caller's changes."""
    event = SubmissionEvent(
        submission_id=submission.id,
        event_type=event_type.value,
        actor_id=actor.user_id if actor else None,
        actor_name=actor.name if actor else None,
        section_id=section_id,
        field_id=field_id,
        payload=payload,
    )
    db.add(event)
    return event


def append_review_comment(
    db: Session, review: SubmissionReview, body: str
) -> SubmissionReviewComment:
    """Append one comment to a thread. Existing comments are never rewritten."""
    comment = SubmissionReviewComment(review=review, body=body)
    db.add(comment)
    return comment


def create_submission(
    db: Session,
    data: SubmissionCreate,
    actor: Actor | None = None,
) -> FormSubmission:
    definition = form_definition_service.get_form_definition(data.form_id)
    submission = FormSubmission(
        form_id=definition.id,
        form_version=definition.version,
        owner_id=data.owner_id,
        owner_name=data.owner_name,
        owner_email=data.owner_email,
        assigned_auditor_id=data.assigned_auditor_id,
        assigned_auditor_name=data.assigned_auditor_name,
        assigned_auditor_email=data.assigned_auditor_email,
        status=FormSubmissionStatus.DRAFT.value,
        answers_json={},
        flagged_fields=[],
    )
    db.add(submission)
    db.flush()
    append_event(db, submission, SubmissionEventType.CREATED, actor=actor)
    db.commit()
    db.refresh(submission)

    logger.info(
        "Submission created",
        extra=build_log_context(
            submission_id=str(submission.id),
            form_id=submission.form_id,
            actor_id=actor.user_id if actor else None,
            operation="create",
        ),
    )
    return submission


def _check_keys(definition: FormDefinition, keys: list[str]) -> None:
    known = form_definition_service.field_keys(definition)
    for key in keys:
        if key not in known:
            raise InvalidFieldReference(key, definition.id)


def _assessor_keys(definition: FormDefinition) -> frozenset[str]:
    return frozenset(
        assessment_key(question)
        for section in definition.form_sections
        for question in section.questions
        if question.type == "assessmentPair"
    )


def _write_values(
    db: Session,
    submission_id: uuid.UUID,
    values: dict[str, object],
    *,
    operation: str,
    event_type: SubmissionEventType,
    actor: Actor | None,
) -> FormSubmission:
    """Apply field-level writes with optimistic retry.

    Only the given keys are touched. When another writer commits first, the
    row is reloaded and these keys are re-applied on top, so concurrent
    writers to different fields both keep their values.
    """
    max_attempts = max(1, settings.ANSWER_WRITE_MAX_ATTEMPTS)
    status = None
    for attempt in range(1, max_attempts + 1):
        submission = require_submission(db, submission_id)
        status = submission.status
        if not is_allowed(operation, status):
            raise InvalidTransition(operation, status)

        answers = dict(submission.answers_json or {})
        for key, value in values.items():
            if value is None:
                answers.pop(key, None)
            else:
                answers[key] = value
        submission.answers_json = answers
        append_event(
            db,
            submission,
            event_type,
            actor=actor,
            payload={"keys": sorted(values)},
        )

        try:
            db.commit()
        except StaleDataError:
            db.rollback()
            logger.info(
                "Concurrent answer write, retrying (attempt %d/%d)",
                attempt,
                max_attempts,
                extra=build_log_context(submission_id=str(submission_id), operation=operation),
            )
            continue

        db.refresh(submission)
        return submission

    raise InvalidTransition(
        operation,
        status or "unknown",
        f"Could not save answers after {max_attempts} concurrent updates",
    )


def set_field_values(
    db: Session,
    submission_id: uuid.UUID,
    values: dict[str, object],
    actor: Actor | None = None,
) -> FormSubmission:
    """Write respondent answers. A None value removes the key.

    Allowed while the submission is a draft or has been flagged back to the
    client. Auditor assessment keys are rejected.
    """
    submission = require_submission(db, submission_id)
    definition = definition_for(submission)
    _check_keys(definition, list(values))
    assessor_only = sorted(set(values) & _assessor_keys(definition))
    if assessor_only:
        raise ValueError(f"Fields are recorded by the auditor: {', '.join(assessor_only)}")

    return _write_values(
        db,
        submission_id,
        values,
        operation="edit_answers",
        event_type=SubmissionEventType.ANSWERS_UPDATED,
        actor=actor,
    )


def set_assessor_values(
    db: Session,
    submission_id: uuid.UUID,
    values: dict[str, object],
    actor: Actor | None = None,
) -> FormSubmission:
    """Write auditor assessments of assessment-pair questions during review."""
    submission = require_submission(db, submission_id)
    definition = definition_for(submission)
    _check_keys(definition, list(values))
    not_assessor = sorted(set(values) - _assessor_keys(definition))
    if not_assessor:
        raise ValueError(f"Only assessment fields can be written during review: {', '.join(not_assessor)}")

    return _write_values(
        db,
        submission_id,
        values,
        operation="edit_assessment",
        event_type=SubmissionEventType.ASSESSMENT_UPDATED,
        actor=actor,
    )


# =============================================================================
# Event log projection
# =============================================================================


@dataclass
class SubmissionProjection:
    status: str = FormSubmissionStatus.DRAFT.value
    flagged_fields: list[str] = field(default_factory=list)
    total_flags: int = 0
    cleared_flags: int = 0


_STATUS_BY_EVENT: dict[str, FormSubmissionStatus] = {
    SubmissionEventType.CREATED.value: FormSubmissionStatus.DRAFT,
    SubmissionEventType.SUBMITTED.value: FormSubmissionStatus.SUBMITTED,
    SubmissionEventType.RESUBMITTED.value: FormSubmissionStatus.SUBMITTED,
    SubmissionEventType.REVIEW_STARTED.value: FormSubmissionStatus.UNDER_REVIEW,
    SubmissionEventType.FIELD_FLAGGED.value: FormSubmissionStatus.FLAGGED,
    SubmissionEventType.REVIEWED.value: FormSubmissionStatus.REVIEWED,
    SubmissionEventType.APPROVED.value: FormSubmissionStatus.APPROVED,
    SubmissionEventType.CLEARED.value: FormSubmissionStatus.CLEARED,
}


def list_events(db: Session, submission_id: uuid.UUID) -> list[SubmissionEvent]:
    return (
        db.query(SubmissionEvent)
        .filter(SubmissionEvent.submission_id == submission_id)
        .order_by(SubmissionEvent.id.asc())
        .all()
    )


def project_events(events: list[SubmissionEvent]) -> SubmissionProjection:
    """Replay the event log into status and flag state."""
    projection = SubmissionProjection()
    for event in events:
        next_status = _STATUS_BY_EVENT.get(event.event_type)
        if next_status is not None:
            projection.status = next_status.value

        if event.event_type == SubmissionEventType.FIELD_FLAGGED.value:
            if event.field_id and event.field_id not in projection.flagged_fields:
                projection.flagged_fields.append(event.field_id)
            projection.total_flags += 1
        elif event.event_type == SubmissionEventType.FLAG_CLEARED.value:
            if event.field_id in projection.flagged_fields:
                projection.flagged_fields.remove(event.field_id)
            projection.cleared_flags += 1
            payload = event.payload or {}
            if payload.get("status"):
                projection.status = payload["status"]
    return projection


def verify_projection(db: Session, submission: FormSubmission) -> bool:
    """True when the stored status and flags match a replay of the event log."""
    projection = project_events(list_events(db, submission.id))
    matches = (
        projection.status == submission.status
        and sorted(projection.flagged_fields) == sorted(submission.flagged_fields or [])
        and projection.total_flags == submission.total_flags
        and projection.cleared_flags == submission.cleared_flags
    )
    if not matches:
        logger.warning(
            "Submission state diverges from its event log",
            extra=build_log_context(submission_id=str(submission.id), status=submission.status),
        )
    return matches
