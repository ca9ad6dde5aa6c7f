"""Review and flagging engine.

Every operation checks the lifecycle table before touching the row, so a
rejected call leaves the submission exactly as it was. Status changes are
version-checked on commit; losing a race to another writer is reported as
InvalidTransition. Notifications go out only after a successful commit.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from auditflow.core.exceptions import InvalidFieldReference, IncompleteSubmission, InvalidTransition
from auditflow.core.structured_logging import build_log_context
from auditflow.core.submission_states import COMMENTABLE_STATUSES, is_allowed
from auditflow.db.enums import (
    FormNotificationType,
    FormSubmissionStatus,
    SubmissionEventType,
)
from auditflow.db.models import FormSubmission, SubmissionReview
from auditflow.schemas.auth import Actor
from auditflow.schemas.forms import FormDefinition
from auditflow.services import form_definition_service, form_notification_service, progress_service
from auditflow.services.submission_service import (
    append_event,
    append_review_comment,
    definition_for,
)

logger = logging.getLogger(__name__)

# (minimum total, grade), highest first
GRADE_SCALE: tuple[tuple[float, str], ...] = (
    (90, "A"),
    (80, "B"),
    (70, "C"),
    (60, "D"),
    (0, "F"),
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _require(submission: FormSubmission, operation: str) -> None:
    if not is_allowed(operation, submission.status):
        raise InvalidTransition(operation, submission.status)


def _require_field(definition: FormDefinition, field_id: str) -> str | None:
    """Validate a field key and return the id of the section that owns it."""
    if field_id not in form_definition_service.field_keys(definition):
        raise InvalidFieldReference(field_id, definition.id)
    section = form_definition_service.section_for_field(definition, field_id)
    return section.id if section else None


def _commit(db: Session, submission: FormSubmission, operation: str, actor: Actor | None) -> None:
    try:
        db.commit()
    except StaleDataError as exc:
        db.rollback()
        logger.info(
            "Concurrent update rejected",
            extra=build_log_context(
                submission_id=str(submission.id),
                actor_id=actor.user_id if actor else None,
                operation=operation,
            ),
        )
        raise InvalidTransition(
            operation,
            submission.status,
            "Submission was changed by someone else; reload and try again",
        ) from exc
    db.refresh(submission)
    logger.info(
        "Submission %s",
        operation,
        extra=build_log_context(
            submission_id=str(submission.id),
            form_id=submission.form_id,
            actor_id=actor.user_id if actor else None,
            status=submission.status,
            operation=operation,
        ),
    )


def _new_review(
    db: Session,
    submission: FormSubmission,
    author: Actor,
    *,
    field_id: str | None,
    section_id: str | None,
    comments: list[str],
) -> SubmissionReview:
    review = SubmissionReview(
        submission_id=submission.id,
        author_id=author.user_id,
        author_name=author.name,
        author_avatar_ref=author.avatar_ref,
        field_id=field_id,
        section_id=section_id,
    )
    db.add(review)
    for body in comments:
        append_review_comment(db, review, body)
    return review


def _clean_comments(comments: list[str] | None) -> list[str]:
    return [c.strip() for c in comments or [] if c and c.strip()]


# =============================================================================
# Lifecycle transitions
# =============================================================================


def submit(db: Session, submission: FormSubmission, actor: Actor | None = None) -> FormSubmission:
    """Send a draft, or a flagged submission after corrections, to the auditors."""
    _require(submission, "submit")
    definition = definition_for(submission)
    readiness = progress_service.submit_readiness(submission.answers_json, definition)
    if not readiness.ready:
        raise IncompleteSubmission(submission.status, readiness.incomplete_sections)

    resubmission = submission.status == FormSubmissionStatus.FLAGGED.value
    submission.status = FormSubmissionStatus.SUBMITTED.value
    submission.submitted_at = _utcnow()
    append_event(
        db,
        submission,
        SubmissionEventType.RESUBMITTED if resubmission else SubmissionEventType.SUBMITTED,
        actor=actor,
        payload={"progress": readiness.progress},
    )
    _commit(db, submission, "submit", actor)

    form_notification_service.notify(
        FormNotificationType.FORM_RESUBMITTED if resubmission else FormNotificationType.FORM_SUBMITTED,
        submission,
        definition.name,
    )
    return submission


def begin_review(db: Session, submission: FormSubmission, actor: Actor) -> FormSubmission:
    _require(submission, "begin_review")
    definition = definition_for(submission)

    submission.status = FormSubmissionStatus.UNDER_REVIEW.value
    append_event(db, submission, SubmissionEventType.REVIEW_STARTED, actor=actor)
    _commit(db, submission, "begin_review", actor)

    form_notification_service.notify(
        FormNotificationType.REVIEW_STARTED,
        submission,
        definition.name,
        reviewer_name=actor.name,
    )
    return submission


def flag_field(
    db: Session,
    submission: FormSubmission,
    field_id: str,
    author: Actor,
    comments: list[str] | None = None,
) -> SubmissionReview:
    """Flag one field for correction and open a review thread on it.

    Flagging a field that is already flagged adds another thread but keeps a
    single entry in flagged_fields.
    """
    _require(submission, "flag_field")
    definition = definition_for(submission)
    section_id = _require_field(definition, field_id)
    bodies = _clean_comments(comments)

    review = _new_review(
        db,
        submission,
        author,
        field_id=field_id,
        section_id=section_id,
        comments=bodies,
    )
    flagged = list(submission.flagged_fields or [])
    if field_id not in flagged:
        flagged.append(field_id)
    submission.flagged_fields = flagged
    submission.total_flags = (submission.total_flags or 0) + 1
    submission.status = FormSubmissionStatus.FLAGGED.value
    append_event(
        db,
        submission,
        SubmissionEventType.FIELD_FLAGGED,
        actor=author,
        section_id=section_id,
        field_id=field_id,
    )
    _commit(db, submission, "flag_field", author)

    form_notification_service.notify(
        FormNotificationType.FORM_FLAGGED,
        submission,
        definition.name,
        section_id=section_id,
        field_id=field_id,
        reviewer_name=author.name,
        review_content="\n".join(bodies) or None,
    )
    return review


def _resolve_flags(
    db: Session,
    submission: FormSubmission,
    definition: FormDefinition,
    field_ids: list[str],
    author: Actor,
) -> None:
    """Drop keys from flagged_fields, one FLAG_CLEARED event per key.

    When the last flag of a flagged submission goes, the status returns to
    under_review and the final event records it for replay.
    """
    flagged = [f for f in submission.flagged_fields or [] if f not in field_ids]
    submission.flagged_fields = flagged
    submission.cleared_flags = (submission.cleared_flags or 0) + len(field_ids)
    reopened = not flagged and submission.status == FormSubmissionStatus.FLAGGED.value
    if reopened:
        submission.status = FormSubmissionStatus.UNDER_REVIEW.value

    for index, field_id in enumerate(field_ids):
        section = form_definition_service.section_for_field(definition, field_id)
        last = index == len(field_ids) - 1
        append_event(
            db,
            submission,
            SubmissionEventType.FLAG_CLEARED,
            actor=author,
            section_id=section.id if section else None,
            field_id=field_id,
            payload={"status": submission.status} if reopened and last else None,
        )


def clear_flag(
    db: Session,
    submission: FormSubmission,
    field_id: str,
    author: Actor,
    comment: str | None = None,
) -> FormSubmission:
    """Resolve a flag. Clearing the last flag of a flagged submission returns it to review."""
    _require(submission, "clear_flag")
    definition = definition_for(submission)
    section_id = _require_field(definition, field_id)
    if field_id not in (submission.flagged_fields or []):
        raise ValueError(f"Field '{field_id}' is not flagged")

    body = (comment or "").strip()
    if body:
        _thread_comment(db, submission, field_id, section_id, author, body)
    _resolve_flags(db, submission, definition, [field_id], author)
    _commit(db, submission, "clear_flag", author)

    form_notification_service.notify(
        FormNotificationType.FLAG_CLEARED,
        submission,
        definition.name,
        section_id=section_id,
        field_id=field_id,
        reviewer_name=author.name,
        review_content=body or None,
    )
    return submission


def clear_section_flags(
    db: Session,
    submission: FormSubmission,
    section_id: str,
    author: Actor,
) -> FormSubmission:
    """Resolve every open flag on fields of one section."""
    _require(submission, "clear_flag")
    definition = definition_for(submission)
    section = definition.get_section(section_id)
    if section is None or section.kind != "form":
        raise InvalidFieldReference(section_id, definition.id)
    field_ids = []
    for field_id in submission.flagged_fields or []:
        owner = form_definition_service.section_for_field(definition, field_id)
        if owner is not None and owner.id == section_id:
            field_ids.append(field_id)
    if not field_ids:
        raise ValueError(f"Section '{section_id}' has no flagged fields")

    _resolve_flags(db, submission, definition, field_ids, author)
    _commit(db, submission, "clear_section_flags", author)

    form_notification_service.notify(
        FormNotificationType.FLAG_CLEARED,
        submission,
        definition.name,
        section_id=section_id,
        reviewer_name=author.name,
        review_content=f"{len(field_ids)} flag(s) cleared",
    )
    return submission


def clear_all_flags(db: Session, submission: FormSubmission, author: Actor) -> FormSubmission:
    """Resolve every open flag on the submission."""
    _require(submission, "clear_flag")
    definition = definition_for(submission)
    field_ids = list(submission.flagged_fields or [])
    if not field_ids:
        raise ValueError("Submission has no flagged fields")

    _resolve_flags(db, submission, definition, field_ids, author)
    _commit(db, submission, "clear_all_flags", author)

    form_notification_service.notify(
        FormNotificationType.FLAG_CLEARED,
        submission,
        definition.name,
        reviewer_name=author.name,
        review_content=f"{len(field_ids)} flag(s) cleared",
    )
    return submission


def mark_reviewed(
    db: Session,
    submission: FormSubmission,
    author: Actor,
    comments: list[str] | None = None,
) -> FormSubmission:
    _require(submission, "mark_reviewed")
    if submission.flagged_fields:
        raise InvalidTransition(
            "mark_reviewed",
            submission.status,
            f"{len(submission.flagged_fields)} flagged field(s) must be cleared first",
        )
    definition = definition_for(submission)
    bodies = _clean_comments(comments)

    if bodies:
        _new_review(db, submission, author, field_id=None, section_id=None, comments=bodies)
    submission.status = FormSubmissionStatus.REVIEWED.value
    submission.last_reviewed_at = _utcnow()
    append_event(db, submission, SubmissionEventType.REVIEWED, actor=author)
    _commit(db, submission, "mark_reviewed", author)

    form_notification_service.notify(
        FormNotificationType.FORM_REVIEWED,
        submission,
        definition.name,
        reviewer_name=author.name,
        review_content="\n".join(bodies) or None,
    )
    return submission


def approve(db: Session, submission: FormSubmission, actor: Actor) -> FormSubmission:
    _require(submission, "approve")
    definition = definition_for(submission)

    submission.status = FormSubmissionStatus.APPROVED.value
    submission.approved_at = _utcnow()
    append_event(db, submission, SubmissionEventType.APPROVED, actor=actor)
    _commit(db, submission, "approve", actor)

    form_notification_service.notify(
        FormNotificationType.FORM_APPROVED,
        submission,
        definition.name,
        reviewer_name=actor.name,
    )
    return submission


def clear(
    db: Session,
    submission: FormSubmission,
    actor: Actor,
    certificate_ref: str | None = None,
) -> FormSubmission:
    """Close an approved submission. Cleared is terminal."""
    _require(submission, "clear")
    definition = definition_for(submission)
    if certificate_ref and not definition.features.has_certificate:
        raise ValueError(f"Form '{definition.id}' does not issue certificates")

    submission.status = FormSubmissionStatus.CLEARED.value
    submission.cleared_at = _utcnow()
    if certificate_ref:
        submission.certificate_ref = certificate_ref
    append_event(
        db,
        submission,
        SubmissionEventType.CLEARED,
        actor=actor,
        payload={"certificate_ref": certificate_ref} if certificate_ref else None,
    )
    _commit(db, submission, "clear", actor)

    form_notification_service.notify(
        FormNotificationType.FORM_CLEARED,
        submission,
        definition.name,
        reviewer_name=actor.name,
    )
    return submission


# =============================================================================
# Reports
# =============================================================================


def add_report(
    db: Session,
    submission: FormSubmission,
    author: Actor,
    *,
    name: str,
    ref: str,
    content_type: str | None = None,
    size: int | None = None,
) -> dict:
    """Attach an auditor report document to a submission of a reporting form."""
    definition = definition_for(submission)
    if not definition.features.has_reports:
        raise ValueError(f"Form '{definition.id}' does not take reports")
    _require(submission, "manage_reports")

    report = {
        "id": uuid.uuid4().hex,
        "name": name.strip(),
        "ref": ref,
        "content_type": content_type,
        "size": size,
        "uploaded_by": author.name,
        "uploaded_at": _utcnow().isoformat(),
    }
    submission.reports = [*(submission.reports or []), report]
    append_event(
        db,
        submission,
        SubmissionEventType.REPORT_ADDED,
        actor=author,
        payload={"report_id": report["id"]},
    )
    _commit(db, submission, "add_report", author)
    return report


def remove_report(
    db: Session,
    submission: FormSubmission,
    report_id: str,
    author: Actor,
) -> FormSubmission:
    definition = definition_for(submission)
    if not definition.features.has_reports:
        raise ValueError(f"Form '{definition.id}' does not take reports")
    _require(submission, "manage_reports")
    reports = list(submission.reports or [])
    remaining = [r for r in reports if r.get("id") != report_id]
    if len(remaining) == len(reports):
        raise ValueError(f"Report '{report_id}' not found")

    submission.reports = remaining
    append_event(
        db,
        submission,
        SubmissionEventType.REPORT_REMOVED,
        actor=author,
        payload={"report_id": report_id},
    )
    _commit(db, submission, "remove_report", author)
    return submission


# =============================================================================
# Comments
# =============================================================================


def _latest_thread(
    db: Session,
    submission_id: uuid.UUID,
    field_id: str | None,
    author: Actor,
) -> SubmissionReview | None:
    query = db.query(SubmissionReview).filter(SubmissionReview.submission_id == submission_id)
    if author.user_id:
        query = query.filter(SubmissionReview.author_id == author.user_id)
    else:
        query = query.filter(
            SubmissionReview.author_id.is_(None),
            SubmissionReview.author_name == author.name,
        )
    if field_id is None:
        query = query.filter(SubmissionReview.field_id.is_(None))
    else:
        query = query.filter(SubmissionReview.field_id == field_id)
    return query.order_by(SubmissionReview.id.desc()).first()


def _thread_comment(
    db: Session,
    submission: FormSubmission,
    field_id: str | None,
    section_id: str | None,
    author: Actor,
    body: str,
) -> SubmissionReview:
    """Append to today's thread by this author on this field, or start one."""
    review = _latest_thread(db, submission.id, field_id, author)
    if review is not None and _as_utc(review.created_at).date() == _utcnow().date():
        append_review_comment(db, review, body)
        return review
    return _new_review(
        db,
        submission,
        author,
        field_id=field_id,
        section_id=section_id,
        comments=[body],
    )


def add_comment(
    db: Session,
    submission: FormSubmission,
    field_id: str | None,
    author: Actor,
    text: str,
) -> SubmissionReview:
    """Add an auditor comment, optionally anchored to a field.

    Comments by the same author on the same field on the same (UTC) day are
    grouped into one thread.
    """
    if submission.status not in {s.value for s in COMMENTABLE_STATUSES}:
        raise InvalidTransition("comment", submission.status)
    definition = definition_for(submission)
    section_id = _require_field(definition, field_id) if field_id is not None else None
    body = (text or "").strip()
    if not body:
        raise ValueError("Comment text is required")

    review = _thread_comment(db, submission, field_id, section_id, author, body)
    append_event(
        db,
        submission,
        SubmissionEventType.COMMENT_ADDED,
        actor=author,
        section_id=section_id,
        field_id=field_id,
    )
    db.commit()
    db.refresh(review)

    form_notification_service.notify(
        FormNotificationType.REVIEW_ADDED,
        submission,
        definition.name,
        section_id=section_id,
        field_id=field_id,
        reviewer_name=author.name,
        review_content=body,
    )
    return review


def list_reviews(
    db: Session,
    submission_id: uuid.UUID,
    field_id: str | None = None,
) -> list[SubmissionReview]:
    query = db.query(SubmissionReview).filter(SubmissionReview.submission_id == submission_id)
    if field_id is not None:
        query = query.filter(SubmissionReview.field_id == field_id)
    return query.order_by(SubmissionReview.id.asc()).all()


# =============================================================================
# Scoring
# =============================================================================


def score_grade(total: float | None) -> str | None:
    if total is None:
        return None
    for minimum, grade in GRADE_SCALE:
        if total >= minimum:
            return grade
    return GRADE_SCALE[-1][1]


def record_section_score(
    db: Session,
    submission: FormSubmission,
    section_id: str,
    score: float,
    author: Actor,
    comments: str | None = None,
) -> FormSubmission:
    """Record an auditor's 0-100 score for one section of a scored form.

    The total is the plain mean of the scored sections.
    """
    definition = definition_for(submission)
    if not definition.features.has_scoring:
        raise ValueError(f"Form '{definition.id}' is not scored")
    _require(submission, "record_score")
    section = definition.get_section(section_id)
    if section is None or section.kind != "form":
        raise InvalidFieldReference(section_id, definition.id)
    if not 0 <= score <= 100:
        raise ValueError("Score must be between 0 and 100")

    scores = dict(submission.section_scores or {})
    scores[section_id] = {
        "score": float(score),
        "comments": (comments or "").strip() or None,
        "scored_by": author.name,
        "scored_at": _utcnow().isoformat(),
    }
    submission.section_scores = scores
    submission.total_score = round(sum(s["score"] for s in scores.values()) / len(scores), 2)
    append_event(
        db,
        submission,
        SubmissionEventType.SCORE_RECORDED,
        actor=author,
        section_id=section_id,
        payload={"score": float(score)},
    )
    _commit(db, submission, "record_score", author)

    form_notification_service.notify(
        FormNotificationType.SCORE_UPDATED,
        submission,
        definition.name,
        section_id=section_id,
        reviewer_name=author.name,
    )
    return submission
