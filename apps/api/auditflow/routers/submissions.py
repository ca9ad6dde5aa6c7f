"""Submission lifecycle, review and scoring endpoints."""

from contextlib import contextmanager
from typing import Iterator
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from auditflow.core.deps import get_actor, get_db
from auditflow.core.exceptions import (
    FormDefinitionNotFound,
    IncompleteSubmission,
    InvalidTransition,
    SubmissionNotFound,
)
from auditflow.db.models import FormSubmission, SubmissionReview
from auditflow.schemas.auth import Actor
from auditflow.schemas.forms import (
    AuditorReviewRead,
    ClearFlagRequest,
    ClearSectionFlagsRequest,
    ClearSubmissionRequest,
    CommentCreate,
    FlagFieldRequest,
    MarkReviewedRequest,
    ReportCreate,
    ReportRead,
    SectionScoreRead,
    SectionScoreUpdate,
    SubmissionAnswersUpdate,
    SubmissionCreate,
    SubmissionProgressRead,
    SubmissionRead,
    SubmissionSummary,
)
from auditflow.services import progress_service, review_service, submission_service

router = APIRouter(prefix="/submissions", tags=["submissions"])


@contextmanager
def _service_errors() -> Iterator[None]:
    """Translate service exceptions into HTTP errors."""
    try:
        yield
    except (SubmissionNotFound, FormDefinitionNotFound) as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except IncompleteSubmission as exc:
        raise HTTPException(
            status_code=409,
            detail={"message": str(exc), "incomplete_sections": exc.incomplete_sections},
        ) from exc
    except InvalidTransition as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except ValueError as exc:
        # InvalidFieldReference is a ValueError
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def _get_or_404(db: Session, submission_id: UUID) -> FormSubmission:
    submission = submission_service.get_submission(db, submission_id)
    if not submission:
        raise HTTPException(status_code=404, detail="Submission not found")
    return submission


def _review_read(review: SubmissionReview) -> AuditorReviewRead:
    return AuditorReviewRead(
        id=review.id,
        author_name=review.author_name,
        author_avatar_ref=review.author_avatar_ref,
        timestamp=review.created_at,
        section_id=review.section_id,
        field_id=review.field_id,
        comments=[c.body for c in review.comments],
    )


def _progress_read(submission: FormSubmission) -> SubmissionProgressRead:
    definition = submission_service.definition_for(submission)
    readiness = progress_service.submit_readiness(submission.answers_json, definition)
    return SubmissionProgressRead(
        overall=progress_service.overall_progress(submission.answers_json, definition),
        sections=progress_service.progress_by_section(submission.answers_json, definition),
        ready_to_submit=readiness.ready,
        incomplete_sections=readiness.incomplete_sections,
    )


def _scores_read(submission: FormSubmission) -> list[SectionScoreRead] | None:
    if submission.section_scores is None:
        return None
    definition = submission_service.definition_for(submission)
    scores = []
    for section in definition.form_sections:
        entry = submission.section_scores.get(section.id)
        if entry is None:
            continue
        scores.append(
            SectionScoreRead(
                section_id=section.id,
                section_title=section.short_title or section.title,
                score=entry["score"],
                comments=entry.get("comments"),
                scored_by=entry.get("scored_by"),
                scored_at=entry.get("scored_at"),
            )
        )
    return scores


def _submission_read(db: Session, submission: FormSubmission) -> SubmissionRead:
    reviews = review_service.list_reviews(db, submission.id)
    return SubmissionRead(
        id=submission.id,
        form_id=submission.form_id,
        form_version=submission.form_version,
        owner_id=submission.owner_id,
        status=submission.status,
        answers=submission.answers_json or {},
        flagged_fields=submission.flagged_fields or [],
        total_flags=submission.total_flags,
        cleared_flags=submission.cleared_flags,
        section_scores=_scores_read(submission),
        total_score=submission.total_score,
        score_grade=review_service.score_grade(submission.total_score),
        reports=[ReportRead(**r) for r in submission.reports or []],
        certificate_ref=submission.certificate_ref,
        progress=_progress_read(submission),
        reviews=[_review_read(r) for r in reviews],
        created_at=submission.created_at,
        updated_at=submission.updated_at,
        submitted_at=submission.submitted_at,
        last_reviewed_at=submission.last_reviewed_at,
        approved_at=submission.approved_at,
        cleared_at=submission.cleared_at,
    )


# =============================================================================
# Submissions
# =============================================================================


@router.post("", response_model=SubmissionRead, status_code=201)
def create_submission(
    body: SubmissionCreate,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    with _service_errors():
        submission = submission_service.create_submission(db, body, actor=actor)
    return _submission_read(db, submission)


@router.get("", response_model=list[SubmissionSummary])
def list_submissions(
    owner_id: str | None = Query(None),
    form_id: str | None = Query(None),
    status: str | None = Query(None),
    assigned_auditor_id: str | None = Query(None),
    db: Session = Depends(get_db),
):
    submissions = submission_service.list_submissions(
        db,
        owner_id=owner_id,
        form_id=form_id,
        status=status,
        assigned_auditor_id=assigned_auditor_id,
    )
    results = []
    for submission in submissions:
        definition = submission_service.definition_for(submission)
        results.append(
            SubmissionSummary(
                id=submission.id,
                form_id=submission.form_id,
                owner_id=submission.owner_id,
                status=submission.status,
                progress=progress_service.overall_progress(submission.answers_json, definition),
                total_flags=submission.total_flags,
                submitted_at=submission.submitted_at,
                updated_at=submission.updated_at,
            )
        )
    return results


@router.get("/{submission_id}", response_model=SubmissionRead)
def get_submission(submission_id: UUID, db: Session = Depends(get_db)):
    return _submission_read(db, _get_or_404(db, submission_id))


@router.get("/{submission_id}/progress", response_model=SubmissionProgressRead)
def get_progress(submission_id: UUID, db: Session = Depends(get_db)):
    return _progress_read(_get_or_404(db, submission_id))


@router.patch("/{submission_id}/answers", response_model=SubmissionRead)
def update_answers(
    submission_id: UUID,
    body: SubmissionAnswersUpdate,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    """Field-level answer writes. Send null to clear a field."""
    with _service_errors():
        submission = submission_service.set_field_values(db, submission_id, body.answers, actor=actor)
    return _submission_read(db, submission)


@router.patch("/{submission_id}/assessments", response_model=SubmissionRead)
def update_assessments(
    submission_id: UUID,
    body: SubmissionAnswersUpdate,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    with _service_errors():
        submission = submission_service.set_assessor_values(db, submission_id, body.answers, actor=actor)
    return _submission_read(db, submission)


# =============================================================================
# Lifecycle
# =============================================================================


@router.post("/{submission_id}/submit", response_model=SubmissionRead)
def submit_submission(
    submission_id: UUID,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    submission = _get_or_404(db, submission_id)
    with _service_errors():
        submission = review_service.submit(db, submission, actor)
    return _submission_read(db, submission)


@router.post("/{submission_id}/begin-review", response_model=SubmissionRead)
def begin_review(
    submission_id: UUID,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    submission = _get_or_404(db, submission_id)
    with _service_errors():
        submission = review_service.begin_review(db, submission, actor)
    return _submission_read(db, submission)


@router.post("/{submission_id}/flags", response_model=SubmissionRead)
def flag_field(
    submission_id: UUID,
    body: FlagFieldRequest,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    submission = _get_or_404(db, submission_id)
    with _service_errors():
        review_service.flag_field(db, submission, body.field_id, actor, body.comments)
    return _submission_read(db, submission)


@router.post("/{submission_id}/flags/clear", response_model=SubmissionRead)
def clear_flag(
    submission_id: UUID,
    body: ClearFlagRequest,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    submission = _get_or_404(db, submission_id)
    with _service_errors():
        submission = review_service.clear_flag(db, submission, body.field_id, actor, body.comment)
    return _submission_read(db, submission)


@router.post("/{submission_id}/flags/clear-section", response_model=SubmissionRead)
def clear_section_flags(
    submission_id: UUID,
    body: ClearSectionFlagsRequest,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    submission = _get_or_404(db, submission_id)
    with _service_errors():
        submission = review_service.clear_section_flags(db, submission, body.section_id, actor)
    return _submission_read(db, submission)


@router.post("/{submission_id}/flags/clear-all", response_model=SubmissionRead)
def clear_all_flags(
    submission_id: UUID,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    submission = _get_or_404(db, submission_id)
    with _service_errors():
        submission = review_service.clear_all_flags(db, submission, actor)
    return _submission_read(db, submission)


@router.post("/{submission_id}/mark-reviewed", response_model=SubmissionRead)
def mark_reviewed(
    submission_id: UUID,
    body: MarkReviewedRequest,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    submission = _get_or_404(db, submission_id)
    with _service_errors():
        submission = review_service.mark_reviewed(db, submission, actor, body.comments)
    return _submission_read(db, submission)


@router.post("/{submission_id}/approve", response_model=SubmissionRead)
def approve_submission(
    submission_id: UUID,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    submission = _get_or_404(db, submission_id)
    with _service_errors():
        submission = review_service.approve(db, submission, actor)
    return _submission_read(db, submission)


@router.post("/{submission_id}/clear", response_model=SubmissionRead)
def clear_submission(
    submission_id: UUID,
    body: ClearSubmissionRequest,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    submission = _get_or_404(db, submission_id)
    with _service_errors():
        submission = review_service.clear(db, submission, actor, body.certificate_ref)
    return _submission_read(db, submission)


# =============================================================================
# Reviews and scores
# =============================================================================


@router.post("/{submission_id}/comments", response_model=AuditorReviewRead, status_code=201)
def add_comment(
    submission_id: UUID,
    body: CommentCreate,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    submission = _get_or_404(db, submission_id)
    with _service_errors():
        review = review_service.add_comment(db, submission, body.field_id, actor, body.text)
    return _review_read(review)


@router.get("/{submission_id}/reviews", response_model=list[AuditorReviewRead])
def list_reviews(
    submission_id: UUID,
    field_id: str | None = Query(None),
    db: Session = Depends(get_db),
):
    _get_or_404(db, submission_id)
    return [_review_read(r) for r in review_service.list_reviews(db, submission_id, field_id)]


@router.put("/{submission_id}/scores", response_model=SubmissionRead)
def record_score(
    submission_id: UUID,
    body: SectionScoreUpdate,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    submission = _get_or_404(db, submission_id)
    with _service_errors():
        submission = review_service.record_section_score(
            db, submission, body.section_id, body.score, actor, body.comments
        )
    return _submission_read(db, submission)


# =============================================================================
# Reports
# =============================================================================


@router.post("/{submission_id}/reports", response_model=SubmissionRead, status_code=201)
def add_report(
    submission_id: UUID,
    body: ReportCreate,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    submission = _get_or_404(db, submission_id)
    with _service_errors():
        review_service.add_report(
            db,
            submission,
            actor,
            name=body.name,
            ref=body.ref,
            content_type=body.content_type,
            size=body.size,
        )
    return _submission_read(db, submission)


@router.delete("/{submission_id}/reports/{report_id}", response_model=SubmissionRead)
def remove_report(
    submission_id: UUID,
    report_id: str,
    actor: Actor = Depends(get_actor),
    db: Session = Depends(get_db),
):
    submission = _get_or_404(db, submission_id)
    with _service_errors():
        submission = review_service.remove_report(db, submission, report_id, actor)
    return _submission_read(db, submission)
