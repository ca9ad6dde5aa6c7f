"""SQLAlchemy ORM models for audit form submissions."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from auditflow.db.base import Base
from auditflow.db.enums import FormSubmissionStatus
from auditflow.db.types import JSONDocument


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FormSubmission(Base):
    """One client's answers to one audit form definition.

    `status` and `flagged_fields` are the projection of the submission's event
    log (see SubmissionEvent). Rows are never hard-deleted.
    """

    __tablename__ = "form_submissions"
    __table_args__ = (
        Index("idx_form_submissions_owner", "owner_id"),
        Index("idx_form_submissions_form_status", "form_id", "status"),
        Index("idx_form_submissions_auditor", "assigned_auditor_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    form_id: Mapped[str] = mapped_column(String(50), nullable=False)
    form_version: Mapped[str] = mapped_column(String(20), nullable=False)

    # Identity collaborator supplies these; nothing here is authenticated
    owner_id: Mapped[str] = mapped_column(String(255), nullable=False)
    owner_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    owner_email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    assigned_auditor_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    assigned_auditor_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    assigned_auditor_email: Mapped[str | None] = mapped_column(String(320), nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        default=FormSubmissionStatus.DRAFT.value,
        nullable=False,
    )
    answers_json: Mapped[dict] = mapped_column(JSONDocument, default=dict, nullable=False)
    flagged_fields: Mapped[list] = mapped_column(JSONDocument, default=list, nullable=False)
    total_flags: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    cleared_flags: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Scored (credential assessment) forms only
    section_scores: Mapped[dict | None] = mapped_column(JSONDocument, nullable=True)
    total_score: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Auditor report documents, as opaque blob references
    reports: Mapped[list] = mapped_column(JSONDocument, default=list, nullable=False)
    # Set by the certificate collaborator when the submission is cleared
    certificate_ref: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    # Optimistic lock; every UPDATE checks and bumps it
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=_utcnow, onupdate=_utcnow, nullable=False
    )
    submitted_at: Mapped[datetime | None] = mapped_column(nullable=True)
    last_reviewed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)
    cleared_at: Mapped[datetime | None] = mapped_column(nullable=True)

    __mapper_args__ = {"version_id_col": version}

    reviews: Mapped[list["SubmissionReview"]] = relationship(
        back_populates="submission",
        order_by="SubmissionReview.id",
    )


class SubmissionReview(Base):
    """An auditor comment thread on a submission, optionally anchored to a field."""

    __tablename__ = "form_submission_reviews"
    __table_args__ = (
        Index("idx_submission_reviews_submission", "submission_id"),
        Index("idx_submission_reviews_field", "submission_id", "field_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    submission_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("form_submissions.id", ondelete="RESTRICT"),
        nullable=False,
    )
    author_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    author_name: Mapped[str] = mapped_column(String(255), nullable=False)
    author_avatar_ref: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    section_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    field_id: Mapped[str | None] = mapped_column(String(200), nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=_utcnow, nullable=False)

    submission: Mapped["FormSubmission"] = relationship(back_populates="reviews")
    comments: Mapped[list["SubmissionReviewComment"]] = relationship(
        back_populates="review",
        order_by="SubmissionReviewComment.id",
    )


class SubmissionReviewComment(Base):
    """One comment in a review thread. Appended, never edited."""

    __tablename__ = "form_submission_review_comments"
    __table_args__ = (Index("idx_review_comments_review", "review_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    review_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("form_submission_reviews.id", ondelete="RESTRICT"),
        nullable=False,
    )
    body: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=_utcnow, nullable=False)

    review: Mapped["SubmissionReview"] = relationship(back_populates="comments")


class SubmissionEvent(Base):
    """Append-only lifecycle log for a submission."""

    __tablename__ = "form_submission_events"
    __table_args__ = (Index("idx_submission_events_submission", "submission_id", "id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    submission_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("form_submissions.id", ondelete="RESTRICT"),
        nullable=False,
    )
    event_type: Mapped[str] = mapped_column(String(40), nullable=False)
    actor_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    actor_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    section_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    field_id: Mapped[str | None] = mapped_column(String(200), nullable=True)
    payload: Mapped[dict | None] = mapped_column(JSONDocument, nullable=True)
    created_at: Mapped[datetime] = mapped_column(default=_utcnow, nullable=False)
