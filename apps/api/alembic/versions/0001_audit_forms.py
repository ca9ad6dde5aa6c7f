"""Audit form submissions, review threads and the submission event log.

Revision ID: 0001_audit_forms
Revises:
Create Date: 2026-10-18

Creates:
- form_submissions (optimistic-lock version column)
- form_submission_reviews
- form_submission_review_comments (append-only)
- form_submission_events (append-only)
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '0001_audit_forms'
down_revision = None
branch_labels = None
depends_on = None

JSON_DOCUMENT = sa.JSON().with_variant(postgresql.JSONB(astext_type=sa.Text()), 'postgresql')


def upgrade() -> None:
    # ==========================================================================
    # form_submissions
    # ==========================================================================
    op.create_table(
        'form_submissions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('form_id', sa.String(50), nullable=False),
        sa.Column('form_version', sa.String(20), nullable=False),
        sa.Column('owner_id', sa.String(255), nullable=False),
        sa.Column('owner_name', sa.String(255), nullable=True),
        sa.Column('owner_email', sa.String(320), nullable=True),
        sa.Column('assigned_auditor_id', sa.String(255), nullable=True),
        sa.Column('assigned_auditor_name', sa.String(255), nullable=True),
        sa.Column('assigned_auditor_email', sa.String(320), nullable=True),
        sa.Column('status', sa.String(20), nullable=False),
        sa.Column('answers_json', JSON_DOCUMENT, nullable=False),
        sa.Column('flagged_fields', JSON_DOCUMENT, nullable=False),
        sa.Column('total_flags', sa.Integer(), nullable=False),
        sa.Column('cleared_flags', sa.Integer(), nullable=False),
        sa.Column('section_scores', JSON_DOCUMENT, nullable=True),
        sa.Column('total_score', sa.Float(), nullable=True),
        sa.Column('reports', JSON_DOCUMENT, nullable=False),
        sa.Column('certificate_ref', sa.String(1000), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cleared_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_form_submissions_owner', 'form_submissions', ['owner_id'])
    op.create_index('idx_form_submissions_form_status', 'form_submissions', ['form_id', 'status'])
    op.create_index('idx_form_submissions_auditor', 'form_submissions', ['assigned_auditor_id'])

    # ==========================================================================
    # form_submission_reviews + comments
    # ==========================================================================
    op.create_table(
        'form_submission_reviews',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('submission_id', sa.Uuid(), nullable=False),
        sa.Column('author_id', sa.String(255), nullable=True),
        sa.Column('author_name', sa.String(255), nullable=False),
        sa.Column('author_avatar_ref', sa.String(1000), nullable=True),
        sa.Column('section_id', sa.String(100), nullable=True),
        sa.Column('field_id', sa.String(200), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['submission_id'], ['form_submissions.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_submission_reviews_submission', 'form_submission_reviews', ['submission_id'])
    op.create_index(
        'idx_submission_reviews_field', 'form_submission_reviews', ['submission_id', 'field_id']
    )

    op.create_table(
        'form_submission_review_comments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('review_id', sa.Integer(), nullable=False),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['review_id'], ['form_submission_reviews.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_review_comments_review', 'form_submission_review_comments', ['review_id'])

    # ==========================================================================
    # form_submission_events
    # ==========================================================================
    op.create_table(
        'form_submission_events',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('submission_id', sa.Uuid(), nullable=False),
        sa.Column('event_type', sa.String(40), nullable=False),
        sa.Column('actor_id', sa.String(255), nullable=True),
        sa.Column('actor_name', sa.String(255), nullable=True),
        sa.Column('section_id', sa.String(100), nullable=True),
        sa.Column('field_id', sa.String(200), nullable=True),
        sa.Column('payload', JSON_DOCUMENT, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(['submission_id'], ['form_submissions.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'idx_submission_events_submission', 'form_submission_events', ['submission_id', 'id']
    )


def downgrade() -> None:
    op.drop_index('idx_submission_events_submission', table_name='form_submission_events')
    op.drop_table('form_submission_events')
    op.drop_index('idx_review_comments_review', table_name='form_submission_review_comments')
    op.drop_table('form_submission_review_comments')
    op.drop_index('idx_submission_reviews_field', table_name='form_submission_reviews')
    op.drop_index('idx_submission_reviews_submission', table_name='form_submission_reviews')
    op.drop_table('form_submission_reviews')
    op.drop_index('idx_form_submissions_auditor', table_name='form_submissions')
    op.drop_index('idx_form_submissions_form_status', table_name='form_submissions')
    op.drop_index('idx_form_submissions_owner', table_name='form_submissions')
    op.drop_table('form_submissions')
