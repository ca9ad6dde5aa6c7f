"""Custom SQLAlchemy types shared by the models."""

from __future__ import annotations

from sqlalchemy import JSON
from sqlalchemy.dialects.postgresql import JSONB

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests and local dev).
JSONDocument = JSON().with_variant(JSONB(), "postgresql")
