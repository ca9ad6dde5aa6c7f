"""FastAPI dependencies."""

from typing import Generator

from fastapi import Header, HTTPException
from sqlalchemy.orm import Session

from auditflow.db.session import SessionLocal
from auditflow.schemas.auth import Actor


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields a database session and ensures it's closed after the request.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_actor(
    x_actor_id: str | None = Header(default=None),
    x_actor_name: str | None = Header(default=None),
    x_actor_avatar: str | None = Header(default=None),
) -> Actor:
    """
    Acting user as asserted by the upstream identity provider.

    Authentication happens before requests reach this service; the headers are
    trusted as-is and only recorded on reviews and events.
    """
    name = (x_actor_name or "").strip()
    if not name:
        raise HTTPException(status_code=401, detail="Missing X-Actor-Name header")
    return Actor(
        user_id=(x_actor_id or "").strip() or None,
        name=name,
        avatar_ref=(x_actor_avatar or "").strip() or None,
    )
