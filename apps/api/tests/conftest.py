"""
Test configuration and fixtures.

Provides:
- In-memory SQLite database per test (schema created from the models)
- Recording email sender installed in place of the configured provider
- Actors for the client and the auditor
- HTTPX AsyncClient wired to the app with get_db overridden
"""
from typing import AsyncGenerator, Callable, Generator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from auditflow.core.config import settings
from auditflow.core.deps import get_db
from auditflow.db.base import Base
import auditflow.db.models  # noqa: F401
from auditflow.main import app
from auditflow.schemas.auth import Actor
from auditflow.schemas.forms import FormDefinition, SubmissionCreate
from auditflow.schemas.notifications import EmailMessage
from auditflow.services import form_notification_service, submission_service
from auditflow.services.answer_keys import (
    choice_justification_key,
    conditional_key,
    detail_key,
    justification_key,
    table_cell_key,
)


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def db(engine) -> Generator[Session, None, None]:
    """Session on a fresh in-memory database; app code may commit freely."""
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    yield session
    session.close()


# =============================================================================
# Notification Fixtures
# =============================================================================

class RecordingEmailSender:
    key = "recording"

    def __init__(self) -> None:
        self.sent: list[EmailMessage] = []

    async def send(self, message: EmailMessage) -> None:
        self.sent.append(message)

    @property
    def recipients(self) -> list[str]:
        return [m.to for m in self.sent]


@pytest.fixture(autouse=True)
def email_sender(monkeypatch: pytest.MonkeyPatch) -> RecordingEmailSender:
    """Every test gets a recording sender; nothing leaves the process."""
    sender = RecordingEmailSender()
    monkeypatch.setattr(form_notification_service, "get_email_sender", lambda: sender)
    monkeypatch.setattr(settings, "NOTIFICATIONS_ENABLED", True)
    monkeypatch.setattr(settings, "ADMIN_NOTIFICATION_EMAILS", "admin@auditflow.test")
    monkeypatch.setattr(settings, "FRONTEND_URL", "https://app.auditflow.test")
    return sender


# =============================================================================
# Actors and submissions
# =============================================================================

@pytest.fixture
def client_actor() -> Actor:
    return Actor(user_id="client-1", name="Ada Client")


@pytest.fixture
def auditor() -> Actor:
    return Actor(user_id="auditor-1", name="Ngozi Auditor", avatar_ref="avatars/ngozi.png")


@pytest.fixture
def make_submission(db: Session, client_actor: Actor) -> Callable[..., object]:
    def _make(form_id: str = "car", **overrides):
        data = {
            "form_id": form_id,
            "owner_id": client_actor.user_id,
            "owner_name": "Acme Holdings",
            "owner_email": "owner@acme.test",
            "assigned_auditor_id": "auditor-1",
            "assigned_auditor_name": "Ngozi Auditor",
            "assigned_auditor_email": "ngozi@auditflow.test",
        }
        data.update(overrides)
        return submission_service.create_submission(db, SubmissionCreate(**data), actor=client_actor)

    return _make


def build_complete_answers(definition: FormDefinition) -> dict[str, object]:
    """Answers that complete every question a respondent can complete."""
    answers: dict[str, object] = {}
    for section in definition.form_sections:
        for q in section.questions:
            if q.type in ("text", "longText"):
                answers[q.id] = f"Answer for {q.id}"
            elif q.type == "yesNo":
                answers[q.id] = "yes"
            elif q.type == "yesNoWithDetail":
                answers[q.id] = "yes"
                if q.reveal_for("yes") is not None:
                    answers[detail_key(q)] = "REG-0001"
            elif q.type == "roleChoice":
                answers[q.id] = "staff"
            elif q.type in ("checkboxSet", "multiSelect"):
                answers[q.options[0].id] = True
            elif q.type == "singleChoice":
                choice = q.options[0].id
                answers[q.id] = choice
                rule = q.reveal_for(choice)
                if rule is not None and rule.kind == "multiSelect":
                    answers[rule.options[0].id] = True
                elif rule is not None:
                    answers[conditional_key(q, choice)] = "32"
            elif q.type == "fileUpload":
                answers[q.id] = {"name": f"{q.id}.pdf", "url": f"https://files.test/{q.id}.pdf"}
            elif q.type == "table":
                column = next(c for c in q.table_columns if not c.is_row_index)
                answers[table_cell_key(q, 0, column)] = True if column.kind == "checkbox" else "GDPR Masterclass"
            elif q.type == "choiceWithJustification":
                choice = q.options[0].id
                answers[q.id] = choice
                answers[choice_justification_key(q, choice)] = "Justified by the evidence provided."
            elif q.type == "checkboxSetWithJustification":
                answers[q.options[0].id] = True
                answers[justification_key(q)] = "Annual review matches the processing risk."
    return answers


@pytest.fixture
def complete_answers() -> Callable[[FormDefinition], dict[str, object]]:
    return build_complete_answers


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture(scope="function")
async def client(db: Session) -> AsyncGenerator[AsyncClient, None]:
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
