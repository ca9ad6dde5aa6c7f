"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from auditflow.core.config import settings
from auditflow.db.session import engine
from auditflow.services import form_definition_service

# ============================================================================
# Sentry Integration (optional, for production error tracking)
# ============================================================================

if settings.SENTRY_DSN and settings.ENV != "dev":
    import sentry_sdk
    from sentry_sdk.integrations.fastapi import FastApiIntegration
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENV,
        integrations=[
            FastApiIntegration(transaction_style="endpoint"),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=0.1,
        send_default_pii=False,  # answers and comments stay out of Sentry
    )
    logging.info("Sentry initialized for error tracking")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Malformed questionnaires must stop the service before it takes traffic
    if settings.VALIDATE_FORM_DEFINITIONS_ON_STARTUP:
        form_definition_service.load_form_definitions()
    yield


# ============================================================================
# FastAPI App
# ============================================================================

app = FastAPI(
    title="AuditFlow API",
    description="Compliance-audit questionnaires, submissions and auditor review",
    version=settings.VERSION,
    docs_url="/docs" if settings.ENV == "dev" else None,
    redoc_url="/redoc" if settings.ENV == "dev" else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "X-Actor-Id", "X-Actor-Name", "X-Actor-Avatar"],
)

# ============================================================================
# Routers
# ============================================================================

from auditflow.routers import forms, submissions  # noqa: E402

app.include_router(forms.router)
app.include_router(submissions.router)


# ============================================================================
# Health Check
# ============================================================================

@app.get("/health")
def health():
    """
    Health check endpoint.

    Verifies database connectivity and returns environment info.
    """
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return {"status": "ok", "env": settings.ENV, "version": settings.VERSION}
