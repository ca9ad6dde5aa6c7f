"""Application configuration with environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"

    # App Version (format: a.bc.de - major.feature.patch)
    VERSION: str = "0.01.00"

    # Database
    DATABASE_URL: str = "sqlite:///./auditflow.db"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Frontend (links in notification emails)
    FRONTEND_URL: str = "http://localhost:3000"

    # Error Tracking (optional, set in production)
    SENTRY_DSN: str = ""

    # Platform email (Resend)
    PLATFORM_RESEND_API_KEY: str = ""
    PLATFORM_EMAIL_FROM: str = ""

    # Form notifications
    NOTIFICATIONS_ENABLED: bool = True
    ADMIN_NOTIFICATION_EMAILS: str = ""  # comma-separated
    NOTIFICATION_SEND_TIMEOUT_SECONDS: float = 30.0

    # Submissions
    ANSWER_WRITE_MAX_ATTEMPTS: int = 3
    VALIDATE_FORM_DEFINITIONS_ON_STARTUP: bool = True

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS_ORIGINS into a list."""
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def admin_notification_emails_list(self) -> list[str]:
        """Parse ADMIN_NOTIFICATION_EMAILS into a lowercase list."""
        if not self.ADMIN_NOTIFICATION_EMAILS:
            return []
        return [
            e.strip().lower() for e in self.ADMIN_NOTIFICATION_EMAILS.split(",") if e.strip()
        ]

    @property
    def platform_sender_configured(self) -> bool:
        return bool(self.PLATFORM_RESEND_API_KEY and self.PLATFORM_EMAIL_FROM)


settings = Settings()
