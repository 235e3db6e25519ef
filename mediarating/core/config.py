"""
Application configuration settings.
"""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Self


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Media Rating API"
    APP_VERSION: str = "0.1.0"
    ENV: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # API
    API_V1_PREFIX: str = "/v1"

    # CORS
    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
    ]

    # Security
    # Admin tokens are issued by the auth service; this service only verifies them.
    JWT_SECRET_KEY: str = Field(..., description="JWT signing secret key (required)")
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # Respondent links are built as {FRONTEND_URL}/test/{token}
    FRONTEND_URL: str = "http://localhost:5173"

    # Activity log pagination
    ACTIVITY_LOG_DEFAULT_LIMIT: int = Field(default=50, ge=1)
    ACTIVITY_LOG_MAX_LIMIT: int = Field(default=200, ge=1)

    # Sentry Error Tracking
    SENTRY_DSN: str = Field(
        default="",
        description="Sentry DSN for error tracking (leave empty to disable)",
    )
    SENTRY_TRACES_SAMPLE_RATE: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Sentry traces sample rate (0.0-1.0, 0.1 = 10% of transactions)",
    )

    # Prometheus metrics endpoint
    PROMETHEUS_METRICS_ENABLED: bool = False

    # Invitation e-mail
    INVITATION_EMAILS_ENABLED: bool = True
    SMTP_HOST: str = Field(
        default="",
        description="SMTP server hostname (leave empty to log invitation links instead)",
    )
    SMTP_PORT: int = Field(
        default=587,
        description="SMTP server port (587 for TLS, 465 for SSL)",
    )
    SMTP_USERNAME: str = ""
    SMTP_PASSWORD: str = Field(default="", repr=False)
    SMTP_FROM_EMAIL: str = "noreply@mediarating.local"
    SMTP_FROM_NAME: str = "Media Rating Surveys"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",  # Ignore extra fields from .env not defined in Settings
    )

    @model_validator(mode="after")
    def validate_activity_log_limits(self) -> Self:
        """The default page size must fit under the hard cap."""
        if self.ACTIVITY_LOG_DEFAULT_LIMIT > self.ACTIVITY_LOG_MAX_LIMIT:
            raise ValueError(
                "ACTIVITY_LOG_DEFAULT_LIMIT must not exceed ACTIVITY_LOG_MAX_LIMIT, "
                f"got {self.ACTIVITY_LOG_DEFAULT_LIMIT} > {self.ACTIVITY_LOG_MAX_LIMIT}"
            )
        return self


# mypy doesn't understand that pydantic_settings loads required fields from env vars
settings = Settings()  # type: ignore[call-arg]
