"""
HARBOR Application Settings

Production-grade configuration management using Pydantic Settings.
All values can be overridden from environment variables.

SECURITY: Never log or expose settings containing secrets.

NOTE: Text-based and answer-based scoring thresholds are separate
settings groups. They share defaults but are tuned independently.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from harbor.domain.models.risk import ScoreThresholds


class DatabaseSettings(BaseSettings):
    """PostgreSQL database configuration."""

    model_config = SettingsConfigDict(env_prefix="HARBOR_DB_")

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    name: str = Field(default="harbor_db", description="Database name")
    user: str = Field(default="harbor_user", description="Database user")
    password: SecretStr = Field(default=SecretStr("dev_password"), description="Database password")
    pool_size: int = Field(default=5, ge=1, le=100, description="Connection pool size")
    max_overflow: int = Field(default=10, ge=0, le=100, description="Max overflow connections")

    @property
    def async_url(self) -> str:
        """Generate async database URL for SQLAlchemy."""
        password = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{password}@{self.host}:{self.port}/{self.name}"

    @property
    def sync_url(self) -> str:
        """Generate sync database URL for Alembic migrations."""
        password = self.password.get_secret_value()
        return f"postgresql://{self.user}:{password}@{self.host}:{self.port}/{self.name}"


class ScoringSettings(BaseSettings):
    """Risk scoring thresholds for free text and structured answers."""

    model_config = SettingsConfigDict(env_prefix="HARBOR_SCORING_")

    # Free-text phrase scoring
    text_critical: float = Field(default=30.0, ge=0)
    text_high: float = Field(default=20.0, ge=0)
    text_moderate: float = Field(default=10.0, ge=0)
    text_low: float = Field(default=1.0, ge=0)
    text_low_tier_matches: int = Field(default=3, ge=1)

    # Structured assessment answers
    answers_critical: float = Field(default=30.0, ge=0)
    answers_high: float = Field(default=20.0, ge=0)
    answers_moderate: float = Field(default=10.0, ge=0)
    answers_low: float = Field(default=1.0, ge=0)
    answers_critical_factor_count: int = Field(default=3, ge=1)
    plan_with_means_bonus: float = Field(default=25.0, ge=0)

    def text_thresholds(self) -> ScoreThresholds:
        """Thresholds applied to phrase-matched scores."""
        return ScoreThresholds(
            critical=self.text_critical,
            high=self.text_high,
            moderate=self.text_moderate,
            low=self.text_low,
            low_tier_matches=self.text_low_tier_matches,
        )

    def answer_thresholds(self) -> ScoreThresholds:
        """Thresholds applied to structured-answer scores."""
        return ScoreThresholds(
            critical=self.answers_critical,
            high=self.answers_high,
            moderate=self.answers_moderate,
            low=self.answers_low,
            critical_factor_count=self.answers_critical_factor_count,
            combination_bonus=self.plan_with_means_bonus,
        )


class SessionSettings(BaseSettings):
    """Crisis session timing configuration (all values in seconds)."""

    model_config = SettingsConfigDict(env_prefix="HARBOR_SESSION_")

    queue_update_interval: float = Field(default=30.0, gt=0)
    queue_wait_per_position: float = Field(default=30.0, gt=0)
    queue_start_position: int = Field(default=3, ge=1, le=50)
    assignment_delay: float = Field(default=2.0, ge=0)
    welcome_delay: float = Field(default=1.0, ge=0)
    typing_auto_stop: float = Field(default=30.0, gt=0)
    inactivity_timeout: float = Field(default=900.0, gt=0)
    reply_delay_cap: float = Field(default=10.0, gt=0)
    reply_delay_per_char: float = Field(default=0.02, ge=0)
    follow_up_delay: float = Field(default=3.0, ge=0)


class EscalationSettings(BaseSettings):
    """Escalation coordinator configuration."""

    model_config = SettingsConfigDict(env_prefix="HARBOR_ESCALATION_")

    dedup_window_seconds: float = Field(default=30.0, ge=0)
    dispatch_delay: float = Field(default=1.0, ge=0)
    handoff_delay: float = Field(default=3.0, ge=0)
    handoff_consecutive_high: int = Field(default=2, ge=1)


class PersistenceSettings(BaseSettings):
    """Local buffering and replay configuration."""

    model_config = SettingsConfigDict(env_prefix="HARBOR_PERSISTENCE_")

    backend: Literal["memory", "database"] = Field(default="memory")
    max_buffered_assessments: int = Field(default=50, ge=1)
    max_buffered_interactions: int = Field(default=100, ge=1)
    retry_attempts: int = Field(default=3, ge=1, le=10)
    retry_min_wait: float = Field(default=0.5, ge=0)
    retry_max_wait: float = Field(default=8.0, ge=0)


class MonitoringSettings(BaseSettings):
    """Error tracking configuration."""

    model_config = SettingsConfigDict(env_prefix="HARBOR_")

    sentry_dsn: SecretStr = Field(default=SecretStr(""), description="Sentry DSN")
    sentry_traces_sample_rate: float = Field(default=0.1, ge=0.0, le=1.0)


class Settings(BaseSettings):
    """
    Main application settings.

    All configuration is loaded from environment variables with HARBOR_ prefix.
    Sensitive values use SecretStr to prevent accidental logging.

    Usage:
        settings = get_settings()
        window = settings.escalation.dedup_window_seconds
    """

    model_config = SettingsConfigDict(
        env_prefix="HARBOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    env: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment"
    )
    debug: bool = Field(default=False, description="Debug mode - NEVER enable in production")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level"
    )
    api_version: str = Field(default="v1", description="API version prefix")
    cors_origins: list[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins"
    )
    resources_file: str | None = Field(
        default=None,
        description="Optional JSON file with additional crisis resources"
    )

    # Nested settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    scoring: ScoringSettings = Field(default_factory=ScoringSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    escalation: EscalationSettings = Field(default_factory=EscalationSettings)
    persistence: PersistenceSettings = Field(default_factory=PersistenceSettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.env == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses LRU cache to ensure settings are only loaded once.
    For testing, construct Settings directly and inject it.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
