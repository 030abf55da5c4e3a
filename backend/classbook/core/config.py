# backend/classbook/core/config.py
import logging
import os
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    environment: Literal["development", "test", "staging", "production"] = Field(
        default="development", description="Deployment environment"
    )
    log_level: str = Field(default="INFO", description="Root log level for the app")

    # Store
    database_url: str = Field(
        default="sqlite:///./classbook.db",
        description="SQLAlchemy URL for the relational store",
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements")
    pool_size: int = Field(default=5, ge=1)
    max_overflow: int = Field(default=10, ge=0)
    # Fail fast when the pool is exhausted instead of queueing requests
    pool_timeout: int = Field(default=2, ge=1, description="Seconds to wait for a connection")
    pool_recycle: int = Field(default=300, ge=-1)
    statement_timeout_ms: int = Field(
        default=15000,
        ge=100,
        description="Per-statement timeout (Postgres) / busy timeout (SQLite)",
    )
    connect_timeout_seconds: int = Field(default=5, ge=1)
    db_retry_attempts: int = Field(
        default=3, ge=1, description="Attempts for idempotent reads on transient failures"
    )

    # Scheduling rules
    class_overlap_scope: Literal["studio", "instructor"] = Field(
        default="studio",
        description=(
            "Which classes an updated class is checked against: every active class on "
            "the day ('studio') or only the same instructor's ('instructor')"
        ),
    )
    min_class_duration_minutes: int = Field(default=15, ge=1)
    max_class_duration_minutes: int = Field(default=480, ge=1)
    max_page_size: int = Field(default=100, ge=1)

    model_config = SettingsConfigDict(
        env_prefix="CLASSBOOK_",
        env_file=".env" if not os.getenv("CI") else None,
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @model_validator(mode="after")
    def check_duration_bounds(self) -> "Settings":
        if self.min_class_duration_minutes > self.max_class_duration_minutes:
            raise ValueError("min_class_duration_minutes cannot exceed max_class_duration_minutes")
        return self

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


settings = Settings()
logger.debug(
    "[CONFIG] environment=%s database=%s overlap_scope=%s",
    settings.environment,
    "sqlite" if settings.is_sqlite else "postgresql",
    settings.class_overlap_scope,
)
