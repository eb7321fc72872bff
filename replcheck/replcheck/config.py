"""Checker configuration loaded from environment variables."""

from __future__ import annotations

import logging

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# Failpoint that keeps WiredTiger snapshot history around while the check runs.
PRESERVE_SNAPSHOT_FAILPOINT = "WTPreserveSnapshotHistoryIndefinitely"


class Settings(BaseSettings):
    """Checker settings loaded from environment variables with REPLCHECK_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="REPLCHECK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    debug: bool = False

    # Waiting for secondaries
    secondary_wait_timeout: float = Field(default=600.0, gt=0.0)
    replication_poll_interval: float = Field(default=0.2, gt=0.0)
    enable_majority_read_concern: bool = True
    wait_collection: str = "run_check_repl_dbhash_background"

    # Snapshot retention
    failpoint_name: str = PRESERVE_SNAPSHOT_FAILPOINT

    # Databases that cannot be read at a cluster time (or are not replicated).
    excluded_databases: list[str] = Field(default_factory=lambda: ["admin", "config", "local"])

    # Reporting
    oplog_dump_limit: int = Field(default=100, ge=0)

    # Retry loop is unbounded; this only controls how often it complains.
    retry_warning_interval: int = Field(default=1000, ge=1)

    # Logging
    structured_logging: bool = False
    log_level: str = "INFO"

    @field_validator("log_level", mode="before")
    @classmethod
    def normalise_log_level(cls, v: str) -> str:
        level = str(v).upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {v}")
        return level


def load_settings(**overrides: object) -> Settings:
    """Load settings from environment, with optional overrides for testing."""
    settings = Settings(**overrides)  # type: ignore[arg-type]

    if settings.debug:
        logger.info(
            "Loaded checker settings (wait timeout %.0fs, majority reads %s)",
            settings.secondary_wait_timeout,
            settings.enable_majority_read_concern,
        )

    return settings
