"""
Settings + logging for entity_store.

Environment variables (prefix ENTITY_STORE_) and an optional .env file
override the defaults.
"""

import logging
from pathlib import Path
import sys

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import structlog

from entity_store.repositories.factory import BackendType, parse_backend


class RepositorySettings(BaseSettings):
    """Backend selection and logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ENTITY_STORE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    backend: BackendType = Field(
        default=BackendType.MEMORY,
        description="Storage backend: memory, delimited-text or structured-markup",
    )
    file_path: Path | None = Field(
        default=None, description="Target file for file-backed repositories"
    )

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_json: bool = Field(default=False, description="Render logs as JSON lines")

    @field_validator("backend", mode="before")
    @classmethod
    def parse_backend_alias(cls, v):
        """Accept the same selectors and aliases as the factory."""
        if isinstance(v, str):
            return parse_backend(v)
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {v}")
        return level


def configure_structlog(settings: RepositorySettings | None = None) -> None:
    """Initialize structlog with console output, or JSON lines when log_json is set."""
    settings = settings or RepositorySettings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        stream=sys.stdout,
        force=True,
        format="%(message)s",
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
    ]
    if settings.log_json:
        processors += [
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors += [
            structlog.processors.TimeStamper(fmt="%H:%M:%S"),
            structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()),
        ]

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
