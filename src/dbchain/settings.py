"""Settings for dbchain.

``DbChainSettings`` reads connection and logging configuration from
``DBCHAIN_*`` environment variables or a ``.env`` file.

Examples:
    >>> import os
    >>> os.environ["DBCHAIN_DATABASE_URL"] = "postgresql://app@localhost/app"
    >>> os.environ["DBCHAIN_CACHE_CONNECTION"] = "true"
    >>> from dbchain.connection import connection_source_from_settings
    >>> source = connection_source_from_settings()

Tags:
    settings, configuration, pydantic, environment, dbchain
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from dbchain.logging import configure_logging


class DbChainSettings(BaseSettings):
    """Connection and logging settings.

    Fields
    ──────
    database_url     : URL, file path or ``memory`` (see ``dbchain.connection``)
    cache_connection : Reuse a single connection for every run
    echo             : Log all SQL issued through SQLAlchemy engines
    pool_size        : Engine pool size (non-SQLite only)
    max_overflow     : Engine pool overflow (non-SQLite only)
    pool_timeout     : Seconds to wait for a pooled connection
    log_level        : Structlog log level
    log_json         : JSON logs; unset means auto-detect from the TTY
    """

    model_config = SettingsConfigDict(
        env_prefix="DBCHAIN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Connection ───────────────────────────────────────────────
    database_url: str = "sqlite:///:memory:"
    cache_connection: bool = False

    # ── Engine ───────────────────────────────────────────────────
    echo: bool = False
    pool_size: int | None = Field(default=None, ge=1)
    max_overflow: int | None = Field(default=None, ge=0)
    pool_timeout: int | None = Field(default=None, ge=0)

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool | None = None

    def engine_options(self) -> dict[str, object]:
        """Keyword arguments for ``dbchain.sources.create_engine``."""
        return {
            "echo": self.echo,
            "pool_size": self.pool_size,
            "max_overflow": self.max_overflow,
            "pool_timeout": self.pool_timeout,
        }

    def apply_logging(self, service: str = "dbchain") -> None:
        """Configure structlog from ``log_level`` and ``log_json``."""
        configure_logging(level=self.log_level, json_format=self.log_json, service=service)
