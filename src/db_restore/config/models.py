"""Pydantic models for database connection profiles."""

from typing import Literal

from pydantic import BaseModel, model_validator

from db_restore.constants import PROVIDER_DEFAULTS

ProviderName = Literal["postgres", "mysql", "sqlite"]


# ============================================================================
# Configuration Models
# ============================================================================


class DatabaseProfile(BaseModel):
    """Named connection settings for one database.

    Server providers (``postgres``, ``mysql``) use ``host``, ``port``,
    ``database`` and ``user``; ``sqlite`` uses ``path``.  Missing host, port
    and user are filled from ``PROVIDER_DEFAULTS``.  Passwords are never
    stored.

    Example:
        >>> profile = DatabaseProfile(name="local", provider="postgres", database="app")
        >>> profile.describe()
        'postgres@localhost:5432/app'
    """

    name: str
    provider: ProviderName
    host: str | None = None
    port: int | None = None
    database: str | None = None
    user: str | None = None
    path: str | None = None

    @model_validator(mode="after")
    def _check_provider_fields(self) -> "DatabaseProfile":
        if self.provider == "sqlite":
            if not self.path:
                raise ValueError("sqlite profile requires 'path'")
            return self

        if not self.database:
            raise ValueError(f"{self.provider} profile requires 'database'")

        defaults = PROVIDER_DEFAULTS[self.provider]
        if self.host is None:
            self.host = str(defaults["host"])
        if self.port is None:
            self.port = int(defaults["port"])
        if self.user is None:
            self.user = str(defaults["user"])
        return self

    @property
    def is_server(self) -> bool:
        """Whether the provider is a network server (needs a password)."""
        return self.provider != "sqlite"

    def describe(self) -> str:
        """One-line connection summary, without the password."""
        if not self.is_server:
            return str(self.path)
        return f"{self.user}@{self.host}:{self.port}/{self.database}"
