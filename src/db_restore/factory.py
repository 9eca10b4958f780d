"""Provider factory.

Turns a saved ``DatabaseProfile`` into a connected-ready provider.  Profiles
never hold passwords; they come from ``DB_RESTORE_PASSWORD`` or a prompt.

Usage:
    profile = load_profile("dev")
    provider = create_provider(profile, password=resolve_password(profile))
    async with provider:
        result = await perform_dump(provider, profile.provider, "./db-backup")
"""

import logging
import os

from sqlalchemy.engine import URL

from db_restore.config.models import DatabaseProfile
from db_restore.providers.mysql import MysqlProvider
from db_restore.providers.postgres import PostgresProvider
from db_restore.providers.sql import SQLAlchemyProvider
from db_restore.providers.sqlite import SqliteProvider

logger = logging.getLogger(__name__)

PASSWORD_ENV = "DB_RESTORE_PASSWORD"

_DRIVERS = {
    "postgres": "postgresql+asyncpg",
    "mysql": "mysql+aiomysql",
}


# ============================================================================
# Password resolution
# ============================================================================


def resolve_password(profile: DatabaseProfile) -> str | None:
    """Password for ``profile`` from the environment.

    Returns:
        ``DB_RESTORE_PASSWORD`` for server providers, ``None`` when unset or
        for sqlite.
    """
    if not profile.is_server:
        return None
    return os.environ.get(PASSWORD_ENV)


def build_url(profile: DatabaseProfile, password: str | None = None) -> URL:
    """SQLAlchemy URL for a server profile.  Special characters are escaped."""
    return URL.create(
        _DRIVERS[profile.provider],
        username=profile.user,
        password=password or None,
        host=profile.host,
        port=profile.port,
        database=profile.database,
    )


# ============================================================================
# Provider Factory
# ============================================================================


def create_provider(profile: DatabaseProfile, password: str | None = None) -> SQLAlchemyProvider:
    """Create the provider for ``profile.provider``.

    No connection is opened; use the provider as an async context manager
    or call ``connect()``.

    Args:
        profile: Connection profile.
        password: Password for server providers.  Ignored for sqlite.

    Returns:
        Provider implementing ``DatabaseProvider``.

    Raises:
        ValueError: If the provider name is unknown.

    Example:
        >>> profile = DatabaseProfile(name="dev", provider="sqlite", path="dev.db")
        >>> type(create_provider(profile)).__name__
        'SqliteProvider'
    """
    logger.debug("Creating %s provider for profile %s", profile.provider, profile.name)

    if profile.provider == "sqlite":
        return SqliteProvider(profile.path)
    if profile.provider == "postgres":
        return PostgresProvider(build_url(profile, password))
    if profile.provider == "mysql":
        return MysqlProvider(build_url(profile, password))

    raise ValueError(f"Unknown provider: {profile.provider}")


async def check_connection(profile: DatabaseProfile, password: str | None = None) -> None:
    """Open and close a connection to ``profile``.

    Raises:
        ProviderConnectionError: If the database cannot be reached.
    """
    provider = create_provider(profile, password)
    try:
        await provider.connect()
    finally:
        await provider.close()
