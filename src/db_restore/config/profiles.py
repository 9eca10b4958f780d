"""JSON profile store.

One ``<name>.json`` file per profile in ``$DB_RESTORE_CONFIG_DIR``, or
``~/.config/db-restore/profiles`` when the variable is unset.

Usage:
    from db_restore.config.profiles import load_profile, save_profile

    save_profile(DatabaseProfile(name="dev", provider="sqlite", path="dev.db"))
    profile = load_profile("dev")
"""

import json
import logging
import os
from pathlib import Path

from db_restore.config.models import DatabaseProfile
from db_restore.errors import ProfileNotFoundError

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV = "DB_RESTORE_CONFIG_DIR"


def get_profiles_dir(config_dir: str | Path | None = None) -> Path:
    """Resolve the profile directory.

    Priority:
    1. ``config_dir`` argument
    2. ``DB_RESTORE_CONFIG_DIR`` env var
    3. ``~/.config/db-restore/profiles``
    """
    if config_dir is not None:
        return Path(config_dir)
    env_dir = os.environ.get(CONFIG_DIR_ENV)
    if env_dir:
        return Path(env_dir)
    return Path.home() / ".config" / "db-restore" / "profiles"


def _profile_path(name: str, config_dir: str | Path | None) -> Path:
    return get_profiles_dir(config_dir) / f"{name}.json"


def save_profile(profile: DatabaseProfile, config_dir: str | Path | None = None) -> Path:
    """Write ``profile``, replacing an existing profile with the same name.

    Returns:
        Path of the profile file.
    """
    path = _profile_path(profile.name, config_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(profile.model_dump(exclude_none=True), f, indent=2)
    logger.debug("Saved profile %s to %s", profile.name, path)
    return path


def load_profile(name: str, config_dir: str | Path | None = None) -> DatabaseProfile:
    """Load a profile by name.

    Raises:
        ProfileNotFoundError: If no profile file exists for ``name``.
        pydantic.ValidationError: If the file does not describe a valid profile.
    """
    path = _profile_path(name, config_dir)
    if not path.is_file():
        raise ProfileNotFoundError(f'Profile "{name}" not found')
    with open(path, "r", encoding="utf-8") as f:
        return DatabaseProfile.model_validate(json.load(f))


def list_profiles(config_dir: str | Path | None = None) -> list[DatabaseProfile]:
    """All saved profiles sorted by name.  Empty if the directory is missing."""
    directory = get_profiles_dir(config_dir)
    if not directory.is_dir():
        return []

    profiles = []
    for path in sorted(directory.glob("*.json")):
        with open(path, "r", encoding="utf-8") as f:
            profiles.append(DatabaseProfile.model_validate(json.load(f)))
    return sorted(profiles, key=lambda p: p.name)


def delete_profile(name: str, config_dir: str | Path | None = None) -> None:
    """Delete a profile.

    Raises:
        ProfileNotFoundError: If no profile file exists for ``name``.
    """
    path = _profile_path(name, config_dir)
    if not path.is_file():
        raise ProfileNotFoundError(f'Profile "{name}" not found')
    path.unlink()


def profile_exists(name: str, config_dir: str | Path | None = None) -> bool:
    return _profile_path(name, config_dir).is_file()
