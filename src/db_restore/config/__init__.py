"""Configuration management: connection profiles and the JSON profile store.

Usage:
    >>> from db_restore.config import load_profile, save_profile, DatabaseProfile
"""

from db_restore.config.models import DatabaseProfile, ProviderName
from db_restore.config.profiles import (
    delete_profile,
    get_profiles_dir,
    list_profiles,
    load_profile,
    profile_exists,
    save_profile,
)

__all__ = [
    "DatabaseProfile",
    "ProviderName",
    "get_profiles_dir",
    "save_profile",
    "load_profile",
    "list_profiles",
    "delete_profile",
    "profile_exists",
]
