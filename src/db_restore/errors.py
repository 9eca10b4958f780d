"""Exception hierarchy for db-restore.

Schema drift and missing primary keys are not errors -- the restore engine
records them as warnings.  Everything here is fatal for the current run and
propagates to the caller unchanged.
"""


class DbRestoreError(Exception):
    """Base class for all db-restore errors."""

    pass


class ProviderConnectionError(DbRestoreError):
    """Raised when a provider cannot establish or use its database session."""

    pass


class QueryError(DbRestoreError):
    """Raised when schema introspection or a row read fails."""

    pass


class WriteError(QueryError):
    """Raised when ``upsert``, ``truncate`` or ``reset_sequences`` fails."""

    pass


class DumpNotFoundError(DbRestoreError):
    """Raised when a dump directory has no manifest (incomplete or absent)."""

    pass


class ProfileNotFoundError(DbRestoreError):
    """Raised when a named database profile does not exist."""

    pass
