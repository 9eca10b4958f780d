"""Process-wide constants for dump and restore.

Usage:
    from db_restore.constants import EXCLUDED_TABLES, BATCH_SIZE
"""

# ORM / migration-tracking tables never included in a dump
EXCLUDED_TABLES: frozenset[str] = frozenset(
    {
        "_prisma_migrations",
        "__drizzle_migrations",
        "knex_migrations",
        "knex_migrations_lock",
        "typeorm_migrations",
        "SequelizeMeta",
        "SequelizeData",
        "mikro_orm_migrations",
        "objection_migrations",
        "_cf_KV",
        "alembic_version",
        "django_migrations",
        "schema_migrations",
    }
)

DEFAULT_DUMP_DIR = "./db-backup"
METADATA_FILENAME = "_metadata.json"
DUMP_FORMAT_VERSION = 1

# Max rows handed to a single upsert() call
BATCH_SIZE = 500

PROVIDER_DEFAULTS: dict[str, dict[str, str | int]] = {
    "postgres": {"host": "localhost", "port": 5432, "user": "postgres"},
    "mysql": {"host": "localhost", "port": 3306, "user": "root"},
}
