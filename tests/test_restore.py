"""Tests for the restore engine using a mock provider.

Covers strategy selection, column drift reconciliation, batching, sequence
realignment and foreign key enforcement bookkeeping.
"""

import pytest

from conftest import cols, make_mock_provider, write_dump
from db_restore.backup.models import TableDump
from db_restore.backup.restore import perform_restore
from db_restore.constants import DUMP_FORMAT_VERSION
from db_restore.errors import DumpNotFoundError, WriteError
from db_restore.schema.models import Column


def _users_dump(rows=None) -> TableDump:
    return TableDump(
        table="users",
        primary_keys=["id"],
        columns=cols("id", "name"),
        rows=rows if rows is not None else [{"id": 1, "name": "Alice"}, {"id": 2, "name": "Bob"}],
    )


def _call_names(provider) -> list[str]:
    return [c[0] for c in provider.mock_calls]


# ------------------------------------------------------------------
# Strategy selection
# ------------------------------------------------------------------


class TestStrategy:
    async def test_upsert_when_live_table_has_primary_key(self, tmp_path):
        write_dump(tmp_path, [_users_dump()])
        provider = make_mock_provider(
            {"users": {"columns": cols("id", "name"), "primary_keys": ["id"]}}
        )

        result = await perform_restore(provider, tmp_path)

        provider.truncate.assert_not_awaited()
        provider.upsert.assert_awaited_once_with(
            "users",
            cols("id", "name"),
            ["id"],
            [{"id": 1, "name": "Alice"}, {"id": 2, "name": "Bob"}],
        )
        assert [(t.table, t.row_count, t.strategy) for t in result.tables] == [
            ("users", 2, "upsert")
        ]
        assert result.total_rows == 2
        assert result.warnings == []

    async def test_truncate_when_live_table_has_no_primary_key(self, tmp_path):
        write_dump(
            tmp_path,
            [TableDump(table="logs", columns=cols("msg"), rows=[{"msg": "a"}, {"msg": "b"}])],
        )
        provider = make_mock_provider({"logs": {"columns": cols("msg")}})

        result = await perform_restore(provider, tmp_path)

        provider.truncate.assert_awaited_once_with("logs")
        provider.upsert.assert_awaited_once_with("logs", cols("msg"), [], [{"msg": "a"}, {"msg": "b"}])
        assert result.tables[0].strategy == "truncate"
        assert result.warnings == [
            'Table "logs" has no primary key — using TRUNCATE + INSERT instead of UPSERT'
        ]
        # Truncate happens before the insert
        names = _call_names(provider)
        assert names.index("truncate") < names.index("upsert")

    async def test_strategy_follows_live_table_not_dump(self, tmp_path):
        # Dump recorded a key, the live table lost it
        write_dump(tmp_path, [_users_dump()])
        provider = make_mock_provider({"users": {"columns": cols("id", "name")}})

        result = await perform_restore(provider, tmp_path)

        assert result.tables[0].strategy == "truncate"

    async def test_empty_table_dump_still_truncates_keyless_table(self, tmp_path):
        write_dump(tmp_path, [TableDump(table="logs", columns=cols("msg"), rows=[])])
        provider = make_mock_provider({"logs": {"columns": cols("msg")}})

        result = await perform_restore(provider, tmp_path)

        provider.truncate.assert_awaited_once_with("logs")
        provider.upsert.assert_not_awaited()
        assert result.tables[0].row_count == 0


# ------------------------------------------------------------------
# Schema drift
# ------------------------------------------------------------------


class TestDrift:
    async def test_removed_and_new_columns_warn_and_project(self, tmp_path):
        write_dump(
            tmp_path,
            [
                TableDump(
                    table="users",
                    primary_keys=["id"],
                    columns=cols("id", "name", "email"),
                    rows=[{"id": 1, "name": "Alice", "email": "a@x.io"}],
                )
            ],
        )
        provider = make_mock_provider(
            {"users": {"columns": cols("id", "name", "avatar"), "primary_keys": ["id"]}}
        )

        result = await perform_restore(provider, tmp_path)

        assert result.warnings == [
            'Skipping removed column "email" in table "users"',
            'New column "avatar" in table "users" will use DB default',
        ]
        table, columns, pks, rows = provider.upsert.await_args.args
        assert [c.name for c in columns] == ["id", "name"]
        assert rows == [{"id": 1, "name": "Alice"}]

    async def test_live_column_types_passed_to_provider(self, tmp_path):
        write_dump(tmp_path, [_users_dump()])
        live = [Column(name="id", type="bigint"), Column(name="name", type="text")]
        provider = make_mock_provider({"users": {"columns": live, "primary_keys": ["id"]}})

        await perform_restore(provider, tmp_path)

        assert provider.upsert.await_args.args[1] == live

    async def test_missing_values_become_none(self, tmp_path):
        write_dump(tmp_path, [_users_dump(rows=[{"id": 1}])])
        provider = make_mock_provider(
            {"users": {"columns": cols("id", "name"), "primary_keys": ["id"]}}
        )

        await perform_restore(provider, tmp_path)

        assert provider.upsert.await_args.args[3] == [{"id": 1, "name": None}]

    async def test_table_missing_from_database_skipped(self, tmp_path):
        write_dump(tmp_path, [_users_dump(), TableDump(table="ghost", columns=cols("id"))])
        provider = make_mock_provider(
            {"users": {"columns": cols("id", "name"), "primary_keys": ["id"]}}
        )

        result = await perform_restore(provider, tmp_path)

        assert [t.table for t in result.tables] == ["users"]
        assert 'Table "ghost" from dump does not exist in database — skipped' in result.warnings
        provider.reset_sequences.assert_awaited_once_with("users")

    async def test_no_shared_columns_still_truncates_and_records(self, tmp_path):
        write_dump(
            tmp_path,
            [TableDump(table="logs", columns=cols("old"), rows=[{"old": "a"}])],
        )
        provider = make_mock_provider({"logs": {"columns": cols("newcol")}})

        result = await perform_restore(provider, tmp_path)

        provider.truncate.assert_awaited_once_with("logs")
        assert [(t.table, t.row_count, t.strategy) for t in result.tables] == [
            ("logs", 1, "truncate")
        ]
        assert result.total_rows == 1
        provider.reset_sequences.assert_awaited_once_with("logs")
        assert 'Skipping removed column "old" in table "logs"' in result.warnings
        assert 'New column "newcol" in table "logs" will use DB default' in result.warnings

    async def test_drift_summary_logged_at_debug(self, tmp_path, caplog):
        write_dump(tmp_path, [_users_dump()])
        provider = make_mock_provider(
            {"users": {"columns": cols("id", "email"), "primary_keys": ["id"]}}
        )

        with caplog.at_level("DEBUG", logger="db_restore.backup.restore"):
            await perform_restore(provider, tmp_path)

        assert "users: 1 dropped, 1 added columns" in caplog.text

    async def test_wrapped_values_decoded_before_write(self, tmp_path):
        write_dump(
            tmp_path,
            [
                TableDump(
                    table="blobs",
                    primary_keys=["id"],
                    columns=cols("id", "data"),
                    rows=[
                        {
                            "id": {"__type": "bigint", "value": "9007199254740993"},
                            "data": {"__type": "bytes", "value": "aGk="},
                        }
                    ],
                )
            ],
        )
        provider = make_mock_provider({"blobs": {"columns": cols("id", "data"), "primary_keys": ["id"]}})

        await perform_restore(provider, tmp_path)

        assert provider.upsert.await_args.args[3] == [{"id": 9007199254740993, "data": b"hi"}]


# ------------------------------------------------------------------
# Batching
# ------------------------------------------------------------------


class TestBatching:
    async def test_1001_rows_written_as_500_500_1(self, tmp_path):
        rows = [{"id": i, "name": f"u{i}"} for i in range(1001)]
        write_dump(tmp_path, [_users_dump(rows=rows)])
        provider = make_mock_provider(
            {"users": {"columns": cols("id", "name"), "primary_keys": ["id"]}}
        )

        result = await perform_restore(provider, tmp_path)

        batches = [call.args[3] for call in provider.upsert.await_args_list]
        assert [len(b) for b in batches] == [500, 500, 1]
        assert [r["id"] for b in batches for r in b] == list(range(1001))
        assert result.total_rows == 1001


# ------------------------------------------------------------------
# Session bookkeeping
# ------------------------------------------------------------------


class TestForeignKeysAndSequences:
    async def test_fk_disabled_first_and_enabled_last(self, tmp_path):
        write_dump(tmp_path, [_users_dump()])
        provider = make_mock_provider(
            {"users": {"columns": cols("id", "name"), "primary_keys": ["id"]}}
        )

        await perform_restore(provider, tmp_path)

        names = _call_names(provider)
        assert names[0] == "disable_foreign_key_enforcement"
        assert names[-1] == "enable_foreign_key_enforcement"
        assert names.index("upsert") < names.index("reset_sequences")

    async def test_fk_reenabled_when_write_fails(self, tmp_path):
        write_dump(tmp_path, [_users_dump()])
        provider = make_mock_provider(
            {"users": {"columns": cols("id", "name"), "primary_keys": ["id"]}}
        )
        provider.upsert.side_effect = WriteError("Failed writing rows to users: boom")

        with pytest.raises(WriteError):
            await perform_restore(provider, tmp_path)

        provider.enable_foreign_key_enforcement.assert_awaited_once()
        provider.reset_sequences.assert_not_awaited()

    async def test_tables_restored_in_file_name_order(self, tmp_path):
        write_dump(
            tmp_path,
            [
                TableDump(table="zebra", primary_keys=["id"], columns=cols("id"), rows=[{"id": 1}]),
                TableDump(table="apple", primary_keys=["id"], columns=cols("id"), rows=[{"id": 1}]),
            ],
        )
        provider = make_mock_provider(
            {
                "zebra": {"columns": cols("id"), "primary_keys": ["id"]},
                "apple": {"columns": cols("id"), "primary_keys": ["id"]},
            }
        )

        result = await perform_restore(provider, tmp_path)

        assert [t.table for t in result.tables] == ["apple", "zebra"]
        assert [c.args[0] for c in provider.reset_sequences.await_args_list] == ["apple", "zebra"]


# ------------------------------------------------------------------
# Dump directory checks
# ------------------------------------------------------------------


class TestDumpDirectory:
    async def test_missing_manifest_raises(self, tmp_path):
        write_dump(tmp_path, [_users_dump()], with_metadata=False)
        provider = make_mock_provider({})

        with pytest.raises(DumpNotFoundError):
            await perform_restore(provider, tmp_path)

        provider.disable_foreign_key_enforcement.assert_not_awaited()

    async def test_newer_format_version_warns_and_proceeds(self, tmp_path):
        write_dump(tmp_path, [_users_dump()], version=DUMP_FORMAT_VERSION + 1)
        provider = make_mock_provider(
            {"users": {"columns": cols("id", "name"), "primary_keys": ["id"]}}
        )

        result = await perform_restore(provider, tmp_path)

        assert len(result.tables) == 1
        assert "newer than supported" in result.warnings[0]
