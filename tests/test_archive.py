"""Tests for archiving a previous dump."""

import tarfile

from conftest import write_dump
from db_restore.backup.archive import archive_dump
from db_restore.backup.files import dump_exists
from db_restore.backup.models import TableDump
from db_restore.constants import METADATA_FILENAME


class TestArchiveDump:
    def test_packs_json_and_removes_originals(self, tmp_path):
        write_dump(tmp_path, [TableDump(table="users"), TableDump(table="orders")])

        archive_path = archive_dump(tmp_path)

        assert archive_path.parent == tmp_path
        assert archive_path.name.startswith("archive-")
        assert archive_path.name.endswith(".tar.gz")
        with tarfile.open(archive_path, "r:gz") as tar:
            assert sorted(tar.getnames()) == sorted(
                ["users.json", "orders.json", METADATA_FILENAME]
            )
        assert list(tmp_path.glob("*.json")) == []
        assert dump_exists(tmp_path) is False

    def test_previous_archives_left_alone(self, tmp_path):
        write_dump(tmp_path, [TableDump(table="users")])
        first = archive_dump(tmp_path)
        write_dump(tmp_path, [TableDump(table="users")])

        second = archive_dump(tmp_path)

        assert first != second
        assert first.exists() and second.exists()
        with tarfile.open(second, "r:gz") as tar:
            assert "users.json" in tar.getnames()
