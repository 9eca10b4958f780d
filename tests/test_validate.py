"""Tests for offline dump validation."""

import json

from conftest import cols, write_dump
from db_restore.backup.models import TableDump
from db_restore.backup.validate import validate_dump
from db_restore.constants import DUMP_FORMAT_VERSION, METADATA_FILENAME


def _valid_dump(tmp_path):
    return write_dump(
        tmp_path,
        [TableDump(table="users", primary_keys=["id"], columns=cols("id"), rows=[{"id": 1}])],
    )


class TestValidateDump:
    def test_valid_dump(self, tmp_path):
        result = validate_dump(_valid_dump(tmp_path))
        assert result.valid is True
        assert result.errors == []
        assert result.warnings == []

    def test_missing_manifest(self, tmp_path):
        result = validate_dump(tmp_path / "nothing")
        assert result.valid is False
        assert METADATA_FILENAME in result.errors[0]

    def test_corrupt_manifest(self, tmp_path):
        _valid_dump(tmp_path)
        (tmp_path / METADATA_FILENAME).write_text("{not json")
        result = validate_dump(tmp_path)
        assert result.valid is False
        assert result.errors[0].startswith("Invalid manifest")

    def test_manifest_lists_missing_table_file(self, tmp_path):
        _valid_dump(tmp_path)
        (tmp_path / "users.json").unlink()
        result = validate_dump(tmp_path)
        assert result.valid is False
        assert "users.json is missing" in result.errors[0]

    def test_unlisted_table_file_is_warning(self, tmp_path):
        _valid_dump(tmp_path)
        (tmp_path / "extra.json").write_text(json.dumps({"table": "extra"}))
        result = validate_dump(tmp_path)
        assert result.valid is True
        assert result.warnings == ["Table file extra.json is not listed in the manifest"]

    def test_invalid_table_file(self, tmp_path):
        _valid_dump(tmp_path)
        (tmp_path / "users.json").write_text(json.dumps({"rows": "nope"}))
        result = validate_dump(tmp_path)
        assert result.valid is False
        assert "Invalid table file users.json" in result.errors[0]

    def test_table_name_mismatch(self, tmp_path):
        _valid_dump(tmp_path)
        (tmp_path / "users.json").write_text(json.dumps({"table": "people"}))
        result = validate_dump(tmp_path)
        assert result.errors == ["users.json declares table 'people'"]

    def test_row_with_undeclared_column(self, tmp_path):
        write_dump(
            tmp_path,
            [TableDump(table="users", columns=cols("id"), rows=[{"id": 1}, {"id": 2, "x": 1}])],
        )
        result = validate_dump(tmp_path)
        assert result.errors == ["users row 1 has undeclared columns: x"]

    def test_newer_version_is_warning(self, tmp_path):
        write_dump(tmp_path, [TableDump(table="t")], version=DUMP_FORMAT_VERSION + 1)
        result = validate_dump(tmp_path)
        assert result.valid is True
        assert "newer than supported" in result.warnings[0]
