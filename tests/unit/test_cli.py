"""
Unit tests for the appdb command-line tool.
"""

import json
import logging
import tempfile
from pathlib import Path

import pytest

from appdb import init_app_db
from appdb.tools.appdb_cli import AppDbCLI, main


@pytest.fixture(autouse=True)
def restore_root_logger():
    """main() reconfigures the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


@pytest.fixture
def db_path():
    """Create an initialized database for app 'app' at version 3."""
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "app.db"
        init_app_db(path, "app", 3, ["CREATE TABLE t (x);"]).close()
        yield path


def _run(argv):
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


class TestAppDbCLI:
    """Tests for AppDbCLI commands."""

    def test_fingerprint(self):
        """fingerprint returns the packed value and its fields."""
        result = AppDbCLI().fingerprint("app", 3)
        assert result == {"fingerprint": 63861409, "app_id": 0xCE72A1, "schema_version": 3}

    def test_inspect(self, db_path):
        """inspect reads the stored fingerprint."""
        result = AppDbCLI().inspect(str(db_path))
        assert result["fingerprint"] == 63861409
        assert result["path"] == str(db_path)


class TestMain:
    """Tests for the CLI entry point."""

    def test_fingerprint_json(self, capsys):
        """fingerprint --format json prints sorted JSON."""
        assert _run(["fingerprint", "app", "3", "--format", "json"]) == 0
        out = json.loads(capsys.readouterr().out)
        assert out["fingerprint"] == 63861409
        assert out["schema_version"] == 3

    def test_fingerprint_rejects_bad_version(self, capsys):
        """Schema versions outside 0..255 are argument errors."""
        assert _run(["fingerprint", "app", "300"]) == 2
        assert "0..255" in capsys.readouterr().err

    def test_inspect_text(self, db_path, capsys):
        """inspect prints one field per line."""
        assert _run(["inspect", str(db_path)]) == 0
        out = capsys.readouterr().out
        assert "app_id: 13529761" in out
        assert "schema_version: 3" in out

    def test_check_ok(self, db_path, capsys):
        """check exits 0 on a matching database."""
        assert _run(["check", str(db_path), "--app", "app", "--schema-version", "3"]) == 0
        assert "OK" in capsys.readouterr().out

    def test_check_version_mismatch(self, db_path, capsys):
        """check exits 1 on a version mismatch."""
        assert _run(["check", str(db_path), "--app", "app", "--schema-version", "4"]) == 1
        assert "Got 3 - Expected 4" in capsys.readouterr().err

    def test_check_app_mismatch(self, db_path, capsys):
        """check exits 1 on an application mismatch."""
        assert _run(["check", str(db_path), "--app", "other", "--schema-version", "3"]) == 1
        assert "App Id" in capsys.readouterr().err

    def test_check_missing_file(self, db_path):
        """check exits 2 when the file cannot be opened."""
        missing = db_path.parent / "missing.db"
        assert _run(["check", str(missing), "--app", "app", "--schema-version", "3"]) == 2

    def test_inspect_directory(self, db_path):
        """inspect exits 2 on a directory."""
        assert _run(["inspect", str(db_path.parent)]) == 2
