"""
Unit tests for appdb error types.
"""

import sqlite3

from appdb.errors import (
    AppDbError,
    AppIdMismatchError,
    NotARegularFileError,
    SchemaError,
    SchemaVersionMismatchError,
    ValidationError,
)


class TestErrors:
    """Tests for structured errors."""

    def test_base_defaults(self):
        """Base error has a default code and empty details."""
        err = AppDbError("boom")
        assert err.message == "boom"
        assert err.code == "APPDB_ERROR"
        assert err.details == {}
        assert str(err) == "boom"

    def test_app_id_mismatch(self):
        """Identity mismatch carries both identifiers."""
        err = AppIdMismatchError(0x644EF4, 0xF6D38E)
        assert isinstance(err, ValidationError)
        assert isinstance(err, AppDbError)
        assert err.code == "APP_ID_MISMATCH"
        assert err.app_id == 0x644EF4
        assert err.expected_app_id == 0xF6D38E
        assert err.details == {"app_id": 0x644EF4, "expected_app_id": 0xF6D38E}
        assert "Got 6573812 - Expected 16176014" in str(err)

    def test_schema_version_mismatch(self):
        """Version mismatch carries both versions."""
        err = SchemaVersionMismatchError(3, 4)
        assert isinstance(err, ValidationError)
        assert err.code == "SCHEMA_VERSION_MISMATCH"
        assert err.schema_version == 3
        assert err.expected_schema_version == 4
        assert str(err) == "Incorrect Schema Version: Got 3 - Expected 4"

    def test_schema_error(self):
        """Schema error keeps the statement and the engine error."""
        cause = sqlite3.OperationalError('near "INVALID": syntax error')
        err = SchemaError("INVALID SQL;", cause)
        assert err.code == "SCHEMA_ERROR"
        assert err.statement == "INVALID SQL;"
        assert err.error is cause
        assert "INVALID SQL;" in str(err)
        assert "syntax error" in str(err)

    def test_not_a_regular_file(self):
        """Invalid file type error carries the path."""
        err = NotARegularFileError("/tmp")
        assert err.code == "NOT_A_REGULAR_FILE"
        assert err.path == "/tmp"
        assert not isinstance(err, ValidationError)
        assert isinstance(err, OSError)
        assert isinstance(err, AppDbError)
        assert str(err) == "Not a regular file: /tmp"
