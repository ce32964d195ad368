"""
Error types for appdb.

This module defines the structured exceptions raised by the library:
- AppDbError: Base exception
- NotARegularFileError: Path exists but is not a regular file
- SchemaError: A schema statement failed during initialization
- ValidationError: Stored fingerprint does not match the expected one
- AppIdMismatchError: Database belongs to a different application
- SchemaVersionMismatchError: Database has a different schema version

Filesystem failures are raised as the stdlib OSError subclasses (plus
NotARegularFileError, which is also an OSError) and engine
failures as sqlite3.Error subclasses; neither is wrapped outside SchemaError.

Invariants:
    - All errors defined here inherit from AppDbError
    - Every error carries a stable code and a details dict for callers
    - Identifier and version fields are plain ints, never formatted strings
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class AppDbError(Exception):
    """Base exception for all appdb errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "APPDB_ERROR"
        self.details = details or {}


class NotARegularFileError(AppDbError, OSError):
    """Path exists but is not a regular file (directory, socket, fifo...).

    Also an OSError, so callers handling filesystem failures catch it.
    """

    def __init__(self, path: str) -> None:
        super().__init__(
            f"Not a regular file: {path}",
            code="NOT_A_REGULAR_FILE",
            details={"path": path},
        )
        self.path = path


class SchemaError(AppDbError):
    """A statement failed while initializing a new database.

    Statements before the failing one have already been applied and are
    not rolled back.

    Attributes:
        statement: The SQL text that failed
        error: The underlying sqlite3 error
    """

    def __init__(self, statement: str, error: BaseException) -> None:
        super().__init__(
            f"Error {error} creating schema on statement {statement}",
            code="SCHEMA_ERROR",
            details={"statement": statement, "error": str(error)},
        )
        self.statement = statement
        self.error = error


class ValidationError(AppDbError):
    """Stored fingerprint does not match the one expected by the caller."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message, code=code or "VALIDATION_ERROR", details=details)


class AppIdMismatchError(ValidationError):
    """Database was created by a different application.

    Attributes:
        app_id: 24-bit identifier found in the database
        expected_app_id: 24-bit identifier derived from the caller's app name
    """

    def __init__(self, app_id: int, expected_app_id: int) -> None:
        super().__init__(
            f"Incorrect Database App Id: Got {app_id} - Expected {expected_app_id}",
            code="APP_ID_MISMATCH",
            details={"app_id": app_id, "expected_app_id": expected_app_id},
        )
        self.app_id = app_id
        self.expected_app_id = expected_app_id


class SchemaVersionMismatchError(ValidationError):
    """Database belongs to this application but has another schema version.

    Attributes:
        schema_version: Version found in the database
        expected_schema_version: Version the caller asked for
    """

    def __init__(self, schema_version: int, expected_schema_version: int) -> None:
        super().__init__(
            f"Incorrect Schema Version: Got {schema_version} - "
            f"Expected {expected_schema_version}",
            code="SCHEMA_VERSION_MISMATCH",
            details={
                "schema_version": schema_version,
                "expected_schema_version": expected_schema_version,
            },
        )
        self.schema_version = schema_version
        self.expected_schema_version = expected_schema_version
