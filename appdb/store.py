"""
Application database lifecycle for appdb.

This module creates, opens and validates the SQLite file that backs a host
application:
- New paths get their parent directories, an empty file, the application
  fingerprint and the caller's schema statements
- Existing paths are opened and their fingerprint is checked against the
  caller's app name and schema version

The fingerprint lives in SQLite's user_version header slot (the "version
register"). It is written once, as the first statement of schema
initialization, and never modified afterwards.

Invariants:
    - Schema statements run only when the file did not exist before the call
    - A connection that fails validation is closed before the error propagates
    - Filesystem errors (OSError) and engine errors (sqlite3.Error) are not
      wrapped, except engine errors raised during schema initialization,
      which become SchemaError
    - Nothing is rolled back: a failed schema initialization leaves the
      statements that already ran in place

How to change safely:
    - Keep the register write first in init_schema; validation depends on it
    - Do not add retries here; callers decide how to recover
"""

from __future__ import annotations

import logging
import os
import sqlite3
import stat
from collections.abc import Iterable, Iterator, Mapping
from contextlib import closing, contextmanager
from pathlib import Path
from typing import Any, Optional, Sequence, Union

from .config import AppDbSettings
from .errors import (
    AppIdMismatchError,
    NotARegularFileError,
    SchemaError,
    SchemaVersionMismatchError,
)
from .fingerprint import AppFingerprint

logger = logging.getLogger(__name__)

PathLike = Union[str, "os.PathLike[str]"]


def _settings(settings: Optional[AppDbSettings]) -> AppDbSettings:
    return settings if settings is not None else AppDbSettings()


def _path_exists(path: Path) -> bool:
    """Stat the path; only "not found" counts as absent."""
    try:
        os.stat(path)
    except FileNotFoundError:
        return False
    return True


def _make_parent_dirs(directory: Path, mode: int) -> None:
    """Create missing directories down to `directory`, each with `mode`.

    Unlike Path.mkdir(parents=True), intermediate directories get the
    requested mode too.
    """
    missing = []
    current = directory
    while not current.exists():
        missing.append(current)
        current = current.parent

    for d in reversed(missing):
        d.mkdir(mode=mode, exist_ok=True)
        logger.debug(f"Created directory {d} (mode {mode:#o})")


def init_app_db(
    path: PathLike,
    app_name: str,
    schema_version: int,
    schema_statements: Sequence[str],
    *,
    settings: Optional[AppDbSettings] = None,
) -> sqlite3.Connection:
    """Open the application database, creating and initializing it if needed.

    Args:
        path: Database file path
        app_name: Application name the database belongs to
        schema_version: Schema version in 0..255
        schema_statements: DDL run in order, only when the file is created
        settings: Optional settings (loaded from environment if omitted)

    Returns:
        Open, validated SQLite connection

    Raises:
        ValueError: If schema_version is outside 0..255
        OSError: On filesystem failures
        NotARegularFileError: If path exists but is not a regular file
        sqlite3.DatabaseError: If the existing file is not a SQLite database
        SchemaError: If a schema statement fails on a new database
        AppIdMismatchError: If the database belongs to another application
        SchemaVersionMismatchError: If the database has another schema version
    """
    settings = _settings(settings)
    path = Path(path)
    fingerprint = AppFingerprint.for_app(app_name, schema_version)

    if _path_exists(path):
        logger.info(f"Opening existing application database: {path}")
        return open_app_db(path, app_name, schema_version, settings=settings)

    logger.info(
        f"Creating application database: {path}",
        extra={"app_name": app_name, "fingerprint": str(fingerprint)},
    )
    _make_parent_dirs(path.parent, settings.dir_mode)
    path.touch(exist_ok=False)

    conn = open_app_db_no_validate(path, settings=settings)
    try:
        init_schema(conn, app_name, schema_version, schema_statements)
    except Exception:
        conn.close()
        raise
    return conn


def open_app_db(
    path: PathLike,
    app_name: str,
    schema_version: int,
    *,
    settings: Optional[AppDbSettings] = None,
) -> sqlite3.Connection:
    """Open an existing database and check it belongs to this app and version.

    Args:
        path: Database file path
        app_name: Application name the database must belong to
        schema_version: Expected schema version in 0..255
        settings: Optional settings (loaded from environment if omitted)

    Returns:
        Open, validated SQLite connection

    Raises:
        FileNotFoundError: If path does not exist
        NotARegularFileError: If path is not a regular file
        sqlite3.DatabaseError: If the file is not a SQLite database
        AppIdMismatchError: If the database belongs to another application
        SchemaVersionMismatchError: If the database has another schema version
    """
    conn = open_app_db_no_validate(path, settings=settings)
    try:
        validate_app_db(conn, app_name, schema_version)
    except Exception:
        conn.close()
        raise
    return conn


def open_app_db_no_validate(
    path: PathLike,
    *,
    settings: Optional[AppDbSettings] = None,
) -> sqlite3.Connection:
    """Open an existing database file without checking its fingerprint.

    Intended for freshly created files and for tooling (e.g. migrations)
    that deliberately bypasses validation.

    Raises:
        FileNotFoundError: If path does not exist
        NotARegularFileError: If path is not a regular file
        sqlite3.DatabaseError: If the file is not a SQLite database
    """
    settings = _settings(settings)
    path = Path(path)

    st = path.stat()
    if not stat.S_ISREG(st.st_mode):
        raise NotARegularFileError(str(path))

    conn = sqlite3.connect(
        str(path),
        timeout=settings.busy_timeout_seconds,
        isolation_level=None,  # Autocommit; each statement applies on its own
    )
    conn.row_factory = sqlite3.Row

    try:
        conn.execute(f"PRAGMA busy_timeout = {settings.busy_timeout_ms}")
        # Reading the header rejects files that are not SQLite databases
        conn.execute("PRAGMA schema_version").fetchone()
        if settings.foreign_keys:
            conn.execute("PRAGMA foreign_keys = ON")
    except sqlite3.Error:
        conn.close()
        raise

    logger.debug(f"Opened database without validation: {path}")
    return conn


def read_fingerprint(conn: sqlite3.Connection) -> AppFingerprint:
    """Read the fingerprint stored in the version register."""
    with closing(conn.execute("PRAGMA user_version")) as cursor:
        (value,) = cursor.fetchone()
    return AppFingerprint.unpack(value)


def validate_app_db(conn: sqlite3.Connection, app_name: str, schema_version: int) -> None:
    """Check the stored fingerprint against app_name and schema_version.

    An application mismatch is reported in preference to a schema version
    mismatch.

    Raises:
        AppIdMismatchError: If the app identifiers differ
        SchemaVersionMismatchError: If only the schema versions differ
    """
    expected = AppFingerprint.for_app(app_name, schema_version)
    stored = read_fingerprint(conn)

    if stored == expected:
        return

    logger.warning(
        "Application database fingerprint mismatch",
        extra={"stored": str(stored), "expected": str(expected)},
    )
    if stored.app_id != expected.app_id:
        raise AppIdMismatchError(stored.app_id, expected.app_id)
    raise SchemaVersionMismatchError(stored.schema_version, expected.schema_version)


def init_schema(
    conn: sqlite3.Connection,
    app_name: str,
    schema_version: int,
    schema_statements: Iterable[str],
) -> None:
    """Write the fingerprint and run the schema statements on a new database.

    Statements run in order: the version register, foreign key enforcement,
    then schema_statements. Execution stops at the first failure.

    Raises:
        SchemaError: Wrapping the failing statement and its sqlite3 error
    """
    fingerprint = AppFingerprint.for_app(app_name, schema_version)
    statements = [
        f"PRAGMA user_version = {fingerprint.to_register()};",
        "PRAGMA foreign_keys = ON;",
    ]
    statements.extend(schema_statements)

    for statement in statements:
        try:
            exec_statement(conn, statement)
        except (sqlite3.Error, sqlite3.Warning) as e:
            logger.error(f"Schema initialization failed on statement: {statement}")
            raise SchemaError(statement, e) from e

    logger.info(
        f"Initialized schema ({len(statements) - 2} statements)",
        extra={"fingerprint": str(fingerprint)},
    )


def exec_statement(conn: sqlite3.Connection, sql: str) -> None:
    """Execute one parameterless statement and discard any result rows."""
    logger.debug("Executing statement", extra={"sql": sql})
    with closing(conn.cursor()) as cursor:
        cursor.execute(sql)


def _as_params(value: Any) -> Any:
    if isinstance(value, (tuple, list, Mapping)):
        return value
    return (value,)


def exec_bulk(conn: sqlite3.Connection, sql: str, values: Iterable[Any]) -> None:
    """Prepare one statement and execute it once per value, in order.

    Scalar values are bound as the single positional parameter; tuples,
    lists and mappings are bound as the full parameter set. Stops at the
    first failing execution.
    """
    logger.debug("Executing bulk statement", extra={"sql": sql})
    with closing(conn.cursor()) as cursor:
        cursor.executemany(sql, (_as_params(v) for v in values))


def inspect_app_db(
    path: PathLike,
    *,
    settings: Optional[AppDbSettings] = None,
) -> AppFingerprint:
    """Return the fingerprint stored in an existing database without validating it."""
    with closing(open_app_db_no_validate(path, settings=settings)) as conn:
        return read_fingerprint(conn)


@contextmanager
def connect_app_db(
    path: PathLike,
    app_name: str,
    schema_version: int,
    schema_statements: Sequence[str] = (),
    *,
    settings: Optional[AppDbSettings] = None,
) -> Iterator[sqlite3.Connection]:
    """Context manager around init_app_db that closes the connection on exit.

    Example:
        >>> with connect_app_db("/tmp/app.db", "myapp", 1, SCHEMA) as conn:
        ...     exec_bulk(conn, "INSERT INTO tags(name) VALUES (?)", ["a", "b"])
    """
    conn = init_app_db(path, app_name, schema_version, schema_statements, settings=settings)
    try:
        yield conn
    finally:
        conn.close()
