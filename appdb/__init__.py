"""
appdb - identity-checked SQLite databases for host applications.

This package opens, creates and validates the SQLite file an application
keeps its data in, and makes sure the file actually belongs to that
application and matches the schema version it expects.

Architecture:
    ┌─────────────┐     ┌──────────────────┐     ┌──────────────┐
    │   Caller    │────▶│  store           │────▶│  sqlite3     │
    │             │     │  (create / open) │     │  (file)      │
    └─────────────┘     └────────┬─────────┘     └──────────────┘
                                 │
                                 ▼
                        ┌──────────────────┐
                        │  fingerprint     │
                        │  (app_id, ver)   │
                        └──────────────────┘

Invariants:
    - The fingerprint is stored in SQLite's user_version header slot
    - Schema statements run once, when the file is created
    - Validated opens never leak a connection on failure

How to change safely:
    - The fingerprint layout is an on-disk format; never change it
    - New error kinds must inherit from AppDbError

Version: see _version.py.
"""

from ._version import __version__
from .config import AppDbSettings
from .errors import (
    AppDbError,
    AppIdMismatchError,
    NotARegularFileError,
    SchemaError,
    SchemaVersionMismatchError,
    ValidationError,
)
from .fingerprint import AppFingerprint, app_id_for, compute_fingerprint
from .store import (
    connect_app_db,
    exec_bulk,
    exec_statement,
    init_app_db,
    init_schema,
    inspect_app_db,
    open_app_db,
    open_app_db_no_validate,
    read_fingerprint,
    validate_app_db,
)

__all__ = [
    "__version__",
    "AppDbSettings",
    "AppDbError",
    "AppIdMismatchError",
    "NotARegularFileError",
    "SchemaError",
    "SchemaVersionMismatchError",
    "ValidationError",
    "AppFingerprint",
    "app_id_for",
    "compute_fingerprint",
    "connect_app_db",
    "exec_bulk",
    "exec_statement",
    "init_app_db",
    "init_schema",
    "inspect_app_db",
    "open_app_db",
    "open_app_db_no_validate",
    "read_fingerprint",
    "validate_app_db",
]
