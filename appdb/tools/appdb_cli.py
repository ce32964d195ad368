"""
Command-line tool for appdb.

This tool inspects and checks application databases without writing to them:
- fingerprint: Show the fingerprint for an app name and schema version
- inspect: Show the fingerprint stored in a database file
- check: Verify a database file belongs to an app and schema version

Usage:
    appdb fingerprint myapp 3
    appdb inspect /var/lib/myapp/data.db --format json
    appdb check /var/lib/myapp/data.db --app myapp --schema-version 3

Exit codes:
    0  success / fingerprint matches
    1  application or schema version mismatch
    2  file cannot be opened (missing, not a regular file, not a database)

Invariants:
    - Never writes to a database file
    - JSON output is deterministic (sorted keys)

How to change safely:
    - Add new commands, don't modify existing ones
    - Keep output format and exit codes stable for scripts
"""

from __future__ import annotations

import argparse
import json
import logging
import sqlite3
import sys
from typing import Any, Optional, Sequence

import json_log_formatter

from ..config import AppDbSettings
from ..errors import AppDbError, ValidationError
from ..fingerprint import AppFingerprint
from ..store import open_app_db, inspect_app_db

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_MISMATCH = 1
EXIT_UNREADABLE = 2


def setup_logging(settings: AppDbSettings) -> None:
    """Configure root logging from settings.

    Args:
        settings: appdb settings
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == "json":
        formatter: logging.Formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = [handler]


def _describe(fingerprint: AppFingerprint) -> dict[str, Any]:
    return {
        "fingerprint": fingerprint.pack(),
        "app_id": fingerprint.app_id,
        "schema_version": fingerprint.schema_version,
    }


def _schema_version(text: str) -> int:
    value = int(text)
    if not 0 <= value <= 255:
        raise argparse.ArgumentTypeError(f"schema version must be in 0..255, got {value}")
    return value


class AppDbCLI:
    """CLI commands for application databases.

    Example:
        >>> cli = AppDbCLI()
        >>> cli.fingerprint("app", 3)["fingerprint"]
        63861409
    """

    def __init__(self, settings: Optional[AppDbSettings] = None) -> None:
        self.settings = settings or AppDbSettings()

    def fingerprint(self, app_name: str, schema_version: int) -> dict[str, Any]:
        """Compute the fingerprint for an application name and version.

        Args:
            app_name: Application name
            schema_version: Schema version in 0..255

        Returns:
            Dictionary with the packed fingerprint and its fields
        """
        return _describe(AppFingerprint.for_app(app_name, schema_version))

    def inspect(self, path: str) -> dict[str, Any]:
        """Read the fingerprint stored in a database file.

        Args:
            path: Database file path

        Returns:
            Dictionary with the stored fingerprint and its fields
        """
        result = _describe(inspect_app_db(path, settings=self.settings))
        result["path"] = path
        return result

    def check(self, path: str, app_name: str, schema_version: int) -> None:
        """Validate a database file, raising on mismatch.

        Raises:
            AppIdMismatchError: If the database belongs to another application
            SchemaVersionMismatchError: If the database has another schema version
        """
        conn = open_app_db(path, app_name, schema_version, settings=self.settings)
        conn.close()


def _print(data: dict[str, Any], fmt: str) -> None:
    if fmt == "json":
        print(json.dumps(data, indent=2, sort_keys=True))
    else:
        for key in sorted(data):
            print(f"{key}: {data[key]}")


def main(argv: Optional[Sequence[str]] = None) -> None:
    """CLI entry point for the appdb tool."""
    parser = argparse.ArgumentParser(description="appdb application database tool")
    parser.add_argument("--log-level", help="Override APPDB_LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # fingerprint command
    fp_parser = subparsers.add_parser("fingerprint", help="Show fingerprint for an app")
    fp_parser.add_argument("app_name", help="Application name")
    fp_parser.add_argument("schema_version", type=_schema_version, help="Schema version (0-255)")
    fp_parser.add_argument("--format", choices=["text", "json"], default="text")

    # inspect command
    inspect_parser = subparsers.add_parser("inspect", help="Show fingerprint stored in a database")
    inspect_parser.add_argument("path", help="Database file path")
    inspect_parser.add_argument("--format", choices=["text", "json"], default="text")

    # check command
    check_parser = subparsers.add_parser("check", help="Validate a database for an app")
    check_parser.add_argument("path", help="Database file path")
    check_parser.add_argument("--app", required=True, help="Application name")
    check_parser.add_argument(
        "--schema-version", required=True, type=_schema_version, help="Schema version (0-255)"
    )

    args = parser.parse_args(argv)

    settings = AppDbSettings()
    if args.log_level:
        settings = settings.model_copy(update={"log_level": args.log_level})
    setup_logging(settings)
    logger.debug(f"Running command: {args.command}")

    cli = AppDbCLI(settings)

    if args.command == "fingerprint":
        _print(cli.fingerprint(args.app_name, args.schema_version), args.format)
        sys.exit(EXIT_OK)

    try:
        if args.command == "inspect":
            _print(cli.inspect(args.path), args.format)
        elif args.command == "check":
            cli.check(args.path, args.app, args.schema_version)
            print(f"{args.path}: OK")
    except ValidationError as e:
        print(f"{args.path}: {e.message}", file=sys.stderr)
        sys.exit(EXIT_MISMATCH)
    except (OSError, sqlite3.DatabaseError, AppDbError) as e:
        print(f"{args.path}: {e}", file=sys.stderr)
        sys.exit(EXIT_UNREADABLE)

    sys.exit(EXIT_OK)


if __name__ == "__main__":
    main()
