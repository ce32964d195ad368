"""
Application fingerprint for appdb.

A fingerprint ties a SQLite file to the application that created it and to
the schema version it was created with. It is a single 32-bit value so that
it fits in SQLite's user_version header slot:

    bits  0-23  app_id          first 3 bytes of SHA-256(app_name), little-endian
    bits 24-31  schema_version  raw 8-bit schema version

Invariants:
    - compute_fingerprint is pure and deterministic
    - Packing and unpacking happen only in AppFingerprint
    - SQLite stores user_version as a signed 32-bit integer; to_register()
      and unpack() convert between that and the unsigned packed form

How to change safely:
    - Never change the hash, byte count or byte order: every existing
      database file would fail validation
    - The 24-bit app_id can collide between unrelated app names; a collision
      is indistinguishable from a match
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass

APP_ID_BYTES = 3
APP_ID_MASK = 0x00FFFFFF
SCHEMA_VERSION_MAX = 0xFF
REGISTER_MASK = 0xFFFFFFFF


def _check_schema_version(schema_version: int) -> None:
    if not 0 <= schema_version <= SCHEMA_VERSION_MAX:
        raise ValueError(f"schema_version must be in 0..255, got {schema_version}")


def app_id_for(app_name: str) -> int:
    """Return the 24-bit application identifier for an app name."""
    digest = hashlib.sha256(app_name.encode("utf-8")).digest()
    return int.from_bytes(digest[:APP_ID_BYTES], "little")


@dataclass(frozen=True)
class AppFingerprint:
    """Fingerprint split into its two fields.

    Attributes:
        app_id: 24-bit identifier derived from the application name
        schema_version: 8-bit schema version

    Example:
        >>> fp = AppFingerprint.for_app("app", 3)
        >>> fp.pack()
        63861409
        >>> AppFingerprint.unpack(63861409) == fp
        True
    """

    app_id: int
    schema_version: int

    def __post_init__(self) -> None:
        if not 0 <= self.app_id <= APP_ID_MASK:
            raise ValueError(f"app_id must fit in 24 bits, got {self.app_id}")
        _check_schema_version(self.schema_version)

    @classmethod
    def for_app(cls, app_name: str, schema_version: int) -> AppFingerprint:
        """Derive the fingerprint for an application name and schema version."""
        _check_schema_version(schema_version)
        return cls(app_id=app_id_for(app_name), schema_version=schema_version)

    @classmethod
    def unpack(cls, value: int) -> AppFingerprint:
        """Split a register value into its fields.

        Accepts the unsigned packed form as well as the signed form SQLite
        reports for user_version.
        """
        value &= REGISTER_MASK
        return cls(app_id=value & APP_ID_MASK, schema_version=value >> 24)

    def pack(self) -> int:
        """Return the unsigned 32-bit value."""
        return (self.schema_version << 24) | self.app_id

    def to_register(self) -> int:
        """Return the signed 32-bit value to store in PRAGMA user_version."""
        value = self.pack()
        return value - (1 << 32) if value & 0x80000000 else value

    def __str__(self) -> str:
        return f"app_id={self.app_id:#08x} schema_version={self.schema_version}"


def compute_fingerprint(app_name: str, schema_version: int) -> int:
    """Compute the unsigned 32-bit fingerprint for an app and schema version.

    Args:
        app_name: Opaque application name, hashed as UTF-8
        schema_version: Schema version in 0..255

    Returns:
        Fingerprint as an unsigned 32-bit int

    Raises:
        ValueError: If schema_version is outside 0..255
    """
    return AppFingerprint.for_app(app_name, schema_version).pack()
