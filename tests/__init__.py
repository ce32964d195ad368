"""
appdb Test Suite.

This package contains:
- unit/: Unit tests (no database files, except CLI fixtures)
- integration/: Integration tests (real SQLite files in temp directories)
"""
