"""
Tools module for appdb.

Contains the appdb command-line tool for inspecting and checking
application databases.
"""

from .appdb_cli import main

__all__ = ["main"]
