"""Database connection management."""

from __future__ import annotations

import sqlite3
from pathlib import Path

from .schema import SCHEMA_SQL, SCHEMA_VERSION


def init_db(path: str) -> sqlite3.Connection:
    """
    Initialize or open a workspace database.

    Creates all required tables if they don't exist.
    Pass ":memory:" for a throwaway workspace (tests, dry runs).

    Args:
        path: Path to the workspace SQLite file

    Returns:
        Configured sqlite3.Connection ready for use
    """
    if path != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)

    # The web server hands the connection to worker threads
    conn = sqlite3.connect(path, check_same_thread=False)
    conn.row_factory = sqlite3.Row

    # Performance and safety settings
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    conn.execute("PRAGMA synchronous=NORMAL")

    # Create tables
    conn.executescript(SCHEMA_SQL)
    conn.execute(
        "INSERT OR IGNORE INTO metadata (key, value) VALUES ('schema_version', ?)",
        (SCHEMA_VERSION,),
    )
    conn.commit()

    return conn
