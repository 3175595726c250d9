"""
Database connection and initialization.
"""
from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from .schema import all_schema_sql

logger = logging.getLogger(__name__)


def _column_names(conn: sqlite3.Connection, table: str) -> list[str]:
    cur = conn.execute(f"PRAGMA table_info({table})")
    return [row[1] for row in cur.fetchall()]


def _run_migrations(conn: sqlite3.Connection) -> None:
    """Columns added after the first schema release. Idempotent."""
    if "last_activity" not in _column_names(conn, "users"):
        conn.execute("ALTER TABLE users ADD COLUMN last_activity TEXT")
    if "winner_team_id" not in _column_names(conn, "matches"):
        conn.execute("ALTER TABLE matches ADD COLUMN winner_team_id TEXT")
    if "secondary_player_id" not in _column_names(conn, "match_events"):
        conn.execute("ALTER TABLE match_events ADD COLUMN secondary_player_id TEXT")
    if "attendance" not in _column_names(conn, "schedule_events"):
        conn.execute("ALTER TABLE schedule_events ADD COLUMN attendance INTEGER")


_db_path: Path | None = None


def set_db_path(path: str | Path) -> None:
    """Set the database path. Call before first get_connection if not using the configured one."""
    global _db_path
    _db_path = Path(path)


def get_db_path() -> Path:
    """Return the current database path."""
    if _db_path is not None:
        return _db_path
    from clubhouse.config import get_settings
    return get_settings().db_path


def get_connection(db_path: str | Path | None = None) -> sqlite3.Connection:
    """
    Return a new SQLite connection.
    Use as context manager or ensure close() is called.
    """
    path = Path(db_path) if db_path else get_db_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: str | Path | None = None) -> None:
    """Create or ensure all tables exist, then apply column migrations."""
    path = Path(db_path) if db_path else get_db_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    try:
        conn.executescript(all_schema_sql())
        _run_migrations(conn)
        conn.commit()
    finally:
        conn.close()
    logger.debug("Database ready at %s", path)
