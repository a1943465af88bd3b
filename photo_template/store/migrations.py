from __future__ import annotations

import sqlite3
from collections.abc import Callable

from photo_template.logger import get_logger

_logger = get_logger("migrations")

# Migration function signature: (conn: sqlite3.Connection) -> None
MigrationFn = Callable[[sqlite3.Connection], None]


def _upgrade_to_1(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS photo_templates (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            crop_photo TEXT NOT NULL DEFAULT '',
            crop_number TEXT NOT NULL DEFAULT '',
            template_img TEXT NOT NULL DEFAULT ''
        )
        """
    )
    conn.execute("PRAGMA user_version = 1")
    conn.commit()


MIGRATIONS_UPGRADE: dict[int, MigrationFn] = {1: _upgrade_to_1}


def get_latest_version() -> int:
    return max(MIGRATIONS_UPGRADE.keys()) if MIGRATIONS_UPGRADE else 0


def get_user_version(conn: sqlite3.Connection) -> int:
    row = conn.execute("PRAGMA user_version").fetchone()
    return int(row[0]) if row else 0


def apply_migrations(conn: sqlite3.Connection) -> int:
    """Upgrade the schema to the latest version. Returns the resulting version."""
    current = get_user_version(conn)
    latest = get_latest_version()
    for version in range(current + 1, latest + 1):
        _logger.info("applying migration to user_version=%d", version)
        MIGRATIONS_UPGRADE[version](conn)
    return max(current, latest)
