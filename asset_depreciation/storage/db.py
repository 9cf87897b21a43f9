"""
Database connection management.

Provides SQLite connection for schedule persistence.
"""

import sqlite3
from pathlib import Path

DEFAULT_DB_PATH = "asset_depreciation.db"


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Open a SQLite connection to the schedule database.

    Args:
        db_path: Path to SQLite database file

    Returns:
        SQLite connection
    """
    path = Path(db_path)
    return sqlite3.connect(str(path))
