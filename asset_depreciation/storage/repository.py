"""
Repository pattern for data access.

Handles database operations for depreciation records. Records are
append-only; the only removal is a bulk delete of the whole table.
"""

import logging
import sqlite3
from datetime import datetime
from typing import List, Optional, Sequence

from asset_depreciation.exceptions import PersistenceError

from .db import DEFAULT_DB_PATH, get_connection
from .models import AssetDepreciationRecord

logger = logging.getLogger(__name__)

_COLUMNS = (
    "asset_id", "company_id", "financial_year", "month", "initial_cost",
    "depreciation_percentage", "monthly_depreciation_cost",
    "total_depreciated_cost", "mfd", "manufacturing_year",
    "manufacturing_month",
)

_INSERT_SQL = (
    f"INSERT INTO asset_depreciation ({', '.join(_COLUMNS)}) "
    f"VALUES ({', '.join('?' for _ in _COLUMNS)})"
)


def _to_row(record: AssetDepreciationRecord) -> tuple:
    return (
        record.asset_id,
        record.company_id,
        record.financial_year,
        record.month,
        record.initial_cost,
        record.depreciation_percentage,
        record.monthly_depreciation_cost,
        record.total_depreciated_cost,
        record.mfd.isoformat() if record.mfd else None,
        record.manufacturing_year,
        record.manufacturing_month,
    )


def _from_row(row: Sequence) -> AssetDepreciationRecord:
    return AssetDepreciationRecord(
        asset_id=row[0],
        company_id=row[1],
        financial_year=row[2],
        month=row[3],
        initial_cost=row[4],
        depreciation_percentage=row[5],
        monthly_depreciation_cost=row[6],
        total_depreciated_cost=row[7],
        mfd=datetime.fromisoformat(row[8]) if row[8] else None,
        manufacturing_year=row[9],
        manufacturing_month=row[10],
    )


def initialize_schema(db_path: str = DEFAULT_DB_PATH) -> None:
    """Create the asset_depreciation table if it doesn't exist.

    Args:
        db_path: Path to SQLite database file

    Raises:
        PersistenceError: If the database cannot be written
    """
    try:
        conn = get_connection(db_path)
    except sqlite3.Error as e:
        raise PersistenceError(f"Cannot open database {db_path}: {e}") from e
    try:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS asset_depreciation (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                asset_id TEXT NOT NULL,
                company_id TEXT NOT NULL,
                financial_year TEXT NOT NULL,
                month INTEGER NOT NULL,
                initial_cost REAL NOT NULL,
                depreciation_percentage REAL NOT NULL,
                monthly_depreciation_cost REAL NOT NULL,
                total_depreciated_cost REAL NOT NULL,
                mfd TEXT,
                manufacturing_year INTEGER,
                manufacturing_month INTEGER
            )
        """)
        conn.commit()
    except sqlite3.Error as e:
        raise PersistenceError(f"Failed to initialize schema: {e}") from e
    finally:
        conn.close()


def insert_record(record: AssetDepreciationRecord, db_path: str = DEFAULT_DB_PATH) -> None:
    """Insert a single depreciation record.

    Args:
        record: The record to store
        db_path: Path to SQLite database file

    Raises:
        PersistenceError: If the store rejects the write
    """
    insert_records([record], db_path)


def insert_records(records: List[AssetDepreciationRecord], db_path: str = DEFAULT_DB_PATH) -> None:
    """Insert a whole schedule atomically.

    All rows go in one transaction so a failure never leaves a partial
    schedule behind. Rows are written in the order given.

    Args:
        records: Records to store, in generation order
        db_path: Path to SQLite database file

    Raises:
        PersistenceError: If the store rejects the write
    """
    if not records:
        return

    try:
        conn = get_connection(db_path)
    except sqlite3.Error as e:
        raise PersistenceError(f"Cannot open database {db_path}: {e}") from e
    try:
        conn.execute("BEGIN TRANSACTION")
        for record in records:
            conn.execute(_INSERT_SQL, _to_row(record))
        conn.commit()
    except sqlite3.Error as e:
        conn.rollback()
        raise PersistenceError(f"Failed to save depreciation records: {e}") from e
    finally:
        conn.close()
    logger.debug("Inserted %d depreciation records", len(records))


def fetch_all_records(
    db_path: str = DEFAULT_DB_PATH,
    asset_id: Optional[str] = None,
    company_id: Optional[str] = None
) -> List[AssetDepreciationRecord]:
    """Fetch stored records in insertion order, optionally filtered.

    Args:
        db_path: Path to SQLite database file
        asset_id: Optional filter for a specific asset
        company_id: Optional filter for a specific company

    Returns:
        List of records, oldest first

    Raises:
        PersistenceError: If the read fails
    """
    query = f"SELECT {', '.join(_COLUMNS)} FROM asset_depreciation"
    params = []
    conditions = []

    if asset_id:
        conditions.append("asset_id = ?")
        params.append(asset_id)
    if company_id:
        conditions.append("company_id = ?")
        params.append(company_id)

    if conditions:
        query += " WHERE " + " AND ".join(conditions)
    query += " ORDER BY id"

    try:
        conn = get_connection(db_path)
    except sqlite3.Error as e:
        raise PersistenceError(f"Cannot open database {db_path}: {e}") from e
    try:
        cursor = conn.execute(query, params)
        return [_from_row(row) for row in cursor.fetchall()]
    except sqlite3.Error as e:
        raise PersistenceError(f"Failed to fetch depreciation records: {e}") from e
    finally:
        conn.close()


def delete_all_records(db_path: str = DEFAULT_DB_PATH) -> int:
    """Delete every stored record.

    Args:
        db_path: Path to SQLite database file

    Returns:
        Number of records deleted

    Raises:
        PersistenceError: If the delete fails
    """
    try:
        conn = get_connection(db_path)
    except sqlite3.Error as e:
        raise PersistenceError(f"Cannot open database {db_path}: {e}") from e
    try:
        cursor = conn.execute("DELETE FROM asset_depreciation")
        conn.commit()
        return cursor.rowcount
    except sqlite3.Error as e:
        conn.rollback()
        raise PersistenceError(f"Failed to delete depreciation records: {e}") from e
    finally:
        conn.close()


class DepreciationRepository:
    """Record store bound to one database file.

    This is the insert / findAll / deleteAll interface the request
    handlers depend on.
    """

    def __init__(self, db_path: str = DEFAULT_DB_PATH):
        """Initialize the repository with a database path.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path

    def initialize(self) -> None:
        initialize_schema(self.db_path)

    def insert(self, record: AssetDepreciationRecord) -> None:
        insert_record(record, self.db_path)

    def insert_many(self, records: List[AssetDepreciationRecord]) -> None:
        insert_records(records, self.db_path)

    def find_all(
        self,
        asset_id: Optional[str] = None,
        company_id: Optional[str] = None
    ) -> List[AssetDepreciationRecord]:
        return fetch_all_records(self.db_path, asset_id=asset_id, company_id=company_id)

    def delete_all(self) -> int:
        return delete_all_records(self.db_path)


# Global repository instance
_default_repository: Optional[DepreciationRepository] = None


def get_repository(db_path: str = DEFAULT_DB_PATH) -> DepreciationRepository:
    """Get the shared repository instance.

    A new instance replaces the shared one when a different path is asked for.

    Args:
        db_path: Path to SQLite database file

    Returns:
        An instance of DepreciationRepository
    """
    global _default_repository
    if _default_repository is None or _default_repository.db_path != db_path:
        _default_repository = DepreciationRepository(db_path)
    return _default_repository
