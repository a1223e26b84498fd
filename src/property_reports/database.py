import os
import sqlite3
import pandas as pd
from typing import Optional, List, ContextManager, Union, Mapping, Sequence

from property_reports.config import DB_PATH, TABLE_NAME
from property_reports.errors import DatabaseNotReadyError

QueryParams = Union[Sequence, Mapping[str, object]]

class ReportsDB:
    """
    Context manager for SQLite database interactions.
    Ensures connections are closed and transactions are committed.
    """
    def __init__(self, db_path: str = DB_PATH):
        self.db_path = db_path
        self.conn: Optional[sqlite3.Connection] = None

    def __enter__(self) -> "ReportsDB":
        self.conn = sqlite3.connect(self.db_path)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.conn:
            if exc_type:
                self.conn.rollback()
            else:
                self.conn.commit()
            self.conn.close()
            self.conn = None

    def execute_script(self, script: str) -> None:
        """Executes a raw SQL script (multiple statements)."""
        if not self.conn:
            raise RuntimeError("Database connection is not open.")
        self.conn.executescript(script)

    def execute(self, sql: str, params: QueryParams = ()) -> sqlite3.Cursor:
        """Executes a single SQL statement."""
        if not self.conn:
            raise RuntimeError("Database connection is not open.")
        return self.conn.execute(sql, params)

    def execute_many(self, sql: str, params: List[tuple]) -> sqlite3.Cursor:
        """Executes a bulk SQL statement."""
        if not self.conn:
            raise RuntimeError("Database connection is not open.")
        return self.conn.executemany(sql, params)

    def query(self, sql: str, params: QueryParams = ()) -> pd.DataFrame:
        """Executes a query and returns the result as a Pandas DataFrame."""
        if not self.conn:
            raise RuntimeError("Database connection is not open.")
        return pd.read_sql_query(sql, self.conn, params=params)

    def has_table(self, name: str = TABLE_NAME) -> bool:
        cur = self.execute(
            "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?", (name,)
        )
        return cur.fetchone() is not None

def get_db(db_path: str = DB_PATH) -> ContextManager[ReportsDB]:
    """Helper to get a database context manager."""
    return ReportsDB(db_path)

def ensure_ready(db_path: str = DB_PATH) -> None:
    """Fails fast when the datastore has nothing to report on."""
    if db_path != ":memory:" and not os.path.exists(db_path):
        raise DatabaseNotReadyError(f"Database {db_path} not found. Run ingestion first.")
    with get_db(db_path) as db:
        if not db.has_table():
            raise DatabaseNotReadyError(f"Table {TABLE_NAME} is missing from {db_path}.")
