"""Base repository class."""

import duckdb
from typing import Any, Dict, List, Optional, Sequence
from ...utils.logger import get_app_logger


class BaseRepository:
    """Base class for all repositories."""

    def __init__(self, conn: duckdb.DuckDBPyConnection):
        """
        Initialize repository with database connection.

        Args:
            conn: DuckDB connection instance
        """
        self.conn = conn
        self.logger = get_app_logger()

    def _fetch_dicts(self, sql: str, params: Optional[Sequence[Any]] = None) -> List[Dict[str, Any]]:
        """Run a query and return rows as column-name dictionaries."""
        cursor = self.conn.execute(sql, list(params or []))
        columns = [col[0] for col in cursor.description]
        return [dict(zip(columns, row)) for row in cursor.fetchall()]

    def _fetch_scalar(self, sql: str, params: Optional[Sequence[Any]] = None) -> Any:
        """Run a query and return the first column of the first row."""
        row = self.conn.execute(sql, list(params or [])).fetchone()
        return row[0] if row else None
