"""Chatbot audit log repository."""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
from .base import BaseRepository
from ..database_models.chat import AuditLogDO


AUDIT_COLUMNS = "id, user_id, query_text, response_text, query_type, created_at"


class AuditLogRepository(BaseRepository):
    """Repository for append-only chatbot audit rows."""

    def create(
        self,
        user_id: Optional[int],
        query_text: str,
        response_text: Optional[str],
        query_type: Optional[str]
    ) -> bool:
        """
        Append an audit row.

        Returns:
            True if successful, False otherwise
        """
        try:
            self.conn.execute("""
                INSERT INTO chatbot_audit_log (user_id, query_text, response_text, query_type, created_at)
                VALUES (?, ?, ?, ?, ?)
            """, [user_id, query_text, response_text, query_type, datetime.now()])
            self.conn.commit()
            return True
        except Exception as e:
            self.logger.error(f"Failed to write audit log for user {user_id}: {e}")
            return False

    def list_by_user(self, user_id: int, limit: int = 20, query_type: Optional[str] = None) -> List[AuditLogDO]:
        """
        List a user's recent queries, newest first.

        Args:
            user_id: User ID
            limit: Maximum rows
            query_type: Optional query type filter

        Returns:
            List of AuditLogDO instances
        """
        try:
            sql = f"SELECT {AUDIT_COLUMNS} FROM chatbot_audit_log WHERE user_id = ?"
            params: List[Any] = [user_id]
            if query_type:
                sql += " AND query_type = ?"
                params.append(query_type)
            sql += " ORDER BY created_at DESC, id DESC LIMIT ?"
            params.append(limit)
            return [AuditLogDO(**row) for row in self._fetch_dicts(sql, params)]
        except Exception as e:
            self.logger.error(f"Failed to list audit log for user {user_id}: {e}")
            return []

    def stats_by_type(self, days: int = 7, user_id: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Count queries per query type over the last `days` days.

        Args:
            days: Window size in days
            user_id: Optional user filter

        Returns:
            Rows with query_type, count, unique_users and last_query_at
        """
        try:
            sql = """
                SELECT coalesce(query_type, 'general') AS query_type,
                       COUNT(*) AS count,
                       COUNT(DISTINCT user_id) AS unique_users,
                       MAX(created_at) AS last_query_at
                FROM chatbot_audit_log
                WHERE created_at >= ?
            """
            params: List[Any] = [datetime.now() - timedelta(days=days)]
            if user_id is not None:
                sql += " AND user_id = ?"
                params.append(user_id)
            sql += " GROUP BY 1 ORDER BY count DESC, query_type"
            return self._fetch_dicts(sql, params)
        except Exception as e:
            self.logger.error(f"Failed to compute usage stats: {e}")
            return []
