"""Borrowing repository for database operations."""

from datetime import date
from typing import Any, Dict, List, Optional
from .base import BaseRepository
from ..database_models.lab import BorrowingDO


BORROWING_SELECT = """
    SELECT b.id, b.borrower_id, b.status, b.chemical_id, b.equipment_id, b.quantity,
           b.purpose, b.borrow_date, b.return_date, b.created_at,
           coalesce(c.name, e.name) AS item_name,
           u.name AS borrower_name
    FROM borrowings b
    LEFT JOIN chemicals c ON c.id = b.chemical_id
    LEFT JOIN equipment e ON e.id = b.equipment_id
    LEFT JOIN users u ON u.id = b.borrower_id
"""


def _to_do(row: Dict[str, Any]) -> BorrowingDO:
    return BorrowingDO(**row)


class BorrowingRepository(BaseRepository):
    """Repository for borrowing queries. Failures are logged and re-raised."""

    def create(self, borrowing: BorrowingDO) -> int:
        """
        Insert a borrowing row.

        Args:
            borrowing: BorrowingDO instance; its id is ignored

        Returns:
            The new borrowing id
        """
        try:
            new_id = self._fetch_scalar("""
                INSERT INTO borrowings (borrower_id, status, chemical_id, equipment_id, quantity,
                                        purpose, borrow_date, return_date)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                RETURNING id
            """, [
                borrowing.borrower_id, borrowing.status, borrowing.chemical_id,
                borrowing.equipment_id, borrowing.quantity, borrowing.purpose,
                borrowing.borrow_date, borrowing.return_date
            ])
            self.conn.commit()
            self.logger.info(f"Created borrowing record: {new_id}")
            return new_id
        except Exception as e:
            self.logger.error(f"Failed to create borrowing: {e}")
            raise

    def list_by_borrower(self, borrower_id: int, status: Optional[str] = None, limit: int = 10) -> List[BorrowingDO]:
        """
        List a borrower's requests, newest first.

        Args:
            borrower_id: User ID of the borrower
            status: Optional status filter
            limit: Maximum rows

        Returns:
            List of BorrowingDO instances with item names
        """
        try:
            sql = BORROWING_SELECT + " WHERE b.borrower_id = ?"
            params: List[Any] = [borrower_id]
            if status:
                sql += " AND b.status = ?"
                params.append(status)
            sql += " ORDER BY b.created_at DESC, b.id DESC LIMIT ?"
            params.append(limit)
            return [_to_do(row) for row in self._fetch_dicts(sql, params)]
        except Exception as e:
            self.logger.error(f"Failed to list borrowings for user {borrower_id}: {e}")
            raise

    def list_upcoming_for_equipment(self, equipment_id: int, today: date) -> List[BorrowingDO]:
        """Approved or pending bookings of an item that have not ended yet."""
        try:
            rows = self._fetch_dicts(BORROWING_SELECT + """
                WHERE b.equipment_id = ?
                  AND b.status IN ('approved', 'pending')
                  AND b.return_date >= ?
                ORDER BY b.borrow_date ASC
            """, [equipment_id, today])
            return [_to_do(row) for row in rows]
        except Exception as e:
            self.logger.error(f"Failed to list bookings for equipment {equipment_id}: {e}")
            raise

    def count_by_status(self, borrower_id: int, status: str) -> int:
        """Number of a borrower's requests with the given status."""
        try:
            return int(self._fetch_scalar(
                "SELECT COUNT(*) FROM borrowings WHERE borrower_id = ? AND status = ?",
                [borrower_id, status]
            ) or 0)
        except Exception as e:
            self.logger.error(f"Failed to count borrowings for user {borrower_id}: {e}")
            raise
