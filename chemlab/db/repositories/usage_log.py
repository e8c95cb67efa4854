"""Chemical usage log repository.

Recording usage decrements stock, so each write runs in its own transaction
and writes are serialized per repository instance.
"""

import threading
from datetime import datetime
from typing import List, Optional
from .base import BaseRepository
from ..database_models.inventory import ChemicalUsageLogDO
from ...utils.validation import ChemicalNotFoundError, InsufficientQuantityError


USAGE_COLUMNS = """
    id, chemical_id, user_id, quantity_used, remaining_quantity, usage_date,
    purpose, notes, experiment_reference
"""


class UsageLogRepository(BaseRepository):
    """Repository for chemical usage logging."""

    def __init__(self, conn):
        super().__init__(conn)
        self._write_lock = threading.Lock()

    def create(
        self,
        chemical_id: int,
        user_id: int,
        quantity_used: float,
        purpose: Optional[str] = None,
        notes: Optional[str] = None,
        experiment_reference: Optional[str] = None,
        usage_date: Optional[datetime] = None
    ) -> ChemicalUsageLogDO:
        """
        Record usage of a chemical and decrement its stock.

        Args:
            chemical_id: Chemical being used
            user_id: User recording the usage
            quantity_used: Amount consumed, in the chemical's unit
            purpose: Optional purpose
            notes: Optional notes
            experiment_reference: Optional experiment reference
            usage_date: When the usage happened, defaults to now

        Returns:
            The stored ChemicalUsageLogDO

        Raises:
            ChemicalNotFoundError: No such chemical
            InsufficientQuantityError: Stock is lower than quantity_used
        """
        usage_date = usage_date or datetime.now()

        with self._write_lock:
            self.conn.begin()
            try:
                row = self.conn.execute(
                    "SELECT quantity FROM chemicals WHERE id = ?", [chemical_id]
                ).fetchone()
                if row is None:
                    raise ChemicalNotFoundError(chemical_id)

                available = row[0]
                if available < quantity_used:
                    raise InsufficientQuantityError(available, quantity_used)

                # Guarded so a stale read can never drive stock negative
                updated = self.conn.execute("""
                    UPDATE chemicals SET quantity = quantity - ?
                    WHERE id = ? AND quantity >= ?
                    RETURNING quantity
                """, [quantity_used, chemical_id, quantity_used]).fetchone()
                if updated is None:
                    raise InsufficientQuantityError(available, quantity_used)

                log_rows = self._fetch_dicts(f"""
                    INSERT INTO chemical_usage_logs (chemical_id, user_id, quantity_used, remaining_quantity,
                                                     usage_date, purpose, notes, experiment_reference)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    RETURNING {USAGE_COLUMNS}
                """, [
                    chemical_id, user_id, quantity_used, updated[0],
                    usage_date, purpose, notes, experiment_reference
                ])
                self.conn.commit()
            except Exception as e:
                self.conn.rollback()
                self.logger.warning(f"Usage log for chemical {chemical_id} rolled back: {e}")
                raise

        log = ChemicalUsageLogDO(**log_rows[0])
        self.logger.info(
            f"Logged usage of {quantity_used} for chemical {chemical_id}, remaining {log.remaining_quantity}"
        )
        return log

    def list_by_chemical(self, chemical_id: int, limit: int = 50) -> List[ChemicalUsageLogDO]:
        """
        List usage logs for a chemical, newest first.

        Args:
            chemical_id: Chemical ID
            limit: Maximum rows

        Returns:
            List of ChemicalUsageLogDO instances
        """
        try:
            rows = self._fetch_dicts(f"""
                SELECT {USAGE_COLUMNS} FROM chemical_usage_logs
                WHERE chemical_id = ?
                ORDER BY usage_date DESC, id DESC
                LIMIT ?
            """, [chemical_id, limit])
            return [ChemicalUsageLogDO(**row) for row in rows]
        except Exception as e:
            self.logger.error(f"Failed to list usage logs for chemical {chemical_id}: {e}")
            raise
