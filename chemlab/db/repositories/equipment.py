"""Equipment repository for database operations."""

from datetime import date
from typing import Any, Dict, List, Optional
from .base import BaseRepository
from .search import NORMALIZED_NAME_SQL, normalize_name, ranked_token_clause, tokenize
from ..database_models.inventory import EquipmentDO


EQUIPMENT_COLUMNS = """
    id, name, status, category, condition, location, maintenance_schedule,
    last_maintenance_date, next_calibration_date, serial_number, manufacturer,
    model, created_at
"""

# Prefixed form for queries joining other tables
_PREFIXED_COLUMNS = ", ".join(f"e.{col.strip()}" for col in EQUIPMENT_COLUMNS.split(","))


def _to_do(row: Dict[str, Any]) -> EquipmentDO:
    return EquipmentDO(**row)


class EquipmentRepository(BaseRepository):
    """Repository for equipment queries. Failures are logged and re-raised."""

    def create(self, equipment: EquipmentDO) -> int:
        """
        Insert an equipment row.

        Args:
            equipment: EquipmentDO instance; its id is ignored

        Returns:
            The new equipment id
        """
        try:
            new_id = self._fetch_scalar("""
                INSERT INTO equipment (name, status, category, condition, location, maintenance_schedule,
                                       last_maintenance_date, next_calibration_date, serial_number,
                                       manufacturer, model)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                RETURNING id
            """, [
                equipment.name, equipment.status, equipment.category, equipment.condition,
                equipment.location, equipment.maintenance_schedule, equipment.last_maintenance_date,
                equipment.next_calibration_date, equipment.serial_number, equipment.manufacturer,
                equipment.model
            ])
            self.conn.commit()
            self.logger.info(f"Created equipment record: {new_id} ({equipment.name})")
            return new_id
        except Exception as e:
            self.logger.error(f"Failed to create equipment {equipment.name}: {e}")
            raise

    def get(self, equipment_id: int) -> Optional[EquipmentDO]:
        """Get equipment by ID."""
        try:
            rows = self._fetch_dicts(
                f"SELECT {EQUIPMENT_COLUMNS} FROM equipment WHERE id = ?", [equipment_id]
            )
            return _to_do(rows[0]) if rows else None
        except Exception as e:
            self.logger.error(f"Failed to get equipment {equipment_id}: {e}")
            raise

    def list_all(self, limit: Optional[int] = None) -> List[EquipmentDO]:
        """List equipment ordered by name."""
        try:
            sql = f"SELECT {EQUIPMENT_COLUMNS} FROM equipment ORDER BY name"
            params: List[Any] = []
            if limit:
                sql += " LIMIT ?"
                params.append(limit)
            return [_to_do(row) for row in self._fetch_dicts(sql, params)]
        except Exception as e:
            self.logger.error(f"Failed to list equipment: {e}")
            raise

    def find_by_name(self, name: str) -> Optional[EquipmentDO]:
        """Case-insensitive exact name match."""
        try:
            rows = self._fetch_dicts(
                f"SELECT {EQUIPMENT_COLUMNS} FROM equipment WHERE lower(name) = ? ORDER BY id LIMIT 1",
                [name.strip().lower()]
            )
            return _to_do(rows[0]) if rows else None
        except Exception as e:
            self.logger.error(f"Failed to find equipment by name {name}: {e}")
            raise

    def find_by_normalized_name(self, name: str) -> Optional[EquipmentDO]:
        """Match ignoring case, whitespace and punctuation."""
        normalized = normalize_name(name)
        if not normalized:
            return None
        try:
            rows = self._fetch_dicts(
                f"SELECT {EQUIPMENT_COLUMNS} FROM equipment WHERE {NORMALIZED_NAME_SQL} = ? ORDER BY id LIMIT 1",
                [normalized]
            )
            return _to_do(rows[0]) if rows else None
        except Exception as e:
            self.logger.error(f"Failed to find equipment by normalized name {name}: {e}")
            raise

    def search_ranked(self, term: str, limit: int = 20) -> List[EquipmentDO]:
        """Word-prefix token search over name, category, manufacturer and model."""
        tokens = tokenize(term)
        if not tokens:
            return []
        score_sql, where_sql, score_params, where_params = ranked_token_clause(
            tokens, ["name", "category", "manufacturer", "model"]
        )
        try:
            rows = self._fetch_dicts(f"""
                SELECT {EQUIPMENT_COLUMNS}, ({score_sql}) AS score
                FROM equipment
                WHERE {where_sql}
                ORDER BY score DESC, name
                LIMIT ?
            """, score_params + where_params + [limit])
            for row in rows:
                row.pop("score")
            return [_to_do(row) for row in rows]
        except Exception as e:
            self.logger.error(f"Failed ranked equipment search for '{term}': {e}")
            raise

    def search_substring(self, term: str, limit: int = 20) -> List[EquipmentDO]:
        """Substring match on name, serial number or model."""
        pattern = f"%{term.strip().lower()}%"
        try:
            rows = self._fetch_dicts(f"""
                SELECT {EQUIPMENT_COLUMNS}
                FROM equipment
                WHERE lower(name) LIKE ?
                   OR lower(coalesce(serial_number, '')) LIKE ?
                   OR lower(coalesce(model, '')) LIKE ?
                ORDER BY name
                LIMIT ?
            """, [pattern, pattern, pattern, limit])
            return [_to_do(row) for row in rows]
        except Exception as e:
            self.logger.error(f"Failed substring equipment search for '{term}': {e}")
            raise

    def list_maintenance_due(self, today: date) -> List[EquipmentDO]:
        """Equipment whose maintenance interval has elapsed since the last service."""
        try:
            rows = self._fetch_dicts(f"""
                SELECT {EQUIPMENT_COLUMNS} FROM equipment
                WHERE last_maintenance_date IS NOT NULL
                  AND maintenance_schedule IS NOT NULL
                  AND date_diff('day', last_maintenance_date, ?) >= maintenance_schedule
                ORDER BY last_maintenance_date ASC, name
            """, [today])
            return [_to_do(row) for row in rows]
        except Exception as e:
            self.logger.error(f"Failed to list maintenance due equipment: {e}")
            raise

    def list_calibration_due(self, today: date) -> List[EquipmentDO]:
        """Equipment whose next calibration date is today or earlier."""
        try:
            rows = self._fetch_dicts(f"""
                SELECT {EQUIPMENT_COLUMNS} FROM equipment
                WHERE next_calibration_date IS NOT NULL AND next_calibration_date <= ?
                ORDER BY next_calibration_date ASC, name
            """, [today])
            return [_to_do(row) for row in rows]
        except Exception as e:
            self.logger.error(f"Failed to list calibration due equipment: {e}")
            raise

    def list_available(self, today: date) -> List[EquipmentDO]:
        """Equipment with status available and no approved borrowing still running."""
        try:
            rows = self._fetch_dicts(f"""
                SELECT {_PREFIXED_COLUMNS}
                FROM equipment e
                WHERE e.status = 'available'
                  AND NOT EXISTS (
                      SELECT 1 FROM borrowings b
                      WHERE b.equipment_id = e.id
                        AND b.status = 'approved'
                        AND b.return_date >= ?
                  )
                ORDER BY e.name
            """, [today])
            return [_to_do(row) for row in rows]
        except Exception as e:
            self.logger.error(f"Failed to list available equipment: {e}")
            raise

    def list_by_category(self, category: str) -> List[EquipmentDO]:
        """Equipment in a category, case-insensitive."""
        try:
            rows = self._fetch_dicts(f"""
                SELECT {EQUIPMENT_COLUMNS} FROM equipment
                WHERE lower(coalesce(category, '')) = ?
                ORDER BY name
            """, [category.strip().lower()])
            return [_to_do(row) for row in rows]
        except Exception as e:
            self.logger.error(f"Failed to list equipment in category {category}: {e}")
            raise

    def count_overlapping_bookings(self, equipment_id: int, start: date, end: date) -> int:
        """Number of approved borrowings overlapping [start, end]."""
        try:
            return int(self._fetch_scalar("""
                SELECT COUNT(*) FROM borrowings
                WHERE equipment_id = ?
                  AND status = 'approved'
                  AND borrow_date <= ?
                  AND return_date >= ?
            """, [equipment_id, end, start]) or 0)
        except Exception as e:
            self.logger.error(f"Failed to check availability of equipment {equipment_id}: {e}")
            raise

    def count(self) -> int:
        """Total number of equipment items."""
        try:
            return int(self._fetch_scalar("SELECT COUNT(*) FROM equipment") or 0)
        except Exception as e:
            self.logger.error(f"Failed to count equipment: {e}")
            raise

    def count_by_status(self, status: str) -> int:
        """Number of equipment items with the given status."""
        try:
            return int(self._fetch_scalar(
                "SELECT COUNT(*) FROM equipment WHERE status = ?", [status]
            ) or 0)
        except Exception as e:
            self.logger.error(f"Failed to count equipment with status {status}: {e}")
            raise
