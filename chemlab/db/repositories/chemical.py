"""Chemical repository for database operations.

Read failures are logged and re-raised so callers can tell a failed query
apart from an empty result.
"""

from datetime import date, timedelta
from typing import Any, Dict, List, Optional
from .base import BaseRepository
from .search import NORMALIZED_NAME_SQL, normalize_name, ranked_token_clause, tokenize
from ..database_models.inventory import ChemicalDO


CHEMICAL_COLUMNS = """
    id, name, quantity, unit, category, storage_location, expiry_date,
    hazard_class, storage_conditions, safety_precautions, cas_number,
    molecular_formula, molecular_weight, created_at
"""


def _to_do(row: Dict[str, Any]) -> ChemicalDO:
    return ChemicalDO(**row)


class ChemicalRepository(BaseRepository):
    """Repository for chemical queries."""

    def create(self, chemical: ChemicalDO) -> int:
        """
        Insert a chemical row.

        Args:
            chemical: ChemicalDO instance; its id is ignored

        Returns:
            The new chemical id
        """
        try:
            new_id = self._fetch_scalar("""
                INSERT INTO chemicals (name, quantity, unit, category, storage_location, expiry_date,
                                       hazard_class, storage_conditions, safety_precautions, cas_number,
                                       molecular_formula, molecular_weight)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                RETURNING id
            """, [
                chemical.name, chemical.quantity, chemical.unit, chemical.category,
                chemical.storage_location, chemical.expiry_date, chemical.hazard_class,
                chemical.storage_conditions, chemical.safety_precautions, chemical.cas_number,
                chemical.molecular_formula, chemical.molecular_weight
            ])
            self.conn.commit()
            self.logger.info(f"Created chemical record: {new_id} ({chemical.name})")
            return new_id
        except Exception as e:
            self.logger.error(f"Failed to create chemical {chemical.name}: {e}")
            raise

    def get(self, chemical_id: int) -> Optional[ChemicalDO]:
        """Get chemical by ID."""
        try:
            rows = self._fetch_dicts(
                f"SELECT {CHEMICAL_COLUMNS} FROM chemicals WHERE id = ?", [chemical_id]
            )
            return _to_do(rows[0]) if rows else None
        except Exception as e:
            self.logger.error(f"Failed to get chemical {chemical_id}: {e}")
            raise

    def list_all(self, limit: Optional[int] = None) -> List[ChemicalDO]:
        """List chemicals ordered by name."""
        try:
            sql = f"SELECT {CHEMICAL_COLUMNS} FROM chemicals ORDER BY name"
            params: List[Any] = []
            if limit:
                sql += " LIMIT ?"
                params.append(limit)
            return [_to_do(row) for row in self._fetch_dicts(sql, params)]
        except Exception as e:
            self.logger.error(f"Failed to list chemicals: {e}")
            raise

    def find_by_name(self, name: str) -> Optional[ChemicalDO]:
        """Case-insensitive exact name match."""
        try:
            rows = self._fetch_dicts(
                f"SELECT {CHEMICAL_COLUMNS} FROM chemicals WHERE lower(name) = ? ORDER BY id LIMIT 1",
                [name.strip().lower()]
            )
            return _to_do(rows[0]) if rows else None
        except Exception as e:
            self.logger.error(f"Failed to find chemical by name {name}: {e}")
            raise

    def find_by_normalized_name(self, name: str) -> Optional[ChemicalDO]:
        """Match ignoring case, whitespace and punctuation."""
        normalized = normalize_name(name)
        if not normalized:
            return None
        try:
            rows = self._fetch_dicts(
                f"SELECT {CHEMICAL_COLUMNS} FROM chemicals WHERE {NORMALIZED_NAME_SQL} = ? ORDER BY id LIMIT 1",
                [normalized]
            )
            return _to_do(rows[0]) if rows else None
        except Exception as e:
            self.logger.error(f"Failed to find chemical by normalized name {name}: {e}")
            raise

    def search_ranked(self, term: str, limit: int = 20) -> List[ChemicalDO]:
        """
        Word-prefix token search over name, category, CAS number and formula.

        Args:
            term: Search term
            limit: Maximum rows

        Returns:
            Chemicals ordered by relevance, then name
        """
        tokens = tokenize(term)
        if not tokens:
            return []
        score_sql, where_sql, score_params, where_params = ranked_token_clause(
            tokens, ["name", "category", "cas_number", "molecular_formula"]
        )
        try:
            rows = self._fetch_dicts(f"""
                SELECT {CHEMICAL_COLUMNS}, ({score_sql}) AS score
                FROM chemicals
                WHERE {where_sql}
                ORDER BY score DESC, name
                LIMIT ?
            """, score_params + where_params + [limit])
            for row in rows:
                row.pop("score")
            return [_to_do(row) for row in rows]
        except Exception as e:
            self.logger.error(f"Failed ranked chemical search for '{term}': {e}")
            raise

    def search_substring(self, term: str, limit: int = 20) -> List[ChemicalDO]:
        """Substring match on name, CAS number or formula."""
        pattern = f"%{term.strip().lower()}%"
        try:
            rows = self._fetch_dicts(f"""
                SELECT {CHEMICAL_COLUMNS}
                FROM chemicals
                WHERE lower(name) LIKE ?
                   OR lower(coalesce(cas_number, '')) LIKE ?
                   OR lower(coalesce(molecular_formula, '')) LIKE ?
                ORDER BY name
                LIMIT ?
            """, [pattern, pattern, pattern, limit])
            return [_to_do(row) for row in rows]
        except Exception as e:
            self.logger.error(f"Failed substring chemical search for '{term}': {e}")
            raise

    def list_low_stock(self, threshold: float) -> List[ChemicalDO]:
        """Chemicals with 0 < quantity <= threshold, lowest first."""
        try:
            rows = self._fetch_dicts(f"""
                SELECT {CHEMICAL_COLUMNS} FROM chemicals
                WHERE quantity <= ? AND quantity > 0
                ORDER BY quantity ASC, name
            """, [threshold])
            return [_to_do(row) for row in rows]
        except Exception as e:
            self.logger.error(f"Failed to list low stock chemicals: {e}")
            raise

    def list_expiring(self, today: date, days: int) -> List[ChemicalDO]:
        """Chemicals expiring within the next `days` days that have not expired yet."""
        try:
            rows = self._fetch_dicts(f"""
                SELECT {CHEMICAL_COLUMNS} FROM chemicals
                WHERE expiry_date IS NOT NULL AND expiry_date >= ? AND expiry_date <= ?
                ORDER BY expiry_date ASC, name
            """, [today, today + timedelta(days=days)])
            return [_to_do(row) for row in rows]
        except Exception as e:
            self.logger.error(f"Failed to list expiring chemicals: {e}")
            raise

    def list_expired(self, today: date) -> List[ChemicalDO]:
        """Chemicals whose expiry date has passed."""
        try:
            rows = self._fetch_dicts(f"""
                SELECT {CHEMICAL_COLUMNS} FROM chemicals
                WHERE expiry_date IS NOT NULL AND expiry_date < ?
                ORDER BY expiry_date ASC, name
            """, [today])
            return [_to_do(row) for row in rows]
        except Exception as e:
            self.logger.error(f"Failed to list expired chemicals: {e}")
            raise

    def list_by_category(self, category: str) -> List[ChemicalDO]:
        """Chemicals in a category, case-insensitive."""
        try:
            rows = self._fetch_dicts(f"""
                SELECT {CHEMICAL_COLUMNS} FROM chemicals
                WHERE lower(coalesce(category, '')) = ?
                ORDER BY name
            """, [category.strip().lower()])
            return [_to_do(row) for row in rows]
        except Exception as e:
            self.logger.error(f"Failed to list chemicals in category {category}: {e}")
            raise

    def count(self) -> int:
        """Total number of chemicals."""
        try:
            return int(self._fetch_scalar("SELECT COUNT(*) FROM chemicals") or 0)
        except Exception as e:
            self.logger.error(f"Failed to count chemicals: {e}")
            raise
