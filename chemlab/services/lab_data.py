"""Fault-tolerant data access for the lab assistant.

Every read returns a ``FetchResult`` so callers can tell "nothing matched"
apart from "the query failed". Failures are logged here and never raised.
Listings and searches go through bounded TTL caches; failed results are not
cached.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

from ..config import Settings, settings as default_settings
from ..db.database_models.inventory import ChemicalDO, ChemicalUsageLogDO, EquipmentDO
from ..db.database_models.lab import BorrowingDO, LectureScheduleDO, UserDO
from ..db.repositories import (
    BorrowingRepository,
    ChemicalRepository,
    EquipmentRepository,
    ScheduleRepository,
    UsageLogRepository,
    UserRepository,
)
from ..utils.logger import get_app_logger
from ..utils.query_cache import QueryCache, make_cache_key


T = TypeVar("T")

MIN_SEARCH_LENGTH = 2


@dataclass
class FetchResult(Generic[T]):
    """Outcome of a read: a value, or a failure with its cause."""

    value: Optional[T] = None
    failed: bool = False
    error: Optional[BaseException] = None

    @classmethod
    def ok(cls, value: T) -> "FetchResult[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, error: BaseException) -> "FetchResult[T]":
        return cls(failed=True, error=error)

    @property
    def is_empty(self) -> bool:
        """True when the read succeeded and found nothing."""
        return not self.failed and not self.value


class LabDataService:
    """Read and search access to chemicals, equipment, borrowings, schedules and users."""

    def __init__(
        self,
        conn,
        config: Optional[Settings] = None,
        today: Callable[[], date] = date.today
    ):
        """
        Initialize the service.

        Args:
            conn: DuckDB connection instance
            config: Settings for cache sizing and thresholds
            today: Date source for date-relative queries
        """
        self.conn = conn
        self.config = config or default_settings
        self.logger = get_app_logger()
        self._today = today

        self.users = UserRepository(conn)
        self.chemicals = ChemicalRepository(conn)
        self.equipment = EquipmentRepository(conn)
        self.borrowings = BorrowingRepository(conn)
        self.schedules = ScheduleRepository(conn)
        self.usage_logs = UsageLogRepository(conn)

        self.chemical_cache = QueryCache(
            self.config.chemical_cache_size, self.config.chemical_cache_ttl, "chemical"
        )
        self.equipment_cache = QueryCache(
            self.config.equipment_cache_size, self.config.equipment_cache_ttl, "equipment"
        )
        self.search_cache = QueryCache(
            self.config.search_cache_size, self.config.search_cache_ttl, "search"
        )

    def today(self) -> date:
        return self._today()

    def _fetch(
        self,
        label: str,
        query: Callable[[], T],
        cache: Optional[QueryCache] = None,
        key: Optional[str] = None
    ) -> FetchResult[T]:
        """Run a query, consulting and filling the cache on success."""
        if cache is not None and key is not None:
            cached = cache.get(key)
            if cached is not None:
                return FetchResult.ok(cached)

        try:
            value = query()
        except Exception as e:
            self.logger.error(f"[LabData] {label} failed: {e}")
            return FetchResult.fail(e)

        if cache is not None and key is not None:
            cache.set(key, value)
        return FetchResult.ok(value)

    # Users

    def get_user(self, user_id: int) -> FetchResult[Optional[UserDO]]:
        return self._fetch(f"get_user({user_id})", lambda: self.users.get(user_id))

    # Chemicals

    def list_chemicals(self, limit: Optional[int] = None) -> FetchResult[List[ChemicalDO]]:
        """All chemicals ordered by name, cached."""
        return self._fetch(
            "list_chemicals",
            lambda: self.chemicals.list_all(limit),
            self.chemical_cache,
            make_cache_key("chemicals", {"limit": limit})
        )

    def get_chemical(self, chemical_id: int) -> FetchResult[Optional[ChemicalDO]]:
        return self._fetch(f"get_chemical({chemical_id})", lambda: self.chemicals.get(chemical_id))

    def find_chemical_by_name(self, name: str) -> FetchResult[Optional[ChemicalDO]]:
        return self._fetch(f"find_chemical_by_name({name})", lambda: self.chemicals.find_by_name(name))

    def find_chemical_flexible(self, name: str) -> FetchResult[Optional[ChemicalDO]]:
        """
        Resolve a user-typed chemical name.

        Tries an exact case-insensitive match, then a match ignoring spaces and
        punctuation, then the first search hit.
        """
        def query():
            found = self.chemicals.find_by_name(name) or self.chemicals.find_by_normalized_name(name)
            if found:
                return found
            hits = self._search(
                "chemicals", name, self.chemicals.search_ranked, self.chemicals.search_substring
            )
            return hits[0] if hits else None

        return self._fetch(f"find_chemical_flexible({name})", query)

    def search_chemicals(self, term: str) -> FetchResult[List[ChemicalDO]]:
        """Two-tier chemical search, capped at the configured limit."""
        return self._search_cached(
            "chemicals", term, self.chemicals.search_ranked, self.chemicals.search_substring
        )

    def low_stock_chemicals(self, threshold: Optional[float] = None) -> FetchResult[List[ChemicalDO]]:
        threshold = self.config.low_stock_threshold if threshold is None else threshold
        return self._fetch("low_stock_chemicals", lambda: self.chemicals.list_low_stock(threshold))

    def expiring_chemicals(self, days: Optional[int] = None) -> FetchResult[List[ChemicalDO]]:
        days = self.config.expiry_warning_days if days is None else days
        return self._fetch(
            "expiring_chemicals", lambda: self.chemicals.list_expiring(self.today(), days)
        )

    def expired_chemicals(self) -> FetchResult[List[ChemicalDO]]:
        return self._fetch("expired_chemicals", lambda: self.chemicals.list_expired(self.today()))

    def chemicals_by_category(self, category: str) -> FetchResult[List[ChemicalDO]]:
        return self._fetch(
            f"chemicals_by_category({category})",
            lambda: self.chemicals.list_by_category(category),
            self.chemical_cache,
            make_cache_key("chemicals_by_category", {"category": category.lower()})
        )

    def count_chemicals(self) -> FetchResult[int]:
        return self._fetch("count_chemicals", self.chemicals.count)

    # Equipment

    def list_equipment(self, limit: Optional[int] = None) -> FetchResult[List[EquipmentDO]]:
        """All equipment ordered by name, cached."""
        return self._fetch(
            "list_equipment",
            lambda: self.equipment.list_all(limit),
            self.equipment_cache,
            make_cache_key("equipment", {"limit": limit})
        )

    def get_equipment(self, equipment_id: int) -> FetchResult[Optional[EquipmentDO]]:
        return self._fetch(f"get_equipment({equipment_id})", lambda: self.equipment.get(equipment_id))

    def find_equipment_flexible(self, name: str) -> FetchResult[Optional[EquipmentDO]]:
        """Resolve a user-typed equipment name the same way as chemicals."""
        def query():
            found = self.equipment.find_by_name(name) or self.equipment.find_by_normalized_name(name)
            if found:
                return found
            hits = self._search(
                "equipment", name, self.equipment.search_ranked, self.equipment.search_substring
            )
            return hits[0] if hits else None

        return self._fetch(f"find_equipment_flexible({name})", query)

    def search_equipment(self, term: str) -> FetchResult[List[EquipmentDO]]:
        """Two-tier equipment search, capped at the configured limit."""
        return self._search_cached(
            "equipment", term, self.equipment.search_ranked, self.equipment.search_substring
        )

    def maintenance_due(self) -> FetchResult[List[EquipmentDO]]:
        return self._fetch("maintenance_due", lambda: self.equipment.list_maintenance_due(self.today()))

    def calibration_due(self) -> FetchResult[List[EquipmentDO]]:
        return self._fetch("calibration_due", lambda: self.equipment.list_calibration_due(self.today()))

    def available_equipment(self) -> FetchResult[List[EquipmentDO]]:
        return self._fetch("available_equipment", lambda: self.equipment.list_available(self.today()))

    def equipment_by_category(self, category: str) -> FetchResult[List[EquipmentDO]]:
        return self._fetch(
            f"equipment_by_category({category})",
            lambda: self.equipment.list_by_category(category),
            self.equipment_cache,
            make_cache_key("equipment_by_category", {"category": category.lower()})
        )

    def check_equipment_availability(self, equipment_id: int, start: date, end: date) -> FetchResult[bool]:
        """True when no approved borrowing overlaps [start, end]."""
        return self._fetch(
            f"check_equipment_availability({equipment_id})",
            lambda: self.equipment.count_overlapping_bookings(equipment_id, start, end) == 0
        )

    def upcoming_bookings(self, equipment_id: int) -> FetchResult[List[BorrowingDO]]:
        return self._fetch(
            f"upcoming_bookings({equipment_id})",
            lambda: self.borrowings.list_upcoming_for_equipment(equipment_id, self.today())
        )

    def count_equipment(self) -> FetchResult[int]:
        return self._fetch("count_equipment", self.equipment.count)

    def count_available_equipment(self) -> FetchResult[int]:
        return self._fetch(
            "count_available_equipment", lambda: self.equipment.count_by_status("available")
        )

    # Borrowings and schedules

    def borrowings_for_user(self, user_id: int, status: Optional[str] = None) -> FetchResult[List[BorrowingDO]]:
        return self._fetch(
            f"borrowings_for_user({user_id})",
            lambda: self.borrowings.list_by_borrower(user_id, status)
        )

    def count_pending_borrowings(self, user_id: int) -> FetchResult[int]:
        return self._fetch(
            f"count_pending_borrowings({user_id})",
            lambda: self.borrowings.count_by_status(user_id, "pending")
        )

    def schedules_for_date(self, scheduled_date: Optional[date] = None) -> FetchResult[List[LectureScheduleDO]]:
        scheduled_date = scheduled_date or self.today()
        return self._fetch(
            f"schedules_for_date({scheduled_date})",
            lambda: self.schedules.list_by_date(scheduled_date)
        )

    def create_schedule(self, schedule: LectureScheduleDO) -> LectureScheduleDO:
        """Store a lecture schedule. Raises on failure."""
        return self.schedules.create(schedule)

    # Usage logging

    def record_chemical_usage(self, chemical_id: int, user_id: int, quantity_used: float, **details: Any) -> ChemicalUsageLogDO:
        """
        Record chemical usage and decrement stock.

        Raises:
            ChemicalNotFoundError: No such chemical
            InsufficientQuantityError: Not enough stock
        """
        log = self.usage_logs.create(chemical_id, user_id, quantity_used, **details)
        # Quantities changed under every cached chemical listing
        self.chemical_cache.clear()
        self.search_cache.clear()
        return log

    def usage_history(self, chemical_id: int, limit: int = 50) -> FetchResult[List[ChemicalUsageLogDO]]:
        return self._fetch(
            f"usage_history({chemical_id})",
            lambda: self.usage_logs.list_by_chemical(chemical_id, limit)
        )

    # Search internals

    def _search(self, kind: str, term: str, ranked, substring) -> list:
        term = (term or "").strip()
        if len(term) < MIN_SEARCH_LENGTH:
            return []
        limit = self.config.search_result_limit
        try:
            results = ranked(term, limit)
        except Exception as e:
            self.logger.warning(f"[LabData] Ranked {kind} search failed for '{term}', using substring fallback: {e}")
            results = []
        if not results:
            self.logger.debug(f"[LabData] No ranked {kind} match for '{term}', using substring fallback")
            results = substring(term, limit)
        return results[:limit]

    def _search_cached(self, kind: str, term: str, ranked, substring) -> FetchResult[list]:
        term = (term or "").strip()
        if len(term) < MIN_SEARCH_LENGTH:
            return FetchResult.ok([])
        return self._fetch(
            f"search_{kind}({term})",
            lambda: self._search(kind, term, ranked, substring),
            self.search_cache,
            make_cache_key(f"search_{kind}_{term.lower()}", {"limit": self.config.search_result_limit})
        )

    # Cache administration

    def cache_stats(self) -> Dict[str, Dict[str, Any]]:
        """Statistics for each cache."""
        return {
            "chemical": self.chemical_cache.stats(),
            "equipment": self.equipment_cache.stats(),
            "search": self.search_cache.stats(),
        }

    def clear_all_caches(self) -> None:
        """Empty every cache."""
        self.chemical_cache.clear()
        self.equipment_cache.clear()
        self.search_cache.clear()
        self.logger.info("[LabData] All query caches cleared")

    def health_check(self) -> Dict[str, Any]:
        """Probe the database and report cache sizes."""
        database = "healthy"
        error = None
        try:
            self.conn.execute("SELECT 1").fetchone()
        except Exception as e:
            self.logger.error(f"[LabData] Database health check failed: {e}")
            database = "unhealthy"
            error = str(e)

        return {
            "status": "healthy" if database == "healthy" else "degraded",
            "database": database,
            "error": error,
            "caches": self.cache_stats(),
        }
