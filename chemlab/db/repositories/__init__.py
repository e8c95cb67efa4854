"""Repository layer for data access."""

from .chemical import ChemicalRepository
from .equipment import EquipmentRepository
from .borrowing import BorrowingRepository
from .user import UserRepository
from .schedule import ScheduleRepository
from .usage_log import UsageLogRepository
from .conversation import ChatConversationRepository, ChatContextRepository
from .audit import AuditLogRepository

__all__ = [
    "ChemicalRepository",
    "EquipmentRepository",
    "BorrowingRepository",
    "UserRepository",
    "ScheduleRepository",
    "UsageLogRepository",
    "ChatConversationRepository",
    "ChatContextRepository",
    "AuditLogRepository",
]
