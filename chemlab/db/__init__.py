"""Database package - connection, models, and repositories."""

from .connection import DatabaseConnection
from .repositories import (
    ChemicalRepository,
    EquipmentRepository,
    BorrowingRepository,
    UserRepository,
    ScheduleRepository,
    UsageLogRepository,
    ChatConversationRepository,
    ChatContextRepository,
    AuditLogRepository,
)

__all__ = [
    "DatabaseConnection",
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
