"""Database models (data objects mapped to tables)."""

from .inventory import ChemicalDO, EquipmentDO, ChemicalUsageLogDO
from .lab import UserDO, BorrowingDO, LectureScheduleDO
from .chat import ChatConversationDO, AuditLogDO

__all__ = [
    "ChemicalDO",
    "EquipmentDO",
    "ChemicalUsageLogDO",
    "UserDO",
    "BorrowingDO",
    "LectureScheduleDO",
    "ChatConversationDO",
    "AuditLogDO",
]
