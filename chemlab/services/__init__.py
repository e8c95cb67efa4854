"""Services package."""

from .lab_data import FetchResult, LabDataService
from .conversation_state import ConversationStateStore
from .notifications import ScheduleUpdateRegistry

__all__ = [
    "FetchResult",
    "LabDataService",
    "ConversationStateStore",
    "ScheduleUpdateRegistry",
]
