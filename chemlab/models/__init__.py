"""Pydantic models for API request/response."""

from .chat import (
    ChatMessageRequest,
    ChatMessageResponse,
    SuggestedAction,
    QuickActionsResponse,
    ChatHistoryItem,
    ChatHistoryResponse,
    ContextClearResponse,
    UsageStatItem,
    UsageStatsResponse,
    PerformanceResponse,
    CacheClearResponse,
)
from .usage import RecordUsageRequest, UsageLogResponse, UsageLogListResponse
from .schedule import CreateScheduleRequest, ScheduleResponse, ScheduleListResponse

__all__ = [
    "ChatMessageRequest",
    "ChatMessageResponse",
    "SuggestedAction",
    "QuickActionsResponse",
    "ChatHistoryItem",
    "ChatHistoryResponse",
    "ContextClearResponse",
    "UsageStatItem",
    "UsageStatsResponse",
    "PerformanceResponse",
    "CacheClearResponse",
    "RecordUsageRequest",
    "UsageLogResponse",
    "UsageLogListResponse",
    "CreateScheduleRequest",
    "ScheduleResponse",
    "ScheduleListResponse",
]
