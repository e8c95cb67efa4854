"""Chatbot API models."""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, Field


class ChatMessageRequest(BaseModel):
    """Request model for sending a chat message.

    All fields are optional; missing or malformed values get an assistant
    reply rather than a 422.
    """

    message: Optional[str] = Field(None, description="Message text")
    user_id: Optional[Union[int, str]] = Field(None, description="Sender user ID")
    user_role: Optional[str] = Field(None, description="Sender role (admin/technician/borrower)")


class SuggestedAction(BaseModel):
    """A clickable follow-up action."""

    display_text: str = Field(description="Button label")
    icon: str = Field(description="Icon name")
    message: str = Field(description="Message sent when the action is chosen")


class ChatMessageResponse(BaseModel):
    """Response model for a chat reply."""

    success: bool = Field(description="Whether a reply was produced")
    response: str = Field(description="Reply text (markdown)")
    detected_query_type: str = Field(description="Coarse query category")
    suggested_actions: List[SuggestedAction] = Field(default_factory=list, description="Follow-up actions")
    processing_time_ms: float = Field(description="Processing time in milliseconds")
    timestamp: datetime = Field(description="Reply timestamp")


class QuickActionsResponse(BaseModel):
    """Response model for role quick actions."""

    role: str = Field(description="Role the actions are for")
    actions: List[SuggestedAction] = Field(description="Quick actions")


class ChatHistoryItem(BaseModel):
    """One past query."""

    id: int = Field(description="Audit entry ID")
    query_text: str = Field(description="Message as sent")
    response_text: Optional[str] = Field(None, description="Reply given")
    query_type: Optional[str] = Field(None, description="Coarse query category")
    created_at: datetime = Field(description="When the query was made")


class ChatHistoryResponse(BaseModel):
    """Response model for chat history."""

    user_id: int = Field(description="User ID")
    history: List[ChatHistoryItem] = Field(description="Recent queries, newest first")
    total: int = Field(description="Number of entries returned")


class ContextClearResponse(BaseModel):
    """Response model for clearing conversation context."""

    success: bool = Field(description="Whether the context was cleared")
    user_id: int = Field(description="User whose context was cleared")


class UsageStatItem(BaseModel):
    """Query counts for one query type."""

    query_type: str = Field(description="Coarse query category")
    count: int = Field(description="Number of queries")
    unique_users: int = Field(description="Distinct users asking")
    last_query_at: Optional[datetime] = Field(None, description="Most recent query")


class UsageStatsResponse(BaseModel):
    """Response model for usage statistics."""

    days: int = Field(description="Window size in days")
    user_id: Optional[int] = Field(None, description="User filter, if any")
    stats: List[UsageStatItem] = Field(description="Counts per query type")
    total_queries: int = Field(description="Sum of all counts")


class PerformanceResponse(BaseModel):
    """Response model for cache and database health."""

    status: str = Field(description="healthy or degraded")
    database: str = Field(description="Database check result")
    error: Optional[str] = Field(None, description="Database error, if any")
    caches: Dict[str, Dict[str, Any]] = Field(description="Statistics per cache")


class CacheClearResponse(BaseModel):
    """Response model for clearing caches."""

    success: bool = Field(description="Whether caches were cleared")
    message: str = Field(description="Result message")
