"""Chat conversation and audit database models."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass
class ChatConversationDO:
    """Conversation data object - maps to chat_conversations table."""

    id: int
    user_id: int
    conversation_type: str = "bot"
    status: str = "active"
    title: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)


@dataclass
class AuditLogDO:
    """Audit entry data object - maps to chatbot_audit_log table."""

    id: int
    user_id: Optional[int]
    query_text: str
    response_text: Optional[str] = None
    query_type: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now)
