"""Per-user conversation and context persistence."""

from typing import Dict, Optional

from ..db.database_models.chat import ChatConversationDO
from ..db.repositories import ChatContextRepository, ChatConversationRepository
from ..utils.logger import get_app_logger


class ConversationStateStore:
    """Resolves a user's active bot conversation and its key/value context."""

    def __init__(self, conn):
        """
        Initialize the store.

        Args:
            conn: DuckDB connection instance
        """
        self.conversations = ChatConversationRepository(conn)
        self.context = ChatContextRepository(conn)
        self.logger = get_app_logger()

    def get_or_create(self, user_id: int) -> Optional[ChatConversationDO]:
        """
        Return the user's active bot conversation, creating one if missing.

        Two concurrent first messages from the same user can each create a
        conversation; later lookups pick the most recently updated one.
        """
        conversation = self.conversations.get_active_bot(user_id)
        if conversation:
            return conversation
        return self.conversations.create(user_id)

    def touch(self, conversation_id: int) -> bool:
        return self.conversations.touch(conversation_id)

    def get_context(self, conversation_id: int) -> Dict[str, str]:
        return self.context.get_all(conversation_id)

    def set_context(self, conversation_id: int, key: str, value: Optional[str]) -> bool:
        return self.context.upsert(conversation_id, key, value)

    def clear_context(self, conversation_id: int, key: Optional[str] = None) -> bool:
        """Remove one context key, or all of them when key is None."""
        return self.context.delete(conversation_id, key)

    def clear_user_context(self, user_id: int) -> bool:
        """Remove context of every conversation the user owns."""
        return self.context.delete_for_user(user_id)
