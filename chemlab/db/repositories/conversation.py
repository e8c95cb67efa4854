"""Chat conversation and context repositories."""

from datetime import datetime
from typing import Dict, Optional
from .base import BaseRepository
from ..database_models.chat import ChatConversationDO


CONVERSATION_COLUMNS = "id, user_id, conversation_type, status, title, created_at, updated_at"


class ChatConversationRepository(BaseRepository):
    """Repository for chat_conversations rows."""

    def get_active_bot(self, user_id: int) -> Optional[ChatConversationDO]:
        """
        Get the user's most recently updated active bot conversation.

        Args:
            user_id: User ID

        Returns:
            ChatConversationDO instance or None
        """
        try:
            rows = self._fetch_dicts(f"""
                SELECT {CONVERSATION_COLUMNS}
                FROM chat_conversations
                WHERE user_id = ? AND conversation_type = 'bot' AND status = 'active'
                ORDER BY updated_at DESC, id DESC
                LIMIT 1
            """, [user_id])
            return ChatConversationDO(**rows[0]) if rows else None
        except Exception as e:
            self.logger.error(f"Failed to get active conversation for user {user_id}: {e}")
            return None

    def create(self, user_id: int, title: str = "Lab Assistant Chat") -> Optional[ChatConversationDO]:
        """
        Create an active bot conversation.

        Args:
            user_id: Owning user
            title: Conversation title

        Returns:
            The created ChatConversationDO or None on failure
        """
        try:
            now = datetime.now()
            rows = self._fetch_dicts(f"""
                INSERT INTO chat_conversations (user_id, conversation_type, status, title, created_at, updated_at)
                VALUES (?, 'bot', 'active', ?, ?, ?)
                RETURNING {CONVERSATION_COLUMNS}
            """, [user_id, title, now, now])
            self.conn.commit()
            conversation = ChatConversationDO(**rows[0])
            self.logger.info(f"Created conversation {conversation.id} for user {user_id}")
            return conversation
        except Exception as e:
            self.logger.error(f"Failed to create conversation for user {user_id}: {e}")
            return None

    def touch(self, conversation_id: int) -> bool:
        """Set updated_at to now."""
        try:
            self.conn.execute(
                "UPDATE chat_conversations SET updated_at = ? WHERE id = ?",
                [datetime.now(), conversation_id]
            )
            self.conn.commit()
            return True
        except Exception as e:
            self.logger.error(f"Failed to touch conversation {conversation_id}: {e}")
            return False


class ChatContextRepository(BaseRepository):
    """Repository for chat_context key/value rows."""

    def get_all(self, conversation_id: int) -> Dict[str, str]:
        """
        Load every context entry of a conversation.

        Args:
            conversation_id: Conversation ID

        Returns:
            Mapping of context_key to context_value, empty on failure
        """
        try:
            rows = self.conn.execute("""
                SELECT context_key, context_value
                FROM chat_context
                WHERE conversation_id = ?
            """, [conversation_id]).fetchall()
            return {row[0]: row[1] for row in rows}
        except Exception as e:
            self.logger.error(f"Failed to load context for conversation {conversation_id}: {e}")
            return {}

    def upsert(self, conversation_id: int, key: str, value: Optional[str]) -> bool:
        """
        Insert or overwrite one context entry.

        Args:
            conversation_id: Conversation ID
            key: Context key
            value: Serialized value

        Returns:
            True if successful, False otherwise
        """
        try:
            self.conn.execute("""
                INSERT INTO chat_context (conversation_id, context_key, context_value, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT (conversation_id, context_key)
                DO UPDATE SET context_value = EXCLUDED.context_value, updated_at = EXCLUDED.updated_at
            """, [conversation_id, key, value, datetime.now()])
            self.conn.commit()
            return True
        except Exception as e:
            self.logger.error(f"Failed to set context {key} for conversation {conversation_id}: {e}")
            return False

    def delete(self, conversation_id: int, key: Optional[str] = None) -> bool:
        """Delete one key, or every key when key is None."""
        try:
            if key is None:
                self.conn.execute("DELETE FROM chat_context WHERE conversation_id = ?", [conversation_id])
            else:
                self.conn.execute(
                    "DELETE FROM chat_context WHERE conversation_id = ? AND context_key = ?",
                    [conversation_id, key]
                )
            self.conn.commit()
            return True
        except Exception as e:
            self.logger.error(f"Failed to clear context for conversation {conversation_id}: {e}")
            return False

    def delete_for_user(self, user_id: int) -> bool:
        """Delete context of every conversation owned by a user."""
        try:
            self.conn.execute("""
                DELETE FROM chat_context
                WHERE conversation_id IN (SELECT id FROM chat_conversations WHERE user_id = ?)
            """, [user_id])
            self.conn.commit()
            self.logger.info(f"Cleared chat context for user {user_id}")
            return True
        except Exception as e:
            self.logger.error(f"Failed to clear context for user {user_id}: {e}")
            return False
