"""Chat entry point: validation, routing and the single error boundary."""

import time
from typing import Any, Optional, Tuple

from ...config import Settings, settings as default_settings
from ...db.repositories import AuditLogRepository
from ...utils.logger import get_app_logger
from ...utils.validation import (
    ValidationError,
    coerce_user_id,
    create_error_response,
    sanitize_input,
    validate_message,
    validate_user_id,
    validate_user_role,
)
from ..conversation_state import ConversationStateStore
from ..lab_data import LabDataService
from .context import ChatTurn, ConversationContext
from .handlers import ResponseHandlers
from .intents import CONTEXTUAL, DEFAULT, classify, classify_query_type


ERROR_QUERY_TYPE = "error"


class IntentRouter:
    """Picks a handler for a turn: rule table first, then follow-ups, then the default."""

    def __init__(self, handlers: ResponseHandlers):
        self.handlers = handlers

    def route(self, turn: ChatTurn) -> Tuple[str, str]:
        """
        Produce a reply for a turn.

        Returns:
            (intent name, reply text)
        """
        intent = classify(turn.message)
        if intent is not None:
            return intent, self.handlers.for_intent(intent)(turn)

        reply = self.handlers.contextual(turn)
        if reply is not None:
            return CONTEXTUAL, reply
        return DEFAULT, self.handlers.default(turn)


class ChatbotService:
    """Processes chat messages into replies. Never raises to the caller."""

    def __init__(
        self,
        lab_data: LabDataService,
        state: ConversationStateStore,
        audit: AuditLogRepository,
        config: Optional[Settings] = None
    ):
        """
        Initialize the service.

        Args:
            lab_data: Data access façade
            state: Conversation and context store
            audit: Audit log repository
            config: Application settings
        """
        self.lab_data = lab_data
        self.state = state
        self.audit = audit
        self.config = config or default_settings
        self.router = IntentRouter(ResponseHandlers(lab_data, self.config))
        self.logger = get_app_logger()

    def process_message(self, message: Any, user_id: Any, user_role: Any) -> str:
        """
        Answer one chat message.

        Args:
            message: Raw message text
            user_id: Raw user id
            user_role: Raw role string

        Returns:
            Reply text; errors are returned as formatted replies
        """
        start = time.monotonic()
        query_type = ERROR_QUERY_TYPE
        intent = None

        try:
            text = validate_message(message, self.config.message_max_length)
            role = validate_user_role(user_role)
            uid = validate_user_id(user_id, self.lab_data)
            text = sanitize_input(text)

            turn = self._open_turn(text, uid, role)
            intent, response = self.router.route(turn)
            query_type = classify_query_type(text)
        except Exception as e:
            response = create_error_response(e)

        self._log_query(user_id, message, response, query_type)
        elapsed_ms = (time.monotonic() - start) * 1000
        self.logger.info(
            f"[CHAT] user={user_id} intent={intent or ERROR_QUERY_TYPE} "
            f"type={query_type} took {elapsed_ms:.1f}ms"
        )
        return response

    def _open_turn(self, text: str, user_id: int, role: str) -> ChatTurn:
        """Load or create the conversation and its context for this message."""
        conversation = self.state.get_or_create(user_id)
        if conversation is None:
            self.logger.warning(f"No conversation for user {user_id}; continuing without context")
            return ChatTurn(text, user_id, role, ConversationContext())

        raw_context = self.state.get_context(conversation.id)
        self.state.touch(conversation.id)
        return ChatTurn(
            message=text,
            user_id=user_id,
            role=role,
            context=ConversationContext.from_mapping(raw_context),
            conversation_id=conversation.id,
            store=self.state,
        )

    def _log_query(self, user_id: Any, message: Any, response: str, query_type: str) -> None:
        """Write the audit row; failures never affect the reply."""
        try:
            audit_user: Optional[int] = coerce_user_id(user_id)
        except ValidationError:
            audit_user = None
        query_text = message if isinstance(message, str) else ""
        try:
            self.audit.create(audit_user, query_text, response, query_type)
        except Exception as e:
            self.logger.error(f"Failed to log chatbot query: {e}")
