"""Rule-based lab assistant: intent routing, handlers and conversation context."""

from .context import ChatTurn, ConversationContext, PendingAction
from .intents import INTENT_RULES, classify, classify_query_type
from .service import ChatbotService, IntentRouter
from .suggestions import generate_suggested_actions, get_quick_actions

__all__ = [
    "ChatTurn",
    "ConversationContext",
    "PendingAction",
    "INTENT_RULES",
    "classify",
    "classify_query_type",
    "ChatbotService",
    "IntentRouter",
    "generate_suggested_actions",
    "get_quick_actions",
]
