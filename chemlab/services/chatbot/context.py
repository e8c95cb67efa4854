"""Typed conversation context carried between chat turns."""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from ...utils.logger import get_app_logger


logger = get_app_logger()

# Context keys persisted in chat_context
CONTEXT_KEYS = (
    "last_topic",
    "last_chemical",
    "last_chemical_id",
    "last_equipment",
    "last_equipment_id",
    "pending_action",
    "awaiting_quantity",
    "awaiting_clarification",
)


@dataclass
class PendingAction:
    """A multi-turn flow waiting for the user's next answer."""

    kind: str
    params: Dict[str, Any] = field(default_factory=dict)

    def to_json(self) -> str:
        return json.dumps({"kind": self.kind, "params": self.params})

    @classmethod
    def from_json(cls, raw: Optional[str]) -> Optional["PendingAction"]:
        if not raw:
            return None
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning(f"Ignoring malformed pending action: {raw!r}")
            return None
        if not isinstance(data, dict) or not data.get("kind"):
            return None
        params = data.get("params")
        return cls(kind=data["kind"], params=params if isinstance(params, dict) else {})


def _to_int(raw: Optional[str]) -> Optional[int]:
    try:
        return int(raw) if raw not in (None, "") else None
    except (TypeError, ValueError):
        return None


@dataclass
class ConversationContext:
    """What the assistant remembers about the conversation so far."""

    last_topic: Optional[str] = None
    last_chemical: Optional[str] = None
    last_chemical_id: Optional[int] = None
    last_equipment: Optional[str] = None
    last_equipment_id: Optional[int] = None
    pending_action: Optional[PendingAction] = None
    awaiting_quantity: bool = False
    awaiting_clarification: Optional[str] = None

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Optional[str]]) -> "ConversationContext":
        """Build a context from persisted key/value strings; unknown keys are ignored."""
        return cls(
            last_topic=raw.get("last_topic") or None,
            last_chemical=raw.get("last_chemical") or None,
            last_chemical_id=_to_int(raw.get("last_chemical_id")),
            last_equipment=raw.get("last_equipment") or None,
            last_equipment_id=_to_int(raw.get("last_equipment_id")),
            pending_action=PendingAction.from_json(raw.get("pending_action")),
            awaiting_quantity=str(raw.get("awaiting_quantity", "")).lower() == "true",
            awaiting_clarification=raw.get("awaiting_clarification") or None,
        )

    @staticmethod
    def serialize(key: str, value: Any) -> Optional[str]:
        """String form of a context value as stored; None means delete."""
        if value is None or value is False:
            return None
        if isinstance(value, PendingAction):
            return value.to_json()
        if value is True:
            return "true"
        return str(value)


@dataclass
class ChatTurn:
    """One inbound message plus everything handlers need to answer it."""

    message: str
    user_id: int
    role: str
    context: ConversationContext
    conversation_id: Optional[int] = None
    store: Any = None

    @property
    def lower(self) -> str:
        return self.message.lower()

    @property
    def is_staff(self) -> bool:
        return self.role in ("admin", "technician")

    def remember(self, **updates: Any) -> None:
        """
        Update context fields and persist them.

        Passing None (or False for flags) removes the key. Persistence
        failures are logged by the store and do not interrupt the reply.
        """
        for key, value in updates.items():
            if key not in CONTEXT_KEYS:
                raise KeyError(f"Unknown context key: {key}")
            setattr(self.context, key, value)

            if self.store is None or self.conversation_id is None:
                continue
            serialized = ConversationContext.serialize(key, value)
            if serialized is None:
                self.store.clear_context(self.conversation_id, key)
            else:
                self.store.set_context(self.conversation_id, key, serialized)

    def forget_pending(self) -> None:
        """Drop any in-progress flow."""
        self.remember(pending_action=None, awaiting_quantity=False, awaiting_clarification=None)
