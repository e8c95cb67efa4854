"""Ordered intent rules for routing chat messages.

Rules are checked top to bottom against the lower-cased message and the
first match wins. Messages matching no rule go to the contextual follow-up
handler and then the default status summary.
"""

import re
from typing import Callable, List, Optional, Tuple

from .extractors import extract_booking_target, extract_detail_subject, extract_what_is_subject


DETAILS = "details"
AVAILABILITY = "availability"
ALERTS = "alerts"
MAINTENANCE = "maintenance"
BOOKING = "booking"
PURCHASE = "purchase"
PROTOCOL = "protocol"
COMPATIBILITY = "compatibility"
BORROW = "borrow"
BORROW_STATUS = "borrow_status"
SCHEDULE = "schedule"
SAFETY = "safety"
HISTORY = "history"
HELP = "help"
CONTEXTUAL = "contextual"
DEFAULT = "default"

DETAIL_KEYWORDS = (
    "detail", "information about", "information on", "info about", "info on",
    "tell me about", "specification", "specs", "properties of", "describe",
)
CHEMICAL_WORDS = (
    "chemical", "reagent", "compound", "solvent", "substance", "solution", "acid", "base",
)
EQUIPMENT_WORDS = (
    "equipment", "instrument", "device", "machine", "apparatus", "centrifuge", "microscope",
    "balance", "spectrometer", "spectrophotometer", "incubator", "fume hood", "oven",
    "autoclave", "pipette", "hotplate", "hot plate", "stirrer", "ph meter", "chromatograph",
    "hplc", "thermometer", "freezer", "refrigerator", "burette", "titrator",
)
AVAILABILITY_KEYWORDS = (
    "available", "in stock", "show all", "list all", "do we have", "do you have", "inventory",
)
ALERT_KEYWORDS = ("low stock", "running low", "expir", "restock", "alert", "out of stock")
MAINTENANCE_KEYWORDS = ("maintenance", "calibrat", "servicing")
PURCHASE_KEYWORDS = ("purchase", "buy", "order more", "procure")
PROTOCOL_KEYWORDS = ("protocol", "procedure for", "how to perform", "how do i perform", "experiment steps")
COMPATIBILITY_PATTERN = re.compile(r"compatib|\bmix(?:ing|ed)?\b|react with|store together|\bcombine\b")
BORROW_PATTERN = re.compile(r"\bborrow|\brequest")
SCHEDULE_KEYWORDS = ("schedule", "lecture", "timetable", "lab session")
SAFETY_KEYWORDS = (
    "safety", "hazard", "ppe", "spill", "emergency", "protective", "sds", "precaution",
    "first aid", "danger", "toxic",
)
HISTORY_KEYWORDS = ("history", "past", "previous")
HELP_KEYWORDS = ("help", "what can")
BOOKING_PATTERN = re.compile(r"\b(?:book|reserve)\b")


def _has_any(text: str, words) -> bool:
    return any(word in text for word in words)


def mentions_chemical(text: str) -> bool:
    return _has_any(text, CHEMICAL_WORDS)


def mentions_equipment(text: str) -> bool:
    return _has_any(text, EQUIPMENT_WORDS)


def _names_other_topic(text: str) -> bool:
    return any(_has_any(text, words) for words in (
        AVAILABILITY_KEYWORDS, ALERT_KEYWORDS, MAINTENANCE_KEYWORDS, PURCHASE_KEYWORDS,
        PROTOCOL_KEYWORDS, SCHEDULE_KEYWORDS, SAFETY_KEYWORDS, HISTORY_KEYWORDS,
    )) or any(p.search(text) for p in (BOOKING_PATTERN, BORROW_PATTERN, COMPATIBILITY_PATTERN))


def _is_details(text: str) -> bool:
    if _has_any(text, DETAIL_KEYWORDS):
        return mentions_chemical(text) or mentions_equipment(text) or extract_detail_subject(text) is not None
    # "what is X" only when X is a bare item name
    return extract_what_is_subject(text) is not None and not _names_other_topic(text)


def _is_availability(text: str) -> bool:
    return _has_any(text, AVAILABILITY_KEYWORDS) and (mentions_chemical(text) or mentions_equipment(text))


def _is_booking(text: str) -> bool:
    return bool(BOOKING_PATTERN.search(text)) and (
        mentions_equipment(text) or extract_booking_target(text) is not None
    )


def _is_borrow(text: str) -> bool:
    return bool(BORROW_PATTERN.search(text)) and "status" not in text


def _is_borrow_status(text: str) -> bool:
    return "status" in text and bool(BORROW_PATTERN.search(text))


INTENT_RULES: List[Tuple[str, Callable[[str], bool]]] = [
    (DETAILS, _is_details),
    (AVAILABILITY, _is_availability),
    (ALERTS, lambda text: _has_any(text, ALERT_KEYWORDS)),
    (MAINTENANCE, lambda text: _has_any(text, MAINTENANCE_KEYWORDS)),
    (BOOKING, _is_booking),
    (PURCHASE, lambda text: _has_any(text, PURCHASE_KEYWORDS)),
    (PROTOCOL, lambda text: _has_any(text, PROTOCOL_KEYWORDS)),
    (COMPATIBILITY, lambda text: bool(COMPATIBILITY_PATTERN.search(text))),
    (BORROW, _is_borrow),
    (BORROW_STATUS, _is_borrow_status),
    (SCHEDULE, lambda text: _has_any(text, SCHEDULE_KEYWORDS)),
    (SAFETY, lambda text: _has_any(text, SAFETY_KEYWORDS)),
    (HISTORY, lambda text: _has_any(text, HISTORY_KEYWORDS)),
    (HELP, lambda text: _has_any(text, HELP_KEYWORDS)),
]


def classify(message: str) -> Optional[str]:
    """
    Return the first matching intent, or None when no rule matches.

    Args:
        message: Sanitized message text

    Returns:
        Intent name from INTENT_RULES or None
    """
    text = message.lower()
    for intent, predicate in INTENT_RULES:
        if predicate(text):
            return intent
    return None


def classify_query_type(message: Optional[str]) -> str:
    """Coarse tag recorded with each audit row."""
    if not message:
        return "general"

    text = message.lower()
    if _has_any(text, ("chemical", "reagent", "compound", "solution")):
        return "chemical_inquiry"
    if _has_any(text, ("equipment", "instrument", "device", "apparatus")):
        return "equipment_inquiry"
    if _has_any(text, ("safety", "hazard", "ppe", "spill")):
        return "safety_query"
    if _has_any(text, ("borrow", "request", "book", "reserve")):
        return "borrowing_request"
    if _has_any(text, ("schedule", "when", "booking", "time")):
        return "schedule_query"
    if _has_any(text, ("available", "stock", "inventory", "status")):
        return "inventory_query"
    if _has_any(text, HELP_KEYWORDS):
        return "help_request"
    return "general"
