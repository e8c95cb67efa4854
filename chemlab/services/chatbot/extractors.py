"""Pull item names and quantities out of free-text chat messages."""

import re
from typing import Iterable, Optional, Pattern, Tuple


MAX_EXTRACTED_LENGTH = 100

PRONOUN_PATTERN = re.compile(r"^(?:it|its|it(?:'|&#x27;)s|this|that|these|those|them|they)\b")
REFERENCE_PATTERN = re.compile(r"\b(?:it|its|this|that|these|those|them)\b")

# Trailing phrases that describe time, not the item
_TRAILING_TIME = re.compile(
    r"\s+(?:for|on|at|from|by|until|next|this|tomorrow|today|tonight)\b"
    r"(?:\s+(?:today|tomorrow|tonight|morning|afternoon|evening|week|month|monday|tuesday|"
    r"wednesday|thursday|friday|saturday|sunday|next|this|the|\d[\w:/\-]*|am|pm))*\s*$"
)
_TRAILING_FILLER = re.compile(r"\s+(?:please|now|asap|again)\s*$")
_LEADING_ARTICLE = re.compile(r"^(?:the|a|an|some|any|more|of)\s+")

WHAT_IS_PATTERN = re.compile(
    r"\bwhat(?:\s+is|'s|&#x27;s)\s+(?!(?:the\s+)?(?:status|schedule|on|in|my|your|there|available)\b)(.+)"
)

DETAIL_PATTERNS = (
    re.compile(r"\b(?:details|detail|information|info|specs|specifications|properties)\s+"
               r"(?:of|on|about|for)\s+(.+)"),
    re.compile(r"\b(?:tell me about|describe)\s+(.+)"),
    WHAT_IS_PATTERN,
)

BOOKING_PATTERNS = (
    re.compile(r"\b(?:book|reserve)\s+(.+)"),
)

PURCHASE_PATTERNS = (
    re.compile(r"\b(?:purchase|buy|order|procure|reorder)\s+(?:of\s+|for\s+|more\s+)?(.+)"),
)

BORROW_PATTERNS = (
    re.compile(r"\bborrow\s+(.+)"),
    re.compile(r"\brequest\s+(?:to\s+borrow\s+|for\s+)?(.+)"),
)

SAFETY_PATTERNS = (
    re.compile(r"\b(?:safety|hazards?|precautions?|handling|sds|msds|ppe)\s+"
               r"(?:information\s+|info\s+|data\s+|sheet\s+)?(?:of|for|about|on|with|when using)\s+(.+)"),
    re.compile(r"\bhow (?:do i|to|should i)\s+(?:safely\s+)?(?:handle|store|dispose of)\s+(.+)"),
    re.compile(r"\bis\s+(.+?)\s+(?:hazardous|dangerous|toxic|flammable|safe)\b"),
)

PROTOCOL_PATTERNS = (
    re.compile(r"\b(?:protocol|procedure|method|steps)\s+(?:for|of|to)\s+(.+)"),
    re.compile(r"\bhow (?:do i|to|should i)\s+(?:perform|do|run|carry out)\s+(?:a\s+|an\s+)?(.+)"),
)

AVAILABILITY_ITEM_PATTERN = re.compile(r"\bis\s+(?:the\s+|a\s+|an\s+)?(.+?)\s+(?:available|free|in use|booked)\b")

COMPATIBILITY_PATTERN = re.compile(
    r"\b(?:mix|mixing|combine|store|react)\s+(.+?)\s+(?:with|and|together with)\s+(.+?)(?:\s+together)?$"
)

QUANTITY_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*([a-zµ]+)?")


def clean_item_name(raw: Optional[str]) -> Optional[str]:
    """
    Trim punctuation, articles and trailing time phrases from a captured name.

    Returns None for empty captures and pronoun references.
    """
    if not raw:
        return None

    name = raw.strip().strip("?.!,;:").strip()
    name = _LEADING_ARTICLE.sub("", name)
    previous = None
    while previous != name:
        previous = name
        name = _TRAILING_TIME.sub("", name)
        name = _TRAILING_FILLER.sub("", name)
        name = name.strip().strip("?.!,;:").strip()

    if not name or PRONOUN_PATTERN.match(name):
        return None
    return name[:MAX_EXTRACTED_LENGTH]


def extract_with(patterns: Iterable[Pattern], message: str) -> Optional[str]:
    """Return the cleaned first capture of the first matching pattern."""
    text = message.lower().strip()
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            name = clean_item_name(match.group(1))
            if name:
                return name
    return None


def extract_detail_subject(message: str) -> Optional[str]:
    return extract_with(DETAIL_PATTERNS, message)


def extract_what_is_subject(message: str) -> Optional[str]:
    return extract_with((WHAT_IS_PATTERN,), message)


def extract_booking_target(message: str) -> Optional[str]:
    return extract_with(BOOKING_PATTERNS, message)


def extract_purchase_item(message: str) -> Optional[str]:
    return extract_with(PURCHASE_PATTERNS, message)


def extract_borrow_item(message: str) -> Optional[str]:
    return extract_with(BORROW_PATTERNS, message)


def extract_safety_subject(message: str) -> Optional[str]:
    return extract_with(SAFETY_PATTERNS, message)


def extract_protocol_subject(message: str) -> Optional[str]:
    return extract_with(PROTOCOL_PATTERNS, message)


def extract_availability_item(message: str) -> Optional[str]:
    return extract_with((AVAILABILITY_ITEM_PATTERN,), message)


def extract_compatibility_pair(message: str) -> Optional[Tuple[str, str]]:
    """Two item names from "mix X with Y" style questions."""
    match = COMPATIBILITY_PATTERN.search(message.lower().strip().strip("?.!"))
    if not match:
        return None
    first, second = clean_item_name(match.group(1)), clean_item_name(match.group(2))
    if not first or not second:
        return None
    return first, second


def mentions_reference(message: str) -> bool:
    """True when the message points back at something with a pronoun."""
    return bool(REFERENCE_PATTERN.search(message.lower()))


def parse_quantity(message: str) -> Optional[Tuple[float, Optional[str]]]:
    """
    Parse the first number and optional unit, e.g. "50 ml" -> (50.0, "ml").

    Returns None when the message holds no number.
    """
    match = QUANTITY_PATTERN.search(message.lower())
    if not match:
        return None
    return float(match.group(1)), match.group(2)
