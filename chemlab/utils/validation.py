"""Input validation, sanitization and error formatting for the lab assistant.

Validators reject bad input by raising ``ValidationError``; ``sanitize_input``
escapes instead of rejecting. ``create_error_response`` is the single place
where an exception becomes user-facing text.
"""

import html
import re
from datetime import date, datetime
from typing import Any, Optional

from .logger import get_app_logger


VALID_ROLES = ("admin", "technician", "borrower")
MAX_MESSAGE_LENGTH = 1000
MAX_NAME_LENGTH = 100
MAX_QUANTITY = 999999.99
MAX_YEARS_AHEAD = 100

_DENIED_CHARS = re.compile(r"[<>\"'&]")

logger = get_app_logger()


class ValidationError(Exception):
    """Caller-supplied input is structurally or semantically invalid."""

    def __init__(self, message: str, field: Optional[str] = None, limit: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.field = field
        self.limit = limit


class DatabaseError(Exception):
    """A lookup needed for validation could not be completed."""

    def __init__(self, message: str, original_error: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


def validate_message(message: Any, max_length: int = MAX_MESSAGE_LENGTH) -> str:
    """
    Validate a chat message.

    Args:
        message: Raw message
        max_length: Maximum length after trimming

    Returns:
        The trimmed message
    """
    if not message or not isinstance(message, str):
        logger.warning(f"[VALIDATION] Invalid message type or missing: {type(message).__name__}")
        raise ValidationError("Message is required and must be a string", "message")

    trimmed = message.strip()
    if not trimmed:
        logger.warning("[VALIDATION] Empty message received")
        raise ValidationError("Message cannot be empty", "message")

    if len(trimmed) > max_length:
        logger.warning(f"[VALIDATION] Message too long: {len(trimmed)}")
        raise ValidationError(f"Message is too long (max {max_length} characters)", "message", max_length)

    return trimmed


def coerce_user_id(user_id: Any) -> int:
    """Coerce a raw user id to a positive integer or raise ValidationError."""
    if user_id is None or user_id == "" or isinstance(user_id, bool):
        raise ValidationError("User ID is required", "userId")

    try:
        numeric = int(str(user_id).strip())
    except ValueError:
        raise ValidationError("User ID must be a positive integer", "userId")

    if numeric <= 0:
        raise ValidationError("User ID must be a positive integer", "userId")

    return numeric


def validate_user_id(user_id: Any, lab_data) -> int:
    """
    Validate that a user id refers to an existing user.

    Args:
        user_id: Raw user id
        lab_data: Data access façade providing get_user()

    Returns:
        The user id as an integer

    Raises:
        ValidationError: Malformed id or no such user
        DatabaseError: The existence check itself failed
    """
    numeric = coerce_user_id(user_id)

    result = lab_data.get_user(numeric)
    if result.failed:
        raise DatabaseError("Failed to validate user ID", result.error)
    if result.value is None:
        raise ValidationError("User not found", "userId")

    return numeric


def validate_user_role(role: Any) -> str:
    """Validate a user role and return it lower-cased."""
    if not role or not isinstance(role, str):
        raise ValidationError("User role is required and must be a string", "role")

    normalized = role.strip().lower()
    if normalized not in VALID_ROLES:
        raise ValidationError(
            f"Invalid user role. Must be one of: {', '.join(VALID_ROLES)}", "role"
        )

    return normalized


def _validate_name(value: Any, label: str, field: str) -> str:
    if not value or not isinstance(value, str):
        raise ValidationError(f"{label} is required and must be a string", field)

    trimmed = value.strip()
    if not trimmed:
        raise ValidationError(f"{label} cannot be empty", field)

    if len(trimmed) > MAX_NAME_LENGTH:
        raise ValidationError(f"{label} is too long (max {MAX_NAME_LENGTH} characters)", field)

    if _DENIED_CHARS.search(trimmed):
        raise ValidationError(f"{label} contains invalid characters", field)

    return trimmed


def validate_chemical_name(name: Any) -> str:
    """Validate a chemical name."""
    return _validate_name(name, "Chemical name", "chemicalName")


def validate_equipment_name(name: Any) -> str:
    """Validate an equipment name."""
    return _validate_name(name, "Equipment name", "equipmentName")


def validate_quantity(quantity: Any, unit: Any = None) -> float:
    """
    Validate a quantity value.

    Args:
        quantity: Number or numeric string
        unit: Optional unit, must be a string when given

    Returns:
        The quantity as a float
    """
    if quantity is None or quantity == "" or isinstance(quantity, bool):
        raise ValidationError("Quantity is required", "quantity")

    try:
        numeric = float(quantity)
    except (TypeError, ValueError):
        raise ValidationError("Quantity must be a valid number", "quantity")

    if numeric != numeric:
        raise ValidationError("Quantity must be a valid number", "quantity")

    if numeric < 0:
        raise ValidationError("Quantity cannot be negative", "quantity")

    if numeric > MAX_QUANTITY:
        raise ValidationError("Quantity is too large (max 999,999.99)", "quantity")

    if unit is not None and not isinstance(unit, str):
        raise ValidationError("Unit must be a string", "unit")

    return numeric


def validate_date(value: Any, field_name: str = "date") -> date:
    """
    Validate a date value.

    Args:
        value: date, datetime or ISO-format string
        field_name: Field name used in error messages

    Returns:
        The value as a date
    """
    if not value:
        raise ValidationError(f"{field_name} is required", field_name)

    if isinstance(value, datetime):
        parsed = value.date()
    elif isinstance(value, date):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip()).date()
        except ValueError:
            raise ValidationError(f"{field_name} is not a valid date", field_name)
    else:
        raise ValidationError(f"{field_name} must be a valid date", field_name)

    today = date.today()
    try:
        max_date = today.replace(year=today.year + MAX_YEARS_AHEAD)
    except ValueError:
        # Feb 29 in a non-leap target year
        max_date = today.replace(year=today.year + MAX_YEARS_AHEAD, day=28)

    if parsed > max_date:
        raise ValidationError(
            f"{field_name} cannot be more than {MAX_YEARS_AHEAD} years in the future", field_name
        )

    return parsed


def sanitize_input(value: Any) -> Any:
    """
    Escape characters that could be used for markup injection.

    Non-string values are returned unchanged.
    """
    if not isinstance(value, str):
        return value

    sanitized = html.escape(value, quote=True)
    if sanitized != value:
        logger.warning(
            f"[SECURITY] Input sanitization modified content "
            f"(original length: {len(value)}, sanitized length: {len(sanitized)})"
        )
    return sanitized


def create_error_response(
    error: BaseException,
    default_message: str = "An error occurred while processing your request"
) -> str:
    """
    Convert an exception into a user-facing reply.

    Args:
        error: The exception raised while processing
        default_message: Text used for unclassified errors

    Returns:
        Formatted error text
    """
    if isinstance(error, ValidationError):
        logger.warning(f"Validation error on {error.field}: {error.message}")
        if error.field == "message":
            if "too long" in error.message:
                limit = error.limit or MAX_MESSAGE_LENGTH
                return (
                    "**Message Too Long**\n\n"
                    f"Please keep your message under {limit} characters and try again."
                )
            return (
                "**Missing Info**\n\n"
                "Your message was empty. Please add more details about what you need."
            )
        field = f" ({error.field})" if error.field else ""
        return f"**Validation Error{field}:** {error.message}"

    if isinstance(error, DatabaseError):
        logger.error(f"Database error: {error.message} ({error.original_error})")
        return (
            "**System Busy**\n\n"
            f"{error.message}: I couldn't reach the lab database. "
            "Please try again in a moment."
        )

    logger.exception(f"Unhandled error: {error}", exc_info=error)
    return f"**Error:** {default_message}"


class ChemicalNotFoundError(LookupError):
    """The referenced chemical does not exist."""

    def __init__(self, chemical_id: int):
        super().__init__(f"Chemical {chemical_id} not found")
        self.chemical_id = chemical_id


class InsufficientQuantityError(Exception):
    """A usage request exceeds the quantity in stock."""

    def __init__(self, available: float, requested: float):
        super().__init__(f"Insufficient quantity. Available: {available}, Requested: {requested}")
        self.available = available
        self.requested = requested
