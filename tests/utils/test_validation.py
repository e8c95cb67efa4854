"""Tests for input validation and error formatting."""

import pytest
from datetime import date, datetime, timedelta
from unittest.mock import MagicMock

from chemlab.db.database_models import UserDO
from chemlab.services.lab_data import FetchResult
from chemlab.utils.validation import (
    DatabaseError,
    ValidationError,
    coerce_user_id,
    create_error_response,
    sanitize_input,
    validate_chemical_name,
    validate_date,
    validate_equipment_name,
    validate_message,
    validate_quantity,
    validate_user_id,
    validate_user_role,
)


def _lab_data_returning(result):
    lab_data = MagicMock()
    lab_data.get_user.return_value = result
    return lab_data


class TestValidateMessage:
    """SUT: validate_message"""

    def test_trims_whitespace(self):
        assert validate_message("  hello  ") == "hello"

    @pytest.mark.parametrize("message", [None, "", 42, ["hi"]])
    def test_missing_or_wrong_type(self, message):
        with pytest.raises(ValidationError) as exc_info:
            validate_message(message)
        assert exc_info.value.field == "message"

    def test_whitespace_only(self):
        with pytest.raises(ValidationError, match="cannot be empty"):
            validate_message("   ")

    def test_exactly_max_length_allowed(self):
        assert len(validate_message("a" * 1000)) == 1000

    def test_too_long(self):
        with pytest.raises(ValidationError, match="too long"):
            validate_message("a" * 1001)

    def test_too_long_carries_limit(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_message("a" * 201, max_length=200)
        assert exc_info.value.limit == 200


class TestValidateUserId:
    """SUT: validate_user_id"""

    def test_existing_user(self):
        lab_data = _lab_data_returning(FetchResult.ok(UserDO(id=5, name="U", role="borrower")))
        assert validate_user_id("5", lab_data) == 5
        lab_data.get_user.assert_called_once_with(5)

    def test_unknown_user(self):
        lab_data = _lab_data_returning(FetchResult.ok(None))
        with pytest.raises(ValidationError, match="User not found") as exc_info:
            validate_user_id(9, lab_data)
        assert exc_info.value.field == "userId"

    def test_lookup_failure_is_database_error(self):
        lab_data = _lab_data_returning(FetchResult.fail(RuntimeError("connection lost")))
        with pytest.raises(DatabaseError, match="Failed to validate user ID"):
            validate_user_id(1, lab_data)

    @pytest.mark.parametrize("user_id", [None, "", "abc", 0, -3, "1.5", True])
    def test_malformed_ids_rejected_before_lookup(self, user_id):
        lab_data = MagicMock()
        with pytest.raises(ValidationError):
            validate_user_id(user_id, lab_data)
        lab_data.get_user.assert_not_called()


class TestCoerceUserId:
    """SUT: coerce_user_id"""

    def test_accepts_padded_string(self):
        assert coerce_user_id(" 12 ") == 12


class TestValidateUserRole:
    """SUT: validate_user_role"""

    @pytest.mark.parametrize("role", ["admin", "Technician", " BORROWER "])
    def test_valid_roles_normalized(self, role):
        assert validate_user_role(role) == role.strip().lower()

    @pytest.mark.parametrize("role", [None, "", "student", "root", 3])
    def test_invalid_roles(self, role):
        with pytest.raises(ValidationError) as exc_info:
            validate_user_role(role)
        assert exc_info.value.field == "role"


class TestValidateNames:
    """SUT: validate_chemical_name, validate_equipment_name"""

    def test_valid_name(self):
        assert validate_chemical_name(" Acetone ") == "Acetone"

    @pytest.mark.parametrize("name", ["<script>", 'say "hi"', "a & b", "it's"])
    def test_denied_characters(self, name):
        with pytest.raises(ValidationError, match="invalid characters"):
            validate_equipment_name(name)

    def test_too_long(self):
        with pytest.raises(ValidationError, match="too long"):
            validate_chemical_name("x" * 101)


class TestValidateQuantity:
    """SUT: validate_quantity"""

    def test_numeric_string(self):
        assert validate_quantity("12.5") == 12.5

    def test_zero_allowed(self):
        assert validate_quantity(0) == 0.0

    @pytest.mark.parametrize("quantity,message", [
        (None, "required"),
        ("lots", "valid number"),
        (float("nan"), "valid number"),
        (-1, "negative"),
        (1_000_000, "too large"),
    ])
    def test_rejected(self, quantity, message):
        with pytest.raises(ValidationError, match=message):
            validate_quantity(quantity)

    def test_unit_must_be_string(self):
        with pytest.raises(ValidationError, match="Unit"):
            validate_quantity(5, unit=3)


class TestValidateDate:
    """SUT: validate_date"""

    def test_iso_string(self):
        assert validate_date("2024-01-31") == date(2024, 1, 31)

    def test_datetime_truncated(self):
        assert validate_date(datetime(2024, 1, 31, 15, 30)) == date(2024, 1, 31)

    def test_unparseable(self):
        with pytest.raises(ValidationError, match="not a valid date"):
            validate_date("next tuesday", "borrow_date")

    def test_too_far_ahead(self):
        with pytest.raises(ValidationError, match="100 years"):
            validate_date(date.today() + timedelta(days=365 * 101))


class TestSanitizeInput:
    """SUT: sanitize_input"""

    def test_escapes_markup(self):
        assert sanitize_input("<b>hi</b>") == "&lt;b&gt;hi&lt;/b&gt;"

    def test_escapes_quotes(self):
        assert sanitize_input("it's \"x\"") == "it&#x27;s &quot;x&quot;"

    def test_plain_text_unchanged(self):
        assert sanitize_input("What chemicals are available?") == "What chemicals are available?"

    def test_non_string_passthrough(self):
        assert sanitize_input(7) == 7


class TestCreateErrorResponse:
    """SUT: create_error_response"""

    def test_too_long_message(self):
        reply = create_error_response(ValidationError("Message is too long (max 1000 characters)", "message"))
        assert "Message Too Long" in reply
        assert "under 1000 characters" in reply

    def test_too_long_uses_configured_limit(self):
        reply = create_error_response(ValidationError("Message is too long (max 200 characters)", "message", 200))
        assert "under 200 characters" in reply
        assert "1000" not in reply

    def test_missing_message(self):
        reply = create_error_response(ValidationError("Message cannot be empty", "message"))
        assert "Missing Info" in reply
        assert "more details" in reply

    def test_other_validation_error_names_field(self):
        reply = create_error_response(ValidationError("Invalid user role", "role"))
        assert reply == "**Validation Error (role):** Invalid user role"

    def test_database_error_has_retry_hint(self):
        reply = create_error_response(DatabaseError("Failed to validate user ID", RuntimeError("down")))
        assert "System Busy" in reply
        assert "lab database" in reply
        assert "try again in a moment" in reply

    def test_unexpected_error_is_generic(self):
        reply = create_error_response(KeyError("boom"))
        assert reply.startswith("**Error:**")
        assert "boom" not in reply
