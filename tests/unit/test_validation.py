# =============================================================================
# tests/unit/test_validation.py
# Unit Tests for form field validation
# =============================================================================

import pytest

from shoply_core.errors import FormValidationError
from shoply_core.forms.validation import (
    CHATBOT_VALIDATION_RULES,
    COMMON_VALIDATION_RULES,
    ValidationRule,
    ensure_valid,
    validate_field,
    validate_form,
)


class TestValidateField:
    """Single rule checks"""

    def test_required_missing(self):
        assert validate_field("   ", ValidationRule(required=True)) == "This field is required"

    def test_optional_empty_skips_other_checks(self):
        rule = ValidationRule(min_length=5, pattern=COMMON_VALIDATION_RULES["phone"].pattern)

        assert validate_field("", rule) is None
        assert validate_field(None, rule) is None

    def test_length_defaults(self):
        assert validate_field("ab", ValidationRule(min_length=3)) == "Minimum length is 3 characters"
        assert validate_field("abcd", ValidationRule(max_length=3)) == "Maximum length is 3 characters"

    def test_numeric_bounds(self):
        assert validate_field(5, ValidationRule(min=10)) == "Minimum value is 10"
        assert validate_field(0.5, ValidationRule(min=0, max=1)) is None

    def test_custom_message_wins(self):
        rule = ValidationRule(min_length=3, message="Too short")

        assert validate_field("ab", rule) == "Too short"

    def test_custom_predicate(self):
        rule = ValidationRule(custom=lambda v: v.endswith(".shop"))

        assert validate_field("store.com", rule) == "Invalid value"
        assert validate_field("store.shop", rule) is None

    def test_boolean_is_not_numeric(self):
        assert validate_field(True, ValidationRule(min=5)) is None


class TestCommonRules:
    """Shared email, password, name and phone rules"""

    @pytest.mark.parametrize("email,valid", [
        ("ada@example.com", True),
        ("ADA.King+shop@mail.example.co", True),
        ("ada@example", False),
        ("ada.example.com", False),
    ])
    def test_email(self, email, valid):
        assert (validate_field(email, COMMON_VALIDATION_RULES["email"]) is None) == valid

    @pytest.mark.parametrize("password,valid", [
        ("Secur3!pass", True),
        ("secur3!pass", False),
        ("Secure!pass", False),
        ("Secur3pass", False),
        ("Se3!p", False),
    ])
    def test_password(self, password, valid):
        assert (validate_field(password, COMMON_VALIDATION_RULES["password"]) is None) == valid

    @pytest.mark.parametrize("name,valid", [
        ("Ada Lovelace", True),
        ("Jean-Luc O'Neil", True),
        ("A", False),
        ("R2D2", False),
    ])
    def test_name(self, name, valid):
        assert (validate_field(name, COMMON_VALIDATION_RULES["name"]) is None) == valid

    def test_phone_is_optional(self):
        assert validate_field(None, COMMON_VALIDATION_RULES["phone"]) is None
        assert validate_field("(555) 123-4567", COMMON_VALIDATION_RULES["phone"]) is None
        assert validate_field("555", COMMON_VALIDATION_RULES["phone"]) == "Please enter a valid phone number"


class TestValidateForm:
    """Whole-form validation"""

    def test_collects_every_error(self):
        errors = validate_form(
            {"name": "", "max_response_length": 600, "temperature": 0.2},
            CHATBOT_VALIDATION_RULES,
        )

        assert errors == {
            "name": "Name is required",
            "max_response_length": "Response length must be between 50 and 500",
        }

    def test_ensure_valid_raises(self):
        with pytest.raises(FormValidationError) as excinfo:
            ensure_valid({"email": "nope"}, {"email": COMMON_VALIDATION_RULES["email"]})

        assert excinfo.value.errors == {"email": "Please enter a valid email address"}
        assert excinfo.value.details["fields"] == excinfo.value.errors

    def test_ensure_valid_passes(self):
        ensure_valid({"name": "Helper", "max_response_length": 150, "temperature": 0.7},
                     CHATBOT_VALIDATION_RULES)
