# =============================================================================
# shoply_core/forms/validation.py
# Client-side Field Validation
# =============================================================================
"""
Field rules checked before any remote call is attempted.

    errors = validate_form(
        {"email": "a@b.co", "password": "weak"},
        {"email": COMMON_VALIDATION_RULES["email"],
         "password": COMMON_VALIDATION_RULES["password"]},
    )
    # {"password": "Password must contain at least 8 characters, ..."}

A rule's ``message`` replaces every default message of that rule.
"""

from __future__ import annotations
import re
from dataclasses import dataclass
from numbers import Number
from typing import Any, Callable, Dict, Mapping, Optional, Pattern

from shoply_core.errors import FormValidationError


@dataclass(frozen=True)
class ValidationRule:
    required: bool = False
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[Pattern[str]] = None
    min: Optional[float] = None
    max: Optional[float] = None
    custom: Optional[Callable[[Any], bool]] = None
    message: Optional[str] = None


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return not value
    return False


def validate_field(value: Any, rule: ValidationRule) -> Optional[str]:
    """
    Check one value against one rule.

    Returns:
        The error message, or None if the value is valid
    """
    if _is_missing(value):
        if rule.required:
            return rule.message or "This field is required"
        # Optional and empty: nothing else to check
        return None

    if isinstance(value, str):
        if rule.min_length is not None and len(value) < rule.min_length:
            return rule.message or f"Minimum length is {rule.min_length} characters"
        if rule.max_length is not None and len(value) > rule.max_length:
            return rule.message or f"Maximum length is {rule.max_length} characters"
        if rule.pattern is not None and not rule.pattern.search(value):
            return rule.message or "Invalid format"

    if isinstance(value, Number) and not isinstance(value, bool):
        if rule.min is not None and value < rule.min:
            return rule.message or f"Minimum value is {rule.min}"
        if rule.max is not None and value > rule.max:
            return rule.message or f"Maximum value is {rule.max}"

    if rule.custom is not None and not rule.custom(value):
        return rule.message or "Invalid value"

    return None


def validate_form(data: Mapping[str, Any], rules: Mapping[str, ValidationRule]) -> Dict[str, str]:
    """Validate every field that has a rule; return field -> message."""
    errors: Dict[str, str] = {}
    for field_name, rule in rules.items():
        error = validate_field(data.get(field_name), rule)
        if error:
            errors[field_name] = error
    return errors


def ensure_valid(data: Mapping[str, Any], rules: Mapping[str, ValidationRule]) -> None:
    """
    Raises:
        FormValidationError: carrying the field -> message map
    """
    errors = validate_form(data, rules)
    if errors:
        raise FormValidationError(errors)


COMMON_VALIDATION_RULES: Dict[str, ValidationRule] = {
    "email": ValidationRule(
        required=True,
        pattern=re.compile(r"^[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}$", re.IGNORECASE),
        message="Please enter a valid email address",
    ),
    "password": ValidationRule(
        required=True,
        min_length=8,
        pattern=re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]{8,}$"),
        message=(
            "Password must contain at least 8 characters, including uppercase, "
            "lowercase, number and special character"
        ),
    ),
    "name": ValidationRule(
        required=True,
        min_length=2,
        max_length=50,
        pattern=re.compile(r"^[a-zA-Z\s\-']+$"),
        message="Please enter a valid name",
    ),
    "phone": ValidationRule(
        pattern=re.compile(r"^\+?[\d\s\-()]{10,}$"),
        message="Please enter a valid phone number",
    ),
}

CHATBOT_VALIDATION_RULES: Dict[str, ValidationRule] = {
    "name": ValidationRule(required=True, message="Name is required"),
    "max_response_length": ValidationRule(
        required=True,
        min=50,
        max=500,
        message="Response length must be between 50 and 500",
    ),
    "temperature": ValidationRule(
        required=True,
        min=0,
        max=1,
        message="Temperature must be between 0 and 1",
    ),
}
