from .validation import (
    ValidationRule,
    validate_field,
    validate_form,
    ensure_valid,
    COMMON_VALIDATION_RULES,
    CHATBOT_VALIDATION_RULES,
)

__all__ = [
    "ValidationRule",
    "validate_field",
    "validate_form",
    "ensure_valid",
    "COMMON_VALIDATION_RULES",
    "CHATBOT_VALIDATION_RULES",
]
