"""
Typed records for the documents stored in each collection.
"""
from .records import (
    UserProfile,
    UserSettings,
    Chatbot,
    ChatbotSettings,
    ChatbotStatus,
    DEFAULT_CHATBOT_MODEL,
    Plan,
    UNLIMITED_PRODUCTS,
    Subscription,
    SubscriptionStatus,
    Invoice,
    InvoiceStatus,
    parse_datetime,
)

__all__ = [
    "UserProfile",
    "UserSettings",
    "Chatbot",
    "ChatbotSettings",
    "ChatbotStatus",
    "DEFAULT_CHATBOT_MODEL",
    "Plan",
    "UNLIMITED_PRODUCTS",
    "Subscription",
    "SubscriptionStatus",
    "Invoice",
    "InvoiceStatus",
    "parse_datetime",
]
