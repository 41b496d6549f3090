# =============================================================================
# shoply_core/models/records.py
# Typed Records for the Shoply Collections
# =============================================================================

from __future__ import annotations
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


def parse_datetime(value: Any) -> Optional[datetime]:
    """Accept a datetime, an ISO-8601 string (``Z`` suffix allowed) or None."""
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    raise ValueError(f"Not a timestamp: {value!r}")


# =============================================================================
# USERS
# =============================================================================

@dataclass
class UserSettings:
    """Per-user preferences"""
    theme: str = "light"
    notifications: bool = True
    language: str = "en"

    @classmethod
    def from_document(cls, doc: Optional[Dict[str, Any]]) -> UserSettings:
        doc = doc or {}
        return cls(
            theme=doc.get("theme", "light"),
            notifications=bool(doc.get("notifications", True)),
            language=doc.get("language", "en"),
        )


@dataclass
class UserProfile:
    """Application record for an identity, keyed by the identity id"""
    id: str
    email: str
    name: str
    phone: Optional[str] = None
    company: Optional[str] = None
    position: Optional[str] = None
    profile_image: Optional[str] = None
    settings: UserSettings = field(default_factory=UserSettings)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> UserProfile:
        return cls(
            id=doc["id"],
            email=doc.get("email", ""),
            name=doc.get("name", ""),
            phone=doc.get("phone"),
            company=doc.get("company"),
            position=doc.get("position"),
            profile_image=doc.get("profile_image"),
            settings=UserSettings.from_document(doc.get("settings")),
            created_at=parse_datetime(doc.get("created_at")),
            updated_at=parse_datetime(doc.get("updated_at")),
        )

    def to_document(self) -> Dict[str, Any]:
        """Writable fields; timestamps are stamped by the cache."""
        doc = asdict(self)
        doc.pop("created_at")
        doc.pop("updated_at")
        return doc


# =============================================================================
# CHATBOTS
# =============================================================================

class ChatbotStatus(Enum):
    ONLINE = "online"
    TRAINING = "training"
    OFFLINE = "offline"


DEFAULT_CHATBOT_MODEL = "gpt-3.5-turbo"


@dataclass
class ChatbotSettings:
    """Tunable behaviour of a chatbot"""
    language: str = "en"
    tone: str = "professional"
    personality: str = "helpful"
    max_response_length: int = 150
    temperature: float = 0.7

    @classmethod
    def from_document(cls, doc: Optional[Dict[str, Any]]) -> ChatbotSettings:
        doc = doc or {}
        return cls(
            language=doc.get("language", "en"),
            tone=doc.get("tone", "professional"),
            personality=doc.get("personality", "helpful"),
            max_response_length=int(doc.get("max_response_length", 150)),
            temperature=float(doc.get("temperature", 0.7)),
        )


@dataclass
class Chatbot:
    id: str
    user_id: str
    name: str
    description: Optional[str] = None
    status: ChatbotStatus = ChatbotStatus.OFFLINE
    model: str = DEFAULT_CHATBOT_MODEL
    settings: ChatbotSettings = field(default_factory=ChatbotSettings)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> Chatbot:
        return cls(
            id=doc["id"],
            user_id=doc["user_id"],
            name=doc.get("name", ""),
            description=doc.get("description"),
            status=ChatbotStatus(doc.get("status", ChatbotStatus.OFFLINE.value)),
            model=doc.get("model", DEFAULT_CHATBOT_MODEL),
            settings=ChatbotSettings.from_document(doc.get("settings")),
            created_at=parse_datetime(doc.get("created_at")),
            updated_at=parse_datetime(doc.get("updated_at")),
        )


# =============================================================================
# BILLING
# =============================================================================

UNLIMITED_PRODUCTS = -1
YEARLY_MONTHS_BILLED = 10
YEARLY_DISCOUNT = 0.2


@dataclass
class Plan:
    id: str
    name: str
    price: float
    features: List[str] = field(default_factory=list)
    max_products: int = UNLIMITED_PRODUCTS
    transaction_fee: float = 0.0     # Percent
    is_active: bool = True

    @property
    def unlimited_products(self) -> bool:
        return self.max_products == UNLIMITED_PRODUCTS

    def price_for(self, is_yearly: bool = False) -> float:
        """Billed amount per period; a year is ten months at a 20% discount."""
        if is_yearly:
            return round(self.price * YEARLY_MONTHS_BILLED * (1 - YEARLY_DISCOUNT), 2)
        return self.price

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> Plan:
        return cls(
            id=doc["id"],
            name=doc.get("name", ""),
            price=float(doc.get("price", 0)),
            features=list(doc.get("features") or []),
            max_products=int(doc.get("max_products", UNLIMITED_PRODUCTS)),
            transaction_fee=float(doc.get("transaction_fee", 0)),
            is_active=bool(doc.get("is_active", True)),
        )

    def to_document(self) -> Dict[str, Any]:
        return asdict(self)


class SubscriptionStatus(Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


@dataclass
class Subscription:
    id: str
    user_id: str
    plan_id: str
    status: SubscriptionStatus
    is_yearly: bool = False
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> Subscription:
        return cls(
            id=doc["id"],
            user_id=doc["user_id"],
            plan_id=doc["plan_id"],
            status=SubscriptionStatus(doc["status"]),
            is_yearly=bool(doc.get("is_yearly", False)),
            start_date=parse_datetime(doc.get("start_date")),
            end_date=parse_datetime(doc.get("end_date")),
            created_at=parse_datetime(doc.get("created_at")),
        )


class InvoiceStatus(Enum):
    PAID = "paid"
    PENDING = "pending"
    FAILED = "failed"


@dataclass
class Invoice:
    id: str
    user_id: str
    date: datetime
    amount: float
    invoice_number: str
    status: InvoiceStatus = InvoiceStatus.PENDING

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> Invoice:
        return cls(
            id=doc["id"],
            user_id=doc["user_id"],
            date=parse_datetime(doc["date"]),
            amount=float(doc.get("amount", 0)),
            invoice_number=str(doc.get("invoice_number", "")),
            status=InvoiceStatus(doc.get("status", InvoiceStatus.PENDING.value)),
        )
