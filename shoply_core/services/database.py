# =============================================================================
# shoply_core/services/database.py
# Domain Data Access: users, chatbots, plans, subscriptions, invoices
# =============================================================================
"""
Typed convenience layer over the PersistenceCache.

No state of its own; failures are the cache's RemoteReadError /
RemoteWriteError, plus FormValidationError for chatbot settings.

Usage:
    data = ShoplyData(cache)
    plans = await data.get_plans()
    sub = await data.get_active_subscription(user_id)
"""

from __future__ import annotations
import calendar
from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from shoply_core.cache.persistence import PersistenceCache
from shoply_core.data.query import limit, order_by, where
from shoply_core.data.supabase_client import (
    CHATBOTS_COLLECTION,
    INVOICES_COLLECTION,
    PLANS_COLLECTION,
    SUBSCRIPTIONS_COLLECTION,
    USERS_COLLECTION,
)
from shoply_core.forms.validation import CHATBOT_VALIDATION_RULES, ensure_valid
from shoply_core.logging import get_logger
from shoply_core.models import (
    Chatbot,
    ChatbotSettings,
    ChatbotStatus,
    DEFAULT_CHATBOT_MODEL,
    Invoice,
    Plan,
    Subscription,
    SubscriptionStatus,
    UserProfile,
)

logger = get_logger(__name__)


def _plain(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Enums to their values and dataclasses to dicts, recursively."""
    result = {}
    for key, value in data.items():
        if isinstance(value, Enum):
            value = value.value
        elif is_dataclass(value) and not isinstance(value, type):
            value = _plain(asdict(value))
        elif isinstance(value, Mapping):
            value = _plain(value)
        result[key] = value
    return result


def add_months(moment: datetime, months: int) -> datetime:
    """Same day ``months`` later, clamped to the end of a shorter month."""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


class ShoplyData:
    """Domain data access over one PersistenceCache."""

    def __init__(self, cache: PersistenceCache):
        self.cache = cache

    # =========================================================================
    # USERS
    # =========================================================================

    async def create_user(self, user_id: str, data: Mapping[str, Any]) -> None:
        await self.cache.create(USERS_COLLECTION, {**_plain(data), "id": user_id})

    async def get_user(self, user_id: str) -> Optional[UserProfile]:
        doc = await self.cache.get(USERS_COLLECTION, user_id)
        return UserProfile.from_document(doc) if doc else None

    async def update_user(self, user_id: str, data: Mapping[str, Any]) -> None:
        await self.cache.update(USERS_COLLECTION, user_id, _plain(data))

    # =========================================================================
    # CHATBOTS
    # =========================================================================

    async def create_chatbot(
        self,
        user_id: str,
        name: str,
        description: Optional[str] = None,
        model: str = DEFAULT_CHATBOT_MODEL,
        settings: Union[ChatbotSettings, Mapping[str, Any], None] = None,
    ) -> Chatbot:
        """
        Validate and create a chatbot. New chatbots start ``offline``.

        Raises:
            FormValidationError: if the name or settings are out of range
        """
        if settings is None:
            settings = ChatbotSettings()
        elif not isinstance(settings, ChatbotSettings):
            settings = ChatbotSettings.from_document(settings)

        ensure_valid(
            {
                "name": name,
                "max_response_length": settings.max_response_length,
                "temperature": settings.temperature,
            },
            CHATBOT_VALIDATION_RULES,
        )

        document = {
            "user_id": user_id,
            "name": name.strip(),
            "description": description,
            "status": ChatbotStatus.OFFLINE.value,
            "model": model,
            "settings": asdict(settings),
        }
        chatbot_id = await self.cache.create(CHATBOTS_COLLECTION, document)
        created = await self.cache.get(CHATBOTS_COLLECTION, chatbot_id)
        return Chatbot.from_document(created)

    async def get_chatbots(self, user_id: str) -> List[Chatbot]:
        docs = await self.cache.query(
            CHATBOTS_COLLECTION,
            [where("user_id", "==", user_id), order_by("created_at")],
        )
        return [Chatbot.from_document(doc) for doc in docs]

    async def get_chatbot(self, chatbot_id: str) -> Optional[Chatbot]:
        doc = await self.cache.get(CHATBOTS_COLLECTION, chatbot_id)
        return Chatbot.from_document(doc) if doc else None

    async def update_chatbot(self, chatbot_id: str, data: Mapping[str, Any]) -> None:
        """
        Raises:
            FormValidationError: if changed settings are out of range
        """
        changes = _plain(data)
        to_check = {}
        if "name" in changes:
            to_check["name"] = changes["name"]
        settings = changes.get("settings") or {}
        for key in ("max_response_length", "temperature"):
            if key in settings:
                to_check[key] = settings[key]
        if to_check:
            ensure_valid(to_check, {k: CHATBOT_VALIDATION_RULES[k] for k in to_check})

        await self.cache.update(CHATBOTS_COLLECTION, chatbot_id, changes)

    # =========================================================================
    # PLANS
    # =========================================================================

    async def get_plans(self) -> List[Plan]:
        """Active plans, cheapest first."""
        docs = await self.cache.query(
            PLANS_COLLECTION,
            [where("is_active", "==", True), order_by("price")],
        )
        return [Plan.from_document(doc) for doc in docs]

    async def get_plan(self, plan_id: str) -> Optional[Plan]:
        doc = await self.cache.get(PLANS_COLLECTION, plan_id)
        return Plan.from_document(doc) if doc else None

    # =========================================================================
    # SUBSCRIPTIONS
    # =========================================================================

    async def create_subscription(self, data: Mapping[str, Any]) -> str:
        return await self.cache.create(SUBSCRIPTIONS_COLLECTION, _plain(data))

    async def get_active_subscription(self, user_id: str) -> Optional[Subscription]:
        """Most recently created ``active`` subscription of the user."""
        docs = await self.cache.query(
            SUBSCRIPTIONS_COLLECTION,
            [
                where("user_id", "==", user_id),
                where("status", "==", SubscriptionStatus.ACTIVE.value),
                order_by("created_at", "desc"),
                limit(1),
            ],
        )
        return Subscription.from_document(docs[0]) if docs else None

    async def update_subscription(self, subscription_id: str, data: Mapping[str, Any]) -> None:
        await self.cache.update(SUBSCRIPTIONS_COLLECTION, subscription_id, _plain(data))

    async def start_subscription(
        self,
        user_id: str,
        plan_id: str,
        is_yearly: bool = False,
        now: Optional[datetime] = None,
    ) -> str:
        """
        Subscribe a user to a plan, ending any current active subscription.

        The period is one year for yearly billing and one month otherwise.

        Returns:
            The new subscription id
        """
        now = now or datetime.now(timezone.utc)
        end_date = add_months(now, 12 if is_yearly else 1)

        current = await self.get_active_subscription(user_id)
        if current is not None:
            logger.info(f"Cancelling subscription {current.id} before switching to {plan_id}")
            await self.cancel_subscription(current.id)

        return await self.create_subscription({
            "user_id": user_id,
            "plan_id": plan_id,
            "is_yearly": is_yearly,
            "start_date": now,
            "end_date": end_date,
            "status": SubscriptionStatus.ACTIVE,
        })

    async def cancel_subscription(self, subscription_id: str) -> None:
        await self.update_subscription(
            subscription_id, {"status": SubscriptionStatus.CANCELLED}
        )

    # =========================================================================
    # INVOICES
    # =========================================================================

    async def create_invoice(self, data: Mapping[str, Any]) -> str:
        return await self.cache.create(INVOICES_COLLECTION, _plain(data))

    async def get_invoices(self, user_id: str) -> List[Invoice]:
        """The user's invoices, newest first."""
        docs = await self.cache.query(
            INVOICES_COLLECTION,
            [where("user_id", "==", user_id), order_by("date", "desc")],
        )
        return [Invoice.from_document(doc) for doc in docs]

    async def get_invoice(self, invoice_id: str) -> Optional[Invoice]:
        doc = await self.cache.get(INVOICES_COLLECTION, invoice_id)
        return Invoice.from_document(doc) if doc else None
