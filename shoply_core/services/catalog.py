# =============================================================================
# shoply_core/services/catalog.py
# Default Plan Catalogue
# =============================================================================

from __future__ import annotations
from datetime import datetime, timezone
from typing import List

from shoply_core.data.supabase_client import DocumentStore, PLANS_COLLECTION
from shoply_core.logging import get_logger
from shoply_core.models import Plan, UNLIMITED_PRODUCTS

logger = get_logger(__name__)

DEFAULT_PLANS: List[Plan] = [
    Plan(
        id="free",
        name="Free",
        price=0,
        features=["Sell up to 10 products", "Basic AI chat", "3% transaction fee"],
        max_products=10,
        transaction_fee=3,
    ),
    Plan(
        id="starter",
        name="Starter",
        price=29,
        features=[
            "Unlimited products",
            "AI recommendations",
            "Custom branding",
            "2% transaction fee",
        ],
        max_products=UNLIMITED_PRODUCTS,
        transaction_fee=2,
    ),
    Plan(
        id="pro",
        name="Pro",
        price=79,
        features=[
            "Abandoned cart recovery",
            "Multi-language support",
            "Analytics dashboard",
            "1% transaction fee",
        ],
        max_products=UNLIMITED_PRODUCTS,
        transaction_fee=1,
    ),
    Plan(
        id="enterprise",
        name="Enterprise",
        price=199,
        features=[
            "Custom AI models",
            "API access",
            "0% transaction fee",
            "Dedicated support",
        ],
        max_products=UNLIMITED_PRODUCTS,
        transaction_fee=0,
    ),
]


async def initialize_plans(store: DocumentStore, plans: List[Plan] = DEFAULT_PLANS) -> int:
    """
    Write the plan catalogue straight to the store, overwriting existing plans.

    Returns:
        Number of plans written
    """
    timestamp = datetime.now(timezone.utc)
    for plan in plans:
        await store.set(
            PLANS_COLLECTION,
            plan.id,
            {**plan.to_document(), "created_at": timestamp, "updated_at": timestamp},
        )
        logger.info(f"Plan '{plan.id}' written")
    return len(plans)
