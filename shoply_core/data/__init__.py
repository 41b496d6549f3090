"""
Remote data layer: the document store contract, its Supabase backend and the
query predicate helpers.
"""
from .query import (
    Where,
    OrderBy,
    Limit,
    Predicate,
    where,
    order_by,
    limit,
    canonical_key,
)
from .supabase_client import (
    DocumentStore,
    SupabaseDocumentStore,
    create_store_client,
    deep_merge,
    USERS_COLLECTION,
    PLANS_COLLECTION,
    SUBSCRIPTIONS_COLLECTION,
    INVOICES_COLLECTION,
    CHATBOTS_COLLECTION,
    CONVERSATIONS_COLLECTION,
    MESSAGES_COLLECTION,
)

__all__ = [
    "Where",
    "OrderBy",
    "Limit",
    "Predicate",
    "where",
    "order_by",
    "limit",
    "canonical_key",
    "DocumentStore",
    "SupabaseDocumentStore",
    "create_store_client",
    "deep_merge",
    "USERS_COLLECTION",
    "PLANS_COLLECTION",
    "SUBSCRIPTIONS_COLLECTION",
    "INVOICES_COLLECTION",
    "CHATBOTS_COLLECTION",
    "CONVERSATIONS_COLLECTION",
    "MESSAGES_COLLECTION",
]
