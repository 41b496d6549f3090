# =============================================================================
# shoply_core/data/supabase_client.py
# Remote Document Store: contract and Supabase implementation
# =============================================================================
"""
Remote document store used by the persistence cache.

Each collection (``users``, ``plans``, ...) is a Supabase table keyed by a text
``id`` column. Documents are plain dicts; datetimes are sent as ISO strings.

The store has its own network switch, mirroring hosted document databases
that can be taken offline client-side. Only the connectivity monitor toggles
it; while it is off every call fails fast with ``StoreOfflineError`` instead of
blocking on an unreachable host.
"""

from __future__ import annotations
import asyncio
import uuid
from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence, Set

from supabase import AsyncClient, acreate_client

from shoply_core.config import AppConfig
from shoply_core.data.query import Predicate, split_predicates
from shoply_core.errors import ConnectivityError, StoreOfflineError
from shoply_core.logging import get_logger

logger = get_logger(__name__)

# Collection names
USERS_COLLECTION = "users"
PLANS_COLLECTION = "plans"
SUBSCRIPTIONS_COLLECTION = "subscriptions"
INVOICES_COLLECTION = "invoices"
CHATBOTS_COLLECTION = "chatbots"
CONVERSATIONS_COLLECTION = "conversations"
MESSAGES_COLLECTION = "messages"

COLLECTIONS = (
    USERS_COLLECTION,
    PLANS_COLLECTION,
    SUBSCRIPTIONS_COLLECTION,
    INVOICES_COLLECTION,
    CHATBOTS_COLLECTION,
    CONVERSATIONS_COLLECTION,
    MESSAGES_COLLECTION,
)


def deep_merge(base: Dict[str, Any], changes: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return ``base`` with ``changes`` applied recursively.

    Nested dicts are merged key by key; any other value replaces the old one.
    Neither argument is modified.
    """
    merged = dict(base)
    for key, value in changes.items():
        current = merged.get(key)
        if isinstance(value, dict) and isinstance(current, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


class DocumentStore(ABC):
    """Abstract interface of the hosted document database."""

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Fetch one document, or None when it does not exist."""

    @abstractmethod
    async def query(self, collection: str, predicates: Sequence[Predicate]) -> List[Dict[str, Any]]:
        """Fetch the documents matching ``predicates``."""

    @abstractmethod
    async def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        """Create or overwrite a document."""

    @abstractmethod
    async def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        """Merge fields into an existing document."""

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        """Remove a document."""

    @abstractmethod
    async def enable_network(self) -> None:
        """Reconnect to the backend. Raises ConnectivityError if unreachable."""

    @abstractmethod
    async def disable_network(self) -> None:
        """Stop talking to the backend."""

    @abstractmethod
    async def wait_for_pending_writes(self) -> None:
        """Wait until every in-flight write has settled."""

    def new_id(self) -> str:
        """Generate a document id."""
        return uuid.uuid4().hex


def _to_wire(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _to_wire(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_wire(v) for v in value]
    return value


class SupabaseDocumentStore(DocumentStore):
    """
    DocumentStore backed by Supabase tables.

    Usage:
        client = await create_store_client(config)
        store = SupabaseDocumentStore(client)
        await store.enable_network()
        plan = await store.get("plans", "starter")
    """

    # Table read by the reachability probe in enable_network()
    PROBE_TABLE = PLANS_COLLECTION

    def __init__(self, client: AsyncClient):
        self.client = client
        self._network_enabled = False
        self._inflight: Set[asyncio.Future] = set()

    @property
    def network_enabled(self) -> bool:
        return self._network_enabled

    def _ensure_online(self, collection: str, doc_id: Optional[str] = None) -> None:
        if not self._network_enabled:
            raise StoreOfflineError(
                "Document store network is disabled",
                collection=collection,
                doc_id=doc_id,
            )

    async def _tracked(self, coro) -> Any:
        """Run a write so that wait_for_pending_writes() can see it.

        The write is shielded: a caller that gives up still lets it finish.
        """
        task = asyncio.ensure_future(coro)
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return await asyncio.shield(task)

    # =========================================================================
    # READS
    # =========================================================================

    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        self._ensure_online(collection, doc_id)
        response = await (
            self.client.table(collection)
            .select("*")
            .eq("id", doc_id)
            .limit(1)
            .execute()
        )
        if response.data:
            return dict(response.data[0])
        return None

    async def query(self, collection: str, predicates: Sequence[Predicate]) -> List[Dict[str, Any]]:
        self._ensure_online(collection)
        filters, orders, max_count = split_predicates(predicates)

        builder = self.client.table(collection).select("*")
        for f in filters:
            builder = self._apply_filter(builder, f.field, f.op, _to_wire(f.value))
        for o in orders:
            builder = builder.order(o.field, desc=o.descending)
        if max_count is not None:
            builder = builder.limit(max_count)

        response = await builder.execute()
        return [dict(row) for row in (response.data or [])]

    @staticmethod
    def _apply_filter(builder, field: str, op: str, value: Any):
        if op == "==":
            return builder.eq(field, value)
        if op == "!=":
            return builder.neq(field, value)
        if op == "<":
            return builder.lt(field, value)
        if op == "<=":
            return builder.lte(field, value)
        if op == ">":
            return builder.gt(field, value)
        if op == ">=":
            return builder.gte(field, value)
        if op == "in":
            return builder.in_(field, list(value))
        if op == "not-in":
            return builder.not_.in_(field, list(value))
        if op == "array-contains":
            return builder.contains(field, [value])
        raise ValueError(f"Unsupported operator {op!r}")

    # =========================================================================
    # WRITES
    # =========================================================================

    async def set(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        self._ensure_online(collection, doc_id)
        row = _to_wire({**data, "id": doc_id})
        await self._tracked(self.client.table(collection).upsert(row).execute())

    async def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        self._ensure_online(collection, doc_id)
        await self._tracked(self._update(collection, doc_id, data))

    async def _update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        changes = dict(data)
        nested = [key for key, value in changes.items() if isinstance(value, dict)]
        if nested:
            # JSON columns are replaced wholesale by PostgREST; merge them here
            current = await self.get(collection, doc_id) or {}
            for key in nested:
                if isinstance(current.get(key), dict):
                    changes[key] = deep_merge(current[key], changes[key])

        await (
            self.client.table(collection)
            .update(_to_wire(changes))
            .eq("id", doc_id)
            .execute()
        )

    async def delete(self, collection: str, doc_id: str) -> None:
        self._ensure_online(collection, doc_id)
        await self._tracked(
            self.client.table(collection).delete().eq("id", doc_id).execute()
        )

    # =========================================================================
    # NETWORK CONTROL
    # =========================================================================

    async def enable_network(self) -> None:
        try:
            await (
                self.client.table(self.PROBE_TABLE)
                .select("id")
                .limit(1)
                .execute()
            )
        except Exception as e:
            raise ConnectivityError(f"Store unreachable: {e}") from e
        self._network_enabled = True

    async def disable_network(self) -> None:
        self._network_enabled = False

    async def wait_for_pending_writes(self) -> None:
        if self._inflight:
            await asyncio.wait(list(self._inflight))

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        postgrest = getattr(self.client, "postgrest", None)
        if postgrest is not None and hasattr(postgrest, "aclose"):
            try:
                await postgrest.aclose()
            except Exception as e:
                logger.warning(f"Error closing store session: {e}")


async def create_store_client(config: AppConfig) -> AsyncClient:
    """
    Create the async Supabase client for the configured project.

    Args:
        config: Application configuration

    Returns:
        AsyncClient connected to ``config.store_url``
    """
    logger.info(f"Connecting to document store at {config.store_url}")
    return await acreate_client(config.store_url, config.api_key)
