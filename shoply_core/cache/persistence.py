# =============================================================================
# shoply_core/cache/persistence.py
# Time-Expiring Cache in Front of the Document Store
# =============================================================================
"""
PersistenceCache - uniform get/query/create/update/delete surface over the
remote document store with bounded-staleness caching.

Key layout:
    users/abc123                      one document
    plans?where(is_active,==,true)|order(price,asc)|    one query result

Writes update the cache optimistically, whether they went straight to the
store or were queued on the connectivity monitor because the network is
disabled. A get() right after a create()/update() therefore sees the new data
even while offline.
"""

from __future__ import annotations
import copy
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from shoply_core.data.query import Predicate, canonical_key
from shoply_core.data.supabase_client import DocumentStore, deep_merge
from shoply_core.errors import RemoteReadError, RemoteWriteError
from shoply_core.logging import get_logger
from shoply_core.offline.connectivity import ConnectivityMonitor
from shoply_core.offline.pending_queue import PendingOperation, WriteKind

logger = get_logger(__name__)


@dataclass
class CacheEntry:
    """Cached payload and the clock reading when it was stored."""
    data: Any
    timestamp: float


def _now() -> datetime:
    return datetime.now(timezone.utc)


class PersistenceCache:
    """
    Keyed, time-expiring cache with write-through and offline queuing.

    Usage:
        cache = PersistenceCache(store, monitor)
        plan_id = await cache.create("plans", {"name": "Starter", "price": 29})
        plan = await cache.get("plans", plan_id)
        active = await cache.query("plans", [where("is_active", "==", True)])
    """

    CACHE_EXPIRY = 300.0    # Seconds

    def __init__(
        self,
        store: DocumentStore,
        monitor: ConnectivityMonitor,
        expiry_seconds: float = CACHE_EXPIRY,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.monitor = monitor
        self.expiry_seconds = expiry_seconds
        self._clock = clock
        self._cache: Dict[str, CacheEntry] = {}

    # =========================================================================
    # KEYS
    # =========================================================================

    @staticmethod
    def document_key(collection: str, doc_id: str) -> str:
        return f"{collection}/{doc_id}"

    @staticmethod
    def query_key(collection: str, predicates: Sequence[Predicate]) -> str:
        return f"{collection}?{canonical_key(predicates)}"

    def _is_valid(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.timestamp < self.expiry_seconds

    def _lookup(self, key: str) -> Optional[CacheEntry]:
        entry = self._cache.get(key)
        if entry is not None and self._is_valid(entry):
            return entry
        return None

    def _store(self, key: str, data: Any) -> None:
        self._cache[key] = CacheEntry(copy.deepcopy(data), self._clock())

    # =========================================================================
    # READS
    # =========================================================================

    async def get(
        self,
        collection: str,
        doc_id: str,
        force_fetch: bool = False,
        use_cache: bool = True,
    ) -> Optional[Dict[str, Any]]:
        """
        Fetch one document, from cache when possible.

        Args:
            collection: Collection name
            doc_id: Document id
            force_fetch: Skip the cache lookup and refresh it from the store
            use_cache: Consult the cache at all

        Returns:
            The document, or None if it does not exist

        Raises:
            RemoteReadError: if the remote fetch fails
        """
        key = self.document_key(collection, doc_id)

        if use_cache and not force_fetch:
            entry = self._lookup(key)
            if entry is not None:
                return copy.deepcopy(entry.data)

        try:
            data = await self.store.get(collection, doc_id)
        except Exception as e:
            logger.error(f"Error fetching document {doc_id} from {collection}: {e}")
            raise RemoteReadError(
                f"Failed to fetch {collection}/{doc_id}",
                collection=collection,
                doc_id=doc_id,
            ) from e

        if data is None:
            self._cache.pop(key, None)
            return None

        data = {**data, "id": data.get("id", doc_id)}
        self._store(key, data)
        return data

    async def query(
        self,
        collection: str,
        predicates: Sequence[Predicate],
        force_fetch: bool = False,
        use_cache: bool = True,
    ) -> List[Dict[str, Any]]:
        """
        Run a query, caching the result list under its canonical key.

        Raises:
            RemoteReadError: if the remote query fails
        """
        key = self.query_key(collection, predicates)

        if use_cache and not force_fetch:
            entry = self._lookup(key)
            if entry is not None:
                return copy.deepcopy(entry.data)

        try:
            results = await self.store.query(collection, predicates)
        except Exception as e:
            logger.error(f"Error querying collection {collection}: {e}")
            raise RemoteReadError(
                f"Failed to query {collection}",
                collection=collection,
            ) from e

        self._store(key, results)
        return results

    # =========================================================================
    # WRITES
    # =========================================================================

    async def _write(self, operation: PendingOperation) -> None:
        """Send a write now, or queue it while the network is disabled."""
        if not self.monitor.network_enabled:
            self.monitor.add_pending_operation(operation)
            logger.debug(f"Network disabled, queued {operation.describe()}")
            return

        try:
            await operation()
        except Exception as e:
            logger.error(f"Error writing {operation.describe()}: {e}")
            raise RemoteWriteError(
                f"Failed to {operation.kind.value} {operation.collection}/{operation.doc_id}",
                collection=operation.collection,
                doc_id=operation.doc_id,
            ) from e

    async def create(self, collection: str, data: Dict[str, Any]) -> str:
        """
        Create a document.

        The id is taken from ``data["id"]`` or generated. ``created_at`` and
        ``updated_at`` are stamped with the current UTC time.

        Returns:
            The document id

        Raises:
            RemoteWriteError: if an immediate write fails
        """
        doc_id = data.get("id") or self.store.new_id()
        timestamp = _now()
        document = {
            **data,
            "id": doc_id,
            "created_at": timestamp,
            "updated_at": timestamp,
        }

        await self._write(
            PendingOperation(WriteKind.CREATE, collection, doc_id, document).bind(self.store)
        )

        self._store(self.document_key(collection, doc_id), document)
        self._invalidate_queries(collection)
        return doc_id

    async def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        """
        Merge ``data`` into a document and into its cached copy.

        Nested dicts are merged key by key. When the document is not cached it
        is re-fetched first; if that fails (for example while offline) the
        entry stays absent and the queued write still stands.

        Raises:
            RemoteWriteError: if an immediate write fails
        """
        changes = {**data, "updated_at": _now()}
        changes.pop("id", None)

        await self._write(
            PendingOperation(WriteKind.UPDATE, collection, doc_id, changes).bind(self.store)
        )

        key = self.document_key(collection, doc_id)
        entry = self._lookup(key)
        if entry is not None:
            self._store(key, deep_merge(entry.data, changes))
        else:
            self._cache.pop(key, None)
            try:
                existing = await self.get(collection, doc_id, force_fetch=True)
            except RemoteReadError as e:
                logger.warning(f"Could not refresh {key} after update, leaving it uncached: {e}")
                existing = None
            if existing is not None:
                self._store(key, deep_merge(existing, changes))

        self._invalidate_queries(collection)

    async def delete(self, collection: str, doc_id: str) -> None:
        """
        Delete a document.

        The cache entry is evicted even if the remote delete fails.

        Raises:
            RemoteWriteError: if an immediate delete fails
        """
        try:
            await self._write(
                PendingOperation(WriteKind.DELETE, collection, doc_id).bind(self.store)
            )
        finally:
            self._cache.pop(self.document_key(collection, doc_id), None)
            self._invalidate_queries(collection)

    # =========================================================================
    # INVALIDATION
    # =========================================================================

    def _invalidate_queries(self, collection: str) -> None:
        prefix = f"{collection}?"
        for key in [k for k in self._cache if k.startswith(prefix)]:
            del self._cache[key]

    def invalidate_cache(self, collection: str, doc_id: Optional[str] = None) -> None:
        """
        Evict one document, or every document and query of a collection.
        """
        if doc_id is not None:
            self._cache.pop(self.document_key(collection, doc_id), None)
            return

        prefixes = (f"{collection}/", f"{collection}?")
        for key in [k for k in self._cache if k.startswith(prefixes)]:
            del self._cache[key]

    def clear_cache(self) -> None:
        self._cache.clear()
        logger.debug("Persistence cache cleared")

    def get_cache_info(self) -> Dict[str, Any]:
        """Entry counts for diagnostics."""
        documents = sum(1 for k in self._cache if "?" not in k)
        expired = sum(1 for entry in self._cache.values() if not self._is_valid(entry))
        return {
            "entries": len(self._cache),
            "documents": documents,
            "queries": len(self._cache) - documents,
            "expired": expired,
            "expiry_seconds": self.expiry_seconds,
        }
