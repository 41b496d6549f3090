# =============================================================================
# shoply_core/offline/pending_queue.py
# Deferred writes queued while the store network is disabled
# =============================================================================
"""
Pending operations and their optional on-disk journal.

A ``PendingOperation`` is a zero-argument awaitable: calling it replays the
write against the document store it was bound to. Because it is plain data
(kind, collection, id, payload) it can also be journaled to SQLite so that
writes queued while offline survive an application restart.

Without a journal the queue lives only in memory and is lost on restart.
"""

from __future__ import annotations
import json
import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from shoply_core.logging import get_logger

if TYPE_CHECKING:
    from shoply_core.data.supabase_client import DocumentStore

logger = get_logger(__name__)


class WriteKind(Enum):
    """Kind of deferred write."""
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass
class PendingOperation:
    """A write waiting for the network to come back."""
    kind: WriteKind
    collection: str
    doc_id: str
    data: Dict[str, Any] = field(default_factory=dict)
    store: Optional["DocumentStore"] = field(default=None, repr=False, compare=False)
    journal_id: Optional[int] = None
    created_at: datetime = field(default_factory=datetime.now)

    def bind(self, store: "DocumentStore") -> PendingOperation:
        self.store = store
        return self

    async def __call__(self) -> None:
        if self.store is None:
            raise RuntimeError(f"Pending {self.kind.value} on {self.collection}/{self.doc_id} has no store")

        if self.kind is WriteKind.CREATE:
            await self.store.set(self.collection, self.doc_id, self.data)
        elif self.kind is WriteKind.UPDATE:
            await self.store.update(self.collection, self.doc_id, self.data)
        else:
            await self.store.delete(self.collection, self.doc_id)

    def describe(self) -> str:
        return f"{self.kind.value} {self.collection}/{self.doc_id}"


class PendingOperationJournal:
    """
    SQLite journal mirroring the in-memory pending queue.

    Rows are replayed in insertion order (``id`` ascending). A row is removed
    once its write succeeds; a failed attempt only bumps ``attempts``.
    """

    SCHEMA = """
        CREATE TABLE IF NOT EXISTS pending_operations (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            kind TEXT NOT NULL,
            collection TEXT NOT NULL,
            doc_id TEXT NOT NULL,
            data_json TEXT,
            created_at TEXT NOT NULL,
            attempts INTEGER DEFAULT 0,
            last_attempt TEXT,
            error_message TEXT
        )
    """

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._connection = sqlite3.connect(str(self.db_path), check_same_thread=False)
        self._connection.row_factory = sqlite3.Row
        with self.transaction() as conn:
            conn.execute(self.SCHEMA)
        logger.info(f"Pending operation journal at: {self.db_path}")

    @contextmanager
    def transaction(self):
        """Context manager for journal transactions."""
        with self._lock:
            conn = self._connection
            try:
                yield conn
                conn.commit()
            except Exception:
                conn.rollback()
                raise

    def append(self, op: PendingOperation) -> int:
        """Persist an operation and return its journal id."""
        with self.transaction() as conn:
            cursor = conn.execute(
                """
                INSERT INTO pending_operations (kind, collection, doc_id, data_json, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                [
                    op.kind.value,
                    op.collection,
                    op.doc_id,
                    json.dumps(op.data, default=str),
                    op.created_at.isoformat(),
                ],
            )
            op.journal_id = cursor.lastrowid
        return op.journal_id

    def remove(self, journal_id: int) -> None:
        with self.transaction() as conn:
            conn.execute("DELETE FROM pending_operations WHERE id = ?", [journal_id])

    def record_failure(self, journal_id: int, error: str) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                UPDATE pending_operations
                SET attempts = attempts + 1, last_attempt = ?, error_message = ?
                WHERE id = ?
                """,
                [datetime.now().isoformat(), error, journal_id],
            )

    def load(self) -> List[PendingOperation]:
        """All journaled operations, oldest first, not yet bound to a store."""
        with self.transaction() as conn:
            rows = conn.execute(
                "SELECT * FROM pending_operations ORDER BY id ASC"
            ).fetchall()

        return [
            PendingOperation(
                kind=WriteKind(row["kind"]),
                collection=row["collection"],
                doc_id=row["doc_id"],
                data=json.loads(row["data_json"]) if row["data_json"] else {},
                journal_id=row["id"],
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in rows
        ]

    def count(self) -> int:
        with self.transaction() as conn:
            row = conn.execute("SELECT COUNT(*) AS count FROM pending_operations").fetchone()
        return row["count"] if row else 0

    def close(self) -> None:
        with self._lock:
            self._connection.close()
