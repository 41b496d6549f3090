# =============================================================================
# tests/unit/test_pending_queue.py
# Unit Tests for the SQLite pending-operation journal
# =============================================================================

import pytest

from shoply_core.offline.connectivity import ConnectivityMonitor
from shoply_core.offline.pending_queue import (
    PendingOperation,
    PendingOperationJournal,
    WriteKind,
)


@pytest.fixture
def journal_path(tmp_path):
    return tmp_path / "queue" / "pending.db"


class TestJournal:
    """Journal rows mirror the queue"""

    def test_append_and_load_in_order(self, journal_path):
        journal = PendingOperationJournal(journal_path)
        first = PendingOperation(WriteKind.CREATE, "chatbots", "b1", {"name": "One"})
        second = PendingOperation(WriteKind.DELETE, "chatbots", "b2")

        journal.append(first)
        journal.append(second)
        loaded = journal.load()

        assert [op.doc_id for op in loaded] == ["b1", "b2"]
        assert loaded[0].kind is WriteKind.CREATE
        assert loaded[0].data == {"name": "One"}
        assert loaded[0].store is None
        assert journal.count() == 2
        journal.close()

    def test_remove(self, journal_path):
        journal = PendingOperationJournal(journal_path)
        op = PendingOperation(WriteKind.UPDATE, "users", "u1", {"name": "Ada"})
        journal.append(op)

        journal.remove(op.journal_id)

        assert journal.count() == 0
        journal.close()

    def test_record_failure_keeps_row(self, journal_path):
        journal = PendingOperationJournal(journal_path)
        op = PendingOperation(WriteKind.UPDATE, "users", "u1", {"name": "Ada"})
        journal.append(op)

        journal.record_failure(op.journal_id, "write rejected")

        with journal.transaction() as conn:
            row = conn.execute("SELECT attempts, error_message FROM pending_operations").fetchone()
        assert row["attempts"] == 1
        assert row["error_message"] == "write rejected"
        journal.close()


class TestReplayAcrossRestart:
    """Queued writes survive a restart"""

    @pytest.mark.asyncio
    async def test_restart_replays_journal(self, journal_path, fake_store, recording_sleep):
        journal = PendingOperationJournal(journal_path)
        monitor = ConnectivityMonitor(fake_store, journal=journal, sleep=recording_sleep)
        monitor.add_pending_operation(
            PendingOperation(WriteKind.CREATE, "chatbots", "b1", {"name": "One"})
        )
        monitor.add_pending_operation(
            PendingOperation(WriteKind.UPDATE, "chatbots", "b1", {"name": "Renamed"})
        )
        journal.close()

        journal = PendingOperationJournal(journal_path)
        restarted = ConnectivityMonitor(fake_store, journal=journal, sleep=recording_sleep)
        await restarted.start()
        assert restarted.pending_operations_count == 2

        await restarted.handle_online()

        assert fake_store.document("chatbots", "b1")["name"] == "Renamed"
        assert journal.count() == 0
        journal.close()

    @pytest.mark.asyncio
    async def test_failed_replay_stays_journaled(self, journal_path, fake_store, recording_sleep):
        journal = PendingOperationJournal(journal_path)
        monitor = ConnectivityMonitor(fake_store, journal=journal, sleep=recording_sleep)
        monitor.add_pending_operation(
            PendingOperation(WriteKind.UPDATE, "chatbots", "missing", {"name": "Ghost"})
        )

        await monitor.handle_online()

        assert monitor.pending_operations_count == 1
        assert journal.count() == 1
        journal.close()
