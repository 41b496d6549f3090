# =============================================================================
# tests/unit/test_supabase_store.py
# Unit Tests for SupabaseDocumentStore
# =============================================================================

from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from shoply_core.data.query import limit, order_by, where
from shoply_core.data.supabase_client import SupabaseDocumentStore, deep_merge
from shoply_core.errors import ConnectivityError, StoreOfflineError


class TestDeepMerge:
    """Nested dicts merge key by key"""

    def test_nested_merge(self):
        base = {"name": "Bot", "settings": {"tone": "casual", "temperature": 0.7}}
        merged = deep_merge(base, {"settings": {"tone": "friendly"}})

        assert merged == {"name": "Bot", "settings": {"tone": "friendly", "temperature": 0.7}}
        assert base["settings"]["tone"] == "casual"

    def test_non_dict_replaces(self):
        assert deep_merge({"features": ["a"]}, {"features": ["b"]}) == {"features": ["b"]}


class TestSupabaseDocumentStore:
    """Predicates map onto the PostgREST builder"""

    @pytest.mark.asyncio
    async def test_offline_reads_raise(self, mock_supabase):
        store = SupabaseDocumentStore(mock_supabase)

        with pytest.raises(StoreOfflineError):
            await store.get("plans", "free")

    @pytest.mark.asyncio
    async def test_enable_network_probes_store(self, mock_supabase):
        store = SupabaseDocumentStore(mock_supabase)

        await store.enable_network()

        assert store.network_enabled
        mock_supabase.table.assert_called_with("plans")

    @pytest.mark.asyncio
    async def test_enable_network_failure(self, mock_supabase):
        mock_supabase.builder.execute = AsyncMock(side_effect=OSError("connection refused"))
        store = SupabaseDocumentStore(mock_supabase)

        with pytest.raises(ConnectivityError):
            await store.enable_network()
        assert not store.network_enabled

    @pytest.mark.asyncio
    async def test_query_applies_filters_order_and_limit(self, mock_supabase):
        builder = mock_supabase.builder
        builder.execute = AsyncMock(return_value=SimpleNamespace(data=[{"id": "s1"}]))
        store = SupabaseDocumentStore(mock_supabase)
        await store.enable_network()

        rows = await store.query("subscriptions", [
            where("user_id", "==", "u1"),
            where("status", "in", ["active", "expired"]),
            order_by("created_at", "desc"),
            limit(1),
        ])

        assert rows == [{"id": "s1"}]
        builder.eq.assert_called_with("user_id", "u1")
        builder.in_.assert_called_with("status", ["active", "expired"])
        builder.order.assert_called_with("created_at", desc=True)
        builder.limit.assert_called_with(1)

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, mock_supabase):
        store = SupabaseDocumentStore(mock_supabase)
        await store.enable_network()

        assert await store.get("plans", "nope") is None

    @pytest.mark.asyncio
    async def test_set_serialises_datetimes(self, mock_supabase):
        store = SupabaseDocumentStore(mock_supabase)
        await store.enable_network()
        stamp = datetime(2024, 1, 31, 12, 0, tzinfo=timezone.utc)

        await store.set("plans", "free", {"name": "Free", "created_at": stamp})

        mock_supabase.builder.upsert.assert_called_with({
            "name": "Free",
            "created_at": "2024-01-31T12:00:00+00:00",
            "id": "free",
        })

    @pytest.mark.asyncio
    async def test_update_merges_json_columns(self, mock_supabase):
        builder = mock_supabase.builder
        builder.execute = AsyncMock(return_value=SimpleNamespace(
            data=[{"id": "b1", "settings": {"tone": "casual", "temperature": 0.7}}]
        ))
        store = SupabaseDocumentStore(mock_supabase)
        await store.enable_network()

        await store.update("chatbots", "b1", {"settings": {"tone": "friendly"}})

        builder.update.assert_called_with({"settings": {"tone": "friendly", "temperature": 0.7}})
