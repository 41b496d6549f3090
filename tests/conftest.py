# =============================================================================
# tests/conftest.py
# Pytest Configuration and Fixtures
# =============================================================================

import asyncio
import copy
import itertools
from types import SimpleNamespace
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from shoply_core.config import load_config
from shoply_core.data.query import split_predicates
from shoply_core.data.supabase_client import DocumentStore, deep_merge
from shoply_core.errors import ConnectivityError, StoreOfflineError


BASE_ENV = {
    "SHOPLY_API_KEY": "test-api-key",
    "SHOPLY_AUTH_DOMAIN": "shoply.example.com",
    "SHOPLY_PROJECT_ID": "shoply-test",
    "SHOPLY_STORAGE_BUCKET": "shoply-test.appspot.com",
    "SHOPLY_MESSAGING_SENDER_ID": "1234567890",
    "SHOPLY_APP_ID": "1:1234567890:web:abc",
}


# =============================================================================
# FAKE DOCUMENT STORE
# =============================================================================

def _matches(doc: Dict[str, Any], clause) -> bool:
    value = doc.get(clause.field)
    if clause.op == "==":
        return value == clause.value
    if clause.op == "!=":
        return value != clause.value
    if clause.op == "in":
        return value in clause.value
    if clause.op == "not-in":
        return value not in clause.value
    if clause.op == "array-contains":
        return isinstance(value, list) and clause.value in value
    if value is None:
        return False
    if clause.op == "<":
        return value < clause.value
    if clause.op == "<=":
        return value <= clause.value
    if clause.op == ">":
        return value > clause.value
    return value >= clause.value


class FakeDocumentStore(DocumentStore):
    """
    In-memory DocumentStore.

    ``reachable`` decides whether enable_network() succeeds; ``fail_writes``
    and ``fail_reads`` make the next N remote calls raise.
    """

    def __init__(self):
        self.collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.network_enabled = False
        self.reachable = True
        self.fail_writes = 0
        self.fail_reads = 0
        self.writes: List[tuple] = []
        self.reads = 0
        self.enable_calls = 0
        self._ids = itertools.count(1)

    def seed(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        self.collections.setdefault(collection, {})[doc_id] = {**copy.deepcopy(data), "id": doc_id}

    def document(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        return self.collections.get(collection, {}).get(doc_id)

    def new_id(self) -> str:
        return f"doc-{next(self._ids)}"

    def _check_online(self, collection: str, doc_id: Optional[str] = None) -> None:
        if not self.network_enabled:
            raise StoreOfflineError("network disabled", collection=collection, doc_id=doc_id)

    def _check_read(self, collection: str, doc_id: Optional[str] = None) -> None:
        self._check_online(collection, doc_id)
        self.reads += 1
        if self.fail_reads:
            self.fail_reads -= 1
            raise RuntimeError("read failed")

    def _check_write(self, collection: str, doc_id: str) -> None:
        self._check_online(collection, doc_id)
        if self.fail_writes:
            self.fail_writes -= 1
            raise RuntimeError("write failed")

    async def get(self, collection, doc_id):
        self._check_read(collection, doc_id)
        doc = self.document(collection, doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def query(self, collection, predicates):
        self._check_read(collection)
        filters, orders, max_count = split_predicates(predicates)
        docs = [
            copy.deepcopy(doc)
            for doc in self.collections.get(collection, {}).values()
            if all(_matches(doc, clause) for clause in filters)
        ]
        # Stable sorts applied last clause first
        for order in reversed(orders):
            docs.sort(key=lambda d: d.get(order.field), reverse=order.descending)
        return docs[:max_count] if max_count is not None else docs

    async def set(self, collection, doc_id, data):
        self._check_write(collection, doc_id)
        self.seed(collection, doc_id, data)
        self.writes.append(("set", collection, doc_id))

    async def update(self, collection, doc_id, data):
        self._check_write(collection, doc_id)
        current = self.document(collection, doc_id)
        if current is None:
            raise KeyError(f"{collection}/{doc_id} does not exist")
        self.collections[collection][doc_id] = deep_merge(current, copy.deepcopy(data))
        self.writes.append(("update", collection, doc_id))

    async def delete(self, collection, doc_id):
        self._check_write(collection, doc_id)
        self.collections.get(collection, {}).pop(doc_id, None)
        self.writes.append(("delete", collection, doc_id))

    async def enable_network(self):
        self.enable_calls += 1
        if not self.reachable:
            raise ConnectivityError("store unreachable")
        self.network_enabled = True

    async def disable_network(self):
        self.network_enabled = False

    async def wait_for_pending_writes(self):
        pass


# =============================================================================
# FAKE AUTH CLIENT
# =============================================================================

class FakeAuthApiError(Exception):
    """Shaped like supabase's AuthApiError: a message and a ``code``."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class FakeAuthClient:
    """
    Stand-in for ``AsyncClient.auth``.

    Emits (event, session) to listeners synchronously, like the real client.
    Sign-out drops the client's session; a refresh then needs an explicit
    refresh token.
    """

    def __init__(self):
        self.accounts: Dict[str, Dict[str, Any]] = {}
        self.session = None
        self.listeners: List[Any] = []
        self.refresh_fails = False
        self.sign_out_calls = 0
        self.reset_requests: List[tuple] = []
        self.refresh_requests: List[Optional[str]] = []
        self.refresh_tokens: Dict[str, Any] = {}
        self._tokens = itertools.count(1)

    def _user(self, email: str):
        account = self.accounts[email]
        return SimpleNamespace(id=account["id"], email=email, identities=[{"provider": "email"}])

    def _new_session(self, user):
        n = next(self._tokens)
        self.session = SimpleNamespace(user=user, access_token=f"token-{n}", refresh_token=f"refresh-{n}")
        self.refresh_tokens[self.session.refresh_token] = user
        return self.session

    def _emit(self, event: str, session) -> None:
        for listener in list(self.listeners):
            listener(event, session)

    def add_account(self, email: str, password: str, user_id: Optional[str] = None):
        self.accounts[email] = {"id": user_id or f"uid-{len(self.accounts) + 1}", "password": password}
        return self._user(email)

    async def sign_up(self, credentials):
        email = credentials["email"]
        if email in self.accounts:
            raise FakeAuthApiError("User already registered", code="user_already_exists")
        user = self.add_account(email, credentials["password"])
        session = self._new_session(user)
        self._emit("SIGNED_IN", session)
        return SimpleNamespace(user=user, session=session)

    async def sign_in_with_password(self, credentials):
        account = self.accounts.get(credentials["email"])
        if account is None or account["password"] != credentials["password"]:
            raise FakeAuthApiError("Invalid login credentials", code="invalid_credentials")
        session = self._new_session(self._user(credentials["email"]))
        self._emit("SIGNED_IN", session)
        return SimpleNamespace(user=session.user, session=session)

    async def sign_out(self):
        self.sign_out_calls += 1
        self.session = None
        self._emit("SIGNED_OUT", None)

    async def reset_password_for_email(self, email, options=None):
        self.reset_requests.append((email, options))

    async def get_session(self):
        return self.session

    async def refresh_session(self, refresh_token: Optional[str] = None):
        self.refresh_requests.append(refresh_token)
        if refresh_token is None:
            if self.session is None:
                raise FakeAuthApiError("Auth session missing!", code="session_not_found")
            refresh_token = self.session.refresh_token
        user = self.refresh_tokens.pop(refresh_token, None)
        if self.refresh_fails or user is None:
            raise FakeAuthApiError("Invalid Refresh Token", code="refresh_token_not_found")
        session = self._new_session(user)
        self._emit("TOKEN_REFRESHED", session)
        return SimpleNamespace(user=session.user, session=session)

    def on_auth_state_change(self, listener):
        self.listeners.append(listener)
        return SimpleNamespace(unsubscribe=lambda: self.listeners.remove(listener))


# =============================================================================
# TIME
# =============================================================================

class FakeClock:
    """Manual monotonic clock whose ``sleep`` wakes only on ``advance``."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: List[float] = []
        self._waiters: List[tuple] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        future = asyncio.get_running_loop().create_future()
        self._waiters.append((self.now + delay, future))
        await future

    async def advance(self, seconds: float) -> None:
        self.now += seconds
        due = [(t, f) for t, f in self._waiters if t <= self.now]
        for waiter in due:
            self._waiters.remove(waiter)
            if not waiter[1].done():
                waiter[1].set_result(None)
        for _ in range(10):
            await asyncio.sleep(0)


class RecordingSleep:
    """Returns at once; remembers every requested delay."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        await asyncio.sleep(0)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def base_env():
    """Complete set of required variables"""
    return dict(BASE_ENV)


@pytest.fixture
def app_config(base_env):
    return load_config(base_env)


@pytest.fixture
def fake_store():
    return FakeDocumentStore()


@pytest.fixture
def online_store(fake_store):
    fake_store.network_enabled = True
    return fake_store


@pytest.fixture
def fake_auth():
    return FakeAuthClient()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def sample_plans():
    """Three active plans and one retired plan"""
    return {
        "free": {"name": "Free", "price": 0, "features": ["Basic AI chat"],
                 "max_products": 10, "transaction_fee": 3, "is_active": True},
        "starter": {"name": "Starter", "price": 29, "features": ["Unlimited products"],
                    "max_products": -1, "transaction_fee": 2, "is_active": True},
        "pro": {"name": "Pro", "price": 79, "features": ["Advanced AI chat"],
                "max_products": -1, "transaction_fee": 1, "is_active": True},
        "legacy": {"name": "Legacy Enterprise", "price": 199, "features": [],
                   "max_products": -1, "transaction_fee": 0, "is_active": False},
    }


@pytest.fixture
def mock_supabase():
    """Mock Supabase async client with a chainable query builder"""
    builder = MagicMock()
    for method in ("select", "eq", "neq", "lt", "lte", "gt", "gte", "in_",
                   "contains", "order", "limit", "upsert", "update", "delete"):
        getattr(builder, method).return_value = builder
    builder.not_ = builder
    builder.execute = AsyncMock(return_value=SimpleNamespace(data=[]))

    client = MagicMock()
    client.table.return_value = builder
    client.builder = builder
    return client


@pytest.fixture
def monitor(fake_store, recording_sleep):
    from shoply_core.offline.connectivity import ConnectivityMonitor
    return ConnectivityMonitor(fake_store, sleep=recording_sleep)


@pytest.fixture
def cache(fake_store, monitor, fake_clock):
    from shoply_core.cache.persistence import PersistenceCache
    return PersistenceCache(fake_store, monitor, expiry_seconds=300.0, clock=fake_clock)


@pytest.fixture
def data(cache):
    from shoply_core.services.database import ShoplyData
    return ShoplyData(cache)


@pytest.fixture
def mock_streamlit(monkeypatch):
    """Replace streamlit inside the error handlers with a MagicMock"""
    from shoply_core.errors import handlers

    mock_st = MagicMock()
    mock_st.button.return_value = False
    mock_st.session_state = {}
    monkeypatch.setattr(handlers, "st", mock_st)
    return mock_st
