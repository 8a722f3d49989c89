"""Tests for session storage."""

import time
from unittest.mock import patch

import pytest
import pytest_asyncio

import api.session as session_module
from api.session import (
    InMemorySessionStore,
    SessionSigner,
    create_session,
    extract_session_id,
    get_session,
    get_session_signer,
    get_session_store,
    new_session_token,
)


class TestSessionSigner:
    """Tests for SessionSigner class."""

    def test_round_trip(self):
        signer = SessionSigner(secret_key="test-secret")
        token = signer.sign("table-7")

        assert token != "table-7"
        assert signer.unsign(token, max_age=3600) == "table-7"

    def test_tampered_token_returns_none(self):
        signer = SessionSigner(secret_key="test-secret")
        assert signer.unsign("not-a-token", max_age=3600) is None

    def test_wrong_secret_returns_none(self):
        token = SessionSigner(secret_key="secret-one").sign("table-7")
        assert SessionSigner(secret_key="secret-two").unsign(token, max_age=3600) is None

    def test_expired_token_returns_none(self):
        signer = SessionSigner(secret_key="test-secret")
        token = signer.sign("table-7")

        original_time = time.time
        with patch("time.time", lambda: original_time() + 7200):
            assert signer.unsign(token, max_age=3600) is None

    def test_token_age_is_not_checked_by_default(self):
        token = get_session_signer().sign("table-7")

        original_time = time.time
        with patch("time.time", lambda: original_time() + 10 * 3600):
            assert extract_session_id(token) == "table-7"


class TestInMemorySessionStore:
    """Tests for InMemorySessionStore class."""

    @pytest_asyncio.fixture
    async def store(self):
        return InMemorySessionStore()

    @pytest.mark.asyncio
    async def test_set_get_delete(self, store):
        await store.set("s1", {"bankroll": 900}, ttl=3600)
        assert await store.get("s1") == {"bankroll": 900}
        assert await store.exists("s1")

        await store.delete("s1")
        assert await store.get("s1") is None
        await store.delete("s1")

    @pytest.mark.asyncio
    async def test_expired_sessions_are_dropped(self, store):
        await store.set("old", {"data": 1}, ttl=1)
        await store.set("new", {"data": 2}, ttl=3600)

        time.sleep(1.2)

        assert store.purge_expired() == 1
        assert len(store) == 1
        assert await store.get("old") is None
        assert await store.exists("new")

    @pytest.mark.asyncio
    async def test_reads_extend_expiry(self, store):
        await store.set("idle", {"data": 1}, ttl=1)

        time.sleep(0.6)
        assert await store.get("idle") is not None
        time.sleep(0.6)
        assert await store.get("idle") is not None

    def test_tokens_are_signed(self):
        token = new_session_token()
        session_id = extract_session_id(token)
        assert session_id is not None
        assert len(session_id) == 32
        assert new_session_token() != token


class TestStoreSelection:
    @pytest.mark.asyncio
    async def test_in_memory_when_redis_disabled(self):
        with patch.object(session_module, "_session_store", None):
            store = await get_session_store()
            assert isinstance(store, InMemorySessionStore)

    @pytest.mark.asyncio
    async def test_falls_back_when_redis_unreachable(self):
        from config import AppConfig, RedisConfig

        unreachable = AppConfig(redis=RedisConfig(enabled=True, host="127.0.0.1", port=1))
        with patch.object(session_module, "_session_store", None), \
                patch.object(session_module, "config", unreachable):
            store = await get_session_store()
            assert isinstance(store, InMemorySessionStore)

    @pytest.mark.asyncio
    async def test_create_and_read_session(self):
        token = await create_session({"hello": "world"})
        assert await get_session(token) == {"hello": "world"}
