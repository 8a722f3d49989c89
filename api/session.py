"""Table session storage.

Each browser tab holds a signed token; the token's payload is the key of a
JSON document describing the table. Documents expire after ``session_ttl``
seconds of inactivity: every read pushes the expiry forward.
"""

import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, NamedTuple
from uuid import uuid4

import redis.asyncio as redis
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from redis.exceptions import RedisError

from config import config

logger = logging.getLogger(__name__)

TOKEN_SALT = "starlight-session"
REDIS_KEY_PREFIX = "starlight:table:"


class SessionSigner:
    """Sign and verify session tokens using itsdangerous."""

    def __init__(self, secret_key: str | None = None) -> None:
        self._serializer = URLSafeTimedSerializer(
            secret_key or config.security.secret_key,
            salt=TOKEN_SALT,
        )

    def sign(self, session_id: str) -> str:
        return self._serializer.dumps(session_id)

    def unsign(self, token: str, max_age: int | None = None) -> str | None:
        """
        Recover the session id from a token.

        Returns None for tampered tokens, and for tokens older than
        ``max_age`` seconds when one is given. Request handling checks the
        signature only; idle expiry belongs to the session store.
        """
        try:
            return self._serializer.loads(token, max_age=max_age)
        except (BadSignature, SignatureExpired):
            return None


_session_signer: SessionSigner | None = None


def get_session_signer() -> SessionSigner:
    global _session_signer
    if _session_signer is None:
        _session_signer = SessionSigner()
    return _session_signer


def new_session_token() -> str:
    """Mint a signed token for a fresh table."""
    return get_session_signer().sign(uuid4().hex)


def extract_session_id(token: str) -> str | None:
    """Return the session id carried by a token, or None if its signature is bad."""
    return get_session_signer().unsign(token)


class SessionStore(ABC):
    """Keyed JSON documents with an idle timeout."""

    @abstractmethod
    async def get(self, key: str) -> dict[str, Any] | None:
        """Fetch a document and refresh its expiry."""

    @abstractmethod
    async def set(self, key: str, data: dict[str, Any], ttl: int | None = None) -> None:
        """Store a document for ``ttl`` seconds."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Forget a document; unknown keys are ignored."""

    async def exists(self, key: str) -> bool:
        return await self.get(key) is not None


class _Entry(NamedTuple):
    data: dict[str, Any]
    ttl: int
    expires_at: float


class InMemorySessionStore(SessionStore):
    """Process-local store, used when Redis is disabled or unreachable."""

    def __init__(self) -> None:
        self._entries: dict[str, _Entry] = {}

    async def get(self, key: str) -> dict[str, Any] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None

        now = time.monotonic()
        if entry.expires_at <= now:
            del self._entries[key]
            return None

        self._entries[key] = entry._replace(expires_at=now + entry.ttl)
        return entry.data

    async def set(self, key: str, data: dict[str, Any], ttl: int | None = None) -> None:
        ttl = ttl or config.session_ttl
        self._entries[key] = _Entry(data, ttl, time.monotonic() + ttl)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    def purge_expired(self) -> int:
        """Drop every expired document and return how many went."""
        now = time.monotonic()
        stale = [key for key, entry in self._entries.items() if entry.expires_at <= now]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def __len__(self) -> int:
        return len(self._entries)


class RedisSessionStore(SessionStore):
    """Redis-backed store; keys carry a native expiry."""

    def __init__(self, client: redis.Redis, ttl: int | None = None) -> None:
        self._redis = client
        self._ttl = ttl or config.session_ttl

    @staticmethod
    def _key(key: str) -> str:
        return REDIS_KEY_PREFIX + key

    async def get(self, key: str) -> dict[str, Any] | None:
        raw = await self._redis.getex(self._key(key), ex=self._ttl)
        return None if raw is None else json.loads(raw)

    async def set(self, key: str, data: dict[str, Any], ttl: int | None = None) -> None:
        await self._redis.set(self._key(key), json.dumps(data), ex=ttl or self._ttl)

    async def delete(self, key: str) -> None:
        await self._redis.delete(self._key(key))


_session_store: SessionStore | None = None


async def _connect_redis() -> RedisSessionStore | None:
    client = redis.from_url(config.redis.url)
    try:
        await client.ping()
    except (RedisError, OSError) as exc:
        logger.warning("Redis unavailable at %s, keeping tables in memory: %s", config.redis.url, exc)
        await client.aclose()
        return None
    logger.info("Storing tables in Redis at %s", config.redis.url)
    return RedisSessionStore(client, ttl=config.session_ttl)


async def get_session_store() -> SessionStore:
    """Return the process-wide store, choosing a backend on first use."""
    global _session_store
    if _session_store is None:
        store: SessionStore | None = None
        if config.redis.enabled:
            store = await _connect_redis()
        _session_store = store or InMemorySessionStore()
    return _session_store


async def create_session(data: dict[str, Any] | None = None) -> str:
    """Open a table document and return its token."""
    token = new_session_token()
    store = await get_session_store()
    await store.set(token, data or {})
    return token


async def get_session(token: str) -> dict[str, Any] | None:
    store = await get_session_store()
    return await store.get(token)
