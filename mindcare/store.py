"""Key-value store connection and access.

Every record lives under a string key as a JSON document. Two backends
implement the same contract:

- ``RedisKeyValueStore`` for deployments (``redis.asyncio``)
- ``InMemoryKeyValueStore`` for tests and local development

Reverse indexes are kept as append-only logs (see ``AppendLog``) so that
concurrent appends to one partition never overwrite each other.

Uses lazy initialization so the Redis client is created inside the
running event loop.
"""

import asyncio
import json
from abc import ABC, abstractmethod
from typing import Any, Optional

import redis.asyncio as aioredis

from mindcare.config import settings
from mindcare.core.exceptions import StoreFailure
from mindcare.logging_config import get_logger

logger = get_logger(__name__)


class KeyValueStore(ABC):
    """Schema-less async key-value store over JSON values."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the decoded value at ``key`` or None when unset."""

    @abstractmethod
    async def set(self, key: str, value: Any, *, only_if_absent: bool = False) -> bool:
        """Store ``value`` at ``key``.

        With ``only_if_absent`` the write happens only when the key is unset.
        Returns True when the value was written.
        """

    @abstractmethod
    async def mget(self, keys: list[str]) -> list[Any | None]:
        """Fetch several keys at once; missing keys come back as None."""

    @abstractmethod
    async def incr(self, key: str) -> int:
        """Atomically increment the integer at ``key`` and return the new value."""

    @abstractmethod
    async def ping(self) -> bool:
        """Return True if the backend is reachable."""

    async def close(self) -> None:
        """Release backend resources."""


class RedisKeyValueStore(KeyValueStore):
    """Redis-backed store. Redis errors surface as ``StoreFailure``."""

    def __init__(self, url: str, prefix: str = ""):
        self._prefix = prefix
        self._client: aioredis.Redis = aioredis.from_url(
            url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    async def get(self, key: str) -> Any | None:
        try:
            raw = await self._client.get(self._key(key))
        except aioredis.RedisError as exc:
            logger.error("Redis GET failed", key=key, error=str(exc))
            raise StoreFailure() from exc
        return None if raw is None else json.loads(raw)

    async def set(self, key: str, value: Any, *, only_if_absent: bool = False) -> bool:
        try:
            result = await self._client.set(
                self._key(key), json.dumps(value, default=str), nx=only_if_absent
            )
        except aioredis.RedisError as exc:
            logger.error("Redis SET failed", key=key, error=str(exc))
            raise StoreFailure() from exc
        return bool(result)

    async def mget(self, keys: list[str]) -> list[Any | None]:
        if not keys:
            return []
        try:
            raws = await self._client.mget([self._key(k) for k in keys])
        except aioredis.RedisError as exc:
            logger.error("Redis MGET failed", key_count=len(keys), error=str(exc))
            raise StoreFailure() from exc
        return [None if raw is None else json.loads(raw) for raw in raws]

    async def incr(self, key: str) -> int:
        try:
            return int(await self._client.incr(self._key(key)))
        except aioredis.RedisError as exc:
            logger.error("Redis INCR failed", key=key, error=str(exc))
            raise StoreFailure() from exc

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except aioredis.RedisError:
            return False

    async def close(self) -> None:
        await self._client.aclose()


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local store with the same semantics as the Redis backend.

    Values are kept JSON-encoded so callers never share mutable state with
    the store. Every operation yields to the event loop once before touching
    data, which lets concurrent coroutines interleave the way they would
    against a network store.
    """

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    async def get(self, key: str) -> Any | None:
        await asyncio.sleep(0)
        raw = self._data.get(key)
        return None if raw is None else json.loads(raw)

    async def set(self, key: str, value: Any, *, only_if_absent: bool = False) -> bool:
        await asyncio.sleep(0)
        if only_if_absent and key in self._data:
            return False
        self._data[key] = json.dumps(value, default=str)
        return True

    async def mget(self, keys: list[str]) -> list[Any | None]:
        await asyncio.sleep(0)
        return [
            None if (raw := self._data.get(k)) is None else json.loads(raw)
            for k in keys
        ]

    async def incr(self, key: str) -> int:
        await asyncio.sleep(0)
        value = int(json.loads(self._data.get(key, "0"))) + 1
        self._data[key] = json.dumps(value)
        return value

    async def ping(self) -> bool:
        return True

    def delete(self, key: str) -> None:
        """Drop a key. Test helper for simulating dangling index entries."""
        self._data.pop(key, None)


class AppendLog:
    """Append-only list of ids for one partition key.

    Layout: ``{partition}:seq`` holds the last sequence number handed out by
    an atomic INCR; ``{partition}:{n}`` holds the n-th id. Entries are read
    back in sequence order. A sequence slot that was reserved but never
    written (crash between INCR and SET) reads as missing and is skipped.
    """

    def __init__(self, store: KeyValueStore, partition: str):
        self.store = store
        self.partition = partition

    @property
    def _seq_key(self) -> str:
        return f"{self.partition}:seq"

    def _entry_key(self, seq: int) -> str:
        return f"{self.partition}:{seq}"

    async def append(self, item_id: str) -> int:
        """Append ``item_id`` and return its sequence number."""
        seq = await self.store.incr(self._seq_key)
        await self.store.set(self._entry_key(seq), item_id)
        return seq

    async def read(self) -> list[str]:
        """Return all ids in append order."""
        last = await self.store.get(self._seq_key)
        if not last:
            return []
        ids = await self.store.mget([self._entry_key(n) for n in range(1, int(last) + 1)])
        return [item_id for item_id in ids if item_id is not None]


async def fetch_records(store: KeyValueStore, prefix: str, ids: list[str]) -> list[dict]:
    """Batch-resolve ids to records under ``{prefix}:{id}``.

    Ids that no longer resolve are dropped rather than raising.
    """
    if not ids:
        return []
    records = await store.mget([f"{prefix}:{item_id}" for item_id in ids])
    missing = len(records) - sum(1 for r in records if r is not None)
    if missing:
        logger.warning("Dropped dangling index entries", prefix=prefix, missing=missing)
    return [r for r in records if r is not None]


# Store instance - lazily initialized
_store: Optional[KeyValueStore] = None


def create_store() -> KeyValueStore:
    """Build a store for the configured backend."""
    if settings.testing or settings.store_backend == "memory":
        return InMemoryKeyValueStore()
    if settings.store_backend == "redis":
        return RedisKeyValueStore(settings.redis_url, prefix=settings.store_key_prefix)
    raise ValueError(f"Unknown store backend: {settings.store_backend}")


def get_store() -> KeyValueStore:
    """FastAPI dependency returning the process-wide store."""
    global _store
    if _store is None:
        _store = create_store()
    return _store


async def check_store_connection() -> bool:
    """Check if the store is reachable."""
    try:
        return await get_store().ping()
    except Exception:
        return False


async def close_store() -> None:
    """Close the store and drop the cached instance."""
    global _store
    if _store is not None:
        await _store.close()
        _store = None
