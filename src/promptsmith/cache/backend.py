"""Key/value backends behind `PromptCache`.

Backends speak strings only. Serialization, namespacing and statistics live in
the cache service.
"""

from __future__ import annotations

import fnmatch
import logging
import math
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol, TypeVar

from promptsmith.errors import BackendTimeoutError, BackendUnavailableError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CacheBackend(Protocol):
    async def get(self, key: str) -> str | None:
        ...

    async def mget(self, keys: list[str]) -> list[str | None]:
        ...

    async def set(self, key: str, value: str, ttl_seconds: int) -> bool:
        ...

    async def set_nx(self, key: str, value: str, ttl_seconds: int) -> bool:
        ...

    async def exists(self, key: str) -> bool:
        ...

    async def delete(self, *keys: str) -> int:
        ...

    async def keys(self, pattern: str) -> list[str]:
        ...

    async def ttl(self, key: str) -> int:
        ...

    async def expire(self, key: str, ttl_seconds: int) -> bool:
        ...

    async def incrby(self, key: str, amount: int) -> int:
        ...

    async def ping(self) -> bool:
        ...

    async def close(self) -> None:
        ...


@dataclass(slots=True)
class _Entry:
    value: str
    expires_at: float | None


class InMemoryBackend:
    """Expiring dict with Redis-like return conventions.

    Expired entries are dropped lazily on access. `ttl()` returns -2 for a
    missing key and -1 for a key without expiry.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._data: dict[str, _Entry] = {}

    def _live(self, key: str) -> _Entry | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        if entry.expires_at is not None and entry.expires_at <= self._clock():
            del self._data[key]
            return None
        return entry

    def _expiry(self, ttl_seconds: int) -> float:
        return self._clock() + ttl_seconds

    async def get(self, key: str) -> str | None:
        entry = self._live(key)
        return entry.value if entry is not None else None

    async def mget(self, keys: list[str]) -> list[str | None]:
        return [await self.get(key) for key in keys]

    async def set(self, key: str, value: str, ttl_seconds: int) -> bool:
        self._data[key] = _Entry(value=value, expires_at=self._expiry(ttl_seconds))
        return True

    async def set_nx(self, key: str, value: str, ttl_seconds: int) -> bool:
        if self._live(key) is not None:
            return False
        return await self.set(key, value, ttl_seconds)

    async def exists(self, key: str) -> bool:
        return self._live(key) is not None

    async def delete(self, *keys: str) -> int:
        deleted = 0
        for key in keys:
            if self._live(key) is not None:
                del self._data[key]
                deleted += 1
        return deleted

    async def keys(self, pattern: str) -> list[str]:
        return [key for key in list(self._data) if fnmatch.fnmatchcase(key, pattern) and self._live(key) is not None]

    async def ttl(self, key: str) -> int:
        entry = self._live(key)
        if entry is None:
            return -2
        if entry.expires_at is None:
            return -1
        return math.ceil(entry.expires_at - self._clock())

    async def expire(self, key: str, ttl_seconds: int) -> bool:
        entry = self._live(key)
        if entry is None:
            return False
        entry.expires_at = self._expiry(ttl_seconds)
        return True

    async def incrby(self, key: str, amount: int) -> int:
        entry = self._live(key)
        if entry is None:
            entry = _Entry(value="0", expires_at=None)
            self._data[key] = entry
        try:
            current = int(entry.value)
        except ValueError as exc:
            raise ValueError(f"value at {key} is not an integer") from exc
        entry.value = str(current + amount)
        return current + amount

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        self._data.clear()


class RedisBackend:
    """Adapter over `redis.asyncio` with driver errors mapped to our taxonomy."""

    def __init__(self, url: str, *, socket_timeout: float = 5.0, connect_timeout: float = 10.0) -> None:
        try:
            from redis import asyncio as redis_asyncio
            from redis import exceptions as redis_exceptions
        except Exception as exc:  # pragma: no cover - import path is environment-dependent
            raise RuntimeError("Redis dependencies are not available. Install promptsmith[redis].") from exc

        self._exceptions = redis_exceptions
        self._client = redis_asyncio.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=connect_timeout,
        )
        logger.info("Redis cache backend configured")

    async def _call(self, operation: str, factory: Callable[[], Awaitable[T]]) -> T:
        try:
            return await factory()
        except self._exceptions.TimeoutError as exc:
            raise BackendTimeoutError(f"redis {operation} timed out: {exc}") from exc
        except self._exceptions.ConnectionError as exc:
            raise BackendUnavailableError(f"redis {operation} failed: {exc}") from exc

    async def get(self, key: str) -> str | None:
        return await self._call("get", lambda: self._client.get(key))

    async def mget(self, keys: list[str]) -> list[str | None]:
        if not keys:
            return []
        return await self._call("mget", lambda: self._client.mget(keys))

    async def set(self, key: str, value: str, ttl_seconds: int) -> bool:
        result: Any = await self._call("set", lambda: self._client.set(key, value, ex=ttl_seconds))
        return bool(result)

    async def set_nx(self, key: str, value: str, ttl_seconds: int) -> bool:
        result: Any = await self._call("set", lambda: self._client.set(key, value, ex=ttl_seconds, nx=True))
        return bool(result)

    async def exists(self, key: str) -> bool:
        return bool(await self._call("exists", lambda: self._client.exists(key)))

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return int(await self._call("delete", lambda: self._client.delete(*keys)))

    async def keys(self, pattern: str) -> list[str]:
        async def scan() -> list[str]:
            return [key async for key in self._client.scan_iter(match=pattern)]

        return await self._call("scan", scan)

    async def ttl(self, key: str) -> int:
        return int(await self._call("ttl", lambda: self._client.ttl(key)))

    async def expire(self, key: str, ttl_seconds: int) -> bool:
        return bool(await self._call("expire", lambda: self._client.expire(key, ttl_seconds)))

    async def incrby(self, key: str, amount: int) -> int:
        return int(await self._call("incrby", lambda: self._client.incrby(key, amount)))

    async def ping(self) -> bool:
        return bool(await self._call("ping", lambda: self._client.ping()))

    async def close(self) -> None:
        await self._client.aclose()
