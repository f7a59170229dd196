"""Namespaced JSON cache over a pluggable backend."""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from pydantic import BaseModel

from promptsmith.cache.backend import CacheBackend, InMemoryBackend
from promptsmith.config import CacheConfig
from promptsmith.errors import PromptSmithError
from promptsmith.obs.metrics import InMemoryMetrics, MetricsSink

logger = logging.getLogger(__name__)

T = TypeVar("T")

HITS = "cache_hits"
MISSES = "cache_misses"
GET_LATENCY = "cache_get_ms"

# Backend failures the cache absorbs: reads degrade to a miss, writes to False.
_BACKEND_ERRORS = (PromptSmithError, ConnectionError, TimeoutError)


def _json_default(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


class PromptCache:
    """Read-through cache used by the orchestrator.

    Keys are laid out as `{prefix}{namespace}:{key}` (or `{prefix}{key}` without
    a namespace). Values are JSON encoded unless `serialize=False`, in which case
    they are stored with `str()`. A stored value that no longer parses as JSON is
    returned as the raw string.

    Hit and miss counts go to the injected metrics sink. With the default
    `InMemoryMetrics` they are process-scoped.
    """

    def __init__(
        self,
        backend: CacheBackend | None = None,
        config: CacheConfig | None = None,
        metrics: MetricsSink | None = None,
    ) -> None:
        self.backend: CacheBackend = backend or InMemoryBackend()
        self.config = config or CacheConfig()
        self.metrics: MetricsSink = metrics or InMemoryMetrics()

    def build_key(self, key: str, namespace: str | None = None) -> str:
        if namespace:
            return f"{self.config.key_prefix}{namespace}:{key}"
        return f"{self.config.key_prefix}{key}"

    async def get(self, key: str, *, namespace: str | None = None, serialize: bool = True) -> Any | None:
        full_key = self.build_key(key, namespace)
        start = time.perf_counter()
        try:
            raw = await self.backend.get(full_key)
        except _BACKEND_ERRORS as exc:
            logger.warning(f"Cache get failed for {full_key}: {exc}")
            self.metrics.increment(MISSES)
            return None
        finally:
            self.metrics.observe(GET_LATENCY, (time.perf_counter() - start) * 1000.0)

        if raw is None:
            self.metrics.increment(MISSES)
            return None
        self.metrics.increment(HITS)
        return self._decode(full_key, raw) if serialize else raw

    async def set(
        self,
        key: str,
        value: Any,
        ttl: int | None = None,
        *,
        namespace: str | None = None,
        serialize: bool = True,
    ) -> bool:
        full_key = self.build_key(key, namespace)
        try:
            payload = self._encode(value) if serialize else str(value)
        except (TypeError, ValueError) as exc:
            logger.warning(f"Cache value for {full_key} is not serializable: {exc}")
            return False
        try:
            return await self.backend.set(full_key, payload, ttl or self.config.default_ttl_seconds)
        except _BACKEND_ERRORS as exc:
            logger.warning(f"Cache set failed for {full_key}: {exc}")
            return False

    async def has(self, key: str, *, namespace: str | None = None) -> bool:
        try:
            return await self.backend.exists(self.build_key(key, namespace))
        except _BACKEND_ERRORS as exc:
            logger.warning(f"Cache has failed: {exc}")
            return False

    async def delete(self, key: str, *, namespace: str | None = None) -> bool:
        try:
            return await self.backend.delete(self.build_key(key, namespace)) == 1
        except _BACKEND_ERRORS as exc:
            logger.warning(f"Cache delete failed: {exc}")
            return False

    async def delete_pattern(self, pattern: str, *, namespace: str | None = None) -> int:
        try:
            keys = await self.backend.keys(self.build_key(pattern, namespace))
            if not keys:
                return 0
            return await self.backend.delete(*keys)
        except _BACKEND_ERRORS as exc:
            logger.warning(f"Cache delete_pattern failed: {exc}")
            return 0

    async def clear(self, *, namespace: str | None = None) -> bool:
        try:
            keys = await self.backend.keys(self.build_key("*", namespace))
            if keys:
                await self.backend.delete(*keys)
        except _BACKEND_ERRORS as exc:
            logger.warning(f"Cache clear failed: {exc}")
            return False
        return True

    async def get_or_set(
        self,
        key: str,
        fetcher: Callable[[], Awaitable[T]],
        ttl: int | None = None,
        *,
        namespace: str | None = None,
    ) -> T | Any:
        cached = await self.get(key, namespace=namespace)
        if cached is not None:
            return cached
        value = await fetcher()
        await self.set(key, value, ttl, namespace=namespace)
        return value

    async def mget(self, keys: list[str], *, namespace: str | None = None) -> list[Any | None]:
        full_keys = [self.build_key(key, namespace) for key in keys]
        try:
            values = await self.backend.mget(full_keys)
        except _BACKEND_ERRORS as exc:
            logger.warning(f"Cache mget failed: {exc}")
            self.metrics.increment(MISSES, len(keys))
            return [None for _ in keys]

        results: list[Any | None] = []
        for full_key, raw in zip(full_keys, values, strict=True):
            if raw is None:
                self.metrics.increment(MISSES)
                results.append(None)
                continue
            self.metrics.increment(HITS)
            results.append(self._decode(full_key, raw))
        return results

    async def mset(self, items: list[tuple[str, Any]], ttl: int | None = None, *, namespace: str | None = None) -> bool:
        results = [await self.set(key, value, ttl, namespace=namespace) for key, value in items]
        return all(results)

    async def increment(self, key: str, amount: int = 1, *, namespace: str | None = None) -> int:
        try:
            return await self.backend.incrby(self.build_key(key, namespace), amount)
        except _BACKEND_ERRORS as exc:
            logger.warning(f"Cache increment failed: {exc}")
            return 0

    async def lock(self, key: str, ttl: int | None = None) -> bool:
        """Try to take `lock:{key}`. Returns False if held or on backend failure."""
        try:
            return await self.backend.set_nx(
                self.build_key(f"lock:{key}"), "1", ttl or self.config.lock_ttl_seconds
            )
        except _BACKEND_ERRORS as exc:
            logger.warning(f"Cache lock failed for {key}: {exc}")
            return False

    async def unlock(self, key: str) -> bool:
        return await self.delete(f"lock:{key}")

    async def get_ttl(self, key: str, *, namespace: str | None = None) -> int:
        try:
            return await self.backend.ttl(self.build_key(key, namespace))
        except _BACKEND_ERRORS as exc:
            logger.warning(f"Cache get_ttl failed: {exc}")
            return -1

    async def extend(self, key: str, ttl: int, *, namespace: str | None = None) -> bool:
        try:
            return await self.backend.expire(self.build_key(key, namespace), ttl)
        except _BACKEND_ERRORS as exc:
            logger.warning(f"Cache extend failed: {exc}")
            return False

    async def ping(self) -> bool:
        try:
            return await self.backend.ping()
        except _BACKEND_ERRORS as exc:
            logger.warning(f"Cache ping failed: {exc}")
            return False

    async def disconnect(self) -> None:
        try:
            await self.backend.close()
        except _BACKEND_ERRORS as exc:
            logger.warning(f"Cache disconnect failed: {exc}")

    async def stats(self) -> dict[str, float | int]:
        hits = self.metrics.count(HITS)
        misses = self.metrics.count(MISSES)
        total = hits + misses
        try:
            size = len(await self.backend.keys(f"{self.config.key_prefix}*"))
        except _BACKEND_ERRORS as exc:
            logger.warning(f"Cache size lookup failed: {exc}")
            size = 0
        return {
            "hits": hits,
            "misses": misses,
            "hit_rate": hits / total if total else 0.0,
            "size": size,
            "avg_get_ms": self.metrics.snapshot().get(f"{GET_LATENCY}_avg", 0.0),
        }

    def reset_stats(self) -> None:
        self.metrics.reset(HITS, MISSES, GET_LATENCY)

    @staticmethod
    def _encode(value: Any) -> str:
        return json.dumps(value, default=_json_default, ensure_ascii=False)

    @staticmethod
    def _decode(full_key: str, raw: str) -> Any:
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Cached value at {full_key} is not valid JSON; returning raw string")
            return raw
