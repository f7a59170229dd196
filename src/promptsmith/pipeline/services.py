"""Capability set handed to the orchestrator: production or offline."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from promptsmith.cache.backend import InMemoryBackend, RedisBackend
from promptsmith.cache.service import PromptCache
from promptsmith.config import CacheConfig, ScoringConfig, Settings
from promptsmith.domains.refiner import DomainRefiner
from promptsmith.domains.registry import DomainRegistry, default_registry
from promptsmith.obs.metrics import InMemoryMetrics, MetricsSink
from promptsmith.obs.telemetry import NullTelemetry, Telemetry
from promptsmith.obs.tracing import NullRecorder, SpanRecorder
from promptsmith.quality.scorer import PromptScorer
from promptsmith.store.base import PromptStore
from promptsmith.store.memory import InMemoryPromptStore
from promptsmith.store.sqlite import SQLitePromptStore

logger = logging.getLogger(__name__)

Mode = Literal["production", "offline"]


@dataclass(slots=True)
class ServiceSet:
    """The six collaborators the orchestrator talks to.

    `mode` selects the orchestrator's behaviour: `offline` takes the local
    normalizer fast path and never reads or writes the cache.
    """

    mode: Mode
    refine: DomainRefiner
    score: PromptScorer
    store: PromptStore
    cache: PromptCache
    telemetry: Telemetry | NullTelemetry
    observability: SpanRecorder | NullRecorder

    @property
    def offline(self) -> bool:
        return self.mode == "offline"


def in_memory_services(
    *,
    registry: DomainRegistry | None = None,
    scoring: ScoringConfig | None = None,
    cache_config: CacheConfig | None = None,
    metrics: MetricsSink | None = None,
    telemetry_enabled: bool = True,
    mode: Mode = "production",
) -> ServiceSet:
    """Full pipeline over in-memory cache and store. Used by tests and local runs."""
    registry = registry or default_registry()
    return ServiceSet(
        mode=mode,
        refine=DomainRefiner(registry),
        score=PromptScorer(scoring, registry),
        store=InMemoryPromptStore(),
        cache=PromptCache(InMemoryBackend(), cache_config, metrics or InMemoryMetrics()),
        telemetry=Telemetry() if telemetry_enabled else NullTelemetry(),
        observability=SpanRecorder(),
    )


def offline_services(*, registry: DomainRegistry | None = None, metrics: MetricsSink | None = None) -> ServiceSet:
    registry = registry or default_registry()
    return ServiceSet(
        mode="offline",
        refine=DomainRefiner(registry),
        score=PromptScorer(registry=registry),
        store=InMemoryPromptStore(),
        cache=PromptCache(InMemoryBackend(), metrics=metrics or InMemoryMetrics()),
        telemetry=NullTelemetry(),
        observability=NullRecorder(),
    )


def production_services(
    settings: Settings,
    *,
    registry: DomainRegistry | None = None,
    metrics: MetricsSink | None = None,
) -> ServiceSet:
    if not settings.redis_url or not settings.database_path:
        raise ValueError("production services need both redis_url and database_path")
    registry = registry or default_registry()
    return ServiceSet(
        mode="production",
        refine=DomainRefiner(registry),
        score=PromptScorer(registry=registry),
        store=SQLitePromptStore(settings.database_path),
        cache=PromptCache(RedisBackend(settings.redis_url), metrics=metrics or InMemoryMetrics()),
        telemetry=Telemetry() if settings.telemetry_enabled else NullTelemetry(),
        observability=SpanRecorder(),
    )


def build_services(settings: Settings, *, registry: DomainRegistry | None = None) -> ServiceSet:
    """Pick the capability set once, at construction time."""
    if settings.requires_offline_mode:
        reason = "offline flag set" if settings.offline else "redis_url or database_path not configured"
        logger.warning(f"Starting in offline mode: {reason}")
        return offline_services(registry=registry)
    logger.info("Starting with production services")
    return production_services(settings, registry=registry)
