import asyncio

import pytest

from promptsmith.cache.backend import InMemoryBackend
from promptsmith.cache.service import PromptCache
from promptsmith.errors import RecordNotFoundError
from promptsmith.obs.metrics import InMemoryMetrics
from promptsmith.pipeline.offline import FALLBACK_SYSTEM_PROMPT, OFFLINE_SUGGESTION
from promptsmith.pipeline.orchestrator import PromptOrchestrator
from promptsmith.pipeline.services import in_memory_services, offline_services
from promptsmith.quality.analyzer import PromptAnalyzer
from promptsmith.types import ProcessInput, SaveMetadata, SearchParams

DETAILED = (
    "Create a PostgreSQL table for customer orders with a primary key, a foreign key to customers "
    "and an index on created_at. The output must be a single SQL script."
)


class SlowBackend(InMemoryBackend):
    async def get(self, key: str) -> str | None:
        await asyncio.sleep(0.01)
        return await super().get(key)

    async def set(self, key: str, value: str, ttl_seconds: int) -> bool:
        await asyncio.sleep(0.05)
        return await super().set(key, value, ttl_seconds)


class UnreachableAnalyzer(PromptAnalyzer):
    def analyze(self, raw_prompt: str):
        raise ConnectionError("connect ECONNREFUSED 127.0.0.1:6379")


class BrokenAnalyzer(PromptAnalyzer):
    def analyze(self, raw_prompt: str):
        raise ValueError("analyzer bug")


class FailingStore:
    async def save(self, *args, **kwargs):
        raise RuntimeError("disk full")

    async def ping(self) -> bool:
        return False


def _comparable(result) -> dict:
    data = result.model_dump(mode="json")
    data["metadata"].pop("cache_hit")
    data["metadata"].pop("processing_time")
    return data


def test_repeated_request_is_served_from_cache() -> None:
    services = in_memory_services()
    orchestrator = PromptOrchestrator(services)
    request = ProcessInput(raw="Create a user table", domain="sql")

    first = asyncio.run(orchestrator.process(request))
    second = asyncio.run(orchestrator.process(request))

    assert first.metadata.cache_hit is False
    assert second.metadata.cache_hit is True
    assert second.refined == first.refined
    assert _comparable(second) == _comparable(first)
    assert len(services.telemetry.events("processing_complete")) == 1
    assert len(services.telemetry.events("cache_hit")) == 1


def test_pipeline_result_is_complete() -> None:
    orchestrator = PromptOrchestrator(in_memory_services())

    result = asyncio.run(orchestrator.process(ProcessInput(raw="hazme una bonita tabla", domain="sql", context="users")))

    assert result.original == "hazme una bonita tabla"
    assert "bonita" not in result.refined
    assert result.refined.endswith("Additional context: users")
    assert "sql_vague_table" in result.metadata.rules_applied
    assert "add_context" in result.metadata.rules_applied
    assert result.system.startswith("You are a senior database architect")
    assert "Additional Context: users" in result.system
    assert result.examples
    assert 0.0 <= result.score.overall <= 1.0
    assert len(result.suggestions) <= 5
    assert result.metadata.version == "1.0.0"


def test_template_is_generated_for_caller_variables() -> None:
    orchestrator = PromptOrchestrator(in_memory_services())
    request = ProcessInput(raw="Write a welcome email for Acme customers", variables={"company": "Acme"})

    result = asyncio.run(orchestrator.process(request))

    assert result.template is not None
    assert "{{company}}" in result.template.prompt
    assert result.metadata.template_used == result.template.type.value


def test_variable_names_with_backslashes_are_processed() -> None:
    services = in_memory_services()
    orchestrator = PromptOrchestrator(services)
    request = ProcessInput(raw="Write a welcome email for Acme customers", variables={r"co\1": "Acme"})

    result = asyncio.run(orchestrator.process(request))

    assert result.template is not None
    assert result.template.variables[r"co\1"] == "Acme"
    assert not services.telemetry.errors()


def test_cancelled_leader_does_not_cancel_waiting_request() -> None:
    services = in_memory_services()
    services.cache = PromptCache(SlowBackend(), metrics=InMemoryMetrics())
    orchestrator = PromptOrchestrator(services)
    request = ProcessInput(raw=DETAILED, domain="sql")

    async def scenario():
        leader = asyncio.create_task(orchestrator.process(request))
        await asyncio.sleep(0.02)
        follower = asyncio.create_task(orchestrator.process(request))
        await asyncio.sleep(0.02)
        leader.cancel()
        outcomes = await asyncio.gather(leader, follower, return_exceptions=True)
        await asyncio.sleep(0)
        return outcomes

    leader_outcome, follower_outcome = asyncio.run(scenario())

    assert isinstance(leader_outcome, asyncio.CancelledError)
    assert follower_outcome.refined
    assert follower_outcome.metadata.cache_hit is False
    assert len(services.telemetry.events("processing_complete")) == 1
    assert services.observability.summary()["active_spans"] == 0


def test_concurrent_identical_requests_compute_once() -> None:
    services = in_memory_services()
    services.cache = PromptCache(SlowBackend(), metrics=InMemoryMetrics())
    orchestrator = PromptOrchestrator(services)
    request = ProcessInput(raw=DETAILED, domain="sql")

    async def scenario():
        return await asyncio.gather(*(orchestrator.process(request) for _ in range(3)))

    results = asyncio.run(scenario())

    assert len(services.telemetry.events("processing_complete")) == 1
    assert {result.refined for result in results} == {results[0].refined}
    assert all(result.metadata.cache_hit is False for result in results)
    assert results[1] is not results[0]


def test_offline_mode_normalizes_locally_and_skips_cache() -> None:
    services = offline_services()
    orchestrator = PromptOrchestrator(services)

    result = asyncio.run(orchestrator.process(ProcessInput(raw="a landing page", domain="saas")))

    assert result.refined.startswith("Build a SaaS feature that a landing page.")
    assert result.metadata.rules_applied[0] == "offline_domain_prefix"
    assert result.metadata.cache_hit is False
    assert result.suggestions == [OFFLINE_SUGGESTION]
    assert result.score.overall == 0.5
    assert result.system.startswith("You are a senior product manager")
    stats = asyncio.run(services.cache.stats())
    assert stats["hits"] == 0 and stats["misses"] == 0 and stats["size"] == 0


def test_connectivity_failure_returns_fallback_result() -> None:
    services = in_memory_services()
    orchestrator = PromptOrchestrator(services, analyzer=UnreachableAnalyzer())

    result = asyncio.run(orchestrator.process(ProcessInput(raw="Create a table", domain="sql")))

    assert result.refined == "Create a table"
    assert result.system == FALLBACK_SYSTEM_PROMPT
    assert result.metadata.cache_hit is False
    assert services.telemetry.errors()[0].name == "processing_error"
    assert services.observability.summary()["error_spans"] == 1


def test_unclassified_failure_is_raised() -> None:
    services = in_memory_services()
    orchestrator = PromptOrchestrator(services, analyzer=BrokenAnalyzer())

    with pytest.raises(ValueError, match="analyzer bug"):
        asyncio.run(orchestrator.process(ProcessInput(raw="Create a table")))

    assert services.observability.summary()["tracked_errors"] == 1
    assert services.telemetry.errors()[0].error_type == "ValueError"


def test_evaluate_reports_breakdown_and_recommendations() -> None:
    orchestrator = PromptOrchestrator(in_memory_services())

    evaluation = asyncio.run(orchestrator.evaluate("hi"))

    assert evaluation.recommendations[0].type == "critical"
    assert 0.5 <= evaluation.confidence <= 1.0
    assert evaluation.breakdown.structure.factors
    assert evaluation.score.overall <= 1.0


def test_compare_picks_highest_overall() -> None:
    orchestrator = PromptOrchestrator(in_memory_services())

    comparison = asyncio.run(orchestrator.compare(["make stuff", DETAILED], "sql"))

    assert comparison.winner == "variant_1"
    assert [metric.name for metric in comparison.metrics] == ["Overall Quality", "Clarity"]
    overall = comparison.metrics[0]
    assert overall.significance == pytest.approx(max(overall.values.values()) - min(overall.values.values()))
    assert comparison.summary.startswith("variant_1 achieved the highest quality score of")
    assert [metric.name for metric in comparison.variants[0].metrics] == [
        "Length",
        "Complexity",
        "Readability",
        "Error Count",
    ]

    with pytest.raises(ValueError):
        asyncio.run(orchestrator.compare([]))


def test_save_search_and_get_prompt() -> None:
    orchestrator = PromptOrchestrator(in_memory_services())

    async def scenario():
        saved = await orchestrator.save(DETAILED, SaveMetadata(name="orders", domain="sql", tags=["ddl"]))
        found = await orchestrator.search(SearchParams(domain="sql", tags=["ddl"]))
        fetched = await orchestrator.get_prompt(saved.id)
        return saved, found, fetched

    saved, found, fetched = asyncio.run(scenario())

    assert saved.system_prompt.startswith("You are a senior database architect")
    assert [result.id for result in found] == [saved.id]
    assert fetched.prompt == DETAILED
    with pytest.raises(RecordNotFoundError):
        asyncio.run(orchestrator.get_prompt("missing"))


def test_save_failure_is_tracked_and_raised() -> None:
    services = in_memory_services()
    services.store = FailingStore()
    orchestrator = PromptOrchestrator(services)

    with pytest.raises(RuntimeError):
        asyncio.run(orchestrator.save("Create a table", SaveMetadata(name="x")))

    assert services.telemetry.errors()[0].name == "save_error"


def test_health_metrics_and_shutdown() -> None:
    services = in_memory_services()
    orchestrator = PromptOrchestrator(services)
    asyncio.run(orchestrator.process(ProcessInput(raw="Create a user table", domain="sql")))

    health = asyncio.run(orchestrator.health())
    metrics = asyncio.run(orchestrator.metrics())
    offline_health = asyncio.run(PromptOrchestrator(offline_services()).health())
    asyncio.run(orchestrator.shutdown())

    assert health["status"] == "ok"
    assert health["mode"] == "production"
    assert health["capabilities"]["store"] and health["capabilities"]["cache"]
    assert metrics["cache"]["misses"] == 1
    assert metrics["observability"]["total_spans"] == 1
    assert metrics["telemetry"]["events_today"] >= 1
    assert offline_health["status"] == "degraded"
    assert offline_health["mode"] == "offline"
    assert services.telemetry.events("session_end")
