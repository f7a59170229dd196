import asyncio
from pathlib import Path

import pytest

from promptsmith.errors import BackendUnavailableError
from promptsmith.store.base import relevance
from promptsmith.store.memory import InMemoryPromptStore
from promptsmith.store.sqlite import SQLitePromptStore
from promptsmith.types import QualityScore, SaveMetadata, SearchParams


def _stores(tmp_path: Path) -> list:
    return [InMemoryPromptStore(), SQLitePromptStore(tmp_path / "prompts.db")]


async def _seed(store) -> list:
    return [
        await store.save(
            "Create a users table with an index on email.",
            "create users table",
            SaveMetadata(name="users", domain="sql", tags=["schema", "users"], category="ddl"),
            QualityScore.neutral(0.92),
            "system",
        ),
        await store.save(
            "Write a query that lists active users.",
            "list active users",
            SaveMetadata(name="active", domain="sql", tags=["query"]),
            QualityScore.neutral(0.6),
            "system",
        ),
        await store.save(
            "Design a brand voice for a coffee shop.",
            "brand voice",
            SaveMetadata(name="voice", domain="branding", tags=["voice"]),
            QualityScore.neutral(0.4),
            "system",
        ),
    ]


def test_save_and_get_by_id(tmp_path: Path) -> None:
    async def scenario(store) -> None:
        saved = await store.save(
            "Refined prompt.",
            "raw prompt",
            SaveMetadata(name="demo", tags=["a"], description="desc"),
            QualityScore.neutral(0.7),
            "system prompt",
        )
        fetched = await store.get_by_id(saved.id)
        assert fetched is not None
        assert fetched.domain == "general"
        assert fetched.prompt == "Refined prompt."
        assert fetched.original == "raw prompt"
        assert fetched.tags == ["a"]
        assert fetched.score.overall == 0.7
        assert fetched.created_at == saved.created_at
        assert await store.get_by_id("missing") is None

    for store in _stores(tmp_path):
        asyncio.run(scenario(store))


def test_search_filters_sorts_and_paginates(tmp_path: Path) -> None:
    async def scenario(store) -> None:
        await _seed(store)

        sql = await store.search(SearchParams(domain="sql"))
        assert [result.name for result in sql] == ["users", "active"]

        ascending = await store.search(SearchParams(sort_order="asc"))
        assert [result.name for result in ascending] == ["voice", "active", "users"]

        assert [r.name for r in await store.search(SearchParams(min_score=0.5))] == ["users", "active"]
        assert [r.name for r in await store.search(SearchParams(tags=["schema"]))] == ["users"]
        assert [r.name for r in await store.search(SearchParams(category="ddl"))] == ["users"]
        assert [r.name for r in await store.search(SearchParams(query="COFFEE"))] == ["voice"]
        assert [r.name for r in await store.search(SearchParams(limit=1, offset=1))] == ["active"]

    for store in _stores(tmp_path):
        asyncio.run(scenario(store))


def test_delete_and_stats(tmp_path: Path) -> None:
    async def scenario(store) -> None:
        records = await _seed(store)
        stats = await store.get_stats()
        assert stats["total_prompts"] == 3
        assert stats["domain_distribution"] == {"sql": 2, "branding": 1}
        assert stats["quality_distribution"] == {"excellent": 1, "good": 0, "average": 1, "poor": 1}
        assert stats["tag_distribution"]["users"] == 1

        assert await store.delete(records[0].id)
        assert not await store.delete(records[0].id)
        assert (await store.get_stats())["total_prompts"] == 2
        assert await store.ping()

    for store in _stores(tmp_path):
        asyncio.run(scenario(store))


def test_relevance_boosts_query_hits_and_tags() -> None:
    async def scenario():
        store = InMemoryPromptStore()
        return (await _seed(store))[0]

    record = asyncio.run(scenario())
    base = relevance(record, SearchParams())

    assert base == pytest.approx(0.5 + 0.92 * 0.3)
    assert relevance(record, SearchParams(query="users")) == pytest.approx(min(1.0, base + 0.2))
    assert relevance(record, SearchParams(tags=["schema", "other"])) == pytest.approx(base + 0.1)


def test_unreachable_sqlite_file_is_a_connectivity_error(tmp_path: Path) -> None:
    with pytest.raises(BackendUnavailableError):
        SQLitePromptStore(tmp_path / "missing-dir" / "prompts.db")
