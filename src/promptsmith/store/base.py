"""Store contract and the ranking helpers shared by store implementations."""

from __future__ import annotations

import re
import uuid
from collections import Counter
from datetime import datetime, timezone
from typing import Any, Protocol

from promptsmith.types import QualityScore, SavedPrompt, SaveMetadata, SearchParams, SearchResult


class PromptStore(Protocol):
    async def save(
        self,
        refined: str,
        original: str,
        metadata: SaveMetadata,
        score: QualityScore,
        system_prompt: str,
    ) -> SavedPrompt:
        ...

    async def search(self, params: SearchParams) -> list[SearchResult]:
        ...

    async def get_by_id(self, prompt_id: str) -> SavedPrompt | None:
        ...

    async def delete(self, prompt_id: str) -> bool:
        ...

    async def get_stats(self) -> dict[str, Any]:
        ...

    async def ping(self) -> bool:
        ...

    async def close(self) -> None:
        ...


def new_record(
    refined: str,
    original: str,
    metadata: SaveMetadata,
    score: QualityScore,
    system_prompt: str,
) -> SavedPrompt:
    now = datetime.now(timezone.utc)
    return SavedPrompt(
        id=str(uuid.uuid4()),
        name=metadata.name,
        domain=metadata.domain or "general",
        tags=list(metadata.tags),
        description=metadata.description,
        category=metadata.category,
        prompt=refined,
        original=original,
        system_prompt=system_prompt,
        score=score,
        created_at=now,
        updated_at=now,
    )


def relevance(record: SavedPrompt, params: SearchParams) -> float:
    """0.5 base, plus score, query-hit and tag-overlap boosts, capped at 1.0."""
    value = 0.5 + record.score.overall * 0.3
    if params.query:
        content = f"{record.description or ''} {record.original} {record.prompt}".lower()
        hits = len(re.findall(re.escape(params.query.lower()), content))
        value += min(hits * 0.1, 0.3)
    if params.tags:
        matching = sum(1 for tag in params.tags if tag in record.tags)
        value += (matching / len(params.tags)) * 0.2
    return min(1.0, value)


def matches(record: SavedPrompt, params: SearchParams) -> bool:
    if params.domain and record.domain != params.domain:
        return False
    if params.category and record.category != params.category:
        return False
    if params.min_score is not None and record.score.overall < params.min_score:
        return False
    if params.tags and not all(tag in record.tags for tag in params.tags):
        return False
    if params.query:
        needle = params.query.lower()
        haystack = f"{record.description or ''} {record.original} {record.prompt}".lower()
        if needle not in haystack:
            return False
    return True


_SORT_KEYS = {
    "score": lambda record: record.score.overall,
    "created": lambda record: record.created_at,
    "updated": lambda record: record.updated_at,
    "usage": lambda record: record.usage_count,
}


def rank(records: list[SavedPrompt], params: SearchParams) -> list[SearchResult]:
    """Filter, sort and paginate `records` into search results."""
    selected = [record for record in records if matches(record, params)]
    selected.sort(key=_SORT_KEYS[params.sort_by], reverse=params.sort_order == "desc")
    page = selected[params.offset : params.offset + params.limit]
    return [
        SearchResult(
            id=record.id,
            name=record.name,
            domain=record.domain,
            tags=record.tags,
            description=record.description,
            prompt=record.prompt,
            score=record.score,
            created_at=record.created_at,
            relevance=relevance(record, params),
        )
        for record in page
    ]


def summarize(records: list[SavedPrompt]) -> dict[str, Any]:
    scores = [record.score.overall for record in records]
    quality = {"excellent": 0, "good": 0, "average": 0, "poor": 0}
    for score in scores:
        if score >= 0.9:
            quality["excellent"] += 1
        elif score >= 0.7:
            quality["good"] += 1
        elif score >= 0.5:
            quality["average"] += 1
        else:
            quality["poor"] += 1
    return {
        "total_prompts": len(records),
        "average_score": sum(scores) / len(scores) if scores else 0.0,
        "domain_distribution": dict(Counter(record.domain for record in records)),
        "tag_distribution": dict(Counter(tag for record in records for tag in record.tags)),
        "quality_distribution": quality,
    }
