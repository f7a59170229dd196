"""Process-local prompt store used in offline mode and tests."""

from __future__ import annotations

from typing import Any

from promptsmith.store.base import new_record, rank, summarize
from promptsmith.types import QualityScore, SavedPrompt, SaveMetadata, SearchParams, SearchResult


class InMemoryPromptStore:
    def __init__(self) -> None:
        self._records: dict[str, SavedPrompt] = {}

    async def save(
        self,
        refined: str,
        original: str,
        metadata: SaveMetadata,
        score: QualityScore,
        system_prompt: str,
    ) -> SavedPrompt:
        record = new_record(refined, original, metadata, score, system_prompt)
        self._records[record.id] = record
        return record.model_copy()

    async def search(self, params: SearchParams) -> list[SearchResult]:
        return rank(list(self._records.values()), params)

    async def get_by_id(self, prompt_id: str) -> SavedPrompt | None:
        record = self._records.get(prompt_id)
        return record.model_copy() if record is not None else None

    async def delete(self, prompt_id: str) -> bool:
        return self._records.pop(prompt_id, None) is not None

    async def get_stats(self) -> dict[str, Any]:
        return summarize(list(self._records.values()))

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None
