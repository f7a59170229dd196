"""SQLite-backed prompt store."""

from __future__ import annotations

import asyncio
import json
import logging
import sqlite3
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any, TypeVar

from promptsmith.errors import BackendUnavailableError, PromptSmithError
from promptsmith.store.base import new_record, rank, summarize
from promptsmith.types import QualityScore, SavedPrompt, SaveMetadata, SearchParams, SearchResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

_COLUMNS = (
    "id, name, domain, tags, description, category, prompt, original, system_prompt, "
    "score, overall, created_at, updated_at, usage_count, is_public, author_id"
)


class SQLitePromptStore:
    """Stores saved prompts in one SQLite table.

    Each call opens its own connection in a worker thread. An unreachable
    database file surfaces as `BackendUnavailableError`.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._run_sync(self._ensure_schema)
        logger.info(f"SQLite prompt store ready at {self.path}")

    async def save(
        self,
        refined: str,
        original: str,
        metadata: SaveMetadata,
        score: QualityScore,
        system_prompt: str,
    ) -> SavedPrompt:
        record = new_record(refined, original, metadata, score, system_prompt)

        def insert(conn: sqlite3.Connection) -> None:
            conn.execute(
                f"INSERT INTO prompts({_COLUMNS}) VALUES(?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    record.id,
                    record.name,
                    record.domain,
                    json.dumps(record.tags),
                    record.description,
                    record.category,
                    record.prompt,
                    record.original,
                    record.system_prompt,
                    record.score.model_dump_json(),
                    record.score.overall,
                    record.created_at.isoformat(),
                    record.updated_at.isoformat(),
                    record.usage_count,
                    int(metadata.is_public),
                    metadata.author_id,
                ),
            )
            conn.commit()

        await self._run(insert)
        return record

    async def search(self, params: SearchParams) -> list[SearchResult]:
        clauses: list[str] = []
        args: list[Any] = []
        if params.domain:
            clauses.append("domain = ?")
            args.append(params.domain)
        if params.category:
            clauses.append("category = ?")
            args.append(params.category)
        if params.min_score is not None:
            clauses.append("overall >= ?")
            args.append(params.min_score)
        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""

        def select(conn: sqlite3.Connection) -> list[tuple[Any, ...]]:
            return conn.execute(f"SELECT {_COLUMNS} FROM prompts{where}", args).fetchall()

        rows = await self._run(select)
        return rank([_to_record(row) for row in rows], params)

    async def get_by_id(self, prompt_id: str) -> SavedPrompt | None:
        def select(conn: sqlite3.Connection) -> tuple[Any, ...] | None:
            return conn.execute(f"SELECT {_COLUMNS} FROM prompts WHERE id = ?", (prompt_id,)).fetchone()

        row = await self._run(select)
        return _to_record(row) if row else None

    async def delete(self, prompt_id: str) -> bool:
        def remove(conn: sqlite3.Connection) -> int:
            cur = conn.execute("DELETE FROM prompts WHERE id = ?", (prompt_id,))
            conn.commit()
            return cur.rowcount

        return await self._run(remove) == 1

    async def get_stats(self) -> dict[str, Any]:
        def select(conn: sqlite3.Connection) -> list[tuple[Any, ...]]:
            return conn.execute(f"SELECT {_COLUMNS} FROM prompts").fetchall()

        return summarize([_to_record(row) for row in await self._run(select)])

    async def ping(self) -> bool:
        try:
            await self._run(lambda conn: conn.execute("SELECT 1").fetchone())
        except BackendUnavailableError as exc:
            logger.warning(f"SQLite ping failed: {exc}")
            return False
        return True

    async def close(self) -> None:
        return None

    async def _run(self, operation: Callable[[sqlite3.Connection], T]) -> T:
        return await asyncio.to_thread(self._run_sync, operation)

    def _run_sync(self, operation: Callable[[sqlite3.Connection], T]) -> T:
        try:
            with sqlite3.connect(self.path) as conn:
                return operation(conn)
        except sqlite3.OperationalError as exc:
            raise BackendUnavailableError(f"sqlite store at {self.path} unavailable: {exc}") from exc
        except sqlite3.Error as exc:
            raise PromptSmithError(f"sqlite store error: {exc}") from exc

    @staticmethod
    def _ensure_schema(conn: sqlite3.Connection) -> None:
        conn.execute(
            "CREATE TABLE IF NOT EXISTS prompts ("
            "id TEXT PRIMARY KEY, name TEXT NOT NULL, domain TEXT NOT NULL, tags TEXT NOT NULL, "
            "description TEXT, category TEXT, prompt TEXT NOT NULL, original TEXT NOT NULL, "
            "system_prompt TEXT, score TEXT NOT NULL, overall REAL NOT NULL, created_at TEXT NOT NULL, "
            "updated_at TEXT NOT NULL, usage_count INTEGER NOT NULL DEFAULT 0, "
            "is_public INTEGER NOT NULL DEFAULT 0, author_id TEXT)"
        )
        conn.execute("CREATE INDEX IF NOT EXISTS idx_prompts_domain ON prompts(domain)")
        conn.commit()


def _to_record(row: tuple[Any, ...]) -> SavedPrompt:
    return SavedPrompt(
        id=row[0],
        name=row[1],
        domain=row[2],
        tags=json.loads(row[3]),
        description=row[4],
        category=row[5],
        prompt=row[6],
        original=row[7],
        system_prompt=row[8],
        score=QualityScore.model_validate_json(row[9]),
        created_at=datetime.fromisoformat(row[11]),
        updated_at=datetime.fromisoformat(row[12]),
        usage_count=row[13],
    )
