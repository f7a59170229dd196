"""Cache-key derivation and quality-scaled TTL."""

from __future__ import annotations

import json
import math
from typing import Any

from promptsmith.config import PipelineConfig
from promptsmith.types import ProcessInput, QualityScore

KEY_FIELDS = ("raw", "domain", "tone", "context", "variables")


def key_payload(request: ProcessInput) -> dict[str, Any]:
    """The request fields that change the result. Unset fields are omitted."""
    data = request.model_dump(mode="json", include=set(KEY_FIELDS))
    return {name: data[name] for name in KEY_FIELDS if data.get(name) is not None}


def canonical_json(value: Any) -> str:
    """Compact JSON with keys sorted at every depth."""
    return json.dumps(value, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def string_hash(text: str) -> int:
    """Signed 32-bit `h = h * 31 + unit` over the UTF-16 code units of `text`."""
    encoded = text.encode("utf-16-le")
    value = 0
    for index in range(0, len(encoded), 2):
        unit = encoded[index] | (encoded[index + 1] << 8)
        value = ((value << 5) - value + unit) & 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def cache_key(request: ProcessInput) -> str:
    """Deterministic key for `request`, independent of mapping insertion order."""
    return f"prompt_{string_hash(canonical_json(key_payload(request))):x}"


def ttl_for(score: QualityScore, config: PipelineConfig | None = None) -> int:
    """`floor(base * max(min_factor, overall))`: better prompts live longer."""
    cfg = config or PipelineConfig()
    return math.floor(cfg.base_ttl_seconds * max(cfg.min_ttl_factor, score.overall))
