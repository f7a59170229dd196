import pytest

from promptsmith.config import PipelineConfig
from promptsmith.pipeline.keys import cache_key, canonical_json, key_payload, string_hash, ttl_for
from promptsmith.types import ProcessInput, QualityScore


def test_string_hash_matches_31_multiplier_convention() -> None:
    assert string_hash("") == 0
    assert string_hash("a") == 97
    assert string_hash("abc") == 96354


def test_string_hash_wraps_to_signed_32_bit() -> None:
    value = string_hash("a fairly long string that overflows many times over")

    assert -(2**31) <= value < 2**31


def test_key_payload_omits_unset_fields_and_model_settings() -> None:
    request = ProcessInput(raw="Create a table", domain="sql", target_model="gpt", temperature=0.3)

    assert key_payload(request) == {"raw": "Create a table", "domain": "sql"}


def test_cache_key_ignores_variable_insertion_order() -> None:
    first = ProcessInput(raw="x", variables={"a": "1", "b": "2"})
    second = ProcessInput(raw="x", variables={"b": "2", "a": "1"})

    assert cache_key(first) == cache_key(second)
    assert cache_key(first).startswith("prompt_")


def test_cache_key_changes_with_relevant_fields() -> None:
    base = ProcessInput(raw="Create a table", domain="sql")

    assert cache_key(base) != cache_key(ProcessInput(raw="Create a table", domain="general"))
    assert cache_key(base) != cache_key(ProcessInput(raw="Create a table", domain="sql", context="users"))
    assert cache_key(base) == cache_key(ProcessInput(raw="Create a table", domain="sql", max_tokens=100))


def test_canonical_json_is_compact_and_sorted() -> None:
    assert canonical_json({"b": 1, "a": {"d": 2, "c": 3}}) == '{"a":{"c":3,"d":2},"b":1}'


@pytest.mark.parametrize(
    ("overall", "expected"),
    [(0.0, 1800), (0.3, 1800), (0.5, 1800), (0.75, 2700), (1.0, 3600)],
)
def test_ttl_scales_with_quality(overall: float, expected: int) -> None:
    assert ttl_for(QualityScore.neutral(overall), PipelineConfig()) == expected
