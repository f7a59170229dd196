from promptsmith.domains.registry import default_registry
from promptsmith.pipeline.offline import (
    FALLBACK_SYSTEM_PROMPT,
    OFFLINE_SUGGESTION,
    SPECIFICITY_NUDGE,
    degraded_result,
    normalize_offline,
)
from promptsmith.types import ProcessInput


def test_non_action_prompt_gets_domain_prefix() -> None:
    text, steps = normalize_offline("a landing page for coffee", "general", default_registry(), 60)

    assert text.startswith("Develop a solution that a landing page for coffee.")
    assert text.endswith(SPECIFICITY_NUDGE)
    assert steps == ["offline_domain_prefix", "offline_punctuation", "offline_specificity"]


def test_action_prompt_is_only_capitalized_and_punctuated() -> None:
    text, steps = normalize_offline("make a logo", "branding", default_registry(), 60)

    assert text == f"Make a logo. {SPECIFICITY_NUDGE}"
    assert steps == ["offline_capitalization", "offline_punctuation", "offline_specificity"]


def test_whitespace_is_collapsed_and_long_prompts_need_no_nudge() -> None:
    raw = "  Create   a  users table  with an index on email and a created_at column  "

    text, steps = normalize_offline(raw, "sql", default_registry(), 60)

    assert text == "Create a users table with an index on email and a created_at column."
    assert steps == ["offline_punctuation"]


def test_domain_prefix_follows_profile() -> None:
    text, _ = normalize_offline("the orders report joins customers", "sql", default_registry(), 10)

    assert text.startswith("Design and implement a SQL solution that the orders report")


def test_empty_input_is_left_empty() -> None:
    assert normalize_offline("   ", "general", default_registry(), 60) == ("", [])


def test_degraded_result_is_neutral_and_never_cached() -> None:
    request = ProcessInput(raw="Create a table", domain="sql", target_model="small")

    result = degraded_result(request, 12.5, version="1.0.0")

    assert result.refined == "Create a table"
    assert result.system == FALLBACK_SYSTEM_PROMPT
    assert result.suggestions == [OFFLINE_SUGGESTION]
    assert result.score.overall == 0.5
    assert result.validation.is_valid
    assert result.validation.quality_metrics.actionability == 0.5
    assert result.metadata.cache_hit is False
    assert result.metadata.model_used == "small"
    assert result.metadata.processing_time == 12.5
