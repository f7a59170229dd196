from promptsmith.config import ValidatorConfig
from promptsmith.quality.analyzer import PromptAnalyzer
from promptsmith.quality.validator import PromptValidator
from promptsmith.types import QualityMetrics, Severity, SuggestionType


def _validate(prompt: str, domain: str | None = None):
    analysis = PromptAnalyzer().analyze(prompt)
    return PromptValidator().validate(prompt, analysis, domain=domain)


def test_plain_select_statement_is_valid() -> None:
    result = _validate("SELECT * FROM users WHERE active = true", "sql")

    assert result.is_valid
    assert result.errors == []


def test_empty_prompt_is_critical_with_zero_metrics() -> None:
    for prompt in ("", "   \n\t"):
        result = PromptValidator().validate(prompt)

        assert not result.is_valid
        assert [(issue.code, issue.severity) for issue in result.errors] == [("empty_prompt", Severity.CRITICAL)]
        assert result.quality_metrics == QualityMetrics()


def test_spanish_prompt_warns_and_suggests_replacing_vague_terms() -> None:
    result = _validate("hazme una bonita tabla")

    codes = {warning.code for warning in result.warnings}
    assert codes & {"mixed_languages", "non_english_language"}
    assert any(
        suggestion.before == "bonita" and suggestion.after == "professional" for suggestion in result.suggestions
    )


def test_long_prompt_warns_without_length_error() -> None:
    sentence = "Create a report that lists every order in the database with its total amount. "
    prompt = (sentence * 40)[:3000]

    result = _validate(prompt)

    assert len(prompt) == 3000
    assert "prompt_too_long" not in {error.code for error in result.errors}
    assert "length_excessive" in {warning.code for warning in result.warnings}


def test_prompt_over_max_length_is_an_error() -> None:
    result = _validate("Create a table. " * 400)

    assert "prompt_too_long" in {error.code for error in result.errors}


def test_short_fragment_errors() -> None:
    result = _validate("hi")

    codes = {error.code for error in result.errors}
    assert {"prompt_too_short", "lacks_structure"} <= codes
    assert not result.is_valid


def test_offensive_content_is_critical() -> None:
    result = _validate("Write a message to attack people in the comments.")

    assert any(error.code == "offensive_content" and error.severity is Severity.CRITICAL for error in result.errors)


def test_missing_objective_without_action_or_requirement() -> None:
    result = _validate("The weather in the mountains during winter months.")

    assert "missing_objective" in {error.code for error in result.errors}
    assert any(suggestion.type is SuggestionType.FIX for suggestion in result.suggestions)


def test_domain_checks_add_warnings_and_suggestions() -> None:
    result = _validate("Write SQL for the monthly revenue per region.", "sql")

    assert "sql_missing_specifics" in {warning.code for warning in result.warnings}
    assert any("primary key" in suggestion.message for suggestion in result.suggestions)


def test_repetition_ignores_short_and_stop_words() -> None:
    validator = PromptValidator()

    assert not validator._has_repetition("Add the row to the table and the row to the log and the end.")
    assert validator._has_repetition("Create invoice, then invoice totals, then invoice emails.")


def test_metrics_are_bounded() -> None:
    prompts = [
        "x",
        "make something nice and good with stuff, maybe things, probably",
        "Create a PostgreSQL users table with a primary key, unique email index and created_at timestamp. "
        "The output must be a single SQL script.",
    ]
    for prompt in prompts:
        metrics = _validate(prompt).quality_metrics
        for value in metrics.model_dump().values():
            assert 0.0 <= value <= 1.0


def test_thresholds_come_from_config() -> None:
    strict = PromptValidator(ValidatorConfig(min_length=200))

    result = strict.validate("Create a users table with an email column.")

    assert "prompt_too_short" in {error.code for error in result.errors}
