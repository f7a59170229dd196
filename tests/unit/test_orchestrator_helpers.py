import pytest

from promptsmith.config import PipelineConfig
from promptsmith.pipeline.orchestrator import (
    SCORE_HINTS,
    build_recommendations,
    comparison_metric,
    compile_suggestions,
    quality_improvement,
)
from promptsmith.pipeline.offline import degraded_result
from promptsmith.types import (
    OptimizationImprovement,
    ProcessInput,
    QualityMetrics,
    QualityScore,
    Severity,
    SuggestionType,
    ValidationIssue,
    ValidationResult,
    ValidationSuggestion,
)


def _score(**overrides: float) -> QualityScore:
    values = {"clarity": 0.9, "specificity": 0.9, "structure": 0.9, "completeness": 0.9, "overall": 0.9}
    values.update(overrides)
    return QualityScore(**values)


def test_suggestions_are_ordered_deduplicated_and_capped() -> None:
    improvements = [
        OptimizationImprovement(type="clarity", description="Replaced vague term", impact="high"),
        OptimizationImprovement(type="structure", description="Capitalized", impact="low"),
    ]
    suggestions = [
        ValidationSuggestion(type=SuggestionType.ENHANCEMENT, message="Replaced vague term"),
        ValidationSuggestion(type=SuggestionType.FIX, message="Start with a verb"),
        ValidationSuggestion(type=SuggestionType.ENHANCEMENT, message="Ask for examples"),
    ]

    compiled = compile_suggestions(improvements, suggestions, _score(clarity=0.5, completeness=0.2))

    assert compiled == [
        "Replaced vague term",
        "Ask for examples",
        SCORE_HINTS["clarity"],
        SCORE_HINTS["completeness"],
    ]


def test_suggestions_respect_max_suggestions() -> None:
    low = _score(clarity=0.1, specificity=0.1, structure=0.1, completeness=0.1)

    compiled = compile_suggestions([], [], low, PipelineConfig(max_suggestions=2))

    assert compiled == [SCORE_HINTS["clarity"], SCORE_HINTS["specificity"]]


def test_recommendations_cover_errors_weak_dimensions_and_suggestions() -> None:
    validation = ValidationResult(
        is_valid=False,
        errors=[
            ValidationIssue(code="prompt_too_short", message="Too short", severity=Severity.HIGH),
            ValidationIssue(code="incomplete_prompt", message="Incomplete", severity=Severity.MEDIUM),
        ],
        suggestions=[ValidationSuggestion(message="Use professional", before="bonita", after="professional")],
        quality_metrics=QualityMetrics(),
    )

    recommendations = build_recommendations(validation, _score(clarity=0.5, specificity=0.5))

    assert [(rec.type, rec.title) for rec in recommendations] == [
        ("critical", "Too short"),
        ("important", "Improve Clarity"),
        ("important", "Add Specificity"),
        ("suggestion", "Use professional"),
    ]
    assert recommendations[0].description == "This issue must be addressed: Too short"
    assert recommendations[2].impact == "medium"
    assert recommendations[3].before == "bonita"


def test_comparison_metric_winner_and_significance() -> None:
    metric = comparison_metric("Clarity", {"variant_0": 0.4, "variant_1": 0.9, "variant_2": 0.9})

    assert metric.winner == "variant_1"
    assert metric.significance == pytest.approx(0.5)
    assert comparison_metric("Clarity", {"variant_0": 0.4}).significance == 0.0


def test_quality_improvement_is_bounded() -> None:
    result = degraded_result(ProcessInput(raw="abc"), 0.0, version="1.0.0", refined="abcdef")

    assert quality_improvement("abc", result) == pytest.approx(0.6)
    assert quality_improvement("", result) == 0.0
