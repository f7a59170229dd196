import asyncio

import pytest

from promptsmith.config import PipelineConfig
from promptsmith.domains.registry import default_registry
from promptsmith.pipeline.keys import cache_key, ttl_for
from promptsmith.pipeline.orchestrator import PromptOrchestrator
from promptsmith.pipeline.services import in_memory_services, offline_services
from promptsmith.quality.analyzer import PromptAnalyzer
from promptsmith.quality.scorer import PromptScorer, ScoringContext
from promptsmith.quality.validator import PromptValidator
from promptsmith.types import AnalysisResult, ProcessInput, QualityMetrics, QualityScore, Severity

CORPUS = [
    "",
    "hi",
    "hazme una bonita tabla",
    "SELECT * FROM users WHERE active = true",
    "make something nice and good with stuff, maybe things, probably",
    "Create a PostgreSQL users table with a primary key and a unique email index. Return only the DDL.",
    "Design a brand campaign for a coffee shop targeting students. The tone must be playful.",
    "Write a screenplay scene where two characters argue about a film.",
    "Deploy a Docker container to Kubernetes on AWS with Terraform and monitoring.",
    "Create invoice, then invoice totals, then invoice emails, then invoice reports.",
    "x" * 6000,
]


@pytest.mark.parametrize("prompt", CORPUS)
@pytest.mark.parametrize("domain", ["general", "sql", "branding", "cine", "saas", "devops"])
def test_all_scores_stay_in_unit_interval(prompt: str, domain: str) -> None:
    analysis = PromptAnalyzer().analyze(prompt)
    validation = PromptValidator().validate(prompt, analysis, domain=domain)
    detailed = PromptScorer().calculate_detailed(
        ScoringContext(prompt=prompt, domain=domain, analysis=analysis, validation=validation)
    )

    for value in validation.quality_metrics.model_dump().values():
        assert 0.0 <= value <= 1.0
    for value in detailed.score.model_dump().values():
        assert 0.0 <= value <= 1.0
    assert 0.5 <= detailed.confidence <= 1.0


@pytest.mark.parametrize("domain", ["general", "sql", "branding", "cine", "saas", "devops"])
def test_overall_matches_active_weight_profile(domain: str) -> None:
    weights = default_registry().get_quality_weights(domain)
    for prompt in CORPUS:
        analysis = PromptAnalyzer().analyze(prompt)
        score = PromptScorer().calculate(prompt, analysis=analysis, domain=domain)
        expected = (
            score.clarity * weights.clarity
            + score.specificity * weights.specificity
            + score.structure * weights.structure
            + score.completeness * weights.completeness
        )
        assert score.overall == pytest.approx(expected)


def test_every_weight_profile_sums_to_one() -> None:
    registry = default_registry()
    for domain in ["general", "sql", "branding", "cine", "saas", "devops"]:
        weights = registry.get_quality_weights(domain)
        total = weights.clarity + weights.specificity + weights.structure + weights.completeness
        assert total == pytest.approx(1.0)

    assert registry.get_quality_weights("sql") != registry.get_quality_weights("general")


def test_clarity_is_monotone_in_ambiguity() -> None:
    scorer = PromptScorer()
    validator = PromptValidator()
    prompt = "Create a table for orders."
    previous_score = previous_metric = 1.0
    for step in range(21):
        analysis = AnalysisResult(ambiguity_score=step / 20, readability_score=0.7)
        score_clarity = scorer.calculate(prompt, analysis=analysis).clarity
        metric_clarity = validator.validate(prompt, analysis).quality_metrics.clarity
        assert score_clarity <= previous_score
        assert metric_clarity <= previous_metric
        previous_score, previous_metric = score_clarity, metric_clarity


def test_ttl_is_monotone_and_bounded() -> None:
    config = PipelineConfig()
    ttls = [ttl_for(QualityScore.neutral(step / 100), config) for step in range(101)]

    assert ttls == sorted(ttls)
    assert min(ttls) == 1800
    assert max(ttls) == 3600


def test_empty_prompt_guarantee() -> None:
    result = PromptValidator().validate("")

    assert result.is_valid is False
    assert [(error.code, error.severity) for error in result.errors] == [("empty_prompt", Severity.CRITICAL)]
    assert result.quality_metrics == QualityMetrics()


def test_cache_key_ignores_mapping_order() -> None:
    variables = {f"v{index}": str(index) for index in range(10)}
    reversed_variables = dict(reversed(list(variables.items())))

    assert cache_key(ProcessInput(raw="x", variables=variables)) == cache_key(
        ProcessInput(raw="x", variables=reversed_variables)
    )


@pytest.mark.parametrize("prompt", CORPUS)
def test_offline_mode_never_raises_or_hits_cache(prompt: str) -> None:
    orchestrator = PromptOrchestrator(offline_services())

    result = asyncio.run(orchestrator.process(ProcessInput(raw=prompt)))

    assert result.metadata.cache_hit is False


@pytest.mark.parametrize("prompt", CORPUS)
def test_process_always_returns_complete_result(prompt: str) -> None:
    orchestrator = PromptOrchestrator(in_memory_services(telemetry_enabled=False))

    result = asyncio.run(orchestrator.process(ProcessInput(raw=prompt, domain="sql")))

    assert result.original == prompt
    assert result.system
    assert 0.0 <= result.score.overall <= 1.0
