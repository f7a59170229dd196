"""Dependency-free results: the offline normalizer and the degraded fallback."""

from __future__ import annotations

import re

from promptsmith.domains.registry import DomainRegistry
from promptsmith.quality import lexicon
from promptsmith.types import (
    AnalysisResult,
    Intent,
    ProcessInput,
    ProcessMetadata,
    ProcessResult,
    QualityMetrics,
    QualityScore,
    ValidationResult,
)

FALLBACK_SYSTEM_PROMPT = "System operating in fallback mode."
OFFLINE_SUGGESTION = "System is in offline mode - basic response provided"
SPECIFICITY_NUDGE = "Include clear requirements, success criteria, and quality standards."

_SPACES = re.compile(r"\s+")


def normalize_offline(raw: str, domain: str, registry: DomainRegistry, min_length: int) -> tuple[str, list[str]]:
    """Local cleanup used when no backing services are configured.

    Returns the normalized text and the names of the steps that changed it.
    """
    text = _SPACES.sub(" ", raw).strip()
    steps: list[str] = []
    if not text:
        return text, steps

    first_word = lexicon.lower_words(text[:40])[:1]
    if not first_word or first_word[0] not in lexicon.ACTION_VERBS:
        prefix = registry.get(domain).offline_prefix
        text = f"{prefix} {text[0].lower()}{text[1:]}"
        steps.append("offline_domain_prefix")

    if text[0].islower():
        text = text[0].upper() + text[1:]
        steps.append("offline_capitalization")

    text = re.sub(r"\s+([,.;:!?])", r"\1", text)
    if text[-1] not in ".!?":
        text = f"{text}."
        steps.append("offline_punctuation")

    if len(text) < min_length:
        text = f"{text} {SPECIFICITY_NUDGE}"
        steps.append("offline_specificity")
    return text, steps


def neutral_analysis(raw: str) -> AnalysisResult:
    return AnalysisResult(
        intent=Intent(category="unknown", confidence=0.0),
        complexity=0.5,
        ambiguity_score=0.5,
        readability_score=0.5,
        language="en",
        estimated_tokens=len(raw.split(" ")),
        sentiment_score=0.5,
    )


def neutral_validation() -> ValidationResult:
    return ValidationResult(
        is_valid=True,
        quality_metrics=QualityMetrics(
            clarity=0.5,
            specificity=0.5,
            structure=0.5,
            completeness=0.5,
            consistency=0.5,
            actionability=0.5,
        ),
    )


def degraded_result(
    request: ProcessInput,
    processing_time: float,
    *,
    version: str,
    refined: str | None = None,
    system: str = FALLBACK_SYSTEM_PROMPT,
    rules_applied: list[str] | None = None,
) -> ProcessResult:
    """Complete result with neutral 0.5 scores. Never marked as a cache hit."""
    return ProcessResult(
        original=request.raw,
        refined=request.raw if refined is None else refined,
        system=system,
        analysis=neutral_analysis(request.raw),
        score=QualityScore.neutral(),
        validation=neutral_validation(),
        suggestions=[OFFLINE_SUGGESTION],
        metadata=ProcessMetadata(
            domain=request.domain,
            tone=request.tone,
            processing_time=processing_time,
            version=version,
            model_used=request.target_model,
            cache_hit=False,
            rules_applied=list(rules_applied or []),
        ),
    )
