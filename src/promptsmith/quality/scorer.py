"""Domain-weighted quality scoring with an explainable factor breakdown."""

from __future__ import annotations

import re
from dataclasses import dataclass

from promptsmith.config import ScoringConfig
from promptsmith.domains.registry import DomainRegistry, QualityWeights, default_registry
from promptsmith.quality import lexicon
from promptsmith.types import (
    AnalysisResult,
    DimensionBreakdown,
    QualityBreakdown,
    QualityFactor,
    QualityScore,
    ScoreCalculationResult,
    ValidationResult,
)

_BLANK_LINE = re.compile(r"\n\s*\n")


@dataclass(slots=True)
class ScoringContext:
    """Inputs to one detailed score calculation."""

    prompt: str
    domain: str = "general"
    analysis: AnalysisResult | None = None
    validation: ValidationResult | None = None
    original_prompt: str | None = None

    @property
    def word_count(self) -> int:
        return len(self.prompt.split()) or 1


class PromptScorer:
    """Scores the refined prompt on four dimensions and weights them by domain.

    Each dimension accumulates its adjustments unclamped and is clamped to
    [0, 1] once at the end. `overall` is the weighted sum of the clamped
    dimensions using the registry profile for the domain.
    """

    def __init__(self, config: ScoringConfig | None = None, registry: DomainRegistry | None = None) -> None:
        self.config = config or ScoringConfig()
        self.registry = registry or default_registry()

    def calculate(
        self,
        prompt: str,
        validation: ValidationResult | None = None,
        analysis: AnalysisResult | None = None,
        domain: str = "general",
    ) -> QualityScore:
        ctx = ScoringContext(prompt=prompt, domain=domain, analysis=analysis, validation=validation)
        return self._score(ctx, self.registry.get_quality_weights(domain))

    def calculate_detailed(self, ctx: ScoringContext) -> ScoreCalculationResult:
        weights = self.registry.get_quality_weights(ctx.domain)
        score = self._score(ctx, weights)
        breakdown = QualityBreakdown(
            clarity=DimensionBreakdown(score=score.clarity, factors=self._clarity_factors(ctx)),
            specificity=DimensionBreakdown(score=score.specificity, factors=self._specificity_factors(ctx)),
            structure=DimensionBreakdown(score=score.structure, factors=self._structure_factors(ctx)),
            completeness=DimensionBreakdown(score=score.completeness, factors=self._completeness_factors(ctx)),
        )
        return ScoreCalculationResult(
            score=score,
            breakdown=breakdown,
            improvement=self._improvement(ctx),
            confidence=self._confidence(ctx),
            factors=self.top_factors(breakdown),
            weights=weights.as_dict(),
        )

    def top_factors(self, breakdown: QualityBreakdown) -> list[QualityFactor]:
        """All active factors ranked by `weight * (1 - score)`, highest first."""
        factors = [
            factor
            for dimension in (breakdown.clarity, breakdown.specificity, breakdown.structure, breakdown.completeness)
            for factor in dimension.factors
        ]
        factors.sort(key=lambda factor: factor.impact, reverse=True)
        return factors[: self.config.top_factor_count]

    def _score(self, ctx: ScoringContext, weights: QualityWeights) -> QualityScore:
        clarity = self._clarity(ctx)
        specificity = self._specificity(ctx)
        structure = self._structure(ctx)
        completeness = self._completeness(ctx)
        overall = (
            clarity * weights.clarity
            + specificity * weights.specificity
            + structure * weights.structure
            + completeness * weights.completeness
        )
        return QualityScore(
            clarity=clarity,
            specificity=specificity,
            structure=structure,
            completeness=completeness,
            overall=lexicon.clamp(overall),
        )

    # Dimensions

    def _clarity(self, ctx: ScoringContext) -> float:
        cfg = self.config
        score = 1.0
        if ctx.analysis is not None:
            score -= cfg.clarity_ambiguity_weight * ctx.analysis.ambiguity_score
            score -= cfg.clarity_readability_weight * (1 - ctx.analysis.readability_score)
        vague = len(lexicon.vague_terms_in(ctx.prompt))
        score -= cfg.clarity_vague_weight * (vague / ctx.word_count)
        if lexicon.is_grammatical_sentence(ctx.prompt):
            score += cfg.clarity_structure_bonus
        if ctx.analysis is not None and ctx.analysis.technical_terms:
            score += min(cfg.clarity_technical_cap, cfg.clarity_technical_step * len(ctx.analysis.technical_terms))
        return lexicon.clamp(score)

    def _specificity(self, ctx: ScoringContext) -> float:
        cfg = self.config
        score = cfg.specificity_base
        if ctx.analysis is not None:
            score += cfg.specificity_technical_weight * (len(ctx.analysis.technical_terms) / ctx.word_count)
            score += cfg.specificity_domain_hint_bonus * len(ctx.analysis.domain_hints)
        if lexicon.DETAIL_PATTERN.search(ctx.prompt):
            score += cfg.specificity_detail_bonus
        if lexicon.REQUIREMENT_PATTERN.search(ctx.prompt):
            score += cfg.specificity_requirement_bonus
        if lexicon.GENERIC_PATTERN.search(ctx.prompt):
            score -= cfg.specificity_generic_penalty
        if lexicon.DEMONSTRATION_PATTERN.search(ctx.prompt):
            score += cfg.specificity_example_bonus
        return lexicon.clamp(score)

    def _structure(self, ctx: ScoringContext) -> float:
        cfg = self.config
        score = cfg.structure_base
        if lexicon.is_grammatical_sentence(ctx.prompt):
            score += cfg.structure_grammar_bonus
        if lexicon.FLOW_PATTERN.search(ctx.prompt):
            score += cfg.structure_flow_bonus
        score += cfg.structure_length_weight * lexicon.length_score(len(ctx.prompt))
        if lexicon.has_action_verb(ctx.prompt):
            score += cfg.structure_action_bonus
        if lexicon.has_run_on(ctx.prompt, cfg.structure_run_on_words):
            score -= cfg.structure_run_on_penalty
        if _is_sectioned(ctx.prompt):
            score += cfg.structure_sectioned_bonus
        return lexicon.clamp(score)

    def _completeness(self, ctx: ScoringContext) -> float:
        cfg = self.config
        score = cfg.completeness_base
        if lexicon.has_action_verb(ctx.prompt):
            score += cfg.completeness_action_bonus
        if len(ctx.prompt) > cfg.completeness_context_length:
            score += cfg.completeness_context_bonus
        if lexicon.REQUIREMENT_PATTERN.search(ctx.prompt):
            score += cfg.completeness_requirement_bonus
        if lexicon.EXPECTED_OUTPUT_PATTERN.search(ctx.prompt):
            score += cfg.completeness_output_bonus
        score += self._domain_completeness(ctx)
        if ctx.validation is not None:
            if not ctx.validation.errors:
                score += cfg.completeness_no_errors_bonus
            if not ctx.validation.warnings:
                score += cfg.completeness_no_warnings_bonus
        return lexicon.clamp(score)

    def _domain_completeness(self, ctx: ScoringContext) -> float:
        lowered = ctx.prompt.lower()
        groups = self.registry.get(ctx.domain).keyword_groups
        matched = sum(1 for group in groups if any(keyword in lowered for keyword in group))
        return matched * self.config.domain_keyword_bonus

    # Breakdown factors

    def _factor(self, name: str, dimension: str, weight: float, score: float, description: str) -> QualityFactor:
        return QualityFactor(
            name=name,
            dimension=dimension,
            weight=weight,
            score=score,
            description=description,
            impact=weight * (1 - score),
        )

    def _clarity_factors(self, ctx: ScoringContext) -> list[QualityFactor]:
        cfg = self.config
        factors: list[QualityFactor] = []
        analysis = ctx.analysis
        if analysis is not None and analysis.ambiguity_score > cfg.factor_ambiguity_trigger:
            factors.append(
                self._factor(
                    "Ambiguity",
                    "clarity",
                    cfg.factor_ambiguity_weight,
                    1 - analysis.ambiguity_score,
                    "Contains ambiguous or vague terms that may lead to unclear results",
                )
            )
        if analysis is not None and analysis.readability_score < cfg.factor_readability_trigger:
            factors.append(
                self._factor(
                    "Readability",
                    "clarity",
                    cfg.factor_readability_weight,
                    analysis.readability_score,
                    "Text complexity and readability level",
                )
            )
        vague = lexicon.vague_terms_in(ctx.prompt)
        if vague:
            factors.append(
                self._factor(
                    "Specific Language",
                    "clarity",
                    cfg.factor_vague_weight,
                    max(0.0, 1 - len(vague) / cfg.factor_vague_scale),
                    f"Contains {len(vague)} vague terms that could be more specific",
                )
            )
        return factors

    def _specificity_factors(self, ctx: ScoringContext) -> list[QualityFactor]:
        cfg = self.config
        factors: list[QualityFactor] = []
        if ctx.analysis is not None:
            terms = len(ctx.analysis.technical_terms)
            factors.append(
                self._factor(
                    "Technical Terminology",
                    "specificity",
                    cfg.factor_technical_weight,
                    min(1.0, terms / cfg.factor_technical_saturation),
                    f"Uses {terms} technical terms",
                )
            )
        if lexicon.DETAIL_PATTERN.search(ctx.prompt):
            factors.append(
                self._factor(
                    "Specific Details",
                    "specificity",
                    cfg.factor_detail_weight,
                    1.0,
                    "Includes specific numbers, formats, or constraints",
                )
            )
        if ctx.analysis is not None and ctx.analysis.domain_hints:
            hints = len(ctx.analysis.domain_hints)
            factors.append(
                self._factor(
                    "Domain Expertise",
                    "specificity",
                    cfg.factor_domain_weight,
                    min(1.0, hints / cfg.factor_domain_saturation),
                    f"Shows knowledge of {hints} domain(s)",
                )
            )
        return factors

    def _structure_factors(self, ctx: ScoringContext) -> list[QualityFactor]:
        cfg = self.config
        factors: list[QualityFactor] = []
        if lexicon.is_grammatical_sentence(ctx.prompt):
            factors.append(
                self._factor("Grammar & Punctuation", "structure", cfg.factor_grammar_weight, 1.0, "Proper grammar and punctuation")
            )
        if lexicon.FLOW_PATTERN.search(ctx.prompt):
            factors.append(
                self._factor("Logical Flow", "structure", cfg.factor_flow_weight, 1.0, "Well-organized with logical progression")
            )
        factors.append(
            self._factor(
                "Appropriate Length",
                "structure",
                cfg.factor_length_weight,
                lexicon.length_score(len(ctx.prompt)),
                f"Length: {len(ctx.prompt)} characters",
            )
        )
        return factors

    def _completeness_factors(self, ctx: ScoringContext) -> list[QualityFactor]:
        cfg = self.config
        factors: list[QualityFactor] = []
        if lexicon.has_action_verb(ctx.prompt):
            factors.append(
                self._factor(
                    "Clear Objectives",
                    "completeness",
                    cfg.factor_objective_weight,
                    1.0,
                    "Contains clear action verbs and objectives",
                )
            )
        if lexicon.REQUIREMENT_PATTERN.search(ctx.prompt):
            factors.append(
                self._factor(
                    "Requirements Specified",
                    "completeness",
                    cfg.factor_requirement_weight,
                    1.0,
                    "Includes specific requirements or constraints",
                )
            )
        if lexicon.EXPECTED_OUTPUT_PATTERN.search(ctx.prompt):
            factors.append(
                self._factor(
                    "Expected Output",
                    "completeness",
                    cfg.factor_output_weight,
                    1.0,
                    "Specifies what kind of output is expected",
                )
            )
        return factors

    def _improvement(self, ctx: ScoringContext) -> float:
        if not ctx.original_prompt:
            return 0.0
        cfg = self.config
        ratio = len(ctx.prompt) / len(ctx.original_prompt)
        return min(cfg.improvement_cap, max(0.0, ratio - 1) * cfg.improvement_ratio_weight + cfg.improvement_base)

    def _confidence(self, ctx: ScoringContext) -> float:
        cfg = self.config
        confidence = cfg.confidence_base
        if ctx.analysis is not None:
            confidence += cfg.confidence_analysis_bonus
            if ctx.analysis.technical_terms:
                confidence += cfg.confidence_technical_bonus
            if ctx.analysis.domain_hints:
                confidence += cfg.confidence_domain_bonus
        if ctx.validation is not None:
            confidence += cfg.confidence_validation_bonus
            if not ctx.validation.errors:
                confidence += cfg.confidence_no_errors_bonus
        if len(ctx.prompt) < cfg.confidence_min_length or len(ctx.prompt) > cfg.confidence_max_length:
            confidence -= cfg.confidence_length_penalty
        return lexicon.clamp(confidence, 0.5, 1.0)


def _is_sectioned(prompt: str) -> bool:
    return bool(lexicon.SECTION_PATTERN.search(prompt) or _BLANK_LINE.search(prompt))
