"""Request pipeline: cache lookup, staged refinement, validation and scoring."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

from pydantic import ValidationError

from promptsmith.config import PipelineConfig, Settings
from promptsmith.domains.optimizer import PromptOptimizer
from promptsmith.errors import RecordNotFoundError, classify_error, is_degradable
from promptsmith.pipeline.keys import cache_key, ttl_for
from promptsmith.pipeline.offline import degraded_result, normalize_offline
from promptsmith.pipeline.services import ServiceSet, build_services
from promptsmith.pipeline.singleflight import SingleFlight
from promptsmith.quality import lexicon
from promptsmith.quality.analyzer import PromptAnalyzer
from promptsmith.quality.scorer import ScoringContext
from promptsmith.quality.validator import PromptValidator
from promptsmith.types import (
    AnalysisResult,
    ComparisonMetric,
    ComparisonResult,
    EvaluationResult,
    OptimizationImprovement,
    ProcessInput,
    ProcessMetadata,
    ProcessResult,
    PromptVariant,
    QualityScore,
    Recommendation,
    SavedPrompt,
    SaveMetadata,
    SearchParams,
    SearchResult,
    Severity,
    SuggestionType,
    ValidationResult,
    ValidationSuggestion,
    VariantMetric,
)

logger = logging.getLogger(__name__)

# Hints added for each dimension that scores below the suggestion threshold.
SCORE_HINTS: dict[str, str] = {
    "clarity": "Consider adding more specific details and reducing vague terms",
    "specificity": "Add more specific requirements and technical details",
    "structure": "Improve sentence structure and logical flow",
    "completeness": "Specify expected outputs and success criteria",
}

_RECOMMENDATION_THRESHOLD = 0.6


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000.0


class PromptOrchestrator:
    """Runs prompts through analyze, refine, optimize, validate and score.

    Failures are handled once, in `process`: connectivity and timeout errors
    produce a neutral fallback result, anything else is logged and re-raised.
    """

    def __init__(
        self,
        services: ServiceSet,
        config: PipelineConfig | None = None,
        *,
        analyzer: PromptAnalyzer | None = None,
        validator: PromptValidator | None = None,
        optimizer: PromptOptimizer | None = None,
    ) -> None:
        self.services = services
        self.config = config or PipelineConfig()
        registry = services.refine.registry
        self.analyzer = analyzer or PromptAnalyzer(registry)
        self.validator = validator or PromptValidator(registry=registry)
        self.optimizer = optimizer or PromptOptimizer()
        self._flight: SingleFlight[ProcessResult] = SingleFlight()

    @classmethod
    def from_settings(cls, settings: Settings, config: PipelineConfig | None = None) -> "PromptOrchestrator":
        return cls(build_services(settings), config)

    @property
    def mode(self) -> str:
        return self.services.mode

    async def process(self, request: ProcessInput) -> ProcessResult:
        start = time.perf_counter()
        if self.services.offline:
            return self._process_offline(request, start)

        obs = self.services.observability
        span_id = obs.start_span("prompt_processing")
        try:
            key = cache_key(request)
            cached = await self._cached_result(key)
            if cached is not None:
                self.services.telemetry.track("cache_hit", {"domain": request.domain, "cache_key": key})
                obs.add_span_log(span_id, {"step": "cache_hit", "cache_key": key})
                obs.finish_span(span_id, {"cache_hit": True, "result": "success"})
                return cached

            obs.add_span_log(span_id, {"step": "cache_miss", "cache_key": key})
            if self.config.single_flight:
                result, shared = await self._flight.do(key, lambda: self._run_pipeline(request, key, span_id, start))
                if shared:
                    result = result.model_copy(deep=True)
            else:
                result = await self._run_pipeline(request, key, span_id, start)
            obs.finish_span(
                span_id,
                {
                    "result": "success",
                    "processing_time": result.metadata.processing_time,
                    "quality_score": result.score.overall,
                    "cache_hit": False,
                },
            )
            return result
        except asyncio.CancelledError:
            obs.finish_span(
                span_id,
                {"result": "cancelled", "processing_time": _elapsed_ms(start)},
                status="error",
            )
            raise
        except Exception as exc:
            elapsed = _elapsed_ms(start)
            context = {"domain": request.domain, "processing_time": elapsed, "input_length": len(request.raw)}
            obs.track_error(exc, {**context, "step": "processing_pipeline"})
            obs.finish_span(
                span_id,
                {"result": "error", "error_type": type(exc).__name__, "processing_time": elapsed},
                status="error",
            )
            self.services.telemetry.error("processing_error", exc, context)
            if is_degradable(exc):
                logger.warning(
                    f"Backing service unavailable ({classify_error(exc).value}), "
                    f"returning fallback result: domain={request.domain}"
                )
                return degraded_result(request, elapsed, version=self.config.version)
            logger.exception(
                f"Prompt processing failed: domain={request.domain} "
                f"elapsed_ms={elapsed:.1f} input_length={len(request.raw)}"
            )
            raise

    async def _cached_result(self, key: str) -> ProcessResult | None:
        cached = await self.services.cache.get(key, namespace=self.config.key_namespace)
        if cached is None:
            return None
        try:
            result = ProcessResult.model_validate(cached)
        except ValidationError as exc:
            logger.warning(f"Discarding unreadable cache entry {key}: {exc.error_count()} errors")
            return None
        result.metadata.cache_hit = True
        return result

    async def _run_pipeline(self, request: ProcessInput, key: str, span_id: str, start: float) -> ProcessResult:
        services = self.services
        telemetry = services.telemetry
        obs = services.observability
        domain = request.domain

        obs.add_span_log(span_id, {"step": "analysis_start"})
        analysis = self.analyzer.analyze(request.raw)
        telemetry.track(
            "analysis_complete",
            {"domain": domain, "complexity": analysis.complexity, "ambiguity_score": analysis.ambiguity_score},
        )
        obs.add_span_log(
            span_id,
            {
                "step": "analysis_complete",
                "complexity": analysis.complexity,
                "ambiguity_score": analysis.ambiguity_score,
                "tokens": analysis.estimated_tokens,
            },
        )

        refinement = services.refine.apply_domain_rules(request.raw, domain, analysis)
        telemetry.track("refinement_complete", {"domain": domain, "rules_applied": len(refinement.rules_applied)})

        optimization = self.optimizer.optimize(refinement.refined, analysis, domain, request.tone, request.context)
        telemetry.track("optimization_complete", {"domain": domain, "improvements": len(optimization.improvements)})
        refined = optimization.optimized

        template = None
        if self._should_generate_template(analysis, request):
            template = services.refine.generate_template(refined, request.variables, domain)
            telemetry.track("template_generation_complete", {"domain": domain, "type": template.type.value})

        # Validation and scoring look at the text that will be returned.
        refined_analysis = self.analyzer.analyze(refined)
        validation = self.validator.validate(refined, refined_analysis, domain=domain)
        telemetry.track(
            "validation_complete",
            {
                "domain": domain,
                "is_valid": validation.is_valid,
                "error_count": len(validation.errors),
                "warning_count": len(validation.warnings),
            },
        )

        score = services.score.calculate(refined, validation, refined_analysis, domain)
        telemetry.track("scoring_complete", {"domain": domain, "overall_score": score.overall})

        system = services.refine.generate_system_prompt(domain, analysis, request.context)
        examples = None
        if self._should_include_examples(analysis, request, score):
            examples = services.refine.generate_examples(refined, domain, analysis)

        processing_time = _elapsed_ms(start)
        result = ProcessResult(
            original=request.raw,
            refined=refined,
            system=system,
            analysis=analysis,
            score=score,
            validation=validation,
            suggestions=compile_suggestions(optimization.improvements, validation.suggestions, score, self.config),
            metadata=ProcessMetadata(
                domain=domain,
                tone=request.tone,
                processing_time=processing_time,
                version=self.config.version,
                model_used=request.target_model,
                cache_hit=False,
                rules_applied=[*refinement.rules_applied, *optimization.rules_applied],
                template_used=template.type.value if template is not None else None,
            ),
            template=template,
            examples=examples,
        )

        ttl = ttl_for(score, self.config)
        if not await services.cache.set(key, result, ttl, namespace=self.config.key_namespace):
            logger.warning(f"Result for {key} was not cached")

        telemetry.track(
            "processing_complete",
            {
                "domain": domain,
                "processing_time": processing_time,
                "score": score.overall,
                "quality_improvement": quality_improvement(request.raw, result),
                "cache_hit": False,
            },
        )
        telemetry.timing("processing", processing_time, {"domain": domain})
        obs.record_metric("prompt_processing_duration", processing_time, "histogram", {"domain": domain})
        obs.record_metric("prompt_quality_score", score.overall, "gauge", {"domain": domain})
        obs.add_span_log(span_id, {"step": "processing_complete", "ttl": ttl, "quality_score": score.overall})
        logger.info(
            f"Processed prompt: domain={domain} input_length={len(request.raw)} "
            f"overall={score.overall:.3f} ttl={ttl}s elapsed_ms={processing_time:.1f}"
        )
        return result

    def _process_offline(self, request: ProcessInput, start: float) -> ProcessResult:
        refine = self.services.refine
        refined, steps = normalize_offline(request.raw, request.domain, refine.registry, self.config.offline_min_length)
        system = refine.generate_system_prompt(request.domain, context=request.context)
        return degraded_result(
            request,
            _elapsed_ms(start),
            version=self.config.version,
            refined=refined,
            system=system,
            rules_applied=steps,
        )

    def _should_generate_template(self, analysis: AnalysisResult, request: ProcessInput) -> bool:
        return (
            bool(request.variables)
            or analysis.complexity > self.config.template_complexity_threshold
            or len(analysis.domain_hints) > 1
            or bool(lexicon.templatable_entities(request.raw))
        )

    def _should_include_examples(self, analysis: AnalysisResult, request: ProcessInput, score: QualityScore) -> bool:
        return (
            analysis.complexity > self.config.examples_complexity_threshold
            or score.clarity < self.config.examples_clarity_threshold
            or request.domain in self.config.example_domains
        )

    async def evaluate(self, prompt: str, domain: str = "general") -> EvaluationResult:
        telemetry = self.services.telemetry
        telemetry.track("evaluation_start", {"domain": domain})
        analysis = self.analyzer.analyze(prompt)
        validation = self.validator.validate(prompt, analysis, domain=domain)
        detailed = self.services.score.calculate_detailed(
            ScoringContext(prompt=prompt, domain=domain, analysis=analysis, validation=validation)
        )
        recommendations = build_recommendations(validation, detailed.score)
        telemetry.track(
            "evaluation_complete",
            {
                "domain": domain,
                "score": detailed.score.overall,
                "recommendation_count": len(recommendations),
            },
        )
        return EvaluationResult(
            score=detailed.score,
            breakdown=detailed.breakdown,
            recommendations=recommendations,
            confidence=detailed.confidence,
            factors=detailed.factors,
        )

    async def compare(self, variants: list[str], domain: str = "general") -> ComparisonResult:
        if not variants:
            raise ValueError("compare needs at least one prompt variant")
        self.services.telemetry.track("comparison_start", {"variant_count": len(variants)})

        evaluated: list[PromptVariant] = []
        for index, prompt in enumerate(variants):
            analysis = self.analyzer.analyze(prompt)
            validation = self.validator.validate(prompt, analysis, domain=domain)
            score = self.services.score.calculate(prompt, validation, analysis, domain)
            evaluated.append(
                PromptVariant(
                    id=f"variant_{index}",
                    prompt=prompt,
                    score=score,
                    metrics=variant_metrics(prompt, analysis, validation),
                )
            )

        winner = max(evaluated, key=lambda variant: variant.score.overall)
        self.services.telemetry.track(
            "comparison_complete",
            {"variant_count": len(evaluated), "winner_id": winner.id, "winner_score": winner.score.overall},
        )
        return ComparisonResult(
            variants=evaluated,
            winner=winner.id,
            metrics=[
                comparison_metric("Overall Quality", {v.id: v.score.overall for v in evaluated}),
                comparison_metric("Clarity", {v.id: v.score.clarity for v in evaluated}),
            ],
            summary=comparison_summary(evaluated, winner),
        )

    async def save(self, prompt: str, metadata: SaveMetadata) -> SavedPrompt:
        domain = metadata.domain or "general"
        telemetry = self.services.telemetry
        telemetry.track("save_start", {"domain": domain, "is_public": metadata.is_public})
        analysis = self.analyzer.analyze(prompt)
        validation = self.validator.validate(prompt, analysis, domain=domain)
        score = self.services.score.calculate(prompt, validation, analysis, domain)
        system = self.services.refine.generate_system_prompt(domain, analysis)
        try:
            saved = await self.services.store.save(prompt, prompt, metadata, score, system)
        except Exception as exc:
            telemetry.error("save_error", exc, {"domain": domain})
            raise
        telemetry.track("save_complete", {"domain": domain, "prompt_id": saved.id, "score": score.overall})
        return saved

    async def search(self, params: SearchParams) -> list[SearchResult]:
        telemetry = self.services.telemetry
        telemetry.track("search_start", {"domain": params.domain, "has_query": bool(params.query)})
        try:
            results = await self.services.store.search(params)
        except Exception as exc:
            telemetry.error("search_error", exc, {"domain": params.domain})
            raise
        telemetry.track("search_complete", {"domain": params.domain, "result_count": len(results)})
        return results

    async def get_prompt(self, prompt_id: str) -> SavedPrompt:
        saved = await self.services.store.get_by_id(prompt_id)
        if saved is None:
            raise RecordNotFoundError(f"Prompt not found: {prompt_id}")
        return saved

    async def health(self) -> dict[str, Any]:
        services = self.services
        capabilities = {
            "refine": True,
            "score": True,
            "store": await services.store.ping(),
            "cache": await services.cache.ping(),
            "telemetry": services.telemetry.enabled,
            "observability": not services.offline,
        }
        healthy = capabilities["store"] and capabilities["cache"]
        return {
            "status": "ok" if healthy and not services.offline else "degraded",
            "mode": services.mode,
            "version": self.config.version,
            "capabilities": capabilities,
        }

    async def metrics(self) -> dict[str, Any]:
        return {
            "cache": await self.services.cache.stats(),
            "observability": self.services.observability.summary(),
            "telemetry": self.services.telemetry.get_stats(),
        }

    async def shutdown(self) -> None:
        self.services.telemetry.shutdown()
        await self.services.cache.disconnect()
        await self.services.store.close()
        logger.info("Orchestrator shut down")


def compile_suggestions(
    improvements: list[OptimizationImprovement],
    suggestions: list[ValidationSuggestion],
    score: QualityScore,
    config: PipelineConfig | None = None,
) -> list[str]:
    """High-impact rewrites, enhancement hints, then weak-dimension hints."""
    cfg = config or PipelineConfig()
    compiled = [item.description for item in improvements if item.impact == "high"]
    compiled.extend(item.message for item in suggestions if item.type is SuggestionType.ENHANCEMENT)
    for dimension, hint in SCORE_HINTS.items():
        if getattr(score, dimension) < cfg.suggestion_score_threshold:
            compiled.append(hint)
    return list(dict.fromkeys(compiled))[: cfg.max_suggestions]


def build_recommendations(validation: ValidationResult, score: QualityScore) -> list[Recommendation]:
    recommendations = [
        Recommendation(
            type="critical",
            title=issue.message,
            description=f"This issue must be addressed: {issue.message}",
            impact="high",
        )
        for issue in validation.errors
        if issue.severity in (Severity.CRITICAL, Severity.HIGH)
    ]
    if score.clarity < _RECOMMENDATION_THRESHOLD:
        recommendations.append(
            Recommendation(
                type="important",
                title="Improve Clarity",
                description=(
                    "The prompt contains ambiguous language that may lead to unclear results. "
                    "Consider replacing vague terms with more specific language."
                ),
                impact="high",
            )
        )
    if score.specificity < _RECOMMENDATION_THRESHOLD:
        recommendations.append(
            Recommendation(
                type="important",
                title="Add Specificity",
                description=(
                    "The prompt would benefit from more specific requirements, constraints, or technical details."
                ),
                impact="medium",
            )
        )
    recommendations.extend(
        Recommendation(
            type="suggestion",
            title=suggestion.message,
            description=suggestion.message,
            before=suggestion.before,
            after=suggestion.after,
            impact="low",
        )
        for suggestion in validation.suggestions
    )
    return recommendations


def variant_metrics(prompt: str, analysis: AnalysisResult, validation: ValidationResult) -> list[VariantMetric]:
    return [
        VariantMetric(name="Length", value=len(prompt), unit="characters", better="optimal"),
        VariantMetric(name="Complexity", value=analysis.complexity, unit="score", better="balanced"),
        VariantMetric(name="Readability", value=analysis.readability_score, unit="score", better="higher"),
        VariantMetric(name="Error Count", value=len(validation.errors), unit="count", better="lower"),
    ]


def comparison_metric(name: str, values: dict[str, float]) -> ComparisonMetric:
    winner = max(values, key=values.__getitem__)
    significance = max(values.values()) - min(values.values()) if len(values) > 1 else 0.0
    return ComparisonMetric(name=name, values=values, winner=winner, significance=significance)


def comparison_summary(variants: list[PromptVariant], winner: PromptVariant) -> str:
    average = sum(variant.score.overall for variant in variants) / len(variants)
    dimensions = {
        "clarity": winner.score.clarity,
        "specificity": winner.score.specificity,
        "structure": winner.score.structure,
        "completeness": winner.score.completeness,
    }
    strengths = sorted(dimensions, key=dimensions.__getitem__, reverse=True)[:2]
    return (
        f"{winner.id} achieved the highest quality score of {winner.score.overall * 100:.1f}% "
        f"(average: {average * 100:.1f}%). Key advantages include better {' and '.join(strengths)}."
    )


def quality_improvement(original: str, result: ProcessResult) -> float:
    if not original:
        return 0.0
    length_gain = (len(result.refined) - len(original)) / len(original)
    return max(0.0, min(1.0, result.score.overall + length_gain * 0.1))
