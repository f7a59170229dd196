"""Heuristic prompt validation: errors, warnings, suggestions and quality metrics.

Nothing here raises for bad prompts. Problems are reported as data: errors
block `is_valid`, warnings are advisory and suggestions carry optional
before/after pairs. Metric formulas are closed-form sums over boolean or
ratio features, clamped to [0, 1] once at the end.
"""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass

from promptsmith.config import ValidatorConfig
from promptsmith.domains.registry import DomainRegistry, default_registry
from promptsmith.quality import lexicon
from promptsmith.quality.analyzer import detect_language, detect_variables
from promptsmith.types import (
    AnalysisResult,
    QualityMetrics,
    Severity,
    SuggestionType,
    Token,
    ValidationIssue,
    ValidationResult,
    ValidationSuggestion,
    ValidationWarning,
)


@dataclass(slots=True)
class _Context:
    """Per-call derived features shared by the checks and the metrics."""

    prompt: str
    analysis: AnalysisResult
    domains: list[str]
    token_count: int
    vague_count: int
    spanish_markers: int
    english_markers: int

    @property
    def length(self) -> int:
        return len(self.prompt)

    @property
    def mixed_language(self) -> bool:
        return self.spanish_markers > 0 and self.english_markers > 0


class PromptValidator:
    def __init__(
        self,
        config: ValidatorConfig | None = None,
        registry: DomainRegistry | None = None,
    ) -> None:
        self.config = config or ValidatorConfig()
        self.registry = registry or default_registry()

    def validate(
        self,
        prompt: str,
        analysis: AnalysisResult | None = None,
        *,
        domain: str | None = None,
    ) -> ValidationResult:
        text = (prompt or "").strip()
        if not text:
            return ValidationResult(
                is_valid=False,
                errors=[
                    ValidationIssue(
                        code="empty_prompt",
                        message="Prompt cannot be empty or contain only whitespace.",
                        severity=Severity.CRITICAL,
                    )
                ],
                quality_metrics=QualityMetrics(),
            )

        ctx = self._build_context(text, analysis or self.quick_analysis(text), domain)
        errors = self._check_errors(ctx)
        warnings = self._check_warnings(ctx)
        suggestions = self._build_suggestions(ctx, warnings)
        return ValidationResult(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            suggestions=suggestions,
            quality_metrics=self.quality_metrics(ctx),
        )

    def quick_analysis(self, prompt: str) -> AnalysisResult:
        """Cheap stand-in used when no analyzer output is supplied."""
        words = lexicon.words(prompt)
        return AnalysisResult(
            tokens=[Token(text=word, lemma=word.lower()) for word in words],
            complexity=lexicon.clamp(len(prompt) / 200),
            ambiguity_score=lexicon.clamp(lexicon.count_vague(prompt) / 10),
            readability_score=0.5,
            domain_hints=self.registry.detect_hints(prompt),
            technical_terms=sorted({word for word in words if lexicon.is_technical_term(word)}),
            has_variables=detect_variables(prompt),
            language=detect_language(prompt),
            estimated_tokens=len(prompt.split()),
        )

    def _build_context(self, prompt: str, analysis: AnalysisResult, domain: str | None) -> _Context:
        domains: list[str] = []
        if domain and domain in self.registry:
            domains.append(self.registry.get(domain).name)
        for hint in analysis.domain_hints:
            if hint not in domains:
                domains.append(hint)
        spanish, english = lexicon.language_mix(prompt)
        return _Context(
            prompt=prompt,
            analysis=analysis,
            domains=domains,
            token_count=max(1, len(analysis.tokens) or len(lexicon.words(prompt))),
            vague_count=lexicon.count_vague(prompt),
            spanish_markers=spanish,
            english_markers=english,
        )

    # errors

    def _check_errors(self, ctx: _Context) -> list[ValidationIssue]:
        cfg = self.config
        errors: list[ValidationIssue] = []

        if ctx.length < cfg.min_length:
            errors.append(
                ValidationIssue(
                    code="prompt_too_short",
                    message=f"Prompt is too short ({ctx.length} characters). Minimum is {cfg.min_length}.",
                    severity=Severity.HIGH,
                )
            )
        if ctx.length > cfg.max_length:
            errors.append(
                ValidationIssue(
                    code="prompt_too_long",
                    message=f"Prompt is too long ({ctx.length} characters). Maximum is {cfg.max_length}.",
                    severity=Severity.MEDIUM,
                )
            )
        if lexicon.OFFENSIVE_PATTERN.search(ctx.prompt):
            errors.append(
                ValidationIssue(
                    code="offensive_content",
                    message="Prompt contains potentially offensive or inappropriate content.",
                    severity=Severity.CRITICAL,
                )
            )
        if self._lacks_structure(ctx.prompt):
            errors.append(
                ValidationIssue(
                    code="lacks_structure",
                    message="Prompt lacks basic structure or contains only fragments.",
                    severity=Severity.HIGH,
                )
            )
        if ctx.analysis.ambiguity_score > cfg.ambiguity_error_threshold:
            errors.append(
                ValidationIssue(
                    code="excessive_ambiguity",
                    message=f"Prompt is too ambiguous ({ctx.analysis.ambiguity_score:.0%}) to produce a reliable result.",
                    severity=Severity.HIGH,
                )
            )
        if self._is_incomplete(ctx):
            errors.append(
                ValidationIssue(
                    code="incomplete_prompt",
                    message="Prompt is too brief and simple to describe a complete request.",
                    severity=Severity.MEDIUM,
                )
            )
        if (
            ctx.length >= cfg.min_length
            and not lexicon.has_action_verb(ctx.prompt)
            and not lexicon.CONSTRAINT_PATTERN.search(ctx.prompt)
        ):
            errors.append(
                ValidationIssue(
                    code="missing_objective",
                    message="Prompt states neither an action nor any requirement.",
                    severity=Severity.MEDIUM,
                )
            )
        return errors

    def _lacks_structure(self, prompt: str) -> bool:
        words = lexicon.words(prompt)
        if len(words) < self.config.min_structure_tokens:
            return True
        if not any(char.isalpha() for char in prompt):
            return True
        return (
            not lexicon.has_action_verb(prompt)
            and not lexicon.has_domain_noun(prompt)
            and len(words) < self.config.short_fragment_tokens
        )

    def _is_incomplete(self, ctx: _Context) -> bool:
        return (
            ctx.analysis.complexity < self.config.incomplete_complexity_threshold
            and ctx.length < self.config.incomplete_length_threshold
        )

    # warnings

    def _check_warnings(self, ctx: _Context) -> list[ValidationWarning]:
        cfg = self.config
        analysis = ctx.analysis
        warnings: list[ValidationWarning] = []

        if analysis.ambiguity_score > cfg.ambiguity_warning_threshold:
            warnings.append(
                ValidationWarning(
                    code="high_ambiguity",
                    message=f"Prompt has a high ambiguity score ({analysis.ambiguity_score:.0%}).",
                    suggestion="Replace vague terms with more specific language.",
                )
            )
        if analysis.readability_score < cfg.readability_warning_threshold:
            warnings.append(
                ValidationWarning(
                    code="low_readability",
                    message=f"Prompt has a low readability score ({analysis.readability_score:.0%}).",
                    suggestion="Simplify sentence structure and use clearer language.",
                )
            )
        if analysis.complexity > cfg.complexity_warning_threshold:
            warnings.append(
                ValidationWarning(
                    code="high_complexity",
                    message="Prompt is very complex and may produce inconsistent results.",
                    suggestion="Break the request into smaller, focused prompts.",
                )
            )
        if (
            ctx.length < cfg.context_warning_length
            and analysis.ambiguity_score > cfg.context_ambiguity_threshold
            and not analysis.technical_terms
        ):
            warnings.append(
                ValidationWarning(
                    code="needs_context",
                    message="Prompt is short and ambiguous with no technical detail.",
                    suggestion="Add background, constraints or the technology involved.",
                )
            )

        for name in ctx.domains:
            for check in self.registry.get(name).checks:
                if check.level == "warning" and check.is_missing(ctx.prompt):
                    warnings.append(
                        ValidationWarning(code=check.code, message=check.message, suggestion=check.suggestion)
                    )

        if ctx.mixed_language:
            warnings.append(
                ValidationWarning(
                    code="mixed_languages",
                    message="Prompt mixes Spanish and English.",
                    suggestion="Write the prompt in a single language, preferably English.",
                )
            )
        elif ctx.spanish_markers > ctx.english_markers:
            warnings.append(
                ValidationWarning(
                    code="non_english_language",
                    message="Prompt is not written in English.",
                    suggestion="Rewrite the prompt in English for the most consistent results.",
                )
            )

        if lexicon.TEMPLATE_VARIABLE_PATTERN.search(ctx.prompt):
            warnings.append(
                ValidationWarning(
                    code="template_variables",
                    message="Prompt contains template variable markers.",
                    suggestion="Make sure every variable is filled in before use.",
                )
            )
        if ctx.length > cfg.long_prompt_warning_length:
            warnings.append(
                ValidationWarning(
                    code="length_excessive",
                    message=f"Prompt is long ({ctx.length} characters).",
                    suggestion="Remove redundant passages or split the request.",
                )
            )
        if self._has_repetition(ctx.prompt):
            warnings.append(
                ValidationWarning(
                    code="word_repetition",
                    message="Prompt repeats the same words several times.",
                    suggestion="Vary wording or use a template variable for repeated terms.",
                )
            )
        if _formatting_inconsistent(ctx.prompt):
            warnings.append(
                ValidationWarning(
                    code="formatting_inconsistency",
                    message="Prompt has inconsistent capitalisation, spacing or punctuation.",
                    suggestion="Use sentence case, single spaces and end with punctuation.",
                )
            )
        return warnings

    def _has_repetition(self, prompt: str) -> bool:
        counts = Counter(
            word
            for word in lexicon.lower_words(prompt)
            if len(word) >= self.config.repetition_min_word_length and word not in lexicon.STOP_WORDS
        )
        if any(count >= 3 for count in counts.values()):
            return True
        return sum(1 for count in counts.values() if count >= 2) >= 2

    # suggestions

    def _build_suggestions(self, ctx: _Context, warnings: list[ValidationWarning]) -> list[ValidationSuggestion]:
        cfg = self.config
        lowered = ctx.prompt.lower()
        suggestions: list[ValidationSuggestion] = []

        for term in lexicon.vague_terms_in(ctx.prompt):
            replacement = lexicon.VAGUE_REPLACEMENTS.get(term)
            if replacement is None:
                continue
            suggestions.append(
                ValidationSuggestion(
                    type=SuggestionType.ENHANCEMENT,
                    message=f'Replace vague term "{term}" with more specific language',
                    before=term,
                    after=replacement,
                )
            )

        if not lexicon.has_action_verb(ctx.prompt):
            opening = " ".join(ctx.prompt.split()[:4])
            suggestions.append(
                ValidationSuggestion(
                    type=SuggestionType.FIX,
                    message="Start with a clear action verb such as create, analyze or explain",
                    before=opening,
                    after=f"Create {opening[:1].lower()}{opening[1:]}",
                )
            )

        for name, nouns in lexicon.templatable_entities(ctx.prompt).items():
            suggestions.append(
                ValidationSuggestion(
                    type=SuggestionType.OPTIMIZATION,
                    message=f'"{nouns[0]}" appears {len(nouns)} times; consider a template variable',
                    before=nouns[0],
                    after="{{" + name + "}}",
                )
            )

        if ctx.analysis.complexity > cfg.format_complexity_threshold and "format" not in lowered:
            suggestions.append(
                ValidationSuggestion(
                    type=SuggestionType.ENHANCEMENT,
                    message="Specify the desired output format (list, table, code block, prose)",
                )
            )
        if ctx.analysis.complexity > cfg.examples_complexity_threshold and "example" not in lowered:
            suggestions.append(
                ValidationSuggestion(
                    type=SuggestionType.ENHANCEMENT,
                    message="Ask for examples to illustrate the expected result",
                )
            )

        for name in ctx.domains:
            for check in self.registry.get(name).checks:
                if check.level == "suggestion" and check.is_missing(ctx.prompt):
                    suggestions.append(
                        ValidationSuggestion(type=SuggestionType.ENHANCEMENT, message=check.suggestion)
                    )

        seen_codes: set[str] = set()
        for warning in warnings:
            if warning.code in seen_codes:
                continue
            seen_codes.add(warning.code)
            suggestions.append(ValidationSuggestion(type=SuggestionType.FIX, message=warning.suggestion))
        return suggestions

    # metrics

    def quality_metrics(self, ctx: _Context) -> QualityMetrics:
        return QualityMetrics(
            clarity=self._clarity(ctx),
            specificity=self._specificity(ctx),
            structure=self._structure(ctx),
            completeness=self._completeness(ctx),
            consistency=self._consistency(ctx),
            actionability=self._actionability(ctx),
        )

    def _clarity(self, ctx: _Context) -> float:
        cfg = self.config
        analysis = ctx.analysis
        score = (
            1.0
            - cfg.clarity_ambiguity_weight * analysis.ambiguity_score
            - cfg.clarity_readability_weight * (1 - analysis.readability_score)
            - cfg.clarity_vague_weight * (ctx.vague_count / ctx.token_count)
        )
        return lexicon.clamp(score)

    def _specificity(self, ctx: _Context) -> float:
        cfg = self.config
        analysis = ctx.analysis
        has_details = bool(lexicon.DETAIL_PATTERN.search(ctx.prompt))
        short_and_unspecific = (
            ctx.length < cfg.specificity_short_length and not analysis.technical_terms and not has_details
        )
        score = cfg.specificity_short_base if short_and_unspecific else cfg.specificity_base
        score += cfg.specificity_technical_weight * min(1.0, len(analysis.technical_terms) / ctx.token_count)
        if has_details:
            score += cfg.specificity_detail_bonus
        if lexicon.CONSTRAINT_PATTERN.search(ctx.prompt):
            score += cfg.specificity_constraint_bonus
        if lexicon.GENERIC_PATTERN.search(ctx.prompt):
            score -= cfg.specificity_generic_penalty
        score += cfg.specificity_domain_hint_bonus * len(analysis.domain_hints)
        return lexicon.clamp(score)

    def _structure(self, ctx: _Context) -> float:
        cfg = self.config
        readability = ctx.analysis.readability_score
        score = cfg.structure_base
        if readability < cfg.structure_readability_floor:
            score -= cfg.structure_readability_penalty * (1 - readability)
        if lexicon.is_grammatical_sentence(ctx.prompt):
            score += cfg.structure_grammar_bonus
        if lexicon.FLOW_PATTERN.search(ctx.prompt):
            score += cfg.structure_flow_bonus
        if _has_proper_punctuation(ctx.prompt):
            score += cfg.structure_punctuation_bonus
        score += cfg.structure_length_weight * lexicon.triangular_length_score(ctx.length)
        if lexicon.has_run_on(ctx.prompt, cfg.run_on_words):
            score -= cfg.structure_run_on_penalty
        return lexicon.clamp(score)

    def _completeness(self, ctx: _Context) -> float:
        cfg = self.config
        if self._is_incomplete(ctx):
            return cfg.completeness_incomplete
        if lexicon.USER_STORY_PATTERN.search(ctx.prompt):
            return cfg.completeness_user_story
        score = cfg.completeness_base
        if lexicon.has_action_verb(ctx.prompt):
            score += cfg.completeness_action_bonus
        if ctx.length > cfg.adequate_context_length or len(ctx.analysis.technical_terms) > 2:
            score += cfg.completeness_context_bonus
        if lexicon.CONSTRAINT_PATTERN.search(ctx.prompt):
            score += cfg.completeness_constraint_bonus
        if lexicon.OUTPUT_PATTERN.search(ctx.prompt):
            score += cfg.completeness_output_bonus
        return lexicon.clamp(score)

    def _consistency(self, ctx: _Context) -> float:
        cfg = self.config
        score = 1.0
        if ctx.mixed_language:
            score -= cfg.consistency_mixed_language_penalty
        if _inconsistent_terminology(ctx.prompt):
            score -= cfg.consistency_terminology_penalty
        if lexicon.CONFLICT_PATTERN.search(ctx.prompt):
            score -= cfg.consistency_conflict_penalty
        return lexicon.clamp(score)

    def _actionability(self, ctx: _Context) -> float:
        cfg = self.config
        score = cfg.actionability_base
        if lexicon.has_action_verb(ctx.prompt):
            score += cfg.actionability_action_bonus
        if lexicon.DELIVERABLE_PATTERN.search(ctx.prompt):
            score += cfg.actionability_deliverable_bonus
        if lexicon.MEASURABLE_PATTERN.search(ctx.prompt):
            score += cfg.actionability_measurable_bonus
        if lexicon.ABSTRACT_PATTERN.search(ctx.prompt):
            score -= cfg.actionability_abstract_penalty
        return lexicon.clamp(score)


def _has_proper_punctuation(prompt: str) -> bool:
    return prompt.rstrip()[-1:] in {".", "!", "?"} and not re.search(r"[!?]{2,}", prompt)


def _inconsistent_terminology(prompt: str) -> bool:
    words = set(lexicon.lower_words(prompt))
    return any(len(group & words) > 1 for group in lexicon.TERMINOLOGY_GROUPS)


def _formatting_inconsistent(prompt: str) -> bool:
    letters = [char for char in prompt if char.isalpha()]
    mixed_case = any(char.isupper() for char in letters) and any(char.islower() for char in letters)
    if mixed_case and not prompt.lstrip()[:1].isupper():
        return True
    if "  " in prompt:
        return True
    return prompt.rstrip()[-1:] not in {".", "!", "?", ":"}
