"""Structural, clarity, tone and context optimizer stage."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from promptsmith.types import AnalysisResult, OptimizationImprovement, OptimizationResult, Tone

_COMMAND_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"^(?:hazme|dame|haz|give|do)\s+", re.IGNORECASE), "Please generate "),
    (re.compile(r"^necesito\s+", re.IGNORECASE), "I need you to "),
    (re.compile(r"^quiero\s+", re.IGNORECASE), "I would like you to "),
)

_VAGUE_REPLACEMENTS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\bbonit[oa]s?\b", re.IGNORECASE), "well-formatted and professional"),
    (re.compile(r"\bbuen[oa]s?\b", re.IGNORECASE), "high-quality"),
    (re.compile(r"\bmal[oa]s?\b", re.IGNORECASE), "problematic"),
    (re.compile(r"\bthings?\b", re.IGNORECASE), "element"),
    (re.compile(r"\bstuff\b", re.IGNORECASE), "components"),
    (re.compile(r"\bnice\b", re.IGNORECASE), "well-designed"),
    (re.compile(r"\beasy\b", re.IGNORECASE), "user-friendly"),
)

_TONE_PATTERNS: dict[Tone, tuple[tuple[re.Pattern[str], str], ...]] = {
    Tone.FORMAL: (
        (re.compile(r"\bhi\b", re.IGNORECASE), "Greetings"),
        (re.compile(r"\bhey\b", re.IGNORECASE), "Hello"),
        (re.compile(r"\bokay\b", re.IGNORECASE), "acceptable"),
        (re.compile(r"\bguys\b", re.IGNORECASE), "team"),
    ),
    Tone.CASUAL: (
        (re.compile(r"\bI would like to request\b", re.IGNORECASE), "I need"),
        (re.compile(r"\bPlease generate\b", re.IGNORECASE), "Create"),
        (re.compile(r"\bkindly\s+", re.IGNORECASE), ""),
    ),
    Tone.TECHNICAL: (
        (re.compile(r"\bmake\b", re.IGNORECASE), "implement"),
        (re.compile(r"\bbuild\b", re.IGNORECASE), "develop"),
        (re.compile(r"\bfix\b", re.IGNORECASE), "resolve"),
    ),
    Tone.CREATIVE: (
        (re.compile(r"\bimplement\b", re.IGNORECASE), "craft"),
        (re.compile(r"\bgenerate\b", re.IGNORECASE), "create"),
        (re.compile(r"\bdevelop\b", re.IGNORECASE), "design"),
    ),
}


@dataclass(slots=True)
class _Pass:
    text: str
    improvements: list[OptimizationImprovement] = field(default_factory=list)
    rules_applied: list[str] = field(default_factory=list)

    def record(self, rule: str, improvement: OptimizationImprovement) -> None:
        self.improvements.append(improvement)
        if rule not in self.rules_applied:
            self.rules_applied.append(rule)


class PromptOptimizer:
    """Deterministic rewrite passes applied after domain rules."""

    def __init__(
        self,
        *,
        clarification_threshold: float = 0.5,
        format_threshold: float = 0.5,
        examples_threshold: float = 0.6,
    ) -> None:
        self.clarification_threshold = clarification_threshold
        self.format_threshold = format_threshold
        self.examples_threshold = examples_threshold

    def optimize(
        self,
        text: str,
        analysis: AnalysisResult,
        domain: str | None = None,
        tone: Tone | None = None,
        context: str | None = None,
    ) -> OptimizationResult:
        del domain  # domain wording is handled by the refiner.
        state = _Pass(text=text.strip())
        if not state.text:
            return OptimizationResult(optimized="")

        self._improve_structure(state)
        self._improve_clarity(state, analysis)
        self._improve_specificity(state, analysis)
        if tone is not None:
            self._adjust_tone(state, tone)
        if context:
            state.text = f"{state.text}\n\nAdditional context: {context.strip()}"
            state.record(
                "add_context",
                OptimizationImprovement(
                    type="context",
                    description="Added caller-supplied context",
                    impact="high",
                ),
            )
        self._clean_whitespace(state)

        return OptimizationResult(
            optimized=state.text,
            improvements=state.improvements,
            rules_applied=state.rules_applied,
        )

    def _improve_structure(self, state: _Pass) -> None:
        if state.text[0].islower():
            before = state.text
            state.text = state.text[0].upper() + state.text[1:]
            state.record(
                "capitalize_first_letter",
                OptimizationImprovement(
                    type="structure",
                    description="Capitalized the first letter",
                    before=before[:20],
                    after=state.text[:20],
                    impact="low",
                ),
            )

        for pattern, replacement in _COMMAND_PATTERNS:
            if pattern.search(state.text):
                before = state.text
                state.text = pattern.sub(replacement, state.text, count=1)
                state.record(
                    "command_to_request",
                    OptimizationImprovement(
                        type="structure",
                        description="Converted command to polite request",
                        before=before[:30],
                        after=state.text[:30],
                        impact="medium",
                    ),
                )

        first_line = state.text.split("\n", 1)
        if first_line[0].rstrip()[-1:] not in {".", "!", "?", ":"}:
            first_line[0] = first_line[0].rstrip() + "."
            state.text = "\n".join(first_line)
            state.record(
                "add_ending_punctuation",
                OptimizationImprovement(
                    type="structure",
                    description="Added ending punctuation",
                    impact="low",
                ),
            )

    def _improve_clarity(self, state: _Pass, analysis: AnalysisResult) -> None:
        for pattern, specific in _VAGUE_REPLACEMENTS:
            match = pattern.search(state.text)
            if match is None:
                continue
            state.text = pattern.sub(specific, state.text)
            state.record(
                f"replace_vague_{match.group(0).lower()}",
                OptimizationImprovement(
                    type="clarity",
                    description=f'Replaced vague term "{match.group(0)}" with more specific language',
                    before=match.group(0),
                    after=specific,
                    impact="high",
                ),
            )

        if analysis.ambiguity_score > self.clarification_threshold:
            state.text += (
                "\n\nPlease ensure the result includes:\n"
                "- Specific requirements and constraints\n"
                "- The expected output format"
            )
            state.record(
                "add_clarifications",
                OptimizationImprovement(
                    type="clarity",
                    description="Added specific requirements to reduce ambiguity",
                    impact="high",
                ),
            )

    def _improve_specificity(self, state: _Pass, analysis: AnalysisResult) -> None:
        lowered = state.text.lower()
        if analysis.complexity > self.format_threshold and "format" not in lowered and "style" not in lowered:
            state.text += "\n\nFormat: Structured response with clear sections and headings."
            state.record(
                "add_format_specifications",
                OptimizationImprovement(
                    type="specificity",
                    description="Added format specifications",
                    impact="medium",
                ),
            )
        if analysis.complexity > self.examples_threshold and "example" not in lowered:
            state.text += "\n\nPlease include examples to illustrate the solution."
            state.record(
                "add_examples_request",
                OptimizationImprovement(
                    type="specificity",
                    description="Added request for examples",
                    impact="medium",
                ),
            )

    def _adjust_tone(self, state: _Pass, tone: Tone) -> None:
        for pattern, replacement in _TONE_PATTERNS.get(tone, ()):
            match = pattern.search(state.text)
            if match is None:
                continue
            state.text = pattern.sub(replacement, state.text)
            state.record(
                f"tone_{tone.value}_adjustment",
                OptimizationImprovement(
                    type="tone",
                    description=f"Adjusted tone to be more {tone.value}",
                    before=match.group(0),
                    after=replacement,
                    impact="medium",
                ),
            )

    def _clean_whitespace(self, state: _Pass) -> None:
        cleaned = re.sub(r"[ \t]+", " ", state.text)
        cleaned = re.sub(r" *\n *", "\n", cleaned)
        cleaned = re.sub(r"\n{3,}", "\n\n", cleaned).strip()
        if cleaned != state.text:
            state.text = cleaned
            state.record(
                "clean_whitespace",
                OptimizationImprovement(
                    type="structure",
                    description="Cleaned up formatting and whitespace",
                    impact="low",
                ),
            )
