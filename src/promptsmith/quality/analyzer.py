"""Deterministic heuristic prompt analyzer."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

from promptsmith.domains.registry import DomainRegistry, default_registry
from promptsmith.quality import lexicon
from promptsmith.types import AnalysisResult, Entity, Intent, Token

_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_MAX_INPUT_CHARS = 10_000

_ENTITY_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\b[A-Z]{2,}\b"), "TECH_ACRONYM"),
    (re.compile(r"\b\w+\.(?:js|ts|py|sql|html|css|java|go|rs)\b", re.IGNORECASE), "FILE_EXTENSION"),
    (re.compile(r"\bhttps?://\S+"), "URL"),
    (re.compile(r"\b\d+(?:\.\d+)*\b"), "NUMBER"),
    (re.compile(r"\{\{\s*\w+\s*\}\}"), "TEMPLATE_VARIABLE"),
    (re.compile(r"\$\w+"), "VARIABLE"),
    (re.compile(r"\b(?:PostgreSQL|MySQL|MongoDB|Redis|SQLite|MariaDB|Oracle)\b", re.IGNORECASE), "DATABASE"),
    (
        re.compile(r"\b(?:React|Vue|Angular|Node\.?js|Python|JavaScript|TypeScript|Rust|Django|FastAPI)\b", re.IGNORECASE),
        "TECHNOLOGY",
    ),
    (re.compile(r"\b(?:OAuth2?|JWT|SAML|OpenID|SSO|2FA|MFA)\b", re.IGNORECASE), "AUTH_TECH"),
)


@dataclass(slots=True)
class _IntentRule:
    category: str
    keywords: tuple[str, ...]
    subcategories: tuple[str, ...]


_INTENT_RULES: tuple[_IntentRule, ...] = (
    _IntentRule(
        "create",
        ("create", "generate", "make", "build", "write", "develop", "design"),
        ("table", "function", "class", "component", "api", "query", "script"),
    ),
    _IntentRule(
        "modify",
        ("update", "change", "modify", "edit", "alter", "adjust"),
        ("refactor", "update", "style", "structure", "logic"),
    ),
    _IntentRule(
        "analyze",
        ("analyze", "examine", "review", "assess", "evaluate", "check"),
        ("performance", "security", "quality", "code", "data"),
    ),
    _IntentRule(
        "explain",
        ("explain", "describe", "tell", "show", "help", "guide"),
        ("concept", "code", "process", "algorithm", "pattern"),
    ),
    _IntentRule(
        "debug",
        ("fix", "debug", "solve", "troubleshoot", "error", "issue"),
        ("error", "bug", "issue", "performance", "logic"),
    ),
    _IntentRule(
        "optimize",
        ("optimize", "improve", "enhance", "refactor", "performance"),
        ("performance", "memory", "speed", "efficiency", "size"),
    ),
)

_POSITIVE_WORDS = frozenset({"good", "great", "awesome", "excellent", "nice", "wonderful", "bueno", "bonito", "bonita"})
_NEGATIVE_WORDS = frozenset({"bad", "terrible", "awful", "horrible", "wrong", "error", "malo"})


class PromptAnalyzer:
    """Keyword and regex based stand-in for an NLP analyzer.

    `analyze` is pure: the same text always yields the same `AnalysisResult`.
    Empty input yields zero complexity, maximum ambiguity and zero readability.
    """

    def __init__(self, registry: DomainRegistry | None = None) -> None:
        self.registry = registry or default_registry()

    def analyze(self, raw_prompt: str) -> AnalysisResult:
        text = _clean_input(raw_prompt)
        tokens = [_make_token(word) for word in lexicon.words(text)]
        technical_terms = _technical_terms(tokens)

        return AnalysisResult(
            tokens=tokens,
            entities=_extract_entities(text),
            intent=_detect_intent(text, tokens),
            complexity=_complexity(text, tokens),
            ambiguity_score=_ambiguity(tokens),
            readability_score=_readability(text),
            domain_hints=self.registry.detect_hints(text),
            technical_terms=technical_terms,
            has_variables=detect_variables(text),
            language=detect_language(text),
            estimated_tokens=math.ceil(len(text) / 4),
            sentiment_score=_sentiment(tokens),
        )


def detect_variables(text: str) -> bool:
    return any(pattern.search(text) for pattern in lexicon.VARIABLE_PATTERNS)


def detect_language(text: str) -> str:
    spanish, english = lexicon.language_mix(text)
    if spanish > english:
        return "es"
    if english > spanish:
        return "en"
    return "unknown"


def _clean_input(raw: str) -> str:
    if not isinstance(raw, str):
        return ""
    cleaned = _CONTROL_CHARS.sub("", raw)
    cleaned = re.sub(r"\s+", " ", cleaned).strip()
    return cleaned[:_MAX_INPUT_CHARS]


def _make_token(word: str) -> Token:
    lowered = word.lower()
    return Token(
        text=word,
        lemma=_stem(lowered),
        is_stop_word=lowered in lexicon.STOP_WORDS,
        sentiment=_word_sentiment(lowered),
    )


def _stem(word: str) -> str:
    for suffix in ("ing", "ed", "es", "s"):
        if len(word) > len(suffix) + 2 and word.endswith(suffix):
            return word[: -len(suffix)]
    return word


def _word_sentiment(word: str) -> float:
    if word in _POSITIVE_WORDS:
        return 1.0
    if word in _NEGATIVE_WORDS:
        return -1.0
    return 0.0


def _extract_entities(text: str) -> list[Entity]:
    entities: list[Entity] = []
    for pattern, label in _ENTITY_PATTERNS:
        for match in pattern.finditer(text):
            entities.append(
                Entity(
                    text=match.group(0),
                    label=label,
                    start=match.start(),
                    end=match.end(),
                    confidence=0.9,
                )
            )
    return entities


def _detect_intent(text: str, tokens: list[Token]) -> Intent:
    lowered = text.lower()
    token_texts = {token.text.lower() for token in tokens}
    best_rule: _IntentRule | None = None
    best_confidence = 0.0

    for rule in _INTENT_RULES:
        confidence = 0.0
        for keyword in rule.keywords:
            if keyword in token_texts or keyword in lowered:
                confidence += 0.2
        if lowered.startswith(rule.keywords[0]):
            confidence += 0.3
        if confidence > best_confidence:
            best_rule, best_confidence = rule, confidence

    if best_rule is None:
        return Intent()
    return Intent(
        category=best_rule.category,
        confidence=min(best_confidence, 1.0),
        subcategories=[sub for sub in best_rule.subcategories if sub in lowered],
    )


def _complexity(text: str, tokens: list[Token]) -> float:
    if not text or not tokens:
        return 0.0

    complexity = min(len(text) / 100, 2.0) * 0.35
    sentence_count = len(lexicon.sentences(text))
    if sentence_count:
        complexity += min((len(text) / sentence_count) / 30, 1.5) * 0.25
    complexity += len({token.lemma for token in tokens}) / len(tokens) * 0.15
    technical_count = sum(1 for token in tokens if lexicon.is_technical_term(token.text))
    complexity += min(technical_count / len(tokens) * 5, 1.0) * 0.15
    return min(complexity, 1.0)


def _ambiguity(tokens: list[Token]) -> float:
    if not tokens:
        return 1.0
    lowered = [token.text.lower() for token in tokens]
    total = len(lowered)
    score = sum(1 for word in lowered if word in lexicon.VAGUE_TERMS) / total * 0.4
    score += sum(1 for word in lowered if word in lexicon.INDEFINITE_PRONOUNS) / total * 0.3
    score += sum(1 for word in lowered if word in lexicon.MODAL_VERBS) / total * 0.2
    score += sum(1 for word in lowered if word in lexicon.HEDGE_WORDS) / total * 0.1
    return min(score, 1.0)


def _readability(text: str) -> float:
    """Flesch reading ease mapped onto [0, 1]."""
    sentence_count = len(lexicon.sentences(text))
    words = text.split()
    if not sentence_count or not words:
        return 0.0
    syllables = sum(_count_syllables(word) for word in words)
    flesch = 206.835 - 1.015 * (len(words) / sentence_count) - 84.6 * (syllables / len(words))
    return lexicon.clamp(flesch / 100)


def _count_syllables(word: str) -> int:
    word = word.lower()
    if len(word) <= 3:
        return 1
    count = 0
    previous_vowel = False
    for char in word:
        is_vowel = char in "aeiouy"
        if is_vowel and not previous_vowel:
            count += 1
        previous_vowel = is_vowel
    if word.endswith("e"):
        count -= 1
    return max(1, count)


def _technical_terms(tokens: list[Token]) -> list[str]:
    terms: list[str] = []
    seen: set[str] = set()
    for token in tokens:
        key = token.text.lower()
        if key not in seen and lexicon.is_technical_term(token.text):
            seen.add(key)
            terms.append(token.text)
    return terms


def _sentiment(tokens: list[Token]) -> float:
    if not tokens:
        return 0.0
    return max(-1.0, min(1.0, sum(token.sentiment for token in tokens) / len(tokens)))
