"""Domain profile registry: rule tables, weights and domain vocabulary."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field, model_validator

from promptsmith.types import Domain, Example, normalize_domain

GENERAL = Domain.GENERAL.value


class QualityWeights(BaseModel):
    """Per-dimension weights for the overall score. Must sum to 1.0."""

    model_config = ConfigDict(frozen=True)

    clarity: float = Field(default=0.25, ge=0.0, le=1.0)
    specificity: float = Field(default=0.25, ge=0.0, le=1.0)
    structure: float = Field(default=0.25, ge=0.0, le=1.0)
    completeness: float = Field(default=0.25, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _check_total(self) -> "QualityWeights":
        total = self.clarity + self.specificity + self.structure + self.completeness
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"quality weights must sum to 1.0, got {total:.4f}")
        return self

    def as_dict(self) -> dict[str, float]:
        return self.model_dump()


@dataclass(slots=True)
class DomainRule:
    """One ordered regex substitution."""

    name: str
    pattern: re.Pattern[str]
    replacement: str
    description: str
    category: str = "vague"


@dataclass(slots=True)
class DomainEnhancement:
    """Appends `addition` when `trigger` matches and `unless` does not."""

    name: str
    trigger: re.Pattern[str]
    addition: str
    description: str
    unless: re.Pattern[str] | None = None

    def applies_to(self, text: str) -> bool:
        if not self.trigger.search(text):
            return False
        return self.unless is None or not self.unless.search(text)


@dataclass(slots=True)
class DomainCheck:
    """Validator check: warn when none of `required` appear in the prompt."""

    code: str
    required: tuple[str, ...]
    message: str
    suggestion: str
    # "warning" or "suggestion"
    level: str = "warning"

    def is_missing(self, text: str) -> bool:
        lowered = text.lower()
        return not any(keyword in lowered for keyword in self.required)


@dataclass(slots=True)
class DomainProfile:
    """Everything the pipeline knows about one subject-matter domain."""

    name: str
    description: str
    weights: QualityWeights = field(default_factory=QualityWeights)
    rules: list[DomainRule] = field(default_factory=list)
    enhancements: list[DomainEnhancement] = field(default_factory=list)
    keyword_groups: list[tuple[str, ...]] = field(default_factory=list)
    detection_keywords: list[str] = field(default_factory=list)
    checks: list[DomainCheck] = field(default_factory=list)
    system_prompt: str = ""
    examples: list[Example] = field(default_factory=list)
    offline_prefix: str = "Develop a solution that"

    def __post_init__(self) -> None:
        self.name = normalize_domain(self.name)


@dataclass(slots=True)
class _HintMatcher:
    domain: str
    pattern: re.Pattern[str] = field(repr=False)


class DomainRegistry:
    """Stores domain profiles keyed by name. Unknown names resolve to `general`."""

    def __init__(self, profiles: list[DomainProfile] | None = None) -> None:
        self._profiles: dict[str, DomainProfile] = {}
        self._matchers: list[_HintMatcher] = []
        for profile in profiles or []:
            self.register(profile)

    def register(self, profile: DomainProfile, *, replace: bool = False) -> None:
        if profile.name in self._profiles and not replace:
            raise ValueError(f"Domain already registered: {profile.name}")
        self._profiles[profile.name] = profile
        self._rebuild_matchers()

    def get(self, domain: str | Domain | None) -> DomainProfile:
        name = normalize_domain(domain)
        profile = self._profiles.get(name) or self._profiles.get(GENERAL)
        if profile is None:
            raise KeyError(f"Unknown domain and no general profile: {name}")
        return profile

    def __contains__(self, domain: object) -> bool:
        return normalize_domain(domain) in self._profiles

    def names(self) -> list[str]:
        return list(self._profiles)

    def profiles(self) -> list[DomainProfile]:
        return list(self._profiles.values())

    def get_quality_weights(self, domain: str | Domain | None) -> QualityWeights:
        return self.get(domain).weights

    def detect_hints(self, text: str) -> list[str]:
        """Domains whose detection keywords occur in `text`, in registry order."""
        return [matcher.domain for matcher in self._matchers if matcher.pattern.search(text)]

    def detect_domain(self, text: str) -> str:
        """Best-scoring domain for `text`; `general` unless at least two keyword hits."""
        best_domain, best_score = GENERAL, 0
        for matcher in self._matchers:
            score = len(matcher.pattern.findall(text))
            if score > best_score:
                best_domain, best_score = matcher.domain, score
        return best_domain if best_score >= 2 else GENERAL

    def statistics(self) -> dict[str, dict[str, object]]:
        return {
            name: {
                "rule_count": len(profile.rules),
                "enhancement_count": len(profile.enhancements),
                "example_count": len(profile.examples),
                "description": profile.description,
            }
            for name, profile in self._profiles.items()
        }

    def _rebuild_matchers(self) -> None:
        self._matchers = [
            _HintMatcher(
                domain=profile.name,
                pattern=re.compile(
                    r"\b(?:" + "|".join(re.escape(word) for word in profile.detection_keywords) + r")",
                    flags=re.IGNORECASE,
                ),
            )
            for profile in self._profiles.values()
            if profile.detection_keywords
        ]


@lru_cache()
def default_registry() -> DomainRegistry:
    """Process-wide registry preloaded with the built-in profiles."""
    from promptsmith.domains.profiles import builtin_profiles

    return DomainRegistry(builtin_profiles())
