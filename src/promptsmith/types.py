"""Shared domain models for the prompt pipeline.

Models that cross the cache or API boundary are Pydantic models so they can be
serialised to JSON and rebuilt without custom codecs.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Domain(str, Enum):
    """Built-in subject-matter profiles. The registry accepts other names too."""

    SQL = "sql"
    BRANDING = "branding"
    CINE = "cine"
    SAAS = "saas"
    DEVOPS = "devops"
    GENERAL = "general"


class Tone(str, Enum):
    FORMAL = "formal"
    CASUAL = "casual"
    TECHNICAL = "technical"
    CREATIVE = "creative"


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class SuggestionType(str, Enum):
    ENHANCEMENT = "enhancement"
    FIX = "fix"
    OPTIMIZATION = "optimization"


class TemplateType(str, Enum):
    BASIC = "basic"
    CHAIN_OF_THOUGHT = "chain-of-thought"
    FEW_SHOT = "few-shot"
    ROLE_BASED = "role-based"
    STEP_BY_STEP = "step-by-step"


def normalize_domain(value: Any) -> str:
    if isinstance(value, Domain):
        return value.value
    text = str(value or "").strip().lower()
    return text or Domain.GENERAL.value


class ProcessInput(BaseModel):
    """One refinement request.

    `raw` is deliberately unconstrained: an empty prompt is reported by the
    validator as a critical issue instead of failing model validation.
    """

    raw: str = ""
    domain: str = Domain.GENERAL.value
    tone: Tone | None = None
    context: str | None = None
    variables: dict[str, str] | None = None
    target_model: str | None = None
    max_tokens: int | None = Field(default=None, gt=0)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)

    @field_validator("domain", mode="before")
    @classmethod
    def _normalize_domain(cls, value: Any) -> str:
        return normalize_domain(value)


class Token(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    pos: str = "unknown"
    lemma: str = ""
    is_stop_word: bool = False
    sentiment: float = 0.0


class Entity(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    label: str
    start: int
    end: int
    confidence: float = Field(ge=0.0, le=1.0)


class Intent(BaseModel):
    model_config = ConfigDict(frozen=True)

    category: str = "unknown"
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    subcategories: list[str] = Field(default_factory=list)


class AnalysisResult(BaseModel):
    """Analyzer output consumed read-only by every later stage."""

    model_config = ConfigDict(frozen=True)

    tokens: list[Token] = Field(default_factory=list)
    entities: list[Entity] = Field(default_factory=list)
    intent: Intent = Field(default_factory=Intent)
    complexity: float = Field(default=0.0, ge=0.0, le=1.0)
    ambiguity_score: float = Field(default=0.0, ge=0.0, le=1.0)
    readability_score: float = Field(default=0.5, ge=0.0, le=1.0)
    domain_hints: list[str] = Field(default_factory=list)
    technical_terms: list[str] = Field(default_factory=list)
    has_variables: bool = False
    language: str = "unknown"
    estimated_tokens: int = 0
    sentiment_score: float = 0.0


class ValidationIssue(BaseModel):
    """A blocking finding. Issues make a prompt invalid but never abort a run."""

    code: str
    message: str
    severity: Severity


class ValidationWarning(BaseModel):
    code: str
    message: str
    suggestion: str


class ValidationSuggestion(BaseModel):
    type: SuggestionType = SuggestionType.ENHANCEMENT
    message: str
    before: str | None = None
    after: str | None = None


class QualityMetrics(BaseModel):
    clarity: float = Field(default=0.0, ge=0.0, le=1.0)
    specificity: float = Field(default=0.0, ge=0.0, le=1.0)
    structure: float = Field(default=0.0, ge=0.0, le=1.0)
    completeness: float = Field(default=0.0, ge=0.0, le=1.0)
    consistency: float = Field(default=0.0, ge=0.0, le=1.0)
    actionability: float = Field(default=0.0, ge=0.0, le=1.0)


class ValidationResult(BaseModel):
    is_valid: bool
    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationWarning] = Field(default_factory=list)
    suggestions: list[ValidationSuggestion] = Field(default_factory=list)
    quality_metrics: QualityMetrics = Field(default_factory=QualityMetrics)

    def has_error(self, code: str) -> bool:
        return any(issue.code == code for issue in self.errors)

    def has_warning(self, code: str) -> bool:
        return any(warning.code == code for warning in self.warnings)


class QualityScore(BaseModel):
    clarity: float = Field(ge=0.0, le=1.0)
    specificity: float = Field(ge=0.0, le=1.0)
    structure: float = Field(ge=0.0, le=1.0)
    completeness: float = Field(ge=0.0, le=1.0)
    overall: float = Field(ge=0.0, le=1.0)

    @classmethod
    def neutral(cls, value: float = 0.5) -> "QualityScore":
        return cls(
            clarity=value,
            specificity=value,
            structure=value,
            completeness=value,
            overall=value,
        )


class QualityFactor(BaseModel):
    """One active contributor to a dimension score."""

    name: str
    dimension: str
    weight: float
    score: float
    description: str
    impact: float = 0.0


class DimensionBreakdown(BaseModel):
    score: float
    factors: list[QualityFactor] = Field(default_factory=list)


class QualityBreakdown(BaseModel):
    clarity: DimensionBreakdown
    specificity: DimensionBreakdown
    structure: DimensionBreakdown
    completeness: DimensionBreakdown


class ScoreCalculationResult(BaseModel):
    score: QualityScore
    breakdown: QualityBreakdown
    improvement: float = Field(ge=0.0, le=1.0)
    confidence: float = Field(ge=0.5, le=1.0)
    factors: list[QualityFactor] = Field(default_factory=list)
    weights: dict[str, float] = Field(default_factory=dict)


class OptimizationImprovement(BaseModel):
    type: Literal["clarity", "specificity", "structure", "tone", "context"]
    description: str
    before: str | None = None
    after: str | None = None
    impact: Literal["low", "medium", "high"] = "medium"


class OptimizationResult(BaseModel):
    optimized: str
    improvements: list[OptimizationImprovement] = Field(default_factory=list)
    rules_applied: list[str] = Field(default_factory=list)


class RefinementResult(BaseModel):
    refined: str
    rules_applied: list[str] = Field(default_factory=list)
    improvements: list[str] = Field(default_factory=list)


class TemplateResult(BaseModel):
    prompt: str
    system: str = ""
    variables: dict[str, str] = Field(default_factory=dict)
    type: TemplateType = TemplateType.BASIC


class Example(BaseModel):
    input: str
    output: str
    explanation: str | None = None


class ProcessMetadata(BaseModel):
    domain: str
    tone: Tone | None = None
    processing_time: float = 0.0
    version: str = "1.0.0"
    model_used: str | None = None
    cache_hit: bool = False
    rules_applied: list[str] = Field(default_factory=list)
    template_used: str | None = None


class ProcessResult(BaseModel):
    original: str
    refined: str
    system: str
    analysis: AnalysisResult
    score: QualityScore
    validation: ValidationResult
    suggestions: list[str] = Field(default_factory=list)
    metadata: ProcessMetadata
    template: TemplateResult | None = None
    examples: list[Example] | None = None


class Recommendation(BaseModel):
    type: Literal["critical", "important", "suggestion"]
    title: str
    description: str
    before: str | None = None
    after: str | None = None
    impact: Literal["low", "medium", "high"] = "low"


class EvaluationResult(BaseModel):
    score: QualityScore
    breakdown: QualityBreakdown
    recommendations: list[Recommendation] = Field(default_factory=list)
    confidence: float = Field(ge=0.5, le=1.0)
    factors: list[QualityFactor] = Field(default_factory=list)


class VariantMetric(BaseModel):
    name: str
    value: float
    unit: str
    better: Literal["higher", "lower", "optimal", "balanced"]


class PromptVariant(BaseModel):
    id: str
    prompt: str
    score: QualityScore
    metrics: list[VariantMetric] = Field(default_factory=list)


class ComparisonMetric(BaseModel):
    name: str
    values: dict[str, float]
    winner: str
    significance: float


class ComparisonResult(BaseModel):
    variants: list[PromptVariant]
    winner: str | None = None
    metrics: list[ComparisonMetric] = Field(default_factory=list)
    summary: str = ""


class SaveMetadata(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    domain: str | None = None
    tags: list[str] = Field(default_factory=list)
    description: str | None = Field(default=None, max_length=500)
    category: str | None = None
    is_public: bool = False
    author_id: str | None = None


class SavedPrompt(BaseModel):
    id: str
    name: str
    domain: str
    tags: list[str] = Field(default_factory=list)
    description: str | None = None
    category: str | None = None
    prompt: str
    original: str
    system_prompt: str | None = None
    score: QualityScore
    created_at: datetime
    updated_at: datetime
    usage_count: int = 0


class SearchParams(BaseModel):
    query: str | None = None
    domain: str | None = None
    tags: list[str] = Field(default_factory=list)
    category: str | None = None
    min_score: float | None = Field(default=None, ge=0.0, le=1.0)
    limit: int = Field(default=10, gt=0, le=100)
    offset: int = Field(default=0, ge=0)
    sort_by: Literal["score", "created", "updated", "usage"] = "score"
    sort_order: Literal["asc", "desc"] = "desc"


class SearchResult(BaseModel):
    id: str
    name: str
    domain: str
    tags: list[str] = Field(default_factory=list)
    description: str | None = None
    prompt: str
    score: QualityScore
    created_at: datetime
    relevance: float = Field(ge=0.0, le=1.0)
