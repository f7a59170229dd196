"""Configuration models for the prompt pipeline."""

from __future__ import annotations

from functools import lru_cache

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ValidatorConfig(BaseModel):
    """Thresholds and metric coefficients used by `PromptValidator`."""

    min_length: int = Field(default=10, ge=1)
    max_length: int = Field(default=5000, ge=100)
    long_prompt_warning_length: int = Field(default=1000, ge=1)
    context_warning_length: int = Field(default=50, ge=1)
    min_structure_tokens: int = Field(default=3, ge=1)
    short_fragment_tokens: int = Field(default=5, ge=1)

    ambiguity_error_threshold: float = Field(default=0.8, ge=0.0, le=1.0)
    ambiguity_warning_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    context_ambiguity_threshold: float = Field(default=0.6, ge=0.0, le=1.0)
    readability_warning_threshold: float = Field(default=0.3, ge=0.0, le=1.0)
    complexity_warning_threshold: float = Field(default=0.8, ge=0.0, le=1.0)
    incomplete_complexity_threshold: float = Field(default=0.3, ge=0.0, le=1.0)
    incomplete_length_threshold: int = Field(default=25, ge=1)
    format_complexity_threshold: float = Field(default=0.5, ge=0.0, le=1.0)
    examples_complexity_threshold: float = Field(default=0.6, ge=0.0, le=1.0)

    # clarity = 1 - a*ambiguity - r*(1 - readability) - v*(vague / tokens)
    clarity_ambiguity_weight: float = 0.8
    clarity_readability_weight: float = 0.3
    clarity_vague_weight: float = 0.4

    specificity_base: float = 0.5
    specificity_short_base: float = 0.2
    specificity_short_length: int = Field(default=30, ge=1)
    specificity_technical_weight: float = 0.3
    specificity_detail_bonus: float = 0.2
    specificity_constraint_bonus: float = 0.2
    specificity_generic_penalty: float = 0.3
    specificity_domain_hint_bonus: float = 0.1

    structure_base: float = 0.7
    structure_readability_floor: float = 0.5
    structure_readability_penalty: float = 0.4
    structure_grammar_bonus: float = 0.2
    structure_flow_bonus: float = 0.2
    structure_punctuation_bonus: float = 0.1
    structure_length_weight: float = 0.1
    structure_run_on_penalty: float = 0.2
    run_on_words: int = Field(default=25, ge=5)

    completeness_incomplete: float = 0.2
    completeness_user_story: float = 0.8
    completeness_base: float = 0.3
    completeness_action_bonus: float = 0.3
    completeness_context_bonus: float = 0.2
    completeness_constraint_bonus: float = 0.1
    completeness_output_bonus: float = 0.1
    adequate_context_length: int = Field(default=80, ge=1)

    consistency_mixed_language_penalty: float = 0.3
    consistency_terminology_penalty: float = 0.2
    consistency_conflict_penalty: float = 0.4

    actionability_base: float = 0.2
    actionability_action_bonus: float = 0.4
    actionability_deliverable_bonus: float = 0.2
    actionability_measurable_bonus: float = 0.1
    actionability_abstract_penalty: float = 0.3

    # Words shorter than this are ignored when counting repetition.
    repetition_min_word_length: int = Field(default=4, ge=1)


class ScoringConfig(BaseModel):
    """Coefficients used by `PromptScorer` on the refined prompt."""

    clarity_ambiguity_weight: float = 0.4
    clarity_readability_weight: float = 0.3
    clarity_vague_weight: float = 0.3
    clarity_structure_bonus: float = 0.1
    clarity_technical_step: float = 0.02
    clarity_technical_cap: float = 0.1

    specificity_base: float = 0.5
    specificity_technical_weight: float = 0.3
    specificity_detail_bonus: float = 0.2
    specificity_requirement_bonus: float = 0.2
    specificity_domain_hint_bonus: float = 0.1
    specificity_generic_penalty: float = 0.3
    specificity_example_bonus: float = 0.15

    structure_base: float = 0.5
    structure_grammar_bonus: float = 0.2
    structure_flow_bonus: float = 0.2
    structure_length_weight: float = 0.15
    structure_action_bonus: float = 0.15
    structure_run_on_penalty: float = 0.2
    structure_sectioned_bonus: float = 0.1
    structure_run_on_words: int = Field(default=25, ge=5)

    completeness_base: float = 0.3
    completeness_action_bonus: float = 0.3
    completeness_context_bonus: float = 0.2
    completeness_context_length: int = Field(default=100, ge=1)
    completeness_requirement_bonus: float = 0.15
    completeness_output_bonus: float = 0.15
    completeness_no_errors_bonus: float = 0.1
    completeness_no_warnings_bonus: float = 0.05
    domain_keyword_bonus: float = 0.05

    confidence_base: float = 0.8
    confidence_analysis_bonus: float = 0.1
    confidence_technical_bonus: float = 0.05
    confidence_domain_bonus: float = 0.05
    confidence_validation_bonus: float = 0.1
    confidence_no_errors_bonus: float = 0.05
    confidence_length_penalty: float = 0.1
    confidence_min_length: int = Field(default=20, ge=0)
    confidence_max_length: int = Field(default=1000, ge=1)

    # Breakdown factors: a factor is listed only when its trigger holds.
    factor_ambiguity_trigger: float = Field(default=0.5, ge=0.0, le=1.0)
    factor_ambiguity_weight: float = 0.4
    factor_readability_trigger: float = Field(default=0.6, ge=0.0, le=1.0)
    factor_readability_weight: float = 0.3
    factor_vague_weight: float = 0.3
    factor_vague_scale: int = Field(default=10, ge=1)
    factor_technical_weight: float = 0.3
    factor_technical_saturation: int = Field(default=5, ge=1)
    factor_detail_weight: float = 0.2
    factor_domain_weight: float = 0.25
    factor_domain_saturation: int = Field(default=3, ge=1)
    factor_grammar_weight: float = 0.2
    factor_flow_weight: float = 0.2
    factor_length_weight: float = 0.15
    factor_objective_weight: float = 0.3
    factor_requirement_weight: float = 0.2
    factor_output_weight: float = 0.2

    # improvement = min(cap, max(0, length_ratio - 1) * ratio_weight + base)
    improvement_base: float = 0.2
    improvement_ratio_weight: float = 0.3
    improvement_cap: float = 0.5

    top_factor_count: int = Field(default=8, ge=1)


class CacheConfig(BaseModel):
    """Configures key layout and default lifetimes of `PromptCache`."""

    key_prefix: str = "promptsmith:"
    default_ttl_seconds: int = Field(default=3600, ge=1)
    lock_ttl_seconds: int = Field(default=10, ge=1)


class PipelineConfig(BaseModel):
    """Configures orchestration policy: TTL, conditional stages and limits."""

    version: str = "1.0.0"
    key_namespace: str | None = None
    base_ttl_seconds: int = Field(default=3600, ge=1)
    min_ttl_factor: float = Field(default=0.5, ge=0.0, le=1.0)
    template_complexity_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    examples_complexity_threshold: float = Field(default=0.6, ge=0.0, le=1.0)
    examples_clarity_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    example_domains: tuple[str, ...] = ("sql", "cine", "saas")
    suggestion_score_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    max_suggestions: int = Field(default=5, ge=1)
    single_flight: bool = True
    # Offline normalizer appends a requirements nudge below this length.
    offline_min_length: int = Field(default=60, ge=1)


class Settings(BaseSettings):
    """Environment-driven runtime settings (prefix `PROMPTSMITH_`)."""

    model_config = SettingsConfigDict(
        env_prefix="PROMPTSMITH_",
        env_file=".env",
        extra="ignore",
    )

    redis_url: str | None = None
    database_path: str | None = None
    offline: bool = False
    telemetry_enabled: bool = True
    log_level: str = "INFO"

    @property
    def requires_offline_mode(self) -> bool:
        """Offline when forced, or when a backing service is not configured."""
        return self.offline or not self.redis_url or not self.database_path


@lru_cache()
def get_settings() -> Settings:
    return Settings()
