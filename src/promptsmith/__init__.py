"""PromptSmith package."""

from .config import CacheConfig, PipelineConfig, ScoringConfig, Settings, ValidatorConfig
from .types import ProcessInput, ProcessResult

__all__ = [
    "CacheConfig",
    "PipelineConfig",
    "ProcessInput",
    "ProcessResult",
    "ScoringConfig",
    "Settings",
    "ValidatorConfig",
]
