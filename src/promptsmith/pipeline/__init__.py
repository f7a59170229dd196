"""Request pipeline and capability sets."""

from .orchestrator import PromptOrchestrator
from .services import ServiceSet, build_services, in_memory_services, offline_services

__all__ = ["PromptOrchestrator", "ServiceSet", "build_services", "in_memory_services", "offline_services"]
