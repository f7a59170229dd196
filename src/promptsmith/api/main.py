"""FastAPI entrypoint for process/validate/evaluate/compare/prompt-library endpoints."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field, field_validator

from promptsmith.config import PipelineConfig, get_settings
from promptsmith.errors import RecordNotFoundError, is_degradable
from promptsmith.obs.telemetry import configure_logging
from promptsmith.pipeline.orchestrator import PromptOrchestrator
from promptsmith.pipeline.services import build_services
from promptsmith.types import (
    ComparisonResult,
    EvaluationResult,
    ProcessInput,
    ProcessResult,
    SavedPrompt,
    SaveMetadata,
    SearchParams,
    ValidationResult,
    normalize_domain,
)


class PromptRequest(BaseModel):
    prompt: str
    domain: str = "general"

    @field_validator("domain", mode="before")
    @classmethod
    def _normalize_domain(cls, value: Any) -> str:
        return normalize_domain(value)


class CompareRequest(BaseModel):
    variants: list[str] = Field(min_length=1)
    domain: str = "general"

    @field_validator("domain", mode="before")
    @classmethod
    def _normalize_domain(cls, value: Any) -> str:
        return normalize_domain(value)


class SaveRequest(BaseModel):
    prompt: str = Field(min_length=1)
    metadata: SaveMetadata


_settings = get_settings()
configure_logging(_settings.log_level)
_orchestrator = PromptOrchestrator(build_services(_settings), PipelineConfig())


@asynccontextmanager
async def _lifespan(_: FastAPI) -> AsyncIterator[None]:
    yield
    await _orchestrator.shutdown()


app = FastAPI(title="PromptSmith", version="1.0.0", lifespan=_lifespan)


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, RecordNotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if is_degradable(exc):
        return HTTPException(status_code=503, detail=str(exc))
    if isinstance(exc, ValueError):
        return HTTPException(status_code=400, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))


@app.get("/health")
async def health() -> dict[str, Any]:
    return await _orchestrator.health()


@app.post("/process", response_model=ProcessResult)
async def process(request: ProcessInput) -> ProcessResult:
    try:
        return await _orchestrator.process(request)
    except Exception as exc:
        raise _http_error(exc) from exc


@app.post("/validate", response_model=ValidationResult)
def validate(request: PromptRequest) -> ValidationResult:
    return _orchestrator.validator.validate(request.prompt, domain=request.domain)


@app.post("/evaluate", response_model=EvaluationResult)
async def evaluate(request: PromptRequest) -> EvaluationResult:
    try:
        return await _orchestrator.evaluate(request.prompt, request.domain)
    except Exception as exc:
        raise _http_error(exc) from exc


@app.post("/compare", response_model=ComparisonResult)
async def compare(request: CompareRequest) -> ComparisonResult:
    try:
        return await _orchestrator.compare(request.variants, request.domain)
    except Exception as exc:
        raise _http_error(exc) from exc


@app.post("/prompts", response_model=SavedPrompt)
async def save_prompt(request: SaveRequest) -> SavedPrompt:
    try:
        return await _orchestrator.save(request.prompt, request.metadata)
    except Exception as exc:
        raise _http_error(exc) from exc


@app.post("/prompts/search")
async def search_prompts(params: SearchParams) -> dict[str, Any]:
    try:
        results = await _orchestrator.search(params)
    except Exception as exc:
        raise _http_error(exc) from exc
    return {"items": [result.model_dump(mode="json") for result in results]}


@app.get("/prompts/{prompt_id}", response_model=SavedPrompt)
async def get_prompt(prompt_id: str) -> SavedPrompt:
    try:
        return await _orchestrator.get_prompt(prompt_id)
    except Exception as exc:
        raise _http_error(exc) from exc


@app.get("/metrics")
async def metrics() -> dict[str, Any]:
    return await _orchestrator.metrics()
