"""Span recording, metric samples and error tracking for pipeline stages."""

from __future__ import annotations

import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

MetricKind = Literal["counter", "gauge", "histogram"]


@dataclass(slots=True)
class SpanRecord:
    span_id: str
    trace_id: str
    operation: str
    started_utc: str
    parent_id: str | None = None
    duration_ms: float | None = None
    status: str = "open"
    tags: dict[str, Any] = field(default_factory=dict)
    logs: list[dict[str, Any]] = field(default_factory=list)
    _start: float = field(default=0.0, repr=False)


@dataclass(slots=True)
class MetricSample:
    name: str
    value: float
    kind: MetricKind
    labels: dict[str, str]
    timestamp_utc: str


@dataclass(slots=True)
class ErrorRecord:
    error_type: str
    message: str
    context: dict[str, Any]
    timestamp_utc: str


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class SpanRecorder:
    """In-memory span and metric storage for API-level observability."""

    def __init__(self, *, service: str = "promptsmith", max_records: int = 5000) -> None:
        self.service = service
        self._max_records = max_records
        self._active: dict[str, SpanRecord] = {}
        self._finished: dict[str, SpanRecord] = {}
        self._metrics: list[MetricSample] = []
        self._errors: list[ErrorRecord] = []

    def start_span(self, operation: str, parent_id: str | None = None) -> str:
        parent = self._active.get(parent_id) if parent_id else None
        span = SpanRecord(
            span_id=uuid.uuid4().hex[:16],
            trace_id=parent.trace_id if parent is not None else uuid.uuid4().hex,
            operation=operation,
            started_utc=_now(),
            parent_id=parent_id,
            tags={"service.name": self.service},
            _start=time.perf_counter(),
        )
        self._active[span.span_id] = span
        return span.span_id

    def add_span_log(self, span_id: str, fields: dict[str, Any]) -> None:
        span = self._active.get(span_id)
        if span is not None:
            span.logs.append({"timestamp_utc": _now(), **fields})

    def finish_span(self, span_id: str, tags: dict[str, Any] | None = None, *, status: str = "ok") -> SpanRecord | None:
        span = self._active.pop(span_id, None)
        if span is None:
            return None
        span.duration_ms = (time.perf_counter() - span._start) * 1000.0
        span.status = status
        span.tags.update(tags or {})
        self._finished[span_id] = span
        if len(self._finished) > self._max_records:
            self._finished.pop(next(iter(self._finished)))
        return span

    @contextmanager
    def span(self, operation: str, parent_id: str | None = None, **tags: Any) -> Iterator[str]:
        span_id = self.start_span(operation, parent_id)
        try:
            yield span_id
        except BaseException as exc:
            self.finish_span(span_id, {**tags, "error": type(exc).__name__}, status="error")
            raise
        self.finish_span(span_id, tags)

    def record_metric(self, name: str, value: float, kind: MetricKind = "gauge", labels: dict[str, str] | None = None) -> None:
        self._metrics.append(
            MetricSample(
                name=name,
                value=value,
                kind=kind,
                labels={"service": self.service, **(labels or {})},
                timestamp_utc=_now(),
            )
        )
        if len(self._metrics) > self._max_records:
            del self._metrics[0]

    def track_error(self, exc: BaseException, context: dict[str, Any] | None = None) -> None:
        self._errors.append(
            ErrorRecord(
                error_type=type(exc).__name__,
                message=str(exc),
                context=dict(context or {}),
                timestamp_utc=_now(),
            )
        )
        if len(self._errors) > self._max_records:
            del self._errors[0]
        self.record_metric("errors_total", 1, "counter", {"error_type": type(exc).__name__})

    def get(self, span_id: str) -> SpanRecord:
        span = self._finished.get(span_id) or self._active.get(span_id)
        if span is None:
            raise KeyError(f"Span not found: {span_id}")
        return span

    def list_recent(self, limit: int = 20) -> list[SpanRecord]:
        return list(self._finished.values())[-limit:]

    def metrics(self, name: str | None = None) -> list[MetricSample]:
        return [sample for sample in self._metrics if name is None or sample.name == name]

    def summary(self) -> dict[str, float | int]:
        """Aggregate span and error figures for the metrics endpoint."""
        spans = list(self._finished.values())
        total = len(spans)
        if total == 0:
            return {
                "total_spans": 0,
                "active_spans": len(self._active),
                "avg_duration_ms": 0.0,
                "p95_duration_ms": 0.0,
                "error_spans": 0,
                "tracked_errors": len(self._errors),
                "metric_samples": len(self._metrics),
            }

        durations = sorted(span.duration_ms or 0.0 for span in spans)
        p95_index = max(0, int((len(durations) * 0.95) - 1))
        return {
            "total_spans": total,
            "active_spans": len(self._active),
            "avg_duration_ms": sum(durations) / total,
            "p95_duration_ms": durations[p95_index],
            "error_spans": sum(1 for span in spans if span.status == "error"),
            "tracked_errors": len(self._errors),
            "metric_samples": len(self._metrics),
        }


class NullRecorder:
    """Recorder used in offline mode. Spans get ids but nothing is kept."""

    def start_span(self, operation: str, parent_id: str | None = None) -> str:
        return uuid.uuid4().hex[:16]

    def add_span_log(self, span_id: str, fields: dict[str, Any]) -> None:
        return None

    def finish_span(self, span_id: str, tags: dict[str, Any] | None = None, *, status: str = "ok") -> None:
        return None

    @contextmanager
    def span(self, operation: str, parent_id: str | None = None, **tags: Any) -> Iterator[str]:
        yield self.start_span(operation, parent_id)

    def record_metric(self, name: str, value: float, kind: MetricKind = "gauge", labels: dict[str, str] | None = None) -> None:
        return None

    def track_error(self, exc: BaseException, context: dict[str, Any] | None = None) -> None:
        return None

    def summary(self) -> dict[str, float | int]:
        return {
            "total_spans": 0,
            "active_spans": 0,
            "avg_duration_ms": 0.0,
            "p95_duration_ms": 0.0,
            "error_spans": 0,
            "tracked_errors": 0,
            "metric_samples": 0,
        }
