"""Product telemetry events and logging setup."""

from __future__ import annotations

import logging
import uuid
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install the root handler once; later calls only adjust the level."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=_LOG_FORMAT)
    root.setLevel(level.upper())


@dataclass(slots=True)
class TelemetryEvent:
    name: str
    data: dict[str, Any]
    timestamp: datetime
    session_id: str


@dataclass(slots=True)
class ErrorEvent:
    name: str
    message: str
    error_type: str
    severity: str
    context: dict[str, Any]
    timestamp: datetime
    session_id: str


@dataclass(slots=True)
class MetricEvent:
    name: str
    value: float
    unit: str
    dimensions: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def error_severity(name: str) -> str:
    if any(marker in name for marker in ("processing_error", "database_connection", "authentication_failed")):
        return "critical"
    if any(marker in name for marker in ("validation_error", "template_error", "scoring_error")):
        return "high"
    if any(marker in name for marker in ("cache_error", "optimization_error")):
        return "medium"
    return "low"


class Telemetry:
    """Bounded in-memory event sink with daily statistics."""

    def __init__(self, *, version: str = "1.0.0", buffer_size: int = 10_000) -> None:
        self.version = version
        self.session_id = str(uuid.uuid4())
        self._buffer_size = buffer_size
        self._events: list[TelemetryEvent] = []
        self._errors: list[ErrorEvent] = []
        self._metrics: list[MetricEvent] = []

    @property
    def enabled(self) -> bool:
        return True

    def track(self, event: str, data: dict[str, Any] | None = None) -> None:
        self._events.append(
            TelemetryEvent(
                name=event,
                data=dict(data or {}),
                timestamp=datetime.now(timezone.utc),
                session_id=self.session_id,
            )
        )
        self._trim(self._events)

    def error(self, event: str, exc: BaseException, context: dict[str, Any] | None = None) -> None:
        severity = error_severity(event)
        self._errors.append(
            ErrorEvent(
                name=event,
                message=str(exc),
                error_type=type(exc).__name__,
                severity=severity,
                context=dict(context or {}),
                timestamp=datetime.now(timezone.utc),
                session_id=self.session_id,
            )
        )
        self._trim(self._errors)
        logger.debug(f"Telemetry error recorded: {event} ({severity})")

    def metric(self, name: str, value: float, unit: str = "count", dimensions: dict[str, Any] | None = None) -> None:
        self._metrics.append(
            MetricEvent(name=name, value=value, unit=unit, dimensions={**(dimensions or {}), "version": self.version})
        )
        self._trim(self._metrics)

    def timing(self, operation: str, duration_ms: float, context: dict[str, Any] | None = None) -> None:
        self.metric(f"{operation}_duration", duration_ms, "milliseconds", context)

    def counter(self, name: str, increment: int = 1, dimensions: dict[str, Any] | None = None) -> None:
        self.metric(name, increment, "count", dimensions)

    def events(self, name: str | None = None) -> list[TelemetryEvent]:
        return [event for event in self._events if name is None or event.name == name]

    def errors(self) -> list[ErrorEvent]:
        return list(self._errors)

    def get_stats(self, days: int = 7) -> dict[str, Any]:
        now = datetime.now(timezone.utc)
        today = now.replace(hour=0, minute=0, second=0, microsecond=0)
        since = now - timedelta(days=days)

        events_today = sum(1 for event in self._events if event.timestamp >= today)
        errors_today = sum(1 for error in self._errors if error.timestamp >= today)
        timings = [
            metric.value
            for metric in self._metrics
            if metric.name == "processing_duration" and metric.timestamp >= since
        ]
        recent = [event for event in self._events if event.timestamp >= since]
        domains = Counter(str(event.data["domain"]) for event in recent if event.data.get("domain"))

        scores_by_day: dict[str, list[float]] = {}
        for event in recent:
            score = event.data.get("score")
            if isinstance(score, (int, float)):
                scores_by_day.setdefault(event.timestamp.date().isoformat(), []).append(float(score))

        return {
            "events_today": events_today,
            "errors_today": errors_today,
            "error_rate": errors_today / events_today if events_today else 0.0,
            "avg_processing_time": sum(timings) / len(timings) if timings else 0.0,
            "top_domains": [{"domain": domain, "count": count} for domain, count in domains.most_common(5)],
            "quality_trends": [
                {"date": day, "avg_score": sum(values) / len(values)}
                for day, values in sorted(scores_by_day.items())
            ],
        }

    def shutdown(self) -> None:
        self.track("session_end", {"events": len(self._events), "errors": len(self._errors)})

    def _trim(self, items: list[Any]) -> None:
        overflow = len(items) - self._buffer_size
        if overflow > 0:
            del items[:overflow]


class NullTelemetry:
    """Disabled telemetry: accepts every call and records nothing."""

    @property
    def enabled(self) -> bool:
        return False

    def track(self, event: str, data: dict[str, Any] | None = None) -> None:
        return None

    def error(self, event: str, exc: BaseException, context: dict[str, Any] | None = None) -> None:
        return None

    def metric(self, name: str, value: float, unit: str = "count", dimensions: dict[str, Any] | None = None) -> None:
        return None

    def timing(self, operation: str, duration_ms: float, context: dict[str, Any] | None = None) -> None:
        return None

    def counter(self, name: str, increment: int = 1, dimensions: dict[str, Any] | None = None) -> None:
        return None

    def get_stats(self, days: int = 7) -> dict[str, Any]:
        return {
            "events_today": 0,
            "errors_today": 0,
            "error_rate": 0.0,
            "avg_processing_time": 0.0,
            "top_domains": [],
            "quality_trends": [],
        }

    def shutdown(self) -> None:
        return None
