"""Metrics sink for cache hit/miss counters and read latency."""

from __future__ import annotations

from collections import defaultdict
from typing import Protocol


class MetricsSink(Protocol):
    def increment(self, name: str, value: int = 1) -> None:
        ...

    def observe(self, name: str, value: float) -> None:
        ...

    def count(self, name: str) -> int:
        ...

    def reset(self, *names: str) -> None:
        ...

    def snapshot(self) -> dict[str, float | int]:
        ...


class InMemoryMetrics:
    """Process-scoped counters and observations.

    Values live in this process only. Deployments with several workers need an
    external collector behind the same interface to aggregate them.
    """

    def __init__(self) -> None:
        self._counters: dict[str, int] = defaultdict(int)
        self._observations: dict[str, list[float]] = defaultdict(list)

    def increment(self, name: str, value: int = 1) -> None:
        self._counters[name] += value

    def observe(self, name: str, value: float) -> None:
        self._observations[name].append(value)

    def count(self, name: str) -> int:
        return self._counters.get(name, 0)

    def reset(self, *names: str) -> None:
        """Drop the named series, or everything when no names are given."""
        if not names:
            self._counters.clear()
            self._observations.clear()
            return
        for name in names:
            self._counters.pop(name, None)
            self._observations.pop(name, None)

    def snapshot(self) -> dict[str, float | int]:
        data: dict[str, float | int] = dict(self._counters)
        for name, values in self._observations.items():
            data[f"{name}_count"] = len(values)
            data[f"{name}_avg"] = sum(values) / len(values) if values else 0.0
        return data
