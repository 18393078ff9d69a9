"""Named metrics that tooling can read while agents are running.

A metric accumulates samples in a ``RollingWindow`` and is read as a
percentile summary (e.g. tick duration). Several schedulers may record into
the same metric from different threads, so every access goes through the
registry lock.

The scheduler registers its metrics lazily, so importing the engine never
touches the registry.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import NamedTuple

from .metrics import RollingWindow


class MetricSpec(NamedTuple):
    name: str
    description: str
    window: int = 256


@dataclass(slots=True)
class Metric:
    name: str
    description: str = ""
    window: RollingWindow = field(default_factory=RollingWindow)

    def value(self) -> str:
        return self.window.summary()


class LiveVariableRegistry:
    """Name -> metric, guarded by one lock."""

    def __init__(self) -> None:
        self._metrics: dict[str, Metric] = {}
        self._lock = threading.Lock()

    def _add(self, metric: Metric) -> None:
        if metric.name in self._metrics:
            raise ValueError(f"Metric {metric.name!r} is already registered")
        self._metrics[metric.name] = metric

    def _lookup(self, name: str) -> Metric:
        metric = self._metrics.get(name)
        if metric is None:
            raise KeyError(f"No metric named {name!r}")
        return metric

    def add_metric(self, name: str, description: str = "", window: int = 256) -> Metric:
        metric = Metric(name, description, RollingWindow(window))
        with self._lock:
            self._add(metric)
        return metric

    def ensure_metrics(self, specs: Iterable[MetricSpec]) -> None:
        """Register every spec whose name is still free."""
        with self._lock:
            for spec in specs:
                if spec.name not in self._metrics:
                    self._add(Metric(spec.name, spec.description, RollingWindow(spec.window)))

    def get(self, name: str) -> Metric | None:
        with self._lock:
            return self._metrics.get(name)

    def metric(self, name: str) -> Metric:
        with self._lock:
            return self._lookup(name)

    def record(self, name: str, value: float) -> None:
        with self._lock:
            self._lookup(name).window.record(value)

    def read_all(self) -> dict[str, str]:
        """Summary of every metric, by name."""
        with self._lock:
            return {name: self._metrics[name].value() for name in sorted(self._metrics)}

    def clear(self) -> None:
        with self._lock:
            self._metrics.clear()


live_variable_registry = LiveVariableRegistry()
