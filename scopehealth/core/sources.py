from __future__ import annotations

import random
from collections import deque
from datetime import datetime
from typing import Callable, Iterable, Mapping, Protocol

from scopehealth.core.models import MetricSample, PerformanceBaseline

# Used when a component has no baseline yet.
FALLBACK_METRICS = MetricSample(
    timestamp=datetime(1970, 1, 1),
    temperature=25.0,
    humidity=60.0,
    voltage=12.0,
    current=2.0,
    power=50.0,
    vibration=2.0,
    operating_time=100.0,
    cycle_count=1000.0,
    error_count=0.0,
    response_time=200.0,
    accuracy=2.0,
    backlash=2.0,
    thermal_drift=0.05,
)


class MetricsSource(Protocol):
    """Anything that can produce the next reading for a component."""

    def sample(self, component_id: str) -> MetricSample: ...


class SimulatedMetricsSource:
    """
    Plausible readings around each component's baseline with uniform noise.

    `baselines` is read on every call so baselines established after the
    source was built are picked up.
    """

    def __init__(
        self,
        baselines: Mapping[str, PerformanceBaseline],
        seed: int | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._baselines = baselines
        self._rng = random.Random(seed)
        self._clock = clock

    def _jitter(self, span: float) -> float:
        return (self._rng.random() - 0.5) * span

    def sample(self, component_id: str) -> MetricSample:
        baseline = self._baselines.get(component_id)
        base = baseline.baseline_metrics if baseline is not None else FALLBACK_METRICS
        rng = self._rng

        return MetricSample(
            timestamp=self._clock(),
            temperature=base.temperature + self._jitter(10),
            humidity=max(0.0, min(100.0, base.humidity + self._jitter(20))),
            voltage=base.voltage + self._jitter(1),
            current=max(0.0, base.current + self._jitter(0.5)),
            power=max(0.0, base.power + self._jitter(10)),
            vibration=max(0.0, base.vibration + self._jitter(2)),
            operating_time=base.operating_time + rng.random() * 0.1,
            cycle_count=base.cycle_count + rng.randrange(5),
            error_count=max(0.0, base.error_count + (1 if rng.random() < 0.1 else 0)),
            response_time=max(50.0, base.response_time + self._jitter(100)),
            accuracy=max(0.1, base.accuracy + self._jitter(1)),
            backlash=max(0.0, base.backlash + self._jitter(1)),
            thermal_drift=base.thermal_drift + self._jitter(0.02),
        )


class ReplayMetricsSource:
    """
    Feeds pre-recorded samples in order, one per call, per component.

    When a component's queue runs dry the `fallback` source is used, or
    LookupError is raised if there is none.
    """

    def __init__(
        self,
        samples: Mapping[str, Iterable[MetricSample]],
        fallback: MetricsSource | None = None,
    ) -> None:
        self._queues = {cid: deque(sorted(s, key=lambda m: m.timestamp)) for cid, s in samples.items()}
        self._fallback = fallback

    def remaining(self, component_id: str) -> int:
        return len(self._queues.get(component_id, ()))

    def sample(self, component_id: str) -> MetricSample:
        queue = self._queues.get(component_id)
        if queue:
            return queue.popleft()
        if self._fallback is not None:
            return self._fallback.sample(component_id)
        raise LookupError(f"No recorded samples left for component {component_id}")
