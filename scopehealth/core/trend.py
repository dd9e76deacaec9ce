from __future__ import annotations

from typing import Sequence

import numpy as np

from scopehealth.core.contract import (
    TREND_FLUCTUATION_RATIO,
    TREND_MIN_POINTS,
    TREND_STABLE_CHANGE,
    TREND_WINDOW,
)
from scopehealth.core.models import HealthStatus, MetricSample, Trend, Trends

# Metrics where a smaller reading means a healthier component.
LOWER_IS_BETTER = ("accuracy", "response_time")


def analyze_trend(values: Sequence[float], current: float, lower_is_better: bool = False) -> Trend:
    """
    Classify the direction of a short metric series.

    `values` is the recent history window; `current` is the reading being
    analyzed and does not enter the statistics. Fluctuation is checked before
    direction, and the fluctuation band is relative to |mean| so sub-zero
    temperatures are not flagged on sign alone.
    """
    if len(values) < TREND_MIN_POINTS:
        return Trend.STABLE

    v = np.asarray(values, dtype=float)
    mean = float(v.mean())
    std = float(v.std())  # population

    if std > abs(mean) * TREND_FLUCTUATION_RATIO:
        return Trend.FLUCTUATING

    half = len(v) // 2
    first = float(v[:half].mean())
    second = float(v[half:].mean())

    if first == 0.0:
        if second == 0.0:
            return Trend.STABLE
        change = float(np.sign(second))
    else:
        change = (second - first) / abs(first)

    if abs(change) < TREND_STABLE_CHANGE:
        return Trend.STABLE

    if lower_is_better:
        return Trend.IMPROVING if change < 0 else Trend.DEGRADING
    return Trend.RISING if change > 0 else Trend.FALLING


def compute_trends(history: Sequence[HealthStatus], metrics: MetricSample) -> Trends:
    """
    Trends for temperature, power, accuracy and response time from the last
    TREND_WINDOW prior records. Shorter histories are reported as stable.
    """
    if len(history) < TREND_WINDOW:
        return Trends()

    recent = list(history)[-TREND_WINDOW:]

    def series(name: str) -> list[float]:
        return [float(getattr(h.metrics, name)) for h in recent]

    return Trends(
        temperature=analyze_trend(series("temperature"), metrics.temperature),
        power=analyze_trend(series("power"), metrics.power),
        accuracy=analyze_trend(series("accuracy"), metrics.accuracy, lower_is_better=True),
        response_time=analyze_trend(series("response_time"), metrics.response_time, lower_is_better=True),
    )
