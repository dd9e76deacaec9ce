from __future__ import annotations

import random
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Sequence

import pandas as pd

from scopehealth.core.contract import BASELINE_TOLERANCES, BASELINE_UPDATE_INTERVAL_DAYS
from scopehealth.core.history import history_frame
from scopehealth.core.models import (
    METRIC_FIELDS,
    Component,
    HealthStatus,
    MetricSample,
    PerformanceBaseline,
)

# Cumulative counters are not averaged when refreshing a baseline.
_CUMULATIVE = ("operating_time", "cycle_count", "error_count")


def establish_baseline(component: Component, now: datetime, rng: random.Random | None = None) -> PerformanceBaseline:
    """
    Seed a reference operating point for a freshly registered component.

    Power and accuracy come from the component's specifications; the
    remaining metrics are drawn from typical ranges.
    """
    rng = rng or random.Random()
    spec = component.specifications

    metrics = MetricSample(
        timestamp=now,
        temperature=20 + rng.random() * 10,
        humidity=50 + rng.random() * 20,
        voltage=12 + rng.random() * 0.5,
        current=2 + rng.random() * 1,
        power=spec.power_consumption or 50.0,
        vibration=rng.random() * 5,
        operating_time=0.0,
        cycle_count=0.0,
        error_count=0.0,
        response_time=100 + rng.random() * 200,
        accuracy=spec.accuracy or 2.0,
        backlash=rng.random() * 5,
        thermal_drift=rng.random() * 0.1,
    )

    return PerformanceBaseline(
        component_id=component.id,
        established_date=now,
        baseline_metrics=metrics,
        tolerances=dict(BASELINE_TOLERANCES),
        update_interval=BASELINE_UPDATE_INTERVAL_DAYS,
        last_update=now,
    )


def baseline_due(baseline: PerformanceBaseline, now: datetime) -> bool:
    return now - baseline.last_update >= timedelta(days=float(baseline.update_interval))


def refresh_baseline(
    baseline: PerformanceBaseline,
    history: Sequence[HealthStatus],
    now: datetime,
    window: str = "14D",
    min_records: int = 10,
) -> PerformanceBaseline:
    """
    Move the baseline's instantaneous metrics to the mean of the last `window`
    of history once the update interval has elapsed.

    Returns the baseline unchanged if it is not due or there is too little
    history to average.
    """
    if not baseline_due(baseline, now):
        return baseline

    df = history_frame(list(history))
    if df.empty:
        return baseline

    df["timestamp"] = pd.to_datetime(df["timestamp"], errors="coerce")
    df = df.dropna(subset=["timestamp"]).sort_values("timestamp")
    recent = df[df["timestamp"] >= df["timestamp"].max() - pd.Timedelta(window)]
    if len(recent) < min_records:
        return baseline

    means = recent[list(METRIC_FIELDS)].mean()
    changes = {
        name: float(means[name])
        for name in METRIC_FIELDS
        if name not in _CUMULATIVE and pd.notna(means[name])
    }
    metrics = replace(baseline.baseline_metrics, timestamp=now, **changes)

    return replace(baseline, baseline_metrics=metrics, last_update=now)
