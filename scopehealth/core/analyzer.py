from __future__ import annotations

from datetime import datetime
from typing import Sequence

from scopehealth.core.models import (
    SERVICE_TYPES,
    Component,
    HealthStatus,
    MaintenanceRecord,
    MaintenanceType,
    MetricSample,
)
from scopehealth.core.performance import compute_performance
from scopehealth.core.prediction import predict
from scopehealth.core.scoring import classify, score_sample
from scopehealth.core.trend import compute_trends


def _latest(records: Sequence[MaintenanceRecord], *types: MaintenanceType) -> MaintenanceRecord | None:
    matches = [r for r in records if r.type in types]
    if not matches:
        return None
    return max(matches, key=lambda r: r.date)


def analyze(
    component: Component,
    metrics: MetricSample,
    history: Sequence[HealthStatus],
    maintenance: Sequence[MaintenanceRecord],
    now: datetime,
) -> HealthStatus:
    """
    Turn one metric sample into a HealthStatus.

    `history` is the component's prior records (oldest first, current sample
    excluded); `maintenance` is its ledger in any order. Neither is modified.
    """
    last_service = _latest(maintenance, *SERVICE_TYPES)
    last_calibration = _latest(maintenance, MaintenanceType.CALIBRATION)

    trends = compute_trends(history, metrics)
    result = score_sample(component, metrics, last_service, now)
    predictions = predict(component, metrics, trends, last_service, last_calibration, now)
    performance = compute_performance(history)

    return HealthStatus(
        component=component,
        metrics=metrics,
        timestamp=now,
        overall=classify(result.score),
        score=result.score,
        trends=trends,
        alerts=result.alerts,
        predictions=predictions,
        performance=performance,
    )
