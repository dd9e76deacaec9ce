from __future__ import annotations

from datetime import datetime, timedelta

from scopehealth.core.contract import (
    ACTION_TEXT_ALIGNMENT,
    ACTION_TEXT_CALIBRATION,
    ACTION_TEXT_COOLING,
    ACTION_TEXT_MAINTENANCE,
    ACTION_TEXT_REPLACEMENT,
    ERROR_COUNT_HIGH_RISK,
)
from scopehealth.core.models import (
    Component,
    FailureRisk,
    MaintenanceRecord,
    MetricSample,
    Predictions,
    Trend,
    Trends,
)


def next_due(anchor: datetime, interval_days: float) -> datetime:
    return anchor + timedelta(days=float(interval_days))


def next_maintenance_date(component: Component, last_service: MaintenanceRecord | None) -> datetime:
    """Last routine/preventive service (or install date) plus the maintenance interval."""
    anchor = last_service.date if last_service is not None else component.install_date
    return next_due(anchor, component.maintenance_interval)


def next_calibration_date(component: Component, last_calibration: MaintenanceRecord | None) -> datetime:
    anchor = last_calibration.date if last_calibration is not None else component.install_date
    return next_due(anchor, component.calibration_interval)


def failure_risk(metrics: MetricSample, trends: Trends) -> FailureRisk:
    risk = FailureRisk.LOW
    if trends.accuracy == Trend.DEGRADING or trends.response_time == Trend.DEGRADING:
        risk = FailureRisk.MEDIUM
    if metrics.error_count > ERROR_COUNT_HIGH_RISK or trends.temperature == Trend.FLUCTUATING:
        risk = FailureRisk.HIGH
    return risk


def predict(
    component: Component,
    metrics: MetricSample,
    trends: Trends,
    last_service: MaintenanceRecord | None,
    last_calibration: MaintenanceRecord | None,
    now: datetime,
) -> Predictions:
    next_maintenance = next_maintenance_date(component, last_service)
    next_calibration = next_calibration_date(component, last_calibration)
    life_remaining = max(0.0, float(component.expected_lifetime) - float(metrics.operating_time))
    risk = failure_risk(metrics, trends)

    actions: list[str] = []
    if next_maintenance < now:
        actions.append(ACTION_TEXT_MAINTENANCE)
    if next_calibration < now:
        actions.append(ACTION_TEXT_CALIBRATION)
    if trends.accuracy == Trend.DEGRADING:
        actions.append(ACTION_TEXT_ALIGNMENT)
    if trends.temperature == Trend.RISING:
        actions.append(ACTION_TEXT_COOLING)
    if risk == FailureRisk.HIGH:
        actions.append(ACTION_TEXT_REPLACEMENT)

    return Predictions(
        next_maintenance=next_maintenance,
        next_calibration=next_calibration,
        estimated_life_remaining=life_remaining,
        failure_risk=risk,
        recommended_actions=tuple(actions),
    )
