from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime

import numpy as np

from scopehealth.core.contract import (
    ACCURACY_CRITICAL_FACTOR,
    ACCURACY_WARNING_FACTOR,
    DEFAULT_ACCURACY_ARCSEC,
    DEFAULT_POWER_W,
    ERROR_COUNT_WARNING,
    INITIAL_SCORE,
    LEVEL_CRITICAL_MIN,
    LEVEL_EXCELLENT_MIN,
    LEVEL_GOOD_MIN,
    LEVEL_WARNING_MIN,
    MAX_SCORE,
    MIN_SCORE,
    PENALTY_ACCURACY_CRITICAL,
    PENALTY_ACCURACY_WARNING,
    PENALTY_ERROR_COUNT,
    PENALTY_MAINTENANCE_OVERDUE,
    PENALTY_POWER_DEVIATION,
    PENALTY_SLOW_RESPONSE,
    PENALTY_TEMP_CRITICAL,
    PENALTY_TEMP_OPTIMAL,
    POWER_DEVIATION_RATIO,
    SLOW_RESPONSE_MS,
)
from scopehealth.core.models import (
    Alert,
    AlertType,
    Component,
    HealthLevel,
    MaintenanceRecord,
    MetricSample,
    Severity,
)


@dataclass(frozen=True)
class ScoreResult:
    score: int
    alerts: tuple[Alert, ...]
    penalties: dict[str, int]


def expected_power(component: Component) -> float:
    return component.specifications.power_consumption or DEFAULT_POWER_W


def expected_accuracy(component: Component) -> float:
    return component.specifications.accuracy or DEFAULT_ACCURACY_ARCSEC


def classify(score: float) -> HealthLevel:
    if score >= LEVEL_EXCELLENT_MIN:
        return HealthLevel.EXCELLENT
    if score >= LEVEL_GOOD_MIN:
        return HealthLevel.GOOD
    if score >= LEVEL_WARNING_MIN:
        return HealthLevel.WARNING
    if score >= LEVEL_CRITICAL_MIN:
        return HealthLevel.CRITICAL
    return HealthLevel.OFFLINE


def score_sample(
    component: Component,
    metrics: MetricSample,
    last_service: MaintenanceRecord | None,
    now: datetime,
) -> ScoreResult:
    """
    Apply every scoring rule to one sample.

    Rules are independent; each contributes its penalty and one alert. Alerts
    from one pass share the `now` timestamp.
    """
    penalties: dict[str, int] = {}
    alerts: list[Alert] = []

    def flag(rule: str, penalty: int, kind: AlertType, severity: Severity, message: str) -> None:
        penalties[rule] = penalty
        alerts.append(
            Alert(
                component_id=component.id,
                type=kind,
                severity=severity,
                message=message,
                timestamp=now,
            )
        )

    # Temperature: critical band wins over optimal band
    temp = metrics.temperature
    if not component.critical_temperature_range.contains(temp):
        flag(
            "temperature",
            PENALTY_TEMP_CRITICAL,
            AlertType.TEMPERATURE,
            Severity.CRITICAL,
            f"Temperature {temp:.1f}°C outside critical range",
        )
    elif not component.optimal_temperature_range.contains(temp):
        flag(
            "temperature",
            PENALTY_TEMP_OPTIMAL,
            AlertType.TEMPERATURE,
            Severity.WARNING,
            f"Temperature {temp:.1f}°C outside optimal range",
        )

    # Power
    exp_power = expected_power(component)
    deviation = abs(metrics.power - exp_power) / exp_power
    if deviation > POWER_DEVIATION_RATIO:
        flag(
            "power",
            PENALTY_POWER_DEVIATION,
            AlertType.POWER,
            Severity.WARNING,
            f"Power consumption {metrics.power:.1f}W deviates significantly from expected {exp_power:g}W",
        )

    # Accuracy: stricter band first, bands are exclusive
    exp_acc = expected_accuracy(component)
    if metrics.accuracy > exp_acc * ACCURACY_CRITICAL_FACTOR:
        flag(
            "accuracy",
            PENALTY_ACCURACY_CRITICAL,
            AlertType.ACCURACY,
            Severity.CRITICAL,
            f'Accuracy degraded to {metrics.accuracy:.2f}" (expected: {exp_acc:g}")',
        )
    elif metrics.accuracy > exp_acc * ACCURACY_WARNING_FACTOR:
        flag(
            "accuracy",
            PENALTY_ACCURACY_WARNING,
            AlertType.ACCURACY,
            Severity.WARNING,
            f'Accuracy slightly degraded: {metrics.accuracy:.2f}"',
        )

    if metrics.response_time > SLOW_RESPONSE_MS:
        flag(
            "response_time",
            PENALTY_SLOW_RESPONSE,
            AlertType.ERROR,
            Severity.WARNING,
            f"Slow response time: {metrics.response_time:g}ms",
        )

    if metrics.error_count > ERROR_COUNT_WARNING:
        flag(
            "error_count",
            PENALTY_ERROR_COUNT,
            AlertType.ERROR,
            Severity.WARNING,
            f"High error count: {metrics.error_count:g} errors",
        )

    # Maintenance overdue (only when a service record exists)
    if last_service is not None:
        days_since = (now - last_service.date).total_seconds() / 86400.0
        if days_since > component.maintenance_interval:
            overdue = math.floor(days_since - component.maintenance_interval)
            flag(
                "maintenance",
                PENALTY_MAINTENANCE_OVERDUE,
                AlertType.MAINTENANCE,
                Severity.INFO,
                f"Maintenance overdue by {overdue} days",
            )

    raw = INITIAL_SCORE - sum(penalties.values())
    score = int(np.clip(raw, MIN_SCORE, MAX_SCORE))

    return ScoreResult(score=score, alerts=tuple(alerts), penalties=penalties)
