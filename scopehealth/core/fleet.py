from __future__ import annotations

import math
from datetime import datetime
from typing import Iterable, Sequence

import pandas as pd

from scopehealth.core.ledger import MaintenanceLedger
from scopehealth.core.models import (
    SERVICE_TYPES,
    Component,
    HealthLevel,
    HealthStatus,
    MaintenanceType,
    SystemHealthOverview,
    UpcomingMaintenance,
)
from scopehealth.core.prediction import next_calibration_date, next_maintenance_date

FLEET_COLUMNS = [
    "component_id",
    "name",
    "type",
    "overall",
    "score",
    "failure_risk",
    "active_alerts",
    "top_alert",
    "next_maintenance",
    "next_calibration",
    "life_remaining_h",
    "action",
    "trend",
]

_LEVEL_ORDER = {
    HealthLevel.OFFLINE.value: 0,
    HealthLevel.CRITICAL.value: 1,
    HealthLevel.WARNING.value: 2,
    HealthLevel.GOOD.value: 3,
    HealthLevel.EXCELLENT.value: 4,
}


def maintenance_schedule(
    components: Iterable[Component],
    ledger: MaintenanceLedger,
) -> list[UpcomingMaintenance]:
    """
    Next routine and next calibration due date for every component.

    A component without a record of the relevant kind is scheduled from its
    install date, matching the per-component prediction.
    """
    out: list[UpcomingMaintenance] = []
    for component in components:
        last_service = ledger.last_of(component.id, *SERVICE_TYPES)
        last_calibration = ledger.last_of(component.id, MaintenanceType.CALIBRATION)

        out.append(
            UpcomingMaintenance(
                component=component,
                due_date=next_maintenance_date(component, last_service),
                type="routine",
            )
        )
        out.append(
            UpcomingMaintenance(
                component=component,
                due_date=next_calibration_date(component, last_calibration),
                type="calibration",
            )
        )
    return sorted(out, key=lambda u: u.due_date)


def upcoming_maintenance(
    components: Iterable[Component],
    ledger: MaintenanceLedger,
    now: datetime,
) -> list[UpcomingMaintenance]:
    return [u for u in maintenance_schedule(components, ledger) if u.due_date > now]


def overdue_maintenance(
    components: Iterable[Component],
    ledger: MaintenanceLedger,
    now: datetime,
) -> list[UpcomingMaintenance]:
    return [u for u in maintenance_schedule(components, ledger) if u.due_date < now]


def system_overview(
    total_components: int,
    latest: Sequence[HealthStatus],
    upcoming_count: int,
) -> SystemHealthOverview:
    """
    Roll each component's latest status into fleet counts.

    `latest` holds one entry per component that has any history.
    """
    def count(*levels: HealthLevel) -> int:
        return sum(1 for h in latest if h.overall in levels)

    if latest:
        mean = sum(h.score for h in latest) / len(latest)
        overall_score = int(math.floor(mean + 0.5))
    else:
        overall_score = 100

    return SystemHealthOverview(
        total_components=total_components,
        healthy_components=count(HealthLevel.EXCELLENT, HealthLevel.GOOD),
        warning_components=count(HealthLevel.WARNING),
        critical_components=count(HealthLevel.CRITICAL),
        offline_components=count(HealthLevel.OFFLINE),
        overall_score=overall_score,
        active_alerts=sum(len(h.active_alerts()) for h in latest),
        upcoming_maintenance=upcoming_count,
    )


def _top_alert(status: HealthStatus) -> str:
    active = status.active_alerts()
    if not active:
        return "None"
    worst = max(active, key=lambda a: a.severity.rank)
    return worst.message


def fleet_summary(
    latest: Sequence[HealthStatus],
    history_scores: dict[str, list[float]] | None = None,
) -> pd.DataFrame:
    """
    One row per component with a latest status, worst first.

    `history_scores` maps component id to its score series, rendered as a
    sparkline in the PDF report.
    """
    if not latest:
        return pd.DataFrame(columns=FLEET_COLUMNS)

    history_scores = history_scores or {}
    rows = []
    for h in latest:
        actions = h.predictions.recommended_actions
        rows.append(
            {
                "component_id": h.component.id,
                "name": h.component.name,
                "type": h.component.type.value,
                "overall": h.overall.value,
                "score": int(h.score),
                "failure_risk": h.predictions.failure_risk.value,
                "active_alerts": len(h.active_alerts()),
                "top_alert": _top_alert(h),
                "next_maintenance": h.predictions.next_maintenance.strftime("%Y-%m-%d"),
                "next_calibration": h.predictions.next_calibration.strftime("%Y-%m-%d"),
                "life_remaining_h": round(float(h.predictions.estimated_life_remaining), 1),
                "action": actions[0] if actions else "Monitor",
                "trend": [float(x) for x in history_scores.get(h.component.id, [])],
            }
        )

    df = pd.DataFrame(rows, columns=FLEET_COLUMNS)
    df["_lvl"] = df["overall"].map(_LEVEL_ORDER).fillna(9)
    df = (
        df.sort_values(["_lvl", "score", "component_id"], ascending=[True, True, True])
          .drop(columns="_lvl")
          .reset_index(drop=True)
    )
    return df


def fleet_verdict(fleet_df: pd.DataFrame) -> str:
    if fleet_df.empty:
        return "No fleet data available."

    def ids(*levels: HealthLevel) -> list[str]:
        wanted = [lvl.value for lvl in levels]
        return fleet_df.loc[fleet_df["overall"].isin(wanted), "component_id"].astype(str).tolist()

    down = ids(HealthLevel.OFFLINE, HealthLevel.CRITICAL)
    warn = ids(HealthLevel.WARNING)
    ok = ids(HealthLevel.EXCELLENT, HealthLevel.GOOD)

    parts: list[str] = []
    if down:
        parts.append(f"{', '.join(down)} requires immediate attention")
    if warn:
        parts.append(f"{', '.join(warn)} shows degradation and should be inspected")
    if ok:
        parts.append(f"{', '.join(ok)} remains healthy")

    return ". ".join(parts) + "."
