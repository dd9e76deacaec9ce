from __future__ import annotations

from typing import Sequence

from scopehealth.core.contract import (
    DEFAULT_EFFICIENCY,
    DEFAULT_MTBF_HOURS,
    DEFAULT_RELIABILITY,
    DEFAULT_UPTIME,
    HOURS_PER_RECORD,
)
from scopehealth.core.history import history_frame
from scopehealth.core.models import HealthLevel, HealthStatus, Performance


def compute_performance(history: Sequence[HealthStatus]) -> Performance:
    """
    Uptime, reliability, efficiency and MTBF over a component's prior history.

    Each record stands for HOURS_PER_RECORD hours of service when deriving MTBF.
    """
    if not history:
        return Performance(
            uptime=DEFAULT_UPTIME,
            reliability=DEFAULT_RELIABILITY,
            efficiency=DEFAULT_EFFICIENCY,
            mtbf=DEFAULT_MTBF_HOURS,
        )

    df = history_frame(list(history))
    total = len(df)

    uptime = float((df["overall"] != HealthLevel.OFFLINE.value).sum()) / total * 100.0
    reliability = float((~df["has_critical_alert"].astype(bool)).sum()) / total * 100.0
    efficiency = float(df["score"].astype(float).mean())

    failures = int(df["failure"].astype(bool).sum())
    mtbf = (total * HOURS_PER_RECORD) / failures if failures > 0 else DEFAULT_MTBF_HOURS

    return Performance(
        uptime=round(uptime, 2),
        reliability=round(reliability, 2),
        efficiency=round(efficiency, 2),
        mtbf=int(round(mtbf)),
    )
