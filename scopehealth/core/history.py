from __future__ import annotations

from collections import deque
from typing import Iterable

import pandas as pd

from scopehealth.core.contract import HISTORY_LIMIT
from scopehealth.core.models import METRIC_FIELDS, HealthLevel, HealthStatus, Severity


class HealthHistory:
    """
    Append-only, per-component series of HealthStatus records.

    Each component keeps at most `limit` entries; the oldest are evicted first.
    """

    def __init__(self, limit: int = HISTORY_LIMIT) -> None:
        self.limit = int(limit)
        self._series: dict[str, deque[HealthStatus]] = {}

    def append(self, status: HealthStatus) -> None:
        series = self._series.get(status.component_id)
        if series is None:
            series = deque(maxlen=self.limit)
            self._series[status.component_id] = series
        series.append(status)

    def extend(self, statuses: Iterable[HealthStatus]) -> None:
        for s in statuses:
            self.append(s)

    def all(self, component_id: str) -> list[HealthStatus]:
        return list(self._series.get(component_id, ()))

    def recent(self, component_id: str, n: int) -> list[HealthStatus]:
        if n <= 0:
            return []
        series = self._series.get(component_id)
        if not series:
            return []
        return list(series)[-n:]

    def latest(self, component_id: str) -> HealthStatus | None:
        series = self._series.get(component_id)
        return series[-1] if series else None

    def count(self, component_id: str) -> int:
        return len(self._series.get(component_id, ()))

    def drop(self, component_id: str) -> None:
        self._series.pop(component_id, None)

    def component_ids(self) -> list[str]:
        return list(self._series)


def history_frame(history: list[HealthStatus]) -> pd.DataFrame:
    """
    Flatten a component's history into one row per record.

    Columns: timestamp, score, overall, failure, has_critical_alert, plus every
    metric field of the sample the record was derived from.
    """
    columns = ["timestamp", "score", "overall", "failure", "has_critical_alert", *METRIC_FIELDS]
    if not history:
        return pd.DataFrame(columns=columns)

    rows = []
    for h in history:
        row = {
            "timestamp": h.timestamp,
            "score": h.score,
            "overall": h.overall.value,
            "failure": h.overall in (HealthLevel.CRITICAL, HealthLevel.OFFLINE),
            "has_critical_alert": any(a.severity == Severity.CRITICAL for a in h.alerts),
        }
        for name in METRIC_FIELDS:
            row[name] = float(getattr(h.metrics, name))
        rows.append(row)

    return pd.DataFrame(rows, columns=columns)
