from __future__ import annotations

import random
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable

import pandas as pd
import structlog

from scopehealth.core.alerts import AlertCallback, AlertSink
from scopehealth.core.analyzer import analyze
from scopehealth.core.baseline import establish_baseline, refresh_baseline
from scopehealth.core.contract import HISTORY_LIMIT
from scopehealth.core.fleet import (
    fleet_summary,
    overdue_maintenance,
    system_overview,
    upcoming_maintenance,
)
from scopehealth.core.history import HealthHistory
from scopehealth.core.ledger import MaintenanceLedger
from scopehealth.core.models import (
    Alert,
    AlertType,
    Component,
    HealthLevel,
    HealthStatus,
    MaintenanceRecord,
    MetricSample,
    PerformanceBaseline,
    Severity,
    SystemHealthOverview,
    UpcomingMaintenance,
)
from scopehealth.core.registry import ComponentNotFoundError, ComponentRegistry
from scopehealth.core.sources import MetricsSource, SimulatedMetricsSource

logger = structlog.get_logger(__name__)


@dataclass
class SweepResult:
    statuses: dict[str, HealthStatus] = field(default_factory=dict)
    failures: dict[str, str] = field(default_factory=dict)


class HealthEngine:
    """
    Owns the component registry, health history, maintenance ledger and
    baselines, and is the only thing that mutates them.

    Construct one per application and hand it to whatever drives the periodic
    sweep. Nothing runs until a caller asks for it.

    Example:
        engine = HealthEngine(seed=7)
        engine.register_component(mount)
        status = engine.update_component_health(mount.id)
        overview = engine.get_system_health_overview()
    """

    def __init__(
        self,
        source: MetricsSource | None = None,
        *,
        seed: int | None = None,
        clock: Callable[[], datetime] = datetime.now,
        history_limit: int = HISTORY_LIMIT,
    ) -> None:
        self.clock = clock
        self.registry = ComponentRegistry()
        self.history = HealthHistory(limit=history_limit)
        self.ledger = MaintenanceLedger()
        self.alerts = AlertSink()
        self._baselines: dict[str, PerformanceBaseline] = {}
        self._rng = random.Random(seed)
        self.source: MetricsSource = source or SimulatedMetricsSource(self._baselines, seed=seed, clock=clock)

        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def _existing_lock(self, component_id: str) -> threading.Lock | None:
        with self._guard:
            return self._locks.get(component_id)

    def _lock_for(self, component_id: str) -> threading.Lock:
        """Lock of a registered component; locks only exist for registered ids."""
        lock = self._existing_lock(component_id)
        if lock is None:
            raise ComponentNotFoundError(component_id)
        return lock

    # ----------------------------
    # Registry
    # ----------------------------

    def register_component(self, component: Component) -> None:
        """Upsert. History, ledger and an existing baseline are preserved."""
        with self._guard:
            lock = self._locks.setdefault(component.id, threading.Lock())
        with lock:
            is_new = self.registry.upsert(component)
            if component.id not in self._baselines:
                self._baselines[component.id] = establish_baseline(component, self.clock(), self._rng)
        logger.info("component_registered", component_id=component.id, new=is_new)

    def unregister_component(self, component_id: str) -> None:
        lock = self._existing_lock(component_id)
        if lock is None:
            return
        with lock:
            self.registry.remove(component_id)
            self.history.drop(component_id)
            self.ledger.drop(component_id)
            self._baselines.pop(component_id, None)
        with self._guard:
            self._locks.pop(component_id, None)
        logger.info("component_unregistered", component_id=component_id)

    def get_component(self, component_id: str) -> Component | None:
        return self.registry.get(component_id)

    def components(self) -> list[Component]:
        return self.registry.all()

    def get_baseline(self, component_id: str) -> PerformanceBaseline | None:
        return self._baselines.get(component_id)

    def baselines(self) -> list[PerformanceBaseline]:
        return list(self._baselines.values())

    def restore_baseline(self, baseline: PerformanceBaseline) -> None:
        self._baselines[baseline.component_id] = baseline

    def refresh_baselines(self) -> list[str]:
        """Refresh every due baseline from recent history. Returns refreshed ids."""
        now = self.clock()
        refreshed: list[str] = []
        for component_id in self.registry.ids():
            lock = self._existing_lock(component_id)
            if lock is None:
                continue
            with lock:
                current = self._baselines.get(component_id)
                if current is None:
                    continue
                updated = refresh_baseline(current, self.history.all(component_id), now)
                if updated is not current:
                    self._baselines[component_id] = updated
                    refreshed.append(component_id)
        if refreshed:
            logger.info("baselines_refreshed", components=refreshed)
        return refreshed

    # ----------------------------
    # Health updates
    # ----------------------------

    def update_component_health(self, component_id: str, metrics: MetricSample | None = None) -> HealthStatus:
        """
        Analyze one sample (supplied, or pulled from the metrics source),
        append the result to history and dispatch its alerts.

        Raises ComponentNotFoundError for an unregistered id; nothing is
        recorded in that case.
        """
        with self._lock_for(component_id):
            component = self.registry.require(component_id)
            sample = metrics if metrics is not None else self.source.sample(component_id)
            status = analyze(
                component,
                sample,
                self.history.all(component_id),
                self.ledger.all(component_id),
                self.clock(),
            )
            self.history.append(status)

        logger.debug(
            "health_updated",
            component_id=component_id,
            score=status.score,
            overall=status.overall.value,
            alerts=len(status.alerts),
        )
        self.alerts.dispatch(status.alerts)
        return status

    def update_all(self) -> SweepResult:
        """
        One sweep over every registered component, in registration order.

        A failure for one component is logged and recorded in the result;
        the sweep carries on with the rest.
        """
        result = SweepResult()
        for component_id in self.registry.ids():
            try:
                result.statuses[component_id] = self.update_component_health(component_id)
            except Exception as e:
                logger.exception("component_update_failed", component_id=component_id)
                result.failures[component_id] = str(e)
        logger.info("sweep_complete", updated=len(result.statuses), failed=len(result.failures))
        return result

    # ----------------------------
    # Alerts
    # ----------------------------

    def on_alert(self, callback: AlertCallback, min_severity: Severity | str | None = None) -> int:
        return self.alerts.subscribe(callback, min_severity=min_severity)

    def remove_alert_listener(self, token: int) -> bool:
        return self.alerts.unsubscribe(token)

    def acknowledge_alert(
        self,
        component_id: str,
        timestamp: datetime,
        alert_type: AlertType | str | None = None,
    ) -> int:
        """
        Mark every alert in the component's history raised at exactly
        `timestamp` (optionally only of `alert_type`) as acknowledged.

        All alerts from one analysis pass share a timestamp, so without
        `alert_type` this acknowledges the whole pass; pass a type to flip
        a single alert.

        Returns how many alerts flipped; unknown ids and misses return 0.
        """
        kind = AlertType(alert_type) if alert_type is not None else None
        lock = self._existing_lock(component_id)
        if lock is None:
            return 0
        flipped = 0
        with lock:
            for status in self.history.all(component_id):
                for alert in status.alerts:
                    if alert.timestamp != timestamp or alert.acknowledged:
                        continue
                    if kind is not None and alert.type != kind:
                        continue
                    alert.acknowledged = True
                    flipped += 1
        if flipped:
            logger.info("alerts_acknowledged", component_id=component_id, count=flipped)
        return flipped

    def acknowledge_all_alerts(self) -> int:
        flipped = 0
        for status in self.latest_statuses():
            lock = self._existing_lock(status.component_id)
            if lock is None:
                continue
            with lock:
                for alert in status.active_alerts():
                    alert.acknowledged = True
                    flipped += 1
        return flipped

    def get_critical_alerts(self) -> list[Alert]:
        return [
            a
            for s in self.latest_statuses()
            for a in s.active_alerts()
            if a.severity == Severity.CRITICAL
        ]

    # ----------------------------
    # Maintenance
    # ----------------------------

    def add_maintenance_record(self, record: MaintenanceRecord) -> None:
        """Raises ComponentNotFoundError when the record names an unregistered component."""
        with self._lock_for(record.component_id):
            self.ledger.append(record)
        logger.info(
            "maintenance_recorded",
            component_id=record.component_id,
            record_id=record.id,
            type=record.type.value,
        )

    def update_maintenance_record(self, record_id: str, **changes: Any) -> MaintenanceRecord | None:
        existing = self.ledger.find(record_id)
        if existing is None:
            return None
        lock = self._existing_lock(existing.component_id)
        if lock is None:
            return None
        with lock:
            return self.ledger.replace(record_id, **changes)

    def get_maintenance_history(self, component_id: str) -> list[MaintenanceRecord]:
        return self.ledger.all(component_id)

    def get_upcoming_maintenance(self) -> list[UpcomingMaintenance]:
        return upcoming_maintenance(self.registry.all(), self.ledger, self.clock())

    def get_overdue_maintenance(self) -> list[UpcomingMaintenance]:
        return overdue_maintenance(self.registry.all(), self.ledger, self.clock())

    # ----------------------------
    # Read side
    # ----------------------------

    def restore_history(self, statuses: list[HealthStatus]) -> None:
        """Append previously exported records without re-analysis or dispatch."""
        for status in sorted(statuses, key=lambda s: s.timestamp):
            with self._lock_for(status.component_id):
                self.history.append(status)

    def get_component_health(self, component_id: str) -> HealthStatus | None:
        return self.history.latest(component_id)

    def get_health_history(self, component_id: str, n: int | None = None) -> list[HealthStatus]:
        if n is None:
            return self.history.all(component_id)
        return self.history.recent(component_id, n)

    def latest_statuses(self) -> list[HealthStatus]:
        out = []
        for component_id in self.registry.ids():
            latest = self.history.latest(component_id)
            if latest is not None:
                out.append(latest)
        return out

    def _components_at(self, *levels: HealthLevel) -> list[Component]:
        return [s.component for s in self.latest_statuses() if s.overall in levels]

    def get_healthy_components(self) -> list[Component]:
        return self._components_at(HealthLevel.EXCELLENT, HealthLevel.GOOD)

    def get_components_needing_attention(self) -> list[Component]:
        return self._components_at(HealthLevel.WARNING, HealthLevel.CRITICAL)

    def get_system_health_overview(self) -> SystemHealthOverview:
        return system_overview(
            total_components=len(self.registry),
            latest=self.latest_statuses(),
            upcoming_count=len(self.get_upcoming_maintenance()),
        )

    def fleet_summary(self, trend_points: int = 120) -> pd.DataFrame:
        scores = {
            cid: [float(h.score) for h in self.history.recent(cid, trend_points)]
            for cid in self.registry.ids()
        }
        return fleet_summary(self.latest_statuses(), history_scores=scores)


__all__ = ["ComponentNotFoundError", "HealthEngine", "SweepResult"]
