"""
Plain-dict encoding of the domain records.

Every dict produced here is JSON-safe (datetimes become ISO strings, enums
their values) and decodes back into an equal record.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from scopehealth.core.models import (
    METRIC_FIELDS,
    Alert,
    AlertType,
    Component,
    ComponentType,
    FailureRisk,
    HealthLevel,
    HealthStatus,
    MaintenanceRecord,
    MaintenanceType,
    MetricSample,
    Performance,
    PerformanceBaseline,
    Predictions,
    Severity,
    Specifications,
    TemperatureRange,
    Trend,
    Trends,
)


def parse_datetime(x: Any) -> datetime:
    if isinstance(x, datetime):
        return x.replace(tzinfo=None) if x.tzinfo is not None else x
    if isinstance(x, date):
        return datetime(x.year, x.month, x.day)
    s = str(x).strip()
    if s.endswith("Z"):
        s = s[:-1]
    dt = datetime.fromisoformat(s)
    return dt.replace(tzinfo=None) if dt.tzinfo is not None else dt


def _opt_datetime(x: Any) -> datetime | None:
    return None if x in (None, "") else parse_datetime(x)


def _iso(x: datetime | None) -> str | None:
    return None if x is None else x.isoformat()


def _opt_float(x: Any) -> float | None:
    return None if x is None else float(x)


# ----------------------------
# Components
# ----------------------------

def range_to_dict(r: TemperatureRange | None) -> dict[str, float] | None:
    return None if r is None else {"min": r.min, "max": r.max}


def range_from_dict(d: Any) -> TemperatureRange | None:
    if d is None:
        return None
    return TemperatureRange(min=float(d["min"]), max=float(d["max"]))


def component_to_dict(c: Component) -> dict[str, Any]:
    s = c.specifications
    return {
        "id": c.id,
        "name": c.name,
        "type": c.type.value,
        "manufacturer": c.manufacturer,
        "model": c.model,
        "serial_number": c.serial_number,
        "firmware_version": c.firmware_version,
        "install_date": _iso(c.install_date),
        "last_maintenance": _iso(c.last_maintenance),
        "warranty_expiry": _iso(c.warranty_expiry),
        "expected_lifetime": c.expected_lifetime,
        "critical_temperature_range": range_to_dict(c.critical_temperature_range),
        "optimal_temperature_range": range_to_dict(c.optimal_temperature_range),
        "max_operating_hours": c.max_operating_hours,
        "maintenance_interval": c.maintenance_interval,
        "calibration_interval": c.calibration_interval,
        "specifications": {
            "accuracy": s.accuracy,
            "repeatability": s.repeatability,
            "max_load": s.max_load,
            "power_consumption": s.power_consumption,
            "operating_temperature": range_to_dict(s.operating_temperature),
            "extra": dict(s.extra),
        },
    }


_SPEC_KEYS = ("accuracy", "repeatability", "max_load", "power_consumption", "operating_temperature", "extra")


def component_from_dict(d: dict[str, Any]) -> Component:
    """
    Build a Component. Unknown specification keys land in `specifications.extra`.
    Raises KeyError/ValueError on missing or malformed fields.
    """
    spec = dict(d.get("specifications") or {})
    extra = dict(spec.get("extra") or {})
    extra.update({k: v for k, v in spec.items() if k not in _SPEC_KEYS})

    return Component(
        id=str(d["id"]),
        name=str(d.get("name", d["id"])),
        type=ComponentType(d["type"]),
        manufacturer=str(d.get("manufacturer", "")),
        model=str(d.get("model", "")),
        serial_number=str(d.get("serial_number", "")),
        firmware_version=str(d.get("firmware_version", "")),
        install_date=parse_datetime(d["install_date"]),
        last_maintenance=_opt_datetime(d.get("last_maintenance")),
        warranty_expiry=_opt_datetime(d.get("warranty_expiry")),
        expected_lifetime=float(d["expected_lifetime"]),
        critical_temperature_range=range_from_dict(d["critical_temperature_range"]),
        optimal_temperature_range=range_from_dict(d["optimal_temperature_range"]),
        max_operating_hours=float(d.get("max_operating_hours", 12)),
        maintenance_interval=float(d["maintenance_interval"]),
        calibration_interval=float(d["calibration_interval"]),
        specifications=Specifications(
            accuracy=_opt_float(spec.get("accuracy")),
            repeatability=_opt_float(spec.get("repeatability")),
            max_load=_opt_float(spec.get("max_load")),
            power_consumption=_opt_float(spec.get("power_consumption")),
            operating_temperature=range_from_dict(spec.get("operating_temperature")),
            extra=extra,
        ),
    )


# ----------------------------
# Samples
# ----------------------------

def sample_to_dict(m: MetricSample) -> dict[str, Any]:
    out: dict[str, Any] = {"timestamp": _iso(m.timestamp)}
    for name in METRIC_FIELDS:
        out[name] = float(getattr(m, name))
    return out


def sample_from_dict(d: dict[str, Any]) -> MetricSample:
    values = {name: float(d.get(name, 0.0)) for name in METRIC_FIELDS}
    return MetricSample(timestamp=parse_datetime(d["timestamp"]), **values)


def _opt_sample(d: Any) -> MetricSample | None:
    return None if d is None else sample_from_dict(d)


# ----------------------------
# Maintenance + baselines
# ----------------------------

def record_to_dict(r: MaintenanceRecord) -> dict[str, Any]:
    return {
        "id": r.id,
        "component_id": r.component_id,
        "date": _iso(r.date),
        "type": r.type.value,
        "description": r.description,
        "technician": r.technician,
        "duration": r.duration,
        "cost": r.cost,
        "parts_replaced": list(r.parts_replaced),
        "notes": r.notes,
        "before_metrics": None if r.before_metrics is None else sample_to_dict(r.before_metrics),
        "after_metrics": None if r.after_metrics is None else sample_to_dict(r.after_metrics),
        "next_scheduled": _iso(r.next_scheduled),
    }


def record_from_dict(d: dict[str, Any]) -> MaintenanceRecord:
    return MaintenanceRecord(
        id=str(d["id"]),
        component_id=str(d["component_id"]),
        date=parse_datetime(d["date"]),
        type=MaintenanceType(d["type"]),
        description=str(d.get("description", "")),
        technician=str(d.get("technician", "")),
        duration=float(d.get("duration", 0.0)),
        cost=_opt_float(d.get("cost")),
        parts_replaced=tuple(d.get("parts_replaced") or ()),
        notes=d.get("notes"),
        before_metrics=_opt_sample(d.get("before_metrics")),
        after_metrics=_opt_sample(d.get("after_metrics")),
        next_scheduled=_opt_datetime(d.get("next_scheduled")),
    )


def baseline_to_dict(b: PerformanceBaseline) -> dict[str, Any]:
    return {
        "component_id": b.component_id,
        "established_date": _iso(b.established_date),
        "baseline_metrics": sample_to_dict(b.baseline_metrics),
        "tolerances": dict(b.tolerances),
        "update_interval": b.update_interval,
        "last_update": _iso(b.last_update),
    }


def baseline_from_dict(d: dict[str, Any]) -> PerformanceBaseline:
    return PerformanceBaseline(
        component_id=str(d["component_id"]),
        established_date=parse_datetime(d["established_date"]),
        baseline_metrics=sample_from_dict(d["baseline_metrics"]),
        tolerances={str(k): float(v) for k, v in (d.get("tolerances") or {}).items()},
        update_interval=float(d.get("update_interval", 30)),
        last_update=parse_datetime(d["last_update"]),
    )


# ----------------------------
# Health records
# ----------------------------

def alert_to_dict(a: Alert) -> dict[str, Any]:
    return {
        "component_id": a.component_id,
        "type": a.type.value,
        "severity": a.severity.value,
        "message": a.message,
        "timestamp": _iso(a.timestamp),
        "acknowledged": bool(a.acknowledged),
    }


def alert_from_dict(d: dict[str, Any]) -> Alert:
    return Alert(
        component_id=str(d["component_id"]),
        type=AlertType(d["type"]),
        severity=Severity(d["severity"]),
        message=str(d.get("message", "")),
        timestamp=parse_datetime(d["timestamp"]),
        acknowledged=bool(d.get("acknowledged", False)),
    )


def status_to_dict(h: HealthStatus) -> dict[str, Any]:
    """Flat health record; the component is referenced by id only."""
    p = h.predictions
    perf = h.performance
    return {
        "component_id": h.component_id,
        "timestamp": _iso(h.timestamp),
        "overall": h.overall.value,
        "score": int(h.score),
        "metrics": sample_to_dict(h.metrics),
        "trends": {
            "temperature": h.trends.temperature.value,
            "power": h.trends.power.value,
            "accuracy": h.trends.accuracy.value,
            "response_time": h.trends.response_time.value,
        },
        "alerts": [alert_to_dict(a) for a in h.alerts],
        "predictions": {
            "next_maintenance": _iso(p.next_maintenance),
            "next_calibration": _iso(p.next_calibration),
            "estimated_life_remaining": float(p.estimated_life_remaining),
            "failure_risk": p.failure_risk.value,
            "recommended_actions": list(p.recommended_actions),
        },
        "performance": {
            "uptime": perf.uptime,
            "reliability": perf.reliability,
            "efficiency": perf.efficiency,
            "mtbf": perf.mtbf,
        },
    }


def status_from_dict(d: dict[str, Any], component: Component) -> HealthStatus:
    t = d.get("trends") or {}
    p = d["predictions"]
    perf = d["performance"]
    return HealthStatus(
        component=component,
        metrics=sample_from_dict(d["metrics"]),
        timestamp=parse_datetime(d["timestamp"]),
        overall=HealthLevel(d["overall"]),
        score=int(d["score"]),
        trends=Trends(
            temperature=Trend(t.get("temperature", "stable")),
            power=Trend(t.get("power", "stable")),
            accuracy=Trend(t.get("accuracy", "stable")),
            response_time=Trend(t.get("response_time", "stable")),
        ),
        alerts=tuple(alert_from_dict(a) for a in d.get("alerts") or ()),
        predictions=Predictions(
            next_maintenance=parse_datetime(p["next_maintenance"]),
            next_calibration=parse_datetime(p["next_calibration"]),
            estimated_life_remaining=float(p["estimated_life_remaining"]),
            failure_risk=FailureRisk(p["failure_risk"]),
            recommended_actions=tuple(p.get("recommended_actions") or ()),
        ),
        performance=Performance(
            uptime=float(perf["uptime"]),
            reliability=float(perf["reliability"]),
            efficiency=float(perf["efficiency"]),
            mtbf=int(perf["mtbf"]),
        ),
    )
