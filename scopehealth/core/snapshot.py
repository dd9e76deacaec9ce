from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

import structlog

from scopehealth.core.codec import (
    baseline_from_dict,
    baseline_to_dict,
    component_from_dict,
    component_to_dict,
    record_from_dict,
    record_to_dict,
    status_from_dict,
    status_to_dict,
)
from scopehealth.core.engine import HealthEngine

logger = structlog.get_logger(__name__)

STATE_FORMAT_VERSION = 1


@dataclass(frozen=True)
class LoadResult:
    components: int
    baselines: int
    maintenance_records: int
    health_records: int
    issues: list[str]


def export_state(engine: HealthEngine) -> dict[str, Any]:
    """
    Snapshot of everything the engine owns.

    Collections are flat lists and every record carries its component_id, so
    the document survives a JSON round trip unchanged.
    """
    components = engine.components()
    return {
        "format_version": STATE_FORMAT_VERSION,
        "exported_at": datetime.now().isoformat(),
        "components": [component_to_dict(c) for c in components],
        "baselines": [baseline_to_dict(b) for b in engine.baselines()],
        "maintenance_records": [
            record_to_dict(r)
            for c in components
            for r in engine.get_maintenance_history(c.id)
        ],
        "health_records": [
            status_to_dict(h)
            for c in components
            for h in engine.get_health_history(c.id)
        ],
    }


def load_state(engine: HealthEngine, data: dict[str, Any]) -> LoadResult:
    """
    Replay a snapshot into `engine`.

    Malformed entries are skipped and reported in `issues`; health records for
    components absent from the snapshot are dropped.
    """
    issues: list[str] = []
    counts = {"components": 0, "baselines": 0, "maintenance_records": 0, "health_records": 0}

    for i, d in enumerate(data.get("components") or []):
        try:
            engine.register_component(component_from_dict(d))
            counts["components"] += 1
        except (KeyError, TypeError, ValueError) as e:
            issues.append(f"components[{i}] skipped: {e}")

    for i, d in enumerate(data.get("baselines") or []):
        try:
            engine.restore_baseline(baseline_from_dict(d))
            counts["baselines"] += 1
        except (KeyError, TypeError, ValueError) as e:
            issues.append(f"baselines[{i}] skipped: {e}")

    for i, d in enumerate(data.get("maintenance_records") or []):
        try:
            engine.add_maintenance_record(record_from_dict(d))
            counts["maintenance_records"] += 1
        except (LookupError, TypeError, ValueError) as e:
            issues.append(f"maintenance_records[{i}] skipped: {e}")

    statuses = []
    for i, d in enumerate(data.get("health_records") or []):
        component = engine.get_component(str(d.get("component_id", "")))
        if component is None:
            issues.append(f"health_records[{i}] skipped: unknown component {d.get('component_id')!r}")
            continue
        try:
            statuses.append(status_from_dict(d, component))
        except (KeyError, TypeError, ValueError) as e:
            issues.append(f"health_records[{i}] skipped: {e}")
    engine.restore_history(statuses)
    counts["health_records"] = len(statuses)

    if issues:
        logger.warning("snapshot_issues", count=len(issues))

    return LoadResult(issues=issues, **counts)


def save_snapshot(engine: HealthEngine, path: str | Path) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(export_state(engine), indent=2, allow_nan=False), encoding="utf-8")
    return p


def load_snapshot(engine: HealthEngine, path: str | Path) -> LoadResult:
    """Missing or unreadable files load nothing; the reason is in `issues`."""
    p = Path(path)
    if not p.exists():
        return LoadResult(0, 0, 0, 0, issues=[])

    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("snapshot_unreadable", path=str(p), error=str(e))
        return LoadResult(0, 0, 0, 0, issues=[f"Snapshot unreadable: {e}"])

    if not isinstance(data, dict):
        return LoadResult(0, 0, 0, 0, issues=["Snapshot must be a JSON object."])

    return load_state(engine, data)
