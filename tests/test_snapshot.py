from __future__ import annotations

import json
from pathlib import Path

from scopehealth.core.engine import HealthEngine
from scopehealth.core.models import AlertType, MaintenanceRecord, MaintenanceType
from scopehealth.core.snapshot import STATE_FORMAT_VERSION, export_state, load_snapshot, load_state, save_snapshot


def _populated(mount_engine, mount, make_sample, clock):
    mount_engine.add_maintenance_record(
        MaintenanceRecord(
            id="svc-1",
            component_id=mount.id,
            date=clock.now,
            type=MaintenanceType.ROUTINE,
            parts_replaced=("RA belt",),
            before_metrics=make_sample(backlash=6.0),
        )
    )
    mount_engine.update_component_health(mount.id, make_sample())
    clock.advance(minutes=1)
    mount_engine.update_component_health(mount.id, make_sample(temperature=75, power=40))
    return mount_engine


def test_export_is_flat_and_json_safe(mount_engine, mount, make_sample, clock):
    engine = _populated(mount_engine, mount, make_sample, clock)

    state = export_state(engine)

    assert state["format_version"] == STATE_FORMAT_VERSION
    assert [c["id"] for c in state["components"]] == [mount.id]
    assert len(state["baselines"]) == 1
    assert len(state["maintenance_records"]) == 1
    assert len(state["health_records"]) == 2
    assert all(h["component_id"] == mount.id for h in state["health_records"])
    json.dumps(state, allow_nan=False)


def test_snapshot_round_trip_restores_engine(tmp_path: Path, mount_engine, mount, make_sample, clock):
    engine = _populated(mount_engine, mount, make_sample, clock)
    engine.acknowledge_alert(mount.id, clock.now, AlertType.POWER)
    path = save_snapshot(engine, tmp_path / "state" / "scopehealth_state.json")

    restored = HealthEngine(clock=clock)
    result = load_snapshot(restored, path)

    assert result.issues == []
    assert (result.components, result.baselines, result.maintenance_records, result.health_records) == (1, 1, 1, 2)
    assert restored.get_component(mount.id) == mount
    assert restored.get_baseline(mount.id) == engine.get_baseline(mount.id)
    assert restored.get_maintenance_history(mount.id) == engine.get_maintenance_history(mount.id)

    latest = restored.get_component_health(mount.id)
    original = engine.get_component_health(mount.id)
    assert latest == original
    assert [a.acknowledged for a in latest.alerts] == [False, True]
    assert restored.get_system_health_overview() == engine.get_system_health_overview()


def test_load_state_reports_bad_entries(mount_engine, mount, make_sample, clock):
    state = export_state(_populated(mount_engine, mount, make_sample, clock))
    state["components"].append({"id": "broken", "type": "toaster"})
    state["health_records"].append({"component_id": "ghost"})
    state["maintenance_records"][0].pop("date")

    fresh = HealthEngine(clock=clock)
    result = load_state(fresh, state)

    assert result.components == 1
    assert result.maintenance_records == 0
    assert result.health_records == 2
    assert len(result.issues) == 3


def test_missing_or_corrupt_snapshot(tmp_path: Path, engine):
    assert load_snapshot(engine, tmp_path / "absent.json").issues == []

    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    result = load_snapshot(engine, bad)

    assert result.components == 0
    assert result.issues and result.issues[0].startswith("Snapshot unreadable")
