from __future__ import annotations

from dataclasses import replace
from datetime import timedelta

import pytest

from scopehealth.core.contract import HISTORY_LIMIT
from scopehealth.core.engine import ComponentNotFoundError, HealthEngine
from scopehealth.core.models import (
    AlertType,
    HealthLevel,
    MaintenanceRecord,
    MaintenanceType,
    Severity,
)


def test_registration_is_an_idempotent_upsert(mount_engine, mount, make_sample):
    mount_engine.update_component_health(mount.id, make_sample())
    baseline = mount_engine.get_baseline(mount.id)

    renamed = replace(mount, name="EQ6-R (pier)")
    mount_engine.register_component(renamed)
    mount_engine.register_component(renamed)

    assert len(mount_engine.components()) == 1
    assert mount_engine.get_component(mount.id).name == "EQ6-R (pier)"
    assert len(mount_engine.get_health_history(mount.id)) == 1
    assert mount_engine.get_baseline(mount.id) is baseline


def test_unknown_component_raises_and_records_nothing(engine, make_sample):
    with pytest.raises(ComponentNotFoundError) as exc:
        engine.update_component_health("ghost", make_sample())

    assert isinstance(exc.value, LookupError)
    assert str(exc.value) == "Component ghost not found"
    assert engine.get_health_history("ghost") == []
    assert engine.get_component_health("ghost") is None


def test_mount_scenario_warm_and_power_hungry(mount_engine, mount, make_sample, clock):
    status = mount_engine.update_component_health(mount.id, make_sample(temperature=45, power=40))

    assert status.score == 65
    assert status.overall == HealthLevel.WARNING
    assert {a.type for a in status.alerts} == {AlertType.TEMPERATURE, AlertType.POWER}
    assert all(a.timestamp == clock.now for a in status.alerts)
    assert status.timestamp == clock.now
    assert mount_engine.get_component_health(mount.id) is status
    assert [c.id for c in mount_engine.get_components_needing_attention()] == [mount.id]
    assert mount_engine.get_healthy_components() == []


def test_simulated_source_is_used_when_no_sample_given(mount_engine, mount, clock):
    status = mount_engine.update_component_health(mount.id)

    assert status.metrics.timestamp == clock.now
    assert 0 <= status.score <= 100


def test_history_is_capped(mount, make_sample, clock):
    engine = HealthEngine(seed=1, clock=clock, history_limit=5)
    engine.register_component(mount)
    for i in range(8):
        engine.update_component_health(mount.id, make_sample(operating_time=float(i)))

    history = engine.get_health_history(mount.id)
    assert len(history) == 5
    assert history[0].metrics.operating_time == 3.0
    assert HealthEngine().history.limit == HISTORY_LIMIT


def test_alert_listener_and_removal(mount_engine, mount, make_sample):
    seen = []
    token = mount_engine.on_alert(seen.append, min_severity=Severity.CRITICAL)

    mount_engine.update_component_health(mount.id, make_sample(temperature=45))
    mount_engine.update_component_health(mount.id, make_sample(temperature=75))
    assert [a.severity for a in seen] == [Severity.CRITICAL]

    assert mount_engine.remove_alert_listener(token) is True
    mount_engine.update_component_health(mount.id, make_sample(temperature=75))
    assert len(seen) == 1


def test_acknowledge_alert_by_timestamp_and_type(mount_engine, mount, make_sample, clock):
    mount_engine.update_component_health(mount.id, make_sample(temperature=75, power=40))
    raised_at = clock.now

    assert mount_engine.acknowledge_alert(mount.id, raised_at, AlertType.POWER) == 1
    assert mount_engine.get_system_health_overview().active_alerts == 1
    assert len(mount_engine.get_critical_alerts()) == 1

    assert mount_engine.acknowledge_alert(mount.id, raised_at) == 1
    assert mount_engine.acknowledge_alert(mount.id, raised_at) == 0
    assert mount_engine.acknowledge_alert("ghost", raised_at) == 0
    assert mount_engine.get_critical_alerts() == []


def test_acknowledge_all_alerts(mount_engine, mount, make_sample):
    mount_engine.update_component_health(mount.id, make_sample(temperature=75, error_count=12))

    assert mount_engine.acknowledge_all_alerts() == 2
    assert mount_engine.get_system_health_overview().active_alerts == 0


def test_overview_without_history(engine, mount):
    engine.register_component(mount)

    overview = engine.get_system_health_overview()

    assert overview.total_components == 1
    assert overview.overall_score == 100
    assert overview.healthy_components == 0
    assert overview.upcoming_maintenance == 2


def test_overview_rounds_mean_score(engine, mount, make_sample):
    other = replace(mount, id="mount_b")
    engine.register_component(mount)
    engine.register_component(other)
    engine.update_component_health(mount.id, make_sample())  # 100
    engine.update_component_health(other.id, make_sample(temperature=45))  # 85

    overview = engine.get_system_health_overview()

    assert overview.overall_score == 93  # 92.5 rounds half up
    assert overview.healthy_components == 2


def test_maintenance_schedule_and_overdue(mount_engine, mount):
    # install was 10 days ago: both due dates are still ahead
    assert {u.type for u in mount_engine.get_upcoming_maintenance()} == {"routine", "calibration"}
    assert mount_engine.get_overdue_maintenance() == []

    mount_engine.add_maintenance_record(
        MaintenanceRecord(
            id="cal-1",
            component_id=mount.id,
            date=mount_engine.clock() - timedelta(days=40),
            type=MaintenanceType.CALIBRATION,
        )
    )

    overdue = mount_engine.get_overdue_maintenance()
    assert [(u.component.id, u.type) for u in overdue] == [(mount.id, "calibration")]
    assert [u.type for u in mount_engine.get_upcoming_maintenance()] == ["routine"]


def test_maintenance_resets_overdue_penalty(mount_engine, mount, make_sample, clock):
    mount_engine.add_maintenance_record(
        MaintenanceRecord(id="svc-1", component_id=mount.id, date=clock.now - timedelta(days=120), type=MaintenanceType.ROUTINE)
    )
    before = mount_engine.update_component_health(mount.id, make_sample())

    mount_engine.add_maintenance_record(
        MaintenanceRecord(id="svc-2", component_id=mount.id, date=clock.now, type=MaintenanceType.PREVENTIVE)
    )
    after = mount_engine.update_component_health(mount.id, make_sample())

    assert before.score == 90
    assert after.score == 100
    assert [r.id for r in mount_engine.get_maintenance_history(mount.id)] == ["svc-2", "svc-1"]


def test_update_maintenance_record(mount_engine, mount, clock):
    mount_engine.add_maintenance_record(
        MaintenanceRecord(id="svc-1", component_id=mount.id, date=clock.now, type=MaintenanceType.ROUTINE)
    )

    updated = mount_engine.update_maintenance_record("svc-1", technician="Dana", cost=45.0)

    assert updated.technician == "Dana"
    assert mount_engine.get_maintenance_history(mount.id)[0].cost == 45.0
    assert mount_engine.update_maintenance_record("nope", cost=1.0) is None


class _FlakySource:
    def __init__(self, inner, broken_id):
        self.inner = inner
        self.broken_id = broken_id

    def sample(self, component_id):
        if component_id == self.broken_id:
            raise RuntimeError("serial port closed")
        return self.inner.sample(component_id)


def test_update_all_isolates_failures(engine, mount):
    other = replace(mount, id="focuser")
    engine.register_component(mount)
    engine.register_component(other)
    engine.source = _FlakySource(engine.source, broken_id=mount.id)

    result = engine.update_all()

    assert list(result.statuses) == ["focuser"]
    assert result.failures == {mount.id: "serial port closed"}
    assert engine.get_health_history(mount.id) == []


def test_unregister_drops_everything(mount_engine, mount, make_sample, clock):
    mount_engine.update_component_health(mount.id, make_sample())
    mount_engine.add_maintenance_record(
        MaintenanceRecord(id="svc-1", component_id=mount.id, date=clock.now, type=MaintenanceType.ROUTINE)
    )

    mount_engine.unregister_component(mount.id)

    assert mount_engine.components() == []
    assert mount_engine.get_health_history(mount.id) == []
    assert mount_engine.get_maintenance_history(mount.id) == []
    assert mount_engine.get_baseline(mount.id) is None


def test_fleet_summary_frame(mount_engine, mount, make_sample):
    mount_engine.update_component_health(mount.id, make_sample())
    mount_engine.update_component_health(mount.id, make_sample(temperature=45))

    df = mount_engine.fleet_summary()

    assert df.loc[0, "component_id"] == mount.id
    assert df.loc[0, "score"] == 85
    assert df.loc[0, "trend"] == [100.0, 85.0]


def test_overview_counts_only_components_with_history(engine, mount, make_sample):
    focuser = replace(mount, id="focuser")
    wheel = replace(mount, id="filterwheel")
    for c in (mount, focuser, wheel):
        engine.register_component(c)
    engine.update_component_health(mount.id, make_sample())
    engine.update_component_health(focuser.id, make_sample(temperature=75))  # 70

    o = engine.get_system_health_overview()

    assert o.total_components == 3
    assert o.healthy_components + o.warning_components + o.critical_components + o.offline_components == 2
    assert (o.healthy_components, o.warning_components) == (1, 1)
    assert o.overall_score == 85


def test_unknown_ids_leave_no_lock_behind(mount_engine, mount, make_sample, clock):
    for i in range(50):
        with pytest.raises(ComponentNotFoundError):
            mount_engine.update_component_health(f"ghost-{i}", make_sample())
        assert mount_engine.acknowledge_alert(f"ghost-{i}", clock.now) == 0
    mount_engine.unregister_component("ghost-0")

    assert set(mount_engine._locks) == {mount.id}

    mount_engine.unregister_component(mount.id)
    assert mount_engine._locks == {}


def test_maintenance_record_for_unknown_component_raises(engine, clock):
    with pytest.raises(ComponentNotFoundError):
        engine.add_maintenance_record(
            MaintenanceRecord(id="svc-x", component_id="ghost", date=clock.now, type=MaintenanceType.ROUTINE)
        )

    assert engine.get_maintenance_history("ghost") == []
    assert engine._locks == {}


def test_acknowledge_without_type_covers_the_whole_pass(mount_engine, mount, make_sample, clock):
    status = mount_engine.update_component_health(mount.id, make_sample(temperature=75, power=40, error_count=12))
    assert len(status.alerts) == 3

    assert mount_engine.acknowledge_alert(mount.id, clock.now) == 3
    assert all(a.acknowledged for a in status.alerts)


def test_default_history_cap_keeps_newest_thousand(mount, make_sample, clock):
    engine = HealthEngine(seed=1, clock=clock)
    engine.register_component(mount)
    for i in range(HISTORY_LIMIT + 5):
        engine.update_component_health(mount.id, make_sample(operating_time=float(i)))

    history = engine.get_health_history(mount.id)
    assert HISTORY_LIMIT == 1000
    assert len(history) == 1000
    assert history[0].metrics.operating_time == 5.0
    assert history[-1].metrics.operating_time == float(HISTORY_LIMIT + 4)
