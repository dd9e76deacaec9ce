from __future__ import annotations

from dataclasses import replace
from datetime import timedelta
from typing import Callable

import pytest
import structlog

from scopehealth.core.engine import HealthEngine
from scopehealth.core.models import (
    Component,
    ComponentType,
    MetricSample,
    Specifications,
    TemperatureRange,
)
from tests.helpers.clock import NOW, FixedClock


@pytest.fixture(autouse=True)
def _reset_logging():
    # CLI runs bind structlog to the stream that was current at the time
    yield
    structlog.reset_defaults()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def mount() -> Component:
    """
    Stock mount: critical -20..60 C, optimal 0..40 C, accuracy 1.5",
    24 W, 90-day maintenance, 30-day calibration.
    """
    return Component(
        id="mount_eq6r",
        name="EQ6-R Pro Mount",
        type=ComponentType.MOUNT,
        manufacturer="Sky-Watcher",
        model="EQ6-R Pro",
        serial_number="SW-EQ6R-2023-001",
        firmware_version="4.38.02",
        install_date=NOW - timedelta(days=10),
        expected_lifetime=50000,
        critical_temperature_range=TemperatureRange(-20, 60),
        optimal_temperature_range=TemperatureRange(0, 40),
        max_operating_hours=12,
        maintenance_interval=90,
        calibration_interval=30,
        specifications=Specifications(accuracy=1.5, repeatability=0.5, max_load=20, power_consumption=24),
    )


@pytest.fixture
def make_sample() -> Callable[..., MetricSample]:
    """Healthy mount reading; override any metric by keyword."""
    base = MetricSample(
        timestamp=NOW,
        temperature=20.0,
        humidity=55.0,
        voltage=12.2,
        current=2.0,
        power=24.0,
        vibration=1.0,
        operating_time=100.0,
        cycle_count=1000.0,
        error_count=0.0,
        response_time=200.0,
        accuracy=1.0,
        backlash=1.0,
        thermal_drift=0.05,
    )

    def _make(**overrides: float) -> MetricSample:
        return replace(base, **overrides)

    return _make


@pytest.fixture
def engine(clock: FixedClock) -> HealthEngine:
    return HealthEngine(seed=7, clock=clock)


@pytest.fixture
def mount_engine(engine: HealthEngine, mount: Component) -> HealthEngine:
    engine.register_component(mount)
    return engine
