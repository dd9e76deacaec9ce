from __future__ import annotations

from datetime import datetime

from scopehealth.core.models import Component, ComponentType, Specifications, TemperatureRange


def default_components() -> list[Component]:
    """Stock rig used when no components file is supplied."""
    return [
        Component(
            id="mount_eq6r",
            name="EQ6-R Pro Mount",
            type=ComponentType.MOUNT,
            manufacturer="Sky-Watcher",
            model="EQ6-R Pro",
            serial_number="SW-EQ6R-2023-001",
            firmware_version="4.38.02",
            install_date=datetime(2023, 1, 15),
            expected_lifetime=50000,
            critical_temperature_range=TemperatureRange(-20, 60),
            optimal_temperature_range=TemperatureRange(0, 40),
            max_operating_hours=12,
            maintenance_interval=90,
            calibration_interval=30,
            specifications=Specifications(
                accuracy=1.5,
                repeatability=0.5,
                max_load=20,
                power_consumption=24,
                operating_temperature=TemperatureRange(-20, 60),
            ),
        ),
        Component(
            id="camera_asi2600mc",
            name="ASI2600MC Pro",
            type=ComponentType.CAMERA,
            manufacturer="ZWO",
            model="ASI2600MC Pro",
            serial_number="ZWO-ASI2600MC-2023-042",
            firmware_version="1.2.3",
            install_date=datetime(2023, 2, 1),
            expected_lifetime=30000,
            critical_temperature_range=TemperatureRange(-40, 70),
            optimal_temperature_range=TemperatureRange(-20, 40),
            max_operating_hours=10,
            maintenance_interval=180,
            calibration_interval=60,
            specifications=Specifications(
                power_consumption=12,
                operating_temperature=TemperatureRange(-40, 70),
            ),
        ),
        Component(
            id="focuser_eaf",
            name="EAF Focuser",
            type=ComponentType.FOCUSER,
            manufacturer="ZWO",
            model="EAF",
            serial_number="ZWO-EAF-2023-018",
            firmware_version="2.1.0",
            install_date=datetime(2023, 2, 15),
            expected_lifetime=40000,
            critical_temperature_range=TemperatureRange(-30, 60),
            optimal_temperature_range=TemperatureRange(-10, 40),
            max_operating_hours=12,
            maintenance_interval=120,
            calibration_interval=45,
            specifications=Specifications(
                accuracy=0.1,
                repeatability=0.05,
                power_consumption=5,
                operating_temperature=TemperatureRange(-30, 60),
            ),
        ),
        Component(
            id="filterwheel_efw",
            name="EFW Filter Wheel",
            type=ComponentType.FILTERWHEEL,
            manufacturer="ZWO",
            model='EFW 2"',
            serial_number="ZWO-EFW-2023-025",
            firmware_version="1.8.2",
            install_date=datetime(2023, 3, 1),
            expected_lifetime=35000,
            critical_temperature_range=TemperatureRange(-30, 60),
            optimal_temperature_range=TemperatureRange(-10, 40),
            max_operating_hours=12,
            maintenance_interval=150,
            calibration_interval=90,
            specifications=Specifications(
                power_consumption=3,
                operating_temperature=TemperatureRange(-30, 60),
            ),
        ),
    ]
