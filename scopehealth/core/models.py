from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class ComponentType(str, Enum):
    MOUNT = "mount"
    CAMERA = "camera"
    FOCUSER = "focuser"
    FILTERWHEEL = "filterwheel"
    ROTATOR = "rotator"
    GUIDER = "guider"
    DOME = "dome"
    WEATHER_STATION = "weather_station"


class HealthLevel(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    WARNING = "warning"
    CRITICAL = "critical"
    OFFLINE = "offline"


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {Severity.INFO: 0, Severity.WARNING: 1, Severity.CRITICAL: 2}


class AlertType(str, Enum):
    TEMPERATURE = "temperature"
    POWER = "power"
    ACCURACY = "accuracy"
    MAINTENANCE = "maintenance"
    ERROR = "error"


class MaintenanceType(str, Enum):
    ROUTINE = "routine"
    PREVENTIVE = "preventive"
    CORRECTIVE = "corrective"
    CALIBRATION = "calibration"
    UPGRADE = "upgrade"


class FailureRisk(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Trend(str, Enum):
    STABLE = "stable"
    RISING = "rising"
    FALLING = "falling"
    FLUCTUATING = "fluctuating"
    IMPROVING = "improving"
    DEGRADING = "degrading"


# Maintenance kinds that reset the routine service clock.
SERVICE_TYPES = (MaintenanceType.ROUTINE, MaintenanceType.PREVENTIVE)


@dataclass(frozen=True)
class TemperatureRange:
    min: float
    max: float

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.max


@dataclass(frozen=True)
class Specifications:
    accuracy: float | None = None
    repeatability: float | None = None
    max_load: float | None = None
    power_consumption: float | None = None
    operating_temperature: TemperatureRange | None = None
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Component:
    """
    Registry entry for one tracked hardware unit.

    The temperature envelope must nest: critical.min <= optimal.min <=
    optimal.max <= critical.max.
    """
    id: str
    name: str
    type: ComponentType
    manufacturer: str
    model: str
    serial_number: str
    firmware_version: str
    install_date: datetime
    expected_lifetime: float
    critical_temperature_range: TemperatureRange
    optimal_temperature_range: TemperatureRange
    max_operating_hours: float
    maintenance_interval: float
    calibration_interval: float
    specifications: Specifications = field(default_factory=Specifications)
    last_maintenance: datetime | None = None
    warranty_expiry: datetime | None = None

    def __post_init__(self) -> None:
        crit = self.critical_temperature_range
        opt = self.optimal_temperature_range
        if not (crit.min <= opt.min <= opt.max <= crit.max):
            raise ValueError(
                f"Component {self.id}: optimal range [{opt.min}, {opt.max}] "
                f"must sit inside critical range [{crit.min}, {crit.max}]"
            )


METRIC_FIELDS = (
    "temperature",
    "humidity",
    "voltage",
    "current",
    "power",
    "vibration",
    "operating_time",
    "cycle_count",
    "error_count",
    "response_time",
    "accuracy",
    "backlash",
    "thermal_drift",
)


@dataclass(frozen=True)
class MetricSample:
    timestamp: datetime
    temperature: float = 0.0  # C
    humidity: float = 0.0  # %
    voltage: float = 0.0  # V
    current: float = 0.0  # A
    power: float = 0.0  # W
    vibration: float = 0.0
    operating_time: float = 0.0  # hours since power on
    cycle_count: float = 0.0
    error_count: float = 0.0  # since last reset
    response_time: float = 0.0  # ms
    accuracy: float = 0.0  # arcsec
    backlash: float = 0.0  # arcsec
    thermal_drift: float = 0.0  # arcsec / C


@dataclass
class Alert:
    """The only mutable piece of a HealthStatus: `acknowledged` may be flipped."""
    component_id: str
    type: AlertType
    severity: Severity
    message: str
    timestamp: datetime
    acknowledged: bool = False


@dataclass(frozen=True)
class Trends:
    temperature: Trend = Trend.STABLE
    power: Trend = Trend.STABLE
    accuracy: Trend = Trend.STABLE
    response_time: Trend = Trend.STABLE


@dataclass(frozen=True)
class Predictions:
    next_maintenance: datetime
    next_calibration: datetime
    estimated_life_remaining: float
    failure_risk: FailureRisk
    recommended_actions: tuple[str, ...] = ()


@dataclass(frozen=True)
class Performance:
    uptime: float
    reliability: float
    efficiency: float
    mtbf: int


@dataclass(frozen=True)
class HealthStatus:
    component: Component
    metrics: MetricSample
    timestamp: datetime
    overall: HealthLevel
    score: int
    trends: Trends
    alerts: tuple[Alert, ...]
    predictions: Predictions
    performance: Performance

    @property
    def component_id(self) -> str:
        return self.component.id

    def active_alerts(self) -> list[Alert]:
        return [a for a in self.alerts if not a.acknowledged]


@dataclass(frozen=True)
class MaintenanceRecord:
    id: str
    component_id: str
    date: datetime
    type: MaintenanceType
    description: str = ""
    technician: str = ""
    duration: float = 0.0  # minutes
    cost: float | None = None
    parts_replaced: tuple[str, ...] = ()
    notes: str | None = None
    before_metrics: MetricSample | None = None
    after_metrics: MetricSample | None = None
    next_scheduled: datetime | None = None


@dataclass(frozen=True)
class PerformanceBaseline:
    component_id: str
    established_date: datetime
    baseline_metrics: MetricSample
    tolerances: dict[str, float]
    update_interval: float  # days
    last_update: datetime


@dataclass(frozen=True)
class UpcomingMaintenance:
    component: Component
    due_date: datetime
    type: str  # "routine" | "calibration"


@dataclass(frozen=True)
class SystemHealthOverview:
    total_components: int
    healthy_components: int
    warning_components: int
    critical_components: int
    offline_components: int
    overall_score: int
    active_alerts: int
    upcoming_maintenance: int
