from __future__ import annotations

import argparse
import csv
import random
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Iterable, Sequence

from scopehealth.core.catalog import default_components
from scopehealth.core.ingest import SAMPLE_COLUMNS, load_components_toml
from scopehealth.core.models import Component

# ----------------------------
# Drift profiles
# ----------------------------


@dataclass(frozen=True)
class DriftConfig:
    # per-hour drifts
    temp_drift: float  # C / h
    accuracy_drift: float  # fraction of nominal / h
    noise: float  # relative sigma


@dataclass(frozen=True)
class FailureEvent:
    mode: str  # "overheating" | "bearing_wear"
    component_id: str
    start_day: int
    ramp_days: int
    severity: float  # 0.0..1.0


FAILURE_MODES = ("overheating", "bearing_wear")

PROFILE_PRESETS: dict[str, DriftConfig] = {
    "healthy": DriftConfig(temp_drift=0.0, accuracy_drift=0.0, noise=0.02),
    "degrading": DriftConfig(temp_drift=0.02, accuracy_drift=0.002, noise=0.03),
}
PROFILES = (*PROFILE_PRESETS, "mixed")


# ----------------------------
# Helpers
# ----------------------------

def parse_dt(s: str) -> datetime:
    return datetime.fromisoformat(s)


def iter_timestamps(start: datetime, days: int, step_hours: int) -> Iterable[datetime]:
    total_steps = int((days * 24) / step_hours)
    for i in range(total_steps):
        yield start + timedelta(hours=i * step_hours)


def drift_configs(
    components: Sequence[Component],
    profile: str,
    rng: random.Random,
    noise_override: float | None,
) -> dict[str, DriftConfig]:
    if profile not in PROFILES:
        raise ValueError(f"Unknown profile: {profile}")

    cfg: dict[str, DriftConfig] = {}
    for c in components:
        if profile == "mixed":
            d = DriftConfig(
                temp_drift=rng.uniform(0.0, 0.03),
                accuracy_drift=rng.uniform(0.0, 0.003),
                noise=rng.uniform(0.015, 0.04),
            )
        else:
            d = PROFILE_PRESETS[profile]
        if noise_override is not None:
            d = DriftConfig(d.temp_drift, d.accuracy_drift, noise_override)
        cfg[c.id] = d
    return cfg


def failure_multiplier(day_index: int, event: FailureEvent) -> float:
    """0..severity ramp after start_day over ramp_days."""
    if day_index < event.start_day:
        return 0.0
    if event.ramp_days <= 0:
        return float(event.severity)
    t = (day_index - event.start_day) / float(event.ramp_days)
    return float(event.severity) * max(0.0, min(1.0, t))


def apply_failure_effect(row: dict[str, float], component: Component, m: float, mode: str) -> dict[str, float]:
    """Correlated effects of one failure mode at ramp level `m`."""
    if m <= 0.0:
        return row

    out = dict(row)
    if mode == "overheating":
        headroom = component.critical_temperature_range.max - component.optimal_temperature_range.max
        out["temperature"] += (component.optimal_temperature_range.max - row["temperature"] + headroom * 1.2) * m
        out["power"] *= 1.0 + 0.5 * m
        out["thermal_drift"] += 0.3 * m
    elif mode == "bearing_wear":
        out["vibration"] += 8.0 * m
        out["response_time"] += 6000.0 * m
        out["accuracy"] *= 1.0 + 1.5 * m
        out["backlash"] += 6.0 * m
        out["error_count"] += round(25 * m)
    return out


def nominal_metrics(component: Component) -> dict[str, float]:
    opt = component.optimal_temperature_range
    spec = component.specifications
    power = float(spec.power_consumption or 50.0)
    return {
        "temperature": (opt.min + opt.max) / 2.0,
        "humidity": 55.0,
        "voltage": 12.0,
        "current": power / 12.0,
        "power": power,
        "vibration": 1.0,
        "response_time": 200.0,
        "accuracy": float(spec.accuracy or 2.0),
        "backlash": 1.0,
        "thermal_drift": 0.05,
    }


# ----------------------------
# Core generation
# ----------------------------

def generate_csv(
    out_path: Path,
    start: datetime,
    days: int,
    step_hours: int,
    components: Sequence[Component],
    seed: int | None,
    profile: str,
    noise_override: float | None = None,
    print_summary: bool = False,
    failure_event: FailureEvent | None = None,
) -> int:
    """Write a wide samples CSV (one row per timestamp and component). Returns the row count."""
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    rng = random.Random(seed)
    cfg = drift_configs(components, profile, rng, noise_override)
    nominal = {c.id: nominal_metrics(c) for c in components}
    operating = {c.id: 0.0 for c in components}
    cycles = {c.id: 0 for c in components}

    rows = 0
    with out_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        w.writerow(SAMPLE_COLUMNS)

        for ts in iter_timestamps(start, days, step_hours):
            hours = (ts - start).total_seconds() / 3600.0
            day_index = max(0, min(days - 1, int(hours // 24)))

            for c in components:
                d = cfg[c.id]
                n = nominal[c.id]
                operating[c.id] += step_hours
                cycles[c.id] += rng.randrange(0, 20)

                row = {
                    "temperature": n["temperature"] + d.temp_drift * hours + rng.gauss(0.0, d.noise * 20),
                    "humidity": max(0.0, min(100.0, n["humidity"] + rng.gauss(0.0, d.noise * 200))),
                    "voltage": n["voltage"] + rng.gauss(0.0, d.noise * 2),
                    "current": max(0.0, n["current"] * (1 + rng.gauss(0.0, d.noise))),
                    "power": max(0.0, n["power"] * (1 + rng.gauss(0.0, d.noise))),
                    "vibration": max(0.0, n["vibration"] + rng.gauss(0.0, d.noise * 10)),
                    "operating_time": operating[c.id],
                    "cycle_count": float(cycles[c.id]),
                    "error_count": float(1 if rng.random() < 0.02 else 0),
                    "response_time": max(50.0, n["response_time"] * (1 + rng.gauss(0.0, d.noise))),
                    "accuracy": max(
                        0.01,
                        n["accuracy"] * (1 + d.accuracy_drift * hours + rng.gauss(0.0, d.noise)),
                    ),
                    "backlash": max(0.0, n["backlash"] + rng.gauss(0.0, d.noise * 5)),
                    "thermal_drift": n["thermal_drift"] + rng.gauss(0.0, d.noise * 0.5),
                }

                if failure_event is not None and failure_event.component_id == c.id:
                    m = failure_multiplier(day_index, failure_event)
                    row = apply_failure_effect(row, c, m, failure_event.mode)

                w.writerow([
                    ts.strftime("%Y-%m-%d %H:%M:%S"),
                    c.id,
                    *(f"{row[name]:.4f}" for name in SAMPLE_COLUMNS[2:]),
                ])
                rows += 1

    if print_summary:
        print(f"Generated {out_path} with {rows:,} rows")
        print(
            f"Components: {', '.join(c.id for c in components)} | Days: {days} | "
            f"Step: {step_hours}h | Profile: {profile} | Seed: {seed}"
        )
        if failure_event is not None:
            print(
                f"Injected failure: mode={failure_event.mode} component={failure_event.component_id} "
                f"start_day={failure_event.start_day} ramp_days={failure_event.ramp_days} "
                f"severity={failure_event.severity}"
            )
    return rows


# ----------------------------
# CLI
# ----------------------------

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="scopehealth-generate",
        description="Generate a synthetic equipment samples CSV for ScopeHealth demo/testing.",
    )

    p.add_argument("--out", default="data/samples.csv", help="Output CSV path (default: data/samples.csv)")
    p.add_argument("--components", default=None,
                   help="Components TOML (default: built-in rig)")
    p.add_argument("--only", default=None,
                   help="Comma-separated component ids to include (default: all)")
    p.add_argument("--start", default="2026-01-01T00:00:00", help="Start datetime (ISO format)")
    p.add_argument("--days", type=int, default=7, help="Number of days to generate")
    p.add_argument("--step-hours", type=int, default=1, help="Sampling interval in hours")
    p.add_argument("--seed", type=int, default=None, help="Random seed for reproducible output")
    p.add_argument("--profile", choices=list(PROFILES), default="healthy", help="Drift profile preset")
    p.add_argument("--noise", type=float, default=None, help="Override relative noise sigma (e.g., 0.02)")
    p.add_argument("--print-summary", action="store_true", help="Print generation summary to console")

    p.add_argument("--inject-failure", action="store_true",
                   help="Inject one correlated failure mode into a single component")
    p.add_argument("--failure-component", default="mount_eq6r",
                   help="Component to apply the failure to (default: mount_eq6r)")
    p.add_argument("--failure-mode", choices=list(FAILURE_MODES), default="overheating",
                   help="Failure mode to inject")
    p.add_argument("--failure-start-day", type=int, default=2, help="Day index when the failure begins")
    p.add_argument("--failure-ramp-days", type=int, default=3, help="Days to ramp to full severity")
    p.add_argument("--failure-severity", type=float, default=0.8, help="Failure severity 0..1")

    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.days <= 0:
        raise SystemExit("--days must be > 0")
    if args.step_hours <= 0:
        raise SystemExit("--step-hours must be > 0")

    if args.components:
        loaded = load_components_toml(args.components)
        for msg in loaded.issues:
            print(f"WARNING: {msg}")
        components = loaded.components
    else:
        components = default_components()

    if args.only:
        wanted = {s.strip() for s in str(args.only).split(",") if s.strip()}
        components = [c for c in components if c.id in wanted]
    if not components:
        raise SystemExit("No components to generate samples for")

    failure_event: FailureEvent | None = None
    if args.inject_failure:
        failure_event = FailureEvent(
            mode=str(args.failure_mode),
            component_id=str(args.failure_component),
            start_day=int(args.failure_start_day),
            ramp_days=int(args.failure_ramp_days),
            severity=float(args.failure_severity),
        )

    generate_csv(
        out_path=Path(args.out),
        start=parse_dt(args.start),
        days=args.days,
        step_hours=args.step_hours,
        components=components,
        seed=args.seed,
        profile=args.profile,
        noise_override=args.noise,
        print_summary=args.print_summary,
        failure_event=failure_event,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
