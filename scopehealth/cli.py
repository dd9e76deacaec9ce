from __future__ import annotations

import argparse
from datetime import datetime
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Any

import structlog

from scopehealth.core.catalog import default_components
from scopehealth.core.config import load_config, merge_config
from scopehealth.core.contract import SCOPEHEALTH_DECISION_VERSION
from scopehealth.core.engine import HealthEngine, SweepResult
from scopehealth.core.fleet import fleet_verdict
from scopehealth.core.ingest import load_components_toml, load_samples_csv, samples_by_component
from scopehealth.core.models import Alert, Component, Severity
from scopehealth.core.monitor import HealthMonitor
from scopehealth.core.snapshot import load_snapshot, save_snapshot
from scopehealth.core.sources import ReplayMetricsSource
from scopehealth.logging_setup import configure_logging
from scopehealth.report.json_report import write_json_report
from scopehealth.report.pdf_report import write_pdf_report
from scopehealth.schema_constants import SCHEMA_VERSION

try:
    SCOPEHEALTH_PACKAGE_VERSION = version("scopehealth")
except PackageNotFoundError:
    SCOPEHEALTH_PACKAGE_VERSION = "dev"

logger = structlog.get_logger(__name__)

# Alerts echoed at the end of a run
MAX_PRINTED_ALERTS = 20


def _console_safe(s: str) -> str:
    """Keep console output ASCII-safe; the PDF keeps the original text."""
    return (
        str(s)
        .replace("°", " deg")
        .replace("→", "->")
        .replace("•", "-")
    )


def _require_existing_file(path: Path, label: str) -> None:
    if not path.exists():
        raise FileNotFoundError(f"{label} not found: {path}")
    if path.is_dir():
        raise IsADirectoryError(f"{label} is a directory, expected a file: {path}")


def _format_alert(a: Alert) -> str:
    return _console_safe(f"[{a.severity.value.upper()}] {a.component_id} {a.type.value}: {a.message}")


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="scopehealth", description="ScopeHealth: equipment health scoring and prediction")

    p.add_argument("--config", default=None, help="Path to config TOML (optional)")
    p.add_argument("--components", default=None, help="Components TOML (default: built-in rig)")
    p.add_argument("--samples", default=None, help="Samples CSV to replay instead of simulated readings")
    p.add_argument("--state", default=None, help="State snapshot JSON, loaded before and saved after the run")
    p.add_argument("--out", default=None, help="Output PDF path")
    p.add_argument(
        "--json-out",
        "--json",
        dest="json_out",
        default=None,
        help="JSON report output path",
    )
    p.add_argument("--ticks", type=int, default=None, help="Number of health sweeps to run")
    p.add_argument(
        "--interval",
        dest="update_interval",
        type=float,
        default=None,
        help="Seconds between sweeps in --watch mode (clamped to 10..3600)",
    )
    p.add_argument(
        "--watch",
        action="store_true",
        help="Run sweeps on the monitor timer, one per interval, until Ctrl-C (or --ticks sweeps)",
    )
    p.add_argument("--seed", type=int, default=None, help="Simulator seed for reproducible readings")
    p.add_argument(
        "--critical-only",
        dest="critical_alerts_only",
        action="store_true",
        default=None,
        help="Only echo critical alerts",
    )
    p.add_argument("--log-level", default=None, help="Log level (DEBUG, INFO, WARNING, ...)")
    p.add_argument("--log-json", dest="log_json", action="store_true", default=None, help="Emit JSON log lines")
    p.add_argument("--version", action="version", version=f"%(prog)s {SCOPEHEALTH_PACKAGE_VERSION}")

    return p


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)

    # CLI explicit overrides file config; unset flags are None and never win
    cli_explicit: dict[str, Any] = {k: v for k, v in vars(args).items() if k not in ("config", "watch") and v is not None}
    cfg = merge_config(load_config(args.config), cli_explicit)

    configure_logging(cfg.log_level, json_logs=cfg.log_json)
    notes: list[str] = []

    # ---- Fail fast on missing inputs ----
    components_path = Path(cfg.components) if cfg.components else None
    samples_path = Path(cfg.samples) if cfg.samples else None
    try:
        if components_path is not None:
            _require_existing_file(components_path, "Components file")
        if samples_path is not None:
            _require_existing_file(samples_path, "Samples CSV")
    except (FileNotFoundError, IsADirectoryError) as e:
        print(f"ERROR: {e}")
        return 2

    components: list[Component]
    if components_path is not None:
        loaded = load_components_toml(components_path)
        notes.extend(loaded.issues)
        components = loaded.components
    else:
        components = default_components()

    engine = HealthEngine(seed=cfg.seed)

    state_path = Path(cfg.state)
    restored = load_snapshot(engine, state_path)
    notes.extend(restored.issues)

    for c in components:
        engine.register_component(c)

    if not engine.components():
        print("ERROR: no components to monitor")
        for msg in notes:
            print(f" - {_console_safe(msg)}")
        return 1

    sweeps = cfg.ticks
    if samples_path is not None:
        ingest = load_samples_csv(samples_path)
        notes.extend(ingest.issues)
        recorded = samples_by_component(ingest.df)
        unknown = sorted(set(recorded) - set(engine.registry.ids()))
        if unknown:
            notes.append(f"Samples for unregistered components ignored: {unknown}")
        engine.source = ReplayMetricsSource(recorded, fallback=engine.source)
        sweeps = max(sweeps, max((len(v) for v in recorded.values()), default=0))

    raised: list[Alert] = []
    threshold = Severity.CRITICAL if cfg.critical_alerts_only else Severity.WARNING
    engine.on_alert(raised.append, min_severity=threshold)

    def record_failures(result: SweepResult) -> None:
        for component_id, err in result.failures.items():
            notes.append(f"Update failed for {component_id}: {err}")

    if cfg.monitoring_enabled:
        if args.watch:
            monitor = HealthMonitor(engine, cfg.update_interval)
            # open-ended unless --ticks or a replay bounds it
            limit = sweeps if args.ticks is not None or samples_path is not None else None
            print(f"Watching {len(engine.components())} components every {monitor.interval:g}s (Ctrl-C to stop)")
            try:
                monitor.run(max_sweeps=limit, on_sweep=record_failures)
            except KeyboardInterrupt:
                monitor.stop()
                notes.append(f"Watch interrupted after {monitor.sweeps} sweeps.")
        else:
            for _ in range(sweeps):
                record_failures(engine.update_all())
        engine.refresh_baselines()
    else:
        notes.append("Monitoring disabled; report built from restored state only.")

    # ---- Reports ----
    generated_at = datetime.now().strftime("%Y-%m-%d %H:%M")
    latest = engine.latest_statuses()
    fleet_df = engine.fleet_summary()
    verdict = fleet_verdict(fleet_df)
    overview = engine.get_system_health_overview()
    upcoming = engine.get_upcoming_maintenance()

    out_pdf = write_pdf_report(
        cfg.out,
        fleet_df=fleet_df,
        verdict=verdict,
        overview=overview,
        latest=latest,
        upcoming=upcoming,
        generated_at=generated_at,
        notes=notes,
        decision_version=SCOPEHEALTH_DECISION_VERSION,
    )
    json_out = write_json_report(
        cfg.json_out,
        generated_at=generated_at,
        decision_version=SCOPEHEALTH_DECISION_VERSION,
        schema_version=SCHEMA_VERSION,
        overview=overview,
        verdict=verdict,
        fleet_df=fleet_df,
        latest=latest,
        upcoming=upcoming,
        notes=notes,
    )
    saved_state = save_snapshot(engine, state_path)

    logger.info("run_complete", sweeps=sweeps, alerts=len(raised), components=overview.total_components)

    print(f"Report generated: {out_pdf.resolve()}")
    print(f"JSON saved:       {json_out.resolve()}")
    print(f"State saved:      {saved_state.resolve()}")
    print(
        f"Overview:         {overview.total_components} components | score {overview.overall_score}/100 | "
        f"healthy {overview.healthy_components} | warning {overview.warning_components} | "
        f"critical {overview.critical_components} | active alerts {overview.active_alerts}"
    )
    print(f"Fleet Verdict:    {_console_safe(verdict)}")

    if raised:
        print(f"Alerts raised ({len(raised)}, showing last {min(len(raised), MAX_PRINTED_ALERTS)}):")
        for a in raised[-MAX_PRINTED_ALERTS:]:
            print(f" - {_format_alert(a)}")

    if notes:
        print("Notes:")
        for msg in notes:
            print(f" - {_console_safe(msg)}")

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
