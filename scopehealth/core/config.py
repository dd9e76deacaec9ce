from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

try:
    import tomllib  # py3.11+
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # type: ignore

from scopehealth.core.contract import DEFAULT_UPDATE_INTERVAL
from scopehealth.core.monitor import clamp_interval


# ----------------------------
# Primary config object
# ----------------------------

@dataclass(frozen=True)
class ScopeHealthConfig:
    """
    Single, flattened config object used by the CLI/runtime.

    Supports a simple table:
      [scopehealth]
      components, samples, state, out, json_out, update_interval, ticks,
      seed, monitoring_enabled, critical_alerts_only, log_level, log_json

    Also supports structured style:
      [monitor], [alerts], [report], [logging]
    """
    # IO
    components: str | None = None
    samples: str | None = None
    state: str = "outputs/scopehealth_state.json"
    out: str = "outputs/scopehealth_report.pdf"
    json_out: str = "outputs/scopehealth_report.json"

    # monitoring knobs
    update_interval: float = float(DEFAULT_UPDATE_INTERVAL)
    ticks: int = 1
    seed: int | None = None
    monitoring_enabled: bool = True

    # alerting / logging
    critical_alerts_only: bool = False
    log_level: str = "INFO"
    log_json: bool = False


# ----------------------------
# Helpers
# ----------------------------

def _as_dict(x: Any) -> dict[str, Any]:
    return x if isinstance(x, dict) else {}


def _get(d: dict[str, Any], key: str, default: Any) -> Any:
    return d.get(key, default) if isinstance(d, dict) else default


def _coerce_float(x: Any, default: float) -> float:
    try:
        return float(x)
    except (TypeError, ValueError):
        return default


def _coerce_int(x: Any, default: int) -> int:
    try:
        return int(x)
    except (TypeError, ValueError):
        return default


def _coerce_opt_int(x: Any) -> int | None:
    if x is None or str(x).strip() == "":
        return None
    try:
        return int(x)
    except (TypeError, ValueError):
        return None


def _coerce_bool(x: Any, default: bool) -> bool:
    if isinstance(x, bool):
        return x
    if isinstance(x, str):
        s = x.strip().lower()
        if s in ("1", "true", "yes", "on"):
            return True
        if s in ("0", "false", "no", "off"):
            return False
    return default


def _coerce_str(x: Any, default: str) -> str:
    if x is None:
        return default
    s = str(x)
    return s if s.strip() else default


def _coerce_opt_str(x: Any) -> str | None:
    if x is None:
        return None
    s = str(x).strip()
    return s or None


# ----------------------------
# Load + merge
# ----------------------------

def load_config(path: str | Path | None) -> ScopeHealthConfig:
    """
    Load TOML config. If missing/None, returns safe defaults.
    Never raises for missing file (config is optional).
    """
    if not path:
        return ScopeHealthConfig()

    p = Path(path)
    if not p.exists():
        return ScopeHealthConfig()

    data = tomllib.loads(p.read_text(encoding="utf-8"))
    d = ScopeHealthConfig()

    # Preferred simple table
    sh = _as_dict(data.get("scopehealth", {}))

    # Optional structured tables
    monitor = _as_dict(data.get("monitor", {}))
    alerts = _as_dict(data.get("alerts", {}))
    report = _as_dict(data.get("report", {}))
    logging_tbl = _as_dict(data.get("logging", {}))

    update_interval = _coerce_float(
        _get(sh, "update_interval", _get(monitor, "update_interval", d.update_interval)),
        d.update_interval,
    )

    return ScopeHealthConfig(
        components=_coerce_opt_str(_get(sh, "components", None)),
        samples=_coerce_opt_str(_get(sh, "samples", None)),
        state=_coerce_str(_get(sh, "state", d.state), d.state),
        out=_coerce_str(_get(sh, "out", _get(report, "out", d.out)), d.out),
        json_out=_coerce_str(_get(sh, "json_out", _get(report, "json_out", d.json_out)), d.json_out),
        update_interval=clamp_interval(update_interval),
        ticks=max(1, _coerce_int(_get(sh, "ticks", _get(monitor, "ticks", d.ticks)), d.ticks)),
        seed=_coerce_opt_int(_get(sh, "seed", _get(monitor, "seed", None))),
        monitoring_enabled=_coerce_bool(
            _get(sh, "monitoring_enabled", _get(monitor, "enabled", d.monitoring_enabled)),
            d.monitoring_enabled,
        ),
        critical_alerts_only=_coerce_bool(
            _get(sh, "critical_alerts_only", _get(alerts, "critical_only", d.critical_alerts_only)),
            d.critical_alerts_only,
        ),
        log_level=_coerce_str(_get(sh, "log_level", _get(logging_tbl, "level", d.log_level)), d.log_level).upper(),
        log_json=_coerce_bool(_get(sh, "log_json", _get(logging_tbl, "json", d.log_json)), d.log_json),
    )


def merge_config(cfg: ScopeHealthConfig, args: Any) -> ScopeHealthConfig:
    """
    Merge CLI args over file config.

    `args` may be an argparse Namespace or a plain mapping. A value applies
    only if it is present and not None/empty.
    """
    def lookup(name: str) -> Any:
        if isinstance(args, Mapping):
            return args.get(name)
        return getattr(args, name, None)

    def pick_str(name: str, cur: str) -> str:
        v = lookup(name)
        if v is not None and str(v).strip():
            return str(v).strip()
        return cur

    def pick_opt_str(name: str, cur: str | None) -> str | None:
        v = lookup(name)
        if v is None:
            return cur
        s = str(v).strip()
        return s or cur

    def pick_float(name: str, cur: float) -> float:
        v = lookup(name)
        return cur if v is None else _coerce_float(v, cur)

    def pick_int(name: str, cur: int) -> int:
        v = lookup(name)
        return cur if v is None else _coerce_int(v, cur)

    def pick_opt_int(name: str, cur: int | None) -> int | None:
        v = lookup(name)
        if v is None:
            return cur
        parsed = _coerce_opt_int(v)
        return cur if parsed is None else parsed

    def pick_bool(name: str, cur: bool) -> bool:
        v = lookup(name)
        return cur if v is None else _coerce_bool(v, cur)

    return ScopeHealthConfig(
        components=pick_opt_str("components", cfg.components),
        samples=pick_opt_str("samples", cfg.samples),
        state=pick_str("state", cfg.state),
        out=pick_str("out", cfg.out),
        json_out=pick_str("json_out", cfg.json_out),
        update_interval=clamp_interval(pick_float("update_interval", cfg.update_interval)),
        ticks=max(1, pick_int("ticks", cfg.ticks)),
        seed=pick_opt_int("seed", cfg.seed),
        monitoring_enabled=pick_bool("monitoring_enabled", cfg.monitoring_enabled),
        critical_alerts_only=pick_bool("critical_alerts_only", cfg.critical_alerts_only),
        log_level=pick_str("log_level", cfg.log_level).upper(),
        log_json=pick_bool("log_json", cfg.log_json),
    )
