from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pandas as pd

try:
    import tomllib  # py3.11+
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # type: ignore

from scopehealth.core.codec import component_from_dict
from scopehealth.core.models import METRIC_FIELDS, Component, MetricSample

REQUIRED_COLUMNS = ["timestamp", "component_id"]
SAMPLE_COLUMNS = [*REQUIRED_COLUMNS, *METRIC_FIELDS]


@dataclass(frozen=True)
class IngestResult:
    df: pd.DataFrame
    issues: list[str]


@dataclass(frozen=True)
class ComponentsResult:
    components: list[Component]
    issues: list[str]


def load_samples_csv(path: str | Path) -> IngestResult:
    """
    Load a wide-format samples CSV: one row per (timestamp, component_id)
    with one column per metric.

    Metric columns that are absent are filled with 0.0 and reported.
    """
    path = Path(path)
    issues: list[str] = []

    if not path.exists():
        return IngestResult(df=pd.DataFrame(columns=SAMPLE_COLUMNS), issues=[f"File not found: {path}"])

    df = pd.read_csv(path)

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        issues.append(f"Missing required columns: {missing}")
        return IngestResult(df=pd.DataFrame(columns=SAMPLE_COLUMNS), issues=issues)

    absent = [c for c in METRIC_FIELDS if c not in df.columns]
    if absent:
        issues.append(f"Metric columns not present, defaulted to 0: {absent}")
        for c in absent:
            df[c] = 0.0

    df["timestamp"] = pd.to_datetime(df["timestamp"], errors="coerce")
    bad_ts = int(df["timestamp"].isna().sum())
    if bad_ts:
        issues.append(f"{bad_ts} rows have invalid timestamp")

    for col in METRIC_FIELDS:
        df[col] = pd.to_numeric(df[col], errors="coerce")

    bad_nums = int(df[list(METRIC_FIELDS)].isna().any(axis=1).sum())
    if bad_nums:
        issues.append(f"{bad_nums} rows have invalid numeric metric values")

    df["component_id"] = df["component_id"].astype(str).str.strip()

    df = df.dropna(subset=["timestamp", "component_id", *METRIC_FIELDS]).copy()
    df = df[SAMPLE_COLUMNS].sort_values(["component_id", "timestamp"]).reset_index(drop=True)

    return IngestResult(df=df, issues=issues)


def samples_by_component(df: pd.DataFrame) -> dict[str, list[MetricSample]]:
    """Group a loaded samples frame into time-ordered MetricSample lists."""
    out: dict[str, list[MetricSample]] = {}
    if df is None or df.empty:
        return out

    for component_id, g in df.groupby("component_id", sort=False):
        g = g.sort_values("timestamp")
        out[str(component_id)] = [
            MetricSample(
                timestamp=row["timestamp"].to_pydatetime(),
                **{name: float(row[name]) for name in METRIC_FIELDS},
            )
            for _, row in g.iterrows()
        ]
    return out


def load_components_toml(path: str | Path) -> ComponentsResult:
    """
    Load components from a TOML file of `[[component]]` tables.

    Entries that fail to parse (missing keys, bad enum values, a temperature
    envelope that does not nest) are skipped and reported.
    """
    p = Path(path)
    if not p.exists():
        return ComponentsResult(components=[], issues=[f"File not found: {p}"])

    try:
        data = tomllib.loads(p.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        return ComponentsResult(components=[], issues=[f"Invalid TOML: {e}"])

    entries = data.get("component", [])
    if not isinstance(entries, list):
        return ComponentsResult(components=[], issues=["'component' must be an array of tables."])

    components: list[Component] = []
    issues: list[str] = []
    seen: set[str] = set()
    for i, entry in enumerate(entries):
        try:
            c = component_from_dict(entry)
        except (KeyError, TypeError, ValueError) as e:
            issues.append(f"component[{i}] skipped: {e!r}")
            continue
        if c.id in seen:
            issues.append(f"component[{i}] duplicates id {c.id!r}; later entry wins")
            components = [x for x in components if x.id != c.id]
        seen.add(c.id)
        components.append(c)

    return ComponentsResult(components=components, issues=issues)
