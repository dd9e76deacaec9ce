from __future__ import annotations

import json
import math
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Any, Sequence

import pandas as pd

from scopehealth.core.codec import alert_to_dict, status_to_dict
from scopehealth.core.models import HealthStatus, SystemHealthOverview, UpcomingMaintenance


def _json_safe(x: Any) -> Any:
    """
    Convert values into strict JSON-safe Python types.

    Guarantees:
    - No NaN / Infinity (converted to None)
    - pandas/numpy NA -> None
    - numpy scalars -> python primitives
    - datetimes -> ISO strings
    - Recurses through dict/list/tuple
    """
    if isinstance(x, dict):
        return {str(k): _json_safe(v) for k, v in x.items()}

    if isinstance(x, (list, tuple)):
        return [_json_safe(v) for v in x]

    # pd.isna raises on array-likes; anything left here is a scalar
    try:
        if pd.isna(x):
            return None
    except (TypeError, ValueError):
        pass

    if isinstance(x, float):
        if math.isnan(x) or math.isinf(x):
            return None
        return x

    if isinstance(x, (pd.Timestamp, datetime)):
        return x.isoformat()

    # Numpy scalars (float/int/bool) -> python primitives
    if hasattr(x, "item") and callable(x.item):
        try:
            return _json_safe(x.item())
        except (TypeError, ValueError):
            pass

    if isinstance(x, (str, int, bool)) or x is None:
        return x

    if hasattr(x, "value") and isinstance(x.value, str):
        return x.value

    return str(x)


def _df_to_records(df: pd.DataFrame) -> list[dict[str, Any]]:
    if df is None or df.empty:
        return []
    clean = df.copy()
    for col in clean.columns:
        clean[col] = clean[col].apply(_json_safe)
    return clean.to_dict(orient="records")


def _upcoming_to_records(upcoming: Sequence[UpcomingMaintenance]) -> list[dict[str, Any]]:
    return [
        {
            "component_id": u.component.id,
            "name": u.component.name,
            "due_date": u.due_date.isoformat(),
            "type": u.type,
        }
        for u in upcoming
    ]


def build_report_payload(
    *,
    generated_at: str | None,
    decision_version: str | None,
    schema_version: str,
    overview: SystemHealthOverview,
    verdict: str,
    fleet_df: pd.DataFrame,
    latest: Sequence[HealthStatus],
    upcoming: Sequence[UpcomingMaintenance],
    notes: list[str] | None,
) -> dict[str, Any]:
    """
    Assemble the canonical report document.

    `meta` is schema-locked: do not add keys to it without a schema bump.
    """
    payload: dict[str, Any] = {
        "meta": {
            "generated_at": generated_at,
            "decision_version": decision_version,
            "schema_version": schema_version,
        },
        "overview": asdict(overview),
        "fleet": {
            "verdict": verdict,
            "table": _df_to_records(fleet_df),
        },
        "alerts": [alert_to_dict(a) for h in latest for a in h.active_alerts()],
        "upcoming_maintenance": _upcoming_to_records(upcoming),
        "components": [status_to_dict(h) for h in latest],
        "notes": notes or [],
    }
    return _json_safe(payload)


def write_json_report(
    out_path: str | Path,
    *,
    generated_at: str | None,
    decision_version: str | None,
    schema_version: str,
    overview: SystemHealthOverview,
    verdict: str,
    fleet_df: pd.DataFrame,
    latest: Sequence[HealthStatus],
    upcoming: Sequence[UpcomingMaintenance],
    notes: list[str] | None = None,
) -> Path:
    """Writes the report as strict JSON (no NaN/Infinity)."""
    p = Path(out_path)
    p.parent.mkdir(parents=True, exist_ok=True)

    payload = build_report_payload(
        generated_at=generated_at,
        decision_version=decision_version,
        schema_version=schema_version,
        overview=overview,
        verdict=verdict,
        fleet_df=fleet_df,
        latest=latest,
        upcoming=upcoming,
        notes=notes,
    )

    p.write_text(
        json.dumps(payload, indent=2, sort_keys=False, allow_nan=False),
        encoding="utf-8",
    )
    return p
