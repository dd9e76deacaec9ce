from __future__ import annotations

import json
from dataclasses import replace
from pathlib import Path

import jsonschema
import pytest

from scopehealth.core.contract import SCOPEHEALTH_DECISION_VERSION
from scopehealth.core.fleet import fleet_verdict
from scopehealth.report.json_report import _json_safe, write_json_report
from scopehealth.report.pdf_report import write_pdf_report
from scopehealth.schema_constants import SCHEMA_VERSION
from scopehealth.tools.validate_json import validate_json


def _write_reports(engine, tmp_path: Path) -> tuple[Path, Path]:
    kwargs = dict(
        fleet_df=engine.fleet_summary(),
        verdict=fleet_verdict(engine.fleet_summary()),
        overview=engine.get_system_health_overview(),
        latest=engine.latest_statuses(),
        upcoming=engine.get_upcoming_maintenance(),
        notes=["1 rows have invalid timestamp"],
    )
    json_path = write_json_report(
        tmp_path / "out" / "report.json",
        generated_at="2026-03-01 12:00",
        decision_version=SCOPEHEALTH_DECISION_VERSION,
        schema_version=SCHEMA_VERSION,
        **kwargs,
    )
    pdf_path = write_pdf_report(
        tmp_path / "out" / "report.pdf",
        generated_at="2026-03-01 12:00",
        decision_version=SCOPEHEALTH_DECISION_VERSION,
        **kwargs,
    )
    return json_path, pdf_path


def test_reports_for_a_live_fleet_validate(tmp_path: Path, mount_engine, mount, make_sample) -> None:
    mount_engine.register_component(replace(mount, id="focuser"))
    for _ in range(3):
        mount_engine.update_component_health(mount.id, make_sample(temperature=75, power=40))
        mount_engine.update_component_health("focuser", make_sample())

    json_path, pdf_path = _write_reports(mount_engine, tmp_path)

    assert validate_json(json_path).ok
    assert pdf_path.read_bytes().startswith(b"%PDF")

    doc = json.loads(json_path.read_text(encoding="utf-8"))
    assert doc["meta"]["schema_version"] == SCHEMA_VERSION
    assert doc["overview"]["total_components"] == 2
    assert [row["component_id"] for row in doc["fleet"]["table"]] == [mount.id, "focuser"]
    assert len(doc["alerts"]) == 2
    assert {c["component_id"] for c in doc["components"]} == {mount.id, "focuser"}


def test_reports_for_an_empty_fleet_validate(tmp_path: Path, engine) -> None:
    json_path, pdf_path = _write_reports(engine, tmp_path)

    assert validate_json(json_path).ok
    assert pdf_path.exists()


def test_bundled_schema_rejects_unknown_meta_keys(tmp_path: Path, engine) -> None:
    json_path, _ = _write_reports(engine, tmp_path)
    doc = json.loads(json_path.read_text(encoding="utf-8"))
    doc["meta"]["run_config"] = {"seed": 1}
    json_path.write_text(json.dumps(doc), encoding="utf-8")

    with pytest.raises(jsonschema.ValidationError):
        validate_json(json_path)


def test_json_safe_strips_non_finite_values() -> None:
    import numpy as np

    out = _json_safe({"a": float("nan"), "b": np.int64(3), "c": [np.float64(1.5), float("inf")], "d": None})

    assert out == {"a": None, "b": 3, "c": [1.5, None], "d": None}
    assert type(out["b"]) is int
