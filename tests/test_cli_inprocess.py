from __future__ import annotations

import json
import runpy
import sys
from pathlib import Path


def _run_module(module: str, argv: list[str]) -> int:
    """
    Run a module as `python -m <module> ...` would, but in-process.
    Returns the SystemExit code (0 for success).
    """
    old_argv = sys.argv[:]
    try:
        sys.argv = [module, *argv]
        try:
            runpy.run_module(module, run_name="__main__")
            return 0
        except SystemExit as e:
            return int(e.code) if e.code is not None else 0
    finally:
        sys.argv = old_argv


def test_tools_generate_samples_module_runs(tmp_path: Path) -> None:
    out_csv = tmp_path / "samples.csv"

    rc = _run_module(
        "scopehealth.tools.generate_samples",
        ["--out", str(out_csv), "--days", "1", "--step-hours", "6", "--seed", "1", "--profile", "healthy"],
    )

    assert rc == 0
    lines = out_csv.read_text(encoding="utf-8").splitlines()
    assert lines[0].startswith("timestamp,component_id,temperature")
    assert len(lines) == 1 + 4 * 4  # header + 4 steps x 4 stock components


def test_cli_module_replays_samples_into_strict_json(tmp_path: Path) -> None:
    samples = tmp_path / "samples.csv"
    out_pdf = tmp_path / "report.pdf"
    out_json = tmp_path / "report.json"
    state = tmp_path / "state.json"

    rc = _run_module(
        "scopehealth.tools.generate_samples",
        [
            "--out", str(samples),
            "--days", "2",
            "--step-hours", "6",
            "--seed", "3",
            "--only", "mount_eq6r,focuser_eaf",
            "--inject-failure",
            "--failure-component", "mount_eq6r",
            "--failure-mode", "overheating",
            "--failure-start-day", "0",
            "--failure-ramp-days", "0",
            "--failure-severity", "1.0",
        ],
    )
    assert rc == 0

    rc = _run_module(
        "scopehealth.cli",
        [
            "--samples", str(samples),
            "--out", str(out_pdf),
            "--json-out", str(out_json),
            "--state", str(state),
            "--seed", "3",
            "--log-level", "WARNING",
        ],
    )
    assert rc == 0
    assert out_pdf.exists() and state.exists()

    def _reject_constants(x: str):
        raise ValueError(f"Non-JSON constant encountered: {x}")

    doc = json.loads(out_json.read_text(encoding="utf-8"), parse_constant=_reject_constants)
    rows = {r["component_id"]: r for r in doc["fleet"]["table"]}

    # 8 replayed samples per component with samples, simulator for the rest
    history = json.loads(state.read_text(encoding="utf-8"))["health_records"]
    assert sum(1 for h in history if h["component_id"] == "mount_eq6r") == 8
    assert sum(1 for h in history if h["component_id"] == "camera_asi2600mc") == 8
    assert "Temperature" in rows["mount_eq6r"]["top_alert"]
    assert rows["mount_eq6r"]["overall"] in ("warning", "critical", "offline")
