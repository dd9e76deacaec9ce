from __future__ import annotations

from pathlib import Path

from scopehealth.core.ingest import (
    SAMPLE_COLUMNS,
    load_components_toml,
    load_samples_csv,
    samples_by_component,
)
from scopehealth.core.models import ComponentType


def test_samples_csv_round_into_component_series(tmp_path: Path) -> None:
    p = tmp_path / "samples.csv"
    p.write_text(
        "timestamp,component_id,temperature,power,accuracy\n"
        "2026-01-01 01:00:00,mount,21.0,24,1.1\n"
        "2026-01-01 00:00:00,mount,20.0,24,1.0\n"
        "2026-01-01 00:00:00,camera,-10.0,12,\n"
        "not-a-date,mount,20.0,24,1.0\n",
        encoding="utf-8",
    )

    res = load_samples_csv(p)

    assert list(res.df.columns) == SAMPLE_COLUMNS
    assert len(res.df) == 2
    assert any("defaulted to 0" in msg for msg in res.issues)
    assert any("invalid timestamp" in msg for msg in res.issues)
    assert any("invalid numeric" in msg for msg in res.issues)

    series = samples_by_component(res.df)
    assert list(series) == ["mount"]
    assert [s.temperature for s in series["mount"]] == [20.0, 21.0]
    assert series["mount"][0].response_time == 0.0


def test_samples_csv_missing_file_or_columns(tmp_path: Path) -> None:
    assert load_samples_csv(tmp_path / "absent.csv").df.empty

    p = tmp_path / "bad.csv"
    p.write_text("timestamp,temperature\n2026-01-01,20\n", encoding="utf-8")
    res = load_samples_csv(p)
    assert res.df.empty
    assert res.issues[0].startswith("Missing required columns")


def test_components_toml(tmp_path: Path) -> None:
    p = tmp_path / "rig.toml"
    p.write_text(
        """
[[component]]
id = "focuser_eaf"
name = "EAF Focuser"
type = "focuser"
install_date = 2023-02-15
expected_lifetime = 40000
maintenance_interval = 120
calibration_interval = 45
critical_temperature_range = { min = -30, max = 60 }
optimal_temperature_range = { min = -10, max = 40 }
[component.specifications]
accuracy = 0.1
power_consumption = 5
step_size_um = 5.74

[[component]]
id = "broken"
type = "toaster"

[[component]]
id = "inverted"
type = "dome"
install_date = "2023-01-01"
expected_lifetime = 1
maintenance_interval = 1
calibration_interval = 1
critical_temperature_range = { min = 0, max = 10 }
optimal_temperature_range = { min = -5, max = 20 }
""",
        encoding="utf-8",
    )

    res = load_components_toml(p)

    assert [c.id for c in res.components] == ["focuser_eaf"]
    focuser = res.components[0]
    assert focuser.type == ComponentType.FOCUSER
    assert focuser.specifications.accuracy == 0.1
    assert focuser.specifications.extra == {"step_size_um": 5.74}
    assert len(res.issues) == 2


def test_components_toml_invalid(tmp_path: Path) -> None:
    p = tmp_path / "rig.toml"
    p.write_text("[[component]\n", encoding="utf-8")

    res = load_components_toml(p)

    assert res.components == []
    assert res.issues[0].startswith("Invalid TOML")
