from __future__ import annotations

import argparse
from pathlib import Path

from scopehealth.core.config import ScopeHealthConfig, load_config, merge_config


def test_missing_config_returns_defaults(tmp_path: Path) -> None:
    assert load_config(None) == ScopeHealthConfig()
    assert load_config(tmp_path / "absent.toml") == ScopeHealthConfig()


def test_simple_table(tmp_path: Path) -> None:
    p = tmp_path / "scopehealth.toml"
    p.write_text(
        """
[scopehealth]
components = "rig.toml"
update_interval = 2
ticks = 4
seed = 11
critical_alerts_only = true
log_level = "debug"
""",
        encoding="utf-8",
    )

    cfg = load_config(p)

    assert cfg.components == "rig.toml"
    assert cfg.update_interval == 10.0  # clamped
    assert cfg.ticks == 4
    assert cfg.seed == 11
    assert cfg.critical_alerts_only is True
    assert cfg.log_level == "DEBUG"


def test_structured_tables(tmp_path: Path) -> None:
    p = tmp_path / "scopehealth.toml"
    p.write_text(
        """
[monitor]
update_interval = 120
enabled = "no"

[alerts]
critical_only = "yes"

[report]
out = "reports/rig.pdf"
""",
        encoding="utf-8",
    )

    cfg = load_config(p)

    assert cfg.update_interval == 120.0
    assert cfg.monitoring_enabled is False
    assert cfg.critical_alerts_only is True
    assert cfg.out == "reports/rig.pdf"
    assert cfg.json_out == ScopeHealthConfig().json_out


def test_cli_overrides_win_when_set() -> None:
    base = ScopeHealthConfig(out="a.pdf", ticks=3, seed=5)

    merged = merge_config(base, {"out": "b.pdf", "ticks": None, "seed": 9})
    assert merged.out == "b.pdf"
    assert merged.ticks == 3
    assert merged.seed == 9

    ns = argparse.Namespace(out="  ", ticks=0, log_level="warning")
    merged = merge_config(base, ns)
    assert merged.out == "a.pdf"
    assert merged.ticks == 1
    assert merged.log_level == "WARNING"


def test_interval_and_json_logs_from_logging_table(tmp_path: Path) -> None:
    p = tmp_path / "scopehealth.toml"
    p.write_text(
        """
[monitor]
update_interval = 30

[logging]
level = "warning"
json = true
""",
        encoding="utf-8",
    )

    cfg = load_config(p)
    assert cfg.update_interval == 30.0
    assert cfg.log_level == "WARNING"
    assert cfg.log_json is True

    merged = merge_config(cfg, {"update_interval": 99999, "log_json": None})
    assert merged.update_interval == 3600.0
    assert merged.log_json is True
