from __future__ import annotations

import json
from pathlib import Path

import pytest

from dinostake.runtime.config import (
    default_econ_config,
    econ_config_from_dict,
    load_econ_config,
    read_econ_config_file,
)

_ENV = (
    "DINOSTAKE_CONFIG_PATH",
    "DINOSTAKE_MODE",
    "DINOSTAKE_DB_PATH",
    "DINOSTAKE_API_HOST",
    "DINOSTAKE_API_PORT",
    "DINOSTAKE_TICK_INTERVAL_MS",
    "DINOSTAKE_SALE_START_MS",
    "DINOSTAKE_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV:
        monkeypatch.delenv(name, raising=False)


def test_defaults_are_production_safe() -> None:
    cfg = load_econ_config()
    assert cfg == default_econ_config()
    assert cfg.mode == "prod"
    assert cfg.sale_start_ms is None
    assert cfg.sale_start_offset_days == 45


def test_file_is_merged_over_defaults(tmp_path: Path) -> None:
    p = tmp_path / "econ.json"
    p.write_text(json.dumps({"mode": "DEV", "db_path": "memory", "api_port": "9000"}), encoding="utf-8")

    cfg = read_econ_config_file(str(p))
    assert cfg.mode == "dev"
    assert cfg.db_path == "memory"
    assert cfg.api_port == 9000
    assert cfg.tick_interval_ms == 1000


def test_env_overrides_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    p = tmp_path / "econ.json"
    p.write_text(json.dumps({"mode": "dev", "tick_interval_ms": 500}), encoding="utf-8")
    monkeypatch.setenv("DINOSTAKE_CONFIG_PATH", str(p))
    monkeypatch.setenv("DINOSTAKE_MODE", "testnet")
    monkeypatch.setenv("DINOSTAKE_SALE_START_MS", "123456")
    monkeypatch.setenv("DINOSTAKE_LOG_LEVEL", "debug")

    cfg = load_econ_config()
    assert cfg.mode == "testnet"
    assert cfg.tick_interval_ms == 500
    assert cfg.sale_start_ms == 123456
    assert cfg.log_level == "DEBUG"


@pytest.mark.parametrize(
    "raw",
    [
        {"mode": "staging"},
        {"api_port": 70000},
        {"tick_interval_ms": 100},
        {"sale_start_offset_days": -1},
        {"log_level": "LOUD"},
    ],
)
def test_invalid_values_fail_fast(raw) -> None:
    with pytest.raises(ValueError):
        econ_config_from_dict(raw)


def test_non_object_file_is_rejected(tmp_path: Path) -> None:
    p = tmp_path / "econ.json"
    p.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_econ_config(config_path=str(p))
