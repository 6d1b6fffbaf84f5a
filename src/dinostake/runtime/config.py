# src/dinostake/runtime/config.py
from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from dinostake.ledger.constants import SALE_START_OFFSET_DAYS

Json = Dict[str, Any]


def _as_int(v: Any, default: int) -> int:
    try:
        return int(v)
    except Exception:
        return int(default)


def _as_opt_int(v: Any, default: Optional[int]) -> Optional[int]:
    if v is None or (isinstance(v, str) and not v.strip()):
        return default
    try:
        return int(v)
    except Exception:
        return default


def _as_str(v: Any, default: str) -> str:
    if v is None:
        return str(default)
    s = str(v)
    return s if s.strip() else str(default)


@dataclass(frozen=True)
class EconConfig:
    mode: str  # "dev" | "testnet" | "prod"

    # "memory" keeps documents in-process; anything else is a SQLite file path.
    db_path: str

    api_host: str
    api_port: int

    # Accrual / sale-epoch scheduler resolution.
    tick_interval_ms: int

    # Sale start: fixed instant if set, else first observation + offset.
    sale_start_offset_days: int
    sale_start_ms: Optional[int]

    log_level: str


_ALLOWED_MODES = {"dev", "testnet", "prod"}
_ALLOWED_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def validate_econ_config(cfg: EconConfig) -> None:
    """Fail-fast validation for operator config."""

    mode = str(cfg.mode or "").strip().lower()
    if mode not in _ALLOWED_MODES:
        raise ValueError(f"mode must be one of {_ALLOWED_MODES}; got: {cfg.mode!r}")

    if not isinstance(cfg.db_path, str) or not cfg.db_path.strip():
        raise ValueError("db_path must be a non-empty string")

    if int(cfg.api_port) <= 0 or int(cfg.api_port) > 65535:
        raise ValueError(f"api_port must be 1..65535; got: {cfg.api_port}")

    if int(cfg.tick_interval_ms) < 250:
        # Too-low intervals turn the ticker into a busy loop.
        raise ValueError(f"tick_interval_ms must be >= 250; got: {cfg.tick_interval_ms}")

    if int(cfg.sale_start_offset_days) < 0:
        raise ValueError(f"sale_start_offset_days must be >= 0; got: {cfg.sale_start_offset_days}")

    if cfg.sale_start_ms is not None and int(cfg.sale_start_ms) < 0:
        raise ValueError(f"sale_start_ms must be >= 0; got: {cfg.sale_start_ms}")

    if str(cfg.log_level).strip().upper() not in _ALLOWED_LOG_LEVELS:
        raise ValueError(f"log_level must be one of {_ALLOWED_LOG_LEVELS}; got: {cfg.log_level!r}")


def default_econ_config() -> EconConfig:
    return EconConfig(
        mode="prod",
        db_path="./data/dinostake.db",
        api_host="127.0.0.1",
        api_port=8080,
        tick_interval_ms=1_000,
        sale_start_offset_days=SALE_START_OFFSET_DAYS,
        sale_start_ms=None,
        log_level="INFO",
    )


def econ_config_from_dict(raw: Json) -> EconConfig:
    if not isinstance(raw, dict):
        raise ValueError("config must be a JSON object")

    d = default_econ_config()
    cfg = EconConfig(
        mode=_as_str(raw.get("mode"), d.mode).strip().lower(),
        db_path=_as_str(raw.get("db_path"), d.db_path),
        api_host=_as_str(raw.get("api_host"), d.api_host),
        api_port=_as_int(raw.get("api_port"), d.api_port),
        tick_interval_ms=_as_int(raw.get("tick_interval_ms"), d.tick_interval_ms),
        sale_start_offset_days=_as_int(raw.get("sale_start_offset_days"), d.sale_start_offset_days),
        sale_start_ms=_as_opt_int(raw.get("sale_start_ms"), d.sale_start_ms),
        log_level=_as_str(raw.get("log_level"), d.log_level).strip().upper(),
    )
    validate_econ_config(cfg)
    return cfg


def read_econ_config_file(path: str) -> EconConfig:
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    return econ_config_from_dict(raw)


def load_econ_config(*, config_path: Optional[str] = None) -> EconConfig:
    """Config file (DINOSTAKE_CONFIG_PATH) over defaults, then env overrides."""
    p = config_path or os.environ.get("DINOSTAKE_CONFIG_PATH")
    raw: Json = {}
    if p:
        raw = json.loads(Path(p).read_text(encoding="utf-8"))
        if not isinstance(raw, dict):
            raise ValueError("config must be a JSON object")

    env_map = {
        "mode": "DINOSTAKE_MODE",
        "db_path": "DINOSTAKE_DB_PATH",
        "api_host": "DINOSTAKE_API_HOST",
        "api_port": "DINOSTAKE_API_PORT",
        "tick_interval_ms": "DINOSTAKE_TICK_INTERVAL_MS",
        "sale_start_ms": "DINOSTAKE_SALE_START_MS",
        "log_level": "DINOSTAKE_LOG_LEVEL",
    }
    merged = dict(raw)
    for key, env_name in env_map.items():
        v = os.environ.get(env_name)
        if v is not None and v.strip():
            merged[key] = v.strip()

    return econ_config_from_dict(merged)


__all__ = [
    "EconConfig",
    "default_econ_config",
    "econ_config_from_dict",
    "load_econ_config",
    "read_econ_config_file",
    "validate_econ_config",
]
