# src/dinostake/runtime/metrics.py
from __future__ import annotations

"""In-process counters/gauges for the economy, rendered as Prometheus text.

Series are keyed by (name, labels), so one family carries its breakdown:

    dinostake_op_rejected_total{code="epoch_cap_exceeded",op="buy_sale"} 3
    dinostake_raffle_spins_total{kind="jackpot"} 1

Values are integers; token amounts are not exported here.
"""

import os
import threading
import time
from typing import Dict, List, Tuple

Labels = Tuple[Tuple[str, str], ...]
Series = Tuple[str, Labels]

_lock = threading.Lock()
_counters: Dict[Series, int] = {}
_gauges: Dict[Series, int] = {}
_started_ms = int(time.time() * 1000)


def metrics_enabled() -> bool:
    v = (os.environ.get("DINOSTAKE_METRICS_ENABLED") or "").strip().lower()
    if not v:
        return False
    return v in {"1", "true", "yes", "y", "on"}


def _series(name: str, labels: Dict[str, object]) -> Series:
    n = str(name or "").strip()
    if not n:
        raise ValueError("metric name must be non-empty")
    return n, tuple(sorted((str(k), str(v)) for k, v in labels.items() if v is not None))


def _escape(v: str) -> str:
    return v.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def series_name(name: str, labels: Labels = ()) -> str:
    """`name{k="v",...}`, or just `name` without labels."""
    if not labels:
        return name
    body = ",".join(f'{k}="{_escape(v)}"' for k, v in labels)
    return f"{name}{{{body}}}"


def inc_counter(name: str, value: int = 1, **labels: object) -> None:
    key = _series(name, labels)
    with _lock:
        _counters[key] = _counters.get(key, 0) + int(value)


def set_gauge(name: str, value: int, **labels: object) -> None:
    key = _series(name, labels)
    with _lock:
        _gauges[key] = int(value)


def counter_value(name: str, **labels: object) -> int:
    with _lock:
        return _counters.get(_series(name, labels), 0)


def reset() -> None:
    with _lock:
        _counters.clear()
        _gauges.clear()


def snapshot() -> dict:
    now = int(time.time() * 1000)
    with _lock:
        return {
            "ts_ms": now,
            "started_ms": _started_ms,
            "uptime_ms": now - _started_ms,
            "counters": {series_name(n, lbl): v for (n, lbl), v in _counters.items()},
            "gauges": {series_name(n, lbl): v for (n, lbl), v in _gauges.items()},
        }


def _family_lines(pre: str, kind: str, values: Dict[Series, int]) -> List[str]:
    lines: List[str] = []
    seen = set()
    for (name, labels) in sorted(values.keys()):
        if name not in seen:
            seen.add(name)
            lines.append(f"# TYPE {pre}{name} {kind}")
        lines.append(f"{series_name(pre + name, labels)} {values[(name, labels)]}")
    return lines


def format_prometheus(prefix: str = "dinostake_") -> str:
    """Prometheus exposition text, one `# TYPE` line per family."""
    pre = str(prefix or "").strip() or "dinostake_"
    with _lock:
        counters = dict(_counters)
        gauges = dict(_gauges)

    lines = [f"# TYPE {pre}uptime_ms gauge", f"{pre}uptime_ms {int(time.time() * 1000) - _started_ms}"]
    lines.extend(_family_lines(pre, "counter", counters))
    lines.extend(_family_lines(pre, "gauge", gauges))
    return "\n".join(lines) + "\n"


__all__ = [
    "counter_value",
    "format_prometheus",
    "inc_counter",
    "metrics_enabled",
    "reset",
    "series_name",
    "set_gauge",
    "snapshot",
]
