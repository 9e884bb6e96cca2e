"""Metric catalogue and rolling history feeding the charts.

Purpose
-------
Translates device metric snapshots into the per-chart sample sequences that
:meth:`ChartItem.set_data <perfdash.chart_item.ChartItem.set_data>`
consumes. Collection itself happens elsewhere; a snapshot is just a bag of
optional numbers.

Concepts and structure
----------------------
- ``MetricKey`` names a selectable metric (one chart each).
- ``METRIC_CHARTS`` maps each key to its chart title, lines and y-domain.
- ``MetricHistory`` keeps the last ``maxlen`` snapshots as flat rows and
  slices them into one series per metric on demand.

Examples
--------
>>> history = MetricHistory(maxlen=2)
>>> _ = history.append(MetricsSnapshot(fps=58.0, cpu=31.5))
>>> history.series(MetricKey.FPS)
[{'t': 0, 'fps': 58.0}]
"""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import Any, Deque, Dict, Mapping, Optional

from .defaults import DEFAULT_HISTORY_LENGTH, DEFAULT_X_KEY
from .series_stats import LineConfig


class MetricKey(str, Enum):
    FPS = "fps"
    CPU = "cpu"
    POWER = "power"
    MEMORY = "memory"
    NETWORK = "network"
    BATTERY = "battery"
    BATTERY_TEMP = "battery_temp"
    TRAFFIC = "traffic"


@dataclass(frozen=True)
class MetricsSnapshot:
    """One poll of device metrics. Any field may be ``None``."""

    fps: Optional[float] = None
    cpu: Optional[float] = None
    power: Optional[float] = None
    memory_mb: Optional[float] = None
    network_kbps: Optional[float] = None
    rx_bps: Optional[float] = None
    tx_bps: Optional[float] = None
    battery_level: Optional[float] = None
    battery_temp_c: Optional[float] = None

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "MetricsSnapshot":
        """Build a snapshot from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in values.items() if k in known})


@dataclass(frozen=True)
class MetricChartSpec:
    """Presentation of one metric as a chart."""

    title: str
    lines: tuple[LineConfig, ...]
    y_domain: Optional[tuple[float, float]] = None


METRIC_CHARTS: Dict[MetricKey, MetricChartSpec] = {
    MetricKey.FPS: MetricChartSpec("FPS", (LineConfig("fps", "FPS", "#2563eb"),)),
    MetricKey.CPU: MetricChartSpec(
        "CPU", (LineConfig("cpu", "CPU %", "#16a34a"),), y_domain=(0.0, 100.0)
    ),
    MetricKey.POWER: MetricChartSpec("Power", (LineConfig("power", "Power (mW)", "#dc2626"),)),
    MetricKey.MEMORY: MetricChartSpec(
        "Memory", (LineConfig("memory_mb", "Memory (MB)", "#9333ea"),)
    ),
    MetricKey.NETWORK: MetricChartSpec(
        "Network", (LineConfig("network_kbps", "Network (KB/s)", "#0891b2"),)
    ),
    MetricKey.BATTERY: MetricChartSpec(
        "Battery", (LineConfig("battery_level", "Battery %", "#ea580c"),), y_domain=(0.0, 100.0)
    ),
    MetricKey.BATTERY_TEMP: MetricChartSpec(
        "Battery temperature", (LineConfig("battery_temp_c", "Temp (°C)", "#ca8a04"),)
    ),
    MetricKey.TRAFFIC: MetricChartSpec(
        "Traffic",
        (
            LineConfig("rx_bps", "RX (B/s)", "#0891b2"),
            LineConfig("tx_bps", "TX (B/s)", "#db2777"),
        ),
    ),
}


class MetricHistory:
    """Bounded history of snapshots, sliced per metric.

    Parameters
    ----------
    maxlen : int, optional
        Number of snapshots retained; older ones are dropped first.
    x_key : str, optional
        Key under which each row stores its x value.
    """

    def __init__(self, maxlen: int = DEFAULT_HISTORY_LENGTH, *, x_key: str = DEFAULT_X_KEY) -> None:
        if maxlen <= 0:
            raise ValueError("maxlen must be > 0")
        self.x_key = x_key
        self._rows: Deque[Dict[str, Any]] = deque(maxlen=maxlen)
        self._seq = 0
        self._lock = threading.Lock()

    @property
    def maxlen(self) -> int:
        return self._rows.maxlen or 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)

    def append(self, snapshot: MetricsSnapshot | Mapping[str, Any], t: Any = None) -> Dict[str, Any]:
        """Record one snapshot and return the stored row.

        ``t`` defaults to a running sequence number.
        """
        if not isinstance(snapshot, MetricsSnapshot):
            snapshot = MetricsSnapshot.from_mapping(snapshot)
        with self._lock:
            x = self._seq if t is None else t
            self._seq += 1
            row = {self.x_key: x, **asdict(snapshot)}
            self._rows.append(row)
        return row

    def clear(self) -> None:
        with self._lock:
            self._rows.clear()

    def series(self, metric: MetricKey | str) -> list[Dict[str, Any]]:
        """Return the samples of ``metric``: the x value plus its line keys."""
        spec = METRIC_CHARTS[MetricKey(metric)]
        keys = [line.data_key for line in spec.lines]
        with self._lock:
            rows = list(self._rows)
        return [{self.x_key: row[self.x_key], **{k: row.get(k) for k in keys}} for row in rows]
