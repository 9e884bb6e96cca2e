from __future__ import annotations

import pytest

from perfdash.metrics import METRIC_CHARTS, MetricHistory, MetricKey, MetricsSnapshot


def test_every_metric_key_has_a_chart_spec() -> None:
    assert set(METRIC_CHARTS) == set(MetricKey)
    assert [line.data_key for line in METRIC_CHARTS[MetricKey.TRAFFIC].lines] == ["rx_bps", "tx_bps"]
    assert METRIC_CHARTS[MetricKey.CPU].y_domain == (0.0, 100.0)


def test_snapshot_from_mapping_ignores_unknown_keys() -> None:
    snap = MetricsSnapshot.from_mapping({"fps": 60.0, "raw": "dumpsys", "memory_mb": 512})
    assert snap.fps == 60.0
    assert snap.memory_mb == 512
    assert snap.cpu is None


def test_history_requires_positive_length() -> None:
    with pytest.raises(ValueError, match="maxlen must be > 0"):
        MetricHistory(0)


def test_history_builds_per_metric_series() -> None:
    history = MetricHistory(maxlen=10)
    history.append(MetricsSnapshot(fps=58.0, rx_bps=100.0, tx_bps=20.0))
    history.append({"fps": 60.0, "rx_bps": 80.0})

    assert history.series(MetricKey.FPS) == [{"t": 0, "fps": 58.0}, {"t": 1, "fps": 60.0}]
    assert history.series("traffic") == [
        {"t": 0, "rx_bps": 100.0, "tx_bps": 20.0},
        {"t": 1, "rx_bps": 80.0, "tx_bps": None},
    ]


def test_history_drops_oldest_rows_and_accepts_explicit_time() -> None:
    history = MetricHistory(maxlen=2, x_key="ts")
    history.append(MetricsSnapshot(cpu=1.0), t=1000)
    history.append(MetricsSnapshot(cpu=2.0), t=2000)
    history.append(MetricsSnapshot(cpu=3.0), t=3000)

    assert len(history) == 2
    assert history.maxlen == 2
    assert history.series(MetricKey.CPU) == [{"ts": 2000, "cpu": 2.0}, {"ts": 3000, "cpu": 3.0}]

    history.clear()
    assert history.series(MetricKey.CPU) == []


def test_unknown_metric_raises() -> None:
    with pytest.raises(ValueError):
        MetricHistory().series("gpu")
