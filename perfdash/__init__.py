"""Top-level public API for the ``perfdash`` package.

This module re-exports the chart-synchronization surface so users can import
from a single namespace, for example:

>>> from perfdash import ChartGroup, ChartItem, Viewport  # doctest: +SKIP

It exposes the core building blocks (shared viewport, windowing, buffered
charts, interaction sessions, statistics) as well as the Plotly renderer and
the notebook dashboard built on top of them.
"""

from .chart_buffer import ChartDataBuffer
from .chart_group import ChartGroup, GroupEvent
from .chart_item import ChartFrame, ChartItem
from .dashboard import PerformanceDashboard
from .debouncing import SettleTimer
from .interaction import InteractionSession, InteractionState
from .metrics import METRIC_CHARTS, MetricChartSpec, MetricHistory, MetricKey, MetricsSnapshot
from .plotly_renderer import PlotlyChartRenderer
from .series_stats import (
    LineConfig,
    LineStats,
    compute_line_stats,
    format_line_summary,
    format_stat,
)
from .viewport import FULL_VIEWPORT, Viewport
from .windowing import (
    VisibleWindow,
    index_to_percent,
    indices_to_viewport,
    percent_to_index,
    visible_slice,
    window_indices,
)
