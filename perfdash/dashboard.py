"""Notebook dashboard of synchronized metric charts.

Purpose
-------
``PerformanceDashboard`` puts one Plotly chart per selected metric into an
ipywidgets column. All charts share one :class:`~perfdash.chart_group.ChartGroup`,
so dragging the range slider of any chart moves every chart, and snapshots
pushed during a drag are held back until the gesture settles.

Examples
--------
>>> dash = PerformanceDashboard(metrics=("fps", "cpu"))  # doctest: +SKIP
>>> dash.push_snapshot({"fps": 59.8, "cpu": 23.0})  # doctest: +SKIP
>>> dash  # doctest: +SKIP
"""

from __future__ import annotations

import logging
import warnings
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

import ipywidgets as widgets
from IPython.display import display

from .chart_group import ChartGroup, ViewportLike
from .chart_item import ChartItem
from .defaults import DEFAULT_HISTORY_LENGTH
from .metrics import METRIC_CHARTS, MetricHistory, MetricKey, MetricsSnapshot
from .plotly_renderer import PlotlyChartRenderer

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

_IDLE_STATUS = "<span style='color:#64748b'>live</span>"
_HOLD_STATUS = "<span style='color:#ea580c'>updates held while dragging</span>"


class PerformanceDashboard:
    """Synchronized charts for a selection of device metrics.

    Parameters
    ----------
    metrics : iterable of MetricKey or str, optional
        Metrics shown initially, in display order.
    history_length : int, optional
        Number of snapshots kept per chart.
    initial_viewport : Viewport, mapping or pair, optional
        Starting shared window.
    on_interacting_change : callable, optional
        Called with the shared interaction flag whenever it changes.
    """

    def __init__(
        self,
        metrics: Iterable[MetricKey | str] = (MetricKey.FPS, MetricKey.CPU),
        *,
        history_length: int = DEFAULT_HISTORY_LENGTH,
        initial_viewport: Optional[ViewportLike] = None,
        on_interacting_change: Optional[Callable[[bool], Any]] = None,
    ) -> None:
        self._user_interacting_callback = on_interacting_change
        self._group = ChartGroup(
            initial_viewport=initial_viewport,
            on_interacting_change=self._on_interacting_change,
        )
        self._history = MetricHistory(history_length)
        self._charts: Dict[MetricKey, ChartItem] = {}
        self._renderers: Dict[MetricKey, PlotlyChartRenderer] = {}

        self._status = widgets.HTML(_IDLE_STATUS)
        self._column = widgets.VBox(layout=widgets.Layout(width="100%"))
        self._root = widgets.VBox([self._status, self._column], layout=widgets.Layout(width="100%"))

        self.set_metrics(metrics)

    @property
    def group(self) -> ChartGroup:
        return self._group

    @property
    def history(self) -> MetricHistory:
        return self._history

    @property
    def metrics(self) -> tuple[MetricKey, ...]:
        """Return the displayed metrics in display order."""
        return tuple(self._charts)

    @property
    def charts(self) -> Dict[MetricKey, ChartItem]:
        return dict(self._charts)

    @property
    def widget(self) -> widgets.VBox:
        """Return the root widget for embedding in other layouts."""
        return self._root

    def chart(self, metric: MetricKey | str) -> ChartItem:
        key = MetricKey(metric)
        if key not in self._charts:
            raise KeyError(f"Metric not displayed: {key.value}")
        return self._charts[key]

    def set_metrics(self, metrics: Iterable[MetricKey | str]) -> None:
        """Show exactly ``metrics``, adding and closing charts as needed."""
        wanted = list(dict.fromkeys(MetricKey(m) for m in metrics))

        for key in [k for k in self._charts if k not in wanted]:
            self._renderers.pop(key).close()
            self._charts.pop(key).close()
            logger.info("Removed %s chart", key.value)

        ordered: Dict[MetricKey, ChartItem] = {}
        for key in wanted:
            chart = self._charts.get(key)
            if chart is None:
                chart = self._create_chart(key)
            ordered[key] = chart
        self._charts = ordered
        self._column.children = tuple(self._renderers[k].figure_widget for k in ordered)

    def _create_chart(self, key: MetricKey) -> ChartItem:
        spec = METRIC_CHARTS[key]
        chart = ChartItem(
            self._group,
            chart_id=key.value,
            data=self._history.series(key),
            x_key=self._history.x_key,
            lines=spec.lines,
            title=spec.title,
            y_domain=spec.y_domain,
        )
        self._renderers[key] = PlotlyChartRenderer(chart)
        logger.info("Added %s chart", key.value)
        return chart

    def push_snapshot(self, snapshot: MetricsSnapshot | Mapping[str, Any], t: Any = None) -> None:
        """Record a snapshot and offer the updated series to every chart."""
        self._history.append(snapshot, t=t)
        for key, chart in self._charts.items():
            chart.set_data(self._history.series(key))

    def _on_interacting_change(self, interacting: bool) -> None:
        self._status.value = _HOLD_STATUS if interacting else _IDLE_STATUS
        if self._user_interacting_callback is not None:
            try:
                self._user_interacting_callback(interacting)
            except Exception as e:
                warnings.warn(f"on_interacting_change callback failed: {e}")

    def close(self) -> None:
        """Close every chart and renderer."""
        self.set_metrics(())

    def _ipython_display_(self, **kwargs: Any) -> None:
        display(self._root)
