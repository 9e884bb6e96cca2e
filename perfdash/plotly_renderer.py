"""Plotly renderer for a :class:`~perfdash.chart_item.ChartItem`.

Purpose
-------
Draws one chart as a ``plotly.graph_objects.FigureWidget``: one filled line
per configured series, an x-axis range slider acting as the shared
selector, and a title carrying the per-line statistics.

Concepts and structure
----------------------
The renderer is a thin two-way adapter:

- chart to widget: it observes the chart and redraws from a fresh
  :class:`~perfdash.chart_item.ChartFrame` on every notification;
- widget to chart: it listens to ``xaxis.range`` changes, maps the new
  range to sample indices of the displayed series and forwards them to
  :meth:`ChartItem.handle_brush_change`.

Important gotchas
-----------------
- Redraws set ``xaxis.range`` themselves. Those writes happen under a
  ``_syncing`` guard so they are not mistaken for user drags.
- The range of the chart being dragged is not written back while the drag
  is in progress; only its siblings follow.
- X values are used as-is when they are numeric and increasing; otherwise
  sample positions are plotted and the original x values go to hover text.
"""

from __future__ import annotations

import logging
import numbers
from typing import Any, Dict, Optional, Sequence

import numpy as np
import plotly.graph_objects as go

from .chart_item import ChartFrame, ChartItem
from .series_stats import format_line_summary

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


def _numeric_increasing(values: Sequence[Any]) -> bool:
    if not values:
        return False
    if not all(isinstance(v, numbers.Real) and not isinstance(v, bool) for v in values):
        return False
    arr = np.asarray(values, dtype=float)
    return bool(np.all(np.isfinite(arr))) and bool(np.all(np.diff(arr) > 0))


def x_positions(frame: ChartFrame) -> np.ndarray:
    """Return the plotted x coordinate of every displayed sample."""
    raw = [sample.get(frame.x_key) for sample in frame.display_data]
    if _numeric_increasing(raw):
        return np.asarray(raw, dtype=float)
    return np.arange(len(raw), dtype=float)


def range_to_indices(x_range: Sequence[Any], xs: np.ndarray) -> Optional[tuple[int, int]]:
    """Map an axis range to the inclusive index span of samples inside it.

    Returns ``None`` when the range or the series is unusable.
    """
    if xs.size == 0 or x_range is None or len(x_range) != 2:
        return None
    try:
        lo, hi = float(x_range[0]), float(x_range[1])
    except (TypeError, ValueError):
        return None
    last = xs.size - 1
    start = int(np.searchsorted(xs, lo, side="left"))
    end = int(np.searchsorted(xs, hi, side="right")) - 1
    start = max(0, min(last, start))
    end = max(0, min(last, end))
    return start, end


def chart_title(frame: ChartFrame) -> str:
    """Return the title text: chart title plus one statistics line per series."""
    parts = [frame.title] if frame.title else []
    for stats in frame.stats:
        parts.append(f"<sup>{stats.label}: {format_line_summary(stats)}</sup>")
    return "<br>".join(parts)


class PlotlyChartRenderer:
    """Bind a ``ChartItem`` to a Plotly ``FigureWidget``.

    Parameters
    ----------
    chart : ChartItem
        Chart to draw and to feed selector drags into.
    figure_widget : plotly.graph_objects.FigureWidget, optional
        Widget to draw into; a new one is created when omitted.
    """

    def __init__(self, chart: ChartItem, figure_widget: Optional[go.FigureWidget] = None) -> None:
        self._chart = chart
        self._figure = figure_widget if figure_widget is not None else go.FigureWidget()
        self._figure.update_layout(**self._default_layout())
        self._xs = np.empty(0, dtype=float)
        self._syncing = False
        self._closed = False
        self._figure.layout.on_change(self._on_x_range, "xaxis.range")
        self._hook_id = chart.observe(self._on_chart_change)
        self.render()

    @property
    def chart(self) -> ChartItem:
        return self._chart

    @property
    def figure_widget(self) -> go.FigureWidget:
        return self._figure

    def _default_layout(self) -> Dict[str, Any]:
        return dict(
            template="plotly_white",
            height=self._chart.height,
            margin=dict(l=48, r=16, t=56, b=24),
            showlegend=True,
            legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="right", x=1.0),
            xaxis=dict(title=self._chart.x_key, rangeslider=dict(visible=True, thickness=0.12)),
            yaxis=dict(
                range=list(self._chart.y_domain) if self._chart.y_domain else None,
                autorange=self._chart.y_domain is None,
                gridcolor="rgba(148,163,184,0.35)",
            ),
        )

    def render(self) -> None:
        """Redraw traces, range and title from the chart's current frame."""
        if self._closed:
            return
        frame = self._chart.frame()
        xs = x_positions(frame)
        self._xs = xs
        hover = [str(sample.get(frame.x_key)) for sample in frame.display_data]

        self._syncing = True
        try:
            self._ensure_traces(frame)
            with self._figure.batch_update():
                self._sync_traces(frame, xs, hover)
                self._figure.layout.title = dict(text=chart_title(frame), font=dict(size=13))
                if xs.size > 1 and not frame.dragging:
                    self._figure.layout.xaxis.range = [
                        float(xs[frame.window.start_index]),
                        float(xs[frame.window.end_index]),
                    ]
        finally:
            self._syncing = False

    def _ensure_traces(self, frame: ChartFrame) -> None:
        names = [line.label for line in frame.lines]
        if [trace.name for trace in self._figure.data] != names:
            self._figure.data = ()
            for line in frame.lines:
                self._figure.add_trace(
                    go.Scatter(
                        name=line.label,
                        mode="lines",
                        fill="tozeroy",
                        line=dict(color=line.color, width=2),
                        opacity=0.9,
                    )
                )

    def _sync_traces(self, frame: ChartFrame, xs: np.ndarray, hover: list[str]) -> None:
        for trace, line in zip(self._figure.data, frame.lines):
            trace.x = xs
            trace.y = [sample.get(line.data_key) for sample in frame.display_data]
            trace.hovertext = hover

    def _on_chart_change(self, reason: str) -> None:
        logger.debug("Redraw chart %s (%s)", self._chart.id, reason)
        self.render()

    def _on_x_range(self, _layout: Any, x_range: Any, *_: Any) -> None:
        if self._syncing or self._closed:
            return
        span = range_to_indices(x_range, self._xs)
        if span is None:
            return
        self._chart.handle_brush_change(*span)

    def close(self) -> None:
        """Stop reacting to chart changes and widget range changes."""
        if self._closed:
            return
        self._closed = True
        self._chart.unobserve(self._hook_id)
