from __future__ import annotations

import numpy as np
import plotly.graph_objects as go

from perfdash.chart_group import ChartGroup
from perfdash.chart_item import ChartItem
from perfdash.plotly_renderer import PlotlyChartRenderer, range_to_indices, x_positions
from perfdash.series_stats import LineConfig
from perfdash.viewport import Viewport

SERIES = [{"t": 0, "fps": 10}, {"t": 1, "fps": 60}, {"t": 2, "fps": 30}]


def _chart(group: ChartGroup, **kwargs) -> ChartItem:
    kwargs.setdefault("data", SERIES)
    kwargs.setdefault("lines", [LineConfig("fps", "FPS", "#2563eb")])
    return ChartItem(group, **kwargs)


def test_renderer_draws_one_trace_per_line() -> None:
    chart = _chart(
        ChartGroup(),
        data=[{"t": 0, "rx": 1, "tx": 2}, {"t": 1, "rx": 3, "tx": None}],
        lines=[LineConfig("rx", "RX"), LineConfig("tx", "TX")],
    )
    renderer = PlotlyChartRenderer(chart)
    fig = renderer.figure_widget

    assert isinstance(fig, go.FigureWidget)
    assert [trace.name for trace in fig.data] == ["RX", "TX"]
    assert list(fig.data[0].y) == [1, 3]
    assert list(fig.data[1].y) == [2, None]
    assert fig.layout.xaxis.rangeslider.visible is True


def test_title_carries_line_statistics() -> None:
    renderer = PlotlyChartRenderer(_chart(ChartGroup(), title="FPS"))
    title = renderer.figure_widget.layout.title.text
    assert title.startswith("FPS")
    assert "max 60.0 / avg 33.3 / min 10.0" in title


def test_y_domain_and_height_reach_layout() -> None:
    renderer = PlotlyChartRenderer(_chart(ChartGroup(), y_domain=(0, 100), height=200))
    layout = renderer.figure_widget.layout
    assert tuple(layout.yaxis.range) == (0.0, 100.0)
    assert layout.height == 200


def test_sibling_viewport_change_updates_axis_range() -> None:
    group = ChartGroup()
    renderer = PlotlyChartRenderer(_chart(group))

    group.set_viewport(Viewport(50, 100))

    assert tuple(renderer.figure_widget.layout.xaxis.range) == (1.0, 2.0)
    assert "min 30.0" in renderer.figure_widget.layout.title.text


def test_axis_range_change_becomes_drag(fake_timers) -> None:
    group = ChartGroup()
    dragged = _chart(group)
    sibling = _chart(group, data=[{"t": i, "fps": i} for i in range(5)])
    renderer = PlotlyChartRenderer(dragged)
    sibling_renderer = PlotlyChartRenderer(sibling)

    renderer._on_x_range(renderer.figure_widget.layout, (0.6, 2.0))

    assert dragged.is_dragging
    assert group.interacting
    assert group.viewport == Viewport(50, 100)
    assert tuple(sibling_renderer.figure_widget.layout.xaxis.range) == (2.0, 4.0)


def test_render_while_dragging_leaves_own_range_alone(fake_timers) -> None:
    group = ChartGroup()
    chart = _chart(group)
    renderer = PlotlyChartRenderer(chart)
    before = tuple(renderer.figure_widget.layout.xaxis.range)

    chart.handle_brush_change(1, 1)

    assert tuple(renderer.figure_widget.layout.xaxis.range) == before


def test_close_stops_redraws() -> None:
    group = ChartGroup()
    chart = _chart(group)
    renderer = PlotlyChartRenderer(chart)
    renderer.close()

    chart.set_data([{"t": 0, "fps": 1}, {"t": 1, "fps": 2}])

    assert list(renderer.figure_widget.data[0].y) == [10, 60, 30]


def test_range_to_indices_maps_inclusive_span() -> None:
    xs = np.asarray([0.0, 10.0, 20.0, 30.0])
    assert range_to_indices((5, 25), xs) == (1, 2)
    assert range_to_indices((-100, 100), xs) == (0, 3)
    assert range_to_indices((10, 10), xs) == (1, 1)
    assert range_to_indices(None, xs) is None
    assert range_to_indices(("a", "b"), xs) is None
    assert range_to_indices((0, 1), np.empty(0)) is None


def test_non_numeric_x_values_fall_back_to_positions() -> None:
    chart = _chart(ChartGroup(), data=[{"t": "12:00:01", "fps": 1}, {"t": "12:00:02", "fps": 2}])
    np.testing.assert_array_equal(x_positions(chart.frame()), [0.0, 1.0])
