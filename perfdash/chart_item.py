"""One chart of a synchronized group.

Purpose
-------
``ChartItem`` is the per-chart unit that a renderer binds to. It wires the
pieces of one chart together:

- a :class:`~perfdash.chart_buffer.ChartDataBuffer` holding displayed and
  deferred data,
- an :class:`~perfdash.interaction.InteractionSession` tracking drags,
- the shared :class:`~perfdash.chart_group.ChartGroup` viewport, read on
  every window derivation,
- per-line statistics over the visible window.

Concepts and structure
----------------------
Data flows in through :meth:`ChartItem.set_data`. While the group is
interacting the update is deferred; it is applied when the group flag
drops, so a gesture on *any* chart freezes every chart in the group and
each one catches up on settle.

Drag reports flow in through :meth:`ChartItem.handle_brush_change` and go
to the group viewport immediately; siblings see the change through their
group hook and re-derive their own window from their own series length.

Renderers subscribe with :meth:`ChartItem.observe` and pull a
:class:`ChartFrame` on each notification.

Important gotchas
-----------------
- Whenever the displayed data or the viewport changes while the group is
  idle, the chart re-clamps the viewport into ``[0, 100]`` with
  ``start <= end`` and writes it back if anything moved. Charts showing
  fewer than two samples skip this check.
- No lock is held while calling into the group or into render hooks, so
  timer threads and stream threads cannot deadlock against each other.
- :meth:`ChartItem.close` must be called when the chart goes away; it
  cancels the settle timer and detaches from the group.

Examples
--------
>>> group = ChartGroup()
>>> chart = ChartItem(group, data=[{"t": 0, "fps": 10}, {"t": 1, "fps": 60}, {"t": 2, "fps": 30}])
>>> group.set_viewport(Viewport(50, 50))
>>> chart.window
VisibleWindow(start_index=1, end_index=1)
>>> chart.stats_summaries()
{'fps': 'max 60.0 / avg 60.0 / min 60.0'}
"""

from __future__ import annotations

import logging
import re
import threading
import warnings
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, Optional, Sequence

from .chart_buffer import ChartDataBuffer, Sample, Series
from .chart_group import ChartGroup, GroupEvent
from .defaults import DEFAULT_CHART_HEIGHT, DEFAULT_X_KEY, SETTLE_DELAY_MS
from .interaction import InteractionSession
from .series_stats import (
    LineConfig,
    LineStats,
    compute_line_stats,
    format_line_summary,
    resolve_lines,
)
from .viewport import Viewport
from .windowing import VisibleWindow, visible_slice, window_indices

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


@dataclass(frozen=True)
class ChartFrame:
    """Everything a renderer needs to draw one chart at one moment."""

    chart_id: str
    title: str
    x_key: str
    lines: tuple[LineConfig, ...]
    display_data: Series
    visible_data: tuple[Sample, ...]
    window: VisibleWindow
    viewport: Viewport
    stats: tuple[LineStats, ...]
    interacting: bool
    dragging: bool
    y_domain: Optional[tuple[float, float]] = None
    height: int = DEFAULT_CHART_HEIGHT


class ChartItem:
    """A time-series chart sharing its viewport with a :class:`ChartGroup`.

    Parameters
    ----------
    group : ChartGroup
        Group providing the shared viewport and interaction flag.
    chart_id : str, optional
        Registry id; auto-generated as ``"chart:N"`` when omitted.
    data : sequence of mappings, optional
        Initial samples.
    x_key : str, optional
        Sample key holding the x value (timestamp or label).
    lines : sequence of LineConfig or str, optional
        Plotted lines. When omitted, every non-``x_key`` field of the first
        displayed sample is plotted.
    title : str, optional
        Chart title.
    y_domain : (float, float), optional
        Fixed y-axis range for the renderer.
    height : int, optional
        Chart height in pixels.
    settle_ms : int, optional
        Quiet period that ends a drag gesture.
    """

    _HOOK_ID_REGEX = re.compile(r"^hook:(\d+)$")

    def __init__(
        self,
        group: ChartGroup,
        *,
        chart_id: Optional[str] = None,
        data: Sequence[Sample] = (),
        x_key: str = DEFAULT_X_KEY,
        lines: Optional[Sequence[LineConfig | str]] = None,
        title: str = "",
        y_domain: Optional[tuple[float, float]] = None,
        height: int = DEFAULT_CHART_HEIGHT,
        settle_ms: int = SETTLE_DELAY_MS,
    ) -> None:
        self._group = group
        self._lock = threading.RLock()
        self._buffer = ChartDataBuffer(data)
        self._declared_lines = None if lines is None else resolve_lines(lines, (), x_key)
        self.x_key = x_key
        self.title = title
        self.y_domain = None if y_domain is None else (float(y_domain[0]), float(y_domain[1]))
        self.height = int(height)
        self._closed = False
        self._render_hooks: Dict[Hashable, Callable[[str], Any]] = {}
        self._render_hook_counter = 0

        self._session = InteractionSession(
            group,
            series_length=lambda: len(self.display_data),
            on_settle=self._flush_pending,
            settle_ms=settle_ms,
        )
        self.id = group.register_chart(self, chart_id)
        self._group_hook_id = group.observe(self._on_group_event, hook_id=("chart", self.id))

    # --- State ---

    @property
    def group(self) -> ChartGroup:
        return self._group

    @property
    def session(self) -> InteractionSession:
        return self._session

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def is_dragging(self) -> bool:
        """Return ``True`` while this chart's own selector is being dragged."""
        return self._session.is_interacting

    @property
    def live_data(self) -> Series:
        with self._lock:
            return self._buffer.live_data

    @property
    def display_data(self) -> Series:
        """Return the series currently rendered."""
        with self._lock:
            return self._buffer.display_data

    @property
    def pending_data(self) -> Optional[Series]:
        """Return the deferred series, or ``None``."""
        with self._lock:
            return self._buffer.pending_data

    @property
    def lines(self) -> tuple[LineConfig, ...]:
        if self._declared_lines is not None:
            return self._declared_lines
        return resolve_lines(None, self.display_data, self.x_key)

    @property
    def window(self) -> VisibleWindow:
        """Derive the visible index window from the shared viewport."""
        return window_indices(self._group.viewport, len(self.display_data))

    @property
    def visible_data(self) -> list[Sample]:
        return visible_slice(self.display_data, self.window)

    @property
    def stats(self) -> tuple[LineStats, ...]:
        """Per-line statistics over the visible window."""
        return compute_line_stats(self.visible_data, self.lines)

    def stats_summaries(self) -> Dict[str, str]:
        """Return ``{data_key: "max ... / avg ... / min ..."}`` for every line."""
        return {s.key: format_line_summary(s) for s in self.stats}

    def frame(self) -> ChartFrame:
        """Capture a consistent render payload."""
        with self._lock:
            display = self._buffer.display_data
        viewport = self._group.viewport
        window = window_indices(viewport, len(display))
        visible = tuple(visible_slice(display, window))
        lines = (
            self._declared_lines
            if self._declared_lines is not None
            else resolve_lines(None, display, self.x_key)
        )
        return ChartFrame(
            chart_id=self.id,
            title=self.title,
            x_key=self.x_key,
            lines=lines,
            display_data=display,
            visible_data=visible,
            window=window,
            viewport=viewport,
            stats=compute_line_stats(visible, lines),
            interacting=self._group.interacting,
            dragging=self.is_dragging,
            y_domain=self.y_domain,
            height=self.height,
        )

    # --- Inputs ---

    def set_data(self, data: Sequence[Sample]) -> bool:
        """Offer a fresh series from the metric stream.

        Returns
        -------
        bool
            ``True`` if the series is displayed now, ``False`` if it was
            deferred until the current interaction settles.
        """
        self._require_open()
        with self._lock:
            applied = self._buffer.offer(data, frozen=self._is_frozen())
        if not applied:
            logger.debug("Chart %s deferred a data update", self.id)
            # The group may have settled between the flag read and the offer.
            if not self._is_frozen():
                self._flush_pending()
            return False
        self.reconcile_viewport()
        self._notify("data")
        return True

    def handle_brush_change(
        self, start_index: Optional[float] = None, end_index: Optional[float] = None
    ) -> bool:
        """Forward a renderer's raw selector report to the interaction session."""
        if self._closed:
            return False
        return self._session.drag(start_index, end_index)

    def reconcile_viewport(self) -> bool:
        """Clamp the shared viewport back into range if it drifted.

        Runs only while the group is idle and the chart displays at least two
        samples.

        Returns
        -------
        bool
            ``True`` if the viewport was rewritten.
        """
        if self._group.interacting:
            return False
        if len(self.display_data) <= 1:
            return False
        current = self._group.viewport
        clamped = current.clamp()
        if clamped == current:
            return False
        logger.debug("Chart %s corrected viewport %s -> %s", self.id, current, clamped)
        self._group.set_viewport(clamped)
        return True

    def _is_frozen(self) -> bool:
        return self._group.interacting or self._session.is_interacting

    def _flush_pending(self) -> None:
        if self._is_frozen():
            return
        with self._lock:
            flushed = self._buffer.flush()
        if flushed:
            self.reconcile_viewport()
            self._notify("data")

    def _on_group_event(self, event: GroupEvent) -> None:
        if event.kind == "interacting":
            if not event.new:
                self._flush_pending()
            self._notify("interacting")
            return
        if event.kind == "viewport":
            self.reconcile_viewport()
            self._notify("viewport")

    # --- Render hooks ---

    def observe(self, callback: Callable[[str], Any], hook_id: Optional[Hashable] = None) -> Hashable:
        """Register a render hook called with a reason string on every change.

        Reasons are ``"data"``, ``"viewport"`` and ``"interacting"``.
        """
        self._require_open()
        if hook_id is not None:
            hash(hook_id)
        with self._lock:
            if hook_id is None:
                self._render_hook_counter += 1
                hook_id = f"hook:{self._render_hook_counter}"
            elif isinstance(hook_id, str):
                m = self._HOOK_ID_REGEX.match(hook_id)
                if m:
                    self._render_hook_counter = max(self._render_hook_counter, int(m.group(1)))
            self._render_hooks[hook_id] = callback
        return hook_id

    def unobserve(self, hook_id: Hashable) -> None:
        with self._lock:
            self._render_hooks.pop(hook_id, None)

    def _notify(self, reason: str) -> None:
        with self._lock:
            hooks = list(self._render_hooks.items())
        for h_id, callback in hooks:
            try:
                callback(reason)
            except Exception as e:
                warnings.warn(f"Hook {h_id} failed: {e}")

    # --- Lifecycle ---

    def _require_open(self) -> None:
        if self._closed:
            raise RuntimeError(f"Chart {self.id} has been closed.")

    def close(self) -> None:
        """Detach from the group and cancel any live settle timer."""
        if self._closed:
            return
        self._closed = True
        self._session.close()
        self._group.unobserve(self._group_hook_id)
        self._group.unregister_chart(self.id)
        with self._lock:
            self._render_hooks.clear()

    def __repr__(self) -> str:
        return (
            f"ChartItem(id={self.id!r}, samples={len(self.display_data)}, "
            f"window={self.window.as_tuple()}, dragging={self.is_dragging})"
        )
