"""Debounced drag tracking for one chart.

Purpose
-------
Renderers report only "the selector now spans indices ``(a, b)``"; they do
not report when a gesture starts or ends. ``InteractionSession`` infers the
gesture from those reports: the first report of a burst moves the session
from ``IDLE`` to ``INTERACTING``, and a quiet period of ``settle_ms`` (150 ms
by default) with no further report moves it back.

Concepts and structure
----------------------
While interacting, every report

- restarts the settle timer,
- translates the indices to percentages of the chart's own series length,
- pushes the result to the shared viewport immediately.

On settle the session releases its hold on the group's ``interacting``
flag and runs its ``on_settle`` callback, which the owning chart uses to
apply deferred data once no chart in the group is still being dragged.

Architecture notes
------------------
The timer is the only asynchronous piece. A session holds at most one live
countdown; :meth:`InteractionSession.close` cancels it so a late callback
cannot touch a chart that has been torn down. A renderer with an explicit
gesture-end signal can call :meth:`InteractionSession.settle` directly.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Any, Callable, Optional

from .chart_group import ChartGroup
from .debouncing import SettleTimer
from .defaults import SETTLE_DELAY_MS
from .windowing import indices_to_viewport

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())


class InteractionState(Enum):
    IDLE = "idle"
    INTERACTING = "interacting"


class InteractionSession:
    """Per-chart state machine distinguishing active dragging from idle.

    Parameters
    ----------
    group : ChartGroup
        Group whose viewport and interaction flag the session drives.
    series_length : callable
        Returns the length of the chart's displayed series; used to translate
        reported indices to percentages.
    on_settle : callable, optional
        Called after the session returns to ``IDLE``.
    settle_ms : int, optional
        Quiet period that ends a gesture.
    """

    def __init__(
        self,
        group: ChartGroup,
        *,
        series_length: Callable[[], int],
        on_settle: Optional[Callable[[], Any]] = None,
        settle_ms: int = SETTLE_DELAY_MS,
    ) -> None:
        self._group = group
        self._series_length = series_length
        self._on_settle = on_settle
        self._lock = threading.Lock()
        self._state = InteractionState.IDLE
        self._closed = False
        self._timer = SettleTimer(self.settle, delay_ms=settle_ms)

    @property
    def state(self) -> InteractionState:
        with self._lock:
            return self._state

    @property
    def is_interacting(self) -> bool:
        """Return ``True`` between the first drag report and the settle."""
        return self.state is InteractionState.INTERACTING

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    @property
    def timer(self) -> SettleTimer:
        return self._timer

    def drag(self, start_index: Optional[float], end_index: Optional[float]) -> bool:
        """Handle one raw selector report from the renderer.

        Parameters
        ----------
        start_index, end_index : number or None
            Selector bounds in sample-index space. A report missing either
            bound is ignored.

        Returns
        -------
        bool
            ``True`` if the report was applied.
        """
        if start_index is None or end_index is None:
            return False

        with self._lock:
            if self._closed:
                return False
            started = self._state is InteractionState.IDLE
            self._state = InteractionState.INTERACTING
            self._timer.restart()

        if started:
            logger.debug("Interaction started at indices (%s, %s)", start_index, end_index)
        viewport = indices_to_viewport(start_index, end_index, self._series_length())
        self._group.begin_interaction(self)
        self._group.set_viewport(viewport)
        return True

    def settle(self) -> None:
        """End the current gesture: clear the shared flag and run ``on_settle``."""
        with self._lock:
            if self._closed or self._state is InteractionState.IDLE:
                return
            self._state = InteractionState.IDLE
            self._timer.cancel()

        logger.debug("Interaction settled")
        self._group.end_interaction(self)
        if self._on_settle is not None:
            self._on_settle()

    def close(self) -> None:
        """Cancel the settle timer and release the shared flag if held."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            was_interacting = self._state is InteractionState.INTERACTING
            self._state = InteractionState.IDLE
            self._timer.cancel()

        if was_interacting:
            self._group.end_interaction(self)
