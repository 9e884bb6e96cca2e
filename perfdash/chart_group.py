"""Shared viewport coordinator for a group of synchronized charts.

Purpose
-------
``ChartGroup`` owns the state that charts in one group move together on:
the percentage :class:`~perfdash.viewport.Viewport` and the "interaction in
progress" flag. Charts never read each other's state. They receive a
reference to the group at construction, read ``group.viewport`` whenever
they derive a window, and subscribe to :class:`GroupEvent` notifications to
react to changes made by siblings.

Concepts and structure
----------------------
- ``set_viewport`` replaces the viewport as a whole value and notifies every
  observer synchronously, so a drag on one chart is visible to all siblings
  before the next render.
- ``set_interacting`` toggles the shared flag the same way, and additionally
  forwards the new value to the optional ``on_interacting_change`` callback.
- Sessions raise the flag with ``begin_interaction`` and release it with
  ``end_interaction``. The flag stays up until the last holder releases it,
  so overlapping drags on two charts keep the whole group frozen.
- Charts are registered under stable ids (``"chart:1"``, ``"chart:2"``, ...)
  unless the caller supplies one.

Important gotchas
-----------------
- Setting a value equal to the current one is a no-op and emits nothing.
- Observer failures never block the other observers; each failure is
  reported with :func:`warnings.warn`.
- Observers run outside the group lock, so they may call back into the
  group (for example to correct the viewport).

Examples
--------
>>> group = ChartGroup(initial_viewport={"start": 20, "end": 80})
>>> seen = []
>>> _ = group.observe(lambda event: seen.append(event.kind))
>>> group.set_viewport(Viewport(0, 50))
>>> seen
['viewport']

Discoverability
---------------
See next:

- ``chart_item.py`` for the per-chart side of the fan-out.
- ``interaction.py`` for who flips the interacting flag.
"""

from __future__ import annotations

import logging
import re
import threading
import warnings
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Dict, Hashable, Optional, Set, Union

from .viewport import FULL_VIEWPORT, Viewport

if TYPE_CHECKING:
    from .chart_item import ChartItem

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

ViewportLike = Union[Viewport, dict, tuple, list]


@dataclass(frozen=True)
class GroupEvent:
    """Change notification emitted by :class:`ChartGroup`.

    Parameters
    ----------
    kind : str
        ``"viewport"`` or ``"interacting"``.
    old : Any
        Previous value (a ``Viewport`` or a ``bool``).
    new : Any
        Current value.
    group : ChartGroup
        The group that changed.
    """

    kind: str
    old: Any
    new: Any
    group: "ChartGroup"


class ChartGroup:
    """Own the shared viewport and interaction flag of a set of charts.

    Parameters
    ----------
    initial_viewport : Viewport, mapping or pair, optional
        Starting window; defaults to the full range ``{0, 100}``.
    on_interacting_change : callable, optional
        Called with the new flag value whenever ``interacting`` changes.
    """

    _CHART_ID_REGEX = re.compile(r"^chart:(\d+)$")
    _HOOK_ID_REGEX = re.compile(r"^hook:(\d+)$")

    def __init__(
        self,
        initial_viewport: Optional[ViewportLike] = None,
        on_interacting_change: Optional[Callable[[bool], Any]] = None,
    ) -> None:
        self._lock = threading.RLock()
        self._viewport = (
            Viewport.coerce(initial_viewport) if initial_viewport is not None else FULL_VIEWPORT
        )
        self._interacting = False
        self._holders: Set[Hashable] = set()
        self._on_interacting_change = on_interacting_change
        self._hooks: Dict[Hashable, Callable[[GroupEvent], Any]] = {}
        self._hook_counter = 0
        self._charts: Dict[str, "ChartItem"] = {}
        self._chart_counter = 0

    # --- Shared state ---

    @property
    def viewport(self) -> Viewport:
        """Return the current shared viewport."""
        with self._lock:
            return self._viewport

    @property
    def interacting(self) -> bool:
        """Return ``True`` while any chart's selector is being dragged."""
        with self._lock:
            return self._interacting

    def set_viewport(self, viewport: ViewportLike) -> None:
        """Replace the shared viewport and notify observers.

        Parameters
        ----------
        viewport : Viewport, mapping or pair
            The new window. Stored as given; correction into ``[0, 100]``
            is the charts' job on their next idle data pass.
        """
        new = Viewport.coerce(viewport)
        with self._lock:
            old = self._viewport
            if new == old:
                return
            self._viewport = new
        self._emit(GroupEvent("viewport", old, new, self))

    def set_interacting(self, value: bool) -> None:
        """Set the shared interaction flag and notify observers.

        Setting ``False`` directly also forgets every holder registered with
        :meth:`begin_interaction`.
        """
        new = bool(value)
        with self._lock:
            if not new:
                self._holders.clear()
            old = self._interacting
            self._interacting = new
        self._announce_interacting(old, new)

    @property
    def active_interactions(self) -> int:
        """Return the number of sessions currently holding the flag."""
        with self._lock:
            return len(self._holders)

    def begin_interaction(self, holder: Hashable) -> None:
        """Register ``holder`` as dragging and raise the shared flag."""
        with self._lock:
            self._holders.add(holder)
            old = self._interacting
            self._interacting = True
        self._announce_interacting(old, True)

    def end_interaction(self, holder: Hashable) -> None:
        """Release ``holder``; the flag drops once no holder remains."""
        with self._lock:
            if holder not in self._holders:
                return
            self._holders.discard(holder)
            if self._holders:
                return
            old = self._interacting
            self._interacting = False
        self._announce_interacting(old, False)

    def _announce_interacting(self, old: bool, new: bool) -> None:
        if old == new:
            return
        logger.debug("Group interacting -> %s", new)
        self._emit(GroupEvent("interacting", old, new, self))
        if self._on_interacting_change is not None:
            try:
                self._on_interacting_change(new)
            except Exception as e:
                warnings.warn(f"on_interacting_change callback failed: {e}")

    # --- Observers ---

    def observe(
        self, callback: Callable[[GroupEvent], Any], hook_id: Optional[Hashable] = None
    ) -> Hashable:
        """Register ``callback`` for group change events.

        Parameters
        ----------
        callback : callable
            Function with signature ``(event)``.
        hook_id : hashable, optional
            Identifier for the hook. Reusing an id replaces the callback.
            Defaults to an auto-generated ``"hook:N"``.

        Returns
        -------
        hashable
            The identifier used for registration.
        """
        if hook_id is not None:
            hash(hook_id)
        with self._lock:
            if hook_id is None:
                self._hook_counter += 1
                hook_id = f"hook:{self._hook_counter}"
            elif isinstance(hook_id, str):
                m = self._HOOK_ID_REGEX.match(hook_id)
                if m:
                    self._hook_counter = max(self._hook_counter, int(m.group(1)))
            self._hooks[hook_id] = callback
        return hook_id

    def unobserve(self, hook_id: Hashable) -> None:
        """Remove a hook if present."""
        with self._lock:
            self._hooks.pop(hook_id, None)

    def _emit(self, event: GroupEvent) -> None:
        with self._lock:
            hooks = list(self._hooks.items())
        for h_id, callback in hooks:
            try:
                callback(event)
            except Exception as e:
                warnings.warn(f"Hook {h_id} failed: {e}")

    # --- Chart registry ---

    @property
    def charts(self) -> Dict[str, "ChartItem"]:
        """Return a copy of the chart registry."""
        with self._lock:
            return dict(self._charts)

    def require_chart(self, chart_id: str) -> "ChartItem":
        """Return the chart registered as ``chart_id`` or raise ``KeyError``."""
        with self._lock:
            if chart_id not in self._charts:
                raise KeyError(f"Unknown chart: {chart_id}")
            return self._charts[chart_id]

    def register_chart(self, chart: "ChartItem", chart_id: Optional[str] = None) -> str:
        """Add ``chart`` to the registry and return its id."""
        with self._lock:
            if chart_id is None:
                self._chart_counter += 1
                chart_id = f"chart:{self._chart_counter}"
                while chart_id in self._charts:
                    self._chart_counter += 1
                    chart_id = f"chart:{self._chart_counter}"
            else:
                chart_id = str(chart_id)
                if chart_id in self._charts:
                    raise ValueError(f"Chart '{chart_id}' already exists")
                m = self._CHART_ID_REGEX.match(chart_id)
                if m:
                    self._chart_counter = max(self._chart_counter, int(m.group(1)))
            self._charts[chart_id] = chart
        logger.info("Registered chart %s", chart_id)
        return chart_id

    def unregister_chart(self, chart_id: str) -> None:
        """Remove ``chart_id`` from the registry if present."""
        with self._lock:
            removed = self._charts.pop(chart_id, None)
        if removed is not None:
            logger.info("Removed chart %s", chart_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._charts)

    def __contains__(self, chart_id: object) -> bool:
        with self._lock:
            return chart_id in self._charts
