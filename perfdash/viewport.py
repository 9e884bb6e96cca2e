"""Percentage-based viewport shared by a group of charts.

Purpose
-------
Defines ``Viewport``, the immutable ``(start, end)`` window into time that a
:class:`~perfdash.chart_group.ChartGroup` shares between its charts. Bounds
are percentages of the data range rather than sample indices, so the same
viewport stays meaningful while each chart's series grows, shrinks or is
replaced.

Important gotchas
-----------------
- ``Viewport`` does not validate on construction. Out-of-range or inverted
  values (from a drag report or restored state) are representable and get
  corrected by :meth:`Viewport.clamp` on the next idle data pass.
- Groups replace the viewport as a whole value; never mutate fields.

Examples
--------
>>> Viewport(-5, 120).clamp()
Viewport(start=0.0, end=100.0)
>>> Viewport(70, 20).clamp()
Viewport(start=70.0, end=70.0)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping, Union

from .defaults import VIEWPORT_MAX, VIEWPORT_MIN


def _clamp_percent(value: float, fallback: float) -> float:
    if math.isnan(value):
        return fallback
    return max(VIEWPORT_MIN, min(VIEWPORT_MAX, value))


@dataclass(frozen=True)
class Viewport:
    """Immutable ``(start, end)`` window, both in percent of the data range.

    Parameters
    ----------
    start : float
        Left edge of the window, nominally in ``[0, 100]``.
    end : float
        Right edge of the window, nominally in ``[start, 100]``.
    """

    start: float = VIEWPORT_MIN
    end: float = VIEWPORT_MAX

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", float(self.start))
        object.__setattr__(self, "end", float(self.end))

    @property
    def is_normalized(self) -> bool:
        """Return ``True`` when both bounds lie in range and ``start <= end``."""
        return VIEWPORT_MIN <= self.start <= self.end <= VIEWPORT_MAX

    @property
    def span(self) -> float:
        """Width of the window in percent."""
        return self.end - self.start

    def clamp(self) -> "Viewport":
        """Return the viewport pulled back into ``[0, 100]`` with ``start <= end``.

        ``start`` is clamped first; ``end`` is then clamped to ``[start, 100]``.
        NaN bounds fall back to the full-range edge. Clamping is idempotent:
        a normalized viewport is returned unchanged.
        """
        start = _clamp_percent(self.start, VIEWPORT_MIN)
        end = max(start, _clamp_percent(self.end, VIEWPORT_MAX))
        if start == self.start and end == self.end:
            return self
        return Viewport(start, end)

    def as_tuple(self) -> tuple[float, float]:
        return (self.start, self.end)

    @classmethod
    def coerce(cls, value: Union["Viewport", Mapping[str, Any], tuple, list]) -> "Viewport":
        """Build a viewport from a ``Viewport``, ``{start, end}`` mapping or pair."""
        if isinstance(value, Viewport):
            return value
        if isinstance(value, Mapping):
            return cls(value["start"], value["end"])
        start, end = value
        return cls(start, end)


FULL_VIEWPORT = Viewport(VIEWPORT_MIN, VIEWPORT_MAX)
