"""Mapping between percentage viewports and sample indices.

Every chart derives its own visible window from the shared viewport and its
own series length; nothing here is stored. Charts in one group may hold
series of different lengths at the same moment, so the mapping is always
recomputed on read.

The two directions are deliberately asymmetric for short series:

- percent to index collapses any series with ``length <= 1`` to ``(0, 0)``;
- index to percent divides by ``max(length - 1, 1)``, so a one-sample series
  reports ``0`` percent for index ``0`` and a clamped ``100`` for anything
  past it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence, TypeVar

from .viewport import Viewport

T = TypeVar("T")


@dataclass(frozen=True)
class VisibleWindow:
    """Inclusive ``[start_index, end_index]`` range of visible samples."""

    start_index: int = 0
    end_index: int = 0

    def __len__(self) -> int:
        return self.end_index - self.start_index + 1

    def as_tuple(self) -> tuple[int, int]:
        return (self.start_index, self.end_index)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def percent_to_index(pct: float, length: int) -> int:
    """Return the sample index for ``pct`` percent of a series of ``length``.

    Parameters
    ----------
    pct : float
        Position in percent; values outside ``[0, 100]`` are clamped.
    length : int
        Number of samples in the series.

    Returns
    -------
    int
        Index in ``[0, length - 1]``; ``0`` for empty or single-sample series.
    """
    if length <= 1:
        return 0
    max_index = length - 1
    if math.isnan(pct):
        pct = 0.0
    pct = max(0.0, min(100.0, pct))
    return max(0, min(max_index, _round_half_up(pct / 100.0 * max_index)))


def window_indices(viewport: Viewport, length: int) -> VisibleWindow:
    """Derive the visible index window of a ``length``-sample series.

    ``end_index`` is raised to ``start_index`` after rounding, so the window
    is never inverted even for an inverted viewport.

    Examples
    --------
    >>> window_indices(Viewport(50, 50), 3)
    VisibleWindow(start_index=1, end_index=1)
    >>> window_indices(Viewport(0, 100), 1)
    VisibleWindow(start_index=0, end_index=0)
    """
    if length <= 1:
        return VisibleWindow(0, 0)
    start_index = percent_to_index(viewport.start, length)
    end_index = percent_to_index(viewport.end, length)
    return VisibleWindow(start_index, max(start_index, end_index))


def index_to_percent(index: float, length: int) -> float:
    """Return the viewport percentage of sample ``index`` in a series of ``length``."""
    denominator = max(length - 1, 1)
    return max(0.0, min(1.0, index / denominator)) * 100.0


def indices_to_viewport(start_index: float, end_index: float, length: int) -> Viewport:
    """Translate a renderer's raw ``(start_index, end_index)`` report to a viewport.

    No ordering is imposed here; an inverted report stays inverted until the
    next idle clamp.
    """
    return Viewport(index_to_percent(start_index, length), index_to_percent(end_index, length))


def visible_slice(data: Sequence[T], window: VisibleWindow) -> list[T]:
    """Return the samples of ``data`` inside ``window``.

    Indices are re-clamped against ``len(data)`` so a window computed for a
    different length never raises.
    """
    if not data:
        return []
    last = len(data) - 1
    start = max(0, min(last, window.start_index))
    end = max(start, min(last, window.end_index))
    return list(data[start : end + 1])
