"""Per-line statistics over the visible part of a chart.

Purpose
-------
Computes ``max``/``min``/``avg`` for each configured line of a chart over
the currently visible samples, and formats them for a compact header such
as ``"max 60.0 / avg 33.3 / min 10.0"``.

Concepts and structure
----------------------
- ``LineConfig`` describes one line: its sample key, label and color.
- ``LineStats`` is the immutable result for one line. When the visible slice
  contains no finite numeric value for the line, ``max``/``min``/``avg`` are
  all ``None`` and format as :data:`~perfdash.defaults.EMPTY_STAT`.
- ``compute_line_stats`` is pure: same samples and lines, same result.

Important gotchas
-----------------
- Booleans, strings, ``None``, NaN, infinities and integers too large
  for a float are excluded, never coerced. A line with only such values
  is "undefined", not zero.
- Formatting keeps one decimal below a magnitude of 100 and none at or above
  it, so large values (memory in MB) stay compact and small ones (FPS) keep
  precision.

Examples
--------
>>> samples = [{"t": 0, "fps": 10}, {"t": 1, "fps": 60}, {"t": 2, "fps": 30}]
>>> (stats,) = compute_line_stats(samples, [LineConfig("fps", "FPS")])
>>> format_line_summary(stats)
'max 60.0 / avg 33.3 / min 10.0'
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Any, Iterable, Mapping, Optional, Sequence

import numpy as np

from .defaults import COMPACT_STAT_THRESHOLD, EMPTY_STAT, LINE_COLORS


@dataclass(frozen=True)
class LineConfig:
    """Declaration of one plotted line.

    Parameters
    ----------
    data_key : str
        Sample key holding this line's values.
    label : str
        Human-readable label; defaults to ``data_key``.
    color : str or None
        CSS color for the renderer. ``None`` lets the chart pick one.
    """

    data_key: str
    label: str = ""
    color: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.label:
            object.__setattr__(self, "label", self.data_key)


@dataclass(frozen=True)
class LineStats:
    """Statistics of one line over a visible window."""

    key: str
    label: str
    color: Optional[str]
    max: Optional[float]
    min: Optional[float]
    avg: Optional[float]
    count: int = 0

    @property
    def is_defined(self) -> bool:
        return self.count > 0


def _is_finite_number(value: Any) -> bool:
    if isinstance(value, (bool, np.bool_)):
        return False
    if not isinstance(value, numbers.Real):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # Integers beyond float range.
        return False


def finite_values(samples: Iterable[Mapping[str, Any]], key: str) -> np.ndarray:
    """Return the finite numeric values stored under ``key`` as a float array."""
    values = [sample.get(key) for sample in samples]
    return np.asarray([v for v in values if _is_finite_number(v)], dtype=float)


def resolve_lines(
    lines: Optional[Sequence[LineConfig | str]],
    samples: Sequence[Mapping[str, Any]],
    x_key: str,
) -> tuple[LineConfig, ...]:
    """Normalize line declarations and assign palette colors where missing.

    When ``lines`` is ``None``, every non-``x_key`` field of the first sample
    becomes a line.
    """
    if lines is None:
        keys: list[Any] = [k for k in (samples[0] if samples else {}) if k != x_key]
        lines = [str(k) for k in keys]

    resolved = []
    for i, line in enumerate(lines):
        if isinstance(line, str):
            line = LineConfig(line)
        if line.color is None:
            line = LineConfig(line.data_key, line.label, LINE_COLORS[i % len(LINE_COLORS)])
        resolved.append(line)
    return tuple(resolved)


def compute_line_stats(
    samples: Sequence[Mapping[str, Any]], lines: Sequence[LineConfig]
) -> tuple[LineStats, ...]:
    """Compute ``max``/``min``/``avg`` for every line over ``samples``."""
    out = []
    for line in lines:
        values = finite_values(samples, line.data_key)
        if values.size == 0:
            out.append(LineStats(line.data_key, line.label, line.color, None, None, None))
            continue
        out.append(
            LineStats(
                key=line.data_key,
                label=line.label,
                color=line.color,
                max=float(values.max()),
                min=float(values.min()),
                avg=float(values.mean()),
                count=int(values.size),
            )
        )
    return tuple(out)


def _to_decimal(value: Any) -> Decimal:
    if isinstance(value, numbers.Integral):
        return Decimal(int(value))
    return Decimal(float(value))


def format_stat(value: Optional[float]) -> str:
    """Format one statistic for display.

    Ties round away from zero on the exact binary value, so ``0.25`` shows
    as ``"0.3"`` and ``150.5`` as ``"151"``.

    >>> format_stat(1234.56), format_stat(33.333), format_stat(None)
    ('1235', '33.3', '—')
    """
    if value is None:
        return EMPTY_STAT
    exact = _to_decimal(value)
    if exact.is_nan():
        return EMPTY_STAT
    if exact.is_infinite():
        return "-inf" if exact < 0 else "inf"
    places = 0 if abs(exact) >= COMPACT_STAT_THRESHOLD else 1
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, exact.adjusted() + places + 2)
        rounded = exact.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
    return f"{rounded:f}"


def format_line_summary(stats: LineStats) -> str:
    return (
        f"max {format_stat(stats.max)} / avg {format_stat(stats.avg)}"
        f" / min {format_stat(stats.min)}"
    )
