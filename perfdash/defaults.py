"""Shared defaults for chart groups, charts and dashboards."""

from __future__ import annotations

# Quiet period after the last drag event before a gesture counts as finished.
SETTLE_DELAY_MS: int = 150

# Viewport bounds, in percent of the data range.
VIEWPORT_MIN: float = 0.0
VIEWPORT_MAX: float = 100.0

DEFAULT_CHART_HEIGHT: int = 224
DEFAULT_X_KEY: str = "t"
DEFAULT_HISTORY_LENGTH: int = 300

# Placeholder shown for statistics of a line with no finite samples.
EMPTY_STAT: str = "—"

# Magnitude at which statistics drop their decimal place.
COMPACT_STAT_THRESHOLD: float = 100.0

LINE_COLORS: tuple[str, ...] = (
    "#2563eb",
    "#16a34a",
    "#dc2626",
    "#9333ea",
    "#ea580c",
    "#0891b2",
)
