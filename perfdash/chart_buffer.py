"""Deferred-update buffer for one chart's data."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

Sample = Mapping[str, Any]
Series = tuple[Sample, ...]


class ChartDataBuffer:
    """Hold the rendered series of one chart and at most one deferred update.

    ``display_data`` is what the renderer draws. While the chart group is
    interacting, fresh data goes to ``pending_data`` instead (only the latest
    arrival is kept) and is applied by :meth:`flush` exactly once.

    Parameters
    ----------
    data : sequence of mappings, optional
        Initial series shown before any live update arrives.
    """

    def __init__(self, data: Sequence[Sample] = ()) -> None:
        self._live: Series = tuple(data)
        self._display: Series = self._live
        self._pending: Optional[Series] = None

    @property
    def live_data(self) -> Series:
        """Return the most recent series offered to the buffer."""
        return self._live

    @property
    def display_data(self) -> Series:
        """Return the series currently rendered."""
        return self._display

    @property
    def pending_data(self) -> Optional[Series]:
        """Return the deferred series, or ``None`` when nothing is waiting."""
        return self._pending

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def offer(self, data: Sequence[Sample], *, frozen: bool) -> bool:
        """Accept a fresh series.

        Parameters
        ----------
        data : sequence of mappings
            The latest samples from the metric stream.
        frozen : bool
            Whether an interaction is in progress.

        Returns
        -------
        bool
            ``True`` if ``display_data`` changed now, ``False`` if the update
            was deferred.
        """
        series = tuple(data)
        self._live = series
        if frozen:
            if self._pending is not None:
                logger.debug("Replacing deferred update (%d samples)", len(self._pending))
            self._pending = series
            return False
        self._display = series
        return True

    def flush(self) -> bool:
        """Apply the deferred series, if any, and clear it.

        Returns
        -------
        bool
            ``True`` if ``display_data`` was replaced.
        """
        if self._pending is None:
            return False
        self._display = self._pending
        self._pending = None
        logger.debug("Applied deferred update (%d samples)", len(self._display))
        return True
