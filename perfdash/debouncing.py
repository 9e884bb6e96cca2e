"""Restartable settle timers for gesture debouncing."""

from __future__ import annotations

from typing import Any, Callable, Optional
import asyncio
import threading
import warnings


class SettleTimer:
    """Fire ``callback`` once after ``delay_ms`` of quiet.

    Every call to :meth:`restart` cancels the pending countdown and starts a
    new one, so the callback runs only when no restart happened for a full
    delay. At most one countdown is live at any time.

    Parameters
    ----------
    callback:
        Zero-argument callable executed when the timer elapses.
    delay_ms:
        Quiet period in milliseconds.

    Notes
    -----
    Scheduling uses the running asyncio loop when there is one (notebook
    kernels, async apps) and a daemon ``threading.Timer`` otherwise.
    """

    def __init__(self, callback: Callable[[], Any], *, delay_ms: int) -> None:
        if delay_ms <= 0:
            raise ValueError("delay_ms must be > 0")
        self._callback = callback
        self._delay_s = delay_ms / 1000.0
        self._lock = threading.Lock()
        self._timer: Optional[Any] = None
        self._generation = 0

    @property
    def delay_ms(self) -> float:
        """Return the configured quiet period in milliseconds."""
        return self._delay_s * 1000.0

    @property
    def pending(self) -> bool:
        """Return ``True`` while a countdown is live."""
        with self._lock:
            return self._timer is not None

    def restart(self) -> None:
        """Cancel any live countdown and start a fresh one."""
        with self._lock:
            self._cancel_locked()
            self._generation += 1
            self._schedule_locked(self._generation)

    def cancel(self) -> None:
        """Cancel the live countdown, if any, without firing the callback."""
        with self._lock:
            self._cancel_locked()
            self._generation += 1

    def _cancel_locked(self) -> None:
        timer = self._timer
        self._timer = None
        if timer is not None:
            timer.cancel()

    def _schedule_locked(self, generation: int) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            timer = threading.Timer(self._delay_s, self._on_fire, args=(generation,))
            timer.daemon = True
            self._timer = timer
            timer.start()
            return

        self._timer = loop.call_later(self._delay_s, self._on_fire, generation)

    def _on_fire(self, generation: int) -> None:
        with self._lock:
            # A restart or cancel raced this countdown; it no longer owns the slot.
            if generation != self._generation:
                return
            self._timer = None

        try:
            self._callback()
        except Exception as exc:
            warnings.warn(f"SettleTimer callback failed: {exc}")
