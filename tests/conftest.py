from __future__ import annotations

import sys
from pathlib import Path
from unittest.mock import patch

import pytest

_START = Path(__file__).resolve().parent
_repo_root = _START
while _repo_root != _repo_root.parent and not (_repo_root / "perfdash" / "__init__.py").exists():
    _repo_root = _repo_root.parent

sys.path.insert(0, str(_repo_root))


class FakeThreadTimer:
    """Stand-in for ``threading.Timer`` that only fires when told to."""

    def __init__(self, registry: list["FakeThreadTimer"], delay: float, function, args=None, kwargs=None):
        self.delay = delay
        self.function = function
        self.args = tuple(args or ())
        self.kwargs = dict(kwargs or {})
        self.daemon = False
        self.started = False
        self.cancelled = False
        self.fired = False
        registry.append(self)

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if not self.cancelled and not self.fired:
            self.fired = True
            self.function(*self.args, **self.kwargs)


class FakeTimers:
    def __init__(self) -> None:
        self.created: list[FakeThreadTimer] = []

    def factory(self, delay, function, args=None, kwargs=None) -> FakeThreadTimer:
        return FakeThreadTimer(self.created, delay, function, args, kwargs)

    @property
    def live(self) -> list[FakeThreadTimer]:
        return [t for t in self.created if t.started and not t.cancelled and not t.fired]

    def fire_all(self) -> None:
        for timer in list(self.live):
            timer.fire()


@pytest.fixture
def fake_timers():
    timers = FakeTimers()
    with patch("perfdash.debouncing.threading.Timer", timers.factory):
        yield timers
