from __future__ import annotations

from perfdash.chart_group import ChartGroup
from perfdash.interaction import InteractionSession, InteractionState
from perfdash.viewport import Viewport


def _session(group: ChartGroup, length: int = 11, settled: list | None = None) -> InteractionSession:
    return InteractionSession(
        group,
        series_length=lambda: length,
        on_settle=(lambda: settled.append(True)) if settled is not None else None,
    )


def test_session_starts_idle(fake_timers) -> None:
    session = _session(ChartGroup())
    assert session.state is InteractionState.IDLE
    assert not session.is_interacting
    assert fake_timers.created == []


def test_first_drag_enters_interacting_and_pushes_viewport(fake_timers) -> None:
    group = ChartGroup()
    session = _session(group)

    assert session.drag(1, 9) is True

    assert session.state is InteractionState.INTERACTING
    assert group.interacting is True
    assert group.viewport == Viewport(10, 90)
    assert len(fake_timers.live) == 1
    assert fake_timers.live[0].delay == 0.15


def test_each_drag_restarts_the_settle_timer(fake_timers) -> None:
    group = ChartGroup()
    session = _session(group)

    session.drag(0, 10)
    session.drag(2, 8)
    session.drag(3, 7)

    assert len(fake_timers.created) == 3
    assert len(fake_timers.live) == 1
    assert group.viewport == Viewport(30, 70)


def test_drag_with_missing_bound_is_ignored(fake_timers) -> None:
    group = ChartGroup()
    session = _session(group)

    assert session.drag(None, 4) is False
    assert session.drag(2, None) is False

    assert session.state is InteractionState.IDLE
    assert group.interacting is False
    assert fake_timers.created == []


def test_settle_returns_to_idle_and_runs_callback(fake_timers) -> None:
    group = ChartGroup()
    settled: list[bool] = []
    session = _session(group, settled=settled)

    session.drag(1, 2)
    fake_timers.fire_all()

    assert session.state is InteractionState.IDLE
    assert group.interacting is False
    assert settled == [True]


def test_settle_only_after_quiet_period(fake_timers) -> None:
    group = ChartGroup()
    settled: list[bool] = []
    session = _session(group, settled=settled)

    session.drag(1, 2)
    first = fake_timers.live[0]
    session.drag(1, 3)
    first.fire()

    assert settled == []
    assert session.is_interacting

    fake_timers.fire_all()
    assert settled == [True]


def test_single_sample_series_drag_reports_zero_percent(fake_timers) -> None:
    group = ChartGroup()
    session = _session(group, length=1)

    session.drag(0, 0)

    assert group.viewport == Viewport(0, 0)


def test_close_cancels_timer_and_releases_shared_flag(fake_timers) -> None:
    group = ChartGroup()
    settled: list[bool] = []
    session = _session(group, settled=settled)

    session.drag(1, 5)
    timer = fake_timers.live[0]
    session.close()

    assert timer.cancelled
    assert group.interacting is False
    assert session.closed
    # A late callback after close is a no-op.
    timer.function(*timer.args)
    session.settle()
    assert settled == []
    assert session.drag(1, 2) is False
