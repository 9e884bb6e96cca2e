from __future__ import annotations

from perfdash.chart_buffer import ChartDataBuffer


def test_offer_while_idle_replaces_display() -> None:
    buffer = ChartDataBuffer([{"t": 0}])
    assert buffer.offer([{"t": 1}], frozen=False) is True
    assert buffer.display_data == ({"t": 1},)
    assert not buffer.has_pending


def test_offer_while_frozen_keeps_only_latest() -> None:
    buffer = ChartDataBuffer([{"t": 0}])
    buffer.offer([{"t": 1}], frozen=True)
    buffer.offer([{"t": 2}], frozen=True)

    assert buffer.display_data == ({"t": 0},)
    assert buffer.pending_data == ({"t": 2},)
    assert buffer.live_data == ({"t": 2},)


def test_flush_applies_once_and_clears() -> None:
    buffer = ChartDataBuffer()
    buffer.offer([{"t": 5}], frozen=True)

    assert buffer.flush() is True
    assert buffer.display_data == ({"t": 5},)
    assert buffer.pending_data is None
    assert buffer.flush() is False


def test_empty_pending_series_still_counts_as_pending() -> None:
    buffer = ChartDataBuffer([{"t": 0}])
    buffer.offer([], frozen=True)
    assert buffer.has_pending
    buffer.flush()
    assert buffer.display_data == ()


def test_buffer_copies_incoming_sequences() -> None:
    source = [{"t": 0}]
    buffer = ChartDataBuffer(source)
    source.append({"t": 1})
    assert len(buffer.display_data) == 1
