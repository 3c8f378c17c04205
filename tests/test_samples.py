import math

from ranging_pipeline.samples import Sample, SampleWindow


def _fill(window: SampleWindow, count: int) -> None:
    for index in range(count):
        window.append(Sample(distance=float(index), signal_strength=-50.0, timestamp_ms=index * 10))


def test_snapshot_returns_trailing_samples_in_order() -> None:
    window = SampleWindow(window_size=4)
    _fill(window, 6)
    snapshot = window.snapshot()
    assert [sample.distance for sample in snapshot] == [2.0, 3.0, 4.0, 5.0]


def test_snapshot_smaller_than_window_and_empty() -> None:
    window = SampleWindow(window_size=4)
    assert window.snapshot() == ()
    _fill(window, 2)
    assert len(window.snapshot()) == 2
    assert [sample.distance for sample in window.snapshot(1)] == [1.0]
    assert window.snapshot(0) == ()


def test_snapshot_is_a_copy() -> None:
    window = SampleWindow(window_size=4)
    _fill(window, 3)
    snapshot = window.snapshot()
    _fill(window, 3)
    assert len(snapshot) == 3
    assert isinstance(snapshot, tuple)


def test_buffer_compacts_after_twice_the_window() -> None:
    window = SampleWindow(window_size=3)
    _fill(window, 6)
    assert len(window) == 6
    _fill(window, 1)
    assert len(window) == 3
    for _ in range(50):
        _fill(window, 1)
        assert len(window) <= 6


def test_non_finite_samples_are_dropped() -> None:
    window = SampleWindow(window_size=3)
    assert not window.append(Sample(distance=math.nan, signal_strength=-50.0))
    assert not window.append(Sample(distance=1.0, signal_strength=math.inf))
    assert window.append(Sample(distance=1.0, signal_strength=-50.0))
    assert len(window) == 1


def test_resize_ignores_invalid_and_compacts() -> None:
    window = SampleWindow(window_size=5)
    _fill(window, 10)
    window.resize(0)
    assert window.window_size == 5
    window.resize(2)
    assert window.window_size == 2
    assert [sample.distance for sample in window.snapshot()] == [8.0, 9.0]


def test_summary_reports_min_max() -> None:
    window = SampleWindow(window_size=3)
    assert window.summary().count == 0
    window.append(Sample(distance=10.0, signal_strength=-50.0))
    window.append(Sample(distance=12.0, signal_strength=-48.0))
    window.append(Sample(distance=11.0, signal_strength=-49.0))
    summary = window.summary()
    assert summary.count == 3
    assert summary.min_distance == 10.0
    assert summary.max_distance == 12.0
    assert summary.min_signal_strength == -50.0
    assert summary.max_signal_strength == -48.0
