import pytest

from tchart.colors import Palette
from tchart.histogram import Histogram, HistogramOptions, build_buckets
from tchart.stats import Statistics


def test_buckets_end_to_end():
    hist = Histogram.from_stats(Statistics([-2.0, 14.0]), HistogramOptions(intervals=8))
    hist.load([-1.0, -1.1, 2.0, 2.0, 2.1, -0.9, 11.0, 11.2, 1.9, 1.99, 1.98, 1.97, 1.96])

    assert len(hist.buckets) == 8
    assert (hist.buckets[0].lower, hist.buckets[0].upper) == (-2.0, 0.0)
    assert hist.buckets[0].count == 3
    assert (hist.buckets[1].lower, hist.buckets[1].upper) == (0.0, 2.0)
    assert hist.buckets[1].count == 5
    assert hist.counts == [3, 5, 3, 0, 0, 0, 2, 0]
    assert hist.top == 5


def test_values_out_of_range_are_ignored():
    hist = Histogram.from_stats(Statistics([-2.0, 14.0]), HistogramOptions(intervals=8))
    hist.add(20.0)
    hist.add(-3.0)
    assert sum(hist.counts) == 0
    hist.add(14.0)
    assert hist.counts[-1] == 1


def test_intervals_are_clamped_to_samples():
    hist = Histogram([1.0, 2.0], HistogramOptions(intervals=20))
    assert len(hist.buckets) == 2
    assert sum(hist.counts) == 2


def test_zero_width_buckets():
    hist = Histogram([3.0, 3.0, 3.0], HistogramOptions(intervals=4))
    assert hist.counts == [3, 0, 0]


def test_linear_buckets():
    buckets = build_buckets(0.0, 10.0, 5)
    assert [b.lower for b in buckets] == [0.0, 2.0, 4.0, 6.0, 8.0]
    assert buckets[-1].upper == 10.0


def test_log_buckets():
    buckets = build_buckets(0.0, 15.0, 4, log_scale=True)
    assert [(b.lower, b.upper) for b in buckets] == [(0.0, 1.0), (1.0, 3.0), (3.0, 7.0), (7.0, 15.0)]
    for a, b in zip(buckets, buckets[1:]):
        assert b.width == pytest.approx(2 * a.width)


def test_log_buckets_span_the_range():
    buckets = build_buckets(0.0, 1234.5, 10, log_scale=True)
    assert buckets[-1].upper == pytest.approx(1234.5)


def test_log_scale_histogram():
    hist = Histogram([-1.0, 0.5, 2.0, 6.0, 15.0], HistogramOptions(intervals=4, log_scale=True))
    assert hist.find_slot(-1.0) is None
    assert [hist.find_slot(v) for v in (0.5, 2.0, 6.0, 15.0)] == [0, 1, 2, 3]
    assert hist.counts == [1, 1, 1, 1]
    # the header still describes every sample
    assert hist.stats.samples == 5
    assert "Samples = 5" in str(hist)


def test_find_slot_linear():
    hist = Histogram.from_stats(Statistics([0.0, 10.0]), HistogramOptions(intervals=5))
    assert hist.find_slot(0.0) == 0
    assert hist.find_slot(3.9) == 1
    assert hist.find_slot(10.0) == 4
    assert hist.find_slot(10.1) is None


def test_display():
    hist = Histogram([1.0, 2.0, 2.0, 3.0, 3.0, 3.0], HistogramOptions(intervals=2, precision=1))
    display = hist.render(width=110)
    assert "Samples = 6; Min = 1.0; Max = 3.0\n" in display
    assert "Each ∎ represents a count of 1\n" in display
    assert "[1.0 .. 2.0] [1] ∎\n" in display
    assert "[2.0 .. 3.0] [5] ∎∎∎∎∎\n" in display
    assert str(hist) == display


def test_display_too_narrow():
    hist = Histogram([1.0] * 150, HistogramOptions(intervals=1))
    display = hist.render(width=5)
    assert "represents a count of 2" in display
    assert "] [150] " + "∎" * 75 + "\n" in display


def test_colored_display_keeps_the_text():
    hist = Histogram([1.0, 2.0, 2.0, 3.0, 3.0, 3.0], HistogramOptions(intervals=2, precision=1))
    colored = hist.render(palette=Palette(True))
    assert "\x1b[" in colored
    assert "1.0 .. 2.0" in colored


def test_many_log_intervals():
    # 2 ** 1100 does not fit in a float: every bucket width saturates to 0
    hist = Histogram([float(i) for i in range(1100)], HistogramOptions(intervals=1100, log_scale=True))
    assert len(hist.buckets) == 1100
    assert hist.buckets[0].width == 0.0
    assert sum(hist.counts) == 1100
    assert "Samples = 1100;" in hist.render(width=100)


def test_log_buckets_near_the_float_limit():
    buckets = build_buckets(0.0, 1000.0, 1023, log_scale=True)
    assert len(buckets) == 1023
    assert buckets[-1].upper == pytest.approx(1000.0)
