import math
from typing import Sequence

from tchart.colors import PLAIN, BLUE, Palette
from tchart.numfmt import NumberFormatter, count_width, scale_for
from tchart.stats import Statistics

DEFAULT_WIDTH = 110


class Bucket:
    __slots__ = ("lower", "upper", "count")

    def __init__(self, lower: float, upper: float):
        self.lower = lower
        self.upper = upper
        self.count = 0

    @property
    def width(self) -> float:
        return self.upper - self.lower

    def __repr__(self):
        return f"Bucket([{self.lower}, {self.upper}), count={self.count})"


class HistogramOptions:
    """Plain histogram configuration.

    intervals -- number of buckets (clamped to 1..len(samples) by Histogram)
    log_scale -- bucket widths double from one bucket to the next, from 0
    precision -- decimals for display, ``None`` for human units
    """

    def __init__(self, intervals: int = 20, log_scale: bool = False, precision: int | None = None):
        self.intervals = intervals
        self.log_scale = log_scale
        self.precision = precision

    def __repr__(self):
        return (f"HistogramOptions(intervals={self.intervals}, "
                f"log_scale={self.log_scale}, precision={self.precision})")


def build_buckets(lower: float, upper: float, intervals: int, log_scale: bool = False) -> list[Bucket]:
    buckets = []
    if log_scale:
        # 2.0 ** n overflows past 1023: the first width then saturates to 0
        total = 2.0 ** intervals - 1 if intervals < 1024 else math.inf
        width = upper / total
        start = 0.0
        for _ in range(intervals):
            end = start + width
            buckets.append(Bucket(start, end))
            start = end
            width *= 2
    else:
        step = (upper - lower) / intervals
        start = lower
        for _ in range(intervals):
            buckets.append(Bucket(start, start + step))
            start += step
    return buckets


class Histogram:
    """Counts of numbers falling in contiguous ranges of ``[min, max]``.

    With ``log_scale`` the buckets cover ``[0, max]`` and negative values are
    dropped silently. The statistics header keeps describing every sample
    given to the constructor, so in that mode its sample count can be larger
    than the sum of the bucket counts.
    """

    def __init__(self, samples: Sequence[float], options: HistogramOptions):
        stats = Statistics(samples, options.precision)
        intervals = min(max(options.intervals, 1), len(samples))
        clamped = HistogramOptions(intervals, options.log_scale, options.precision)
        self._setup(stats, clamped)
        self.load(samples)

    @classmethod
    def from_stats(cls, stats: Statistics, options: HistogramOptions) -> "Histogram":
        """Empty histogram shaped by ``stats``; fill it with ``load``/``add``."""
        histogram = cls.__new__(cls)
        histogram._setup(stats, options)
        return histogram

    def _setup(self, stats: Statistics, options: HistogramOptions):
        intervals = max(options.intervals, 1)
        self.stats = stats
        self.log_scale = options.log_scale
        self.precision = options.precision
        self.lower = 0.0 if options.log_scale else stats.min
        self.upper = stats.max
        self.step = None if options.log_scale else (self.upper - self.lower) / intervals
        self.buckets = build_buckets(self.lower, self.upper, intervals, options.log_scale)
        self.last = intervals - 1
        self.top = 0

    def load(self, values):
        for value in values:
            self.add(value)

    def add(self, value: float):
        slot = self.find_slot(value)
        if slot is None:
            return
        bucket = self.buckets[slot]
        bucket.count += 1
        if bucket.count > self.top:
            self.top = bucket.count

    def find_slot(self, value: float) -> int | None:
        if value < self.lower or value > self.upper:
            return None

        if self.log_scale:
            for i, bucket in enumerate(self.buckets):
                if bucket.upper >= value:
                    return i
            # rounding left the last upper bound a hair below max, or the
            # bucket widths saturated to 0 with too many intervals
            return self.last

        if self.step == 0:
            return 0
        return min(int((value - self.lower) / self.step), self.last)

    @property
    def counts(self) -> list[int]:
        return [bucket.count for bucket in self.buckets]

    def formatter(self) -> NumberFormatter:
        return NumberFormatter.for_precision(self.precision, self.lower, self.upper)

    def render(self, width: int = DEFAULT_WIDTH, palette: Palette = PLAIN) -> str:
        fmt = self.formatter()
        width_range = max(len(fmt.format(self.lower)), len(fmt.format(self.upper)))
        width_count = count_width(self.top)
        scale = scale_for(self.top, width, width_range + width_count)

        out = [self.stats.render(palette), scale.header(palette), "\n"]
        for bucket in self.buckets:
            label = f"{fmt.format(bucket.lower):>{width_range}} .. {fmt.format(bucket.upper):>{width_range}}"
            out.append(f"[{palette.paint(label, BLUE)}] "
                       f"[{scale.count(bucket.count, width_count, palette)}] "
                       f"{scale.bar(bucket.count, palette)}\n")
        return "".join(out)

    def __str__(self):
        return self.render()
