import math
from typing import Sequence

from tchart.colors import PLAIN, BLUE, RED, Palette
from tchart.errors import ConfigurationError, InsufficientDataError
from tchart.numfmt import NumberFormatter
from tchart.stats import Statistics

DOT_CHAR = "●"


def average_values_in_groups(values: Sequence[float], group_size: int) -> list[float]:
    result = []
    for i in range(0, len(values), group_size):
        group = values[i:i + group_size]
        if group:
            result.append(sum(group) / len(group))
    return result


class XyPlot:
    """Samples in input order, averaged down to ``width`` columns.

    Every column is the average of a run of ``len(samples) // width``
    consecutive values; a trailing partial run adds one more column. The
    y-axis has ``height`` rows starting at the minimum of ``stats``.
    """

    def __init__(self, samples: Sequence[float], width: int, height: int, precision: int | None = None):
        self._setup(width, height, Statistics(samples, precision, percentiles=False), precision)
        self.load(samples)

    @classmethod
    def from_stats(cls, width: int, height: int, stats: Statistics, precision: int | None = None) -> "XyPlot":
        plot = cls.__new__(cls)
        plot._setup(width, height, stats, precision)
        return plot

    def _setup(self, width, height, stats, precision):
        if width < 1 or height < 1:
            raise ConfigurationError(f"plot size must be positive, got {width}x{height}")
        self.width = width
        self.height = height
        self.stats = stats
        self.precision = precision
        self.x_axis = []
        self.y_axis = []

    def load(self, samples: Sequence[float]):
        if not samples:
            raise InsufficientDataError("nothing to plot")
        self.width = min(self.width, len(samples))
        self.x_axis = average_values_in_groups(samples, len(samples) // self.width)

        step = (self.stats.max - self.stats.min) / self.height
        self.y_axis = [self.stats.min + step * y for y in range(self.height)]

    def _row(self, lo: float, hi: float) -> str:
        return "".join(DOT_CHAR if lo <= value < hi else " " for value in self.x_axis)

    def render(self, width: int | None = None, palette: Palette = PLAIN) -> str:
        # ``width`` is fixed at construction; accepted for a uniform render()
        fmt = NumberFormatter.for_precision(self.precision, self.stats.min, self.stats.max)
        y_width = max(len(fmt.format(value)) for value in self.y_axis)

        tops = list(reversed(self.y_axis))
        ranges = [(tops[0], math.inf)] + [(lo, hi) for hi, lo in zip(tops, tops[1:])]

        out = [self.stats.render(palette)]
        for lo, hi in ranges:
            label = f"{fmt.format(lo):>{y_width}}"
            out.append(f"[{palette.paint(label, BLUE)}] {palette.paint(self._row(lo, hi), RED)}\n")
        return "".join(out)

    def __str__(self):
        return self.render()
