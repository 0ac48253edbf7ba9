import math
from typing import Sequence

from tchart.colors import PLAIN, BLUE, Palette
from tchart.errors import InsufficientDataError
from tchart.numfmt import NumberFormatter

PERCENTILES = (50, 90, 95, 99)


def nearest_rank(ordered: Sequence[float], percent: int) -> float:
    # No interpolation: index floor(n * p / 100) of the ascending samples.
    # For small n this leans towards lower values (p99 of 10 samples is p90).
    return ordered[len(ordered) * percent // 100]


class Statistics:
    """Moments and percentiles of a non-empty set of numbers.

    ``precision`` only affects display: ``None`` picks human units from the
    min/max range, an integer forces that many decimals.

    Percentiles need the samples sorted. Sorting happens on a private copy,
    but callers should not expect any relationship between the input order
    and the result. ``percentiles=False`` skips the sort; ``p50``...``p99``
    are then ``None``.
    """

    def __init__(self, samples: Sequence[float], precision: int | None = None, percentiles: bool = True):
        if len(samples) == 0:
            raise InsufficientDataError("statistics need at least one sample")

        total = 0.0
        lo = hi = samples[0]
        for value in samples:
            total += value
            if value < lo:
                lo = value
            if value > hi:
                hi = value

        count = len(samples)
        avg = total / count
        if math.isinf(avg):
            # the running sum overflowed
            avg = sum(value / count for value in samples)
        variance = sum((avg - value) * (avg - value) for value in samples) / count

        self.min = lo
        self.max = hi
        self.avg = avg
        self.variance = variance
        self.std = math.sqrt(variance)
        self.samples = count
        self.precision = precision

        self.p50 = self.p90 = self.p95 = self.p99 = None
        if percentiles:
            ordered = sorted(samples)
            self.p50, self.p90, self.p95, self.p99 = (nearest_rank(ordered, p) for p in PERCENTILES)

    def formatter(self) -> NumberFormatter:
        return NumberFormatter.for_precision(self.precision, self.min, self.max)

    def render(self, palette: Palette = PLAIN) -> str:
        fmt = self.formatter()

        def blue(text):
            return palette.paint(text, BLUE)

        lines = [
            f"Samples = {blue(str(self.samples))}; "
            f"Min = {blue(fmt.format(self.min))}; "
            f"Max = {blue(fmt.format(self.max))}",

            f"Average = {blue(fmt.format(self.avg))}; "
            f"Variance = {blue(f'{self.variance:.3f}')}; "
            f"STD = {blue(f'{self.std:.3f}')}",
        ]
        if self.p50 is not None:
            lines.append(
                f"p50 = {blue(fmt.format(self.p50))}; "
                f"p90 = {blue(fmt.format(self.p90))}; "
                f"p95 = {blue(fmt.format(self.p95))}; "
                f"p99 = {blue(fmt.format(self.p99))}")
        return "\n".join(lines) + "\n"

    def __str__(self):
        return self.render()

    def __repr__(self):
        return (f"Statistics(samples={self.samples}, min={self.min}, max={self.max}, "
                f"avg={self.avg}, std={self.std})")
