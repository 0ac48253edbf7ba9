import math
import sys

from tchart.colors import PLAIN, BLUE, GREEN, RED, Palette

BAR_CHAR = "∎"

# Unit suffixes for human formatting, indexed by powers of 1000
UNITS = ["", "K", "M", "G", "T", "P", "E", "Z", "Y"]

MAX_DIVISOR_POWER = 5
MAX_SMALL_DECIMALS = 8
DEFAULT_DECIMALS = 3

# Columns kept free next to the bars, and the bar area used when the
# requested width cannot even hold the fixed columns
EXTRA_CHARS = 10
FALLBACK_BAR_LEN = 75


class NumberFormatter:
    """Renders floats with a fixed amount of decimals and an optional unit.

    ``NumberFormatter(3)`` always prints three decimals.
    ``NumberFormatter.for_range(lo, hi)`` picks decimals and a K/M/G... unit
    from the order of magnitude of ``hi - lo`` ("human" mode).

    Non-finite values are not special-cased: they come out as Python prints
    them (``nan``, ``inf``) followed by the unit suffix, if any.
    """

    def __init__(self, decimals: int, divisor_power: int = 0):
        self.decimals = decimals
        self.divisor_power = divisor_power
        self.suffix = f" {UNITS[divisor_power]}" if divisor_power else ""

    @classmethod
    def for_range(cls, lo: float, hi: float) -> "NumberFormatter":
        span = hi - lo
        if span == 0 or math.isnan(span):
            return cls(DEFAULT_DECIMALS)

        if math.isinf(span):
            # hi - lo overflowed: past the largest float
            log = sys.float_info.max_10_exp
        else:
            log = math.floor(math.log10(abs(span)))
        if log <= 0:
            return cls(min(-log, MAX_SMALL_DECIMALS) + 3)

        decimals = log % 3
        divisor_power = min((log - 1) // 3, MAX_DIVISOR_POWER)
        return cls(decimals, divisor_power)

    @classmethod
    def for_precision(cls, precision: int | None, lo: float, hi: float) -> "NumberFormatter":
        if precision is None:
            return cls.for_range(lo, hi)
        return cls(precision)

    def format(self, number: float) -> str:
        value = number / 1000 ** self.divisor_power
        return f"{value:.{self.decimals}f}{self.suffix}"

    def __repr__(self):
        return f"NumberFormatter(decimals={self.decimals}, divisor_power={self.divisor_power})"


class HorizontalScale:
    """How many counts a single bar glyph stands for."""

    def __init__(self, scale: int):
        self.scale = max(1, scale)

    def bar(self, count: int, palette: Palette = PLAIN) -> str:
        return palette.paint(BAR_CHAR * (count // self.scale), RED)

    def count(self, count: int, width: int, palette: Palette = PLAIN) -> str:
        return palette.paint(f"{count:>{width}}", GREEN)

    def header(self, palette: Palette = PLAIN) -> str:
        return (f"Each {palette.paint(BAR_CHAR, RED)} represents "
                f"a count of {palette.paint(str(self.scale), BLUE)}")

    def __str__(self):
        return self.header()


def max_bar_len(width: int, fixed_width: int) -> int:
    if width < fixed_width + EXTRA_CHARS:
        return FALLBACK_BAR_LEN
    return width - fixed_width - EXTRA_CHARS


def scale_for(top: int, width: int, fixed_width: int) -> HorizontalScale:
    return HorizontalScale(top // max_bar_len(width, fixed_width))


def count_width(top: int) -> int:
    return max(1, len(str(top)))
