"""Histograms of timestamps: how many events fell in each slice of time."""
from datetime import datetime, timedelta
from typing import Sequence

from tchart.colors import PLAIN, BLUE, SPLIT_COLORS, Palette
from tchart.errors import ConfigurationError, InsufficientDataError
from tchart.histogram import DEFAULT_WIDTH
from tchart.numfmt import BAR_CHAR, count_width, scale_for

MAX_LABELS = len(SPLIT_COLORS)

ONE_SECOND = timedelta(seconds=1)
ONE_MICROSECOND = timedelta(microseconds=1)


def date_fmt(span: timedelta) -> tuple[str, int]:
    """strftime format and number of sub-second digits for labels of ``span``."""
    seconds = span // ONE_SECOND
    if seconds > 86400:
        return "%Y-%m-%d %H:%M:%S", 0
    if seconds > 300:
        return "%H:%M:%S", 0
    if seconds > 1:
        return "%H:%M:%S", 3
    return "%H:%M:%S", 6


def format_label(ts: datetime, fmt: str, digits: int) -> str:
    text = ts.strftime(fmt)
    if digits:
        text += f".{ts.microsecond:06d}"[:digits + 1]
    return text


class TimeBucket:
    __slots__ = ("start", "counts")

    def __init__(self, start: datetime, labels: int = 1):
        self.start = start
        self.counts = [0] * labels

    @property
    def count(self) -> int:
        return self.counts[0]

    @property
    def total(self) -> int:
        return sum(self.counts)

    def __repr__(self):
        return f"TimeBucket(start={self.start.isoformat()}, counts={self.counts})"


class _TimeSlots:
    # [min, max] cut in ``size`` buckets, shared by both histograms

    def _setup(self, size: int, timestamps: Sequence[datetime], labels: int):
        if size < 1:
            raise ConfigurationError(f"a time histogram needs at least one interval, got {size}")
        if not timestamps:
            raise InsufficientDataError("a time histogram needs at least one timestamp")

        self.min = min(timestamps)
        self.max = max(timestamps)
        self.span = self.max - self.min
        self.step = self.span // size
        self.buckets = [TimeBucket(self.min + self.step * i, labels) for i in range(size)]
        self.last = size - 1
        self.total_us = self.span // ONE_MICROSECOND

    def find_slot(self, ts: datetime) -> int | None:
        if ts < self.min or ts > self.max:
            return None
        if self.total_us == 0:
            # every timestamp is the same instant: degenerate, not an error
            return 0
        elapsed = (ts - self.min) // ONE_MICROSECOND
        return min(elapsed * len(self.buckets) // self.total_us, self.last)

    def labels(self) -> list[str]:
        fmt, digits = date_fmt(self.span)
        return [format_label(bucket.start, fmt, digits) for bucket in self.buckets]

    @property
    def matches(self) -> int:
        return sum(bucket.total for bucket in self.buckets)

    def __str__(self):
        return self.render()


class TimeHistogram(_TimeSlots):
    """Counts of timestamps per time slice of ``[min, max]``.

    ``size`` is the number of slices. Timestamps added later that fall out
    of the initial range are discarded.
    """

    def __init__(self, size: int, timestamps: Sequence[datetime]):
        self._setup(size, timestamps, 1)
        self.top = 0
        self.load(timestamps)

    def load(self, timestamps):
        for ts in timestamps:
            self.add(ts)

    def add(self, ts: datetime):
        slot = self.find_slot(ts)
        if slot is None:
            return
        bucket = self.buckets[slot]
        bucket.counts[0] += 1
        if bucket.count > self.top:
            self.top = bucket.count

    @property
    def counts(self) -> list[int]:
        return [bucket.count for bucket in self.buckets]

    def render(self, width: int = DEFAULT_WIDTH, palette: Palette = PLAIN) -> str:
        labels = self.labels()
        width_label = max(len(label) for label in labels)
        width_count = count_width(self.top)
        scale = scale_for(self.top, width, width_label + width_count)

        out = [f"Matches: {palette.paint(str(self.matches), BLUE)}.\n", scale.header(palette), "\n"]
        for label, bucket in zip(labels, self.buckets):
            out.append(f"[{palette.paint(label, BLUE)}] "
                       f"[{scale.count(bucket.count, width_count, palette)}] "
                       f"{scale.bar(bucket.count, palette)}\n")
        return "".join(out)


class SplitTimeHistogram(_TimeSlots):
    """Time histogram with one counter per label, up to five labels.

    ``pairs`` holds ``(timestamp, label_index)`` tuples; one line of input
    contributes one pair per label it contains.
    """

    def __init__(self, size: int, labels: Sequence[str], pairs: Sequence[tuple[datetime, int]]):
        if not labels:
            raise ConfigurationError("a split time histogram needs at least one label")
        if len(labels) > MAX_LABELS:
            raise ConfigurationError(f"Only {MAX_LABELS} different sub-groups are supported")
        self.strings = list(labels)
        self._setup(size, [ts for ts, _ in pairs], len(self.strings))
        self.load(pairs)

    def load(self, pairs):
        for ts, index in pairs:
            self.add(ts, index)

    def add(self, ts: datetime, index: int):
        slot = self.find_slot(ts)
        if slot is not None:
            self.buckets[slot].counts[index] += 1

    @property
    def top(self) -> int:
        return max(bucket.total for bucket in self.buckets)

    def totals(self) -> list[int]:
        return [sum(bucket.counts[i] for bucket in self.buckets) for i in range(len(self.strings))]

    def render(self, width: int = DEFAULT_WIDTH, palette: Palette = PLAIN) -> str:
        labels = self.labels()
        width_label = max(len(label) for label in labels)
        # one column per label, as wide as its largest count
        widths = [max(count_width(bucket.counts[i]) for bucket in self.buckets)
                  for i in range(len(self.strings))]
        fixed = width_label + sum(widths) + len(widths) - 1
        scale = scale_for(self.top, width, fixed)
        colors = SPLIT_COLORS

        out = [f"Matches: {palette.paint(str(self.matches), BLUE)}.\n"]
        for i, (string, total) in enumerate(zip(self.strings, self.totals())):
            out.append(f"{palette.paint(string, colors[i])}: {total}.\n")
        out.append(scale.header(palette) + "\n")

        for label, bucket in zip(labels, self.buckets):
            counts = "/".join(palette.paint(f"{count:>{widths[i]}}", colors[i])
                              for i, count in enumerate(bucket.counts))
            bars = "".join(palette.paint(BAR_CHAR * (count // scale.scale), colors[i])
                           for i, count in enumerate(bucket.counts))
            out.append(f"[{palette.paint(label, BLUE)}] [{counts}] {bars}\n")
        return "".join(out)
