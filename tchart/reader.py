"""Line sources: turn text input into the numbers and timestamps the charts eat."""
import logging
import math
import re
import sys
from datetime import datetime, timedelta
from itertools import chain
from typing import Iterator, Sequence

from tchart.dateparser import TimestampParser
from tchart.errors import ConfigurationError
from tchart.terms import CommonTerms, MatchBar, MatchBarRow
from tchart.timehist import MAX_LABELS

log = logging.getLogger(__name__)

DURATION_RE = re.compile( r'(\d+)\s*'                   # amount
                          r'([a-zA-Z]+)' )              # unit

DURATION_FULL_RE = re.compile(r'\s*(?:\d+\s*[a-zA-Z]+\s*)+')

DURATION_UNITS = { 'us': 'microseconds', 'usec': 'microseconds',
                   'ms': 'milliseconds', 'msec': 'milliseconds',
                   's': 'seconds', 'sec': 'seconds', 'secs': 'seconds', 'second': 'seconds', 'seconds': 'seconds',
                   'm': 'minutes', 'min': 'minutes', 'mins': 'minutes', 'minute': 'minutes', 'minutes': 'minutes',
                   'h': 'hours', 'hr': 'hours', 'hrs': 'hours', 'hour': 'hours', 'hours': 'hours',
                   'd': 'days', 'day': 'days', 'days': 'days',
                   'w': 'weeks', 'week': 'weeks', 'weeks': 'weeks', }


def parse_duration(text: str) -> timedelta:
    """``"2h 30m 5s 100ms"``, ``"3days"``, ``"200ms"``... as a timedelta."""
    if not DURATION_FULL_RE.fullmatch(text):
        raise ValueError(f"invalid duration {text!r}")
    total = timedelta()
    for amount, unit in DURATION_RE.findall(text):
        name = DURATION_UNITS.get(unit)
        if name is None:
            raise ValueError(f"unknown time unit {unit!r} in {text!r}")
        total += timedelta(**{name: int(amount)})
    return total


def compile_regex(pattern: str | re.Pattern | None) -> re.Pattern | None:
    if pattern is None or isinstance(pattern, re.Pattern):
        return pattern
    try:
        return re.compile(pattern)
    except re.error as exc:
        raise ConfigurationError(f"Failed to parse regex {pattern}: {exc}") from exc


def open_input(path: str = "-") -> Iterator[str]:
    """Lines of ``path`` (stdin for ``"-"``) without their line terminator."""
    if path == "-":
        for line in sys.stdin:
            yield line.rstrip("\r\n")
        return
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            yield line.rstrip("\r\n")


def captured(m: re.Match) -> str | None:
    # named group ``value`` first, first group otherwise
    if "value" in m.re.groupindex and m.group("value") is not None:
        return m.group("value")
    if m.re.groups >= 1:
        return m.group(1)
    return None


class DataReader:
    """Reads one number per line, or the number a regex captures in it.

    ``range`` is a ``(lo, hi)`` tuple; only values with ``lo <= x < hi`` are
    kept. Either bound may be infinite.
    """

    def __init__(self, range: tuple[float, float] | None = None, regex=None):
        if range is not None and range[0] > range[1]:
            raise ConfigurationError("Minimum should be smaller than maximum")
        self.range = range
        self.regex = compile_regex(regex)

    def parse_float(self, text: str) -> float | None:
        try:
            value = float(text)
        except ValueError as exc:
            log.debug("Cannot parse float (%s) at '%s'", exc, text)
            return None
        if not math.isfinite(value):
            log.debug("Skipping non-finite value at '%s'", text)
            return None
        return value

    def parse_line(self, line: str) -> float | None:
        if self.regex is None:
            return self.parse_float(line)
        m = self.regex.search(line)
        if not m:
            log.debug("Regex does not match '%s'", line)
            return None
        text = captured(m)
        return None if text is None else self.parse_float(text)

    def read(self, path: str = "-") -> list[float]:
        values = []
        for line in open_input(path):
            value = self.parse_line(line)
            if value is None:
                continue
            if self.range is not None and not self.range[0] <= value < self.range[1]:
                continue
            values.append(value)
        return values

    def read_matches(self, path: str, labels: Sequence[str]) -> MatchBar:
        rows = [MatchBarRow(label) for label in labels]
        for line in open_input(path):
            for row in rows:
                row.inc_if_matches(line)
        return MatchBar(rows)

    def read_terms(self, path: str, lines: int) -> CommonTerms:
        if lines < 1:
            raise ConfigurationError("You should specify a positive number of lines")
        regex = self.regex or re.compile(r'(.*)')
        terms = CommonTerms(lines)
        for line in open_input(path):
            m = regex.search(line)
            if not m:
                continue
            term = captured(m)
            if term is not None:
                terms.observe(term)
        return terms


def _with_parser(lines: Iterator[str], ts_format: str | None):
    # the first line decides where the timestamp is and how to read it
    first = next(lines, None)
    if first is None:
        return None, iter(())
    return TimestampParser.detect(first, ts_format), chain([first], lines)


def _parsed(parser: TimestampParser, lines) -> Iterator[tuple[datetime, str]]:
    for line in lines:
        try:
            yield parser.parse(line), line
        except ValueError:
            continue


class TimeReader:
    """Timestamps of the lines of a log.

    With ``duration`` only the first ``duration`` of the log is kept. With
    ``early_stop`` too, times are assumed to be monotonic and reading stops
    at the first line past that window.
    """

    def __init__(self, regex=None, ts_format: str | None = None,
                 duration: timedelta | None = None, early_stop: bool = False):
        self.regex = compile_regex(regex)
        self.ts_format = ts_format
        self.duration = duration
        self.early_stop = early_stop

    def read(self, path: str = "-") -> list[datetime]:
        parser, lines = _with_parser(open_input(path), self.ts_format)
        if parser is None:
            return []
        log.debug("Reading timestamps with %r", parser)

        result = []
        cut = None
        for ts, line in _parsed(parser, lines):
            if self.duration is not None and self.early_stop:
                if cut is None:
                    cut = ts + self.duration
                elif ts > cut:
                    break
            if self.regex is None or self.regex.search(line):
                result.append(ts)

        if self.duration is not None and not self.early_stop and result:
            limit = min(result) + self.duration
            result = [ts for ts in result if ts <= limit]
        return result


class SplitTimeReader:
    """``(timestamp, label index)`` for every label found in a line."""

    def __init__(self, labels: Sequence[str], ts_format: str | None = None):
        if not labels:
            raise ConfigurationError("At least a match is needed")
        if len(labels) > MAX_LABELS:
            raise ConfigurationError(f"Only {MAX_LABELS} different sub-groups are supported")
        self.labels = list(labels)
        self.ts_format = ts_format

    def read(self, path: str = "-") -> list[tuple[datetime, int]]:
        parser, lines = _with_parser(open_input(path), self.ts_format)
        if parser is None:
            return []

        result = []
        for ts, line in _parsed(parser, lines):
            for i, label in enumerate(self.labels):
                if label in line:
                    result.append((ts, i))
        return result
