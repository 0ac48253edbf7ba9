"""Timestamp detection for log lines.

A parser is built from one representative line: it works out *where* the
timestamp sits (a ``[start, end)`` span of the line) and *how* to read it (a
``Strategy``). Every later line is cut at the same offsets and read with the
same strategy, so the detection cost is paid once per stream.
"""
import logging
import re
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import NamedTuple

from tchart.errors import TimestampDetectionError

log = logging.getLogger(__name__)

# Longest text the guessing heuristic will try to read as a timestamp
MAX_LEN = 28

RFC3339 = "rfc3339"
RFC2822 = "rfc2822"
EPOCH   = "epoch"
DATE    = "date"
TIME    = "time"
CUSTOM  = "custom"

# Common in the wild, tried in this order
DATE_FORMATS = ( "%Y-%m-%d %H:%M:%S,%f",   # python logging %(asctime)s
                 "%Y-%m-%d %H:%M:%S",
                 "%Y/%m/%d %H:%M:%S",      # nginx
                 "%d-%b-%Y::%H:%M:%S", )   # rabbitmq

# No date component: the time is taken as today, UTC
TIME_FORMATS = ( "%H:%M:%S",               # strace -t
                 "%H:%M:%S.%f", )          # strace -tt

RFC3339_RE = re.compile( r'^(\d{4})-(\d{2})-(\d{2})'      # date
                         r'[Tt ]'
                         r'(\d{2}):(\d{2}):(\d{2})'       # time
                         r'(?:\.(\d+))?'                  # fraction
                         r'([Zz]|[+-]\d{2}:\d{2})$' )     # offset

RFC2822_RE = re.compile( r'^(?:(?:Mon|Tue|Wed|Thu|Fri|Sat|Sun),\s*)?'
                         r'\d{1,2}\s+'
                         r'(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)\s+'
                         r'\d{4}\s+'
                         r'\d{2}:\d{2}(?::\d{2})?\s+'
                         r'(?:[+-]\d{4}|UT|GMT|[ECMP][SD]T|Z)$', re.IGNORECASE )

# Ten integer digits (seconds), up to nanosecond fraction
EPOCH_RE = re.compile(r'^[0-9]{10}(\.[0-9]{1,9})?$')

FIRST_DIGIT_RE = re.compile(r'[0-9]')


class Strategy(NamedTuple):
    kind: str
    fmt: str | None = None

    def __str__(self):
        return f"{self.kind}({self.fmt})" if self.fmt else self.kind


GUESSES = ( Strategy(RFC3339),
            Strategy(RFC2822),
            Strategy(EPOCH),
            *(Strategy(DATE, f) for f in DATE_FORMATS),
            *(Strategy(TIME, f) for f in TIME_FORMATS), )


def _microseconds(fraction: str | None) -> int:
    if not fraction:
        return 0
    return int(fraction[:6].ljust(6, '0'))


def parse_rfc3339(text: str) -> datetime:
    m = RFC3339_RE.match(text)
    if not m:
        raise ValueError(f"not an RFC 3339 timestamp: {text!r}")
    year, month, day, hour, minute, second = (int(g) for g in m.groups()[:6])
    offset = m.group(8)
    if offset in ('Z', 'z'):
        tz = timezone.utc
    else:
        sign = -1 if offset[0] == '-' else 1
        tz = timezone(sign * timedelta(hours=int(offset[1:3]), minutes=int(offset[4:6])))
    return datetime(year, month, day, hour, minute, second, _microseconds(m.group(7)), tzinfo=tz)


def parse_rfc2822(text: str) -> datetime:
    if not RFC2822_RE.match(text):
        raise ValueError(f"not an RFC 2822 timestamp: {text!r}")
    value = parsedate_to_datetime(text)
    if value.tzinfo is None:
        # "-0000" means UTC without further information
        value = value.replace(tzinfo=timezone.utc)
    return value


def parse_epoch(text: str) -> datetime:
    seconds, _, fraction = text.partition('.')
    if not seconds.isdigit() or (fraction and not fraction.isdigit()):
        raise ValueError(f"not a unix timestamp: {text!r}")
    try:
        value = datetime.fromtimestamp(int(seconds), tz=timezone.utc)
    except (OverflowError, OSError) as exc:
        raise ValueError(f"unix timestamp out of range: {text!r}") from exc
    return value + timedelta(microseconds=_microseconds(fraction))


def apply(strategy: Strategy, text: str) -> datetime:
    """Read ``text`` with ``strategy``; raise ValueError when it does not fit."""
    kind = strategy.kind
    if kind == RFC3339:
        return parse_rfc3339(text)
    if kind == RFC2822:
        return parse_rfc2822(text)
    if kind == EPOCH:
        return parse_epoch(text)
    if kind == DATE:
        return datetime.strptime(text, strategy.fmt).replace(tzinfo=timezone.utc)
    if kind == TIME:
        clock = datetime.strptime(text, strategy.fmt).time()
        return datetime.combine(datetime.now(timezone.utc).date(), clock, tzinfo=timezone.utc)
    if kind == CUSTOM:
        value = datetime.strptime(text, strategy.fmt)
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    raise ValueError(f"unknown strategy {kind!r}")


def guess_strategy(text: str) -> Strategy | None:
    if not text:
        return None
    for strategy in GUESSES:
        if strategy.kind == EPOCH and not EPOCH_RE.match(text):
            continue
        try:
            apply(strategy, text)
        except ValueError:
            continue
        return strategy
    return None


class TimestampParser:

    def __init__(self, start: int, end: int, strategy: Strategy):
        self.start = start
        self.end = end
        self.strategy = strategy

    @classmethod
    def detect(cls, line: str, ts_format: str | None = None) -> "TimestampParser":
        if ts_format:
            return cls.with_format(line, ts_format)
        return cls.guess(line)

    @classmethod
    def guess(cls, line: str) -> "TimestampParser":
        # [timestamp] prefix: the bracket content is tried as a whole
        if line.startswith('['):
            close = line.find(']')
            if close > 0:
                strategy = guess_strategy(line[1:close])
                if strategy:
                    log.debug("Timestamp in brackets, read as %s", strategy)
                    return cls(1, close, strategy)

        # Otherwise the timestamp starts at the first digit. Longest text
        # first, so that fractions and offsets are not left behind.
        m = FIRST_DIGIT_RE.search(line)
        if m:
            start = m.start()
            for end in range(min(start + MAX_LEN, len(line)), start, -1):
                strategy = guess_strategy(line[start:end])
                if strategy:
                    log.debug("Timestamp at [%d, %d), read as %s", start, end, strategy)
                    return cls(start, end, strategy)

        raise TimestampDetectionError(f"Could not parse a timestamp in {line!r}")

    @classmethod
    def with_format(cls, line: str, ts_format: str) -> "TimestampParser":
        strategy = Strategy(CUSTOM, ts_format)
        for start in range(len(line)):
            for end in range(min(start + 2 * MAX_LEN, len(line)), start, -1):
                try:
                    apply(strategy, line[start:end])
                except ValueError:
                    continue
                return cls(start, end, strategy)
        raise TimestampDetectionError(f"Could not locate a {ts_format!r} timestamp in {line!r}")

    def parse(self, line: str) -> datetime:
        # slicing clamps both offsets to the length of a short line
        return apply(self.strategy, line[self.start:self.end])

    def __repr__(self):
        return f"TimestampParser(span=[{self.start}, {self.end}), strategy={self.strategy})"
