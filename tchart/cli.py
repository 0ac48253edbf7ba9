import argparse
import logging
import math
import os
import signal
import sys

import colorama

from tchart import __version__
from tchart.colors import Palette
from tchart.errors import ConfigurationError, TimestampDetectionError
from tchart.histogram import DEFAULT_WIDTH, Histogram, HistogramOptions
from tchart.reader import DataReader, SplitTimeReader, TimeReader, parse_duration
from tchart.timehist import SplitTimeHistogram, TimeHistogram
from tchart.xyplot import XyPlot

log = logging.getLogger(__name__)

LOG_FORMAT = "[%(levelname)s] %(message)s"

REGEX_HELP = ( "Regex capturing the values inside input lines: the group named "
               "'value' if present, else the first group. Without it, a number "
               "per line is expected." )


def _handle_sigint(signum, frame):
    raise KeyboardInterrupt("Ctrl+C")


def get_terminal_width() -> int:
    try:
        return os.get_terminal_size().columns
    except OSError:
        return DEFAULT_WIDTH


def configure_output(color: str, verbose: bool) -> Palette:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger = logging.getLogger("tchart")
    for old in list(logger.handlers):
        logger.removeHandler(old)
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    if color == "yes":
        enabled = True
    elif color == "no":
        enabled = False
    else:
        enabled = os.environ.get("TERM") != "dumb" and sys.stdout.isatty()
    if enabled:
        colorama.just_fix_windows_console()
    return Palette(enabled)


def _add_input(parser, required=False):
    if required:
        parser.add_argument('input',
                            help='Input file, a single dash for stdin.')
    else:
        parser.add_argument('input', nargs='?', default='-',
                            help='Input file; if not present or a single dash, stdin is read.')


def _add_width(parser):
    parser.add_argument('-w', '--width',
                        type=int, default=None, metavar='<N>',
                        help='Use this many characters as terminal width. (default: terminal width)')


def _add_intervals(parser):
    parser.add_argument('-i', '--intervals',
                        type=int, default=20, metavar='<N>',
                        help='Use no more than this amount of buckets (default: %(default)s)')


def _add_min_max(parser):
    parser.add_argument('-m', '--min',
                        type=float, default=None, metavar='<N>',
                        help='Filter out values smaller than this.')
    parser.add_argument('-M', '--max',
                        type=float, default=None, metavar='<N>',
                        help='Filter out values bigger than or equal to this.')


def _add_precision(parser):
    parser.add_argument('-p', '--precision',
                        type=int, default=-1, metavar='<N>',
                        help='Decimals to show; negative for human units (default: %(default)s)')


def get_arg(argv):
    parser = argparse.ArgumentParser(prog='tchart',
                                     description='Low resolution charts of text data, in the terminal.')
    parser.add_argument('-V', '--version', action='version',
                        version=f"tchart {__version__}")
    parser.add_argument('-c', '--color',
                        choices=['auto', 'no', 'yes'], default='auto',
                        help='Use colors in the output (default: %(default)s)')
    parser.add_argument('-v', '--verbose',
                        action='store_true',
                        help='Be more verbose.')
    sub = parser.add_subparsers(dest='command', metavar='<command>', required=True)

    hist = sub.add_parser('hist', help='Histogram of the input values.')
    _add_input(hist)
    _add_min_max(hist)
    hist.add_argument('-R', '--regex', type=str, default=None, metavar='REGEX', help=REGEX_HELP)
    _add_width(hist)
    _add_intervals(hist)
    _add_precision(hist)
    hist.add_argument('-l', '--log-scale',
                      action='store_true',
                      help='Bucket widths double from one bucket to the next, starting at 0.')
    hist.set_defaults(func=histogram)

    plot = sub.add_parser('plot', help='x-y plot where y-values are averages of the input values.')
    _add_input(plot)
    _add_min_max(plot)
    plot.add_argument('-R', '--regex', type=str, default=None, metavar='REGEX', help=REGEX_HELP)
    _add_width(plot)
    plot.add_argument('-H', '--height',
                      type=int, default=40, metavar='<N>',
                      help='Plot height in lines (default: %(default)s)')
    _add_precision(plot)
    plot.set_defaults(func=xyplot)

    matches = sub.add_parser('matches', help='Bar chart with the number of lines containing each string.')
    _add_input(matches, required=True)
    matches.add_argument('match', nargs='+', metavar='MATCH',
                         help='Count lines containing this string.')
    _add_width(matches)
    matches.set_defaults(func=matchbar)

    timehist = sub.add_parser('timehist', help='Histogram of log lines over time.')
    _add_input(timehist)
    timehist.add_argument('-R', '--regex', type=str, default=None, metavar='REGEX',
                          help='Only count lines where this regex is found.')
    timehist.add_argument('-f', '--format', type=str, default=None, metavar='FORMAT', dest='ts_format',
                          help='strptime format of the timestamps; guessed when missing.')
    timehist.add_argument('--duration', type=str, default=None, metavar='DURATION',
                          help="Cap the time interval at that duration (e.g. '3h 5min')")
    timehist.add_argument('--early-stop', action='store_true',
                          help='With --duration, assume ordered times and stop reading as soon as possible.')
    _add_intervals(timehist)
    _add_width(timehist)
    timehist.set_defaults(func=time_histogram)

    split = sub.add_parser('split-timehist', help='Histogram over time of lines containing up to 5 strings.')
    split.add_argument('match', nargs='+', metavar='MATCH',
                       help='Count lines containing this string, separately for each string.')
    split.add_argument('-I', '--input', default='-', metavar='INPUT',
                       help='Input file; stdin if not present or a single dash.')
    split.add_argument('-f', '--format', type=str, default=None, metavar='FORMAT', dest='ts_format',
                       help='strptime format of the timestamps; guessed when missing.')
    _add_intervals(split)
    _add_width(split)
    split.set_defaults(func=split_time_histogram)

    terms = sub.add_parser('common-terms', help='Most frequent terms of the input.')
    _add_input(terms)
    terms.add_argument('-R', '--regex', type=str, default=None, metavar='REGEX',
                       help="Regex capturing the term in every line (default: the whole line)")
    terms.add_argument('-l', '--lines',
                       type=int, default=10, metavar='<N>',
                       help='Number of terms to display (default: %(default)s)')
    _add_width(terms)
    terms.set_defaults(func=common_terms)

    return parser.parse_args(argv)


def _positive(value: int, name: str) -> int:
    if value < 1:
        raise ConfigurationError(f"{name} should be a positive number, got {value}")
    return value


def _width(args) -> int:
    if args.width is None:
        return get_terminal_width()
    return _positive(args.width, "Width")


def _precision(args) -> int | None:
    return None if args.precision < 0 else args.precision


def _float_reader(args) -> DataReader:
    value_range = None
    if args.min is not None or args.max is not None:
        value_range = ( -math.inf if args.min is None else args.min,
                        math.inf if args.max is None else args.max )
    return DataReader(range=value_range, regex=args.regex)


def _enough(values, minimum: int) -> bool:
    if len(values) < minimum:
        log.warning("Not enough data to process")
        return False
    return True


def _duration(text: str | None):
    if text is None:
        return None
    try:
        return parse_duration(text)
    except ValueError as exc:
        raise ConfigurationError(f"Failed to parse duration {text}: {exc}") from exc


def histogram(args, palette: Palette) -> int:
    reader = _float_reader(args)
    options = HistogramOptions(_positive(args.intervals, "Intervals"), args.log_scale, _precision(args))
    width = _width(args)
    values = reader.read(args.input)
    if not _enough(values, 1):
        return 1
    print(Histogram(values, options).render(width, palette), end='')
    return 0


def xyplot(args, palette: Palette) -> int:
    reader = _float_reader(args)
    width = _width(args)
    height = _positive(args.height, "Height")
    values = reader.read(args.input)
    if not _enough(values, 1):
        return 1
    print(XyPlot(values, width, height, _precision(args)).render(palette=palette), end='')
    return 0


def matchbar(args, palette: Palette) -> int:
    width = _width(args)
    bar = DataReader().read_matches(args.input, args.match)
    print(bar.render(width, palette), end='')
    return 0


def time_histogram(args, palette: Palette) -> int:
    reader = TimeReader(args.regex, args.ts_format, _duration(args.duration), args.early_stop)
    intervals = _positive(args.intervals, "Intervals")
    width = _width(args)
    try:
        values = reader.read(args.input)
    except TimestampDetectionError as exc:
        log.error("Could not figure out parsing strategy: %s", exc)
        values = []
    if _enough(values, 2):
        print(TimeHistogram(intervals, values).render(width, palette), end='')
    return 0


def split_time_histogram(args, palette: Palette) -> int:
    reader = SplitTimeReader(args.match, args.ts_format)
    intervals = _positive(args.intervals, "Intervals")
    width = _width(args)
    try:
        pairs = reader.read(args.input)
    except TimestampDetectionError as exc:
        log.error("Could not figure out parsing strategy: %s", exc)
        pairs = []
    if _enough(pairs, 2):
        print(SplitTimeHistogram(intervals, args.match, pairs).render(width, palette), end='')
    return 0


def common_terms(args, palette: Palette) -> int:
    reader = DataReader(regex=args.regex if args.regex is not None else r'(.*)')
    width = _width(args)
    terms = reader.read_terms(args.input, args.lines)
    print(terms.render(width, palette), end='')
    return 0


def main(argv=None) -> int:
    try:
        args = get_arg(sys.argv[1:] if argv is None else argv)
    except SystemExit as exc:
        # argparse exits for --help, --version and usage errors
        return exc.code if isinstance(exc.code, int) else 2

    palette = configure_output(args.color, args.verbose)
    try:
        return args.func(args, palette)
    except ConfigurationError as exc:
        log.error("%s", exc)
        return 2
    except (OSError, UnicodeDecodeError) as exc:
        log.error("Could not read %s: %s", args.input, exc)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted by the user.", file=sys.stderr)
        return 130


def run():
    signal.signal(signal.SIGINT, _handle_sigint)
    sys.exit(main())


if __name__ == "__main__":
    run()
