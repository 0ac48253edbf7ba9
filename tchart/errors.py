class TchartError(Exception):
    pass


class TimestampDetectionError(TchartError, ValueError):
    """No supported timestamp could be located in the sample line."""


class InsufficientDataError(TchartError, ValueError):
    """Not enough samples for the requested chart."""


class ConfigurationError(TchartError, ValueError):
    """Invalid options, reported before any input is processed."""
