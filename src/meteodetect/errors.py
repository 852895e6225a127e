"""Exceptions raised at the detector's construction and I/O boundaries."""


class MeteoDetectError(Exception):
    """Base class for meteodetect errors."""


class InitializationError(MeteoDetectError):
    """Detector could not be constructed (bad config, filter design, output file)."""


class InputUnavailableError(MeteoDetectError):
    """Input sample source could not be opened."""
