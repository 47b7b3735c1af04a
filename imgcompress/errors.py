"""
Error taxonomy for the image compressor.

Callers distinguish recoverable input problems (DecodeError, TooLargeError)
from programmer errors (InvalidQualityError, InvalidMetricError) and
internal encoder failures (EncodeError).
"""

from typing import Optional


class ImageCompressorError(Exception):
    """Base class for all imgcompress errors."""


class DecodeError(ImageCompressorError, ValueError):
    """Input bytes are not a valid image of a supported format."""


class TooLargeError(ImageCompressorError, ValueError):
    """Input exceeds the configured byte or dimension guard."""

    def __init__(self, message: str,
                 width: Optional[int] = None,
                 height: Optional[int] = None,
                 size: Optional[int] = None,
                 limit: Optional[int] = None):
        super().__init__(message)
        self.width = width
        self.height = height
        self.size = size
        self.limit = limit


class InvalidQualityError(ImageCompressorError, ValueError):
    """Quality factor outside [1, 100] or not an integer."""

    def __init__(self, value):
        super().__init__(f"Quality must be an integer in [1, 100], got {value!r}")
        self.value = value


class InvalidMetricError(ImageCompressorError, ValueError):
    """Size inputs to the metrics computation are negative or not integers."""


class EncodeError(ImageCompressorError, RuntimeError):
    """The encoder failed internally."""


class NoSourceError(ImageCompressorError, RuntimeError):
    """A session operation needs a loaded source image."""
