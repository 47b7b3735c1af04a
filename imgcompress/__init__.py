"""On-device image re-compression: decode, re-encode as JPEG, compare sizes."""

import logging

from .config import DEFAULT_CONFIG, DecodeLimits, EncoderSettings, get_default_config, merge_configs
from .errors import (
    ImageCompressorError,
    DecodeError,
    TooLargeError,
    InvalidQualityError,
    InvalidMetricError,
    EncodeError,
    NoSourceError
)
from .models import SourceImage, PixelBuffer, EncodedResult, CompressionOutcome, validate_quality
from .decoder import ImageInfo, decode, probe
from .compression import JPEGCompressor, encode, compute_outcome, measure_fidelity
from .session import CompressionSession, CompressionReport
from .utils import download_name, format_size
from .log import configure_logging

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    'DEFAULT_CONFIG',
    'DecodeLimits',
    'EncoderSettings',
    'get_default_config',
    'merge_configs',
    'ImageCompressorError',
    'DecodeError',
    'TooLargeError',
    'InvalidQualityError',
    'InvalidMetricError',
    'EncodeError',
    'NoSourceError',
    'SourceImage',
    'PixelBuffer',
    'EncodedResult',
    'CompressionOutcome',
    'validate_quality',
    'ImageInfo',
    'decode',
    'probe',
    'JPEGCompressor',
    'encode',
    'compute_outcome',
    'measure_fidelity',
    'CompressionSession',
    'CompressionReport',
    'download_name',
    'format_size',
    'configure_logging'
]
