"""Compression session: one source image, decoded once, encoded on demand.

:class:`CompressionSession` holds the state a front end needs between user
actions: the selected source, its decoded buffer, and the last result. A
quality change re-encodes the cached buffer without decoding again. The
session is not thread-safe; a caller that offloads work to a worker should
hand the whole session to that worker.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .compression.jpeg_compressor import JPEGCompressor
from .compression.metrics import compute_outcome
from .config import DecodeLimits, EncoderSettings, get_default_config, merge_configs
from .decoder import decode
from .errors import NoSourceError
from .models import BytesLike, CompressionOutcome, EncodedResult, PixelBuffer, SourceImage
from .models import validate_quality
from .utils.image_utils import download_name, format_size

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompressionReport:
    """Encoded output together with its size comparison."""

    encoded: EncodedResult
    outcome: CompressionOutcome

    def summary(self) -> Dict[str, str]:
        """Display strings for the before/after panel."""

        return {
            "original_size": format_size(self.outcome.original_size),
            "compressed_size": format_size(self.outcome.compressed_size),
            "reduction": self.outcome.format_reduction(),
            "quality": f"{self.encoded.quality}%",
        }


class CompressionSession:
    """Track the current source image and its compressed result."""

    def __init__(self, config: Optional[Dict[str, Any]] = None) -> None:
        self._config = merge_configs(get_default_config(), config or {})
        self._limits = DecodeLimits.from_config(self._config)
        self._compressor = JPEGCompressor(
            EncoderSettings.from_config(self._config),
            tolerance_percent=self._config["target_search"]["tolerance_percent"],
            max_iterations=self._config["target_search"]["max_iterations"],
        )
        self._default_quality = validate_quality(self._config["session"]["default_quality"])
        self._source: Optional[SourceImage] = None
        self._buffer: Optional[PixelBuffer] = None
        self._last_report: Optional[CompressionReport] = None

    @property
    def source(self) -> Optional[SourceImage]:
        return self._source

    @property
    def buffer(self) -> Optional[PixelBuffer]:
        return self._buffer

    @property
    def last_report(self) -> Optional[CompressionReport]:
        return self._last_report

    @property
    def compressor(self) -> JPEGCompressor:
        return self._compressor

    @property
    def default_quality(self) -> int:
        return self._default_quality

    @property
    def download_name(self) -> str:
        """File name for the compressed download."""

        naming = self._config["naming"]
        return download_name(
            self._source.name if self._source else None,
            suffix=naming["suffix"],
            extension=self._compressor_extension(),
            default=naming["default_name"],
        )

    def _compressor_extension(self) -> str:
        if self._last_report is not None:
            return self._last_report.encoded.extension
        return EncodedResult.extension

    def load(self, data: BytesLike, name: Optional[str] = None) -> SourceImage:
        """Replace the current source with ``data`` and decode it.

        On failure the previous source stays loaded and the error propagates.
        """

        source = SourceImage.from_bytes(data, name)
        buffer = decode(source.data, self._limits)
        self._source = source
        self._buffer = buffer
        self._last_report = None
        logger.info(
            "Loaded %s (%s, %dx%d)",
            name or "unnamed image",
            format_size(source.original_size),
            buffer.width,
            buffer.height,
        )
        return source

    def compress(self, quality: Optional[int] = None) -> CompressionReport:
        """Encode the loaded image at ``quality`` (session default when None)."""

        if self._source is None or self._buffer is None:
            raise NoSourceError("No image loaded; call load() first")
        if quality is None:
            quality = self._default_quality

        encoded = self._compressor.encode(self._buffer, quality)
        outcome = compute_outcome(self._source.original_size, encoded.length)
        report = CompressionReport(encoded=encoded, outcome=outcome)
        self._last_report = report
        logger.info(
            "Compressed at quality %d: %s -> %s (%s)",
            encoded.quality,
            format_size(outcome.original_size),
            format_size(outcome.compressed_size),
            outcome.format_reduction(),
        )
        return report

    def compress_to_size(self, target_bytes: int) -> CompressionReport:
        """Encode the loaded image at the quality closest to ``target_bytes``."""

        if self._source is None or self._buffer is None:
            raise NoSourceError("No image loaded; call load() first")

        result = self._compressor.compress_to_target_size(self._buffer, target_bytes)
        outcome = compute_outcome(self._source.original_size, result.encoded.length)
        report = CompressionReport(encoded=result.encoded, outcome=outcome)
        self._last_report = report
        if not result.within_tolerance:
            logger.warning(
                "Target %s not reached; closest is %s at quality %d",
                format_size(target_bytes),
                format_size(result.encoded.length),
                result.quality,
            )
        return report

    def reset(self) -> None:
        """Forget the source, buffer and last result."""

        self._source = None
        self._buffer = None
        self._last_report = None
        logger.debug("Session reset")
