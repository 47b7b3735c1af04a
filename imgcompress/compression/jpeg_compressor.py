"""
Quality-parameterized JPEG encoder.
Implements binary search for achieving specific file sizes.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import cv2

from ..config import DEFAULT_CONFIG, EncoderSettings
from ..errors import EncodeError
from ..models import EncodedResult, PixelBuffer, validate_quality
from ..utils.image_utils import flatten_alpha, rgb_to_bgr

logger = logging.getLogger(__name__)

DEFAULT_CURVE_QUALITIES = (10, 30, 50, 70, 90)


@dataclass(frozen=True)
class TargetSizeResult:
    """Result from a target-size quality search."""
    encoded: EncodedResult
    target_bytes: int
    within_tolerance: bool
    iterations: int

    @property
    def quality(self) -> int:
        return self.encoded.quality


class JPEGCompressor:
    """
    JPEG encoding of PixelBuffers at an explicit quality factor.

    Features:
    - Alpha flattening onto a configurable background
    - Binary search for a target file size
    - Quality estimation and quality/size curves
    """

    def __init__(self, settings: Optional[EncoderSettings] = None,
                 tolerance_percent: float = DEFAULT_CONFIG["target_search"]["tolerance_percent"],
                 max_iterations: int = DEFAULT_CONFIG["target_search"]["max_iterations"]):
        """
        Initialize compressor.

        Args:
            settings: Encoder options (defaults when None)
            tolerance_percent: Acceptable deviation from a target size
            max_iterations: Upper bound on target-size search steps
        """
        if tolerance_percent < 0:
            raise ValueError("tolerance_percent must be non-negative")
        if max_iterations <= 0:
            raise ValueError("max_iterations must be positive")
        self.settings = settings or EncoderSettings()
        self.tolerance_percent = tolerance_percent
        self.max_iterations = max_iterations

    def _encode_params(self, quality: int) -> List[int]:
        params = [cv2.IMWRITE_JPEG_QUALITY, quality]
        if self.settings.optimize:
            params += [cv2.IMWRITE_JPEG_OPTIMIZE, 1]
        if self.settings.progressive:
            params += [cv2.IMWRITE_JPEG_PROGRESSIVE, 1]
        return params

    def encode(self, buffer: PixelBuffer, quality: int) -> EncodedResult:
        """
        Encode a pixel buffer as JPEG.

        Args:
            buffer: Decoded RGBA buffer
            quality: JPEG quality (1-100)

        Returns:
            EncodedResult with the JPEG bytes

        Raises:
            InvalidQualityError: quality outside [1, 100]
            EncodeError: OpenCV failed to encode
        """
        quality = validate_quality(quality)

        try:
            rgb = flatten_alpha(buffer.pixels, self.settings.background)
            bgr = rgb_to_bgr(rgb)
            ok, encoded = cv2.imencode('.jpg', bgr, self._encode_params(quality))
        except (cv2.error, MemoryError) as exc:
            raise EncodeError(f"JPEG encoding failed at quality {quality}: {exc}") from exc

        if not ok or encoded is None or encoded.size == 0:
            raise EncodeError(f"JPEG encoder returned no data at quality {quality}")

        data = encoded.tobytes()
        logger.debug("Encoded %dx%d at quality %d: %d bytes",
                     buffer.width, buffer.height, quality, len(data))
        return EncodedResult(
            data=data,
            quality=quality,
            width=buffer.width,
            height=buffer.height,
        )

    def compress_to_target_size(self, buffer: PixelBuffer,
                                target_bytes: int,
                                tolerance_percent: Optional[float] = None) -> TargetSizeResult:
        """
        Find the quality whose output lands closest to a target size.

        Args:
            buffer: Decoded RGBA buffer
            target_bytes: Target size in bytes
            tolerance_percent: Acceptable deviation (default: instance tolerance)

        Returns:
            TargetSizeResult for the closest encode found
        """
        if target_bytes <= 0:
            raise ValueError(f"target_bytes must be positive, got {target_bytes}")
        if tolerance_percent is None:
            tolerance_percent = self.tolerance_percent

        min_size = target_bytes * (1 - tolerance_percent / 100)
        max_size = target_bytes * (1 + tolerance_percent / 100)

        low, high = 1, 100
        best = None
        best_diff = float('inf')
        iterations = 0

        while low <= high and iterations < self.max_iterations:
            iterations += 1
            mid = (low + high) // 2

            encoded = self.encode(buffer, mid)
            size = encoded.length
            diff = abs(size - target_bytes)

            if diff < best_diff:
                best_diff = diff
                best = encoded

            if min_size <= size <= max_size:
                break

            if size > target_bytes:
                high = mid - 1
            else:
                low = mid + 1

        logger.debug("Target %d bytes: quality %d gives %d bytes after %d steps",
                     target_bytes, best.quality, best.length, iterations)
        return TargetSizeResult(
            encoded=best,
            target_bytes=target_bytes,
            within_tolerance=min_size <= best.length <= max_size,
            iterations=iterations,
        )

    def estimate_quality_for_size(self, buffer: PixelBuffer, target_bytes: int) -> int:
        """
        Estimate the quality needed for a target size from three samples.

        Args:
            buffer: Decoded RGBA buffer
            target_bytes: Target size in bytes

        Returns:
            Estimated quality value
        """
        if target_bytes <= 0:
            raise ValueError(f"target_bytes must be positive, got {target_bytes}")

        samples = [(q, self.encode(buffer, q).length) for q in (95, 75, 50)]

        for (q1, s1), (q2, s2) in zip(samples, samples[1:]):
            if s2 <= target_bytes <= s1:
                ratio = (target_bytes - s2) / (s1 - s2) if s1 != s2 else 0.5
                quality = int(q2 + ratio * (q1 - q2))
                return max(1, min(100, quality))

        if target_bytes > samples[0][1]:
            return 98

        ratio = target_bytes / samples[-1][1]
        quality = int(samples[-1][0] * ratio)
        return max(1, min(100, quality))

    def get_quality_vs_size_curve(self, buffer: PixelBuffer,
                                  qualities: Sequence[int] = DEFAULT_CURVE_QUALITIES
                                  ) -> List[Tuple[int, int]]:
        """Return (quality, size_bytes) pairs for each requested quality."""
        return [(q, self.encode(buffer, q).length) for q in qualities]


def encode(buffer: PixelBuffer, quality: int,
           settings: Optional[EncoderSettings] = None) -> EncodedResult:
    """
    Convenience function to encode a buffer at a quality factor.

    Args:
        buffer: Decoded RGBA buffer
        quality: JPEG quality (1-100)
        settings: Encoder options (defaults when None)

    Returns:
        EncodedResult
    """
    return JPEGCompressor(settings).encode(buffer, quality)


def compress_to_target_size(buffer: PixelBuffer,
                            target_bytes: int,
                            tolerance_percent: float = 5.0) -> Tuple[bytes, int, int]:
    """
    Convenience function to compress a buffer to a target size.

    Returns:
        Tuple of (compressed_bytes, actual_size_bytes, quality_used)
    """
    compressor = JPEGCompressor(tolerance_percent=tolerance_percent)
    result = compressor.compress_to_target_size(buffer, target_bytes)
    return result.encoded.data, result.encoded.length, result.quality
