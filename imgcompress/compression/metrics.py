"""
Size and quality metrics for compression analysis.
Implements the before/after size outcome plus PSNR, SSIM and MSE.
"""

import numbers
from dataclasses import dataclass
from typing import Dict, Any, Optional

import cv2
import numpy as np

from ..config import DecodeLimits, EncoderSettings
from ..decoder import decode
from ..errors import InvalidMetricError
from ..models import CompressionOutcome, EncodedResult, PixelBuffer
from ..utils.image_utils import flatten_alpha


@dataclass
class QualityMetrics:
    """Fidelity of an encoded result against its source buffer."""
    psnr: float
    ssim: float
    mse: float
    compressed_size: int
    bits_per_pixel: float


def _check_size(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise InvalidMetricError(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise InvalidMetricError(f"{name} must be non-negative, got {value}")
    return int(value)


def compute_outcome(original_size: int, compressed_size: int) -> CompressionOutcome:
    """
    Compare original and compressed sizes.

    Args:
        original_size: Size of the source file in bytes
        compressed_size: Size of the encoded output in bytes

    Returns:
        CompressionOutcome; its reduction_percent is None (not applicable)
        when original_size is 0

    Raises:
        InvalidMetricError: negative or non-integer sizes
    """
    original_size = _check_size("original_size", original_size)
    compressed_size = _check_size("compressed_size", compressed_size)

    if original_size == 0:
        reduction = None
    else:
        reduction = (1 - compressed_size / original_size) * 100

    return CompressionOutcome(
        original_size=original_size,
        compressed_size=compressed_size,
        reduction_percent=reduction,
    )


# (threshold, label) pairs, best first. A value above the threshold gets the label.
PSNR_LADDER = (
    (40.0, "Indistinguishable"),
    (35.0, "Minor artifacts"),
    (30.0, "Visible on close inspection"),
    (25.0, "Visible blocking"),
)
SSIM_LADDER = (
    (0.98, "Indistinguishable"),
    (0.95, "Minor artifacts"),
    (0.90, "Visible on close inspection"),
    (0.80, "Visible blocking"),
)
HEAVY_LOSS = "Heavy loss"

# Above these, extra quality mostly buys bytes; below them, loss shows on screen.
OVERSPENT_PSNR = 42.0
UNDERSPENT_SSIM = 0.90


def _check_shapes(original: np.ndarray, compressed: np.ndarray) -> None:
    if original.shape != compressed.shape:
        raise ValueError(
            f"Image shapes differ: {original.shape} vs {compressed.shape}"
        )


def _to_gray(image: np.ndarray) -> np.ndarray:
    if image.ndim == 3:
        image = cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)
    return image.astype(np.float64)


def calculate_mse(original: np.ndarray, compressed: np.ndarray) -> float:
    """Mean squared sample error; 0 means the images are identical."""
    _check_shapes(original, compressed)
    error = np.subtract(original, compressed, dtype=np.float64)
    return float(np.mean(np.square(error)))


def calculate_psnr(original: np.ndarray, compressed: np.ndarray) -> float:
    """Peak signal-to-noise ratio in dB for 8-bit samples (inf when identical)."""
    mse = calculate_mse(original, compressed)
    if mse == 0:
        return float('inf')
    return float(10 * np.log10(255.0 ** 2 / mse))


def calculate_ssim(original: np.ndarray, compressed: np.ndarray,
                   window_size: int = 11, sigma: float = 1.5) -> float:
    """
    Mean structural similarity of the luma planes of two images.

    Local statistics use a Gaussian window, as in Wang et al. (2004).

    Args:
        original: RGB or grayscale uint8 image
        compressed: Image of the same shape
        window_size: Gaussian window size
        sigma: Gaussian window standard deviation

    Returns:
        SSIM in [-1, 1]; 1 means identical
    """
    _check_shapes(original, compressed)

    x = _to_gray(original)
    y = _to_gray(compressed)

    kernel = cv2.getGaussianKernel(window_size, sigma)
    window = kernel @ kernel.T

    def local_mean(plane: np.ndarray) -> np.ndarray:
        return cv2.filter2D(plane, -1, window)

    c1 = (0.01 * 255) ** 2
    c2 = (0.03 * 255) ** 2

    mu_x = local_mean(x)
    mu_y = local_mean(y)
    var_x = local_mean(x * x) - mu_x ** 2
    var_y = local_mean(y * y) - mu_y ** 2
    cov_xy = local_mean(x * y) - mu_x * mu_y

    ssim_map = ((2 * mu_x * mu_y + c1) * (2 * cov_xy + c2)) / (
        (mu_x ** 2 + mu_y ** 2 + c1) * (var_x + var_y + c2)
    )
    return float(ssim_map.mean())


def calculate_bits_per_pixel(compressed_size_bytes: int,
                             width: int, height: int) -> float:
    """Bits of encoded output per image pixel."""
    total_pixels = width * height
    if total_pixels == 0:
        return 0.0

    return compressed_size_bytes * 8 / total_pixels


def measure_fidelity(buffer: PixelBuffer,
                     encoded: EncodedResult,
                     settings: Optional[EncoderSettings] = None,
                     limits: Optional[DecodeLimits] = None) -> QualityMetrics:
    """
    Decode an encoded result and compare it with its source buffer.

    The source is flattened onto the encoder background first, so
    transparency does not count as error.

    Args:
        buffer: Buffer the result was encoded from
        encoded: Encoder output
        settings: Encoder settings used for the encode (for the background)
        limits: Decode guards for re-decoding the output

    Returns:
        QualityMetrics
    """
    settings = settings or EncoderSettings()
    reference = flatten_alpha(buffer.pixels, settings.background)
    decoded = decode(encoded.data, limits)
    candidate = np.ascontiguousarray(decoded.pixels[..., :3])

    return QualityMetrics(
        psnr=calculate_psnr(reference, candidate),
        ssim=calculate_ssim(reference, candidate),
        mse=calculate_mse(reference, candidate),
        compressed_size=encoded.length,
        bits_per_pixel=calculate_bits_per_pixel(encoded.length, buffer.width, buffer.height),
    )


def _rate(value: float, ladder) -> str:
    for threshold, label in ladder:
        if value > threshold:
            return label
    return HEAVY_LOSS


def get_quality_assessment(metrics: QualityMetrics) -> Dict[str, Any]:
    """
    Describe how visible the compression loss is and which way to move the
    quality slider.

    Args:
        metrics: Fidelity of one encode

    Returns:
        Dictionary with per-metric ratings, a suggestion and rounded details
    """
    identical = metrics.psnr == float('inf')

    if identical:
        psnr_rating = "Identical"
    else:
        psnr_rating = _rate(metrics.psnr, PSNR_LADDER)
    ssim_rating = _rate(metrics.ssim, SSIM_LADDER)

    if identical or metrics.psnr > OVERSPENT_PSNR:
        suggestion = "lower_quality"
    elif metrics.ssim < UNDERSPENT_SSIM:
        suggestion = "raise_quality"
    else:
        suggestion = "keep"

    return {
        "psnr_rating": psnr_rating,
        "ssim_rating": ssim_rating,
        "suggestion": suggestion,
        "details": {
            "psnr_db": None if identical else round(metrics.psnr, 2),
            "ssim_index": round(metrics.ssim, 4),
            "mse": round(metrics.mse, 2),
            "size_bytes": metrics.compressed_size,
            "bits_per_pixel": round(metrics.bits_per_pixel, 2)
        }
    }
