"""
Common image utility functions for the compressor.
"""

import posixpath
from typing import Optional, Sequence

import cv2
import numpy as np

from ..models import PixelBuffer


def flatten_alpha(pixels: np.ndarray,
                  background: Sequence[int] = (0, 0, 0)) -> np.ndarray:
    """
    Composite an RGBA array onto an opaque background.

    Args:
        pixels: (H, W, 4) uint8 RGBA array
        background: RGB background colour

    Returns:
        (H, W, 3) uint8 RGB array
    """
    rgb = pixels[..., :3]
    alpha = pixels[..., 3:4]

    if (alpha == 255).all():
        return np.ascontiguousarray(rgb)

    # Integer blend with round-half-up: (c*a + bg*(255-a) + 127) // 255
    a = alpha.astype(np.uint32)
    bg = np.asarray(background, dtype=np.uint32).reshape(1, 1, 3)
    blended = (rgb.astype(np.uint32) * a + bg * (255 - a) + 127) // 255
    return blended.astype(np.uint8)


def rgb_to_bgr(rgb: np.ndarray) -> np.ndarray:
    """Convert an RGB array to OpenCV channel order."""
    return cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR)


def format_size(num_bytes: int, decimals: int = 1) -> str:
    """Human-readable size in KB, e.g. ``"48.8 KB"``."""
    return f"{num_bytes / 1024.0:.{decimals}f} KB"


def download_name(name: Optional[str],
                  suffix: str = "_compressed",
                  extension: str = ".jpg",
                  default: str = "compressed_image") -> str:
    """
    Build the file name offered for the compressed download.

    The last extension of ``name`` is replaced by ``suffix + extension``.
    Without a usable name the default is returned.

    Examples:
        photo.png      -> photo_compressed.jpg
        photo          -> photo_compressed.jpg
        my.holiday.jpg -> my.holiday_compressed.jpg
        None           -> compressed_image.jpg
    """
    if not name:
        return default + extension

    # Browsers may hand over Windows paths
    base = posixpath.basename(name.replace("\\", "/")).strip()
    if "." in base:
        stem = base.rsplit(".", 1)[0]
    else:
        stem = base

    if not stem:
        return default + extension
    return f"{stem}{suffix}{extension}"


def get_image_info(buffer: PixelBuffer) -> dict:
    """
    Get information about a decoded image.

    Args:
        buffer: Decoded pixel buffer

    Returns:
        Dictionary with image information
    """
    rgb = buffer.pixels[..., :3]
    gray = cv2.cvtColor(np.ascontiguousarray(rgb), cv2.COLOR_RGB2GRAY)

    return {
        "width": buffer.width,
        "height": buffer.height,
        "channels": PixelBuffer.CHANNELS,
        "samples": buffer.size,
        "size_bytes": buffer.nbytes,
        "aspect_ratio": round(buffer.width / buffer.height, 3),
        "mean_brightness": round(float(np.mean(gray)), 2),
        "has_alpha": buffer.has_alpha,
    }
