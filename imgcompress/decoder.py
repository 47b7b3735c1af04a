"""
Decoder/Rasterizer: encoded image bytes to an RGBA PixelBuffer.

Decoding is all-or-nothing. Header dimensions are checked against the
configured limits before any pixel data is decompressed.
"""

import io
import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
from PIL import Image

from .config import DecodeLimits
from .errors import DecodeError, TooLargeError
from .models import BytesLike, PixelBuffer

logger = logging.getLogger(__name__)

# Pillow reports multi-picture JPEGs (most camera files) as MPO; the primary
# picture is an ordinary JPEG.
FORMAT_ALIASES = {"MPO": "JPEG"}

_SIXTEEN_BIT_MODES = ("I;16", "I;16L", "I;16B", "I;16N", "I")

_DEFAULT_LIMITS = DecodeLimits()


@dataclass(frozen=True)
class ImageInfo:
    """Header-level facts about an encoded image."""
    format: str
    width: int
    height: int
    mode: str
    frames: int = 1


def _open(data: BytesLike, limits: DecodeLimits) -> Image.Image:
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise TypeError(f"Expected bytes-like input, got {type(data).__name__}")

    size = len(data)
    if size == 0:
        raise DecodeError("Empty input: no image data")
    if size > limits.max_input_bytes:
        logger.info("Rejecting %d byte input (limit %d)", size, limits.max_input_bytes)
        raise TooLargeError(
            f"Input is {size} bytes, limit is {limits.max_input_bytes}",
            size=size, limit=limits.max_input_bytes,
        )

    try:
        # bytes() copies, so the caller's buffer is never touched
        return Image.open(io.BytesIO(bytes(data)))
    except Image.DecompressionBombError as exc:
        raise TooLargeError(f"Image exceeds decoder pixel limit: {exc}") from exc
    except (OSError, SyntaxError, ValueError) as exc:
        raise DecodeError(f"Malformed header or unsupported format: {exc}") from exc


def _inspect(image: Image.Image, limits: DecodeLimits) -> ImageInfo:
    raw_format = image.format or ""
    fmt = FORMAT_ALIASES.get(raw_format, raw_format)
    if fmt not in limits.supported_formats:
        raise DecodeError(
            f"Unsupported image format {raw_format or 'unknown'!r}; "
            f"supported: {', '.join(limits.supported_formats)}"
        )

    width, height = image.size
    if width <= 0 or height <= 0:
        raise DecodeError(f"Invalid image dimensions {width}x{height}")
    if width > limits.max_dimension or height > limits.max_dimension:
        logger.info("Rejecting %dx%d image (max side %d)", width, height, limits.max_dimension)
        raise TooLargeError(
            f"Image is {width}x{height}, maximum side is {limits.max_dimension}",
            width=width, height=height, limit=limits.max_dimension,
        )
    if width * height > limits.max_pixels:
        logger.info("Rejecting %dx%d image (max pixels %d)", width, height, limits.max_pixels)
        raise TooLargeError(
            f"Image has {width * height} pixels, limit is {limits.max_pixels}",
            width=width, height=height, limit=limits.max_pixels,
        )

    frames = getattr(image, "n_frames", 1)
    return ImageInfo(format=fmt, width=width, height=height, mode=image.mode, frames=frames)


def _to_rgba(image: Image.Image) -> np.ndarray:
    if image.mode in _SIXTEEN_BIT_MODES:
        # Scale 16-bit grey to 8 bits instead of letting Pillow clip it
        wide = np.asarray(image).astype(np.uint32)
        gray = np.clip((wide + 128) // 257, 0, 255).astype(np.uint8)
        image = Image.fromarray(gray)
    return np.array(image.convert("RGBA"), dtype=np.uint8)


def probe(data: BytesLike, limits: Optional[DecodeLimits] = None) -> ImageInfo:
    """
    Read format and dimensions from the header without decoding pixels.

    Args:
        data: Encoded image bytes
        limits: Decode guards (defaults apply when None)

    Returns:
        ImageInfo for the image

    Raises:
        DecodeError: Empty, malformed or unsupported input
        TooLargeError: Input over the byte or dimension limits
    """
    limits = limits or _DEFAULT_LIMITS
    with _open(data, limits) as image:
        return _inspect(image, limits)


def decode(data: BytesLike, limits: Optional[DecodeLimits] = None) -> PixelBuffer:
    """
    Decode encoded image bytes into an RGBA PixelBuffer.

    Args:
        data: Encoded JPEG, PNG or WEBP bytes
        limits: Decode guards (defaults apply when None)

    Returns:
        PixelBuffer with the image's exact pixel dimensions

    Raises:
        DecodeError: Empty, malformed, truncated, animated or unsupported input
        TooLargeError: Input over the byte or dimension limits
    """
    limits = limits or _DEFAULT_LIMITS
    with _open(data, limits) as image:
        info = _inspect(image, limits)

        if info.frames > 1 and info.format != "JPEG":
            raise DecodeError(
                f"Animated or multi-frame {info.format} images are not supported "
                f"({info.frames} frames)"
            )

        try:
            image.load()
            pixels = _to_rgba(image)
        except Image.DecompressionBombError as exc:
            raise TooLargeError(f"Image exceeds decoder pixel limit: {exc}") from exc
        except (OSError, SyntaxError, ValueError, EOFError) as exc:
            raise DecodeError(f"Truncated or corrupt {info.format} data: {exc}") from exc

    if pixels.shape[:2] != (info.height, info.width):
        raise DecodeError(
            f"Decoded size {pixels.shape[1]}x{pixels.shape[0]} does not match "
            f"header size {info.width}x{info.height}"
        )

    logger.debug("Decoded %s %dx%d (mode %s)", info.format, info.width, info.height, info.mode)
    return PixelBuffer(info.width, info.height, pixels, copy=False)
