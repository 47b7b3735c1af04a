"""
Value objects passed between the decode, encode and metrics stages.
"""

import numbers
from dataclasses import dataclass
from typing import Optional, Union

import numpy as np

from .errors import InvalidQualityError


QUALITY_MIN = 1
QUALITY_MAX = 100

BytesLike = Union[bytes, bytearray, memoryview]


def validate_quality(value) -> int:
    """
    Check a quality factor and return it as a plain int.

    Args:
        value: Candidate quality (int or numpy integer)

    Returns:
        Quality as int

    Raises:
        InvalidQualityError: bools, non-integers and values outside [1, 100]
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise InvalidQualityError(value)
    quality = int(value)
    if not QUALITY_MIN <= quality <= QUALITY_MAX:
        raise InvalidQualityError(value)
    return quality


@dataclass(frozen=True)
class SourceImage:
    """Original encoded bytes plus an optional display name."""
    data: bytes
    name: Optional[str] = None

    @classmethod
    def from_bytes(cls, data: BytesLike, name: Optional[str] = None) -> "SourceImage":
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise TypeError(f"Expected bytes-like input, got {type(data).__name__}")
        return cls(data=bytes(data), name=name or None)

    @property
    def original_size(self) -> int:
        return len(self.data)


class PixelBuffer:
    """
    Uncompressed RGBA raster.

    Pixels are stored row-major as a uint8 array of shape (height, width, 4).
    The constructor takes its own copy of the array and makes it read-only,
    so a buffer can be shared between encoders running on different threads.
    copy=False is only for freshly allocated arrays nothing else references.
    """

    CHANNELS = 4

    def __init__(self, width: int, height: int, pixels: np.ndarray, copy: bool = True):
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid dimensions: {width}x{height}")
        if pixels.dtype != np.uint8:
            raise ValueError(f"Pixel data must be uint8, got {pixels.dtype}")
        if pixels.size != width * height * self.CHANNELS:
            raise ValueError(
                f"Pixel data has {pixels.size} samples, expected "
                f"{width * height * self.CHANNELS} for {width}x{height} RGBA"
            )
        if copy:
            pixels = np.array(pixels, dtype=np.uint8, copy=True)
        pixels = np.ascontiguousarray(pixels).reshape(height, width, self.CHANNELS)
        pixels.flags.writeable = False
        self._width = width
        self._height = height
        self._pixels = pixels

    @classmethod
    def from_array(cls, pixels: np.ndarray) -> "PixelBuffer":
        """Build a buffer from an (H, W, 4) uint8 array (the array is copied)."""
        if pixels.ndim != 3 or pixels.shape[2] != cls.CHANNELS:
            raise ValueError(f"Expected an (H, W, 4) array, got shape {pixels.shape}")
        height, width = pixels.shape[:2]
        return cls(width, height, pixels)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def pixels(self) -> np.ndarray:
        return self._pixels

    @property
    def size(self) -> int:
        """Number of samples (width * height * 4)."""
        return self._pixels.size

    @property
    def nbytes(self) -> int:
        return self._pixels.nbytes

    @property
    def has_alpha(self) -> bool:
        """True if any pixel is not fully opaque."""
        return bool((self._pixels[..., 3] < 255).any())

    def tobytes(self) -> bytes:
        return self._pixels.tobytes()

    def __len__(self) -> int:
        return self.size

    def __repr__(self) -> str:
        return f"PixelBuffer(width={self._width}, height={self._height})"


@dataclass(frozen=True)
class EncodedResult:
    """Lossy-encoded output for one (buffer, quality) pair."""
    data: bytes
    quality: int
    width: int
    height: int
    format: str = "JPEG"
    extension: str = ".jpg"

    @property
    def length(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class CompressionOutcome:
    """
    Before/after size comparison.

    reduction_percent is None when the original size is 0: the reduction is
    not applicable there and must not be shown as 0%.
    """
    original_size: int
    compressed_size: int
    reduction_percent: Optional[float]

    NOT_APPLICABLE = "n/a"

    @property
    def is_applicable(self) -> bool:
        return self.reduction_percent is not None

    @property
    def saved_bytes(self) -> int:
        return self.original_size - self.compressed_size

    @property
    def compression_ratio(self) -> Optional[float]:
        """original / compressed, None when nothing was produced."""
        if self.compressed_size == 0:
            return None
        return self.original_size / self.compressed_size

    def format_reduction(self, decimals: int = 1) -> str:
        if self.reduction_percent is None:
            return self.NOT_APPLICABLE
        return f"{self.reduction_percent:.{decimals}f}%"
