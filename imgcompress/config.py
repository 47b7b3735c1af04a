"""
Configuration for the image compressor.

Defaults mirror what the browser front end offered: JPG, PNG or WEBP input
up to 10 MB, a quality slider starting at 80, and downloads named
``<name>_compressed.jpg``.
"""

import copy
from dataclasses import dataclass
from typing import Dict, Any, Optional, Tuple


DEFAULT_CONFIG = {
    # Decoder guards
    "decoder": {
        "max_input_bytes": 10 * 1024 * 1024,
        "max_dimension": 16384,  # Per side, in pixels
        "max_pixels": 50_000_000,
        "supported_formats": ["JPEG", "PNG", "WEBP"],
    },

    # JPEG encoder
    "encoder": {
        "background": (0, 0, 0),  # Alpha is flattened onto this colour
        "optimize": False,  # Optimized Huffman tables
        "progressive": False,
    },

    # Target-size quality search
    "target_search": {
        "tolerance_percent": 5.0,
        "max_iterations": 15,
    },

    "session": {
        "default_quality": 80,
    },

    # Download naming
    "naming": {
        "suffix": "_compressed",
        "default_name": "compressed_image",
    },
}

KNOWN_FORMATS = ("JPEG", "PNG", "WEBP")


@dataclass(frozen=True)
class DecodeLimits:
    """Memory guards applied before and during decoding."""
    max_input_bytes: int = DEFAULT_CONFIG["decoder"]["max_input_bytes"]
    max_dimension: int = DEFAULT_CONFIG["decoder"]["max_dimension"]
    max_pixels: int = DEFAULT_CONFIG["decoder"]["max_pixels"]
    supported_formats: Tuple[str, ...] = KNOWN_FORMATS

    def __post_init__(self):
        for field_name in ("max_input_bytes", "max_dimension", "max_pixels"):
            value = getattr(self, field_name)
            if not isinstance(value, int) or value <= 0:
                raise ValueError(f"{field_name} must be a positive integer, got {value!r}")
        formats = tuple(f.upper() for f in self.supported_formats)
        unknown = [f for f in formats if f not in KNOWN_FORMATS]
        if unknown:
            raise ValueError(f"Unsupported decoder formats: {unknown}")
        object.__setattr__(self, "supported_formats", formats)

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> "DecodeLimits":
        section = (config or DEFAULT_CONFIG)["decoder"]
        return cls(
            max_input_bytes=section["max_input_bytes"],
            max_dimension=section["max_dimension"],
            max_pixels=section["max_pixels"],
            supported_formats=tuple(section["supported_formats"]),
        )


@dataclass(frozen=True)
class EncoderSettings:
    """JPEG encoder options."""
    background: Tuple[int, int, int] = (0, 0, 0)
    optimize: bool = False
    progressive: bool = False

    def __post_init__(self):
        background = tuple(self.background)
        if len(background) != 3 or not all(
                isinstance(c, int) and 0 <= c <= 255 for c in background):
            raise ValueError(f"Background must be three ints in [0, 255], got {self.background!r}")
        object.__setattr__(self, "background", background)

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]] = None) -> "EncoderSettings":
        section = (config or DEFAULT_CONFIG)["encoder"]
        return cls(
            background=tuple(section["background"]),
            optimize=bool(section["optimize"]),
            progressive=bool(section["progressive"]),
        )


def get_default_config() -> Dict[str, Any]:
    """Return a copy of the default configuration."""
    return copy.deepcopy(DEFAULT_CONFIG)


def merge_configs(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Merge override config into base config.

    Args:
        base: Base configuration dictionary
        override: Override values to apply

    Returns:
        Merged configuration
    """
    result = copy.deepcopy(base)

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = copy.deepcopy(value)

    return result
