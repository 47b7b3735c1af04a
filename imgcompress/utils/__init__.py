"""Utility modules for pixel conversion and naming."""

from .image_utils import (
    flatten_alpha,
    rgb_to_bgr,
    format_size,
    download_name,
    get_image_info
)

__all__ = [
    'flatten_alpha',
    'rgb_to_bgr',
    'format_size',
    'download_name',
    'get_image_info'
]
