"""Encoding and metrics modules for image re-compression."""

from .jpeg_compressor import JPEGCompressor, TargetSizeResult, encode, compress_to_target_size
from .metrics import (
    QualityMetrics,
    compute_outcome,
    calculate_mse,
    calculate_psnr,
    calculate_ssim,
    calculate_bits_per_pixel,
    measure_fidelity,
    get_quality_assessment
)

__all__ = [
    'JPEGCompressor',
    'TargetSizeResult',
    'encode',
    'compress_to_target_size',
    'QualityMetrics',
    'compute_outcome',
    'calculate_mse',
    'calculate_psnr',
    'calculate_ssim',
    'calculate_bits_per_pixel',
    'measure_fidelity',
    'get_quality_assessment'
]
