"""
Common Helpers

Raster conversions, color filters and the error types shared by the solver.
"""

from .errors import (
    SolverError,
    TensorShapeError,
    EmptyOutputError,
    RegionExtractionError,
    ImageDecodeError,
    ConfigError
)
from .raster import decode_image, ensure_raster, to_rgb, to_luma, luma_float, resize
from .colors import HSVRange, DEFAULT_COLOR_RANGES, in_hsv_range, filter_by_colors, png_rgba_white_fix

__all__ = [
    'SolverError',
    'TensorShapeError',
    'EmptyOutputError',
    'RegionExtractionError',
    'ImageDecodeError',
    'ConfigError',
    'decode_image',
    'ensure_raster',
    'to_rgb',
    'to_luma',
    'luma_float',
    'resize',
    'HSVRange',
    'DEFAULT_COLOR_RANGES',
    'in_hsv_range',
    'filter_by_colors',
    'png_rgba_white_fix'
]
