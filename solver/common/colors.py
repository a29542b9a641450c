"""
Color and Alpha Filters

Preprocessing helpers that keep only pixels in given HSV ranges, or flatten
transparent PNGs onto a white canvas before recognition.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

import cv2
import numpy as np

from .raster import to_rgb

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HSVRange:
    """Inclusive HSV bounds on the OpenCV scale (H 0-180, S/V 0-255)."""
    low_h: int
    low_s: int
    low_v: int
    high_h: int
    high_s: int
    high_v: int

    @property
    def lower(self) -> np.ndarray:
        return np.array([self.low_h, self.low_s, self.low_v], dtype=np.uint8)

    @property
    def upper(self) -> np.ndarray:
        return np.array([self.high_h, self.high_s, self.high_v], dtype=np.uint8)


# Red wraps around the hue circle so it needs a second segment
DEFAULT_COLOR_RANGES: Dict[str, HSVRange] = {
    "red": HSVRange(0, 100, 100, 10, 255, 255),
    "red2": HSVRange(160, 100, 100, 180, 255, 255),
    "green": HSVRange(35, 100, 100, 85, 255, 255),
    "blue": HSVRange(100, 100, 100, 130, 255, 255),
    "yellow": HSVRange(20, 100, 100, 35, 255, 255),
    "orange": HSVRange(10, 100, 100, 20, 255, 255),
    "purple": HSVRange(130, 100, 100, 160, 255, 255),
    "pink": HSVRange(140, 50, 100, 170, 255, 255),
    "brown": HSVRange(10, 100, 50, 20, 255, 150),
}


def in_hsv_range(hsv: np.ndarray, hsv_range: HSVRange) -> np.ndarray:
    """Boolean mask of the pixels of an HSV image inside the range."""
    return cv2.inRange(hsv, hsv_range.lower, hsv_range.upper) > 0


def filter_by_colors(raster: np.ndarray, colors: List[str],
                     custom_ranges: Optional[Dict[str, HSVRange]] = None) -> np.ndarray:
    """
    Keep only the pixels whose color falls in one of the named ranges

    Args:
        raster: Input raster (gray, RGB or RGBA)
        colors: Range names, looked up in custom_ranges first, then the defaults
        custom_ranges: Optional extra or overriding ranges

    Returns:
        RGB raster, white wherever no range matched
    """
    rgb = to_rgb(raster)
    hsv = cv2.cvtColor(rgb, cv2.COLOR_RGB2HSV)
    mask = np.zeros(rgb.shape[:2], dtype=bool)

    for name in colors:
        hsv_range = None
        if custom_ranges is not None:
            hsv_range = custom_ranges.get(name)
        if hsv_range is None:
            hsv_range = DEFAULT_COLOR_RANGES.get(name)
        if hsv_range is None:
            logger.warning(f"Unknown color range '{name}', ignoring")
            continue
        mask |= in_hsv_range(hsv, hsv_range)
        if name == "red":
            mask |= in_hsv_range(hsv, DEFAULT_COLOR_RANGES["red2"])

    result = np.full_like(rgb, 255)
    result[mask] = rgb[mask]
    logger.debug(f"Color filter {colors} kept {int(mask.sum())} of {mask.size} pixels")
    return result


def png_rgba_white_fix(raster: np.ndarray) -> np.ndarray:
    """Composite an RGBA raster over a white background."""
    if raster.ndim != 3 or raster.shape[2] != 4:
        return to_rgb(raster)
    alpha = raster[:, :, 3:4].astype(np.uint16)
    rgb = raster[:, :, :3].astype(np.uint16)
    return ((rgb * alpha + 255 * (255 - alpha)) // 255).astype(np.uint8)
