"""
Canny Edge Detection

Sobel gradients, non-maximum suppression along four direction sectors and
double-threshold hysteresis. The outermost pixel ring never holds an edge.
"""

import logging

import numpy as np

from ..common.raster import to_luma
from ..config import CANNY_HIGH_THRESHOLD, CANNY_LOW_THRESHOLD

logger = logging.getLogger(__name__)

NONE, WEAK, STRONG = 0, 1, 2


def sobel(gray: np.ndarray):
    """Sobel gradients on interior pixels; the border ring stays zero."""
    g = gray.astype(np.int32)
    gx = np.zeros_like(g)
    gy = np.zeros_like(g)
    gx[1:-1, 1:-1] = (-g[:-2, :-2] - 2 * g[1:-1, :-2] - g[2:, :-2]
                      + g[:-2, 2:] + 2 * g[1:-1, 2:] + g[2:, 2:])
    gy[1:-1, 1:-1] = (-g[:-2, :-2] - 2 * g[:-2, 1:-1] - g[:-2, 2:]
                      + g[2:, :-2] + 2 * g[2:, 1:-1] + g[2:, 2:])
    magnitude = np.sqrt((gx.astype(np.float64) ** 2 + gy.astype(np.float64) ** 2)).astype(np.int32)
    return gx, gy, magnitude


def non_max_suppression(gx: np.ndarray, gy: np.ndarray, magnitude: np.ndarray) -> np.ndarray:
    """
    Thin edges to one pixel by comparing with the two neighbours along the gradient

    Args:
        gx: Horizontal gradient
        gy: Vertical gradient
        magnitude: Integer gradient magnitude

    Returns:
        Magnitude where the pixel is a local maximum, 0 elsewhere
    """
    suppressed = np.zeros_like(magnitude)
    if magnitude.shape[0] < 3 or magnitude.shape[1] < 3:
        return suppressed

    angle = np.degrees(np.arctan2(gy[1:-1, 1:-1], gx[1:-1, 1:-1]))
    angle[angle < 0] += 180

    m = magnitude
    center = m[1:-1, 1:-1]
    horizontal = (angle < 22.5) | (angle >= 157.5)
    diagonal_up = (angle >= 22.5) & (angle < 67.5)
    vertical = (angle >= 67.5) & (angle < 112.5)
    sectors = [horizontal, diagonal_up, vertical]

    q = np.select(sectors, [m[1:-1, 2:], m[:-2, 2:], m[:-2, 1:-1]], m[:-2, :-2])
    r = np.select(sectors, [m[1:-1, :-2], m[2:, :-2], m[2:, 1:-1]], m[2:, 2:])

    keep = (center > 0) & (center >= q) & (center >= r)
    suppressed[1:-1, 1:-1] = np.where(keep, center, 0)
    return suppressed


def _touches_strong(state: np.ndarray) -> np.ndarray:
    strong = np.pad(state == STRONG, 1)
    h, w = state.shape
    neighbour = np.zeros((h, w), dtype=bool)
    for dy in range(3):
        for dx in range(3):
            neighbour |= strong[dy:dy + h, dx:dx + w]
    return neighbour


def hysteresis(suppressed: np.ndarray, low: int, high: int) -> np.ndarray:
    """Link weak edges to strong ones until no pixel changes."""
    state = np.full(suppressed.shape, NONE, dtype=np.uint8)
    interior = state[1:-1, 1:-1]
    values = suppressed[1:-1, 1:-1]
    interior[values >= low] = WEAK
    interior[values >= high] = STRONG

    passes = 0
    changed = True
    while changed:
        promote = (state == WEAK) & _touches_strong(state)
        changed = bool(promote.any())
        state[promote] = STRONG
        passes += 1
    logger.debug(f"Hysteresis converged after {passes} passes")

    return np.where(state == STRONG, 255, 0).astype(np.uint8)


def canny(raster: np.ndarray, low: int = CANNY_LOW_THRESHOLD,
          high: int = CANNY_HIGH_THRESHOLD) -> np.ndarray:
    """
    Binary edge map of a raster

    Args:
        raster: Gray, RGB or RGBA raster
        low: Weak edge threshold
        high: Strong edge threshold

    Returns:
        (H, W) uint8 map holding only 0 and 255
    """
    gray = to_luma(raster)
    gx, gy, magnitude = sobel(gray)
    suppressed = non_max_suppression(gx, gy, magnitude)
    return hysteresis(suppressed, low, high)


def gray_to_rgb(gray: np.ndarray) -> np.ndarray:
    return np.repeat(gray[:, :, None], 3, axis=2)
