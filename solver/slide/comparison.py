import logging
from dataclasses import dataclass, field
from typing import List, Tuple, Union

import cv2
import numpy as np

from ..common.raster import ensure_raster, resize, to_rgb
from ..config import DIFF_THRESHOLD, GAP_MIN_COUNT, GAP_X_OFFSET

logger = logging.getLogger(__name__)


@dataclass
class SlideComparisonResult:
    target: List[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"target": list(self.target)}


def image_difference(first: np.ndarray, second: np.ndarray) -> np.ndarray:
    """Per-channel absolute difference over the common area of two RGB rasters."""
    h = min(first.shape[0], second.shape[0])
    w = min(first.shape[1], second.shape[1])
    return cv2.absdiff(np.ascontiguousarray(first[:h, :w]), np.ascontiguousarray(second[:h, :w]))


def binarize(image: np.ndarray, threshold: int = DIFF_THRESHOLD) -> np.ndarray:
    return np.where(image > threshold, 255, 0).astype(np.uint8)


def find_gap(binary: np.ndarray, min_count: int = GAP_MIN_COUNT) -> Tuple[int, int]:
    """
    Scan columns left to right for the first one with enough non-black pixels

    The reported row is the first non-black pixel met during the scan, taken
    from whichever column produced it, and is not reset per column.

    Args:
        binary: Binarized difference image
        min_count: Non-black pixels a column needs to count as the gap

    Returns:
        (x, y) of the gap, or (0, 0) when no column qualifies
    """
    lit = binary.any(axis=2) if binary.ndim == 3 else binary > 0
    start_y = 0
    for x in range(lit.shape[1]):
        rows = np.flatnonzero(lit[:, x])
        if len(rows) and start_y == 0:
            start_y = int(rows[0])
        if len(rows) >= min_count:
            return x + GAP_X_OFFSET, start_y
    return 0, 0


def slide_comparison(target: Union[bytes, np.ndarray], background: Union[bytes, np.ndarray],
                     threshold: int = DIFF_THRESHOLD, min_count: int = GAP_MIN_COUNT) -> SlideComparisonResult:
    """
    Locate the gap by differencing a background with and without the cutout

    Args:
        target: Image containing the gap
        background: Same image without the gap
        threshold: Per-channel difference above which a pixel counts as changed
        min_count: Changed pixels a column needs to be the gap column

    Returns:
        SlideComparisonResult with target [x, y]
    """
    target_rgb = to_rgb(ensure_raster(target))
    background_rgb = to_rgb(ensure_raster(background))

    h, w = target_rgb.shape[:2]
    if background_rgb.shape[:2] != (h, w):
        background_rgb = resize(background_rgb, w, h)

    diff = image_difference(background_rgb, target_rgb)
    x, y = find_gap(binarize(diff, threshold), min_count)
    logger.debug(f"Slide comparison gap at ({x}, {y})")
    return SlideComparisonResult(target=[x, y])
