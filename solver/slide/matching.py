"""
Edge-Based Slide Matching

Locates where a puzzle piece fits in a background by correlating the Canny
edge maps of both images.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

import cv2
import numpy as np

from ..common.errors import RegionExtractionError
from ..common.raster import ensure_raster, to_rgb
from ..config import CANNY_HIGH_THRESHOLD, CANNY_LOW_THRESHOLD, MIN_STD
from .canny import canny, gray_to_rgb

logger = logging.getLogger(__name__)


@dataclass
class SlideMatchResult:
    target_x: int
    target_y: int
    target: List[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"target_x": self.target_x, "target_y": self.target_y, "target": list(self.target)}


def _box_sums(values: np.ndarray, h: int, w: int) -> np.ndarray:
    integral = np.zeros((values.shape[0] + 1, values.shape[1] + 1), dtype=np.float64)
    integral[1:, 1:] = values.cumsum(axis=0).cumsum(axis=1)
    return integral[h:, w:] - integral[:-h, w:] - integral[h:, :-w] + integral[:-h, :-w]


def match_template_score(background: np.ndarray, template: np.ndarray) -> Tuple[Tuple[int, int], Optional[float]]:
    """
    Normalized cross-correlation search (TM_CCOEFF_NORMED summed over channels)

    Args:
        background: (H, W, C) image to search
        template: (h, w, C) patch to find

    Returns:
        ((x, y), score) of the best top-left position. The score is None and the
        position (0, 0) when no window can be compared.
    """
    bg = background.astype(np.float32)
    tpl = template.astype(np.float32)
    if bg.ndim == 2:
        bg = bg[:, :, None]
    if tpl.ndim == 2:
        tpl = tpl[:, :, None]
    bh, bw = bg.shape[:2]
    th, tw = tpl.shape[:2]

    if tw > bw or th > bh or th == 0 or tw == 0:
        logger.debug(f"Template {tw}x{th} does not fit background {bw}x{bh}")
        return (0, 0), None

    tpl_zero = tpl - tpl.reshape(-1, tpl.shape[2]).mean(axis=0)
    tpl_std = float(np.sqrt(np.square(tpl_zero, dtype=np.float64).sum()))
    if tpl_std < MIN_STD:
        logger.debug("Template is flat, no correlation possible")
        return (0, 0), None

    # The template is zero-mean, so correlating with the raw window equals the
    # correlation of the two mean-subtracted patches.
    cross = cv2.matchTemplate(np.ascontiguousarray(bg), np.ascontiguousarray(tpl_zero),
                              cv2.TM_CCORR).astype(np.float64)

    n = float(th * tw)
    win_var = np.zeros(cross.shape, dtype=np.float64)
    for c in range(bg.shape[2]):
        channel = bg[:, :, c].astype(np.float64)
        s1 = _box_sums(channel, th, tw)
        s2 = _box_sums(channel * channel, th, tw)
        win_var += s2 - s1 * s1 / n
    win_std = np.sqrt(np.maximum(win_var, 0.0))

    ncc = np.full(cross.shape, -np.inf)
    valid = win_std >= MIN_STD
    ncc[valid] = cross[valid] / (win_std[valid] * tpl_std)

    idx = int(np.argmax(ncc))
    y, x = divmod(idx, ncc.shape[1])
    best = ncc[y, x]
    if not np.isfinite(best):
        return (0, 0), None
    return (x, y), float(best)


def match_template(background: np.ndarray, template: np.ndarray) -> Tuple[int, int]:
    loc, _ = match_template_score(background, template)
    return loc


def get_target(raster: np.ndarray) -> Tuple[np.ndarray, int, int]:
    """
    Crop a puzzle piece to the bounding region of its non-transparent pixels

    Args:
        raster: Piece raster; images without alpha count as fully opaque

    Returns:
        (RGB crop, x, y) where (x, y) is the crop's top-left in the piece image
    """
    h, w = raster.shape[:2]
    if raster.ndim == 3 and raster.shape[2] == 4:
        opaque = raster[:, :, 3] > 0
    else:
        opaque = np.ones((h, w), dtype=bool)

    ys, xs = np.nonzero(opaque)
    if len(xs) == 0:
        raise RegionExtractionError("no opaque pixels in target")
    start_x, end_x = int(xs.min()), int(xs.max())
    start_y, end_y = int(ys.min()), int(ys.max())
    if start_x >= end_x or start_y >= end_y:
        raise RegionExtractionError(
            f"degenerate opaque region ({start_x}, {start_y}) - ({end_x}, {end_y})")

    crop = to_rgb(raster)[start_y:end_y, start_x:end_x]
    return crop, start_x, start_y


def slide_match(target: Union[bytes, np.ndarray], background: Union[bytes, np.ndarray],
                simple_target: bool = False, low: int = CANNY_LOW_THRESHOLD,
                high: int = CANNY_HIGH_THRESHOLD) -> SlideMatchResult:
    """
    Find where the puzzle piece fits in the background

    Args:
        target: Puzzle piece, usually a transparent PNG
        background: Background with the gap
        simple_target: Match the whole piece image without cropping to its alpha region
        low: Canny weak threshold
        high: Canny strong threshold

    Returns:
        SlideMatchResult with the crop offset and the matched box in the background
    """
    target_raster = ensure_raster(target)
    background_raster = ensure_raster(background)

    target_x, target_y = 0, 0
    piece = target_raster
    if not simple_target:
        try:
            piece, target_x, target_y = get_target(target_raster)
        except RegionExtractionError as e:
            logger.warning(f"Could not extract target region ({e}), matching the whole image")
            piece = target_raster

    target_edges = gray_to_rgb(canny(piece, low, high))
    background_edges = gray_to_rgb(canny(background_raster, low, high))
    (x, y), score = match_template_score(background_edges, target_edges)

    h, w = piece.shape[:2]
    logger.debug(f"Slide match at ({x}, {y}), score={score}")
    return SlideMatchResult(target_x=target_x, target_y=target_y, target=[x, y, x + w, y + h])
