import logging
from typing import Optional, Sequence, Tuple

import numpy as np

from ..common.raster import luma_float, resize, to_rgb
from ..config import NORMALIZE_MEAN, NORMALIZE_STD, RECOGNITION_HEIGHT

logger = logging.getLogger(__name__)


def target_size(width: int, height: int, resize_config: Optional[Sequence[int]] = None,
                word: bool = False) -> Tuple[int, int]:
    """
    Compute the (width, height) a raster is resized to before recognition

    Args:
        width: Source width
        height: Source height
        resize_config: Custom model [w, h]; w == -1 keeps the aspect ratio
        word: Custom model treats the image as a single square word

    Returns:
        (width, height) of the model input
    """
    if resize_config and len(resize_config) >= 2:
        cfg_w, cfg_h = resize_config[0], resize_config[1]
        if cfg_w == -1:
            if word:
                out_w, out_h = cfg_h, cfg_h
            else:
                out_w, out_h = int(width * (cfg_h / height)), cfg_h
        else:
            out_w, out_h = cfg_w, cfg_h
    else:
        out_w, out_h = int(width * (RECOGNITION_HEIGHT / height)), RECOGNITION_HEIGHT
    return max(out_w, 1), out_h


def normalize(values: np.ndarray, normalize_only: bool = False) -> np.ndarray:
    scaled = values / 255.0
    if normalize_only:
        return scaled.astype(np.float32)
    return ((scaled - NORMALIZE_MEAN) / NORMALIZE_STD).astype(np.float32)


def to_input_tensor(raster: np.ndarray, size: Tuple[int, int], channel: int = 1,
                    normalize_only: bool = False) -> np.ndarray:
    """Resize and lay out a raster as a (1, C, H, W) float32 tensor."""
    width, height = size
    resized = resize(raster, width, height)
    if channel == 1:
        chw = normalize(luma_float(resized), normalize_only)[None, :, :]
    else:
        chw = normalize(to_rgb(resized).astype(np.float64), False).transpose(2, 0, 1)
    logger.debug(f"Recognizer input tensor shape (1, {chw.shape[0]}, {height}, {width})")
    return np.ascontiguousarray(chw[None, ...])
