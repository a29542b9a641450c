import logging
from typing import Sequence, Tuple

import numpy as np

from ..common.errors import TensorShapeError
from ..config import DETECTION_STRIDES

logger = logging.getLogger(__name__)


def generate_anchors(input_size: int, strides: Sequence[int] = DETECTION_STRIDES) -> Tuple[np.ndarray, np.ndarray]:
    """
    Anchor grid for a square model input

    Args:
        input_size: Side of the model input in pixels
        strides: Stride levels, ascending

    Returns:
        (grids, strides): (N, 2) grid x/y and (N,) stride per anchor, ordered
        stride-ascending then row-major
    """
    grids = []
    expanded = []
    for stride in strides:
        size = input_size // stride
        ys, xs = np.meshgrid(np.arange(size), np.arange(size), indexing="ij")
        grids.append(np.stack([xs.ravel(), ys.ravel()], axis=1))
        expanded.append(np.full(size * size, stride))
    return (np.concatenate(grids).astype(np.float32),
            np.concatenate(expanded).astype(np.float32))


def decode_predictions(output: np.ndarray, input_size: int,
                       strides: Sequence[int] = DETECTION_STRIDES) -> np.ndarray:
    """
    Map raw per-anchor offsets to input-space centers and sizes

    Returns:
        (N, 5 + K) array of [cx, cy, w, h, objectness, class scores...]
    """
    flat = np.asarray(output, dtype=np.float32).ravel()
    grids, expanded = generate_anchors(input_size, strides)
    num_anchors = len(grids)
    if num_anchors == 0 or flat.size % num_anchors != 0:
        raise TensorShapeError(
            f"detection tensor of {flat.size} values does not divide into {num_anchors} anchors")
    per_anchor = flat.size // num_anchors
    if per_anchor < 5:
        raise TensorShapeError(f"need at least 5 values per anchor, got {per_anchor}")

    predictions = flat.reshape(num_anchors, per_anchor).copy()
    predictions[:, :2] = (predictions[:, :2] + grids) * expanded[:, None]
    predictions[:, 2:4] = np.exp(predictions[:, 2:4]) * expanded[:, None]
    logger.debug(f"Decoded {num_anchors} anchors with {per_anchor - 5} classes")
    return predictions
