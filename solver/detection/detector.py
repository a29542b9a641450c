import logging
import threading
from typing import List, Tuple, Union

import numpy as np

from ..common.raster import ensure_raster, resize, to_rgb
from ..config import DETECTION_INPUT_SIZE, LETTERBOX_PAD_VALUE, NMS_THRESHOLD, SCORE_THRESHOLD
from ..session import InferenceSession, run_session
from .anchors import decode_predictions
from .nms import BBox, multiclass_nms

logger = logging.getLogger(__name__)


def letterbox(raster: np.ndarray, input_size: int = DETECTION_INPUT_SIZE) -> Tuple[np.ndarray, float]:
    """
    Scale a raster into a padded square model input

    Args:
        raster: Input raster
        input_size: Side of the square input

    Returns:
        ((1, 3, S, S) float32 tensor of raw RGB values, resize ratio)
    """
    rgb = to_rgb(raster)
    orig_h, orig_w = rgb.shape[:2]
    ratio = min(input_size / orig_h, input_size / orig_w)
    new_w, new_h = max(int(orig_w * ratio), 1), max(int(orig_h * ratio), 1)

    padded = np.full((input_size, input_size, 3), LETTERBOX_PAD_VALUE, dtype=np.float32)
    padded[:new_h, :new_w] = resize(rgb, new_w, new_h)
    tensor = padded.transpose(2, 0, 1)[None, ...]
    return np.ascontiguousarray(tensor), ratio


class ObjectDetector:
    """Detect clickable targets with an injected detection session."""

    def __init__(self, session: InferenceSession,
                 input_size: int = DETECTION_INPUT_SIZE,
                 nms_threshold: float = NMS_THRESHOLD,
                 score_threshold: float = SCORE_THRESHOLD):
        self.session = session
        self.input_size = input_size
        self.nms_threshold = nms_threshold
        self.score_threshold = score_threshold
        self._lock = threading.Lock()
        logger.info(f"Initialized object detector: input={input_size}, "
                    f"nms={nms_threshold}, score={score_threshold}")

    def detection(self, image: Union[bytes, np.ndarray]) -> List[BBox]:
        raster = ensure_raster(image)
        orig_h, orig_w = raster.shape[:2]
        tensor, ratio = letterbox(raster, self.input_size)
        output = run_session(self.session, self._lock, tensor)
        predictions = decode_predictions(output, self.input_size)
        boxes = multiclass_nms(predictions, ratio, orig_w, orig_h,
                               self.nms_threshold, self.score_threshold)
        logger.debug(f"Detected {len(boxes)} boxes")
        return boxes
