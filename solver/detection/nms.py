"""
Detection Suppression

Score filtering, coordinate mapping and greedy non-maximum suppression. The
suppression pass compares every pair of detections regardless of class.
"""

import logging
from dataclasses import dataclass
from typing import List

import numpy as np

from ..config import NMS_THRESHOLD, SCORE_THRESHOLD

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BBox:
    x1: int
    y1: int
    x2: int
    y2: int

    @property
    def area(self) -> int:
        return max(0, self.x2 - self.x1) * max(0, self.y2 - self.y1)

    def to_list(self) -> List[int]:
        return [self.x1, self.y1, self.x2, self.y2]


@dataclass
class Detection:
    box: BBox
    score: float


def compute_iou(a: BBox, b: BBox) -> float:
    x1 = max(a.x1, b.x1)
    y1 = max(a.y1, b.y1)
    x2 = min(a.x2, b.x2)
    y2 = min(a.y2, b.y2)
    if x2 <= x1 or y2 <= y1:
        return 0.0
    inter = (x2 - x1) * (y2 - y1)
    return inter / (a.area + b.area - inter)


def score_detections(predictions: np.ndarray, ratio: float, orig_w: int, orig_h: int,
                     score_thr: float = SCORE_THRESHOLD) -> List[Detection]:
    """Filter by score and map boxes back to original image coordinates."""
    if len(predictions) == 0:
        return []
    class_scores = predictions[:, 5:]
    if class_scores.shape[1]:
        max_class = np.maximum(class_scores.max(axis=1), 0.0)
    else:
        max_class = np.zeros(len(predictions), dtype=np.float32)
    scores = predictions[:, 4] * max_class

    ratio = np.float32(ratio)
    detections = []
    for i in np.flatnonzero(scores >= score_thr):
        cx, cy, w, h = predictions[i, :4]
        x1 = max(int((cx - w / 2) / ratio), 0)
        y1 = max(int((cy - h / 2) / ratio), 0)
        x2 = min(int((cx + w / 2) / ratio), orig_w)
        y2 = min(int((cy + h / 2) / ratio), orig_h)
        # keep x1 <= x2 and y1 <= y2 for boxes lying outside the image
        x1, y1 = min(x1, orig_w), min(y1, orig_h)
        x2, y2 = max(x2, x1), max(y2, y1)
        detections.append(Detection(BBox(x1, y1, x2, y2), float(scores[i])))
    return detections


def multiclass_nms(predictions: np.ndarray, ratio: float, orig_w: int, orig_h: int,
                   nms_thr: float = NMS_THRESHOLD, score_thr: float = SCORE_THRESHOLD) -> List[BBox]:
    """
    Greedy suppression over all surviving detections

    Args:
        predictions: Decoded (N, 5 + K) predictions
        ratio: Letterbox ratio from original to model input coordinates
        orig_w: Original image width
        orig_h: Original image height
        nms_thr: IoU above which a lower-scored box is dropped
        score_thr: Minimum objectness * class score

    Returns:
        Kept boxes
    """
    detections = score_detections(predictions, ratio, orig_w, orig_h, score_thr)
    detections.sort(key=lambda d: d.score, reverse=True)

    kept = []
    used = [False] * len(detections)
    for i, det in enumerate(detections):
        if used[i]:
            continue
        kept.append(det.box)
        for j in range(i + 1, len(detections)):
            if not used[j] and compute_iou(det.box, detections[j].box) > nms_thr:
                used[j] = True

    logger.debug(f"NMS kept {len(kept)} of {len(detections)} scored detections")
    return kept
