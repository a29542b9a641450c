"""
Object Detection Postprocessing

Anchor-grid decoding of detection model output and greedy suppression into
boxes in original image coordinates.
"""

from .anchors import generate_anchors, decode_predictions
from .nms import BBox, Detection, compute_iou, score_detections, multiclass_nms
from .detector import letterbox, ObjectDetector

__all__ = [
    'generate_anchors',
    'decode_predictions',
    'BBox',
    'Detection',
    'compute_iou',
    'score_detections',
    'multiclass_nms',
    'letterbox',
    'ObjectDetector'
]
