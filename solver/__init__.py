"""
Captcha Solver Core

Post-processing for captcha images: CTC text decoding, detection box
suppression and slide puzzle gap location. Neural network inference is
supplied by the caller as a session callable.
"""

from .recognition import TextRecognizer, ClassificationResult, RangePreset, decode_output, softmax
from .detection import ObjectDetector, BBox, multiclass_nms, compute_iou
from .slide import SlideMatchResult, SlideComparisonResult, slide_match, slide_comparison, canny

__all__ = [
    'TextRecognizer',
    'ClassificationResult',
    'RangePreset',
    'decode_output',
    'softmax',
    'ObjectDetector',
    'BBox',
    'multiclass_nms',
    'compute_iou',
    'SlideMatchResult',
    'SlideComparisonResult',
    'slide_match',
    'slide_comparison',
    'canny'
]
