"""
Text Recognition

Greedy CTC decoding of recognition model scores, character ranges and the
input tensor preparation for text captchas.
"""

from .charset import (
    CharacterSet,
    RangePreset,
    ModelConfig,
    resolve_ranges,
    load_charsets,
    default_charsets,
    load_model_config
)
from .ctc import decode_output, softmax, probability_matrix
from .preprocess import target_size, to_input_tensor
from .recognizer import TextRecognizer, ClassificationResult

__all__ = [
    'CharacterSet',
    'RangePreset',
    'ModelConfig',
    'resolve_ranges',
    'load_charsets',
    'default_charsets',
    'load_model_config',
    'decode_output',
    'softmax',
    'probability_matrix',
    'target_size',
    'to_input_tensor',
    'TextRecognizer',
    'ClassificationResult'
]
