import logging
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Union

import numpy as np

from ..common.colors import HSVRange, filter_by_colors, png_rgba_white_fix
from ..common.raster import ensure_raster
from ..session import InferenceSession, run_session
from .charset import CharacterSet, ModelConfig, RangeSpec, resolve_ranges
from .ctc import decode_output, probability_matrix, timestep_scores
from .preprocess import target_size, to_input_tensor

logger = logging.getLogger(__name__)


@dataclass
class ClassificationResult:
    text: str
    charsets: List[str]
    probability: List[List[float]]


class TextRecognizer:
    """
    Text captcha recognizer around an injected inference session.

    The session receives a (1, C, H, W) float32 tensor and returns the
    (T, B, C) or (T, C) class scores. A ModelConfig switches to the custom
    model conventions (fixed resize, channel count, [0, 1] scaling).
    """

    def __init__(self, session: InferenceSession,
                 charsets: Optional[Sequence[str]] = None,
                 config: Optional[ModelConfig] = None):
        if charsets is None and config is None:
            raise ValueError("either charsets or a model config is required")
        self.session = session
        self.config = config
        self.charsets = CharacterSet(config.charset if config is not None else charsets)
        self.allowed_indices: Optional[List[int]] = None
        self._lock = threading.Lock()
        logger.info(f"Initialized text recognizer: {len(self.charsets)} charsets, "
                    f"custom_model={config is not None}")

    def set_ranges(self, ranges: Optional[RangeSpec]) -> None:
        self.allowed_indices = resolve_ranges(ranges, self.charsets)

    def clear_ranges(self) -> None:
        self.allowed_indices = None

    def _prepare(self, image: Union[bytes, np.ndarray], png_fix: bool,
                 colors: Optional[List[str]], color_ranges: Optional[Dict[str, HSVRange]]) -> np.ndarray:
        raster = ensure_raster(image)
        if png_fix:
            raster = png_rgba_white_fix(raster)
        if colors:
            raster = filter_by_colors(raster, colors, color_ranges)

        height, width = raster.shape[:2]
        if self.config is not None:
            size = target_size(width, height, self.config.image, self.config.word)
            return to_input_tensor(raster, size, self.config.channel, normalize_only=True)
        return to_input_tensor(raster, target_size(width, height))

    def classification(self, image: Union[bytes, np.ndarray], png_fix: bool = False,
                       colors: Optional[List[str]] = None,
                       color_ranges: Optional[Dict[str, HSVRange]] = None,
                       probability: bool = False) -> Union[str, ClassificationResult]:
        """
        Recognize the text in a captcha image

        Args:
            image: Encoded image bytes or a raster
            png_fix: Flatten transparency onto white first
            colors: Keep only pixels in these color ranges
            color_ranges: Custom HSV ranges, looked up before the defaults
            probability: Return a ClassificationResult with the softmax matrix

        Returns:
            Decoded text, or a ClassificationResult when probability is set
        """
        tensor = self._prepare(image, png_fix, colors, color_ranges)
        output = run_session(self.session, self._lock, tensor)
        text = decode_output(output, self.charsets.symbols, self.allowed_indices)
        logger.debug(f"Recognized text '{text}'")
        if not probability:
            return text

        num_classes = timestep_scores(output).shape[1]
        allowed = self.allowed_indices
        if allowed:
            allowed = [i for i in allowed if i < num_classes]
        probs = probability_matrix(output, allowed)
        return ClassificationResult(
            text=text,
            charsets=self.charsets.effective(allowed),
            probability=probs.tolist()
        )
