"""
Inference Session Boundary

The solver never runs a network itself. Facades receive a session: any
callable mapping an input tensor to the model output (an array, or a list
whose first element is the array). Sessions are not assumed to be safe for
concurrent use, so every call goes through the owner's lock.
"""

import logging
import threading
from typing import Any, Callable, Protocol

import numpy as np

from .common.errors import EmptyOutputError

logger = logging.getLogger(__name__)


class InferenceSession(Protocol):
    def __call__(self, tensor: np.ndarray) -> Any:
        ...


def run_session(session: Callable[[np.ndarray], Any], lock: threading.Lock,
                tensor: np.ndarray) -> np.ndarray:
    with lock:
        raw = session(tensor)

    if isinstance(raw, (list, tuple)):
        raw = raw[0] if raw else None
    if raw is None:
        raise EmptyOutputError("inference session returned no output")
    output = np.asarray(raw, dtype=np.float32)
    if output.size == 0:
        raise EmptyOutputError("inference session returned an empty tensor")
    logger.debug(f"Session output shape {output.shape}")
    return output
