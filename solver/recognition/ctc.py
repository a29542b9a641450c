"""
Greedy CTC Decoding

Turns the per-timestep class scores of a recognition model into text, and
exposes the per-timestep softmax used for confidence reporting.
"""

import logging
from typing import List, Optional, Sequence

import numpy as np

from ..common.errors import TensorShapeError
from ..config import BLANK_INDEX

logger = logging.getLogger(__name__)

# Running maximum before any allowed class has been seen
RESTRICTED_FLOOR = -1e9


def timestep_scores(output: np.ndarray) -> np.ndarray:
    """
    Normalize a (T, C) or (T, B, C) score tensor to (T, C), keeping batch 0

    Args:
        output: Raw model output

    Returns:
        2-D float32 array of scores
    """
    output = np.asarray(output, dtype=np.float32)
    if output.ndim == 3:
        return output[:, 0, :]
    if output.ndim == 2:
        return output
    raise TensorShapeError(f"expected a 2-D or 3-D score tensor, got shape {output.shape}")


def best_index(row: np.ndarray, allowed: Optional[Sequence[int]] = None) -> int:
    if not allowed:
        # np.argmax returns the first maximum, matching a left-to-right scan
        return int(np.argmax(row))
    best, best_val = BLANK_INDEX, RESTRICTED_FLOOR
    for c in allowed:
        if c >= row.shape[0]:
            continue
        if row[c] > best_val:
            best_val = row[c]
            best = c
    return best


def greedy_indices(output: np.ndarray, allowed: Optional[Sequence[int]] = None) -> List[int]:
    scores = timestep_scores(output)
    return [best_index(row, allowed) for row in scores]


def collapse(indices: Sequence[int], charsets: Sequence[str]) -> str:
    """Drop blanks and consecutive repeats."""
    chars = []
    last = None
    for idx in indices:
        if idx != last and idx != BLANK_INDEX and idx < len(charsets):
            chars.append(charsets[idx])
        last = idx
    return "".join(chars)


def decode_output(output: np.ndarray, charsets: Sequence[str],
                  allowed: Optional[Sequence[int]] = None) -> str:
    """
    Decode a score tensor into text

    Args:
        output: (T, C) or (T, B, C) scores
        charsets: Symbols by class index, index 0 is the blank
        allowed: Optional class indices eligible for selection

    Returns:
        Decoded text
    """
    text = collapse(greedy_indices(output, allowed), charsets)
    logger.debug(f"Decoded {len(text)} characters")
    return text


def softmax(row: np.ndarray) -> np.ndarray:
    row = np.asarray(row, dtype=np.float64)
    exps = np.exp(row - row.max())
    return (exps / exps.sum()).astype(np.float32)


def probability_matrix(output: np.ndarray, allowed: Optional[Sequence[int]] = None) -> np.ndarray:
    """Per-timestep softmax; restricted to the allowed columns when given."""
    scores = timestep_scores(output)
    if allowed:
        columns = [c for c in allowed if c < scores.shape[1]]
        scores = scores[:, columns]
    if scores.shape[0] == 0 or scores.shape[1] == 0:
        return np.zeros(scores.shape, dtype=np.float32)
    return np.stack([softmax(row) for row in scores])
