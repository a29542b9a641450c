import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent
DEFAULT_MODEL_DIR = BASE_DIR / "models"

# Edge-based slide matcher
CANNY_LOW_THRESHOLD = 100
CANNY_HIGH_THRESHOLD = 200
MIN_STD = 1.0

# Differential slide matcher
DIFF_THRESHOLD = 80
GAP_MIN_COUNT = 5
GAP_X_OFFSET = 2

# Detection
DETECTION_INPUT_SIZE = 416
DETECTION_STRIDES = (8, 16, 32)
NMS_THRESHOLD = 0.45
SCORE_THRESHOLD = 0.1
LETTERBOX_PAD_VALUE = 114

# Recognition
RECOGNITION_HEIGHT = 64
NORMALIZE_MEAN = 0.5
NORMALIZE_STD = 0.5
BLANK_INDEX = 0
DEFAULT_CHARSETS = [""] + list("0123456789") + list("abcdefghijklmnopqrstuvwxyz")

# HTTP server
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000


def env_int(name: str, default: int) -> int:
    """Integer setting from the environment; unset or blank falls back to the default."""
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got '{raw}'") from exc
