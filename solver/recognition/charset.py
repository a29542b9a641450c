import json
import logging
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from ..common.errors import ConfigError
from ..config import BLANK_INDEX, DEFAULT_CHARSETS, DEFAULT_MODEL_DIR

logger = logging.getLogger(__name__)

LOWERCASE = "abcdefghijklmnopqrstuvwxyz"
UPPERCASE = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
DIGITS = "0123456789"
ALPHANUM = LOWERCASE + UPPERCASE + DIGITS


class RangePreset(IntEnum):
    DIGIT = 0
    LOWERCASE = 1
    UPPERCASE = 2
    LOWER_UPPER = 3
    LOWER_DIGIT = 4
    UPPER_DIGIT = 5
    LOWER_UPPER_DIGIT = 6
    NON_ALPHANUM = 7


PRESET_CHARS = {
    RangePreset.DIGIT: DIGITS,
    RangePreset.LOWERCASE: LOWERCASE,
    RangePreset.UPPERCASE: UPPERCASE,
    RangePreset.LOWER_UPPER: LOWERCASE + UPPERCASE,
    RangePreset.LOWER_DIGIT: LOWERCASE + DIGITS,
    RangePreset.UPPER_DIGIT: UPPERCASE + DIGITS,
    RangePreset.LOWER_UPPER_DIGIT: ALPHANUM,
}

RangeSpec = Union[RangePreset, int, str]


class CharacterSet:
    """Ordered symbols with index 0 reserved for the blank."""

    def __init__(self, symbols: Sequence[str]):
        self.symbols: List[str] = list(symbols)
        self.index_map: Dict[str, int] = {}
        for i, symbol in enumerate(self.symbols):
            if symbol in self.index_map:
                raise ConfigError(f"duplicate charset symbol {symbol!r} at index {i}")
            self.index_map[symbol] = i

    def __len__(self) -> int:
        return len(self.symbols)

    def __getitem__(self, index: int) -> str:
        return self.symbols[index]

    def index_of(self, symbol: str) -> Optional[int]:
        return self.index_map.get(symbol)

    def effective(self, allowed: Optional[List[int]]) -> List[str]:
        """Symbols visible to the caller once a range restriction is applied."""
        if not allowed:
            return list(self.symbols)
        return [self.symbols[i] if i < len(self.symbols) else "" for i in allowed]


def range_chars(ranges: RangeSpec, charsets: CharacterSet) -> Optional[str]:
    if isinstance(ranges, str):
        return ranges
    if isinstance(ranges, bool) or not isinstance(ranges, int):
        logger.warning(f"Unsupported range type {type(ranges).__name__}, clearing ranges")
        return None
    try:
        preset = RangePreset(ranges)
    except ValueError:
        logger.warning(f"Unknown range preset {ranges}, clearing ranges")
        return None
    if preset == RangePreset.NON_ALPHANUM:
        return "".join(s for s in charsets.symbols if s and s not in ALPHANUM)
    return PRESET_CHARS[preset]


def resolve_ranges(ranges: Optional[RangeSpec], charsets: CharacterSet) -> Optional[List[int]]:
    """
    Resolve a preset or a raw character string into the allowed class indices

    Args:
        ranges: RangePreset value or a string of allowed characters
        charsets: Character set of the model

    Returns:
        Allowed indices starting with the blank, or None for no restriction
    """
    if ranges is None:
        return None
    chars = range_chars(ranges, charsets)
    if chars is None:
        return None
    indices = [BLANK_INDEX]
    for char in chars:
        idx = charsets.index_of(char)
        if idx is not None:
            indices.append(idx)
    logger.debug(f"Resolved range to {len(indices) - 1} symbols")
    return indices


def load_charsets(path: Union[str, Path]) -> Optional[List[str]]:
    path = Path(path)
    if not path.exists():
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(f"Could not read charsets from {path}: {e}")
        return None
    if not isinstance(data, list) or not all(isinstance(s, str) for s in data):
        logger.warning(f"Charsets file {path} is not a list of strings")
        return None
    return data


def default_charsets(model_dir: Union[str, Path] = DEFAULT_MODEL_DIR, beta: bool = False) -> List[str]:
    model_dir = Path(model_dir)
    name = "charsets_beta.json" if beta else "charsets_old.json"
    for candidate in (model_dir / name, model_dir / "charsets.json"):
        charsets = load_charsets(candidate)
        if charsets is not None:
            logger.info(f"Loaded {len(charsets)} charsets from {candidate}")
            return charsets
    logger.info("No charsets file found, using built-in digits and lowercase letters")
    return list(DEFAULT_CHARSETS)


@dataclass
class ModelConfig:
    """Recognizer settings shipped alongside a custom model."""
    charset: List[str]
    word: bool = False
    image: List[int] = field(default_factory=list)
    channel: int = 1


def load_model_config(path: Union[str, Path]) -> ModelConfig:
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise ConfigError(f"model config not found: {path}") from e
    except (json.JSONDecodeError, OSError) as e:
        raise ConfigError(f"cannot parse model config {path}: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("charset"), list):
        raise ConfigError(f"model config {path} has no 'charset' list")
    image = data.get("image") or []
    if image and (len(image) < 2 or not all(isinstance(v, int) for v in image[:2])):
        raise ConfigError(f"model config {path} has an invalid 'image' entry: {image}")
    channel = int(data.get("channel", 1))
    if channel not in (1, 3):
        raise ConfigError(f"model config {path} has unsupported channel count {channel}")
    return ModelConfig(charset=data["charset"], word=bool(data.get("word", False)),
                       image=list(image), channel=channel)
