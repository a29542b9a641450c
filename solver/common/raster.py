"""
Raster Helpers

Conversions between the pixel layouts the solver works with. A raster is a
``uint8`` numpy array shaped (H, W), (H, W, 3) RGB or (H, W, 4) RGBA.
"""

import io
import logging
from typing import Union

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError

from .errors import ImageDecodeError

logger = logging.getLogger(__name__)

LUMA_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float64)


def decode_image(data: bytes) -> np.ndarray:
    """
    Decode encoded image bytes (PNG, JPEG, GIF, ...) into a raster

    Args:
        data: Encoded image

    Returns:
        Gray, RGB or RGBA raster depending on the source image
    """
    if not data:
        raise ImageDecodeError("empty image data")
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ImageDecodeError(f"cannot decode image: {e}") from e

    if image.mode == "L":
        return np.array(image)
    if image.mode in ("RGBA", "LA", "PA") or "transparency" in image.info:
        return np.array(image.convert("RGBA"))
    return np.array(image.convert("RGB"))


def ensure_raster(image: Union[bytes, np.ndarray]) -> np.ndarray:
    if isinstance(image, (bytes, bytearray)):
        return decode_image(bytes(image))
    raster = np.asarray(image)
    if raster.ndim == 3 and raster.shape[2] == 1:
        raster = raster[:, :, 0]
    if raster.dtype != np.uint8:
        raise ImageDecodeError(f"raster must be uint8, got {raster.dtype}")
    if raster.ndim not in (2, 3) or (raster.ndim == 3 and raster.shape[2] not in (3, 4)):
        raise ImageDecodeError(f"unsupported raster shape {raster.shape}")
    return raster


def to_rgb(raster: np.ndarray) -> np.ndarray:
    """RGB copy of the raster; alpha is composited onto black."""
    if raster.ndim == 2:
        return np.repeat(raster[:, :, None], 3, axis=2)
    if raster.shape[2] == 3:
        return raster.copy()
    alpha = raster[:, :, 3:4].astype(np.uint16)
    return (raster[:, :, :3].astype(np.uint16) * alpha // 255).astype(np.uint8)


def to_luma(raster: np.ndarray) -> np.ndarray:
    """Integer luma (truncated) as int32."""
    if raster.ndim == 2:
        return raster.astype(np.int32)
    return luma_float(raster).astype(np.int32)


def luma_float(raster: np.ndarray) -> np.ndarray:
    if raster.ndim == 2:
        return raster.astype(np.float64)
    return to_rgb(raster).astype(np.float64) @ LUMA_WEIGHTS


def resize(raster: np.ndarray, width: int, height: int) -> np.ndarray:
    if raster.shape[1] == width and raster.shape[0] == height:
        return raster.copy()
    logger.debug(f"Resizing raster {raster.shape[1]}x{raster.shape[0]} -> {width}x{height}")
    return cv2.resize(raster, (width, height), interpolation=cv2.INTER_LINEAR)
