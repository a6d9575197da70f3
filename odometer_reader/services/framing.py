"""Geometric framing of the source photograph for the detector.

Two square canvases are produced from one source image:

* ``letterbox`` keeps the aspect ratio and pads the short side with black.
* ``center_crop_with_margin`` cuts a centered window slightly larger than the
  model input and squashes it to the input size. The final resize does not
  preserve the aspect ratio; the window is already close to square.

Neither function writes to the source array.
"""
from __future__ import annotations

import logging
from typing import Optional

import cv2
import numpy as np

from ..core.entities import FrameGeometry
from ..core.exceptions import GeometryError
from ..core.geometry import aspect_ratio

logger = logging.getLogger(__name__)


def _source_size(image: np.ndarray):
    if image is None or not hasattr(image, "shape") or image.ndim < 2:
        raise GeometryError("Source image must be an array with at least two dimensions")
    height, width = image.shape[:2]
    if width <= 0 or height <= 0:
        raise GeometryError(f"Invalid source dimensions: {width}x{height}")
    return width, height


def _blank_canvas(size: int, like: np.ndarray) -> np.ndarray:
    shape = (size, size) + tuple(like.shape[2:])
    canvas = np.zeros(shape, dtype=like.dtype)
    if like.ndim == 3 and like.shape[2] == 4:
        canvas[..., 3] = 255  # opaque black
    return canvas


def letterbox(image: np.ndarray, target_size: int) -> FrameGeometry:
    """Resize ``image`` to fit ``target_size`` and center it on a black square.

    Args:
        image: Source pixels, H x W x C
        target_size: Side of the square canvas in pixels

    Returns:
        FrameGeometry with the canvas and the scale/padding used

    Raises:
        GeometryError: On zero source dimensions or a non-positive target size
    """
    width, height = _source_size(image)
    if target_size <= 0:
        raise GeometryError(f"Invalid target size: {target_size}")

    scale = min(target_size / width, target_size / height)
    new_width = min(target_size, max(1, int(round(width * scale))))
    new_height = min(target_size, max(1, int(round(height * scale))))

    resized = cv2.resize(image, (new_width, new_height), interpolation=cv2.INTER_LINEAR)

    pad_x = (target_size - new_width) / 2.0
    pad_y = (target_size - new_height) / 2.0
    left = int(pad_x)
    top = int(pad_y)

    canvas = _blank_canvas(target_size, image)
    canvas[top:top + new_height, left:left + new_width] = resized

    logger.debug(
        f"Letterbox {width}x{height} -> {new_width}x{new_height} "
        f"(scale={scale:.4f}, pad=({pad_x:.1f},{pad_y:.1f})) on {target_size}px canvas"
    )
    return FrameGeometry(
        canvas=canvas,
        scale=scale,
        pad_x=pad_x,
        pad_y=pad_y,
        target_size=target_size,
    )


def is_crop_admissible(width: int, height: int,
                       min_aspect: float = 0.6, max_aspect: float = 1.7) -> bool:
    """True when width/height lies inside the [min_aspect, max_aspect] window."""
    ratio = aspect_ratio(width, height)
    return min_aspect <= ratio <= max_aspect


def center_crop_with_margin(image: np.ndarray, target_w: int, target_h: int,
                            margin_px: int = 60,
                            min_aspect: float = 0.6,
                            max_aspect: float = 1.7) -> Optional[np.ndarray]:
    """Crop a centered window of ``target + margin`` and resize it to the target.

    Returns ``None`` when the source aspect ratio is outside the admissible
    window; no crop is attempted in that case. On an axis where the source is
    smaller than the window, the whole axis is used.
    """
    width, height = _source_size(image)
    if target_w <= 0 or target_h <= 0:
        raise GeometryError(f"Invalid crop target: {target_w}x{target_h}")

    if not is_crop_admissible(width, height, min_aspect, max_aspect):
        logger.debug(
            f"Crop skipped: aspect ratio {aspect_ratio(width, height):.2f} "
            f"outside [{min_aspect}, {max_aspect}]"
        )
        return None

    desired_w = target_w + margin_px
    desired_h = target_h + margin_px

    left = (width - desired_w) // 2
    top = (height - desired_h) // 2
    crop_w, crop_h = desired_w, desired_h
    if left < 0:
        left, crop_w = 0, width
    if top < 0:
        top, crop_h = 0, height

    window = image[top:top + crop_h, left:left + crop_w]
    cropped = cv2.resize(window, (target_w, target_h), interpolation=cv2.INTER_LINEAR)

    logger.debug(
        f"Center crop {crop_w}x{crop_h} at ({left},{top}) from {width}x{height} "
        f"-> {target_w}x{target_h}"
    )
    return cropped
