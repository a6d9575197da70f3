"""Photo decoding for the command-line reader.

Large camera photos are decoded at a reduced size: the sample factor is the
smallest power of two that brings both sides to ``max_dim`` or below. EXIF
orientation is applied after decoding so the pipeline always receives an
upright RGB array.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from ..core.exceptions import InvalidInputError

logger = logging.getLogger(__name__)

_EXIF_ORIENTATION_TAG = 0x0112

_ORIENTATION_TRANSPOSE = {
    2: Image.Transpose.FLIP_LEFT_RIGHT,
    3: Image.Transpose.ROTATE_180,
    4: Image.Transpose.FLIP_TOP_BOTTOM,
    5: Image.Transpose.TRANSPOSE,
    6: Image.Transpose.ROTATE_270,
    7: Image.Transpose.TRANSVERSE,
    8: Image.Transpose.ROTATE_90,
}


def compute_sample_size(width: int, height: int, max_dim: int = 1600) -> int:
    """Smallest power of two ``s`` with ``width // s`` and ``height // s`` <= ``max_dim``."""
    sample = 1
    if width > 0 and height > 0:
        while width // sample > max_dim or height // sample > max_dim:
            sample *= 2
    return sample


def load_image(path: Union[str, Path], max_dim: int = 1600) -> np.ndarray:
    """Decode ``path`` into an upright H x W x 3 uint8 RGB array.

    Raises:
        InvalidInputError: If the file is missing or is not a readable image
    """
    path = Path(path)
    try:
        with Image.open(path) as img:
            width, height = img.size
            orientation = img.getexif().get(_EXIF_ORIENTATION_TAG, 1)

            sample = compute_sample_size(width, height, max_dim)
            if sample > 1:
                target = (max(1, width // sample), max(1, height // sample))
                img.draft("RGB", target)
                decoded = img.convert("RGB")
                if decoded.size != target:
                    decoded = decoded.resize(target, Image.Resampling.BILINEAR)
                logger.debug(f"Decoded {path.name} at 1/{sample}: {width}x{height} -> {target[0]}x{target[1]}")
            else:
                decoded = img.convert("RGB")
    except FileNotFoundError as e:
        raise InvalidInputError(f"Image not found: {path}") from e
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidInputError(f"Failed to decode image {path}: {e}") from e

    method = _ORIENTATION_TRANSPOSE.get(orientation)
    if method is not None:
        decoded = decoded.transpose(method)
        logger.debug(f"Applied EXIF orientation {orientation} to {path.name}")

    return np.asarray(decoded, dtype=np.uint8).copy()
