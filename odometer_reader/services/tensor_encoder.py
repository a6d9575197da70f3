"""Canvas to model-input tensor conversion."""
from __future__ import annotations

import numpy as np

from ..core.exceptions import GeometryError

_SCALE = np.float32(255.0)


def encode_canvas(canvas: np.ndarray) -> np.ndarray:
    """Convert an S x S RGB(A) uint8 canvas into a float32 tensor [1, S, S, 3].

    Values are the raw channel bytes divided by 255.0 in R, G, B order,
    row-major and C-contiguous. An alpha channel is dropped.
    """
    if canvas is None or canvas.ndim != 3 or canvas.shape[2] not in (3, 4):
        shape = None if canvas is None else canvas.shape
        raise GeometryError(f"Canvas must be S x S x 3 or S x S x 4, got {shape}")
    height, width = canvas.shape[:2]
    if height != width or height == 0:
        raise GeometryError(f"Canvas must be square and non-empty, got {width}x{height}")
    if canvas.dtype != np.uint8:
        raise GeometryError(f"Canvas must be uint8, got {canvas.dtype}")

    rgb = canvas[..., :3].astype(np.float32)
    rgb /= _SCALE
    return np.ascontiguousarray(rgb[np.newaxis, ...])
