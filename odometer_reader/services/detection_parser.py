"""Raw detector output to labeled boxes."""
from __future__ import annotations

import logging
from typing import List, Sequence

import numpy as np

from ..core.constants import CLASS_NAMES
from ..core.entities import BoxDetection
from ..core.exceptions import InferenceError
from ..core.geometry import cxcywh_to_xyxy

logger = logging.getLogger(__name__)


class DetectionParser:
    """Thresholds and decodes a ``[1, 4 + num_classes, anchors]`` output tensor."""

    def __init__(self, class_names: Sequence[str] = CLASS_NAMES,
                 conf_threshold: float = 0.3, box_scale: float = 1.0):
        """Initialize the parser.

        Args:
            class_names: Labels in the order of the score channels
            conf_threshold: An anchor is kept only if its best score is above this
            box_scale: Multiplier for box params (model-input size when the
                backend emits normalized coordinates)
        """
        self.class_names = tuple(class_names)
        self.conf_threshold = conf_threshold
        self.box_scale = box_scale

    def parse(self, raw: np.ndarray) -> List[BoxDetection]:
        raw = np.asarray(raw)
        expected_channels = 4 + len(self.class_names)
        if raw.ndim != 3 or raw.shape[0] != 1 or raw.shape[1] != expected_channels:
            raise InferenceError(
                f"Output shape {raw.shape} does not match [1, {expected_channels}, A]"
            )

        preds = raw[0]
        scores = preds[4:, :]
        class_ids = np.argmax(scores, axis=0)
        best = scores[class_ids, np.arange(scores.shape[1])]
        keep = np.flatnonzero(best > self.conf_threshold)

        detections: List[BoxDetection] = []
        for i in keep:
            cx, cy, w, h = (float(v) * self.box_scale for v in preds[:4, i])
            detections.append(BoxDetection(
                box=cxcywh_to_xyxy(cx, cy, w, h),
                confidence=float(best[i]),
                label=self.class_names[int(class_ids[i])],
            ))

        logger.debug(f"Parsed {len(detections)} of {preds.shape[1]} anchors above {self.conf_threshold}")
        return detections
