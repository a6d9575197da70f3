"""Greedy non-maximum suppression."""
from __future__ import annotations

import logging
from typing import List, Sequence

from ..core.entities import BoxDetection
from ..core.geometry import iou_xyxy

logger = logging.getLogger(__name__)


class NonMaxSuppressor:
    """Keeps the most confident box of every overlapping group.

    Suppression ignores labels: a confident digit box removes an overlapping
    "analog"/"digital" box and vice versa.
    """

    def __init__(self, iou_threshold: float = 0.5):
        self.iou_threshold = iou_threshold

    def suppress(self, detections: Sequence[BoxDetection]) -> List[BoxDetection]:
        remaining = sorted(detections, key=lambda d: d.confidence, reverse=True)
        kept: List[BoxDetection] = []
        while remaining:
            best = remaining.pop(0)
            kept.append(best)
            remaining = [d for d in remaining if iou_xyxy(best.box, d.box) <= self.iou_threshold]

        if len(kept) != len(detections):
            logger.debug(f"NMS kept {len(kept)} of {len(detections)} detections")
        return kept
