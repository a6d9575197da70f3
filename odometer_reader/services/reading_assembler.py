"""Turns one pass's surviving boxes into a digit reading."""
from __future__ import annotations

from typing import Sequence

from ..core.entities import BoxDetection, PredictionSummary


def assemble_reading(detections: Sequence[BoxDetection]) -> PredictionSummary:
    """Build a PredictionSummary from NMS-filtered detections.

    Digits are read left to right by their box's x1. The gauge type is the
    label of the most confident "analog"/"digital" box, and type boxes never
    count toward the average confidence.
    """
    digits = [d for d in detections if d.is_digit]
    types = [d for d in detections if d.is_type]

    type_label = max(types, key=lambda d: d.confidence).label if types else None

    if not digits:
        return PredictionSummary.empty(type_label)

    digits.sort(key=lambda d: d.x1)
    value = "".join(d.label for d in digits)
    avg_confidence = sum(d.confidence for d in digits) / len(digits)

    return PredictionSummary(
        value=value,
        type=type_label,
        digit_count=len(digits),
        avg_confidence=avg_confidence,
    )
