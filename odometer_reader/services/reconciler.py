"""Choice between the full-frame and the center-crop reading."""
from __future__ import annotations

from typing import Tuple

from ..core.constants import DETECTION_CROPPED, DETECTION_ORIGINAL
from ..core.entities import PredictionSummary


def reconcile(full: PredictionSummary,
              crop: PredictionSummary) -> Tuple[PredictionSummary, str]:
    """Pick the better of two summaries and tag where it came from.

    Rules, first match wins:
      1. more digits;
      2. same non-zero digit count and only one side found a gauge type;
      3. higher average confidence;
      4. the full frame.
    """
    if crop.digit_count != full.digit_count:
        if crop.digit_count > full.digit_count:
            return crop, DETECTION_CROPPED
        return full, DETECTION_ORIGINAL

    if full.digit_count > 0:
        if crop.type is not None and full.type is None:
            return crop, DETECTION_CROPPED
        if full.type is not None and crop.type is None:
            return full, DETECTION_ORIGINAL
        if crop.avg_confidence > full.avg_confidence:
            return crop, DETECTION_CROPPED

    return full, DETECTION_ORIGINAL
