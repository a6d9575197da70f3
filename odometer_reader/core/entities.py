"""Domain entities (data-only structures) used across services."""
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .constants import DIGIT_LABELS, TYPE_LABELS, DETECTION_ORIGINAL

Box = Tuple[float, float, float, float]  # (x1,y1,x2,y2) in model-input pixels

@dataclass(frozen=True, slots=True)
class BoxDetection:
    box: Box
    confidence: float
    label: str

    @property
    def x1(self) -> float:
        return self.box[0]

    @property
    def is_digit(self) -> bool:
        return self.label in DIGIT_LABELS

    @property
    def is_type(self) -> bool:
        return self.label in TYPE_LABELS

@dataclass(frozen=True, slots=True)
class PredictionSummary:
    value: str
    type: Optional[str]
    digit_count: int
    avg_confidence: float

    @classmethod
    def empty(cls, type_label: Optional[str] = None) -> "PredictionSummary":
        """Sentinel summary for a skipped or degraded pass."""
        return cls(value="", type=type_label, digit_count=0, avg_confidence=0.0)

@dataclass(frozen=True, slots=True)
class FrameGeometry:
    canvas: Any  # numpy ndarray (target_size x target_size x channels)
    scale: float
    pad_x: float
    pad_y: float
    target_size: int

class PassStatus(Enum):
    OK = "ok"
    SKIPPED = "skipped"  # crop pass not attempted (aspect ratio outside window)
    DEGRADED = "degraded"
    FATAL = "fatal"

@dataclass(frozen=True, slots=True)
class PassOutcome:
    pass_name: str
    status: PassStatus
    summary: PredictionSummary
    error: Optional[BaseException] = None

    @property
    def cause(self) -> Optional[str]:
        if self.error is None:
            return None
        return f"{type(self.error).__name__}: {self.error}"

@dataclass(frozen=True, slots=True)
class PipelineResult:
    value: str
    type: Optional[str]
    confidence: float
    detection_method: str = DETECTION_ORIGINAL
    digit_count: int = 0
    crop_status: str = PassStatus.OK.value
    crop_cause: Optional[str] = None

    def to_dict(self, diagnostics: bool = False) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "value": self.value,
            "type": self.type,
            "confidence": self.confidence,
            "detectionMethod": self.detection_method,
        }
        if diagnostics:
            d["digitCount"] = self.digit_count
            d["cropStatus"] = self.crop_status
            d["cropCause"] = self.crop_cause
        return d
