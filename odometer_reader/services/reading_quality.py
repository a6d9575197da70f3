"""Plausibility checks on a finished reading.

The checks run in a fixed order and the first failing one determines the
status: nothing detected, very low confidence, low confidence, too few
digits, too many digits. Odometers usually show 4 to 7 digits.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..config.settings import Config
from ..core.entities import PipelineResult


class ReadingStatus(Enum):
    OK = "ok"
    NOT_DETECTED = "not_detected"
    VERY_LOW_CONFIDENCE = "very_low_confidence"
    LOW_CONFIDENCE = "low_confidence"
    TOO_SHORT = "too_short"
    TOO_LONG = "too_long"


@dataclass(frozen=True, slots=True)
class ReadingAssessment:
    status: ReadingStatus
    message: str

    @property
    def should_retake(self) -> bool:
        return self.status is not ReadingStatus.OK


def assess_reading(result: PipelineResult, config: Optional[Config] = None) -> ReadingAssessment:
    """Classify ``result`` and suggest whether the photo should be retaken."""
    cfg = config or Config()
    value = result.value or ""
    confidence_pct = f"{result.confidence * 100:.0f}%"

    if not value:
        return ReadingAssessment(
            ReadingStatus.NOT_DETECTED,
            "Odometer not found. Make sure the photo is sharp, well lit and the odometer is clearly visible.",
        )
    if result.confidence < cfg.very_low_confidence:
        return ReadingAssessment(
            ReadingStatus.VERY_LOW_CONFIDENCE,
            f"Model is very unsure about '{value}' (confidence {confidence_pct}). Retaking the photo is strongly recommended.",
        )
    if result.confidence < cfg.low_confidence:
        return ReadingAssessment(
            ReadingStatus.LOW_CONFIDENCE,
            f"Model is unsure about '{value}' (confidence {confidence_pct}). Retaking the photo is recommended.",
        )
    if len(value) < cfg.min_digits:
        return ReadingAssessment(
            ReadingStatus.TOO_SHORT,
            f"Value '{value}' is too short ({len(value)} digits); odometers usually show {cfg.min_digits}-{cfg.max_digits} digits.",
        )
    if len(value) > cfg.max_digits:
        return ReadingAssessment(
            ReadingStatus.TOO_LONG,
            f"Value '{value}' is too long ({len(value)} digits); odometers usually show {cfg.min_digits}-{cfg.max_digits} digits.",
        )
    return ReadingAssessment(ReadingStatus.OK, f"Read '{value}' with confidence {confidence_pct}.")
