"""Unit tests for reading plausibility checks."""
import pytest

from odometer_reader.config.settings import Config
from odometer_reader.core.entities import PipelineResult
from odometer_reader.services.reading_quality import ReadingStatus, assess_reading


def _result(value, confidence=0.9):
    return PipelineResult(value=value, type=None, confidence=confidence, digit_count=len(value))


@pytest.mark.parametrize("value, confidence, expected", [
    ("", 0.0, ReadingStatus.NOT_DETECTED),
    ("", 0.95, ReadingStatus.NOT_DETECTED),
    ("123456", 0.2, ReadingStatus.VERY_LOW_CONFIDENCE),
    ("123456", 0.4, ReadingStatus.LOW_CONFIDENCE),
    ("123", 0.9, ReadingStatus.TOO_SHORT),
    ("12345678", 0.9, ReadingStatus.TOO_LONG),
    ("1234", 0.5, ReadingStatus.OK),
    ("1234567", 0.9, ReadingStatus.OK),
])
def test_status(value, confidence, expected):
    assessment = assess_reading(_result(value, confidence))

    assert assessment.status is expected
    assert assessment.should_retake == (expected is not ReadingStatus.OK)


def test_confidence_checked_before_length():
    assert assess_reading(_result("12", 0.1)).status is ReadingStatus.VERY_LOW_CONFIDENCE


def test_message_mentions_value_and_confidence():
    assessment = assess_reading(_result("98765", 0.42))

    assert "98765" in assessment.message
    assert "42%" in assessment.message


def test_thresholds_come_from_config():
    cfg = Config(min_digits=2, max_digits=3, low_confidence=0.95)

    assert assess_reading(_result("12", 0.99), cfg).status is ReadingStatus.OK
    assert assess_reading(_result("1234", 0.99), cfg).status is ReadingStatus.TOO_LONG
    assert assess_reading(_result("12", 0.9), cfg).status is ReadingStatus.LOW_CONFIDENCE
