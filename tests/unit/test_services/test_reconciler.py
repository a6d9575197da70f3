"""Unit tests for the full-frame / center-crop choice."""
from odometer_reader.core.entities import PredictionSummary
from odometer_reader.services.reconciler import reconcile


def _s(count, conf=0.5, type_=None):
    return PredictionSummary(value="1" * count, type=type_, digit_count=count, avg_confidence=conf)


def test_more_digits_wins_regardless_of_confidence():
    full, crop = _s(5, 0.95), _s(6, 0.40)

    chosen, method = reconcile(full, crop)

    assert method == "Cropped"
    assert chosen is crop


def test_full_frame_with_more_digits_wins():
    chosen, method = reconcile(_s(6, 0.3), _s(5, 0.99))

    assert method == "Original"
    assert chosen.digit_count == 6


def test_equal_count_higher_confidence_wins():
    chosen, method = reconcile(_s(4, 0.6), _s(4, 0.8))

    assert method == "Cropped"
    assert chosen.avg_confidence == 0.8


def test_type_beats_confidence_for_crop():
    _, method = reconcile(_s(4, 0.9), _s(4, 0.5, "analog"))

    assert method == "Cropped"


def test_type_beats_confidence_for_full():
    _, method = reconcile(_s(4, 0.5, "digital"), _s(4, 0.9))

    assert method == "Original"


def test_both_typed_falls_through_to_confidence():
    _, method = reconcile(_s(4, 0.5, "digital"), _s(4, 0.7, "analog"))

    assert method == "Cropped"


def test_full_frame_wins_exact_tie():
    full = _s(4, 0.7)

    chosen, method = reconcile(full, _s(4, 0.7))

    assert method == "Original"
    assert chosen is full


def test_both_empty_defaults_to_full():
    full = PredictionSummary.empty("analog")

    chosen, method = reconcile(full, PredictionSummary.empty())

    assert method == "Original"
    assert chosen is full


def test_empty_counts_ignore_type_rule():
    _, method = reconcile(PredictionSummary.empty(), PredictionSummary.empty("digital"))

    assert method == "Original"
