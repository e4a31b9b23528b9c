import pytest

from services.ml.drift import accuracy_drift, evaluate_accuracy_drift, split_history


def test_split_history_keeps_recent_tail():
    older, recent = split_history([1, 1, 1, 1, 0], recent_fraction=0.2)
    assert older.tolist() == [1, 1, 1, 1]
    assert recent.tolist() == [0]


def test_accuracy_drift_matches_manual():
    history = [1.0] * 8 + [0.5] * 2
    assert accuracy_drift(history) == pytest.approx(0.5)
    assert accuracy_drift([1.0]) == 0.0


def test_drift_gate_respects_threshold():
    degraded = [1.0] * 40 + [0.0] * 10
    report = evaluate_accuracy_drift(degraded, threshold=0.05)
    assert report.passed is False
    assert report.value == pytest.approx(1.0)
    assert report.details["recent_mean"] == pytest.approx(0.0)

    steady = [1.0, 0.0] * 25
    assert evaluate_accuracy_drift(steady, threshold=0.05).passed is True


def test_short_history_passes():
    report = evaluate_accuracy_drift([0.0, 1.0, 0.0], threshold=0.0)
    assert report.passed is True
    assert report.details["reason"] == "insufficient_history"
