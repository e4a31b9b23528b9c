from __future__ import annotations

import math

import pytest

from services.sentiment.datasets import seed_examples
from services.sentiment.errors import InvalidInputError
from services.sentiment.evaluation import (
    build_evaluation_report,
    classification_report,
    cohen_kappa,
    compare_models,
    cross_validate,
    erf,
    evaluate,
    normal_cdf,
    significance,
)

LABELS = ("positive", "negative", "neutral")


def test_perfect_predictions():
    pairs = [(label, label) for label in LABELS for _ in range(4)]
    metrics = evaluate(pairs)
    assert metrics.accuracy == 1.0
    assert metrics.cohen_kappa == pytest.approx(1.0)
    assert metrics.f1["macro"] == pytest.approx(1.0)
    assert metrics.confusion_matrix == [[4, 0, 0], [0, 4, 0], [0, 0, 4]]


def test_known_precision_and_recall():
    pairs = [
        ("positive", "positive"),
        ("positive", "negative"),
        ("negative", "negative"),
        ("neutral", "neutral"),
    ]
    metrics = evaluate(pairs)
    assert metrics.accuracy == pytest.approx(0.75)
    assert metrics.precision["positive"] == pytest.approx(1.0)
    assert metrics.precision["negative"] == pytest.approx(0.5)
    assert metrics.recall["positive"] == pytest.approx(0.5)
    assert metrics.recall["negative"] == pytest.approx(1.0)
    assert metrics.f1["negative"] == pytest.approx(2 / 3)
    assert metrics.confusion_matrix[0] == [1, 1, 0]
    assert metrics.sample_count == 4


def test_undefined_precision_is_zero():
    metrics = evaluate([("positive", "neutral"), ("neutral", "neutral")])
    assert metrics.precision["positive"] == 0.0
    assert metrics.f1["positive"] == 0.0


def test_single_class_agreement_has_zero_kappa():
    metrics = evaluate([("neutral", "neutral")] * 5)
    assert metrics.accuracy == 1.0
    assert metrics.cohen_kappa == 0.0


def test_very_labels_are_collapsed_and_mappings_accepted():
    metrics = evaluate(
        [
            {"actual": "very_positive", "predicted": "positive"},
            {"actual_label": "Very-Negative", "predicted_label": "negative"},
        ]
    )
    assert metrics.accuracy == 1.0


def test_empty_and_invalid_inputs():
    with pytest.raises(InvalidInputError):
        evaluate([])
    with pytest.raises(InvalidInputError):
        evaluate([("positive", "maybe")])


def test_erf_reference_values():
    assert abs(erf(0.0)) < 1e-6
    assert erf(1.0) == pytest.approx(0.8427007929, abs=1e-6)
    assert erf(-0.5) == pytest.approx(-erf(0.5))
    assert normal_cdf(1.96) == pytest.approx(0.975, abs=1e-3)
    assert normal_cdf(0.0) == pytest.approx(0.5, abs=1e-6)


def test_significance_bounds():
    result = significance(0.9, 0.6, 100)
    assert result["zScore"] == pytest.approx(0.3 / math.sqrt(0.6 * 0.4 / 100))
    assert 0.0 <= result["pValue"] < 0.05
    low, high = result["confidenceInterval"]
    assert 0.0 <= low <= 0.9 <= high <= 1.0


def test_compare_models_picks_best_and_tests_significance():
    truth = [LABELS[i % 3] for i in range(99)]
    models = {
        "baseline": [(actual, "neutral") for actual in truth],
        "hybrid": [(actual, actual) for actual in truth],
    }
    comparison = compare_models(models)
    assert comparison["baseline"] == "baseline"
    assert comparison["bestModel"] == "hybrid"
    assert comparison["significance"]["significant"] is True
    assert comparison["significance"]["confidenceInterval"][1] == pytest.approx(1.0)
    assert comparison["models"]["hybrid"]["accuracy"] == 1.0
    assert comparison["recommendations"]


def test_compare_models_requires_input():
    with pytest.raises(InvalidInputError):
        compare_models({})


def test_evaluation_report_shape():
    records = [
        {"text": "a", "actual": "positive", "rule": "positive", "naive": "neutral", "hybrid": "positive"},
        {"text": "b", "actual": "negative", "rule": "negative", "naive": "negative", "hybrid": "negative"},
        {"text": "c", "actual": "neutral", "rule": "positive", "naive": "neutral", "hybrid": "positive"},
    ]
    report = build_evaluation_report(records)
    assert report["overall"] == {"total": 3, "correct": 2, "accuracy": pytest.approx(2 / 3)}
    assert report["byMethod"]["naive"]["correct"] == 2
    assert report["insights"]["disagreementRate"] == pytest.approx(2 / 3)
    assert len(report["detailedResults"]) == 3
    assert sum(sum(row) for row in report["confusionMatrix"]) == 3


def test_classification_report_lists_classes():
    text = classification_report([("positive", "positive"), ("negative", "neutral")])
    for name in ("positive", "negative", "neutral", "macro", "weighted", "accuracy", "kappa"):
        assert name in text


def test_kappa_matches_hand_computation():
    y_true = ["positive", "positive", "negative", "neutral"]
    y_pred = ["positive", "negative", "negative", "neutral"]
    # observed 0.75, chance (2*1 + 1*2 + 1*1) / 16
    expected = 5 / 16
    assert cohen_kappa(y_true, y_pred) == pytest.approx((0.75 - expected) / (1 - expected))
    assert cohen_kappa(["neutral"] * 3, ["neutral"] * 3) == 0.0


def test_cross_validate_is_stratified_and_reproducible():
    examples = seed_examples()
    first = cross_validate(examples, k=3, seed=7)
    assert len(first["folds"]) == 3
    assert sum(fold.sample_count for fold in first["folds"]) == len(examples)
    for fold in first["folds"]:
        assert all(sum(row) > 0 for row in fold.confusion_matrix)
    assert 0.0 <= first["mean"]["accuracy"] <= 1.0
    assert first["std"]["macroF1"] >= 0.0

    again = cross_validate(examples, k=3, seed=7)
    assert [f.accuracy for f in again["folds"]] == [f.accuracy for f in first["folds"]]


def test_cross_validate_rejects_bad_fold_counts():
    with pytest.raises(InvalidInputError):
        cross_validate(seed_examples(), k=1)
    with pytest.raises(InvalidInputError):
        cross_validate([("good", "positive"), ("bad", "negative")], k=3)
    with pytest.raises(InvalidInputError):
        cross_validate([("good", "positive")] * 2 + [("bad", "negative")] * 2, k=4)
