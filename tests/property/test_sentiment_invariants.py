from __future__ import annotations

import random

import pytest

from services.sentiment.datasets import seed_examples
from services.sentiment.evaluation import evaluate
from services.sentiment.naive_bayes import NaiveBayesClassifier

LABELS = ("positive", "negative", "neutral")

TEXTS = [
    "",
    "ok",
    "I love it 😍😍",
    "Not bad at all, honestly not bad",
    "Great, another system crash during the demo",
    "Terrible terrible terrible service, never again!!!",
    "El servicio fue increíble pero la comida muy mala",
    "Das ist nicht gut",
    "#launch day @acme so excited 🎉",
    "word " * 120,
]


def test_random_predictions_have_near_zero_kappa():
    rng = random.Random(20240501)
    pairs = [(rng.choice(LABELS), rng.choice(LABELS)) for _ in range(20000)]
    metrics = evaluate(pairs)
    assert abs(metrics.cohen_kappa) < 0.03
    assert metrics.accuracy == pytest.approx(1 / 3, abs=0.02)


@pytest.mark.parametrize("seed", [1, 2, 3, 4, 5])
def test_confusion_matrix_accounts_for_every_sample(seed):
    rng = random.Random(seed)
    n = rng.randint(1, 300)
    pairs = [(rng.choice(LABELS), rng.choice(LABELS)) for _ in range(n)]
    metrics = evaluate(pairs)
    assert sum(sum(row) for row in metrics.confusion_matrix) == n
    assert 0.0 <= metrics.accuracy <= 1.0
    assert -1.0 <= metrics.cohen_kappa <= 1.0
    for table in (metrics.precision, metrics.recall, metrics.f1):
        assert all(0.0 <= value <= 1.0 for value in table.values())


@pytest.mark.parametrize("text", TEXTS)
def test_results_stay_in_bounds(engine, text):
    breakdown = engine.analyze_detailed(text)
    for result in (breakdown.result, breakdown.rule, breakdown.naive):
        assert -1.0 <= result.score <= 1.0
        assert 0.0 <= result.confidence <= 1.0
        assert 0.0 <= result.magnitude <= 1.0
    assert breakdown.rule_weight >= 0.05
    assert breakdown.naive_weight >= 0.05


@pytest.mark.parametrize("seed", [7, 11, 13])
def test_incremental_training_matches_batch_for_any_split(seed):
    examples = seed_examples()
    rng = random.Random(seed)
    rng.shuffle(examples)
    cut = rng.randint(1, len(examples) - 1)

    split = NaiveBayesClassifier()
    split.train(examples[:cut])
    split.incremental_train(examples[cut:])
    whole = NaiveBayesClassifier()
    whole.train(examples)

    assert split.state.vocabulary == whole.state.vocabulary
    assert split.state.class_token_counts == whole.state.class_token_counts
    assert split.state.class_totals == whole.state.class_totals
