"""Offline evaluation and model comparison.

Confusion matrices are indexed positive, negative, neutral with rows holding
the actual label and columns the predicted label.
"""

from __future__ import annotations

import math
import time
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np
from sklearn.metrics import accuracy_score, cohen_kappa_score, precision_recall_fscore_support
from sklearn.metrics import classification_report as sk_classification_report
from sklearn.metrics import confusion_matrix as sk_confusion_matrix
from sklearn.model_selection import StratifiedKFold

from core.settings import NaiveBayesSettings
from services.sentiment.errors import InvalidInputError
from services.sentiment.naive_bayes import ExampleLike, NaiveBayesClassifier, coerce_example
from services.sentiment.types import CLASS_LABELS, ModelMetrics, SentimentLabel, SentimentResult, normalize_label

LABELS = [label.value for label in CLASS_LABELS]
METHODS = ("rule", "naive", "hybrid")

# Abramowitz and Stegun formula 7.1.26.
_A1 = 0.254829592
_A2 = -0.284496736
_A3 = 1.421413741
_A4 = -1.453152027
_A5 = 1.061405429
_P = 0.3275911


def erf(x: float) -> float:
    sign = -1.0 if x < 0 else 1.0
    x = abs(x)
    t = 1.0 / (1.0 + _P * x)
    y = 1.0 - (((((_A5 * t + _A4) * t + _A3) * t + _A2) * t + _A1) * t * math.exp(-x * x))
    return sign * y


def normal_cdf(x: float) -> float:
    return 0.5 * (1.0 + erf(x / math.sqrt(2.0)))


def _label_of(value: Any) -> SentimentLabel:
    if isinstance(value, SentimentResult):
        return normalize_label(value.label)
    return normalize_label(value)


def _pairs(predictions: Iterable[Any]) -> List[Tuple[SentimentLabel, SentimentLabel]]:
    pairs: List[Tuple[SentimentLabel, SentimentLabel]] = []
    for item in predictions:
        if isinstance(item, Mapping):
            actual = item.get("actual", item.get("actual_label"))
            predicted = item.get("predicted", item.get("predicted_label"))
        elif isinstance(item, (tuple, list)) and len(item) == 2:
            actual, predicted = item
        else:
            raise InvalidInputError(f"Unsupported prediction record: {type(item).__name__}")
        pairs.append((_label_of(actual), _label_of(predicted)))
    return pairs


def _columns(pairs: Sequence[Tuple[SentimentLabel, SentimentLabel]]) -> Tuple[List[str], List[str]]:
    return [actual.value for actual, _ in pairs], [predicted.value for _, predicted in pairs]


def confusion_matrix(pairs: Sequence[Tuple[SentimentLabel, SentimentLabel]]) -> np.ndarray:
    y_true, y_pred = _columns(pairs)
    return sk_confusion_matrix(y_true, y_pred, labels=LABELS)


def cohen_kappa(y_true: Sequence[str], y_pred: Sequence[str]) -> float:
    """Cohen's Kappa; 0 when chance agreement is already perfect."""

    n = len(y_true)
    if n == 0:
        return 0.0
    expected = sum(y_true.count(label) * y_pred.count(label) for label in LABELS) / (n * n)
    if expected >= 1.0:
        return 0.0
    return float(cohen_kappa_score(y_true, y_pred, labels=LABELS))


def evaluate(predictions: Iterable[Any]) -> ModelMetrics:
    """Compute accuracy, per-class and averaged P/R/F1 and Cohen's Kappa."""

    started = time.perf_counter()
    pairs = _pairs(predictions)
    if not pairs:
        raise InvalidInputError("Cannot evaluate an empty prediction list")

    y_true, y_pred = _columns(pairs)
    per_class = precision_recall_fscore_support(y_true, y_pred, labels=LABELS, average=None, zero_division=0)
    averaged = {
        avg: precision_recall_fscore_support(y_true, y_pred, labels=LABELS, average=avg, zero_division=0)
        for avg in ("macro", "weighted")
    }

    def table(position: int) -> Dict[str, float]:
        out = {label: float(value) for label, value in zip(LABELS, per_class[position])}
        for avg, scores in averaged.items():
            out[avg] = float(scores[position])
        return out

    return ModelMetrics(
        accuracy=float(accuracy_score(y_true, y_pred)),
        precision=table(0),
        recall=table(1),
        f1=table(2),
        cohen_kappa=cohen_kappa(y_true, y_pred),
        confusion_matrix=sk_confusion_matrix(y_true, y_pred, labels=LABELS).tolist(),
        sample_count=len(pairs),
        processing_time_ms=(time.perf_counter() - started) * 1000.0,
    )


def significance(acc_best: float, acc_base: float, n: int) -> Dict[str, Any]:
    """Two-proportion z-test of the best model against the baseline accuracy."""

    stderr = math.sqrt(acc_base * (1.0 - acc_base) / n) if n > 0 else 0.0
    diff = abs(acc_best - acc_base)
    if stderr > 0:
        z = diff / stderr
    else:
        z = 0.0 if diff == 0 else math.inf
    p_value = max(0.0, 2.0 * (1.0 - normal_cdf(abs(z)))) if math.isfinite(z) else 0.0
    low = max(0.0, acc_best - 1.96 * stderr)
    high = min(1.0, acc_best + 1.96 * stderr)
    return {
        "zScore": z,
        "pValue": p_value,
        "significant": p_value < 0.05,
        "confidenceInterval": [low, high],
        "improvement": acc_best - acc_base,
    }


def compare_models(models: Mapping[str, Iterable[Any]]) -> Dict[str, Any]:
    """Evaluate several prediction sets; the first one is the baseline."""

    if not models:
        raise InvalidInputError("No models to compare")
    metrics = {name: evaluate(preds) for name, preds in models.items()}
    names = list(metrics)
    baseline = names[0]
    best = max(names, key=lambda name: metrics[name].f1["macro"])
    base_m, best_m = metrics[baseline], metrics[best]
    test = significance(best_m.accuracy, base_m.accuracy, base_m.sample_count)

    recommendations: List[str] = []
    if best == baseline:
        recommendations.append(f"Keep {baseline}: no model beats the baseline on macro F1")
    elif test["significant"]:
        recommendations.append(
            f"Adopt {best}: accuracy {best_m.accuracy:.3f} vs {base_m.accuracy:.3f} (p={test['pValue']:.4f})"
        )
    else:
        recommendations.append(f"{best} leads on macro F1 but the gain is not significant; collect more data")
    for name, m in metrics.items():
        weakest = min((label.value for label in CLASS_LABELS), key=lambda lbl: m.f1[lbl])
        if m.f1[weakest] < 0.5:
            recommendations.append(f"{name}: weak {weakest} class (F1 {m.f1[weakest]:.2f}); add labelled examples")
        if m.cohen_kappa < 0.4:
            recommendations.append(f"{name}: low agreement beyond chance (kappa {m.cohen_kappa:.2f})")

    return {
        "models": {name: m.to_dict() for name, m in metrics.items()},
        "baseline": baseline,
        "bestModel": best,
        "significance": test,
        "recommendations": recommendations,
    }


def build_evaluation_report(records: Iterable[Mapping[str, Any]]) -> Dict[str, Any]:
    """Summarise per-method results for labelled texts.

    Each record carries ``text``, ``actual`` and one result (or label) per
    method under ``rule``, ``naive`` and ``hybrid``.
    """

    rows = list(records)
    if not rows:
        raise InvalidInputError("Cannot build a report from an empty record list")

    correct = {method: 0 for method in METHODS}
    pairs: List[Tuple[SentimentLabel, SentimentLabel]] = []
    detailed: List[Dict[str, Any]] = []
    confidences: List[float] = []
    disagreements = 0
    for row in rows:
        actual = normalize_label(row.get("actual"))
        labels = {method: _label_of(row[method]) for method in METHODS if row.get(method) is not None}
        for method, label in labels.items():
            correct[method] += int(label == actual)
        hybrid = row.get("hybrid")
        predicted = labels.get("hybrid", SentimentLabel.NEUTRAL)
        pairs.append((actual, predicted))
        confidence = hybrid.confidence if isinstance(hybrid, SentimentResult) else None
        if confidence is not None:
            confidences.append(confidence)
        if "rule" in labels and "naive" in labels and labels["rule"] != labels["naive"]:
            disagreements += 1
        detailed.append(
            {
                "text": row.get("text"),
                "actual": actual.value,
                "predicted": predicted.value,
                "confidence": confidence,
                "correct": predicted == actual,
                "rule": labels["rule"].value if "rule" in labels else None,
                "naive": labels["naive"].value if "naive" in labels else None,
            }
        )

    total = len(rows)
    by_method = {method: {"correct": correct[method], "accuracy": correct[method] / total} for method in METHODS}
    strongest = max(METHODS, key=lambda method: correct[method])
    return {
        "overall": {"total": total, "correct": correct["hybrid"], "accuracy": correct["hybrid"] / total},
        "byMethod": by_method,
        "confusionMatrix": confusion_matrix(pairs).tolist(),
        "detailedResults": detailed,
        "insights": {
            "strongestMethod": strongest,
            "averageConfidence": float(np.mean(confidences)) if confidences else 0.0,
            "disagreementRate": disagreements / total,
        },
    }



def classification_report(predictions: Iterable[Any], digits: int = 3) -> str:
    """Per-class precision / recall / F1 table followed by the kappa line."""

    pairs = _pairs(predictions)
    if not pairs:
        raise InvalidInputError("Cannot report on an empty prediction list")
    y_true, y_pred = _columns(pairs)
    report = sk_classification_report(
        y_true,
        y_pred,
        labels=LABELS,
        target_names=LABELS,
        digits=digits,
        zero_division=0,
    )
    return f"{report}\n{'kappa':>12}  {cohen_kappa(y_true, y_pred):.{digits}f}"


def cross_validate(
    examples: Iterable[ExampleLike],
    k: int = 5,
    seed: int = 42,
    settings: Optional[NaiveBayesSettings] = None,
) -> Dict[str, Any]:
    """Stratified k-fold cross-validation of the Naive Bayes classifier.

    Every fold trains a fresh classifier on the remaining folds. Returns the
    per-fold ``ModelMetrics`` plus the mean and standard deviation of the
    headline figures.
    """

    data = [coerce_example(item) for item in examples]
    if k < 2:
        raise InvalidInputError("Cross-validation needs at least two folds", {"k": k})
    if len(data) < k:
        raise InvalidInputError(
            f"Need at least {k} examples for {k}-fold cross-validation",
            {"k": k, "examples": len(data)},
        )
    labels = np.array([normalize_label(example.label).value for example in data])
    splitter = StratifiedKFold(n_splits=k, shuffle=True, random_state=seed)
    try:
        splits = list(splitter.split(np.zeros(len(data)), labels))
    except ValueError as exc:
        raise InvalidInputError(f"Cannot build {k} stratified folds: {exc}", {"k": k}) from exc

    folds: List[ModelMetrics] = []
    for train_idx, test_idx in splits:
        classifier = NaiveBayesClassifier(settings)
        classifier.train([data[i] for i in train_idx])
        folds.append(evaluate([(data[i].label, classifier.predict(data[i].text)) for i in test_idx]))

    columns = {
        "accuracy": [m.accuracy for m in folds],
        "macroF1": [m.f1["macro"] for m in folds],
        "weightedF1": [m.f1["weighted"] for m in folds],
        "cohenKappa": [m.cohen_kappa for m in folds],
    }
    return {
        "k": k,
        "seed": seed,
        "folds": folds,
        "mean": {name: float(np.mean(values)) for name, values in columns.items()},
        "std": {name: float(np.std(values)) for name, values in columns.items()},
    }


__all__ = [
    "erf",
    "normal_cdf",
    "confusion_matrix",
    "cohen_kappa",
    "evaluate",
    "significance",
    "compare_models",
    "build_evaluation_report",
    "classification_report",
    "cross_validate",
]
