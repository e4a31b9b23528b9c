"""Multinomial Naive Bayes sentiment classifier.

The model state is immutable. Every (incremental) training run builds a new
:class:`NaiveBayesModelState` and swaps the reference under a writer lock, so
predictions running concurrently always see one consistent version.
"""

from __future__ import annotations

import logging
import threading
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple, Union

import numpy as np
import orjson

from core.settings import NaiveBayesSettings
from services.sentiment.errors import InvalidInputError, ModelNotTrainedError, TrainingDataError
from services.sentiment.lexicons import LEXICONS
from services.sentiment.tokenizer import tokenize
from services.sentiment.types import (
    CLASS_LABELS,
    AnalysisMethod,
    SentimentLabel,
    SentimentResult,
    TrainingExample,
    neutral_result,
    normalize_label,
)

logger = logging.getLogger(__name__)

NEGATION_WORDS: FrozenSet[str] = frozenset().union(*(lex.negations for lex in LEXICONS.values()))
NEGATION_PREFIX = "NOT_"
SNAPSHOT_KEYS = ("vocabulary", "classTokenCounts", "classTotals", "classPriors", "version", "trainedAt")

# Ties between equal posteriors resolve in this order.
_TIE_ORDER = (SentimentLabel.NEUTRAL, SentimentLabel.POSITIVE, SentimentLabel.NEGATIVE)

ExampleLike = Union[TrainingExample, Mapping[str, Any], Tuple[str, Any]]


def extract_features(text: str, *, negation_scope: int = 3, use_bigrams: bool = True) -> List[str]:
    """Unigrams, ``NOT_`` copies of tokens following a negation, and bigrams."""

    tokens = tokenize(text)
    features = list(tokens)
    for idx, token in enumerate(tokens):
        if token in NEGATION_WORDS:
            features.extend(NEGATION_PREFIX + nxt for nxt in tokens[idx + 1 : idx + 1 + negation_scope])
    if use_bigrams:
        features.extend(f"{a} {b}" for a, b in zip(tokens, tokens[1:]))
    return features


def _empty_counts() -> Dict[str, Dict[str, int]]:
    return {label.value: {} for label in CLASS_LABELS}


@dataclass(frozen=True, slots=True)
class NaiveBayesModelState:
    vocabulary: FrozenSet[str] = frozenset()
    class_token_counts: Mapping[str, Mapping[str, int]] = field(default_factory=_empty_counts)
    class_totals: Mapping[str, int] = field(default_factory=lambda: {label.value: 0 for label in CLASS_LABELS})
    class_priors: Mapping[str, float] = field(default_factory=lambda: {label.value: 1 / len(CLASS_LABELS) for label in CLASS_LABELS})
    version: int = 0
    trained_at: Optional[str] = None
    smoothing: float = 1.0
    class_token_totals: Mapping[str, int] = field(default_factory=lambda: {label.value: 0 for label in CLASS_LABELS})

    @property
    def is_trained(self) -> bool:
        return bool(self.vocabulary)

    @property
    def document_count(self) -> int:
        return sum(self.class_totals.values())

    @classmethod
    def build(
        cls,
        counts: Mapping[str, Mapping[str, int]],
        documents: Mapping[str, int],
        *,
        version: int,
        smoothing: float,
        trained_at: Optional[str] = None,
    ) -> "NaiveBayesModelState":
        """Derive vocabulary, priors and token totals from raw counts."""

        labels = [label.value for label in CLASS_LABELS]
        token_counts = {label: dict(counts.get(label, {})) for label in labels}
        totals = {label: int(documents.get(label, 0)) for label in labels}
        n_docs = sum(totals.values())
        denom = n_docs + len(labels) * smoothing
        priors = {label: (totals[label] + smoothing) / denom for label in labels}
        vocabulary = frozenset().union(*(token_counts[label].keys() for label in labels))
        return cls(
            vocabulary=vocabulary,
            class_token_counts=token_counts,
            class_totals=totals,
            class_priors=priors,
            version=version,
            trained_at=trained_at or datetime.now(timezone.utc).isoformat(),
            smoothing=smoothing,
            class_token_totals={label: sum(token_counts[label].values()) for label in labels},
        )

    def to_payload(self) -> Dict[str, Any]:
        return {
            "vocabulary": sorted(self.vocabulary),
            "classTokenCounts": {label: dict(counts) for label, counts in self.class_token_counts.items()},
            "classTotals": dict(self.class_totals),
            "classPriors": dict(self.class_priors),
            "version": self.version,
            "trainedAt": self.trained_at,
            "smoothing": self.smoothing,
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "NaiveBayesModelState":
        missing = [key for key in SNAPSHOT_KEYS if key not in payload]
        if missing:
            raise InvalidInputError("Model snapshot is missing keys", {"missing": missing})
        try:
            counts = {
                normalize_label(label).value: {str(tok): int(n) for tok, n in tokens.items()}
                for label, tokens in payload["classTokenCounts"].items()
            }
            totals = {normalize_label(label).value: int(n) for label, n in payload["classTotals"].items()}
            priors = {normalize_label(label).value: float(p) for label, p in payload["classPriors"].items()}
            version = int(payload["version"])
        except (AttributeError, TypeError, ValueError) as exc:
            raise InvalidInputError("Model snapshot is malformed", {"reason": str(exc)}) from exc
        for label in CLASS_LABELS:
            counts.setdefault(label.value, {})
            totals.setdefault(label.value, 0)
        if not priors:
            raise InvalidInputError("Model snapshot has no class priors")
        return cls(
            vocabulary=frozenset(str(tok) for tok in payload["vocabulary"]),
            class_token_counts=counts,
            class_totals=totals,
            class_priors=priors,
            version=version,
            trained_at=payload["trainedAt"],
            smoothing=float(payload.get("smoothing", 1.0)),
            class_token_totals={label: sum(tokens.values()) for label, tokens in counts.items()},
        )


def coerce_example(item: ExampleLike) -> TrainingExample:
    if isinstance(item, TrainingExample):
        example = TrainingExample(item.text, normalize_label(item.label), item.language)
    elif isinstance(item, Mapping):
        example = TrainingExample.from_mapping(item)
    elif isinstance(item, (tuple, list)) and len(item) == 2:
        example = TrainingExample(text=item[0], label=normalize_label(item[1]))
    else:
        raise InvalidInputError(f"Unsupported training example: {type(item).__name__}")
    if not isinstance(example.text, str) or not example.text.strip():
        raise InvalidInputError("Training example text must be a non-empty string")
    return example


class NaiveBayesClassifier:
    """Thread-safe multinomial Naive Bayes over text features."""

    def __init__(
        self,
        settings: Optional[NaiveBayesSettings] = None,
        state: Optional[NaiveBayesModelState] = None,
    ) -> None:
        self.settings = settings or NaiveBayesSettings()
        self._state = state or NaiveBayesModelState(smoothing=self.settings.smoothing)
        self._lock = threading.Lock()

    @property
    def state(self) -> NaiveBayesModelState:
        return self._state

    @property
    def is_trained(self) -> bool:
        return self._state.is_trained

    def features(self, text: str) -> List[str]:
        return extract_features(
            text,
            negation_scope=self.settings.negation_scope,
            use_bigrams=self.settings.use_bigrams,
        )

    # training -----------------------------------------------------------

    def _validated(self, examples: Iterable[ExampleLike]) -> List[TrainingExample]:
        if examples is None or isinstance(examples, (str, bytes)):
            raise TrainingDataError("Training examples must be a list", received=0)
        accepted: List[TrainingExample] = []
        rejected = 0
        received = 0
        for item in examples:
            received += 1
            try:
                accepted.append(coerce_example(item))
            except InvalidInputError as exc:
                rejected += 1
                logger.warning("skipping training example", extra={"reason": exc.message, "index": received - 1})
        if not accepted:
            raise TrainingDataError(
                "No valid training examples supplied",
                received=received,
                rejected=rejected,
            )
        return accepted

    def _count(
        self,
        examples: List[TrainingExample],
        counts: Dict[str, Dict[str, int]],
        documents: Dict[str, int],
    ) -> None:
        for example in examples:
            label = example.label.value
            documents[label] = documents.get(label, 0) + 1
            bucket = counts.setdefault(label, {})
            for feature, n in Counter(self.features(example.text)).items():
                bucket[feature] = bucket.get(feature, 0) + n

    def train(self, examples: Iterable[ExampleLike]) -> NaiveBayesModelState:
        """Replace the model with one trained from ``examples``."""

        accepted = self._validated(examples)
        counts = _empty_counts()
        documents: Dict[str, int] = {}
        self._count(accepted, counts, documents)
        with self._lock:
            state = NaiveBayesModelState.build(
                counts,
                documents,
                version=self._state.version + 1,
                smoothing=self.settings.smoothing,
            )
            self._state = state
        logger.info(
            "naive bayes trained",
            extra={"examples": len(accepted), "vocabulary": len(state.vocabulary), "version": state.version},
        )
        return state

    def incremental_train(self, examples: Iterable[ExampleLike]) -> NaiveBayesModelState:
        """Add counts from ``examples`` to the current model."""

        accepted = self._validated(examples)
        with self._lock:
            current = self._state
            counts = {label: dict(tokens) for label, tokens in current.class_token_counts.items()}
            documents = dict(current.class_totals)
            self._count(accepted, counts, documents)
            state = NaiveBayesModelState.build(
                counts,
                documents,
                version=current.version + 1,
                smoothing=self.settings.smoothing,
            )
            self._state = state
        logger.info(
            "naive bayes updated",
            extra={
                "examples": len(accepted),
                "vocabulary_growth": len(state.vocabulary) - len(current.vocabulary),
                "version": state.version,
            },
        )
        return state

    def merge(self, other: Union["NaiveBayesClassifier", NaiveBayesModelState]) -> NaiveBayesModelState:
        """Add another model's counts into this one."""

        theirs = other.state if isinstance(other, NaiveBayesClassifier) else other
        with self._lock:
            current = self._state
            counts = {label: dict(tokens) for label, tokens in current.class_token_counts.items()}
            for label, tokens in theirs.class_token_counts.items():
                bucket = counts.setdefault(label, {})
                for token, n in tokens.items():
                    bucket[token] = bucket.get(token, 0) + n
            documents = dict(current.class_totals)
            for label, n in theirs.class_totals.items():
                documents[label] = documents.get(label, 0) + n
            state = NaiveBayesModelState.build(
                counts,
                documents,
                version=max(current.version, theirs.version) + 1,
                smoothing=self.settings.smoothing,
            )
            self._state = state
        return state

    # inference ----------------------------------------------------------

    def predict(self, text: str, *, allow_fallback: bool = True) -> SentimentResult:
        if not isinstance(text, str):
            raise InvalidInputError(f"Text must be a string, got {type(text).__name__}")
        state = self._state
        floor = self.settings.confidence_floor
        if not state.is_trained:
            if not allow_fallback:
                raise ModelNotTrainedError("Naive Bayes model has not been trained")
            return neutral_result(AnalysisMethod.NAIVE, floor, "model not trained")

        features = [f for f in self.features(text) if f in state.vocabulary]
        if not features:
            return neutral_result(AnalysisMethod.NAIVE, floor, "no known features")

        labels = [label.value for label in CLASS_LABELS]
        alpha = state.smoothing
        vocab_size = len(state.vocabulary)
        feature_counts = Counter(features)
        log_scores = np.empty(len(labels))
        for i, label in enumerate(labels):
            counts = state.class_token_counts.get(label, {})
            denom = state.class_token_totals.get(label, 0) + alpha * vocab_size
            log_likelihood = sum(
                n * np.log((counts.get(feature, 0) + alpha) / denom) for feature, n in feature_counts.items()
            )
            log_scores[i] = np.log(state.class_priors.get(label, floor)) + log_likelihood

        shifted = np.exp(log_scores - log_scores.max())
        posterior = shifted / shifted.sum()
        probabilities = {label: float(p) for label, p in zip(labels, posterior)}

        best_value = max(probabilities.values())
        winner = next(label for label in _TIE_ORDER if probabilities[label.value] == best_value)
        score = probabilities[SentimentLabel.POSITIVE.value] - probabilities[SentimentLabel.NEGATIVE.value]
        return SentimentResult(
            label=winner,
            score=score,
            confidence=max(floor, best_value),
            magnitude=abs(score),
            method=AnalysisMethod.NAIVE,
            explanation=f"{len(feature_counts)} known features, model v{state.version}",
            probabilities=probabilities,
        )

    # persistence --------------------------------------------------------

    def serialize(self) -> str:
        """JSON snapshot of the current state with sorted keys."""

        return orjson.dumps(self._state.to_payload(), option=orjson.OPT_SORT_KEYS).decode()

    def deserialize(self, payload: Union[str, bytes, Mapping[str, Any]]) -> NaiveBayesModelState:
        if isinstance(payload, (str, bytes)):
            try:
                payload = orjson.loads(payload)
            except orjson.JSONDecodeError as exc:
                raise InvalidInputError("Model snapshot is not valid JSON", {"reason": str(exc)}) from exc
        if not isinstance(payload, Mapping):
            raise InvalidInputError("Model snapshot must be a JSON object")
        state = NaiveBayesModelState.from_payload(payload)
        with self._lock:
            self._state = state
        return state

    def stats(self) -> Dict[str, Any]:
        state = self._state
        return {
            "version": state.version,
            "trainedAt": state.trained_at,
            "vocabularySize": len(state.vocabulary),
            "documents": state.document_count,
            "classTotals": dict(state.class_totals),
            "classPriors": dict(state.class_priors),
        }


__all__ = [
    "NaiveBayesModelState",
    "NaiveBayesClassifier",
    "coerce_example",
    "extract_features",
    "NEGATION_PREFIX",
]
