"""Buffered feedback loop that retrains the Naive Bayes model incrementally."""

from __future__ import annotations

import logging
import math
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Deque, Dict, List, Optional, Tuple

from core.settings import FeedbackSettings
from services.ml.drift import evaluate_accuracy_drift
from services.sentiment.errors import InvalidInputError
from services.sentiment.evaluation import evaluate
from services.sentiment.naive_bayes import NaiveBayesClassifier
from services.sentiment.types import FeedbackRecord, SentimentLabel, SentimentResult, normalize_label

logger = logging.getLogger(__name__)

Predictor = Callable[[str], SentimentResult]

MIN_HOLDOUT_BATCH = 5


@dataclass(slots=True)
class LearningStats:
    total_received: int = 0
    total_incorporated: int = 0
    correct_predictions: int = 0
    incorrect_predictions: int = 0
    average_confidence: Optional[float] = None
    retraining_events: int = 0
    vocabulary_growth: int = 0
    accuracy_before: Optional[float] = None
    accuracy_after: Optional[float] = None
    last_retrained_at: Optional[datetime] = None
    dropped_records: int = 0
    history: Deque[float] = field(default_factory=deque)
    outcomes: Deque[Tuple[SentimentLabel, SentimentLabel]] = field(default_factory=deque)


def _accuracy(predict: Predictor, records: List[FeedbackRecord]) -> Optional[float]:
    if not records:
        return None
    hits = sum(1 for record in records if normalize_label(predict(record.text).label) == record.actual_label)
    return hits / len(records)


class AutoLearningLoop:
    """Collect ground-truth feedback and fold it into the classifier."""

    def __init__(
        self,
        classifier: NaiveBayesClassifier,
        settings: Optional[FeedbackSettings] = None,
        predictor: Optional[Predictor] = None,
    ) -> None:
        self.classifier = classifier
        self.settings = settings or FeedbackSettings()
        self._predict = predictor or classifier.predict
        self._buffer: List[FeedbackRecord] = []
        self._lock = threading.Lock()
        self._flush_lock = threading.Lock()
        self._stats = self._fresh_stats()

    def _fresh_stats(self) -> LearningStats:
        return LearningStats(
            history=deque(maxlen=self.settings.performance_window),
            outcomes=deque(maxlen=self.settings.max_buffer),
        )

    @property
    def buffer_size(self) -> int:
        with self._lock:
            return len(self._buffer)

    def provide_feedback(
        self,
        text: str,
        actual_label: Any,
        user_id: Optional[str] = None,
        source: Optional[str] = None,
    ) -> FeedbackRecord:
        if not isinstance(text, str) or not text.strip():
            raise InvalidInputError("Feedback text must be a non-empty string")
        label = normalize_label(actual_label)
        prediction = self._predict(text)
        predicted = normalize_label(prediction.label)
        record = FeedbackRecord(
            text=text,
            actual_label=label,
            user_id=user_id,
            source=source,
            predicted_label=predicted,
            predicted_confidence=prediction.confidence,
        )

        with self._lock:
            stats = self._stats
            stats.total_received += 1
            hit = predicted == label
            if hit:
                stats.correct_predictions += 1
            else:
                stats.incorrect_predictions += 1
            stats.history.append(1.0 if hit else 0.0)
            stats.outcomes.append((label, predicted))
            alpha = self.settings.ema_alpha
            if stats.average_confidence is None:
                stats.average_confidence = prediction.confidence
            else:
                stats.average_confidence = alpha * prediction.confidence + (1 - alpha) * stats.average_confidence

            self._buffer.append(record)
            self._enforce_bound()
            ready = self.settings.enabled and len(self._buffer) >= self.settings.buffer_size

        if ready:
            self.force_process_buffer()
        return record

    def _enforce_bound(self) -> None:
        # caller holds self._lock
        overflow = len(self._buffer) - self.settings.max_buffer
        if overflow > 0:
            del self._buffer[:overflow]
            self._stats.dropped_records += overflow
            logger.warning("feedback buffer full; dropped oldest records", extra={"dropped": overflow})

    def force_process_buffer(self) -> Dict[str, Any]:
        """Train on everything buffered so far and return the updated stats."""

        with self._flush_lock:
            with self._lock:
                records, self._buffer = self._buffer, []
            if records:
                try:
                    self._retrain(records)
                except Exception:
                    with self._lock:
                        self._buffer[:0] = records
                        self._enforce_bound()
                    logger.exception("feedback retraining failed; buffer restored", extra={"records": len(records)})
                    raise
        return self.get_auto_learning_stats()

    def _retrain(self, records: List[FeedbackRecord]) -> None:
        if len(records) >= MIN_HOLDOUT_BATCH:
            cut = len(records) - max(1, math.ceil(len(records) * self.settings.holdout_fraction))
            train_part, holdout = records[:cut], records[cut:]
        else:
            train_part, holdout = records, records

        before_state = self.classifier.state
        before = _accuracy(self.classifier.predict, holdout)
        scratch = NaiveBayesClassifier(self.classifier.settings, state=before_state)
        scratch.incremental_train([record.to_example() for record in train_part])
        after = _accuracy(scratch.predict, holdout)

        state = self.classifier.incremental_train([record.to_example() for record in records])
        with self._lock:
            stats = self._stats
            stats.total_incorporated += len(records)
            stats.retraining_events += 1
            stats.vocabulary_growth += len(state.vocabulary) - len(before_state.vocabulary)
            stats.accuracy_before = before
            stats.accuracy_after = after
            stats.last_retrained_at = datetime.now(timezone.utc)
        logger.info(
            "feedback incorporated",
            extra={
                "records": len(records),
                "version": state.version,
                "accuracy_before": before,
                "accuracy_after": after,
            },
        )

    def get_auto_learning_stats(self) -> Dict[str, Any]:
        with self._lock:
            stats = self._stats
            judged = stats.correct_predictions + stats.incorrect_predictions
            history = list(stats.history)
            outcomes = list(stats.outcomes)
            payload: Dict[str, Any] = {
                "totalFeedbackReceived": stats.total_received,
                "totalIncorporated": stats.total_incorporated,
                "correctPredictions": stats.correct_predictions,
                "incorrectPredictions": stats.incorrect_predictions,
                "averageConfidence": stats.average_confidence,
                "retrainingEvents": stats.retraining_events,
                "vocabularyGrowth": stats.vocabulary_growth,
                "accuracyBefore": stats.accuracy_before,
                "accuracyAfter": stats.accuracy_after,
                "rollingAccuracy": stats.correct_predictions / judged if judged else None,
                "performanceHistory": history,
                "lastRetrainedAt": stats.last_retrained_at.isoformat() if stats.last_retrained_at else None,
                "bufferSize": len(self._buffer),
                "droppedRecords": stats.dropped_records,
                "modelVersion": self.classifier.state.version,
            }
        drift = evaluate_accuracy_drift(history, threshold=self.settings.drift_threshold)
        payload["driftDetected"] = not drift.passed
        payload["drift"] = {"value": drift.value, "threshold": drift.threshold, **drift.details}
        payload["feedbackMetrics"] = evaluate(outcomes).to_dict() if outcomes else None
        return payload

    def reset_stats(self) -> None:
        with self._lock:
            self._stats = self._fresh_stats()


__all__ = ["AutoLearningLoop", "LearningStats"]
