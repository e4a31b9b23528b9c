from __future__ import annotations

import threading

import pytest

from core.settings import FeedbackSettings
from services.sentiment.errors import InvalidInputError
from services.sentiment.feedback import AutoLearningLoop
from services.sentiment.naive_bayes import NaiveBayesClassifier
from services.sentiment.types import AnalysisMethod, SentimentLabel, SentimentResult


class FailingClassifier(NaiveBayesClassifier):
    def incremental_train(self, examples):
        raise RuntimeError("disk full")


class SlowClassifier(NaiveBayesClassifier):
    def __init__(self):
        super().__init__()
        self.started = threading.Event()
        self.release = threading.Event()

    def incremental_train(self, examples):
        self.started.set()
        self.release.wait(5)
        return super().incremental_train(examples)


class InterruptedClassifier(NaiveBayesClassifier):
    """Receives more feedback while training, then fails."""

    loop = None
    incoming = ()

    def incremental_train(self, examples):
        for text in self.incoming:
            self.loop.provide_feedback(text, "negative")
        raise RuntimeError("disk full")


def _always_positive(text: str) -> SentimentResult:
    return SentimentResult(
        label=SentimentLabel.POSITIVE,
        score=0.5,
        confidence=0.9,
        magnitude=0.5,
        method=AnalysisMethod.NAIVE,
    )


def test_feedback_round_trip_strengthens_correct_class(seeded_classifier):
    loop = AutoLearningLoop(seeded_classifier, FeedbackSettings(buffer_size=100))
    before = seeded_classifier.predict("terrible product")
    for _ in range(5):
        loop.provide_feedback("terrible product", "negative", user_id="u1", source="test")

    stats = loop.force_process_buffer()
    after = seeded_classifier.predict("terrible product")

    assert after.label is SentimentLabel.NEGATIVE
    assert after.probabilities["negative"] >= before.probabilities["negative"]
    assert after.confidence >= before.confidence
    assert stats["totalFeedbackReceived"] == 5
    assert stats["totalIncorporated"] == 5
    assert stats["retrainingEvents"] == 1
    assert stats["bufferSize"] == 0
    assert stats["lastRetrainedAt"] is not None
    assert stats["accuracyAfter"] is not None


def test_buffer_threshold_triggers_flush(seeded_classifier):
    loop = AutoLearningLoop(seeded_classifier, FeedbackSettings(buffer_size=3))
    version = seeded_classifier.state.version
    for text in ("awful support", "lovely staff", "it is tuesday"):
        loop.provide_feedback(text, "neutral")
    stats = loop.get_auto_learning_stats()
    assert stats["retrainingEvents"] == 1
    assert stats["bufferSize"] == 0
    assert seeded_classifier.state.version == version + 1


def test_failed_retraining_keeps_buffer():
    classifier = FailingClassifier()
    loop = AutoLearningLoop(classifier, FeedbackSettings(buffer_size=10))
    loop.provide_feedback("first", "positive")
    loop.provide_feedback("second", "negative")

    with pytest.raises(RuntimeError):
        loop.force_process_buffer()

    assert loop.buffer_size == 2
    stats = loop.get_auto_learning_stats()
    assert stats["totalIncorporated"] == 0
    assert stats["retrainingEvents"] == 0


def test_buffer_drops_oldest_past_max():
    loop = AutoLearningLoop(
        NaiveBayesClassifier(),
        FeedbackSettings(buffer_size=10, max_buffer=3, enabled=False),
        predictor=_always_positive,
    )
    for idx in range(5):
        loop.provide_feedback(f"text {idx}", "positive")
    stats = loop.get_auto_learning_stats()
    assert stats["bufferSize"] == 3
    assert stats["droppedRecords"] == 2


def test_invalid_feedback_is_rejected(seeded_classifier):
    loop = AutoLearningLoop(seeded_classifier)
    with pytest.raises(InvalidInputError):
        loop.provide_feedback("", "positive")
    with pytest.raises(InvalidInputError):
        loop.provide_feedback("fine", "bogus")
    assert loop.get_auto_learning_stats()["totalFeedbackReceived"] == 0


def test_empty_flush_is_a_noop(seeded_classifier):
    loop = AutoLearningLoop(seeded_classifier)
    version = seeded_classifier.state.version
    stats = loop.force_process_buffer()
    assert stats["retrainingEvents"] == 0
    assert seeded_classifier.state.version == version


def test_rolling_accuracy_and_drift_flag():
    loop = AutoLearningLoop(
        NaiveBayesClassifier(),
        FeedbackSettings(performance_window=20, enabled=False),
        predictor=_always_positive,
    )
    for _ in range(16):
        loop.provide_feedback("fine", "positive")
    for _ in range(4):
        loop.provide_feedback("fine", "negative")

    stats = loop.get_auto_learning_stats()
    assert stats["rollingAccuracy"] == pytest.approx(16 / 20)
    assert stats["averageConfidence"] == pytest.approx(0.9)
    assert stats["driftDetected"] is True
    assert stats["feedbackMetrics"]["sampleCount"] == 20

    loop.reset_stats()
    assert loop.get_auto_learning_stats()["totalFeedbackReceived"] == 0
    assert loop.buffer_size == 20


def test_feedback_during_flush_is_kept_for_next_round():
    classifier = SlowClassifier()
    loop = AutoLearningLoop(classifier, FeedbackSettings(buffer_size=100, enabled=False), predictor=_always_positive)
    for idx in range(5):
        loop.provide_feedback(f"early {idx}", "positive")

    worker = threading.Thread(target=loop.force_process_buffer)
    worker.start()
    assert classifier.started.wait(5)
    for idx in range(3):
        loop.provide_feedback(f"late {idx}", "negative")
    assert loop.buffer_size == 3
    classifier.release.set()
    worker.join(5)
    assert not worker.is_alive()

    stats = loop.get_auto_learning_stats()
    assert stats["totalFeedbackReceived"] == 8
    assert stats["totalIncorporated"] == 5
    assert stats["bufferSize"] == 3
    assert classifier.state.version == 1

    loop.force_process_buffer()
    assert loop.get_auto_learning_stats()["totalIncorporated"] == 8


def test_restored_buffer_respects_max_buffer():
    classifier = InterruptedClassifier()
    loop = AutoLearningLoop(
        classifier,
        FeedbackSettings(buffer_size=10, max_buffer=3, enabled=False),
        predictor=_always_positive,
    )
    classifier.loop = loop
    classifier.incoming = ("late one", "late two")
    for idx in range(3):
        loop.provide_feedback(f"text {idx}", "positive")

    with pytest.raises(RuntimeError):
        loop.force_process_buffer()

    stats = loop.get_auto_learning_stats()
    assert stats["bufferSize"] == 3
    assert stats["droppedRecords"] == 2
    assert stats["totalFeedbackReceived"] == 5
