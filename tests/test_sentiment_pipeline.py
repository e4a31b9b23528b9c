"""End-to-end checks of the engine: analysis, batches, learning and persistence."""

from __future__ import annotations

import asyncio

import pytest

from core.settings import BatchSettings, EngineSettings
from services.sentiment.datasets import seed_examples
from services.sentiment.engine import SentimentEngine
from services.sentiment.errors import BatchPartialFailure, InvalidInputError
from services.sentiment.types import AnalysisMethod, SentimentLabel, TweetDTO


def test_clear_positive_text(engine: SentimentEngine) -> None:
    result = engine.analyze("I absolutely love this, it is fantastic!")
    assert result.label is SentimentLabel.POSITIVE
    assert result.method in (AnalysisMethod.HYBRID, AnalysisMethod.UNIFIED)
    assert result.explanation


def test_sarcastic_text_is_negative(engine: SentimentEngine) -> None:
    result = engine.analyze("Great, another system crash during the demo")
    assert result.label is SentimentLabel.NEGATIVE


def test_empty_and_invalid_input(engine: SentimentEngine) -> None:
    assert engine.analyze("").label is SentimentLabel.NEUTRAL
    with pytest.raises(InvalidInputError):
        engine.analyze(None)  # type: ignore[arg-type]


def test_low_confidence_results_are_neutral() -> None:
    strict = SentimentEngine(EngineSettings(min_confidence_threshold=1.0))
    strict.bootstrap()
    result = strict.analyze("I love it")
    assert result.label is SentimentLabel.NEUTRAL
    assert "threshold" in result.explanation


def test_detailed_breakdown(engine: SentimentEngine) -> None:
    breakdown = engine.analyze_detailed("Servicio increíble y muy rápido", "es")
    assert breakdown.language == "es"
    assert breakdown.rule.method is AnalysisMethod.RULE
    assert breakdown.naive.method is AnalysisMethod.NAIVE
    payload = breakdown.to_dict()
    assert set(payload["weights"]) == {"rule", "naive"}


def test_batch_isolates_failures(engine: SentimentEngine) -> None:
    async def runner() -> None:
        outcome = await engine.analyze_batch(["I love it", None, "awful, terrible service"])  # type: ignore[list-item]
        assert len(outcome.results) == 3
        assert len(outcome.failures) == 1
        failure = outcome.failures[0]
        assert isinstance(failure, BatchPartialFailure)
        assert failure.index == 1
        assert isinstance(failure.cause, InvalidInputError)
        assert outcome.results[1].label is SentimentLabel.NEUTRAL
        assert outcome.results[1].confidence == pytest.approx(0.2)
        assert outcome.results[2].label is SentimentLabel.NEGATIVE

    asyncio.run(runner())


def test_batch_preserves_order_across_chunks() -> None:
    eng = SentimentEngine(EngineSettings(batch=BatchSettings(chunk_size=4, pause_sec=0.0)))
    eng.bootstrap()
    texts = [("I love it" if i % 2 else "This is terrible") + f" #{i}" for i in range(11)]

    outcome = asyncio.run(eng.analyze_batch(texts))
    assert outcome.ok
    assert [r.label for r in outcome.results] == [eng.analyze(t).label for t in texts]


def test_batch_rejects_plain_string(engine: SentimentEngine) -> None:
    with pytest.raises(InvalidInputError):
        asyncio.run(engine.analyze_batch("not a list"))  # type: ignore[arg-type]


def test_analyze_tweets(engine: SentimentEngine) -> None:
    tweets = [
        TweetDTO(id="a", text="I love it"),
        {"id": "b", "text": "Odio esta aplicación, siempre falla", "lang": "es"},
    ]
    outcome = asyncio.run(engine.analyze_tweets(tweets))
    by_id = outcome.by_id()
    assert list(by_id) == ["a", "b"]
    assert by_id["b"].label is SentimentLabel.NEGATIVE


def test_snapshot_round_trip(engine: SentimentEngine) -> None:
    snapshot = engine.serialize()
    other = SentimentEngine(EngineSettings())
    other.deserialize(snapshot)
    text = "Terrible customer service"
    assert other.analyze(text) == engine.analyze(text)


def test_feedback_through_engine(engine: SentimentEngine) -> None:
    version = engine.classifier.state.version
    record = engine.provide_feedback("the checkout flow is clunky", "negative", user_id="42")
    assert record.predicted_label is not None
    stats = engine.force_process_buffer()
    assert stats["totalIncorporated"] == 1
    assert engine.classifier.state.version == version + 1
    assert engine.get_auto_learning_stats()["bufferSize"] == 0


def test_evaluate_dataset(engine: SentimentEngine) -> None:
    summary = engine.evaluate_dataset(seed_examples())
    assert summary["report"]["overall"]["total"] == len(seed_examples())
    assert set(summary["report"]["byMethod"]) == {"rule", "naive", "hybrid"}
    assert summary["comparison"]["baseline"] == "rule"
    assert 0.0 <= summary["metrics"]["accuracy"] <= 1.0
    with pytest.raises(InvalidInputError):
        engine.evaluate_dataset([])


def test_untrained_engine_still_answers() -> None:
    cold = SentimentEngine(EngineSettings())
    result = cold.analyze("This is terrible")
    assert result.label is SentimentLabel.NEGATIVE
    assert cold.stats()["model"]["version"] == 0
