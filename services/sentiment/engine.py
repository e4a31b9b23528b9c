"""High level sentiment engine tying the analyzers together."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from core.logging import with_trace
from core.settings import EngineSettings, get_settings
from services.sentiment.datasets import seed_examples
from services.sentiment.errors import BatchPartialFailure, InvalidInputError
from services.sentiment.evaluation import build_evaluation_report, compare_models, evaluate
from services.sentiment.feedback import AutoLearningLoop
from services.sentiment.hybrid import HybridWeightingEngine
from services.sentiment.language import detect_language
from services.sentiment.naive_bayes import ExampleLike, NaiveBayesClassifier, NaiveBayesModelState
from services.sentiment.rule_model import LexicalRuleAnalyzer
from services.sentiment.tokenizer import extract
from services.sentiment.types import (
    AnalysisMethod,
    FeedbackRecord,
    SentimentLabel,
    SentimentResult,
    SignalBundle,
    TrainingExample,
    TweetDTO,
    neutral_result,
    normalize_label,
)

logger = logging.getLogger(__name__)

TweetLike = Union[TweetDTO, Mapping[str, Any]]


@dataclass(frozen=True, slots=True)
class AnalysisBreakdown:
    """Final result together with the per-method verdicts behind it."""

    result: SentimentResult
    rule: SentimentResult
    naive: SentimentResult
    signals: SignalBundle
    language: str
    rule_weight: float
    naive_weight: float
    sarcasm_applied: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "result": self.result.to_dict(),
            "rule": self.rule.to_dict(),
            "naive": self.naive.to_dict(),
            "language": self.language,
            "weights": {"rule": self.rule_weight, "naive": self.naive_weight},
            "sarcasmScore": self.signals.sarcasm_score,
            "sarcasmApplied": self.sarcasm_applied,
            "negationFlips": self.signals.negation_flips,
        }


@dataclass(slots=True)
class BatchResult:
    results: List[SentimentResult]
    failures: List[BatchPartialFailure] = field(default_factory=list)
    ids: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def by_id(self) -> Dict[str, SentimentResult]:
        return dict(zip(self.ids, self.results))

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "results": [result.to_dict() for result in self.results],
            "failures": [failure.to_dict() for failure in self.failures],
        }
        if self.ids:
            payload["ids"] = list(self.ids)
        return payload


class SentimentEngine:
    """Rule + Naive Bayes + hybrid pipeline with an auto-learning loop."""

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        classifier: Optional[NaiveBayesClassifier] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.classifier = classifier or NaiveBayesClassifier(self.settings.naive_bayes)
        self.rule = LexicalRuleAnalyzer(
            self.settings.lexical,
            brand_keywords=self.settings.brand_keywords,
            enable_emotions=self.settings.enable_emotion_analysis,
        )
        self.hybrid = HybridWeightingEngine(self.settings.hybrid)
        self.feedback = AutoLearningLoop(self.classifier, self.settings.feedback, predictor=self.analyze)

    # single text --------------------------------------------------------

    def _language(self, text: str, language: Optional[str]) -> str:
        if language:
            return language.strip().lower()[:2] or self.settings.default_language
        if self.settings.auto_detect_language:
            return detect_language(text)
        return self.settings.default_language

    def analyze_detailed(self, text: str, language: Optional[str] = None) -> AnalysisBreakdown:
        if not isinstance(text, str):
            raise InvalidInputError(
                f"Text must be a string, got {type(text).__name__}",
                {"type": type(text).__name__},
            )
        lang = self._language(text, language)
        lexical = self.settings.lexical
        signals = extract(
            text,
            lang,
            intensifier_factor=lexical.intensifier_factor,
            negation_window=lexical.negation_window,
        )
        rule = self.rule.analyze(signals, lang)
        naive = self.classifier.predict(text)
        decision = self.hybrid.decide(rule, naive, lang, signals)

        result = decision.result
        if result.confidence < self.settings.min_confidence_threshold and result.label is not SentimentLabel.NEUTRAL:
            result = replace(
                result,
                label=SentimentLabel.NEUTRAL,
                explanation=f"{result.explanation}; below confidence threshold {self.settings.min_confidence_threshold:.2f}",
            )
        logger.debug(
            "analysis complete",
            extra={"label": result.label.value, "confidence": result.confidence, "language": lang},
        )
        return AnalysisBreakdown(
            result=result,
            rule=rule,
            naive=naive,
            signals=signals,
            language=lang,
            rule_weight=decision.rule_weight,
            naive_weight=decision.naive_weight,
            sarcasm_applied=decision.sarcasm_applied,
        )

    def analyze(self, text: str, language: Optional[str] = None) -> SentimentResult:
        return self.analyze_detailed(text, language).result

    # batches ------------------------------------------------------------

    async def _run_batch(self, items: List[Tuple[Any, Optional[str]]]) -> Tuple[List[SentimentResult], List[BatchPartialFailure]]:
        batch = self.settings.batch
        results: List[SentimentResult] = []
        failures: List[BatchPartialFailure] = []
        for start in range(0, len(items), batch.chunk_size):
            if start:
                await asyncio.sleep(batch.pause_sec)
            chunk = items[start : start + batch.chunk_size]
            outcomes = await asyncio.gather(
                *(asyncio.to_thread(self.analyze, text, language) for text, language in chunk),
                return_exceptions=True,
            )
            for offset, outcome in enumerate(outcomes):
                index = start + offset
                if isinstance(outcome, SentimentResult):
                    results.append(outcome)
                    continue
                if not isinstance(outcome, Exception):
                    raise outcome
                failure = BatchPartialFailure(
                    f"analysis failed for item {index}: {outcome}",
                    index,
                    cause=outcome,
                )
                logger.warning("batch item failed", extra={"index": index, "cause": type(outcome).__name__})
                failures.append(failure)
                results.append(
                    neutral_result(AnalysisMethod.HYBRID, batch.fallback_confidence, f"fallback: {outcome}")
                )
        return results, failures

    async def analyze_batch(self, texts: Sequence[str], language: Optional[str] = None) -> BatchResult:
        """Analyze ``texts`` in chunks; failed items become neutral fallbacks."""

        if texts is None or isinstance(texts, (str, bytes)):
            raise InvalidInputError("Batch input must be a sequence of texts")
        results, failures = await self._run_batch([(text, language) for text in texts])
        logger.info("batch analyzed", extra=with_trace({"items": len(results), "failures": len(failures)}))
        return BatchResult(results=results, failures=failures)

    async def analyze_tweets(self, tweets: Iterable[TweetLike]) -> BatchResult:
        if tweets is None or isinstance(tweets, (str, bytes)):
            raise InvalidInputError("Tweets must be a sequence")
        ids: List[str] = []
        items: List[Tuple[Any, Optional[str]]] = []
        for position, tweet in enumerate(tweets):
            if isinstance(tweet, TweetDTO):
                ids.append(tweet.id)
                items.append((tweet.text, tweet.language))
            elif isinstance(tweet, Mapping):
                ids.append(str(tweet.get("id", position)))
                items.append((tweet.get("text"), tweet.get("language") or tweet.get("lang")))
            else:
                ids.append(str(position))
                items.append((tweet, None))
        results, failures = await self._run_batch(items)
        return BatchResult(results=results, failures=failures, ids=ids)

    # training and feedback ---------------------------------------------

    def train(self, examples: Iterable[ExampleLike]) -> NaiveBayesModelState:
        return self.classifier.train(examples)

    def incremental_train(self, examples: Iterable[ExampleLike]) -> NaiveBayesModelState:
        return self.classifier.incremental_train(examples)

    def bootstrap(self, *, force: bool = False) -> NaiveBayesModelState:
        """Train on the built-in seed corpus unless a model is already loaded."""

        if self.classifier.is_trained and not force:
            return self.classifier.state
        return self.classifier.train(seed_examples())

    def provide_feedback(
        self,
        text: str,
        actual_label: Any,
        user_id: Optional[str] = None,
        source: Optional[str] = None,
    ) -> FeedbackRecord:
        return self.feedback.provide_feedback(text, actual_label, user_id=user_id, source=source)

    def force_process_buffer(self) -> Dict[str, Any]:
        return self.feedback.force_process_buffer()

    def get_auto_learning_stats(self) -> Dict[str, Any]:
        return self.feedback.get_auto_learning_stats()

    # evaluation ---------------------------------------------------------

    def evaluate_dataset(self, examples: Iterable[Union[TrainingExample, Mapping[str, Any]]]) -> Dict[str, Any]:
        """Score labelled examples with every method and summarise the outcome."""

        records: List[Dict[str, Any]] = []
        for item in examples:
            example = item if isinstance(item, TrainingExample) else TrainingExample.from_mapping(item)
            breakdown = self.analyze_detailed(example.text, example.language)
            records.append(
                {
                    "text": example.text,
                    "actual": normalize_label(example.label),
                    "rule": breakdown.rule,
                    "naive": breakdown.naive,
                    "hybrid": breakdown.result,
                }
            )
        if not records:
            raise InvalidInputError("Cannot evaluate an empty dataset")
        per_method = {
            method: [(record["actual"], record[method]) for record in records]
            for method in ("rule", "naive", "hybrid")
        }
        return {
            "metrics": evaluate(per_method["hybrid"]).to_dict(),
            "report": build_evaluation_report(records),
            "comparison": compare_models(per_method),
        }

    # persistence --------------------------------------------------------

    def serialize(self) -> str:
        return self.classifier.serialize()

    def deserialize(self, payload: Union[str, bytes, Mapping[str, Any]]) -> NaiveBayesModelState:
        return self.classifier.deserialize(payload)

    def stats(self) -> Dict[str, Any]:
        return {
            "model": self.classifier.stats(),
            "feedback": self.get_auto_learning_stats(),
            "settings": self.settings.model_dump(),
        }


__all__ = ["SentimentEngine", "AnalysisBreakdown", "BatchResult"]
