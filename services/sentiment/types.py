"""Dataclasses for sentiment processing."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from services.sentiment.errors import InvalidInputError


class SentimentLabel(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"
    VERY_POSITIVE = "very_positive"
    VERY_NEGATIVE = "very_negative"


class AnalysisMethod(str, Enum):
    RULE = "rule"
    NAIVE = "naive"
    HYBRID = "hybrid"
    UNIFIED = "unified"


# Index order of the confusion matrix and of every per-class table.
CLASS_LABELS: Tuple[SentimentLabel, ...] = (
    SentimentLabel.POSITIVE,
    SentimentLabel.NEGATIVE,
    SentimentLabel.NEUTRAL,
)

_COLLAPSE = {
    SentimentLabel.VERY_POSITIVE: SentimentLabel.POSITIVE,
    SentimentLabel.VERY_NEGATIVE: SentimentLabel.NEGATIVE,
}


def normalize_label(label: Any) -> SentimentLabel:
    """Coerce ``label`` to one of positive / negative / neutral."""

    if isinstance(label, SentimentLabel):
        parsed = label
    elif isinstance(label, str):
        text = label.strip().lower().replace("-", "_").replace(" ", "_")
        try:
            parsed = SentimentLabel(text)
        except ValueError:
            raise InvalidInputError(f"Unknown sentiment label: {label!r}", {"label": label}) from None
    else:
        raise InvalidInputError(f"Sentiment label must be a string, got {type(label).__name__}")
    return _COLLAPSE.get(parsed, parsed)


@dataclass(frozen=True, slots=True)
class TrainingExample:
    """Labelled text used to build the Naive Bayes model."""

    text: str
    label: SentimentLabel
    language: Optional[str] = None

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "TrainingExample":
        return cls(
            text=payload.get("text"),  # type: ignore[arg-type]
            label=normalize_label(payload.get("label")),
            language=payload.get("language"),
        )


@dataclass(frozen=True, slots=True)
class TermSignal:
    """One sentiment-bearing token as seen by the signal extractor."""

    token: str
    position: int
    polarity: int  # +1 / -1 after negation
    weight: float
    negated: bool = False
    intensified: bool = False
    is_emoji: bool = False

    @property
    def contribution(self) -> float:
        return self.polarity * self.weight


@dataclass(frozen=True, slots=True)
class SignalBundle:
    """Linguistic signals derived from a single text."""

    tokens: Tuple[str, ...] = ()
    ngrams: Dict[str, int] = field(default_factory=dict)
    emojis: Dict[str, int] = field(default_factory=dict)
    negation_flips: int = 0
    intensifier_boost: float = 0.0
    sarcasm_score: float = 0.0
    terms: Tuple[TermSignal, ...] = ()
    text_length: int = 0
    language: str = "en"

    @property
    def is_empty(self) -> bool:
        return not self.tokens


@dataclass(frozen=True, slots=True)
class EmotionScores:
    joy: float = 0.0
    sadness: float = 0.0
    anger: float = 0.0
    fear: float = 0.0
    surprise: float = 0.0
    disgust: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

    def dominant(self) -> Optional[str]:
        values = self.to_dict()
        name = max(values, key=values.__getitem__)
        return name if values[name] > 0 else None


@dataclass(frozen=True, slots=True)
class SentimentResult:
    """Sentiment verdict produced by one of the analysis methods."""

    label: SentimentLabel
    score: float  # [-1, 1]
    confidence: float  # [0, 1]
    magnitude: float  # [0, 1]
    method: AnalysisMethod
    keywords: Tuple[str, ...] = ()
    emotions: Optional[EmotionScores] = None
    explanation: Optional[str] = None
    probabilities: Optional[Dict[str, float]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label.value,
            "score": self.score,
            "confidence": self.confidence,
            "magnitude": self.magnitude,
            "method": self.method.value,
            "keywords": list(self.keywords),
            "emotions": self.emotions.to_dict() if self.emotions else None,
            "explanation": self.explanation,
            "probabilities": dict(self.probabilities) if self.probabilities else None,
        }


def neutral_result(
    method: AnalysisMethod,
    confidence: float,
    explanation: Optional[str] = None,
) -> SentimentResult:
    return SentimentResult(
        label=SentimentLabel.NEUTRAL,
        score=0.0,
        confidence=confidence,
        magnitude=0.0,
        method=method,
        explanation=explanation,
    )


@dataclass(frozen=True, slots=True)
class FeedbackRecord:
    """Externally supplied ground truth for a previously analysed text."""

    text: str
    actual_label: SentimentLabel
    user_id: Optional[str] = None
    source: Optional[str] = None
    received_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    predicted_label: Optional[SentimentLabel] = None
    predicted_confidence: Optional[float] = None

    def to_example(self) -> TrainingExample:
        return TrainingExample(text=self.text, label=self.actual_label)


@dataclass(slots=True)
class ModelMetrics:
    """Classification quality over a list of (actual, predicted) pairs."""

    accuracy: float
    precision: Dict[str, float]
    recall: Dict[str, float]
    f1: Dict[str, float]
    cohen_kappa: float
    confusion_matrix: List[List[int]]
    sample_count: int
    processing_time_ms: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "accuracy": self.accuracy,
            "precision": dict(self.precision),
            "recall": dict(self.recall),
            "f1": dict(self.f1),
            "cohenKappa": self.cohen_kappa,
            "confusionMatrix": [list(row) for row in self.confusion_matrix],
            "sampleCount": self.sample_count,
            "processingTimeMs": self.processing_time_ms,
        }


@dataclass(frozen=True, slots=True)
class TweetDTO:
    id: str
    text: str
    language: Optional[str] = None


__all__ = [
    "SentimentLabel",
    "AnalysisMethod",
    "CLASS_LABELS",
    "normalize_label",
    "TrainingExample",
    "TermSignal",
    "SignalBundle",
    "EmotionScores",
    "SentimentResult",
    "neutral_result",
    "FeedbackRecord",
    "ModelMetrics",
    "TweetDTO",
]
