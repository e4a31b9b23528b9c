"""Lexicon based sentiment scoring."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from core.settings import LexicalSettings
from services.sentiment.lexicons import (
    EMOTION_CATEGORIES,
    EMOTION_EMOJIS,
    EMOTION_LEXICON,
    LANGUAGE_COVERAGE,
)
from services.sentiment.types import (
    AnalysisMethod,
    EmotionScores,
    SentimentLabel,
    SentimentResult,
    SignalBundle,
)

logger = logging.getLogger(__name__)

MAX_KEYWORDS = 5


@dataclass(frozen=True, slots=True)
class TermContributions:
    """Signed weight totals of the matched terms of a text."""

    positive: float = 0.0
    negative: float = 0.0
    count: int = 0

    @property
    def total(self) -> float:
        return self.positive + self.negative

    def score(self, *, invert_positive: bool = False) -> float:
        if self.count == 0:
            return 0.0
        raw = self.negative - self.positive if invert_positive else self.total
        return max(-1.0, min(1.0, raw / math.sqrt(self.count)))


def term_contributions(signals: SignalBundle) -> TermContributions:
    positive = sum(t.contribution for t in signals.terms if t.contribution > 0)
    negative = sum(t.contribution for t in signals.terms if t.contribution < 0)
    return TermContributions(positive=positive, negative=negative, count=len(signals.terms))


def label_for(score: float, threshold: float) -> SentimentLabel:
    if score > threshold:
        return SentimentLabel.POSITIVE
    if score < -threshold:
        return SentimentLabel.NEGATIVE
    return SentimentLabel.NEUTRAL


def _dedupe(items: Iterable[str], limit: int) -> List[str]:
    seen: List[str] = []
    for item in items:
        if item not in seen:
            seen.append(item)
        if len(seen) >= limit:
            break
    return seen


class LexicalRuleAnalyzer:
    """Score a :class:`SignalBundle` with the per-language lexicons."""

    def __init__(
        self,
        settings: Optional[LexicalSettings] = None,
        *,
        brand_keywords: Iterable[str] = (),
        enable_emotions: bool = True,
    ) -> None:
        self.settings = settings or LexicalSettings()
        self.brand_keywords = tuple(k.lower() for k in brand_keywords)
        self.enable_emotions = enable_emotions

    def analyze(self, signals: SignalBundle, language: Optional[str] = None) -> SentimentResult:
        language = language or signals.language
        contributions = term_contributions(signals)
        score = contributions.score()
        label = label_for(score, self.settings.label_threshold)

        if contributions.count == 0 or label is SentimentLabel.NEUTRAL:
            confidence = self.settings.no_match_confidence
        else:
            confidence = min(self.settings.confidence_cap, 0.5 + abs(score) * 0.3)

        magnitude = 0.0
        if contributions.count:
            strength = contributions.positive - contributions.negative
            magnitude = min(1.0, strength / math.sqrt(contributions.count))

        emotions = self.emotions(signals, language) if self.enable_emotions else None
        explanation = (
            f"{contributions.count} lexicon terms matched ({language}), "
            f"{signals.negation_flips} negated"
            if contributions.count
            else "no lexicon terms matched"
        )
        logger.debug(
            "rule analysis",
            extra={"score": score, "terms": contributions.count, "language": language},
        )
        return SentimentResult(
            label=label,
            score=score,
            confidence=confidence,
            magnitude=magnitude,
            method=AnalysisMethod.RULE,
            keywords=tuple(self.keywords(signals)),
            emotions=emotions,
            explanation=explanation,
        )

    def keywords(self, signals: SignalBundle) -> List[str]:
        candidates: List[str] = []
        for token in signals.tokens:
            if token.startswith("#") or token in self.brand_keywords:
                candidates.append(token)
        candidates.extend(term.token for term in signals.terms if not term.is_emoji)
        # Preserve text order across the three sources.
        order = {token: idx for idx, token in reversed(list(enumerate(signals.tokens)))}
        candidates.sort(key=lambda token: order.get(token, len(order)))
        return _dedupe(candidates, MAX_KEYWORDS)

    def emotions(self, signals: SignalBundle, language: Optional[str] = None) -> EmotionScores:
        raw: Dict[str, float] = {name: 0.0 for name in EMOTION_CATEGORIES}
        lexicon = EMOTION_LEXICON.get((language or signals.language)[:2])
        if lexicon is not None:
            negated = {term.position for term in signals.terms if term.negated}
            for idx, token in enumerate(signals.tokens):
                if idx in negated:
                    continue
                for name, words in lexicon.items():
                    if token in words:
                        raw[name] += 1.0
        else:
            for term in signals.terms:
                if term.is_emoji:
                    continue
                if term.polarity > 0:
                    raw["joy"] += term.weight
                else:
                    raw["sadness"] += term.weight / 2
                    raw["anger"] += term.weight / 2
        for emoji, count in signals.emojis.items():
            name = EMOTION_EMOJIS.get(emoji)
            if name:
                raw[name] += count

        total = sum(raw.values())
        if total <= 0:
            return EmotionScores()
        return EmotionScores(**{name: min(1.0, value / total) for name, value in raw.items()})


__all__ = [
    "LexicalRuleAnalyzer",
    "TermContributions",
    "term_contributions",
    "label_for",
    "LANGUAGE_COVERAGE",
]
