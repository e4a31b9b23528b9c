"""Reconciliation of lexical and Naive Bayes verdicts."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from core.settings import HybridWeights
from services.sentiment.lexicons import EMOTIONAL_WORDS
from services.sentiment.rule_model import label_for, term_contributions
from services.sentiment.types import (
    AnalysisMethod,
    SentimentLabel,
    SentimentResult,
    SignalBundle,
    normalize_label,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class HybridDecision:
    result: SentimentResult
    rule_weight: float
    naive_weight: float
    agreement: bool
    sarcasm_applied: bool
    rule_score: float
    naive_score: float


def _emotional_intensity(signals: SignalBundle) -> int:
    return sum(1 for token in signals.tokens if token in EMOTIONAL_WORDS)


class HybridWeightingEngine:
    """Blend rule and Naive Bayes results with context dependent weights."""

    def __init__(self, weights: Optional[HybridWeights] = None) -> None:
        self.weights = weights or HybridWeights()

    def _naive_signed(self, label: SentimentLabel) -> float:
        if label is SentimentLabel.POSITIVE:
            return self.weights.naive_signed_score
        if label is SentimentLabel.NEGATIVE:
            return -self.weights.naive_signed_score
        return 0.0

    def decide(
        self,
        rule_result: SentimentResult,
        naive_result: SentimentResult,
        language: Optional[str],
        signals: SignalBundle,
    ) -> HybridDecision:
        cfg = self.weights
        rule_label = normalize_label(rule_result.label)
        naive_label = normalize_label(naive_result.label)
        agreement = rule_label == naive_label

        rule_weight = rule_result.confidence
        naive_weight = naive_result.confidence
        if agreement:
            rule_weight *= cfg.agreement_bonus
            naive_weight *= cfg.agreement_bonus

        rule_weight -= cfg.penalty_for(language or signals.language)
        if _emotional_intensity(signals) > cfg.emotional_word_threshold:
            if rule_result.confidence >= naive_result.confidence:
                rule_weight += cfg.emotional_shift
            else:
                naive_weight += cfg.emotional_shift
        if signals.text_length < cfg.short_text_length:
            naive_weight -= cfg.short_text_penalty
        elif signals.text_length > cfg.long_text_length:
            rule_weight -= cfg.long_text_penalty
        if signals.emojis:
            rule_weight += cfg.emoji_bonus
        rule_weight = max(cfg.weight_floor, rule_weight)
        naive_weight = max(cfg.weight_floor, naive_weight)

        rule_score = rule_result.score
        naive_score = self._naive_signed(naive_label)
        sarcastic = signals.sarcasm_score > cfg.sarcasm_threshold
        if sarcastic:
            contributions = term_contributions(signals)
            if contributions.positive > 0:
                rule_score = contributions.score(invert_positive=True)
            if naive_score > 0:
                naive_score = -cfg.naive_signed_score

        score = (naive_score * naive_weight + rule_score * rule_weight) / (naive_weight + rule_weight)
        score = max(-1.0, min(1.0, score))
        label = label_for(score, cfg.label_threshold)
        if sarcastic and label is SentimentLabel.POSITIVE:
            label = SentimentLabel.NEUTRAL
            score = 0.0

        if agreement:
            confidence = (
                min(1.0, rule_result.confidence * cfg.agreement_bonus)
                + min(1.0, naive_result.confidence * cfg.agreement_bonus)
            ) / 2
        else:
            confidence = max(rule_result.confidence, naive_result.confidence) * cfg.disagreement_discount
        confidence = min(1.0, confidence)

        method = AnalysisMethod.UNIFIED if agreement and not sarcastic else AnalysisMethod.HYBRID
        explanation = self._explain(
            rule_label,
            naive_label,
            agreement=agreement,
            rule_weight=rule_weight,
            naive_weight=naive_weight,
            sarcasm=signals.sarcasm_score if sarcastic else None,
            negations=signals.negation_flips,
        )
        result = SentimentResult(
            label=label,
            score=score,
            confidence=confidence,
            magnitude=abs(score),
            method=method,
            keywords=rule_result.keywords,
            emotions=rule_result.emotions,
            explanation=explanation,
            probabilities=naive_result.probabilities,
        )
        logger.debug(
            "hybrid decision",
            extra={
                "label": label.value,
                "rule_weight": rule_weight,
                "naive_weight": naive_weight,
                "sarcasm": sarcastic,
            },
        )
        return HybridDecision(
            result=result,
            rule_weight=rule_weight,
            naive_weight=naive_weight,
            agreement=agreement,
            sarcasm_applied=sarcastic,
            rule_score=rule_score,
            naive_score=naive_score,
        )

    def reconcile(
        self,
        rule_result: SentimentResult,
        naive_result: SentimentResult,
        language: Optional[str],
        signals: SignalBundle,
    ) -> SentimentResult:
        return self.decide(rule_result, naive_result, language, signals).result

    @staticmethod
    def _explain(
        rule_label: SentimentLabel,
        naive_label: SentimentLabel,
        *,
        agreement: bool,
        rule_weight: float,
        naive_weight: float,
        sarcasm: Optional[float],
        negations: int,
    ) -> str:
        if agreement:
            parts: List[str] = [f"rule and naive methods agree on {rule_label.value}"]
        else:
            parts = [f"methods disagree (rule: {rule_label.value}, naive: {naive_label.value})"]
        dominant = "rule" if rule_weight >= naive_weight else "naive"
        parts.append(f"{dominant} method dominant (rule weight {rule_weight:.2f}, naive weight {naive_weight:.2f})")
        if sarcasm is not None:
            parts.append(f"sarcasm detected (score {sarcasm:.1f}), positive signals inverted")
        if negations:
            parts.append(f"negation corrected {negations} term(s)")
        return "; ".join(parts)


__all__ = ["HybridWeightingEngine", "HybridDecision", "HybridWeights"]
