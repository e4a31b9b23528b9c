"""Lightweight language detection for the supported lexicons."""

from __future__ import annotations

import re
from typing import Dict

from services.sentiment.lexicons import DEFAULT_LANGUAGE, LEXICONS, STOP_PATTERNS

_WORD_RE = re.compile(r"[^\W\d_]+(?:'[^\W\d_]+)?", re.UNICODE)


def language_scores(text: str) -> Dict[str, float]:
    """Score each supported language by function words and lexicon hits."""

    lowered = text.lower()
    words = _WORD_RE.findall(lowered)
    scores: Dict[str, float] = {}
    for lang, pattern in STOP_PATTERNS.items():
        hits = float(len(pattern.findall(lowered)))
        lexicon = LEXICONS[lang]
        hits += 0.5 * sum(1 for word in words if word in lexicon.words)
        scores[lang] = hits
    return scores


def detect_language(text: str | None) -> str:
    """Return the best matching language code, defaulting to English."""

    if not text or not text.strip():
        return DEFAULT_LANGUAGE
    scores = language_scores(text)
    best = max(scores, key=scores.__getitem__)
    # English wins ties so short neutral strings stay on the richest lexicon.
    if scores[best] <= scores.get(DEFAULT_LANGUAGE, 0.0):
        return DEFAULT_LANGUAGE
    return best


__all__ = ["detect_language", "language_scores"]
