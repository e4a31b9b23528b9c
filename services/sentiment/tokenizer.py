"""Tokenisation and linguistic signal extraction.

``extract`` turns raw text into a :class:`SignalBundle` that both the lexical
analyzer and the hybrid stage consume. Negation flips, intensifier weights
and the sarcasm score are computed here once per text.
"""

from __future__ import annotations

import re
from collections import Counter
from typing import Dict, List, Optional

from services.sentiment.errors import InvalidInputError
from services.sentiment.language import detect_language
from services.sentiment.lexicons import (
    CONTRAST_WORDS,
    DEFAULT_LANGUAGE,
    EMOJI_POLARITY,
    EYE_ROLL_EMOJIS,
    NEGATIVE_CONTEXT_CUES,
    Lexicon,
    get_lexicon,
    sarcasm_patterns,
)
from services.sentiment.types import SignalBundle, TermSignal

_EMOJI = r"[\U0001F300-\U0001FAFF\u2600-\u27BF]"
_TOKEN_RE = re.compile(rf"{_EMOJI}|[#@][^\W_][\w']*|[^\W_]+(?:'[^\W_]+)*", re.UNICODE)
_EMOJI_RE = re.compile(_EMOJI)
_QUOTED_RE = re.compile(r"[\"“”]\s*([^\W\d_]+)\s*[\"“”]", re.UNICODE)
_OPENING_RE = re.compile(
    r"^\W*(oh\s+)?(great|wonderful|perfect|fantastic|awesome|brilliant|lovely|nice|genial|perfecto|"
    r"maravilloso|génial|parfait|toll|super|perfekt|ottimo|ótimo)\s*,",
    re.IGNORECASE | re.UNICODE,
)
_ELLIPSIS_RE = re.compile(r"\.\.\.|…")

CONTEXT_WINDOW = 5


def _normalise(text: str) -> str:
    return text.replace("’", "'").replace("‘", "'").replace("\ufe0f", "")


def tokenize(text: str) -> List[str]:
    """Split ``text`` into lower-cased word, hashtag, mention and emoji tokens."""

    if not isinstance(text, str):
        raise InvalidInputError(f"Text must be a string, got {type(text).__name__}")
    return _TOKEN_RE.findall(_normalise(text).lower())


def _bigrams(tokens: List[str]) -> Dict[str, int]:
    return dict(Counter(f"{a} {b}" for a, b in zip(tokens, tokens[1:])))


def _score_terms(
    tokens: List[str],
    lexicon: Lexicon,
    *,
    intensifier_factor: float,
    negation_window: int,
) -> tuple[List[TermSignal], int, float]:
    terms: List[TermSignal] = []
    flips = 0
    boost = 0.0
    for idx, token in enumerate(tokens):
        if token in EMOJI_POLARITY:
            value = EMOJI_POLARITY[token]
            terms.append(
                TermSignal(
                    token=token,
                    position=idx,
                    polarity=1 if value > 0 else -1,
                    weight=abs(value),
                    is_emoji=True,
                )
            )
            continue

        polarity = lexicon.polarity(token.lstrip("#"))
        if polarity == 0:
            continue

        weight = 1.0
        intensified = idx > 0 and tokens[idx - 1] in lexicon.intensifiers
        if intensified:
            weight *= intensifier_factor
            boost += weight - 1.0

        window = tokens[max(0, idx - negation_window) : idx]
        negated = any(word in lexicon.negations for word in window)
        if negated:
            polarity = -polarity
            flips += 1

        terms.append(
            TermSignal(
                token=token,
                position=idx,
                polarity=polarity,
                weight=weight,
                negated=negated,
                intensified=intensified,
            )
        )
    return terms, flips, boost


def _sarcasm_score(text: str, tokens: List[str], terms: List[TermSignal], lexicon: Lexicon) -> float:
    lowered = text.lower()
    score = 0.0

    for pattern in sarcasm_patterns(lexicon.language):
        if pattern.search(lowered):
            score += 2.0

    by_position = {term.position: term for term in terms}
    for term in terms:
        if term.polarity <= 0 or term.is_emoji:
            continue
        for offset in range(term.position + 1, min(len(tokens), term.position + 1 + CONTEXT_WINDOW)):
            token = tokens[offset]
            if token in CONTRAST_WORDS:
                break
            follower = by_position.get(offset)
            if token in NEGATIVE_CONTEXT_CUES or (follower is not None and follower.polarity < 0):
                score += 1.0
                break

    opening = _OPENING_RE.match(lowered)
    if opening:
        tail = len(tokenize(lowered[: opening.end()]))
        if any(term.polarity < 0 and term.position >= tail for term in terms):
            score += 1.0

    for match in _QUOTED_RE.finditer(text):
        if lexicon.polarity(match.group(1).lower()) <= 0:
            continue
        nearby = text[max(0, match.start() - 4) : match.end() + 4]
        if any(EMOJI_POLARITY.get(emoji, 0.0) < 0 for emoji in _EMOJI_RE.findall(nearby)):
            score += 2.0

    if any(emoji in text for emoji in EYE_ROLL_EMOJIS):
        score += 2.0
    if _ELLIPSIS_RE.search(text):
        score += 1.0
    return score


def extract(
    text: str,
    language: Optional[str] = None,
    *,
    intensifier_factor: float = 1.5,
    negation_window: int = 3,
) -> SignalBundle:
    """Extract tokens, n-grams, emoji counts and sentiment signals from ``text``."""

    if not isinstance(text, str):
        raise InvalidInputError(
            f"Text must be a string, got {type(text).__name__}",
            {"type": type(text).__name__},
        )
    lang = (language or "").lower()[:2]
    if not text.strip():
        return SignalBundle(language=lang or DEFAULT_LANGUAGE)

    text = _normalise(text)
    lang = lang or detect_language(text)
    lexicon = get_lexicon(lang)
    tokens = tokenize(text)
    terms, flips, boost = _score_terms(
        tokens,
        lexicon,
        intensifier_factor=intensifier_factor,
        negation_window=negation_window,
    )
    emojis = dict(Counter(token for token in tokens if _EMOJI_RE.fullmatch(token)))
    return SignalBundle(
        tokens=tuple(tokens),
        ngrams=_bigrams(tokens),
        emojis=emojis,
        negation_flips=flips,
        intensifier_boost=boost,
        sarcasm_score=_sarcasm_score(text, tokens, terms, lexicon),
        terms=tuple(terms),
        text_length=len(text),
        language=lang,
    )


__all__ = ["extract", "tokenize", "CONTEXT_WINDOW"]
