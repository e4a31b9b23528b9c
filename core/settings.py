"""Runtime settings for the sentiment engine."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, List

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_FALSEY = {"0", "false", "no", "off", "f", "n", ""}
_TRUEY = {"1", "true", "yes", "on", "t", "y"}


def parse_bool(value: object | None, default: bool = False) -> bool:
    """Coerce user-provided strings and booleans into a boolean."""

    if value is None:
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip()
    if not text:
        return False
    lowered = text.lower()
    if lowered in _TRUEY:
        return True
    if lowered in _FALSEY:
        return False
    return default


class HybridWeights(BaseModel):
    """Constants used when the rule and Naive Bayes verdicts are blended."""

    agreement_bonus: float = Field(default=1.2, gt=0)
    disagreement_discount: float = Field(default=0.9, gt=0, le=1)
    naive_signed_score: float = Field(default=0.7, ge=0, le=1)
    label_threshold: float = Field(default=0.15, ge=0, lt=1)
    sarcasm_threshold: float = Field(default=1.0, ge=0)
    language_penalty: Dict[str, float] = Field(default_factory=lambda: {"en": 0.0, "es": 0.05})
    default_language_penalty: float = Field(default=0.15, ge=0)
    emotional_word_threshold: int = Field(default=2, ge=0)
    emotional_shift: float = Field(default=0.15, ge=0)
    short_text_length: int = Field(default=50, ge=0)
    short_text_penalty: float = Field(default=0.2, ge=0)
    long_text_length: int = Field(default=200, ge=0)
    long_text_penalty: float = Field(default=0.2, ge=0)
    emoji_bonus: float = Field(default=0.1, ge=0)
    weight_floor: float = Field(default=0.05, gt=0)

    def penalty_for(self, language: str | None) -> float:
        return self.language_penalty.get((language or "en").lower()[:2], self.default_language_penalty)


class LexicalSettings(BaseModel):
    intensifier_factor: float = Field(default=1.5, gt=0)
    negation_window: int = Field(default=3, ge=0)
    label_threshold: float = Field(default=0.1, ge=0, lt=1)
    confidence_cap: float = Field(default=0.95, gt=0, le=1)
    no_match_confidence: float = Field(default=0.6, ge=0, le=1)


class NaiveBayesSettings(BaseModel):
    smoothing: float = Field(default=1.0, gt=0)
    confidence_floor: float = Field(default=0.2, ge=0, le=1)
    negation_scope: int = Field(default=3, ge=0)
    use_bigrams: bool = True


class FeedbackSettings(BaseModel):
    enabled: bool = True
    buffer_size: int = Field(default=100, ge=1)
    max_buffer: int = Field(default=1000, ge=1)
    ema_alpha: float = Field(default=0.1, gt=0, le=1)
    performance_window: int = Field(default=50, ge=2)
    drift_threshold: float = Field(default=0.05, ge=0)
    holdout_fraction: float = Field(default=0.2, ge=0, lt=1)


class BatchSettings(BaseModel):
    chunk_size: int = Field(default=10, ge=1)
    pause_sec: float = Field(default=0.01, ge=0)
    fallback_confidence: float = Field(default=0.2, ge=0, le=1)


class EngineSettings(BaseSettings):
    """Aggregate engine configuration loaded from ``SENTIMENT_*`` variables.

    Nested groups use ``__`` as delimiter, e.g. ``SENTIMENT_BATCH__CHUNK_SIZE=20``.
    """

    model_config = SettingsConfigDict(
        env_prefix="SENTIMENT_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    brand_keywords: List[str] = Field(default_factory=list)
    enable_emotion_analysis: bool = True
    min_confidence_threshold: float = Field(default=0.3, ge=0, le=1)
    default_language: str = "en"
    auto_detect_language: bool = True

    hybrid: HybridWeights = Field(default_factory=HybridWeights)
    lexical: LexicalSettings = Field(default_factory=LexicalSettings)
    naive_bayes: NaiveBayesSettings = Field(default_factory=NaiveBayesSettings)
    feedback: FeedbackSettings = Field(default_factory=FeedbackSettings)
    batch: BatchSettings = Field(default_factory=BatchSettings)

    @field_validator("brand_keywords", mode="before")
    @classmethod
    def _split_keywords(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value

    @field_validator("brand_keywords")
    @classmethod
    def _lower_keywords(cls, value: List[str]) -> List[str]:
        return [keyword.lower() for keyword in value]

    @field_validator("default_language")
    @classmethod
    def _short_language(cls, value: str) -> str:
        return (value or "en").strip().lower()[:2] or "en"

    @classmethod
    def from_env(cls, **overrides: Any) -> "EngineSettings":
        return cls(**overrides)


@lru_cache(maxsize=1)
def get_settings() -> EngineSettings:
    """Return cached settings instance loaded from environment variables."""

    return EngineSettings.from_env()


__all__ = [
    "parse_bool",
    "HybridWeights",
    "LexicalSettings",
    "NaiveBayesSettings",
    "FeedbackSettings",
    "BatchSettings",
    "EngineSettings",
    "get_settings",
]
