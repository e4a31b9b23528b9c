from __future__ import annotations

import pytest
from pydantic import ValidationError

from core.settings import EngineSettings, get_settings, parse_bool


def test_parse_bool_truthy_cases():
    truthy = ["1", "true", "TRUE", "Yes", "on", "Y", "t"]
    for value in truthy:
        assert parse_bool(value) is True


def test_parse_bool_falsey_cases():
    falsey = ["", "0", "false", "False", "no", "off", "n"]
    for value in falsey:
        assert parse_bool(value, default=True) is False


def test_parse_bool_none_uses_default():
    assert parse_bool(None, default=True) is True
    assert parse_bool("maybe", default=False) is False


def test_defaults():
    settings = EngineSettings()
    assert settings.min_confidence_threshold == pytest.approx(0.3)
    assert settings.hybrid.agreement_bonus == pytest.approx(1.2)
    assert settings.hybrid.penalty_for("es") == pytest.approx(0.05)
    assert settings.hybrid.penalty_for("de") == pytest.approx(0.15)
    assert settings.naive_bayes.smoothing == pytest.approx(1.0)
    assert settings.feedback.buffer_size == 100
    assert settings.batch.chunk_size == 10


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("SENTIMENT_MIN_CONFIDENCE_THRESHOLD", "0.5")
    monkeypatch.setenv("SENTIMENT_BATCH__CHUNK_SIZE", "4")
    monkeypatch.setenv("SENTIMENT_ENABLE_EMOTION_ANALYSIS", "false")
    monkeypatch.setenv("SENTIMENT_BRAND_KEYWORDS", '["Acme", "Globex"]')
    settings = get_settings()
    assert settings.min_confidence_threshold == pytest.approx(0.5)
    assert settings.batch.chunk_size == 4
    assert settings.enable_emotion_analysis is False
    assert settings.brand_keywords == ["acme", "globex"]
    assert get_settings() is settings


def test_keywords_accept_comma_string():
    assert EngineSettings(brand_keywords="Acme, Globex").brand_keywords == ["acme", "globex"]


def test_invalid_threshold_rejected():
    with pytest.raises(ValidationError):
        EngineSettings(min_confidence_threshold=1.5)
