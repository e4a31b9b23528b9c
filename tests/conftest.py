import os

import pytest

from core.settings import EngineSettings, get_settings
from services.sentiment.datasets import seed_examples
from services.sentiment.engine import SentimentEngine
from services.sentiment.naive_bayes import NaiveBayesClassifier


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    for key in list(os.environ):
        if key.startswith("SENTIMENT_"):
            monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def seeded_classifier() -> NaiveBayesClassifier:
    classifier = NaiveBayesClassifier()
    classifier.train(seed_examples())
    return classifier


@pytest.fixture
def engine() -> SentimentEngine:
    eng = SentimentEngine(EngineSettings())
    eng.bootstrap()
    return eng
