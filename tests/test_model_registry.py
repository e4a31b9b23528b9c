import uuid

import pytest

from services.ml.registry import (
    aliases,
    get_snapshot_meta,
    list_snapshots,
    load_snapshot,
    promote_alias,
    register_snapshot,
)
from services.sentiment.naive_bayes import NaiveBayesClassifier


@pytest.fixture
def artifacts(tmp_path, monkeypatch):
    root = tmp_path / ("artifacts_" + uuid.uuid4().hex)
    monkeypatch.setenv("ARTIFACTS_DIR", str(root))
    return root


def test_registry_roundtrip(artifacts, seeded_classifier):
    snapshot = seeded_classifier.serialize()
    meta = register_snapshot("sentiment", snapshot, metrics={"accuracy": 0.9}, tags={"t": "u"}, alias="production")
    assert meta.model_version == seeded_classifier.state.version
    assert meta.vocabulary_size == len(seeded_classifier.state.vocabulary)
    assert (artifacts / "registry.json").exists()
    assert aliases("sentiment") == {"production": meta.version}

    loaded = load_snapshot("sentiment", alias="production")
    assert loaded == snapshot
    restored = NaiveBayesClassifier()
    restored.deserialize(loaded)
    assert restored.state.version == seeded_classifier.state.version

    seeded_classifier.incremental_train([("refund took a month", "negative")])
    second = register_snapshot("sentiment", seeded_classifier.serialize(), version="v2")
    assert [m.version for m in list_snapshots("sentiment")] == ["v2", meta.version]
    assert get_snapshot_meta("sentiment").version == "v2"
    assert get_snapshot_meta("sentiment", alias="production").version == meta.version

    promote_alias("sentiment", second.version, alias="production")
    assert get_snapshot_meta("sentiment", alias="production").model_version == meta.model_version + 1


def test_registry_rejects_bad_snapshots(artifacts, seeded_classifier):
    with pytest.raises(ValueError):
        register_snapshot("sentiment", "not json")
    with pytest.raises(ValueError):
        register_snapshot("sentiment", "[1, 2]")
    register_snapshot("sentiment", seeded_classifier.serialize(), version="v1")
    with pytest.raises(ValueError):
        register_snapshot("sentiment", seeded_classifier.serialize(), version="v1")


def test_registry_missing_entries(artifacts):
    assert list_snapshots("sentiment") == []
    with pytest.raises(FileNotFoundError):
        get_snapshot_meta("sentiment")
    with pytest.raises(FileNotFoundError):
        load_snapshot("sentiment", alias="production")
    with pytest.raises(FileNotFoundError):
        promote_alias("sentiment", "nope")
