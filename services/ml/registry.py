from __future__ import annotations
from dataclasses import dataclass, asdict, field
from typing import Any, Dict, List, Optional, Union
from pathlib import Path
from datetime import datetime, timezone
import os, json, uuid


def _root() -> Path:
    return Path(os.getenv("ARTIFACTS_DIR", "artifacts"))


def _index_file() -> Path:
    return _root() / "registry.json"


def _snapshot_dir() -> Path:
    return _root() / "models"


@dataclass
class SnapshotMeta:
    """Index entry for one stored classifier snapshot."""

    name: str
    version: str
    created_at: str
    path: str
    model_version: int
    vocabulary_size: int
    metrics: Dict[str, float] = field(default_factory=dict)
    tags: Dict[str, Any] = field(default_factory=dict)


def _read_index() -> Dict[str, Any]:
    p = _index_file()
    if not p.exists():
        return {"snapshots": {}, "aliases": {}}
    return json.loads(p.read_text(encoding="utf-8"))


def _write_index(index: Dict[str, Any]) -> None:
    _root().mkdir(parents=True, exist_ok=True)
    _index_file().write_text(json.dumps(index, indent=2, sort_keys=True), encoding="utf-8")


def _describe(data: str) -> Dict[str, int]:
    try:
        payload = json.loads(data)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Snapshot is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict) or "vocabulary" not in payload:
        raise ValueError("Snapshot must be a classifier JSON object with a vocabulary")
    return {"model_version": int(payload.get("version", 0)), "vocabulary_size": len(payload["vocabulary"])}


def register_snapshot(name: str, snapshot: Union[str, bytes], metrics: Dict[str, float] | None = None,
                      tags: Dict[str, Any] | None = None, version: Optional[str] = None,
                      alias: Optional[str] = None) -> SnapshotMeta:
    """Store a serialized classifier and record its model version and vocabulary size."""
    data = snapshot.decode("utf-8") if isinstance(snapshot, bytes) else snapshot
    described = _describe(data)
    now = datetime.now(timezone.utc)
    version = version or f"{now:%Y%m%d-%H%M%S}-{uuid.uuid4().hex[:8]}"

    index = _read_index()
    if any(entry["version"] == version for entry in index["snapshots"].get(name, [])):
        raise ValueError(f"Snapshot '{name}' version '{version}' already registered.")
    _snapshot_dir().mkdir(parents=True, exist_ok=True)
    path = _snapshot_dir() / f"{name}__{version}.json"
    path.write_text(data, encoding="utf-8")

    meta = SnapshotMeta(
        name=name,
        version=version,
        created_at=now.isoformat(),
        path=path.as_posix(),
        metrics=dict(metrics or {}),
        tags=dict(tags or {}),
        **described,
    )
    index["snapshots"].setdefault(name, []).append(asdict(meta))
    if alias:
        index["aliases"].setdefault(name, {})[alias] = version
    _write_index(index)
    return meta


def list_snapshots(name: str) -> List[SnapshotMeta]:
    """Registered snapshots for ``name``, newest model version first."""
    entries = [SnapshotMeta(**entry) for entry in _read_index()["snapshots"].get(name, [])]
    return sorted(entries, key=lambda m: (m.model_version, m.created_at), reverse=True)


def aliases(name: str) -> Dict[str, str]:
    return dict(_read_index()["aliases"].get(name, {}))


def get_snapshot_meta(name: str, version: Optional[str] = None, alias: Optional[str] = None) -> SnapshotMeta:
    if alias:
        version = aliases(name).get(alias)
        if not version:
            raise FileNotFoundError(f"No alias '{alias}' for snapshot '{name}'.")
    entries = list_snapshots(name)
    if not entries:
        raise FileNotFoundError(f"No snapshots registered as '{name}'.")
    if version is None:
        return entries[0]
    for meta in entries:
        if meta.version == version:
            return meta
    raise FileNotFoundError(f"Snapshot '{name}' version '{version}' not found.")


def promote_alias(name: str, version: str, alias: str = "production") -> SnapshotMeta:
    meta = get_snapshot_meta(name, version)
    index = _read_index()
    index["aliases"].setdefault(name, {})[alias] = meta.version
    _write_index(index)
    return meta


def load_snapshot(name: str, version: Optional[str] = None, alias: Optional[str] = None) -> str:
    """JSON text of a registered snapshot; the latest model version when neither selector is given."""
    meta = get_snapshot_meta(name, version, alias)
    return Path(meta.path).read_text(encoding="utf-8")


__all__ = [
    "SnapshotMeta",
    "register_snapshot",
    "list_snapshots",
    "aliases",
    "get_snapshot_meta",
    "promote_alias",
    "load_snapshot",
]
