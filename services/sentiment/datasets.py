"""Seed corpus and loaders for labelled sentiment examples."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Sequence, Tuple, Union

import pandas as pd

from services.sentiment.errors import InvalidInputError
from services.sentiment.types import TrainingExample, normalize_label

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("text", "label")

_SEED: Sequence[Tuple[str, str, str]] = (
    ("I love this product, it works perfectly", "positive", "en"),
    ("Absolutely fantastic service and friendly staff", "positive", "en"),
    ("The new update is amazing, everything feels fast", "positive", "en"),
    ("Great quality, would definitely recommend", "positive", "en"),
    ("Really happy with my purchase", "positive", "en"),
    ("This is the best app I have ever used", "positive", "en"),
    ("Excellent support, they fixed my issue in minutes", "positive", "en"),
    ("Wonderful experience from start to finish", "positive", "en"),
    ("I hate this product, it broke after one day", "negative", "en"),
    ("Terrible customer service, nobody answered", "negative", "en"),
    ("The app keeps crashing, what a waste of money", "negative", "en"),
    ("Awful quality and very slow delivery", "negative", "en"),
    ("Worst experience ever, I want a refund", "negative", "en"),
    ("This is not good at all, really disappointed", "negative", "en"),
    ("The update is buggy and the battery drains fast", "negative", "en"),
    ("Horrible, the package arrived broken", "negative", "en"),
    ("The package arrived on Tuesday", "neutral", "en"),
    ("I am going to the store later", "neutral", "en"),
    ("The meeting is scheduled for three o'clock", "neutral", "en"),
    ("This phone comes in black and white", "neutral", "en"),
    ("The report has twelve pages", "neutral", "en"),
    ("We will publish the results next week", "neutral", "en"),
    ("Me encanta este producto, es excelente", "positive", "es"),
    ("Servicio increíble y muy rápido", "positive", "es"),
    ("Estoy muy feliz con la compra", "positive", "es"),
    ("Odio esta aplicación, siempre falla", "negative", "es"),
    ("Pésimo servicio, nunca responden", "negative", "es"),
    ("Una experiencia terrible y decepcionante", "negative", "es"),
    ("El paquete llegó el martes", "neutral", "es"),
    ("La reunión es a las tres", "neutral", "es"),
)


def seed_examples() -> List[TrainingExample]:
    """Built-in multilingual corpus used to bootstrap the classifier."""

    return [TrainingExample(text=text, label=normalize_label(label), language=lang) for text, label, lang in _SEED]


def _read_frame(path: Path) -> pd.DataFrame:
    suffix = path.suffix.lower()
    if suffix == ".csv":
        return pd.read_csv(path)
    if suffix == ".jsonl":
        return pd.read_json(path, lines=True)
    if suffix == ".json":
        return pd.read_json(path)
    raise InvalidInputError(f"Unsupported dataset format: {suffix or path.name}", {"path": str(path)})


def frame_to_examples(df: pd.DataFrame) -> List[TrainingExample]:
    """Convert a frame with ``text``/``label`` (and optional ``language``) columns."""

    missing = [column for column in REQUIRED_COLUMNS if column not in df.columns]
    if missing:
        raise InvalidInputError("Dataset is missing required columns", {"missing": missing})

    df = df.dropna(subset=list(REQUIRED_COLUMNS))
    has_language = "language" in df.columns
    examples: List[TrainingExample] = []
    skipped = 0
    for row in df.itertuples(index=False):
        text = str(getattr(row, "text")).strip()
        if not text:
            skipped += 1
            continue
        try:
            label = normalize_label(str(getattr(row, "label")))
        except InvalidInputError:
            skipped += 1
            continue
        language = getattr(row, "language") if has_language else None
        examples.append(TrainingExample(text=text, label=label, language=language if isinstance(language, str) else None))
    if skipped:
        logger.warning("skipped invalid dataset rows", extra={"skipped": skipped})
    return examples


def load_examples(path: Union[str, Path]) -> List[TrainingExample]:
    """Load labelled examples from a CSV, JSON or JSONL file."""

    path = Path(path)
    if not path.exists():
        raise InvalidInputError(f"Dataset not found: {path}", {"path": str(path)})
    examples = frame_to_examples(_read_frame(path))
    logger.info("dataset loaded", extra={"path": str(path), "examples": len(examples)})
    return examples


__all__ = ["seed_examples", "load_examples", "frame_to_examples"]
