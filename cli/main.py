"""Typer-powered command line interface for the sentiment engine."""

from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path
from typing import List, Optional

import typer
from pydantic import ValidationError
from dotenv import load_dotenv
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from core.logging import setup_logging
from core.settings import get_settings
from services.ml.registry import load_snapshot, register_snapshot
from services.sentiment.datasets import load_examples
from services.sentiment.engine import SentimentEngine
from services.sentiment.errors import SentimentEngineError
from services.sentiment.evaluation import classification_report, cross_validate
from services.sentiment.types import SentimentResult

console = Console()
app = typer.Typer(add_completion=False, help="Hybrid sentiment engine helper")

MODEL_OPTION = typer.Option(
    None,
    "--model",
    exists=True,
    dir_okay=False,
    readable=True,
    help="Snapshot JSON file to load instead of the seed corpus",
)
REGISTRY_OPTION = typer.Option(None, "--from-registry", help="Registered snapshot name to load (production alias)")
LANGUAGE_OPTION = typer.Option(None, "--language", "-l", help="Two letter language code; detected when omitted")
JSON_OPTION = typer.Option(False, "--json", help="Print raw JSON instead of a table")


def _load_env() -> None:
    """Load environment variables from the default `.env` file."""

    load_dotenv(override=False)
    setup_logging(level=os.getenv("LOG_LEVEL", "WARNING"))


def _engine(model: Optional[Path] = None, registry_name: Optional[str] = None) -> SentimentEngine:
    engine = SentimentEngine(get_settings())
    if model is not None:
        engine.deserialize(model.read_text(encoding="utf-8"))
    elif registry_name:
        engine.deserialize(load_snapshot(registry_name, alias="production"))
    else:
        engine.bootstrap()
    return engine


def _result_table(rows: List[tuple[str, SentimentResult]], title: str) -> Table:
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Text")
    table.add_column("Label")
    table.add_column("Score", justify="right")
    table.add_column("Confidence", justify="right")
    table.add_column("Method")
    colours = {"positive": "green", "negative": "red", "neutral": "yellow"}
    for text, result in rows:
        colour = colours.get(result.label.value, "white")
        table.add_row(
            text if len(text) <= 60 else text[:57] + "...",
            f"[{colour}]{result.label.value}[/{colour}]",
            f"{result.score:+.3f}",
            f"{result.confidence:.2f}",
            result.method.value,
        )
    return table


@app.command()
def analyze(
    text: str = typer.Argument(..., help="Text to analyze"),
    language: Optional[str] = LANGUAGE_OPTION,
    model: Optional[Path] = MODEL_OPTION,
    from_registry: Optional[str] = REGISTRY_OPTION,
    detailed: bool = typer.Option(False, "--detailed", help="Show rule and naive verdicts too"),
    as_json: bool = JSON_OPTION,
) -> None:
    """Analyze a single text."""

    _load_env()
    try:
        engine = _engine(model, from_registry)
        breakdown = engine.analyze_detailed(text, language)
    except (SentimentEngineError, FileNotFoundError) as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from None

    if as_json:
        payload = breakdown.to_dict() if detailed else breakdown.result.to_dict()
        typer.echo(json.dumps(payload, ensure_ascii=False))
        return

    rows = [(text, breakdown.result)]
    if detailed:
        rows += [("(rule)", breakdown.rule), ("(naive)", breakdown.naive)]
    console.print(_result_table(rows, "Sentiment"))
    if breakdown.result.explanation:
        console.print(Panel.fit(breakdown.result.explanation, title="Explanation", border_style="cyan"))


@app.command()
def batch(
    path: Path = typer.Argument(..., exists=True, readable=True, help="File with one text per line"),
    language: Optional[str] = LANGUAGE_OPTION,
    model: Optional[Path] = MODEL_OPTION,
    as_json: bool = JSON_OPTION,
) -> None:
    """Analyze every non-empty line of a text file."""

    _load_env()
    texts = [line.strip() for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]
    engine = _engine(model)
    outcome = asyncio.run(engine.analyze_batch(texts, language))
    if as_json:
        typer.echo(json.dumps(outcome.to_dict(), ensure_ascii=False))
    else:
        console.print(_result_table(list(zip(texts, outcome.results)), f"Batch ({len(texts)} texts)"))
    if outcome.failures:
        console.print(f"[yellow]{len(outcome.failures)} item(s) fell back to neutral[/yellow]")


@app.command()
def train(
    dataset: Path = typer.Argument(..., exists=True, readable=True, help="CSV, JSON or JSONL with text,label"),
    output: Path = typer.Option(Path("model.json"), "--output", "-o", help="Where to write the snapshot"),
    model: Optional[Path] = typer.Option(
        None, "--model", exists=True, dir_okay=False, readable=True, help="Existing snapshot to update incrementally"
    ),
    register: Optional[str] = typer.Option(None, "--register", help="Also store the snapshot in the registry"),
    alias: Optional[str] = typer.Option(None, "--alias", help="Registry alias to point at the new version"),
) -> None:
    """Train (or incrementally update) the Naive Bayes model."""

    _load_env()
    try:
        examples = load_examples(dataset)
        engine = SentimentEngine(get_settings())
        if model is not None:
            engine.deserialize(model.read_text(encoding="utf-8"))
            state = engine.incremental_train(examples)
        else:
            state = engine.train(examples)
    except SentimentEngineError as exc:
        console.print(f"[red]Training failed:[/red] {exc}")
        raise typer.Exit(code=1) from None

    snapshot = engine.serialize()
    output.write_text(snapshot, encoding="utf-8")
    console.print(
        f"[green]Trained[/green] version={state.version} vocabulary={len(state.vocabulary)} "
        f"documents={state.document_count} -> {output}"
    )
    if register:
        meta = register_snapshot(
            register,
            snapshot,
            tags={"dataset": str(dataset)},
            alias=alias,
        )
        console.print(
            f"Registered {meta.name} {meta.version} (model v{meta.model_version}, vocabulary {meta.vocabulary_size})"
            + (f" as {alias}" if alias else "")
        )


@app.command()
def feedback(
    text: str = typer.Argument(..., help="Text the feedback refers to"),
    label: str = typer.Argument(..., help="Correct label: positive, negative or neutral"),
    model: Optional[Path] = MODEL_OPTION,
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the updated snapshot here"),
) -> None:
    """Record one correction and retrain immediately."""

    _load_env()
    try:
        engine = _engine(model)
        record = engine.provide_feedback(text, label, source="cli")
        stats = engine.force_process_buffer()
    except SentimentEngineError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from None

    predicted = record.predicted_label.value if record.predicted_label else "-"
    console.print(f"Predicted [bold]{predicted}[/bold], actual [bold]{record.actual_label.value}[/bold]")
    console.print(f"Model version {stats['modelVersion']}, vocabulary growth {stats['vocabularyGrowth']}")
    target = output or model
    if target is not None:
        target.write_text(engine.serialize(), encoding="utf-8")
        console.print(f"Snapshot written to {target}")


def _print_cross_validation(result: dict, as_json: bool) -> None:
    if as_json:
        payload = {**result, "folds": [fold.to_dict() for fold in result["folds"]]}
        typer.echo(json.dumps(payload, ensure_ascii=False))
        return
    table = Table(title=f"{result['k']}-fold cross-validation", show_header=True)
    table.add_column("Fold")
    table.add_column("Samples", justify="right")
    table.add_column("Accuracy", justify="right")
    table.add_column("Macro F1", justify="right")
    table.add_column("Kappa", justify="right")
    for number, fold in enumerate(result["folds"], start=1):
        table.add_row(
            str(number),
            str(fold.sample_count),
            f"{fold.accuracy:.3f}",
            f"{fold.f1['macro']:.3f}",
            f"{fold.cohen_kappa:.3f}",
        )
    mean, std = result["mean"], result["std"]
    table.add_row(
        "mean ± std",
        "",
        f"{mean['accuracy']:.3f} ± {std['accuracy']:.3f}",
        f"{mean['macroF1']:.3f} ± {std['macroF1']:.3f}",
        f"{mean['cohenKappa']:.3f} ± {std['cohenKappa']:.3f}",
    )
    console.print(table)


@app.command(name="evaluate")
def evaluate_cmd(
    dataset: Path = typer.Argument(..., exists=True, readable=True, help="Labelled CSV, JSON or JSONL"),
    model: Optional[Path] = MODEL_OPTION,
    kfold: Optional[int] = typer.Option(None, "--kfold", min=2, help="Run stratified k-fold cross-validation"),
    seed: int = typer.Option(42, "--seed", help="Shuffle seed for the folds"),
    as_json: bool = JSON_OPTION,
) -> None:
    """Evaluate the engine on a labelled dataset."""

    _load_env()
    try:
        examples = load_examples(dataset)
        if kfold is not None:
            result = cross_validate(examples, k=kfold, seed=seed, settings=get_settings().naive_bayes)
            _print_cross_validation(result, as_json)
            return
        engine = _engine(model)
        summary = engine.evaluate_dataset(examples)
    except SentimentEngineError as exc:
        console.print(f"[red]Evaluation failed:[/red] {exc}")
        raise typer.Exit(code=1) from None

    if as_json:
        typer.echo(json.dumps(summary, ensure_ascii=False, default=str))
        return
    pairs = [(row["actual"], row["predicted"]) for row in summary["report"]["detailedResults"]]
    console.print(Panel(classification_report(pairs), title="Hybrid", border_style="cyan"))
    table = Table(title="Methods", show_header=True)
    table.add_column("Method")
    table.add_column("Accuracy", justify="right")
    for method, row in summary["report"]["byMethod"].items():
        table.add_row(method, f"{row['accuracy']:.3f}")
    console.print(table)
    for line in summary["comparison"]["recommendations"]:
        console.print(f"- {line}")


@app.command()
def doctor() -> None:
    """Run a small suite of diagnostics and print the results."""

    _load_env()
    checks: list[tuple[str, bool, str]] = []
    try:
        settings = get_settings()
        checks.append(("settings", True, f"min confidence {settings.min_confidence_threshold}"))
    except ValidationError as exc:
        checks.append(("settings", False, str(exc)))
        settings = None
    if settings is not None:
        engine = SentimentEngine(settings)
        state = engine.bootstrap()
        checks.append(("seed corpus", state.is_trained, f"vocabulary {len(state.vocabulary)}"))
        sample = engine.analyze("I love this, it is fantastic")
        checks.append(("sample analysis", sample.label.value == "positive", sample.label.value))
    artifacts = Path(os.getenv("ARTIFACTS_DIR", "artifacts"))
    checks.append(("ARTIFACTS_DIR", True, f"{artifacts} ({'exists' if artifacts.exists() else 'not created yet'})"))

    table = Table(title="Diagnostics", show_header=True)
    table.add_column("Check")
    table.add_column("Status")
    table.add_column("Details")
    failed = False
    for name, ok, detail in checks:
        status = "[green]OK[/green]" if ok else "[red]FAIL[/red]"
        failed = failed or not ok
        table.add_row(name, status, detail)
    console.print(table)
    if failed:
        raise typer.Exit(code=1)


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover - manual execution only
    main()
