import json

from typer.testing import CliRunner

from cli.main import app

runner = CliRunner()


def _dataset(tmp_path):
    path = tmp_path / "train.csv"
    rows = ["text,label"]
    rows += ['"I love this, works great",positive'] * 3
    rows += ['"Terrible, it broke immediately",negative'] * 3
    rows += ['"The box is blue",neutral'] * 3
    path.write_text("\n".join(rows) + "\n", encoding="utf-8")
    return path


def test_analyze_json_output():
    result = runner.invoke(app, ["analyze", "I love this, it is fantastic", "--json"])
    assert result.exit_code == 0, result.output
    payload = json.loads(result.output.strip().splitlines()[-1])
    assert payload["label"] == "positive"


def test_train_then_analyze_with_snapshot(tmp_path):
    dataset = _dataset(tmp_path)
    snapshot = tmp_path / "model.json"
    trained = runner.invoke(app, ["train", str(dataset), "--output", str(snapshot)])
    assert trained.exit_code == 0, trained.output
    assert snapshot.exists()

    analyzed = runner.invoke(app, ["analyze", "Terrible, it broke", "--model", str(snapshot), "--json"])
    assert analyzed.exit_code == 0, analyzed.output
    assert json.loads(analyzed.output.strip().splitlines()[-1])["label"] == "negative"


def test_evaluate_and_batch(tmp_path):
    dataset = _dataset(tmp_path)
    evaluated = runner.invoke(app, ["evaluate", str(dataset)])
    assert evaluated.exit_code == 0, evaluated.output
    assert "Methods" in evaluated.output

    lines = tmp_path / "texts.txt"
    lines.write_text("I love it\n\nawful service\n", encoding="utf-8")
    batched = runner.invoke(app, ["batch", str(lines), "--json"])
    assert batched.exit_code == 0, batched.output
    payload = json.loads(batched.output.strip().splitlines()[-1])
    assert len(payload["results"]) == 2


def test_feedback_writes_snapshot(tmp_path):
    out = tmp_path / "updated.json"
    result = runner.invoke(app, ["feedback", "the checkout is clunky", "negative", "--output", str(out)])
    assert result.exit_code == 0, result.output
    assert out.exists()


def test_doctor():
    result = runner.invoke(app, ["doctor"])
    assert result.exit_code == 0, result.output
    assert "Diagnostics" in result.output


def test_evaluate_kfold(tmp_path):
    dataset = _dataset(tmp_path)
    result = runner.invoke(app, ["evaluate", str(dataset), "--kfold", "3", "--json"])
    assert result.exit_code == 0, result.output
    payload = json.loads(result.output.strip().splitlines()[-1])
    assert payload["k"] == 3
    assert len(payload["folds"]) == 3
    assert sum(fold["sampleCount"] for fold in payload["folds"]) == 9
    assert set(payload["mean"]) == {"accuracy", "macroF1", "weightedF1", "cohenKappa"}


def test_evaluate_kfold_too_many_folds(tmp_path):
    dataset = _dataset(tmp_path)
    result = runner.invoke(app, ["evaluate", str(dataset), "--kfold", "5"])
    assert result.exit_code == 1
    assert "Evaluation failed" in result.output


def test_missing_model_path_is_a_usage_error(tmp_path):
    missing = tmp_path / "nope.json"
    lines = tmp_path / "texts.txt"
    lines.write_text("I love it\n", encoding="utf-8")
    for args in (
        ["batch", str(lines), "--model", str(missing)],
        ["feedback", "fine", "neutral", "--model", str(missing)],
        ["evaluate", str(_dataset(tmp_path)), "--model", str(missing)],
    ):
        result = runner.invoke(app, args)
        assert result.exit_code == 2
        assert not isinstance(result.exception, FileNotFoundError)
