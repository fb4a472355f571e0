"""Tests for autotable import."""

import json

from autotable.cli import _exitcodes as ec
from tests.cli.conftest import MODELS, invoke


def _write(tmp_path, name, payload):
    path = tmp_path / name
    path.write_text(payload if isinstance(payload, str) else json.dumps(payload))
    return str(path)


def _import(runner, data_dir, input_path, *extra):
    args = ["--json", "import", "--models", MODELS, "--type", "Person", "--input", input_path]
    return invoke(runner, args + list(extra), data_dir)


def test_import_array(runner, data_dir, tmp_path):
    path = _write(tmp_path, "people.json", [{"name": "Cy", "age": 5}, {"name": "Di", "mood": "GRUMPY"}])
    result = _import(runner, data_dir, path)
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data == {"table": "Person", "imported": 2, "ids": [1, 2]}

    query = invoke(runner, ["--json", "query", "--models", MODELS, "--type", "Person"], data_dir)
    rows = json.loads(query.stdout)
    assert [(r["name"], r["age"], r["mood"]) for r in rows] == [("Cy", 5, None), ("Di", 0, "GRUMPY")]


def test_import_single_object(runner, data_dir, tmp_path):
    path = _write(tmp_path, "one.json", {"name": "Ed", "unknown": True})
    result = _import(runner, data_dir, path)
    assert result.exit_code == 0
    assert json.loads(result.stdout)["imported"] == 1


def test_import_nested_field(runner, seeded_dir, tmp_path):
    path = _write(tmp_path, "nested.json", {"people": [{"name": "Fay"}], "meta": {"v": 1}})
    result = _import(runner, seeded_dir, path, "--field", "people")
    assert result.exit_code == 0
    assert json.loads(result.stdout)["ids"] == [3]


def test_import_invalid_json(runner, data_dir, tmp_path):
    path = _write(tmp_path, "bad.json", "{not json")
    result = _import(runner, data_dir, path)
    assert result.exit_code == ec.IMPORT_FAILURE


def test_import_missing_file(runner, data_dir, tmp_path):
    result = _import(runner, data_dir, str(tmp_path / "absent.json"))
    assert result.exit_code == ec.USAGE_ERROR
