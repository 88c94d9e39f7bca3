import importlib.util
import json
from pathlib import Path

import pytest

SCRIPTS = Path(__file__).resolve().parents[1] / "scripts"


def _load(name):
    spec = importlib.util.spec_from_file_location(name, SCRIPTS / f"{name}.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_export_writes_the_enriched_document(tmp_path):
    export_openapi = _load("export_openapi")
    target = tmp_path / "openapi.json"
    export_openapi.main(["--output", str(target)])

    document = json.loads(target.read_text(encoding="utf-8"))
    assert "/todos" in document["paths"]
    title = document["components"]["schemas"]["TodoCreate"]["properties"]["title"]
    assert "Validation rules:" in title["description"]


def test_prune_reports_removed_schemas(tmp_path, capsys):
    prune_openapi = _load("prune_openapi")
    source = tmp_path / "in.json"
    target = tmp_path / "out.json"
    source.write_text(
        json.dumps(
            {
                "openapi": "3.1.0",
                "info": {"title": "T", "version": "1"},
                "paths": {
                    "/a": {
                        "get": {
                            "responses": {
                                "200": {
                                    "description": "OK",
                                    "content": {"application/json": {"schema": {"$ref": "#/components/schemas/A"}}},
                                }
                            }
                        }
                    }
                },
                "components": {"schemas": {"A": {"type": "string"}, "B": {"type": "string"}}},
            }
        ),
        encoding="utf-8",
    )

    prune_openapi.main([str(source), "--output", str(target)])

    assert "Removed 1 schemas: B" in capsys.readouterr().out
    pruned = json.loads(target.read_text(encoding="utf-8"))
    assert list(pruned["components"]["schemas"]) == ["A"]
    assert pruned["info"] == {"title": "T", "version": "1"}


def test_prune_rejects_missing_input(tmp_path):
    prune_openapi = _load("prune_openapi")
    with pytest.raises(SystemExit):
        prune_openapi.main([str(tmp_path / "missing.json")])
