#!/usr/bin/env python3
"""
Drop component schemas that no operation can reach from an OpenAPI 3.x JSON file.

  python scripts/prune_openapi.py openapi.json --output openapi.pruned.json
"""
import argparse
import json
import sys
from pathlib import Path

from pydantic import ValidationError

from openapi_enrich.core.pruner import prune
from openapi_enrich.schemas.document import Document


def _load_json(path: Path) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _dump_json(obj, path: Path) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(obj, f, ensure_ascii=False, indent=2, sort_keys=False)


def prune_file(source: Path, output: Path | None = None) -> list[str]:
    document = Document.from_openapi(_load_json(source))
    removed = prune(document)
    _dump_json(document.to_openapi(), output or source)
    return removed


def main(argv=None):
    parser = argparse.ArgumentParser(description="Prune unreachable component schemas from an OpenAPI document")
    parser.add_argument("input", type=Path, help="OpenAPI JSON document")
    parser.add_argument("--output", "-o", type=Path, default=None, help="Where to write (default: overwrite input)")
    args = parser.parse_args(argv)

    if not args.input.exists():
        print(f"Error: file not found: {args.input}")
        sys.exit(1)

    try:
        removed = prune_file(args.input, args.output)
    except (json.JSONDecodeError, ValidationError) as e:
        print(f"Error: {args.input} is not a usable OpenAPI document: {e}")
        sys.exit(1)

    if removed:
        print(f"Removed {len(removed)} schemas: {', '.join(removed)}")
    else:
        print("Nothing to remove")


if __name__ == "__main__":
    main()
