#!/usr/bin/env python3
"""
Write the example app's enriched OpenAPI document as JSON.

  python scripts/export_openapi.py --output openapi.json
"""
import argparse
import json
from pathlib import Path

from example.main import app


def export(output: Path | None = None) -> dict:
    document = app.openapi()
    text = json.dumps(document, ensure_ascii=False, indent=2)
    if output is None:
        print(text)
    else:
        output.write_text(text + "\n", encoding="utf-8")
    return document


def main(argv=None):
    parser = argparse.ArgumentParser(description="Export the enriched OpenAPI document of the Todo API")
    parser.add_argument("--output", "-o", type=Path, default=None, help="File to write (default: stdout)")
    args = parser.parse_args(argv)

    document = export(args.output)
    if args.output is not None:
        print(f"Wrote {len(document.get('paths', {}))} paths to {args.output}")


if __name__ == "__main__":
    main()
