#!/usr/bin/env python
"""Export the merged OpenAPI document of a project version.

Usage:
  python -m scripts.export_version 12                    # JSON to stdout
  python -m scripts.export_version 12 --out build/v12.yaml --format yaml

Exit Codes:
  0 success
  2 version not found
  3 a referenced spec could not be parsed
"""
from __future__ import annotations
import argparse, json, pathlib, sys

import yaml

from apihub import create_app
from apihub.services.documents import SpecParseError
from apihub.services.version_docs import build_version_document


def render(doc: dict, fmt: str) -> str:
    if fmt == 'yaml':
        return yaml.safe_dump(doc, sort_keys=False, allow_unicode=True)
    return json.dumps(doc, indent=2, default=str) + '\n'


def main(argv: list[str]) -> int:
    p = argparse.ArgumentParser(description='Export a merged version document')
    p.add_argument('version_id', type=int)
    p.add_argument('--out', dest='out', help='Path to write the document (stdout when omitted)')
    p.add_argument('--format', choices=('json', 'yaml'), default='json')
    args = p.parse_args(argv)

    app = create_app()
    with app.app_context():
        try:
            doc = build_version_document(args.version_id)
        except SpecParseError as e:
            print(f'Could not generate the OpenAPI specification: {e}', file=sys.stderr)
            return 3
    if doc is None:
        print(f'Version {args.version_id} not found', file=sys.stderr)
        return 2

    text = render(doc, args.format)
    if args.out:
        out_path = pathlib.Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text)
        print(f"Wrote {len(doc.get('paths', {}))} paths to {out_path}")
    else:
        sys.stdout.write(text)
    return 0


if __name__ == '__main__':  # pragma: no cover
    sys.exit(main(sys.argv[1:]))
