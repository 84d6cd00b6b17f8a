"""
schemlayout — entry point.

Usage:
    python -m schemlayout serve                       # web server on :8000
    python -m schemlayout serve --port 3000
    python -m schemlayout convert in.json out.json    # re-export as canonical
    python -m schemlayout convert in.json out.json --legacy
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from schemlayout.interchange import DocumentError, export_document, import_document


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="schemlayout", description="Schematic layout engine")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = p.add_subparsers(dest="cmd", required=True)

    sv = sub.add_parser("serve", help="Start the web server")
    sv.add_argument("--host", default=None, help="Host to bind (default $SCHEMLAYOUT_HOST or 127.0.0.1)")
    sv.add_argument("--port", type=int, default=None, help="Port to bind (default $SCHEMLAYOUT_PORT or 8000)")

    cv = sub.add_parser("convert", help="Import a document and export it again")
    cv.add_argument("input", help="Path to a canonical or legacy document")
    cv.add_argument("output", help="Where to write the exported document")
    cv.add_argument("--legacy", action="store_true", help="Write the legacy version")

    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.cmd == "serve":
        from schemlayout.web.server import main as serve
        serve(host=args.host, port=args.port)
        return 0

    if args.cmd == "convert":
        text = Path(args.input).read_text(encoding="utf-8")
        try:
            result = import_document(text)
        except DocumentError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        for w in result.warnings:
            print(f"warning: {w}", file=sys.stderr)
        out = export_document(result.layout, "legacy" if args.legacy else "canonical")
        Path(args.output).write_text(out, encoding="utf-8")
        print(f"Wrote {args.output} ({result.format} → {'legacy' if args.legacy else 'canonical'})")
        return 0

    return 2


if __name__ == "__main__":
    sys.exit(main())
