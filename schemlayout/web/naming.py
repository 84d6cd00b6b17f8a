"""Export naming — stable file names for exported documents."""

from __future__ import annotations

from datetime import date


def text_hash(text: str) -> int:
    """31-multiplier rolling hash over UTF-16 code units, as unsigned 32-bit."""
    h = 0
    for unit in _utf16_units(text):
        h = (h * 31 + unit) & 0xFFFFFFFF
    return h


def _utf16_units(text: str):
    data = text.encode("utf-16-le")
    for i in range(0, len(data), 2):
        yield data[i] | (data[i + 1] << 8)


def document_filename(text: str, today: date) -> str:
    """``corpusYYYY-MM-DD-<hash8>.json`` for an exported document.

    The hash covers *text* exactly as written, i.e. the ``json.dumps``
    output of the exporter.  That text writes whole-number floats as
    ``1.0`` where a browser's ``JSON.stringify`` writes ``1``, so the same
    layout saved from a browser editor gets a different hash.  The name
    is stable for identical text, not across serializers.
    """
    return f"corpus{today.isoformat()}-{text_hash(text):08x}.json"
