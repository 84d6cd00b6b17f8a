"""Document parsing — JSON text → validated document + detected version."""

from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError

from .models import DocumentError, DocumentFormat
from .schemas import LayoutDocument

_REQUIRED_ARRAYS = ("boxes", "netLabels", "paths", "junctions")


def detect_format(data: dict) -> DocumentFormat:
    """Tell canonical from legacy by structure.

    A per-pin coordinate array on any box means canonical; boxes with
    counts only mean legacy.  A document without boxes is judged by the
    legacy-only ``pathId`` / ``netName`` markers.
    """
    boxes = data.get("boxes") or []
    if any(isinstance(b, dict) and "pins" in b for b in boxes):
        return "canonical"
    if boxes:
        return "legacy"
    paths = data.get("paths") or []
    labels = data.get("netLabels") or []
    if any(isinstance(p, dict) and "pathId" in p for p in paths):
        return "legacy"
    if any(isinstance(nl, dict) and "netName" in nl for nl in labels):
        return "legacy"
    return "canonical"


def _format_loc(loc: tuple[Any, ...]) -> str:
    return ".".join(str(part) for part in loc)


def parse_document(source: str | bytes | dict) -> tuple[LayoutDocument, DocumentFormat]:
    """Parse and validate a layout document.

    Raises DocumentError if the text is not JSON, is not an object, lacks
    one of the four top-level arrays, or has malformed entries.
    """
    if isinstance(source, dict):
        data = source
    else:
        if isinstance(source, bytes):
            try:
                source = source.decode("utf-8")
            except UnicodeDecodeError as e:
                raise DocumentError(f"not valid UTF-8 (byte {e.start})") from e
        try:
            data = json.loads(source)
        except json.JSONDecodeError as e:
            raise DocumentError(f"not valid JSON ({e.msg}, line {e.lineno})") from e

    if not isinstance(data, dict):
        raise DocumentError("top level must be an object")
    for key in _REQUIRED_ARRAYS:
        if not isinstance(data.get(key), list):
            raise DocumentError(f"missing required array '{key}'", path=key)

    try:
        doc = LayoutDocument.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        raise DocumentError(first["msg"], path=_format_loc(first["loc"])) from e

    return doc, detect_format(data)
