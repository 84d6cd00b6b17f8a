"""Format converter — layout documents in and out.

Submodules:
  models     DocumentFormat, DocumentError, ImportResult.
  schemas    Pydantic models for both document versions.
  parsing    JSON → validated document + version detection.
  numbering  Counter-clockwise pin numbering used in documents.
  export     Layout → canonical / legacy document.
  importer   Document → Layout with pin reconciliation.
"""

from .models import DocumentError, DocumentFormat, ImportResult
from .schemas import LayoutDocument
from .parsing import detect_format, parse_document
from .numbering import pin_by_number, pin_number, pins_in_number_order
from .export import export_document, layout_to_canonical, layout_to_legacy
from .importer import (
    canonical_to_layout, import_document, legacy_to_layout,
    nearest_pin, reconstruct_chip_pins,
)

__all__ = [
    # Models
    "DocumentError", "DocumentFormat", "ImportResult", "LayoutDocument",
    # Parsing
    "detect_format", "parse_document",
    # Numbering
    "pin_by_number", "pin_number", "pins_in_number_order",
    # Export
    "export_document", "layout_to_canonical", "layout_to_legacy",
    # Import
    "canonical_to_layout", "import_document", "legacy_to_layout",
    "nearest_pin", "reconstruct_chip_pins",
]
