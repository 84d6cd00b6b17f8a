"""Converter result types and the structural-failure exception."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from schemlayout.model.models import Layout

DocumentFormat = Literal["canonical", "legacy"]


class DocumentError(Exception):
    """Raised when a document is not valid JSON or lacks required structure."""

    def __init__(self, reason: str, path: str | None = None) -> None:
        self.reason = reason
        self.path = path
        where = f" at '{path}'" if path else ""
        super().__init__(f"Invalid layout document{where}: {reason}")


@dataclass
class ImportResult:
    """A reconstructed layout plus a record of everything approximated."""

    layout: Layout
    format: DocumentFormat
    warnings: list[str] = field(default_factory=list)
    approximated: int = 0       # pin refs bound by fallback or nearest-position
    dangling: int = 0           # endpoints bound to an UnresolvedRef placeholder

    @property
    def exact(self) -> bool:
        return self.approximated == 0 and self.dangling == 0
