"""
Editing session — the one Layout being edited plus transient UI state.

A session owns its Layout exclusively.  Besides the layout it remembers
the entity whose name is being edited (a freshly placed net label starts
in that mode) and the wire currently being drawn, if any.

Loading a document builds a complete new Layout first and swaps it in
only when parsing succeeded, so a rejected document leaves the session
exactly as it was.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date

from schemlayout.interchange import DocumentFormat, ImportResult, export_document, import_document
from schemlayout.model.models import Endpoint, Layout, NetLabel
from schemlayout.operations import add_net_label, rename
from schemlayout.web.naming import document_filename
from schemlayout.wires import WireDraft, finish_wire, start_wire

log = logging.getLogger(__name__)


@dataclass
class EditorSession:
    layout: Layout = field(default_factory=Layout)
    editing_name_id: str | None = None   # component whose name is being typed
    draft: WireDraft | None = None       # wire gesture in progress
    last_import: ImportResult | None = None

    # ── Names ─────────────────────────────────────────────────────

    def place_net_label(self, x: float, y: float) -> NetLabel:
        """Add a net label and enter name-edit mode on it."""
        label = add_net_label(self.layout, x, y)
        self.editing_name_id = label.id
        return label

    def commit_name(self, name: str) -> bool:
        """Finish name editing; an empty name keeps the current one."""
        if self.editing_name_id is None:
            return False
        ok = rename(self.layout, self.editing_name_id, name.strip())
        self.editing_name_id = None
        return ok

    # ── Wire gesture ──────────────────────────────────────────────

    def begin_wire(self, source: Endpoint) -> bool:
        self.draft = start_wire(self.layout, source)
        return self.draft is not None

    def add_waypoint(self, x: float, y: float) -> bool:
        if self.draft is None:
            return False
        return self.draft.add_waypoint(x, y)

    def end_wire(self, target: Endpoint):
        """Complete the current wire; the draft survives a refused target."""
        if self.draft is None:
            return None
        conn = finish_wire(self.layout, self.draft, target)
        if conn is not None:
            self.draft = None
        return conn

    def cancel_wire(self) -> None:
        self.draft = None

    # ── Documents ─────────────────────────────────────────────────

    def load_document(self, source: str | bytes | dict) -> ImportResult:
        """Replace the layout with an imported document.

        Raises DocumentError (session untouched) on structural failure.
        """
        result = import_document(source)
        self.layout = result.layout
        self.editing_name_id = None
        self.draft = None
        self.last_import = result
        return result

    def export(
        self, fmt: DocumentFormat = "canonical", today: date | None = None,
    ) -> tuple[str, str]:
        """Serialize the layout; returns ``(filename, text)``."""
        text = export_document(self.layout, fmt)
        return document_filename(text, today or date.today()), text

    def reset(self) -> None:
        self.layout = Layout()
        self.editing_name_id = None
        self.draft = None
        self.last_import = None
        log.info("Session reset")
