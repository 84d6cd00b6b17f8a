"""Shared layout constants for the schematic engine.

All world distances are in grid-space units where one grid step is
``grid_size``.  The resolver, the mutation operations and the document
converter all read from this single source of truth, so a change here
keeps pin placement, snapping and reconstruction in sync.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class LayoutRules:
    """Geometry rules for schematic entities."""

    grid_size: float = 0.2
    """Grid unit ``G``; every authored coordinate snaps to it."""

    scale: float = 100.0
    """Screen pixels per world unit."""

    passive_body_width: float = 0.2
    """Cross-axis width of a two-pin passive body."""

    passive_pin_to_pin: float = 1.0
    """Distance between the two pins of a passive (main axis length)."""

    net_label_width: float = 1.0
    net_label_height: float = 0.4

    single_sided_chip_width: float = 0.4
    """Chip width when pins sit on one side only."""

    double_sided_chip_width: float = 0.8
    """Chip width when pins sit on both the left and right side."""

    position_tolerance: float = 0.001
    """Max per-axis difference for two pin coordinates to be the same pin."""

    connection_hit_threshold_px: float = 5.0
    junction_radius_px: float = 5.0

    # ── Derived helpers ────────────────────────────────────────────

    @property
    def half_grid(self) -> float:
        return self.grid_size / 2

    @property
    def min_chip_height(self) -> float:
        """A chip is never shorter than two grid units."""
        return self.grid_size * 2

    @property
    def connection_hit_threshold(self) -> float:
        """Hit-test threshold converted from pixels to world units."""
        return self.connection_hit_threshold_px / self.scale


# Module-level singleton — importable everywhere.
LAYOUT_RULES = LayoutRules()
