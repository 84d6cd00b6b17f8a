"""Entity model — dataclasses for the schematic sheet and chip sizing."""

from .models import (
    Pin, Chip, Passive, NetLabel, Component, Junction,
    PinRef, JunctionRef, UnresolvedRef, Endpoint,
    Connection, NameCounters, Layout,
    PIN_SIDES, ANCHOR_SIDES,
)
from .sizing import chip_height, chip_width, pins_on_side, side_offsets

__all__ = [
    # Models
    "Pin", "Chip", "Passive", "NetLabel", "Component", "Junction",
    "PinRef", "JunctionRef", "UnresolvedRef", "Endpoint",
    "Connection", "NameCounters", "Layout",
    "PIN_SIDES", "ANCHOR_SIDES",
    # Sizing
    "chip_height", "chip_width", "pins_on_side", "side_offsets",
]
