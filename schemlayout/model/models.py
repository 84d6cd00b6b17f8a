"""Entity model dataclasses — components, pins, junctions, connections, layout.

Coordinates are world units with Y growing downward.  A component's
``(x, y)`` means something different per kind:

  Chip      top-left corner; size is derived from the pins
  Passive   geometric centre
  NetLabel  the anchor point, which is also its single pin
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Literal, Union

from .sizing import chip_height, chip_width

Side = Literal["left", "right", "top", "bottom", "center"]
AnchorSide = Literal["left", "right", "top", "bottom"]

PIN_SIDES: tuple[str, ...] = ("left", "right", "top", "bottom", "center")
ANCHOR_SIDES: tuple[str, ...] = ("left", "right", "top", "bottom")


@dataclass
class Pin:
    id: str
    side: Side
    index: int                              # order along its side, unique per side
    margin_from_last: float | None = None   # chip pins, index > 0; None = one grid unit


@dataclass
class Chip:
    """Multi-pin chip with pins on its left and right edges."""

    kind: ClassVar[str] = "chip"
    name_prefix: ClassVar[str] = "U"

    id: str
    name: str
    x: float
    y: float
    pins: list[Pin] = field(default_factory=list)
    rotation: int = 0                       # stored, not applied to pins

    @property
    def width(self) -> float:
        return chip_width(self.pins)

    @property
    def height(self) -> float:
        return chip_height(self.pins)

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)


@dataclass
class Passive:
    """Two-pin passive body, canonical pose vertical (pins top/bottom)."""

    kind: ClassVar[str] = "passive"
    name_prefix: ClassVar[str] = "P"

    id: str
    name: str
    x: float
    y: float
    pins: list[Pin] = field(default_factory=list)
    rotation: int = 0                       # 0 = vertical, 90 = horizontal

    @property
    def is_vertical(self) -> bool:
        return self.rotation in (0, 180)


@dataclass
class NetLabel:
    """Single-pin net label anchored at its pin."""

    kind: ClassVar[str] = "net-label"
    name_prefix: ClassVar[str] = "NET"

    id: str
    name: str
    x: float
    y: float
    pins: list[Pin] = field(default_factory=list)
    rotation: int = 0                       # 0, 90, 180, 270
    anchor_side: AnchorSide = "left"


Component = Union[Chip, Passive, NetLabel]


@dataclass
class Junction:
    id: str
    x: float
    y: float


# ── Connection endpoints ───────────────────────────────────────────


@dataclass(frozen=True)
class PinRef:
    """Endpoint on a component pin."""

    component_id: str
    pin_id: str


@dataclass(frozen=True)
class JunctionRef:
    """Endpoint on a free junction."""

    junction_id: str


@dataclass(frozen=True)
class UnresolvedRef:
    """Placeholder for an endpoint an imported document could not bind."""

    label: str


Endpoint = Union[PinRef, JunctionRef, UnresolvedRef]


@dataclass
class Connection:
    """A wire between two endpoints.

    ``path[0]`` and ``path[-1]`` always sit on the resolved endpoints;
    the points in between are user-placed waypoints.
    """

    id: str
    source: Endpoint
    target: Endpoint
    path: list[tuple[float, float]] = field(default_factory=list)
    label: str = ""

    @property
    def is_dangling(self) -> bool:
        return isinstance(self.source, UnresolvedRef) or isinstance(self.target, UnresolvedRef)

    def references_component(self, component_id: str) -> bool:
        return any(
            isinstance(ep, PinRef) and ep.component_id == component_id
            for ep in (self.source, self.target)
        )

    def references_junction(self, junction_id: str) -> bool:
        return any(
            isinstance(ep, JunctionRef) and ep.junction_id == junction_id
            for ep in (self.source, self.target)
        )


# ── Aggregate ──────────────────────────────────────────────────────


@dataclass
class NameCounters:
    """Next number to hand out per designator prefix."""

    chip: int = 1
    passive: int = 1
    net_label: int = 1
    junction: int = 1


@dataclass
class Layout:
    """Everything on the sheet; the unit of export and import."""

    components: list[Component] = field(default_factory=list)
    junctions: list[Junction] = field(default_factory=list)
    connections: list[Connection] = field(default_factory=list)
    counters: NameCounters = field(default_factory=NameCounters)

    def component(self, component_id: str) -> Component | None:
        return next((c for c in self.components if c.id == component_id), None)

    def junction(self, junction_id: str) -> Junction | None:
        return next((j for j in self.junctions if j.id == junction_id), None)

    def connection(self, connection_id: str) -> Connection | None:
        return next((c for c in self.connections if c.id == connection_id), None)

    def chips(self) -> list[Chip]:
        return [c for c in self.components if isinstance(c, Chip)]

    def passives(self) -> list[Passive]:
        return [c for c in self.components if isinstance(c, Passive)]

    def net_labels(self) -> list[NetLabel]:
        return [c for c in self.components if isinstance(c, NetLabel)]
