"""Pydantic schemas for the two interchange document shapes.

One permissive model set covers both versions; the shapes differ only
in which optional fields are present:

  canonical  boxes carry a ``pins`` coordinate array; path endpoints
             carry ``pinNumber`` or ``netLabelId``/``netId``
  legacy     boxes carry only per-side counts; net labels carry
             ``netName``/``rotation``; paths carry ``pathId``

Y is up-positive in both.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _DocModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class PinDoc(_DocModel):
    pin_number: int = Field(alias="pinNumber")
    x: float
    y: float


class BoxDoc(_DocModel):
    box_id: str | None = Field(None, alias="boxId")
    name: str | None = None                 # legacy only
    left_pin_count: int = Field(0, alias="leftPinCount")
    right_pin_count: int = Field(0, alias="rightPinCount")
    top_pin_count: int = Field(0, alias="topPinCount")
    bottom_pin_count: int = Field(0, alias="bottomPinCount")
    center_x: float = Field(alias="centerX")
    center_y: float = Field(alias="centerY")
    pins: list[PinDoc] | None = None        # canonical only

    def pin_counts(self) -> tuple[int, int, int, int]:
        """(left, right, top, bottom)."""
        return (self.left_pin_count, self.right_pin_count,
                self.top_pin_count, self.bottom_pin_count)


class NetLabelDoc(_DocModel):
    net_id: str | None = Field(None, alias="netId")             # canonical
    net_label_id: str | None = Field(None, alias="netLabelId")
    net_name: str | None = Field(None, alias="netName")         # legacy
    anchor_position: str = Field("left", alias="anchorPosition")
    rotation: int = 0
    x: float
    y: float


class EndpointDoc(_DocModel):
    box_id: str | None = Field(None, alias="boxId")
    pin_number: int | None = Field(None, alias="pinNumber")
    junction_id: str | None = Field(None, alias="junctionId")
    net_label_id: str | None = Field(None, alias="netLabelId")
    net_id: str | None = Field(None, alias="netId")


class PointDoc(_DocModel):
    x: float
    y: float


class PathDoc(_DocModel):
    path_id: str | None = Field(None, alias="pathId")           # legacy
    points: list[PointDoc] = Field(default_factory=list)
    source: EndpointDoc = Field(alias="from")
    target: EndpointDoc = Field(alias="to")


class JunctionDoc(_DocModel):
    junction_id: str | None = Field(None, alias="junctionId")
    x: float
    y: float


class LayoutDocument(_DocModel):
    """Top level of either document version; all four arrays are required."""

    boxes: list[BoxDoc]
    net_labels: list[NetLabelDoc] = Field(alias="netLabels")
    paths: list[PathDoc]
    junctions: list[JunctionDoc]
