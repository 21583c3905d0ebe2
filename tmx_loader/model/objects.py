"""
Objects placed in object layers.

=============================================================================
OBJECT KINDS
=============================================================================

The TMX format fixes five kinds, told apart by what the <object> element
contains (checked in this order):

    <polygon points="..."/> child   → Polygon
    <polyline points="..."/> child  → Polyline
    gid="..." attribute             → TileObject
    <ellipse/> child                → Ellipse
    anything else                   → Rectangle

Rectangle and Ellipse are "boxed" (width/height). Polygon and Polyline
carry a point list relative to the object origin. TileObject displays a
tile and carries the same flip flags as a tile layer cell.

=============================================================================
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Tuple

from .properties import Properties


class ObjectKind(Enum):
    RECTANGLE = "rectangle"
    ELLIPSE = "ellipse"
    POLYLINE = "polyline"
    POLYGON = "polygon"
    TILE = "tile"


Point = Tuple[float, float]


@dataclass(frozen=True)
class MapObject:
    """Fields shared by every object kind."""
    kind: ClassVar[ObjectKind]

    id: int = 0                                      # Unique object ID
    name: str = ""                                   # Object name
    type: str = ""                                   # Object type/class
    x: float = 0                                     # Origin X (pixels)
    y: float = 0                                     # Origin Y (pixels)
    rotation: float = 0                              # Degrees, clockwise
    visible: bool = True
    properties: Properties = field(default_factory=Properties, compare=False)

    @property
    def origin(self) -> Point:
        return (self.x, self.y)


@dataclass(frozen=True)
class Rectangle(MapObject):
    kind: ClassVar[ObjectKind] = ObjectKind.RECTANGLE

    width: float = 0
    height: float = 0


@dataclass(frozen=True)
class Ellipse(MapObject):
    kind: ClassVar[ObjectKind] = ObjectKind.ELLIPSE

    width: float = 0
    height: float = 0


@dataclass(frozen=True)
class Polyline(MapObject):
    """Open path; points are relative to the object origin."""
    kind: ClassVar[ObjectKind] = ObjectKind.POLYLINE

    points: Tuple[Point, ...] = ()


@dataclass(frozen=True)
class Polygon(MapObject):
    """Closed path; points are relative to the object origin."""
    kind: ClassVar[ObjectKind] = ObjectKind.POLYGON

    points: Tuple[Point, ...] = ()


@dataclass(frozen=True)
class TileObject(MapObject):
    """
    Object displaying a tile.

    gid has its flip bits already cleared; width/height are the displayed
    size, 0 when the document leaves them to the tile size.
    """
    kind: ClassVar[ObjectKind] = ObjectKind.TILE

    gid: int = 0
    hflip: bool = False
    vflip: bool = False
    dflip: bool = False
    width: float = 0
    height: float = 0
