"""
Map layers: tile grids, object groups and image layers.

=============================================================================
LAYER KINDS
=============================================================================

    <layer>        → TileLayer    width × height Cells, row-major
    <objectgroup>  → ObjectLayer  ordered MapObjects
    <imagelayer>   → ImageLayer   one Image

The set is closed. Code that needs to handle every kind either switches on
layer.kind or implements a LayerVisitor:

    class Printer(LayerVisitor):
        def visit_tile_layer(self, tiled_map, layer):
            print(layer.name, len(layer.cells))

    tiled_map.visit_layers(Printer())

=============================================================================
CELL ACCESS
=============================================================================

Cells are stored row-major, so the cell at column x, row y is:

    cells[y * width + x]

GID 0 = empty cell.

=============================================================================
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, ClassVar, NamedTuple, Optional, Tuple

import numpy as np

from .objects import MapObject
from .properties import Properties
from .tileset import Image

if TYPE_CHECKING:
    from .map import TiledMap


class Cell(NamedTuple):
    """One square of a tile layer: a GID plus its flip flags."""
    gid: int
    hflip: bool = False
    vflip: bool = False
    dflip: bool = False

    @property
    def is_empty(self) -> bool:
        return self.gid == 0


EMPTY_CELL = Cell(0)


class LayerKind(Enum):
    TILE = "layer"
    OBJECT = "objectgroup"
    IMAGE = "imagelayer"


class DrawOrder(Enum):
    """Object drawing order inside an object layer."""
    TOP_DOWN = "topdown"   # Sorted by y coordinate
    INDEX = "index"        # Document order


@dataclass(frozen=True)
class Layer:
    """Fields shared by every layer kind."""
    kind: ClassVar[LayerKind]

    name: str = ""
    opacity: float = 1.0                             # 0.0 invisible, 1.0 opaque
    visible: bool = True
    properties: Properties = field(default_factory=Properties, compare=False)

    def accept(self, tiled_map: 'TiledMap', visitor: 'LayerVisitor') -> None:
        """Dispatch to the visitor method matching this layer's kind."""
        if self.kind is LayerKind.TILE:
            visitor.visit_tile_layer(tiled_map, self)
        elif self.kind is LayerKind.OBJECT:
            visitor.visit_object_layer(tiled_map, self)
        elif self.kind is LayerKind.IMAGE:
            visitor.visit_image_layer(tiled_map, self)
        else:
            raise TypeError(f"Unknown layer kind: {self.kind}")


@dataclass(frozen=True)
class TileLayer(Layer):
    """Grid of tile cells; always exactly width × height cells."""
    kind: ClassVar[LayerKind] = LayerKind.TILE

    width: int = 0                                   # Width in tiles
    height: int = 0                                  # Height in tiles
    cells: Tuple[Cell, ...] = ()

    def cell_at(self, x: int, y: int) -> Cell:
        """
        Cell at column x, row y.

        Out of bounds positions read as the empty cell.
        """
        if 0 <= x < self.width and 0 <= y < self.height:
            return self.cells[y * self.width + x]
        return EMPTY_CELL

    def gid_grid(self) -> np.ndarray:
        """
        GIDs (flip flags cleared) as an array of shape (height, width).

        Index as grid[y, x].
        """
        grid = np.fromiter((cell.gid for cell in self.cells),
                           dtype=np.uint32, count=len(self.cells))
        return grid.reshape((self.height, self.width))


@dataclass(frozen=True)
class ObjectLayer(Layer):
    kind: ClassVar[LayerKind] = LayerKind.OBJECT

    color: str = ""                                  # Display color (#RRGGBB)
    draw_order: DrawOrder = DrawOrder.TOP_DOWN
    objects: Tuple[MapObject, ...] = ()


@dataclass(frozen=True)
class ImageLayer(Layer):
    kind: ClassVar[LayerKind] = LayerKind.IMAGE

    image: Optional[Image] = None


class LayerVisitor:
    """
    Visitor over the three layer kinds.

    Every method defaults to doing nothing, so a visitor only overrides the
    kinds it cares about.
    """

    def visit_tile_layer(self, tiled_map: 'TiledMap', layer: TileLayer) -> None:
        pass

    def visit_object_layer(self, tiled_map: 'TiledMap',
                           layer: ObjectLayer) -> None:
        pass

    def visit_image_layer(self, tiled_map: 'TiledMap',
                          layer: ImageLayer) -> None:
        pass
