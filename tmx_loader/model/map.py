"""
The map - root of the loaded model.

=============================================================================
GLOBAL TILE IDs (GIDs)
=============================================================================

Tiles are referenced by Global IDs across all tilesets:

    Tileset A (firstgid=1):   tiles 1-49
    Tileset B (firstgid=50):  tiles 50-119
    Tileset C (firstgid=120): tiles 120-...

    GID 0   = empty cell (no tileset)
    GID 60  = tile 10 of tileset B (60 - 50)

A GID belongs to the tileset with the largest firstgid <= gid. Tilesets
are kept sorted by firstgid so the lookup is a binary search.

=============================================================================
"""

import bisect
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

from ..errors import GidLookupError
from .layers import Layer, LayerKind, LayerVisitor
from .properties import Properties
from .tileset import Rect, TileSet


class Orientation(Enum):
    UNKNOWN = "unknown"
    ORTHOGONAL = "orthogonal"
    ISOMETRIC = "isometric"
    STAGGERED = "staggered"
    HEXAGONAL = "hexagonal"


class RenderOrder(Enum):
    RIGHT_DOWN = "right-down"
    RIGHT_UP = "right-up"
    LEFT_DOWN = "left-down"
    LEFT_UP = "left-up"


class StaggerAxis(Enum):
    X = "x"
    Y = "y"


class StaggerIndex(Enum):
    ODD = "odd"
    EVEN = "even"


@dataclass(frozen=True)
class TiledMap:
    """
    Complete Tiled map: metadata, tilesets and layers.

    ==========================================================================
    USAGE
    ==========================================================================

    Loading:
        tiled_map = TiledMap.load("level1.tmx")
        if tiled_map is None:
            ...  # details are in the log

    Resolving a cell to a sheet rectangle:
        cell = ground.cell_at(5, 10)
        if not cell.is_empty:
            tileset, local_id, rect = tiled_map.tile_coords_for_gid(cell.gid)

    ==========================================================================
    """
    version: str = "1.0"                             # TMX format version
    orientation: Orientation = Orientation.ORTHOGONAL
    width: int = 0                                   # Map width in tiles
    height: int = 0                                  # Map height in tiles
    tilewidth: int = 0                               # Tile width in pixels
    tileheight: int = 0                              # Tile height in pixels
    backgroundcolor: str = "#FFFFFF"
    renderorder: RenderOrder = RenderOrder.RIGHT_DOWN
    hexsidelength: int = 0                           # Hexagonal maps only
    staggeraxis: StaggerAxis = StaggerAxis.Y         # Staggered/hexagonal
    staggerindex: StaggerIndex = StaggerIndex.ODD    # Staggered/hexagonal
    nextobjectid: int = 0
    properties: Properties = field(default_factory=Properties, compare=False)
    tilesets: Tuple[TileSet, ...] = ()
    layers: Tuple[Layer, ...] = ()
    path: Optional[Path] = None                      # TMX file it came from
    _firstgids: List[int] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        # sorted() is stable: tilesets sharing a firstgid keep document order
        ordered = tuple(sorted(self.tilesets, key=lambda ts: ts.firstgid))
        object.__setattr__(self, 'tilesets', ordered)
        object.__setattr__(self, '_firstgids', [ts.firstgid for ts in ordered])

    @classmethod
    def load(cls, filepath: Union[str, Path], **kwargs) -> Optional['TiledMap']:
        """
        Load a TMX file from disk.

        Returns None if the map cannot be loaded; the reason is logged.
        Keyword arguments are passed on to Parser.
        """
        from ..parser import Parser
        return Parser(filepath, **kwargs).parse()

    # =========================================================================
    # TILESETS
    # =========================================================================

    def tileset_for_gid(self, gid: int) -> TileSet:
        """
        Find the tileset owning a GID.

        Parameters:
        -----------
        gid : int
            Global tile id with flip flags already cleared

        Raises:
        -------
        GidLookupError : gid is 0 (empty cell) or below every firstgid
        """
        if gid <= 0:
            raise GidLookupError(f"GID {gid} does not reference a tile")

        index = bisect.bisect_right(self._firstgids, gid) - 1
        if index < 0:
            raise GidLookupError(f"No tileset contains GID {gid}")

        return self.tilesets[index]

    def tile_coords_for_gid(self, gid: int) -> Tuple[TileSet, int, Rect]:
        """
        Resolve a GID to (tileset, local id, rectangle in the spritesheet).

        Only meaningful for spritesheet tilesets; image collection tiles are
        drawn whole from tileset.get_tile(local_id).image.
        """
        tileset = self.tileset_for_gid(gid)
        local_id = gid - tileset.firstgid
        return tileset, local_id, tileset.get_coords(local_id)

    # =========================================================================
    # LAYERS
    # =========================================================================

    def iter_layers(self, kind: Optional[LayerKind] = None) -> Iterator[Layer]:
        """Iterate layers in document order, optionally of a single kind."""
        for layer in self.layers:
            if kind is None or layer.kind is kind:
                yield layer

    def get_layer_by_name(self, name: str) -> Optional[Layer]:
        for layer in self.layers:
            if layer.name == name:
                return layer
        return None

    def visit_layers(self, visitor: LayerVisitor) -> None:
        for layer in self.layers:
            layer.accept(self, visitor)
