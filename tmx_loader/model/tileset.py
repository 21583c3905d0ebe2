"""
Tilesets, tiles, terrains and images.

=============================================================================
TILESET TYPES
=============================================================================

1. SPRITESHEET TILESET (most common):
   One image divided into a grid of equally sized tiles.

   +---+---+---+---+
   | 0 | 1 | 2 | 3 |
   +---+---+---+---+
   | 4 | 5 | 6 | 7 |
   +---+---+---+---+

   The pixel rectangle of a tile is computed from its local id, the tile
   size, the margin and the spacing (see coords_for_local_id).

2. IMAGE COLLECTION TILESET:
   No tileset image; each <tile> carries its own <image>.

Nothing stops a malformed document from supplying both. Renderers should
prefer the spritesheet image when present.

=============================================================================
SPACING AND MARGIN
=============================================================================

    margin  = pixels around the EDGE of the whole image
    spacing = pixels BETWEEN two adjacent tiles

    +--+===+=+===+=+===+--+
    |  | 0 | | 1 | | 2 |  |   <- margin on both sides
    +--+===+=+===+=+===+--+
             ^
             spacing

    columns = (image_width  - 2*margin + spacing) // (tilewidth  + spacing)
    rows    = (image_height - 2*margin + spacing) // (tileheight + spacing)

=============================================================================
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, NamedTuple, Optional, Tuple

from PIL import Image as PILImage

from ..errors import TileCoordsError
from .properties import Properties


class Size(NamedTuple):
    """Size of an image in pixels."""
    width: int
    height: int


class Rect(NamedTuple):
    """Portion of an image: top-left corner plus size, in pixels."""
    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True)
class Image:
    """
    Image file referenced by a tileset, a tile or an image layer.

    source is already resolved against the directory of the document that
    declared it (the TSX for external tilesets, the TMX otherwise). It is
    None when the <image> element has no source attribute.
    width/height are 0 when the document does not declare them.
    """
    source: Optional[Path]               # Resolved path to the image file
    format: str = ""                     # Format hint ("png", ...)
    trans: Optional[str] = None          # Transparent color (RRGGBB)
    width: int = 0                       # Declared width (pixels)
    height: int = 0                      # Declared height (pixels)

    @property
    def has_size(self) -> bool:
        return self.width > 0 and self.height > 0

    @property
    def size(self) -> Size:
        return Size(self.width, self.height)

    def probe_size(self) -> Size:
        """
        Read the real pixel size from the image file.

        Only the header is parsed; pixel data is not decoded.

        Raises:
        -------
        OSError : file missing or not a recognised image format
        ValueError : the image has no source
        """
        if self.source is None:
            raise ValueError("Image has no source file")
        with PILImage.open(self.source) as img:
            return Size(*img.size)

    def resolved_size(self) -> Size:
        """Declared size if present, otherwise the size read from disk."""
        if self.has_size:
            return self.size
        return self.probe_size()


@dataclass(frozen=True)
class Terrain:
    """Terrain type declared in <terraintypes>."""
    name: str
    tile: int                            # Local id of the representative tile
    properties: Properties = field(default_factory=Properties, compare=False)


@dataclass(frozen=True)
class TileOffset:
    """Drawing offset applied to every tile of a tileset."""
    x: int = 0
    y: int = 0


# Corner terrain order in the 'terrain' attribute
TOP_LEFT, TOP_RIGHT, BOTTOM_LEFT, BOTTOM_RIGHT = range(4)

NO_TERRAIN: Tuple[Optional[int], ...] = (None, None, None, None)


@dataclass(frozen=True)
class Tile:
    """
    Per-tile metadata inside a tileset.

    Only tiles with something to say (properties, terrain, an image) are
    listed in a TSX, so most local ids have no Tile object.

    terrain holds four corner indices into TileSet.terrains, None for a
    corner without terrain:

        terrain="0,0,,1"  →  (0, 0, None, 1)
    """
    id: int                                          # Local id (within tileset)
    terrain: Tuple[Optional[int], ...] = NO_TERRAIN  # TL, TR, BL, BR
    probability: float = 1.0                         # Terrain brush weight
    image: Optional[Image] = None                    # Image collection tiles
    properties: Properties = field(default_factory=Properties, compare=False)

    @property
    def top_left_terrain(self) -> Optional[int]:
        return self.terrain[TOP_LEFT]

    @property
    def top_right_terrain(self) -> Optional[int]:
        return self.terrain[TOP_RIGHT]

    @property
    def bottom_left_terrain(self) -> Optional[int]:
        return self.terrain[BOTTOM_LEFT]

    @property
    def bottom_right_terrain(self) -> Optional[int]:
        return self.terrain[BOTTOM_RIGHT]

    @property
    def has_image(self) -> bool:
        return self.image is not None


def coords_for_local_id(local_id: int, image_size: Size, tile_width: int,
                        tile_height: int, margin: int = 0,
                        spacing: int = 0) -> Rect:
    """
    Compute the pixel rectangle of a tile inside a spritesheet.

    Parameters:
    -----------
    local_id : int
        Tile index within the tileset (gid - firstgid)
    image_size : Size
        Size of the spritesheet in pixels
    tile_width, tile_height : int
        Tile size in pixels
    margin, spacing : int
        See module docstring

    Returns:
    --------
    Rect : (x, y, tile_width, tile_height)

    Example:
    --------
    256x128 image, 32x32 tiles → 8 columns, 4 rows
    local id 9 → row 1, column 1 → Rect(32, 32, 32, 32)

    Raises:
    -------
    TileCoordsError : the image holds no full column, or the id falls below
                      the last row of the image
    """
    step_x = tile_width + spacing
    step_y = tile_height + spacing

    if step_x <= 0 or step_y <= 0:
        raise TileCoordsError(
            f"Invalid tile size {tile_width}x{tile_height} "
            f"with spacing {spacing}"
        )

    columns = (image_size.width - 2 * margin + spacing) // step_x
    rows = (image_size.height - 2 * margin + spacing) // step_y

    if columns <= 0:
        raise TileCoordsError(
            f"Image {image_size.width}x{image_size.height} is too small "
            f"for {tile_width}x{tile_height} tiles"
        )

    row, col = divmod(local_id, columns)

    if local_id < 0 or row >= rows:
        raise TileCoordsError(
            f"Tile {local_id} is outside the image: row {row} but the "
            f"image only holds {rows} rows"
        )

    return Rect(
        x=margin + col * step_x,
        y=margin + row * step_y,
        width=tile_width,
        height=tile_height,
    )


@dataclass(frozen=True)
class TileSet:
    """
    A named collection of tiles owning the GID range starting at firstgid.

    ==========================================================================
    EMBEDDED vs EXTERNAL TILESETS
    ==========================================================================

    EMBEDDED: the definition is inside the TMX file
        <tileset firstgid="1" name="terrain" tilewidth="32" ...>
            <image source="terrain.png"/>
        </tileset>

    EXTERNAL (TSX): the TMX only references a separate file
        <tileset firstgid="1" source="tilesets/terrain.tsx"/>

    Both end up as the same TileSet. For external tilesets 'source' holds
    the resolved TSX path and image paths are relative to the TSX.

    ==========================================================================
    """
    firstgid: int                                    # First Global ID
    name: str = ""                                   # Tileset name
    tilewidth: int = 0                               # Tile width in pixels
    tileheight: int = 0                              # Tile height in pixels
    spacing: int = 0                                 # Pixels between tiles
    margin: int = 0                                  # Pixels around edge
    tilecount: Optional[int] = None                  # Declared tile count
    offset: Optional[TileOffset] = None              # <tileoffset>
    image: Optional[Image] = None                    # Spritesheet image
    terrains: Tuple[Terrain, ...] = ()
    tiles: Tuple[Tile, ...] = ()
    properties: Properties = field(default_factory=Properties, compare=False)
    source: Optional[Path] = None                    # TSX path (if external)
    _tiles_by_id: Dict[int, Tile] = field(init=False, repr=False,
                                          compare=False)

    def __post_init__(self):
        index: Dict[int, Tile] = {}
        for tile in self.tiles:
            index.setdefault(tile.id, tile)
        object.__setattr__(self, '_tiles_by_id', index)

    @property
    def has_image(self) -> bool:
        return self.image is not None

    @property
    def is_image_collection(self) -> bool:
        return self.image is None and any(t.has_image for t in self.tiles)

    @property
    def is_external(self) -> bool:
        return self.source is not None

    def get_tile(self, local_id: int) -> Optional[Tile]:
        """Tile metadata for a local id, or None if the tileset has none."""
        return self._tiles_by_id.get(local_id)

    def image_size(self) -> Size:
        """
        Size of the spritesheet image, declared or read from disk.

        Raises:
        -------
        ValueError : the tileset has no spritesheet image
        """
        if self.image is None:
            raise ValueError(f"Tileset {self.name!r} has no image")
        return self.image.resolved_size()

    def get_coords(self, local_id: int, size: Optional[Size] = None) -> Rect:
        """
        Pixel rectangle of a tile inside this tileset's spritesheet.

        Parameters:
        -----------
        local_id : int
            gid - firstgid
        size : Size, optional
            Spritesheet size; defaults to image_size()
        """
        if size is None:
            size = self.image_size()
        return coords_for_local_id(local_id, size, self.tilewidth,
                                   self.tileheight, self.margin, self.spacing)
