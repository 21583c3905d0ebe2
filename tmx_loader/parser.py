"""
Builds a TiledMap from a TMX file.

=============================================================================
PARSE FLOW
=============================================================================

One depth-first pass over the map document:

    <map>                       → TiledMap attributes, properties
    ├── <tileset>*              → TilesetResolver (embedded or TSX)
    │   ├── <tileoffset>
    │   ├── <image>
    │   ├── <terraintypes>/<terrain>*
    │   └── <tile>*
    ├── <layer>                 → TileLayer   (cells via data.decode_data)
    ├── <objectgroup>           → ObjectLayer (objects, kind by content)
    └── <imagelayer>            → ImageLayer

=============================================================================
ERROR POLICY
=============================================================================

    missing mandatory attribute   → logged, default used, parse continues
    several children where one    → logged, first one used
      was expected
    unexpected firstgid/source    → logged, ignored
      on a TSX root
    malformed tile payload        → DecodeError, whole load fails
    unreadable TMX or TSX         → UnreadableFileError, whole load fails

Parser.parse() turns any failure into a None result (after logging it).
Parser.parse_or_raise() lets the exception through.

=============================================================================
"""

import logging
from pathlib import Path
from typing import (
    Callable, Dict, List, Optional, Tuple, Type, TypeVar, Union
)

from .data import decode_data, decode_gid, parse_gid
from .errors import DecodeError, TmxError, UnreadableFileError
from .model.layers import (
    EMPTY_CELL, DrawOrder, ImageLayer, Layer, ObjectLayer, TileLayer
)
from .model.map import (
    Orientation, RenderOrder, StaggerAxis, StaggerIndex, TiledMap
)
from .model.objects import (
    Ellipse, MapObject, Point, Polygon, Polyline, Rectangle, TileObject
)
from .model.properties import Properties
from .model.tileset import Image, Terrain, Tile, TileOffset, TileSet
from .nodes import (
    Logger, NodeAccessor, Requirement, parse_document, read_file_bytes
)
from .tilesets import TilesetResolver

E = TypeVar('E')

OPTIONAL = Requirement.OPTIONAL


class Parser:
    """
    Loader for one TMX file.

    Parameters:
    -----------
    path : str or Path
        The .tmx file
    logger : logging.Logger, optional
        Where diagnostics go; defaults to this module's logger
    reader : callable(path) → bytes, optional
        Reads the TMX and any TSX it references; defaults to reading
        from disk

    A Parser holds the relative-path state of a single load. Create one
    per map.
    """

    def __init__(self, path: Union[str, Path], logger: Optional[Logger] = None,
                 reader: Optional[Callable[[Path], bytes]] = None):
        self.path = Path(path)
        self.logger = logger or logging.getLogger(__name__)
        self.reader = reader if reader is not None else read_file_bytes
        self.tilesets = TilesetResolver(self.path.parent, self.build_tileset,
                                        self.reader, self.logger)

    def parse(self) -> Optional[TiledMap]:
        """
        Load the map.

        Returns:
        --------
        TiledMap, or None if the file or one of its tilesets cannot be read
        or holds a malformed tile payload. The reason is logged.
        """
        try:
            return self.parse_or_raise()
        except TmxError as e:
            self.logger.error("Unable to load TMX file %s: %s", self.path, e)
            return None

    def parse_or_raise(self) -> TiledMap:
        """
        Load the map, raising on failure.

        Raises:
        -------
        UnreadableFileError : TMX or TSX cannot be read or parsed
        DecodeError : malformed tile payload
        """
        self.logger.debug("Loading TMX: %s", self.path)
        root = self.node(parse_document(self.path, self.reader))

        if not root.is_tag('map'):
            raise UnreadableFileError(
                self.path, f"root element is <{root.tag}>, expected <map>"
            )

        return self.build_map(root)

    def node(self, elem) -> NodeAccessor:
        return NodeAccessor(elem, self.logger)

    # =========================================================================
    # MAP
    # =========================================================================

    def build_map(self, node: NodeAccessor) -> TiledMap:
        width = node.get_uint('width')
        height = node.get_uint('height')

        tilesets = [self.tilesets.resolve(child)
                    for child in node.children('tileset')]

        layers: List[Layer] = []
        for child in node.children():
            if child.is_tag('layer'):
                layers.append(self.build_tile_layer(child, width, height))
            elif child.is_tag('objectgroup'):
                layers.append(self.build_object_layer(child))
            elif child.is_tag('imagelayer'):
                layers.append(self.build_image_layer(child))
            elif child.is_tag('group'):
                self.logger.warning(
                    "Layer groups are not supported, skipping group %r",
                    child.get_string('name', OPTIONAL)
                )

        return TiledMap(
            version=node.get_string('version', OPTIONAL, "1.0"),
            orientation=self.enum_attribute(node, 'orientation', Orientation,
                                            Orientation.UNKNOWN,
                                            Requirement.MANDATORY),
            width=width,
            height=height,
            tilewidth=node.get_uint('tilewidth'),
            tileheight=node.get_uint('tileheight'),
            backgroundcolor=node.get_string('backgroundcolor', OPTIONAL,
                                            "#FFFFFF"),
            renderorder=self.enum_attribute(node, 'renderorder', RenderOrder,
                                            RenderOrder.RIGHT_DOWN),
            hexsidelength=node.get_uint('hexsidelength', OPTIONAL),
            staggeraxis=self.enum_attribute(node, 'staggeraxis', StaggerAxis,
                                            StaggerAxis.Y),
            staggerindex=self.enum_attribute(node, 'staggerindex',
                                             StaggerIndex, StaggerIndex.ODD),
            nextobjectid=node.get_uint('nextobjectid', OPTIONAL),
            properties=self.build_properties(node),
            tilesets=tuple(tilesets),
            layers=tuple(layers),
            path=self.path,
        )

    def enum_attribute(self, node: NodeAccessor, name: str, enum_cls: Type[E],
                       default: E, req: Requirement = OPTIONAL) -> E:
        """
        Read an attribute restricted to the values of 'enum_cls'.

        Unknown strings are logged and replaced by 'default'.
        """
        raw = node.get_string(name, req, None)
        if raw is None:
            return default
        try:
            return enum_cls(raw)
        except ValueError:
            self.logger.error("Wrong %s string: %r (in <%s>)",
                              name, raw, node.tag)
            return default

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    def build_properties(self, node: NodeAccessor) -> Properties:
        """
        Collect the <properties> block of an element.

        The first occurrence of a name wins; duplicates are logged and
        dropped.
        """
        block = node.one_child('properties')
        if block is None:
            return Properties()

        items: Dict[str, str] = {}

        for prop in block.children('property'):
            name = prop.get_string('name')
            if not name:
                self.logger.error("Property without a name (in <%s>)", node.tag)
                continue

            # Multi-line values are stored as element text instead
            if not prop.has_attribute('value') and prop.text().strip():
                value = prop.text()
            else:
                value = prop.get_string('value')

            if name in items:
                self.logger.warning(
                    "Duplicate property %r ignored (in <%s>)", name, node.tag
                )
                continue
            items[name] = value

        return Properties(items.items())

    # =========================================================================
    # TILESETS
    # =========================================================================

    def build_image(self, node: NodeAccessor) -> Image:
        source = node.get_string('source')
        # None when the document gives no source
        resolved = self.tilesets.resolve_path(source) if source else None

        if node.has_child('data'):
            self.logger.warning("Embedded image data is not supported")

        return Image(
            source=resolved,
            format=node.get_string('format', OPTIONAL),
            trans=node.get_string('trans', OPTIONAL, None),
            width=node.get_uint('width', OPTIONAL),
            height=node.get_uint('height', OPTIONAL),
        )

    def optional_image(self, node: NodeAccessor) -> Optional[Image]:
        """Image built from the <image> child of node, if it has one."""
        image_node = node.one_child('image')
        if image_node is None:
            return None
        return self.build_image(image_node)

    def build_terrain(self, node: NodeAccessor) -> Terrain:
        return Terrain(
            name=node.get_string('name'),
            # Tiled writes tile="-1" for a terrain without a representative
            tile=node.get_int('tile', default=-1),
            properties=self.build_properties(node),
        )

    def parse_terrain_corners(self, raw: str) -> Tuple[Optional[int], ...]:
        """
        Parse a 'terrain' attribute into four corner indices.

            "0,0,,1"  →  (0, 0, None, 1)
        """
        corners: List[Optional[int]] = [None, None, None, None]

        items = raw.split(',')
        if len(items) > 4:
            self.logger.error("Too many terrain corners: %r", raw)

        for i, item in enumerate(items[:4]):
            item = item.strip()
            if not item:
                continue
            try:
                corners[i] = int(item)
            except ValueError:
                self.logger.error("Invalid terrain corner: %r", raw)

        return tuple(corners)

    def build_tile(self, node: NodeAccessor) -> Tile:
        return Tile(
            id=node.get_uint('id'),
            terrain=self.parse_terrain_corners(
                node.get_string('terrain', OPTIONAL)
            ),
            probability=node.get_float('probability', OPTIONAL, 1.0),
            image=self.optional_image(node),
            properties=self.build_properties(node),
        )

    def build_tileset(self, firstgid: int, node: NodeAccessor,
                      source: Optional[Path] = None) -> TileSet:
        """
        Build a tileset from an element holding its full definition.

        'node' is either the <tileset> of the map or the root of a TSX; in
        the latter case relative paths are already rebased on the TSX.
        """
        offset = None
        offset_node = node.one_child('tileoffset')
        if offset_node is not None:
            offset = TileOffset(offset_node.get_int('x'),
                                offset_node.get_int('y'))

        terrains: List[Terrain] = []
        terrain_types = node.one_child('terraintypes')
        if terrain_types is not None:
            terrains = [self.build_terrain(child)
                        for child in terrain_types.children('terrain')]

        tilecount = None
        if node.has_attribute('tilecount'):
            tilecount = node.get_uint('tilecount', OPTIONAL)

        return TileSet(
            firstgid=firstgid,
            name=node.get_string('name', OPTIONAL),
            tilewidth=node.get_uint('tilewidth', OPTIONAL),
            tileheight=node.get_uint('tileheight', OPTIONAL),
            spacing=node.get_uint('spacing', OPTIONAL),
            margin=node.get_uint('margin', OPTIONAL),
            tilecount=tilecount,
            offset=offset,
            image=self.optional_image(node),
            terrains=tuple(terrains),
            tiles=self.build_tiles(node),
            properties=self.build_properties(node),
            source=source,
        )

    def build_tiles(self, node: NodeAccessor) -> Tuple[Tile, ...]:
        """Build the <tile> children; a repeated id keeps its first entry."""
        tiles: Dict[int, Tile] = {}
        for child in node.children('tile'):
            tile = self.build_tile(child)
            if tile.id in tiles:
                self.logger.warning(
                    "Duplicate tile id %d ignored (in tileset %r)",
                    tile.id, node.get_string('name', OPTIONAL)
                )
                continue
            tiles[tile.id] = tile
        return tuple(tiles.values())

    # =========================================================================
    # LAYERS
    # =========================================================================

    def layer_shell(self, node: NodeAccessor) -> dict:
        """Attributes shared by every layer kind."""
        return dict(
            name=node.get_string('name'),
            opacity=node.get_float('opacity', OPTIONAL, 1.0),
            visible=node.get_bool('visible', OPTIONAL, True),
            properties=self.build_properties(node),
        )

    def build_tile_layer(self, node: NodeAccessor, map_width: int,
                         map_height: int) -> TileLayer:
        shell = self.layer_shell(node)

        # Layers are normally the size of the map
        width = node.get_uint('width', OPTIONAL, map_width)
        height = node.get_uint('height', OPTIONAL, map_height)

        data = node.one_child('data')
        if data is not None:
            cells = decode_data(data, width, height)
        else:
            self.logger.warning("Tile layer %r has no <data>", shell['name'])
            cells = (EMPTY_CELL,) * (width * height)

        return TileLayer(width=width, height=height, cells=cells, **shell)

    def build_object_layer(self, node: NodeAccessor) -> ObjectLayer:
        shell = self.layer_shell(node)

        return ObjectLayer(
            color=node.get_string('color', OPTIONAL),
            draw_order=self.enum_attribute(node, 'draworder', DrawOrder,
                                           DrawOrder.TOP_DOWN),
            objects=tuple(self.build_object(child)
                          for child in node.children('object')),
            **shell
        )

    def build_image_layer(self, node: NodeAccessor) -> ImageLayer:
        shell = self.layer_shell(node)

        return ImageLayer(
            image=self.optional_image(node),
            **shell
        )

    # =========================================================================
    # OBJECTS
    # =========================================================================

    def parse_points(self, raw: str) -> Tuple[Point, ...]:
        """
        Parse a 'points' attribute.

            "0,0 32,0 32,-16.5"  →  ((0.0, 0.0), (32.0, 0.0), (32.0, -16.5))

        Raises:
        -------
        DecodeError : a point is not an "x,y" pair of numbers
        """
        points = []
        for item in raw.split():
            coords = item.split(',')
            if len(coords) != 2:
                raise DecodeError(f"Invalid point {item!r} in {raw!r}")
            try:
                points.append((float(coords[0]), float(coords[1])))
            except ValueError as e:
                raise DecodeError(f"Invalid point {item!r} in {raw!r}") from e
        return tuple(points)

    def build_object(self, node: NodeAccessor) -> MapObject:
        """
        Build one <object>, its kind decided by what it contains.

        Checked in order: <polygon>, <polyline>, gid attribute, <ellipse>;
        anything else is a Rectangle.

        Raises:
        -------
        DecodeError : malformed points, or a gid that is not an unsigned
                      32-bit integer
        """
        common = dict(
            id=node.get_uint('id', OPTIONAL),
            name=node.get_string('name', OPTIONAL),
            # Tiled 1.9 renamed 'type' to 'class'
            type=node.get_string('type', OPTIONAL,
                                 node.get_string('class', OPTIONAL)),
            x=node.get_float('x'),
            y=node.get_float('y'),
            rotation=node.get_float('rotation', OPTIONAL),
            visible=node.get_bool('visible', OPTIONAL, True),
            properties=self.build_properties(node),
        )

        for tag, cls in (('polygon', Polygon), ('polyline', Polyline)):
            poly = node.one_child(tag)
            if poly is not None:
                points = self.parse_points(poly.get_string('points'))
                return cls(points=points, **common)

        width = node.get_float('width', OPTIONAL)
        height = node.get_float('height', OPTIONAL)

        if node.has_attribute('gid'):
            cell = decode_gid(parse_gid(node.get_string('gid')))
            return TileObject(gid=cell.gid, hflip=cell.hflip,
                              vflip=cell.vflip, dflip=cell.dflip,
                              width=width, height=height, **common)

        if node.has_child('ellipse'):
            return Ellipse(width=width, height=height, **common)

        return Rectangle(width=width, height=height, **common)


def load_map(path: Union[str, Path], logger: Optional[Logger] = None,
             reader: Optional[Callable[[Path], bytes]] = None
             ) -> Optional[TiledMap]:
    """
    Load a TMX file.

    Returns None on failure; see Parser.parse().
    """
    return Parser(path, logger=logger, reader=reader).parse()
