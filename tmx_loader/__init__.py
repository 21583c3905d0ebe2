"""
TMX Loader - typed, immutable model of Tiled maps

Reads TMX maps and the TSX tilesets they reference:

    from tmx_loader import load_map

    tiled_map = load_map("maps/level1.tmx")
    if tiled_map is not None:
        for layer in tiled_map.layers:
            print(layer.kind, layer.name)

Requisitos:
    pip install numpy pillow
"""

from .errors import (
    TmxError, DecodeError, UnreadableFileError, GidLookupError,
    TileCoordsError
)
from .data import (
    DataFormat, select_format, decode_base64, inflate, decode_gid,
    decode_gid_bytes, parse_gid, decode_csv, decode_data
)
from .nodes import NodeAccessor, Requirement
from .model import (
    Properties, Size, Rect, Image, Terrain, Tile, TileOffset, TileSet,
    coords_for_local_id, ObjectKind, MapObject, Rectangle, Ellipse, Polyline,
    Polygon, TileObject, Cell, LayerKind, DrawOrder, Layer, TileLayer,
    ObjectLayer, ImageLayer, LayerVisitor, Orientation, RenderOrder,
    StaggerAxis, StaggerIndex, TiledMap
)
from .tilesets import TilesetResolver
from .parser import Parser, load_map

__version__ = "1.0.0"
__all__ = [
    "TmxError",
    "DecodeError",
    "UnreadableFileError",
    "GidLookupError",
    "TileCoordsError",
    "DataFormat",
    "select_format",
    "decode_base64",
    "inflate",
    "decode_gid",
    "decode_gid_bytes",
    "parse_gid",
    "decode_csv",
    "decode_data",
    "NodeAccessor",
    "Requirement",
    "Properties",
    "Size",
    "Rect",
    "Image",
    "Terrain",
    "Tile",
    "TileOffset",
    "TileSet",
    "coords_for_local_id",
    "ObjectKind",
    "MapObject",
    "Rectangle",
    "Ellipse",
    "Polyline",
    "Polygon",
    "TileObject",
    "Cell",
    "LayerKind",
    "DrawOrder",
    "Layer",
    "TileLayer",
    "ObjectLayer",
    "ImageLayer",
    "LayerVisitor",
    "Orientation",
    "RenderOrder",
    "StaggerAxis",
    "StaggerIndex",
    "TiledMap",
    "TilesetResolver",
    "Parser",
    "load_map",
]
