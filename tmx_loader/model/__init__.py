"""Immutable in-memory model of a loaded TMX map"""

from .properties import Properties
from .tileset import (
    Size, Rect, Image, Terrain, Tile, TileOffset, TileSet, coords_for_local_id
)
from .objects import (
    ObjectKind, MapObject, Rectangle, Ellipse, Polyline, Polygon, TileObject
)
from .layers import (
    Cell, EMPTY_CELL, LayerKind, DrawOrder, Layer, TileLayer, ObjectLayer,
    ImageLayer, LayerVisitor
)
from .map import Orientation, RenderOrder, StaggerAxis, StaggerIndex, TiledMap

__all__ = [
    "Properties",
    "Size", "Rect", "Image", "Terrain", "Tile", "TileOffset", "TileSet",
    "coords_for_local_id",
    "ObjectKind", "MapObject", "Rectangle", "Ellipse", "Polyline", "Polygon",
    "TileObject",
    "Cell", "EMPTY_CELL", "LayerKind", "DrawOrder", "Layer", "TileLayer",
    "ObjectLayer", "ImageLayer", "LayerVisitor",
    "Orientation", "RenderOrder", "StaggerAxis", "StaggerIndex", "TiledMap",
]
