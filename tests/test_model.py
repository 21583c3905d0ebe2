"""Tests for the immutable map model."""

from pathlib import Path

import numpy as np
import pytest

from tmx_loader.errors import GidLookupError, TileCoordsError
from tmx_loader.model import (
    Cell,
    Ellipse,
    Image,
    ImageLayer,
    LayerKind,
    LayerVisitor,
    ObjectKind,
    ObjectLayer,
    Properties,
    Rect,
    Size,
    Tile,
    TiledMap,
    TileLayer,
    TileObject,
    TileSet,
    coords_for_local_id,
)


def make_map(*firstgids, layers=()):
    tilesets = [TileSet(firstgid=gid, name=f"ts{gid}", tilewidth=32,
                        tileheight=32,
                        image=Image(Path("sheet.png"), width=256, height=128))
                for gid in firstgids]
    return TiledMap(width=2, height=2, tilewidth=32, tileheight=32,
                    tilesets=tuple(tilesets), layers=tuple(layers))


# =============================================================================
# GID LOOKUP
# =============================================================================

@pytest.mark.parametrize("gid,firstgid", [
    (1, 1), (49, 1), (50, 50), (119, 50), (120, 120), (5000, 120),
])
def test_tileset_for_gid(gid, firstgid):
    tiled_map = make_map(1, 50, 120)
    assert tiled_map.tileset_for_gid(gid).firstgid == firstgid


def test_tilesets_sorted_by_firstgid():
    tiled_map = make_map(120, 1, 50)
    assert [ts.firstgid for ts in tiled_map.tilesets] == [1, 50, 120]
    assert tiled_map.tileset_for_gid(60).name == "ts50"


def test_tileset_for_gid_rejects_empty_cell():
    with pytest.raises(GidLookupError):
        make_map(1, 50).tileset_for_gid(0)


def test_tileset_for_gid_below_first_tileset():
    with pytest.raises(GidLookupError):
        make_map(10).tileset_for_gid(5)


def test_tileset_for_gid_without_tilesets():
    with pytest.raises(LookupError):
        TiledMap().tileset_for_gid(1)


def test_tile_coords_for_gid():
    tileset, local_id, rect = make_map(1, 50).tile_coords_for_gid(59)
    assert tileset.firstgid == 50
    assert local_id == 9
    assert rect == Rect(32, 32, 32, 32)


# =============================================================================
# SPRITESHEET COORDINATES
# =============================================================================

def test_coords_for_local_id():
    size = Size(256, 128)
    assert coords_for_local_id(0, size, 32, 32) == Rect(0, 0, 32, 32)
    assert coords_for_local_id(9, size, 32, 32) == Rect(32, 32, 32, 32)
    assert coords_for_local_id(31, size, 32, 32) == Rect(224, 96, 32, 32)


def test_coords_with_margin_and_spacing():
    # 2 + 3 * (16 + 1) - 1 + 2 = 54 → 3 columns, 2 rows
    size = Size(54, 37)
    assert coords_for_local_id(4, size, 16, 16, margin=2,
                               spacing=1) == Rect(19, 19, 16, 16)
    with pytest.raises(TileCoordsError):
        coords_for_local_id(6, size, 16, 16, margin=2, spacing=1)


def test_coords_outside_image():
    with pytest.raises(TileCoordsError):
        coords_for_local_id(32, Size(256, 128), 32, 32)


def test_coords_image_smaller_than_tile():
    with pytest.raises(TileCoordsError):
        coords_for_local_id(0, Size(16, 16), 32, 32)


def test_coords_errors_are_value_errors():
    with pytest.raises(ValueError):
        coords_for_local_id(0, Size(64, 64), 0, 0)


# =============================================================================
# TILESETS
# =============================================================================

def test_get_tile_first_duplicate_wins():
    first = Tile(id=3, probability=0.5)
    tileset = TileSet(firstgid=1, tiles=(first, Tile(id=3), Tile(id=4)))

    assert tileset.get_tile(3) is first
    assert tileset.get_tile(4).id == 4
    assert tileset.get_tile(5) is None


def test_image_collection():
    tileset = TileSet(firstgid=1, tiles=(Tile(id=0, image=Image(Path("a.png"))),))
    assert tileset.is_image_collection
    assert not tileset.has_image
    assert not tileset.is_external


def test_tileset_without_image_has_no_size():
    with pytest.raises(ValueError):
        TileSet(firstgid=1).image_size()


def test_tile_terrain_corners():
    tile = Tile(id=0, terrain=(0, 0, None, 1))
    assert tile.top_left_terrain == 0
    assert tile.top_right_terrain == 0
    assert tile.bottom_left_terrain is None
    assert tile.bottom_right_terrain == 1


def test_image_without_source_cannot_be_probed():
    with pytest.raises(ValueError):
        Image(None).probe_size()


def test_declared_image_size():
    image = Image(Path("sheet.png"), width=256, height=128)
    assert image.has_size
    assert image.resolved_size() == Size(256, 128)


# =============================================================================
# PROPERTIES
# =============================================================================

def test_properties_first_write_wins():
    props = Properties([("door", "open"), ("hp", "10"), ("door", "closed")])

    assert props["door"] == "open"
    assert list(props) == ["door", "hp"]
    assert len(props) == 2
    assert "hp" in props
    assert props.has("hp")
    assert props.get("missing", "x") == "x"


def test_properties_are_read_only():
    props = Properties([("door", "open")])

    assert not hasattr(props, "add")
    with pytest.raises(TypeError):
        props["door"] = "closed"
    with pytest.raises(AttributeError):
        props.extra = "x"
    assert dict(props) == {"door": "open"}


def test_properties_typed_readers():
    props = Properties([("hp", "10"), ("mask", "0x1F"), ("speed", "2.5"),
                        ("solid", "true"), ("ghost", "0"), ("name", "bob")])

    assert props.get_int("hp") == 10
    assert props.get_int("mask") == 31
    assert props.get_int("missing", 3) == 3
    assert props.get_float("speed") == 2.5
    assert props.get_bool("solid") is True
    assert props.get_bool("ghost") is False
    assert props.get_bool("missing") is None

    with pytest.raises(ValueError):
        props.get_bool("name")
    with pytest.raises(ValueError):
        props.get_int("name")


def test_properties_are_not_shared_between_instances():
    a, b = Tile(id=0), Tile(id=1)
    assert a.properties is not b.properties


# =============================================================================
# LAYERS
# =============================================================================

def make_tile_layer():
    cells = (Cell(1), Cell(2, hflip=True), Cell(0), Cell(3, vflip=True),
             Cell(4), Cell(5))
    return TileLayer(name="ground", width=3, height=2, cells=cells)


def test_cell_at_is_row_major():
    layer = make_tile_layer()

    assert layer.cell_at(1, 0) == Cell(2, hflip=True)
    assert layer.cell_at(0, 1) == Cell(3, vflip=True)
    assert layer.cell_at(2, 0).is_empty


def test_cell_at_out_of_bounds_is_empty():
    layer = make_tile_layer()
    assert layer.cell_at(3, 0).is_empty
    assert layer.cell_at(0, -1).is_empty


def test_gid_grid():
    grid = make_tile_layer().gid_grid()

    assert grid.shape == (2, 3)
    assert grid.dtype == np.uint32
    assert grid[1, 0] == 3
    np.testing.assert_array_equal(grid, [[1, 2, 0], [3, 4, 5]])


def test_layer_kinds():
    assert TileLayer.kind is LayerKind.TILE
    assert ObjectLayer.kind is LayerKind.OBJECT
    assert ImageLayer.kind is LayerKind.IMAGE
    assert TileObject.kind is ObjectKind.TILE
    assert Ellipse(x=1, y=2).origin == (1, 2)


def test_visitor_dispatch():
    layers = [make_tile_layer(), ObjectLayer(name="things"),
              ImageLayer(name="sky")]
    tiled_map = make_map(1, layers=layers)
    seen = []

    class Recorder(LayerVisitor):
        def visit_tile_layer(self, tiled_map, layer):
            seen.append(("tile", layer.name))

        def visit_image_layer(self, tiled_map, layer):
            seen.append(("image", layer.name))

    tiled_map.visit_layers(Recorder())

    assert seen == [("tile", "ground"), ("image", "sky")]


def test_layer_queries():
    layers = [make_tile_layer(), ObjectLayer(name="things"),
              TileLayer(name="decor")]
    tiled_map = make_map(1, layers=layers)

    assert tiled_map.get_layer_by_name("things") is layers[1]
    assert tiled_map.get_layer_by_name("nope") is None
    assert [l.name for l in tiled_map.iter_layers(LayerKind.TILE)] == [
        "ground", "decor"]
    assert len(list(tiled_map.iter_layers())) == 3


def test_model_is_immutable():
    layer = make_tile_layer()
    with pytest.raises(AttributeError):
        layer.name = "other"
