# %%
import math

import mercantile
import pytest

from mbtiles_source.geo import EARTH_RADIUS, flip_y, tile_area, tile_bbox, tile_to_lat, tile_to_lon


# %%
def test_flip_y_is_an_involution():
    for z in range(0, 12):
        for y in {0, 1, (1 << z) // 2, (1 << z) - 1}:
            if y >= 1 << z:
                continue
            assert flip_y(z, flip_y(z, y)) == y


def test_flip_y_values():
    assert flip_y(0, 0) == 0
    assert flip_y(1, 0) == 1
    assert flip_y(2, 0) == 3
    assert flip_y(2, 3) == 0


def test_world_edges():
    assert tile_to_lon(0, 0) == -180.0
    assert tile_to_lon(1, 0) == 180.0
    assert tile_to_lat(0, 0) == pytest.approx(85.0511287798066)
    assert tile_to_lat(1, 0) == pytest.approx(-85.0511287798066)
    assert tile_to_lat(1, 1) == pytest.approx(0.0, abs=1e-12)


@pytest.mark.parametrize("x,y,z", [(0, 0, 0), (1, 0, 1), (5, 10, 5), (4823, 6160, 14)])
def test_tile_bbox_matches_mercantile(x, y, z):
    expected = mercantile.bounds(x, y, z)
    assert tile_bbox(x, y, z) == pytest.approx(tuple(expected))


def test_tile_bbox_tms_flips_row():
    assert tile_bbox(3, 5, 4, tms=True) == tile_bbox(3, flip_y(4, 5), 4)


def test_far_out_rows_saturate_instead_of_overflowing():
    assert tile_to_lat(-10_000, 1) == pytest.approx(90.0)
    assert tile_to_lat(10_000, 1) == pytest.approx(-90.0)


# %%
def test_tile_area_world():
    expected = EARTH_RADIUS ** 2 * 2 * math.sin(math.radians(85.0511287798066)) * 2 * math.pi
    assert tile_area(0, 0, 0) == pytest.approx(expected)


def test_tile_area_shrinks_with_zoom():
    assert tile_area(5, 16, 10) < tile_area(0, 0, 0)


def test_tile_area_children_sum_to_parent():
    children = sum(tile_area(1, x, y) for x in (0, 1) for y in (0, 1))
    assert children == pytest.approx(tile_area(0, 0, 0))
