# %%
#|export
import math
from typing import Tuple

EARTH_RADIUS = 6371.0088  # km, mean radius


def flip_y(zoom: int, y: int) -> int:
    """Convert between TMS and XYZ tile coordinates"""
    return (1 << zoom) - 1 - y


def tile_to_lon(tile_x: float, zoom: int) -> float:
    return tile_x / 2 ** zoom * 360.0 - 180.0


def tile_to_lat(tile_y: float, zoom: int) -> float:
    """Latitude in degrees of the top edge of a north-up tile row"""
    n = math.pi - 2 * math.pi * tile_y / 2 ** zoom
    # asin(tanh(n)) == atan(sinh(n)) but saturates at +-90 instead of overflowing
    return math.degrees(math.asin(math.tanh(n)))


def tile_bbox(x: int, y: int, zoom: int, tms: bool = False) -> Tuple[float, float, float, float]:
    """(west, south, east, north) of a tile, without range checks"""
    if tms:
        y = flip_y(zoom, y)
    return (
        tile_to_lon(x, zoom),
        tile_to_lat(y + 1, zoom),
        tile_to_lon(x + 1, zoom),
        tile_to_lat(y, zoom),
    )


def tile_area(zoom: int, tile_x: int, tile_y: int) -> float:
    """Ground area of an XYZ tile in square kilometres"""
    left = math.radians(tile_to_lon(tile_x, zoom))
    top = math.radians(tile_to_lat(tile_y, zoom))
    right = math.radians(tile_to_lon(tile_x + 1, zoom))
    bottom = math.radians(tile_to_lat(tile_y + 1, zoom))
    return EARTH_RADIUS ** 2 * abs(math.sin(top) - math.sin(bottom)) * abs(left - right)
