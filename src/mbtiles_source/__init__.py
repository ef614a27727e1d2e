# %%
#|export
from .core import MBTiles, Tile
from .errors import (
    ConnectionFailure,
    InvalidLocator,
    InvalidMode,
    InvalidTile,
    MBTilesError,
    NotConnected,
    TableMissing,
    TileNotFound,
)
from .locator import AccessMode, Locator, parse_locator
from .metadata import Info

__all__ = [
    "AccessMode",
    "ConnectionFailure",
    "Info",
    "InvalidLocator",
    "InvalidMode",
    "InvalidTile",
    "Locator",
    "MBTiles",
    "MBTilesError",
    "NotConnected",
    "TableMissing",
    "Tile",
    "TileNotFound",
    "parse_locator",
]
