# %%
#|export


class MBTilesError(Exception):
    """Base class for errors raised by mbtiles_source"""


class InvalidLocator(MBTilesError, ValueError):
    def __init__(self, locator):
        super().__init__(f"Invalid URI {locator}")
        self.locator = locator


class InvalidMode(MBTilesError, ValueError):
    def __init__(self, mode):
        super().__init__('Only supports "ro", "rw", or "rwc" mode.')
        self.mode = mode


class ConnectionFailure(MBTilesError):
    """The store could not be opened; the message is the engine's own"""


class NotConnected(MBTilesError):
    def __init__(self, message: str = "MBTiles not yet loaded"):
        super().__init__(message)


class TableMissing(MBTilesError):
    """The engine reported that a queried table does not exist"""


class TileNotFound(MBTilesError, LookupError):
    def __init__(self, message: str = "Tile does not exist"):
        super().__init__(message)


class InvalidTile(MBTilesError):
    code = "EINVALIDTILE"

    def __init__(self, message: str = "Tile is invalid"):
        super().__init__(message)
