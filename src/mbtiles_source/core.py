# %%
#|export
import asyncio
import logging
import os
import sqlite3
import threading
from dataclasses import dataclass, field
from email.utils import formatdate
from typing import AsyncIterator, Callable, Dict, List, Optional, Sequence, Union

from . import tiletype
from .errors import ConnectionFailure, InvalidTile, NotConnected, TableMissing, TileNotFound
from .geo import flip_y
from .locator import Locator, parse_locator
from .metadata import Info, load_info

logger = logging.getLogger(__name__)

TILE_SQL = "SELECT tile_data FROM tiles WHERE zoom_level = ? AND tile_column = ? AND tile_row = ?"


def is_missing_table(exc: Exception) -> bool:
    """True when sqlite reports a query against a table that does not exist"""
    return isinstance(exc, sqlite3.OperationalError) and "no such table" in str(exc)


@dataclass
class Tile:
    content: bytes
    headers: Dict[str, str] = field(default_factory=dict)


class MBTiles:
    """Async read access to a single .mbtiles file.

    Queries run on worker threads against one shared connection; a lock
    keeps cursor use sequential, so concurrent callers only interleave
    their awaits. Closing the store while queries are in flight is not
    guarded: those queries fail with whatever sqlite raises.
    """

    def __init__(self, uri: Union[str, Locator]):
        self.locator = uri if isinstance(uri, Locator) else parse_locator(uri)
        self.ready = False
        self.stats: Optional[os.stat_result] = None
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()
        self._info: Optional[Info] = None
        self._info_lock = asyncio.Lock()
        self._open_callbacks: List[Callable[["MBTiles"], None]] = []

    @property
    def path(self) -> str:
        return self.locator.path

    @property
    def mode(self):
        return self.locator.mode

    def __repr__(self):
        return f"MBTiles({self.path!r}, mode={self.mode.value!r}, ready={self.ready})"

    async def __aenter__(self):
        return await self.connect()

    async def __aexit__(self, *exc_info):
        self.close()

    def on_open(self, callback: Callable[["MBTiles"], None]) -> None:
        """Register a callback run right after a successful connect"""
        self._open_callbacks.append(callback)

    def _open(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            self.mode.sqlite_uri(self.path),
            uri=True,
            check_same_thread=False,
        )
        conn.row_factory = sqlite3.Row
        return conn

    async def connect(self) -> "MBTiles":
        if self.ready:
            return self
        try:
            conn = await asyncio.to_thread(self._open)
        except sqlite3.Error as e:
            logger.error(f"Could not open {self.path}: {e}")
            raise ConnectionFailure(str(e)) from e
        try:
            self.stats = await asyncio.to_thread(os.stat, self.path)
        except OSError:
            conn.close()
            raise
        self._conn = conn
        self.ready = True
        logger.info(f"Opened {self.path} ({self.mode.value}, {self.stats.st_size} bytes)")
        for callback in self._open_callbacks:
            callback(self)
        return self

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.info(f"Closed {self.path}")
        self.ready = False

    # -- query surface ---------------------------------------------------

    def _run(self, fn: Callable[[sqlite3.Connection], object]):
        if not self.ready or self._conn is None:
            raise NotConnected()
        with self._lock:
            try:
                return fn(self._conn)
            except sqlite3.Error as e:
                if is_missing_table(e):
                    raise TableMissing(str(e)) from e
                raise

    async def fetch_one(self, sql: str, params: Sequence = ()) -> Optional[sqlite3.Row]:
        if not self.ready:
            raise NotConnected()
        return await asyncio.to_thread(self._run, lambda conn: conn.execute(sql, params).fetchone())

    async def fetch_all(self, sql: str, params: Sequence = ()) -> List[sqlite3.Row]:
        if not self.ready:
            raise NotConnected()
        return await asyncio.to_thread(self._run, lambda conn: conn.execute(sql, params).fetchall())

    async def iter_rows(self, sql: str, params: Sequence = ()) -> AsyncIterator[sqlite3.Row]:
        """Stream rows, fetching `batch` rows per worker-thread round trip"""
        if not self.ready:
            raise NotConnected()
        cursor = await asyncio.to_thread(self._run, lambda conn: conn.execute(sql, params))
        try:
            while True:
                rows = await asyncio.to_thread(self._run, lambda _: cursor.fetchmany(self.locator.batch))
                if not rows:
                    break
                for row in rows:
                    yield row
        finally:
            cursor.close()

    # -- tilesource API --------------------------------------------------

    async def get_info(self) -> Info:
        if self._info is not None:
            return self._info
        async with self._info_lock:
            if self._info is not None:
                return self._info
            if not self.ready:
                raise NotConnected()
            self._info = await load_info(self, self.path, self.stats.st_size)
            logger.info(f"Loaded metadata for {self._info.basename}")
        return self._info

    async def get_tile(self, x: int, y: int, z: int) -> Tile:
        if not self.ready:
            raise NotConnected()
        if z < 0:
            raise TileNotFound()
        tms_y = flip_y(z, y)
        try:
            row = await self.fetch_one(TILE_SQL, (z, x, tms_y))
        except (TableMissing, OverflowError):
            # OverflowError: coordinates beyond SQLite INTEGER cannot match a row
            row = None
        if row is None:
            logger.warning(f"Tile not found - XYZ:{z}/{x}/{y} TMS:{z}/{x}/{tms_y}")
            raise TileNotFound()

        data = row["tile_data"]
        if not data or not isinstance(data, bytes):
            raise InvalidTile()

        headers = tiletype.headers(data)
        headers["Last-Modified"] = formatdate(self.stats.st_mtime, usegmt=True)
        headers["ETag"] = f"{self.stats.st_size}-{self.stats.st_mtime_ns // 1_000_000}"
        return Tile(content=data, headers=headers)
