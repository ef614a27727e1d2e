# %%
#|export
"""Normalized MBTiles metadata and the inference pipeline behind `MBTiles.get_info`.

The metadata table is read first. Zoom range, bounds and center are then
derived from the tiles table, each stage only filling in what is still
missing. Stages take an `Info` and return a new one (or the same one when
there is nothing to add).
"""
import asyncio
import dataclasses
import json
import logging
import math
import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from .errors import TableMissing
from .geo import tile_bbox

logger = logging.getLogger(__name__)

MAX_PROBE_ZOOM = 30

ZOOM_PROBE_SQL = "SELECT zoom_level FROM tiles WHERE zoom_level = ? LIMIT 1"
EXTREMA_SQL = (
    "SELECT MAX(tile_column) AS maxx, MIN(tile_column) AS minx, "
    "MAX(tile_row) AS maxy, MIN(tile_row) AS miny "
    "FROM tiles WHERE zoom_level = ?"
)

TYPED_FIELDS = ("basename", "filesize", "id", "scheme", "minzoom", "maxzoom", "bounds", "center")


@dataclass(frozen=True)
class Info:
    basename: str
    id: str
    filesize: int
    scheme: str = "xyz"
    minzoom: Optional[int] = None
    maxzoom: Optional[int] = None
    bounds: Optional[Tuple[float, ...]] = None
    center: Optional[Tuple[float, ...]] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Flat mapping as served to clients; absent fields are left out"""
        result: Dict[str, Any] = {
            "basename": self.basename,
            "filesize": self.filesize,
            "id": self.id,
        }
        result.update(self.extra)
        result["scheme"] = self.scheme
        for name in ("minzoom", "maxzoom"):
            value = getattr(self, name)
            if value is not None:
                result[name] = value
        for name in ("bounds", "center"):
            value = getattr(self, name)
            if value is not None:
                result[name] = list(value)
        return result


def _parse_int(value) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        pass
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        logger.warning(f"Ignoring non-numeric zoom value {value!r}")
        return None


def _parse_floats(value) -> Tuple[Optional[float], ...]:
    if isinstance(value, (list, tuple)):
        items = value
    else:
        items = str(value).split(",")
    floats = []
    for item in items:
        try:
            number = float(item)
        except (TypeError, ValueError):
            number = None
        if number is None or not math.isfinite(number):
            logger.warning(f"Ignoring non-numeric part {item!r} of {value!r}")
            number = None
        floats.append(number)
    return tuple(floats)


def _normalize(name: str, value):
    if name in ("minzoom", "maxzoom"):
        return _parse_int(value)
    if name in ("center", "bounds"):
        return _parse_floats(value)
    return value


def seed_info(path: str, filesize: int) -> Info:
    basename = os.path.basename(path)
    return Info(basename=basename, id=os.path.splitext(basename)[0], filesize=filesize)


def apply_metadata_rows(info: Info, rows) -> Info:
    """Fold `(name, value)` rows from the metadata table into `info`"""
    fields: Dict[str, Any] = {name: getattr(info, name) for name in TYPED_FIELDS}
    extra = dict(info.extra)

    def present(key):
        if key in fields:
            return fields[key] is not None
        return key in extra

    for name, value in rows:
        if name == "json":
            # The json row carries nested / non-string values; keys already set win.
            blob = json.loads(value)
            if not isinstance(blob, dict):
                logger.warning(f"Ignoring non-object json metadata: {value!r}")
                continue
            for key, item in blob.items():
                if present(key):
                    continue
                if key in fields:
                    fields[key] = _normalize(key, item)
                else:
                    extra[key] = item
        elif name in fields:
            fields[name] = _normalize(name, value)
        else:
            extra[name] = value

    # Always report xyz, even for stores whose metadata says tms
    fields["scheme"] = "xyz"
    return Info(extra=extra, **fields)


async def ensure_zooms(store, info: Info) -> Info:
    if info.minzoom is not None and info.maxzoom is not None:
        return info

    results = await asyncio.gather(
        *(store.fetch_one(ZOOM_PROBE_SQL, (zoom,)) for zoom in range(MAX_PROBE_ZOOM)),
        return_exceptions=True,
    )
    errors = [r for r in results if isinstance(r, BaseException)]
    if any(isinstance(e, TableMissing) for e in errors):
        logger.debug("No tiles table, leaving zoom range unset")
        return info
    if errors:
        raise errors[0]

    zooms = sorted(row[0] for row in results if row is not None)
    if not zooms:
        return info
    logger.debug(f"Probed zoom levels {zooms}")
    return dataclasses.replace(info, minzoom=zooms[0], maxzoom=zooms[-1])


async def ensure_bounds(store, info: Info) -> Info:
    if info.bounds is not None or info.minzoom is None:
        return info

    try:
        row = await store.fetch_one(EXTREMA_SQL, (info.minzoom,))
    except TableMissing:
        return info
    if row is None or any(v is None for v in row):
        return info

    maxx, minx, maxy, miny = row
    ur = tile_bbox(maxx, maxy, info.minzoom, tms=True)
    ll = tile_bbox(minx, miny, info.minzoom, tms=True)
    # Some tilesets carry out-of-range extremity tiles; keep bounds sensible
    bounds = (
        max(ll[0], -180.0),
        max(ll[1], -90.0),
        min(ur[2], 180.0),
        min(ur[3], 90.0),
    )
    return dataclasses.replace(info, bounds=bounds)


def ensure_center(info: Info) -> Info:
    if info.center is not None:
        return info
    if info.bounds is None or len(info.bounds) < 4 or None in info.bounds[:4]:
        return info
    if info.minzoom is None or info.maxzoom is None:
        return info

    west, south, east, north = info.bounds[:4]
    span = info.maxzoom - info.minzoom
    zoom = info.maxzoom if span <= 1 else math.floor(span * 0.5) + info.minzoom
    center = ((east - west) / 2 + west, (north - south) / 2 + south, zoom)
    return dataclasses.replace(info, center=center)


async def load_info(store, path: str, filesize: int) -> Info:
    """Build normalized metadata for the store at `path`"""
    info = seed_info(path, filesize)
    try:
        rows = await store.fetch_all("SELECT name, value FROM metadata")
    except TableMissing:
        logger.warning(f"{path} has no metadata table")
        rows = []
    info = apply_metadata_rows(info, rows)
    info = await ensure_zooms(store, info)
    info = await ensure_bounds(store, info)
    return ensure_center(info)
