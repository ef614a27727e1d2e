# %%
import sqlite3
import tempfile
from pathlib import Path
from typing import Dict, Generator, Iterable, Optional, Tuple

import mapbox_vector_tile
import pytest
from shapely.geometry import Point

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


# %%
def create_dummy_vector_tile() -> bytes:
    """Create a simple vector tile with a single point feature"""
    layers = [{
        "name": "test_layer",
        "features": [{
            "geometry": Point(0, 0),
            "properties": {"name": "test_point"},
        }],
        "extent": 4096,
    }]
    return mapbox_vector_tile.encode(layers)


def build_mbtiles(
    path: Path,
    metadata: Optional[Dict[str, str]] = None,
    tiles: Iterable[Tuple[int, int, int, object]] = (),
    with_tiles_table: bool = True,
    with_metadata_table: bool = True,
) -> Path:
    """Write an MBTiles file; tiles are (zoom, column, tms_row, data)"""
    conn = sqlite3.connect(path)
    cursor = conn.cursor()
    if with_metadata_table:
        cursor.execute("CREATE TABLE metadata (name text, value text)")
        cursor.executemany("INSERT INTO metadata VALUES (?, ?)", (metadata or {}).items())
    if with_tiles_table:
        cursor.execute('''
            CREATE TABLE tiles (
                zoom_level integer,
                tile_column integer,
                tile_row integer,
                tile_data blob
            )
        ''')
        cursor.executemany("INSERT INTO tiles VALUES (?, ?, ?, ?)", list(tiles))
    conn.commit()
    conn.close()
    return path


# %%
@pytest.fixture
def tmp_dir() -> Generator[Path, None, None]:
    with tempfile.TemporaryDirectory() as d:
        yield Path(d)


@pytest.fixture
def test_mbtiles(tmp_dir) -> Path:
    """MBTiles file with explicit metadata and one vector tile at zoom 0"""
    return build_mbtiles(
        tmp_dir / "test_tiles.mbtiles",
        metadata={
            "name": "test_tiles",
            "format": "pbf",
            "version": "2",
        },
        tiles=[(0, 0, 0, create_dummy_vector_tile())],
    )
