# %%
import gzip
import zlib

from mbtiles_source import tiletype

from conftest import PNG_BYTES, create_dummy_vector_tile


# %%
def test_raster_formats():
    assert tiletype.detect_format(PNG_BYTES) == "png"
    assert tiletype.detect_format(b"\xff\xd8\xff" + b"\x00" * 10) == "jpg"
    assert tiletype.detect_format(b"GIF89a" + b"\x00" * 10) == "gif"
    assert tiletype.detect_format(b"RIFF\x00\x00\x00\x00WEBPVP8 ") == "webp"


def test_vector_tiles():
    tile = create_dummy_vector_tile()
    assert tiletype.headers(tile) == {"Content-Type": "application/x-protobuf"}
    assert tiletype.headers(gzip.compress(tile)) == {
        "Content-Type": "application/x-protobuf",
        "Content-Encoding": "gzip",
    }
    assert tiletype.headers(zlib.compress(tile))["Content-Encoding"] == "deflate"


def test_unknown():
    assert tiletype.detect_format(b"\x00\x00\x00\x00") is None
    assert tiletype.headers(b"\x00\x00\x00\x00") == {}
