# %%
#|export
from typing import Dict, Optional

CONTENT_TYPES = {
    "png": "image/png",
    "jpg": "image/jpeg",
    "gif": "image/gif",
    "webp": "image/webp",
    "pbf": "application/x-protobuf",
}


def detect_format(data: bytes) -> Optional[str]:
    """Guess the tile format from its magic bytes"""
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "png"
    if data.startswith(b"\xff\xd8"):
        return "jpg"
    if data.startswith((b"GIF87a", b"GIF89a")):
        return "gif"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "webp"
    if data.startswith((b"\x1f\x8b", b"\x78\x9c")):
        return "pbf"
    # uncompressed vector tile: first field is `layers` (3, length-delimited)
    if data.startswith(b"\x1a"):
        return "pbf"
    return None


def detect_encoding(data: bytes) -> Optional[str]:
    if data.startswith(b"\x1f\x8b"):
        return "gzip"
    if data.startswith(b"\x78\x9c"):
        return "deflate"
    return None


def headers(data: bytes) -> Dict[str, str]:
    """Content-Type (and Content-Encoding for compressed vector tiles)"""
    fmt = detect_format(data)
    if fmt is None:
        return {}
    result = {"Content-Type": CONTENT_TYPES[fmt]}
    encoding = detect_encoding(data) if fmt == "pbf" else None
    if encoding:
        result["Content-Encoding"] = encoding
    return result
