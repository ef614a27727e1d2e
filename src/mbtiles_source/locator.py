# %%
#|export
import enum
import os
from dataclasses import dataclass, field
from typing import Dict, Union
from urllib.parse import ParseResult, SplitResult, parse_qsl, unquote, urlsplit
import logging

from .errors import InvalidLocator, InvalidMode

logger = logging.getLogger(__name__)

DEFAULT_OPTIONS = {"batch": "100", "mode": "rwc"}


class AccessMode(enum.Enum):
    READ_ONLY = "ro"
    READ_WRITE = "rw"
    READ_WRITE_CREATE = "rwc"

    def sqlite_uri(self, path: str) -> str:
        """SQLite URI filename that opens `path` with this mode"""
        return f"file:{_quote_path(path)}?mode={self.value}"


def _quote_path(path: str) -> str:
    # '?' and '#' would otherwise start the query/fragment of the sqlite URI
    return path.replace("%", "%25").replace("?", "%3f").replace("#", "%23")


@dataclass(frozen=True)
class Locator:
    path: str
    mode: AccessMode
    options: Dict[str, str] = field(default_factory=dict)

    @property
    def batch(self) -> int:
        return int(self.options.get("batch", DEFAULT_OPTIONS["batch"]))


def parse_locator(uri: Union[str, ParseResult, SplitResult]) -> Locator:
    """Resolve `mbtiles://<path>?mode=..&batch=..` into a Locator"""
    if isinstance(uri, str):
        parts = urlsplit(uri)
        raw_path = unquote(parts.netloc + parts.path)
    else:
        parts = uri
        raw_path = parts.netloc + parts.path

    if not raw_path:
        raise InvalidLocator(uri if isinstance(uri, str) else parts.geturl())

    options = {**DEFAULT_OPTIONS, **dict(parse_qsl(parts.query, keep_blank_values=True))}
    try:
        mode = AccessMode(options["mode"])
    except ValueError:
        raise InvalidMode(options["mode"]) from None

    path = os.path.abspath(raw_path)
    logger.debug(f"Resolved {uri!r} -> {path} ({mode.value})")
    return Locator(path=path, mode=mode, options=options)
