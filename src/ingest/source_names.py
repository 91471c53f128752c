"""Source name helpers shared by format and compression discovery."""

from __future__ import annotations

import re
from urllib.parse import urlsplit

_PATH_SEPARATORS = re.compile(r"[\\/]")


def source_file_name(name: str) -> str:
    """Return the last path segment of a local path or URL.

    URL hosts, ports, query strings and fragments are ignored.
    """
    path = urlsplit(name).path if "://" in name else name
    return _PATH_SEPARATORS.split(path)[-1]


def extension_tokens(name: str) -> list[str]:
    """Return the lower-cased dot-separated tokens after the base name.

    ``"/data/events.AVRO.GZ"`` yields ``["avro", "gz"]``; a name without
    a dot yields an empty list.
    """
    return [token.lower() for token in source_file_name(name).split(".")[1:]]
