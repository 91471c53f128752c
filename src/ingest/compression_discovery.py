"""Compression discovery from source names."""

from __future__ import annotations

from core.types import CompressionType
from ingest.source_names import extension_tokens

COMPRESSION_EXTENSIONS: dict[str, CompressionType] = {
    "gz": CompressionType.GZIP,
    "zip": CompressionType.ZIP,
}


def discover_compression_type(name: str) -> CompressionType:
    """Infer the compression container from the final extension of a name.

    Args:
        name: Local path or URL.

    Returns:
        ``GZIP`` or ``ZIP`` for known suffixes, otherwise ``NONE``.
    """
    tokens = extension_tokens(name)
    if not tokens:
        return CompressionType.NONE
    return COMPRESSION_EXTENSIONS.get(tokens[-1], CompressionType.NONE)
