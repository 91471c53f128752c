"""Pre-upload compression policy.

This module decides whether a payload is gzip-compressed before it is
transferred to the blobstore.
"""

from __future__ import annotations

from core.types import CompressionType, DataFormat, IngestionProperties

COMPRESSED_TYPES = frozenset({CompressionType.GZIP, CompressionType.ZIP})

NON_COMPRESSIBLE_FORMATS = frozenset({DataFormat.AVRO, DataFormat.ORC, DataFormat.PARQUET})


def should_compress(props: IngestionProperties, discovered_compression: CompressionType) -> bool:
    """Return whether the payload must be compressed before upload.

    Rules apply in order and the first match wins: a compressed file
    name, a declared compression, the ``dont_compress`` override and a
    binary self-describing format all disable compression. Everything
    else, unknown formats included, is compressed.

    Args:
        props: Ingestion properties with ``data_format`` already resolved.
        discovered_compression: Compression inferred from the source name.

    Returns:
        True when the uploader should gzip the payload.
    """
    if discovered_compression in COMPRESSED_TYPES:
        return False
    if props.source.compression_type in COMPRESSED_TYPES:
        return False
    if props.source.dont_compress:
        return False
    if props.data_format in NON_COMPRESSIBLE_FORMATS:
        return False
    return True
