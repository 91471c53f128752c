"""Unit tests for compression discovery."""

from __future__ import annotations

import pytest

from core.types import CompressionType
from ingest.compression_discovery import discover_compression_type


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("https://somehost.somedomain.com:8080/v1/somestuff/file.gz", CompressionType.GZIP),
        ("https://somehost.somedomain.com:8080/v1/somestuff/file.zip", CompressionType.ZIP),
        ("/path/to/a/file.gz", CompressionType.GZIP),
        ("/path/to/a/file.zip", CompressionType.ZIP),
        ("/path/to/a/file", CompressionType.NONE),
        ("/path/to/a/file.csv", CompressionType.NONE),
    ],
)
def test_discover_compression_type_uses_final_extension(name: str, expected: CompressionType) -> None:
    """Only the final extension should decide the compression."""
    assert discover_compression_type(name) == expected


def test_discover_compression_type_ignores_query_and_host() -> None:
    """Host names and query strings should not affect the result."""
    url = "https://files.gz.example.com/v1/file?name=archive.zip"

    assert discover_compression_type(url) == CompressionType.NONE
