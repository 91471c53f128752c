"""S3 URI parsing helpers.

This module centralizes S3 URI parsing for the staging destination.
It keeps URI validation and object URI rendering consistent.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.constants import S3_URI_SCHEME
from core.errors import BlobstageConfigError


@dataclass(frozen=True)
class S3Location:
    """Parsed S3 location model.

    Attributes:
        bucket: Container receiving staged blobs.
        prefix: Object-name prefix for staged blobs.
    """

    bucket: str
    prefix: str

    def object_key(self, name: str) -> str:
        """Return the object key for a blob name under this prefix."""
        return f"{self.prefix.rstrip('/')}/{name}"

    def object_uri(self, key: str) -> str:
        """Return the fully-qualified URI of an object key."""
        return f"{S3_URI_SCHEME}{self.bucket}/{key}"


def parse_s3_uri(uri: str) -> S3Location:
    """Parse and validate an S3 URI.

    Args:
        uri: URI in format ``s3://bucket/prefix``.

    Returns:
        Parsed bucket and prefix pair.

    Raises:
        BlobstageConfigError: If the URI is not a bucket plus prefix.
    """
    if not uri.startswith(S3_URI_SCHEME):
        _raise_uri_error(uri)
    stripped_uri = uri.removeprefix(S3_URI_SCHEME)
    if "/" not in stripped_uri:
        _raise_uri_error(uri)
    bucket, prefix = stripped_uri.split("/", 1)
    if not bucket or not prefix.strip("/"):
        _raise_uri_error(uri)
    return S3Location(bucket=bucket, prefix=prefix)


def _raise_uri_error(uri: str) -> None:
    """Raise an invalid staging URI error.

    Args:
        uri: Invalid URI value.

    Raises:
        BlobstageConfigError: Always.
    """
    raise BlobstageConfigError(
        f"Invalid S3 URI '{uri}': expected s3://bucket/prefix. "
        "Provide both bucket and prefix."
    )
