"""Runtime configuration model for Blobstage.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os

from core.constants import (
    DEFAULT_PIPE_BUFFER_CHUNKS,
    DEFAULT_UPLOAD_CHUNK_SIZE,
    DEFAULT_UPLOAD_MAX_CONCURRENCY,
    S3_MIN_PART_SIZE,
)
from core.errors import BlobstageConfigError
from core.s3_uri import S3Location, parse_s3_uri


@dataclass(frozen=True)
class StagingConfig:
    """Validated runtime configuration.

    Attributes:
        s3_region: Optional default AWS region for S3 operations.
        s3_profile: Optional AWS profile for boto3 session initialization.
        s3_endpoint_url: Optional endpoint for S3-compatible stores.
        staging_uri: Optional ``s3://bucket/prefix`` receiving staged blobs.
        upload_chunk_size: Multipart part size for streamed uploads.
        upload_max_concurrency: Parallel part uploads per streamed upload.
        pipe_buffer_chunks: Chunks buffered between compressor and upload.
    """

    s3_region: str | None = None
    s3_profile: str | None = None
    s3_endpoint_url: str | None = None
    staging_uri: str | None = None
    upload_chunk_size: int = DEFAULT_UPLOAD_CHUNK_SIZE
    upload_max_concurrency: int = DEFAULT_UPLOAD_MAX_CONCURRENCY
    pipe_buffer_chunks: int = DEFAULT_PIPE_BUFFER_CHUNKS

    @classmethod
    def from_env(cls) -> "StagingConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            BlobstageConfigError: If environment values are invalid.
        """
        upload_chunk_size = _parse_positive_int(
            "BLOBSTAGE_UPLOAD_CHUNK_SIZE", DEFAULT_UPLOAD_CHUNK_SIZE
        )
        if upload_chunk_size < S3_MIN_PART_SIZE:
            raise BlobstageConfigError(
                "Invalid BLOBSTAGE_UPLOAD_CHUNK_SIZE value: "
                f"expected at least {S3_MIN_PART_SIZE} bytes, got {upload_chunk_size}. "
                "Raise the chunk size to the S3 minimum part size."
            )
        return cls(
            s3_region=os.getenv("BLOBSTAGE_S3_REGION"),
            s3_profile=os.getenv("BLOBSTAGE_S3_PROFILE"),
            s3_endpoint_url=os.getenv("BLOBSTAGE_S3_ENDPOINT_URL"),
            staging_uri=os.getenv("BLOBSTAGE_STAGING_URI"),
            upload_chunk_size=upload_chunk_size,
            upload_max_concurrency=_parse_positive_int(
                "BLOBSTAGE_UPLOAD_MAX_CONCURRENCY", DEFAULT_UPLOAD_MAX_CONCURRENCY
            ),
            pipe_buffer_chunks=_parse_positive_int(
                "BLOBSTAGE_PIPE_BUFFER_CHUNKS", DEFAULT_PIPE_BUFFER_CHUNKS
            ),
        )

    def staging_location(self) -> S3Location:
        """Return the parsed staging destination.

        Raises:
            BlobstageConfigError: If no staging URI is set or it is invalid.
        """
        if not self.staging_uri:
            raise BlobstageConfigError(
                "Missing BLOBSTAGE_STAGING_URI: no staging destination configured. "
                "Set it to s3://bucket/prefix."
            )
        return parse_s3_uri(self.staging_uri)


def _parse_positive_int(name: str, default: int) -> int:
    """Parse a positive integer environment value.

    Args:
        name: Environment variable name.
        default: Value used when the variable is unset.

    Returns:
        Parsed integer.

    Raises:
        BlobstageConfigError: If value is not a positive integer.
    """
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        value = int(raw_value)
    except ValueError as error:
        raise BlobstageConfigError(
            f"Invalid {name} value: "
            f"expected integer, got '{raw_value}'. "
            f"Set {name} to a numeric value."
        ) from error
    if value <= 0:
        raise BlobstageConfigError(
            f"Invalid {name} value: expected a positive integer, got {value}. "
            f"Set {name} above zero."
        )
    return value
