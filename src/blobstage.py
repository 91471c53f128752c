"""Public SDK surface for Blobstage.

This module provides a stable import path for staging users.
It re-exports the stager, uploader and typed models.
"""

from __future__ import annotations

from core.config import StagingConfig
from core.errors import (
    BlobstageConfigError,
    BlobstageDependencyError,
    BlobstageError,
    ErrorKind,
    ErrorOp,
    StagingError,
)
from core.s3_uri import S3Location, parse_s3_uri
from core.types import (
    BlobUploadResult,
    CompressionType,
    DataFormat,
    IngestionProperties,
    SourceFileInfo,
    SourceOptions,
    StagedSource,
)
from ingest.compression_discovery import COMPRESSION_EXTENSIONS, discover_compression_type
from ingest.compression_policy import NON_COMPRESSIBLE_FORMATS, should_compress
from ingest.format_discovery import (
    DATA_FORMAT_EXTENSIONS,
    complete_format_from_file_name,
    discover_data_format,
    parse_data_format,
)
from ingest.source_locator import SourceLocator, stat_local_path
from ingest.source_staging import SourceStager
from store.blob_transport import BlobTransport, BlobUploadOptions, S3BlobTransport, create_s3_client
from store.blob_uploader import BlobUploader


def build_stager(config: StagingConfig | None = None) -> SourceStager:
    """Build a stager wired to boto3 from runtime config.

    Args:
        config: Optional config; read from the environment when omitted.

    Returns:
        Stager uploading into the configured staging URI.

    Raises:
        BlobstageConfigError: If no valid staging URI is configured.
        BlobstageDependencyError: If boto3 is missing.
    """
    resolved_config = config or StagingConfig.from_env()
    destination = resolved_config.staging_location()
    uploader = BlobUploader(S3BlobTransport(), resolved_config)
    return SourceStager(
        SourceLocator(),
        uploader,
        create_s3_client(resolved_config),
        destination,
    )


__all__ = [
    "BlobTransport",
    "BlobUploadOptions",
    "BlobUploadResult",
    "BlobUploader",
    "BlobstageConfigError",
    "BlobstageDependencyError",
    "BlobstageError",
    "COMPRESSION_EXTENSIONS",
    "CompressionType",
    "DATA_FORMAT_EXTENSIONS",
    "DataFormat",
    "ErrorKind",
    "ErrorOp",
    "IngestionProperties",
    "NON_COMPRESSIBLE_FORMATS",
    "S3BlobTransport",
    "S3Location",
    "SourceFileInfo",
    "SourceLocator",
    "SourceOptions",
    "SourceStager",
    "StagedSource",
    "StagingConfig",
    "StagingError",
    "build_stager",
    "complete_format_from_file_name",
    "create_s3_client",
    "discover_compression_type",
    "discover_data_format",
    "parse_data_format",
    "parse_s3_uri",
    "should_compress",
    "stat_local_path",
]
