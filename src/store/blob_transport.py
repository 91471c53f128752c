"""Blobstore transports.

This module defines the two-method transport contract used by the
uploader and its boto3 implementation, plus S3 client creation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, BinaryIO, Protocol

from core.config import StagingConfig
from core.constants import DEFAULT_UPLOAD_CHUNK_SIZE, DEFAULT_UPLOAD_MAX_CONCURRENCY
from core.errors import BlobstageDependencyError


@dataclass(frozen=True)
class BlobUploadOptions:
    """Per-upload transport options.

    Attributes:
        content_encoding: ``Content-Encoding`` stored on the object.
        chunk_size: Multipart part size for streamed uploads.
        max_concurrency: Parallel part uploads for streamed uploads.
        content_length: Exact payload size for whole-file uploads.
    """

    content_encoding: str | None = None
    chunk_size: int = DEFAULT_UPLOAD_CHUNK_SIZE
    max_concurrency: int = DEFAULT_UPLOAD_MAX_CONCURRENCY
    content_length: int | None = None


class BlobTransport(Protocol):
    """Upload capabilities required by the blob uploader."""

    def upload_stream(
        self,
        reader: BinaryIO,
        client: Any,
        container: str,
        blob_name: str,
        options: BlobUploadOptions,
    ) -> Any: ...

    def upload_file(
        self,
        handle: BinaryIO,
        client: Any,
        container: str,
        blob_name: str,
        options: BlobUploadOptions,
    ) -> Any: ...


class S3BlobTransport:
    """Boto3-backed transport for S3-compatible object stores."""

    def upload_stream(
        self,
        reader: BinaryIO,
        client: Any,
        container: str,
        blob_name: str,
        options: BlobUploadOptions,
    ) -> Any:
        """Upload a non-seekable stream with a managed multipart upload.

        Args:
            reader: Stream read to exhaustion.
            client: Boto3 S3 client.
            container: Destination bucket.
            blob_name: Destination object key.
            options: Transfer options.

        Returns:
            None; boto3 managed transfers do not return a response.
        """
        from boto3.s3.transfer import TransferConfig

        transfer_config = TransferConfig(
            multipart_chunksize=options.chunk_size,
            max_concurrency=options.max_concurrency,
        )
        return client.upload_fileobj(
            reader,
            container,
            blob_name,
            ExtraArgs=_extra_args(options),
            Config=transfer_config,
        )

    def upload_file(
        self,
        handle: BinaryIO,
        client: Any,
        container: str,
        blob_name: str,
        options: BlobUploadOptions,
    ) -> Any:
        """Upload an open file in a single ``PutObject`` call.

        Args:
            handle: Open binary file positioned at its start.
            client: Boto3 S3 client.
            container: Destination bucket.
            blob_name: Destination object key.
            options: Transfer options; ``content_length`` is sent when set.

        Returns:
            The ``PutObject`` response mapping.
        """
        request: dict[str, Any] = {"Bucket": container, "Key": blob_name, "Body": handle}
        if options.content_length is not None:
            request["ContentLength"] = options.content_length
        request.update(_extra_args(options))
        return client.put_object(**request)


def _extra_args(options: BlobUploadOptions) -> dict[str, str]:
    """Build object metadata arguments shared by both transports."""
    extra_args: dict[str, str] = {}
    if options.content_encoding:
        extra_args["ContentEncoding"] = options.content_encoding
    return extra_args


def create_s3_client(config: StagingConfig) -> Any:
    """Create boto3 S3 client for staging uploads.

    Args:
        config: Runtime config with optional session settings.

    Returns:
        Boto3 S3 client.

    Raises:
        BlobstageDependencyError: If boto3 is missing.
    """
    try:
        import boto3
    except ImportError as error:
        raise BlobstageDependencyError(
            "Blob staging requires boto3, but it is not installed. "
            "Install boto3 to upload sources to s3:// destinations."
        ) from error
    session_kwargs: dict[str, str] = {}
    if config.s3_profile:
        session_kwargs["profile_name"] = config.s3_profile
    if config.s3_region:
        session_kwargs["region_name"] = config.s3_region
    session = boto3.session.Session(**session_kwargs)
    client_kwargs: dict[str, str] = {}
    if config.s3_endpoint_url:
        client_kwargs["endpoint_url"] = config.s3_endpoint_url
    return session.client("s3", **client_kwargs)
