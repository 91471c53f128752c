"""Unit tests for the boto3 blob transport."""

from __future__ import annotations

import io
from typing import Any

from core.config import StagingConfig
from store.blob_transport import BlobUploadOptions, S3BlobTransport, create_s3_client


class _RecordingS3Client:
    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []

    def upload_fileobj(self, fileobj: Any, bucket: str, key: str, **kwargs: Any) -> None:
        self.calls.append(("upload_fileobj", {"Fileobj": fileobj, "Bucket": bucket, "Key": key, **kwargs}))

    def put_object(self, **kwargs: Any) -> dict[str, str]:
        self.calls.append(("put_object", kwargs))
        return {"ETag": "etag"}


def test_upload_stream_uses_managed_transfer() -> None:
    """Stream uploads should pass chunking and encoding to upload_fileobj."""
    client = _RecordingS3Client()
    reader = io.BytesIO(b"payload")
    options = BlobUploadOptions(content_encoding="gzip", chunk_size=6 * 1024 * 1024, max_concurrency=2)

    S3BlobTransport().upload_stream(reader, client, "bucket", "prefix/blob.gz", options)

    name, call = client.calls[0]
    assert name == "upload_fileobj"
    assert (call["Fileobj"], call["Bucket"], call["Key"]) == (reader, "bucket", "prefix/blob.gz")
    assert call["ExtraArgs"] == {"ContentEncoding": "gzip"}
    assert call["Config"].multipart_chunksize == 6 * 1024 * 1024


def test_upload_file_sends_single_put_object() -> None:
    """File uploads should send the handle and length in one request."""
    client = _RecordingS3Client()
    handle = io.BytesIO(b"payload")

    response = S3BlobTransport().upload_file(
        handle, client, "bucket", "prefix/blob.csv.gz", BlobUploadOptions(content_length=7)
    )

    assert response == {"ETag": "etag"}
    assert client.calls == [
        (
            "put_object",
            {"Bucket": "bucket", "Key": "prefix/blob.csv.gz", "Body": handle, "ContentLength": 7},
        )
    ]


def test_create_s3_client_applies_endpoint_and_region() -> None:
    """Client should honour the configured endpoint and region."""
    config = StagingConfig(s3_region="us-east-1", s3_endpoint_url="http://localhost:9000")

    client = create_s3_client(config)

    assert client.meta.endpoint_url == "http://localhost:9000"
    assert client.meta.region_name == "us-east-1"
