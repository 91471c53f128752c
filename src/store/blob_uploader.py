"""Local source to blobstore uploads.

This module opens a source, applies the compression policy and moves
the bytes with one of two transports: a gzip stream fed through a byte
pipe, or the open file handed over unchanged.
"""

from __future__ import annotations

import io
import os
import stat
import threading
import zlib
from concurrent.futures import ThreadPoolExecutor
from typing import Any, BinaryIO
from uuid import uuid4

from core.config import StagingConfig
from core.constants import GZIP_BLOB_SUFFIX, GZIP_CONTENT_ENCODING, SOURCE_READ_CHUNK_SIZE
from core.errors import ErrorKind, ErrorOp, StagingError, UploadCancelledError
from core.logging_config import get_logger
from core.s3_uri import S3Location
from core.types import BlobUploadResult, IngestionProperties
from ingest.compression_discovery import discover_compression_type
from ingest.compression_policy import should_compress
from ingest.source_names import source_file_name
from store.blob_transport import BlobTransport, BlobUploadOptions
from store.byte_pipe import PipeWriter, create_byte_pipe

_LOGGER = get_logger(__name__)

GZIP_WBITS = 16 + zlib.MAX_WBITS
STREAM_BLOB_BASE_NAME = "stream"


class BlobUploader:
    """Uploads single sources into a blob container.

    Transports are injected so production and test implementations
    share the same decision and error-classification path.
    """

    def __init__(self, transport: BlobTransport, config: StagingConfig | None = None) -> None:
        """Initialize the uploader.

        Args:
            transport: Stream and whole-file upload capabilities.
            config: Runtime config for transfer and pipe sizing.
        """
        self._transport = transport
        self._config = config or StagingConfig()

    def local_to_blob(
        self,
        source: str,
        client: Any,
        destination: S3Location,
        props: IngestionProperties,
        cancel_event: threading.Event | None = None,
    ) -> BlobUploadResult:
        """Upload a local file into the destination container.

        Args:
            source: Local file path.
            client: Blobstore client handed to the transport.
            destination: Container and object-name prefix.
            props: Ingestion properties with ``data_format`` resolved.
            cancel_event: Optional event that aborts the transfer when set.

        Returns:
            Upload outcome with the generated blob name.

        Raises:
            StagingError: ``LOCAL_FILE_SYSTEM`` if the source cannot be
                opened or inspected, ``BLOBSTORE`` if the upload fails.
        """
        handle = _open_source(source)
        with handle:
            size = _stat_source(handle, source)
            compress = should_compress(props, discover_compression_type(source))
            blob_name = destination.object_key(
                _blob_base_name(props, source_file_name(source), compress)
            )
            blob_uri = destination.object_uri(blob_name)
            _LOGGER.info(
                "blob_upload_started",
                source=source,
                blob_uri=blob_uri,
                compressed=compress,
                size=size,
            )
            try:
                if compress:
                    bytes_written, raw_size = self._upload_compressed(
                        handle, client, destination.bucket, blob_name, cancel_event
                    )
                else:
                    bytes_written = raw_size = self._upload_file(
                        handle, size, client, destination.bucket, blob_name, cancel_event
                    )
            except Exception as error:
                _LOGGER.error("blob_upload_failed", source=source, blob_uri=blob_uri, error=str(error))
                raise StagingError(
                    ErrorOp.FILE_INGEST,
                    ErrorKind.BLOBSTORE,
                    f"Failed to upload {source} to {blob_uri}: {error}. "
                    "Check blobstore credentials and connectivity, then retry.",
                    cause=error,
                ) from error
        _LOGGER.info("blob_upload_completed", blob_uri=blob_uri, bytes_written=bytes_written)
        return BlobUploadResult(
            blob_name=blob_name,
            blob_uri=blob_uri,
            bytes_written=bytes_written,
            raw_data_size=raw_size,
            compressed=compress,
        )

    def reader_to_blob(
        self,
        reader: BinaryIO,
        client: Any,
        destination: S3Location,
        props: IngestionProperties,
        cancel_event: threading.Event | None = None,
    ) -> BlobUploadResult:
        """Upload an open binary stream into the destination container.

        Compression is discovered from ``props.source.original_source``.
        The stream transport is always used; the reader is not closed.

        Raises:
            StagingError: ``BLOBSTORE`` if the upload fails.
        """
        original_source = props.source.original_source
        compress = should_compress(props, discover_compression_type(original_source))
        base_name = source_file_name(original_source) or STREAM_BLOB_BASE_NAME
        blob_name = destination.object_key(_blob_base_name(props, base_name, compress))
        blob_uri = destination.object_uri(blob_name)
        _LOGGER.info("blob_upload_started", source=original_source, blob_uri=blob_uri, compressed=compress)
        try:
            if compress:
                bytes_written, raw_size = self._upload_compressed(
                    reader, client, destination.bucket, blob_name, cancel_event
                )
            else:
                guarded = _GuardedReader(reader, cancel_event)
                self._transport.upload_stream(
                    guarded,  # type: ignore[arg-type]
                    client,
                    destination.bucket,
                    blob_name,
                    self._stream_options(content_encoding=None),
                )
                bytes_written = raw_size = guarded.bytes_read
        except Exception as error:
            _LOGGER.error("blob_upload_failed", source=original_source, blob_uri=blob_uri, error=str(error))
            raise StagingError(
                ErrorOp.STREAM_INGEST,
                ErrorKind.BLOBSTORE,
                f"Failed to upload stream to {blob_uri}: {error}. "
                "Check blobstore credentials and connectivity, then retry.",
                cause=error,
            ) from error
        _LOGGER.info("blob_upload_completed", blob_uri=blob_uri, bytes_written=bytes_written)
        return BlobUploadResult(
            blob_name=blob_name,
            blob_uri=blob_uri,
            bytes_written=bytes_written,
            raw_data_size=raw_size,
            compressed=compress,
        )

    def _upload_compressed(
        self,
        source: BinaryIO,
        client: Any,
        container: str,
        blob_name: str,
        cancel_event: threading.Event | None,
    ) -> tuple[int, int]:
        """Gzip ``source`` on a producer thread while the transport reads the pipe.

        Returns:
            Compressed bytes transmitted and raw bytes read from ``source``.
        """
        pipe_reader, pipe_writer = create_byte_pipe(self._config.pipe_buffer_chunks, cancel_event)
        upload_reader = io.BufferedReader(pipe_reader, buffer_size=SOURCE_READ_CHUNK_SIZE)
        with ThreadPoolExecutor(max_workers=1, thread_name_prefix="blobstage-gzip") as executor:
            producer = executor.submit(_gzip_into_pipe, source, pipe_writer, cancel_event)
            try:
                self._transport.upload_stream(
                    upload_reader,
                    client,
                    container,
                    blob_name,
                    self._stream_options(content_encoding=GZIP_CONTENT_ENCODING),
                )
            finally:
                upload_reader.close()
            raw_size = producer.result()
        return pipe_writer.bytes_written, raw_size

    def _upload_file(
        self,
        handle: BinaryIO,
        size: int,
        client: Any,
        container: str,
        blob_name: str,
        cancel_event: threading.Event | None,
    ) -> int:
        """Send the open file through the whole-file transport.

        Without a cancel event the handle is passed unchanged and the
        stat-time size is reported; with one, the handle is wrapped and
        the bytes the transport actually consumed are reported.

        Returns:
            Bytes transmitted.
        """
        options = BlobUploadOptions(content_length=size)
        if cancel_event is None:
            self._transport.upload_file(handle, client, container, blob_name, options)
            return size
        guarded = _GuardedReader(handle, cancel_event)
        self._transport.upload_file(
            guarded,  # type: ignore[arg-type]
            client,
            container,
            blob_name,
            options,
        )
        return guarded.bytes_read

    def _stream_options(self, content_encoding: str | None) -> BlobUploadOptions:
        return BlobUploadOptions(
            content_encoding=content_encoding,
            chunk_size=self._config.upload_chunk_size,
            max_concurrency=self._config.upload_max_concurrency,
        )


def _gzip_into_pipe(
    source: BinaryIO,
    writer: PipeWriter,
    cancel_event: threading.Event | None,
) -> int:
    """Compress ``source`` into ``writer`` and close it.

    The writer is closed with the failure when reading, compressing or
    writing fails, so the reading side raises instead of stalling.

    Returns:
        Raw bytes read from ``source``.
    """
    encoder = zlib.compressobj(wbits=GZIP_WBITS)
    raw_size = 0
    try:
        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise UploadCancelledError("Upload cancelled while compressing the source.")
            chunk = source.read(SOURCE_READ_CHUNK_SIZE)
            if not chunk:
                break
            raw_size += len(chunk)
            writer.write(encoder.compress(chunk))
        writer.write(encoder.flush())
    except BaseException as error:
        writer.close_with_error(error)
        raise
    writer.close()
    return raw_size


class _GuardedReader:
    """Read-through wrapper that counts bytes and honours a cancel event.

    Seeking back and re-reading (checksum passes, part retries) does not
    inflate the count: ``bytes_read`` is the furthest offset reached.
    """

    def __init__(self, handle: BinaryIO, cancel_event: threading.Event | None) -> None:
        self._handle = handle
        self._cancel_event = cancel_event
        self._start = handle.tell() if handle.seekable() else 0
        self._position = self._start
        self._furthest = self._start

    @property
    def bytes_read(self) -> int:
        """Return the number of distinct source bytes consumed."""
        return self._furthest - self._start

    def read(self, size: int = -1) -> bytes:
        """Read from the wrapped handle unless the upload was cancelled."""
        if self._cancel_event is not None and self._cancel_event.is_set():
            raise UploadCancelledError("Upload cancelled while reading the source.")
        data = self._handle.read(size)
        self._position += len(data)
        self._furthest = max(self._furthest, self._position)
        return data

    def seek(self, offset: int, whence: int = os.SEEK_SET) -> int:
        """Seek the wrapped handle and track the new offset."""
        self._position = self._handle.seek(offset, whence)
        return self._position

    def tell(self) -> int:
        """Return the wrapped handle's offset."""
        return self._handle.tell()

    def seekable(self) -> bool:
        """Return whether the wrapped handle can seek."""
        return self._handle.seekable()

    def readable(self) -> bool:
        return True


def _open_source(source: str) -> BinaryIO:
    """Open a local source for binary reading.

    Raises:
        StagingError: ``LOCAL_FILE_SYSTEM`` if the file cannot be opened.
    """
    try:
        return open(source, "rb")
    except OSError as error:
        raise StagingError(
            ErrorOp.FILE_INGEST,
            ErrorKind.LOCAL_FILE_SYSTEM,
            f"Failed to open local source {source!r}: {error}. "
            "Provide an existing, readable file.",
            cause=error,
        ) from error


def _stat_source(handle: BinaryIO, source: str) -> int:
    """Return the size of an open source, rejecting directories.

    Raises:
        StagingError: ``LOCAL_FILE_SYSTEM`` if the handle cannot be inspected.
    """
    try:
        result = os.fstat(handle.fileno())
    except OSError as error:
        raise StagingError(
            ErrorOp.FILE_INGEST,
            ErrorKind.LOCAL_FILE_SYSTEM,
            f"Failed to stat local source {source!r}: {error}. "
            "Check the file still exists and is readable.",
            cause=error,
        ) from error
    if stat.S_ISDIR(result.st_mode):
        raise StagingError(
            ErrorOp.FILE_INGEST,
            ErrorKind.LOCAL_FILE_SYSTEM,
            f"Local source {source!r} is a directory. Stage each file separately.",
        )
    return result.st_size


def _blob_base_name(props: IngestionProperties, file_name: str, compressed: bool) -> str:
    """Build a unique blob name from the target table and source name."""
    parts = (props.database_name, props.table_name, uuid4().hex, file_name)
    name = "_".join(part for part in parts if part)
    if compressed:
        name += GZIP_BLOB_SUFFIX
    return name
