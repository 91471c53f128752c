"""Unit tests for local and stream uploads."""

from __future__ import annotations

import gzip
import io
import os
import random
import stat
import threading
from pathlib import Path
from typing import Any, BinaryIO

import pytest

from core.config import StagingConfig
from core.errors import ErrorKind, ErrorOp, PipeProducerError, StagingError, UploadCancelledError
from core.s3_uri import S3Location
from core.types import IngestionProperties, SourceOptions
from store.blob_transport import BlobUploadOptions
from store.blob_uploader import BlobUploader
from tests.fake_blobstore import FakeBlobstore

CONTENT = b"hello world"
_DESTINATION = S3Location(bucket="ingest-bucket", prefix="test")


@pytest.fixture
def text_file(tmp_path: Path) -> Path:
    path = tmp_path / "test_file"
    path.write_bytes(CONTENT)
    return path


@pytest.fixture
def gzip_file(tmp_path: Path) -> Path:
    path = tmp_path / "test_file.gz"
    path.write_bytes(gzip.compress(CONTENT))
    return path


def _props(source: Path | str) -> IngestionProperties:
    return IngestionProperties(source=SourceOptions(original_source=str(source)))


def _upload(fake: FakeBlobstore, source: Path | str, **kwargs: object):
    uploader = BlobUploader(fake)
    return uploader.local_to_blob(str(source), object(), _DESTINATION, _props(source), **kwargs)


@pytest.mark.parametrize("source", ["/path/does/not/exist", ""])
def test_local_to_blob_raises_when_file_cannot_be_opened(source: str) -> None:
    """Unopenable sources should be local filesystem failures."""
    with pytest.raises(StagingError) as error_info:
        _upload(FakeBlobstore(), source)

    assert (error_info.value.op, error_info.value.kind) == (
        ErrorOp.FILE_INGEST,
        ErrorKind.LOCAL_FILE_SYSTEM,
    )


def test_local_to_blob_raises_for_directory(tmp_path: Path) -> None:
    """Directories should be rejected as local filesystem failures."""
    with pytest.raises(StagingError) as error_info:
        _upload(FakeBlobstore(), tmp_path)

    assert error_info.value.kind == ErrorKind.LOCAL_FILE_SYSTEM


def test_local_to_blob_stream_failure_is_blobstore_error(text_file: Path) -> None:
    """A failing stream transport should surface as a blobstore failure."""
    fake = FakeBlobstore(should_fail=True)

    with pytest.raises(StagingError) as error_info:
        _upload(fake, text_file)

    assert error_info.value.kind == ErrorKind.BLOBSTORE
    assert isinstance(error_info.value.cause, ConnectionError)
    assert fake.uploads[0].transport == "stream"


def test_local_to_blob_file_failure_is_blobstore_error(gzip_file: Path) -> None:
    """A failing file transport should surface as a blobstore failure."""
    fake = FakeBlobstore(should_fail=True)

    with pytest.raises(StagingError) as error_info:
        _upload(fake, gzip_file)

    assert error_info.value.kind == ErrorKind.BLOBSTORE
    assert fake.uploads[0].transport == "file"


def test_local_to_blob_streams_gzip_for_plain_text(text_file: Path) -> None:
    """Plain text should arrive gzip-compressed through the stream transport."""
    fake = FakeBlobstore()

    result = _upload(fake, text_file)

    assert gzip.decompress(fake.out.getvalue()) == CONTENT
    assert fake.uploads[0].transport == "stream"
    assert fake.uploads[0].options.content_encoding == "gzip"
    assert (result.compressed, result.raw_data_size) == (True, len(CONTENT))
    assert result.bytes_written == len(fake.out.getvalue())


def test_local_to_blob_sends_compressed_file_unchanged(gzip_file: Path) -> None:
    """Already compressed files should be sent byte-for-byte."""
    fake = FakeBlobstore()

    result = _upload(fake, gzip_file)

    assert fake.out.getvalue() == gzip_file.read_bytes()
    assert gzip.decompress(fake.out.getvalue()) == CONTENT
    assert fake.uploads[0].transport == "file"
    assert fake.uploads[0].options.content_length == gzip_file.stat().st_size
    assert result.compressed is False


def test_local_to_blob_names_blobs_uniquely(text_file: Path) -> None:
    """Each upload should target a distinct blob under the prefix."""
    fake = FakeBlobstore()

    first = _upload(fake, text_file)
    second = _upload(fake, text_file)

    assert first.blob_name != second.blob_name
    assert first.blob_name.startswith("test/") and first.blob_name.endswith("_test_file.gz")
    assert first.blob_uri == f"s3://ingest-bucket/{first.blob_name}"


def test_local_to_blob_streams_large_file_through_small_pipe(tmp_path: Path) -> None:
    """Payloads larger than the pipe buffer should arrive intact."""
    payload = bytes(range(256)) * 4096
    source = tmp_path / "large.csv"
    source.write_bytes(payload)
    fake = FakeBlobstore()
    uploader = BlobUploader(fake, StagingConfig(pipe_buffer_chunks=1))

    result = uploader.local_to_blob(str(source), object(), _DESTINATION, _props(source))

    assert gzip.decompress(fake.out.getvalue()) == payload
    assert result.raw_data_size == len(payload)


@pytest.mark.parametrize("fixture_name", ["text_file", "gzip_file"])
def test_local_to_blob_cancelled_upload_is_blobstore_error(
    fixture_name: str,
    request: pytest.FixtureRequest,
) -> None:
    """A set cancel event should abort either transport."""
    source = request.getfixturevalue(fixture_name)
    cancel_event = threading.Event()
    cancel_event.set()

    with pytest.raises(StagingError) as error_info:
        _upload(FakeBlobstore(), source, cancel_event=cancel_event)

    assert error_info.value.kind == ErrorKind.BLOBSTORE
    assert isinstance(error_info.value.cause, UploadCancelledError)


def test_reader_to_blob_compresses_text_stream() -> None:
    """Plain streams should be gzip-compressed."""
    fake = FakeBlobstore()
    props = IngestionProperties(source=SourceOptions(original_source="events.csv"))

    result = BlobUploader(fake).reader_to_blob(io.BytesIO(CONTENT), object(), _DESTINATION, props)

    assert gzip.decompress(fake.out.getvalue()) == CONTENT
    assert result.blob_name.endswith("_events.csv.gz")


def test_reader_to_blob_sends_compressed_stream_unchanged() -> None:
    """Streams named as gzip should be sent as-is."""
    fake = FakeBlobstore()
    payload = gzip.compress(CONTENT)
    props = IngestionProperties(source=SourceOptions(original_source="events.csv.gz"))

    result = BlobUploader(fake).reader_to_blob(io.BytesIO(payload), object(), _DESTINATION, props)

    assert fake.out.getvalue() == payload
    assert (result.bytes_written, result.compressed) == (len(payload), False)
    assert fake.uploads[0].options.content_encoding is None


class _BrokenReader(io.RawIOBase):
    def readable(self) -> bool:
        return True

    def readinto(self, buffer: bytearray) -> int:
        raise OSError("disk read failed")


def test_reader_to_blob_surfaces_producer_failure() -> None:
    """Source read failures should reach the upload and fail it."""
    props = IngestionProperties(source=SourceOptions(original_source="events.csv"))

    with pytest.raises(StagingError) as error_info:
        BlobUploader(FakeBlobstore()).reader_to_blob(_BrokenReader(), object(), _DESTINATION, props)

    assert error_info.value.op == ErrorOp.STREAM_INGEST
    assert isinstance(error_info.value.cause, PipeProducerError)
    assert isinstance(error_info.value.cause.__cause__, OSError)


def test_local_to_blob_stat_failure_is_local_filesystem_error(
    text_file: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """A source that cannot be inspected after opening should fail locally."""

    def _fail_fstat(fd: int) -> os.stat_result:
        raise OSError("stale file handle")

    monkeypatch.setattr(os, "fstat", _fail_fstat)
    fake = FakeBlobstore()

    with pytest.raises(StagingError) as error_info:
        _upload(fake, text_file)

    assert (error_info.value.op, error_info.value.kind) == (
        ErrorOp.FILE_INGEST,
        ErrorKind.LOCAL_FILE_SYSTEM,
    )
    assert isinstance(error_info.value.cause, OSError)
    assert fake.uploads == []


def test_local_to_blob_rejects_handle_that_stats_as_directory(
    text_file: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """An opened handle reporting a directory mode should not be uploaded."""

    def _directory_fstat(fd: int) -> os.stat_result:
        return os.stat_result((stat.S_IFDIR | 0o755, 0, 0, 0, 0, 0, 0, 0, 0, 0))

    monkeypatch.setattr(os, "fstat", _directory_fstat)
    fake = FakeBlobstore()

    with pytest.raises(StagingError) as error_info:
        _upload(fake, text_file)

    assert error_info.value.kind == ErrorKind.LOCAL_FILE_SYSTEM
    assert "directory" in str(error_info.value)
    assert fake.uploads == []


class _CancellingTransport:
    """Stream transport that sets the cancel event after its first read."""

    def __init__(self, cancel_event: threading.Event) -> None:
        self._cancel_event = cancel_event
        self.bytes_received = 0

    def upload_stream(
        self,
        reader: BinaryIO,
        client: Any,
        container: str,
        blob_name: str,
        options: BlobUploadOptions,
    ) -> None:
        self.bytes_received += len(reader.read(1024))
        self._cancel_event.set()
        while chunk := reader.read(1024):
            self.bytes_received += len(chunk)

    def upload_file(
        self,
        handle: BinaryIO,
        client: Any,
        container: str,
        blob_name: str,
        options: BlobUploadOptions,
    ) -> None:
        raise AssertionError("stream transport expected")


def _gzip_threads_alive() -> list[str]:
    return [thread.name for thread in threading.enumerate() if thread.name.startswith("blobstage-gzip")]


def test_local_to_blob_cancel_during_stream_stops_producer(tmp_path: Path) -> None:
    """Cancelling mid-transfer should fail the upload and release the gzip producer."""
    payload = random.Random(0).randbytes(4 * 1024 * 1024)
    source = tmp_path / "noise.csv"
    source.write_bytes(payload)
    cancel_event = threading.Event()
    transport = _CancellingTransport(cancel_event)
    uploader = BlobUploader(transport, StagingConfig(pipe_buffer_chunks=1))
    failures: list[BaseException] = []

    def _run() -> None:
        try:
            uploader.local_to_blob(
                str(source), object(), _DESTINATION, _props(source), cancel_event=cancel_event
            )
        except StagingError as error:
            failures.append(error)

    worker = threading.Thread(target=_run)
    worker.start()
    worker.join(timeout=10)

    assert not worker.is_alive()
    assert len(failures) == 1
    error = failures[0]
    assert isinstance(error, StagingError)
    assert error.kind == ErrorKind.BLOBSTORE
    assert isinstance(error.cause, UploadCancelledError)
    assert 0 < transport.bytes_received < len(payload)
    assert _gzip_threads_alive() == []


class _PartialFileTransport(FakeBlobstore):
    """File transport that only consumes the first few bytes."""

    def upload_file(
        self,
        handle: BinaryIO,
        client: Any,
        container: str,
        blob_name: str,
        options: BlobUploadOptions,
    ) -> None:
        self.out.write(handle.read(5))


class _RereadingTransport(FakeBlobstore):
    """Stream transport that reads everything twice, as a checksum pass would."""

    def upload_stream(
        self,
        reader: BinaryIO,
        client: Any,
        container: str,
        blob_name: str,
        options: BlobUploadOptions,
    ) -> None:
        reader.read()
        reader.seek(0)
        self.out.write(reader.read())


def test_local_to_blob_with_cancel_event_counts_bytes_sent(gzip_file: Path) -> None:
    """With a cancel event the file transport should report bytes actually read."""
    fake = FakeBlobstore()

    result = _upload(fake, gzip_file, cancel_event=threading.Event())

    assert result.bytes_written == gzip_file.stat().st_size
    assert fake.out.getvalue() == gzip_file.read_bytes()


def test_local_to_blob_with_cancel_event_reports_short_transfer(gzip_file: Path) -> None:
    """A transport that stops early should not be credited with the whole file."""
    fake = _PartialFileTransport()

    result = _upload(fake, gzip_file, cancel_event=threading.Event())

    assert result.bytes_written == 5
    assert result.raw_data_size == 5


def test_reader_to_blob_reread_does_not_inflate_count() -> None:
    """Seeking back and re-reading should count each source byte once."""
    fake = _RereadingTransport()
    payload = gzip.compress(CONTENT)
    props = IngestionProperties(source=SourceOptions(original_source="events.csv.gz"))

    result = BlobUploader(fake).reader_to_blob(io.BytesIO(payload), object(), _DESTINATION, props)

    assert fake.out.getvalue() == payload
    assert (result.bytes_written, result.raw_data_size) == (len(payload), len(payload))
