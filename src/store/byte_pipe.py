"""Single-producer, single-consumer byte pipe.

This module bridges a writer running on a producer thread (the gzip
encoder) and a reader consumed by a blocking upload call. The queue is
bounded so the producer never runs ahead of the network by more than
``max_buffered_chunks`` chunks.
"""

from __future__ import annotations

import io
import queue
import threading
from dataclasses import dataclass

from core.constants import PIPE_POLL_INTERVAL_SECONDS
from core.errors import PipeProducerError, UploadCancelledError

_END_OF_STREAM = object()


@dataclass(frozen=True)
class _ProducerFailure:
    error: BaseException


class _PipeState:
    """State shared by both ends of one pipe."""

    def __init__(self, max_buffered_chunks: int, cancel_event: threading.Event | None) -> None:
        self.chunks: queue.Queue[object] = queue.Queue(maxsize=max_buffered_chunks)
        self.cancel_event = cancel_event
        self.reader_closed = threading.Event()

    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()


class PipeWriter(io.RawIOBase):
    """Write side of a byte pipe."""

    def __init__(self, state: _PipeState) -> None:
        super().__init__()
        self._state = state
        self._finished = False
        self.bytes_written = 0

    def writable(self) -> bool:
        return True

    def write(self, data: bytes | bytearray | memoryview) -> int:  # type: ignore[override]
        """Queue a copy of ``data`` for the reader.

        Raises:
            BrokenPipeError: If the reader was closed or the pipe finished.
            UploadCancelledError: If the cancel event is set.
        """
        if self._finished:
            raise BrokenPipeError("Pipe writer is already closed.")
        chunk = bytes(data)
        if chunk:
            self._put(chunk)
            self.bytes_written += len(chunk)
        return len(chunk)

    def close(self) -> None:
        """Signal end of stream to the reader."""
        if not self._finished:
            self._finish(_END_OF_STREAM)
        super().close()

    def close_with_error(self, error: BaseException) -> None:
        """End the stream so the reader raises ``PipeProducerError``."""
        if not self._finished:
            self._finish(_ProducerFailure(error))
        super().close()

    def _finish(self, marker: object) -> None:
        self._finished = True
        try:
            self._put(marker)
        except (BrokenPipeError, UploadCancelledError):
            # reader is gone; nobody is left to observe the marker
            pass

    def _put(self, item: object) -> None:
        while True:
            if self._state.reader_closed.is_set():
                raise BrokenPipeError("Pipe reader closed before the producer finished.")
            if self._state.cancelled():
                raise UploadCancelledError("Upload cancelled while writing to the pipe.")
            try:
                self._state.chunks.put(item, timeout=PIPE_POLL_INTERVAL_SECONDS)
                return
            except queue.Full:
                continue


class PipeReader(io.RawIOBase):
    """Read side of a byte pipe."""

    def __init__(self, state: _PipeState) -> None:
        super().__init__()
        self._state = state
        self._pending = b""
        self._eof = False
        self._failure: _ProducerFailure | None = None

    def readable(self) -> bool:
        return True

    def readinto(self, buffer: bytearray | memoryview) -> int:  # type: ignore[override]
        """Fill ``buffer`` with the next available bytes.

        Returns:
            Number of bytes copied, zero at end of stream.

        Raises:
            PipeProducerError: If the producer closed the pipe with an error,
                on this and every later read.
            UploadCancelledError: If the cancel event is set.
        """
        if self._failure is not None:
            raise _producer_error(self._failure) from self._failure.error
        if not self._pending and not self._eof:
            self._pending = self._next_chunk()
        if not self._pending:
            return 0
        size = min(len(buffer), len(self._pending))
        buffer[:size] = self._pending[:size]
        self._pending = self._pending[size:]
        return size

    def close(self) -> None:
        """Close the reader and release a producer blocked on a full pipe."""
        self._state.reader_closed.set()
        super().close()

    def _next_chunk(self) -> bytes:
        while True:
            if self._state.cancelled():
                raise UploadCancelledError("Upload cancelled while reading from the pipe.")
            try:
                item = self._state.chunks.get(timeout=PIPE_POLL_INTERVAL_SECONDS)
            except queue.Empty:
                continue
            if item is _END_OF_STREAM:
                self._eof = True
                return b""
            if isinstance(item, _ProducerFailure):
                self._failure = item
                raise _producer_error(item) from item.error
            return item  # type: ignore[return-value]


def _producer_error(failure: _ProducerFailure) -> PipeProducerError:
    """Build the reader-side error for a failed producer."""
    return PipeProducerError(f"Pipe producer failed: {failure.error}.")


def create_byte_pipe(
    max_buffered_chunks: int,
    cancel_event: threading.Event | None = None,
) -> tuple[PipeReader, PipeWriter]:
    """Create a connected reader and writer pair.

    Args:
        max_buffered_chunks: Chunks the writer may queue ahead of the reader.
        cancel_event: Optional event that aborts both ends when set.

    Returns:
        Reader and writer sharing one bounded queue.
    """
    state = _PipeState(max_buffered_chunks, cancel_event)
    return PipeReader(state), PipeWriter(state)
