"""Blobstage exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Staging failures carry an operation and a kind so callers can branch
on them without matching message text.
"""

from __future__ import annotations

from enum import Enum


class BlobstageError(Exception):
    """Base exception for all Blobstage failures."""


class BlobstageConfigError(BlobstageError):
    """Raised for invalid runtime configuration."""


class BlobstageDependencyError(BlobstageError):
    """Raised when an optional runtime dependency is missing."""


class UploadCancelledError(BlobstageError):
    """Raised inside a transfer once its cancel event is set."""


class PipeProducerError(BlobstageError):
    """Raised on the reading side of a byte pipe when the producer failed."""


class ErrorOp(str, Enum):
    """Call site that produced a staging failure."""

    FILE_INGEST = "file ingest"
    STREAM_INGEST = "stream ingest"


class ErrorKind(str, Enum):
    """Failure category of a staging error."""

    LOCAL_FILE_SYSTEM = "local file system"
    BLOBSTORE = "blobstore"
    UNSUPPORTED_SOURCE = "unsupported source"


class StagingError(BlobstageError):
    """Classified staging failure.

    Attributes:
        op: Operation that failed.
        kind: Failure category.
        cause: Underlying low-level error, if any.
    """

    def __init__(
        self,
        op: ErrorOp,
        kind: ErrorKind,
        message: str,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(f"{op.value}: {kind.value}: {message}")
        self.op = op
        self.kind = kind
        self.message = message
        self.cause = cause

    @property
    def retryable(self) -> bool:
        """Return whether retrying the same call could succeed."""
        return self.kind is ErrorKind.BLOBSTORE
