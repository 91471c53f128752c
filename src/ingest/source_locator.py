"""Local versus remote source resolution.

This module decides whether a source reference is a local file to
upload or a remote URL the ingestion backend reads directly.
"""

from __future__ import annotations

import os
import stat
from typing import Callable
from urllib.parse import urlsplit

from core.constants import REMOTE_SOURCE_SCHEMES
from core.errors import ErrorKind, ErrorOp, StagingError
from core.types import SourceFileInfo

FileProbe = Callable[[str], SourceFileInfo]


def stat_local_path(path: str) -> SourceFileInfo:
    """Probe a local path with ``os.stat``.

    Raises:
        OSError: If the path does not exist or cannot be inspected.
    """
    result = os.stat(path)
    return SourceFileInfo(path=path, is_dir=stat.S_ISDIR(result.st_mode), size=result.st_size)


class SourceLocator:
    """Classifies source references as local files or remote URLs."""

    def __init__(self, probe: FileProbe = stat_local_path) -> None:
        """Initialize the locator.

        Args:
            probe: Filesystem probe used for non-URL sources.
        """
        self._probe = probe

    def is_local_path(self, source: str) -> bool:
        """Return whether ``source`` is a local file.

        Args:
            source: Local path or URL.

        Returns:
            True for an existing regular file, False for an http(s) URL.

        Raises:
            StagingError: For unsupported URL schemes, missing or
                unreadable paths, and directories.
        """
        scheme = _url_scheme(source)
        if scheme in REMOTE_SOURCE_SCHEMES:
            return False
        if scheme:
            raise StagingError(
                ErrorOp.FILE_INGEST,
                ErrorKind.UNSUPPORTED_SOURCE,
                f"Unsupported source scheme '{scheme}' in {source}. "
                "Use a local file path or an http(s) URL.",
            )
        try:
            info = self._probe(source)
        except OSError as error:
            raise StagingError(
                ErrorOp.FILE_INGEST,
                ErrorKind.LOCAL_FILE_SYSTEM,
                f"Failed to inspect local source {source}: {error}. "
                "Provide an existing, readable file.",
                cause=error,
            ) from error
        if info.is_dir:
            raise StagingError(
                ErrorOp.FILE_INGEST,
                ErrorKind.LOCAL_FILE_SYSTEM,
                f"Local source {source} is a directory. "
                "Stage each file in the directory separately.",
            )
        return True


def _url_scheme(source: str) -> str:
    """Return the lower-cased URL scheme of a source, or an empty string.

    Single-letter schemes are Windows drive letters, not URLs.
    """
    scheme = urlsplit(source).scheme.lower()
    if len(scheme) < 2:
        return ""
    return scheme
