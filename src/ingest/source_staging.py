"""Single-source staging.

This module turns one source reference into the URI the ingestion
backend reads: remote URLs pass through, local files are uploaded.
"""

from __future__ import annotations

import threading
from typing import Any

from core.logging_config import get_logger
from core.s3_uri import S3Location
from core.types import IngestionProperties, StagedSource
from ingest.format_discovery import complete_format_from_file_name
from ingest.source_locator import SourceLocator
from store.blob_uploader import BlobUploader

_LOGGER = get_logger(__name__)


class SourceStager:
    """Stages single sources into a blob container."""

    def __init__(
        self,
        locator: SourceLocator,
        uploader: BlobUploader,
        client: Any,
        destination: S3Location,
    ) -> None:
        """Initialize the stager.

        Args:
            locator: Local versus remote classifier.
            uploader: Uploader used for local files.
            client: Blobstore client handed to the uploader.
            destination: Container and object-name prefix for uploads.
        """
        self._locator = locator
        self._uploader = uploader
        self._client = client
        self._destination = destination

    def stage(
        self,
        props: IngestionProperties,
        cancel_event: threading.Event | None = None,
    ) -> StagedSource:
        """Stage ``props.source.original_source``.

        Args:
            props: Ingestion properties; ``data_format`` is filled in
                when undeclared.
            cancel_event: Optional event that aborts an upload when set.

        Returns:
            Staged source with the URI for the ingestion backend.

        Raises:
            StagingError: If the source is unsupported, unreadable or
                the upload fails.
        """
        source = props.source.original_source
        is_local = self._locator.is_local_path(source)
        complete_format_from_file_name(props, source)
        if not is_local:
            _LOGGER.info("source_staged", source=source, is_local=False, data_format=props.data_format.value)
            return StagedSource(source_uri=source, is_local=False, data_format=props.data_format)
        upload = self._uploader.local_to_blob(
            source, self._client, self._destination, props, cancel_event=cancel_event
        )
        _LOGGER.info(
            "source_staged",
            source=source,
            is_local=True,
            data_format=props.data_format.value,
            blob_uri=upload.blob_uri,
        )
        return StagedSource(
            source_uri=upload.blob_uri,
            is_local=True,
            data_format=props.data_format,
            upload=upload,
        )
