"""Shared typed models.

This module defines the data models used by classification, upload
and staging layers to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class DataFormat(str, Enum):
    """Row or record encoding of ingested data."""

    CSV = "csv"
    JSON = "json"
    AVRO = "avro"
    ORC = "orc"
    PARQUET = "parquet"
    PSV = "psv"
    RAW = "raw"
    SCSV = "scsv"
    SOHSV = "sohsv"
    TSV = "tsv"
    TXT = "txt"
    W3CLOGFILE = "w3clogfile"
    UNKNOWN = "unknown"

    @property
    def camel_name(self) -> str:
        """Return the format name as the ingestion backend spells it."""
        return _CAMEL_NAMES[self]


_CAMEL_NAMES = {
    DataFormat.CSV: "Csv",
    DataFormat.JSON: "Json",
    DataFormat.AVRO: "Avro",
    DataFormat.ORC: "Orc",
    DataFormat.PARQUET: "Parquet",
    DataFormat.PSV: "Psv",
    DataFormat.RAW: "Raw",
    DataFormat.SCSV: "Scsv",
    DataFormat.SOHSV: "Sohsv",
    DataFormat.TSV: "Tsv",
    DataFormat.TXT: "Txt",
    DataFormat.W3CLOGFILE: "W3CLogFile",
    DataFormat.UNKNOWN: "",
}


class CompressionType(str, Enum):
    """Compression container of a payload.

    ``NONE`` means declared uncompressed; ``UNKNOWN`` means not determined.
    """

    GZIP = "gzip"
    ZIP = "zip"
    NONE = "none"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class SourceOptions:
    """Per-source staging options.

    Attributes:
        original_source: Local path or remote URL of the data.
        compression_type: Caller-declared compression.
        dont_compress: Force uploading without compression.
    """

    original_source: str
    compression_type: CompressionType = CompressionType.UNKNOWN
    dont_compress: bool = False


@dataclass
class IngestionProperties:
    """Properties of one ingestion attempt.

    Only ``data_format`` is written by the staging layer, and only
    while it is still ``UNKNOWN``.

    Attributes:
        source: Source reference and compression options.
        data_format: Resolved record format.
        database_name: Target database, used for blob naming.
        table_name: Target table, used for blob naming.
    """

    source: SourceOptions
    data_format: DataFormat = DataFormat.UNKNOWN
    database_name: str = ""
    table_name: str = ""


@dataclass(frozen=True)
class SourceFileInfo:
    """Filesystem probe result for a local source.

    Attributes:
        path: Probed path.
        is_dir: Whether the entry is a directory.
        size: Entry size in bytes.
    """

    path: str
    is_dir: bool
    size: int


@dataclass(frozen=True)
class BlobUploadResult:
    """Outcome of a single blob upload.

    Attributes:
        blob_name: Object key written in the container.
        blob_uri: Fully-qualified ``s3://`` URI of the object.
        bytes_written: Bytes transmitted to the blobstore. For a whole-file
            upload without a cancel event this is the size at stat time.
        raw_data_size: Bytes read from the source before compression.
        compressed: Whether the payload was gzip-compressed in flight.
    """

    blob_name: str
    blob_uri: str
    bytes_written: int
    raw_data_size: int
    compressed: bool


@dataclass(frozen=True)
class StagedSource:
    """Result of staging one source for ingestion.

    Attributes:
        source_uri: URI the ingestion backend should read.
        is_local: Whether the source was a local file.
        data_format: Format resolved for the source.
        upload: Upload outcome for local sources.
    """

    source_uri: str
    is_local: bool
    data_format: DataFormat
    upload: BlobUploadResult | None = field(default=None)
