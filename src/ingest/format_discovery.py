"""Data format discovery from source names.

This module maps trailing name extensions onto ``DataFormat`` values
and fills in the format of ingestion properties that do not declare one.
"""

from __future__ import annotations

from core.types import DataFormat, IngestionProperties
from ingest.compression_discovery import COMPRESSION_EXTENSIONS
from ingest.source_names import extension_tokens

DATA_FORMAT_EXTENSIONS: dict[str, DataFormat] = {
    "csv": DataFormat.CSV,
    "json": DataFormat.JSON,
    "avro": DataFormat.AVRO,
    "orc": DataFormat.ORC,
    "parquet": DataFormat.PARQUET,
    "psv": DataFormat.PSV,
    "raw": DataFormat.RAW,
    "scsv": DataFormat.SCSV,
    "sohsv": DataFormat.SOHSV,
    "tsv": DataFormat.TSV,
    "txt": DataFormat.TXT,
    "w3clogfile": DataFormat.W3CLOGFILE,
}

DEFAULT_DATA_FORMAT = DataFormat.CSV


def discover_data_format(name: str) -> DataFormat:
    """Infer the data format from a path or URL.

    A trailing compression suffix is skipped, so ``events.avro.gz``
    resolves to ``AVRO``. Matching is case-insensitive.

    Args:
        name: Local path or URL.

    Returns:
        Discovered format, or ``UNKNOWN`` when no extension matches.
    """
    tokens = extension_tokens(name)
    if tokens and tokens[-1] in COMPRESSION_EXTENSIONS:
        tokens = tokens[:-1]
    if not tokens:
        return DataFormat.UNKNOWN
    return DATA_FORMAT_EXTENSIONS.get(tokens[-1], DataFormat.UNKNOWN)


def parse_data_format(value: str) -> DataFormat:
    """Map a caller-declared format name onto ``DataFormat``.

    Accepts extension or backend spellings in any case ("Parquet",
    "W3CLogFile", "csv"). Unrecognized names map to ``UNKNOWN``.
    """
    return DATA_FORMAT_EXTENSIONS.get(value.strip().lower(), DataFormat.UNKNOWN)


def complete_format_from_file_name(props: IngestionProperties, source: str) -> None:
    """Fill in ``props.data_format`` from the source name when undeclared.

    A declared format is kept. When the name gives no hint the format
    falls back to CSV, the backend's default text format.

    Args:
        props: Ingestion properties updated in place.
        source: Local path or URL of the data.
    """
    if props.data_format is not DataFormat.UNKNOWN:
        return
    discovered = discover_data_format(source)
    if discovered is DataFormat.UNKNOWN:
        discovered = DEFAULT_DATA_FORMAT
    props.data_format = discovered
