"""Core constants used across Blobstage modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

MIB = 1024 * 1024
S3_MIN_PART_SIZE = 5 * MIB
DEFAULT_UPLOAD_CHUNK_SIZE = 8 * MIB
DEFAULT_UPLOAD_MAX_CONCURRENCY = 4
DEFAULT_PIPE_BUFFER_CHUNKS = 8
SOURCE_READ_CHUNK_SIZE = 64 * 1024
PIPE_POLL_INTERVAL_SECONDS = 0.1
REMOTE_SOURCE_SCHEMES = ("http", "https")
GZIP_CONTENT_ENCODING = "gzip"
GZIP_BLOB_SUFFIX = ".gz"
S3_URI_SCHEME = "s3://"
