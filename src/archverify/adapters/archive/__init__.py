"""Public interface for the archive adapter."""

from __future__ import annotations

from .client import ArchiveClient
from .schema import ArchiveFilePayload, IngestStatePayload
from .translator import parse_ingest_status, parse_remote_file, status_num_from_uri

__all__ = [
    "ArchiveClient",
    "ArchiveFilePayload",
    "IngestStatePayload",
    "parse_ingest_status",
    "parse_remote_file",
    "status_num_from_uri",
]
