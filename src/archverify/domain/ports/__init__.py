"""Domain port definitions for adapters."""

from __future__ import annotations

from .archive import (
    ArchiveUnavailableError,
    IngestState,
    IngestStatus,
    IngestStatusChecker,
    RemoteArchiveQuery,
)
from .expected import LocalFileScanner, ManifestReader
from .ledger import LedgerIOError, LedgerStore

__all__ = [
    "ArchiveUnavailableError",
    "IngestState",
    "IngestStatus",
    "IngestStatusChecker",
    "LedgerIOError",
    "LedgerStore",
    "LocalFileScanner",
    "ManifestReader",
    "RemoteArchiveQuery",
]
