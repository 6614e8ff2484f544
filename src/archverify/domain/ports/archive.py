"""Ports for querying the remote archive."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from archverify.domain.types import RemoteFileRecord


class ArchiveUnavailableError(RuntimeError):
    """Raised when the archive cannot be reached or returns an unusable response."""


class IngestState(StrEnum):
    FINISHED = "finished"
    PENDING = "pending"
    FAILED = "failed"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class IngestStatus:
    """Snapshot of the archive-side ingest pipeline for one upload."""

    state: IngestState
    task: str = ""
    percent_complete: float = 0.0
    status_num: int | None = None
    message: str = ""

    @property
    def finished(self) -> bool:
        return self.state is IngestState.FINISHED

    @property
    def terminal_failure(self) -> bool:
        return self.state is IngestState.FAILED


@runtime_checkable
class RemoteArchiveQuery(Protocol):
    """Read access to the files the archive tracks for a dataset."""

    def check_certificate(self) -> str | None:
        """Return an error message when the client credential is unavailable."""
        ...

    def find_files(
        self, dataset_id: int, subdirectory: str | None = None
    ) -> list[RemoteFileRecord]: ...


@runtime_checkable
class IngestStatusChecker(Protocol):
    def check_ingest(self, status_uri: str) -> IngestStatus: ...


__all__ = [
    "ArchiveUnavailableError",
    "IngestState",
    "IngestStatus",
    "IngestStatusChecker",
    "RemoteArchiveQuery",
]
