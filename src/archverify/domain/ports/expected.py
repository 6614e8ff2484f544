"""Ports for discovering the files a dataset upload was supposed to contain."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from archverify.domain.expected import IgnoreRule
    from archverify.domain.types import ExpectedFileRecord


@runtime_checkable
class ManifestReader(Protocol):
    """Reads file records from a persisted upload manifest."""

    def read_file_records(self, path: Path) -> Sequence[ExpectedFileRecord]:
        """Return valid file records; empty when the manifest is missing or empty."""
        ...


@runtime_checkable
class LocalFileScanner(Protocol):
    """Re-derives the upload file list from the dataset's local directory."""

    def scan(
        self,
        dataset_directory: Path,
        *,
        subdirectory: str = "",
        recurse: bool = True,
        ignore: IgnoreRule | None = None,
    ) -> Sequence[ExpectedFileRecord]: ...


__all__ = ["LocalFileScanner", "ManifestReader"]
