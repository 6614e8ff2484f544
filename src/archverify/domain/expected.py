"""Resolve the set of files a dataset upload was supposed to deliver."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from .paths import normalize_relative_path, path_key
from .types import ErrorKind

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .ports.expected import LocalFileScanner, ManifestReader
    from .types import ExpectedFileRecord, ExpectedSet, VerificationTask

log = getLogger(__name__)

MANIFEST_FILENAME_TEMPLATE = "upload_manifest_job_{job}.json"
DEFAULT_MANIFEST_JOB = "000000"

DEFAULT_IGNORED_NAMES = frozenset({"thumbs.db", ".ds_store", "desktop.ini"})
DEFAULT_IGNORED_EMPTY_SUFFIXES = (".tmp", ".lock")


@dataclass(frozen=True, slots=True)
class IgnoreRule:
    """Files the upload step never archives.

    OS metadata files are skipped by name; temporary and lock files only when empty.
    """

    names: frozenset[str] = DEFAULT_IGNORED_NAMES
    empty_suffixes: tuple[str, ...] = DEFAULT_IGNORED_EMPTY_SUFFIXES

    def matches(self, name: str, size_bytes: int | None = None) -> bool:
        folded = name.casefold()
        if folded in self.names:
            return True
        return size_bytes == 0 and folded.endswith(self.empty_suffixes)


class ExpectedSource(StrEnum):
    MANIFEST = "manifest"
    LOCAL_SCAN = "local_scan"


@dataclass(slots=True, kw_only=True)
class ExpectedSetResolved:
    files: ExpectedSet
    source: ExpectedSource
    manifest_path: Path | None = None
    status: Literal["resolved"] = "resolved"


@dataclass(slots=True, kw_only=True)
class ExpectedSetFailure:
    error_kind: ErrorKind
    message: str
    manifest_path: Path | None = None
    status: Literal["failed"] = "failed"


type ExpectedSetResult = ExpectedSetResolved | ExpectedSetFailure


def manifest_filename(job: str) -> str:
    return MANIFEST_FILENAME_TEMPLATE.format(job=job.strip() or DEFAULT_MANIFEST_JOB)


def build_expected_set(
    records: Iterable[ExpectedFileRecord], *, ignore: IgnoreRule | None = None
) -> ExpectedSet:
    """Collapse records into a path -> hash mapping, first path wins."""

    expected: ExpectedSet = {}
    seen: set[str] = set()
    for record in records:
        relative_path = normalize_relative_path(record.relative_path)
        name = relative_path.rsplit("/", 1)[-1]
        if ignore is not None and ignore.matches(name, record.size_bytes):
            log.debug("Ignoring %s", relative_path)
            continue
        key = path_key(relative_path)
        if key in seen:
            log.warning("Duplicate expected file %s; keeping the first entry", relative_path)
            continue
        seen.add(key)
        expected[relative_path] = record.content_hash
    return expected


@dataclass(slots=True)
class ExpectedSetResolver:
    """Prefer the persisted upload manifest; fall back to re-scanning local files."""

    manifest_reader: ManifestReader
    scanner: LocalFileScanner
    ignore: IgnoreRule = field(default_factory=IgnoreRule)

    def resolve(self, task: VerificationTask) -> ExpectedSetResult:
        missing = [
            name
            for name, value in (
                ("transfer_root", task.transfer_root),
                ("dataset", task.dataset),
                ("job", task.job),
            )
            if not value.strip()
        ]
        if missing:
            return ExpectedSetFailure(
                error_kind=ErrorKind.CONFIG_MISSING,
                message=f"Task parameters do not define {', '.join(missing)}; unable to continue",
            )

        manifest_path = Path(task.transfer_root) / task.dataset / manifest_filename(task.job)
        existing_manifest = manifest_path if manifest_path.is_file() else None

        if existing_manifest is not None:
            records = self.manifest_reader.read_file_records(existing_manifest)
            expected = build_expected_set(records, ignore=self.ignore)
            if expected:
                log.info("Using %s expected files from %s", len(expected), existing_manifest)
                return ExpectedSetResolved(
                    files=expected,
                    source=ExpectedSource.MANIFEST,
                    manifest_path=existing_manifest,
                )
            log.warning("Manifest %s lists no files; scanning local files", existing_manifest)

        return self._resolve_from_disk(task, manifest_path=existing_manifest)

    def _resolve_from_disk(
        self, task: VerificationTask, *, manifest_path: Path | None
    ) -> ExpectedSetResult:
        if not task.source_directory.strip():
            return ExpectedSetFailure(
                error_kind=ErrorKind.CONFIG_MISSING,
                message="Task parameters do not define source_directory; unable to continue",
                manifest_path=manifest_path,
            )

        try:
            records = self.scanner.scan(
                Path(task.source_directory),
                subdirectory=task.subdirectory,
                recurse=task.recurse,
                ignore=self.ignore,
            )
        except OSError as exc:
            log.error("Unable to scan local files for %s: %s", task.dataset, exc)
            records = []

        expected = build_expected_set(records, ignore=self.ignore)
        if not expected:
            return ExpectedSetFailure(
                error_kind=ErrorKind.PARTIAL_LOCAL_FILES,
                message=(
                    "Local files were not found for this dataset; "
                    "unable to compare hashes to the archive"
                ),
                manifest_path=manifest_path,
            )

        log.info("Hashed %s local files under %s", len(expected), task.source_directory)
        return ExpectedSetResolved(
            files=expected,
            source=ExpectedSource.LOCAL_SCAN,
            manifest_path=manifest_path,
        )


__all__ = [
    "ExpectedSetFailure",
    "ExpectedSetResolved",
    "ExpectedSetResolver",
    "ExpectedSetResult",
    "ExpectedSource",
    "IgnoreRule",
    "build_expected_set",
    "manifest_filename",
]
