from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pytest

from archverify.adapters.ledger_file import FileLedgerStore
from archverify.adapters.local_scan import LocalDirectoryScanner
from archverify.adapters.manifest import JsonManifestReader
from archverify.config.storage import LedgerConfig
from archverify.domain.expected import ExpectedSetResolver, manifest_filename
from archverify.domain.ports.archive import (
    ArchiveUnavailableError,
    IngestState,
    IngestStatus,
)
from archverify.domain.types import RemoteFileRecord, VerificationTask
from archverify.domain.verification import VerificationOrchestrator

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from pathlib import Path

DATASET = "QC_Shew_23_01_a"
INSTRUMENT = "Exploris01"
CREATED = datetime(2023, 8, 14, 9, 30, tzinfo=UTC)
JOB = "4321"
STATUS_URI = "https://ingest.example.org/get_state?job_id=9876"


@dataclass(slots=True)
class FakeIngest:
    status: IngestStatus = field(
        default_factory=lambda: IngestStatus(
            state=IngestState.FINISHED,
            task="ingest metadata",
            percent_complete=100.0,
            status_num=9876,
        )
    )
    error: Exception | None = None
    calls: list[str] = field(default_factory=list)

    def check_ingest(self, status_uri: str) -> IngestStatus:
        self.calls.append(status_uri)
        if self.error is not None:
            raise self.error
        return self.status


@dataclass(slots=True)
class FakeArchive:
    records: list[RemoteFileRecord] = field(default_factory=list)
    certificate_error: str | None = None
    unavailable: bool = False
    queries: list[tuple[int, str | None]] = field(default_factory=list)

    def check_certificate(self) -> str | None:
        return self.certificate_error

    def find_files(
        self, dataset_id: int, subdirectory: str | None = None
    ) -> list[RemoteFileRecord]:
        self.queries.append((dataset_id, subdirectory))
        if self.unavailable:
            raise ArchiveUnavailableError("connection refused")
        return list(self.records)


def remote(
    relative_path: str, content_hash: str, file_id: str = "", transaction: str = "100"
) -> RemoteFileRecord:
    return RemoteFileRecord(
        relative_path=relative_path,
        content_hash=content_hash,
        remote_file_id=file_id,
        transaction_id=transaction,
    )


def write_manifest(path: Path, files: Mapping[str, str]) -> Path:
    """Write a staged upload manifest listing ``files`` (relative path -> hash)."""

    items: list[dict[str, object]] = [{"destinationTable": "Transactions.instrument", "value": 1}]
    for relative_path, content_hash in files.items():
        directory, _, name = relative_path.rpartition("/")
        items.append(
            {
                "destinationTable": "Files",
                "name": name,
                "subdir": f"data/{directory}" if directory else "data",
                "hashsum": content_hash,
                "hashtype": "sha1",
                "size": 10,
            }
        )
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(items), encoding="utf-8")
    return path


@pytest.fixture
def ledger_config(tmp_path: Path) -> LedgerConfig:
    return LedgerConfig(ledger_root=tmp_path / "ledger", backup_root=tmp_path / "backup")


@pytest.fixture
def ledger_store(ledger_config: LedgerConfig) -> FileLedgerStore:
    return FileLedgerStore(config=ledger_config)


@pytest.fixture
def transfer_root(tmp_path: Path) -> Path:
    root = tmp_path / "transfer"
    root.mkdir()
    return root


@pytest.fixture
def manifest_path(transfer_root: Path) -> Path:
    return transfer_root / DATASET / manifest_filename(JOB)


@pytest.fixture
def make_task(transfer_root: Path, tmp_path: Path) -> Callable[..., VerificationTask]:
    def factory(**overrides: object) -> VerificationTask:
        values: dict[str, object] = {
            "dataset": DATASET,
            "dataset_id": 1234567,
            "instrument": INSTRUMENT,
            "created": CREATED,
            "job": JOB,
            "status_uri": STATUS_URI,
            "transfer_root": str(transfer_root),
            "source_directory": str(tmp_path / "source" / DATASET),
        }
        values.update(overrides)
        return VerificationTask(**values)  # pyright: ignore[reportArgumentType]

    return factory


@pytest.fixture
def make_orchestrator(
    ledger_store: FileLedgerStore,
) -> Callable[[FakeArchive, FakeIngest], VerificationOrchestrator]:
    def factory(archive: FakeArchive, ingest: FakeIngest) -> VerificationOrchestrator:
        return VerificationOrchestrator(
            ingest=ingest,
            archive=archive,
            resolver=ExpectedSetResolver(
                manifest_reader=JsonManifestReader(),
                scanner=LocalDirectoryScanner(hash_workers=2),
            ),
            ledger_store=ledger_store,
        )

    return factory


@pytest.fixture
def fake_archive() -> FakeArchive:
    return FakeArchive()


@pytest.fixture
def fake_ingest() -> FakeIngest:
    return FakeIngest()


@pytest.fixture
def remote_record() -> Callable[..., RemoteFileRecord]:
    return remote


@pytest.fixture
def manifest_writer() -> Callable[[Path, Mapping[str, str]], Path]:
    return write_manifest
