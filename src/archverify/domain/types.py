"""Core value types shared by the verification subsystem."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum

type ExpectedSet = dict[str, str]
"""Normalized relative path -> expected content hash."""


class Disposition(StrEnum):
    """Outcome of a pass as seen by the external scheduler."""

    SUCCESS = "success"
    NOT_READY = "not_ready"
    FAILED = "failed"


class ErrorKind(StrEnum):
    """Why a pass did not succeed."""

    CONFIG_MISSING = "config_missing"
    REMOTE_UNAVAILABLE = "remote_unavailable"
    CONTENT_MISMATCH = "content_mismatch"
    LEDGER_IO_ERROR = "ledger_io_error"
    PARTIAL_LOCAL_FILES = "partial_local_files"
    INGEST_PENDING = "ingest_pending"
    INGEST_FAILED = "ingest_failed"
    NOT_VISIBLE = "not_visible"


class EvalCode(StrEnum):
    """Evaluation code attached to the report for status bookkeeping."""

    NONE = "none"
    FAILURE_DO_NOT_RETRY = "failure_do_not_retry"
    VERIFIED_IN_ARCHIVE = "verified_in_archive"


class MismatchReason(StrEnum):
    MISSING_FROM_ARCHIVE = "missing from archive"
    HASH_MISMATCH = "hash mismatch"


@dataclass(frozen=True, slots=True)
class ExpectedFileRecord:
    """A file that should be present in the archive."""

    relative_path: str
    content_hash: str
    size_bytes: int = 0


@dataclass(frozen=True, slots=True)
class RemoteFileRecord:
    """One revision of a file as tracked by the archive."""

    relative_path: str
    content_hash: str
    remote_file_id: str
    transaction_id: str
    size_bytes: int | None = None


@dataclass(frozen=True, slots=True)
class Mismatch:
    relative_path: str
    reason: MismatchReason
    expected_hash: str
    remote_hash: str | None = None

    def describe(self) -> str:
        if self.reason is MismatchReason.MISSING_FROM_ARCHIVE:
            return f"file {self.relative_path} not found in archive"
        return (
            f"file mismatch for {self.relative_path}; "
            f"archive reports {self.remote_hash} but expecting {self.expected_hash}"
        )


@dataclass(frozen=True, slots=True)
class VerificationOutcome:
    """Result of reconciling the expected set against the archive."""

    match_count: int
    mismatch_count: int
    chosen_transaction_id: str | None = None
    ledger_changed: bool = False
    mismatches: tuple[Mismatch, ...] = field(default_factory=tuple)
    verified_records: tuple[RemoteFileRecord, ...] = field(default_factory=tuple)

    @property
    def verified(self) -> bool:
        return self.match_count > 0 and self.mismatch_count == 0


@dataclass(frozen=True, slots=True, kw_only=True)
class VerificationTask:
    """Parameters describing one dataset verification request.

    These mirror the task parameters handed over by the scheduler. Optional
    fields may be blank; the orchestrator reports ``CONFIG_MISSING`` for the
    ones a given pass actually needs.
    """

    dataset: str
    dataset_id: int
    instrument: str
    created: datetime | None
    job: str
    status_uri: str
    transfer_root: str
    source_directory: str
    subdirectory: str = ""
    recurse: bool = True


@dataclass(frozen=True, slots=True, kw_only=True)
class VerificationReport:
    """Disposition returned to the scheduler for one pass."""

    disposition: Disposition
    message: str
    retry_allowed: bool = True
    eval_code: EvalCode = EvalCode.NONE
    error_kind: ErrorKind | None = None
    outcome: VerificationOutcome | None = None
    status_num: int | None = None

    @property
    def succeeded(self) -> bool:
        return self.disposition is Disposition.SUCCESS


__all__ = [
    "Disposition",
    "ErrorKind",
    "EvalCode",
    "ExpectedFileRecord",
    "ExpectedSet",
    "Mismatch",
    "MismatchReason",
    "RemoteFileRecord",
    "VerificationOutcome",
    "VerificationReport",
    "VerificationTask",
]
