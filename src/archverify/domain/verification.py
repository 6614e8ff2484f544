"""One archive verification pass, from ingest status to ledger update.

States run in order and each one either hands data to the next or ends the pass
with a report:

1. check the archive-side ingest status
2. confirm the client credential and fetch the archive's file records
3. resolve the expected file set (manifest, else local scan)
4. reconcile expected against archived files
5. merge the verified archive revisions into the hash ledger, writing only on change
6. clean up the staged upload manifest
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from logging import getLogger
from typing import TYPE_CHECKING

from .expected import ExpectedSetFailure
from .ledger import entries_from_remote, merge
from .paths import DEFAULT_ARCHIVE_PREFIX, dataset_year_quarter
from .ports.archive import ArchiveUnavailableError, IngestState
from .reconcile import ReconcileAccumulator, reconcile
from .types import Disposition, ErrorKind, EvalCode, VerificationReport

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from .expected import ExpectedSetResolver
    from .ports.archive import IngestStatus, IngestStatusChecker, RemoteArchiveQuery
    from .ports.ledger import LedgerStore
    from .types import RemoteFileRecord, VerificationOutcome, VerificationTask

log = getLogger(__name__)


def _failed(
    kind: ErrorKind,
    message: str,
    *,
    retry_allowed: bool = False,
    outcome: VerificationOutcome | None = None,
    status_num: int | None = None,
) -> VerificationReport:
    log.error(message)
    return VerificationReport(
        disposition=Disposition.FAILED,
        message=message,
        retry_allowed=retry_allowed,
        eval_code=EvalCode.NONE if retry_allowed else EvalCode.FAILURE_DO_NOT_RETRY,
        error_kind=kind,
        outcome=outcome,
        status_num=status_num,
    )


def _not_ready(
    kind: ErrorKind,
    message: str,
    *,
    outcome: VerificationOutcome | None = None,
    status_num: int | None = None,
) -> VerificationReport:
    log.warning(message)
    return VerificationReport(
        disposition=Disposition.NOT_READY,
        message=message,
        error_kind=kind,
        outcome=outcome,
        status_num=status_num,
    )


@dataclass(slots=True)
class VerificationOrchestrator:
    ingest: IngestStatusChecker
    archive: RemoteArchiveQuery
    resolver: ExpectedSetResolver
    ledger_store: LedgerStore
    archive_prefix: str = DEFAULT_ARCHIVE_PREFIX

    def run(self, task: VerificationTask) -> VerificationReport:
        log.info("Verifying files in the archive for dataset %s", task.dataset)

        ingest = self._check_ingest_status(task)
        if isinstance(ingest, VerificationReport):
            return ingest
        status_num = ingest.status_num

        remote = self._fetch_remote_files(task, status_num=status_num)
        if isinstance(remote, VerificationReport):
            return remote

        resolved = self.resolver.resolve(task)
        if isinstance(resolved, ExpectedSetFailure):
            return _failed(resolved.error_kind, resolved.message, status_num=status_num)

        outcome = reconcile(
            resolved.files,
            remote,
            accumulator=ReconcileAccumulator(label=f"dataset {task.dataset}, job {task.job}"),
        )
        if outcome.mismatch_count > 0:
            return _failed(
                ErrorKind.CONTENT_MISMATCH,
                f"Hash mismatch between {resolved.source} and the archive; "
                f"MatchCount={outcome.match_count}, MismatchCount={outcome.mismatch_count}",
                outcome=outcome,
                status_num=status_num,
            )
        if outcome.match_count == 0:
            return _not_ready(
                ErrorKind.NOT_VISIBLE,
                "No expected files could be matched to the archive",
                outcome=outcome,
                status_num=status_num,
            )

        ledger_result = self._update_ledger(task, outcome.verified_records)
        if isinstance(ledger_result, VerificationReport):
            return replace(ledger_result, outcome=outcome, status_num=status_num)
        outcome = replace(outcome, ledger_changed=ledger_result)

        if resolved.manifest_path is not None:
            _delete_manifest(resolved.manifest_path)

        log.info("Archive verification successful for job %s, dataset %s", task.job, task.dataset)
        return VerificationReport(
            disposition=Disposition.SUCCESS,
            message=f"Verified {outcome.match_count} files in the archive",
            eval_code=EvalCode.VERIFIED_IN_ARCHIVE,
            outcome=outcome,
            status_num=status_num,
        )

    def _check_ingest_status(self, task: VerificationTask) -> IngestStatus | VerificationReport:
        if not task.status_uri.strip():
            return _failed(
                ErrorKind.CONFIG_MISSING,
                "Ingest status URI is empty; cannot verify upload status",
            )

        try:
            status = self.ingest.check_ingest(task.status_uri)
        except ArchiveUnavailableError as exc:
            return _not_ready(ErrorKind.REMOTE_UNAVAILABLE, f"Error checking upload status: {exc}")

        if status.finished:
            log.debug("Ingest finished for %s (%s)", task.status_uri, status.task)
            return status
        if status.state is IngestState.PENDING:
            return _not_ready(
                ErrorKind.INGEST_PENDING,
                f"Ingest not finished: task '{status.task}' at {status.percent_complete:.0f}%",
                status_num=status.status_num,
            )
        if status.terminal_failure:
            return _failed(
                ErrorKind.INGEST_FAILED,
                status.message or "Ingest failed; unknown reason",
                status_num=status.status_num,
            )
        return _not_ready(
            ErrorKind.INGEST_FAILED,
            status.message or "Ingest status server reported an error",
            status_num=status.status_num,
        )

    def _fetch_remote_files(
        self, task: VerificationTask, *, status_num: int | None
    ) -> list[RemoteFileRecord] | VerificationReport:
        certificate_error = self.archive.check_certificate()
        if certificate_error:
            return _not_ready(ErrorKind.REMOTE_UNAVAILABLE, certificate_error, status_num=status_num)

        subdirectory = task.subdirectory or None
        try:
            remote = self.archive.find_files(task.dataset_id, subdirectory)
        except ArchiveUnavailableError as exc:
            return _not_ready(
                ErrorKind.REMOTE_UNAVAILABLE,
                f"Archive query failed for dataset ID {task.dataset_id}: {exc}",
                status_num=status_num,
            )

        if not remote:
            message = f"Archive lookup did not report any files for dataset ID {task.dataset_id}"
            if subdirectory:
                message += f" and subdirectory {subdirectory}"
            return _not_ready(ErrorKind.NOT_VISIBLE, message, status_num=status_num)

        return remote

    def _update_ledger(
        self, task: VerificationTask, verified: Sequence[RemoteFileRecord]
    ) -> bool | VerificationReport:
        """Merge the verified revisions into the dataset's ledger; returns whether it changed."""

        if not task.instrument.strip() or task.created is None:
            return _failed(
                ErrorKind.CONFIG_MISSING,
                "Task parameters do not define instrument and creation date; "
                "unable to update the hash ledger",
            )

        year_quarter = dataset_year_quarter(task.created)
        location = {
            "instrument": task.instrument,
            "year_quarter": year_quarter,
            "dataset": task.dataset,
        }
        fresh = entries_from_remote(verified, prefix=self.archive_prefix, **location)

        try:
            path = self.ledger_store.ledger_path(**location)
            existed = path.exists()
            existing = self.ledger_store.load(path)
            merged, changed = merge(existing, fresh)
            if not changed:
                log.debug("Hash ledger %s is up to date", path)
                return False
            self.ledger_store.save(merged, path, atomic=existed)
        except OSError as exc:
            return _not_ready(ErrorKind.LEDGER_IO_ERROR, f"Unable to update hash ledger: {exc}")

        log.info("Updated hash ledger %s (%s entries)", path, len(merged))
        self.ledger_store.backup(path, **location)
        return True


def _delete_manifest(manifest_path: Path) -> None:
    """Remove the staged manifest and its directory once empty."""

    try:
        manifest_path.unlink(missing_ok=True)
        parent = manifest_path.parent
        if parent.is_dir() and not any(parent.iterdir()):
            parent.rmdir()
    except OSError as exc:
        log.error("Error deleting manifest file in transfer directory: %s", exc)


__all__ = ["DEFAULT_ARCHIVE_PREFIX", "VerificationOrchestrator"]
