"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable
from logging import getLogger
from typing import TYPE_CHECKING

from archverify.adapters.archive import ArchiveClient
from archverify.adapters.ledger_file import FileLedgerStore
from archverify.adapters.local_scan import LocalDirectoryScanner
from archverify.adapters.manifest import JsonManifestReader
from archverify.config import (
    ConfigurationError,
    get_archive_config,
    get_ledger_config,
)
from archverify.domain.expected import ExpectedSetResolver
from archverify.domain.ledger import HashLedger
from archverify.domain.types import Disposition, ErrorKind, EvalCode, VerificationReport
from archverify.domain.verification import VerificationOrchestrator

if TYPE_CHECKING:
    from pathlib import Path

    from archverify.domain.types import VerificationTask

OrchestratorFactory = Callable[[], VerificationOrchestrator]


log = getLogger(__name__)


def build_orchestrator() -> VerificationOrchestrator:
    """Wire the HTTP, manifest, scanner and ledger adapters from configuration."""

    archive_config = get_archive_config()
    ledger_config = get_ledger_config()
    archive = ArchiveClient(config=archive_config)
    return VerificationOrchestrator(
        ingest=archive,
        archive=archive,
        resolver=ExpectedSetResolver(
            manifest_reader=JsonManifestReader(),
            scanner=LocalDirectoryScanner(hash_workers=ledger_config.hash_workers),
        ),
        ledger_store=FileLedgerStore(config=ledger_config),
        archive_prefix=ledger_config.archive_prefix,
    )


def verify_dataset(
    task: VerificationTask,
    *,
    orchestrator_factory: OrchestratorFactory | None = None,
) -> VerificationReport:
    """Run one archive verification pass for ``task``."""

    factory = orchestrator_factory or build_orchestrator
    try:
        orchestrator = factory()
    except ConfigurationError as exc:
        log.error("Configuration error: %s", exc)
        return VerificationReport(
            disposition=Disposition.FAILED,
            message=str(exc),
            retry_allowed=False,
            eval_code=EvalCode.FAILURE_DO_NOT_RETRY,
            error_kind=ErrorKind.CONFIG_MISSING,
        )

    log.info(
        "Starting archive verification: dataset=%s, dataset_id=%s, job=%s",
        task.dataset,
        task.dataset_id,
        task.job,
    )
    report = orchestrator.run(task)

    outcome = report.outcome
    log.info(
        f"Finished archive verification: disposition={report.disposition}, "
        f"matches={outcome.match_count if outcome else 0}, "
        f"mismatches={outcome.mismatch_count if outcome else 0}, "
        f"transaction={outcome.chosen_transaction_id if outcome else None}"
    )
    return report


def show_ledger(path: Path) -> HashLedger:
    """Load a ledger file for inspection; a missing file reads as empty."""

    if not path.exists():
        log.warning("Ledger file %s does not exist", path)
        return HashLedger()
    return FileLedgerStore().load(path)
