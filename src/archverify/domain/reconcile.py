"""Match the expected file set against the archive's records."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from .paths import path_key
from .types import Mismatch, MismatchReason, VerificationOutcome

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence

    from .types import RemoteFileRecord

log = getLogger(__name__)


@dataclass(slots=True)
class ReconcileAccumulator:
    """Per-pass tallies threaded through the reconciliation of each file."""

    label: str = ""
    match_count: int = 0
    mismatches: list[Mismatch] = field(default_factory=list)
    transaction_tally: dict[str, int] = field(default_factory=dict)
    errors_reported: bool = False
    verified_records: list[RemoteFileRecord] = field(default_factory=list)

    def record_match(self, matching: Sequence[RemoteFileRecord]) -> None:
        """Count one matched file and keep its latest matching revision."""

        self.match_count += 1
        for record in matching:
            self.transaction_tally[record.transaction_id] = (
                self.transaction_tally.get(record.transaction_id, 0) + 1
            )
        self.verified_records.append(max(matching, key=revision_order))

    def record_mismatch(self, mismatch: Mismatch) -> None:
        if not self.errors_reported:
            log.error("Archive verification errors for %s", self.label or "dataset")
            self.errors_reported = True
        log.error(" ... %s", mismatch.describe())
        self.mismatches.append(mismatch)

    def chosen_transaction_id(self) -> str | None:
        """Transaction with the most matching files; ties go to the first one seen."""

        if not self.transaction_tally:
            return None
        return max(self.transaction_tally, key=self.transaction_tally.__getitem__)

    def outcome(self) -> VerificationOutcome:
        return VerificationOutcome(
            match_count=self.match_count,
            mismatch_count=len(self.mismatches),
            chosen_transaction_id=self.chosen_transaction_id(),
            mismatches=tuple(self.mismatches),
            verified_records=tuple(self.verified_records),
        )


type IdOrder = tuple[int, int, str]


def _id_order(value: str) -> IdOrder:
    value = value.strip()
    if value.isdigit():
        return (0, int(value), "")
    return (1, 0, value)


def revision_order(record: RemoteFileRecord) -> tuple[IdOrder, IdOrder]:
    """Sort key for archive revisions of one path: transaction, then file id."""

    return _id_order(record.transaction_id), _id_order(record.remote_file_id)


def _hashes_equal(left: str, right: str) -> bool:
    return left.strip().casefold() == right.strip().casefold()


def index_remote_records(
    remote: Iterable[RemoteFileRecord],
) -> dict[str, list[RemoteFileRecord]]:
    by_path: dict[str, list[RemoteFileRecord]] = defaultdict(list)
    for record in remote:
        by_path[path_key(record.relative_path)].append(record)
    return by_path


def reconcile(
    expected: Mapping[str, str],
    remote: Iterable[RemoteFileRecord],
    *,
    accumulator: ReconcileAccumulator | None = None,
) -> VerificationOutcome:
    """Classify each expected file as matched or mismatched.

    Every archive revision whose hash matches counts toward its transaction's
    tally, so files re-uploaded in several batches vote for each batch.
    """

    acc = accumulator or ReconcileAccumulator()
    by_path = index_remote_records(remote)

    for relative_path, expected_hash in expected.items():
        candidates = by_path.get(path_key(relative_path), [])
        if not candidates:
            acc.record_mismatch(
                Mismatch(
                    relative_path=relative_path,
                    reason=MismatchReason.MISSING_FROM_ARCHIVE,
                    expected_hash=expected_hash,
                )
            )
            continue

        matching = [c for c in candidates if _hashes_equal(c.content_hash, expected_hash)]
        if matching:
            acc.record_match(matching)
            continue

        acc.record_mismatch(
            Mismatch(
                relative_path=candidates[0].relative_path,
                reason=MismatchReason.HASH_MISMATCH,
                expected_hash=expected_hash,
                remote_hash=candidates[0].content_hash,
            )
        )

    outcome = acc.outcome()
    log.debug(
        "Reconciled %s expected files: matches=%s, mismatches=%s, transaction=%s",
        len(expected),
        outcome.match_count,
        outcome.mismatch_count,
        outcome.chosen_transaction_id,
    )
    return outcome


__all__ = ["ReconcileAccumulator", "index_remote_records", "reconcile", "revision_order"]
