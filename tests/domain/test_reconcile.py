from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from archverify.domain.reconcile import ReconcileAccumulator, reconcile
from archverify.domain.types import MismatchReason

if TYPE_CHECKING:
    from collections.abc import Callable

    import pytest

    from archverify.domain.types import RemoteFileRecord


def test_clean_match(remote_record: Callable[..., RemoteFileRecord]) -> None:
    expected = {"a.raw": "h1", "sub/b.txt": "h2"}
    remote = [
        remote_record("a.raw", "h1", "1", "100"),
        remote_record("sub/b.txt", "h2", "2", "100"),
    ]

    outcome = reconcile(expected, remote)

    assert outcome.match_count == 2
    assert outcome.mismatch_count == 0
    assert outcome.chosen_transaction_id == "100"
    assert outcome.verified is True


def test_every_matching_revision_votes_for_its_transaction(
    remote_record: Callable[..., RemoteFileRecord],
) -> None:
    expected = {"a.raw": "h1", "b.raw": "h2"}
    remote = [
        remote_record("a.raw", "h1", "1", "100"),
        remote_record("a.raw", "h1", "3", "200"),
        remote_record("b.raw", "h2", "4", "200"),
    ]

    outcome = reconcile(expected, remote)

    assert outcome.match_count == 2
    assert outcome.chosen_transaction_id == "200"


def test_verified_records_keep_latest_matching_revision(
    remote_record: Callable[..., RemoteFileRecord],
) -> None:
    expected = {"a.raw": "h1", "b.raw": "h2"}
    remote = [
        remote_record("a.raw", "h1", "11", "900"),
        remote_record("a.raw", "h1", "3", "1000"),
        remote_record("a.raw", "stale", "20", "2000"),
        remote_record("b.raw", "h2", "4", "200"),
    ]

    forward = reconcile(expected, remote)
    backward = reconcile(expected, list(reversed(remote)))

    assert [(r.relative_path, r.remote_file_id) for r in forward.verified_records] == [
        ("a.raw", "3"),
        ("b.raw", "4"),
    ]
    assert backward.verified_records == forward.verified_records


def test_unmatched_files_have_no_verified_record(
    remote_record: Callable[..., RemoteFileRecord],
) -> None:
    expected = {"a.raw": "h1", "b.raw": "h2"}
    remote = [remote_record("a.raw", "h1", "1"), remote_record("b.raw", "other", "2")]

    outcome = reconcile(expected, remote)

    assert [r.remote_file_id for r in outcome.verified_records] == ["1"]


def test_transaction_tie_goes_to_first_seen(
    remote_record: Callable[..., RemoteFileRecord],
) -> None:
    expected = {"a.raw": "h1", "b.raw": "h2"}
    remote = [remote_record("a.raw", "h1", "1", "300"), remote_record("b.raw", "h2", "2", "100")]

    outcome = reconcile(expected, remote)

    assert outcome.chosen_transaction_id == "300"


def test_hash_drift_reports_archive_hash(remote_record: Callable[..., RemoteFileRecord]) -> None:
    expected = {"a.raw": "h1", "b.raw": "h2"}
    remote = [remote_record("a.raw", "h1"), remote_record("B.RAW", "other")]

    outcome = reconcile(expected, remote)

    assert outcome.match_count == 1
    assert outcome.mismatch_count == 1
    mismatch = outcome.mismatches[0]
    assert mismatch.reason is MismatchReason.HASH_MISMATCH
    assert mismatch.relative_path == "B.RAW"
    assert mismatch.remote_hash == "other"
    assert mismatch.expected_hash == "h2"
    assert outcome.verified is False


def test_missing_file_is_a_mismatch(remote_record: Callable[..., RemoteFileRecord]) -> None:
    expected = {"a.raw": "h1", "missing.raw": "h3"}
    remote = [remote_record("a.raw", "h1")]

    outcome = reconcile(expected, remote)

    assert outcome.mismatch_count == 1
    assert outcome.mismatches[0].reason is MismatchReason.MISSING_FROM_ARCHIVE
    assert "not found in archive" in outcome.mismatches[0].describe()


def test_paths_and_hashes_compare_case_insensitively(
    remote_record: Callable[..., RemoteFileRecord],
) -> None:
    expected = {"Sub\\Data.RAW": "ABCDEF"}
    remote = [remote_record("sub/data.raw", "abcdef")]

    outcome = reconcile(expected, remote)

    assert outcome.match_count == 1
    assert outcome.mismatch_count == 0


def test_empty_expected_set_matches_nothing(
    remote_record: Callable[..., RemoteFileRecord],
) -> None:
    outcome = reconcile({}, [remote_record("a.raw", "h1")])

    assert outcome.match_count == 0
    assert outcome.mismatch_count == 0
    assert outcome.chosen_transaction_id is None
    assert outcome.verified is False


def test_error_header_is_logged_once_per_pass(
    caplog: pytest.LogCaptureFixture,
    remote_record: Callable[..., RemoteFileRecord],
) -> None:
    expected = {"a.raw": "h1", "b.raw": "h2", "c.raw": "h3"}
    accumulator = ReconcileAccumulator(label="dataset QC_Shew, job 12")

    with caplog.at_level(logging.ERROR, logger="archverify.domain.reconcile"):
        reconcile(expected, [remote_record("a.raw", "zz")], accumulator=accumulator)

    headers = [r for r in caplog.records if "Archive verification errors" in r.getMessage()]
    assert len(headers) == 1
    assert "QC_Shew" in headers[0].getMessage()
    assert len(accumulator.mismatches) == 3
