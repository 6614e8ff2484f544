from __future__ import annotations

import hashlib
from typing import TYPE_CHECKING

from archverify.adapters.local_scan import LocalDirectoryScanner
from archverify.adapters.manifest import JsonManifestReader
from archverify.domain.expected import (
    ExpectedSetFailure,
    ExpectedSetResolved,
    ExpectedSetResolver,
    ExpectedSource,
    IgnoreRule,
    build_expected_set,
    manifest_filename,
)
from archverify.domain.types import ErrorKind, ExpectedFileRecord

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from pathlib import Path

    from archverify.domain.types import VerificationTask


def _resolver() -> ExpectedSetResolver:
    return ExpectedSetResolver(
        manifest_reader=JsonManifestReader(),
        scanner=LocalDirectoryScanner(hash_workers=1),
    )


def _sha1(content: bytes) -> str:
    return hashlib.sha1(content).hexdigest()  # noqa: S324


def test_manifest_filename_defaults_blank_job() -> None:
    assert manifest_filename("123") == "upload_manifest_job_123.json"
    assert manifest_filename("  ") == "upload_manifest_job_000000.json"


def test_ignore_rule() -> None:
    rule = IgnoreRule()

    assert rule.matches("Thumbs.db", 100)
    assert rule.matches(".DS_Store")
    assert rule.matches("scan.tmp", 0)
    assert not rule.matches("scan.tmp", 12)
    assert not rule.matches("QC_Shew.raw", 0)


def test_build_expected_set_keeps_first_duplicate() -> None:
    records = [
        ExpectedFileRecord(relative_path="sub\\a.raw", content_hash="h1", size_bytes=5),
        ExpectedFileRecord(relative_path="SUB/A.raw", content_hash="h2", size_bytes=5),
        ExpectedFileRecord(relative_path="desktop.ini", content_hash="h3", size_bytes=5),
    ]

    expected = build_expected_set(records, ignore=IgnoreRule())

    assert expected == {"sub/a.raw": "h1"}


def test_resolver_prefers_manifest(
    make_task: Callable[..., VerificationTask],
    manifest_path: Path,
    manifest_writer: Callable[[Path, Mapping[str, str]], Path],
) -> None:
    manifest_writer(manifest_path, {"a.raw": "h1", "sub/b.txt": "h2"})

    result = _resolver().resolve(make_task())

    assert isinstance(result, ExpectedSetResolved)
    assert result.source is ExpectedSource.MANIFEST
    assert result.files == {"a.raw": "h1", "sub/b.txt": "h2"}
    assert result.manifest_path == manifest_path


def test_resolver_scans_local_files_without_manifest(
    make_task: Callable[..., VerificationTask], tmp_path: Path
) -> None:
    dataset_dir = tmp_path / "local"
    (dataset_dir / "sub").mkdir(parents=True)
    (dataset_dir / "a.raw").write_bytes(b"alpha")
    (dataset_dir / "sub" / "b.txt").write_bytes(b"beta")
    (dataset_dir / "Thumbs.db").write_bytes(b"cache")

    result = _resolver().resolve(make_task(source_directory=str(dataset_dir)))

    assert isinstance(result, ExpectedSetResolved)
    assert result.source is ExpectedSource.LOCAL_SCAN
    assert result.files == {"a.raw": _sha1(b"alpha"), "sub/b.txt": _sha1(b"beta")}
    assert result.manifest_path is None


def test_resolver_falls_back_when_manifest_lists_no_files(
    make_task: Callable[..., VerificationTask],
    manifest_path: Path,
    manifest_writer: Callable[[Path, Mapping[str, str]], Path],
    tmp_path: Path,
) -> None:
    manifest_writer(manifest_path, {})
    dataset_dir = tmp_path / "local"
    dataset_dir.mkdir()
    (dataset_dir / "a.raw").write_bytes(b"alpha")

    result = _resolver().resolve(make_task(source_directory=str(dataset_dir)))

    assert isinstance(result, ExpectedSetResolved)
    assert result.source is ExpectedSource.LOCAL_SCAN
    assert result.manifest_path == manifest_path


def test_resolver_reports_missing_task_parameters(
    make_task: Callable[..., VerificationTask],
) -> None:
    result = _resolver().resolve(make_task(transfer_root=" ", job=""))

    assert isinstance(result, ExpectedSetFailure)
    assert result.error_kind is ErrorKind.CONFIG_MISSING
    assert "transfer_root" in result.message
    assert "job" in result.message


def test_resolver_reports_missing_local_files(
    make_task: Callable[..., VerificationTask], tmp_path: Path
) -> None:
    result = _resolver().resolve(make_task(source_directory=str(tmp_path / "nowhere")))

    assert isinstance(result, ExpectedSetFailure)
    assert result.error_kind is ErrorKind.PARTIAL_LOCAL_FILES


def test_resolver_requires_source_directory_for_scan(
    make_task: Callable[..., VerificationTask],
) -> None:
    result = _resolver().resolve(make_task(source_directory=""))

    assert isinstance(result, ExpectedSetFailure)
    assert result.error_kind is ErrorKind.CONFIG_MISSING
