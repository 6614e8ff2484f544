from __future__ import annotations

import json
from typing import TYPE_CHECKING

from archverify.adapters.manifest import JsonManifestReader
from archverify.domain.types import ExpectedFileRecord

if TYPE_CHECKING:
    from pathlib import Path


def test_reads_only_file_entries(tmp_path: Path) -> None:
    path = tmp_path / "upload_manifest_job_12.json"
    path.write_text(
        json.dumps(
            [
                {"destinationTable": "Transactions.instrument", "value": 34127},
                {
                    "destinationTable": "Files",
                    "name": "QC_Shew.raw",
                    "subdir": "data",
                    "hashsum": "abc123",
                    "size": 2048,
                },
                {
                    "destinationTable": "files",
                    "name": "report.txt",
                    "subdir": "data/QC_Shew_SIC",
                    "hashsum": "def456",
                    "size": 12,
                },
                {"destinationTable": "Files", "name": "broken.txt"},
            ]
        ),
        encoding="utf-8",
    )

    records = JsonManifestReader().read_file_records(path)

    assert records == [
        ExpectedFileRecord(relative_path="QC_Shew.raw", content_hash="abc123", size_bytes=2048),
        ExpectedFileRecord(
            relative_path="QC_Shew_SIC/report.txt", content_hash="def456", size_bytes=12
        ),
    ]


def test_missing_manifest_is_empty(tmp_path: Path) -> None:
    assert JsonManifestReader().read_file_records(tmp_path / "absent.json") == []


def test_empty_or_invalid_manifest_is_empty(tmp_path: Path) -> None:
    empty = tmp_path / "empty.json"
    empty.write_text("  \n", encoding="utf-8")
    invalid = tmp_path / "invalid.json"
    invalid.write_text("{not json", encoding="utf-8")
    not_a_list = tmp_path / "object.json"
    not_a_list.write_text('{"destinationTable": "Files"}', encoding="utf-8")

    reader = JsonManifestReader()

    assert reader.read_file_records(empty) == []
    assert reader.read_file_records(invalid) == []
    assert reader.read_file_records(not_a_list) == []
