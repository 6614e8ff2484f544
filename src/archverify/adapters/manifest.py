"""Read the upload manifest staged in the transfer directory."""

from __future__ import annotations

import json
from collections.abc import Mapping
from logging import getLogger
from typing import TYPE_CHECKING, cast

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from archverify.domain.paths import relative_path_from_subdir
from archverify.domain.ports.expected import ManifestReader
from archverify.domain.types import ExpectedFileRecord

if TYPE_CHECKING:
    from pathlib import Path

log = getLogger(__name__)

FILES_TABLE = "files"


class ManifestFileEntry(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    destination_table: str = Field(alias="destinationTable")
    hashsum: str
    subdir: str = ""
    name: str
    size: int = 0
    valid: bool = True

    @field_validator("subdir", mode="before")
    @classmethod
    def _blank_subdir(cls, value: object) -> object:
        return "" if value is None else value

    def to_record(self) -> ExpectedFileRecord:
        return ExpectedFileRecord(
            relative_path=relative_path_from_subdir(self.subdir, self.name),
            content_hash=self.hashsum.strip(),
            size_bytes=self.size,
        )


def _is_file_entry(item: object) -> bool:
    if not isinstance(item, Mapping):
        return False
    table = cast(Mapping[str, object], item).get("destinationTable")
    return isinstance(table, str) and table.casefold() == FILES_TABLE


class JsonManifestReader:
    """Reads ``Files`` entries from a JSON upload manifest."""

    def read_file_records(self, path: Path) -> list[ExpectedFileRecord]:
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError as exc:
            log.error("Unable to read manifest %s: %s", path, exc)
            return []

        if not text.strip():
            log.error("Manifest file is empty: %s", path)
            return []

        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            log.error("Manifest %s is not valid JSON: %s", path, exc)
            return []
        if not isinstance(payload, list):
            log.error("Manifest %s does not contain a JSON array", path)
            return []

        records: list[ExpectedFileRecord] = []
        for item in cast(list[object], payload):
            if not _is_file_entry(item):
                continue
            try:
                entry = ManifestFileEntry.model_validate(item)
            except ValidationError as exc:
                log.warning("Skipping malformed manifest entry in %s: %s", path, exc)
                continue
            if not entry.valid:
                continue
            records.append(entry.to_record())

        if not records:
            log.error("Manifest %s does not contain any entries for the Files table", path)
        return records


if TYPE_CHECKING:
    _reader_check: ManifestReader = JsonManifestReader()
