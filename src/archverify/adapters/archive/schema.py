"""Pydantic models describing the archive metadata and ingest status payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _to_text(value: object) -> object:
    if value is None:
        return ""
    if isinstance(value, int | float) and not isinstance(value, bool):
        return str(int(value))
    return value


class ArchiveBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ArchiveFilePayload(ArchiveBaseModel):
    """One file revision as returned by ``files_for_keyvalue``."""

    file_id: str = Field(alias="_id")
    name: str
    subdir: str = ""
    hashsum: str
    hashtype: str = "sha1"
    size: int | None = None
    transaction_id: str = ""

    _normalize_ids = field_validator("file_id", "transaction_id", mode="before")(_to_text)

    @field_validator("subdir", mode="before")
    @classmethod
    def _blank_subdir(cls, value: object) -> object:
        return "" if value is None else value


class IngestStatePayload(ArchiveBaseModel):
    state: str = ""
    task: str = ""
    task_percent: float = 0.0
    job_id: int | None = None

    @field_validator("task", "state", mode="before")
    @classmethod
    def _none_to_blank(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("task_percent", mode="before")
    @classmethod
    def _parse_percent(cls, value: object) -> object:
        if value is None:
            return 0.0
        if isinstance(value, str):
            stripped = value.strip().rstrip("%")
            return stripped or 0.0
        return value
