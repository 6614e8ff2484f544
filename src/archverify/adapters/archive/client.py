"""HTTP client for the archive metadata and ingest status services."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import TypeAdapter, ValidationError

from archverify.adapters.http_resilience import ResilientClient
from archverify.config.archive import ArchiveConfig, get_archive_config
from archverify.domain.paths import path_key
from archverify.domain.ports.archive import (
    ArchiveUnavailableError,
    IngestStatusChecker,
    RemoteArchiveQuery,
)

from .schema import ArchiveFilePayload, IngestStatePayload
from .translator import parse_ingest_status, parse_remote_file

if TYPE_CHECKING:
    from collections.abc import Callable

    from archverify.config.http_resilience import ResilienceConfig
    from archverify.domain.ports.archive import IngestStatus
    from archverify.domain.types import RemoteFileRecord

log = getLogger(__name__)

DATASET_ID_KEY = "omics.dms.dataset_id"

_FILE_LIST_ADAPTER = TypeAdapter(list[ArchiveFilePayload])


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def _in_subdirectory(record: RemoteFileRecord, subdirectory: str) -> bool:
    prefix = path_key(subdirectory).rstrip("/")
    if not prefix:
        return True
    return path_key(record.relative_path).startswith(f"{prefix}/")


@dataclass(slots=True)
class ArchiveClient:
    config: ArchiveConfig = field(default_factory=get_archive_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )

    def check_certificate(self) -> str | None:
        if self.config.client_cert.is_file():
            return None
        return f"Client certificate file not found: {self.config.client_cert}"

    def find_files(
        self, dataset_id: int, subdirectory: str | None = None
    ) -> list[RemoteFileRecord]:
        records = asyncio.run(self._find_files_async(dataset_id))
        if subdirectory:
            records = [record for record in records if _in_subdirectory(record, subdirectory)]
        log.debug("Archive reports %s files for dataset ID %s", len(records), dataset_id)
        return records

    def check_ingest(self, status_uri: str) -> IngestStatus:
        payload = asyncio.run(self._get_json(status_uri))
        try:
            state = IngestStatePayload.model_validate(payload)
        except ValidationError as exc:
            raise ArchiveUnavailableError(f"Unexpected ingest status payload: {exc}") from exc
        return parse_ingest_status(state, status_uri)

    async def _find_files_async(self, dataset_id: int) -> list[RemoteFileRecord]:
        url = f"{self.config.metadata_url}/files_for_keyvalue/{DATASET_ID_KEY}/{dataset_id}"
        payload = await self._get_json(url)
        try:
            files = _FILE_LIST_ADAPTER.validate_python(payload)
        except ValidationError as exc:
            raise ArchiveUnavailableError(f"Unexpected archive file listing: {exc}") from exc
        return [parse_remote_file(item) for item in files]

    async def _get_json(self, url: str) -> object:
        try:
            async with self.client_factory(self.config.resilience) as client:
                response = await client.get(url)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPError as exc:
            log.error("Archive request to %s failed: %s", url, exc)
            raise ArchiveUnavailableError(str(exc)) from exc
        except ValueError as exc:
            raise ArchiveUnavailableError(f"Archive returned invalid JSON from {url}") from exc


if TYPE_CHECKING:
    _query_check: RemoteArchiveQuery = ArchiveClient()
    _ingest_check: IngestStatusChecker = ArchiveClient()
