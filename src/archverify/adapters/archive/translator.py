"""Translate archive payloads into domain records."""

from __future__ import annotations

import re
from logging import getLogger
from typing import TYPE_CHECKING

from archverify.domain.paths import relative_path_from_subdir
from archverify.domain.ports.archive import IngestState, IngestStatus
from archverify.domain.types import RemoteFileRecord

if TYPE_CHECKING:
    from .schema import ArchiveFilePayload, IngestStatePayload

log = getLogger(__name__)

_JOB_ID_PATTERN = re.compile(r"job_id=(\d+)")
_LEGACY_STATUS_PATTERN = re.compile(r"(\d+)/xml")

INGEST_OK_STATE = "ok"
INGEST_FAILED_STATE = "failed"


def parse_remote_file(payload: ArchiveFilePayload) -> RemoteFileRecord:
    if payload.hashtype and payload.hashtype.casefold() != "sha1":
        log.debug("File %s uses hash type %s", payload.name, payload.hashtype)
    return RemoteFileRecord(
        relative_path=relative_path_from_subdir(payload.subdir, payload.name),
        content_hash=payload.hashsum.strip(),
        remote_file_id=payload.file_id,
        transaction_id=payload.transaction_id,
        size_bytes=payload.size,
    )


def status_num_from_uri(status_uri: str) -> int | None:
    """Extract the upload job number from an ingest status URI."""

    for pattern in (_JOB_ID_PATTERN, _LEGACY_STATUS_PATTERN):
        match = pattern.search(status_uri)
        if match:
            return int(match.group(1))
    return None


def parse_ingest_status(payload: IngestStatePayload, status_uri: str) -> IngestStatus:
    status_num = payload.job_id if payload.job_id is not None else status_num_from_uri(status_uri)
    state = payload.state.strip().casefold()

    if state == INGEST_OK_STATE:
        finished = payload.task_percent >= 100
        return IngestStatus(
            state=IngestState.FINISHED if finished else IngestState.PENDING,
            task=payload.task,
            percent_complete=payload.task_percent,
            status_num=status_num,
        )
    if state == INGEST_FAILED_STATE:
        return IngestStatus(
            state=IngestState.FAILED,
            task=payload.task,
            percent_complete=payload.task_percent,
            status_num=status_num,
            message=f"Ingest failed during task '{payload.task}'",
        )
    return IngestStatus(
        state=IngestState.ERROR,
        task=payload.task,
        percent_complete=payload.task_percent,
        status_num=status_num,
        message=f"Ingest status reported '{payload.state}' during task '{payload.task}'",
    )
