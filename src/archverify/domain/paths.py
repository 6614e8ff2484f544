"""Path conventions shared by the manifest, the archive and the ledger."""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

ARCHIVE_DATA_DIR = "data"
DEFAULT_ARCHIVE_PREFIX = "/myemsl/svc-dms"
LEDGER_FILE_PREFIX = "results."


def normalize_relative_path(path: str) -> str:
    """Return ``path`` with forward slashes and no leading ``./`` or ``/``."""

    normalized = path.replace("\\", "/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    normalized = normalized.lstrip("/")
    while "//" in normalized:
        normalized = normalized.replace("//", "/")
    return normalized


def path_key(path: str) -> str:
    """Comparison key for relative paths (separator-normalized, case-insensitive)."""

    return normalize_relative_path(path).casefold()


def relative_path_from_subdir(subdir: str | None, name: str) -> str:
    """Translate an upload-time ``subdir``/``name`` pair into a dataset-relative path.

    Uploads place dataset files below a ``data`` directory: exactly ``data`` is the
    dataset root, ``data/<x>`` maps to ``<x>``, anything else is kept verbatim.
    """

    directory = (subdir or "").replace("\\", "/").strip("/")
    if directory.casefold() == ARCHIVE_DATA_DIR:
        directory = ""
    elif directory.casefold().startswith(f"{ARCHIVE_DATA_DIR}/"):
        directory = directory[len(ARCHIVE_DATA_DIR) + 1 :]
    if not directory:
        return normalize_relative_path(name)
    return normalize_relative_path(f"{directory}/{name}")


def dataset_year_quarter(created: datetime) -> str:
    """Year-quarter bucket of a dataset creation timestamp, e.g. ``2023_3``."""

    quarter = math.ceil(created.month / 3)
    return f"{created.year}_{quarter}"


def canonical_archive_path(
    *,
    prefix: str,
    instrument: str,
    year_quarter: str,
    dataset: str,
    relative_path: str,
) -> str:
    """Fully-qualified ledger key for a dataset-relative path."""

    root = prefix.rstrip("/")
    return f"{root}/{instrument}/{year_quarter}/{dataset}/{normalize_relative_path(relative_path)}"


def ledger_relative_location(*, instrument: str, year_quarter: str, dataset: str) -> str:
    """Location of a dataset's ledger file below a ledger root."""

    return f"{instrument}/{year_quarter}/{LEDGER_FILE_PREFIX}{dataset}"


__all__ = [
    "DEFAULT_ARCHIVE_PREFIX",
    "canonical_archive_path",
    "dataset_year_quarter",
    "ledger_relative_location",
    "normalize_relative_path",
    "path_key",
    "relative_path_from_subdir",
]
