"""Hash a dataset's local files when no upload manifest is available."""

from __future__ import annotations

import hashlib
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from archverify.config.storage import DEFAULT_HASH_WORKERS
from archverify.domain.paths import normalize_relative_path
from archverify.domain.ports.expected import LocalFileScanner
from archverify.domain.types import ExpectedFileRecord

if TYPE_CHECKING:
    from pathlib import Path

    from archverify.domain.expected import IgnoreRule

log = getLogger(__name__)

HASH_CHUNK_SIZE = 1024 * 1024


def sha1_file(path: Path) -> str:
    digest = hashlib.sha1()  # noqa: S324
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(HASH_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


@dataclass(slots=True)
class LocalDirectoryScanner:
    hash_workers: int = DEFAULT_HASH_WORKERS

    def scan(
        self,
        dataset_directory: Path,
        *,
        subdirectory: str = "",
        recurse: bool = True,
        ignore: IgnoreRule | None = None,
    ) -> list[ExpectedFileRecord]:
        """Hash the files below ``dataset_directory`` (or one of its subdirectories).

        Returned paths are relative to ``dataset_directory`` so they line up with the
        archive's view of the dataset.
        """

        search_root = dataset_directory / subdirectory if subdirectory else dataset_directory
        if not search_root.is_dir():
            raise FileNotFoundError(f"Dataset directory not found: {search_root}")

        candidates = search_root.rglob("*") if recurse else search_root.glob("*")
        files: list[tuple[Path, int]] = []
        for path in sorted(candidates):
            if not path.is_file():
                continue
            size = path.stat().st_size
            if ignore is not None and ignore.matches(path.name, size):
                log.debug("Skipping ignored file %s", path)
                continue
            files.append((path, size))

        with ThreadPoolExecutor(max_workers=max(1, self.hash_workers)) as pool:
            hashes = list(pool.map(sha1_file, (path for path, _ in files)))

        return [
            ExpectedFileRecord(
                relative_path=normalize_relative_path(
                    path.relative_to(dataset_directory).as_posix()
                ),
                content_hash=content_hash,
                size_bytes=size,
            )
            for (path, size), content_hash in zip(files, hashes, strict=True)
        ]


if TYPE_CHECKING:
    _scanner_check: LocalFileScanner = LocalDirectoryScanner()
