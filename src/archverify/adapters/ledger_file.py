"""Text-file persistence for hash ledgers."""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass, field
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from archverify.config.storage import LedgerConfig, get_ledger_config
from archverify.domain.ledger import HashLedger, format_lines, parse_lines
from archverify.domain.paths import ledger_relative_location
from archverify.domain.ports.ledger import LedgerIOError, LedgerStore

if TYPE_CHECKING:
    from collections.abc import Iterable

log = getLogger(__name__)

PENDING_SUFFIX = ".new"


def _write_lines(target: Path, lines: Iterable[str], *, sync: bool) -> None:
    with target.open("w", encoding="utf-8", newline="\n") as handle:
        for line in lines:
            handle.write(line)
            handle.write("\n")
        if sync:
            handle.flush()
            os.fsync(handle.fileno())


@dataclass(slots=True)
class FileLedgerStore:
    config: LedgerConfig = field(default_factory=get_ledger_config)

    def ledger_path(self, *, instrument: str, year_quarter: str, dataset: str) -> Path:
        relative = ledger_relative_location(
            instrument=instrument, year_quarter=year_quarter, dataset=dataset
        )
        return self.config.ledger_root / relative

    def load(self, path: Path) -> HashLedger:
        try:
            with path.open(encoding="utf-8", errors="replace") as handle:
                return parse_lines(handle)
        except FileNotFoundError:
            return HashLedger()
        except OSError as exc:
            raise LedgerIOError(f"Cannot read ledger {path}: {exc}") from exc

    def save(self, ledger: HashLedger, path: Path, *, atomic: bool) -> None:
        """Write ``ledger`` to ``path``.

        Atomic saves go through a sibling ``.new`` file that replaces the target only
        once fully written, so readers never observe a partial ledger.
        """

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            if not atomic:
                _write_lines(path, format_lines(ledger), sync=False)
                return
            pending = path.with_name(path.name + PENDING_SUFFIX)
            _write_lines(pending, format_lines(ledger), sync=True)
            os.replace(pending, path)
        except OSError as exc:
            raise LedgerIOError(f"Cannot write ledger {path}: {exc}") from exc

    def backup(self, path: Path, *, instrument: str, year_quarter: str, dataset: str) -> None:
        if self.config.backup_root is None:
            return
        relative = ledger_relative_location(
            instrument=instrument, year_quarter=year_quarter, dataset=dataset
        )
        target = self.config.backup_root / relative
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(path, target)
        except OSError as exc:
            log.warning("Unable to copy ledger %s to backup %s: %s", path, target, exc)
            return
        log.debug("Backed up ledger to %s", target)


if TYPE_CHECKING:
    _store_check: LedgerStore = FileLedgerStore()
