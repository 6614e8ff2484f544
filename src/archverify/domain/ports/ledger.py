"""Ports for persisting hash ledgers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from pathlib import Path

    from archverify.domain.ledger import HashLedger


class LedgerIOError(OSError):
    """Raised when a ledger file cannot be read or written."""


@runtime_checkable
class LedgerStore(Protocol):
    """File-backed storage for per-dataset hash ledgers."""

    def ledger_path(self, *, instrument: str, year_quarter: str, dataset: str) -> Path: ...

    def load(self, path: Path) -> HashLedger: ...

    def save(self, ledger: HashLedger, path: Path, *, atomic: bool) -> None: ...

    def backup(self, path: Path, *, instrument: str, year_quarter: str, dataset: str) -> None:
        """Copy ``path`` to the secondary location; failures are logged, not raised."""
        ...


__all__ = ["LedgerIOError", "LedgerStore"]
