"""Hash ledger model and merge policy.

The ledger records, per canonical archive path, the verified content hash and the
archive's file id. It is persisted as one line per entry::

    <hash><SPACE><canonical path>[<TAB><remote file id>]

The path and id are tab separated because canonical paths may contain spaces.
Older lines written before the archive assigned ids carry no tab segment.

Merging follows one rule beyond "newer wins": a known remote file id is never
replaced by an unknown (empty) one.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .paths import canonical_archive_path

if TYPE_CHECKING:
    from .types import RemoteFileRecord


@dataclass(frozen=True, slots=True)
class LedgerEntry:
    canonical_path: str
    hash_code: str
    remote_file_id: str = ""

    def same_value(self, other: LedgerEntry) -> bool:
        return self.hash_code == other.hash_code and self.remote_file_id == other.remote_file_id

    def to_line(self) -> str:
        line = f"{self.hash_code} {self.canonical_path}"
        if self.remote_file_id:
            line += f"\t{self.remote_file_id}"
        return line


def _key(canonical_path: str) -> str:
    return canonical_path.casefold()


class HashLedger(Mapping[str, LedgerEntry]):
    """Insertion-ordered, case-insensitive mapping of canonical path -> entry."""

    __slots__ = ("_entries",)

    def __init__(self, entries: Iterable[LedgerEntry] = ()) -> None:
        self._entries: dict[str, LedgerEntry] = {}
        for entry in entries:
            self._entries[_key(entry.canonical_path)] = entry

    def __getitem__(self, canonical_path: str) -> LedgerEntry:
        return self._entries[_key(canonical_path)]

    def __contains__(self, canonical_path: object) -> bool:
        return isinstance(canonical_path, str) and _key(canonical_path) in self._entries

    def __iter__(self) -> Iterator[str]:
        return (entry.canonical_path for entry in self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HashLedger):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"HashLedger({list(self._entries.values())!r})"

    def entries(self) -> list[LedgerEntry]:
        return list(self._entries.values())

    def copy(self) -> HashLedger:
        return HashLedger(self._entries.values())

    def _apply(self, incoming: LedgerEntry) -> None:
        key = _key(incoming.canonical_path)
        cached = self._entries.get(key)
        if cached is None:
            self._entries[key] = incoming
            return
        if incoming.same_value(cached):
            return
        if not incoming.remote_file_id and cached.remote_file_id:
            return
        self._entries[key] = incoming


def merge(
    existing: HashLedger, fresh: Iterable[LedgerEntry]
) -> tuple[HashLedger, bool]:
    """Fold ``fresh`` into a copy of ``existing``.

    Returns the merged ledger and whether it differs from ``existing``. The change
    flag compares end states, so re-merging the same records reports no change even
    when ``fresh`` holds several revisions of one path.
    """

    updated = existing.copy()
    for entry in fresh:
        updated._apply(entry)  # noqa: SLF001
    return updated, updated != existing


def parse_line(line: str) -> LedgerEntry | None:
    """Parse one ledger line; ``None`` for lines without a hash and a path."""

    text = line.rstrip("\r\n")
    hash_code, separator, remainder = text.partition(" ")
    if not separator or not hash_code or not remainder:
        return None
    canonical_path, _, remote_file_id = remainder.partition("\t")
    if not canonical_path:
        return None
    return LedgerEntry(
        canonical_path=canonical_path,
        hash_code=hash_code,
        remote_file_id=remote_file_id.strip(),
    )


def parse_lines(lines: Iterable[str]) -> HashLedger:
    """Build a ledger from text lines, folding duplicates with the merge policy."""

    ledger = HashLedger()
    for line in lines:
        entry = parse_line(line)
        if entry is not None:
            ledger._apply(entry)  # noqa: SLF001
    return ledger


def format_lines(ledger: HashLedger) -> Iterator[str]:
    for entry in ledger.values():
        yield entry.to_line()


def entries_from_remote(
    records: Iterable[RemoteFileRecord],
    *,
    prefix: str,
    instrument: str,
    year_quarter: str,
    dataset: str,
) -> list[LedgerEntry]:
    """Translate archive records into ledger entries keyed by canonical path."""

    return [
        LedgerEntry(
            canonical_path=canonical_archive_path(
                prefix=prefix,
                instrument=instrument,
                year_quarter=year_quarter,
                dataset=dataset,
                relative_path=record.relative_path,
            ),
            hash_code=record.content_hash,
            remote_file_id=record.remote_file_id,
        )
        for record in records
    ]


__all__ = [
    "HashLedger",
    "LedgerEntry",
    "entries_from_remote",
    "format_lines",
    "merge",
    "parse_line",
    "parse_lines",
]
