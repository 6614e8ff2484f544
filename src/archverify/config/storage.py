"""Ledger storage configuration helpers."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from archverify.domain.paths import DEFAULT_ARCHIVE_PREFIX

from .env import int_env_var, optional_env_var

APP_DIR_NAME: Final[str] = "archverify"
LEDGER_DIR_NAME: Final[str] = "hash_results"
LEDGER_BACKUP_DIR_NAME: Final[str] = "hash_results_backup"
DEFAULT_HASH_WORKERS: Final[int] = 4


@dataclass(frozen=True, slots=True)
class LedgerConfig:
    ledger_root: Path
    backup_root: Path | None
    archive_prefix: str = DEFAULT_ARCHIVE_PREFIX
    hash_workers: int = DEFAULT_HASH_WORKERS


def _default_data_dir() -> Path:
    if os.name == "nt":
        base = os.getenv("LOCALAPPDATA")
        base_path = Path(base) if base else (Path.home() / "AppData" / "Local")
    else:
        base = os.getenv("XDG_DATA_HOME")
        base_path = Path(base) if base else (Path.home() / ".local" / "share")
    return (base_path / APP_DIR_NAME).expanduser().resolve()


def get_data_dir() -> Path:
    """Return the directory holding default ledger roots."""

    env_dir = optional_env_var("ARCHVERIFY_DATA_DIR")
    if env_dir:
        return Path(env_dir).expanduser().resolve()
    return _default_data_dir()


def get_ledger_config() -> LedgerConfig:
    data_dir = get_data_dir()
    ledger_root = optional_env_var("ARCHVERIFY_LEDGER_ROOT")
    backup_root = optional_env_var("ARCHVERIFY_LEDGER_BACKUP_ROOT")
    return LedgerConfig(
        ledger_root=Path(ledger_root) if ledger_root else data_dir / LEDGER_DIR_NAME,
        backup_root=Path(backup_root) if backup_root else data_dir / LEDGER_BACKUP_DIR_NAME,
        archive_prefix=optional_env_var("ARCHVERIFY_ARCHIVE_PREFIX") or DEFAULT_ARCHIVE_PREFIX,
        hash_workers=int_env_var("ARCHVERIFY_HASH_WORKERS", DEFAULT_HASH_WORKERS, minimum=1),
    )
