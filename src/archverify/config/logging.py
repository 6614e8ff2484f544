"""Logging setup for archverify entry points."""

from __future__ import annotations

import logging
import os

LOG_LEVEL_ENV = "ARCHVERIFY_LOG_LEVEL"


def _level_from_env(default: int) -> int:
    name = (os.getenv(LOG_LEVEL_ENV) or "").strip().upper()
    if not name:
        return default
    level = logging.getLevelNamesMapping().get(name)
    return default if level is None else level


def configure_logging(*, level: int | None = None, force: bool = False) -> None:
    """Initialise the root logger for scheduler-driven runs.

    The level defaults to ``ARCHVERIFY_LOG_LEVEL`` (a standard level name) and
    falls back to INFO. Pass ``force=True`` to reconfigure during tests.
    """

    logging.basicConfig(
        level=level if level is not None else _level_from_env(logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=force,
    )
