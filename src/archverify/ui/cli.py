from __future__ import annotations

import argparse
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from archverify.app import show_ledger, verify_dataset
from archverify.config import configure_logging
from archverify.domain.types import Disposition, VerificationTask

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from archverify.domain.types import VerificationReport

log = logging.getLogger(__name__)

EXIT_FAILED = 1
EXIT_USAGE = 2
EXIT_NOT_READY = 3


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Verify archived datasets")
    subparsers = parser.add_subparsers(dest="command", required=True)

    verify = subparsers.add_parser("verify", help="Verify one dataset against the archive")
    verify.add_argument("--dataset", type=str, required=True, help="Dataset name")
    verify.add_argument("--dataset-id", type=int, required=True, help="Dataset ID")
    verify.add_argument("--job", type=str, required=True, help="Upload job number")
    verify.add_argument(
        "--status-uri",
        type=str,
        default="",
        help="Ingest status URI returned by the upload",
    )
    verify.add_argument("--instrument", type=str, default="", help="Instrument name")
    verify.add_argument(
        "--created",
        type=str,
        help="ISO-8601 dataset creation timestamp (selects the year-quarter folder)",
    )
    verify.add_argument(
        "--transfer-root",
        type=str,
        default="",
        help="Transfer directory holding the staged upload manifest",
    )
    verify.add_argument(
        "--source-directory",
        type=str,
        default="",
        help="Local dataset directory to hash when no manifest is available",
    )
    verify.add_argument(
        "--subdirectory",
        type=str,
        default="",
        help="Restrict verification to one dataset subdirectory",
    )
    verify.add_argument(
        "--no-recurse",
        action="store_true",
        help="Only hash files directly inside the scanned directory",
    )

    ledger = subparsers.add_parser("ledger", help="Hash ledger commands")
    ledger_sub = ledger.add_subparsers(dest="ledger_command", required=True)
    ledger_show = ledger_sub.add_parser("show", help="Print the entries of a ledger file")
    ledger_show.add_argument("path", type=Path, help="Ledger file path")

    return parser.parse_args(list(argv))


def _parse_iso_datetime(value: str) -> datetime:
    try:
        normalized = value.strip()
        if normalized.endswith("Z"):
            normalized = normalized[:-1] + "+00:00"
        dt = datetime.fromisoformat(normalized)
    except ValueError as exc:
        raise ValueError(f"Invalid ISO timestamp: {value}") from exc
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


def _build_task(args: argparse.Namespace) -> VerificationTask:
    return VerificationTask(
        dataset=args.dataset,
        dataset_id=args.dataset_id,
        instrument=args.instrument,
        created=_parse_iso_datetime(args.created) if args.created else None,
        job=args.job,
        status_uri=args.status_uri,
        transfer_root=args.transfer_root,
        source_directory=args.source_directory,
        subdirectory=args.subdirectory,
        recurse=not args.no_recurse,
    )


def _exit_code(report: VerificationReport) -> int:
    if report.disposition is Disposition.SUCCESS:
        return 0
    if report.disposition is Disposition.NOT_READY:
        return EXIT_NOT_READY
    return EXIT_FAILED


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    configure_logging()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    task: VerificationTask | None = None
    try:
        parsed_args = _parse_args(args_list)
        if parsed_args.command == "verify":
            task = _build_task(parsed_args)
    except ValueError:
        log.exception("CLI validation error")
        sys.exit(EXIT_USAGE)

    try:
        if task is not None:
            report = verify_dataset(task)
            log.info(
                "Disposition %s (%s): %s",
                report.disposition,
                report.eval_code,
                report.message,
            )
            code = _exit_code(report)
            if code:
                sys.exit(code)
        elif parsed_args.command == "ledger" and parsed_args.ledger_command == "show":
            for entry in show_ledger(parsed_args.path).values():
                print(entry.to_line())  # noqa: T201
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301

    except Exception:
        log.exception("Fatal error during verification")
        sys.exit(EXIT_FAILED)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
