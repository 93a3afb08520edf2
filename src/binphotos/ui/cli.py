# ruff: noqa: T201

from __future__ import annotations

import argparse
import logging
import re
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from binphotos.app import check_bin, run_service
from binphotos.config import ConfigurationError, configure_logging
from binphotos.domain.errors import BinPhotosError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

log = logging.getLogger(__name__)

_BIN_ARGUMENT = re.compile(r"^\d+$")


def _bin_argument(value: str) -> str:
    cleaned = value.strip()
    if not _BIN_ARGUMENT.match(cleaned):
        raise argparse.ArgumentTypeError(f"Invalid BIN: {value!r} (expected digits only)")
    return cleaned


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Crowdsourced card-photo approval service")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("run", help="Poll the tracker and run the voting loops")
    run.add_argument(
        "--db",
        type=str,
        default=None,
        help="SQLite database file (defaults to DATABASE_URI or the data directory)",
    )

    check = subparsers.add_parser("check", help="Print card metadata for a BIN")
    check.add_argument("bin", type=_bin_argument, help="BIN digits, usually six")

    return parser.parse_args(list(argv))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    load_dotenv()
    signal(SIGINT, sigint_handler)
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    if parsed_args.command == "check":
        try:
            print(check_bin(parsed_args.bin))
        except BinPhotosError:
            log.exception("Lookup failed for BIN %s", parsed_args.bin)
            sys.exit(2)
        return

    try:
        run_service(database_path=parsed_args.db)
    except ConfigurationError:
        log.exception("Configuration error")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error while running")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    print("\nClosed by user (Ctrl+C)")
    sys.exit(0)
