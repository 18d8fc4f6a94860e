#!/usr/bin/env python3

# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from claimsync.adapters.serialization import sync_result_to_payload
from claimsync.app import sync_claims
from claimsync.config import ConfigurationError, configure_logging
from claimsync.domain.errors import AuthError, SyncTimeoutError, ValidationError
from claimsync.domain.sync import CallerIdentity, SyncRequest

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="claimsync", description="Synchronise marketplace claims and returns"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    sync = subparsers.add_parser("sync", help="Fetch, enrich and store claims for accounts")
    sync.add_argument(
        "--account",
        dest="accounts",
        action="append",
        required=True,
        help="Integration account id; repeat for several accounts",
    )
    sync.add_argument(
        "--from",
        dest="date_from",
        type=str,
        help="ISO-8601 timestamp marking the inclusive start of the window",
    )
    sync.add_argument(
        "--to",
        dest="date_to",
        type=str,
        help="ISO-8601 timestamp marking the inclusive end of the window",
    )
    sync.add_argument(
        "--force",
        action="store_true",
        help="Drop cached claims for the accounts and fetch fresh data",
    )
    return parser.parse_args(list(argv))


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    parsed_args = _parse_args(sys.argv[1:] if argv is None else argv)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        request = SyncRequest.from_input(
            parsed_args.accounts,
            date_from=parsed_args.date_from,
            date_to=parsed_args.date_to,
            force_refresh=parsed_args.force,
        )
    except ValidationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)

    try:
        result = sync_claims(request, CallerIdentity(trusted=True))
    except ValidationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)
    except SyncTimeoutError as exc:
        print(f"Error: {exc} {exc.hint}", file=sys.stderr)
        sys.exit(1)
    except (AuthError, ConfigurationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)

    print(json.dumps(sync_result_to_payload(result), indent=2))


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    print("\nClosed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
