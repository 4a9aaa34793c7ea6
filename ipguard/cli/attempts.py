"""CLI commands for inspecting and resetting attempt records."""

import argparse
import asyncio
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import structlog

from ipguard.common.logging_config import bind_client_address
from ipguard.core.store import AttemptRecord

logger = structlog.get_logger(__name__)


def _format_ms(value: Optional[int]) -> str:
    if not value:
        return "-"
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def _print_record(record: AttemptRecord) -> None:
    print(
        f"{record.address:<40} {record.failure_count:<8} "
        f"{_format_ms(record.last_attempt_at):<20} {_format_ms(record.blocked_until):<20}"
    )


def _print_header() -> None:
    print(f"{'Address':<40} {'Failures':<8} {'Last Failure (UTC)':<20} {'Blocked Until (UTC)':<20}")
    print("-" * 91)


async def show_address(address: str, config_path: Optional[Path] = None) -> bool:
    """
    Print the record and current block status for one address.

    Returns:
        True if a record exists, False otherwise
    """
    import ipguard

    await ipguard.configure(config_path=config_path)
    bind_client_address(address)
    try:
        tracker = ipguard.get_tracker()
        record = await tracker.get_record(address)
        if record is None:
            print(f"No failed attempts recorded for {address}")
            return False

        _print_header()
        _print_record(record)

        status = await tracker.is_blocked(address)
        if status.blocked:
            print(f"Blocked: yes ({status.retry_after}s remaining)")
        else:
            print("Blocked: no")
        return True
    finally:
        await ipguard.shutdown()


async def list_records(config_path: Optional[Path] = None) -> int:
    """Print every stored record. Returns the number of records."""
    import ipguard

    await ipguard.configure(config_path=config_path)
    try:
        records = await ipguard.get_tracker().store.list_records()
        if not records:
            print("No attempt records found")
            return 0

        _print_header()
        for record in records:
            _print_record(record)
        return len(records)
    finally:
        await ipguard.shutdown()


async def reset_address(address: str, config_path: Optional[Path] = None) -> bool:
    """
    Clear the failure count and any block for an address.

    Returns:
        True if a record was reset, False if none existed
    """
    import ipguard

    await ipguard.configure(config_path=config_path)
    bind_client_address(address)
    try:
        tracker = ipguard.get_tracker()
        if await tracker.get_record(address) is None:
            print(f"Error: No attempt record for '{address}'", file=sys.stderr)
            return False

        await tracker.handle_login_success(address)
        print(f"Attempts reset for {address}")
        logger.info("attempts_reset_via_cli")
        return True
    finally:
        await ipguard.shutdown()


def main(argv: Optional[list] = None) -> None:
    """Main entry point for attempt record CLI commands."""
    parser = argparse.ArgumentParser(
        prog="ipguard-attempts",
        description="Inspect and reset failed-login attempt records",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        help="Path to config.yaml (default: search config_dir, then CWD)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    show_parser = subparsers.add_parser(
        "show",
        help="Show the record for an address",
        description="Display failure count and block status for one address",
    )
    show_parser.add_argument("address", help="Client IP address")

    subparsers.add_parser(
        "list",
        help="List all records",
        description="Display every stored attempt record",
    )

    reset_parser = subparsers.add_parser(
        "reset",
        help="Reset an address",
        description="Clear failure count and block for an address",
    )
    reset_parser.add_argument("address", help="Client IP address")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "show":
        found = asyncio.run(show_address(args.address, args.config))
        sys.exit(0 if found else 1)
    elif args.command == "list":
        asyncio.run(list_records(args.config))
        sys.exit(0)
    elif args.command == "reset":
        success = asyncio.run(reset_address(args.address, args.config))
        sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
