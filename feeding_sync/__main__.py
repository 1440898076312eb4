"""CLI entry point for Feeding Sync.

Usage:
    python -m feeding_sync log AMOUNT
    python -m feeding_sync delete ID
    python -m feeding_sync list [--json]
    python -m feeding_sync today
    python -m feeding_sync sync
    python -m feeding_sync status [--json]
    python -m feeding_sync --json-logs -v sync

Commands:
    log       Record a feeding of AMOUNT ml
    delete    Delete a feeding by id
    list      Show feedings grouped by day
    today     Show today's total
    sync      Push pending changes and refresh the local cache
    status    Show connectivity, pending count and last sync

Remote settings come from FEEDING_SYNC_URL / FEEDING_SYNC_API_KEY. Without
them the CLI works offline and only queues changes locally.
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from feeding_sync import __version__
from feeding_sync.config import ClientConfig, RemoteConfig
from feeding_sync.errors import FeedingSyncError
from feeding_sync.overview import daily_totals, today_total
from feeding_sync.tracker import FeedingTracker
from feeding_sync.utils.logging import configure_root_logger


def setup_logging(
    verbose: bool = False,
    log_file: Optional[Path] = None,
    json_output: bool = False,
) -> None:
    """Configure logging for CLI output."""
    configure_root_logger(
        level=logging.DEBUG if verbose else logging.WARNING,
        json_output=json_output,
        log_file=log_file,
    )


def load_config(args: argparse.Namespace) -> ClientConfig:
    return ClientConfig.from_env(Path(args.data_dir) if args.data_dir else None)


def build_tracker(args: argparse.Namespace) -> FeedingTracker:
    """Create a tracker from CLI arguments and the environment."""
    config = load_config(args)
    if not os.environ.get("FEEDING_SYNC_URL"):
        print("FEEDING_SYNC_URL is not set; working offline.", file=sys.stderr)
        return FeedingTracker(config, None, probe=lambda: False, initial_online=False)
    return FeedingTracker(config, RemoteConfig.from_env())


def cmd_log(args: argparse.Namespace) -> int:
    """Handle the 'log' command - record a feeding.

    Args:
        args: Parsed CLI arguments

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    with build_tracker(args) as tracker:
        record = tracker.service.create_feeding(args.amount)
        state = "saved" if tracker.connectivity.is_online else "queued (offline)"
        print(f"{record.amount}ml {state}: {record.id}")
    return 0


def cmd_delete(args: argparse.Namespace) -> int:
    """Handle the 'delete' command - delete a feeding."""
    with build_tracker(args) as tracker:
        tracker.service.delete_feeding(args.id)
        state = "deleted" if tracker.connectivity.is_online else "delete queued (offline)"
        print(f"{args.id} {state}")
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    """Handle the 'list' command - show feedings grouped by day."""
    with build_tracker(args) as tracker:
        records = tracker.service.list_feedings()
        totals = daily_totals(records, tracker.config.timezone)

    if args.json:
        print(json.dumps([t.to_dict() for t in totals], indent=2))
        return 0

    if not totals:
        print("No feedings recorded.")
        return 0

    for day in totals:
        print(f"{day.date.isoformat()}  {day.total}ml  ({day.count} feedings, avg {day.average}ml)")
        for record in day.entries:
            print(f"    {record.created_at.isoformat()}  {record.amount:>4}ml  {record.id}")
    return 0


def cmd_today(args: argparse.Namespace) -> int:
    """Handle the 'today' command - show today's total."""
    with build_tracker(args) as tracker:
        total = today_total(tracker.service.list_feedings(), tracker.config.timezone)

    if total is None:
        print("Nothing logged today.")
    else:
        print(f"Today: {total.total}ml in {total.count} feedings (avg {total.average}ml)")
    return 0


def cmd_sync(args: argparse.Namespace) -> int:
    """Handle the 'sync' command - drain pending changes."""
    with build_tracker(args) as tracker:
        stats = tracker.sync()
        pending = tracker.service.pending_count()

    if stats.skipped:
        print(f"Sync skipped ({stats.skip_reason}). {pending} change(s) pending.")
        return 1

    print("Sync complete:")
    print(f"  Created: {stats.created}")
    print(f"  Deleted: {stats.deleted}")
    print(f"  Failed: {stats.failed}")
    print(f"  Cache refreshed: {stats.cache_refreshed} ({stats.records_cached} records)")
    print(f"  Still pending: {pending}")
    print(f"  Duration: {stats.duration_ms:.1f} ms")
    return 0 if stats.success else 1


def cmd_status(args: argparse.Namespace) -> int:
    """Handle the 'status' command."""
    with build_tracker(args) as tracker:
        status = tracker.status()

    if args.json:
        print(json.dumps(status, indent=2, default=str))
    else:
        print(f"Online: {status['online']}")
        print(f"Pending changes: {status['pending']}")
        print(f"Cached feedings: {status['cached_records']}")
        print(f"Queue: {status['queue_path']}")
        print(f"Cache: {status['cache_path']}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="feeding_sync",
        description="Feeding Sync - offline-first baby feeding log",
    )
    parser.add_argument(
        "--version", action="version",
        version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable verbose output"
    )
    parser.add_argument(
        "--json-logs", action="store_true",
        help="Write log lines as JSON"
    )
    parser.add_argument(
        "--data-dir",
        help="Directory for the pending queue and cache (default: $FEEDING_SYNC_DATA_DIR or ~/.feeding_sync)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    log_parser = subparsers.add_parser("log", help="Record a feeding")
    log_parser.add_argument("amount", type=int, help="Amount in milliliters")

    delete_parser = subparsers.add_parser("delete", help="Delete a feeding")
    delete_parser.add_argument("id", help="Feeding id")

    list_parser = subparsers.add_parser("list", help="Show feedings grouped by day")
    list_parser.add_argument("--json", action="store_true", help="Output as JSON")

    subparsers.add_parser("today", help="Show today's total")
    subparsers.add_parser("sync", help="Push pending changes and refresh the cache")

    status_parser = subparsers.add_parser("status", help="Show sync status")
    status_parser.add_argument("--json", action="store_true", help="Output as JSON")

    return parser


def main(argv=None) -> int:
    """Main entry point for the CLI.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    setup_logging(
        verbose=args.verbose,
        log_file=load_config(args).log_file,
        json_output=args.json_logs,
    )

    commands = {
        "log": cmd_log,
        "delete": cmd_delete,
        "list": cmd_list,
        "today": cmd_today,
        "sync": cmd_sync,
        "status": cmd_status,
    }

    handler = commands.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    try:
        return handler(args)
    except (FeedingSyncError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
