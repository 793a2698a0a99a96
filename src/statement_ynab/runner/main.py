"""
CLI main entry point.
"""

import argparse
import logging
import signal
import sys
import threading
from pathlib import Path

from ..config import Config, ConfigValidationError, create_default_config, load_config
from ..watcher import ArchiveError, FileState, FolderWatcher, StatementProcessor
from ..ynab_client import YnabClient

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def create_cli() -> argparse.ArgumentParser:
    """Create CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="statement-ynab",
        description="Watch folders for bank statement HTML exports and import them to YNAB",
    )

    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=Path("appsettings.json"),
        help="Path to settings file (default: appsettings.json)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # watch command
    watch_parser = subparsers.add_parser(
        "watch", help="Watch monitored folders until interrupted"
    )
    watch_parser.add_argument(
        "--scan-existing",
        action="store_true",
        help="Also process statements already present in the folders",
    )

    # process command
    process_parser = subparsers.add_parser(
        "process", help="Process one statement file now (manual retry)"
    )
    process_parser.add_argument(
        "file",
        type=Path,
        help="Statement HTML file inside a monitored folder",
    )
    process_parser.add_argument(
        "--account",
        type=str,
        help="Account id (default: the account monitoring the file's folder)",
    )

    # check command
    subparsers.add_parser("check", help="Validate settings and test the YNAB connection")

    # init-config command
    subparsers.add_parser("init-config", help="Write a settings template to --config")

    return parser


def _build_client(config: Config) -> YnabClient:
    return YnabClient(base_url=config.api_base_url, token=config.api_key)


def cmd_watch(config: Config, scan_existing: bool = False) -> int:
    """Watch every monitored folder until Ctrl+C or SIGTERM."""
    client = _build_client(config)
    watchers = [
        FolderWatcher(
            StatementProcessor(config, account, client),
            max_workers=config.max_workers,
        )
        for account in config.accounts
    ]

    stop_event = threading.Event()
    signal.signal(signal.SIGTERM, lambda signum, frame: stop_event.set())

    try:
        for watcher in watchers:
            watcher.start()
    except FileNotFoundError as e:
        logger.error(str(e))
        for watcher in watchers:
            watcher.stop()
        return 1

    if scan_existing:
        for watcher in watchers:
            watcher.scan_existing()

    print(f"👀 Watching {len(watchers)} folder(s). Press Ctrl+C to exit.")
    try:
        while not stop_event.wait(1.0):
            pass
    except KeyboardInterrupt:
        pass
    finally:
        print("\n⏹ Stopping, waiting for statements in progress...")
        for watcher in watchers:
            watcher.stop()

    print("✓ Stopped")
    return 0


def cmd_process(config: Config, file: Path, account_id: str | None = None) -> int:
    """Run the pipeline once for a single statement."""
    if account_id:
        account = config.get_account(account_id)
        if account is None:
            print(f"❌ Unknown account: {account_id}")
            return 1
    else:
        account = config.account_for_folder(file.parent)
        if account is None:
            print(f"❌ {file} is not directly inside a monitored folder")
            return 1

    processor = StatementProcessor(config, account, _build_client(config))

    print(f"📄 Processing {file}")
    try:
        outcome = processor.process_file(file)
    except ArchiveError as e:
        print(f"❌ Archiving failed, statement left in place: {e}")
        return 1

    if outcome.state == FileState.SKIPPED:
        print(f"⏭ Not processed: {processor.rejection_reason(file) or 'already in progress'}")
        return 1
    if outcome.state != FileState.DONE:
        print(f"❌ Failed: {outcome.error}")
        return 1

    print(f"     → Rows: {outcome.transactions} (skipped {outcome.skipped_rows})")
    print(f"     → Submitted: {outcome.submitted}")
    print(f"✓ Archived to {outcome.archive_dir}")
    return 0


def cmd_check(config: Config) -> int:
    """Show configured accounts and test the YNAB token."""
    print(f"Budget: {config.budget_id}")
    for account in config.accounts:
        exists = "✓" if account.monitored_folder.is_dir() else "❌ missing"
        print(f"  Account {account.account_id} → {account.monitored_folder} {exists}")

    client = _build_client(config)
    print(f"  → Connecting to YNAB: {config.api_base_url}")
    if not client.test_connection():
        print("❌ Failed to connect to YNAB")
        print("   Check apiKey / YNAB_API_KEY")
        return 1
    print("✓ YNAB connection OK")
    return 0


def cmd_init_config(config_path: Path) -> int:
    if config_path.exists():
        print(f"❌ {config_path} already exists")
        return 1
    create_default_config(config_path)
    print(f"✓ Wrote settings template to {config_path}")
    return 0


def main(args: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_cli()
    parsed = parser.parse_args(args)

    setup_logging(parsed.verbose)

    if not parsed.command:
        parser.print_help()
        return 1

    if parsed.command == "init-config":
        return cmd_init_config(parsed.config)

    # Load config
    try:
        config = load_config(parsed.config)
    except ConfigValidationError as e:
        logger.error(f"Failed to load config {parsed.config}: {e}")
        return 1

    # Route to command
    if parsed.command == "watch":
        return cmd_watch(config, parsed.scan_existing)
    elif parsed.command == "process":
        return cmd_process(config, parsed.file, parsed.account)
    elif parsed.command == "check":
        return cmd_check(config)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
