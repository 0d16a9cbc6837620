# main.py

"""Entry point for the refurb_watch price tracker."""

import argparse
import asyncio
import logging
import sys

from refurb_watch.config.logging_config import setup_logging
from refurb_watch.config.settings import Settings

logger = logging.getLogger("refurb_watch.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="refurb_watch",
        description=(
            "Track Apple refurbished Mac mini listings and their "
            "price history."
        ),
        epilog=f"Listing: {Settings.LISTING_URL}",
    )
    parser.add_argument(
        "--history-file",
        default=None,
        dest="history_file",
        help=f"History JSON file (default: {Settings.HISTORY_PATH}).",
    )
    parser.add_argument(
        "--notify",
        action="store_true",
        default=False,
        help="Announce newly listed products via the Slack webhook.",
    )
    parser.add_argument(
        "--show",
        action="store_true",
        default=False,
        help="Print the stored history and exit without fetching.",
    )
    parser.add_argument(
        "--dashboard",
        action="store_true",
        default=False,
        help="Export the stored history as an HTML chart and exit.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Show progress (INFO) logs on the console.",
    )
    return parser


def _run_tracker(args: argparse.Namespace) -> None:
    """Fetch, reconcile and persist once."""
    from refurb_watch.cli.runner import run_once

    exit_code = asyncio.run(
        run_once(history_file=args.history_file, notify=args.notify)
    )
    sys.exit(exit_code)


def _run_show(args: argparse.Namespace) -> None:
    from refurb_watch.cli.runner import show_history

    sys.exit(show_history(args.history_file))


def _run_dashboard(args: argparse.Namespace) -> None:
    from refurb_watch.cli.runner import run_dashboard

    sys.exit(run_dashboard(args.history_file))


def main() -> None:
    """Route to the requested action (default: one tracker run)."""
    parser = _build_parser()
    args = parser.parse_args()

    log_file = setup_logging(verbose=args.verbose)
    logger.info("refurb_watch starting, log file: %s", log_file)

    if args.show:
        _run_show(args)
    elif args.dashboard:
        _run_dashboard(args)
    else:
        _run_tracker(args)


if __name__ == "__main__":
    main()
