# main.py

"""Entry point for crate_scout: cheapest listings across your want lists."""

import argparse
import asyncio
import logging
import sys

from src.config.logging_config import setup_logging

logger = logging.getLogger("crate_scout.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="crate_scout",
        description=(
            "Find the three cheapest offers for the records on your "
            "Discogs want list and Bandcamp wishlist."
        ),
        epilog=(
            "DGS_USERNAME and TIMER_LIMIT must be set (environment or .env)."
        ),
    )
    parser.add_argument(
        "-d",
        "--discogs",
        default=None,
        dest="discogs_username",
        help="Discogs username (default: $DGS_USERNAME).",
    )
    parser.add_argument(
        "-b",
        "--bandcamp",
        default=None,
        dest="bandcamp_username",
        help="Bandcamp username (default: $BANDCAMP_USERNAME).",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="table",
        dest="output_format",
        help="Output format (default: table).",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Echo INFO-level log lines to stderr.",
    )
    parser.add_argument(
        "--health",
        action="store_true",
        default=False,
        help="Check connectivity to Discogs and Bandcamp and exit.",
    )
    return parser


def _run_fetch(args: argparse.Namespace) -> None:
    """Run the listing pipeline and exit."""
    from src.cli.runner import cli_fetch

    exit_code = asyncio.run(
        cli_fetch(
            discogs_username=args.discogs_username,
            bandcamp_username=args.bandcamp_username,
            output_format=args.output_format,
        )
    )
    sys.exit(exit_code)


def _run_health_check() -> None:
    """Run upstream connectivity health check."""
    from src.cli.runner import run_health_check

    exit_code = asyncio.run(run_health_check())
    sys.exit(exit_code)


def main() -> None:
    """Route to the health check or the listing pipeline."""
    parser = _build_parser()
    args = parser.parse_args()

    log_file = setup_logging(verbose=args.verbose)
    logger.info("crate_scout starting, log file: %s", log_file)

    try:
        if args.health:
            _run_health_check()
        else:
            _run_fetch(args)
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        sys.exit(130)


if __name__ == "__main__":
    main()
