# src/config/logging_config.py

"""Logging for one crate_scout invocation.

A run can sit through several 61 second rate-limit cooldowns, so the file
log is the place to find out what happened: every retry, every wave's
budget and every dropped listing is recorded at DEBUG in
``logs/run_<timestamp>.log``.  The terminal only shows warnings unless
``--verbose`` is given, because the rich progress bar owns stderr.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from src.config.settings import Settings

ROOT_LOGGER = "crate_scout"

_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)-28s | "
    "%(funcName)s:%(lineno)d | %(message)s"
)
_CONSOLE_FORMAT = "%(levelname)-8s %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _run_log_path(logs_dir: Path) -> Path:
    """File name for this launch, e.g. ``run_20261019_153045.log``."""
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return logs_dir / f"run_{stamp}.log"


def setup_logging(
    verbose: bool = False,
    logs_dir: Path | None = None,
) -> Path:
    """Attach the run file and console handlers to ``crate_scout``.

    Args:
        verbose: Echo INFO lines (wave plans, source summaries) to stderr.
        logs_dir: Directory for the run file; ``Settings.LOGS_DIR`` by
            default.

    Returns:
        Path of the run log.  When handlers are already attached the
        existing file handler's path is returned and nothing changes.
    """
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(logging.DEBUG)

    for handler in root.handlers:
        if isinstance(handler, logging.FileHandler):
            return Path(handler.baseFilename)

    target_dir = logs_dir or Settings.LOGS_DIR
    target_dir.mkdir(parents=True, exist_ok=True)
    log_file = _run_log_path(target_dir)

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(_FILE_FORMAT, datefmt=_DATE_FORMAT)
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.INFO if verbose else logging.WARNING)
    console_handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT))

    root.addHandler(file_handler)
    root.addHandler(console_handler)

    root.debug("Run log opened at %s", log_file)
    return log_file
