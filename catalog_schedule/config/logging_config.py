# catalog_schedule/config/logging_config.py

"""Per-command logging for the catalog_schedule CLI.

Every invocation writes its own file named after the launch time and the
subcommand, e.g. ``logs/run_20260214_153045_generate.log``, so the
allocation retries or degraded row images of one ``create-product`` or
``generate`` call can be read in isolation. The file always records
DEBUG; ``-v``/``-q`` only move the stderr threshold. Older run files
beyond ``Settings.LOG_KEEP_RUNS`` are pruned at startup.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from catalog_schedule.config.settings import Settings

ROOT_LOGGER = "catalog_schedule"

_DETAILED_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | %(module)s:%(funcName)s:%(lineno)d | "
    "%(message)s"
)

_CONSOLE_FORMAT = "%(levelname)s: %(message)s"

_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# -q, default, -v, -vv
_CONSOLE_LEVELS = {
    -1: logging.ERROR,
    0: logging.WARNING,
    1: logging.INFO,
    2: logging.DEBUG,
}

# Marks handlers installed here so a second call replaces only those
_OWNED = "_catalog_schedule_handler"


def console_level(verbosity: int) -> int:
    """Map the CLI verbosity count to a stderr log level."""
    return _CONSOLE_LEVELS[max(-1, min(verbosity, 2))]


def prune_run_logs(logs_dir: Path, keep: int) -> list[Path]:
    """Delete all but the newest *keep* run logs; return what was removed."""
    runs = sorted(logs_dir.glob("run_*.log"), key=lambda p: p.name)
    stale = runs[:-keep] if keep > 0 else runs
    for path in stale:
        path.unlink(missing_ok=True)
    return stale


def setup_logging(
    verbosity: int = 0,
    logs_dir: Path | None = None,
    command: str | None = None,
) -> Path:
    """Initialise the ``catalog_schedule`` logger for one CLI invocation.

    Args:
        verbosity: ``-1`` for ``--quiet``, otherwise the ``-v`` count.
        logs_dir: Directory for run logs (default ``Settings.LOGS_DIR``).
        command: Subcommand name appended to the file name.

    Returns:
        The path of the log file created for this run.
    """
    target_dir = logs_dir or Settings.LOGS_DIR
    target_dir.mkdir(parents=True, exist_ok=True)
    removed = prune_run_logs(target_dir, Settings.LOG_KEEP_RUNS - 1)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    suffix = f"_{command}" if command else ""
    log_file = target_dir / f"run_{timestamp}{suffix}.log"

    root_logger = logging.getLogger(ROOT_LOGGER)
    root_logger.setLevel(logging.DEBUG)
    for handler in list(root_logger.handlers):
        if getattr(handler, _OWNED, False):
            root_logger.removeHandler(handler)
            handler.close()

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(_DETAILED_FORMAT, datefmt=_DATE_FORMAT)
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level(verbosity))
    console_handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT))

    for handler in (file_handler, console_handler):
        setattr(handler, _OWNED, True)
        root_logger.addHandler(handler)

    root_logger.info(
        "Logging initialised for %s, log file: %s",
        command or "catalog_schedule",
        log_file,
    )
    if removed:
        root_logger.debug("Pruned %d old run logs", len(removed))
    return log_file
