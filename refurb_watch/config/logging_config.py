# refurb_watch/config/logging_config.py

"""Per-run log files plus a Rich console handler.

Each run writes its own ``logs/run_<YYYYMMDD_HHMMSS>.log`` and every
``refurb_watch.*`` logger propagates into it. Only the newest
``Settings.LOG_RETENTION`` run logs are kept.
"""

import logging
from datetime import datetime
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from refurb_watch.config.settings import Settings

_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
)
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _prune_old_logs(logs_dir: Path, keep: int) -> None:
    runs = sorted(logs_dir.glob("run_*.log"))
    for stale in runs[:-keep] if keep > 0 else []:
        stale.unlink(missing_ok=True)


def setup_logging(
    logs_dir: Path | None = None,
    verbose: bool = False,
) -> Path:
    """Attach the run's file and console handlers to ``refurb_watch``.

    The file handler records DEBUG and up. The console shows WARNING
    and up, or INFO with *verbose*. Calling this again while handlers
    are attached only adjusts the console level.

    Returns:
        Path of this run's log file.
    """
    root_logger = logging.getLogger("refurb_watch")
    root_logger.setLevel(logging.DEBUG)
    console_level = logging.INFO if verbose else logging.WARNING

    existing = [
        h for h in root_logger.handlers if isinstance(h, logging.FileHandler)
    ]
    if existing:
        for handler in root_logger.handlers:
            if isinstance(handler, RichHandler):
                handler.setLevel(console_level)
        return Path(existing[0].baseFilename)

    target_dir = logs_dir or Settings.LOGS_DIR
    target_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = target_dir / f"run_{stamp}.log"

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(_FILE_FORMAT, datefmt=_DATE_FORMAT)
    )

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    console_handler.setLevel(console_level)

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    _prune_old_logs(target_dir, Settings.LOG_RETENTION)
    root_logger.debug("Run log: %s", log_file)
    return log_file
