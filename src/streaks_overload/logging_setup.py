# src/streaks_overload/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Logged once per queued save; only failures belong on the console.
_QUIET_ON_CONSOLE = ("streaks_overload.tasks.task_store",)


class _ConsoleFilter(logging.Filter):
    """Keeps the console next to the REPL prompt readable; the log file gets everything."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name.startswith(_QUIET_ON_CONSOLE):
            return record.levelno >= logging.WARNING
        if record.name.startswith("streaks_overload."):
            return True
        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/streaks",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> None:
    """Install a filtered stderr handler and `<log_dir>/streaks.log`. Call once at startup."""
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleFilter())
    root.addHandler(console)

    logfile = logging.FileHandler(str(log_dir / "streaks.log"), encoding="utf-8")
    logfile.setLevel(file_level)
    logfile.setFormatter(fmt)
    root.addHandler(logfile)

    logging.captureWarnings(True)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
