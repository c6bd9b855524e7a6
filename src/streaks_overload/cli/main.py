# src/streaks_overload/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then runs on one event loop:
- the persistence queue consumer,
- the background rollover ticker,
- the console REPL (optional; otherwise waits for a signal).
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..core.state import AppState
from ..logging_setup import setup_logging
from ..tasks.task_api import refresh
from ..tasks.task_scheduler import run_rollover_ticker

logger = logging.getLogger(__name__)


async def _shutdown(state: AppState, ticker: asyncio.Task[None]) -> None:
    """Best-effort shutdown: stop the ticker, then flush pending saves."""
    ticker.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await ticker

    close = getattr(state.persister, "close", None)
    if close is not None:
        try:
            await close()
        except Exception:
            logger.exception("Final save flush failed.")


async def run(state: AppState) -> None:
    settings = state.settings

    start = getattr(state.persister, "start", None)
    if start is not None:
        start()

    # Catch up on any days that passed while the process was down.
    refresh(state)

    ticker = asyncio.create_task(
        run_rollover_ticker(state, interval_seconds=settings.tick_seconds),
        name="rollover-ticker",
    )

    stop_main = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        # Some platforms do not support signal handlers on the loop.
        with contextlib.suppress(NotImplementedError, RuntimeError):
            loop.add_signal_handler(sig, stop_main.set)

    try:
        if settings.console_enabled:
            console = asyncio.create_task(run_console_loop(state))
            waiter = asyncio.create_task(stop_main.wait())
            await asyncio.wait({console, waiter}, return_when=asyncio.FIRST_COMPLETED)
            waiter.cancel()
            console.cancel()
        else:
            logger.info("Console disabled. Running rollover ticker only. Press Ctrl+C to stop.")
            await stop_main.wait()
    finally:
        await _shutdown(state, ticker)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    state = create_initial_state(settings=settings)

    try:
        asyncio.run(run(state))
    except KeyboardInterrupt:
        pass

    logger.info("Bye.")


if __name__ == "__main__":
    main()
