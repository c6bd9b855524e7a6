# src/streaks_overload/connectors/console_connector.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from collections.abc import Callable
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def _deliver(fut: asyncio.Future[str], line: str | None, exc: BaseException | None) -> None:
    if fut.done():
        return
    if exc is not None:
        fut.set_exception(exc)
    else:
        fut.set_result(line or "")


def _read_line(read_line: Callable[[str], str], prompt: str) -> asyncio.Future[str]:
    """
    Read one line on a daemon thread.

    Cancelling the returned future abandons the blocked read instead of waiting
    for it, so shutdown never hangs on a pending prompt.
    """
    loop = asyncio.get_running_loop()
    fut: asyncio.Future[str] = loop.create_future()

    def worker() -> None:
        line: str | None = None
        exc: BaseException | None = None
        try:
            line = read_line(prompt)
        except (EOFError, KeyboardInterrupt, OSError, ValueError) as e:
            exc = e
        # The loop may already be closed if the read outlived the app.
        with contextlib.suppress(RuntimeError):
            loop.call_soon_threadsafe(_deliver, fut, line, exc)

    threading.Thread(target=worker, name="console-input", daemon=True).start()
    return fut


async def run_console_loop(state: AppState, *, read_line: Callable[[str], str] = input) -> None:
    """
    Interactive REPL.

    Lines are read on a daemon thread; the command itself runs back on the event
    loop, the same thread as the rollover ticker and the persistence queue.
    """
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Type /help for commands, /tasks to list. Use /exit to quit.\n")

    while True:
        try:
            user_input = (await _read_line(read_line, ">>> ")).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except (KeyboardInterrupt, OSError, ValueError):
            logger.info("Console input closed, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        if not user_input.startswith("/"):
            user_input = "/" + user_input

        try:
            reply = command_registry.handle(state, user_input)
        except Exception:
            logger.exception("Command handler crashed.")
            reply = "Internal error while handling a command."

        if reply is not None:
            _print_ts(reply)

    logger.info("Console connector finished.")
