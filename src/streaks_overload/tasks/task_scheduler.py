# src/streaks_overload/tasks/task_scheduler.py

from __future__ import annotations

"""
Background rollover ticker.

A small polling loop that re-runs the rollover pass every interval, so a day
boundary is processed shortly after midnight even when nobody is interacting.
The pass is idempotent: ticks within the same day change nothing and save nothing.

Everything runs on the event loop thread, so the ticker and command handlers
never run a rollover pass at the same time.
"""

import asyncio
import logging
from collections.abc import Callable

from ..core import clock
from ..core.state import AppState
from .task_api import refresh

logger = logging.getLogger(__name__)


async def run_rollover_ticker(
        state: AppState,
        *,
        interval_seconds: float = 30.0,
        today_fn: Callable[[], str] = clock.today,
) -> None:
    """
    Every interval_seconds:
    - compute today's day key
    - advance all tasks (no-op when already aligned)
    - queue a save when something changed

    To stop the ticker, cancel the coroutine/task.
    """
    sleep_s = max(0.01, float(interval_seconds))
    last_day = today_fn()

    while True:
        day = today_fn()
        try:
            if refresh(state, today=day) and day != last_day:
                logger.info("Day rollover %s -> %s processed", last_day, day)
        except Exception:
            logger.exception("Rollover tick failed day=%s", day)
        last_day = day

        await asyncio.sleep(sleep_s)
