# src/streaks_overload/core/rollover.py

from __future__ import annotations

"""
Daily rollover and streak engine.

A task is either aligned to the current day (day_key == today) or stale
(day_key < today, one or more midnights not yet processed). advance_to_today()
walks a stale task forward one midnight at a time:

  1. end of day: a day that closes unsecured breaks the streak
  2. decay:      hopper loses DAILY_DECAY, floored at 0
  3. advance:    day_key += 1, secured_today cleared
  4. auto-secure: a hopper still at/above threshold secures the new day

Each step sees the previous day's result, so a large surplus can secure several
days in a single catch-up pass. Once caught up, further calls are no-ops.
"""

import logging
import math

from ..tasks.task_models import Registry, SecureReason, Task, round_hopper
from . import clock

logger = logging.getLogger(__name__)

DAILY_THRESHOLD = 1.0  # 1.0 == 100%
EPS = 1e-9

# Flat amount removed per closed day. The original description talks about a
# 10% multiplicative decay (DAILY_DECAY_MULTIPLIER) but the executed rule has
# always been this subtraction.
# TODO: confirm the intended decay with product before changing either value.
DAILY_DECAY = 1.0
DAILY_DECAY_MULTIPLIER = 0.9


def try_secure(task: Task, reason: SecureReason, *, now: int | None = None) -> bool:
    """Secure the task's current day if the hopper reached the threshold. Once per day."""
    if task.secured_today:
        return False
    if task.hopper >= DAILY_THRESHOLD - EPS:
        task.secured_today = True
        task.streak = (task.streak if isinstance(task.streak, int) else 0) + 1
        task.last_secured_at = clock.now_ms() if now is None else now
        task.last_secured_reason = reason
        return True
    return False


def advance_to_today(task: Task, today: str, *, now: int | None = None) -> bool:
    """
    Bring one task up to `today`. Returns True if anything changed.

    Backward clock jumps clamp day_key to today instead of iterating backwards.
    """
    changed = False

    if not clock.is_day_key(task.day_key):
        task.day_key = today
        task.secured_today = False
        changed = True

    if clock.diff_days(task.day_key, today) < 0:
        logger.info("Task %s day_key %s is ahead of %s; clamping", task.id, task.day_key, today)
        task.day_key = today
        task.secured_today = False
        changed = True

    elapsed = clock.diff_days(task.day_key, today)
    if elapsed <= 0:
        return changed

    for _ in range(elapsed):
        if not task.secured_today and task.streak != 0:
            task.streak = 0

        task.hopper = max(0.0, round_hopper(task.hopper - DAILY_DECAY))

        task.day_key = clock.add_days(task.day_key, 1)
        task.secured_today = False

        try_secure(task, SecureReason.ROLLOVER, now=now)

    return True


def advance_all_to_today(
    registry: Registry,
    *,
    today: str | None = None,
    now: int | None = None,
) -> bool:
    """Run advance_to_today over every task. Returns True if the registry changed."""
    today = today or clock.today()
    now = clock.now_ms() if now is None else now
    changed = False

    for task in registry.tasks:
        if not isinstance(task.hopper, (int, float)) or not math.isfinite(task.hopper) or task.hopper < 0:
            task.hopper = 0.0
            task.updated_at = now
            changed = True

        if advance_to_today(task, today, now=now):
            task.updated_at = now
            changed = True

    if changed:
        registry.updated_at = now
    return changed
