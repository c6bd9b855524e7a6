# src/streaks_overload/tasks/task_api.py

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any

from ..core import clock
from ..core.errors import AmountTooLarge, TaskNotFound, ValidationError
from ..core.rollover import (
    DAILY_DECAY,
    DAILY_DECAY_MULTIPLIER,
    DAILY_THRESHOLD,
    advance_all_to_today,
    try_secure,
)
from ..core.state import AppState
from .task_models import SecureReason, Task, new_task, round_hopper

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 200
DEFAULT_MAX_ADD_AMOUNT = 1_000_000.0


@dataclass(slots=True, frozen=True)
class AddResult:
    task: Task
    secured: bool


def _touch(state: AppState, now: int) -> None:
    state.registry.updated_at = now
    state.persister.persist(state.registry)


def refresh(state: AppState, *, today: str | None = None) -> bool:
    """
    Bring every task up to today and queue a save if anything moved.

    Every entry point below calls this first, so callers never see stale days.
    """
    today = today or clock.today()
    changed = advance_all_to_today(state.registry, today=today)
    if changed:
        logger.info("Rolled tasks forward to %s", today)
        state.persister.persist(state.registry)
    return changed


def create_task(state: AppState, name: Any, thumbnail_ref: str | None = None) -> Task:
    refresh(state)

    clean = str(name or "").strip()
    if not clean:
        raise ValidationError("Missing field: name")
    if len(clean) > MAX_NAME_LENGTH:
        raise ValidationError(f"name too long (max {MAX_NAME_LENGTH} characters)")

    thumbnail_url = None
    if thumbnail_ref:
        thumbnail_url = state.uploads.resolve(thumbnail_ref)
        if thumbnail_url is None:
            raise ValidationError("Thumbnail must be a stored upload")

    now = clock.now_ms()
    task = new_task(clean, thumbnail_url, now=now)
    state.registry.tasks.append(task)
    _touch(state, now)
    logger.info("Task created id=%s name=%r", task.id, task.name)
    return task


def add_to_hopper(state: AppState, task_id: str, amount: Any) -> AddResult:
    """
    Add `amount` to a task's hopper, then try to secure today.

    Zero and negative amounts are accepted; the hopper is floored at 0.
    """
    refresh(state)

    try:
        value = float(amount)
    except (TypeError, ValueError):
        raise ValidationError("amount must be a number (e.g. 0.1, 1.0, 5.7)") from None
    if not math.isfinite(value):
        raise ValidationError("amount must be a finite number")

    limit = float(getattr(state.settings, "max_add_amount", DEFAULT_MAX_ADD_AMOUNT))
    if value > limit:
        raise AmountTooLarge(value, limit)

    task = state.registry.find(task_id)
    if task is None:
        raise TaskNotFound(task_id)

    now = clock.now_ms()
    task.hopper = max(0.0, round_hopper(task.hopper + value))
    task.updated_at = now

    secured = try_secure(task, SecureReason.ADD, now=now)
    if secured:
        logger.info("Task %s secured for %s (streak=%d)", task.id, task.day_key, task.streak)

    _touch(state, now)
    return AddResult(task=task, secured=secured)


def delete_task(state: AppState, task_id: str) -> Task:
    refresh(state)

    idx = state.registry.index_of(task_id)
    if idx < 0:
        raise TaskNotFound(task_id)

    task = state.registry.tasks.pop(idx)
    state.uploads.remove(task.thumbnail_url)

    _touch(state, clock.now_ms())
    logger.info("Task deleted id=%s", task.id)
    return task


def set_background(state: AppState, ref: str) -> str:
    refresh(state)

    url = state.uploads.resolve(ref)
    if url is None:
        raise ValidationError("Background must be a stored upload")

    previous = state.registry.background_url
    if previous and previous != url:
        state.uploads.remove(previous)

    state.registry.background_url = url
    _touch(state, clock.now_ms())
    return url


def clear_background(state: AppState) -> None:
    refresh(state)

    state.uploads.remove(state.registry.background_url)
    state.registry.background_url = None
    _touch(state, clock.now_ms())


def state_view(state: AppState) -> dict[str, Any]:
    """Snapshot for display: current day, engine constants, background, tasks."""
    refresh(state)
    return {
        "now": clock.now_ms(),
        "today": clock.today(),
        "config": {
            "dailyThreshold": DAILY_THRESHOLD,
            "dailyDecay": DAILY_DECAY,
            "dailyDecayMultiplier": DAILY_DECAY_MULTIPLIER,
        },
        "backgroundUrl": state.registry.background_url,
        "tasks": [t.to_dict() for t in state.registry.tasks],
    }
