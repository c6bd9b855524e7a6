# src/streaks_overload/tasks/task_models.py

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from ..core import clock

UPLOADS_PREFIX = "/uploads/"
DEFAULT_TASK_NAME = "Untitled task"
HOPPER_DIGITS = 6
REGISTRY_VERSION = 1


class SecureReason(StrEnum):
    """Why a day was secured: a user contribution or a surplus carried over midnight."""

    ADD = "add"
    ROLLOVER = "rollover"

    @classmethod
    def from_raw(cls, raw: Any) -> SecureReason | None:
        if not isinstance(raw, str):
            return None
        try:
            return cls(raw)
        except ValueError:
            return None


@dataclass(slots=True)
class Task:
    id: str
    name: str
    thumbnail_url: str | None

    # 1.0 == 100% of the daily goal
    hopper: float
    streak: int
    day_key: str
    secured_today: bool

    created_at: int
    updated_at: int
    last_secured_at: int | None = None
    last_secured_reason: SecureReason | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "thumbnailUrl": self.thumbnail_url,
            "hopper": self.hopper,
            "streak": self.streak,
            "dayKey": self.day_key,
            "securedToday": self.secured_today,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "lastSecuredAt": self.last_secured_at,
            "lastSecuredReason": (
                str(self.last_secured_reason) if self.last_secured_reason is not None else None
            ),
        }


@dataclass(slots=True)
class Registry:
    """All tasks plus the page background. Exactly one live copy per process."""

    created_at: int
    updated_at: int
    background_url: str | None = None
    tasks: list[Task] = field(default_factory=list)
    version: int = REGISTRY_VERSION

    def find(self, task_id: str) -> Task | None:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def index_of(self, task_id: str) -> int:
        for i, task in enumerate(self.tasks):
            if task.id == task_id:
                return i
        return -1

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "backgroundUrl": self.background_url,
            "tasks": [t.to_dict() for t in self.tasks],
        }


# ---- coercion helpers ----


def round_hopper(value: float) -> float:
    if not isinstance(value, (int, float)) or not math.isfinite(value):
        return 0.0
    return round(float(value), HOPPER_DIGITS)


def _finite_number(raw: Any) -> float | None:
    # bool is an int subclass; a stored true/false is never a quantity.
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        val = float(raw)
    elif isinstance(raw, str):
        try:
            val = float(raw.strip())
        except ValueError:
            return None
    else:
        return None
    return val if math.isfinite(val) else None


def _timestamp(raw: Any) -> int | None:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return None
    if not math.isfinite(raw):
        return None
    return int(raw)


def is_managed_url(raw: Any) -> bool:
    return isinstance(raw, str) and raw.startswith(UPLOADS_PREFIX)


def new_task_id() -> str:
    return str(uuid.uuid4())


# ---- normalizer ----


def normalize_task(raw: Any, *, now: int | None = None, today: str | None = None) -> Task:
    """
    Coerce an arbitrary stored record into a valid Task.

    Every field is checked on its own and replaced by a safe default when it is
    missing or has the wrong type. Never raises.
    """
    now = clock.now_ms() if now is None else now
    t: dict[str, Any] = raw if isinstance(raw, dict) else {}

    task_id = t.get("id")
    name = t.get("name")
    name = name.strip() if isinstance(name, str) else ""

    hopper = _finite_number(t.get("hopper"))
    streak = t.get("streak")
    day_key = t.get("dayKey")
    secured = t.get("securedToday")
    created_at = _timestamp(t.get("createdAt"))
    updated_at = _timestamp(t.get("updatedAt"))

    return Task(
        id=task_id if isinstance(task_id, str) and task_id else new_task_id(),
        name=name or DEFAULT_TASK_NAME,
        thumbnail_url=t.get("thumbnailUrl") if is_managed_url(t.get("thumbnailUrl")) else None,
        hopper=round_hopper(max(0.0, hopper or 0.0)),
        streak=streak if isinstance(streak, int) and not isinstance(streak, bool) and streak >= 0 else 0,
        day_key=day_key if clock.is_day_key(day_key) else (today or clock.today()),
        secured_today=secured if isinstance(secured, bool) else False,
        created_at=created_at if created_at is not None else now,
        updated_at=updated_at if updated_at is not None else now,
        last_secured_at=_timestamp(t.get("lastSecuredAt")),
        last_secured_reason=SecureReason.from_raw(t.get("lastSecuredReason")),
    )


def normalize_registry(raw: Any, *, now: int | None = None, today: str | None = None) -> Registry:
    """Coerce a stored document into a Registry. Task ids come out unique."""
    now = clock.now_ms() if now is None else now
    s: dict[str, Any] = raw if isinstance(raw, dict) else {}

    tasks: list[Task] = []
    seen: set[str] = set()
    raw_tasks = s.get("tasks")
    for item in raw_tasks if isinstance(raw_tasks, list) else []:
        task = normalize_task(item, now=now, today=today)
        while task.id in seen:
            task.id = new_task_id()
        seen.add(task.id)
        tasks.append(task)

    created_at = _timestamp(s.get("createdAt"))
    updated_at = _timestamp(s.get("updatedAt"))
    bg = s.get("backgroundUrl")

    return Registry(
        created_at=created_at if created_at is not None else now,
        updated_at=updated_at if updated_at is not None else now,
        background_url=bg if is_managed_url(bg) else None,
        tasks=tasks,
    )


def new_task(
    name: str,
    thumbnail_url: str | None = None,
    *,
    now: int | None = None,
    today: str | None = None,
) -> Task:
    now = clock.now_ms() if now is None else now
    return Task(
        id=new_task_id(),
        name=name,
        thumbnail_url=thumbnail_url,
        hopper=0.0,
        streak=0,
        day_key=today or clock.today(),
        secured_today=False,
        created_at=now,
        updated_at=now,
    )
