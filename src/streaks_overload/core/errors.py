# src/streaks_overload/core/errors.py

from __future__ import annotations


class StreaksError(Exception):
    """Base class for errors the transport layer is expected to render."""


class ValidationError(StreaksError):
    """Bad input; raised before any mutation so the registry stays untouched."""


class AmountTooLarge(ValidationError):
    def __init__(self, amount: float, limit: float) -> None:
        super().__init__(f"amount too large ({amount:g} > {limit:g})")
        self.amount = amount
        self.limit = limit


class NotFoundError(StreaksError):
    pass


class TaskNotFound(NotFoundError):
    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class PersistenceError(StreaksError):
    """A snapshot could not be written. Logged by the queue, never surfaced to callers."""
