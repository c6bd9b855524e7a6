# src/streaks_overload/tasks/task_store.py

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any

from ..core.errors import PersistenceError
from .task_models import Registry, normalize_registry

logger = logging.getLogger(__name__)

Snapshot = dict[str, Any]
SnapshotWriter = Callable[[Path, Snapshot], None]


def load_registry(path: str | Path, *, today: str | None = None) -> Registry:
    """
    Load the registry from a JSON document.

    A missing file yields an empty registry. An unreadable or corrupted file is
    logged and also yields an empty registry; startup never fails on bad data.
    """
    path = Path(path)
    if not path.exists():
        logger.info("No data file at %s; starting empty", path)
        return normalize_registry(None, today=today)

    try:
        data = json.loads(path.read_text("utf-8"))
    except (OSError, ValueError):
        logger.exception("Failed to load state from %s; starting empty", path)
        return normalize_registry(None, today=today)

    registry = normalize_registry(data, today=today)
    logger.info("Loaded %d tasks from %s", len(registry.tasks), path)
    return registry


def write_snapshot(path: Path, snapshot: Snapshot) -> None:
    """
    Write a snapshot next to the target, then atomically replace the target.

    A reader sees either the previous document or the new one, never a partial write.
    """
    tmp = path.with_name(path.name + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp.write_text(json.dumps(snapshot, ensure_ascii=False, indent=2), "utf-8")
        os.replace(tmp, path)
    except (OSError, TypeError, ValueError) as e:
        with contextlib.suppress(OSError):
            tmp.unlink()
        raise PersistenceError(f"Failed to write {path}: {e}") from e


class PersistQueue:
    """
    Serialized snapshot writer.

    persist() captures registry.to_dict() immediately and appends a write job to
    a FIFO queue. A single consumer runs the jobs one at a time (file I/O in a
    worker thread), so writes never overlap and complete in request order.

    A failed write is logged and resolves its future with False; the jobs
    behind it still run.
    """

    def __init__(self, path: str | Path, *, writer: SnapshotWriter = write_snapshot) -> None:
        self._path = Path(path)
        self._writer = writer
        self._queue: asyncio.Queue[tuple[Snapshot, asyncio.Future[bool]]] = asyncio.Queue()
        self._worker: asyncio.Task[None] | None = None
        self.completed = 0
        self.failed = 0

    @property
    def path(self) -> Path:
        return self._path

    def start(self) -> None:
        """Start the consumer on the running loop. Idempotent."""
        if self._worker is not None and not self._worker.done():
            return
        self._worker = asyncio.get_running_loop().create_task(self._run(), name="persist-queue")

    def persist(self, registry: Registry) -> asyncio.Future[bool]:
        snapshot = registry.to_dict()
        fut: asyncio.Future[bool] = asyncio.get_running_loop().create_future()
        self._queue.put_nowait((snapshot, fut))
        logger.debug("Queued save (pending=%d)", self._queue.qsize())
        return fut

    async def flush(self) -> None:
        """Wait until every write queued so far has finished."""
        if self._worker is None:
            self.start()
        await self._queue.join()

    async def close(self) -> None:
        """Final flush, then stop the consumer."""
        await self.flush()
        if self._worker is not None:
            self._worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._worker
            self._worker = None

    async def _run(self) -> None:
        while True:
            snapshot, fut = await self._queue.get()
            try:
                await asyncio.to_thread(self._writer, self._path, snapshot)
            except Exception:
                self.failed += 1
                logger.exception("Save error path=%s", self._path)
                if not fut.done():
                    fut.set_result(False)
            else:
                self.completed += 1
                if not fut.done():
                    fut.set_result(True)
            finally:
                self._queue.task_done()
