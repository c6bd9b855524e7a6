# src/streaks_overload/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- loads the registry from disk and wires the persistence queue and upload store into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.state import AppState
from ..tasks.task_store import PersistQueue, load_registry
from ..tasks.uploads import UploadStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.data_path.parent.mkdir(parents=True, exist_ok=True)
    settings.upload_dir.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().

    The persistence queue is created here but only started once an event loop runs.
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    state = AppState(
        settings=settings,
        registry=load_registry(settings.data_path),
        persister=PersistQueue(settings.data_path),
        uploads=UploadStore(settings.upload_dir),
    )
    logger.info(
        "State ready data=%s uploads=%s tasks=%d",
        settings.data_path,
        settings.upload_dir,
        len(state.registry.tasks),
    )
    return state
