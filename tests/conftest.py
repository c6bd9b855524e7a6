# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from streaks_overload.core.state import AppState
from streaks_overload.tasks.task_models import normalize_registry
from streaks_overload.tasks.uploads import UploadStore

from .fakes import FakePersister


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the task API.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="streaks-test",
        log_level="DEBUG",
        console_enabled=False,
        data_dir=tmp_path,
        data_path=tmp_path / "data.json",
        upload_dir=tmp_path / "uploads",
        tick_seconds=30.0,
        max_add_amount=1_000_000.0,
    )


@pytest.fixture()
def persister() -> FakePersister:
    return FakePersister()


@pytest.fixture()
def state(settings: SimpleNamespace, persister: FakePersister) -> AppState:
    """
    AppState with an empty registry and an in-memory persister.

    The upload store is real (under tmp_path) because path handling is part of
    what we want to test.
    """
    return AppState(
        settings=settings,
        registry=normalize_registry(None),
        persister=persister,
        uploads=UploadStore(settings.upload_dir),
    )


@pytest.fixture()
def image_file(tmp_path: Path) -> Path:
    path = tmp_path / "src" / "picture.png"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"\x89PNG\r\n\x1a\nfake")
    return path
