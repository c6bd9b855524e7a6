# src/streaks_overload/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..tasks.task_models import Registry
from .ports import RegistryPersister, UploadResolver


@dataclass
class AppState:
    # Settings object (config.Settings or a test stand-in).
    settings: Any

    # The one live registry; every operation receives it through this object.
    registry: Registry
    persister: RegistryPersister
    uploads: UploadResolver
