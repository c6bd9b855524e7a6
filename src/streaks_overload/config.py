# src/streaks_overload/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- Everything has a default; the app runs with no configuration at all.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "STREAKS"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


# Local .env never overrides variables already set in the environment.
load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Connector flags ----
    console_enabled: bool

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    data_path: Path
    upload_dir: Path

    # ---- Engine tuning ----
    tick_seconds: float
    max_add_amount: float

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "Streaks: Overload")
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/streaks"))
        data_path = _env_path(_k("DATA_PATH"), data_dir / "data.json")
        upload_dir = _env_path(_k("UPLOAD_DIR"), data_dir / "uploads")

        tick_seconds = max(1.0, _env_float(_k("TICK_SECONDS"), 30.0))
        max_add_amount = _env_float(_k("MAX_ADD_AMOUNT"), 1_000_000.0)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            data_dir=data_dir,
            data_path=data_path,
            upload_dir=upload_dir,
            tick_seconds=tick_seconds,
            max_add_amount=max_add_amount,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
