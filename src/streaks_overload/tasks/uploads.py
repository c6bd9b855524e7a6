# src/streaks_overload/tasks/uploads.py

from __future__ import annotations

import logging
import mimetypes
import shutil
import uuid
from pathlib import Path

from ..core import clock
from ..core.errors import ValidationError
from .task_models import UPLOADS_PREFIX

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_EXTS = {".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg"}


def _ext_from_mime(mime: str | None) -> str:
    m = (mime or "").lower()
    if "png" in m:
        return ".png"
    if "jpeg" in m or "jpg" in m:
        return ".jpg"
    if "gif" in m:
        return ".gif"
    if "webp" in m:
        return ".webp"
    if "svg" in m:
        return ".svg"
    return ""


class UploadStore:
    """
    Managed upload namespace.

    Files live flat under `root` and are referenced as "/uploads/<basename>".
    Only the basename of a reference is ever joined to `root`, so a reference
    can never escape the directory.
    """

    def __init__(self, root: str | Path, url_prefix: str = UPLOADS_PREFIX) -> None:
        self._root = Path(root)
        self._root.mkdir(parents=True, exist_ok=True)
        self._prefix = url_prefix

    @property
    def root(self) -> Path:
        return self._root

    def path_for_url(self, url: str | None) -> Path | None:
        if not isinstance(url, str) or not url.startswith(self._prefix):
            return None
        base = Path(url[len(self._prefix):]).name
        if not base or base in (".", ".."):
            return None
        full = (self._root / base).resolve()
        if full.parent != self._root.resolve():
            return None
        return full

    def resolve(self, ref: str | None) -> str | None:
        path = self.path_for_url(ref)
        if path is None or not path.is_file():
            return None
        return f"{self._prefix}{path.name}"

    def import_image(self, src: str | Path, *, prefix: str) -> str:
        """Copy a local image into the namespace and return its reference."""
        src = Path(src).expanduser()
        if not src.is_file():
            raise ValidationError(f"File not found: {src}")

        mime, _ = mimetypes.guess_type(src.name)
        if not (mime or "").startswith("image/"):
            raise ValidationError("File must be an image")

        ext = src.suffix.lower()
        if ext not in ALLOWED_IMAGE_EXTS:
            ext = _ext_from_mime(mime) or ".bin"

        filename = f"{prefix}-{clock.now_ms()}-{uuid.uuid4().hex}{ext}"
        shutil.copyfile(src, self._root / filename)
        logger.info("Stored upload %s from %s", filename, src)
        return f"{self._prefix}{filename}"

    def remove(self, ref: str | None) -> None:
        path = self.path_for_url(ref)
        if path is None:
            return
        try:
            path.unlink()
            logger.debug("Removed upload %s", path.name)
        except OSError:
            logger.debug("Could not remove upload %s", path, exc_info=True)
