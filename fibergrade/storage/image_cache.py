# fibergrade/storage/image_cache.py
from __future__ import annotations

import base64
import logging
import re
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

CACHE_SUFFIX = ".dataurl"
_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")


def to_data_url(data: bytes, mime: str = "image/jpeg") -> str:
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def is_data_url(value: str) -> bool:
    return isinstance(value, str) and value.startswith("data:")


class ImageCache:
    """
    Local cache of grade images, one file per key ("abaca-S2", "pina-Lino", ...).

    Values are data URLs stored verbatim. The cache is best effort: I/O errors
    are logged and reads fall back to None so callers proceed without it.
    """

    def __init__(self, cache_dir: Path | str) -> None:
        self.cache_dir = Path(cache_dir)

    @staticmethod
    def key_for(fiber_type: str, grade: str) -> str:
        return f"{fiber_type}-{grade}"

    def _path(self, key: str) -> Path:
        safe = _UNSAFE.sub("_", key).strip("._") or "_"
        return self.cache_dir / f"{safe}{CACHE_SUFFIX}"

    def store(self, key: str, data_url: str) -> None:
        try:
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            self._path(key).write_text(data_url, encoding="utf-8")
        except OSError as e:
            logger.error("Failed to store image %s in cache: %s", key, e)

    def get(self, key: str) -> Optional[str]:
        p = self._path(key)
        if not p.is_file():
            return None
        try:
            return p.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning("Failed to read image %s from cache, proceeding without it: %s", key, e)
            return None

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            logger.error("Failed to delete image %s from cache: %s", key, e)
