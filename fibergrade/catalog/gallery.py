# fibergrade/catalog/gallery.py
from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Dict, List, Optional

from .grades import FIBER_TYPES, GradeItem, list_grades
from ..storage import ImageCache, KeyValueStore, is_data_url, to_data_url

logger = logging.getLogger(__name__)

FIBERS_ROOT = "fibers"


class GradeGallery:
    """
    Per-grade reference images kept in sync with a remote store.

    State starts from the catalog defaults, is overlaid with the local cache by
    load_cached(), and then follows the remote `fibers/<fiber>` snapshots once
    start() subscribes. update_grade_image() is optimistic: cache and local state
    change first, the remote write follows and may fail without rolling back.
    """

    def __init__(self, store: KeyValueStore, cache: ImageCache) -> None:
        self.store = store
        self.cache = cache
        self._items: Dict[str, List[GradeItem]] = {f: list_grades(f) for f in FIBER_TYPES}
        self._loaded = {f: False for f in FIBER_TYPES}
        self._unsubscribe: List[Callable[[], None]] = []

    @property
    def is_loading(self) -> bool:
        return not all(self._loaded.values())

    def grades(self, fiber_type: str) -> List[GradeItem]:
        self._check_fiber(fiber_type)
        return list(self._items[fiber_type])

    def image_url(self, fiber_type: str, grade: str) -> Optional[str]:
        for item in self.grades(fiber_type):
            if item.grade == grade:
                return item.image_url
        return None

    def load_cached(self) -> None:
        for fiber in FIBER_TYPES:
            updated = []
            for item in self._items[fiber]:
                cached = self.cache.get(ImageCache.key_for(fiber, item.grade))
                updated.append(replace(item, image_url=cached) if cached else item)
            self._items[fiber] = updated

    def start(self) -> None:
        if self._unsubscribe:
            return
        for fiber in FIBER_TYPES:
            path = f"{FIBERS_ROOT}/{fiber}"
            self._unsubscribe.append(
                self.store.subscribe(path, lambda snap, fiber=fiber: self._on_snapshot(fiber, snap))
            )

    def stop(self) -> None:
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._unsubscribe.clear()

    def _on_snapshot(self, fiber_type: str, snapshot) -> None:
        remote = snapshot if isinstance(snapshot, dict) else {}
        updated = []
        for default in list_grades(fiber_type):
            entry = remote.get(default.grade)
            url = entry.get("imageUrl") if isinstance(entry, dict) else None
            if url:
                if is_data_url(url):
                    self.cache.store(ImageCache.key_for(fiber_type, default.grade), url)
                updated.append(replace(default, image_url=url))
            else:
                updated.append(default)
        self._items[fiber_type] = updated
        if not self._loaded[fiber_type]:
            self._loaded[fiber_type] = True
            logger.info("Initial %s grades loaded from store", fiber_type)

    def update_grade_image(self, fiber_type: str, grade: str, image: bytes, mime: str = "image/jpeg") -> str:
        self._check_fiber(fiber_type)
        url = to_data_url(image, mime)

        self.cache.store(ImageCache.key_for(fiber_type, grade), url)
        logger.info("Image for %s %s cached locally.", fiber_type, grade)

        self._items[fiber_type] = [
            replace(item, image_url=url) if item.grade == grade else item
            for item in self._items[fiber_type]
        ]

        try:
            self.store.set(f"{FIBERS_ROOT}/{fiber_type}/{grade}/imageUrl", url)
            logger.info("Image for %s %s updated in store.", fiber_type, grade)
        except Exception as e:
            # the subscription resynchronizes state on the next snapshot
            logger.error("Error uploading image for %s %s: %s", fiber_type, grade, e)
        return url

    @staticmethod
    def _check_fiber(fiber_type: str) -> None:
        if fiber_type not in FIBER_TYPES:
            raise ValueError(f"Unknown fiber type: {fiber_type!r} (expected one of {FIBER_TYPES})")
