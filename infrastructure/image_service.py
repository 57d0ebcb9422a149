"""Preview rendering and in-memory caching.

`BoundedImageCache` keeps rendered thumbnails keyed by asset identifier under
a fixed capacity. `ImageService` renders through the catalog collaborator,
caching grid thumbnails and leaving large fullscreen renders uncached.
Pillow images are converted to `QImage` with `pil_to_qimage`.
"""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Callable
import threading
from typing import Any

from PySide6.QtGui import QImage
from loguru import logger

from core.constants import IMAGE_CACHE_CAPACITY, THUMBNAIL_SIZE
from core.models import ContentMode
from core.services.interfaces import CatalogService


def is_empty_image(image: Any | None) -> bool:
    """True for None and for null `QImage`s."""
    if image is None:
        return True
    is_null = getattr(image, "isNull", None)
    return bool(is_null()) if callable(is_null) else False


def pil_to_qimage(pil_img: Any) -> QImage | None:
    """Convert a Pillow image to `QImage` and detach from the source buffer."""
    try:
        mode = pil_img.mode
        if mode not in ("RGBA", "RGB"):
            pil_img = pil_img.convert("RGBA")
            mode = pil_img.mode
        if mode == "RGB":
            data = pil_img.tobytes("raw", "RGB")
            qimg = QImage(data, pil_img.width, pil_img.height, pil_img.width * 3, QImage.Format_RGB888)
        else:
            data = pil_img.tobytes("raw", "RGBA")
            qimg = QImage(
                data, pil_img.width, pil_img.height, pil_img.width * 4, QImage.Format_RGBA8888
            )
        if qimg.isNull():
            return None
        return qimg.copy()
    except (ValueError, TypeError) as ex:
        logger.debug("PIL->QImage convert failed: {}", ex)
        return None


class BoundedImageCache:
    """Capacity-limited identifier -> image cache.

    Least recently used entries are evicted once the capacity is exceeded.
    Renders run outside the lock, so two threads may render the same
    identifier; the later result simply replaces the earlier one.

    `invalidate_all` bumps the cache epoch. A render that started under an
    older epoch is returned to its caller but never stored.
    """

    def __init__(self, capacity: int = IMAGE_CACHE_CAPACITY) -> None:
        self._cap = max(1, int(capacity or 1))
        self._data: OrderedDict[str, Any] = OrderedDict()
        self._lock = threading.Lock()
        self._epoch = 0

    @property
    def capacity(self) -> int:
        return self._cap

    @property
    def epoch(self) -> int:
        with self._lock:
            return self._epoch

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def __contains__(self, identifier: object) -> bool:
        with self._lock:
            return identifier in self._data

    def get(self, identifier: str) -> Any | None:
        """Return the cached image, moving it to the MRU position."""
        with self._lock:
            image = self._data.get(identifier)
            if image is None:
                return None
            self._data.move_to_end(identifier)
            return image

    def put(self, identifier: str, image: Any, epoch: int | None = None) -> None:
        """Insert or update `identifier`, evicting LRU entries over capacity.

        When `epoch` is given and the cache has been invalidated since, the
        image is dropped.
        """
        if is_empty_image(image):
            return
        with self._lock:
            if epoch is not None and epoch != self._epoch:
                return
            self._data[identifier] = image
            self._data.move_to_end(identifier)
            while len(self._data) > self._cap:
                self._data.popitem(last=False)

    def get_or_fetch(
        self, identifier: str, render: Callable[[], Any | None], epoch: int | None = None
    ) -> Any | None:
        """Return the cached image or render, caching only non-empty results.

        `epoch` defaults to the current one; pass the epoch observed when the
        render was requested to keep a pre-invalidation result out.
        """
        if epoch is None:
            epoch = self.epoch
        image = self.get(identifier)
        if image is not None:
            return image
        image = render()
        if is_empty_image(image):
            return None
        self.put(identifier, image, epoch)
        return image

    def invalidate_all(self) -> None:
        with self._lock:
            self._data.clear()
            self._epoch += 1


class ImageService:
    """Thumbnail and fullscreen rendering backed by the catalog."""

    def __init__(self, catalog: CatalogService, settings: object | None = None) -> None:
        """Initialize the cache and the thumbnail size from settings."""
        self._catalog = catalog
        mem_cap = IMAGE_CACHE_CAPACITY
        self._thumb_size = THUMBNAIL_SIZE
        if settings is not None:
            try:
                mem_cap = int(settings.get("thumbnail_mem_cache", mem_cap) or mem_cap)
            except (ValueError, TypeError):
                mem_cap = IMAGE_CACHE_CAPACITY
            try:
                side = int(settings.get("thumbnail_size", THUMBNAIL_SIZE[0]) or THUMBNAIL_SIZE[0])
                self._thumb_size = (side, side)
            except (ValueError, TypeError):
                self._thumb_size = THUMBNAIL_SIZE
        self._cache = BoundedImageCache(mem_cap)

    @property
    def cache(self) -> BoundedImageCache:
        return self._cache

    @property
    def thumbnail_size(self) -> tuple[int, int]:
        return self._thumb_size

    @property
    def epoch(self) -> int:
        return self._cache.epoch

    def cached_thumbnail(self, identifier: str) -> Any | None:
        return self._cache.get(identifier)

    def get_thumbnail(self, identifier: str, epoch: int | None = None) -> Any | None:
        """Return a cached or freshly rendered aspect-fill thumbnail."""
        return self._cache.get_or_fetch(
            identifier,
            lambda: self._catalog.request_image(
                identifier, self._thumb_size, ContentMode.ASPECT_FILL
            ),
            epoch,
        )

    def get_preview(self, identifier: str, target_size: tuple[int, int]) -> Any | None:
        """Render an aspect-fit preview bounded by `target_size` (not cached)."""
        image = self._catalog.request_image(identifier, target_size, ContentMode.ASPECT_FIT)
        return None if is_empty_image(image) else image

    def invalidate_all(self) -> None:
        self._cache.invalidate_all()
        logger.info("Thumbnail cache cleared")
