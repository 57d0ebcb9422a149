from __future__ import annotations

import pytest

pytest.importorskip("PySide6.QtGui", reason="PySide6 is required", exc_type=ImportError)

from PIL import Image

from conftest import FakeCatalog

from core.models import ContentMode
from infrastructure.image_service import (
    BoundedImageCache,
    ImageService,
    is_empty_image,
    pil_to_qimage,
)


class _Settings:
    def __init__(self, data):
        self._data = data

    def get(self, key, default=None):
        return self._data.get(key, default)


def test_cache_evicts_least_recently_used() -> None:
    cache = BoundedImageCache(capacity=2)
    cache.put("a", "A")
    cache.put("b", "B")
    assert cache.get("a") == "A"  # "b" is now least recently used
    cache.put("c", "C")
    assert len(cache) == 2
    assert "b" not in cache
    assert "a" in cache and "c" in cache


def test_cache_never_exceeds_capacity() -> None:
    cache = BoundedImageCache(capacity=3)
    for i in range(50):
        cache.put(str(i), i + 1)
        assert len(cache) <= 3


def test_get_or_fetch_renders_once_and_skips_empty() -> None:
    cache = BoundedImageCache(capacity=4)
    calls: list[str] = []

    def render():
        calls.append("x")
        return "image"

    assert cache.get_or_fetch("a", render) == "image"
    assert cache.get_or_fetch("a", render) == "image"
    assert calls == ["x"]
    assert cache.get_or_fetch("none", lambda: None) is None
    assert "none" not in cache


def test_invalidate_all_empties_cache() -> None:
    cache = BoundedImageCache(capacity=4)
    cache.put("a", "A")
    cache.invalidate_all()
    assert len(cache) == 0


def test_service_uses_fill_for_thumbnails_and_fit_for_previews() -> None:
    catalog = FakeCatalog()
    service = ImageService(catalog)
    assert service.get_thumbnail("a") == "image:a:300x300"
    assert service.get_thumbnail("a") == "image:a:300x300"
    assert service.get_preview("a", (800, 600)) == "image:a:800x600"
    assert catalog.image_requests == [
        ("a", (300, 300), ContentMode.ASPECT_FILL),
        ("a", (800, 600), ContentMode.ASPECT_FIT),
    ]
    assert service.cached_thumbnail("a") == "image:a:300x300"
    service.invalidate_all()
    assert service.cached_thumbnail("a") is None


def test_service_reads_settings() -> None:
    service = ImageService(FakeCatalog(), _Settings({"thumbnail_mem_cache": 7, "thumbnail_size": 128}))
    assert service.cache.capacity == 7
    assert service.thumbnail_size == (128, 128)


def test_pil_to_qimage_converts_modes() -> None:
    rgb = pil_to_qimage(Image.new("RGB", (4, 3), (255, 0, 0)))
    assert rgb is not None and (rgb.width(), rgb.height()) == (4, 3)
    gray = pil_to_qimage(Image.new("L", (2, 2), 128))
    assert gray is not None and not gray.isNull()
    assert is_empty_image(None)


def test_render_started_before_invalidation_is_not_cached() -> None:
    cache = BoundedImageCache(capacity=4)
    epoch = cache.epoch
    cache.invalidate_all()
    assert cache.get_or_fetch("a", lambda: "old", epoch) == "old"
    assert "a" not in cache
    assert cache.get_or_fetch("a", lambda: "new") == "new"
    assert cache.get("a") == "new"
