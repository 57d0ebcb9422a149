from __future__ import annotations

from conftest import make_asset

from core.models import NavigationDirection
from core.services.navigation_service import (
    FullscreenNavigator,
    adjacent_identifier,
    capped_size,
)

NEXT = NavigationDirection.NEXT
PREV = NavigationDirection.PREVIOUS


def test_adjacent_wraps_in_both_directions() -> None:
    order = ["a", "b", "c"]
    assert adjacent_identifier(order, "a", NEXT) == "b"
    assert adjacent_identifier(order, "c", NEXT) == "a"
    assert adjacent_identifier(order, "a", PREV) == "c"


def test_adjacent_single_item_returns_itself() -> None:
    assert adjacent_identifier(["a"], "a", NEXT) == "a"


def test_adjacent_missing_current() -> None:
    assert adjacent_identifier(["a", "b"], "z", NEXT) is None


def test_capped_size_scales_down_only() -> None:
    assert capped_size(8000, 4000, 4096) == (4096, 2048)
    assert capped_size(1000, 500, 4096) == (1000, 500)
    assert capped_size(0, 0, 4096) == (4096, 4096)


def test_open_navigate_close() -> None:
    nav = FullscreenNavigator()
    nav.open("b")
    assert nav.is_open and nav.loading and nav.image is None
    assert nav.navigate(NEXT, ["a", "b", "c"]) == "c"
    assert nav.current == "c"
    nav.close()
    assert not nav.is_open and not nav.loading


def test_navigate_noop_when_closed_or_hidden() -> None:
    nav = FullscreenNavigator()
    assert nav.navigate(NEXT, ["a"]) is None
    nav.open("z")
    assert nav.navigate(NEXT, ["a", "b"]) is None
    assert nav.current == "z"


def test_begin_load_requires_visible_asset() -> None:
    nav = FullscreenNavigator()
    nav.open("gone")
    assert nav.begin_load([make_asset("a")]) is None
    assert nav.loading is False
    nav.open("a")
    assert nav.begin_load([make_asset("a")]).identifier == "a"


def test_stale_finish_clears_loading_but_keeps_image() -> None:
    nav = FullscreenNavigator()
    nav.open("a")
    nav.navigate(NEXT, ["a", "b"])
    assert nav.finish_load("a", "img-a") is False
    assert nav.image is None
    assert nav.loading is False
    assert nav.finish_load("b", "img-b") is True
    assert nav.image == "img-b"
