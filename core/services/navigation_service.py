"""Fullscreen viewer state and circular navigation over the visible order."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from core.models import MediaAsset, NavigationDirection


def adjacent_identifier(
    order: Sequence[str], current: str, direction: NavigationDirection
) -> str | None:
    """Return the neighbour of `current` with wraparound, or None if absent."""
    try:
        index = order.index(current)
    except ValueError:
        return None
    step = 1 if direction is NavigationDirection.NEXT else -1
    return order[(index + step) % len(order)]


def capped_size(width: int, height: int, max_side: int) -> tuple[int, int]:
    """Scale (width, height) down so neither side exceeds `max_side`.

    Unknown dimensions yield a square `max_side` box; small images are not
    scaled up.
    """
    if width <= 0 or height <= 0:
        return (max_side, max_side)
    scale = min(1.0, max_side / max(width, height))
    return (max(1, round(width * scale)), max(1, round(height * scale)))


class FullscreenNavigator:
    """Tracks the fullscreen asset, its rendered image and the loading flag.

    Loading is split in two so the render can run off the UI thread:
    `begin_load` resolves the asset to render and `finish_load` applies the
    result only if the viewer still shows the same asset.
    """

    def __init__(self) -> None:
        self.current: str | None = None
        self.image: Any | None = None
        self.loading: bool = False

    @property
    def is_open(self) -> bool:
        return self.current is not None

    def open(self, identifier: str) -> None:
        self.current = identifier
        self.image = None
        self.loading = True

    def close(self) -> None:
        self.current = None
        self.image = None
        self.loading = False

    def begin_load(self, visible: Sequence[MediaAsset]) -> MediaAsset | None:
        """Return the asset to render, or None (and stop loading) if not visible."""
        if self.current is not None:
            for asset in visible:
                if asset.identifier == self.current:
                    return asset
        self.loading = False
        return None

    def finish_load(self, identifier: str, image: Any | None) -> bool:
        """Apply a finished render for `identifier`.

        Returns False, leaving the image untouched, when the viewer has moved
        on to another asset since the request began. The loading flag is
        cleared either way.
        """
        self.loading = False
        if self.current != identifier:
            return False
        self.image = image
        return True

    def navigate(self, direction: NavigationDirection, order: Sequence[str]) -> str | None:
        """Open the neighbouring asset; returns its identifier or None (no-op)."""
        if self.current is None:
            return None
        target = adjacent_identifier(order, self.current, direction)
        if target is None:
            return None
        self.open(target)
        return target
