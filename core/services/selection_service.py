"""Click-driven multi-selection decoupled from any UI toolkit.

The model keeps a set of selected identifiers and an anchor. The anchor is
the start point for range (shift) clicks and is moved only by plain and
toggle clicks, so repeated range clicks adjust the far end of a range that
keeps its start fixed.

Selected identifiers may refer to assets that are no longer visible after a
filter change; the `visible_*` helpers intersect with the current order.
"""

from __future__ import annotations

from collections.abc import Sequence

from core.models import ClickModifiers, MediaAsset


def range_between(order: Sequence[str], first: str, second: str) -> set[str] | None:
    """Return the inclusive identifier range between two endpoints.

    The result does not depend on argument order. Returns None when either
    endpoint is absent from `order`.
    """
    try:
        i = order.index(first)
        j = order.index(second)
    except ValueError:
        return None
    lo, hi = min(i, j), max(i, j)
    return set(order[lo : hi + 1])


class SelectionModel:
    """Selected identifiers plus the anchor used for range selection."""

    def __init__(self) -> None:
        self.selected: set[str] = set()
        self.anchor: str | None = None

    def click(
        self, identifier: str, modifiers: ClickModifiers, order: Sequence[str]
    ) -> None:
        """Apply one grid click to the selection.

        Args:
            identifier: The clicked asset.
            modifiers: Held modifier keys.
            order: Identifiers of the current visible order.
        """
        if modifiers.toggle:
            if identifier in self.selected:
                self.selected.discard(identifier)
            else:
                self.selected.add(identifier)
            self.anchor = identifier
            return

        if modifiers.range and self.anchor is not None:
            span = range_between(order, self.anchor, identifier)
            if span is not None:
                self.selected = span
                return

        self.selected = {identifier}
        self.anchor = identifier

    def clear(self) -> None:
        self.selected = set()
        self.anchor = None

    def select_all(self, order: Sequence[str]) -> None:
        """Select every visible identifier; the anchor is left untouched."""
        self.selected = set(order)

    def is_selected(self, identifier: str) -> bool:
        return identifier in self.selected

    def visible_selected_count(self, order: Sequence[str]) -> int:
        return sum(1 for identifier in order if identifier in self.selected)

    def visible_selected_items(self, visible: Sequence[MediaAsset]) -> list[MediaAsset]:
        """Return visible assets that are selected, in visible order."""
        return [a for a in visible if a.identifier in self.selected]
