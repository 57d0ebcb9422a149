"""Core domain models for catalog assets, cached metadata and view options."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


@dataclass(frozen=True)
class MediaAsset:
    """A single item as reported by the external catalog.

    Assets are re-fetched wholesale on every catalog refresh; nothing in the
    application mutates them.
    """

    identifier: str
    creation_date: datetime | None
    is_video: bool
    duration: float = 0.0
    pixel_width: int = 0
    pixel_height: int = 0
    latitude: float | None = None
    longitude: float | None = None


@dataclass(frozen=True)
class MetadataRecord:
    """Cached, expensive-to-compute facts about one asset.

    Records are created once when an asset is first seen and deleted when the
    asset disappears from the catalog. They are never updated in place.
    """

    identifier: str
    file_size: int
    creation_date: datetime | None
    duration: float
    latitude: float | None = None
    longitude: float | None = None

    @classmethod
    def from_asset(cls, asset: MediaAsset, file_size: int) -> "MetadataRecord":
        """Build a record for `asset` with the resolved `file_size`."""
        return cls(
            identifier=asset.identifier,
            file_size=int(file_size),
            creation_date=asset.creation_date,
            duration=float(asset.duration),
            latitude=asset.latitude,
            longitude=asset.longitude,
        )


class MediaTypeFilter(Enum):
    ALL = "all"
    PHOTOS_ONLY = "photos"
    VIDEOS_ONLY = "videos"

    @property
    def label(self) -> str:
        return {
            MediaTypeFilter.ALL: "All",
            MediaTypeFilter.PHOTOS_ONLY: "Photos",
            MediaTypeFilter.VIDEOS_ONLY: "Videos",
        }[self]

    def accepts(self, asset: MediaAsset) -> bool:
        """True if `asset` passes this filter."""
        if self is MediaTypeFilter.PHOTOS_ONLY:
            return not asset.is_video
        if self is MediaTypeFilter.VIDEOS_ONLY:
            return asset.is_video
        return True


class SortOption(Enum):
    CREATION_DATE = "creation_date"
    DURATION = "duration"
    FILE_SIZE = "file_size"

    @property
    def label(self) -> str:
        return {
            SortOption.CREATION_DATE: "Date",
            SortOption.DURATION: "Duration",
            SortOption.FILE_SIZE: "File Size",
        }[self]


class SortOrder(Enum):
    ASCENDING = "ascending"
    DESCENDING = "descending"

    def toggled(self) -> "SortOrder":
        """Return the opposite order."""
        if self is SortOrder.ASCENDING:
            return SortOrder.DESCENDING
        return SortOrder.ASCENDING


class NavigationDirection(Enum):
    NEXT = "next"
    PREVIOUS = "previous"


class ContentMode(Enum):
    """How a render request fits the target size."""

    ASPECT_FIT = "fit"
    ASPECT_FILL = "fill"


class AuthorizationState(Enum):
    NOT_DETERMINED = "not_determined"
    AUTHORIZED = "authorized"
    LIMITED = "limited"
    DENIED = "denied"
    RESTRICTED = "restricted"

    @property
    def grants_access(self) -> bool:
        """True when the catalog may be listed."""
        return self in (AuthorizationState.AUTHORIZED, AuthorizationState.LIMITED)


@dataclass(frozen=True)
class ClickModifiers:
    """Modifier keys held during a grid click.

    `toggle` corresponds to command/control-click, `range` to shift-click.
    """

    toggle: bool = False
    range: bool = False


@dataclass
class CatalogSnapshot:
    """Raw catalog as last delivered, newest capture first."""

    assets: list[MediaAsset] = field(default_factory=list)
