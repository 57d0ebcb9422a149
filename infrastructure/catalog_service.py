"""Folder-backed media catalog.

Presents every photo and video below a root folder as a catalog asset. The
identifier is the POSIX path relative to the root. Assets are delivered
newest capture first, with undated assets last. Previews are rendered with
Pillow; videos have no decoder here and render as None.
"""

from __future__ import annotations

import os
from pathlib import Path
import shutil
from typing import Any

from PIL import Image, ImageOps
from loguru import logger

from core.errors import CatalogError
from core.models import AuthorizationState, ContentMode, MediaAsset
from core.services.interfaces import ExportResource
from infrastructure.image_service import pil_to_qimage
from infrastructure.utils import (
    get_filesystem_creation_datetime,
    read_image_metadata,
    read_video_metadata,
)

IMAGE_EXTENSIONS = {
    ".jpg",
    ".jpeg",
    ".png",
    ".heic",
    ".heif",
    ".tif",
    ".tiff",
    ".webp",
    ".bmp",
    ".gif",
}
VIDEO_EXTENSIONS = {".mp4", ".mov", ".m4v", ".webm", ".avi", ".mkv"}

try:  # pragma: no cover - optional HEIF decoder
    from pillow_heif import register_heif_opener  # type: ignore

    register_heif_opener()
except ImportError:  # pragma: no cover - optional dependency
    IMAGE_EXTENSIONS -= {".heic", ".heif"}


def is_video(path: str | Path) -> bool:
    return Path(path).suffix.lower() in VIDEO_EXTENSIONS


def is_media(path: str | Path) -> bool:
    suffix = Path(path).suffix.lower()
    return suffix in IMAGE_EXTENSIONS or suffix in VIDEO_EXTENSIONS


def _newest_first_key(asset: MediaAsset) -> tuple[bool, float]:
    if asset.creation_date is None:
        return (False, 0.0)
    return (True, asset.creation_date.timestamp())


class FolderCatalogService:
    """`CatalogService` over a directory tree of media files."""

    def __init__(self, root: str | Path, probe_videos: bool = True) -> None:
        self.root = Path(os.path.expanduser(os.path.expandvars(str(root))))
        self._probe_videos = probe_videos

    def authorization_status(self) -> AuthorizationState:
        if not self.root.exists():
            return AuthorizationState.DENIED
        if not self.root.is_dir() or not os.access(self.root, os.R_OK | os.X_OK):
            return AuthorizationState.RESTRICTED
        return AuthorizationState.AUTHORIZED

    def request_authorization(self) -> AuthorizationState:
        # Folder access cannot be granted interactively
        status = self.authorization_status()
        logger.info("Catalog access for {}: {}", self.root, status.value)
        return status

    def list_assets(self) -> list[MediaAsset]:
        if not self.root.is_dir():
            raise CatalogError(f"Catalog folder not found: {self.root}")
        assets: list[MediaAsset] = []
        try:
            for dirpath, dirnames, filenames in os.walk(self.root):
                dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
                for name in sorted(filenames):
                    if name.startswith(".") or not is_media(name):
                        continue
                    assets.append(self._build_asset(Path(dirpath) / name))
        except OSError as ex:
            raise CatalogError(f"Failed to list {self.root}: {ex}") from ex
        # Stable sort keeps path order among equal dates
        assets.sort(key=_newest_first_key, reverse=True)
        logger.info("Listed {} assets under {}", len(assets), self.root)
        return assets

    def _build_asset(self, path: Path) -> MediaAsset:
        identifier = path.relative_to(self.root).as_posix()
        if is_video(path):
            info: dict[str, Any] = (
                read_video_metadata(path) if self._probe_videos else {"duration": 0.0}
            )
            created = info.get("creation_date") or get_filesystem_creation_datetime(path)
            return MediaAsset(
                identifier=identifier,
                creation_date=created,
                is_video=True,
                duration=float(info.get("duration") or 0.0),
                pixel_width=int(info.get("pixel_width") or 0),
                pixel_height=int(info.get("pixel_height") or 0),
            )
        info = read_image_metadata(path)
        created = info["creation_date"] or get_filesystem_creation_datetime(path)
        return MediaAsset(
            identifier=identifier,
            creation_date=created,
            is_video=False,
            pixel_width=int(info["pixel_width"] or 0),
            pixel_height=int(info["pixel_height"] or 0),
            latitude=info["latitude"],
            longitude=info["longitude"],
        )

    def path_for(self, identifier: str) -> Path:
        return self.root / Path(identifier)

    def request_image(
        self, identifier: str, target_size: tuple[int, int], content_mode: ContentMode
    ) -> Any | None:
        path = self.path_for(identifier)
        if is_video(path):
            return None
        try:
            with Image.open(path) as im:
                try:
                    im = ImageOps.exif_transpose(im)
                except (OSError, ValueError, AttributeError):
                    pass
                width, height = max(1, int(target_size[0])), max(1, int(target_size[1]))
                if content_mode is ContentMode.ASPECT_FILL:
                    im = ImageOps.fit(im, (width, height), Image.Resampling.LANCZOS)
                else:
                    im.thumbnail((width, height), Image.Resampling.LANCZOS)
                return pil_to_qimage(im)
        except (OSError, ValueError) as ex:
            logger.debug("Render failed for {}: {}", identifier, ex)
            return None

    def file_size(self, asset: MediaAsset) -> int:
        return int(os.path.getsize(self.path_for(asset.identifier)))

    def resolve_resource(self, asset: MediaAsset) -> ExportResource | None:
        path = self.path_for(asset.identifier)
        if not path.is_file():
            return None
        return ExportResource(filename=path.name, source=path)

    def write_resource(self, resource: ExportResource, destination: Path) -> None:
        shutil.copy2(Path(resource.source), destination)
