"""Demo catalog with generated assets and gradient previews.

Used for screenshots and for running the application without a media
folder. Every fifth asset is a video; capture dates step back six hours from
2025-12-15.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import io
from pathlib import Path
from typing import Any

from PIL import Image

from core.models import AuthorizationState, ContentMode, MediaAsset
from core.services.interfaces import ExportResource
from infrastructure.image_service import pil_to_qimage

DEMO_ASSET_COUNT = 24
DEMO_BASE_DATE = datetime(2025, 12, 15, tzinfo=timezone.utc)
DEMO_EXPORT_SIDE = 1024

_WIDTHS = [4032, 3024, 4000, 3840, 2048, 5472]
_HEIGHTS = [3024, 4032, 3000, 2160, 1536, 3648]

# (start, end) RGB pairs
_PALETTES: list[tuple[tuple[int, int, int], tuple[int, int, int]]] = [
    ((250, 153, 115), (217, 89, 140)),  # warm sunset
    ((102, 186, 224), (56, 107, 184)),  # ocean blue
    ((191, 158, 230), (128, 97, 191)),  # soft lavender
    ((140, 224, 191), (77, 173, 166)),  # mint
    ((250, 209, 115), (235, 140, 89)),  # golden hour
    ((235, 166, 184), (191, 107, 140)),  # rose quartz
    ((140, 199, 242), (97, 140, 209)),  # sky blue
    ((158, 204, 148), (97, 153, 107)),  # sage
    ((250, 191, 158), (230, 133, 122)),  # peach
    ((148, 122, 209), (89, 71, 158)),  # twilight
    ((242, 140, 128), (209, 97, 148)),  # coral
    ((107, 209, 209), (64, 148, 173)),  # teal
]


def generate_assets(count: int = DEMO_ASSET_COUNT) -> list[MediaAsset]:
    """Return `count` demo assets, newest first."""
    assets: list[MediaAsset] = []
    for i in range(count):
        is_video = i % 5 == 0
        assets.append(
            MediaAsset(
                identifier=f"demo-asset-{i}",
                creation_date=DEMO_BASE_DATE - timedelta(hours=6 * i),
                is_video=is_video,
                duration=float((i + 1) * 7) if is_video else 0.0,
                pixel_width=_WIDTHS[i % len(_WIDTHS)],
                pixel_height=_HEIGHTS[i % len(_HEIGHTS)],
            )
        )
    return assets


def gradient_image(size: tuple[int, int], index: int) -> Image.Image:
    """Render the gradient used as the preview of demo asset `index`."""
    start, end = _PALETTES[index % len(_PALETTES)]
    angle = (index % 6) * 60
    mask = Image.linear_gradient("L").rotate(angle).resize(size)
    return Image.composite(Image.new("RGB", size, end), Image.new("RGB", size, start), mask)


def _index_of(identifier: str) -> int:
    try:
        return int(identifier.rsplit("-", 1)[-1])
    except ValueError:
        return 0


class DemoCatalogService:
    """`CatalogService` serving generated demo assets."""

    def __init__(self, count: int = DEMO_ASSET_COUNT) -> None:
        self._assets = generate_assets(count)
        self._by_id = {a.identifier: a for a in self._assets}

    def authorization_status(self) -> AuthorizationState:
        return AuthorizationState.AUTHORIZED

    def request_authorization(self) -> AuthorizationState:
        return AuthorizationState.AUTHORIZED

    def list_assets(self) -> list[MediaAsset]:
        return list(self._assets)

    def request_image(
        self, identifier: str, target_size: tuple[int, int], content_mode: ContentMode
    ) -> Any | None:
        asset = self._by_id.get(identifier)
        if asset is None:
            return None
        width, height = max(1, int(target_size[0])), max(1, int(target_size[1]))
        if content_mode is ContentMode.ASPECT_FIT and asset.pixel_width and asset.pixel_height:
            scale = min(width / asset.pixel_width, height / asset.pixel_height, 1.0)
            width = max(1, int(asset.pixel_width * scale))
            height = max(1, int(asset.pixel_height * scale))
        return pil_to_qimage(gradient_image((width, height), _index_of(identifier)))

    def file_size(self, asset: MediaAsset) -> int:
        if asset.is_video:
            return int(asset.duration * 1_500_000)
        return asset.pixel_width * asset.pixel_height // 4

    def resolve_resource(self, asset: MediaAsset) -> ExportResource | None:
        if asset.identifier not in self._by_id:
            return None
        return ExportResource(filename=f"{asset.identifier}.jpg", source=asset.identifier)

    def write_resource(self, resource: ExportResource, destination: Path) -> None:
        image = gradient_image((DEMO_EXPORT_SIDE, DEMO_EXPORT_SIDE), _index_of(str(resource.source)))
        buffer = io.BytesIO()
        image.save(buffer, "JPEG", quality=85)
        Path(destination).write_bytes(buffer.getvalue())
