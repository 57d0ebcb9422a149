from __future__ import annotations

import argparse
import sys
from pathlib import Path

from PySide6.QtWidgets import QApplication
from loguru import logger

from app.views.main_window import MainWindow
from app.viewmodels.main_vm import MainVM
from core.constants import FULLSCREEN_MAX_SIDE, METADATA_DB_NAME, SYNC_BATCH_SIZE
from core.models import MediaTypeFilter, SortOption, SortOrder
from core.services.interfaces import CatalogService
from infrastructure.catalog_service import FolderCatalogService
from infrastructure.demo_catalog import DemoCatalogService
from infrastructure.image_service import ImageService
from infrastructure.logging import get_data_directory, init_logging
from infrastructure.metadata_store import SqliteMetadataStore
from infrastructure.settings import JsonSettings


BASE_DIR = Path(__file__).parent


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Browse, sort and export a photo library.")
    parser.add_argument("--settings", default=str(BASE_DIR / "settings.json"))
    parser.add_argument("--root", help="library folder (overrides catalog.root)")
    parser.add_argument("--demo", action="store_true", help="use generated demo assets")
    return parser.parse_args(argv)


def _parse_view_defaults(
    settings: JsonSettings,
) -> tuple[MediaTypeFilter, SortOption, SortOrder]:
    # Expect e.g. "view": {"default_filter": "videos", "default_sort": "duration", ...}
    def _enum(kind, key, fallback):
        raw = settings.get(key)
        try:
            return kind(str(raw).lower()) if raw is not None else fallback
        except ValueError:
            logger.warning("Ignoring invalid {} value: {}", key, raw)
            return fallback

    return (
        _enum(MediaTypeFilter, "view.default_filter", MediaTypeFilter.ALL),
        _enum(SortOption, "view.default_sort", SortOption.CREATION_DATE),
        _enum(SortOrder, "view.default_order", SortOrder.DESCENDING),
    )


def _build_catalog(settings: JsonSettings, args: argparse.Namespace) -> CatalogService:
    if args.demo or settings.get_bool("catalog.demo"):
        logger.info("Using demo catalog")
        return DemoCatalogService()
    if args.root:
        root = Path(args.root).expanduser()
    else:
        root = settings.get_path("catalog.root", Path.home() / "Pictures")
    logger.info("Using folder catalog at {}", root)
    return FolderCatalogService(root)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    settings = JsonSettings(args.settings)
    log_dir = settings.get_path("log_dir")
    init_logging(str(log_dir) if log_dir else None)

    app = QApplication(sys.argv)

    catalog = _build_catalog(settings, args)
    store = SqliteMetadataStore(
        settings.get_path("metadata_db", get_data_directory() / METADATA_DB_NAME)
    )

    media_filter, sort_option, sort_order = _parse_view_defaults(settings)
    vm = MainVM(
        catalog,
        store,
        image_service=ImageService(catalog, settings),
        batch_size=settings.get_int("sync.batch_size", SYNC_BATCH_SIZE),
        fullscreen_max_side=settings.get_int("fullscreen_max_side", FULLSCREEN_MAX_SIDE),
        media_filter=media_filter,
        sort_option=sort_option,
        sort_order=sort_order,
    )
    win = MainWindow(vm=vm, settings=settings)
    win.show()

    state = vm.check_authorization_status()
    if state.grants_access:
        vm.fetch_assets()
    else:
        vm.request_authorization()
    win.statusBar().showMessage("Ready", 2000)

    code = app.exec()
    store.close()
    return code


if __name__ == "__main__":
    raise SystemExit(main())
