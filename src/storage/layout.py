# src/storage/layout.py - v2
"""Source and output tree conventions.

Source tree (under source_root):   styles/ scripts/ elements/ images/ fonts/
                                   bower_components/
Output tree (under output_root):   the deployable application
Intermediate tree (under tmp_root): dev-server output and build scratch
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)

STYLES_DIR = "styles"
SCRIPTS_DIR = "scripts"
ELEMENTS_DIR = "elements"
IMAGES_DIR = "images"
FONTS_DIR = "fonts"
VENDOR_DIR = "bower_components"
TEST_DIR = "test"

ENTRY_HTML = "index.html"
ELEMENTS_BUNDLE = "elements.html"


def subpath(root: Path, sub: str | None = None) -> Path:
    """root itself, or root/sub."""
    return root if not sub else root / sub


def vendor_dir(root: Path) -> Path:
    return root / VENDOR_DIR


def elements_bundle(root: Path) -> Path:
    return root / ELEMENTS_DIR / ELEMENTS_BUNDLE


def cache_config_path(output_root: Path, filename: str) -> Path:
    return output_root / filename


def clean(*roots: Path) -> list[Path]:
    """Delete output directories. Missing ones are not an error.

    Returns:
        Directories that existed and were removed.
    """
    removed: list[Path] = []
    for root in roots:
        path = Path(root)
        if not path.exists():
            continue
        if path.is_dir():
            shutil.rmtree(path)
        else:
            path.unlink()
        removed.append(path)
        logger.info("Removed %s", path)
    return removed
