"""Headless file operations used by the template screens.

Confirmation dialogs belong to the UI layer.
"""

from __future__ import annotations

import shutil
import time
from pathlib import Path

from PySide6.QtCore import QUrl
from PySide6.QtGui import QDesktopServices
from send2trash import send2trash

from photo_template.errors import OpenError, StoreError
from photo_template.logger import get_logger
from photo_template.path_utils import abs_path, abs_path_str

_logger = get_logger("file_operations")


def unique_image_name(filename: str, timestamp: int | None = None) -> str:
    """``<unix-ts>_<name with dots as underscores>.<ext>``, ext defaulting to jpg."""
    src = Path(filename)
    ext = src.suffix.lstrip(".") or "jpg"
    ts = int(time.time()) if timestamp is None else int(timestamp)
    return f"{ts}_{src.name.replace('.', '_')}.{ext}"


def save_template_image(source: str, images_dir: str) -> str:
    """Copy an uploaded template image into the images directory.

    Returns:
        Stable absolute path of the stored copy.

    Raises:
        StoreError: if the source is missing or the copy fails.
    """
    src = abs_path(source)
    if not src.is_file():
        raise StoreError(f"Image file does not exist: {source}")

    dest_dir = abs_path(images_dir)
    target = dest_dir / unique_image_name(src.name)
    counter = 1
    while target.exists():
        target = dest_dir / f"{target.stem}_{counter}{target.suffix}"
        counter += 1

    _logger.debug("saving template image: %s -> %s", src, target)
    try:
        dest_dir.mkdir(parents=True, exist_ok=True)
        shutil.copy2(str(src), str(target))
    except OSError as e:
        _logger.error("saving template image failed: %s -> %s, error: %s", src, target, e)
        raise StoreError(f"Error saving file: {e}") from e
    return abs_path_str(target)


def trash_template_image(path: str, images_dir: str) -> bool:
    """Send a template image to the recycle bin.

    Only files inside ``images_dir`` are touched; images the user pointed at
    elsewhere are left alone. Returns True when a file was trashed.
    """
    if not path:
        return False
    p = abs_path(path)
    root = abs_path(images_dir)
    if root not in p.parents or not p.is_file():
        _logger.debug("not trashing image outside images dir: %s", p)
        return False

    try:
        send2trash(str(p))
    except OSError as e:
        _logger.warning("recycle bin failed: %s -> %s", p, e)
        return False
    _logger.debug("recycle bin success: %s", p)
    return True


def reveal_archive(archive_path: str) -> str:
    """Open the folder containing ``archive_path`` in the desktop file manager.

    Returns:
        The folder that was opened.

    Raises:
        OpenError: if the archive does not exist or the desktop refuses.
    """
    if not archive_path:
        raise OpenError("No archive to open")
    p = abs_path(archive_path)
    if not p.exists():
        raise OpenError("Archive file does not exist")

    folder = p.parent
    if not QDesktopServices.openUrl(QUrl.fromLocalFile(str(folder))):
        raise OpenError(f"Error opening folder: {folder}")
    _logger.info("archive revealed: %s", p)
    return str(folder)
