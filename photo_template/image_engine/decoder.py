"""Template preview decoding using pyvips.

The crop canvas shows the template at 1:1, so previews are decoded at full
size through the same pyvips path the compositor uses. That way the canvas
coordinates match the pixels the compositor writes into.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
from PySide6.QtGui import QImage, QPixmap

from photo_template.errors import EngineError
from photo_template.logger import get_logger

from .compositor import _get_pyvips_module, load_template

_logger = get_logger("decoder")

RGB_CHANNELS = 3


def decode_rgb(path: str | Path) -> np.ndarray:
    """Decode ``path`` into an ``(h, w, 3)`` uint8 array.

    Raises:
        EngineError: if the file cannot be read.
        ImportError: if pyvips is unavailable.
    """
    vips = _get_pyvips_module()
    image = load_template(path)
    try:
        mem = image.write_to_memory()
    except vips.Error as e:
        raise EngineError(f"Error decoding image {path}: {e}") from e
    array = np.frombuffer(mem, dtype=np.uint8).reshape(image.height, image.width, image.bands)
    if array.shape[2] != RGB_CHANNELS:
        raise EngineError(f"Unsupported band count after conversion: {array.shape[2]}")
    return array.copy()


def to_qimage(array: np.ndarray) -> QImage:
    height, width, channels = array.shape
    arr = np.ascontiguousarray(array)
    # copy() detaches the QImage from the numpy buffer
    return QImage(arr.data, width, height, width * channels, QImage.Format.Format_RGB888).copy()


def load_preview_pixmap(path: str) -> QPixmap:
    """Full-size pixmap for the crop canvas; a null pixmap when decoding fails."""
    if not path:
        return QPixmap()
    try:
        return QPixmap.fromImage(to_qimage(decode_rgb(path)))
    except (EngineError, ImportError) as e:
        _logger.warning("preview decode failed: %s", e)
        return QPixmap()
