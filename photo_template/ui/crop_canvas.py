"""Template image canvas with the Photo and Number crop rectangles.

The image is drawn at 1:1 from the widget origin, so canvas-local mouse
coordinates are template pixel coordinates. The canvas only proposes pointer
positions; rectangles come back through ``backend.editor``.
"""

from __future__ import annotations

from PySide6.QtCore import QRectF, Qt
from PySide6.QtGui import QColor, QPainter, QPen, QPixmap
from PySide6.QtWidgets import QWidget

from photo_template.image_engine.decoder import load_preview_pixmap
from photo_template.logger import get_logger

_logger = get_logger("crop_canvas")

PHOTO_COLOR = QColor(220, 38, 38)
NUMBER_COLOR = QColor(37, 99, 235)
_EMPTY_SIZE = (480, 320)


class CropCanvas(QWidget):
    def __init__(self, backend, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._backend = backend
        self._editor = backend.editor
        self._pixmap = QPixmap()
        self.setMouseTracking(False)
        self.setCursor(Qt.CursorShape.CrossCursor)
        self.setFixedSize(*_EMPTY_SIZE)

        self._editor.templateImgChanged.connect(self._load_image)
        self._editor.photoRectChanged.connect(self.update)
        self._editor.numberRectChanged.connect(self.update)
        self._editor.activeRegionChanged.connect(self.update)

    @property
    def pixmap(self) -> QPixmap:
        return self._pixmap

    def _load_image(self, path: str) -> None:
        pm = load_preview_pixmap(path)
        if path and pm.isNull():
            _logger.warning("cannot show template image: %s", path)
        self._pixmap = pm
        if pm.isNull():
            self.setFixedSize(*_EMPTY_SIZE)
        else:
            self.setFixedSize(pm.size())
        self.update()

    # ---- painting ----
    def paintEvent(self, event) -> None:  # type: ignore[override]
        painter = QPainter(self)
        try:
            painter.fillRect(self.rect(), QColor(240, 240, 240))
            if self._pixmap.isNull():
                painter.setPen(QColor(120, 120, 120))
                painter.drawText(self.rect(), Qt.AlignmentFlag.AlignCenter, "Choose a template image")
                return
            painter.drawPixmap(0, 0, self._pixmap)
            active = self._editor.activeRegion
            self._draw_region(painter, self._editor.photoRect, PHOTO_COLOR, active == "photo")
            self._draw_region(painter, self._editor.numberRect, NUMBER_COLOR, active == "number")
        finally:
            painter.end()

    @staticmethod
    def _draw_region(painter: QPainter, rect: dict, color: QColor, active: bool) -> None:
        w = float(rect.get("width", 0.0))
        h = float(rect.get("height", 0.0))
        if w <= 0 or h <= 0:
            return
        r = QRectF(float(rect.get("x", 0.0)), float(rect.get("y", 0.0)), w, h)
        fill = QColor(color)
        fill.setAlpha(60 if active else 30)
        painter.fillRect(r, fill)
        painter.setPen(QPen(color, 3 if active else 2, Qt.PenStyle.SolidLine))
        painter.drawRect(r)

    # ---- pointer forwarding ----
    def mousePressEvent(self, event) -> None:  # type: ignore[override]
        if event.button() != Qt.MouseButton.LeftButton or self._pixmap.isNull():
            super().mousePressEvent(event)
            return
        pos = event.position()
        self._backend.dispatch("pointerDown", {"x": pos.x(), "y": pos.y()})
        event.accept()

    def mouseMoveEvent(self, event) -> None:  # type: ignore[override]
        if not self._editor.dragging:
            super().mouseMoveEvent(event)
            return
        pos = event.position()
        self._backend.dispatch("pointerMove", {"x": pos.x(), "y": pos.y()})
        event.accept()

    def mouseReleaseEvent(self, event) -> None:  # type: ignore[override]
        if event.button() != Qt.MouseButton.LeftButton or not self._editor.dragging:
            super().mouseReleaseEvent(event)
            return
        self._backend.dispatch("pointerUp")
        event.accept()
