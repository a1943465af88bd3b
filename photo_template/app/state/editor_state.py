from __future__ import annotations

from PySide6.QtCore import Property, QObject, Signal

_EMPTY_RECT = {"x": 0.0, "y": 0.0, "width": 0.0, "height": 0.0}


class EditorState(QObject):
    """State bound by the template form and its crop canvas.

    Rects are canvas-local ``{x, y, width, height}`` maps. The canvas proposes
    pointer positions only; the crop editor is authoritative for both rects.
    """

    nameChanged = Signal(str)
    templateImgChanged = Signal(str)
    activeRegionChanged = Signal(str)
    draggingChanged = Signal(bool)
    photoRectChanged = Signal()
    numberRectChanged = Signal()

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._name = ""
        self._template_img = ""
        self._active_region = "photo"
        self._dragging = False
        self._photo_rect = dict(_EMPTY_RECT)
        self._number_rect = dict(_EMPTY_RECT)

    def _get_name(self) -> str:
        return str(self._name)

    name = Property(str, _get_name, notify=nameChanged)  # type: ignore[arg-type]

    def _get_template_img(self) -> str:
        return str(self._template_img)

    templateImg = Property(str, _get_template_img, notify=templateImgChanged)  # type: ignore[arg-type]

    def _get_active_region(self) -> str:
        return str(self._active_region)

    activeRegion = Property(str, _get_active_region, notify=activeRegionChanged)  # type: ignore[arg-type]

    def _get_dragging(self) -> bool:
        return bool(self._dragging)

    dragging = Property(bool, _get_dragging, notify=draggingChanged)  # type: ignore[arg-type]

    def _get_photo_rect(self) -> dict:
        return dict(self._photo_rect)

    photoRect = Property("QVariantMap", _get_photo_rect, notify=photoRectChanged)  # type: ignore[arg-type]

    def _get_number_rect(self) -> dict:
        return dict(self._number_rect)

    numberRect = Property("QVariantMap", _get_number_rect, notify=numberRectChanged)  # type: ignore[arg-type]

    # ---- internal mutation helpers (called by backend) ----
    def _set_name(self, name: str) -> None:
        n = str(name)
        if n == self._name:
            return
        self._name = n
        self.nameChanged.emit(n)

    def _set_template_img(self, path: str) -> None:
        p = str(path)
        if p == self._template_img:
            return
        self._template_img = p
        self.templateImgChanged.emit(p)

    def _set_active_region(self, region: str) -> None:
        r = str(region)
        if r == self._active_region:
            return
        self._active_region = r
        self.activeRegionChanged.emit(r)

    def _set_dragging(self, value: bool) -> None:
        v = bool(value)
        if v == self._dragging:
            return
        self._dragging = v
        self.draggingChanged.emit(v)

    def _set_photo_rect(self, rect: dict) -> None:
        r = {k: float(rect.get(k, 0.0)) for k in _EMPTY_RECT}
        if r == self._photo_rect:
            return
        self._photo_rect = r
        self.photoRectChanged.emit()

    def _set_number_rect(self, rect: dict) -> None:
        r = {k: float(rect.get(k, 0.0)) for k in _EMPTY_RECT}
        if r == self._number_rect:
            return
        self._number_rect = r
        self.numberRectChanged.emit()

    def _reset(self) -> None:
        self._set_name("")
        self._set_template_img("")
        self._set_active_region("photo")
        self._set_dragging(False)
        self._set_photo_rect(_EMPTY_RECT)
        self._set_number_rect(_EMPTY_RECT)
