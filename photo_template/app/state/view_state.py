from __future__ import annotations

from PySide6.QtCore import Property, QObject, Signal


class ViewState(QObject):
    """Current screen, template list and the inline message line."""

    modeChanged = Signal(str)
    editTemplateIdChanged = Signal(int)
    templatesChanged = Signal()
    messageChanged = Signal(str)
    messageLevelChanged = Signal(str)
    messageCategoryChanged = Signal(str)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._mode = "list"
        self._edit_template_id = -1
        self._templates: list[dict] = []
        self._message = ""
        self._message_level = ""
        self._message_category = ""

    # ---- read-only properties (mutate via backend) ----
    def _get_mode(self) -> str:
        return str(self._mode)

    mode = Property(str, _get_mode, notify=modeChanged)  # type: ignore[arg-type]

    def _get_edit_template_id(self) -> int:
        return int(self._edit_template_id)

    editTemplateId = Property(int, _get_edit_template_id, notify=editTemplateIdChanged)  # type: ignore[arg-type]

    def _get_templates(self) -> list:
        return list(self._templates)

    templates = Property("QVariantList", _get_templates, notify=templatesChanged)  # type: ignore[arg-type]

    def _get_message(self) -> str:
        return str(self._message)

    message = Property(str, _get_message, notify=messageChanged)  # type: ignore[arg-type]

    def _get_message_level(self) -> str:
        return str(self._message_level)

    messageLevel = Property(str, _get_message_level, notify=messageLevelChanged)  # type: ignore[arg-type]

    def _get_message_category(self) -> str:
        return str(self._message_category)

    messageCategory = Property(str, _get_message_category, notify=messageCategoryChanged)  # type: ignore[arg-type]

    # ---- internal mutation helpers (called by backend) ----
    def _set_mode(self, mode: str, edit_template_id: int = -1) -> None:
        m = str(mode)
        if m != self._mode:
            self._mode = m
            self.modeChanged.emit(m)
        tid = int(edit_template_id)
        if tid != self._edit_template_id:
            self._edit_template_id = tid
            self.editTemplateIdChanged.emit(tid)

    def _set_templates(self, rows: list[dict]) -> None:
        if rows == self._templates:
            return
        self._templates = list(rows)
        self.templatesChanged.emit()

    def _set_message(self, text: str, level: str = "", category: str = "") -> None:
        if level != self._message_level:
            self._message_level = level
            self.messageLevelChanged.emit(level)
        if category != self._message_category:
            self._message_category = category
            self.messageCategoryChanged.emit(category)
        if text != self._message:
            self._message = text
            self.messageChanged.emit(text)
