from __future__ import annotations

from PySide6.QtCore import Property, QObject, Signal


class GenerationState(QObject):
    """State for the generate screen.

    The job itself communicates via backend.taskEvent(dict); this bindable
    mirror is what enables/disables the controls and drives the progress bar.
    """

    statusChanged = Signal(str)
    runningChanged = Signal(bool)
    progressChanged = Signal(int)
    archivePathChanged = Signal(str)
    errorChanged = Signal(str)
    selectedTemplateIdChanged = Signal(int)
    sourceFolderChanged = Signal(str)

    def __init__(self, parent: QObject | None = None) -> None:
        super().__init__(parent)
        self._status = "idle"
        self._running = False
        self._progress = 0
        self._archive_path = ""
        self._error = ""
        self._selected_template_id = -1
        self._source_folder = ""

    def _get_status(self) -> str:
        return str(self._status)

    status = Property(str, _get_status, notify=statusChanged)  # type: ignore[arg-type]

    def _get_running(self) -> bool:
        return bool(self._running)

    running = Property(bool, _get_running, notify=runningChanged)  # type: ignore[arg-type]

    def _get_progress(self) -> int:
        return int(self._progress)

    progress = Property(int, _get_progress, notify=progressChanged)  # type: ignore[arg-type]

    def _get_archive_path(self) -> str:
        return str(self._archive_path)

    archivePath = Property(str, _get_archive_path, notify=archivePathChanged)  # type: ignore[arg-type]

    def _get_error(self) -> str:
        return str(self._error)

    error = Property(str, _get_error, notify=errorChanged)  # type: ignore[arg-type]

    def _get_selected_template_id(self) -> int:
        return int(self._selected_template_id)

    selectedTemplateId = Property(int, _get_selected_template_id, notify=selectedTemplateIdChanged)  # type: ignore[arg-type]

    def _get_source_folder(self) -> str:
        return str(self._source_folder)

    sourceFolder = Property(str, _get_source_folder, notify=sourceFolderChanged)  # type: ignore[arg-type]

    # ---- internal mutation helpers (called by backend) ----
    def _set_status(self, status: str) -> None:
        s = str(status)
        if s != self._status:
            self._status = s
            self.statusChanged.emit(s)
        running = s in ("requested", "generating")
        if running != self._running:
            self._running = running
            self.runningChanged.emit(running)

    def _set_progress(self, percent: int) -> None:
        p = int(max(0, min(100, int(percent))))
        if p == self._progress:
            return
        self._progress = p
        self.progressChanged.emit(p)

    def _set_archive_path(self, path: str) -> None:
        p = str(path or "")
        if p == self._archive_path:
            return
        self._archive_path = p
        self.archivePathChanged.emit(p)

    def _set_error(self, message: str) -> None:
        m = str(message or "")
        if m == self._error:
            return
        self._error = m
        self.errorChanged.emit(m)

    def _set_selected_template_id(self, template_id: int | None) -> None:
        t = -1 if template_id is None else int(template_id)
        if t == self._selected_template_id:
            return
        self._selected_template_id = t
        self.selectedTemplateIdChanged.emit(t)

    def _set_source_folder(self, folder: str) -> None:
        f = str(folder or "")
        if f == self._source_folder:
            return
        self._source_folder = f
        self.sourceFolderChanged.emit(f)
