from __future__ import annotations

import contextlib
from pathlib import Path
from typing import Any

from PySide6.QtCore import Property, QObject, Signal, Slot

from photo_template.app.state.editor_state import EditorState
from photo_template.app.state.generation_state import GenerationState
from photo_template.app.state.view_state import ViewState
from photo_template.errors import (
    EditorStateError,
    OpenError,
    PhotoTemplateError,
    ViewTransitionError,
)
from photo_template.image_engine.generation_engine import GenerationEngine
from photo_template.logger import get_logger
from photo_template.ops.crop_editor import CropEditorController
from photo_template.ops.crop_geometry import Point, RegionKind
from photo_template.ops.file_operations import reveal_archive
from photo_template.ops.generation import GenerationOrchestrator, JobStatus
from photo_template.ops.view_machine import EditMode, ViewStateMachine
from photo_template.path_utils import abs_path_str, local_path_from_url
from photo_template.settings_manager import SettingsManager, default_data_dir
from photo_template.store.template_store import Template, TemplateStore

_logger = get_logger("backend")


class BackendFacade(QObject):
    """Single backend object the widgets talk to.

    UI → Python: backend.dispatch(cmd, payload)
    Python → UI: backend.event(dict), backend.taskEvent(dict)
    UI bindings: backend.view / backend.editor / backend.generation
    """

    # QObject already has an .event() handler method, so we must not shadow it.
    event_ = Signal(object, name="event")
    taskEvent = Signal(object, name="taskEvent")

    def __init__(
        self,
        settings: SettingsManager | None = None,
        store: TemplateStore | None = None,
        engine: GenerationEngine | None = None,
        parent: QObject | None = None,
    ) -> None:
        super().__init__(parent)

        self._settings_mgr = settings or SettingsManager(abs_path_str(Path(default_data_dir()) / "settings.json"))
        self._store = store or TemplateStore(self._settings_mgr.db_path)
        self._engine = engine or GenerationEngine(
            self._store,
            self._settings_mgr.output_dir,
            quality=self._settings_mgr.jpeg_quality,
            parent=self,
        )
        self._orchestrator = GenerationOrchestrator(self._engine)
        self._machine = ViewStateMachine(
            self._store,
            self._orchestrator,
            images_dir=self._settings_mgr.images_dir,
            trash_images=self._settings_mgr.trash_template_images,
        )

        self._view = ViewState(self)
        self._editor = EditorState(self)
        self._generation = GenerationState(self)

        self._last_status = JobStatus.IDLE
        self._last_job_id: str | None = None

        self._machine.add_listener(self._on_machine_changed)
        self._orchestrator.add_listener(self._on_job_changed)

    # ---- expose state objects to the UI ----
    def _get_view(self) -> QObject:
        return self._view

    view = Property(QObject, _get_view, constant=True)  # type: ignore[arg-type]

    def _get_editor(self) -> QObject:
        return self._editor

    editor = Property(QObject, _get_editor, constant=True)  # type: ignore[arg-type]

    def _get_generation(self) -> QObject:
        return self._generation

    generation = Property(QObject, _get_generation, constant=True)  # type: ignore[arg-type]

    @property
    def settings_manager(self) -> SettingsManager:
        return self._settings_mgr

    @property
    def machine(self) -> ViewStateMachine:
        return self._machine

    @property
    def orchestrator(self) -> GenerationOrchestrator:
        return self._orchestrator

    # ---- command entry ----
    @Slot(str, "QVariant")  # type: ignore[call-overload]
    def dispatch(self, cmd: str, payload: object | None = None) -> None:
        command = str(cmd or "").strip()
        if not command:
            self.event_.emit({"type": "event", "name": "error", "level": "warning", "message": "Empty cmd"})
            return

        try:
            handled = self._run_command(command, payload)
        except (EditorStateError, ViewTransitionError) as e:
            _logger.warning("%s rejected: %s", command, e)
            self._report(e)
            return
        except PhotoTemplateError as e:
            _logger.debug("%s failed: %s", command, e)
            self._report(e)
            return

        if not handled:
            _logger.warning("unknown command: %s", command)
            self.event_.emit(
                {"type": "event", "name": "error", "level": "warning", "message": f"Unknown cmd: {command}"}
            )

    def _run_command(self, command: str, payload: object | None) -> bool:  # noqa: PLR0911, PLR0912
        if command == "reloadTemplates":
            self._machine.reload_templates()
            return True

        if command == "openCreate":
            self._machine.open_create()
            return True

        if command == "openEdit":
            self._cmd_open_edit(payload)
            return True

        if command == "openGenerate":
            self._machine.open_generate()
            last = self._settings_mgr.last_source_dir
            if last:
                self._machine.set_source_folder(last)
            return True

        if command == "backToList":
            self._machine.back_to_list()
            return True

        if command == "setName":
            self._machine.set_name(str(_get_payload_value(payload, "value", default="")))
            return True

        if command == "uploadTemplateImage":
            raw = _get_payload_value(payload, "path", default=payload)
            self._machine.upload_template_image(local_path_from_url(str(raw or "")))
            return True

        if command == "setCropMode":
            self._cmd_set_crop_mode(payload)
            return True

        if command in ("pointerDown", "pointerMove", "pointerUp"):
            self._cmd_pointer(command, payload)
            return True

        if command == "submit":
            self._machine.submit()
            return True

        if command == "deleteTemplate":
            self._cmd_delete_template(payload)
            return True

        if command == "selectTemplate":
            raw = _get_payload_value(payload, "id", default=None)
            self._machine.select_template(_as_template_id(raw))
            return True

        if command == "setSourceFolder":
            self._cmd_set_source_folder(payload)
            return True

        if command == "generate":
            self._machine.start_generation()
            return True

        if command == "openArchive":
            self._cmd_open_archive()
            return True

        return False

    # ---- command handlers ----
    def _cmd_open_edit(self, payload: object | None) -> None:
        template_id = _as_template_id(_get_payload_value(payload, "id", default=None))
        if template_id is None:
            raise ViewTransitionError("No template to edit")
        template = self._store.get(template_id)
        self._machine.open_edit(template)

    def _editor_or_raise(self) -> CropEditorController:
        draft = self._machine.draft
        if draft is None:
            raise ViewTransitionError("No template form is open")
        return draft.editor

    def _cmd_set_crop_mode(self, payload: object | None) -> None:
        raw = _get_payload_value(payload, "region", default=payload)
        try:
            region = RegionKind.parse(raw)
        except ValueError as e:
            raise EditorStateError(str(e)) from e
        self._editor_or_raise().set_mode(region)
        self._sync_editor()

    def _cmd_pointer(self, command: str, payload: object | None) -> None:
        editor = self._editor_or_raise()
        if command == "pointerUp":
            editor.end_drag()
        else:
            try:
                point = Point(
                    float(_get_payload_value(payload, "x", default=0.0)),
                    float(_get_payload_value(payload, "y", default=0.0)),
                )
            except (TypeError, ValueError, OverflowError):
                raise EditorStateError("Invalid pointer position") from None
            if command == "pointerDown":
                editor.begin_drag(point)
            else:
                editor.update_drag(point)
        self._sync_editor()

    def _cmd_delete_template(self, payload: object | None) -> None:
        template_id = _as_template_id(_get_payload_value(payload, "id", default=None))
        if template_id is None:
            raise ViewTransitionError("No template to delete")
        confirmed = bool(_get_payload_value(payload, "confirmed", default=False))
        self._machine.delete_template(template_id, confirmed=confirmed)

    def _cmd_set_source_folder(self, payload: object | None) -> None:
        raw = _get_payload_value(payload, "path", default=payload)
        folder = local_path_from_url(str(raw or ""))
        self._machine.set_source_folder(folder)
        if folder:
            self._settings_mgr.remember_source_dir(folder)

    def _cmd_open_archive(self) -> None:
        job = self._orchestrator.job
        if job is None or not job.archive_path:
            raise OpenError("No archive to open")
        reveal_archive(job.archive_path)
        self._machine.set_message("Archive folder opened")

    def _report(self, error: PhotoTemplateError) -> None:
        self._machine.report(error)
        self.event_.emit(
            {
                "type": "event",
                "name": "message",
                "level": "error",
                "category": error.category,
                "message": str(error),
            }
        )

    # ---- state sync ----
    def _on_machine_changed(self, machine: ViewStateMachine) -> None:
        mode = machine.mode
        self._view._set_mode(mode.name, mode.template_id if isinstance(mode, EditMode) else -1)
        self._view._set_templates([_template_row(t) for t in machine.templates])

        msg = machine.message
        if msg is None:
            self._view._set_message("")
        else:
            self._view._set_message(msg.text, msg.level, msg.category or "")

        self._sync_editor()

        sel = machine.selection
        self._generation._set_selected_template_id(sel.template_id if sel is not None else None)
        self._generation._set_source_folder(sel.folder if sel is not None else "")

    def _sync_editor(self) -> None:
        draft = self._machine.draft
        if draft is None:
            self._editor._reset()
            return
        editor = draft.editor
        self._editor._set_name(draft.template.name)
        self._editor._set_template_img(draft.template.template_img)
        self._editor._set_active_region(editor.active_region.value)
        self._editor._set_dragging(editor.dragging)
        self._editor._set_photo_rect(editor.rect(RegionKind.PHOTO).as_dict())
        self._editor._set_number_rect(editor.rect(RegionKind.NUMBER).as_dict())

    def _on_job_changed(self, orchestrator: GenerationOrchestrator) -> None:
        job = orchestrator.job
        status = orchestrator.status
        self._generation._set_status(status.value)
        self._generation._set_progress(orchestrator.progress)
        self._generation._set_archive_path(job.archive_path if job is not None else "")
        self._generation._set_error(job.error if job is not None else "")

        job_id = job.job_id if job is not None else self._last_job_id
        changed = status is not self._last_status
        self._last_status = status
        self._last_job_id = job_id

        if status is JobStatus.GENERATING:
            state = "started" if changed else "progress"
            self.taskEvent.emit(
                {"type": "task", "name": "generate", "state": state, "jobId": job_id, "percent": orchestrator.progress}
            )
        elif changed and status is JobStatus.SUCCEEDED and job is not None:
            self.taskEvent.emit(
                {"type": "task", "name": "generate", "state": "finished", "jobId": job_id, "archivePath": job.archive_path}
            )
            self._machine.set_message("Generation completed successfully")
        elif changed and status is JobStatus.FAILED and job is not None:
            self.taskEvent.emit(
                {"type": "task", "name": "generate", "state": "error", "jobId": job_id, "message": job.error}
            )
            self._machine.set_message(f"Generation error: {job.error}", "error", "engine")

    # ---- lifecycle ----
    def shutdown(self) -> None:
        _logger.debug("backend shutdown")
        with contextlib.suppress(RuntimeError):
            self._orchestrator.close()
        self._engine.shutdown()
        self._store.close()


def _template_row(template: Template) -> dict[str, Any]:
    return {
        "id": template.id,
        "name": template.name,
        "templateImg": template.template_img,
        "cropPhoto": template.crop_photo,
        "cropNumber": template.crop_number,
    }


def _as_template_id(value: object) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        tid = int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        return None
    return tid if tid >= 0 else None


def _get_payload_value(payload: object | None, key: str, *, default: Any) -> Any:
    """Extract a value from a command payload.

    Supports dict payloads and None; anything else returns default.
    """

    if payload is None:
        return default

    if isinstance(payload, dict):
        return payload.get(key, default)

    return default
