"""Screen state machine: List, Create, Edit(template_id), Generate.

List is the rest state; every other screen is entered from List and returns
to it. Leaving a screen drops its draft or job and reloads the template list.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar, Union

from photo_template.errors import InputValidationError, PhotoTemplateError, StoreError, ViewTransitionError
from photo_template.logger import get_logger
from photo_template.ops.crop_editor import REGION_ORDER, CropEditorController, TemplateDraft
from photo_template.ops.crop_geometry import serialize
from photo_template.ops.file_operations import save_template_image, trash_template_image

if TYPE_CHECKING:
    from photo_template.ops.generation import GenerationJob, GenerationOrchestrator
    from photo_template.store.template_store import Template, TemplateStore

_logger = get_logger("view")


@dataclass(frozen=True)
class ListMode:
    name: ClassVar[str] = "list"


@dataclass(frozen=True)
class CreateMode:
    name: ClassVar[str] = "create"


@dataclass(frozen=True)
class EditMode:
    template_id: int
    name: ClassVar[str] = "edit"


@dataclass(frozen=True)
class GenerateMode:
    name: ClassVar[str] = "generate"


ViewMode = Union[ListMode, CreateMode, EditMode, GenerateMode]


@dataclass(frozen=True)
class Message:
    text: str
    level: str = "info"  # "info" | "error"
    category: str | None = None

    @property
    def is_error(self) -> bool:
        return self.level == "error"


@dataclass
class EditorDraft:
    """Form state for Create/Edit: the template fields plus the crop editor."""

    template: TemplateDraft
    editor: CropEditorController

    @classmethod
    def empty(cls) -> EditorDraft:
        draft = TemplateDraft()
        return cls(template=draft, editor=CropEditorController(draft))


@dataclass
class GenerateSelection:
    template_id: int | None = None
    folder: str = ""


Listener = Callable[["ViewStateMachine"], None]


class ViewStateMachine:
    def __init__(
        self,
        store: TemplateStore,
        orchestrator: GenerationOrchestrator,
        *,
        images_dir: str = "",
        trash_images: bool = False,
    ) -> None:
        self._store = store
        self._orchestrator = orchestrator
        self._images_dir = images_dir
        self._trash_images = trash_images

        self._mode: ViewMode = ListMode()
        self._draft: EditorDraft | None = None
        self._selection: GenerateSelection | None = None
        self._templates: tuple[Template, ...] = ()
        self._message: Message | None = None
        self._listeners: list[Listener] = []

    # ---- observation ----
    @property
    def mode(self) -> ViewMode:
        return self._mode

    @property
    def draft(self) -> EditorDraft | None:
        return self._draft

    @property
    def selection(self) -> GenerateSelection | None:
        return self._selection

    @property
    def templates(self) -> tuple[Template, ...]:
        return self._templates

    @property
    def message(self) -> Message | None:
        return self._message

    @property
    def orchestrator(self) -> GenerationOrchestrator:
        return self._orchestrator

    def find_template(self, template_id: int) -> Template | None:
        for tpl in self._templates:
            if tpl.id == template_id:
                return tpl
        return None

    def add_listener(self, fn: Listener) -> None:
        self._listeners.append(fn)

    def notify(self) -> None:
        for fn in list(self._listeners):
            fn(self)

    # ---- messages ----
    def set_message(self, text: str, level: str = "info", category: str | None = None) -> None:
        self._message = Message(text, level, category)
        self.notify()

    def clear_message(self) -> None:
        if self._message is not None:
            self._message = None
            self.notify()

    def report(self, error: PhotoTemplateError) -> None:
        """Surface an error inline; the screen stays where it is."""
        _logger.debug("reporting %s error: %s", error.category, error)
        self.set_message(str(error), "error", error.category)

    # ---- transitions ----
    def _require(self, *allowed: type, action: str) -> None:
        if not isinstance(self._mode, allowed):
            raise ViewTransitionError(f"Cannot {action} from the {self._mode.name} screen")

    def _enter(self, mode: ViewMode) -> None:
        _logger.debug("view %s -> %s", self._mode.name, mode.name)
        self._mode = mode
        self._message = None

    def reload_templates(self) -> bool:
        try:
            self._templates = tuple(self._store.list())
        except StoreError as e:
            _logger.error("template reload failed: %s", e)
            self._message = Message(str(e), "error", e.category)
            self.notify()
            return False
        self.notify()
        return True

    def open_create(self) -> None:
        self._require(ListMode, action="create a template")
        self._draft = EditorDraft.empty()
        self._enter(CreateMode())
        self.notify()

    def open_edit(self, template: Template) -> None:
        self._require(ListMode, action="edit a template")
        fields = TemplateDraft.from_template(template)
        draft = EditorDraft(template=fields, editor=CropEditorController(fields))
        failed = draft.editor.hydrate(template.crop_photo, template.crop_number)
        if failed:
            _logger.info(
                "template %d: reset unreadable regions %s",
                template.id,
                ", ".join(r.value for r in failed),
            )
        self._draft = draft
        self._enter(EditMode(template.id))
        self.notify()

    def open_generate(self) -> None:
        self._require(ListMode, action="open generation")
        self._orchestrator.open()
        self._selection = GenerateSelection()
        self._enter(GenerateMode())
        self.notify()

    def back_to_list(self, message: Message | None = None) -> None:
        if isinstance(self._mode, GenerateMode):
            self._orchestrator.close()
        self._draft = None
        self._selection = None
        self._enter(ListMode())
        self._message = message
        self.reload_templates()

    # ---- Create / Edit ----
    def _require_draft(self, action: str) -> EditorDraft:
        self._require(CreateMode, EditMode, action=action)
        if self._draft is None:
            raise ViewTransitionError(f"Nothing to {action}")
        return self._draft

    def set_name(self, name: str) -> None:
        self._require_draft("rename").template.name = str(name)
        self.notify()

    def upload_template_image(self, source: str) -> str:
        draft = self._require_draft("upload an image")
        stored = save_template_image(source, self._images_dir)
        draft.template.template_img = stored
        # Old coordinates belong to the previous image
        draft.editor.reset_regions()
        self.notify()
        return stored

    def submit(self) -> Template:
        """Validate the draft and hand it to the store.

        Raises:
            InputValidationError: name or template image missing.
            RegionUndefinedError: a crop region was never drawn.
            StoreError: the store rejected the write.
        """
        draft = self._require_draft("save")
        tpl = draft.template
        if not tpl.name.strip():
            raise InputValidationError("name", "The template name and image are required")
        if not tpl.template_img.strip():
            raise InputValidationError("template_img", "The template name and image are required")
        draft.editor.validate_for_submit()
        for region in REGION_ORDER:
            tpl.set_crop(region, serialize(draft.editor.rect(region)))

        if isinstance(self._mode, EditMode):
            saved = self._store.update(self._mode.template_id, tpl.fields())
            text = "Photo template updated"
        else:
            saved = self._store.create(tpl.fields())
            text = "Photo template created"
        self.back_to_list(Message(text, "info"))
        return saved

    # ---- List ----
    def delete_template(self, template_id: int, *, confirmed: bool) -> bool:
        """Delete after explicit confirmation. Unconfirmed requests do nothing."""
        self._require(ListMode, action="delete a template")
        if not confirmed:
            _logger.debug("delete of template %s not confirmed", template_id)
            return False

        tpl = self.find_template(template_id)
        self._store.delete(template_id)
        if tpl is not None and self._trash_images and self._images_dir:
            trash_template_image(tpl.template_img, self._images_dir)
        self._message = Message("Photo template deleted", "info")
        self.reload_templates()
        return True

    # ---- Generate ----
    def _require_selection(self, action: str) -> GenerateSelection:
        self._require(GenerateMode, action=action)
        if self._selection is None:
            raise ViewTransitionError(f"Cannot {action} before the generate screen is ready")
        return self._selection

    def select_template(self, template_id: int | None) -> None:
        sel = self._require_selection("select a template")
        if template_id is not None and self.find_template(template_id) is None:
            template_id = None
        sel.template_id = template_id
        self.notify()

    def set_source_folder(self, folder: str) -> None:
        self._require_selection("select a folder").folder = str(folder or "")
        self.notify()

    def start_generation(self) -> GenerationJob | None:
        sel = self._require_selection("generate")
        self._message = None
        job = self._orchestrator.start(sel.template_id, sel.folder)
        self.notify()
        return job
