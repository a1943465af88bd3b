from __future__ import annotations

from pathlib import Path

import pytest
from fakes import FakeEngine, FakeStore, make_template

from photo_template.errors import InputValidationError, RegionUndefinedError, StoreError, ViewTransitionError
from photo_template.ops.crop_geometry import Point, Rectangle, RegionKind, deserialize
from photo_template.ops.generation import GenerationOrchestrator, JobStatus
from photo_template.ops.view_machine import CreateMode, EditMode, GenerateMode, ListMode, ViewStateMachine


def _machine(store: FakeStore | None = None, **kwargs) -> tuple[ViewStateMachine, FakeStore, FakeEngine]:
    store = store if store is not None else FakeStore()
    engine = FakeEngine()
    vm = ViewStateMachine(store, GenerationOrchestrator(engine), **kwargs)
    vm.reload_templates()
    return vm, store, engine


def _draw(vm: ViewStateMachine, region: RegionKind, a: tuple[int, int], b: tuple[int, int]) -> None:
    editor = vm.draft.editor
    editor.set_mode(region)
    editor.begin_drag(Point(*a))
    editor.update_drag(Point(*b))
    editor.end_drag()


def test_starts_in_list_with_templates_loaded() -> None:
    vm, _store, _engine = _machine(FakeStore(make_template(1), make_template(2, name="Badge")))
    assert isinstance(vm.mode, ListMode)
    assert [t.name for t in vm.templates] == ["ID Card", "Badge"]


def test_create_submit_returns_to_list(tmp_path: Path) -> None:
    vm, store, _engine = _machine()
    vm.open_create()
    assert isinstance(vm.mode, CreateMode)

    vm.set_name("ID Card")
    vm.draft.template.template_img = "/images/card.png"
    _draw(vm, RegionKind.PHOTO, (10, 10), (110, 160))
    _draw(vm, RegionKind.NUMBER, (5, 200), (45, 220))
    saved = vm.submit()

    assert isinstance(vm.mode, ListMode)
    assert vm.draft is None
    assert vm.message.text == "Photo template created"
    assert vm.templates == (saved,)
    assert deserialize(saved.crop_photo) == Rectangle(10, 10, 100, 150)
    assert deserialize(saved.crop_number) == Rectangle(5, 200, 40, 20)


def test_submit_without_name_or_image_stays_in_form() -> None:
    vm, store, _engine = _machine()
    vm.open_create()
    with pytest.raises(InputValidationError) as exc:
        vm.submit()
    assert exc.value.field == "name"

    vm.set_name("x")
    with pytest.raises(InputValidationError) as exc:
        vm.submit()
    assert exc.value.field == "template_img"
    assert isinstance(vm.mode, CreateMode)
    assert "create" not in store.calls


def test_submit_requires_both_regions() -> None:
    vm, store, _engine = _machine()
    vm.open_create()
    vm.set_name("x")
    vm.draft.template.template_img = "/images/card.png"
    _draw(vm, RegionKind.PHOTO, (0, 0), (10, 10))

    with pytest.raises(RegionUndefinedError) as exc:
        vm.submit()
    assert exc.value.region is RegionKind.NUMBER
    assert "create" not in store.calls
    assert isinstance(vm.mode, CreateMode)


def test_edit_hydrates_and_updates() -> None:
    tpl = make_template(5)
    vm, store, _engine = _machine(FakeStore(tpl))
    vm.open_edit(tpl)
    assert vm.mode == EditMode(5)
    assert vm.draft.editor.rect(RegionKind.PHOTO) == Rectangle(10, 10, 100, 150)

    vm.set_name("Renamed")
    saved = vm.submit()
    assert saved.id == 5
    assert saved.name == "Renamed"
    assert vm.message.text == "Photo template updated"
    assert store.calls.count("update") == 1


def test_edit_with_corrupt_region_still_opens() -> None:
    tpl = make_template(2, crop_number="garbage")
    vm, _store, _engine = _machine(FakeStore(tpl))
    vm.open_edit(tpl)
    editor = vm.draft.editor
    assert editor.rect(RegionKind.PHOTO) == Rectangle(10, 10, 100, 150)
    assert editor.rect(RegionKind.NUMBER) == Rectangle.ZERO
    assert vm.draft.template.name == "ID Card"
    assert vm.draft.template.template_img == "/images/card.png"


def test_edit_with_corrupt_photo_keeps_number_and_fields() -> None:
    tpl = make_template(3, crop_photo='{"x": 1, "y": 2, "width": 1' + "0" * 400 + ', "height": 4}')
    vm, _store, _engine = _machine(FakeStore(tpl))
    vm.open_edit(tpl)

    assert vm.mode == EditMode(3)
    assert vm.draft.template.name == "ID Card"
    assert vm.draft.template.template_img == "/images/card.png"
    editor = vm.draft.editor
    assert editor.rect(RegionKind.PHOTO) == Rectangle.ZERO
    assert editor.rect(RegionKind.NUMBER) == Rectangle(5, 200, 40, 20)


def test_store_failure_on_submit_keeps_draft() -> None:
    tpl = make_template(1)
    vm, store, _engine = _machine(FakeStore(tpl))
    vm.open_edit(tpl)
    store.fail_with = "disk full"
    with pytest.raises(StoreError):
        vm.submit()
    assert vm.mode == EditMode(1)
    assert vm.draft is not None


def test_cancel_discards_draft() -> None:
    vm, store, _engine = _machine()
    vm.open_create()
    vm.set_name("draft")
    vm.back_to_list()
    assert isinstance(vm.mode, ListMode)
    assert vm.draft is None
    assert "create" not in store.calls


def test_upload_copies_image_and_resets_regions(tmp_path: Path) -> None:
    src = tmp_path / "card.png"
    src.write_bytes(b"png")
    vm, _store, _engine = _machine(images_dir=str(tmp_path / "images"))
    vm.open_create()
    _draw(vm, RegionKind.PHOTO, (0, 0), (10, 10))

    stored = vm.upload_template_image(str(src))
    assert Path(stored).is_file()
    assert Path(stored).parent == (tmp_path / "images").resolve()
    assert vm.draft.template.template_img == stored
    assert vm.draft.editor.rect(RegionKind.PHOTO) == Rectangle.ZERO


def test_delete_requires_confirmation() -> None:
    vm, store, _engine = _machine(FakeStore(make_template(1)))
    assert vm.delete_template(1, confirmed=False) is False
    assert "delete" not in store.calls
    assert len(vm.templates) == 1

    assert vm.delete_template(1, confirmed=True) is True
    assert vm.templates == ()
    assert vm.message.text == "Photo template deleted"


def test_delete_trashes_image_when_enabled(monkeypatch, tmp_path: Path) -> None:
    trashed: list[tuple[str, str]] = []
    monkeypatch.setattr(
        "photo_template.ops.view_machine.trash_template_image",
        lambda path, images_dir: trashed.append((path, images_dir)) or True,
    )
    tpl = make_template(1, template_img=str(tmp_path / "images" / "a.png"))
    vm, _store, _engine = _machine(FakeStore(tpl), images_dir=str(tmp_path / "images"), trash_images=True)
    vm.delete_template(1, confirmed=True)
    assert trashed == [(tpl.template_img, str(tmp_path / "images"))]


def test_delete_of_missing_template_surfaces_store_error() -> None:
    vm, _store, _engine = _machine()
    with pytest.raises(StoreError):
        vm.delete_template(42, confirmed=True)


def test_reload_failure_becomes_error_message() -> None:
    store = FakeStore(make_template(1))
    vm, _store, _engine = _machine(store)
    store.fail_with = "database is locked"
    assert vm.reload_templates() is False
    assert vm.message.is_error
    assert vm.message.category == "store"
    assert len(vm.templates) == 1


def test_transitions_only_from_list() -> None:
    vm, _store, _engine = _machine()
    vm.open_create()
    with pytest.raises(ViewTransitionError):
        vm.open_generate()
    with pytest.raises(ViewTransitionError):
        vm.delete_template(1, confirmed=True)
    with pytest.raises(ViewTransitionError):
        vm.start_generation()


def test_generate_flow_and_leave_closes_subscription() -> None:
    vm, _store, engine = _machine(FakeStore(make_template(1)))
    vm.open_generate()
    assert isinstance(vm.mode, GenerateMode)
    assert vm.orchestrator.subscribed

    vm.select_template(1)
    vm.set_source_folder("/photos")
    job = vm.start_generation()
    assert engine.started == [(job.job_id, 1, "/photos")]

    engine.progress.emit(job.job_id, 50)
    assert vm.orchestrator.progress == 50

    vm.back_to_list()
    assert not vm.orchestrator.subscribed
    assert vm.orchestrator.status is JobStatus.IDLE
    assert engine.canceled == [job.job_id]

    engine.succeeded.emit(job.job_id, "/out/a.zip")
    assert vm.orchestrator.job is None


def test_generate_without_selection_is_rejected_before_engine() -> None:
    vm, _store, engine = _machine(FakeStore(make_template(1)))
    vm.open_generate()
    vm.select_template(999)
    assert vm.selection.template_id is None
    vm.set_source_folder("/photos")
    with pytest.raises(InputValidationError):
        vm.start_generation()
    assert engine.started == []
