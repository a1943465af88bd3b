from __future__ import annotations

import math

import pytest

from photo_template.errors import EditorStateError, RegionUndefinedError
from photo_template.ops.crop_editor import CropEditorController, EditorPhase, TemplateDraft
from photo_template.ops.crop_geometry import Point, Rectangle, RegionKind, deserialize


def _drag(editor: CropEditorController, start: tuple[float, float], *moves: tuple[float, float]) -> None:
    editor.begin_drag(Point(*start))
    for m in moves:
        editor.update_drag(Point(*m))
    editor.end_drag()


def test_drag_draws_active_region_and_commits_to_draft() -> None:
    draft = TemplateDraft()
    editor = CropEditorController(draft)

    editor.begin_drag(Point(10, 10))
    assert editor.phase is EditorPhase.DRAGGING
    assert editor.rect(RegionKind.PHOTO) == Rectangle(10, 10, 0, 0)

    editor.update_drag(Point(60, 30))
    editor.update_drag(Point(110, 160))
    assert editor.rect(RegionKind.PHOTO) == Rectangle(10, 10, 100, 150)
    # Nothing is committed until the drag ends
    assert draft.crop_photo == ""

    editor.end_drag()
    assert editor.phase is EditorPhase.IDLE
    assert deserialize(draft.crop_photo) == Rectangle(10, 10, 100, 150)
    assert draft.crop_number == ""


def test_drag_up_and_left_normalizes_rect() -> None:
    editor = CropEditorController()
    _drag(editor, (100, 100), (40, 70))
    assert editor.rect(RegionKind.PHOTO) == Rectangle(40, 70, 60, 30)


def test_number_mode_leaves_photo_region_untouched() -> None:
    editor = CropEditorController()
    _drag(editor, (10, 10), (110, 160))
    editor.set_mode(RegionKind.NUMBER)
    _drag(editor, (5, 200), (45, 220))

    assert editor.rect(RegionKind.PHOTO) == Rectangle(10, 10, 100, 150)
    assert editor.rect(RegionKind.NUMBER) == Rectangle(5, 200, 40, 20)


def test_redraw_replaces_region() -> None:
    editor = CropEditorController()
    _drag(editor, (10, 10), (110, 160))
    _drag(editor, (0, 0), (5, 5))
    assert editor.rect(RegionKind.PHOTO) == Rectangle(0, 0, 5, 5)


def test_move_and_up_without_drag_are_ignored() -> None:
    draft = TemplateDraft()
    editor = CropEditorController(draft)
    editor.update_drag(Point(50, 50))
    editor.end_drag()
    assert editor.rect(RegionKind.PHOTO) == Rectangle.ZERO
    assert draft.crop_photo == ""


def test_mode_switch_during_drag_is_rejected() -> None:
    editor = CropEditorController()
    editor.begin_drag(Point(1, 1))
    with pytest.raises(EditorStateError):
        editor.set_mode(RegionKind.NUMBER)
    with pytest.raises(EditorStateError):
        editor.begin_drag(Point(2, 2))
    assert editor.active_region is RegionKind.PHOTO


def test_hydrate_falls_back_per_region() -> None:
    editor = CropEditorController()
    failed = editor.hydrate("{x:10,y:10,width:100,height:150}", "garbage")

    assert failed == [RegionKind.NUMBER]
    assert editor.rect(RegionKind.PHOTO) == Rectangle(10, 10, 100, 150)
    assert editor.rect(RegionKind.NUMBER) == Rectangle.ZERO


def test_validate_reports_photo_before_number() -> None:
    editor = CropEditorController()
    with pytest.raises(RegionUndefinedError) as exc:
        editor.validate_for_submit()
    assert exc.value.region is RegionKind.PHOTO

    _drag(editor, (0, 0), (10, 10))
    with pytest.raises(RegionUndefinedError) as exc:
        editor.validate_for_submit()
    assert exc.value.region is RegionKind.NUMBER


def test_click_without_move_leaves_region_undefined() -> None:
    editor = CropEditorController()
    _drag(editor, (30, 30))
    editor.set_mode(RegionKind.NUMBER)
    _drag(editor, (0, 0), (4, 4))
    with pytest.raises(RegionUndefinedError):
        editor.validate_for_submit()


def test_reset_regions_clears_rects_and_draft() -> None:
    draft = TemplateDraft()
    editor = CropEditorController(draft)
    _drag(editor, (0, 0), (10, 10))
    editor.reset_regions()
    assert editor.rect(RegionKind.PHOTO) == Rectangle.ZERO
    assert draft.crop_photo == ""


def test_hydrate_keeps_number_when_photo_is_corrupt() -> None:
    draft = TemplateDraft(name="ID Card", template_img="/imgs/card.png")
    editor = CropEditorController(draft)
    failed = editor.hydrate("garbage", "{x:5,y:200,width:40,height:20}")

    assert failed == [RegionKind.PHOTO]
    assert editor.rect(RegionKind.PHOTO) == Rectangle.ZERO
    assert editor.rect(RegionKind.NUMBER) == Rectangle(5, 200, 40, 20)
    assert (draft.name, draft.template_img) == ("ID Card", "/imgs/card.png")


def test_hydrate_recovers_from_hostile_region_strings() -> None:
    huge = '{"x":1,"y":2,"width":1' + "0" * 400 + ',"height":4}'
    editor = CropEditorController()

    assert editor.hydrate(huge, "{x:5,y:200,width:40,height:20}") == [RegionKind.PHOTO]
    assert editor.rect(RegionKind.NUMBER) == Rectangle(5, 200, 40, 20)

    assert editor.hydrate("{x:1,y:1,width:2,height:2}", "[" * 100_000) == [RegionKind.NUMBER]
    assert editor.rect(RegionKind.PHOTO) == Rectangle(1, 1, 2, 2)
    assert editor.rect(RegionKind.NUMBER) == Rectangle.ZERO


def test_non_finite_pointer_positions_are_rejected() -> None:
    editor = CropEditorController()
    with pytest.raises(EditorStateError):
        editor.begin_drag(Point(math.nan, 1))
    assert editor.phase is EditorPhase.IDLE

    editor.begin_drag(Point(10, 10))
    editor.update_drag(Point(30, 40))
    editor.update_drag(Point(math.inf, 50))
    editor.end_drag()
    assert editor.rect(RegionKind.PHOTO) == Rectangle(10, 10, 20, 30)
    assert deserialize(editor.draft.crop_photo) == Rectangle(10, 10, 20, 30)
