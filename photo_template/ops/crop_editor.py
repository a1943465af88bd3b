"""Pointer-driven editor for the Photo and Number crop regions.

The controller is Qt-free: the canvas widget translates mouse events into
canvas-local points and calls begin/update/end; the controller is the only
writer of the two rectangles and of the draft's serialized crop fields.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING

from photo_template.errors import EditorStateError, ParseError, RegionUndefinedError
from photo_template.logger import get_logger
from photo_template.ops.crop_geometry import Point, Rectangle, RegionKind, deserialize, serialize

if TYPE_CHECKING:
    from collections.abc import Mapping

    from photo_template.store.template_store import Template

_logger = get_logger("crop_editor")

# Checked in this order when validating.
REGION_ORDER = (RegionKind.PHOTO, RegionKind.NUMBER)


def _finite(point: Point) -> bool:
    return math.isfinite(point.x) and math.isfinite(point.y)


@dataclass
class TemplateDraft:
    """Editable copy of a template's persisted fields."""

    template_id: int | None = None
    name: str = ""
    template_img: str = ""
    crop_photo: str = ""
    crop_number: str = ""

    @classmethod
    def from_template(cls, template: Template) -> TemplateDraft:
        return cls(
            template_id=template.id,
            name=template.name,
            template_img=template.template_img,
            crop_photo=template.crop_photo,
            crop_number=template.crop_number,
        )

    def set_crop(self, region: RegionKind, serialized: str) -> None:
        if region is RegionKind.PHOTO:
            self.crop_photo = serialized
        else:
            self.crop_number = serialized

    def fields(self) -> dict[str, str]:
        return {
            "name": self.name,
            "crop_photo": self.crop_photo,
            "crop_number": self.crop_number,
            "template_img": self.template_img,
        }


class EditorPhase(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


class CropEditorController:
    def __init__(self, draft: TemplateDraft | None = None) -> None:
        self._draft = draft if draft is not None else TemplateDraft()
        self._phase = EditorPhase.IDLE
        self._active = RegionKind.PHOTO
        self._regions: dict[RegionKind, Rectangle] = {r: Rectangle.ZERO for r in REGION_ORDER}
        self._anchor: Point | None = None

    # ---- read-only view ----
    @property
    def draft(self) -> TemplateDraft:
        return self._draft

    @property
    def phase(self) -> EditorPhase:
        return self._phase

    @property
    def dragging(self) -> bool:
        return self._phase is EditorPhase.DRAGGING

    @property
    def active_region(self) -> RegionKind:
        return self._active

    @property
    def anchor(self) -> Point | None:
        return self._anchor

    @property
    def regions(self) -> Mapping[RegionKind, Rectangle]:
        return MappingProxyType(self._regions)

    def rect(self, region: RegionKind) -> Rectangle:
        return self._regions[region]

    # ---- pointer input ----
    def set_mode(self, region: RegionKind) -> None:
        if self.dragging:
            raise EditorStateError("Cannot switch crop region while a drag is in progress")
        self._active = RegionKind.parse(region)

    def begin_drag(self, point: Point) -> None:
        if self.dragging:
            raise EditorStateError("A drag is already in progress")
        if not _finite(point):
            raise EditorStateError("Invalid pointer position")
        self._anchor = point
        self._regions[self._active] = Rectangle.at(point)
        self._phase = EditorPhase.DRAGGING

    def update_drag(self, point: Point) -> None:
        if not self.dragging or self._anchor is None or not _finite(point):
            return
        try:
            self._regions[self._active] = Rectangle.spanning(self._anchor, point)
        except ValueError:
            # span overflowed to inf; keep the last good rect
            return

    def end_drag(self) -> None:
        if not self.dragging:
            return
        self._phase = EditorPhase.IDLE
        self._anchor = None
        rect = self._regions[self._active]
        self._draft.set_crop(self._active, serialize(rect))
        _logger.debug("committed %s region: %s", self._active.value, rect)

    # ---- loading / validation ----
    def hydrate(self, serialized_photo: str, serialized_number: str) -> list[RegionKind]:
        """Load both regions from their persisted strings.

        A region that fails to parse falls back to an empty rect on its own;
        the other region still loads. Returns the regions that fell back.
        """
        failed: list[RegionKind] = []
        for region, text in ((RegionKind.PHOTO, serialized_photo), (RegionKind.NUMBER, serialized_number)):
            try:
                self._regions[region] = deserialize(text)
            except ParseError as e:
                _logger.debug("hydrate %s region failed, using empty rect: %s", region.value, e)
                self._regions[region] = Rectangle.ZERO
                failed.append(region)
        return failed

    def reset_regions(self) -> None:
        if self.dragging:
            raise EditorStateError("Cannot reset regions while a drag is in progress")
        for region in REGION_ORDER:
            self._regions[region] = Rectangle.ZERO
            self._draft.set_crop(region, "")

    def validate_for_submit(self) -> tuple[Rectangle, Rectangle]:
        for region in REGION_ORDER:
            if not self._regions[region].defined:
                raise RegionUndefinedError(region)
        return self._regions[RegionKind.PHOTO], self._regions[RegionKind.NUMBER]
