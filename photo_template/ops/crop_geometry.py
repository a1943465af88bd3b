from __future__ import annotations

import json
import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar

from photo_template.errors import ParseError

_FIELDS = ("x", "y", "width", "height")
# Bare object keys as written by hand: {x:10,y:10,width:100,height:150}
_BARE_KEY_RE = re.compile(r"([{,]\s*)([A-Za-z_][A-Za-z0-9_]*)\s*:")


class RegionKind(Enum):
    PHOTO = "photo"
    NUMBER = "number"

    @classmethod
    def parse(cls, value: object) -> RegionKind:
        if isinstance(value, RegionKind):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown region: {value!r}") from None


@dataclass(frozen=True, slots=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True, slots=True)
class Rectangle:
    """Canvas-local rect in (x, y, width, height) form."""

    x: float
    y: float
    width: float
    height: float

    ZERO: ClassVar[Rectangle]

    def __post_init__(self) -> None:
        if not all(map(math.isfinite, (self.x, self.y, self.width, self.height))):
            raise ValueError(f"Rectangle values must be finite, got {self.x},{self.y} {self.width}x{self.height}")
        if self.width < 0 or self.height < 0:
            raise ValueError(f"Rectangle size must be non-negative, got {self.width}x{self.height}")

    @property
    def defined(self) -> bool:
        return self.width > 0 and self.height > 0

    @property
    def x2(self) -> float:
        return self.x + self.width

    @property
    def y2(self) -> float:
        return self.y + self.height

    @classmethod
    def at(cls, point: Point) -> Rectangle:
        """Zero-size rect anchored at ``point``."""
        return cls(point.x, point.y, 0.0, 0.0)

    @classmethod
    def spanning(cls, anchor: Point, point: Point) -> Rectangle:
        """Rect spanned by two corners, whichever direction the drag went."""
        return cls(
            min(anchor.x, point.x),
            min(anchor.y, point.y),
            abs(point.x - anchor.x),
            abs(point.y - anchor.y),
        )

    def as_dict(self) -> dict[str, float]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


Rectangle.ZERO = Rectangle(0.0, 0.0, 0.0, 0.0)


def serialize(rect: Rectangle) -> str:
    """Encode a rect as the JSON object stored in the template's crop fields."""
    return json.dumps(rect.as_dict())


def _reject_constant(name: str) -> float:
    raise ParseError(f"Non-finite value in rectangle: {name}")


def _load_object(text: str) -> object:
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except ParseError:
        raise
    except RecursionError as e:
        raise ParseError("Rectangle is nested too deeply") from e
    except ValueError:
        # JSONDecodeError, or an integer literal over the digit limit
        pass
    relaxed = _BARE_KEY_RE.sub(r'\1"\2":', text)
    try:
        return json.loads(relaxed, parse_constant=_reject_constant)
    except ParseError:
        raise
    except RecursionError as e:
        raise ParseError("Rectangle is nested too deeply") from e
    except ValueError as e:
        raise ParseError(f"Malformed rectangle: {text[:80]!r}") from e


def deserialize(text: str) -> Rectangle:
    """Parse a serialized rect.

    Raises:
        ParseError: on empty/malformed text, missing or non-numeric fields,
            non-finite values or a negative size.
    """
    if not isinstance(text, str) or not text.strip():
        raise ParseError("Empty rectangle")

    data = _load_object(text.strip())
    if not isinstance(data, dict):
        raise ParseError(f"Rectangle must be an object: {text[:80]!r}")

    values: list[float] = []
    for key in _FIELDS:
        if key not in data:
            raise ParseError(f"Rectangle is missing '{key}'")
        v = data[key]
        # bool is an int subclass; "true" is not a coordinate
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise ParseError(f"Rectangle field '{key}' is not a number: {v!r}")
        try:
            f = float(v)
        except OverflowError:
            raise ParseError(f"Rectangle field '{key}' is out of range") from None
        if not math.isfinite(f):
            raise ParseError(f"Rectangle field '{key}' is not finite")
        values.append(f)

    try:
        return Rectangle(*values)
    except ValueError as e:
        raise ParseError(str(e)) from e
