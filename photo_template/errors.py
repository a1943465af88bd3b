"""Error taxonomy.

Every error carries a ``category`` so the backend can tag inline messages
without inspecting concrete types.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from photo_template.ops.crop_geometry import RegionKind


class PhotoTemplateError(Exception):
    category = "error"


class ValidationError(PhotoTemplateError):
    """Missing or invalid user input. Never reaches a collaborator."""

    category = "validation"


class InputValidationError(ValidationError):
    def __init__(self, field: str, message: str | None = None) -> None:
        self.field = field
        super().__init__(message or f"Missing required field: {field}")


class RegionUndefinedError(ValidationError):
    def __init__(self, region: RegionKind) -> None:
        self.region = region
        super().__init__(f"The {region.value} crop region must be drawn before saving")


class JobInProgressError(PhotoTemplateError):
    category = "validation"

    def __init__(self, job_id: str) -> None:
        self.job_id = job_id
        super().__init__("A generation job is already running")


class ParseError(PhotoTemplateError, ValueError):
    category = "parse"


class StoreError(PhotoTemplateError):
    category = "store"


class EngineError(PhotoTemplateError):
    category = "engine"


class OpenError(PhotoTemplateError):
    category = "open"


class EditorStateError(PhotoTemplateError):
    category = "state"


class ViewTransitionError(PhotoTemplateError):
    category = "state"
