from __future__ import annotations

import contextlib
import sqlite3
from collections.abc import Mapping
from concurrent.futures import Future
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from photo_template.errors import StoreError
from photo_template.logger import get_logger

from .db_operator import DbOperator
from .migrations import apply_migrations

_logger = get_logger("store")

_FIELDS = ("name", "crop_photo", "crop_number", "template_img")
_SELECT = "SELECT id, name, crop_photo, crop_number, template_img FROM photo_templates"


@dataclass(frozen=True, slots=True)
class Template:
    id: int
    name: str
    crop_photo: str
    crop_number: str
    template_img: str

    @classmethod
    def from_row(cls, row: sqlite3.Row | tuple) -> Template:
        return cls(
            id=int(row[0]),
            name=str(row[1] or ""),
            crop_photo=str(row[2] or ""),
            crop_number=str(row[3] or ""),
            template_img=str(row[4] or ""),
        )


def _as_id(template_id: object) -> int:
    try:
        return int(template_id)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise StoreError(f"Invalid template id: {template_id!r}") from None


def _clean_fields(fields: Mapping[str, Any]) -> dict[str, str]:
    unknown = set(fields) - set(_FIELDS)
    if unknown:
        raise StoreError(f"Unknown template fields: {', '.join(sorted(unknown))}")
    out = {k: str(fields.get(k) or "") for k in _FIELDS}
    if not out["name"].strip():
        raise StoreError("Template name is required")
    if not out["template_img"].strip():
        raise StoreError("Template image is required")
    out["name"] = out["name"].strip()
    return out


class TemplateStore:
    """sqlite-backed photo template collection.

    All statements run on the DbOperator worker; public methods block on the
    returned future and translate failures into StoreError.

    Usage:
        with TemplateStore(path) as store:
            tpl = store.create({...})
            store.list()
    """

    def __init__(self, db_path: Path | str, operator: DbOperator | None = None):
        self._path = Path(db_path)
        self._operator_owned = operator is None
        if operator is None:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            operator = DbOperator(self._path)
        self._operator = operator
        self._wait(self._operator.schedule_write(apply_migrations), "migrating template store")

    @property
    def path(self) -> Path:
        return self._path

    def close(self) -> None:
        if self._operator_owned:
            with contextlib.suppress(RuntimeError):
                self._operator.shutdown()

    def __enter__(self) -> TemplateStore:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # pragma: no cover - trivial
        self.close()

    @staticmethod
    def _wait(fut: Future, what: str) -> Any:
        try:
            return fut.result()
        except StoreError:
            raise
        except (sqlite3.Error, OSError) as e:
            _logger.error("%s failed: %s", what, e)
            raise StoreError(f"Error {what}: {e}") from e

    # ---- queries ----
    def list(self) -> list[Template]:
        def _do(conn: sqlite3.Connection) -> list[Template]:
            rows = conn.execute(f"{_SELECT} ORDER BY id").fetchall()
            return [Template.from_row(r) for r in rows]

        return self._wait(self._operator.schedule_read(_do), "loading photo templates")

    def get(self, template_id: int) -> Template:
        tid = _as_id(template_id)

        def _do(conn: sqlite3.Connection) -> Template:
            row = conn.execute(f"{_SELECT} WHERE id = ?", (tid,)).fetchone()
            if row is None:
                raise StoreError(f"Photo template {template_id} not found")
            return Template.from_row(row)

        return self._wait(self._operator.schedule_read(_do), "loading photo template")

    # ---- mutations ----
    def create(self, fields: Mapping[str, Any]) -> Template:
        values = _clean_fields(fields)

        def _do(conn: sqlite3.Connection) -> Template:
            cur = conn.execute(
                "INSERT INTO photo_templates (name, crop_photo, crop_number, template_img) VALUES (?, ?, ?, ?)",
                tuple(values[k] for k in _FIELDS),
            )
            row = conn.execute(f"{_SELECT} WHERE id = ?", (cur.lastrowid,)).fetchone()
            return Template.from_row(row)

        tpl = self._wait(self._operator.schedule_write(_do), "inserting photo template")
        _logger.info("template created: id=%d name=%s", tpl.id, tpl.name)
        return tpl

    def update(self, template_id: int, fields: Mapping[str, Any]) -> Template:
        tid = _as_id(template_id)
        values = _clean_fields(fields)

        def _do(conn: sqlite3.Connection) -> Template:
            cur = conn.execute(
                "UPDATE photo_templates SET name = ?, crop_photo = ?, crop_number = ?, template_img = ? WHERE id = ?",
                (*(values[k] for k in _FIELDS), tid),
            )
            if cur.rowcount == 0:
                raise StoreError(f"Photo template {template_id} not found")
            row = conn.execute(f"{_SELECT} WHERE id = ?", (tid,)).fetchone()
            return Template.from_row(row)

        tpl = self._wait(self._operator.schedule_write(_do), "updating photo template")
        _logger.info("template updated: id=%d name=%s", tpl.id, tpl.name)
        return tpl

    def delete(self, template_id: int) -> None:
        tid = _as_id(template_id)

        def _do(conn: sqlite3.Connection) -> None:
            cur = conn.execute("DELETE FROM photo_templates WHERE id = ?", (tid,))
            if cur.rowcount == 0:
                raise StoreError("Photo template not found")

        self._wait(self._operator.schedule_write(_do), "deleting photo template")
        _logger.info("template deleted: id=%d", tid)
