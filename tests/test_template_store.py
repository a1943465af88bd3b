from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from photo_template.errors import StoreError
from photo_template.store import DbOperator, TemplateStore
from photo_template.store.migrations import get_latest_version, get_user_version

_FIELDS = {
    "name": "ID Card",
    "crop_photo": "{x:10,y:10,width:100,height:150}",
    "crop_number": "{x:5,y:200,width:40,height:20}",
    "template_img": "/images/card.png",
}


@pytest.fixture()
def store(tmp_path: Path):
    s = TemplateStore(tmp_path / "db" / "templates.db")
    yield s
    s.close()


def test_new_database_is_migrated(tmp_path: Path) -> None:
    path = tmp_path / "fresh.db"
    TemplateStore(path).close()

    conn = sqlite3.connect(str(path))
    try:
        assert get_user_version(conn) == get_latest_version()
        cols = [r[1] for r in conn.execute("PRAGMA table_info(photo_templates)")]
    finally:
        conn.close()
    assert cols == ["id", "name", "crop_photo", "crop_number", "template_img"]


def test_create_list_get(store: TemplateStore) -> None:
    created = store.create(_FIELDS)
    assert created.id > 0
    assert created.name == "ID Card"

    assert store.list() == [created]
    assert store.get(created.id) == created


def test_ids_are_not_reused(store: TemplateStore) -> None:
    a = store.create(_FIELDS)
    store.delete(a.id)
    b = store.create(_FIELDS)
    assert b.id != a.id


def test_update_replaces_fields(store: TemplateStore) -> None:
    tpl = store.create(_FIELDS)
    updated = store.update(tpl.id, {**_FIELDS, "name": "Badge", "crop_number": ""})
    assert updated.id == tpl.id
    assert updated.name == "Badge"
    assert updated.crop_number == ""
    assert store.get(tpl.id) == updated


def test_delete_removes_row(store: TemplateStore) -> None:
    tpl = store.create(_FIELDS)
    store.delete(tpl.id)
    assert store.list() == []


@pytest.mark.parametrize("op", ["get", "update", "delete"])
def test_unknown_id_raises_store_error(store: TemplateStore, op: str) -> None:
    with pytest.raises(StoreError):
        if op == "update":
            store.update(404, _FIELDS)
        else:
            getattr(store, op)(404)


def test_required_fields_are_validated(store: TemplateStore) -> None:
    with pytest.raises(StoreError):
        store.create({**_FIELDS, "name": "  "})
    with pytest.raises(StoreError):
        store.create({**_FIELDS, "template_img": ""})
    with pytest.raises(StoreError):
        store.create({**_FIELDS, "color": "red"})
    assert store.list() == []


def test_invalid_id_type(store: TemplateStore) -> None:
    with pytest.raises(StoreError):
        store.get("abc")  # type: ignore[arg-type]


def test_store_can_share_an_operator(tmp_path: Path) -> None:
    path = tmp_path / "shared.db"
    op = DbOperator(path)
    try:
        store = TemplateStore(path, operator=op)
        store.create(_FIELDS)
        store.close()
        # The shared operator stays usable after the store is closed
        fut = op.schedule_read(lambda conn: conn.execute("SELECT count(*) FROM photo_templates").fetchone()[0])
        assert fut.result(timeout=2) == 1
    finally:
        op.shutdown()
