"""Tests for the generic JSON table client."""

import pytest

from simroom import storage


def test_unwritten_table_is_empty():
    assert storage.read_table("characters") == []


def test_unknown_table():
    with pytest.raises(KeyError):
        storage.read_table("spaceships")


def test_insert_get_update_delete():
    storage.insert_row("moods", {"id": "m1", "name": "Calm"})
    assert storage.get_row("moods", "m1") == {"id": "m1", "name": "Calm"}

    updated = storage.update_row("moods", "m1", {"name": "Serene"})
    assert updated["name"] == "Serene"
    assert storage.get_row("moods", "m1")["name"] == "Serene"

    assert storage.delete_row("moods", "m1") is True
    assert storage.delete_row("moods", "m1") is False
    assert storage.update_row("moods", "m1", {"name": "x"}) is None


def test_duplicate_id_rejected():
    storage.insert_row("moods", {"id": "m1"})
    with pytest.raises(ValueError):
        storage.insert_row("moods", {"id": "m1"})


def test_select_rows_filters_on_every_column():
    storage.insert_row("path_progress", {"id": "a", "path_id": "p", "user_identifier": "ann"})
    storage.insert_row("path_progress", {"id": "b", "path_id": "p", "user_identifier": "bob"})
    storage.insert_row("path_progress", {"id": "c", "path_id": "q", "user_identifier": "ann"})
    rows = storage.select_rows("path_progress", path_id="p", user_identifier="ann")
    assert [r["id"] for r in rows] == ["a"]


def test_upsert_keeps_identity_of_existing_row():
    storage.insert_row("path_progress", {"id": "a", "created_at": "t0", "path_id": "p", "n": 1})
    row = storage.upsert_row("path_progress", {"path_id": "p"}, {"id": "new", "created_at": "t1", "path_id": "p", "n": 2})
    assert row == {"id": "a", "created_at": "t0", "path_id": "p", "n": 2}
    assert len(storage.read_table("path_progress")) == 1


def test_upsert_inserts_when_nothing_matches():
    storage.upsert_row("path_progress", {"path_id": "p"}, {"id": "x", "path_id": "p"})
    assert storage.get_row("path_progress", "x") is not None
