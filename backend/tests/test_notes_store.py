import json
import uuid

import pytest

from notes_chat.errors import AuthorizationError, NotFoundError, ValidationError
from notes_chat.storage import notes_store
from notes_chat.storage.notes_store import Access, Note, require_ownership


def _clock(monkeypatch, start=1_700_000_000_000, step=1000):
    ticks = iter(range(start, start + step * 10_000, step))
    monkeypatch.setattr(notes_store, "_now_ms", lambda: next(ticks))


def test_create_trims_title_and_sets_timestamps(store):
    note = store.create_note("userA", "  Groceries  ", "milk, eggs")
    assert note.title == "Groceries"
    assert note.body == "milk, eggs"
    assert note.owner_id == "userA"
    assert note.created_at == note.updated_at
    assert store.get_note("userA", note.id) == note


def test_create_with_blank_title_stores_nothing(store):
    with pytest.raises(ValidationError):
        store.create_note("userA", "   \t ", "body")
    assert store.list_notes_for_owner("userA") == []


def test_list_is_newest_first_and_scoped_to_owner(store, monkeypatch):
    _clock(monkeypatch)
    first = store.create_note("userA", "first", "")
    second = store.create_note("userA", "second", "")
    store.create_note("userB", "other", "")

    assert [n.id for n in store.list_notes_for_owner("userA")] == [second.id, first.id]


@pytest.mark.parametrize("owner", ["", None, "../escape"])
def test_list_without_valid_owner_is_empty(store, owner):
    assert store.list_notes_for_owner(owner) == []


def test_update_replaces_content_and_bumps_updated_at(store, monkeypatch):
    _clock(monkeypatch)
    note = store.create_note("userA", "t1", "c1")
    updated = store.update_note("userA", note.id, "  t2 ", "c2")

    assert updated.title == "t2"
    assert updated.body == "c2"
    assert updated.created_at == note.created_at
    assert updated.updated_at > note.updated_at
    assert store.get_note("userA", note.id) == updated


def test_updated_at_increases_even_when_clock_stands_still(store, monkeypatch):
    monkeypatch.setattr(notes_store, "_now_ms", lambda: 5_000)
    note = store.create_note("userA", "t", "")
    once = store.update_note("userA", note.id, "t", "a")
    twice = store.update_note("userA", note.id, "t", "b")
    assert note.updated_at < once.updated_at < twice.updated_at
    assert twice.created_at == 5_000


def test_update_with_blank_title_keeps_record(store):
    note = store.create_note("userA", "keep", "body")
    with pytest.raises(ValidationError):
        store.update_note("userA", note.id, "  ", "changed")
    assert store.get_note("userA", note.id) == note


def test_non_owner_cannot_update_or_delete(store):
    note = store.create_note("userA", "Groceries", "milk, eggs")

    with pytest.raises(AuthorizationError):
        store.update_note("userB", note.id, "hacked", "hacked")
    with pytest.raises(AuthorizationError):
        store.delete_note("userB", note.id)
    with pytest.raises(AuthorizationError):
        store.get_note("userB", note.id)

    assert store.get_note("userA", note.id) == note


def test_unknown_or_malformed_id_is_not_found(store):
    with pytest.raises(NotFoundError):
        store.update_note("userA", str(uuid.uuid4()), "t", "b")
    with pytest.raises(NotFoundError):
        store.delete_note("userA", "not-a-uuid")
    with pytest.raises(NotFoundError):
        store.get_note("userA", "*")


def test_delete_is_permanent(store):
    note = store.create_note("userA", "t", "b")
    store.delete_note("userA", note.id)
    assert store.list_notes_for_owner("userA") == []
    with pytest.raises(NotFoundError):
        store.delete_note("userA", note.id)


def test_delete_racing_another_delete_is_not_found(store, tmp_path, monkeypatch):
    note = store.create_note("userA", "t", "b")
    # the other delete wins between the lookup and the unlink
    (tmp_path / "users" / "userA" / "notes" / f"{note.id}.json").unlink()
    monkeypatch.setattr(store, "_find", lambda note_id: note)

    with pytest.raises(NotFoundError):
        store.delete_note("userA", note.id)


def test_notes_created_in_the_same_millisecond_list_in_a_stable_order(store, monkeypatch):
    monkeypatch.setattr(notes_store, "_now_ms", lambda: 1_700_000_000_000)
    ids = [store.create_note("userA", f"n{i}", "").id for i in range(5)]

    listed = [n.id for n in store.list_notes_for_owner("userA")]
    assert listed == sorted(ids, reverse=True)
    assert [n.id for n in store.list_notes_for_owner("userA")] == listed


def test_recent_notes_are_capped_truncated_and_newest_first(store, monkeypatch):
    _clock(monkeypatch)
    created = [store.create_note("userA", f"note {i}", "x" * 500) for i in range(12)]

    recent = store.get_recent_notes_for_context("userA")

    assert len(recent) == 10
    assert [n.id for n in recent] == [n.id for n in reversed(created)][:10]
    assert all(len(n.body) == 300 for n in recent)
    assert len(store.get_recent_notes_for_context("userA", limit=50)) == 10
    assert len(store.get_recent_notes_for_context("userA", limit=3)) == 3


def test_recent_notes_keep_short_bodies_intact(store):
    store.create_note("userA", "short", "milk, eggs")
    (recent,) = store.get_recent_notes_for_context("userA")
    assert recent.body == "milk, eggs"


def test_record_without_created_at_falls_back_to_file_time(store, tmp_path):
    note_id = str(uuid.uuid4())
    path = tmp_path / "users" / "userA" / "notes" / f"{note_id}.json"
    path.parent.mkdir(parents=True)
    path.write_text(
        json.dumps({"id": note_id, "owner_id": "userA", "title": "legacy", "body": "old"}),
        encoding="utf-8",
    )

    (legacy,) = store.list_notes_for_owner("userA")
    assert legacy.created_at == int(path.stat().st_mtime * 1000)
    assert legacy.updated_at == legacy.created_at


def test_corrupt_files_are_skipped(store, tmp_path):
    store.create_note("userA", "good", "")
    bad = tmp_path / "users" / "userA" / "notes" / f"{uuid.uuid4()}.json"
    bad.write_text("{not json", encoding="utf-8")

    assert [n.title for n in store.list_notes_for_owner("userA")] == ["good"]


def test_require_ownership_tags():
    note = Note(id="n1", owner_id="userA", title="t", body="", created_at=1, updated_at=1)
    assert require_ownership(note, "userA") is Access.GRANTED
    assert require_ownership(note, "userB") is Access.FORBIDDEN
    assert require_ownership(note, "") is Access.FORBIDDEN
    assert require_ownership(None, "userA") is Access.NOT_FOUND
