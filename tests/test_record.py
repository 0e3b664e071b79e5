"""Record persistence, dirty tracking and lifecycle hooks."""

from typing import Annotated

import pytest
from pydantic import ValidationError

from versionic import Record, Serial, StoreNotInitialised, on

from .models import Article, Note


class HaltingNote(Record):
    id: Annotated[int | None, Serial()] = None
    text: str = ""


@on.save(HaltingNote)
def _refuse_empty(note):
    return bool(note.text)


@pytest.fixture
def tables(store):
    Note.auto_migrate()
    Article.auto_migrate()
    HaltingNote.auto_migrate()
    return store


class TestRecordState:
    def test_new_record_is_dirty(self):
        note = Note(text="hello")
        assert note.is_new
        assert not note.is_clean
        assert note.dirty_attributes == {"id": None, "text": "hello"}

    def test_create_assigns_serial_key(self, tables):
        note = Note.create(text="hello")
        assert note.id == 1
        assert note.key == (1,)
        assert note.is_clean

    def test_changes_tracked_until_save(self, tables):
        note = Note.create(text="hello")
        note.text = "bye"
        assert note.original_attributes == {"text": "hello"}
        assert note.dirty_attributes == {"text": "bye"}
        note.save()
        assert note.original_attributes == {}
        assert note.is_clean

    def test_reverting_a_change_makes_record_clean(self, tables):
        note = Note.create(text="hello")
        note.text = "bye"
        note.text = "hello"
        assert note.is_clean

    def test_original_value_kept_across_repeated_writes(self, tables):
        note = Note.create(text="one")
        note.text = "two"
        note.text = "three"
        assert note.original_attributes == {"text": "one"}

    def test_assignment_is_validated(self, tables):
        note = Note.create(text="hello")
        with pytest.raises(ValidationError):
            note.text = object()

    def test_discriminator_filled_with_class_name(self):
        assert Article().kind == "Article"
        assert Article(kind="Legacy").kind == "Legacy"


class TestRecordPersistence:
    def test_update_round_trip(self, tables):
        note = Note.create(text="hello")
        note.text = "bye"
        assert note.save() is True
        loaded = Note.get(note.id)
        assert loaded.text == "bye"
        assert loaded.is_clean

    def test_get_missing_returns_none(self, tables):
        assert Note.get(42) is None

    def test_get_checks_key_arity(self, tables):
        with pytest.raises(TypeError):
            Note.get(1, 2)

    def test_all_filters_and_orders(self, tables):
        for text in ("a", "b", "a"):
            Note.create(text=text)
        ids = [n.id for n in Note.all(order_by=(("id", True),), text="a")]
        assert ids == [3, 1]
        assert len(Note.all()) == 3
        assert Note.all(text="zzz").first() is None

    def test_collection_requeries_on_each_iteration(self, tables):
        notes = Note.all()
        assert list(notes) == []
        Note.create(text="late")
        assert [n.text for n in notes] == ["late"]

    def test_json_columns(self, tables):
        article = Article.create(headline="x", tags=["a", "b"])
        assert Article.get(article.id).tags == ["a", "b"]

    def test_clean_save_is_a_no_op(self, tables):
        note = Note.create(text="hello")
        assert note.save() is True
        assert len(Note.all()) == 1

    def test_before_save_handler_can_halt(self, tables):
        note = HaltingNote(text="")
        assert note.save() is False
        assert note.is_new
        assert len(HaltingNote.all()) == 0

        note.text = "ok"
        assert note.save() is True
        assert len(HaltingNote.all()) == 1


class TestRecordWithoutStore:
    def test_store_required(self, monkeypatch):
        monkeypatch.setattr(Record, "_store", None)
        with pytest.raises(StoreNotInitialised):
            Note(text="x").save()

    def test_versions_requires_versioning(self):
        with pytest.raises(AttributeError):
            Note().versions
