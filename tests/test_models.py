"""Tests for item models."""

from pysnsync.models import Item, ItemReference, Note, Tag


class TestItemSerialization:
    def test_note_from_dict(self):
        item = Item.from_dict(
            {
                "uuid": "n1",
                "content_type": "Note",
                "updated_at": "2025-01-15T10:30:00.000000Z",
                "content": {"title": ".zshrc", "text": "export A=1"},
            }
        )
        assert isinstance(item, Note)
        assert item.title == ".zshrc"
        assert item.text == "export A=1"
        assert item.mtime is not None

    def test_tag_round_trip(self):
        tag = Tag.new("sync.config")
        tag.upsert_references([ItemReference(uuid="n1")])
        loaded = Item.from_dict(tag.to_dict())
        assert isinstance(loaded, Tag)
        assert loaded.title == "sync.config"
        assert loaded.note_uuids() == ["n1"]

    def test_unknown_type_kept_generic(self):
        item = Item.from_dict(
            {"uuid": "c1", "content_type": "SN|Component", "content": {"name": "x"}}
        )
        assert type(item) is Item
        assert item.to_dict()["content"] == {"name": "x"}


class TestTagReferences:
    def test_upsert_skips_existing(self):
        tag = Tag.new("sync")
        tag.upsert_references([ItemReference(uuid="a"), ItemReference(uuid="a")])
        tag.upsert_references([ItemReference(uuid="a"), ItemReference(uuid="b")])
        assert tag.note_uuids() == ["a", "b"]

    def test_remove_references(self):
        tag = Tag.new("sync")
        tag.upsert_references([ItemReference(uuid="a"), ItemReference(uuid="b")])
        assert tag.remove_references({"a"})
        assert not tag.remove_references({"zzz"})
        assert tag.note_uuids() == ["b"]

    def test_new_note_defaults(self):
        note = Note.new(".vimrc", "set nu")
        assert note.prefers_plain_editor
        assert note.created_at == note.updated_at
        assert note.uuid != Note.new(".vimrc", "").uuid
