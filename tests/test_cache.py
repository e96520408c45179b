"""Tests for the local item cache."""

import json

import pytest
from fakes import FakeItemStoreClient

from pysnsync.cache import CACHE_VERSION, CacheDB, ItemCache
from pysnsync.exceptions import InvalidInputError, InvalidSessionError, LocalIOError
from pysnsync.models import Note, Tag
from pysnsync.session import Session


class TestCacheDB:
    def test_load_missing_file(self, tmp_path):
        db = CacheDB.load(tmp_path / "none.json")
        assert db.items == {}
        assert db.sync_token is None

    def test_flush_and_load(self, tmp_path):
        path = tmp_path / "cache" / "db.json"
        db = CacheDB(path)
        note = Note.new(".zshrc", "export A=1")
        db.put([note, Tag.new("sync")])
        db.sync_token = "7"
        db.flush()

        loaded = CacheDB.load(path)

        assert loaded.sync_token == "7"
        assert loaded.items[note.uuid].text == "export A=1"
        assert isinstance(loaded.items[note.uuid], Note)
        assert loaded.dirty == set(db.items)

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "db.json"
        path.write_text("{not json")
        with pytest.raises(LocalIOError, match="Failed to read cache"):
            CacheDB.load(path)

    def test_unknown_version_ignored(self, tmp_path):
        path = tmp_path / "db.json"
        path.write_text(json.dumps({"version": CACHE_VERSION + 1, "items": []}))
        assert CacheDB.load(path).items == {}

    def test_select_skips_deleted_and_other_types(self, tmp_path):
        db = CacheDB(tmp_path / "db.json")
        live = Note.new(".a", "")
        gone = Note.new(".b", "")
        gone.deleted = True
        tag = Tag.new("sync")
        for item in (live, gone, tag):
            db.items[item.uuid] = item

        assert db.select(["Note"]) == [live]

    def test_put_stamps_and_marks_dirty(self, tmp_path):
        db = CacheDB(tmp_path / "db.json")
        note = Note.new(".a", "")
        note.updated_at = None
        db.put([note])
        assert note.updated_at is not None
        assert db.dirty_items() == [note]

    def test_close_is_idempotent(self, tmp_path):
        db = CacheDB(tmp_path / "db.json")
        db.close()
        db.close()
        assert db.closed
        assert (tmp_path / "db.json").exists()


class TestItemCache:
    def test_cache_path_per_account(self, store):
        a = Session(server="https://a", token="t1")
        b = Session(server="https://b", token="t1")
        assert store.cache_path(a) != store.cache_path(b)
        assert store.cache_path(a) == store.cache_path(Session("https://a", "t1"))

    def test_sync_requires_valid_session(self, store):
        with pytest.raises(InvalidSessionError):
            store.sync(Session(server="", token=""))

    def test_sync_pulls_remote_items(self, store, remote, session):
        note = Note.new(".a", "x")
        remote.seed([note])

        db = store.sync(session)

        assert list(db.items) == [note.uuid]
        assert db.sync_token == str(remote.counter)
        assert store.exists(session)

    def test_save_and_push(self, store, remote, session):
        db = store.sync(session)
        note = Note.new(".a", "x")

        store.save(session, db, [note])
        assert remote.live_items() == []

        store.sync(session, db, close=True)
        assert [i["uuid"] for i in remote.live_items()] == [note.uuid]
        assert db.dirty == set()
        assert db.closed

    def test_save_with_close_pushes(self, store, remote, session):
        db = store.sync(session)
        store.save(session, db, [Note.new(".a", "x")], close=True)
        assert len(remote.live_items()) == 1

    def test_pushed_deletions_dropped(self, store, remote, session):
        note = Note.new(".a", "x")
        remote.seed([note])
        db = store.sync(session)

        cached = db.items[note.uuid]
        cached.deleted = True
        store.save(session, db, [cached], close=True)

        assert note.uuid not in db.items
        assert remote.live_items() == []

    def test_remote_deletions_dropped(self, store, remote, session):
        note = Note.new(".a", "x")
        remote.seed([note])
        db = store.sync(session)

        note.deleted = True
        remote.seed([note])
        store.sync(session, db)

        assert note.uuid not in db.items

    def test_save_requires_items(self, store, session):
        db = store.sync(session)
        with pytest.raises(InvalidInputError, match="no items to save"):
            store.save(session, db, [])

    def test_client_closed_after_sync(self, tmp_path, remote, session):
        clients = []

        def factory(_session):
            client = FakeItemStoreClient(remote)
            clients.append(client)
            return client

        ItemCache(factory, tmp_path / "cache").sync(session)

        assert [c.closed for c in clients] == [True]
