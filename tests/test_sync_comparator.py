"""Tests for comparing local paths with their notes."""

import os
import time
from datetime import datetime, timezone

import pytest

from pysnsync.exceptions import UnsupportedPathTypeError
from pysnsync.models import ItemReference, Note, Tag
from pysnsync.sync.comparator import DiffEngine, DiffState
from pysnsync.sync.index import HierarchyIndex, TagWithNotes


def note_at(title, text, unix_time):
    """Create a note whose modification time is ``unix_time``."""
    note = Note.new(title, text)
    note.updated_at = datetime.fromtimestamp(unix_time, tz=timezone.utc).isoformat()
    return note


def index_with(tree):
    index = HierarchyIndex()
    for title, notes in tree.items():
        tag = Tag.new(title)
        tag.upsert_references([ItemReference(uuid=n.uuid) for n in notes])
        index.add(TagWithNotes(tag=tag, notes=list(notes)))
    return index


def set_mtime(path, unix_time):
    os.utime(path, (unix_time, unix_time))


class TestDiffEngine:
    @pytest.fixture
    def now(self):
        return time.time()

    def test_identical_content(self, root, write_file, now):
        path = write_file(".gitconfig", "[user]")
        set_mtime(path, now - 100)
        index = index_with({"sync": [note_at(".gitconfig", "[user]", now)]})

        diffs = DiffEngine(root).compare(index, [])

        assert len(diffs) == 1
        assert diffs[0].state == DiffState.IDENTICAL
        assert diffs[0].root_rel_path == ".gitconfig"

    def test_local_newer(self, root, write_file, now):
        path = write_file(".gitconfig", "changed")
        set_mtime(path, now)
        index = index_with({"sync": [note_at(".gitconfig", "v1", now - 100)]})

        [diff] = DiffEngine(root).compare(index, [])

        assert diff.state == DiffState.LOCAL_NEWER
        assert diff.local == b"changed"
        assert diff.content_differs()

    def test_remote_newer(self, root, write_file, now):
        path = write_file(".gitconfig", "stale")
        set_mtime(path, now - 100)
        index = index_with({"sync": [note_at(".gitconfig", "fresh", now)]})

        [diff] = DiffEngine(root).compare(index, [])

        assert diff.state == DiffState.REMOTE_NEWER

    def test_missing_remote_time_counts_as_local_newer(self, root, write_file):
        write_file(".gitconfig", "local")
        note = Note.new(".gitconfig", "remote")
        note.updated_at = None
        index = index_with({"sync": [note]})

        [diff] = DiffEngine(root).compare(index, [])

        assert diff.state == DiffState.LOCAL_NEWER

    def test_local_missing(self, root, now):
        index = index_with(
            {"sync": [], "sync.config.fish": [note_at("config.fish", "x", now)]}
        )

        [diff] = DiffEngine(root).compare(index, [])

        assert diff.state == DiffState.LOCAL_MISSING
        assert diff.root_rel_path == ".config/fish/config.fish"
        assert diff.local is None

    def test_untracked_file(self, root, write_file):
        path = write_file(".bashrc")
        index = index_with({"sync": []})

        [diff] = DiffEngine(root).compare(index, [path])

        assert diff.state == DiffState.UNTRACKED
        assert diff.remote is None

    def test_directory_includes_untracked_files(self, root, home, write_file, now):
        tracked = write_file(".config/fish/config.fish", "x")
        set_mtime(tracked, now - 100)
        write_file(".config/fish/functions/ll.fish", "y")
        index = index_with(
            {
                "sync": [],
                "sync.config": [],
                "sync.config.fish": [note_at("config.fish", "x", now)],
            }
        )

        diffs = DiffEngine(root).compare(index, [str(home / ".config")])

        assert [(d.root_rel_path, d.state) for d in diffs] == [
            (".config/fish/config.fish", DiffState.IDENTICAL),
            (".config/fish/functions/ll.fish", DiffState.UNTRACKED),
        ]

    def test_directory_walk_rejects_symlinks(self, root, home, write_file):
        target = write_file(".config/real", "x")
        os.symlink(target, home / ".config" / "link")
        index = index_with({"sync": []})

        with pytest.raises(UnsupportedPathTypeError):
            DiffEngine(root).compare(index, [str(home / ".config")])

    def test_results_sorted_and_unique(self, root, home, write_file, now):
        for name in (".b", ".a"):
            set_mtime(write_file(name, name), now - 100)
        index = index_with(
            {"sync": [note_at(".b", ".b", now), note_at(".a", ".a", now)]}
        )

        diffs = DiffEngine(root).compare(index, [root, f"{root}/.a"])

        assert [d.root_rel_path for d in diffs] == [".a", ".b"]
