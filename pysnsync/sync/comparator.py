"""Comparison of local paths against their remote notes."""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..exceptions import LocalIOError
from ..models import Note
from .index import HierarchyIndex, TagWithNotes
from .operations import read_local
from .paths import note_path, path_to_tag, split_note_path, strip_root
from .preflight import path_valid

logger = logging.getLogger(__name__)


class DiffState(str, Enum):
    """How a local path relates to its remote note."""

    IDENTICAL = "identical"
    """Local content matches the note"""

    LOCAL_NEWER = "local newer"
    """Local file changed after the note"""

    REMOTE_NEWER = "remote newer"
    """Note changed after the local file"""

    LOCAL_MISSING = "local missing"
    """Note exists but the local file does not"""

    UNTRACKED = "untracked"
    """Local file without a note"""


@dataclass
class ItemDiff:
    """Comparison result for one local path."""

    tag_title: str
    """Hierarchical title of the enclosing tag ("" if untracked)"""

    note_title: str
    """Note title, i.e. the file's basename ("" if untracked)"""

    path: str
    """Absolute filesystem path"""

    root_rel_path: str
    """Path relative to the mapping root"""

    state: DiffState
    """Comparison outcome"""

    remote: Optional[Note] = None
    """Matched remote note"""

    local: Optional[bytes] = None
    """Local file content, if the file exists"""

    def content_differs(self) -> bool:
        """True if local and remote content are not byte-for-byte equal."""
        if self.remote is None:
            return False
        return (self.local or b"") != self.remote.text.encode("utf-8")


class DiffEngine:
    """Computes ItemDiffs for local paths against a HierarchyIndex."""

    def __init__(self, root: str):
        """Initialize the diff engine.

        Args:
            root: Mapping root directory
        """
        self.root = root.rstrip(os.sep) or os.sep

    def compare(self, index: HierarchyIndex, paths: list[str]) -> list[ItemDiff]:
        """Compare paths against the index.

        Args:
            index: Hierarchy index of remote tags and notes
            paths: Absolute, preflighted paths; empty means every tracked note

        Returns:
            ItemDiffs sorted by root-relative path, one per path

        Raises:
            LocalIOError: If reading or walking the filesystem fails
            UnsupportedPathTypeError: If the walk meets an unsupported path
        """
        diffs: dict[str, ItemDiff] = {}

        if not paths:
            logger.debug("compare | no paths given, comparing every tracked note")
            self._compare_entries(list(index), diffs)
        else:
            for path in paths:
                if os.path.isdir(path):
                    self._compare_directory(index, path, diffs)
                else:
                    self._compare_file(index, path, diffs)

        logger.debug(f"compare | {len(diffs)} diff(s) generated")
        return sorted(diffs.values(), key=lambda d: d.root_rel_path)

    def _compare_entries(
        self, entries: list[TagWithNotes], diffs: dict[str, ItemDiff]
    ) -> None:
        for entry in entries:
            for note in entry.notes:
                diff = self._compare_note(entry.tag.title, note)
                diffs[diff.path] = diff

    def _compare_directory(
        self, index: HierarchyIndex, path: str, diffs: dict[str, ItemDiff]
    ) -> None:
        """Compare every note beneath a directory, then find untracked files."""
        rel = strip_root(path, self.root)
        if rel == "":
            entries = list(index)
        else:
            entries = index.descendants(path_to_tag(rel))
        logger.debug(f"compare | directory {rel or '.'}: {len(entries)} tag(s)")

        self._compare_entries(entries, diffs)
        self._find_untracked(path, diffs)

    def _compare_file(
        self, index: HierarchyIndex, path: str, diffs: dict[str, ItemDiff]
    ) -> None:
        tag_title, note_title = split_note_path(path, self.root)
        notes = index.notes_with_title(tag_title, note_title)

        if not notes:
            logger.debug(f"compare | file is untracked: {path}")
            diffs[path] = self._untracked(path)
            return

        for note in notes:
            diff = self._compare_note(tag_title, note)
            diffs[diff.path] = diff

    def _compare_note(self, tag_title: str, note: Note) -> ItemDiff:
        """Determine the state of one tracked note."""
        path = note_path(tag_title, note.title, self.root)
        diff = ItemDiff(
            tag_title=tag_title,
            note_title=note.title,
            path=path,
            root_rel_path=strip_root(path, self.root),
            state=DiffState.IDENTICAL,
            remote=note,
        )

        if not os.path.lexists(path):
            diff.state = DiffState.LOCAL_MISSING
            return diff

        diff.local = read_local(path)
        if diff.local == note.text.encode("utf-8"):
            return diff

        try:
            local_mtime = os.stat(path).st_mtime
        except OSError as e:
            raise LocalIOError(f"failed to read {path}: {e.strerror}") from e
        remote_mtime = note.mtime

        if remote_mtime is None or local_mtime > remote_mtime:
            diff.state = DiffState.LOCAL_NEWER
        elif remote_mtime > local_mtime:
            diff.state = DiffState.REMOTE_NEWER

        logger.debug(f"compare | {diff.root_rel_path}: {diff.state.value}")
        return diff

    def _untracked(self, path: str) -> ItemDiff:
        return ItemDiff(
            tag_title="",
            note_title="",
            path=path,
            root_rel_path=strip_root(path, self.root),
            state=DiffState.UNTRACKED,
        )

    def _find_untracked(self, directory: str, diffs: dict[str, ItemDiff]) -> None:
        """Walk a directory adding every file without a note as untracked."""

        def on_error(err: OSError) -> None:
            raise LocalIOError(
                f"failed to read path {err.filename}: {err.strerror}"
            ) from err

        for dirpath, dirnames, filenames in os.walk(directory, onerror=on_error):
            dirnames.sort()
            for name in dirnames:
                path_valid(os.path.join(dirpath, name))
            for name in sorted(filenames):
                path = os.path.join(dirpath, name)
                if path in diffs:
                    continue
                path_valid(path)
                logger.debug(f"compare | file is untracked: {path}")
                diffs[path] = self._untracked(path)
