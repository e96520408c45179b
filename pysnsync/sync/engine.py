"""Core sync engine reconciling local dotfiles with remote notes."""

import logging
import os
from dataclasses import asdict, dataclass, field
from typing import Optional

from ..cache import CacheDB, ItemCache
from ..cli_progress import SpinnerDisplay
from ..exceptions import (
    DuplicateItemError,
    InvalidInputError,
    InvalidSessionError,
    LocalIOError,
    UnsupportedPathTypeError,
)
from ..models import NOTE_CONTENT_TYPE, Item, ItemReference, Note
from ..output import OutputFormatter
from ..session import Session
from ..utils import format_columns
from .comparator import DiffEngine, DiffState, ItemDiff
from .index import HierarchyIndex, build_index
from .operations import (
    find_diff_binary,
    read_local,
    render_content_diff,
    write_local,
)
from .paths import (
    ROOT_TAG,
    path_to_tag,
    split_note_path,
    strip_root,
    tag_title_to_fs_dir,
)
from .preflight import (
    check_note_tag_conflicts,
    check_paths_exist,
    check_trackable,
    discover_dotfiles,
    expand_path,
    path_valid,
    preflight,
)
from .tags import create_missing_tags, find_empty_tags

logger = logging.getLogger(__name__)

# Roots that would put far too much under tracking
UNSAFE_ROOTS = ("/", "/home")

MSG_NOT_TRACKING = "no items being tracked"
MSG_NO_DIFFERENCES = "no differences found"
MSG_NOTHING_TO_DO = "nothing to do"


@dataclass
class AddResult:
    """Outcome of an add operation."""

    tags_pushed: int = 0
    notes_pushed: int = 0
    paths_added: list[str] = field(default_factory=list)
    paths_existing: list[str] = field(default_factory=list)
    msg: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class RemoveResult:
    """Outcome of a remove operation."""

    notes_removed: int = 0
    tags_removed: int = 0
    not_tracked: int = 0
    msg: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class SyncResult:
    """Outcome of a sync operation."""

    pushed: list[str] = field(default_factory=list)
    pulled: list[str] = field(default_factory=list)
    msg: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


def _decode(content: bytes, path: str) -> str:
    try:
        return content.decode("utf-8")
    except UnicodeDecodeError as e:
        raise UnsupportedPathTypeError(f"file is not valid UTF-8 text: {path}") from e


def matches_paths_to_exclude(root: str, rel_path: str, exclude: list[str]) -> bool:
    """True if a root-relative path equals, or is beneath, an excluded path."""
    for excluded in exclude:
        rel_excluded = strip_root(excluded, root).rstrip(os.sep)
        if not rel_excluded:
            return True
        if rel_path == rel_excluded or rel_path.startswith(rel_excluded + os.sep):
            return True
    return False


class SyncEngine:
    """Orchestrates add, remove, status, diff, sync and wipe."""

    def __init__(self, store: ItemCache, output: Optional[OutputFormatter] = None):
        """Initialize sync engine.

        Args:
            store: Cache collaborator mirroring the remote item store
            output: Output formatter for styling and writing results
        """
        self.store = store
        self.output = output or OutputFormatter()

    # =========================================================================
    # Shared steps
    # =========================================================================

    def _spinner(self, description: str) -> SpinnerDisplay:
        enabled = not (self.output.quiet or self.output.json_output)
        return SpinnerDisplay(description, enabled=enabled)

    def _validate(self, session: Session, root: str) -> None:
        if not session.valid():
            raise InvalidSessionError("invalid session")
        if not root:
            raise InvalidInputError("root undefined")

    def _open(self, session: Session) -> tuple[CacheDB, HierarchyIndex]:
        """Sync the cache, then index it and check its structure."""
        description = "syncing" if self.store.exists(session) else "initializing"
        with self._spinner(description):
            db = self.store.sync(session)

        index = build_index(db, session)
        check_note_tag_conflicts(index)
        return db, index

    def _commit(self, session: Session, db: CacheDB, items: list[Item]) -> None:
        """Save items into the cache and push them remotely."""
        self.store.save(session, db, items)
        with self._spinner("syncing"):
            self.store.sync(session, db, close=True)

    def _row(self, rel_path: str, state: str) -> str:
        return f"{self.output.bold(rel_path)} | {self.output.colour_state(state)}"

    # =========================================================================
    # Add
    # =========================================================================

    def add(
        self,
        session: Session,
        root: str,
        paths: list[str],
        all_dotfiles: bool = False,
    ) -> AddResult:
        """Start tracking paths, creating notes and any missing tags.

        Args:
            session: Session for the item store
            root: Mapping root directory
            paths: Files or directories to track
            all_dotfiles: Track every top-level dotfile in root instead

        Returns:
            AddResult describing what was pushed

        Raises:
            InvalidInputError: For an unsafe root, missing paths, paths given
                together with all_dotfiles, or paths that cannot be mapped
                to tags
            DuplicateItemError: If a path already has more than one note
        """
        self._validate(session, root)
        if (root.rstrip(os.sep) or os.sep) in UNSAFE_ROOTS:
            raise InvalidInputError(f"not a good idea to use '{root}' as root dir")

        no_recurse = False
        if all_dotfiles:
            if paths:
                raise InvalidInputError(
                    "specifying --all and paths does not make sense"
                )
            paths = discover_dotfiles(root)
            no_recurse = True
        if not paths:
            raise InvalidInputError("paths not defined")

        paths = preflight(root, paths)
        fs_paths = self._local_fs_paths(paths, no_recurse)
        for path in fs_paths:
            check_trackable(root, path)

        result = AddResult()
        if not fs_paths:
            return result

        db, index = self._open(session)
        tag_to_notes, lines = self._generate_tag_note_map(fs_paths, root, index, result)
        if not index.tag_exists(ROOT_TAG):
            tag_to_notes.setdefault(ROOT_TAG, [])

        items = self._push_and_tag(tag_to_notes, index)
        if items:
            self._commit(session, db, items)
        else:
            db.close()

        result.notes_pushed = sum(1 for i in items if isinstance(i, Note))
        result.tags_pushed = len(items) - result.notes_pushed
        result.msg = format_columns(lines)
        logger.debug(
            f"add | pushed {result.notes_pushed} note(s), {result.tags_pushed} tag(s)"
        )
        return result

    def _local_fs_paths(self, paths: list[str], no_recurse: bool) -> list[str]:
        """Expand directories into the files beneath them."""

        def on_error(err: OSError) -> None:
            raise LocalIOError(
                f"failed to read path {err.filename}: {err.strerror}"
            ) from err

        found: set[str] = set()
        for path in paths:
            if not os.path.isdir(path):
                found.add(path)
                continue
            if no_recurse:
                continue
            for dirpath, dirnames, filenames in os.walk(path, onerror=on_error):
                for name in dirnames:
                    path_valid(os.path.join(dirpath, name))
                for name in filenames:
                    file_path = os.path.join(dirpath, name)
                    path_valid(file_path)
                    found.add(file_path)

        return sorted(found)

    def _generate_tag_note_map(
        self,
        fs_paths: list[str],
        root: str,
        index: HierarchyIndex,
        result: AddResult,
    ) -> tuple[dict[str, list[Note]], list[str]]:
        """Group new notes by the tag that will hold them.

        Every path is checked before anything is created, so a duplicate
        fails the whole batch.
        """
        tag_to_notes: dict[str, list[Note]] = {}
        existing_lines = []
        added_lines = []

        for path in fs_paths:
            tag_title, note_title = split_note_path(path, root)
            rel = strip_root(path, root)

            count = index.note_with_tag_exists(tag_title, note_title)
            if count > 1:
                raise DuplicateItemError(
                    f"duplicate items found with name '{note_title}' "
                    f"and tag '{tag_title}'"
                )
            if count == 1:
                result.paths_existing.append(path)
                existing_lines.append(self._row(rel, "already tracked"))
                continue

            note = Note.new(note_title, _decode(read_local(path), path))
            tag_to_notes.setdefault(tag_title, []).append(note)
            result.paths_added.append(path)
            added_lines.append(self._row(rel, "now tracked"))

        return tag_to_notes, existing_lines + added_lines

    def _push_and_tag(
        self, tag_to_notes: dict[str, list[Note]], index: HierarchyIndex
    ) -> list[Item]:
        """Create missing tags and reference the new notes from them."""
        pushed: dict[str, Item] = {}

        for title in sorted(tag_to_notes):
            notes = tag_to_notes[title]
            for tag in create_missing_tags(title, index):
                pushed[tag.uuid] = tag

            if not notes:
                continue

            entry = index.get(title)
            entry.tag.upsert_references(
                [ItemReference(n.uuid, NOTE_CONTENT_TYPE) for n in notes]
            )
            entry.notes.extend(notes)
            pushed[entry.tag.uuid] = entry.tag
            for note in notes:
                pushed[note.uuid] = note

        return list(pushed.values())

    # =========================================================================
    # Remove
    # =========================================================================

    def remove(self, session: Session, root: str, paths: list[str]) -> RemoveResult:
        """Stop tracking paths, deleting their notes and any emptied tags.

        Args:
            session: Session for the item store
            root: Mapping root directory
            paths: Files or directories to stop tracking

        Returns:
            RemoveResult with counts and a report
        """
        self._validate(session, root)
        if not paths:
            raise InvalidInputError("paths not defined")

        paths = preflight(root, paths)
        db, index = self._open(session)

        result = RemoveResult()
        notes_to_remove: dict[str, Note] = {}
        removed_rel_paths: set[str] = set()
        not_tracked_lines = []

        for path in paths:
            rel, rel_paths, notes = self._notes_to_remove(path, root, index)
            if not notes:
                result.not_tracked += 1
                not_tracked_lines.append(self._row(rel, "not tracked"))
                continue
            for note in notes:
                notes_to_remove[note.uuid] = note
            removed_rel_paths.update(rel_paths)

        lines = [self._row(p, "removed") for p in sorted(removed_rel_paths)]
        result.msg = format_columns(lines + not_tracked_lines)

        if not notes_to_remove:
            db.close()
            return result

        removed_notes = list(notes_to_remove.values())
        empty_tags = find_empty_tags(index, removed_notes)
        empty_uuids = {tag.uuid for tag in empty_tags}

        items: list[Item] = []
        for note in removed_notes:
            note.deleted = True
            items.append(note)
        for tag in empty_tags:
            tag.deleted = True
            items.append(tag)

        # Surviving tags must not keep pointing at deleted notes
        for entry in index:
            if entry.tag.uuid in empty_uuids:
                continue
            if entry.tag.remove_references(set(notes_to_remove)):
                items.append(entry.tag)

        self._commit(session, db, items)

        result.notes_removed = len(removed_notes)
        result.tags_removed = len(empty_tags)
        result.msg += (
            f"\n\n{result.notes_removed} note(s) removed, "
            f"{result.tags_removed} tag(s) removed"
        )
        logger.debug(
            f"remove | {result.notes_removed} note(s), {result.tags_removed} tag(s)"
        )
        return result

    def _notes_to_remove(
        self, path: str, root: str, index: HierarchyIndex
    ) -> tuple[str, list[str], list[Note]]:
        """Notes tracked for a file, or for everything under a directory."""
        rel = strip_root(path, root)

        if not os.path.isdir(path):
            tag_title, note_title = split_note_path(path, root)
            notes = index.notes_with_title(tag_title, note_title)
            return rel, [rel] if notes else [], notes

        entries = list(index) if rel == "" else index.descendants(path_to_tag(rel))
        rel_paths = []
        notes = []
        for entry in entries:
            directory = tag_title_to_fs_dir(entry.tag.title, root)
            for note in entry.notes:
                rel_paths.append(strip_root(os.path.join(directory, note.title), root))
                notes.append(note)
        return rel, rel_paths, notes

    # =========================================================================
    # Status and diff
    # =========================================================================

    def _compare(
        self, session: Session, root: str, paths: list[str]
    ) -> Optional[list[ItemDiff]]:
        """Compare paths with their notes; None when nothing is tracked."""
        self._validate(session, root)
        paths = preflight(root, paths) if paths else []

        db, index = self._open(session)
        db.close()

        if len(index) == 0:
            return None
        return DiffEngine(root).compare(index, paths)

    def status(
        self, session: Session, root: str, paths: Optional[list[str]] = None
    ) -> tuple[list[ItemDiff], str]:
        """Report the state of each tracked (or given) path.

        Returns:
            Tuple of ItemDiffs and a formatted report
        """
        diffs = self._compare(session, root, paths or [])
        if diffs is None:
            return [], MSG_NOT_TRACKING

        lines = [self._row(d.root_rel_path, d.state.value) for d in diffs]
        return diffs, format_columns(lines)

    def diff(
        self, session: Session, root: str, paths: Optional[list[str]] = None
    ) -> tuple[list[ItemDiff], str]:
        """Like status, but also write a line diff for each divergent item.

        Returns:
            Tuple of divergent ItemDiffs and a formatted report
        """
        diffs = self._compare(session, root, paths or [])
        if diffs is None:
            return [], MSG_NOT_TRACKING

        divergent = [d for d in diffs if d.content_differs()]
        if not divergent:
            return [], MSG_NO_DIFFERENCES

        binary = find_diff_binary()
        for item in divergent:
            delta = render_content_diff(item.local or b"", item.remote.text, binary)
            self.output.print(self.output.bold(item.root_rel_path))
            self.output.print(delta)

        lines = [self._row(d.root_rel_path, d.state.value) for d in divergent]
        return divergent, format_columns(lines)

    # =========================================================================
    # Sync
    # =========================================================================

    def sync(
        self,
        session: Session,
        root: str,
        paths: Optional[list[str]] = None,
        exclude: Optional[list[str]] = None,
    ) -> SyncResult:
        """Push newer local files and pull newer or missing notes.

        Args:
            session: Session for the item store
            root: Mapping root directory
            paths: Limit the sync to these paths (all tracked paths if empty)
            exclude: Paths to skip, along with everything beneath them

        Returns:
            SyncResult listing pushed and pulled root-relative paths
        """
        self._validate(session, root)
        exclude = [expand_path(root, p) for p in exclude or []]
        check_paths_exist(exclude)
        paths = preflight(root, paths) if paths else []

        db, index = self._open(session)
        result = SyncResult()
        if len(index) == 0:
            db.close()
            result.msg = MSG_NOT_TRACKING
            return result

        diffs = DiffEngine(root).compare(index, paths)

        to_push: list[ItemDiff] = []
        to_pull: list[ItemDiff] = []
        for item in diffs:
            if exclude and matches_paths_to_exclude(root, item.root_rel_path, exclude):
                logger.debug(f"sync | excluding: {item.root_rel_path}")
                continue
            if item.state == DiffState.LOCAL_NEWER:
                to_push.append(item)
            elif item.state in (DiffState.LOCAL_MISSING, DiffState.REMOTE_NEWER):
                to_pull.append(item)

        if not to_push and not to_pull:
            db.close()
            result.msg = MSG_NOTHING_TO_DO
            return result

        if to_push:
            for item in to_push:
                item.remote.text = _decode(item.local or b"", item.path)
            self.store.save(session, db, [item.remote for item in to_push])

        for item in to_pull:
            logger.debug(f"sync | writing: {item.path}")
            write_local(item.path, item.remote.text)

        if to_push:
            with self._spinner("syncing"):
                self.store.sync(session, db, close=True)
        else:
            db.close()

        result.pushed = [item.root_rel_path for item in to_push]
        result.pulled = [item.root_rel_path for item in to_pull]
        lines = [self._row(p, "pushed") for p in result.pushed]
        lines += [self._row(p, "pulled") for p in result.pulled]
        result.msg = format_columns(lines)
        return result

    # =========================================================================
    # Wipe
    # =========================================================================

    def wipe(self, session: Session) -> int:
        """Delete every tracked tag and every note they reference.

        Returns:
            Number of items deleted
        """
        if not session.valid():
            raise InvalidSessionError("invalid session")

        db, index = self._open(session)

        items: dict[str, Item] = {}
        for entry in index:
            entry.tag.deleted = True
            items[entry.tag.uuid] = entry.tag
            for note in entry.notes:
                note.deleted = True
                items[note.uuid] = note

        if not items:
            db.close()
            return 0

        self._commit(session, db, list(items.values()))
        logger.debug(f"wipe | deleted {len(items)} item(s)")
        return len(items)
