"""Input validation run before any sync operation."""

import logging
import os
import stat

from ..exceptions import (
    InvalidInputError,
    LocalIOError,
    StructuralConflictError,
    UnsupportedPathTypeError,
)
from .index import HierarchyIndex
from .paths import composite_note_path, is_trackable_path, strip_root

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 10_240_000
"""Largest regular file (in bytes) that can be tracked"""


def preflight(root: str, paths: list[str]) -> list[str]:
    """Validate and tidy up the root directory and the paths provided.

    A leading ``~`` is expanded to ``root`` and relative paths are joined
    onto ``root``. Duplicate paths (including ones differing only by a
    trailing separator) are collapsed.

    Args:
        root: Mapping root directory
        paths: Paths as given by the user

    Returns:
        Sorted list of unique absolute paths

    Raises:
        InvalidInputError: If root is empty
        UnsupportedPathTypeError: If any path is of an unsupported type
        LocalIOError: If any path cannot be read
    """
    if not root:
        raise InvalidInputError("root undefined")

    result = sorted({expand_path(root, p) for p in paths})
    for path in result:
        path_valid(path)

    logger.debug(f"preflight | {len(result)} path(s) after dedupe")
    return result


def expand_path(root: str, path: str) -> str:
    """Expand ``~`` to root and make relative paths absolute under root."""
    if path.startswith("~"):
        path = root + path[1:]
    elif not os.path.isabs(path):
        path = os.path.join(root, path)
    return os.path.normpath(path)


def path_valid(path: str) -> bool:
    """Check that a path is a directory or a regular, not-too-large file.

    Raises:
        UnsupportedPathTypeError: For oversized files, symlinks, sockets,
            devices, named pipes and any other irregular type
        LocalIOError: If the path cannot be inspected
    """
    try:
        st = os.lstat(path)
    except OSError as e:
        raise LocalIOError(f"failed to read path: {path}: {e.strerror}") from e

    mode = st.st_mode
    if stat.S_ISREG(mode):
        if st.st_size > MAX_FILE_SIZE:
            raise UnsupportedPathTypeError(f"file too large: {path}")
        return True
    if stat.S_ISDIR(mode):
        return True
    if stat.S_ISLNK(mode):
        raise UnsupportedPathTypeError(f"symlink not supported: {path}")
    if stat.S_ISSOCK(mode):
        raise UnsupportedPathTypeError(f"sockets not supported: {path}")
    if stat.S_ISCHR(mode):
        raise UnsupportedPathTypeError(f"char device file not supported: {path}")
    if stat.S_ISBLK(mode):
        raise UnsupportedPathTypeError(f"device file not supported: {path}")
    if stat.S_ISFIFO(mode):
        raise UnsupportedPathTypeError(f"named pipe not supported: {path}")
    raise UnsupportedPathTypeError(f"unknown file type: {path}")


def check_trackable(root: str, path: str) -> None:
    """Fail unless a file path can be mapped to a tag and back unchanged.

    Raises:
        InvalidInputError: For paths outside root, paths whose first segment
            is not a dotfile, and nested directory names containing a dot
    """
    rel = strip_root(path, root)
    if rel == path or not is_trackable_path(rel):
        raise InvalidInputError(f"path cannot be tracked: {path}")


def check_note_tag_conflicts(index: HierarchyIndex) -> None:
    """Fail if any tag title overlaps the hierarchical path of a note.

    Raises:
        StructuralConflictError: Listing every overlapping entry
    """
    tag_paths = set(index.titles())
    note_paths: set[str] = set()

    for twn in index:
        for note in twn.notes:
            note_paths.add(composite_note_path(twn.tag.title, note.title))

    overlaps = sorted(tag_paths & note_paths)
    if overlaps:
        listing = "\n".join(f"- {o}" for o in overlaps)
        raise StructuralConflictError(
            f"the following notes and tags are overlapping:\n{listing}"
        )


def check_paths_exist(paths: list[str]) -> None:
    """Raise InvalidInputError for the first path that does not exist."""
    for path in paths:
        if not os.path.exists(path):
            raise InvalidInputError(f"failed to read path: {path}")


def discover_dotfiles(root: str) -> list[str]:
    """Top-level regular files in ``root`` whose names start with a dot."""
    try:
        entries = sorted(os.scandir(root), key=lambda e: e.name)
    except OSError as e:
        raise LocalIOError(f"failed to read directory: {root}: {e.strerror}") from e

    paths = []
    for entry in entries:
        if entry.name.startswith(".") and entry.is_file(follow_symlinks=False):
            paths.append(os.path.join(root, entry.name))

    logger.debug(f"discover_dotfiles | {len(paths)} dotfile(s) in {root}")
    return paths
