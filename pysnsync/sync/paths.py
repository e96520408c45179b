"""Mapping between filesystem paths and hierarchical tag titles.

Tracked paths live below a mapping root (usually the home directory). A
directory ``<root>/.config/git`` is represented by the tag ``sync.config.git``:
the root sentinel, then each directory segment, with the leading dot of the
first segment implied.
"""

import os

from ..exceptions import InvalidInputError

ROOT_TAG = "sync"
"""Tag title denoting the mapping root"""

TAG_SEPARATOR = "."


def add_dot(name: str) -> str:
    """Ensure a name carries a leading dot."""
    if not name.startswith("."):
        return "." + name
    return name


def strip_dot(name: str) -> str:
    """Remove a single leading dot."""
    if name.startswith("."):
        return name[1:]
    return name


def strip_root(path: str, root: str) -> str:
    """Return ``path`` relative to ``root``.

    Paths outside the root are returned unchanged; the root itself maps to
    an empty string.
    """
    root = root.rstrip(os.sep)
    if not root:
        return path
    if path == root or path == root + os.sep:
        return ""
    if path.startswith(root + os.sep):
        return path[len(root) + 1 :]
    return path


def is_trackable_path(root_rel_path: str) -> bool:
    """True if a root-relative file path survives the trip to a tag and back.

    The first segment must start with a dot. Directory names after that dot
    may not be empty or contain the tag separator.

    Examples:
        >>> is_trackable_path(".config/fish/config.fish")
        True
        >>> is_trackable_path("notes/todo.txt")
        False
        >>> is_trackable_path(".config/.hidden/f")
        False
    """
    parts = root_rel_path.strip(os.sep).split(os.sep)
    if not parts[0].startswith("."):
        return False

    dirs = parts[:-1]
    if dirs:
        dirs[0] = strip_dot(dirs[0])
    return all(d and TAG_SEPARATOR not in d for d in dirs)


def is_tracked_tag(title: str) -> bool:
    """True for the root sentinel and every tag beneath it."""
    return title == ROOT_TAG or title.startswith(ROOT_TAG + TAG_SEPARATOR)


def path_to_tag(root_rel_dir: str) -> str:
    """Convert a root-relative directory to its tag title.

    Examples:
        >>> path_to_tag("")
        'sync'
        >>> path_to_tag(".cars/mercedes/a250/")
        'sync.cars.mercedes.a250'
    """
    rel = strip_dot(root_rel_dir.strip(os.sep))
    if not rel:
        return ROOT_TAG
    title = ROOT_TAG + TAG_SEPARATOR + rel.replace(os.sep, TAG_SEPARATOR)
    return title.rstrip(TAG_SEPARATOR)


def tag_title_to_fs_dir(title: str, root: str) -> str:
    """Convert a tag title back to the directory it mirrors.

    Raises:
        InvalidInputError: If title or root is empty, or the title is not
            beneath the root sentinel
    """
    if not title:
        raise InvalidInputError("tag title required")
    if not root:
        raise InvalidInputError("root directory required")
    if not is_tracked_tag(title):
        raise InvalidInputError(f"tag '{title}' is not under '{ROOT_TAG}'")

    root = root.rstrip(os.sep) or os.sep
    if title == ROOT_TAG:
        return root

    rel = title[len(ROOT_TAG) + 1 :].replace(TAG_SEPARATOR, os.sep)
    return os.path.join(root, add_dot(rel))


def split_note_path(path: str, root: str) -> tuple[str, str]:
    """Resolve a file path to its ``(tag title, note title)`` pair."""
    directory, filename = os.path.split(path)
    return path_to_tag(strip_root(directory, root)), filename


def note_path(tag_title: str, note_title: str, root: str) -> str:
    """Absolute filesystem path for a note held by a tag."""
    return os.path.join(tag_title_to_fs_dir(tag_title, root), note_title)


def composite_note_path(tag_title: str, note_title: str) -> str:
    """Hierarchical name of a note, comparable with tag titles.

    Notes directly under the root sentinel keep their own leading dot, so
    they are joined without a separator.
    """
    if tag_title == ROOT_TAG:
        return tag_title + note_title
    return tag_title + TAG_SEPARATOR + note_title
