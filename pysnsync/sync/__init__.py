"""Sync engine for pysnsync - add/remove/status/diff/sync of dotfiles."""

from .comparator import DiffEngine, DiffState, ItemDiff
from .engine import AddResult, RemoveResult, SyncEngine, SyncResult
from .index import HierarchyIndex, TagWithNotes, build_index
from .paths import ROOT_TAG, path_to_tag, tag_title_to_fs_dir
from .preflight import check_note_tag_conflicts, preflight
from .tags import create_missing_tags, find_empty_tags

__all__ = [
    "SyncEngine",
    "AddResult",
    "RemoveResult",
    "SyncResult",
    "DiffEngine",
    "DiffState",
    "ItemDiff",
    "HierarchyIndex",
    "TagWithNotes",
    "build_index",
    "ROOT_TAG",
    "path_to_tag",
    "tag_title_to_fs_dir",
    "check_note_tag_conflicts",
    "preflight",
    "create_missing_tags",
    "find_empty_tags",
]
