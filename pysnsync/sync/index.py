"""In-memory index of tracked tags and the notes they reference."""

import logging
from dataclasses import dataclass, field
from typing import Iterator, Optional

from ..cache import CacheDB
from ..exceptions import InvalidSessionError
from ..models import (
    IGNORABLE_CONTENT_TYPES,
    NOTE_CONTENT_TYPE,
    TAG_CONTENT_TYPE,
    Note,
    Tag,
)
from ..session import Session
from .paths import TAG_SEPARATOR, is_tracked_tag

logger = logging.getLogger(__name__)


@dataclass
class TagWithNotes:
    """A tag together with the notes it directly references."""

    tag: Tag
    notes: list[Note] = field(default_factory=list)


class HierarchyIndex:
    """Collection of TagWithNotes, unique by tag UUID."""

    def __init__(self, entries: Optional[list[TagWithNotes]] = None):
        self._entries: list[TagWithNotes] = []
        for entry in entries or []:
            self.add(entry)

    def __iter__(self) -> Iterator[TagWithNotes]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def add(self, entry: TagWithNotes) -> None:
        """Add an entry, replacing any entry for the same tag UUID."""
        for idx, existing in enumerate(self._entries):
            if existing.tag.uuid == entry.tag.uuid:
                self._entries[idx] = entry
                return
        self._entries.append(entry)

    def get(self, title: str) -> Optional[TagWithNotes]:
        for entry in self._entries:
            if entry.tag.title == title:
                return entry
        return None

    def tag_exists(self, title: str) -> bool:
        return self.get(title) is not None

    def titles(self) -> list[str]:
        return [entry.tag.title for entry in self._entries]

    def notes_with_title(self, tag_title: str, note_title: str) -> list[Note]:
        """All notes titled ``note_title`` held by tags titled ``tag_title``."""
        found = []
        for entry in self._entries:
            if entry.tag.title != tag_title:
                continue
            found.extend(n for n in entry.notes if n.title == note_title)
        return found

    def note_with_tag_exists(self, tag_title: str, note_title: str) -> int:
        """Number of existing notes matching the tag and title."""
        return len(self.notes_with_title(tag_title, note_title))

    def descendants(self, tag_title: str) -> list[TagWithNotes]:
        """The tag itself and every tag nested beneath it."""
        prefix = tag_title + TAG_SEPARATOR
        return [
            entry
            for entry in self._entries
            if entry.tag.title == tag_title or entry.tag.title.startswith(prefix)
        ]


def build_index(db: CacheDB, session: Session) -> HierarchyIndex:
    """Build the hierarchy index from cached items.

    Args:
        db: Populated cache handle
        session: Session the cache was synced with

    Returns:
        HierarchyIndex of every tracked tag and its notes

    Raises:
        InvalidSessionError: If the session is invalid
    """
    if not session.valid():
        raise InvalidSessionError("invalid session")

    cached = db.select(
        (NOTE_CONTENT_TYPE, TAG_CONTENT_TYPE) + tuple(IGNORABLE_CONTENT_TYPES)
    )

    tags = [
        item
        for item in cached
        if isinstance(item, Tag) and is_tracked_tag(item.title)
    ]
    notes = [item for item in cached if isinstance(item, Note)]

    index = HierarchyIndex()
    for tag in tags:
        refs = set(tag.note_uuids())
        index.add(TagWithNotes(tag=tag, notes=[n for n in notes if n.uuid in refs]))

    logger.debug(f"build_index | {len(index)} tag(s), {len(notes)} note(s) cached")
    return index
