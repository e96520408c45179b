"""Tag tree maintenance: creating missing ancestors and pruning empty tags."""

import logging

from ..models import Note, Tag
from .index import HierarchyIndex, TagWithNotes
from .paths import ROOT_TAG, TAG_SEPARATOR

logger = logging.getLogger(__name__)


def ancestor_titles(title: str) -> list[str]:
    """Every prefix of a tag title, shortest first.

    Examples:
        >>> ancestor_titles("sync.a.b")
        ['sync', 'sync.a', 'sync.a.b']
    """
    titles = []
    current = ""
    for segment in title.split(TAG_SEPARATOR):
        current = segment if not current else current + TAG_SEPARATOR + segment
        titles.append(current)
    return titles


def create_missing_tags(title: str, index: HierarchyIndex) -> list[Tag]:
    """Create the tag ``title`` and any of its ancestors that are missing.

    New tags are returned parent before child and added to ``index`` so that
    later calls in the same batch see them.

    Args:
        title: Tag title that must exist
        index: Current hierarchy index (updated in place)

    Returns:
        Newly created tags, possibly empty
    """
    created = []
    for ancestor in ancestor_titles(title):
        if index.tag_exists(ancestor):
            continue
        tag = Tag.new(ancestor)
        index.add(TagWithNotes(tag=tag, notes=[]))
        created.append(tag)
        logger.debug(f"create_missing_tags | creating tag: {ancestor}")
    return created


def _remaining_note_counts(
    index: HierarchyIndex, deleted_notes: list[Note]
) -> dict[str, int]:
    """Number of notes each tag would keep after the deletion."""
    deleted = {note.uuid for note in deleted_notes}
    counts: dict[str, int] = {}
    for entry in index:
        title = entry.tag.title
        counts.setdefault(title, 0)
        counts[title] += sum(1 for n in entry.notes if n.uuid not in deleted)
    return counts


def find_empty_tags(index: HierarchyIndex, deleted_notes: list[Note]) -> list[Tag]:
    """Find every tag that is, or will be, empty once notes are deleted.

    A tag without notes survives while any of its child tags survive, so
    candidates are pruned leaf first until nothing more can be removed. The
    root sentinel is only removed when it holds no notes and every one of
    its children is removed too.

    Args:
        index: Current hierarchy index
        deleted_notes: Notes about to be deleted

    Returns:
        Tags to delete
    """
    counts = _remaining_note_counts(index, deleted_notes)
    candidates = {title for title, count in counts.items() if count == 0}
    logger.debug(f"find_empty_tags | tags without notes: {sorted(candidates)}")

    children: dict[str, set[str]] = {}
    for title in counts:
        if TAG_SEPARATOR in title:
            parent, _, child = title.rpartition(TAG_SEPARATOR)
            children.setdefault(parent, set()).add(child)

    to_remove: set[str] = set()
    while True:
        change_made = False
        for parent, kids in children.items():
            for child in sorted(kids):
                complete = parent + TAG_SEPARATOR + child
                if complete in candidates and not children.get(complete):
                    logger.debug(f"find_empty_tags | removing: {complete}")
                    kids.discard(child)
                    to_remove.add(complete)
                    change_made = True
        if not change_made:
            break

    survivors = [t for t in counts if t != ROOT_TAG and t not in to_remove]
    if ROOT_TAG in candidates and not survivors:
        logger.debug(f"find_empty_tags | removing '{ROOT_TAG}' as all children removed")
        to_remove.add(ROOT_TAG)

    logger.debug(f"find_empty_tags | total to remove: {len(to_remove)}")
    return [entry.tag for entry in index if entry.tag.title in to_remove]
