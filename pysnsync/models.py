"""Data models for items held by the remote item store."""

import uuid as uuid_lib
from dataclasses import dataclass, field
from typing import Any, Optional

from .utils import iso_timestamp_to_unix, utc_now_iso

NOTE_CONTENT_TYPE = "Note"
TAG_CONTENT_TYPE = "Tag"

# Companion kinds that live alongside notes and tags but are never interpreted
IGNORABLE_CONTENT_TYPES = ("SN|Component", "Extension")


def gen_uuid() -> str:
    """Generate a new item identifier."""
    return str(uuid_lib.uuid4())


@dataclass
class ItemReference:
    """Reference from one item to another."""

    uuid: str
    content_type: str = NOTE_CONTENT_TYPE

    def to_dict(self) -> dict:
        return {"uuid": self.uuid, "content_type": self.content_type}

    @classmethod
    def from_dict(cls, data: dict) -> "ItemReference":
        return cls(
            uuid=data["uuid"],
            content_type=data.get("content_type", NOTE_CONTENT_TYPE),
        )


@dataclass
class Item:
    """Any item stored remotely and mirrored by the local cache."""

    uuid: str
    content_type: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    deleted: bool = False
    content: dict = field(default_factory=dict)

    @property
    def mtime(self) -> Optional[float]:
        """Last modification time (Unix timestamp)."""
        return iso_timestamp_to_unix(self.updated_at)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the item to the wire/cache representation."""
        return {
            "uuid": self.uuid,
            "content_type": self.content_type,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "deleted": self.deleted,
            "content": self._content_dict(),
        }

    def _content_dict(self) -> dict:
        return dict(self.content)

    @classmethod
    def from_dict(cls, data: dict) -> "Item":
        """Create the matching Item subclass from its serialized form."""
        content_type = data.get("content_type", "")
        content = data.get("content") or {}
        common = {
            "uuid": data["uuid"],
            "created_at": data.get("created_at"),
            "updated_at": data.get("updated_at"),
            "deleted": bool(data.get("deleted", False)),
        }

        if content_type == NOTE_CONTENT_TYPE:
            return Note(
                title=content.get("title", ""),
                text=content.get("text", ""),
                references=[
                    ItemReference.from_dict(r) for r in content.get("references", [])
                ],
                prefers_plain_editor=content.get("prefers_plain_editor", False),
                **common,
            )
        if content_type == TAG_CONTENT_TYPE:
            return Tag(
                title=content.get("title", ""),
                references=[
                    ItemReference.from_dict(r) for r in content.get("references", [])
                ],
                **common,
            )
        return Item(content_type=content_type, content=dict(content), **common)


@dataclass
class Note(Item):
    """A remote leaf item holding the text of one tracked file."""

    content_type: str = NOTE_CONTENT_TYPE
    title: str = ""
    text: str = ""
    references: list[ItemReference] = field(default_factory=list)
    prefers_plain_editor: bool = True

    def _content_dict(self) -> dict:
        return {
            "title": self.title,
            "text": self.text,
            "references": [r.to_dict() for r in self.references],
            "prefers_plain_editor": self.prefers_plain_editor,
        }

    @classmethod
    def new(cls, title: str, text: str) -> "Note":
        """Create a new note that has not yet been saved."""
        now = utc_now_iso()
        return cls(
            uuid=gen_uuid(),
            title=title,
            text=text,
            created_at=now,
            updated_at=now,
        )


@dataclass
class Tag(Item):
    """A remote hierarchy node; its title mirrors a directory."""

    content_type: str = TAG_CONTENT_TYPE
    title: str = ""
    references: list[ItemReference] = field(default_factory=list)

    def _content_dict(self) -> dict:
        return {
            "title": self.title,
            "references": [r.to_dict() for r in self.references],
        }

    @classmethod
    def new(cls, title: str) -> "Tag":
        """Create a new tag without references."""
        now = utc_now_iso()
        return cls(uuid=gen_uuid(), title=title, created_at=now, updated_at=now)

    def note_uuids(self) -> list[str]:
        """UUIDs of the notes this tag references."""
        return [
            r.uuid for r in self.references if r.content_type == NOTE_CONTENT_TYPE
        ]

    def upsert_references(self, references: list[ItemReference]) -> None:
        """Add references that are not already present."""
        existing = {r.uuid for r in self.references}
        for ref in references:
            if ref.uuid not in existing:
                self.references.append(ref)
                existing.add(ref.uuid)

    def remove_references(self, uuids: set[str]) -> bool:
        """Drop references to the given UUIDs.

        Returns:
            True if any reference was removed
        """
        kept = [r for r in self.references if r.uuid not in uuids]
        changed = len(kept) != len(self.references)
        self.references = kept
        return changed
