"""Local cache mirroring the remote item set.

The cache is a JSON file per account holding every item returned by the
item store plus the sync token needed for the next incremental sync. Items
changed locally are marked dirty and pushed on the next sync.
"""

import hashlib
import json
import logging
import os
from pathlib import Path
from typing import Callable, Iterable, Optional

from .api import ItemStoreClient
from .exceptions import InvalidInputError, InvalidSessionError, LocalIOError
from .models import Item
from .session import Session
from .utils import utc_now_iso

logger = logging.getLogger(__name__)

CACHE_VERSION = 1


class CacheDB:
    """Handle on one account's cached items."""

    def __init__(self, path: Path):
        self.path = path
        self.items: dict[str, Item] = {}
        self.sync_token: Optional[str] = None
        self.dirty: set[str] = set()
        self.closed = False

    @classmethod
    def load(cls, path: Path) -> "CacheDB":
        """Load a cache file, or start an empty cache if none exists."""
        db = cls(path)
        if not path.exists():
            logger.debug(f"No cache found at {path}, starting empty")
            return db

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise LocalIOError(f"Failed to read cache {path}: {e}") from e

        if data.get("version") != CACHE_VERSION:
            logger.warning(f"Ignoring cache with unknown version: {path}")
            return db

        db.sync_token = data.get("sync_token")
        for raw in data.get("items", []):
            item = Item.from_dict(raw)
            db.items[item.uuid] = item
        db.dirty = set(data.get("dirty", [])) & set(db.items)
        return db

    def select(self, content_types: Iterable[str]) -> list[Item]:
        """Return live items of the given content types."""
        wanted = set(content_types)
        return [
            item
            for item in self.items.values()
            if item.content_type in wanted and not item.deleted
        ]

    def put(self, items: Iterable[Item]) -> None:
        """Insert or update items and mark them for pushing."""
        now = utc_now_iso()
        for item in items:
            item.updated_at = now
            self.items[item.uuid] = item
            self.dirty.add(item.uuid)

    def dirty_items(self) -> list[Item]:
        return [self.items[uuid] for uuid in sorted(self.dirty)]

    def flush(self) -> None:
        """Write the cache to disk."""
        data = {
            "version": CACHE_VERSION,
            "sync_token": self.sync_token,
            "dirty": sorted(self.dirty),
            "items": [item.to_dict() for item in self.items.values()],
        }
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(".tmp")
            tmp_path.write_text(json.dumps(data), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise LocalIOError(f"Failed to write cache {self.path}: {e}") from e

    def close(self) -> None:
        """Persist and close the handle."""
        if self.closed:
            return
        self.flush()
        self.closed = True


class ItemCache:
    """Synchronises a CacheDB with the remote item store."""

    def __init__(
        self,
        client_factory: Callable[[Session], ItemStoreClient],
        cache_dir: Path,
    ):
        """Initialize the item cache.

        Args:
            client_factory: Creates an item store client for a session
            cache_dir: Directory holding cache files
        """
        self.client_factory = client_factory
        self.cache_dir = cache_dir

    def cache_path(self, session: Session) -> Path:
        """Cache file for a session, keyed by server and account."""
        combined = f"{session.server}:{session.email or session.token}"
        key = hashlib.sha256(combined.encode()).hexdigest()[:16]
        return self.cache_dir / f"{key}.json"

    def exists(self, session: Session) -> bool:
        return self.cache_path(session).exists()

    def sync(
        self, session: Session, db: Optional[CacheDB] = None, close: bool = False
    ) -> CacheDB:
        """Push dirty items, pull remote changes and return the handle.

        Args:
            session: Session for the item store
            db: Open handle to reuse; the cache file is loaded if omitted
            close: Close the handle once the round-trip completes

        Returns:
            The populated cache handle

        Raises:
            InvalidSessionError: If the session is invalid
            RemoteSyncError: If the round-trip fails
        """
        if not session.valid():
            raise InvalidSessionError("invalid session")

        if db is None:
            db = CacheDB.load(self.cache_path(session))

        pushed = db.dirty_items()
        logger.debug(f"cache sync | pushing {len(pushed)} item(s)")

        client = self.client_factory(session)
        try:
            response = client.sync_items(
                [item.to_dict() for item in pushed], db.sync_token
            )
        finally:
            client.close()

        # Pushed deletions are final once the store has acknowledged them
        for item in pushed:
            if item.deleted:
                db.items.pop(item.uuid, None)
        db.dirty.clear()

        for raw in response.get("saved_items", []) + response.get(
            "retrieved_items", []
        ):
            item = Item.from_dict(raw)
            if item.deleted:
                db.items.pop(item.uuid, None)
            else:
                db.items[item.uuid] = item

        db.sync_token = response.get("sync_token", db.sync_token)
        logger.debug(f"cache sync | {len(db.items)} item(s) cached")

        if close:
            db.close()
        else:
            db.flush()
        return db

    def save(
        self,
        session: Session,
        db: CacheDB,
        items: list[Item],
        close: bool = False,
    ) -> None:
        """Write items into the cache, optionally flushing them remotely.

        Raises:
            InvalidInputError: If there is nothing to save
        """
        if not items:
            raise InvalidInputError("no items to save")

        db.put(items)
        if close:
            self.sync(session, db, close=True)
        else:
            db.flush()
