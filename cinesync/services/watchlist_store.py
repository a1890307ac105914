# cinesync/services/watchlist_store.py

from __future__ import annotations

from typing import Dict, List, Sequence, Tuple
import uuid

from cinesync.core.logging import get_logger
from cinesync.models.watchlist import WatchlistItem, WatchlistItemData

logger = get_logger(__name__)

# (user_id, media_id, media_type)
WatchlistKey = Tuple[str, int, str]


class WatchlistStore:
    """
    Per-user watchlists keyed by ``(user_id, media_id, media_type)``.

    Adding an item that already exists updates its title and poster in
    place, so repeated adds and migrations never create duplicates.
    """

    def __init__(self) -> None:
        self.items: Dict[WatchlistKey, WatchlistItem] = {}

    def add(self, user_id: str, data: WatchlistItemData) -> Tuple[WatchlistItem, bool]:
        """Upsert an item. Returns (item, created)."""
        key = (user_id, data.media_id, data.media_type)
        existing = self.items.get(key)
        if existing:
            existing.title = data.title
            existing.poster_path = data.poster_path
            return existing, False

        item = WatchlistItem(
            id=str(uuid.uuid4()),
            user_id=user_id,
            media_id=data.media_id,
            media_type=data.media_type,
            title=data.title,
            poster_path=data.poster_path,
        )
        self.items[key] = item
        return item, True

    def remove(self, user_id: str, media_id: int, media_type: str) -> bool:
        return self.items.pop((user_id, media_id, media_type), None) is not None

    def list_for_user(self, user_id: str) -> List[WatchlistItem]:
        """Newest first."""
        items = [item for key, item in self.items.items() if key[0] == user_id]
        items.sort(key=lambda i: i.added_at, reverse=True)
        return items

    def contains(self, user_id: str, media_id: int, media_type: str) -> bool:
        return (user_id, media_id, media_type) in self.items

    def migrate(self, user_id: str, items: Sequence[WatchlistItemData]) -> dict:
        """
        Import a client-side (localStorage) watchlist.

        Every item is upserted, so running the same migration twice leaves
        the watchlist unchanged.
        """
        created = updated = 0
        for data in items:
            _, was_created = self.add(user_id, data)
            if was_created:
                created += 1
            else:
                updated += 1

        logger.info(
            "Migrated watchlist for %s: %d received, %d created, %d updated",
            user_id, len(items), created, updated,
        )
        return {"success": True, "count": len(items), "created": created, "updated": updated}
