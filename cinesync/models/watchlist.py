# cinesync/models/watchlist.py
from datetime import datetime
from typing import Optional

from pydantic import Field

from cinesync.models.base import CamelModel, MediaType, utcnow


class WatchlistItemData(CamelModel):
    """A watchlist entry as the client sends it (also the localStorage shape)."""

    media_id: int = Field(ge=1)
    media_type: MediaType
    title: str = Field(min_length=1, max_length=500)
    poster_path: Optional[str] = Field(default=None, max_length=500)


class WatchlistItem(CamelModel):
    id: str
    user_id: str
    media_id: int
    media_type: MediaType
    title: str
    poster_path: Optional[str] = None
    added_at: datetime = Field(default_factory=utcnow)
