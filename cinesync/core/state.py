# cinesync/core/state.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional, TYPE_CHECKING

from cinesync.core.config import settings
from cinesync.services.connection_manager import ConnectionManager
from cinesync.services.notification_store import NotificationStore
from cinesync.services.room_manager import RoomManager
from cinesync.services.tmdb_client import TMDBClient
from cinesync.services.user_store import UserStore
from cinesync.services.watchlist_store import WatchlistStore

if TYPE_CHECKING:
    from cinesync.services.redis_pub_sub import AsyncRedisPubSubService

# Global singletons for app state
user_store = UserStore(admin_emails=settings.ADMIN_EMAILS)
room_manager = RoomManager()
watchlist_store = WatchlistStore()
notification_store = NotificationStore()
connection_manager = ConnectionManager(room_manager=room_manager)
tmdb_client = TMDBClient(settings)

# Set at startup when PUB_SUB_SERVICE=redis
redis_service: Optional["AsyncRedisPubSubService"] = None

app_start_time: datetime = datetime.now(timezone.utc)
