# cinesync/services/notification_store.py

from __future__ import annotations

from typing import Dict, List, Optional
import uuid

from cinesync.core.errors import NotFound
from cinesync.core.logging import get_logger
from cinesync.models.notification import Notification
from cinesync.models.user import User

logger = get_logger(__name__)

MAX_NOTIFICATIONS = 50


class NotificationStore:
    """In-memory notifications addressed from one user to another."""

    def __init__(self) -> None:
        self.notifications: Dict[str, Notification] = {}

    def create(self, from_user: User, to_user_id: str, **fields) -> Notification:
        notification = Notification(
            id=str(uuid.uuid4()),
            from_user_id=from_user.id,
            to_user_id=to_user_id,
            from_user=from_user.public(),
            **fields,
        )
        self.notifications[notification.id] = notification
        logger.info("💾 Notification %s (%s) for user %s", notification.id, notification.type, to_user_id)
        return notification

    def send_watch_invite(
        self,
        from_user: User,
        to_user_id: str,
        room_code: str,
        media_title: str,
        media_id: int,
        media_type: str,
        embed_url: str,
    ) -> Notification:
        return self.create(
            from_user,
            to_user_id,
            type="watch_invite",
            title="Watch Together Invitation",
            message=f'{from_user.name} invited you to watch "{media_title}" together!',
            room_code=room_code,
            media_id=media_id,
            media_type=media_type,
            media_title=media_title,
            embed_url=embed_url,
        )

    def list_for_user(self, user_id: str, unread_only: bool = False) -> List[Notification]:
        """Newest first, capped at 50."""
        items = [
            n
            for n in self.notifications.values()
            if n.to_user_id == user_id and (not unread_only or not n.is_read)
        ]
        items.sort(key=lambda n: n.created_at, reverse=True)
        return items[:MAX_NOTIFICATIONS]

    def unread_count(self, user_id: Optional[str] = None) -> int:
        """Unread notifications of one user, or of everybody when user_id is None."""
        return sum(
            1
            for n in self.notifications.values()
            if not n.is_read and (user_id is None or n.to_user_id == user_id)
        )

    def _owned(self, notification_id: str, user_id: str) -> Notification:
        notification = self.notifications.get(notification_id)
        if not notification or notification.to_user_id != user_id:
            raise NotFound("Notification not found")
        return notification

    def mark_as_read(self, notification_id: str, user_id: str) -> Notification:
        notification = self._owned(notification_id, user_id)
        notification.is_read = True
        return notification

    def mark_all_as_read(self, user_id: str) -> int:
        count = 0
        for n in self.notifications.values():
            if n.to_user_id == user_id and not n.is_read:
                n.is_read = True
                count += 1
        return count

    def delete(self, notification_id: str, user_id: Optional[str] = None) -> None:
        """Delete a notification; when user_id is given it must be the recipient."""
        if user_id is None:
            if notification_id not in self.notifications:
                raise NotFound("Notification not found")
        else:
            self._owned(notification_id, user_id)
        del self.notifications[notification_id]
