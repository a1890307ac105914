# cinesync/models/notification.py
from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from cinesync.models.base import CamelModel, MediaType, utcnow
from cinesync.models.user import PublicUser

NotificationType = Literal["watch_invite", "room_join", "system"]


class Notification(CamelModel):
    id: str
    type: NotificationType
    title: str
    message: str
    from_user_id: str
    to_user_id: str
    room_code: Optional[str] = None
    media_id: Optional[int] = None
    media_type: Optional[MediaType] = None
    media_title: Optional[str] = None
    embed_url: Optional[str] = None
    is_read: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    from_user: Optional[PublicUser] = None


class InviteRequest(CamelModel):
    to_user_id: Optional[str] = None
    room_code: Optional[str] = None
    media_title: Optional[str] = None
    media_id: Optional[int] = None
    media_type: Optional[MediaType] = None
    embed_url: Optional[str] = None


class MarkReadRequest(CamelModel):
    notification_id: Optional[str] = None
    mark_all: bool = False
