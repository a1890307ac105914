# cinesync/api/routes/notifications.py

from typing import Optional

from fastapi import APIRouter, Depends, Query

from cinesync.api.routes.utils import notify_user
from cinesync.core import state
from cinesync.core.errors import AppError, BadRequest, Internal, NotFound
from cinesync.core.logging import get_logger
from cinesync.models.notification import InviteRequest, MarkReadRequest
from cinesync.models.user import SessionUser
from cinesync.services.auth_service import get_current_user

logger = get_logger(__name__)

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


@router.get("")
async def get_notifications(
    unread_only: bool = Query(False, alias="unreadOnly"),
    count_only: bool = Query(False, alias="countOnly"),
    user: SessionUser = Depends(get_current_user),
):
    """The caller's notifications (newest 50), or just the unread count."""
    if count_only:
        return {"count": state.notification_store.unread_count(user.id)}

    notifications = state.notification_store.list_for_user(user.id, unread_only=unread_only)
    return {"notifications": [n.to_json() for n in notifications]}


@router.patch("")
async def mark_notifications_read(request: MarkReadRequest, user: SessionUser = Depends(get_current_user)):
    if request.mark_all:
        count = state.notification_store.mark_all_as_read(user.id)
        return {"success": True, "count": count}

    if not request.notification_id:
        raise BadRequest("Missing notificationId")

    notification = state.notification_store.mark_as_read(request.notification_id, user.id)
    return {"success": True, "notification": notification.to_json()}


@router.delete("")
async def delete_notification(
    notification_id: Optional[str] = Query(None, alias="id"),
    user: SessionUser = Depends(get_current_user),
):
    if not notification_id:
        raise BadRequest("Missing notification ID")

    state.notification_store.delete(notification_id, user.id)
    return {"success": True}


@router.post("/invite")
async def send_invite(request: InviteRequest, user: SessionUser = Depends(get_current_user)):
    """
    Invite another user to a watch room.

    The invite is stored as a notification and pushed to the recipient's
    open connections straight away.
    """
    if not (
        request.to_user_id
        and request.room_code
        and request.media_title
        and request.media_id
        and request.media_type
        and request.embed_url
    ):
        raise BadRequest("Missing required fields")

    sender = state.user_store.get_user(user.id)
    recipient = state.user_store.get_user(request.to_user_id)
    if not sender or not recipient:
        raise NotFound("User not found")
    if recipient.id == sender.id:
        raise BadRequest("Cannot invite yourself")

    try:
        notification = state.notification_store.send_watch_invite(
            from_user=sender,
            to_user_id=recipient.id,
            room_code=request.room_code,
            media_title=request.media_title,
            media_id=request.media_id,
            media_type=request.media_type,
            embed_url=request.embed_url,
        )
    except AppError:
        raise
    except Exception:
        logger.exception("Error sending invite")
        raise Internal("Failed to send invite")

    payload = notification.to_json()
    await notify_user(recipient.id, {"type": "notification", "notification": payload})
    return {"success": True, "notification": payload}
