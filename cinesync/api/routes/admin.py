# cinesync/api/routes/admin.py

import platform
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends

from cinesync.api.routes.utils import close_room_connections
from cinesync.core import state
from cinesync.core.config import settings
from cinesync.core.errors import AppError, Internal, NotFound
from cinesync.core.logging import get_logger
from cinesync.models.user import Role, RoleUpdateRequest, SessionUser
from cinesync.services.auth_service import require_admin

logger = get_logger(__name__)

# Every route here is behind the admin guard: 401 without a session,
# 403 for non-admin sessions.
router = APIRouter(prefix="/api/admin", tags=["Admin"], dependencies=[Depends(require_admin)])


# ============================================================================
# NOTIFICATIONS
# ============================================================================

@router.delete("/notifications/{notification_id}")
async def delete_notification(notification_id: str):
    """Delete any user's notification."""
    try:
        state.notification_store.delete(notification_id)
    except AppError:
        raise
    except Exception:
        logger.exception("Error deleting notification")
        raise Internal("Internal server error")
    return {"success": True}


@router.get("/notifications/unread")
async def unread_notifications():
    """Unread notifications across all users."""
    return {"count": state.notification_store.unread_count()}


# ============================================================================
# ROOMS
# ============================================================================

@router.get("/rooms")
async def list_rooms(active: bool = False):
    rooms = []
    for room in state.room_manager.list_rooms(active_only=active):
        creator = state.user_store.get_user(room.creator_id)
        rooms.append(
            {
                "id": room.id,
                "roomCode": room.room_code,
                "mediaTitle": room.media_title,
                "creatorName": creator.name if creator else None,
                "participantCount": len(room.active_participants()),
                "createdAt": room.created_at.isoformat(),
                "isActive": room.is_active,
            }
        )
    return {"rooms": rooms, "total": len(rooms)}


@router.delete("/rooms/{room_id}")
async def close_room(room_id: str):
    """
    Close a room and notify its participants.

    Accepts the room id or its code. Kicks every connected user; the room
    and its chat log are kept as history.
    """
    room = state.room_manager.get_room(room_id) or state.room_manager.get_room_by_id(room_id)
    if not room:
        raise NotFound("Room not found")

    try:
        state.room_manager.close_room(room.room_code)
        await close_room_connections(room.room_code, "Closed by an administrator")
    except AppError:
        raise
    except Exception:
        logger.exception("Error closing room")
        raise Internal("Internal server error")
    return {"success": True}


# ============================================================================
# USERS & STATS
# ============================================================================

@router.get("/users")
async def list_users(search: str = "", role: Optional[Role] = None):
    users, total = state.user_store.list_users(search=search, role=role)
    return {
        "users": [
            {
                "id": u.id,
                "name": u.name,
                "email": u.email,
                "role": u.role.value,
                "isActive": u.is_active,
                "createdAt": u.created_at.isoformat(),
            }
            for u in users
        ],
        "total": total,
    }


@router.patch("/users/{user_id}")
async def update_user_role(user_id: str, request: RoleUpdateRequest):
    """Promote or demote a user. Takes effect on their next request."""
    user = state.user_store.set_role(user_id, request.role)
    return {"success": True, "user": {"id": user.id, "email": user.email, "role": user.role.value}}

@router.get("/stats/overview")
async def stats_overview():
    today = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    return {
        "totalUsers": state.user_store.count(),
        "usersToday": state.user_store.count(created_since=today),
        "activeRooms": state.room_manager.active_rooms_count(),
        "sessionsToday": state.room_manager.rooms_created_since(today),
        "connectedClients": len(state.connection_manager.connection_users),
    }


@router.get("/settings/system")
async def system_info(admin: SessionUser = Depends(require_admin)):
    logger.info("System info requested by %s", admin.email)
    return {
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
        "pythonVersion": platform.python_version(),
        "databaseStatus": "In-memory",
        "realtimeStatus": "Redis" if state.redis_service is not None else "Active",
        "tmdbStatus": "ready" if state.tmdb_client.configured else "api_key_missing",
        "errorReporting": "Sentry" if settings.SENTRY_DSN else "Disabled",
        "uptimeSeconds": round((datetime.now(timezone.utc) - state.app_start_time).total_seconds(), 1),
    }
