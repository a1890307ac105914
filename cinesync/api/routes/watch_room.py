# cinesync/api/routes/watch_room.py

from typing import Optional

from fastapi import APIRouter, Depends, Query

from cinesync.api.routes.utils import close_room_connections, publish_room_event
from cinesync.core import state
from cinesync.core.errors import AppError, BadRequest, Forbidden, Internal, NotFound
from cinesync.core.logging import get_logger
from cinesync.models.room import CloseWatchRoomRequest, CreateWatchRoomRequest, PostChatMessageRequest
from cinesync.models.user import SessionUser
from cinesync.services.auth_service import get_current_user
from cinesync.services.room_manager import DEFAULT_CHAT_LIMIT

logger = get_logger(__name__)

router = APIRouter(prefix="/api/watch-room", tags=["Watch Room"])

# ============================================================================
# WATCH ROOM ENDPOINTS
# ============================================================================

@router.get("")
async def get_watch_room(
    room_code: Optional[str] = Query(None, alias="roomCode"),
    history: Optional[str] = None,
    user: SessionUser = Depends(get_current_user),
):
    """
    Get a room by code, or the caller's room history.

    Args:
        room_code: code of the room to fetch
        history: "true" to list rooms the caller created or joined

    Raises:
        BadRequest: neither parameter given
        NotFound: unknown room code
    """
    if room_code:
        room = state.room_manager.get_room(room_code)
        if not room:
            raise NotFound("Room not found")
        return {"room": room.summary()}

    if history == "true":
        rooms = state.room_manager.user_rooms(user.id)
        return {"rooms": [r.summary() for r in rooms]}

    raise BadRequest("Missing roomCode or history parameter")


@router.post("")
async def create_watch_room(request: CreateWatchRoomRequest, user: SessionUser = Depends(get_current_user)):
    """
    Create a new watch room with the caller as host.

    Raises:
        BadRequest: roomCode, mediaId, mediaType or mediaTitle missing
        Conflict: the room code is taken
    """
    if not request.room_code or not request.media_id or not request.media_type or not request.media_title:
        raise BadRequest("Missing required fields")

    try:
        room = state.room_manager.create_room(
            room_code=request.room_code,
            creator_id=user.id,
            creator_name=user.name,
            media_id=request.media_id,
            media_type=request.media_type,
            media_title=request.media_title,
            embed_url=request.embed_url,
            poster_path=request.poster_path,
            season=request.season,
            episode=request.episode,
        )
    except AppError:
        raise
    except Exception:
        logger.exception("Error creating watch room")
        raise Internal("Failed to create watch room")

    return {"success": True, "room": room.summary()}


@router.patch("")
async def close_watch_room(request: CloseWatchRoomRequest, user: SessionUser = Depends(get_current_user)):
    """
    Close a room. Only its creator or an admin may do so.

    Everyone connected to the room is told and disconnected.
    """
    if not request.room_code:
        raise BadRequest("Missing roomCode")

    room = state.room_manager.get_room(request.room_code)
    if not room:
        raise NotFound("Room not found")
    if room.creator_id != user.id and not user.is_admin:
        raise Forbidden("Only the host can close this room")

    try:
        state.room_manager.close_room(request.room_code)
        await close_room_connections(request.room_code, "Closed by host")
    except AppError:
        raise
    except Exception:
        logger.exception("Error closing watch room")
        raise Internal("Failed to close watch room")

    return {"success": True}


# ============================================================================
# CHAT ENDPOINTS
# ============================================================================

@router.get("/chat")
async def get_chat_history(
    room_code: Optional[str] = Query(None, alias="roomCode"),
    limit: Optional[int] = None,
    user: SessionUser = Depends(get_current_user),
):
    """
    Chat history of a room: the newest `limit` messages (default 50),
    oldest first.
    """
    if not room_code:
        raise BadRequest("Missing roomCode")

    try:
        messages = state.room_manager.get_chat_history(
            room_code, limit if limit is not None else DEFAULT_CHAT_LIMIT
        )
    except AppError:
        raise
    except Exception:
        logger.exception("Error fetching chat history")
        raise Internal("Failed to fetch chat history")

    return {"messages": [m.to_json() for m in messages]}


@router.post("/chat")
async def post_chat_message(request: PostChatMessageRequest, user: SessionUser = Depends(get_current_user)):
    """Append a chat message and fan it out to the room."""
    if not request.room_code:
        raise BadRequest("Missing roomCode")
    if not request.message:
        raise BadRequest("Missing message")

    try:
        message = state.room_manager.save_chat_message(request.room_code, user.id, user.name, request.message)
    except AppError:
        raise
    except Exception:
        logger.exception("Error saving chat message")
        raise Internal("Failed to send message")

    payload = message.to_json()
    await publish_room_event(request.room_code, {"type": "chat_message", "message": payload})
    return {"success": True, "message": payload}
