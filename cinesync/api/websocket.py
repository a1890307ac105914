# cinesync/api/websocket.py

from __future__ import annotations

import json
import logging
from typing import Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from cinesync.api.routes.utils import publish_room_event
from cinesync.core import state
from cinesync.core.errors import AppError, BadRequest
from cinesync.core.security import COOKIE_NAME
from cinesync.models.user import SessionUser
from cinesync.services.auth_service import resolve_session

logger = logging.getLogger(__name__)

router = APIRouter()

CLOSE_UNAUTHORIZED = 4401
CLOSE_ROOM_NOT_FOUND = 4404

# ============================================================================
# WEBSOCKET ENDPOINT
# ============================================================================

@router.websocket("/ws/watch-room/{room_code}")
async def watch_room_socket(websocket: WebSocket, room_code: str, token: Optional[str] = None):
    """
    Real-time channel of one watch room.

    Protocol:
    =========

    Authentication:
    ---------------
    The session token comes from the `token` query parameter or the
    session cookie. Without a valid session the socket is closed with 4401;
    an unknown or closed room closes it with 4404.

    Client -> Server Actions:
    -------------------------
    Chat:
        {"action": "chat", "message": "hello"}
        Broadcast: {"type": "chat_message", "message": {...}}

    Play / Pause / Seek:
        {"action": "play", "position": 12.5}
        {"action": "pause", "position": 13.0}
        {"action": "seek", "position": 300}
        Broadcast: {"type": "playback", "playback": {...}}

    Sync Request:
        {"action": "sync_request"}
        Response: {"type": "playback", "playback": {...}}

    Leave:
        {"action": "leave"}

    Server -> Client Messages:
    -------------------------
    On join: {"type": "room_state", "room": {...}, "messages": [...], "participant": {...}}
    Membership: {"type": "participant_joined" | "participant_left", "participant": {...}}
    Closing: {"type": "room_closed", "roomCode": "...", "reason": "..."}
    Invites: {"type": "notification", "notification": {...}}
    Error: {"type": "error", "message": "..."}
    """
    user = resolve_session(token or websocket.cookies.get(COOKIE_NAME))
    if user is None:
        await websocket.accept()
        await websocket.close(code=CLOSE_UNAUTHORIZED)
        return

    await state.connection_manager.connect(websocket, user)
    left = False

    try:
        if not await state.connection_manager.join_room(websocket, room_code):
            state.connection_manager.disconnect(websocket)
            await websocket.close(code=CLOSE_ROOM_NOT_FOUND)
            return

        room = state.room_manager.require_room(room_code)
        participant = next(p for p in room.active_participants() if p.user_id == user.id)
        await websocket.send_json(
            {
                "type": "room_state",
                "room": room.summary(),
                "messages": [m.to_json() for m in state.room_manager.get_chat_history(room_code)],
                "participant": participant.to_json(),
            }
        )
        await publish_room_event(room_code, {"type": "participant_joined", "participant": participant.to_json()})

        while True:
            data = await websocket.receive_text()

            try:
                message = json.loads(data)
            except json.JSONDecodeError:
                await websocket.send_json({"type": "error", "message": "Invalid JSON"})
                continue

            if not isinstance(message, dict):
                await websocket.send_json({"type": "error", "message": "Invalid message"})
                continue

            action = message.get("action")
            logger.debug("Websocket input: room=%s user=%s action=%s", room_code, user.email, action)

            if action == "leave":
                left = True
                break

            try:
                await handle_action(websocket, room_code, user, action, message)
            except AppError as e:
                await websocket.send_json({"type": "error", "message": e.message})

    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.error("WebSocket error: %s", e)

    departed_room, departed_user = state.connection_manager.disconnect(websocket)
    if departed_room and departed_user:
        await publish_room_event(
            departed_room,
            {"type": "participant_left", "participant": {"userId": departed_user.id, "username": departed_user.name}},
        )
    if left:
        await websocket.close(code=1000)


async def handle_action(websocket: WebSocket, room_code: str, user: SessionUser, action: str, message: dict) -> None:
    room_manager = state.room_manager

    if action == "chat":
        body = message.get("message")
        if not isinstance(body, str):
            raise BadRequest("Message must be text")
        chat_message = room_manager.save_chat_message(room_code, user.id, user.name, body)
        await publish_room_event(room_code, {"type": "chat_message", "message": chat_message.to_json()})

    elif action in ("play", "pause", "seek"):
        room = room_manager.require_room(room_code)
        try:
            position = float(message.get("position", room.playback.position))
        except (TypeError, ValueError):
            raise BadRequest("Invalid position")

        if action == "seek":
            is_playing = room.playback.is_playing
        else:
            is_playing = action == "play"

        playback = room_manager.update_playback(room_code, position, is_playing, updated_by=user.id)
        await publish_room_event(room_code, {"type": "playback", "playback": playback.to_json()})

    elif action == "sync_request":
        room = room_manager.require_room(room_code)
        await websocket.send_json({"type": "playback", "playback": room.playback.to_json()})

    else:
        await websocket.send_json({"type": "error", "message": f"Unknown action: {action}"})
