# cinesync/services/connection_manager.py

from __future__ import annotations

from typing import Dict, Optional, Set, Tuple
from fastapi import WebSocket
import logging

from cinesync.models.user import SessionUser
from cinesync.services.room_manager import RoomManager

logger = logging.getLogger(__name__)

# ============================================================================
# WEBSOCKET CONNECTION MANAGER
# ============================================================================

class ConnectionManager:
    """
    Manages WebSocket connections to watch rooms and fans events out to them.

    Every connection belongs to exactly one room (the one in its URL) and to
    one authenticated user. Membership in the room itself is recorded in the
    RoomManager; this class only tracks which sockets should receive which
    events.

    Data Structures:
        rooms: Maps room_code -> Set of WebSocket connections in that room
               Example: {"MOVIE-123": {websocket1, websocket2}}

        connection_rooms: Maps WebSocket -> room_code it is subscribed to

        connection_users: Maps WebSocket -> SessionUser behind it

        user_connections: Maps user_id -> Set of that user's WebSockets,
                          used to push notifications such as invites

    Scaling:
        - Single instance: all in-memory
        - Multi-instance: events travel through Redis pub/sub and every
          instance delivers them to its own sockets
    """

    def __init__(self, room_manager: RoomManager) -> None:
        self.rooms: Dict[str, Set[WebSocket]] = {}
        self.connection_rooms: Dict[WebSocket, str] = {}
        self.connection_users: Dict[WebSocket, SessionUser] = {}
        self.user_connections: Dict[str, Set[WebSocket]] = {}
        self.room_manager = room_manager

    async def connect(self, websocket: WebSocket, user: SessionUser) -> None:
        """Accept a WebSocket and remember who is behind it."""
        await websocket.accept()

        self.connection_users[websocket] = user
        self.user_connections.setdefault(user.id, set()).add(websocket)

        logger.info("✓ User %s connected. Total: %d", user.email, len(self.connection_users))

    async def join_room(self, websocket: WebSocket, room_code: str) -> bool:
        """
        Subscribe a connection to a room and record the user as participant.

        Returns False (after telling the client why) when the room cannot be
        joined.
        """
        user = self.connection_users.get(websocket)
        if user is None:
            return False  # Connection already closed

        room = self.room_manager.get_room(room_code)
        if not room or not room.is_active:
            await websocket.send_json({"type": "error", "message": "Room not found"})
            return False

        self.room_manager.add_participant(room_code, user.id, user.name)

        self.rooms.setdefault(room_code, set()).add(websocket)
        self.connection_rooms[websocket] = room_code

        logger.info("→ %s joined '%s' (%d sockets)", user.email, room_code, len(self.rooms[room_code]))
        return True

    def disconnect(self, websocket: WebSocket) -> Tuple[Optional[str], Optional[SessionUser]]:
        """
        Forget a connection.

        The user stops being a room participant only when this was their last
        socket in the room. Returns (room_code, user) when that happened, so
        the caller can announce the departure.
        """
        user = self.connection_users.pop(websocket, None)
        room_code = self.connection_rooms.pop(websocket, None)

        if user is not None:
            sockets = self.user_connections.get(user.id)
            if sockets is not None:
                sockets.discard(websocket)
                if not sockets:
                    del self.user_connections[user.id]

        departed = False
        if room_code is not None and room_code in self.rooms:
            self.rooms[room_code].discard(websocket)
            still_present = user is not None and any(
                self.connection_users.get(ws) is not None and self.connection_users[ws].id == user.id
                for ws in self.rooms[room_code]
            )
            if not self.rooms[room_code]:
                del self.rooms[room_code]
            if user is not None and not still_present:
                self.room_manager.remove_participant(room_code, user.id)
                departed = True

        if user is not None:
            logger.info("✗ User %s disconnected. Total: %d", user.email, len(self.connection_users))

        if departed:
            return room_code, user
        return None, None

    async def broadcast_to_room(self, room_code: str, message: dict) -> None:
        """
        Send an event to every WebSocket subscribed to a room.

        Failed sends mark the connection as gone and it is cleaned up.
        """
        if room_code not in self.rooms:
            logger.debug("[routing] Skipped broadcast: room=%s has 0 subscribers", room_code)
            return

        disconnected = set()
        connections = self.rooms[room_code].copy()  # Copy to avoid modification during iteration

        logger.debug("📨 Broadcasting %s to room %s: %d clients", message.get("type"), room_code, len(connections))

        for connection in connections:
            try:
                await connection.send_json(message)
            except Exception as e:
                logger.error("Send error: %s", e)
                disconnected.add(connection)

        for conn in disconnected:
            self.disconnect(conn)

    async def send_to_user(self, user_id: str, message: dict) -> int:
        """Push an event to every open socket of a user. Returns deliveries."""
        delivered = 0
        for connection in list(self.user_connections.get(user_id, ())):
            try:
                await connection.send_json(message)
                delivered += 1
            except Exception as e:
                logger.error("Send error: %s", e)
                self.disconnect(connection)
        return delivered

    async def close_room(self, room_code: str, reason: str = "Room closed") -> None:
        """Tell every socket in a room that it closed and unsubscribe them."""
        connections = self.rooms.pop(room_code, set())
        for connection in connections:
            self.connection_rooms.pop(connection, None)
            try:
                await connection.send_json({"type": "room_closed", "roomCode": room_code, "reason": reason})
                await connection.close(code=1000)
            except Exception as e:
                logger.error("Close error: %s", e)

    def get_rooms_info(self) -> Dict[str, dict]:
        """
        Connected sockets and active participants per room with sockets.

        Used by the health and admin endpoints.
        """
        result: Dict[str, dict] = {}
        for room_code, connections in self.rooms.items():
            room = self.room_manager.get_room(room_code)
            if room:
                result[room_code] = {
                    "mediaTitle": room.media_title,
                    "connections": len(connections),
                    "participants": len(room.active_participants()),
                }
        return result
