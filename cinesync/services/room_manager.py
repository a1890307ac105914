# cinesync/services/room_manager.py

from __future__ import annotations

from datetime import datetime, timedelta
import math
from typing import Dict, List, Optional
import uuid

from cinesync.core.errors import BadRequest, Conflict, NotFound
from cinesync.core.logging import get_logger
from cinesync.models.base import utcnow
from cinesync.models.room import ChatMessage, Participant, PlaybackState, WatchRoom

logger = get_logger(__name__)

DEFAULT_CHAT_LIMIT = 50
MAX_CHAT_LIMIT = 200
MAX_MESSAGE_LENGTH = 1000


# ============================================================================
# WATCH ROOM SESSIONS
# ============================================================================

class RoomManager:
    """
    Owns every watch-together session: membership, shared playback and chat.

    Rooms are keyed by their room code, which is unique and never reassigned.
    A user is an active participant of at most one room; joining another room
    closes the previous membership. Leaving keeps the participant record with
    ``left_at`` set so room history survives.

    Attributes:
        rooms: Dictionary mapping room_code -> WatchRoom
        messages: Dictionary mapping room_code -> chat log in sequence order

    Usage:
        room_manager = RoomManager()
        room = room_manager.create_room("MOVIE-123", creator_id, "Alice", 603, "movie", "The Matrix")
        room_manager.save_chat_message("MOVIE-123", creator_id, "Alice", "hi")
        history = room_manager.get_chat_history("MOVIE-123")
    """

    def __init__(self) -> None:
        self.rooms: Dict[str, WatchRoom] = {}
        self.messages: Dict[str, List[ChatMessage]] = {}
        # user_id -> room_code of the room they are currently in
        self.active_room_by_user: Dict[str, str] = {}

    # ------------------------------------------------------------------------
    # Rooms
    # ------------------------------------------------------------------------

    def create_room(
        self,
        room_code: str,
        creator_id: str,
        creator_name: str,
        media_id: int,
        media_type: str,
        media_title: str,
        embed_url: Optional[str] = None,
        poster_path: Optional[str] = None,
        season: Optional[int] = None,
        episode: Optional[int] = None,
    ) -> WatchRoom:
        """
        Create a room and seat its creator as host.

        Raises:
            BadRequest: blank room code
            Conflict: the room code is already taken
        """
        room_code = room_code.strip()
        if not room_code:
            raise BadRequest("Missing roomCode")
        if room_code in self.rooms:
            raise Conflict("Room code already in use")

        room = WatchRoom(
            id=str(uuid.uuid4()),
            room_code=room_code,
            creator_id=creator_id,
            media_id=media_id,
            media_type=media_type,
            media_title=media_title,
            embed_url=embed_url,
            poster_path=poster_path,
            season=season,
            episode=episode,
            playback=PlaybackState(media_id=media_id),
        )
        self.rooms[room_code] = room
        self.messages[room_code] = []
        self._seat(room, creator_id, creator_name, role="host")

        logger.info("✓ Created watch room %s for '%s'", room_code, media_title)
        return room

    def get_room(self, room_code: str) -> Optional[WatchRoom]:
        return self.rooms.get(room_code)

    def get_room_by_id(self, room_id: str) -> Optional[WatchRoom]:
        for room in self.rooms.values():
            if room.id == room_id:
                return room
        return None

    def require_room(self, room_code: str) -> WatchRoom:
        room = self.rooms.get(room_code)
        if not room:
            raise NotFound("Room not found")
        return room

    def list_rooms(self, active_only: bool = False) -> List[WatchRoom]:
        rooms = [r for r in self.rooms.values() if r.is_active or not active_only]
        rooms.sort(key=lambda r: r.created_at, reverse=True)
        return rooms

    def user_rooms(self, user_id: str, limit: int = 10) -> List[WatchRoom]:
        """Rooms the user created or took part in, most recently active first."""
        rooms = [
            room
            for room in self.rooms.values()
            if room.creator_id == user_id
            or any(p.user_id == user_id for p in room.participants)
        ]
        rooms.sort(key=lambda r: r.last_active_at, reverse=True)
        return rooms[:limit]

    def close_room(self, room_code: str) -> WatchRoom:
        """Mark a room inactive and end every active membership in it."""
        room = self.require_room(room_code)
        now = utcnow()
        for participant in room.active_participants():
            participant.left_at = now
            if self.active_room_by_user.get(participant.user_id) == room_code:
                del self.active_room_by_user[participant.user_id]
        room.is_active = False
        room.last_active_at = now
        logger.info("✓ Closed watch room %s", room_code)
        return room

    def touch(self, room: WatchRoom) -> None:
        room.last_active_at = utcnow()

    def active_rooms_count(self) -> int:
        return sum(1 for r in self.rooms.values() if r.is_active)

    def rooms_created_since(self, since: datetime) -> int:
        return sum(1 for r in self.rooms.values() if r.created_at >= since)

    def cleanup_inactive_rooms(self, hours_inactive: int = 24) -> int:
        """Close active rooms idle for longer than ``hours_inactive``."""
        cutoff = utcnow() - timedelta(hours=hours_inactive)
        stale = [
            code
            for code, room in self.rooms.items()
            if room.is_active and room.last_active_at < cutoff
        ]
        for code in stale:
            self.close_room(code)
        if stale:
            logger.info("Cleaned up %d inactive rooms", len(stale))
        return len(stale)

    # ------------------------------------------------------------------------
    # Participants
    # ------------------------------------------------------------------------

    def add_participant(self, room_code: str, user_id: str, username: str) -> Participant:
        """
        Join a user to a room.

        Rejoining the room the user is already in returns the existing
        membership. Joining a different room leaves the previous one first.

        Raises:
            NotFound: unknown room
            BadRequest: the room has been closed
        """
        room = self.require_room(room_code)
        if not room.is_active:
            raise BadRequest("Room is closed")

        current = self._active_membership(room, user_id)
        if current:
            return current

        role = "host" if user_id == room.creator_id and not room.active_participants() else "guest"
        participant = self._seat(room, user_id, username, role=role)
        logger.info("→ %s joined room %s (%d members)", username, room_code, len(room.active_participants()))
        return participant

    def remove_participant(self, room_code: str, user_id: str) -> Optional[Participant]:
        """End the user's active membership in the room, if any."""
        room = self.rooms.get(room_code)
        if not room:
            return None

        participant = self._active_membership(room, user_id)
        if not participant:
            return None

        participant.left_at = utcnow()
        if self.active_room_by_user.get(user_id) == room_code:
            del self.active_room_by_user[user_id]
        self.touch(room)
        logger.info("← %s left room %s", participant.username, room_code)
        return participant

    def _active_membership(self, room: WatchRoom, user_id: str) -> Optional[Participant]:
        for participant in room.participants:
            if participant.user_id == user_id and participant.is_active:
                return participant
        return None

    def _seat(self, room: WatchRoom, user_id: str, username: str, role: str) -> Participant:
        previous = self.active_room_by_user.get(user_id)
        if previous and previous != room.room_code:
            self.remove_participant(previous, user_id)

        participant = Participant(
            id=str(uuid.uuid4()),
            user_id=user_id,
            username=username,
            role=role,
        )
        room.participants.append(participant)
        self.active_room_by_user[user_id] = room.room_code
        self.touch(room)
        return participant

    # ------------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------------

    def update_playback(
        self,
        room_code: str,
        position: float,
        is_playing: bool,
        updated_by: Optional[str] = None,
        media_id: Optional[int] = None,
    ) -> PlaybackState:
        """Replace the shared playback state. Last writer wins."""
        room = self.require_room(room_code)
        if not room.is_active:
            raise BadRequest("Room is closed")
        if not math.isfinite(position):
            raise BadRequest("Playback position must be a finite number")
        if position < 0:
            raise BadRequest("Playback position must not be negative")

        room.playback = PlaybackState(
            media_id=media_id if media_id is not None else room.playback.media_id,
            position=position,
            is_playing=is_playing,
            updated_by=updated_by,
        )
        self.touch(room)
        return room.playback

    # ------------------------------------------------------------------------
    # Chat
    # ------------------------------------------------------------------------

    def save_chat_message(
        self, room_code: str, user_id: Optional[str], username: str, message: str
    ) -> ChatMessage:
        """
        Append a message to the room's chat log.

        Sequence numbers start at 1 and increase by one per message.

        Raises:
            NotFound: unknown room
            BadRequest: blank or oversized message, or a closed room
        """
        room = self.require_room(room_code)
        if not room.is_active:
            raise BadRequest("Room is closed")

        body = (message or "").strip()
        if not body:
            raise BadRequest("Message must not be empty")
        if len(body) > MAX_MESSAGE_LENGTH:
            raise BadRequest(f"Message exceeds {MAX_MESSAGE_LENGTH} characters")

        log = self.messages.setdefault(room_code, [])
        chat_message = ChatMessage(
            id=str(uuid.uuid4()),
            room_code=room_code,
            sequence=len(log) + 1,
            user_id=user_id,
            username=username,
            message=body,
        )
        log.append(chat_message)
        self.touch(room)
        return chat_message

    def get_chat_history(self, room_code: str, limit: int = DEFAULT_CHAT_LIMIT) -> List[ChatMessage]:
        """
        The newest ``limit`` messages of a room, oldest first.

        Unknown rooms and a non-positive ``limit`` return an empty list;
        ``limit`` is capped at MAX_CHAT_LIMIT.
        """
        if limit <= 0:
            return []
        limit = min(limit, MAX_CHAT_LIMIT)
        log = self.messages.get(room_code, [])
        return list(log[-limit:])
