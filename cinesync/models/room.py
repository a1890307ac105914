# cinesync/models/room.py
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field

from cinesync.models.base import CamelModel, MediaType, utcnow


class PlaybackState(CamelModel):
    media_id: int
    position: float = 0.0
    is_playing: bool = False
    updated_by: Optional[str] = None
    updated_at: datetime = Field(default_factory=utcnow)


class Participant(CamelModel):
    id: str
    user_id: str
    username: str
    role: Literal["host", "guest"] = "guest"
    joined_at: datetime = Field(default_factory=utcnow)
    left_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.left_at is None


class WatchRoom(CamelModel):
    id: str
    room_code: str
    creator_id: str
    media_id: int
    media_type: MediaType
    media_title: str
    embed_url: Optional[str] = None
    poster_path: Optional[str] = None
    season: Optional[int] = None
    episode: Optional[int] = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    last_active_at: datetime = Field(default_factory=utcnow)
    playback: PlaybackState
    participants: List[Participant] = Field(default_factory=list)

    def active_participants(self) -> List[Participant]:
        return [p for p in self.participants if p.is_active]

    def summary(self) -> dict:
        """Room with only the active participants, as the client renders it."""
        data = self.to_json()
        data["participants"] = [p.to_json() for p in self.active_participants()]
        return data


class ChatMessage(CamelModel):
    id: str
    room_code: str
    sequence: int
    user_id: Optional[str] = None
    username: str
    message: str
    created_at: datetime = Field(default_factory=utcnow)


class CreateWatchRoomRequest(CamelModel):
    room_code: Optional[str] = None
    media_id: Optional[int] = None
    media_type: Optional[MediaType] = None
    media_title: Optional[str] = None
    embed_url: Optional[str] = None
    poster_path: Optional[str] = None
    season: Optional[int] = None
    episode: Optional[int] = None


class CloseWatchRoomRequest(CamelModel):
    room_code: Optional[str] = None


class PostChatMessageRequest(CamelModel):
    room_code: Optional[str] = None
    message: Optional[str] = None
