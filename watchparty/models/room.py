from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field


class RoomState(str, Enum):
    ACTIVE = "active"
    DEGRADED = "degraded"
    CLOSED = "closed"


class Member(BaseModel):
    display_name: str
    is_host: bool = False
    # routing only, never sent to other clients
    connection_id: str | None = None


class PlaybackState(BaseModel):
    is_playing: bool = False
    current_time: float = 0.0
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class Room(BaseModel):
    code: str
    members: list[Member] = Field(default_factory=list)
    video_url: str | None = None
    playback: PlaybackState = Field(default_factory=PlaybackState)
    closed: bool = False

    @property
    def host(self) -> Member | None:
        return next((m for m in self.members if m.is_host), None)

    @property
    def has_host(self) -> bool:
        return self.host is not None

    @property
    def state(self) -> RoomState:
        if self.closed:
            return RoomState.CLOSED
        if not self.has_host:
            return RoomState.DEGRADED
        return RoomState.ACTIVE

    def find_member(self, display_name: str) -> Member | None:
        return next(
            (m for m in self.members if m.display_name == display_name), None
        )
