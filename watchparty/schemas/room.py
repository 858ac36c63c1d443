from pydantic import BaseModel


class MemberResponse(BaseModel):
    display_name: str
    is_host: bool


class RoomStatusResponse(BaseModel):
    exists: bool
    has_host: bool


class RoomCodeResponse(BaseModel):
    room_code: str


class RoomMembersResponse(BaseModel):
    room_code: str
    users: list[MemberResponse]


class CatchUpSnapshot(BaseModel):
    video_url: str
    is_playing: bool
    current_time: float


class JoinResult(BaseModel):
    members: list[MemberResponse]
    snapshot: CatchUpSnapshot | None = None
