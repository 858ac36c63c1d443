from datetime import UTC, datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from watchparty.schemas.room import MemberResponse
from watchparty.util.validators import normalize_room_code, validate_display_name


class WSActionType(str, Enum):
    PING = "ping"
    CHECK_ROOM = "check-room"
    JOIN_ROOM = "join-room"
    LEAVE_ROOM = "leave-room"
    START_UPLOAD = "start-upload"

    PONG = "pong"
    CONNECTED = "connected"
    USER_JOINED = "user-joined"
    USER_LEFT = "user-left"
    ROOM_CLOSED = "room-closed"
    UPLOAD_PROGRESS = "upload-progress"
    ERROR = "error"

    # both directions: host -> server, server -> room
    VIDEO_UPLOADED = "video-uploaded"
    VIDEO_STATE_CHANGE = "video-state-change"


class WebSocketMessage(BaseModel):
    action: str
    data: dict[str, Any] | None = None
    request_id: str | None = None


class WebSocketResponse(BaseModel):
    status: Literal["success", "error"]
    action: str
    data: dict[str, Any] | None = None
    error: str | None = None
    code: str | None = None
    request_id: str | None = None
    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())


def ws_event(
    action: WSActionType,
    data: BaseModel | dict[str, Any] | None = None,
    request_id: str | None = None,
) -> dict[str, Any]:
    if isinstance(data, BaseModel):
        data = data.model_dump()
    return WebSocketResponse(
        status="success",
        action=WSActionType(action).value,
        data=data,
        request_id=request_id,
    ).model_dump(mode="json")


def ws_error(
    error: str,
    code: Enum | str | None = None,
    action: WSActionType | str = WSActionType.ERROR,
    request_id: str | None = None,
) -> dict[str, Any]:
    return WebSocketResponse(
        status="error",
        action=action.value if isinstance(action, WSActionType) else action,
        error=error,
        code=code.value if isinstance(code, Enum) else code,
        request_id=request_id,
    ).model_dump(mode="json")


class CheckRoomData(BaseModel):
    room_code: str

    @field_validator("room_code")
    @classmethod
    def _strip_room_code(cls, v: str) -> str:
        # lookups never fail; malformed codes simply do not exist
        return v.strip().upper()


class JoinRoomData(BaseModel):
    room_code: str
    display_name: str
    is_host: bool = False

    @field_validator("room_code")
    @classmethod
    def _normalize_room_code(cls, v: str) -> str:
        return normalize_room_code(v)

    @field_validator("display_name")
    @classmethod
    def _validate_display_name(cls, v: str) -> str:
        return validate_display_name(v)


class ConnectedData(BaseModel):
    connection_id: str


class UserListData(BaseModel):
    users: list[MemberResponse]


class VideoUploadedData(BaseModel):
    url: str


class VideoStateData(BaseModel):
    is_playing: bool
    current_time: float


class RoomClosedData(BaseModel):
    reason: str


class UploadProgressData(BaseModel):
    uploaded_bytes: int
    total_bytes: int
    progress_percent: int
