import logging
from collections.abc import Callable
from typing import Any

from watchparty.schemas.room import MemberResponse
from watchparty.schemas.ws import (
    ConnectedData,
    RoomClosedData,
    UploadProgressData,
    UserListData,
    VideoStateData,
    VideoUploadedData,
    WSActionType,
)
from watchparty.sync.engine import ClientSyncEngine

logger = logging.getLogger(__name__)


class RoomClientState:
    """Client-side view of a room, fed with the server's websocket events."""

    def __init__(
        self,
        display_name: str,
        is_host: bool = False,
        engine: ClientSyncEngine | None = None,
        on_video: Callable[[str], None] | None = None,
    ) -> None:
        self.display_name = display_name
        self.is_host = is_host
        self.engine = engine
        self.on_video = on_video

        self.connection_id: str | None = None
        self.users: list[MemberResponse] = []
        self.video_url: str | None = None
        self.playback = VideoStateData(is_playing=False, current_time=0.0)
        self.upload: UploadProgressData | None = None
        self.closed_reason: str | None = None
        self.last_error: str | None = None

        self._handlers: dict[str, Callable[[dict[str, Any]], None]] = {
            WSActionType.CONNECTED: self._on_connected,
            WSActionType.USER_JOINED: self._on_user_list,
            WSActionType.USER_LEFT: self._on_user_list,
            WSActionType.VIDEO_UPLOADED: self._on_video_uploaded,
            WSActionType.VIDEO_STATE_CHANGE: self._on_video_state_change,
            WSActionType.ROOM_CLOSED: self._on_room_closed,
            WSActionType.UPLOAD_PROGRESS: self._on_upload_progress,
        }

    @property
    def closed(self) -> bool:
        return self.closed_reason is not None

    def handle(self, message: dict[str, Any]) -> None:
        if message.get("status") == "error":
            self.last_error = message.get("error")
            return

        handler = self._handlers.get(message.get("action", ""))
        if handler is None:
            return
        handler(message.get("data") or {})

    def _on_connected(self, data: dict[str, Any]) -> None:
        self.connection_id = ConnectedData.model_validate(data).connection_id

    def _on_user_list(self, data: dict[str, Any]) -> None:
        self.users = UserListData.model_validate(data).users

    def _on_video_uploaded(self, data: dict[str, Any]) -> None:
        self.video_url = VideoUploadedData.model_validate(data).url
        self.playback = VideoStateData(is_playing=False, current_time=0.0)
        if self.engine is not None and not self.is_host:
            self.engine.reset(self.playback)
        if self.on_video is not None:
            self.on_video(self.video_url)

    def _on_video_state_change(self, data: dict[str, Any]) -> None:
        self.playback = VideoStateData.model_validate(data)
        if self.engine is not None and not self.is_host:
            self.engine.apply(self.playback)

    def _on_room_closed(self, data: dict[str, Any]) -> None:
        self.closed_reason = RoomClosedData.model_validate(data).reason
        logger.info("Room closed: %s", self.closed_reason)

    def _on_upload_progress(self, data: dict[str, Any]) -> None:
        self.upload = UploadProgressData.model_validate(data)
