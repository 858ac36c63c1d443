import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from fastapi.websockets import WebSocketState
from pydantic import ValidationError

from watchparty.core.error import DomainErrorCode, WatchPartyDomainError
from watchparty.core.playback_relay import PlaybackRelay
from watchparty.dependencies.services import (
    get_playback_relay,
    get_room_registry,
    get_upload_tracker,
)
from watchparty.models.session import SessionContext
from watchparty.schemas.ws import (
    CheckRoomData,
    ConnectedData,
    JoinRoomData,
    VideoStateData,
    VideoUploadedData,
    WebSocketMessage,
    WSActionType,
    ws_error,
    ws_event,
)
from watchparty.services.room_registry import RoomRegistry
from watchparty.services.upload_service import UploadTracker

logger = logging.getLogger(__name__)

router = APIRouter()


class RoomWebSocketHandler:
    def __init__(
        self,
        websocket: WebSocket,
        room_registry: RoomRegistry,
        playback_relay: PlaybackRelay,
        upload_tracker: UploadTracker,
    ):
        self.websocket = websocket
        self.room_registry = room_registry
        self.playback_relay = playback_relay
        self.upload_tracker = upload_tracker
        self.connection_id: str | None = None
        self.session: SessionContext | None = None
        self.closing = False

        self.message_handlers = {
            WSActionType.PING: self.handle_ping,
            WSActionType.CHECK_ROOM: self.handle_check_room,
            WSActionType.JOIN_ROOM: self.handle_join_room,
            WSActionType.LEAVE_ROOM: self.handle_leave_room,
            WSActionType.VIDEO_UPLOADED: self.handle_video_uploaded,
            WSActionType.VIDEO_STATE_CHANGE: self.handle_video_state_change,
            WSActionType.START_UPLOAD: self.handle_start_upload,
        }

    async def handle_connection(self) -> bool:
        result = True
        await self.websocket.accept()
        self.connection_id = self.playback_relay.register(self.websocket)
        self.reply(
            ws_event(
                WSActionType.CONNECTED,
                ConnectedData(connection_id=self.connection_id),
            )
        )
        try:
            await self.handle_messages()
        except WebSocketDisconnect:
            await self.handle_disconnection()
        except Exception as e:
            await self.handle_error(e)
            result = False
        finally:
            await self.release()
            await self.playback_relay.unregister(self.connection_id)

        return result

    def reply(self, message: dict) -> None:
        if self.connection_id is not None:
            self.playback_relay.send(self.connection_id, message)

    async def handle_messages(self):
        while (
            not self.closing
            and self.websocket.application_state != WebSocketState.DISCONNECTED
        ):
            raw = await self.websocket.receive_text()
            try:
                message = WebSocketMessage.model_validate_json(raw)
            except ValidationError as e:
                self.reply(
                    ws_error(
                        f"Invalid message format: {e!s}",
                        code=DomainErrorCode.INVALID_MESSAGE,
                    )
                )
                continue

            handler = self.message_handlers.get(message.action)
            if handler is None:
                self.reply(
                    ws_error(
                        f"Unknown action: {message.action}",
                        code=DomainErrorCode.INVALID_MESSAGE,
                        request_id=message.request_id,
                    )
                )
                continue

            try:
                await handler(message)
            except WatchPartyDomainError as e:
                self.reply(
                    ws_error(
                        e.message,
                        code=e.code,
                        action=message.action,
                        request_id=message.request_id,
                    )
                )
            except ValidationError as e:
                self.reply(
                    ws_error(
                        f"Invalid payload: {e!s}",
                        code=DomainErrorCode.INVALID_MESSAGE,
                        action=message.action,
                        request_id=message.request_id,
                    )
                )

    async def handle_ping(self, message: WebSocketMessage):
        self.reply(
            ws_event(
                WSActionType.PONG,
                {"message": "pong"},
                request_id=message.request_id,
            )
        )

    async def handle_check_room(self, message: WebSocketMessage):
        data = CheckRoomData.model_validate(message.data or {})
        room_status = self.room_registry.check_room(data.room_code)
        self.reply(
            ws_event(
                WSActionType.CHECK_ROOM,
                room_status,
                request_id=message.request_id,
            )
        )

    async def handle_join_room(self, message: WebSocketMessage):
        if self.session is not None:
            raise WatchPartyDomainError(
                code=DomainErrorCode.ALREADY_JOINED,
                message=f"Already joined room {self.session.room_code}",
                details={"room_code": self.session.room_code},
            )

        data = JoinRoomData.model_validate(message.data or {})
        try:
            result = await self.room_registry.join(
                data.room_code,
                data.display_name,
                data.is_host,
                connection_id=self.connection_id,
            )
        except WatchPartyDomainError as e:
            logger.info(
                "Join of %s to %s rejected: %s",
                data.display_name,
                data.room_code,
                e.code.value,
            )
            raise

        self.session = SessionContext(
            connection_id=self.connection_id,
            room_code=data.room_code,
            display_name=data.display_name,
            is_host=data.is_host,
        )

        if result.snapshot is not None:
            self.reply(
                ws_event(
                    WSActionType.VIDEO_UPLOADED,
                    VideoUploadedData(url=result.snapshot.video_url),
                )
            )
            self.reply(
                ws_event(
                    WSActionType.VIDEO_STATE_CHANGE,
                    VideoStateData(
                        is_playing=result.snapshot.is_playing,
                        current_time=result.snapshot.current_time,
                    ),
                )
            )

        self.reply(
            ws_event(
                WSActionType.JOIN_ROOM,
                {"success": True},
                request_id=message.request_id,
            )
        )

    async def handle_leave_room(self, message: WebSocketMessage):
        await self.release()
        self.reply(
            ws_event(
                WSActionType.LEAVE_ROOM,
                {"success": True},
                request_id=message.request_id,
            )
        )
        if self.connection_id is not None:
            self.playback_relay.close(
                self.connection_id, status.WS_1000_NORMAL_CLOSURE
            )
        self.closing = True

    def _host_session(self, action: WSActionType) -> SessionContext | None:
        if self.session is None or not self.session.is_host:
            logger.debug(
                "Ignoring %s from non-host connection %s", action, self.connection_id
            )
            return None
        return self.session

    async def handle_video_uploaded(self, message: WebSocketMessage):
        session = self._host_session(WSActionType.VIDEO_UPLOADED)
        if session is None:
            return

        data = VideoUploadedData.model_validate(message.data or {})
        await self.room_registry.publish_video(session.room_code, data.url)

    async def handle_video_state_change(self, message: WebSocketMessage):
        session = self._host_session(WSActionType.VIDEO_STATE_CHANGE)
        if session is None:
            return

        data = VideoStateData.model_validate(message.data or {})
        await self.room_registry.set_playback_state(
            session.room_code,
            data.is_playing,
            data.current_time,
            sender=self.connection_id,
        )

    async def handle_start_upload(self, message: WebSocketMessage):
        if self.connection_id is not None:
            self.upload_tracker.start(self.connection_id)

    async def release(self):
        """Give up room membership and any upload; safe to call repeatedly."""
        if self.connection_id is not None:
            self.upload_tracker.discard(self.connection_id)

        session, self.session = self.session, None
        if session is None:
            return

        await self.room_registry.leave(
            session.room_code,
            session.display_name,
            connection_id=session.connection_id,
        )

    async def handle_disconnection(self):
        logger.debug("Connection %s disconnected", self.connection_id)
        await self.release()

    async def handle_error(self, e: Exception):
        logger.exception("Connection %s failed", self.connection_id)
        await self.release()
        if self.connection_id is not None:
            self.playback_relay.close(
                self.connection_id, status.WS_1011_INTERNAL_ERROR, str(e)
            )


@router.websocket("/ws")
async def room_websocket(
    websocket: WebSocket,
    room_registry: RoomRegistry = Depends(get_room_registry),
    playback_relay: PlaybackRelay = Depends(get_playback_relay),
    upload_tracker: UploadTracker = Depends(get_upload_tracker),
):
    handler = RoomWebSocketHandler(
        websocket, room_registry, playback_relay, upload_tracker
    )
    await handler.handle_connection()
