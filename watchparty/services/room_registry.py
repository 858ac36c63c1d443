import asyncio
import logging
from datetime import UTC, datetime
from weakref import WeakValueDictionary

from watchparty.core.config import settings
from watchparty.core.error import DomainErrorCode, WatchPartyDomainError
from watchparty.core.playback_relay import PlaybackRelay, relay
from watchparty.models.room import Member, PlaybackState, Room
from watchparty.schemas.room import (
    CatchUpSnapshot,
    JoinResult,
    MemberResponse,
    RoomStatusResponse,
)
from watchparty.schemas.ws import (
    UserListData,
    VideoStateData,
    VideoUploadedData,
    WSActionType,
    ws_event,
)
from watchparty.util.validators import generate_room_code

logger = logging.getLogger(__name__)


class RoomRegistry:
    """Process-wide owner of every active room.

    Mutations of one room are serialized by a per-code ``asyncio.Lock``;
    different rooms never contend. Nothing inside a critical section awaits
    I/O: fan-out goes through the relay, which only enqueues.
    """

    def __init__(
        self,
        playback_relay: PlaybackRelay,
        closed_reason: str | None = None,
    ) -> None:
        self.relay = playback_relay
        self.closed_reason = closed_reason or settings.ROOM_CLOSED_REASON
        self.rooms: dict[str, Room] = {}
        self._locks: WeakValueDictionary[str, asyncio.Lock] = WeakValueDictionary()

    @staticmethod
    def _key(room_code: str) -> str:
        return room_code.strip().upper()

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def check_room(self, room_code: str) -> RoomStatusResponse:
        room = self.rooms.get(self._key(room_code))
        return RoomStatusResponse(
            exists=room is not None,
            has_host=room is not None and room.has_host,
        )

    def get_members(self, room_code: str) -> list[MemberResponse]:
        room = self.rooms.get(self._key(room_code))
        if room is None:
            raise WatchPartyDomainError(
                code=DomainErrorCode.ROOM_NOT_FOUND,
                message="Room does not exist",
                details={"room_code": room_code},
            )
        return self._member_list(room)

    def active_room_codes(self) -> list[str]:
        return sorted(self.rooms)

    def generate_code(self, length: int | None = None) -> str:
        length = length or settings.ROOM_CODE_LENGTH
        while True:
            code = generate_room_code(length)
            if code not in self.rooms:
                return code

    async def join(
        self,
        room_code: str,
        display_name: str,
        is_host: bool,
        connection_id: str | None = None,
    ) -> JoinResult:
        key = self._key(room_code)
        async with self._lock_for(key):
            room = self.rooms.get(key)
            self._check_join(key, room, display_name, is_host)

            if room is None:
                room = Room(code=key)
                self.rooms[key] = room
                logger.info("Room %s created by %s", key, display_name)

            room.members.append(
                Member(
                    display_name=display_name,
                    is_host=is_host,
                    connection_id=connection_id,
                )
            )
            if connection_id is not None:
                self.relay.subscribe(key, connection_id)

            members = self._member_list(room)
            self.relay.broadcast(
                key, ws_event(WSActionType.USER_JOINED, UserListData(users=members))
            )
            logger.info(
                "%s joined room %s as %s (%d members)",
                display_name,
                key,
                "host" if is_host else "participant",
                len(members),
            )

            snapshot = None
            if room.video_url is not None:
                snapshot = CatchUpSnapshot(
                    video_url=room.video_url,
                    is_playing=room.playback.is_playing,
                    current_time=room.playback.current_time,
                )
            return JoinResult(members=members, snapshot=snapshot)

    def _check_join(
        self, key: str, room: Room | None, display_name: str, is_host: bool
    ) -> None:
        if room is None:
            if not is_host:
                raise WatchPartyDomainError(
                    code=DomainErrorCode.ROOM_NOT_FOUND,
                    message="Room does not exist",
                    details={"room_code": key},
                )
            return

        if not room.has_host and not is_host:
            raise WatchPartyDomainError(
                code=DomainErrorCode.NO_HOST,
                message="Cannot join room without a host",
                details={"room_code": key},
            )

        if room.has_host and is_host:
            raise WatchPartyDomainError(
                code=DomainErrorCode.HOST_CONFLICT,
                message="Room already has a host",
                details={"room_code": key},
            )

        if room.find_member(display_name) is not None:
            raise WatchPartyDomainError(
                code=DomainErrorCode.NAME_TAKEN,
                message="Display name is already taken in this room",
                details={"room_code": key, "display_name": display_name},
            )

    async def leave(
        self,
        room_code: str,
        display_name: str,
        connection_id: str | None = None,
    ) -> list[MemberResponse]:
        """Remove a member; returns the remaining members.

        When ``connection_id`` is given only a member bound to that
        connection is removed, so a late disconnect cannot evict a namesake
        from a new room that reused the code.
        """
        key = self._key(room_code)
        async with self._lock_for(key):
            room = self.rooms.get(key)
            if room is None:
                return []

            member = room.find_member(display_name)
            if member is None or (
                connection_id is not None and member.connection_id != connection_id
            ):
                return self._member_list(room)

            room.members.remove(member)
            if member.connection_id is not None:
                self.relay.unsubscribe(member.connection_id)
            logger.info("%s left room %s", display_name, key)

            if not room.members or not room.has_host:
                self._close(key, room)
                return []

            members = self._member_list(room)
            self.relay.broadcast(
                key, ws_event(WSActionType.USER_LEFT, UserListData(users=members))
            )
            return members

    def _close(self, key: str, room: Room) -> None:
        if room.members:
            logger.info(
                "Room %s lost its host, closing with %d members",
                key,
                len(room.members),
            )
        room.closed = True
        self.relay.close_room(key, self.closed_reason)
        room.members.clear()
        del self.rooms[key]
        logger.info("Room %s closed", key)

    async def publish_video(self, room_code: str, url: str) -> bool:
        key = self._key(room_code)
        async with self._lock_for(key):
            room = self.rooms.get(key)
            if room is None:
                return False

            room.video_url = url
            room.playback = PlaybackState(is_playing=False, current_time=0.0)
            self.relay.broadcast(
                key, ws_event(WSActionType.VIDEO_UPLOADED, VideoUploadedData(url=url))
            )
            logger.info("Room %s now plays %s", key, url)
            return True

    async def set_playback_state(
        self,
        room_code: str,
        is_playing: bool,
        current_time: float,
        sender: str | None = None,
    ) -> bool:
        key = self._key(room_code)
        async with self._lock_for(key):
            room = self.rooms.get(key)
            if room is None:
                return False

            room.playback = PlaybackState(
                is_playing=is_playing,
                current_time=current_time,
                updated_at=datetime.now(UTC),
            )
            self.relay.broadcast(
                key,
                ws_event(
                    WSActionType.VIDEO_STATE_CHANGE,
                    VideoStateData(is_playing=is_playing, current_time=current_time),
                ),
                exclude_connection_id=sender,
            )
            return True

    def clear(self) -> None:
        self.rooms.clear()

    @staticmethod
    def _member_list(room: Room) -> list[MemberResponse]:
        return [
            MemberResponse(display_name=m.display_name, is_host=m.is_host)
            for m in room.members
        ]


room_registry = RoomRegistry(relay)
