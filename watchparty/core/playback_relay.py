import asyncio
import logging
from contextlib import suppress
from typing import Any
from uuid import uuid4

from fastapi import WebSocket, status

from watchparty.core.config import settings
from watchparty.schemas.ws import RoomClosedData, WSActionType, ws_event

logger = logging.getLogger(__name__)


class _Close:
    def __init__(self, code: int, reason: str = "") -> None:
        self.code = code
        self.reason = reason


_STOP = object()


class _Outbox:
    def __init__(self, websocket: WebSocket) -> None:
        self.websocket = websocket
        self.queue: asyncio.Queue[Any] = asyncio.Queue()
        self.task: asyncio.Task[None] | None = None

    @property
    def alive(self) -> bool:
        return self.task is not None and not self.task.done()


class PlaybackRelay:
    """Routes server messages to connections by room code or connection id.

    Every connection owns an outbox drained by its own sender task, so
    callers only enqueue. That keeps fan-out out of the registry's critical
    sections and preserves per-connection ordering.
    """

    def __init__(self, high_water: int | None = None) -> None:
        self.high_water = high_water or settings.OUTBOX_HIGH_WATER
        self.connections: dict[str, _Outbox] = {}
        self.room_groups: dict[str, set[str]] = {}
        self.connection_rooms: dict[str, str] = {}

    def register(self, websocket: WebSocket, connection_id: str | None = None) -> str:
        connection_id = connection_id or uuid4().hex
        outbox = _Outbox(websocket)
        outbox.task = asyncio.create_task(self._drain(connection_id, outbox))
        self.connections[connection_id] = outbox
        return connection_id

    async def unregister(self, connection_id: str, timeout: float = 1.0) -> None:
        self.unsubscribe(connection_id)
        outbox = self.connections.pop(connection_id, None)
        if outbox is None or not outbox.alive:
            return

        outbox.queue.put_nowait(_STOP)
        try:
            await asyncio.wait_for(asyncio.shield(outbox.task), timeout)
        except TimeoutError:
            outbox.task.cancel()
            with suppress(asyncio.CancelledError):
                await outbox.task

    def is_connected(self, connection_id: str) -> bool:
        return connection_id in self.connections

    def subscribe(self, room_code: str, connection_id: str) -> None:
        self.unsubscribe(connection_id)
        self.room_groups.setdefault(room_code, set()).add(connection_id)
        self.connection_rooms[connection_id] = room_code

    def unsubscribe(self, connection_id: str) -> None:
        room_code = self.connection_rooms.pop(connection_id, None)
        if room_code is None:
            return
        group = self.room_groups.get(room_code)
        if group is not None:
            group.discard(connection_id)
            if not group:
                del self.room_groups[room_code]

    def get_room_connections(self, room_code: str) -> set[str]:
        return set(self.room_groups.get(room_code, set()))

    def send(
        self, connection_id: str, message: dict, *, droppable: bool = False
    ) -> bool:
        outbox = self.connections.get(connection_id)
        if outbox is None or not outbox.alive:
            return False
        if droppable and outbox.queue.qsize() >= self.high_water:
            logger.debug("Dropped %s for %s", message.get("action"), connection_id)
            return False
        outbox.queue.put_nowait(message)
        return True

    def broadcast(
        self, room_code: str, message: dict, exclude_connection_id: str | None = None
    ) -> int:
        sent = 0
        for connection_id in self.get_room_connections(room_code):
            if connection_id == exclude_connection_id:
                continue
            if self.send(connection_id, message):
                sent += 1
        return sent

    def close(
        self,
        connection_id: str,
        code: int = status.WS_1000_NORMAL_CLOSURE,
        reason: str = "",
    ) -> None:
        outbox = self.connections.get(connection_id)
        if outbox is not None and outbox.alive:
            outbox.queue.put_nowait(_Close(code, reason))

    def close_room(self, room_code: str, reason: str) -> set[str]:
        """Notify every connection in the room, then drop them."""
        connection_ids = self.get_room_connections(room_code)
        notice = ws_event(WSActionType.ROOM_CLOSED, RoomClosedData(reason=reason))
        for connection_id in connection_ids:
            self.send(connection_id, notice)
            self.close(connection_id, status.WS_1000_NORMAL_CLOSURE, reason)
            self.unsubscribe(connection_id)
        return connection_ids

    async def flush(self, connection_id: str | None = None) -> None:
        if connection_id is None:
            outboxes = list(self.connections.values())
        else:
            outbox = self.connections.get(connection_id)
            outboxes = [outbox] if outbox is not None else []
        for outbox in outboxes:
            if outbox.alive:
                await outbox.queue.join()

    async def shutdown(self) -> None:
        for connection_id in list(self.connections):
            await self.unregister(connection_id)

    def clear(self) -> None:
        for outbox in self.connections.values():
            if outbox.task is not None:
                outbox.task.cancel()
        self.connections.clear()
        self.room_groups.clear()
        self.connection_rooms.clear()

    async def _drain(self, connection_id: str, outbox: _Outbox) -> None:
        try:
            while True:
                item = await outbox.queue.get()
                try:
                    if not await self._deliver(connection_id, outbox.websocket, item):
                        return
                finally:
                    outbox.queue.task_done()
        finally:
            while not outbox.queue.empty():
                outbox.queue.get_nowait()
                outbox.queue.task_done()

    async def _deliver(
        self, connection_id: str, websocket: WebSocket, item: Any
    ) -> bool:
        if item is _STOP:
            return False
        if isinstance(item, _Close):
            try:
                await websocket.close(code=item.code, reason=item.reason)
            except Exception:
                logger.debug("Close failed for %s", connection_id, exc_info=True)
            return False
        try:
            await websocket.send_json(item)
        except Exception:
            logger.warning(
                "Failed to send %s to %s", item.get("action"), connection_id
            )
            self.unsubscribe(connection_id)
            return False
        return True


relay = PlaybackRelay()
