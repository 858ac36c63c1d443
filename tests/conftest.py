import pytest
import pytest_asyncio
from dotenv import load_dotenv
from fastapi import WebSocket
from fastapi.websockets import WebSocketState

from watchparty.core.playback_relay import PlaybackRelay
from watchparty.services.room_registry import RoomRegistry
from watchparty.services.upload_service import UploadTracker


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    load_dotenv(".env.test", override=True)
    yield

    load_dotenv(".env", override=True)


@pytest_asyncio.fixture
async def playback_relay():
    relay = PlaybackRelay(high_water=4)

    yield relay
    relay.clear()


@pytest.fixture
def room_registry(playback_relay):
    registry = RoomRegistry(playback_relay, closed_reason="host left")

    yield registry
    registry.clear()


@pytest.fixture
def upload_tracker(playback_relay):
    tracker = UploadTracker(playback_relay)

    yield tracker
    tracker.clear()


@pytest.fixture
def make_websocket(mocker):
    def _make():
        websocket = mocker.AsyncMock(spec=WebSocket)
        websocket.application_state = WebSocketState.CONNECTED
        return websocket

    return _make
