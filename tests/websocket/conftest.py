import pytest
from fastapi.testclient import TestClient

from watchparty.api.v1.endpoints.ws_room import RoomWebSocketHandler
from watchparty.core.config import settings
from watchparty.core.playback_relay import PlaybackRelay
from watchparty.dependencies.services import (
    get_playback_relay,
    get_room_registry,
    get_upload_tracker,
)
from watchparty.main import app
from watchparty.services.room_registry import RoomRegistry
from watchparty.services.upload_service import UploadTracker


@pytest.fixture
def room_ws_client(make_websocket):
    return make_websocket()


@pytest.fixture
def make_handler(room_registry, playback_relay, upload_tracker):
    def _make(websocket, connect=True):
        handler = RoomWebSocketHandler(
            websocket=websocket,
            room_registry=room_registry,
            playback_relay=playback_relay,
            upload_tracker=upload_tracker,
        )
        if connect:
            handler.connection_id = playback_relay.register(websocket)
        return handler

    return _make


@pytest.fixture
def live_client(mocker, tmp_path):
    """Real websocket sessions against the app with isolated services."""
    relay = PlaybackRelay()
    registry = RoomRegistry(relay, closed_reason="host left")
    tracker = UploadTracker(relay)
    mocker.patch.object(settings, "UPLOAD_DIR", str(tmp_path))

    app.dependency_overrides[get_playback_relay] = lambda: relay
    app.dependency_overrides[get_room_registry] = lambda: registry
    app.dependency_overrides[get_upload_tracker] = lambda: tracker

    # one portal for every session, so all connections share an event loop
    with TestClient(app) as client:
        yield client, registry

    app.dependency_overrides.clear()
