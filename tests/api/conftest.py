import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from watchparty.dependencies.services import (
    get_playback_relay,
    get_room_registry,
    get_upload_service,
    get_upload_tracker,
)
from watchparty.main import app
from watchparty.services.upload_service import UploadService


@pytest_asyncio.fixture
async def client(playback_relay, room_registry, upload_tracker, tmp_path):
    upload_service = UploadService(upload_tracker, upload_dir=tmp_path)

    app.dependency_overrides[get_playback_relay] = lambda: playback_relay
    app.dependency_overrides[get_room_registry] = lambda: room_registry
    app.dependency_overrides[get_upload_tracker] = lambda: upload_tracker
    app.dependency_overrides[get_upload_service] = lambda: upload_service

    services = {
        "relay": playback_relay,
        "room_registry": room_registry,
        "upload_tracker": upload_tracker,
        "upload_dir": tmp_path,
    }

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client_instance:
        yield client_instance, services

    app.dependency_overrides.clear()
