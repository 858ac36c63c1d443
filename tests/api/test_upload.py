import pytest
import pytest_asyncio
from fastapi import status

from tests.helpers import sent_messages
from watchparty.core.error import DomainErrorCode
from watchparty.schemas.ws import WSActionType


@pytest_asyncio.fixture
async def uploader(client, make_websocket):
    _, services = client
    websocket = make_websocket()
    return websocket, services["relay"].register(websocket)


@pytest.mark.asyncio
async def test_upload_success(client, uploader):
    client_instance, services = client
    websocket, connection_id = uploader

    response = await client_instance.post(
        "/api/v1/upload",
        params={"filename": "party.mp4"},
        content=b"\x00" * 1024,
        headers={"Content-Type": "video/mp4", "X-Connection-ID": connection_id},
    )
    await services["relay"].flush()

    assert response.status_code == status.HTTP_200_OK
    url = response.json()["url"]
    assert url.startswith("http://test/uploads/")
    assert url.endswith("-party.mp4")
    stored_name = url.rsplit("/", 1)[1]
    assert (services["upload_dir"] / stored_name).stat().st_size == 1024

    progress = [
        m["data"]
        for m in sent_messages(websocket)
        if m["action"] == WSActionType.UPLOAD_PROGRESS
    ]
    assert progress[-1] == {
        "uploaded_bytes": 1024,
        "total_bytes": 1024,
        "progress_percent": 100,
    }


@pytest.mark.asyncio
async def test_upload_does_not_publish(client, uploader):
    client_instance, services = client
    _, connection_id = uploader
    registry = services["room_registry"]
    await registry.join("ABC123", "alice", True, connection_id=connection_id)

    response = await client_instance.post(
        "/api/v1/upload",
        content=b"video",
        headers={"Content-Type": "video/webm", "X-Connection-ID": connection_id},
    )

    assert response.status_code == status.HTTP_200_OK
    assert registry.rooms["ABC123"].video_url is None


@pytest.mark.asyncio
async def test_upload_without_connection_id(client):
    client_instance, services = client
    response = await client_instance.post(
        "/api/v1/upload",
        content=b"video",
        headers={"Content-Type": "video/mp4"},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["code"] == DomainErrorCode.UPLOAD_REJECTED.value
    assert list(services["upload_dir"].iterdir()) == []


@pytest.mark.asyncio
async def test_upload_unknown_connection(client):
    client_instance, _ = client
    response = await client_instance.post(
        "/api/v1/upload",
        content=b"video",
        headers={"Content-Type": "video/mp4", "X-Connection-ID": "stale"},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error_details"] == {"connection_id": "stale"}


@pytest.mark.asyncio
async def test_upload_rejects_non_video(client, uploader):
    client_instance, services = client
    _, connection_id = uploader

    response = await client_instance.post(
        "/api/v1/upload",
        content=b"hello",
        headers={"Content-Type": "text/plain", "X-Connection-ID": connection_id},
    )

    assert response.status_code == status.HTTP_415_UNSUPPORTED_MEDIA_TYPE
    assert response.json()["code"] == DomainErrorCode.UNSUPPORTED_MEDIA_TYPE.value
    assert list(services["upload_dir"].iterdir()) == []


@pytest.mark.asyncio
async def test_upload_rejects_multipart_form(client, uploader):
    client_instance, services = client
    _, connection_id = uploader

    response = await client_instance.post(
        "/api/v1/upload",
        files={"video": ("clip.mp4", b"\x00" * 16, "video/mp4")},
        headers={"X-Connection-ID": connection_id},
    )

    assert response.status_code == status.HTTP_415_UNSUPPORTED_MEDIA_TYPE
    assert response.json()["error_details"]["content_type"].startswith(
        "multipart/form-data"
    )
    assert list(services["upload_dir"].iterdir()) == []
