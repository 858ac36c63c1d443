import pytest
from fastapi import status

from watchparty.core.error import DomainErrorCode


@pytest.mark.asyncio
async def test_create_room_code(client):
    client_instance, services = client
    response = await client_instance.post("/api/v1/room")
    assert response.status_code == status.HTTP_201_CREATED
    room_code = response.json()["room_code"]
    assert len(room_code) == 6
    assert room_code.isalnum() and room_code.upper() == room_code
    # reserved only once the host joins
    assert services["room_registry"].check_room(room_code).exists is False


@pytest.mark.asyncio
async def test_check_missing_room(client):
    client_instance, _ = client
    response = await client_instance.get("/api/v1/room/ABC123")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"exists": False, "has_host": False}


@pytest.mark.asyncio
async def test_check_existing_room(client):
    client_instance, services = client
    await services["room_registry"].join("ABC123", "alice", is_host=True)

    response = await client_instance.get("/api/v1/room/abc123")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"exists": True, "has_host": True}


@pytest.mark.asyncio
async def test_check_room_malformed_code(client):
    client_instance, _ = client
    for room_code in ("AB", "abc-1"):
        response = await client_instance.get(f"/api/v1/room/{room_code}")
        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"exists": False, "has_host": False}


@pytest.mark.asyncio
async def test_room_members(client):
    client_instance, services = client
    await services["room_registry"].join("ABC123", "alice", is_host=True)
    await services["room_registry"].join("ABC123", "bob", is_host=False)

    response = await client_instance.get("/api/v1/room/ABC123/members")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {
        "room_code": "ABC123",
        "users": [
            {"display_name": "alice", "is_host": True},
            {"display_name": "bob", "is_host": False},
        ],
    }


@pytest.mark.asyncio
async def test_room_members_not_found(client):
    client_instance, _ = client
    response = await client_instance.get("/api/v1/room/ABC123/members")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    data = response.json()
    assert data["code"] == DomainErrorCode.ROOM_NOT_FOUND.value
    assert data["error_details"]["room_code"] == "ABC123"
