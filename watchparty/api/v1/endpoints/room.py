from fastapi import APIRouter, Depends, status

from watchparty.dependencies.services import get_room_registry
from watchparty.schemas.room import (
    RoomCodeResponse,
    RoomMembersResponse,
    RoomStatusResponse,
)
from watchparty.services.room_registry import RoomRegistry
from watchparty.util.validators import normalize_room_code

router = APIRouter()


@router.post(
    "",
    response_model=RoomCodeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_room_code(
    room_registry: RoomRegistry = Depends(get_room_registry),
):
    # the room itself only exists once the host joins over the websocket
    return RoomCodeResponse(room_code=room_registry.generate_code())


@router.get(
    "/{room_code}",
    response_model=RoomStatusResponse,
    status_code=status.HTTP_200_OK,
)
async def check_room(
    room_code: str,
    room_registry: RoomRegistry = Depends(get_room_registry),
):
    return room_registry.check_room(room_code)


@router.get(
    "/{room_code}/members",
    response_model=RoomMembersResponse,
    status_code=status.HTTP_200_OK,
)
async def get_room_members(
    room_code: str,
    room_registry: RoomRegistry = Depends(get_room_registry),
):
    code = normalize_room_code(room_code)
    return RoomMembersResponse(room_code=code, users=room_registry.get_members(code))
