from fastapi import APIRouter

from watchparty.api.v1.endpoints import room, upload, ws_room

api_router = APIRouter()

api_router.include_router(ws_room.router, tags=["ws"])

api_router.include_router(room.router, prefix="/room", tags=["rooms"])

api_router.include_router(upload.router, prefix="/upload", tags=["upload"])
