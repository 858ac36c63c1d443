from fastapi import Depends

from watchparty.core.playback_relay import PlaybackRelay, relay
from watchparty.services.room_registry import RoomRegistry, room_registry
from watchparty.services.upload_service import (
    UploadService,
    UploadTracker,
    upload_tracker,
)


def get_playback_relay() -> PlaybackRelay:
    return relay


def get_room_registry() -> RoomRegistry:
    return room_registry


def get_upload_tracker() -> UploadTracker:
    return upload_tracker


def get_upload_service(
    tracker: UploadTracker = Depends(get_upload_tracker),
) -> UploadService:
    return UploadService(tracker)
