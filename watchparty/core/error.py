from enum import Enum
from typing import Any


class DomainErrorCode(str, Enum):
    ROOM_NOT_FOUND = "ROOM_NOT_FOUND"
    NO_HOST = "NO_HOST"
    HOST_CONFLICT = "HOST_CONFLICT"
    NAME_TAKEN = "NAME_TAKEN"
    INVALID_ROOM_CODE = "INVALID_ROOM_CODE"
    INVALID_DISPLAY_NAME = "INVALID_DISPLAY_NAME"
    ALREADY_JOINED = "ALREADY_JOINED"
    INVALID_MESSAGE = "INVALID_MESSAGE"
    UPLOAD_REJECTED = "UPLOAD_REJECTED"
    UNSUPPORTED_MEDIA_TYPE = "UNSUPPORTED_MEDIA_TYPE"
    UPLOAD_ABORTED = "UPLOAD_ABORTED"


class WatchPartyDomainError(Exception):
    def __init__(
        self,
        code: DomainErrorCode,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.code = code
        self.message = message or code.name
        self.details = details or {}
        super().__init__(self.message)
