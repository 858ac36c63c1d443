import re
import secrets
import string

from watchparty.core.error import DomainErrorCode, WatchPartyDomainError

ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits
MAX_DISPLAY_NAME_LENGTH = 32


def normalize_room_code(room_code: str) -> str:
    code = room_code.strip().upper()
    if not re.match(r"^[A-Z0-9]{4,16}$", code):
        raise WatchPartyDomainError(
            code=DomainErrorCode.INVALID_ROOM_CODE,
            message="Room code must be 4 to 16 letters or digits",
            details={
                "room_code": room_code,
            },
        )
    return code


def validate_display_name(display_name: str) -> str:
    if display_name == "" or display_name.isspace():
        raise WatchPartyDomainError(
            code=DomainErrorCode.INVALID_DISPLAY_NAME,
            message="Display name cannot be empty",
            details={
                "display_name": display_name,
            },
        )

    if len(display_name) > MAX_DISPLAY_NAME_LENGTH:
        raise WatchPartyDomainError(
            code=DomainErrorCode.INVALID_DISPLAY_NAME,
            message=(
                f"Display name must be {MAX_DISPLAY_NAME_LENGTH} characters or less"
            ),
            details={
                "display_name": display_name,
                "length": len(display_name),
            },
        )

    return display_name


def generate_room_code(length: int = 6) -> str:
    return "".join(secrets.choice(ROOM_CODE_ALPHABET) for _ in range(length))
