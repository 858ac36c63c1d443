from pydantic import BaseModel


class SessionContext(BaseModel):
    """What a live connection remembers about the room it joined."""

    connection_id: str
    room_code: str
    display_name: str
    is_host: bool = False
