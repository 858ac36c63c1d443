from watchparty.sync.engine import ClientSyncEngine
from watchparty.sync.host import HostPlaybackReporter
from watchparty.sync.media import MediaElement
from watchparty.sync.room_state import RoomClientState

__all__ = [
    "ClientSyncEngine",
    "HostPlaybackReporter",
    "MediaElement",
    "RoomClientState",
]
