from typing import Protocol


class MediaElement(Protocol):
    """The slice of a video element the sync code drives.

    ``play`` may raise when the platform refuses to start playback
    (autoplay policies and the like).
    """

    current_time: float
    paused: bool

    def play(self) -> None: ...

    def pause(self) -> None: ...
