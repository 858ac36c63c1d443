from collections.abc import Callable

from watchparty.schemas.ws import VideoStateData
from watchparty.sync.media import MediaElement

StateListener = Callable[[VideoStateData], None]


class HostPlaybackReporter:
    """Turns the host's media events into authoritative state changes.

    Periodic ``timeupdate`` events are held back while a seek is in flight;
    the finished seek reports the new position itself.
    """

    def __init__(self, media: MediaElement, emit: StateListener) -> None:
        self.media = media
        self.emit = emit
        self.seeking = False

    def _report(self, is_playing: bool | None = None) -> None:
        if is_playing is None:
            is_playing = not self.media.paused
        self.emit(
            VideoStateData(is_playing=is_playing, current_time=self.media.current_time)
        )

    def on_play(self) -> None:
        self._report(True)

    def on_pause(self) -> None:
        self._report(False)

    def on_time_update(self) -> None:
        if not self.seeking:
            self._report()

    def on_seeking(self) -> None:
        self.seeking = True

    def on_seeked(self) -> None:
        self.seeking = False
        self._report()

    def toggle(self) -> None:
        if self.media.paused:
            self.media.play()
            self._report(True)
        else:
            self.media.pause()
            self._report(False)

    def seek(self, position: float) -> None:
        self.media.current_time = max(position, 0.0)
        self._report()

    def skip(self, delta: float) -> None:
        self.seek(self.media.current_time + delta)
