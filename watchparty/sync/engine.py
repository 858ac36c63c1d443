import logging
import math
import time
from collections.abc import Callable

from watchparty.core.config import settings
from watchparty.schemas.ws import VideoStateData
from watchparty.sync.media import MediaElement

logger = logging.getLogger(__name__)


class ClientSyncEngine:
    """Keeps a participant's media element on the host's timeline.

    Runs on the UI's single event thread, so it holds no locks; the only
    shared state is the time of the last drift evaluation.

    * pausing is applied immediately, never debounced
    * drift is only evaluated once per ``min_interval`` seconds
    * drift above ``drift_threshold`` is corrected with a hard seek, anything
      at or below it is left alone
    * a refused resume is swallowed; the next state change retries it
    """

    def __init__(
        self,
        media: MediaElement,
        is_host: bool = False,
        *,
        min_interval: float | None = None,
        drift_threshold: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.media = media
        self.is_host = is_host
        self.min_interval = (
            settings.SYNC_INTERVAL_SECONDS if min_interval is None else min_interval
        )
        self.drift_threshold = (
            settings.DRIFT_THRESHOLD_SECONDS
            if drift_threshold is None
            else drift_threshold
        )
        self.clock = clock
        self.target: VideoStateData | None = None
        self.last_sync_at: float | None = None
        self.seek_count = 0

    def apply(self, state: VideoStateData) -> None:
        self.target = state
        self.sync()

    def reset(self, state: VideoStateData | None = None) -> None:
        """Forget the previous video's timeline, e.g. when a new one is published."""
        self.target = state
        self.last_sync_at = None

    def on_can_play(self) -> None:
        # first readiness of the media catches up a mid-playback joiner
        self.sync()

    def sync(self) -> None:
        if self.is_host or self.target is None:
            return

        target = self.target
        if not target.is_playing and not self.media.paused:
            self.media.pause()

        now = self.clock()
        if self.last_sync_at is None or now - self.last_sync_at >= self.min_interval:
            self.last_sync_at = now
            self._correct_drift(target.current_time)

        if target.is_playing and self.media.paused:
            self._resume()

    def drift(self) -> float | None:
        if self.target is None:
            return None
        return abs(self.media.current_time - self.target.current_time)

    def _correct_drift(self, current_time: float) -> None:
        if abs(self.media.current_time - current_time) <= self.drift_threshold:
            return
        self.media.current_time = self._clamp(current_time)
        self.seek_count += 1

    def _clamp(self, position: float) -> float:
        position = max(position, 0.0)
        duration = getattr(self.media, "duration", None)
        if not isinstance(duration, int | float) or not math.isfinite(duration):
            return position
        if duration > 0:
            position = min(position, duration)
        return position

    def _resume(self) -> None:
        try:
            self.media.play()
        except Exception:
            logger.debug("Resume refused by media element", exc_info=True)
