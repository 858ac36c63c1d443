import logging
import os
import re
import time
from collections.abc import AsyncIterator
from pathlib import Path

from watchparty.core.config import settings
from watchparty.core.error import DomainErrorCode, WatchPartyDomainError
from watchparty.core.playback_relay import PlaybackRelay, relay
from watchparty.models.upload import UploadSession
from watchparty.schemas.ws import UploadProgressData, WSActionType, ws_event

logger = logging.getLogger(__name__)


class UploadTracker:
    """In-flight uploads keyed by the uploader's connection id."""

    def __init__(self, playback_relay: PlaybackRelay) -> None:
        self.relay = playback_relay
        self.sessions: dict[str, UploadSession] = {}

    def start(self, connection_id: str, total_bytes: int = 0) -> UploadSession:
        session = UploadSession(connection_id=connection_id, total_bytes=total_bytes)
        self.sessions[connection_id] = session
        return session

    def get(self, connection_id: str) -> UploadSession | None:
        return self.sessions.get(connection_id)

    def is_active(self, connection_id: str) -> bool:
        return connection_id in self.sessions

    def record(self, connection_id: str, chunk_size: int) -> UploadSession | None:
        session = self.sessions.get(connection_id)
        if session is None:
            return None

        session.uploaded_bytes += chunk_size
        if session.total_bytes:
            percent = round(session.uploaded_bytes / session.total_bytes * 100)
            session.progress_percent = min(percent, 100)

        # coalesced: only a changed percent is reported, and only if the
        # uploader's outbox has room
        if session.progress_percent != session.last_reported_percent:
            if self.relay.send(
                connection_id, self._progress_event(session), droppable=True
            ):
                session.last_reported_percent = session.progress_percent
        return session

    def complete(self, connection_id: str) -> UploadSession | None:
        session = self.sessions.pop(connection_id, None)
        if session is None:
            return None

        session.progress_percent = 100
        if session.last_reported_percent != 100:
            self.relay.send(connection_id, self._progress_event(session))
            session.last_reported_percent = 100
        return session

    def discard(self, connection_id: str) -> None:
        if self.sessions.pop(connection_id, None) is not None:
            logger.info("Upload for %s abandoned", connection_id)

    def clear(self) -> None:
        self.sessions.clear()

    @staticmethod
    def _progress_event(session: UploadSession) -> dict:
        return ws_event(
            WSActionType.UPLOAD_PROGRESS,
            UploadProgressData(
                uploaded_bytes=session.uploaded_bytes,
                total_bytes=session.total_bytes,
                progress_percent=session.progress_percent,
            ),
        )


def safe_filename(filename: str | None) -> str:
    name = os.path.basename(filename or "")
    name = re.sub(r"[^A-Za-z0-9._-]", "_", name).lstrip(".")
    return name or "video"


class UploadService:
    def __init__(
        self,
        tracker: UploadTracker,
        upload_dir: str | Path | None = None,
    ) -> None:
        self.tracker = tracker
        self.upload_dir = Path(upload_dir or settings.UPLOAD_DIR)

    def validate(
        self,
        connection_id: str | None,
        content_type: str | None,
        content_length: str | None,
    ) -> int:
        if not connection_id:
            raise WatchPartyDomainError(
                code=DomainErrorCode.UPLOAD_REJECTED,
                message="Connection ID is required",
            )

        if not self.tracker.relay.is_connected(connection_id):
            raise WatchPartyDomainError(
                code=DomainErrorCode.UPLOAD_REJECTED,
                message="Connection ID does not belong to a live connection",
                details={"connection_id": connection_id},
            )

        if not content_type or not content_type.lower().startswith("video/"):
            raise WatchPartyDomainError(
                code=DomainErrorCode.UNSUPPORTED_MEDIA_TYPE,
                message="Not a video file",
                details={"content_type": content_type},
            )

        try:
            total = int(content_length or 0)
        except ValueError:
            total = 0
        if total <= 0:
            raise WatchPartyDomainError(
                code=DomainErrorCode.UPLOAD_REJECTED,
                message="Content-Length header is required",
            )
        return total

    async def receive(
        self,
        body: AsyncIterator[bytes],
        *,
        connection_id: str | None,
        content_type: str | None,
        content_length: str | None,
        filename: str | None = None,
    ) -> str:
        """Stream an upload to disk and return the stored file name."""
        total = self.validate(connection_id, content_type, content_length)

        session = self.tracker.get(connection_id)
        if session is None or session.uploaded_bytes:
            self.tracker.start(connection_id, total)
        else:
            session.total_bytes = total

        self.upload_dir.mkdir(parents=True, exist_ok=True)
        stored_name = f"{int(time.time() * 1000)}-{safe_filename(filename)}"
        path = self.upload_dir / stored_name
        logger.info(
            "Receiving %s (%d bytes) for %s", stored_name, total, connection_id
        )

        try:
            with open(path, "wb") as f:
                async for chunk in body:
                    if not chunk:
                        continue
                    if self.tracker.record(connection_id, len(chunk)) is None:
                        raise WatchPartyDomainError(
                            code=DomainErrorCode.UPLOAD_ABORTED,
                            message="Uploader disconnected",
                            details={"connection_id": connection_id},
                        )
                    f.write(chunk)
        except BaseException:
            path.unlink(missing_ok=True)
            self.tracker.discard(connection_id)
            logger.warning("Upload %s failed, partial file removed", stored_name)
            raise

        if self.tracker.complete(connection_id) is None:
            path.unlink(missing_ok=True)
            raise WatchPartyDomainError(
                code=DomainErrorCode.UPLOAD_ABORTED,
                message="Uploader disconnected",
                details={"connection_id": connection_id},
            )

        logger.info("Upload successful: %s", stored_name)
        return stored_name


upload_tracker = UploadTracker(relay)
