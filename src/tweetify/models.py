"""Public data models for the tweetify SDK.

This module contains every result type, event type, enum, and
supporting dataclass referenced by the public API surface.  All types
are plain dataclasses with no behaviour beyond what is needed for
structural equality and a few convenience properties.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

from tweetify.errors import TweetifySequencingError

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class UploadState(str, Enum):
    """Lifecycle states of one chunked upload."""

    IDLE = "idle"
    """Session created; no request sent yet."""

    INITIATING = "initiating"
    """INIT request in flight."""

    APPENDING = "appending"
    """Media handle obtained; segments are being sent."""

    FINALIZING = "finalizing"
    """All segments acknowledged; FINALIZE request in flight."""

    COMPLETED = "completed"
    """FINALIZE succeeded; the media handle is usable."""

    FAILED = "failed"
    """A phase failed; the session is abandoned."""


class UploadCommand(str, Enum):
    """Values of the ``command`` form field on the media upload endpoint."""

    INIT = "INIT"
    APPEND = "APPEND"
    FINALIZE = "FINALIZE"
    STATUS = "STATUS"


class UploadEventKind(str, Enum):
    """Discriminator for :class:`UploadStatusEvent` variants."""

    INITIATING = "initiating"
    INITIATED = "initiated"
    APPEND_STARTING = "append_starting"
    APPEND_COMPLETED = "append_completed"
    SEGMENT_APPEND_STARTING = "segment_append_starting"
    SEGMENT_APPEND_COMPLETED = "segment_append_completed"
    FINALIZING = "finalizing"
    FINALIZED = "finalized"
    FAILED = "failed"


# ---------------------------------------------------------------------------
# Chunks and sessions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Chunk:
    """One ordered slice of a payload, sent in a single APPEND request.

    Attributes
    ----------
    index:
        Zero-based position of the slice within the payload.
    data:
        The slice bytes.
    """

    index: int
    data: bytes

    def __len__(self) -> int:
        return len(self.data)


@dataclass
class UploadSession:
    """Mutable bookkeeping for exactly one upload invocation.

    A session is created by the upload driver, mutated only by the flow
    executing its phases, and discarded when the invocation ends.

    Attributes
    ----------
    total_bytes:
        Byte length of the original payload.
    mime_type:
        Content type declared in the INIT request.
    pending_chunks:
        Chunks not yet acknowledged by the service, in send order.
    media_id:
        Handle assigned by the service in the INIT response.
    next_segment_index:
        ``segment_index`` value for the next APPEND request.
    """

    total_bytes: int
    mime_type: str
    pending_chunks: deque[Chunk] = field(default_factory=deque)
    media_id: str | None = None
    next_segment_index: int = 0

    def assign_media_id(self, media_id: str) -> None:
        """Record the handle returned by INIT.  Allowed exactly once."""
        if self.media_id is not None:
            raise TweetifySequencingError(
                message=f"Session already holds media handle {self.media_id}",
                context={"media_id": self.media_id, "requested_media_id": media_id},
            )
        self.media_id = media_id

    def acknowledge_segment(self) -> Chunk:
        """Drop the head chunk after its APPEND succeeded and advance the index."""
        chunk = self.pending_chunks.popleft()
        self.next_segment_index += 1
        return chunk


# ---------------------------------------------------------------------------
# Upload status events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class UploadStatusEvent:
    """Base class for the informational events published during an upload.

    Use :attr:`kind` (or ``isinstance``) to tell the variants apart.
    """

    kind: ClassVar[UploadEventKind]


@dataclass(frozen=True)
class Initiating(UploadStatusEvent):
    kind: ClassVar[UploadEventKind] = UploadEventKind.INITIATING


@dataclass(frozen=True)
class Initiated(UploadStatusEvent):
    kind: ClassVar[UploadEventKind] = UploadEventKind.INITIATED

    media_id: str


@dataclass(frozen=True)
class AppendStarting(UploadStatusEvent):
    """Emitted once before the first segment, with the segment count."""

    kind: ClassVar[UploadEventKind] = UploadEventKind.APPEND_STARTING

    total: int


@dataclass(frozen=True)
class AppendCompleted(UploadStatusEvent):
    kind: ClassVar[UploadEventKind] = UploadEventKind.APPEND_COMPLETED


@dataclass(frozen=True)
class SegmentAppendStarting(UploadStatusEvent):
    """Emitted before each APPEND; *remaining* includes this segment."""

    kind: ClassVar[UploadEventKind] = UploadEventKind.SEGMENT_APPEND_STARTING

    index: int
    remaining: int


@dataclass(frozen=True)
class SegmentAppendCompleted(UploadStatusEvent):
    kind: ClassVar[UploadEventKind] = UploadEventKind.SEGMENT_APPEND_COMPLETED

    index: int


@dataclass(frozen=True)
class Finalizing(UploadStatusEvent):
    kind: ClassVar[UploadEventKind] = UploadEventKind.FINALIZING


@dataclass(frozen=True)
class Finalized(UploadStatusEvent):
    kind: ClassVar[UploadEventKind] = UploadEventKind.FINALIZED

    media_id: str


@dataclass(frozen=True)
class Failed(UploadStatusEvent):
    """Mirrors an error that is about to be raised to the caller."""

    kind: ClassVar[UploadEventKind] = UploadEventKind.FAILED

    media_id: str | None
    message: str


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass
class MediaStatus:
    """Server-side processing state of an uploaded media item.

    Built from the ``processing_info`` object of a FINALIZE or STATUS
    response.  A response without ``processing_info`` means the media
    needs no asynchronous processing (typical for still images).

    Attributes
    ----------
    media_id:
        The media handle the status refers to.
    state:
        ``"pending"``, ``"in_progress"``, ``"succeeded"``, ``"failed"``,
        or ``None`` when no processing is reported.
    check_after_secs:
        Seconds the service asks clients to wait before polling again.
    progress_percent:
        Processing progress, when reported.
    error_message:
        Service-provided reason for a ``failed`` state.
    """

    media_id: str
    state: str | None = None
    check_after_secs: float | None = None
    progress_percent: int | None = None
    error_message: str | None = None

    @property
    def ready(self) -> bool:
        return self.state is None or self.state == "succeeded"

    @property
    def failed(self) -> bool:
        return self.state == "failed"

    @classmethod
    def from_response(cls, media_id: str, body: dict[str, Any]) -> MediaStatus:
        """Build a status from a decoded FINALIZE/STATUS body."""
        info = body.get("processing_info")
        if not isinstance(info, dict):
            return cls(media_id=media_id)
        error = info.get("error")
        error_message = None
        if isinstance(error, dict):
            error_message = error.get("message") or error.get("name")
        return cls(
            media_id=media_id,
            state=info.get("state"),
            check_after_secs=info.get("check_after_secs"),
            progress_percent=info.get("progress_percent"),
            error_message=error_message,
        )


@dataclass
class UploadResult:
    """Outcome of a completed chunked upload.

    Attributes
    ----------
    media_id:
        Handle to reference the media in a status post.
    mime_type:
        Content type declared to the service.
    total_bytes:
        Payload size in bytes.
    segments:
        Number of APPEND requests issued.
    processing:
        Processing state reported by FINALIZE, if any.
    """

    media_id: str
    mime_type: str
    total_bytes: int
    segments: int
    processing: MediaStatus | None = None


@dataclass
class PostResult:
    """Outcome of a status post.

    Attributes
    ----------
    status_id:
        ``id_str`` of the created status, when present in the response.
    media_ids:
        Media handles attached to the post.
    data:
        The decoded JSON response body.
    raw:
        The undecoded response body.
    """

    status_id: str | None
    media_ids: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)
    raw: bytes = b""
