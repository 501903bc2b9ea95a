"""Upload status stream.

The upload driver publishes :class:`~tweetify.models.UploadStatusEvent`
values through :func:`emit`.  Publishing is fire-and-forget: a missing
observer discards the event, and an observer that raises is logged and
ignored so it can never change the outcome of an upload.
"""

from __future__ import annotations

from typing import Callable, Optional

from tweetify.models import Failed, UploadStatusEvent

from .logger import get_logger

log = get_logger("tweetify.events")

UploadObserver = Callable[[UploadStatusEvent], None]

ObserverArg = Optional[UploadObserver]


def emit(observer: ObserverArg, event: UploadStatusEvent) -> None:
    """Deliver *event* to *observer* if one is registered."""
    if observer is None:
        return
    try:
        observer(event)
    except Exception as exc:
        log.warning(
            "Upload observer raised; event dropped",
            extra={
                "extra_fields": {
                    "op": "emit",
                    "event": event.kind.value,
                    "error": repr(exc),
                }
            },
        )


def emit_failure(observer: ObserverArg, media_id: str | None, message: str) -> None:
    """Publish a ``Failed`` event for an error raised outside the upload flow."""
    emit(observer, Failed(media_id=media_id, message=message))


class EventRecorder:
    """Observer that keeps every event it receives, in order.

    Handy for progress reporting after the fact and for tests::

        recorder = EventRecorder()
        client.upload_media(data, observer=recorder)
        [e.kind for e in recorder.events]
    """

    def __init__(self) -> None:
        self.events: list[UploadStatusEvent] = []

    def __call__(self, event: UploadStatusEvent) -> None:
        self.events.append(event)

    def kinds(self) -> list[str]:
        return [e.kind.value for e in self.events]
