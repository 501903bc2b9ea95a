"""Chunked upload flow: INIT, sequential APPEND, FINALIZE.

:func:`upload_chunked` and :func:`async_upload_chunked` drive one upload
session to completion against a :class:`~tweetify.api.media.MediaAPI`
(or its async twin):

1. INIT with the total size and content type; obtain the media handle.
2. APPEND each chunk in index order, one request at a time.
3. FINALIZE once every chunk is acknowledged.

Any error moves the session to ``FAILED``, publishes a ``Failed`` event
and is re-raised unchanged.  Nothing is retried.

STATUS is not part of this flow.  :func:`check_media_status` and
:func:`wait_for_processing` query it on demand.
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from typing import Any, Callable

from tweetify.config import DEFAULT_CHUNK_SIZE
from tweetify.errors import (
    TweetifyProcessingError,
    TweetifyProcessingTimeoutError,
    TweetifySequencingError,
    TweetifyValidationError,
    error_code,
    error_message,
)
from tweetify.models import (
    AppendCompleted,
    AppendStarting,
    Chunk,
    Failed,
    Finalized,
    Finalizing,
    Initiated,
    Initiating,
    MediaStatus,
    SegmentAppendCompleted,
    SegmentAppendStarting,
    UploadResult,
    UploadSession,
    UploadState,
)
from tweetify.observability import NoopMetricsHook, emit, get_logger
from tweetify.observability import metrics as metric
from tweetify.observability.events import ObserverArg
from tweetify.utils.chunk import split_chunks

from .sniff import media_category as _category_for
from .state import UploadStateMachine

log = get_logger("tweetify.upload")


class _UploadDriver:
    """Session bookkeeping shared by the sync and async flows.

    Owns the :class:`UploadSession` and its :class:`UploadStateMachine`;
    the flows only perform the wire calls in between.
    """

    def __init__(
        self,
        data: bytes,
        mime_type: str,
        chunk_size: int,
        observer: ObserverArg,
        metrics: Any | None,
    ) -> None:
        self.session = UploadSession(total_bytes=len(data), mime_type=mime_type)
        self.machine = UploadStateMachine()
        self.observer = observer
        self.metrics = metrics if metrics is not None else NoopMetricsHook()
        self.segments = 0
        self._data = data
        self._chunk_size = chunk_size

    def _log(self, message: str, **fields: Any) -> None:
        log.info(
            message,
            extra={"extra_fields": {"media_id": self.session.media_id, **fields}},
        )

    # -- INIT -------------------------------------------------------------

    def begin_init(self) -> None:
        if self.session.total_bytes == 0:
            raise TweetifyValidationError(
                message="Cannot upload an empty payload",
                context={"field": "data", "value": 0, "constraint": "total_bytes > 0"},
            )
        if self._chunk_size < 1:
            raise TweetifyValidationError(
                message=f"chunk_size must be >= 1, got {self._chunk_size}",
                context={"field": "chunk_size", "value": self._chunk_size, "constraint": ">= 1"},
            )
        self.session.pending_chunks = deque(split_chunks(self._data, self._chunk_size))
        self.segments = len(self.session.pending_chunks)
        self.machine.transition(UploadState.INITIATING)
        self._log(
            "INIT started",
            op="init",
            total_bytes=self.session.total_bytes,
            media_type=self.session.mime_type,
        )
        emit(self.observer, Initiating())

    def end_init(self, media_id: str) -> None:
        self.session.assign_media_id(media_id)
        self.machine.label = media_id
        self.machine.transition(UploadState.APPENDING)
        self._log("INIT finished", op="init")
        self.metrics.gauge(metric.UPLOAD_PENDING_SEGMENTS, self.segments)
        emit(self.observer, Initiated(media_id=media_id))
        emit(self.observer, AppendStarting(total=self.segments))

    # -- APPEND -----------------------------------------------------------

    def next_chunk(self) -> Chunk | None:
        """Head of the queue, or ``None`` once every chunk is acknowledged."""
        self.machine.require(UploadState.APPENDING)
        if not self.session.pending_chunks:
            return None
        index = self.session.next_segment_index
        self._log("APPEND started", op="append", segment_index=index)
        emit(
            self.observer,
            SegmentAppendStarting(index=index, remaining=len(self.session.pending_chunks)),
        )
        return self.session.pending_chunks[0]

    def end_segment(self) -> None:
        index = self.session.next_segment_index
        chunk = self.session.acknowledge_segment()
        self.metrics.increment(metric.UPLOAD_SEGMENTS_TOTAL)
        self.metrics.increment(metric.UPLOAD_BYTES_TOTAL, value=len(chunk))
        self.metrics.gauge(metric.UPLOAD_PENDING_SEGMENTS, len(self.session.pending_chunks))
        self._log("APPEND finished", op="append", segment_index=index)
        emit(self.observer, SegmentAppendCompleted(index=index))

    # -- FINALIZE ---------------------------------------------------------

    def begin_finalize(self) -> str:
        if self.session.pending_chunks:
            raise TweetifySequencingError(
                message=(
                    f"Cannot FINALIZE upload {self.machine.label}: "
                    f"{len(self.session.pending_chunks)} segment(s) not yet appended"
                ),
                context={
                    "upload": self.machine.label,
                    "current_state": self.machine.state.value,
                    "requested_state": UploadState.FINALIZING.value,
                },
            )
        emit(self.observer, AppendCompleted())
        self.machine.transition(UploadState.FINALIZING)
        self._log("FINALIZE started", op="finalize")
        emit(self.observer, Finalizing())
        return self.media_id

    def end_finalize(self, body: dict[str, Any]) -> UploadResult:
        self.machine.transition(UploadState.COMPLETED)
        media_id = self.media_id
        processing = MediaStatus.from_response(media_id, body) if body else None
        self.metrics.increment(
            metric.UPLOAD_SUCCESS_TOTAL,
            tags={"media_type": self.session.mime_type},
        )
        self._log("FINALIZE finished", op="finalize", segments=self.segments)
        emit(self.observer, Finalized(media_id=media_id))
        return UploadResult(
            media_id=media_id,
            mime_type=self.session.mime_type,
            total_bytes=self.session.total_bytes,
            segments=self.segments,
            processing=processing,
        )

    # -- failure ----------------------------------------------------------

    def fail(self, exc: Exception) -> None:
        """Record *exc* as the outcome of this upload.

        Non-tweetify exceptions (a bug in a caller-supplied API object,
        for instance) are reported the same way before they propagate.
        """
        failed_in = self.machine.state
        self.machine.fail()
        code = error_code(exc)
        message = error_message(exc)
        self.metrics.increment(
            metric.UPLOAD_FAILURE_TOTAL,
            tags={"state": failed_in.value, "code": code},
        )
        log.warning(
            "Upload failed",
            extra={
                "extra_fields": {
                    "op": "upload",
                    "media_id": self.session.media_id,
                    "state": failed_in.value,
                    "error_code": code,
                    "error": message,
                }
            },
        )
        emit(self.observer, Failed(media_id=self.session.media_id, message=message))

    @property
    def media_id(self) -> str:
        if self.session.media_id is None:
            raise TweetifySequencingError(
                message="No media handle: INIT has not completed",
                context={"current_state": self.machine.state.value},
            )
        return self.session.media_id


def _resolve_category(mime_type: str, media_category: str | bool | None) -> str | None:
    if media_category is True:
        return _category_for(mime_type)
    if not media_category:
        return None
    return media_category


# ---------------------------------------------------------------------------
# Sync flow
# ---------------------------------------------------------------------------

def upload_chunked(
    media_api: Any,
    data: bytes,
    mime_type: str,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    observer: ObserverArg = None,
    media_category: str | bool | None = None,
    metrics: Any | None = None,
) -> UploadResult:
    """Upload *data* through INIT, APPEND×N and FINALIZE.

    Parameters
    ----------
    media_api:
        A :class:`~tweetify.api.media.MediaAPI` instance.
    data:
        The full payload; must not be empty.
    mime_type:
        Content type declared in INIT.
    chunk_size:
        Maximum bytes per APPEND.
    observer:
        Optional callable receiving :class:`UploadStatusEvent` values.
    media_category:
        ``media_category`` sent with INIT.  ``True`` derives it from
        *mime_type*; ``None``/``False`` omits the field.
    metrics:
        Optional :class:`~tweetify.observability.MetricsHook`.

    Returns
    -------
    UploadResult
        Carries the media handle of the finalized upload.

    Raises
    ------
    TweetifyValidationError
        If *data* is empty or *chunk_size* is below 1 (no request is sent).
    TweetifyTransportError
        If any exchange fails; later phases are not attempted.
    TweetifyProtocolError
        If a response cannot be decoded or INIT returns no media handle.
    """
    driver = _UploadDriver(data, mime_type, chunk_size, observer, metrics)
    try:
        driver.begin_init()
        media_id = media_api.init(
            driver.session.total_bytes,
            mime_type,
            _resolve_category(mime_type, media_category),
        )
        driver.end_init(media_id)

        while True:
            chunk = driver.next_chunk()
            if chunk is None:
                break
            media_api.append(media_id, driver.session.next_segment_index, chunk.data)
            driver.end_segment()

        body = media_api.finalize(driver.begin_finalize())
        return driver.end_finalize(body)
    except Exception as exc:
        driver.fail(exc)
        raise


def check_media_status(media_api: Any, media_id: str) -> MediaStatus:
    """Issue one STATUS request for *media_id*."""
    body = media_api.status(media_id)
    status = MediaStatus.from_response(media_id, body)
    log.info(
        "STATUS received",
        extra={
            "extra_fields": {
                "op": "status",
                "media_id": media_id,
                "state": status.state,
                "progress_percent": status.progress_percent,
            }
        },
    )
    return status


def wait_for_processing(
    media_api: Any,
    media_id: str,
    *,
    poll_interval: float = 5.0,
    max_attempts: int = 20,
    sleep: Callable[[float], None] = time.sleep,
) -> MediaStatus:
    """Poll STATUS until processing succeeds, fails, or attempts run out.

    The delay between polls is the service's ``check_after_secs`` when
    present, otherwise *poll_interval*.

    Raises
    ------
    TweetifyValidationError
        If *max_attempts* is below 1 (no request is sent).
    TweetifyProcessingError
        If the service reports ``failed``.
    TweetifyProcessingTimeoutError
        If the media is still processing after *max_attempts* polls.
    """
    _check_attempts(max_attempts)
    status: MediaStatus | None = None
    for attempt in range(max_attempts):
        status = check_media_status(media_api, media_id)
        _raise_if_failed(status)
        if status.ready:
            return status
        if attempt + 1 < max_attempts:
            sleep(_next_delay(status, poll_interval))
    raise _timeout(media_id, max_attempts, status)


# ---------------------------------------------------------------------------
# Async flow
# ---------------------------------------------------------------------------

async def async_upload_chunked(
    media_api: Any,
    data: bytes,
    mime_type: str,
    *,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    observer: ObserverArg = None,
    media_category: str | bool | None = None,
    metrics: Any | None = None,
) -> UploadResult:
    """Upload *data* through INIT, APPEND×N and FINALIZE (async).

    See :func:`upload_chunked` for parameter documentation.  Each phase
    awaits its exchange before the next one starts.
    """
    driver = _UploadDriver(data, mime_type, chunk_size, observer, metrics)
    try:
        driver.begin_init()
        media_id = await media_api.init(
            driver.session.total_bytes,
            mime_type,
            _resolve_category(mime_type, media_category),
        )
        driver.end_init(media_id)

        while True:
            chunk = driver.next_chunk()
            if chunk is None:
                break
            await media_api.append(media_id, driver.session.next_segment_index, chunk.data)
            driver.end_segment()

        body = await media_api.finalize(driver.begin_finalize())
        return driver.end_finalize(body)
    except Exception as exc:
        driver.fail(exc)
        raise


async def async_check_media_status(media_api: Any, media_id: str) -> MediaStatus:
    """Issue one STATUS request for *media_id* (async)."""
    body = await media_api.status(media_id)
    status = MediaStatus.from_response(media_id, body)
    log.info(
        "STATUS received",
        extra={
            "extra_fields": {
                "op": "status",
                "media_id": media_id,
                "state": status.state,
                "progress_percent": status.progress_percent,
            }
        },
    )
    return status


async def async_wait_for_processing(
    media_api: Any,
    media_id: str,
    *,
    poll_interval: float = 5.0,
    max_attempts: int = 20,
) -> MediaStatus:
    """Poll STATUS until processing completes (async).

    See :func:`wait_for_processing`.
    """
    _check_attempts(max_attempts)
    status: MediaStatus | None = None
    for attempt in range(max_attempts):
        status = await async_check_media_status(media_api, media_id)
        _raise_if_failed(status)
        if status.ready:
            return status
        if attempt + 1 < max_attempts:
            await asyncio.sleep(_next_delay(status, poll_interval))
    raise _timeout(media_id, max_attempts, status)


# ---------------------------------------------------------------------------
# Polling helpers
# ---------------------------------------------------------------------------

def _next_delay(status: MediaStatus, poll_interval: float) -> float:
    if status.check_after_secs is not None and status.check_after_secs >= 0:
        return float(status.check_after_secs)
    return poll_interval


def _raise_if_failed(status: MediaStatus) -> None:
    if status.failed:
        raise TweetifyProcessingError(
            message=(
                f"Processing failed for media {status.media_id}: "
                f"{status.error_message or 'no reason given'}"
            ),
            context={
                "media_id": status.media_id,
                "state": status.state,
                "error_message": status.error_message,
            },
        )


def _timeout(
    media_id: str,
    attempts: int,
    status: MediaStatus | None,
) -> TweetifyProcessingTimeoutError:
    state = status.state if status is not None else None
    return TweetifyProcessingTimeoutError(
        message=f"Media {media_id} still {state} after {attempts} status checks",
        context={"media_id": media_id, "attempts": attempts, "state": state},
    )


def _check_attempts(max_attempts: int) -> None:
    if max_attempts < 1:
        raise TweetifyValidationError(
            message=f"max_attempts must be >= 1, got {max_attempts}",
            context={"field": "max_attempts", "value": max_attempts, "constraint": ">= 1"},
        )
