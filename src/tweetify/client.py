"""Synchronous tweetify client.

:class:`TweetifyClient` wires the transport, endpoint wrappers and the
chunked upload flow together and exposes the status-post workflow.

Usage::

    from tweetify import TweetifyClient

    with TweetifyClient(auth=my_oauth1_signer) as client:
        result = client.update_status_with_media_file("Hello!", "cat.png")
        print(result.status_id)
"""

from __future__ import annotations

from typing import Any

import httpx

from tweetify.api.media import MediaAPI
from tweetify.api.statuses import StatusAPI
from tweetify.api.transport import MediaTransport
from tweetify.config import TweetifyConfig
from tweetify.errors import TweetifyError, error_code, error_message
from tweetify.media import (
    check_media_status,
    read_media,
    sniff_mime_type,
    upload_chunked,
    wait_for_processing,
)
from tweetify.media.source import MediaSource
from tweetify.models import MediaStatus, PostResult, UploadResult
from tweetify.observability import NoopMetricsHook, emit_failure, get_logger
from tweetify.observability import metrics as metric
from tweetify.observability.events import ObserverArg

log = get_logger("tweetify.client")


class TweetifyClient:
    """Synchronous media-upload and status-post client.

    Parameters
    ----------
    auth:
        ``httpx.Auth`` that signs every request.  Signing is the host
        application's concern; pass ``token=`` instead for bearer auth.
    observer:
        Default upload observer, called with every
        :class:`~tweetify.models.UploadStatusEvent`.  Each method accepts
        an ``observer`` override.
    http_client:
        Pre-built ``httpx.Client`` (e.g. with a mock transport).
    **kwargs:
        Forwarded to :class:`TweetifyConfig`.
    """

    def __init__(
        self,
        auth: httpx.Auth | None = None,
        observer: ObserverArg = None,
        http_client: httpx.Client | None = None,
        **kwargs: Any,
    ) -> None:
        self._config = TweetifyConfig(**kwargs)
        self._transport = MediaTransport(self._config, auth=auth, client=http_client)
        self._media = MediaAPI(self._transport, self._config.media_upload_url)
        self._statuses = StatusAPI(self._transport, self._config.status_update_url)
        self._observer = observer
        self._metrics = self._config.metrics if self._config.metrics is not None else NoopMetricsHook()

    @property
    def config(self) -> TweetifyConfig:
        return self._config

    # ------------------------------------------------------------------
    # Media upload
    # ------------------------------------------------------------------

    def upload_media(
        self,
        data: bytes,
        mime_type: str | None = None,
        *,
        chunk_size: int | None = None,
        observer: ObserverArg = None,
    ) -> UploadResult:
        """Upload *data* with the chunked INIT/APPEND/FINALIZE protocol.

        Parameters
        ----------
        data:
            The payload bytes.
        mime_type:
            Content type; sniffed from the payload when omitted.
        chunk_size:
            Per-call override of ``config.chunk_size``.
        observer:
            Per-call override of the client's observer.

        Returns
        -------
        UploadResult
            The finalized media handle and upload details.
        """
        return upload_chunked(
            self._media,
            data,
            mime_type or sniff_mime_type(data),
            chunk_size=chunk_size if chunk_size is not None else self._config.chunk_size,
            observer=self._pick(observer),
            media_category=self._config.send_media_category,
            metrics=self._metrics,
        )

    def upload_media_file(
        self,
        source: MediaSource,
        mime_type: str | None = None,
        *,
        chunk_size: int | None = None,
        observer: ObserverArg = None,
    ) -> UploadResult:
        """Read *source* and upload it.

        Raises
        ------
        TweetifySourceReadError
            If the file cannot be read; nothing is sent.
        """
        data = self._read(source, self._pick(observer))
        return self.upload_media(data, mime_type, chunk_size=chunk_size, observer=observer)

    def check_media_status(self, media_id: str) -> MediaStatus:
        """Issue one STATUS request for *media_id*."""
        return check_media_status(self._media, media_id)

    def wait_for_processing(
        self,
        media_id: str,
        *,
        poll_interval: float | None = None,
        max_attempts: int | None = None,
    ) -> MediaStatus:
        """Poll STATUS until *media_id* is ready.  Never called implicitly."""
        return wait_for_processing(
            self._media,
            media_id,
            poll_interval=(
                poll_interval if poll_interval is not None else self._config.status_poll_interval
            ),
            max_attempts=(
                max_attempts if max_attempts is not None else self._config.status_poll_max_attempts
            ),
        )

    # ------------------------------------------------------------------
    # Status posts
    # ------------------------------------------------------------------

    def update_status(
        self,
        text: str,
        media: bytes | None = None,
        mime_type: str | None = None,
        *,
        observer: ObserverArg = None,
    ) -> PostResult:
        """Publish *text*, uploading and attaching *media* first when given.

        The status request is only sent after the upload finalizes; a
        failed upload raises before the status endpoint is contacted.
        """
        observer = self._pick(observer)
        media_ids: list[str] = []
        if media is not None:
            upload = self.upload_media(media, mime_type, observer=observer)
            media_ids.append(upload.media_id)

        try:
            result = self._statuses.update(text, media_ids)
        except Exception as exc:
            _log_post_failure(media_ids, exc)
            emit_failure(observer, media_ids[0] if media_ids else None, error_message(exc))
            raise

        self._metrics.increment(
            metric.STATUS_POSTS_TOTAL,
            tags={"with_media": str(bool(media_ids)).lower()},
        )
        log.info(
            "Status posted",
            extra={
                "extra_fields": {
                    "op": "update_status",
                    "status_id": result.status_id,
                    "media_ids": media_ids,
                }
            },
        )
        return result

    def update_status_with_media_file(
        self,
        text: str,
        source: MediaSource,
        mime_type: str | None = None,
        *,
        observer: ObserverArg = None,
    ) -> PostResult:
        """Read *source*, upload it, then publish *text* referencing it.

        Raises
        ------
        TweetifySourceReadError
            If the file cannot be read; no request is sent.
        """
        data = self._read(source, self._pick(observer))
        return self.update_status(text, data, mime_type, observer=observer)

    # ------------------------------------------------------------------
    # Resource management
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the HTTP transport."""
        self._transport.close()

    def __enter__(self) -> TweetifyClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _pick(self, observer: ObserverArg) -> ObserverArg:
        return observer if observer is not None else self._observer

    def _read(self, source: MediaSource, observer: ObserverArg) -> bytes:
        try:
            return read_media(source)
        except TweetifyError as exc:
            emit_failure(observer, None, exc.message)
            raise


def _log_post_failure(media_ids: list[str], exc: Exception) -> None:
    log.warning(
        "Status post failed",
        extra={
            "extra_fields": {
                "op": "update_status",
                "media_ids": media_ids,
                "error_code": error_code(exc),
                "error": error_message(exc),
            }
        },
    )
