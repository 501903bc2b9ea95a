"""Asynchronous tweetify client.

:class:`AsyncTweetifyClient` mirrors :class:`TweetifyClient` but every
I/O method is an ``async def`` coroutine.  Each upload phase awaits its
exchange before the next starts; independent calls on one client may run
concurrently since every call owns its own upload session.

Usage::

    import asyncio
    from tweetify import AsyncTweetifyClient

    async def main():
        async with AsyncTweetifyClient(auth=my_oauth1_signer) as client:
            result = await client.update_status_with_media_file(
                "Hello!", "clip.mp4",
            )
            print(result.status_id)

    asyncio.run(main())
"""

from __future__ import annotations

from typing import Any

import httpx

from tweetify.api.media import AsyncMediaAPI
from tweetify.api.statuses import AsyncStatusAPI
from tweetify.api.transport import AsyncMediaTransport
from tweetify.client import _log_post_failure
from tweetify.config import TweetifyConfig
from tweetify.errors import TweetifyError, error_message
from tweetify.media import (
    async_check_media_status,
    async_read_media,
    async_upload_chunked,
    async_wait_for_processing,
    sniff_mime_type,
)
from tweetify.media.source import MediaSource
from tweetify.models import MediaStatus, PostResult, UploadResult
from tweetify.observability import NoopMetricsHook, emit_failure, get_logger
from tweetify.observability import metrics as metric
from tweetify.observability.events import ObserverArg

log = get_logger("tweetify.client")


class AsyncTweetifyClient:
    """Asynchronous media-upload and status-post client.

    Parameters
    ----------
    auth:
        ``httpx.Auth`` that signs every request.
    observer:
        Default upload observer.
    http_client:
        Pre-built ``httpx.AsyncClient``.
    **kwargs:
        Forwarded to :class:`TweetifyConfig`.
    """

    def __init__(
        self,
        auth: httpx.Auth | None = None,
        observer: ObserverArg = None,
        http_client: httpx.AsyncClient | None = None,
        **kwargs: Any,
    ) -> None:
        self._config = TweetifyConfig(**kwargs)
        self._transport = AsyncMediaTransport(self._config, auth=auth, client=http_client)
        self._media = AsyncMediaAPI(self._transport, self._config.media_upload_url)
        self._statuses = AsyncStatusAPI(self._transport, self._config.status_update_url)
        self._observer = observer
        self._metrics = self._config.metrics if self._config.metrics is not None else NoopMetricsHook()

    @property
    def config(self) -> TweetifyConfig:
        return self._config

    # ------------------------------------------------------------------
    # Media upload
    # ------------------------------------------------------------------

    async def upload_media(
        self,
        data: bytes,
        mime_type: str | None = None,
        *,
        chunk_size: int | None = None,
        observer: ObserverArg = None,
    ) -> UploadResult:
        """Upload *data* (async).  See :meth:`TweetifyClient.upload_media`."""
        return await async_upload_chunked(
            self._media,
            data,
            mime_type or sniff_mime_type(data),
            chunk_size=chunk_size if chunk_size is not None else self._config.chunk_size,
            observer=self._pick(observer),
            media_category=self._config.send_media_category,
            metrics=self._metrics,
        )

    async def upload_media_file(
        self,
        source: MediaSource,
        mime_type: str | None = None,
        *,
        chunk_size: int | None = None,
        observer: ObserverArg = None,
    ) -> UploadResult:
        data = await self._read(source, self._pick(observer))
        return await self.upload_media(data, mime_type, chunk_size=chunk_size, observer=observer)

    async def check_media_status(self, media_id: str) -> MediaStatus:
        return await async_check_media_status(self._media, media_id)

    async def wait_for_processing(
        self,
        media_id: str,
        *,
        poll_interval: float | None = None,
        max_attempts: int | None = None,
    ) -> MediaStatus:
        return await async_wait_for_processing(
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

    async def update_status(
        self,
        text: str,
        media: bytes | None = None,
        mime_type: str | None = None,
        *,
        observer: ObserverArg = None,
    ) -> PostResult:
        """Publish *text*, uploading *media* first (async)."""
        observer = self._pick(observer)
        media_ids: list[str] = []
        if media is not None:
            upload = await self.upload_media(media, mime_type, observer=observer)
            media_ids.append(upload.media_id)

        try:
            result = await self._statuses.update(text, media_ids)
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

    async def update_status_with_media_file(
        self,
        text: str,
        source: MediaSource,
        mime_type: str | None = None,
        *,
        observer: ObserverArg = None,
    ) -> PostResult:
        data = await self._read(source, self._pick(observer))
        return await self.update_status(text, data, mime_type, observer=observer)

    # ------------------------------------------------------------------
    # Resource management
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Close the HTTP transport."""
        await self._transport.close()

    async def __aenter__(self) -> AsyncTweetifyClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _pick(self, observer: ObserverArg) -> ObserverArg:
        return observer if observer is not None else self._observer

    async def _read(self, source: MediaSource, observer: ObserverArg) -> bytes:
        try:
            return await async_read_media(source)
        except TweetifyError as exc:
            emit_failure(observer, None, exc.message)
            raise
