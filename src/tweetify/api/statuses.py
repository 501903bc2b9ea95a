"""Status update API wrappers.

Provides :class:`StatusAPI` (sync) and :class:`AsyncStatusAPI` (async)
for ``statuses/update.json``.
"""

from __future__ import annotations

from collections.abc import Sequence

from tweetify.models import PostResult

from .media import decode_json_object
from .transport import AsyncMediaTransport, MediaTransport


def update_params(status: str, media_ids: Sequence[str]) -> dict[str, str]:
    params = {"status": status}
    if media_ids:
        params["media_ids"] = ",".join(media_ids)
    return params


def build_post_result(content: bytes, media_ids: Sequence[str]) -> PostResult:
    data = decode_json_object(content, "STATUS_UPDATE")
    status_id = data.get("id_str")
    if status_id is None and data.get("id") is not None:
        status_id = str(data["id"])
    return PostResult(
        status_id=status_id,
        media_ids=list(media_ids),
        data=data,
        raw=content,
    )


class StatusAPI:
    """Synchronous wrapper for the status-creation endpoint.

    Parameters
    ----------
    transport:
        A configured :class:`MediaTransport` instance.
    update_url:
        Full URL of ``statuses/update.json``.
    """

    def __init__(self, transport: MediaTransport, update_url: str) -> None:
        self._transport = transport
        self._url = update_url

    def update(self, status: str, media_ids: Sequence[str] = ()) -> PostResult:
        """Publish *status*, attaching *media_ids* when given.

        Raises
        ------
        TweetifyProtocolError
            If the response body is not a JSON object.
        """
        content = self._transport.request("POST", self._url, data=update_params(status, media_ids))
        return build_post_result(content, media_ids)


class AsyncStatusAPI:
    """Asynchronous wrapper for the status-creation endpoint."""

    def __init__(self, transport: AsyncMediaTransport, update_url: str) -> None:
        self._transport = transport
        self._url = update_url

    async def update(self, status: str, media_ids: Sequence[str] = ()) -> PostResult:
        content = await self._transport.request(
            "POST", self._url, data=update_params(status, media_ids),
        )
        return build_post_result(content, media_ids)
