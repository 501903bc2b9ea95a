"""Media upload API wrappers.

Provides :class:`MediaAPI` (sync) and :class:`AsyncMediaAPI` (async)
wrappers for the four commands of the chunked upload endpoint.  All four
are form-encoded ``POST`` requests to the same URL, distinguished only by
the ``command`` field:

1. **INIT** -- open a session and obtain ``media_id_string``.
2. **APPEND** -- send one base64-encoded segment.
3. **FINALIZE** -- close the session.
4. **STATUS** -- query server-side processing.

The wrappers only build parameters and decode bodies; ordering is the
job of :mod:`tweetify.media.upload`.
"""

from __future__ import annotations

import base64
import json
from typing import Any

from tweetify.errors import TweetifyProtocolError
from tweetify.models import UploadCommand

from .transport import AsyncMediaTransport, MediaTransport


# ---------------------------------------------------------------------------
# Parameter builders and decoders (shared by sync and async wrappers)
# ---------------------------------------------------------------------------

def init_params(total_bytes: int, media_type: str, media_category: str | None = None) -> dict[str, str]:
    params = {
        "command": UploadCommand.INIT.value,
        "total_bytes": str(total_bytes),
        "media_type": media_type,
    }
    if media_category:
        params["media_category"] = media_category
    return params


def append_params(media_id: str, segment_index: int, data: bytes) -> dict[str, str]:
    return {
        "command": UploadCommand.APPEND.value,
        "media_id": media_id,
        "segment_index": str(segment_index),
        # b64encode never inserts line breaks.
        "media": base64.b64encode(data).decode("ascii"),
    }


def finalize_params(media_id: str) -> dict[str, str]:
    return {"command": UploadCommand.FINALIZE.value, "media_id": media_id}


def status_params(media_id: str) -> dict[str, str]:
    return {"command": UploadCommand.STATUS.value, "media_id": media_id}


def decode_json_object(content: bytes, phase: str) -> dict[str, Any]:
    """Decode a response body that must be a JSON object.

    Raises
    ------
    TweetifyProtocolError
        If the body is not valid JSON or not an object.
    """
    try:
        body = json.loads(content)
    except (ValueError, UnicodeDecodeError) as exc:
        raise TweetifyProtocolError(
            message=f"Error parsing {phase} response",
            context={"phase": phase, "body": content[:200]},
            cause=exc,
        ) from exc
    if not isinstance(body, dict):
        raise TweetifyProtocolError(
            message=f"Error parsing {phase} response: expected a JSON object",
            context={"phase": phase, "body": content[:200]},
        )
    return body


def extract_media_id(body: dict[str, Any]) -> str:
    """Return the non-empty ``media_id_string`` from an INIT response."""
    media_id = body.get("media_id_string")
    if not isinstance(media_id, str) or not media_id:
        raise TweetifyProtocolError(
            message="could not obtain media handle from response",
            context={"phase": "INIT", "field": "media_id_string", "body": body},
        )
    return media_id


def _optional_body(content: bytes, phase: str) -> dict[str, Any]:
    """APPEND and FINALIZE may answer with an empty body."""
    if not content.strip():
        return {}
    return decode_json_object(content, phase)


# ---------------------------------------------------------------------------
# Sync wrapper
# ---------------------------------------------------------------------------

class MediaAPI:
    """Synchronous wrapper for the chunked media upload endpoint.

    Parameters
    ----------
    transport:
        A configured :class:`MediaTransport` instance.
    upload_url:
        Full URL of ``media/upload.json``.
    """

    def __init__(self, transport: MediaTransport, upload_url: str) -> None:
        self._transport = transport
        self._url = upload_url

    def init(
        self,
        total_bytes: int,
        media_type: str,
        media_category: str | None = None,
    ) -> str:
        """Open an upload session and return its media handle.

        Raises
        ------
        TweetifyProtocolError
            If the response lacks a non-empty ``media_id_string``.
        """
        content = self._transport.request(
            "POST", self._url, data=init_params(total_bytes, media_type, media_category),
        )
        return extract_media_id(decode_json_object(content, "INIT"))

    def append(self, media_id: str, segment_index: int, data: bytes) -> None:
        """Send one segment of the payload."""
        self._transport.request(
            "POST", self._url, data=append_params(media_id, segment_index, data),
        )

    def finalize(self, media_id: str) -> dict[str, Any]:
        """Close the session.  Returns the decoded body (``{}`` if empty)."""
        content = self._transport.request("POST", self._url, data=finalize_params(media_id))
        return _optional_body(content, "FINALIZE")

    def status(self, media_id: str) -> dict[str, Any]:
        """Query processing status.  Returns the decoded body."""
        content = self._transport.request("POST", self._url, data=status_params(media_id))
        return decode_json_object(content, "STATUS")


# ---------------------------------------------------------------------------
# Async wrapper
# ---------------------------------------------------------------------------

class AsyncMediaAPI:
    """Asynchronous wrapper for the chunked media upload endpoint.

    Mirrors :class:`MediaAPI` but all methods are coroutines.
    """

    def __init__(self, transport: AsyncMediaTransport, upload_url: str) -> None:
        self._transport = transport
        self._url = upload_url

    async def init(
        self,
        total_bytes: int,
        media_type: str,
        media_category: str | None = None,
    ) -> str:
        content = await self._transport.request(
            "POST", self._url, data=init_params(total_bytes, media_type, media_category),
        )
        return extract_media_id(decode_json_object(content, "INIT"))

    async def append(self, media_id: str, segment_index: int, data: bytes) -> None:
        await self._transport.request(
            "POST", self._url, data=append_params(media_id, segment_index, data),
        )

    async def finalize(self, media_id: str) -> dict[str, Any]:
        content = await self._transport.request("POST", self._url, data=finalize_params(media_id))
        return _optional_body(content, "FINALIZE")

    async def status(self, media_id: str) -> dict[str, Any]:
        content = await self._transport.request("POST", self._url, data=status_params(media_id))
        return decode_json_object(content, "STATUS")
