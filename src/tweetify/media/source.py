"""Read media payloads from their origin.

A source is a filesystem path (``str`` or :class:`~pathlib.Path`) or a
``file://`` URL.  Every failure to obtain the bytes is reported as
:class:`TweetifySourceReadError` so callers can stop before touching the
network.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from urllib.parse import unquote, urlparse

from tweetify.errors import TweetifySourceReadError

MediaSource = str | os.PathLike


def resolve_source(source: MediaSource) -> Path:
    """Turn a path or ``file://`` URL into a local :class:`Path`."""
    if isinstance(source, os.PathLike):
        return Path(source).expanduser()

    text = str(source).strip()
    if not text:
        raise TweetifySourceReadError(
            message="Could not read media file: empty source",
            context={"source": text, "reason": "empty"},
        )

    parsed = urlparse(text)
    if parsed.scheme == "file":
        if parsed.netloc not in ("", "localhost"):
            raise TweetifySourceReadError(
                message=f"Could not read media file: remote file URL {text}",
                context={"source": text, "reason": "remote_host"},
            )
        return Path(unquote(parsed.path))
    if parsed.scheme and len(parsed.scheme) > 1:
        raise TweetifySourceReadError(
            message=f"Could not read media file: unsupported URL scheme {parsed.scheme!r}",
            context={"source": text, "reason": "unsupported_scheme"},
        )
    return Path(text).expanduser()


def read_media(source: MediaSource) -> bytes:
    """Read the full payload behind *source*.

    Raises
    ------
    TweetifySourceReadError
        If the source cannot be resolved or read.
    """
    path = resolve_source(source)
    try:
        return path.read_bytes()
    except OSError as exc:
        raise TweetifySourceReadError(
            message=f"Could not read media file: {path}",
            context={"source": str(source), "reason": type(exc).__name__},
            cause=exc,
        ) from exc


async def async_read_media(source: MediaSource) -> bytes:
    """Read the payload in an executor to avoid blocking the event loop."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, read_media, source)
