"""tweetify: chunked media upload and status-post client.

Public re-exports
-----------------

* **Clients:** :class:`TweetifyClient`, :class:`AsyncTweetifyClient`
* **Configuration:** :class:`TweetifyConfig`, :data:`DEFAULT_CHUNK_SIZE`
* **Errors:** Every :class:`TweetifyError` subclass and :class:`ErrorCode`
* **Models:** Result dataclasses, upload events, and enums

Usage::

    from tweetify import TweetifyClient

    client = TweetifyClient(auth=my_oauth1_signer)
    result = client.update_status("Look at this", media=open("cat.png", "rb").read())
"""

from __future__ import annotations

from tweetify.async_client import AsyncTweetifyClient

# ── Clients ────────────────────────────────────────────────────────────
from tweetify.client import TweetifyClient

# ── Configuration ───────────────────────────────────────────────────────
from tweetify.config import DEFAULT_CHUNK_SIZE, TweetifyConfig

# ── Errors ──────────────────────────────────────────────────────────────
from tweetify.errors import (
    ErrorCode,
    TweetifyAuthError,
    TweetifyError,
    TweetifyHTTPError,
    TweetifyNetworkError,
    TweetifyPermissionError,
    TweetifyProcessingError,
    TweetifyProcessingTimeoutError,
    TweetifyProtocolError,
    TweetifyRateLimitError,
    TweetifySequencingError,
    TweetifySourceReadError,
    TweetifyTransportError,
    TweetifyValidationError,
)

# ── Media helpers ───────────────────────────────────────────────────────
from tweetify.media import sniff_mime_type

# ── Models ──────────────────────────────────────────────────────────────
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
    PostResult,
    SegmentAppendCompleted,
    SegmentAppendStarting,
    UploadEventKind,
    UploadResult,
    UploadSession,
    UploadState,
    UploadStatusEvent,
)
from tweetify.observability import EventRecorder
from tweetify.utils import split_chunks

# ── Public surface ──────────────────────────────────────────────────────

__all__ = [
    # Clients
    "TweetifyClient",
    "AsyncTweetifyClient",
    # Configuration
    "TweetifyConfig",
    "DEFAULT_CHUNK_SIZE",
    # Error base + code enum
    "TweetifyError",
    "ErrorCode",
    # Input errors
    "TweetifySourceReadError",
    "TweetifyValidationError",
    # Transport errors
    "TweetifyTransportError",
    "TweetifyNetworkError",
    "TweetifyHTTPError",
    "TweetifyAuthError",
    "TweetifyPermissionError",
    "TweetifyRateLimitError",
    # Protocol errors
    "TweetifyProtocolError",
    "TweetifySequencingError",
    "TweetifyProcessingError",
    "TweetifyProcessingTimeoutError",
    # Helpers
    "sniff_mime_type",
    "split_chunks",
    "EventRecorder",
    # Models: results
    "UploadResult",
    "PostResult",
    "MediaStatus",
    # Models: session internals
    "Chunk",
    "UploadSession",
    "UploadState",
    # Models: events
    "UploadStatusEvent",
    "UploadEventKind",
    "Initiating",
    "Initiated",
    "AppendStarting",
    "AppendCompleted",
    "SegmentAppendStarting",
    "SegmentAppendCompleted",
    "Finalizing",
    "Finalized",
    "Failed",
]
