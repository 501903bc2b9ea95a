"""Metric names and the pluggable metrics backend.

Every data point tweetify records goes through an object satisfying
:class:`MetricsHook`, passed as ``TweetifyConfig(metrics=...)``.  Without
one, :class:`NoopMetricsHook` drops everything.

The names below are the complete set emitted by the SDK.  Counters carry
tags described next to each constant.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

REQUESTS_TOTAL = "tweetify.requests_total"
"""Counter per HTTP exchange; tags ``method``, ``command``, ``status``."""

REQUEST_DURATION_MS = "tweetify.request_duration_ms"
"""Timing per completed exchange; same tags as :data:`REQUESTS_TOTAL`."""

UPLOAD_SEGMENTS_TOTAL = "tweetify.upload_segments_total"
UPLOAD_BYTES_TOTAL = "tweetify.upload_bytes_total"

UPLOAD_PENDING_SEGMENTS = "tweetify.upload_pending_segments"
"""Gauge: APPEND segments still queued for the current upload."""

UPLOAD_SUCCESS_TOTAL = "tweetify.upload_success_total"
"""Counter; tag ``media_type``."""

UPLOAD_FAILURE_TOTAL = "tweetify.upload_failure_total"
"""Counter; tags ``state`` (phase that failed) and ``code``."""

STATUS_POSTS_TOTAL = "tweetify.status_posts_total"
"""Counter; tag ``with_media``."""


@runtime_checkable
class MetricsHook(Protocol):
    """What a metrics backend must provide (StatsD, Prometheus, ...)."""

    def increment(self, name: str, value: int = 1, tags: dict[str, str] | None = None) -> None:
        ...

    def timing(self, name: str, ms: float, tags: dict[str, str] | None = None) -> None:
        ...

    def gauge(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        ...


class NoopMetricsHook:
    """Default backend; records nothing."""

    __slots__ = ()

    def increment(self, name: str, value: int = 1, tags: dict[str, str] | None = None) -> None:
        pass

    def timing(self, name: str, ms: float, tags: dict[str, str] | None = None) -> None:
        pass

    def gauge(self, name: str, value: float, tags: dict[str, str] | None = None) -> None:
        pass
