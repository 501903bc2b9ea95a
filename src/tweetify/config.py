"""SDK configuration for tweetify.

:class:`TweetifyConfig` is a dataclass that captures every tuneable knob
exposed by the SDK.  Instances are passed to both :class:`TweetifyClient`
and :class:`AsyncTweetifyClient`.

Endpoint URLs are derived from :attr:`TweetifyConfig.service_domain`
unless overridden explicitly::

    https://upload.<service_domain>/1.1/media/upload.json
    https://api.<service_domain>/1.1/statuses/update.json
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

# ---------------------------------------------------------------------------
# Protocol constants
# ---------------------------------------------------------------------------

DEFAULT_SERVICE_DOMAIN: str = "twitter.com"

DEFAULT_CHUNK_SIZE: int = 5 * 1000 * 1000
"""Maximum bytes per APPEND segment."""

MEDIA_UPLOAD_PATH: str = "/media/upload.json"

STATUS_UPDATE_PATH: str = "/statuses/update.json"

_LOCAL_HOSTS = ("localhost", "127.0.0.1", "::1")


# ---------------------------------------------------------------------------
# Configuration dataclass
# ---------------------------------------------------------------------------

@dataclass
class TweetifyConfig:
    """Complete configuration for a tweetify client.

    Every parameter has a default.  Authentication is normally supplied
    as an ``httpx.Auth`` object on the client; ``token`` is a shortcut for
    bearer-token authentication.

    Parameters
    ----------
    token:
        Optional bearer token sent as ``Authorization: Bearer <token>``.
        Never logged.
    service_domain:
        Domain used to derive both endpoint hosts.
    upload_base_url:
        Root of the media upload API.  Derived from *service_domain* when
        left as ``None``.
    api_base_url:
        Root of the REST API used for status updates.  Derived from
        *service_domain* when left as ``None``.
    chunk_size:
        Maximum number of payload bytes sent in one APPEND request.
    send_media_category:
        Include a ``media_category`` hint (``tweet_image``, ``tweet_gif``,
        ``tweet_video``) in the INIT request.  Off by default.
    timeout_seconds:
        Deadline for each individual HTTP exchange.  ``None`` disables the
        deadline entirely.
    http_proxy:
        Optional HTTP/HTTPS proxy URL.
    user_agent:
        Value of the ``User-Agent`` header.
    status_poll_interval:
        Seconds to wait between STATUS polls when the service does not
        advertise ``check_after_secs``.
    status_poll_max_attempts:
        Maximum number of STATUS requests issued by the polling helpers.
    metrics:
        Optional :class:`~tweetify.observability.MetricsHook` backend.
    debug_dump_payload:
        Write each (redacted) request and response to *stderr*.
    """

    # ── Auth ────────────────────────────────────────────────────────────
    token: str = ""

    # ── Endpoints ───────────────────────────────────────────────────────
    service_domain: str = DEFAULT_SERVICE_DOMAIN

    upload_base_url: str | None = None

    api_base_url: str | None = None

    # ── Upload ──────────────────────────────────────────────────────────
    chunk_size: int = DEFAULT_CHUNK_SIZE

    send_media_category: bool = False

    # ── HTTP ────────────────────────────────────────────────────────────
    timeout_seconds: float | None = 60.0

    http_proxy: str | None = None

    user_agent: str = "tweetify"

    # ── Processing status ───────────────────────────────────────────────
    status_poll_interval: float = 5.0

    status_poll_max_attempts: int = 20

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    # ── Debug ───────────────────────────────────────────────────────────
    debug_dump_payload: bool = False

    def __post_init__(self) -> None:
        """Derive endpoint roots and validate configuration."""
        if self.upload_base_url is None:
            self.upload_base_url = f"https://upload.{self.service_domain}/1.1"
        if self.api_base_url is None:
            self.api_base_url = f"https://api.{self.service_domain}/1.1"

        self.upload_base_url = self.upload_base_url.rstrip("/")
        self.api_base_url = self.api_base_url.rstrip("/")

        for name in ("upload_base_url", "api_base_url"):
            parsed = urlparse(getattr(self, name))
            if parsed.scheme not in ("http", "https") or not parsed.hostname:
                raise ValueError(f"{name} must be an absolute http(s) URL, got {getattr(self, name)!r}")
            if parsed.scheme == "http" and parsed.hostname not in _LOCAL_HOSTS:
                raise ValueError(
                    f"{name} uses insecure HTTP for non-local host '{parsed.hostname}'. "
                    "Use HTTPS to protect your credentials, or target localhost for testing."
                )

        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {self.chunk_size}")
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0 or None, got {self.timeout_seconds}")
        if self.status_poll_interval < 0:
            raise ValueError(f"status_poll_interval must be >= 0, got {self.status_poll_interval}")
        if self.status_poll_max_attempts < 1:
            raise ValueError(
                f"status_poll_max_attempts must be >= 1, got {self.status_poll_max_attempts}"
            )

    @property
    def media_upload_url(self) -> str:
        """Full URL of the chunked media upload endpoint."""
        return f"{self.upload_base_url}{MEDIA_UPLOAD_PATH}"

    @property
    def status_update_url(self) -> str:
        """Full URL of the status-creation endpoint."""
        return f"{self.api_base_url}{STATUS_UPDATE_PATH}"

    def __repr__(self) -> str:
        """Mask the token to prevent accidental credential leakage."""
        parts: list[str] = []
        for f in dataclasses.fields(self):
            val = getattr(self, f.name)
            if f.name == "token":
                masked = f"...{val[-4:]}" if len(val) >= 4 else "****"
                parts.append(f"token='{masked}'")
            else:
                parts.append(f"{f.name}={val!r}")
        return f"TweetifyConfig({', '.join(parts)})"
