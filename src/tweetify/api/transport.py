"""Sync and async HTTP transports for the media and status endpoints.

Each transport performs exactly one exchange per call:

1. Send the form-encoded request with auth and user-agent headers.
2. On ``2xx`` -- return the raw response body bytes.
3. On a connection failure, timeout or unreadable body -- raise
   :class:`TweetifyNetworkError`.
4. On any other status -- raise the matching :class:`TweetifyHTTPError`
   subclass with the service's error message folded in.

Nothing is retried; a failed exchange ends the upload.
Decoding the body is left to the endpoint wrappers.
"""

from __future__ import annotations

import json as _json
import sys
import time
from typing import Any

import httpx

from tweetify.config import TweetifyConfig
from tweetify.errors import (
    TweetifyAuthError,
    TweetifyHTTPError,
    TweetifyNetworkError,
    TweetifyPermissionError,
    TweetifyRateLimitError,
)
from tweetify.observability import NoopMetricsHook, get_logger
from tweetify.observability import metrics as metric

log = get_logger("tweetify.transport")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _service_error(response: httpx.Response) -> tuple[str, Any, Any]:
    """Extract ``(message, service_code, body)`` from an error response.

    Understands ``{"errors": [{"code": .., "message": ..}]}`` and
    ``{"error": ".."}`` bodies; anything else falls back to the text.
    """
    try:
        body = response.json()
    except ValueError:
        return response.text[:500], None, None

    if isinstance(body, dict):
        errors = body.get("errors")
        if isinstance(errors, list) and errors and isinstance(errors[0], dict):
            first = errors[0]
            return str(first.get("message", "")), first.get("code"), body
        if isinstance(body.get("error"), str):
            return body["error"], None, body
    return response.text[:500], None, body


def _raise_for_status(response: httpx.Response, method: str, url: str) -> None:
    """Raise the :class:`TweetifyHTTPError` subclass matching a non-2xx status."""
    status = response.status_code
    message, service_code, body = _service_error(response)
    context: dict[str, Any] = {
        "url": url,
        "status_code": status,
        "service_code": service_code,
        "body": body,
    }

    if status == 401:
        raise TweetifyAuthError(
            message=f"Authentication failed on {method} {url}: {message}",
            context=context,
        )
    if status == 403:
        raise TweetifyPermissionError(
            message=f"Permission denied on {method} {url}: {message}",
            context=context,
        )
    if status == 429:
        context["rate_limit_reset"] = response.headers.get("x-rate-limit-reset")
        raise TweetifyRateLimitError(
            message=f"Rate limited on {method} {url}: {message}",
            context=context,
        )
    raise TweetifyHTTPError(
        message=f"HTTP {status} on {method} {url}: {message}",
        context=context,
    )


def _dump_payload(
    method: str,
    url: str,
    payload: dict | None,
    response_status: int | None,
    response_body: Any | None,
    token: str | None = None,
) -> None:
    """Write a redacted debug dump of the request/response to stderr."""
    from tweetify.utils.redact import redact

    dump: dict[str, Any] = {
        "method": method,
        "url": url,
    }
    if payload is not None:
        dump["request_body"] = payload
    if response_status is not None:
        dump["response_status"] = response_status
    if response_body is not None:
        dump["response_body"] = response_body
    safe_dump = redact(dump, token)
    print(
        _json.dumps(safe_dump, indent=2, default=str),
        file=sys.stderr,
    )


def _emit_debug_dump(
    config: TweetifyConfig,
    method: str,
    response: httpx.Response,
    data: dict | None,
) -> None:
    """Emit a redacted debug dump of request/response if enabled."""
    if not config.debug_dump_payload:
        return
    try:
        resp_body = response.json()
    except ValueError:
        resp_body = response.text[:1000]
    _dump_payload(
        method, str(response.url), data,
        response.status_code, resp_body,
        token=config.token,
    )


def _network_error(method: str, url: str, exc: Exception) -> TweetifyNetworkError:
    log.warning(
        "Request network error",
        extra={
            "extra_fields": {
                "op": "request",
                "method": method,
                "url": url,
                "error": str(exc),
            }
        },
    )
    return TweetifyNetworkError(
        message=f"Network error on {method} {url}: {exc}",
        context={"url": url, "method": method},
        cause=exc,
    )


def _command_tag(data: dict | None) -> str:
    if data and "command" in data:
        return str(data["command"])
    return "-"


def _headers(config: TweetifyConfig) -> dict[str, str]:
    headers = {"User-Agent": config.user_agent}
    if config.token:
        headers["Authorization"] = f"Bearer {config.token}"
    return headers


def _client_options(config: TweetifyConfig) -> dict[str, Any]:
    return {
        "headers": _headers(config),
        "timeout": httpx.Timeout(config.timeout_seconds),
        "proxy": config.http_proxy,
    }


def _adopt_client(config: TweetifyConfig, client: Any) -> Any:
    """Apply *config* headers to a caller-supplied httpx client."""
    if config.http_proxy:
        raise ValueError(
            "http_proxy cannot be applied to a pre-built http client; "
            "configure the proxy on that client instead"
        )
    client.headers.update(_headers(config))
    return client


def _request_options(config: TweetifyConfig, auth: httpx.Auth | None) -> dict[str, Any]:
    """Keyword arguments passed with every request."""
    options: dict[str, Any] = {"timeout": httpx.Timeout(config.timeout_seconds)}
    if auth is not None:
        options["auth"] = auth
    return options


# ---------------------------------------------------------------------------
# Sync transport
# ---------------------------------------------------------------------------

class MediaTransport:
    """Synchronous HTTP transport.

    Parameters
    ----------
    config:
        A :class:`TweetifyConfig` instance controlling transport behaviour.
    auth:
        Optional ``httpx.Auth`` that signs every request (for example an
        OAuth 1.0a signer owned by the host application).
    client:
        Pre-built ``httpx.Client`` to use instead of creating one.  The
        transport still closes it on :meth:`close`.  The configured
        user agent and bearer token are added to its headers, and the
        timeout and *auth* are sent with every request.  Raises
        ``ValueError`` when *config* sets ``http_proxy``.
    """

    def __init__(
        self,
        config: TweetifyConfig,
        auth: httpx.Auth | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._config = config
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        if client is None:
            client = httpx.Client(**_client_options(config))
        else:
            client = _adopt_client(config, client)
        self._client = client
        self._request_options = _request_options(config, auth)

    # -- public API --------------------------------------------------------

    def request(self, method: str, url: str, *, data: dict | None = None) -> bytes:
        """Execute one HTTP exchange.

        Parameters
        ----------
        method:
            HTTP method, normally ``POST``.
        url:
            Absolute endpoint URL.
        data:
            Form fields, sent ``application/x-www-form-urlencoded``.

        Returns
        -------
        bytes
            The response body (possibly empty).

        Raises
        ------
        TweetifyNetworkError
            On connection failures and timeouts.
        TweetifyAuthError
            On 401 responses.
        TweetifyPermissionError
            On 403 responses.
        TweetifyRateLimitError
            On 429 responses.
        TweetifyHTTPError
            On any other non-2xx response.
        """
        command = _command_tag(data)
        t0 = time.monotonic()
        try:
            response = self._client.request(method, url, data=data, **self._request_options)
        except httpx.RequestError as exc:
            self._metrics.increment(
                metric.REQUESTS_TOTAL,
                tags={"method": method, "command": command, "status": "error"},
            )
            raise _network_error(method, url, exc) from exc
        elapsed_ms = (time.monotonic() - t0) * 1000

        _record(self._metrics, method, command, response.status_code, elapsed_ms)
        _emit_debug_dump(self._config, method, response, data)

        if not 200 <= response.status_code < 300:
            _log_status_error(method, url, command, response.status_code)
            _raise_for_status(response, method, url)
        return response.content

    def close(self) -> None:
        """Close the underlying HTTP client and release resources."""
        self._client.close()

    def __enter__(self) -> MediaTransport:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


# ---------------------------------------------------------------------------
# Async transport
# ---------------------------------------------------------------------------

class AsyncMediaTransport:
    """Asynchronous HTTP transport.

    Mirrors :class:`MediaTransport` but uses ``httpx.AsyncClient``.
    """

    def __init__(
        self,
        config: TweetifyConfig,
        auth: httpx.Auth | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        if client is None:
            client = httpx.AsyncClient(**_client_options(config))
        else:
            client = _adopt_client(config, client)
        self._client = client
        self._request_options = _request_options(config, auth)

    async def request(self, method: str, url: str, *, data: dict | None = None) -> bytes:
        """Execute one HTTP exchange (async).

        See :meth:`MediaTransport.request` for full documentation.
        """
        command = _command_tag(data)
        t0 = time.monotonic()
        try:
            response = await self._client.request(method, url, data=data, **self._request_options)
        except httpx.RequestError as exc:
            self._metrics.increment(
                metric.REQUESTS_TOTAL,
                tags={"method": method, "command": command, "status": "error"},
            )
            raise _network_error(method, url, exc) from exc
        elapsed_ms = (time.monotonic() - t0) * 1000

        _record(self._metrics, method, command, response.status_code, elapsed_ms)
        _emit_debug_dump(self._config, method, response, data)

        if not 200 <= response.status_code < 300:
            _log_status_error(method, url, command, response.status_code)
            _raise_for_status(response, method, url)
        return response.content

    async def close(self) -> None:
        """Close the underlying async HTTP client and release resources."""
        await self._client.aclose()

    async def __aenter__(self) -> AsyncMediaTransport:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()


# ---------------------------------------------------------------------------
# Shared bookkeeping
# ---------------------------------------------------------------------------

def _record(metrics: Any, method: str, command: str, status: int, elapsed_ms: float) -> None:
    tags = {"method": method, "command": command, "status": str(status)}
    metrics.increment(metric.REQUESTS_TOTAL, tags=tags)
    metrics.timing(metric.REQUEST_DURATION_MS, elapsed_ms, tags=tags)


def _log_status_error(method: str, url: str, command: str, status: int) -> None:
    log.warning(
        "Request failed with error status",
        extra={
            "extra_fields": {
                "op": "request",
                "method": method,
                "url": url,
                "command": command,
                "status_code": status,
            }
        },
    )
