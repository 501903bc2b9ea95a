"""Unit tests for tweetify/api/transport.py.

Covers:
- _raise_for_status status-code mapping
- _dump_payload redaction
- MediaTransport.request (success, error statuses, network and decoding errors, debug dump)
- caller-supplied http clients picking up headers, timeout and auth
- AsyncMediaTransport equivalents
"""

from __future__ import annotations

import json
from unittest.mock import MagicMock
from urllib.parse import parse_qs

import httpx
import pytest

from tweetify.config import TweetifyConfig
from tweetify.errors import (
    ErrorCode,
    TweetifyAuthError,
    TweetifyHTTPError,
    TweetifyNetworkError,
    TweetifyPermissionError,
    TweetifyRateLimitError,
    TweetifyTransportError,
)
from tweetify.api.transport import (
    AsyncMediaTransport,
    MediaTransport,
    _dump_payload,
    _raise_for_status,
)

URL = "https://upload.twitter.com/1.1/media/upload.json"


def make_response(
    status_code: int = 200,
    body: dict | None = None,
    headers: dict | None = None,
) -> httpx.Response:
    content = json.dumps(body).encode() if body is not None else b""
    resp = httpx.Response(status_code, content=content, headers=headers or {})
    resp.request = httpx.Request("POST", URL)
    return resp


def make_transport(handler, **config_overrides) -> MediaTransport:
    config = TweetifyConfig(token="test-token-1234", **config_overrides)
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return MediaTransport(config, client=client)


def make_async_transport(handler, **config_overrides) -> AsyncMediaTransport:
    config = TweetifyConfig(token="test-token-1234", **config_overrides)
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return AsyncMediaTransport(config, client=client)


# ---------------------------------------------------------------------------
# _raise_for_status
# ---------------------------------------------------------------------------

class TestRaiseForStatus:
    def test_401_raises_auth_error(self):
        with pytest.raises(TweetifyAuthError) as exc_info:
            _raise_for_status(
                make_response(401, {"errors": [{"code": 32, "message": "Could not authenticate you."}]}),
                "POST",
                URL,
            )
        err = exc_info.value
        assert err.code == ErrorCode.AUTH_ERROR
        assert err.status_code == 401
        assert err.context["service_code"] == 32
        assert "Could not authenticate you." in err.message

    def test_403_raises_permission_error(self):
        with pytest.raises(TweetifyPermissionError):
            _raise_for_status(make_response(403, {"error": "forbidden"}), "POST", URL)

    def test_429_carries_reset_header(self):
        resp = make_response(429, {"errors": [{"code": 88, "message": "Rate limit exceeded"}]},
                             headers={"x-rate-limit-reset": "1700000000"})
        with pytest.raises(TweetifyRateLimitError) as exc_info:
            _raise_for_status(resp, "POST", URL)
        assert exc_info.value.context["rate_limit_reset"] == "1700000000"
        assert exc_info.value.code == ErrorCode.RATE_LIMITED

    @pytest.mark.parametrize("status", [400, 404, 413, 500, 503])
    def test_other_statuses_raise_http_error(self, status):
        with pytest.raises(TweetifyHTTPError) as exc_info:
            _raise_for_status(make_response(status, {"errors": [{"code": 1, "message": "nope"}]}), "POST", URL)
        err = exc_info.value
        assert type(err) is TweetifyHTTPError
        assert err.status_code == status
        assert err.context["url"] == URL

    def test_non_json_body_falls_back_to_text(self):
        resp = httpx.Response(502, content=b"<html>Bad gateway</html>")
        resp.request = httpx.Request("POST", URL)
        with pytest.raises(TweetifyHTTPError, match="Bad gateway") as exc_info:
            _raise_for_status(resp, "POST", URL)
        assert exc_info.value.context["body"] is None

    def test_http_errors_are_transport_errors(self):
        with pytest.raises(TweetifyTransportError):
            _raise_for_status(make_response(500), "POST", URL)


# ---------------------------------------------------------------------------
# _dump_payload
# ---------------------------------------------------------------------------

class TestDumpPayload:
    def test_media_bytes_and_token_are_redacted(self, capsys):
        _dump_payload(
            "POST",
            URL,
            {"command": "APPEND", "media": "aGVsbG8=", "Authorization": "Bearer secret-tok"},
            200,
            {"echo": "secret-tok"},
            token="secret-tok",
        )
        output = capsys.readouterr().err
        dumped = json.loads(output)
        assert dumped["request_body"]["media"] == "<base64:5_bytes>"
        assert dumped["request_body"]["command"] == "APPEND"
        assert "secret-tok" not in output
        assert dumped["response_status"] == 200

    def test_dump_without_payload_or_response(self, capsys):
        _dump_payload("POST", URL, None, None, None)
        dumped = json.loads(capsys.readouterr().err)
        assert dumped == {"method": "POST", "url": URL}


# ---------------------------------------------------------------------------
# MediaTransport.request
# ---------------------------------------------------------------------------

class TestMediaTransport:
    def test_success_returns_body_bytes(self):
        transport = make_transport(lambda req: httpx.Response(202, json={"media_id_string": "1"}))
        content = transport.request("POST", URL, data={"command": "INIT"})
        assert json.loads(content) == {"media_id_string": "1"}

    def test_empty_2xx_body(self):
        transport = make_transport(lambda req: httpx.Response(204))
        assert transport.request("POST", URL, data={"command": "APPEND"}) == b""

    def test_form_encoded_post(self):
        seen: list[httpx.Request] = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={})

        transport = make_transport(handler)
        transport.request("POST", URL, data={"command": "INIT", "total_bytes": "10"})

        request = seen[0]
        assert request.method == "POST"
        assert request.headers["content-type"] == "application/x-www-form-urlencoded"
        assert parse_qs(request.content.decode()) == {"command": ["INIT"], "total_bytes": ["10"]}

    def test_error_status_raises(self):
        transport = make_transport(
            lambda req: httpx.Response(400, json={"errors": [{"code": 324, "message": "Bad media"}]})
        )
        with pytest.raises(TweetifyHTTPError, match="Bad media"):
            transport.request("POST", URL, data={"command": "APPEND"})

    def test_connect_error_becomes_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        transport = make_transport(handler)
        with pytest.raises(TweetifyNetworkError) as exc_info:
            transport.request("POST", URL, data={"command": "INIT"})
        err = exc_info.value
        assert err.code == ErrorCode.NETWORK_ERROR
        assert isinstance(err.__cause__, httpx.ConnectError)
        assert err.context["url"] == URL

    def test_timeout_becomes_network_error(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        transport = make_transport(handler)
        with pytest.raises(TweetifyNetworkError):
            transport.request("POST", URL)

    def test_metrics_recorded_per_command(self):
        metrics = MagicMock()
        transport = make_transport(lambda req: httpx.Response(204), metrics=metrics)

        transport.request("POST", URL, data={"command": "APPEND"})

        metrics.increment.assert_called_once_with(
            "tweetify.requests_total",
            tags={"method": "POST", "command": "APPEND", "status": "204"},
        )
        assert metrics.timing.call_args.args[0] == "tweetify.request_duration_ms"

    def test_network_error_metric(self):
        metrics = MagicMock()

        def handler(request):
            raise httpx.ConnectError("down", request=request)

        transport = make_transport(handler, metrics=metrics)
        with pytest.raises(TweetifyNetworkError):
            transport.request("POST", URL, data={"command": "FINALIZE"})
        metrics.increment.assert_called_once_with(
            "tweetify.requests_total",
            tags={"method": "POST", "command": "FINALIZE", "status": "error"},
        )

    def test_undecodable_body_becomes_network_error(self):
        def handler(request):
            return httpx.Response(
                200, headers={"content-encoding": "gzip"}, stream=httpx.ByteStream(b"not-gzip")
            )

        metrics = MagicMock()
        transport = make_transport(handler, metrics=metrics)
        with pytest.raises(TweetifyNetworkError) as exc_info:
            transport.request("POST", URL, data={"command": "FINALIZE"})
        assert isinstance(exc_info.value.__cause__, httpx.DecodingError)
        metrics.increment.assert_called_once_with(
            "tweetify.requests_total",
            tags={"method": "POST", "command": "FINALIZE", "status": "error"},
        )

    def test_debug_dump_enabled(self, capsys):
        transport = make_transport(lambda req: httpx.Response(204), debug_dump_payload=True)
        transport.request("POST", URL, data={"command": "APPEND", "media": "AAAA"})
        err = capsys.readouterr().err
        assert "<base64:3_bytes>" in err
        assert "AAAA" not in err

    def test_debug_dump_disabled_by_default(self, capsys):
        transport = make_transport(lambda req: httpx.Response(204))
        transport.request("POST", URL, data={"command": "APPEND"})
        assert capsys.readouterr().err == ""

    def test_default_client_headers(self):
        config = TweetifyConfig(token="tok-abcdef", user_agent="my-app/1.0")
        transport = MediaTransport(config)
        try:
            assert transport._client.headers["Authorization"] == "Bearer tok-abcdef"
            assert transport._client.headers["User-Agent"] == "my-app/1.0"
            assert transport._client.timeout.read == 60.0
        finally:
            transport.close()

    def test_no_authorization_header_without_token(self):
        transport = MediaTransport(TweetifyConfig())
        try:
            assert "Authorization" not in transport._client.headers
        finally:
            transport.close()

    def test_context_manager_closes_client(self):
        transport = make_transport(lambda req: httpx.Response(204))
        with transport as t:
            assert t is transport
        assert transport._client.is_closed


# ---------------------------------------------------------------------------
# Caller-supplied http clients
# ---------------------------------------------------------------------------

class _StampAuth(httpx.Auth):
    def auth_flow(self, request):
        request.headers["X-Signed"] = "yes"
        yield request


class TestSuppliedClient:
    def _capture(self, seen):
        def handler(request):
            seen.append(request)
            return httpx.Response(204)

        return handler

    def test_token_and_user_agent_sent(self):
        seen: list[httpx.Request] = []
        transport = make_transport(self._capture(seen), user_agent="my-app/2.0")
        transport.request("POST", URL, data={"command": "INIT"})

        assert seen[0].headers["Authorization"] == "Bearer test-token-1234"
        assert seen[0].headers["User-Agent"] == "my-app/2.0"

    def test_configured_timeout_sent(self):
        seen: list[httpx.Request] = []
        transport = make_transport(self._capture(seen), timeout_seconds=7.5)
        transport.request("POST", URL)

        assert seen[0].extensions["timeout"]["read"] == 7.5
        assert seen[0].extensions["timeout"]["connect"] == 7.5

    def test_auth_applied(self):
        seen: list[httpx.Request] = []
        client = httpx.Client(transport=httpx.MockTransport(self._capture(seen)))
        transport = MediaTransport(TweetifyConfig(), auth=_StampAuth(), client=client)
        transport.request("POST", URL)

        assert seen[0].headers["X-Signed"] == "yes"
        assert "Authorization" not in seen[0].headers

    def test_client_auth_kept_without_transport_auth(self):
        seen: list[httpx.Request] = []
        client = httpx.Client(transport=httpx.MockTransport(self._capture(seen)), auth=_StampAuth())
        transport = MediaTransport(TweetifyConfig(), client=client)
        transport.request("POST", URL)

        assert seen[0].headers["X-Signed"] == "yes"

    def test_proxy_rejected(self):
        client = httpx.Client(transport=httpx.MockTransport(lambda req: httpx.Response(204)))
        config = TweetifyConfig(http_proxy="http://proxy.local:3128")
        with pytest.raises(ValueError, match="http_proxy"):
            MediaTransport(config, client=client)
        client.close()

    async def test_async_token_and_auth_sent(self):
        seen: list[httpx.Request] = []
        client = httpx.AsyncClient(transport=httpx.MockTransport(self._capture(seen)))
        config = TweetifyConfig(token="tok-async", timeout_seconds=3.0)
        transport = AsyncMediaTransport(config, auth=_StampAuth(), client=client)
        await transport.request("POST", URL)
        await transport.close()

        assert seen[0].headers["Authorization"] == "Bearer tok-async"
        assert seen[0].headers["X-Signed"] == "yes"
        assert seen[0].extensions["timeout"]["read"] == 3.0

    async def test_async_proxy_rejected(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda req: httpx.Response(204)))
        config = TweetifyConfig(http_proxy="http://proxy.local:3128")
        with pytest.raises(ValueError, match="http_proxy"):
            AsyncMediaTransport(config, client=client)
        await client.aclose()


# ---------------------------------------------------------------------------
# AsyncMediaTransport.request
# ---------------------------------------------------------------------------

class TestAsyncMediaTransport:
    async def test_success(self):
        transport = make_async_transport(lambda req: httpx.Response(201, json={"ok": True}))
        content = await transport.request("POST", URL, data={"command": "FINALIZE"})
        assert json.loads(content) == {"ok": True}
        await transport.close()

    async def test_auth_error(self):
        transport = make_async_transport(
            lambda req: httpx.Response(401, json={"errors": [{"code": 89, "message": "Invalid or expired token."}]})
        )
        with pytest.raises(TweetifyAuthError):
            await transport.request("POST", URL, data={"command": "INIT"})
        await transport.close()

    async def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        transport = make_async_transport(handler)
        with pytest.raises(TweetifyNetworkError):
            await transport.request("POST", URL)
        await transport.close()

    async def test_undecodable_body(self):
        def handler(request):
            return httpx.Response(
                200, headers={"content-encoding": "gzip"}, stream=httpx.ByteStream(b"not-gzip")
            )

        transport = make_async_transport(handler)
        with pytest.raises(TweetifyNetworkError):
            await transport.request("POST", URL, data={"command": "FINALIZE"})
        await transport.close()

    async def test_async_context_manager(self):
        transport = make_async_transport(lambda req: httpx.Response(204))
        async with transport as t:
            await t.request("POST", URL)
        assert transport._client.is_closed
