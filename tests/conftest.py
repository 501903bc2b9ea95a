"""Shared test fixtures for the tweetify test suite."""

from __future__ import annotations

from typing import Any
from urllib.parse import parse_qs

import httpx
import pytest

from tweetify.config import TweetifyConfig
from tweetify.observability import EventRecorder

MEDIA_ID = "710511363345354753"
STATUS_ID = "1050118621198921728"


class FakeMediaService:
    """In-memory stand-in for the upload and status endpoints.

    Records every request as ``(path, form)``, plus its headers, and
    answers with canned responses.  Set ``overrides[key]`` to an
    ``httpx.Response`` or an exception to change the outcome of a
    command, where *key* is the ``command`` field (``"INIT"``,
    ``"APPEND"``, ...) or ``"UPDATE"`` for the status endpoint.
    """

    def __init__(self, media_id: str = MEDIA_ID) -> None:
        self.media_id = media_id
        self.status_id = STATUS_ID
        self.calls: list[tuple[str, dict[str, str]]] = []
        self.headers: list[httpx.Headers] = []
        self.overrides: dict[str, Any] = {}

    # -- request handling --------------------------------------------------

    def handler(self, request: httpx.Request) -> httpx.Response:
        form = {
            key: values[0]
            for key, values in parse_qs(request.content.decode(), keep_blank_values=True).items()
        }
        self.calls.append((request.url.path, form))
        self.headers.append(request.headers)
        key = "UPDATE" if request.url.path.endswith("statuses/update.json") else form.get("command", "")

        override = self.overrides.get(key)
        if isinstance(override, Exception):
            raise override
        if override is not None:
            return override
        return self._default(key, form)

    def _default(self, key: str, form: dict[str, str]) -> httpx.Response:
        if key == "INIT":
            return httpx.Response(
                202,
                json={
                    "media_id": int(self.media_id),
                    "media_id_string": self.media_id,
                    "expires_after_secs": 86400,
                },
            )
        if key == "APPEND":
            return httpx.Response(204)
        if key == "FINALIZE":
            return httpx.Response(
                201,
                json={"media_id": int(self.media_id), "media_id_string": self.media_id},
            )
        if key == "STATUS":
            return httpx.Response(
                200,
                json={
                    "media_id_string": self.media_id,
                    "processing_info": {"state": "succeeded", "progress_percent": 100},
                },
            )
        if key == "UPDATE":
            return httpx.Response(
                200,
                json={"id_str": self.status_id, "text": form.get("status", "")},
            )
        return httpx.Response(404, json={"errors": [{"code": 34, "message": "Not found"}]})

    # -- inspection ----------------------------------------------------------

    def commands(self) -> list[str]:
        return [
            "UPDATE" if path.endswith("statuses/update.json") else form.get("command", "")
            for path, form in self.calls
        ]

    def forms(self, command: str) -> list[dict[str, str]]:
        return [form for _, form in self.calls if form.get("command") == command]

    # -- clients -------------------------------------------------------------

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self.handler))

    def async_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def config() -> TweetifyConfig:
    """Default test configuration with a dummy token."""
    return TweetifyConfig(token="test_token_1234")


@pytest.fixture
def service() -> FakeMediaService:
    return FakeMediaService()


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()
