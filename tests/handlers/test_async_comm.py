from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any
from unittest.mock import MagicMock

import aiohttp
import pytest

from handlers.async_comm import AsyncCommError, AsyncCommInvalidContentTypeError, AsyncCommTimeoutError, AsyncHttp

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


class FakeResponse:
    def __init__(self, body: bytes, content_type: str = "application/json", status: int = 200) -> None:
        self.body: bytes = body
        self.headers: dict[str, str] = {"Content-Type": content_type}
        self.status: int = status

    def raise_for_status(self) -> None:
        if self.status >= 400:
            raise aiohttp.ClientResponseError(request_info=MagicMock(), history=(), status=self.status)

    async def read(self) -> bytes:
        return self.body


class FakeSession:
    """Replays one response or error and records the request arguments."""

    def __init__(self, response: FakeResponse | None = None, error: BaseException | None = None) -> None:
        self.response: FakeResponse | None = response
        self.error: BaseException | None = error
        self.requests: list[dict[str, Any]] = []
        self.closed: bool = False

    @asynccontextmanager
    async def request(self, **kwargs: Any) -> AsyncIterator[FakeResponse]:
        self.requests.append(kwargs)
        if self.error is not None:
            raise self.error
        assert self.response is not None
        yield self.response

    async def close(self) -> None:
        self.closed = True


def _http_with(session: FakeSession) -> AsyncHttp:
    http = AsyncHttp()
    http._AsyncHttp__session = session  # type: ignore[attr-defined]  # noqa: SLF001
    return http


@pytest.mark.asyncio
async def test_session_is_created_lazily(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.DEBUG, logger="FluentTab")

    http = AsyncHttp()
    assert not http.is_open

    async with http:
        assert http.is_open

    assert not http.is_open
    assert any("AsyncHttp session initialized" in rec.message for rec in caplog.records)


@pytest.mark.asyncio
async def test_post_json_body() -> None:
    session = FakeSession(FakeResponse(json.dumps([{"original_word": "house"}]).encode()))
    http = _http_with(session)

    body = await http.post(url="https://example.invalid/translate", data={"words": ["house"]}, total_timeout=2.0)

    assert body == [{"original_word": "house"}]
    assert session.requests[0]["method"] == "POST"
    assert session.requests[0]["json"] == {"words": ["house"]}
    assert "data" not in session.requests[0]


@pytest.mark.asyncio
async def test_post_form_body() -> None:
    session = FakeSession(FakeResponse(b'{"translations": []}', "application/json; charset=utf-8"))
    http = _http_with(session)

    body = await http.post(url="https://example.invalid/translate", form={"text": "house"})

    assert body == {"translations": []}
    assert session.requests[0]["data"] == {"text": "house"}
    assert "json" not in session.requests[0]


@pytest.mark.asyncio
async def test_get_passes_query_parameters() -> None:
    session = FakeSession(FakeResponse(b"ok", "text/plain"))
    http = _http_with(session)

    assert await http.get(url="https://example.invalid/stats", params={"a": "1"}) == "ok"
    assert session.requests[0]["params"] == {"a": "1"}


@pytest.mark.asyncio
async def test_error_status_is_reported() -> None:
    http = _http_with(FakeSession(FakeResponse(b"", status=456)))

    with pytest.raises(AsyncCommError) as exc_info:
        await http.post(url="https://example.invalid/translate", form={"text": "house"})

    assert exc_info.value.status == 456
    assert "456" in exc_info.value.msg


@pytest.mark.asyncio
async def test_timeout_is_reported() -> None:
    http = _http_with(FakeSession(error=TimeoutError()))

    with pytest.raises(AsyncCommTimeoutError) as exc_info:
        await http.get(url="https://example.invalid/stats")

    assert exc_info.value.status is None


@pytest.mark.asyncio
async def test_unknown_content_type() -> None:
    http = _http_with(FakeSession(FakeResponse(b"<xml/>", "application/xml")))

    with pytest.raises(AsyncCommInvalidContentTypeError):
        await http.get(url="https://example.invalid/stats")


@pytest.mark.asyncio
async def test_empty_body_decodes_to_none() -> None:
    http = _http_with(FakeSession(FakeResponse(b"")))

    assert await http.get(url="https://example.invalid/stats") is None


def test_timeout_configuration() -> None:
    assert AsyncHttp._build_timeout(0).total is None  # noqa: SLF001
    assert AsyncHttp._build_timeout(0.5).connect is None  # noqa: SLF001
    timeout = AsyncHttp._build_timeout(5.0)  # noqa: SLF001
    assert (timeout.connect, timeout.total) == (1.0, 5.0)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("body", "content_type"),
    [(b"<not json>", "application/json"), (b"\xff\xfe\xfa", "text/plain")],
)
async def test_malformed_body_is_a_comm_error(body: bytes, content_type: str) -> None:
    http = _http_with(FakeSession(FakeResponse(body, content_type)))

    with pytest.raises(AsyncCommError) as exc_info:
        await http.post(url="https://example.invalid/translate", form={"text": "house"})

    assert exc_info.value.status is None
    assert content_type in exc_info.value.msg
