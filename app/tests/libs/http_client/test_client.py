import pytest
import httpx
from unittest.mock import AsyncMock, patch, MagicMock

from libs.http_client.client import HttpClient


def _transport(handler) -> httpx.MockTransport:
    return httpx.MockTransport(handler)


class TestHttpClientRequest:
    @pytest.mark.asyncio
    async def test_simple_get(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"ok": True})

        async with HttpClient(transport=_transport(handler)) as client:
            response = await client.get("https://api.example.com/data")
            assert response.status_code == 200
            assert response.json() == {"ok": True}
            assert response.url == "https://api.example.com/data"

    @pytest.mark.asyncio
    async def test_post_with_body(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["body"] = request.content
            return httpx.Response(201)

        async with HttpClient(transport=_transport(handler)) as client:
            response = await client.post(
                "https://api.example.com/users",
                body={"name": "test"},
            )
            assert response.status_code == 201
            assert seen["method"] == "POST"
            assert seen["body"] == b'{"name": "test"}'

    @pytest.mark.asyncio
    async def test_custom_headers(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(request.headers)
            return httpx.Response(200)

        async with HttpClient(
            default_headers={"X-Api-Key": "secret"}, transport=_transport(handler)
        ) as client:
            await client.get(
                "https://api.example.com/data",
                headers={"X-Request-Id": "123"},
            )
            assert seen["x-api-key"] == "secret"
            assert seen["x-request-id"] == "123"

    @pytest.mark.asyncio
    async def test_collects_every_set_cookie_header(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                headers=[
                    ("Set-Cookie", "a=1; Path=/"),
                    ("Set-Cookie", "b=2; HttpOnly"),
                ],
            )

        async with HttpClient(transport=_transport(handler)) as client:
            response = await client.get("https://example.com/")
            assert response.set_cookies == ("a=1; Path=/", "b=2; HttpOnly")

    @pytest.mark.asyncio
    async def test_redirect_not_followed_when_disabled(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/start":
                return httpx.Response(302, headers={"Location": "/landing"})
            return httpx.Response(200, content=b"landed")

        async with HttpClient(transport=_transport(handler)) as client:
            manual = await client.get("https://example.com/start", follow_redirects=False)
            assert manual.status_code == 302
            assert manual.headers["location"] == "/landing"

            followed = await client.get("https://example.com/start")
            assert followed.status_code == 200
            assert followed.body == b"landed"
            assert followed.url == "https://example.com/landing"

    @pytest.mark.asyncio
    async def test_middlewares_run_in_order(self):
        order = []

        async def first(request, next_fn):
            order.append("first")
            return await next_fn(request.with_headers(**{"X-First": "1"}))

        async def second(request, next_fn):
            order.append("second")
            assert request.headers["X-First"] == "1"
            return await next_fn(request)

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(204)

        async with HttpClient(middlewares=[first, second], transport=_transport(handler)) as client:
            response = await client.get("https://example.com/")
            assert response.status_code == 204
            assert order == ["first", "second"]

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("boom", request=request)

        async with HttpClient(transport=_transport(handler)) as client:
            with pytest.raises(httpx.ConnectError):
                await client.get("https://example.com/")

    @pytest.mark.asyncio
    async def test_body_limit_truncates(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"x" * 64)

        async with HttpClient(transport=_transport(handler)) as client:
            limited = await client.get("https://example.com/big.png", max_body_bytes=16)
            within = await client.get("https://example.com/big.png", max_body_bytes=64)

        assert limited.truncated is True
        assert len(limited.body) <= 16
        assert within.truncated is False
        assert within.body == b"x" * 64


class TestHttpClientStream:
    @pytest.mark.asyncio
    async def test_stream_response(self):
        chunks = [b"chunk1", b"chunk2", b"chunk3"]

        async def mock_aiter_bytes():
            for chunk in chunks:
                yield chunk

        mock_response = MagicMock()
        mock_response.status_code = 200
        mock_response.headers = httpx.Headers({"content-type": "text/plain"})
        mock_response.aiter_bytes = mock_aiter_bytes
        mock_response.__aenter__ = AsyncMock(return_value=mock_response)
        mock_response.__aexit__ = AsyncMock(return_value=None)

        with patch("httpx.AsyncClient.stream") as mock_stream:
            mock_stream.return_value = mock_response
            async with HttpClient() as client:
                received = []
                first_chunk = None
                async for chunk in client.stream("GET", "https://api.example.com/stream"):
                    if chunk.headers is not None:
                        first_chunk = chunk
                    received.append(chunk.data)

                assert first_chunk is not None
                assert first_chunk.status_code == 200
                assert received == chunks

    @pytest.mark.asyncio
    async def test_empty_stream_still_reports_status(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404)

        async with HttpClient(transport=_transport(handler)) as client:
            chunks = [chunk async for chunk in client.stream("GET", "https://example.com/x")]
            assert len(chunks) == 1
            assert chunks[0].status_code == 404
            assert chunks[0].data == b""
