import json
import time
from collections.abc import AsyncGenerator
from typing import Any

import httpx

from .models import Request, Response, StreamChunk
from .pool import PoolLimits, ProxyConfig
from .types import Middleware


class HttpClient:
    """
    httpx.AsyncClient 封装: 中间件链 + 不可变 Request/Response

    每个请求可单独指定是否跟随重定向 (``follow_redirects``) 与响应体上限
    (``max_body_bytes``). 超过上限时只保留已读取的部分并标记 ``truncated``,
    连接随即关闭, 不会把超大响应整体读入内存.
    """

    def __init__(
        self,
        middlewares: list[Middleware] | None = None,
        pool_limits: PoolLimits | None = None,
        proxy: str | ProxyConfig | None = None,
        default_timeout: float = 30.0,
        default_headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._middlewares = middlewares or []
        self._pool_limits = pool_limits or PoolLimits()
        self._proxy = proxy
        self._default_timeout = default_timeout
        self._default_headers = default_headers or {}
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_proxy_url(self) -> str | None:
        if self._proxy is None:
            return None
        if isinstance(self._proxy, str):
            return self._proxy
        return self._proxy.to_httpx_proxy()

    async def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                limits=self._pool_limits.to_httpx_limits(),
                proxy=self._get_proxy_url(),
                timeout=self._default_timeout,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "HttpClient":
        await self._ensure_client()
        return self

    async def __aexit__(self, *_args: Any) -> None:
        await self.close()

    @staticmethod
    def _encode_body(body: bytes | str | dict | None) -> bytes:
        if body is None:
            return b""
        if isinstance(body, bytes):
            return body
        if isinstance(body, str):
            return body.encode("utf-8")
        return json.dumps(body).encode("utf-8")

    def _new_request(
        self,
        method: str,
        url: str,
        headers: dict[str, str] | None = None,
        body: bytes | str | dict | None = None,
        timeout: float | None = None,
        follow_redirects: bool = True,
        max_body_bytes: int | None = None,
    ) -> Request:
        return Request(
            method=method,
            url=url,
            headers={**self._default_headers, **(headers or {})},
            body=self._encode_body(body),
            timeout=timeout or self._default_timeout,
            follow_redirects=follow_redirects,
            max_body_bytes=max_body_bytes,
        )

    async def request(self, method: str, url: str, **options: Any) -> Response:
        """
        Send one request through the middleware chain.

        ``options``: headers, body, timeout, follow_redirects, max_body_bytes.
        Transport errors and timeouts propagate as httpx exceptions.
        """
        return await self._dispatch(self._new_request(method, url, **options), 0)

    async def get(self, url: str, **options: Any) -> Response:
        return await self.request("GET", url, **options)

    async def post(self, url: str, **options: Any) -> Response:
        return await self.request("POST", url, **options)

    async def _dispatch(self, request: Request, index: int) -> Response:
        if index >= len(self._middlewares):
            return await self._send(request)

        async def next_fn(req: Request) -> Response:
            return await self._dispatch(req, index + 1)

        return await self._middlewares[index](request, next_fn)

    async def _send(self, request: Request) -> Response:
        client = await self._ensure_client()
        start_time = time.time()

        http_request = client.build_request(
            method=request.method,
            url=request.url,
            headers=request.headers,
            content=request.body,
            timeout=request.timeout,
        )
        http_response = await client.send(
            http_request, follow_redirects=request.follow_redirects, stream=True
        )
        try:
            body, truncated = await self._read_body(http_response, request.max_body_bytes)
        finally:
            await http_response.aclose()

        return Response(
            status_code=http_response.status_code,
            headers=dict(http_response.headers),
            body=body,
            latency_ms=int((time.time() - start_time) * 1000),
            request=request,
            url=str(http_response.url),
            reason=http_response.reason_phrase,
            set_cookies=tuple(http_response.headers.get_list("set-cookie")),
            truncated=truncated,
        )

    @staticmethod
    async def _read_body(response: httpx.Response, limit: int | None) -> tuple[bytes, bool]:
        if limit is None:
            return await response.aread(), False

        chunks: list[bytes] = []
        size = 0
        async for chunk in response.aiter_bytes():
            size += len(chunk)
            if size > limit:
                return b"".join(chunks), True
            chunks.append(chunk)
        return b"".join(chunks), False

    async def stream(self, method: str, url: str, **options: Any) -> AsyncGenerator[StreamChunk]:
        """
        逐块返回响应体, 首块携带状态码与响应头; 空响应体也会产生一个首块.

        连接与每一次读取都受 timeout 约束.
        需要限制整体等待时长的调用方自行使用 asyncio.timeout.
        """
        req = self._new_request(method, url, **options)
        client = await self._ensure_client()

        async with client.stream(
            method=req.method,
            url=req.url,
            headers=req.headers,
            content=req.body,
            timeout=req.timeout,
            follow_redirects=req.follow_redirects,
        ) as response:
            first = StreamChunk(
                data=b"", status_code=response.status_code, headers=dict(response.headers)
            )
            async for data in response.aiter_bytes():
                if first is not None:
                    first.data = data
                    yield first
                    first = None
                else:
                    yield StreamChunk(data=data)

            if first is not None:
                yield first
