import asyncio
import logging
from collections.abc import AsyncGenerator

import httpx
from fastapi import Response
from fastapi.responses import PlainTextResponse, StreamingResponse

from configs import app_config
from libs.helper import mask_url
from libs.http_client import HttpClient, StreamChunk

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_CONTENT_TYPE = "image/jpeg"


class ImageProxyService:
    """Streams a remote image back to the caller with permissive CORS and caching headers."""

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None):
        self._transport = transport

    def _client(self) -> HttpClient:
        return HttpClient(
            default_timeout=app_config.IMAGE_PROXY_TIMEOUT,
            default_headers={
                "User-Agent": app_config.IMAGE_PROXY_USER_AGENT,
                "Accept": "image/*,*/*;q=0.8",
                "Cache-Control": "no-cache",
                # keep the upstream Content-Length valid for the bytes we relay
                "Accept-Encoding": "identity",
            },
            transport=self._transport,
        )

    async def proxy(self, url: str) -> Response:
        logger.info(f"Proxying image: {mask_url(url)}")
        timeout = app_config.IMAGE_PROXY_TIMEOUT
        client = self._client()
        stream = client.stream("GET", url)

        try:
            async with asyncio.timeout(timeout):
                first_chunk: StreamChunk = await anext(stream)
        except TimeoutError:
            logger.error(f"Image proxy timed out after {timeout:g}s for {mask_url(url)}")
            await stream.aclose()
            await client.close()
            return PlainTextResponse(
                f"Proxy error: upstream did not respond within {timeout:g}s", status_code=500
            )
        except Exception as e:
            logger.exception(f"Image proxy error for {mask_url(url)}: {e}")
            await stream.aclose()
            await client.close()
            return PlainTextResponse(f"Proxy error: {e}", status_code=500)

        status_code = first_chunk.status_code or 502
        if not 200 <= status_code < 300:
            logger.error(f"Failed to fetch image: {status_code}")
            await stream.aclose()
            await client.close()
            return PlainTextResponse(f"Failed to fetch image: {status_code}", status_code=status_code)

        upstream_headers = first_chunk.headers or {}
        headers = {
            "Access-Control-Allow-Origin": "*",
            "Cache-Control": f"public, max-age={app_config.IMAGE_PROXY_CACHE_MAX_AGE}",
        }
        if upstream_headers.get("content-length"):
            headers["Content-Length"] = upstream_headers["content-length"]

        async def body() -> AsyncGenerator[bytes]:
            try:
                if first_chunk.data:
                    yield first_chunk.data
                while True:
                    try:
                        async with asyncio.timeout(timeout):
                            chunk = await anext(stream)
                    except StopAsyncIteration:
                        return
                    except TimeoutError:
                        logger.error(f"Image proxy stalled mid-body for {mask_url(url)}")
                        raise
                    yield chunk.data
            finally:
                await stream.aclose()
                await client.close()

        return StreamingResponse(
            body(),
            status_code=200,
            headers=headers,
            media_type=upstream_headers.get("content-type") or DEFAULT_IMAGE_CONTENT_TYPE,
        )
