import logging

from .models import Request, Response
from .types import Middleware, NextFn, UrlMasker


def logging_middleware(
    logger: logging.Logger | None = None,
    mask: UrlMasker | None = None,
) -> Middleware:
    log = logger or logging.getLogger(__name__)

    async def middleware(request: Request, next: NextFn) -> Response:
        url = mask(request.url) if mask else request.url
        log.info(f"-> {request.method} {url}")
        response = await next(request)
        log.info(f"<- {response.status_code} ({response.latency_ms}ms)")
        return response

    return middleware


def headers_middleware(**headers: str) -> Middleware:
    async def middleware(request: Request, next: NextFn) -> Response:
        return await next(request.with_headers(**headers))

    return middleware
