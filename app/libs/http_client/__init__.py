"""HTTP Client module."""

from .client import HttpClient
from .cookies import CookieJar
from .middleware import (
    headers_middleware,
    logging_middleware,
)
from .models import Request, Response, StreamChunk
from .pool import PoolLimits, ProxyConfig
from .types import Middleware, NextFn, UrlMasker

__all__ = [
    "HttpClient",
    "CookieJar",
    "Request",
    "Response",
    "StreamChunk",
    "PoolLimits",
    "ProxyConfig",
    "Middleware",
    "NextFn",
    "UrlMasker",
    "logging_middleware",
    "headers_middleware",
]
