from typing import Any
from urllib.parse import urlparse

from fastapi import Request


def extract_remote_ip(request: Request) -> str:
    if request.headers.get("CF-Connecting-IP"):
        return request.headers["CF-Connecting-IP"].strip()
    elif request.headers.get("X-Forwarded-For"):
        # first hop is the originating client
        return request.headers["X-Forwarded-For"].split(",")[0].strip()
    elif request.headers.get("X-Real-IP"):
        return request.headers["X-Real-IP"].strip()
    else:
        return request.client.host if request.client else "unknown"


def extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    return authorization[7:]


def mask_sensitive(data: Any) -> Any:
    """
    Truncate values that may carry credentials before they reach logs or responses.
    """
    if isinstance(data, str):
        if "Bearer" in data:
            return data[:10] + "***"
        if "http" in data:
            return data[:30] + "***"
        if len(data) > 50:
            return data[:20] + "***"
    return data


def mask_url(url: str | None) -> str:
    if not url or not isinstance(url, str):
        return "invalid-url"
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        return url[:50] + "..."
    return f"{parsed.scheme}://{parsed.netloc}{parsed.path[:30]}..."


def truncate(text: str, limit: int = 300) -> str:
    return text if len(text) <= limit else text[:limit]
