"""Header sets replayed by the session fetcher to look like a desktop browser."""

DOCUMENT_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,image/apng,*/*;q=0.8"
IMAGE_ACCEPT = "image/webp,image/apng,image/svg+xml,image/*,*/*;q=0.8"
ACCEPT_LANGUAGE = "en-US,en;q=0.9"
# br is left out: httpx only decodes it when the optional brotli package is present
ACCEPT_ENCODING = "gzip, deflate"


def document_headers(
    user_agent: str, cookie: str | None = None, site: str = "none"
) -> dict[str, str]:
    """Headers of a top-level navigation, as sent when typing the URL or following a link."""
    headers = {
        "User-Agent": user_agent,
        "Accept": DOCUMENT_ACCEPT,
        "Accept-Language": ACCEPT_LANGUAGE,
        "Accept-Encoding": ACCEPT_ENCODING,
        "DNT": "1",
        "Upgrade-Insecure-Requests": "1",
        "Sec-Fetch-Dest": "document",
        "Sec-Fetch-Mode": "navigate",
        "Sec-Fetch-Site": site,
        "Sec-Fetch-User": "?1",
        "Cache-Control": "max-age=0",
    }
    if cookie:
        headers["Cookie"] = cookie
    return headers


def image_headers(user_agent: str, referer: str, cookie: str | None = None) -> dict[str, str]:
    """Headers of an <img> subresource load from a page on ``referer``."""
    headers = {
        "User-Agent": user_agent,
        "Accept": IMAGE_ACCEPT,
        "Accept-Language": ACCEPT_LANGUAGE,
        "Accept-Encoding": ACCEPT_ENCODING,
        "DNT": "1",
        "Referer": referer,
        "Sec-Fetch-Dest": "image",
        "Sec-Fetch-Mode": "no-cors",
        "Sec-Fetch-Site": "same-origin",
        "Cache-Control": "no-cache",
        "Pragma": "no-cache",
    }
    if cookie:
        headers["Cookie"] = cookie
    return headers
