import asyncio
import logging
from dataclasses import replace
from urllib.parse import urljoin, urlsplit

import httpx

from configs import app_config
from libs.file_helper import FileHelper
from libs.helper import mask_url, truncate
from libs.http_client import CookieJar, HttpClient, ProxyConfig, Response, logging_middleware
from libs.retry import RetryDecision, RetryOutcome, RetryPolicy, Sleep, linear_backoff
from services.acquisition.browser_headers import document_headers, image_headers
from services.acquisition.models import FetchFailure, FetchFailureKind, FetchResult, FetchSuccess

logger = logging.getLogger(__name__)

VERIFICATION_MARKERS = ("redirect", "verify", "verification", "challenge")
CHALLENGE_REDIRECT_STATUSES = (301, 302)
DETAIL_LIMIT = 300
FALLBACK_CONTENT_TYPE = "application/octet-stream"


def is_verification_hop(location: str) -> bool:
    parsed = urlsplit(location)
    target = f"{parsed.path}?{parsed.query}".lower()
    return any(marker in target for marker in VERIFICATION_MARKERS)


class SessionFetcher:
    """
    Fetches a remote image the way a browser would reach it.

    Every attempt replays the same navigation with a fresh cookie jar:

    1. visit the origin root and keep its cookies (any status is accepted)
    2. request the image with redirects disabled so challenge redirects show up
    3. when that request redirects to a verification page, visit it, keep its
       cookies and pause like a human would
    4. fetch the image again with every cookie collected, following redirects

    Attempts are driven by ``RetryPolicy``. Upstream errors, transport errors
    and HTML challenge pages are retried; oversize and empty bodies are not.
    """

    def __init__(
        self,
        max_attempts: int | None = None,
        max_bytes: int | None = None,
        attempt_timeout: float | None = None,
        request_timeout: float | None = None,
        verification_pause: float | None = None,
        backoff_base: float | None = None,
        user_agent: str | None = None,
        proxy_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.max_attempts = max_attempts or app_config.FETCH_MAX_ATTEMPTS
        self.max_bytes = max_bytes or app_config.UPLOAD_IMAGE_MAX_BYTES
        self.attempt_timeout = attempt_timeout or app_config.FETCH_ATTEMPT_TIMEOUT
        self.request_timeout = request_timeout or app_config.FETCH_REQUEST_TIMEOUT
        self.verification_pause = (
            app_config.FETCH_VERIFICATION_PAUSE_SECONDS
            if verification_pause is None
            else verification_pause
        )
        self.backoff_base = (
            app_config.RETRY_BACKOFF_BASE_SECONDS if backoff_base is None else backoff_base
        )
        self.user_agent = user_agent or app_config.FETCH_USER_AGENT
        self.proxy = ProxyConfig.from_url(proxy_url or app_config.FETCH_PROXY_URL)
        self._transport = transport
        self._sleep = sleep

    async def fetch(self, url: str) -> FetchResult:
        logger.info(f"Attempting to fetch image from: {mask_url(url)}")
        policy = RetryPolicy(
            max_attempts=self.max_attempts,
            classify=self._classify,
            backoff=linear_backoff(self.backoff_base),
            attempt_timeout=self.attempt_timeout,
            sleep=self._sleep,
            name=f"fetch {mask_url(url)}",
        )

        async def attempt(number: int) -> FetchResult:
            logger.info(f"Fetch attempt {number}/{self.max_attempts}")
            return await self._attempt(url)

        outcome = await policy.run(attempt)
        return self._to_result(outcome)

    @staticmethod
    def _classify(value: FetchResult | None, error: BaseException | None) -> RetryDecision:
        if error is not None:
            if isinstance(error, (httpx.HTTPError, TimeoutError)):
                return RetryDecision.TRANSIENT
            return RetryDecision.TERMINAL
        if isinstance(value, FetchSuccess):
            return RetryDecision.SUCCESS
        if isinstance(value, FetchFailure) and value.is_transient:
            return RetryDecision.TRANSIENT
        return RetryDecision.TERMINAL

    @staticmethod
    def _to_result(outcome: RetryOutcome[FetchResult]) -> FetchResult:
        if isinstance(outcome.value, (FetchSuccess, FetchFailure)):
            return replace(outcome.value, attempts=outcome.attempts)

        error = outcome.error
        if isinstance(error, (httpx.HTTPError, TimeoutError)):
            detail = str(error) or type(error).__name__
            return FetchFailure(
                kind=FetchFailureKind.NETWORK_ERROR,
                message="Network error while fetching image",
                detail=truncate(detail, DETAIL_LIMIT),
                attempts=outcome.attempts,
            )
        assert error is not None
        raise error

    def _client(self) -> HttpClient:
        return HttpClient(
            middlewares=[logging_middleware(logger, mask=mask_url)],
            proxy=self.proxy,
            default_timeout=self.request_timeout,
            transport=self._transport,
        )

    async def _attempt(self, url: str) -> FetchResult:
        parts = urlsplit(url)
        origin = f"{parts.scheme}://{parts.netloc}"
        referer = f"{origin}/"
        jar = CookieJar()

        async with self._client() as client:
            home = await client.get(referer, headers=document_headers(self.user_agent))
            jar.update(home.set_cookies)
            logger.info(f"Origin visit: {home.status_code}, {len(jar)} cookie(s)")

            preflight = await client.get(
                url,
                headers=image_headers(self.user_agent, referer, jar.header()),
                follow_redirects=False,
            )
            jar.update(preflight.set_cookies)

            if (
                preflight.status_code in CHALLENGE_REDIRECT_STATUSES
                and preflight.headers.get("location")
            ):
                hop_url = urljoin(url, preflight.headers["location"])
                if is_verification_hop(hop_url):
                    logger.info(f"Visiting verification page: {mask_url(hop_url)}")
                    hop = await client.get(
                        hop_url,
                        headers=document_headers(self.user_agent, jar.header(), site="same-origin"),
                    )
                    jar.update(hop.set_cookies)
                    logger.info(f"Verification page: {hop.status_code}, {len(jar)} cookie(s)")
                    await self._sleep(self.verification_pause)

            final = await client.get(
                url,
                headers=image_headers(self.user_agent, referer, jar.header()),
                max_body_bytes=self.max_bytes,
            )

        logger.info(f"Final response: {final.status_code} {final.reason}")
        return self._inspect(final)

    def _inspect(self, response: Response) -> FetchResult:
        final_url = mask_url(response.url) if response.url else None

        if not response.is_success:
            return FetchFailure(
                kind=FetchFailureKind.UPSTREAM_STATUS,
                message=f"Failed to fetch image: {response.status_code} {response.reason}".strip(),
                detail=truncate(response.text(), DETAIL_LIMIT),
                status_code=response.status_code,
                final_url=final_url,
            )

        content_type = response.content_type
        is_image = content_type.lower().startswith("image/")
        if not is_image and FileHelper.looks_like_html(response.body):
            logger.warning(f"Received HTML instead of an image (content-type: {content_type})")
            return FetchFailure(
                kind=FetchFailureKind.BOT_PROTECTION_DETECTED,
                message="Unable to bypass bot protection after multiple attempts",
                detail=truncate(response.text(), DETAIL_LIMIT),
                status_code=response.status_code,
                final_url=final_url,
            )

        declared_length = response.headers.get("content-length")
        if (
            declared_length and declared_length.isdigit() and int(declared_length) > self.max_bytes
        ) or response.truncated:
            return FetchFailure(
                kind=FetchFailureKind.SIZE_EXCEEDED,
                message="Image too large",
                detail=f"Maximum size is {self.max_bytes // (1024 * 1024)}MB",
                status_code=response.status_code,
                final_url=final_url,
            )

        if not response.body:
            return FetchFailure(
                kind=FetchFailureKind.EMPTY,
                message="Image is empty",
                detail="The source URL returned an empty body",
                status_code=response.status_code,
                final_url=final_url,
            )

        final_content_type = content_type if is_image else FALLBACK_CONTENT_TYPE
        logger.info(
            f"Successfully fetched image: {len(response.body)} bytes, content-type: {final_content_type}"
        )
        return FetchSuccess(
            data=response.body,
            content_type=final_content_type,
            final_url=final_url,
        )
