import asyncio
import base64
import datetime
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any

import httpx

from configs import app_config
from exceptions.common import (
    EmptyImageError,
    ImageTooLargeError,
    RelayError,
    ServerConfigurationError,
    StoreReadError,
)
from extensions.ext_logging import trace_id_var
from extensions.ext_storage import storage
from libs.file_helper import FileHelper
from libs.helper import mask_url, truncate
from libs.http_client import HttpClient, Response, headers_middleware, logging_middleware
from libs.retry import RetryDecision, RetryOutcome, RetryPolicy, RetryStatus, Sleep, linear_backoff
from schemas.relay import ImageMetadata, RelayTrigger, RelayWebhookData, RelayWebhookResponse
from schemas.upload import RelaySummary, StoredAsset

logger = logging.getLogger(__name__)

RESPONSE_PREVIEW_LIMIT = 500
DEFAULT_STORED_CONTENT_TYPE = "image/jpeg"


@dataclass(frozen=True)
class RelayResult:
    success: bool
    attempts: int
    duration_ms: int
    status: int | None = None
    response: str | None = None
    error: str | None = None

    def summary(self) -> RelaySummary:
        return RelaySummary(
            status="delivered" if self.success else "failed",
            http_status=self.status,
            attempts=self.attempts,
            duration_ms=self.duration_ms,
            error=self.error,
        )


@dataclass(frozen=True)
class StoredImage:
    data: bytes
    content_type: str
    attempts: int

    @property
    def size_bytes(self) -> int:
        return len(self.data)


def classify_relay_response(value: Response | None, error: BaseException | None) -> RetryDecision:
    """429 与 5xx 可重试, 其余 4xx 立即终止; 超时与传输错误可重试"""
    if error is not None:
        if isinstance(error, (TimeoutError, httpx.TransportError)):
            return RetryDecision.TRANSIENT
        return RetryDecision.TERMINAL
    assert value is not None
    if value.is_success:
        return RetryDecision.SUCCESS
    if value.status_code == 429 or value.status_code >= 500:
        return RetryDecision.TRANSIENT
    return RetryDecision.TERMINAL


class RelayDispatcher:
    """
    Sends the stored-image descriptor to the downstream relay endpoint.

    The POST runs under ``RetryPolicy``; every attempt is bounded by
    ``RELAY_TIMEOUT`` both on the httpx side and through ``asyncio.timeout``.
    """

    def __init__(
        self,
        endpoint: str | None = None,
        max_attempts: int | None = None,
        attempt_timeout: float | None = None,
        inline_image: bool | None = None,
        backoff_base: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.endpoint = endpoint or app_config.RELAY_ENDPOINT
        self.max_attempts = max_attempts or app_config.RELAY_MAX_ATTEMPTS
        self.attempt_timeout = attempt_timeout or app_config.RELAY_TIMEOUT
        self.inline_image = app_config.RELAY_INLINE_IMAGE if inline_image is None else inline_image
        self.backoff_base = (
            app_config.RETRY_BACKOFF_BASE_SECONDS if backoff_base is None else backoff_base
        )
        self._transport = transport
        self._sleep = sleep

    def build_payload(
        self,
        *,
        public_url: str,
        filename: str,
        branch: str,
        date: str,
        data: bytes,
        content_type: str,
        metadata_id: str | None = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "imageUrl": {"type": "external-url", "file": public_url},
            "filename": filename,
            "branch": branch,
            "date": date,
            "slip_id": metadata_id,
            "metadata": {
                "imageSizeBytes": len(data),
                "contentType": content_type,
                "uploadTimestamp": datetime.datetime.now(datetime.UTC).isoformat(),
            },
        }
        if self.inline_image:
            payload["imageBase64"] = {
                "type": "base64",
                "file": base64.b64encode(data).decode("ascii"),
                "name": filename,
                "mimeType": content_type,
            }
        if metadata_id:
            payload["metadataId"] = metadata_id
        return payload

    def _client(self) -> HttpClient:
        middlewares = [logging_middleware(logger, mask=mask_url)]
        trace_id = trace_id_var.get()
        if trace_id:
            middlewares.append(headers_middleware(**{"X-Trace-ID": trace_id}))
        return HttpClient(
            middlewares=middlewares,
            default_timeout=self.attempt_timeout,
            default_headers={
                "Content-Type": "application/json",
                "User-Agent": app_config.RELAY_USER_AGENT,
                "Accept": "application/json, text/plain, */*",
                "Accept-Language": "en-US,en;q=0.9",
            },
            transport=self._transport,
        )

    async def dispatch(self, payload: dict[str, Any]) -> RelayResult:
        if not self.endpoint:
            raise ServerConfigurationError(details="RELAY_ENDPOINT is not configured")

        logger.info(
            f"Sending relay request for {payload.get('filename')} "
            f"({payload['metadata']['imageSizeBytes']} bytes) to {mask_url(self.endpoint)}"
        )
        policy = RetryPolicy(
            max_attempts=self.max_attempts,
            classify=classify_relay_response,
            backoff=linear_backoff(self.backoff_base),
            attempt_timeout=self.attempt_timeout,
            sleep=self._sleep,
            name="relay",
        )

        async with self._client() as client:

            async def attempt(number: int) -> Response:
                logger.info(f"Relay attempt {number}/{self.max_attempts} starting")
                return await client.post(self.endpoint, body=payload)

            outcome = await policy.run(attempt)

        return self._to_result(outcome)

    def _to_result(self, outcome: RetryOutcome[Response]) -> RelayResult:
        response = outcome.value
        if response is not None:
            text = truncate(response.text(), RESPONSE_PREVIEW_LIMIT)
            if outcome.succeeded:
                logger.info(
                    f"Relay succeeded with {response.status_code} after {outcome.attempts} attempt(s)"
                )
                return RelayResult(
                    success=True,
                    attempts=outcome.attempts,
                    duration_ms=outcome.elapsed_ms,
                    status=response.status_code,
                    response=text,
                )
            kind = "client error" if outcome.status == RetryStatus.FAILED else "error"
            error = f"Relay {kind}: {response.status_code} {response.reason}".strip()
            logger.error(f"{error} - {text}")
            return RelayResult(
                success=False,
                attempts=outcome.attempts,
                duration_ms=outcome.elapsed_ms,
                status=response.status_code,
                response=text,
                error=error,
            )

        # 无响应: 超时, 传输错误或其他请求异常 (如重定向过多), 均作为转发失败返回
        exc = outcome.error
        if isinstance(exc, TimeoutError):
            error = f"Relay timeout after {self.attempt_timeout:g}s"
        else:
            error = f"Relay request failed: {exc or type(exc).__name__}"
        logger.error(error)
        return RelayResult(
            success=False,
            attempts=outcome.attempts,
            duration_ms=outcome.elapsed_ms,
            error=error,
        )


class RelayService:
    """
    Reads stored images back and relays them downstream.

    Used by the relay webhook and, when ``RELAY_ON_UPLOAD`` is enabled, right
    after an upload.
    """

    def __init__(self, dispatcher: RelayDispatcher | None = None, sleep: Sleep = asyncio.sleep):
        self.dispatcher = dispatcher or RelayDispatcher(sleep=sleep)
        self._sleep = sleep

    async def read_stored_image(self, public_url: str) -> StoredImage:
        path = storage.key_from_public_url(public_url)
        if path is None:
            raise StoreReadError(details="Invalid public URL format", url=mask_url(public_url))

        delay = app_config.STORAGE_PROPAGATION_DELAY
        if delay:
            logger.info(f"Waiting {delay:g}s for storage propagation")
            await self._sleep(delay)

        def classify(value: tuple | None, error: BaseException | None) -> RetryDecision:
            if error is not None:
                return RetryDecision.TRANSIENT
            return RetryDecision.SUCCESS

        async def read(_attempt: int) -> tuple[bytes, str | None]:
            data = await storage.get(path)
            return data, await storage.content_type(path)

        policy = RetryPolicy(
            max_attempts=app_config.STORAGE_READ_MAX_ATTEMPTS,
            classify=classify,
            backoff=linear_backoff(app_config.RETRY_BACKOFF_BASE_SECONDS),
            sleep=self._sleep,
            name=f"storage read {path}",
        )
        outcome = await policy.run(read)
        if not outcome.succeeded or outcome.value is None:
            error = outcome.error
            raise StoreReadError(
                details=f"Storage error: {error or 'no data returned'}",
                url=mask_url(public_url),
            )

        data, stored_type = outcome.value
        if len(data) > app_config.UPLOAD_IMAGE_MAX_BYTES:
            raise ImageTooLargeError(
                details=f"Maximum size is {app_config.UPLOAD_IMAGE_MAX_BYTES // (1024 * 1024)}MB"
            )
        if not data:
            raise EmptyImageError(details="Downloaded file is empty")

        # 存储键统一以 .jpg 结尾, 类型取自存储元数据或文件头
        content_type = (
            stored_type or FileHelper.sniff_image_type(data) or DEFAULT_STORED_CONTENT_TYPE
        )
        logger.info(f"Read {len(data)} bytes from storage at {path}")
        return StoredImage(data=data, content_type=content_type, attempts=outcome.attempts)

    async def handle_webhook(self, trigger: RelayTrigger) -> RelayWebhookResponse:
        request_id = uuid.uuid4().hex[:8]
        start_time = time.monotonic()
        logger.info(
            f"[{request_id}] Processing webhook for file: {trigger.filename} "
            f"(branch={trigger.branch}, date={trigger.date}, url={mask_url(trigger.public_url)})"
        )

        try:
            image = await self.read_stored_image(trigger.public_url)
        except (StoreReadError, ImageTooLargeError, EmptyImageError) as e:
            e.extra["requestId"] = request_id
            raise

        payload = self.dispatcher.build_payload(
            public_url=trigger.public_url,
            filename=trigger.filename,
            branch=trigger.branch,
            date=trigger.date,
            data=image.data,
            content_type=image.content_type,
            metadata_id=trigger.metadata_id,
        )
        result = await self.dispatcher.dispatch(payload)
        processing_time_ms = int((time.monotonic() - start_time) * 1000)

        if not result.success:
            raise RelayError(
                details=result.error,
                attempts=result.attempts,
                requestId=request_id,
                processingTimeMs=processing_time_ms,
            )

        logger.info(
            f"[{request_id}] Webhook processed in {processing_time_ms}ms "
            f"(relay status {result.status}, {result.attempts} attempt(s))"
        )
        return RelayWebhookResponse(
            data=RelayWebhookData(
                request_id=request_id,
                processing_time_ms=processing_time_ms,
                relay_status=result.status,
                relay_response=result.response,
                relay_attempts=result.attempts,
                image_metadata=ImageMetadata(
                    filename=trigger.filename,
                    size_bytes=image.size_bytes,
                    content_type=image.content_type,
                ),
            )
        )

    async def relay_asset(
        self, asset: StoredAsset, data: bytes, *, branch: str, date: str
    ) -> RelayResult:
        """转发刚上传的图片; 失败不回滚已写入的存储"""
        payload = self.dispatcher.build_payload(
            public_url=asset.public_url,
            filename=asset.path.rsplit("/", 1)[-1],
            branch=branch,
            date=date,
            data=data,
            content_type=asset.content_type,
        )
        return await self.dispatcher.dispatch(payload)
