import asyncio
import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile

from configs import app_config
from dependencies.auth import verify_upload_secret
from dependencies.rate_limit import check_rate_limit
from exceptions.common import (
    InternalServerError,
    InvalidJSONError,
    MissingImageError,
    ValidationFailedError,
)
from libs.file_helper import FileHelper
from libs.validators import validate_upload_payload
from schemas.upload import (
    DirectUploadRequest,
    RelaySummary,
    UploadMode,
    UploadResponse,
    UploadResult,
    UrlUploadRequest,
    upload_request_adapter,
)
from services.relay_service import RelayService
from services.upload_service import UploadService

logger = logging.getLogger(__name__)

router = APIRouter()

FORM_FIELDS = ("branch", "date", "filename")


def _validate(payload: Any) -> None:
    errors = validate_upload_payload(payload)
    if errors:
        logger.warning(f"Validation errors: {errors}")
        raise ValidationFailedError(details=errors)


async def parse_upload_request(request: Request) -> DirectUploadRequest | UrlUploadRequest:
    """
    multipart/form-data 为直接上传, 其余按 JSON (URL 上传) 解析
    """
    content_type = request.headers.get("content-type", "")
    if "multipart/form-data" in content_type:
        form = await request.form()
        image = form.get("image")
        if not isinstance(image, UploadFile):
            logger.warning("No image file provided in form data")
            raise MissingImageError()

        fields = {name: form.get(name) for name in FORM_FIELDS}
        _validate(fields)
        data = await image.read()
        logger.info(f"Received file upload: {image.filename}, size: {len(data)} bytes")
        return upload_request_adapter.validate_python(
            {
                "mode": UploadMode.DIRECT,
                **fields,
                "image": data,
                "content_type": image.content_type or "application/octet-stream",
            }
        )

    try:
        payload = await request.json()
    except ValueError as e:
        logger.warning(f"Invalid JSON in request body: {e}")
        raise InvalidJSONError(detail="Invalid JSON in request body")

    _validate(payload)
    if not payload.get("imageUrl"):
        raise MissingImageError(detail="Either imageUrl or image file must be provided")

    return upload_request_adapter.validate_python(
        {
            "mode": UploadMode.URL,
            **{name: payload[name] for name in FORM_FIELDS},
            "image_url": payload["imageUrl"],
        }
    )


async def _relay_after_upload(
    result: UploadResult, upload_request: DirectUploadRequest | UrlUploadRequest
) -> RelaySummary:
    if not app_config.RELAY_ENDPOINT:
        logger.error("RELAY_ON_UPLOAD is enabled but RELAY_ENDPOINT is not configured")
        return RelaySummary(
            status="failed", attempts=0, duration_ms=0, error="RELAY_ENDPOINT is not configured"
        )

    relay = await RelayService().relay_asset(
        result.asset, result.data, branch=upload_request.branch, date=upload_request.date
    )
    if not relay.success:
        # 存储已成功, 转发失败只在响应中报告
        logger.error(f"Relay after upload failed for {result.asset.path}: {relay.error}")
    return relay.summary()


@router.post("/", dependencies=[Depends(check_rate_limit), Depends(verify_upload_secret)])
async def upload_image(request: Request) -> JSONResponse:
    upload_request = await parse_upload_request(request)
    logger.info(
        f'Branch normalized: "{upload_request.branch}" -> '
        f'"{FileHelper.normalize_segment(upload_request.branch)}"'
    )

    try:
        async with asyncio.timeout(app_config.REQUEST_DEADLINE_SECONDS):
            result = await UploadService().process(upload_request)
            relay = None
            if app_config.RELAY_ON_UPLOAD:
                relay = await _relay_after_upload(result, upload_request)
    except TimeoutError:
        logger.error(f"Upload exceeded the {app_config.REQUEST_DEADLINE_SECONDS:g}s deadline")
        raise InternalServerError(detail="Request deadline exceeded")

    response = UploadResponse(url=result.asset.public_url, metadata=result.metadata, relay=relay)
    return JSONResponse(content=response.to_body())
