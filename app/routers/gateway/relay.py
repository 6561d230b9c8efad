import asyncio
import logging
from urllib.parse import urlsplit

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from configs import app_config
from dependencies.auth import verify_relay_secret
from exceptions.common import (
    InternalServerError,
    InvalidJSONError,
    ServerConfigurationError,
    ValidationFailedError,
)
from libs.validators import validate_relay_payload
from schemas.relay import RelayTrigger
from services.relay_service import RelayService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/relay", dependencies=[Depends(verify_relay_secret)])
async def relay_webhook(request: Request) -> JSONResponse:
    """Storage webhook: read the stored image back and relay it downstream."""
    if not app_config.RELAY_ENDPOINT:
        logger.error("RELAY_ENDPOINT is not configured")
        raise ServerConfigurationError(details="RELAY_ENDPOINT is not configured")

    try:
        payload = await request.json()
    except ValueError as e:
        raise InvalidJSONError(detail="Invalid JSON payload", details=str(e))

    errors = validate_relay_payload(
        payload, storage_hint=urlsplit(app_config.STORAGE_PUBLIC_URL).netloc
    )
    if errors:
        logger.warning(f"Relay validation failed: {errors}")
        raise ValidationFailedError(details=errors)

    trigger = RelayTrigger.model_validate(payload)
    try:
        async with asyncio.timeout(app_config.REQUEST_DEADLINE_SECONDS):
            response = await RelayService().handle_webhook(trigger)
    except TimeoutError:
        logger.error(f"Relay webhook exceeded the {app_config.REQUEST_DEADLINE_SECONDS:g}s deadline")
        raise InternalServerError(detail="Request deadline exceeded")

    return JSONResponse(content=response.to_body())
