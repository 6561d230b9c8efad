import logging
import secrets
from typing import Annotated

from fastapi import Header

from configs import app_config
from exceptions.common import InvalidTokenError, ServerConfigurationError, UnauthorizedError
from libs.helper import extract_bearer_token, mask_sensitive

logger = logging.getLogger(__name__)


def verify_bearer_token(authorization: str | None, expected: str) -> None:
    token = extract_bearer_token(authorization)
    if token is None:
        logger.warning("Missing or invalid Authorization header")
        raise UnauthorizedError()

    if not secrets.compare_digest(token.encode(), expected.encode()):
        logger.warning(f"Invalid bearer token provided: {mask_sensitive(authorization)}")
        raise InvalidTokenError()


async def verify_upload_secret(authorization: Annotated[str | None, Header()] = None) -> None:
    """上传接口鉴权, 未配置 UPLOAD_SECRET 时拒绝服务"""
    if not app_config.UPLOAD_SECRET:
        logger.error("UPLOAD_SECRET is not configured")
        raise ServerConfigurationError()
    verify_bearer_token(authorization, app_config.UPLOAD_SECRET)


async def verify_relay_secret(authorization: Annotated[str | None, Header()] = None) -> None:
    """转发 webhook 鉴权, 未配置 RELAY_WEBHOOK_SECRET 时不校验"""
    if not app_config.RELAY_WEBHOOK_SECRET:
        return
    verify_bearer_token(authorization, app_config.RELAY_WEBHOOK_SECRET)
