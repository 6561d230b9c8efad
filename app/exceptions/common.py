from typing import Any

from fastapi import HTTPException


class BaseHTTPException(HTTPException):
    status_code: int = 400
    detail: str = ""

    def __init__(
        self,
        detail: str | None = None,
        details: Any = None,
        headers: dict[str, str] | None = None,
        **extra: Any,
    ):
        super().__init__(status_code=self.status_code, detail=detail or self.detail, headers=headers)
        self.details = details
        self.extra = extra


# =============================================================================
# 认证相关异常 (401)
# =============================================================================
class UnauthorizedError(BaseHTTPException):
    status_code = 401
    detail = "Unauthorized - Bearer token required"


class InvalidTokenError(BaseHTTPException):
    status_code = 401
    detail = "Unauthorized - Invalid token"


# =============================================================================
# 请求参数异常 (400)
# =============================================================================
class InvalidJSONError(BaseHTTPException):
    status_code = 400
    detail = "Invalid JSON body"


class ValidationFailedError(BaseHTTPException):
    status_code = 400
    detail = "Validation failed"


class MissingImageError(BaseHTTPException):
    status_code = 400
    detail = "Image file is required"


class ImageTooLargeError(BaseHTTPException):
    status_code = 400
    detail = "Image too large"


class EmptyImageError(BaseHTTPException):
    status_code = 400
    detail = "Image is empty"


# =============================================================================
# 图片获取异常 (400)
# =============================================================================
class AcquisitionError(BaseHTTPException):
    status_code = 400
    detail = "Failed to fetch image"


class BotProtectionError(AcquisitionError):
    detail = "Website has bot protection"


# =============================================================================
# 存储与转发异常
# =============================================================================
class StoreError(BaseHTTPException):
    status_code = 400
    detail = "Upload failed"


class StoreReadError(BaseHTTPException):
    status_code = 500
    detail = "Failed to download image from storage"


class RelayError(BaseHTTPException):
    status_code = 500
    detail = "Relay request failed"


# =============================================================================
# 速率限制异常 (429)
# =============================================================================
class RateLimitError(BaseHTTPException):
    status_code = 429
    detail = "Too many requests. Please try again later."


# =============================================================================
# 服务器错误 (500)
# =============================================================================
class ServerConfigurationError(BaseHTTPException):
    status_code = 500
    detail = "Server configuration error"


class InternalServerError(BaseHTTPException):
    status_code = 500
    detail = "Internal server error"
