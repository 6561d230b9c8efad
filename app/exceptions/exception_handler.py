from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from exceptions.common import BaseHTTPException
import logging
from libs.helper import mask_sensitive, mask_url, truncate
from schemas.response import ErrorResponse

logger = logging.getLogger(__name__)

GENERIC_DETAIL_LIMIT = 200


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    处理请求数据验证失败的异常
    """
    simplified_errors = [
        f"{'.'.join(map(str, error['loc']))}: {error['msg']}" for error in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=ErrorResponse(error="Validation failed", details=simplified_errors).model_dump(),
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    """
    处理 HTTP 异常
    """
    if isinstance(exc, BaseHTTPException):
        body = ErrorResponse(error=exc.detail, details=exc.details, **exc.extra)
    else:
        body = ErrorResponse(error=str(exc.detail))

    return JSONResponse(
        status_code=exc.status_code,
        content=body.model_dump(exclude_none=True),
        headers=exc.headers,
    )


async def generic_exception_handler(request: Request, exc: Exception):
    """
    捕获所有未被处理的异常
    """
    # 记录详细的异常信息到日志
    logger.exception(f"Unhandled exception on {request.method} {mask_url(str(request.url))}: {exc}")

    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error="Internal server error",
            details=truncate(
                mask_sensitive(str(exc) or type(exc).__name__), GENERIC_DETAIL_LIMIT
            ),
        ).model_dump(),
    )


def set_up(app: FastAPI):
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
