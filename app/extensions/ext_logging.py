from contextvars import ContextVar
from datetime import datetime
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional
import uuid

import pytz
from fastapi import FastAPI

from configs import app_config

trace_id_var: ContextVar[Optional[str]] = ContextVar("trace_id", default=None)

# 这些库在 INFO 级别会打印完整请求行, 其中含签名的图片 URL
NOISY_LOGGERS = ("httpx", "httpcore", "opendal")


def trace_id_generator() -> str:
    return uuid.uuid4().hex


class TraceIdFormatter(logging.Formatter):
    """为每条日志补充 ``trace_id`` 字段, 可选按 LOG_TZ 转换时间."""

    def __init__(self, fmt: str, datefmt: str | None = None, tz: str | None = None):
        super().__init__(fmt, datefmt)
        if tz:
            timezone = pytz.timezone(tz)
            self.converter = lambda seconds: datetime.fromtimestamp(
                seconds, tz=timezone
            ).timetuple()

    def format(self, record: logging.LogRecord) -> str:
        record.trace_id = trace_id_var.get() or ""
        return super().format(record)


def _build_handlers() -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    log_file = app_config.LOG_FILE
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                filename=log_file,
                maxBytes=app_config.LOG_FILE_MAX_SIZE * 1024 * 1024,
                backupCount=app_config.LOG_FILE_BACKUP_COUNT,
            )
        )
    return handlers


def init_app(app: FastAPI):
    formatter = TraceIdFormatter(
        app_config.LOG_FORMAT, app_config.LOG_DATEFORMAT, tz=app_config.LOG_TZ
    )
    handlers = _build_handlers()
    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(level=app_config.LOG_LEVEL, handlers=handlers, force=True)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
