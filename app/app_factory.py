import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from configs import app_config
from exceptions import exception_handler
from middlewares.http_middleware import CustomMiddleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting up the FastAPI application...")
    if not app_config.UPLOAD_SECRET:
        logger.warning("UPLOAD_SECRET is not set, uploads will be answered with 500")
    yield
    logger.info("Shutting down the FastAPI application...")


def config_router(app: FastAPI):
    from routers import gateway

    app.include_router(gateway.router)
    logger.info("Gateway routes mounted from: %s", ", ".join(gateway.mounted_modules))


def initialize_extensions(app: FastAPI):
    from extensions import ext_logging, ext_storage

    extensions = [
        ext_logging,
        ext_storage,
    ]
    for ext in extensions:
        short_name = ext.__name__.split(".")[-1]
        is_enabled = ext.is_enabled() if hasattr(ext, "is_enabled") else True
        if not is_enabled:
            if app_config.DEBUG:
                logger.info("Skipped %s", short_name)
            continue

        start_time = time.perf_counter()
        ext.init_app(app)
        end_time = time.perf_counter()
        if app_config.DEBUG:
            logger.info(
                "Loaded %s (%s ms)",
                short_name,
                round((end_time - start_time) * 1000, 2),
            )


def create_app() -> FastAPI:
    app = FastAPI(
        title=app_config.PROJECT_NAME,
        lifespan=lifespan,
        version=app_config.CURRENT_VERSION,
        openapi_url="/api/openapi.json",
    )
    initialize_extensions(app)

    # 设置 CORS 中间件
    cors_origins = [
        origin.strip() for origin in app_config.CORS_ORIGINS.split(",") if origin.strip()
    ]
    cors_methods = [
        method.strip() for method in app_config.CORS_ALLOW_METHODS.split(",") if method.strip()
    ]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_methods=cors_methods,
        allow_headers=["*"],
        expose_headers=["Retry-After", "X-Trace-ID"],
    )

    app.add_middleware(CustomMiddleware)

    config_router(app)
    exception_handler.set_up(app)

    logger.info(f"FastAPI 应用创建完成: {app_config.PROJECT_NAME}")
    return app
