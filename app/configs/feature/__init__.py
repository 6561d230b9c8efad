from pydantic import (
    Field,
    NonNegativeFloat,
    PositiveFloat,
    PositiveInt,
)
from pydantic_settings import BaseSettings


class SecurityConfig(BaseSettings):
    """
    Security-related configurations for the application
    """

    UPLOAD_SECRET: str | None = Field(
        description="Shared secret expected in 'Authorization: Bearer <secret>' on the upload endpoint."
        " The upload endpoint answers 500 while this is unset.",
        default=None,
    )

    RELAY_WEBHOOK_SECRET: str | None = Field(
        description="Optional bearer secret for the relay webhook trigger. Leave empty to accept"
        " unauthenticated triggers (the storage URL heuristic still applies).",
        default=None,
    )


class FileUploadConfig(BaseSettings):
    """
    Configuration for image upload limitations
    """

    UPLOAD_IMAGE_MAX_BYTES: PositiveInt = Field(
        description="Maximum allowed image size in bytes, for direct uploads and fetched images",
        default=10 * 1024 * 1024,
    )

    REQUEST_DEADLINE_SECONDS: PositiveFloat = Field(
        description="Overall deadline for a single upload or relay request, including every retry",
        default=300,
    )


class RateLimitConfig(BaseSettings):
    """
    Configuration for the in-process request rate governor
    """

    RATE_LIMIT_ENABLED: bool = Field(
        description="Whether to enforce per-client rate limiting",
        default=True,
    )

    RATE_LIMIT_WINDOW_SECONDS: PositiveFloat = Field(
        description="Length of the rate limit window in seconds",
        default=60,
    )

    RATE_LIMIT_MAX_REQUESTS: PositiveInt = Field(
        description="Maximum admitted requests per client key per window",
        default=30,
    )


class RetryConfig(BaseSettings):
    """
    Shared retry settings
    """

    RETRY_BACKOFF_BASE_SECONDS: NonNegativeFloat = Field(
        description="Base delay of the linear backoff; attempt n waits base * n before attempt n + 1",
        default=1.0,
    )


class FetchConfig(BaseSettings):
    """
    Configuration for acquiring images from remote origins
    """

    FETCH_MAX_ATTEMPTS: PositiveInt = Field(
        description="Maximum attempts of the full origin-visit/preflight/final-fetch sequence",
        default=3,
    )

    FETCH_ATTEMPT_TIMEOUT: PositiveFloat = Field(
        description="Hard ceiling in seconds for one attempt of the fetch sequence",
        default=120,
    )

    FETCH_REQUEST_TIMEOUT: PositiveFloat = Field(
        description="Timeout in seconds for each individual HTTP request of the fetch sequence",
        default=30,
    )

    FETCH_VERIFICATION_PAUSE_SECONDS: NonNegativeFloat = Field(
        description="Pause after visiting a verification page, before the final fetch",
        default=1.5,
    )

    FETCH_USER_AGENT: str = Field(
        description="User-Agent presented to remote origins",
        default=(
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
        ),
    )

    FETCH_PROXY_URL: str | None = Field(
        description="Optional outbound proxy for remote image fetches",
        default=None,
    )


class RelayConfig(BaseSettings):
    """
    Configuration for the downstream relay
    """

    RELAY_ENDPOINT: str | None = Field(
        description="Downstream endpoint receiving stored-image descriptors",
        default=None,
    )

    RELAY_TIMEOUT: PositiveFloat = Field(
        description="Per-attempt timeout in seconds for the relay POST",
        default=120,
    )

    RELAY_MAX_ATTEMPTS: PositiveInt = Field(
        description="Maximum relay POST attempts",
        default=2,
    )

    RELAY_INLINE_IMAGE: bool = Field(
        description="Whether the relay payload carries the image inline as base64",
        default=True,
    )

    RELAY_ON_UPLOAD: bool = Field(
        description="Relay every successful upload right after the store write",
        default=False,
    )

    RELAY_USER_AGENT: str = Field(
        description="User-Agent used for relay requests",
        default="ImageRelayGateway-VisionWebhook/2.0",
    )

    STORAGE_PROPAGATION_DELAY: NonNegativeFloat = Field(
        description="Seconds to wait before reading a freshly written object back from storage",
        default=5.0,
    )

    STORAGE_READ_MAX_ATTEMPTS: PositiveInt = Field(
        description="Maximum attempts to read an object back from storage",
        default=2,
    )


class ImageProxyConfig(BaseSettings):
    """
    Configuration for the image proxy endpoint
    """

    IMAGE_PROXY_TIMEOUT: PositiveFloat = Field(
        description="Timeout in seconds for proxied image requests",
        default=30,
    )

    IMAGE_PROXY_CACHE_MAX_AGE: PositiveInt = Field(
        description="max-age in seconds advertised on proxied images",
        default=3600,
    )

    IMAGE_PROXY_USER_AGENT: str = Field(
        description="User-Agent used by the image proxy",
        default="Mozilla/5.0 (compatible; ImageRelayGateway-ImageProxy/1.0)",
    )


class LoggingConfig(BaseSettings):
    """
    Configuration for application logging
    """

    LOG_LEVEL: str = Field(
        description="Logging level, default to INFO. Set to ERROR for production environments.",
        default="INFO",
    )

    LOG_FILE: str | None = Field(
        description="File path for log output.",
        default=None,
    )

    LOG_FILE_MAX_SIZE: PositiveInt = Field(
        description="Maximum file size for file rotation retention, the unit is megabytes (MB)",
        default=20,
    )

    LOG_FILE_BACKUP_COUNT: PositiveInt = Field(
        description="Maximum file backup count file rotation retention",
        default=5,
    )

    LOG_FORMAT: str = Field(
        description="Format string for log messages",
        default=(
            "%(asctime)s.%(msecs)03d %(levelname)s [%(threadName)s] "
            "[%(filename)s:%(lineno)d] %(trace_id)s - %(message)s"
        ),
    )

    LOG_DATEFORMAT: str | None = Field(
        description="Date format string for log timestamps",
        default=None,
    )

    LOG_TZ: str | None = Field(
        description="Timezone for log timestamps (e.g., 'America/New_York')",
        default="UTC",
    )


class FeatureConfig(
    SecurityConfig,
    FileUploadConfig,
    RateLimitConfig,
    RetryConfig,
    FetchConfig,
    RelayConfig,
    ImageProxyConfig,
    LoggingConfig,
):
    pass
