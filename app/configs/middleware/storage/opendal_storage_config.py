from pydantic import Field
from pydantic_settings import BaseSettings


class OpenDALStorageConfig(BaseSettings):
    OPENDAL_SCHEME: str = Field(
        default="fs",
        description="OpenDAL scheme.",
    )
    OPENDAL_ROOT: str = Field(
        default="storage",
        description="Root path for filesystem storage in OpenDAL.",
    )

    OPENDAL_RETRY_MAX_TIMES: int = Field(
        default=3,
        ge=0,
        description="Retries performed by the OpenDAL RetryLayer for each storage operation.",
    )
