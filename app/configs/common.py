from pydantic import Field
from pydantic_settings import BaseSettings


class CommonConfig(BaseSettings):
    # CORS Configuration
    CORS_ORIGINS: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins",
    )

    CORS_ALLOW_METHODS: str = Field(
        default="GET,POST,OPTIONS",
        description="Comma-separated list of allowed CORS methods",
    )
