from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings

from configs.middleware.storage.opendal_storage_config import OpenDALStorageConfig


class StorageConfig(BaseSettings):
    STORAGE_TYPE: Literal["opendal", "local"] = Field(
        description="Type of storage to use."
        " Options: 'opendal' (scheme from OPENDAL_SCHEME), 'local' (filesystem under STORAGE_LOCAL_PATH).",
        default="opendal",
    )

    STORAGE_LOCAL_PATH: str = Field(
        description="Path for local storage when STORAGE_TYPE is set to 'local'.",
        default="storage",
    )

    STORAGE_BUCKET: str = Field(
        description="Bucket (top-level prefix) that every stored image key lives under.",
        default="edge-slips",
    )

    STORAGE_PUBLIC_URL: str = Field(
        description="Public base URL of the object store; the public URL of an object is"
        " '<STORAGE_PUBLIC_URL>/<bucket>/<path>'.",
        default="http://localhost:8000/storage/v1/object/public",
    )


class MiddlewareConfig(StorageConfig, OpenDALStorageConfig):
    pass
