"""图片上传相关 Schema 定义"""

from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class UploadMode(StrEnum):
    DIRECT = "direct-upload"
    URL = "url-upload"


class _UploadFields(BaseModel):
    branch: str
    date: str
    filename: str


class DirectUploadRequest(_UploadFields):
    """直接上传: 图片字节随请求提交"""

    mode: Literal[UploadMode.DIRECT] = UploadMode.DIRECT
    image: bytes = Field(repr=False)
    content_type: str = "application/octet-stream"


class UrlUploadRequest(_UploadFields):
    """URL 上传: 由服务端抓取远程图片"""

    mode: Literal[UploadMode.URL] = UploadMode.URL
    image_url: str


UploadRequest = Annotated[DirectUploadRequest | UrlUploadRequest, Field(discriminator="mode")]

upload_request_adapter: TypeAdapter[DirectUploadRequest | UrlUploadRequest] = TypeAdapter(
    UploadRequest
)


class StoredAsset(BaseModel):
    """已写入存储的图片"""

    path: str
    public_url: str
    size_bytes: int
    content_type: str


class UploadMetadata(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    final_filename: str
    storage_path: str
    image_size_bytes: int
    content_type: str
    upload_mode: UploadMode
    original_url: str


class UploadResult(BaseModel):
    asset: StoredAsset
    metadata: UploadMetadata
    # 已存储的图片内容, 供上传后转发使用
    data: bytes = Field(default=b"", exclude=True, repr=False)


class RelaySummary(BaseModel):
    """上传后转发结果, 仅在开启 RELAY_ON_UPLOAD 时返回"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: Literal["delivered", "failed"]
    http_status: int | None = None
    attempts: int
    duration_ms: int
    error: str | None = None


class UploadResponse(BaseModel):
    message: str = "Upload successful"
    url: str
    metadata: UploadMetadata
    relay: RelaySummary | None = None

    def to_body(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")
