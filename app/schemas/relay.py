"""转发 (relay) 相关 Schema 定义"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RelayTrigger(BaseModel):
    """触发转发的 webhook 请求体, 校验通过后构造"""

    public_url: str
    filename: str
    branch: str
    date: str
    metadata_id: str = Field(alias="metadataId")

    model_config = ConfigDict(populate_by_name=True)


class ImageMetadata(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    filename: str
    size_bytes: int
    content_type: str


class RelayWebhookData(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    request_id: str
    processing_time_ms: int
    relay_status: int | None = None
    relay_response: str | None = None
    relay_attempts: int
    image_metadata: ImageMetadata


class RelayWebhookResponse(BaseModel):
    success: bool = True
    message: str = "Webhook processed successfully"
    data: RelayWebhookData

    def to_body(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")
