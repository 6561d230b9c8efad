from typing import Any

from pydantic import BaseModel, ConfigDict


class ErrorResponse(BaseModel):
    """错误响应体: {error, details?, ...extra}"""

    error: str
    details: Any = None

    model_config = ConfigDict(extra="allow")
