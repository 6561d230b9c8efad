from fastapi import APIRouter, Query, Response
from fastapi.responses import PlainTextResponse

from services.image_proxy_service import ImageProxyService

router = APIRouter()


@router.get("/image-proxy", response_model=None)
async def image_proxy(url: str | None = Query(default=None)) -> Response:
    if not url:
        return PlainTextResponse("Missing image URL parameter", status_code=400)
    return await ImageProxyService().proxy(url)
