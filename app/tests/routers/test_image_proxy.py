import httpx
import pytest

from services.image_proxy_service import ImageProxyService

JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 128


@pytest.fixture
def cdn(monkeypatch):
    requested: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        if request.url.path.endswith("missing.jpg"):
            return httpx.Response(404, text="not found")
        return httpx.Response(200, content=JPEG_BYTES, headers={"Content-Type": "image/jpeg"})

    def factory():
        return ImageProxyService(transport=httpx.MockTransport(handler))

    monkeypatch.setattr("routers.gateway.image_proxy.ImageProxyService", factory)
    return requested


class TestImageProxy:
    def test_missing_url(self, client):
        response = client.get("/image-proxy")

        assert response.status_code == 400
        assert response.text == "Missing image URL parameter"

    def test_proxies_image(self, client, cdn):
        response = client.get("/image-proxy", params={"url": "https://cdn.example.com/a.jpg"})

        assert response.status_code == 200
        assert response.content == JPEG_BYTES
        assert response.headers["content-type"] == "image/jpeg"
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.headers["cache-control"].startswith("public, max-age=")
        assert cdn == ["https://cdn.example.com/a.jpg"]

    def test_upstream_error(self, client, cdn):
        response = client.get(
            "/image-proxy", params={"url": "https://cdn.example.com/missing.jpg"}
        )

        assert response.status_code == 404
        assert response.text == "Failed to fetch image: 404"

