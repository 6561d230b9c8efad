import json

import httpx
import pytest

from configs import app_config
from services.relay_service import RelayDispatcher

RELAY_ENDPOINT = "https://relay.example.com/hooks/vision"
METADATA_ID = "3f0c7a52-9d4e-4b8a-a1f2-6c5d8e9b0a17"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class Downstream:
    def __init__(self):
        self.status = 200
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status, text="queued" if self.status < 300 else "rejected")


@pytest.fixture
def downstream(monkeypatch):
    endpoint = Downstream()

    def factory(**kwargs):
        return RelayDispatcher(transport=httpx.MockTransport(endpoint.handler), **kwargs)

    monkeypatch.setattr("services.relay_service.RelayDispatcher", factory)
    monkeypatch.setattr(app_config, "RELAY_ENDPOINT", RELAY_ENDPOINT)
    return endpoint


@pytest.fixture
def stored_image(client, auth_headers):
    response = client.post(
        "/",
        data={"branch": "main", "date": "2024-01-15", "filename": "slip.png"},
        files={"image": ("slip.png", PNG_BYTES, "image/png")},
        headers=auth_headers,
    )
    assert response.status_code == 200
    body = response.json()
    return {
        "public_url": body["url"],
        "filename": body["metadata"]["finalFilename"],
        "branch": "main",
        "date": "2024-01-15",
        "metadataId": METADATA_ID,
    }


class TestRelayWebhook:
    def test_relays_stored_image(self, client, downstream, stored_image):
        response = client.post("/relay", json=stored_image)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Webhook processed successfully"
        assert body["data"]["relayStatus"] == 200
        assert body["data"]["relayAttempts"] == 1
        assert body["data"]["imageMetadata"]["sizeBytes"] == len(PNG_BYTES)
        assert body["data"]["imageMetadata"]["contentType"] == "image/png"

        sent = json.loads(downstream.requests[0].content)
        assert sent["metadata"]["contentType"] == "image/png"
        assert sent["imageBase64"]["mimeType"] == "image/png"
        assert sent["imageUrl"]["file"] == stored_image["public_url"]
        assert sent["metadataId"] == METADATA_ID
        assert sent["branch"] == "main"

    def test_downstream_rejection(self, client, downstream, stored_image):
        downstream.status = 400

        response = client.post("/relay", json=stored_image)

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Relay request failed"
        assert body["details"] == "Relay client error: 400 Bad Request"
        assert body["attempts"] == 1
        assert len(body["requestId"]) == 8
        assert "processingTimeMs" in body

    def test_missing_object(self, client, downstream, stored_image):
        payload = {
            **stored_image,
            "public_url": stored_image["public_url"].replace("slip_", "gone_"),
        }

        response = client.post("/relay", json=payload)

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Failed to download image from storage"
        assert len(body["requestId"]) == 8
        assert downstream.requests == []

    def test_endpoint_not_configured(self, client, stored_image):
        response = client.post("/relay", json=stored_image)

        assert response.status_code == 500
        assert response.json()["error"] == "Server configuration error"

    def test_invalid_json(self, client, downstream):
        response = client.post(
            "/relay", content=b"not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid JSON payload"

    def test_validation(self, client, downstream):
        response = client.post(
            "/relay",
            json={
                "public_url": "https://evil.example.com/a.jpg",
                "filename": "a b.jpg",
                "branch": "main",
                "date": "2024-13-01",
                "metadataId": "not-a-uuid",
            },
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Validation failed"
        assert body["details"] == [
            "public_url must be a valid storage URL",
            "Date must be a valid calendar date",
            "filename must be alphanumeric with valid image extension",
            "metadataId must be a valid UUID",
        ]

    def test_missing_fields(self, client, downstream):
        response = client.post("/relay", json={"branch": "main"})

        assert response.status_code == 400
        details = response.json()["details"]
        assert "Missing required field: public_url" in details
        assert "Missing required field: metadataId" in details


class TestRelaySecret:
    def test_secret_required_when_configured(self, client, downstream, stored_image, monkeypatch):
        monkeypatch.setattr(app_config, "RELAY_WEBHOOK_SECRET", "hook-secret")

        response = client.post("/relay", json=stored_image)

        assert response.status_code == 401

    def test_secret_accepted(self, client, downstream, stored_image, monkeypatch):
        monkeypatch.setattr(app_config, "RELAY_WEBHOOK_SECRET", "hook-secret")

        response = client.post(
            "/relay", json=stored_image, headers={"Authorization": "Bearer hook-secret"}
        )

        assert response.status_code == 200
