from unittest.mock import MagicMock

from libs.helper import (
    extract_bearer_token,
    extract_remote_ip,
    mask_sensitive,
    mask_url,
    truncate,
)


def _request(headers: dict, host: str | None = "10.0.0.1"):
    request = MagicMock()
    request.headers = headers
    request.client = MagicMock(host=host) if host else None
    return request


class TestExtractRemoteIp:
    def test_cloudflare_header_wins(self):
        request = _request({"CF-Connecting-IP": "1.1.1.1", "X-Forwarded-For": "2.2.2.2"})
        assert extract_remote_ip(request) == "1.1.1.1"

    def test_first_forwarded_hop(self):
        request = _request({"X-Forwarded-For": "3.3.3.3, 10.0.0.2"})
        assert extract_remote_ip(request) == "3.3.3.3"

    def test_real_ip(self):
        assert extract_remote_ip(_request({"X-Real-IP": "4.4.4.4"})) == "4.4.4.4"

    def test_socket_peer(self):
        assert extract_remote_ip(_request({})) == "10.0.0.1"

    def test_unknown(self):
        assert extract_remote_ip(_request({}, host=None)) == "unknown"


class TestBearerToken:
    def test_extract(self):
        assert extract_bearer_token("Bearer abc") == "abc"

    def test_missing_or_wrong_scheme(self):
        assert extract_bearer_token(None) is None
        assert extract_bearer_token("Basic abc") is None
        assert extract_bearer_token("bearer abc") is None


class TestMasking:
    def test_bearer(self):
        assert mask_sensitive("Bearer supersecretvalue") == "Bearer sup***"

    def test_url_like(self):
        value = "https://example.com/some/long/path?token=abc"
        assert mask_sensitive(value) == value[:30] + "***"

    def test_long_string(self):
        assert mask_sensitive("x" * 60) == "x" * 20 + "***"

    def test_passthrough(self):
        assert mask_sensitive("short") == "short"
        assert mask_sensitive(12) == 12

    def test_mask_url(self):
        assert mask_url("https://cdn.example.com/a/b.jpg?sig=1") == "https://cdn.example.com/a/b.jpg..."
        assert mask_url(None) == "invalid-url"

    def test_truncate(self):
        assert truncate("abc", 2) == "ab"
        assert truncate("abc") == "abc"
