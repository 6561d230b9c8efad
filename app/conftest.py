"""Pytest 配置文件"""

import os

# 测试使用内存存储, 需在加载配置之前设置
os.environ.setdefault("STORAGE_TYPE", "opendal")
os.environ.setdefault("OPENDAL_SCHEME", "memory")

import pytest
from fastapi.testclient import TestClient

from app_factory import create_app
from configs import app_config
from dependencies.rate_limit import rate_limiter
from extensions.ext_storage import storage
from extensions.storage.opendal_storage import AsyncOpenDALStorage

UPLOAD_SECRET = "test-upload-secret"
STORAGE_PUBLIC_URL = "https://store.example.com/storage/v1/object/public"

TEST_SETTINGS = {
    "UPLOAD_SECRET": UPLOAD_SECRET,
    "RELAY_WEBHOOK_SECRET": None,
    "RELAY_ENDPOINT": None,
    "RELAY_ON_UPLOAD": False,
    "RATE_LIMIT_ENABLED": True,
    "RETRY_BACKOFF_BASE_SECONDS": 0.0,
    "FETCH_VERIFICATION_PAUSE_SECONDS": 0.0,
    "STORAGE_PROPAGATION_DELAY": 0.0,
    "STORAGE_BUCKET": "edge-slips",
    "STORAGE_PUBLIC_URL": STORAGE_PUBLIC_URL,
}


@pytest.fixture(autouse=True)
def settings(monkeypatch):
    """每个测试使用独立的配置, 测试内可继续 monkeypatch"""
    for name, value in TEST_SETTINGS.items():
        monkeypatch.setattr(app_config, name, value)
    return app_config


@pytest.fixture(autouse=True)
def memory_storage():
    """每个测试使用全新的内存存储"""
    runner = AsyncOpenDALStorage("memory")
    storage.init_app(runner)
    return storage


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    rate_limiter.reset()
    yield
    rate_limiter.reset()


@pytest.fixture(scope="session")
def app():
    """创建应用实例"""
    return create_app()


@pytest.fixture
def client(app, memory_storage):
    """创建测试客户端"""
    return TestClient(app)


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {UPLOAD_SECRET}"}
