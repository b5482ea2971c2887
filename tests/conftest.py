"""Shared fixtures for the fallback proxy tests."""

import json

import pytest
from fastapi.testclient import TestClient

from fallback_proxy.api.middleware.rate_limit import limiter
from fallback_proxy.api.server import create_app
from fallback_proxy.config import ConfigManager

MANAGEMENT_KEY = "test-management-key"


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    yield


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "proxy_config.json"
    path.write_text(
        json.dumps(
            {
                "auth_settings": {"enabled": True, "management_key": MANAGEMENT_KEY},
                "redis_settings": {"enabled": False},
                "model_fallbacks": [
                    {"from": "gemini-2.5-pro", "to": "gemini-2.5-flash"},
                    {"from": "gemini-2.5-flash", "to": "gemini-2.0-flash"},
                ],
            }
        )
    )
    return path


@pytest.fixture
def client(config_path):
    app = create_app(config_manager=ConfigManager(config_path))
    with TestClient(app) as c:
        c.headers.update({"Authorization": f"Bearer {MANAGEMENT_KEY}"})
        yield c
