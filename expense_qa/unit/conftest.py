"""
Offline fixtures for the harness unit tests.

Nothing here talks to a real API: HTTP goes through httpx.MockTransport and
configuration comes from a temporary YAML file.
"""

from __future__ import annotations

from typing import Callable, List

import httpx
import pytest
import yaml
from loguru import logger

from expense_qa.api_testing.framework.api_fixture import reset_global_setup
from expense_qa.api_testing.framework.config_loader import ConfigLoader
from expense_qa.api_testing.framework.http_client import reset_global_http_settings


LOCAL_URL = "http://localhost:3030"
STAGING_URL = "https://staging.example.com"

CONFIG_DATA = {
    "environments": {
        "local": {"base_url": LOCAL_URL, "timeout": 5},
        "staging": {"base_url": STAGING_URL, "timeout": 10},
    },
    "api": {
        "endpoints": {
            "gastos": "/api/gastos",
            "gastos_unicos": "/api/gastos-unicos",
            "gastos_recurrentes": "/api/gastos-recurrentes",
            "debitos_automaticos": "/api/debitos-automaticos",
            "auth_register": "/api/auth/register",
            "auth_login": "/api/auth/login",
            "auth_profile": "/api/auth/profile",
            "auth_logout": "/api/auth/logout",
        }
    },
    "auth": {
        "nombre": "Unit Test User",
        "email": "unit@test.example.com",
        "password": "UnitTest123!",
    },
    "test_data": {"non_existent_id": "999999", "max_response_time_ms": 5000},
}

OVERRIDE_ENV_VARS = (
    "API_BASE_URL",
    "TEST_ENV",
    "AUTH_NOMBRE",
    "AUTH_EMAIL",
    "AUTH_PASSWORD",
    "LOGGING_LEVEL",
)


@pytest.fixture(autouse=True)
def _reset_process_state(monkeypatch):
    """Each unit test starts with no global setup and no stray env overrides."""
    for name in OVERRIDE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_global_setup()
    reset_global_http_settings()
    yield
    reset_global_setup()
    reset_global_http_settings()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump(CONFIG_DATA, allow_unicode=True), encoding="utf-8")
    return path


@pytest.fixture
def config(config_file) -> ConfigLoader:
    return ConfigLoader(config_path=config_file, environment="local")


@pytest.fixture
def staging_config(config_file) -> ConfigLoader:
    return ConfigLoader(config_path=config_file, environment="staging")


@pytest.fixture
def log_messages():
    """Collect loguru messages emitted during the test."""
    messages: List[str] = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def recorded_requests() -> List[httpx.Request]:
    return []


@pytest.fixture
def mock_transport(recorded_requests) -> Callable[..., httpx.MockTransport]:
    """
    Build a MockTransport answering every request with ``status``/``json``
    (or with ``handler`` when given) and recording what was sent.
    """
    def factory(status: int = 200, json=None, handler=None) -> httpx.MockTransport:
        def respond(request: httpx.Request) -> httpx.Response:
            recorded_requests.append(request)
            if handler is not None:
                return handler(request)
            return httpx.Response(status, json=json if json is not None else {"data": []})
        return httpx.MockTransport(respond)

    return factory
