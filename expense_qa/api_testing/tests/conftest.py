"""
================================================================================
API Testing Pytest Configuration
================================================================================

Shared fixtures for the expense API suites.

Fixtures:
    - config: run configuration (session, read-only)
    - _global_api_setup: one-time environment banner and HTTP settings
    - setup_hook: per-suite extension hook (override it in a test module)
    - token_provider: bearer credential source for with_auth()
    - api: freshly set up ApiTestFixture for every test
    - cleanup_tracker: deletes the entities a test created
    - data_factory / validator: payload generation and response checks

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Generator

import allure
import pytest
from loguru import logger

from ..framework import (
    ApiTestFixture,
    CleanupTracker,
    ConfigLoader,
    DebitosAutomaticosClient,
    EntityType,
    ExpenseDataFactory,
    GastosRecurrentesClient,
    GastosUnicosClient,
    ResponseValidator,
    TokenManager,
    authenticate,
    global_setup,
)
from ..framework.api_fixture import SetupHook
from ..framework.logging_setup import init_logger


# =============================================================================
# Session-Scoped Fixtures (Shared across all tests)
# =============================================================================

@pytest.fixture(scope="session")
def config() -> ConfigLoader:
    """
    Provide the run configuration.

    Session-scoped: built once and shared, never mutated.
    """
    return ConfigLoader()


@pytest.fixture(scope="session", autouse=True)
def _global_api_setup(config: ConfigLoader) -> None:
    """Runs exactly once per test run, before any per-test setup."""
    init_logger(config)
    global_setup(config)


@pytest.fixture(scope="session")
def token_provider(config: ConfigLoader) -> TokenManager:
    """Real credentials: logs in (registering if needed) the API test user."""
    return TokenManager(config)


# =============================================================================
# Function-Scoped Fixtures (Fresh for each test)
# =============================================================================

@pytest.fixture
def setup_hook() -> SetupHook:
    """
    Extension hook run at the end of per-test setup.

    Protected endpoints need a JWT, so the default authenticates every
    request. Override this fixture in a module to change that:

        @pytest.fixture
        def setup_hook():
            return no_setup_hook
    """
    return authenticate


@pytest.fixture
def api(
    request: pytest.FixtureRequest,
    config: ConfigLoader,
    setup_hook: SetupHook,
    token_provider: TokenManager,
) -> Generator[ApiTestFixture, None, None]:
    """
    Provide a freshly set up ApiTestFixture.

    Usage:
        def test_example(api):
            client = api.client(GastosUnicosClient)
            response = client.list_all()
            api.verify_status_code(response.status_code, 200)
    """
    fixture = ApiTestFixture(
        config=config,
        setup_hook=setup_hook,
        token_provider=token_provider,
    )
    fixture.set_up(request.node.name)
    yield fixture
    fixture.tear_down()


@pytest.fixture
def data_factory() -> ExpenseDataFactory:
    return ExpenseDataFactory()


@pytest.fixture
def validator() -> ResponseValidator:
    return ResponseValidator()


# =============================================================================
# Cleanup Fixtures
# =============================================================================

@pytest.fixture
def cleanup_tracker(api: ApiTestFixture) -> Generator[CleanupTracker, None, None]:
    """
    Track created entities and delete them after the test.

    Usage:
        def test_create(api, cleanup_tracker):
            response = api.client(GastosUnicosClient).create(payload)
            cleanup_tracker.track_from_response(response, EntityType.GASTO_UNICO)
    """
    tracker = CleanupTracker()
    yield tracker

    strategies = {
        EntityType.GASTO_UNICO: api.client(GastosUnicosClient).remove,
        EntityType.GASTO_RECURRENTE: api.client(GastosRecurrentesClient).remove,
        EntityType.DEBITO_AUTOMATICO: api.client(DebitosAutomaticosClient).remove,
    }
    try:
        tracker.cleanup(strategies)
    except AssertionError as e:
        # Teardown must not mask the test's own result
        logger.warning(f"Cleanup aborted: {e}")


# =============================================================================
# Allure Reporting Hooks
# =============================================================================

def pytest_exception_interact(node, call, report):
    """Attach additional info on test failure."""
    if report.failed:
        allure.attach(
            str(call.excinfo.value),
            name="Error Details",
            attachment_type=allure.attachment_type.TEXT
        )
