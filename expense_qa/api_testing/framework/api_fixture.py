"""
================================================================================
API Test Fixture
================================================================================

Per-test scaffold shared by every API suite.

Lifecycle:
    global_setup(config)     once per process: environment banner and
                             process-wide HTTP settings
    ApiTestFixture.set_up()  before every test: fresh request/response
                             specifications, then the suite's setup hook
    ApiTestFixture.tear_down()
                             after every test: closes the HTTP sessions the
                             test opened

Suites customise the scaffold by composition: they pass a ``setup_hook``
callable (and optionally a token provider) instead of subclassing. In pytest
this is done by overriding the ``setup_hook`` fixture; see conftest.py.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from contextlib import ExitStack
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Type, TypeVar

import allure
import httpx
from loguru import logger

from .api_clients import ApiClient
from .config_loader import ConfigLoader
from .http_client import (
    HttpClient,
    enable_logging_of_request_and_response_if_validation_fails,
    log_last_exchange_for_failure,
)
from .specification import (
    AUTHORIZATION_HEADER,
    RequestSpecification,
    ResponseSpecification,
    default_request_spec,
    default_response_spec,
)
from .token_manager import PlaceholderTokenProvider


ClientT = TypeVar("ClientT", bound=ApiClient)
SetupHook = Callable[["ApiTestFixture"], None]

_global_setup_done = False


def global_setup(config: ConfigLoader) -> bool:
    """
    One-time setup for the whole test run.

    Returns:
        True on the first call, False (and does nothing) afterwards.
    """
    global _global_setup_done

    if _global_setup_done:
        return False

    logger.info(f"Running tests against environment: {config.current_environment()}")
    logger.info(f"Base URL: {config.base_url()}")
    enable_logging_of_request_and_response_if_validation_fails()

    _global_setup_done = True
    return True


def global_setup_done() -> bool:
    return _global_setup_done


def reset_global_setup() -> None:
    """Forget that global setup ran (used by unit tests)."""
    global _global_setup_done
    _global_setup_done = False


def no_setup_hook(fixture: "ApiTestFixture") -> None:
    """Default hook: nothing to prepare."""


def authenticate(fixture: "ApiTestFixture") -> None:
    """Hook making every request of the test carry the bearer credential."""
    fixture.request_spec = fixture.with_auth()


@dataclass
class ApiTestFixture:
    """
    Ready-to-use specifications plus auth and assertion helpers for one test.

    Attributes:
        config: Configuration of the current run (shared, read-only)
        setup_hook: Called at the end of ``set_up`` with this fixture
        token_provider: Anything with ``authorization_header() -> str``
        transport: Optional httpx transport handed to every client
    """
    config: ConfigLoader
    setup_hook: SetupHook = no_setup_hook
    token_provider: Any = field(default_factory=PlaceholderTokenProvider)
    transport: Optional[httpx.BaseTransport] = None
    request_spec: Optional[RequestSpecification] = field(default=None, init=False)
    response_spec: Optional[ResponseSpecification] = field(default=None, init=False)
    _exit_stack: ExitStack = field(default_factory=ExitStack, init=False, repr=False)

    def set_up(self, test_name: str = "") -> None:
        """Rebuild both specifications, then run the setup hook."""
        logger.info(f"Starting test: {test_name}")

        self.request_spec = default_request_spec(self.config.base_url())
        self.response_spec = default_response_spec()

        self.setup_hook(self)

    def tear_down(self) -> None:
        """Close every HTTP session opened through ``client()`` / ``http()``."""
        self._exit_stack.close()
        self._exit_stack = ExitStack()

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    @allure.step("Get authentication token")
    def auth_token(self) -> str:
        return self.token_provider.authorization_header()

    @allure.step("Add authentication to request")
    def with_auth(self) -> RequestSpecification:
        """Current request spec with exactly one Authorization header."""
        return self._current_request_spec().with_header(
            AUTHORIZATION_HEADER, self.auth_token()
        )

    @allure.step("Create request without authentication")
    def without_auth(self) -> RequestSpecification:
        """Current request spec with no Authorization header."""
        return self._current_request_spec().without_header(AUTHORIZATION_HEADER)

    # ------------------------------------------------------------------
    # Assertions
    # ------------------------------------------------------------------

    @allure.step("Verify response status code is {expected_status_code}")
    def verify_status_code(self, actual_status_code: int, expected_status_code: int) -> None:
        if actual_status_code != expected_status_code:
            logger.error(
                f"Status code mismatch. Expected: {expected_status_code}, "
                f"Actual: {actual_status_code}"
            )
            log_last_exchange_for_failure()
            raise AssertionError(
                f"Expected status code {expected_status_code} but got {actual_status_code}"
            )

    @allure.step("Verify response contains field: {field_name}")
    def verify_field_exists(self, json_path: str, field_name: str) -> None:
        # TODO: settle path syntax and presence-vs-non-null semantics before
        # asserting here; use ResponseValidator.validate_field_exists meanwhile.
        logger.info(f"Verifying field '{field_name}' exists in response ({json_path})")

    # ------------------------------------------------------------------
    # Clients
    # ------------------------------------------------------------------

    def http(self, request_spec: Optional[RequestSpecification] = None) -> HttpClient:
        """Open an HttpClient on ``request_spec`` (default: current spec) for this test."""
        client = HttpClient(
            request_spec or self._current_request_spec(),
            self.response_spec or default_response_spec(),
            timeout=self.config.timeout(),
            transport=self.transport,
        )
        return self._exit_stack.enter_context(client)

    def client(
        self,
        client_cls: Type[ClientT],
        request_spec: Optional[RequestSpecification] = None,
    ) -> ClientT:
        """Build a domain client bound to ``request_spec`` (default: current spec)."""
        return client_cls(self.http(request_spec), self.config)

    def _current_request_spec(self) -> RequestSpecification:
        if self.request_spec is None:
            raise RuntimeError("ApiTestFixture.set_up() must run before using the fixture")
        return self.request_spec


__all__ = [
    "ApiTestFixture",
    "SetupHook",
    "authenticate",
    "global_setup",
    "global_setup_done",
    "no_setup_hook",
    "reset_global_setup",
]
