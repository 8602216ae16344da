"""
================================================================================
API Testing Framework
================================================================================

Scaffold for the expense tracking API test suites.

Modules:
    - config_loader: per-environment YAML configuration
    - specification: immutable request/response specifications
    - http_client: httpx client with Allure logging
    - api_fixture: per-test scaffold (setup hooks, auth, status assertions)
    - token_manager: bearer credentials for the API test user
    - api_clients: clients for gastos únicos / recurrentes / débitos automáticos
    - response_validator: JSONPath based response checks
    - cleanup: created-entity tracking and teardown
    - data_factory: random valid payloads

Author: Automation Team
License: MIT
================================================================================
"""

from .api_clients import (
    ApiClient,
    AuthClient,
    DebitosAutomaticosClient,
    GastosRecurrentesClient,
    GastosUnicosClient,
)
from .api_fixture import ApiTestFixture, authenticate, global_setup, no_setup_hook
from .cleanup import CleanupTracker, EntityType
from .config_loader import ConfigLoader, ConfigurationError
from .data_factory import ExpenseDataFactory
from .http_client import HttpClient, HttpClientError
from .models import DebitoAutomatico, GastoRecurrente, GastoUnico, User
from .response_validator import ResponseValidator, ValidationRule, ValidationType
from .specification import (
    LogDetail,
    RequestSpecBuilder,
    RequestSpecification,
    ResponseSpecBuilder,
    ResponseSpecification,
)
from .token_manager import PlaceholderTokenProvider, TokenError, TokenManager

__all__ = [
    "ApiClient",
    "ApiTestFixture",
    "AuthClient",
    "CleanupTracker",
    "ConfigLoader",
    "ConfigurationError",
    "DebitoAutomatico",
    "DebitosAutomaticosClient",
    "EntityType",
    "ExpenseDataFactory",
    "GastoRecurrente",
    "GastoUnico",
    "GastosRecurrentesClient",
    "GastosUnicosClient",
    "HttpClient",
    "HttpClientError",
    "LogDetail",
    "PlaceholderTokenProvider",
    "RequestSpecBuilder",
    "RequestSpecification",
    "ResponseSpecBuilder",
    "ResponseSpecification",
    "ResponseValidator",
    "TokenError",
    "TokenManager",
    "User",
    "ValidationRule",
    "ValidationType",
    "authenticate",
    "global_setup",
    "no_setup_hook",
]
