"""
================================================================================
Configuration Loader
================================================================================

YAML-based, per-environment configuration with environment variable overrides.

Features:
    - One YAML file describing every environment (local, staging, ...)
    - Active environment selected by TEST_ENV (defaults to "local")
    - API_BASE_URL overrides the active environment's base URL
    - Dot notation access with env var override (api.timeout -> API_TIMEOUT)
    - Named endpoint lookup (gastos_unicos -> /api/gastos-unicos)

The loader is an explicitly constructed value: build it once per test run
and pass it to whoever needs it. It is never mutated after construction.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from loguru import logger


DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent.parent / "config" / "config.yaml"

DEFAULT_ENVIRONMENT = "local"
DEFAULT_BASE_URL = "http://localhost:3030"
DEFAULT_TIMEOUT = 30


class ConfigurationError(Exception):
    """Raised when configuration loading or access fails."""
    pass


class ConfigLoader:
    """
    Read-only configuration for one test run.

    Resolution order for the base URL (highest first):
        1. API_BASE_URL environment variable
        2. environments.<env>.base_url in the YAML file
        3. DEFAULT_BASE_URL

    Usage:
        >>> config = ConfigLoader(environment="staging")
        >>> config.current_environment()
        'staging'
        >>> config.endpoint("gastos_unicos")
        '/api/gastos-unicos'
    """

    def __init__(
        self,
        config_path: Optional[Path] = None,
        environment: Optional[str] = None,
    ) -> None:
        """
        Load configuration.

        Args:
            config_path: YAML file. Uses DEFAULT_CONFIG_PATH if not specified.
            environment: Environment name. Falls back to TEST_ENV, then "local".
        """
        self._config_path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
        self._config: Dict[str, Any] = self._load_config()
        self._environment = (
            environment or os.environ.get("TEST_ENV") or DEFAULT_ENVIRONMENT
        )

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file."""
        if not self._config_path.exists():
            logger.warning(
                f"Configuration file not found: {self._config_path}. "
                f"Using defaults and environment variables only."
            )
            return {}

        try:
            with open(self._config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in configuration file: {e}"
            ) from e

        logger.debug(f"Loaded configuration from: {self._config_path}")
        return data

    @property
    def config_path(self) -> Path:
        return self._config_path

    def current_environment(self) -> str:
        """Name of the environment this run targets."""
        return self._environment

    def base_url(self) -> str:
        """Base URL of the API under test for the active environment."""
        env_value = os.environ.get("API_BASE_URL")
        if env_value:
            return env_value
        return str(self._environment_property("base_url", DEFAULT_BASE_URL))

    def timeout(self) -> int:
        """Request timeout in seconds for the active environment."""
        value = self._environment_property("timeout", DEFAULT_TIMEOUT)
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(
                f"Invalid timeout for environment '{self._environment}': {value!r}"
            ) from e

    def endpoint(self, name: str) -> str:
        """
        Resolve a named endpoint path.

        Raises:
            ConfigurationError: If the endpoint is not configured
        """
        endpoints = self.get_section("api").get("endpoints") or {}
        path = endpoints.get(name)
        if not path:
            raise ConfigurationError(f"Endpoint not configured: {name}")
        return path

    def full_endpoint_url(self, name: str) -> str:
        return f"{self.base_url().rstrip('/')}{self.endpoint(name)}"

    def test_data(self) -> Dict[str, Any]:
        return self.get_section("test_data")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by dot-notation path.

        First checks environment variables, then YAML config, then default.

        Examples:
            >>> config.get("auth.email")
            'apitest@restassured.com'

            >>> config.get("logging.level", "INFO")
            'INFO'
        """
        env_key = key.upper().replace(".", "_")
        env_value = os.environ.get(env_key)
        if env_value is not None:
            return self._convert_type(env_value, default)

        value: Any = self._config
        for part in key.split("."):
            if isinstance(value, dict):
                value = value.get(part)
            else:
                value = None

            if value is None:
                return default

        return value

    def get_section(self, section: str) -> Dict[str, Any]:
        """
        Get entire configuration section.

        Returns:
            Section dictionary or empty dict if not found
        """
        return self._config.get(section) or {}

    def _environment_property(self, prop: str, default: Any) -> Any:
        environments = self.get_section("environments")
        if not environments:
            return default

        current = environments.get(self._environment)
        if current is None:
            raise ConfigurationError(
                f"Unknown environment '{self._environment}'. "
                f"Configured: {', '.join(sorted(environments))}"
            )
        value = current.get(prop)
        return default if value is None else value

    def _convert_type(self, value: str, reference: Any) -> Any:
        """
        Convert string value to match reference type.

        Used for environment variables which are always strings.
        """
        if reference is None:
            return value

        if isinstance(reference, bool):
            return value.lower() in ("true", "1", "yes", "on")
        if isinstance(reference, int):
            try:
                return int(value)
            except ValueError:
                return value
        if isinstance(reference, float):
            try:
                return float(value)
            except ValueError:
                return value

        return value


__all__ = [
    "ConfigLoader",
    "ConfigurationError",
    "DEFAULT_CONFIG_PATH",
]
