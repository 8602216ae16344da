"""
================================================================================
Token Manager with Cross-Process Caching
================================================================================

Issues the bearer credential API tests authenticate with:
    - Logs in with the dedicated API test user
    - Registers that user on first use (login answers 401)
    - Caches the JWT in memory and in a file shared between workers,
      guarded by filelock
    - Supplies deliberately broken tokens for security tests

PlaceholderTokenProvider is the offline stand-in: it always returns the
same fixed header value and never touches the network.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

import httpx
from filelock import FileLock
from loguru import logger

from .api_clients import AuthClient
from .config_loader import ConfigLoader
from .http_client import HttpClient
from .models import User
from .specification import LogDetail, default_request_spec


TOKEN_CACHE_DIR = Path(__file__).parent.parent.parent.parent / ".token_cache"
TOKEN_CACHE_FILE = TOKEN_CACHE_DIR / "cache.json"
TOKEN_LOCK_FILE = TOKEN_CACHE_DIR / "cache.lock"

PLACEHOLDER_AUTHORIZATION = "Bearer your-jwt-token-here"

DEFAULT_TEST_USER = {
    "nombre": "API Test User",
    "email": "apitest@restassured.com",
    "password": "APITest123!",
}


class TokenError(Exception):
    """Raised when token operations fail."""
    pass


class PlaceholderTokenProvider:
    """Fixed credential for offline runs; replace with TokenManager against a live API."""

    def authorization_header(self) -> str:
        return PLACEHOLDER_AUTHORIZATION


def looks_like_jwt(token: Optional[str]) -> bool:
    """A JWT has three non-empty dot-separated parts."""
    if not token or not token.strip():
        return False
    parts = token.split(".")
    return len(parts) == 3 and all(parts)


class TokenManager:
    """
    Credential-issuing collaborator backed by the API's auth endpoints.

    Usage:
        >>> manager = TokenManager(config)
        >>> manager.authorization_header()
        'Bearer eyJhbGciOi...'
    """

    def __init__(
        self,
        config: ConfigLoader,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """
        Args:
            config: Configuration of the current run
            transport: Optional httpx transport (for offline tests)
        """
        self.config = config
        self._transport = transport
        self._token: Optional[str] = None
        self.test_user = User(
            nombre=config.get("auth.nombre", DEFAULT_TEST_USER["nombre"]),
            email=config.get("auth.email", DEFAULT_TEST_USER["email"]),
            password=config.get("auth.password", DEFAULT_TEST_USER["password"]),
        )

    @property
    def _cache_key(self) -> str:
        return f"{self.config.base_url()}|{self.test_user.email}"

    def authorization_header(self) -> str:
        return f"Bearer {self.get_token()}"

    def get_token(self) -> str:
        """
        Return a JWT for the test user, logging in only when needed.

        Checks, in order: in-memory token, shared file cache, the API.
        """
        if looks_like_jwt(self._token):
            return self._token

        cached = self._load_cached_token()
        if looks_like_jwt(cached):
            self._token = cached
            return self._token

        TOKEN_CACHE_DIR.mkdir(parents=True, exist_ok=True)
        with FileLock(str(TOKEN_LOCK_FILE)):
            # Another worker may have logged in while we waited
            cached = self._load_cached_token()
            if looks_like_jwt(cached):
                self._token = cached
                return self._token

            self._token = self._request_new_token()
            self._save_token_to_cache()

        logger.info("JWT token obtained for API tests")
        return self._token

    def _request_new_token(self) -> str:
        """Login, registering the test user first if it does not exist yet."""
        spec = default_request_spec(self.config.base_url()).with_log_detail(LogDetail.STATUS)
        try:
            with HttpClient(spec, timeout=self.config.timeout(), transport=self._transport) as http:
                auth = AuthClient(http, self.config)
                response = auth.login(self.test_user)

                if response.status_code == 401:
                    logger.info("Registering new test user for API tests")
                    register_response = auth.register(self.test_user)
                    if register_response.status_code != 201:
                        raise TokenError(
                            f"Failed to register test user: {register_response.text}"
                        )
                    response = auth.login(self.test_user)
                    if response.status_code != 200:
                        raise TokenError(f"Failed to login test user: {response.text}")
                elif response.status_code == 200:
                    logger.info("Using existing test user for authentication")
                else:
                    raise TokenError(
                        f"Unexpected login response: {response.status_code} - {response.text}"
                    )

                token = auth.extract_token(response)
        except httpx.HTTPError as e:
            raise TokenError(f"Failed to fetch token: {e}") from e

        if not token:
            raise TokenError("Failed to extract JWT token from login response")
        return token

    def _load_cached_token(self) -> Optional[str]:
        """Load token from file cache."""
        try:
            if TOKEN_CACHE_FILE.exists():
                with open(TOKEN_CACHE_FILE, "r") as f:
                    data: Dict[str, Any] = json.load(f)
                return data.get(self._cache_key)
        except (json.JSONDecodeError, IOError) as e:
            logger.debug(f"Ignoring unreadable token cache: {e}")
        return None

    def _save_token_to_cache(self) -> None:
        """Save current token to file cache, keeping other environments' entries."""
        data: Dict[str, Any] = {}
        try:
            if TOKEN_CACHE_FILE.exists():
                with open(TOKEN_CACHE_FILE, "r") as f:
                    data = json.load(f)
        except (json.JSONDecodeError, IOError):
            data = {}

        data[self._cache_key] = self._token
        try:
            with open(TOKEN_CACHE_FILE, "w") as f:
                json.dump(data, f)
        except IOError as e:
            logger.warning(f"Failed to cache token: {e}")

    def invalidate(self) -> None:
        """
        Forget the current token.

        Forces next call to log in again.
        """
        self._token = None
        try:
            if TOKEN_CACHE_FILE.exists():
                with open(TOKEN_CACHE_FILE, "r") as f:
                    data = json.load(f)
                data.pop(self._cache_key, None)
                with open(TOKEN_CACHE_FILE, "w") as f:
                    json.dump(data, f)
        except (json.JSONDecodeError, IOError):
            TOKEN_CACHE_FILE.unlink(missing_ok=True)
        logger.info("Cleared cached JWT token")

    # Tokens for security testing

    @staticmethod
    def invalid_token() -> str:
        return "invalid.jwt.token.for.testing"

    @staticmethod
    def malformed_token() -> str:
        return "malformed-token-missing-dots"

    @staticmethod
    def expired_token() -> str:
        return (
            "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9."
            "eyJpZCI6OTk5LCJlbWFpbCI6ImV4cGlyZWRAZXhhbXBsZS5jb20iLCJleHAiOjE2MzI0ODc2MDB9."
            "expired"
        )


__all__ = [
    "PLACEHOLDER_AUTHORIZATION",
    "PlaceholderTokenProvider",
    "TokenError",
    "TokenManager",
    "looks_like_jwt",
]
