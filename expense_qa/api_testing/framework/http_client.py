"""
================================================================================
HTTP Client with Allure Integration
================================================================================

Thin httpx wrapper that applies a RequestSpecification / ResponseSpecification
pair to every call:
    - Base URL, Content-Type, Accept and default headers from the request spec
    - Request / response logging driven by the specs' LogDetail
    - Sensitive header and body redaction before anything is logged
    - Allure attachments with cURL command generation
    - Process-wide "log only when validation fails" switch

The client does not retry; a failed call surfaces immediately to the test.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import allure
import httpx
from allure_commons.types import AttachmentType
from loguru import logger

from .specification import (
    LogDetail,
    RequestSpecification,
    ResponseSpecification,
    default_response_spec,
)


# Maximum response length to include in Allure reports
MAX_RESPONSE_LENGTH = 3000

DEFAULT_TIMEOUT = 30.0

MASKED = "***MASKED***"
SENSITIVE_HEADERS = {"authorization", "x-api-key", "cookie", "set-cookie"}
SENSITIVE_BODY_KEYS = ["password", "secret", "token", "api_key", "authorization"]


class HttpClientError(Exception):
    """Base exception for HTTP client errors."""
    pass


@dataclass
class Exchange:
    """One request/response pair, already redacted."""
    method: str
    url: str
    request_headers: Dict[str, Any]
    request_body: Any
    status_code: int
    response_headers: Dict[str, Any]
    response_body: str
    elapsed_ms: float = 0.0

    def describe(self) -> str:
        lines = [
            f"{self.method} {self.url}",
            f"Request headers: {json.dumps(self.request_headers, ensure_ascii=False)}",
        ]
        if self.request_body is not None:
            lines.append(
                f"Request body: {json.dumps(self.request_body, ensure_ascii=False, default=str)}"
            )
        lines.append(f"Status: {self.status_code} ({self.elapsed_ms:.0f} ms)")
        lines.append(f"Response body: {_truncate(self.response_body)}")
        return "\n".join(lines)


@dataclass
class _GlobalHttpSettings:
    log_if_validation_fails: bool = False
    last_exchange: Optional[Exchange] = None


_settings = _GlobalHttpSettings()


def enable_logging_of_request_and_response_if_validation_fails() -> None:
    """Dump the offending exchange whenever a status or spec check fails."""
    _settings.log_if_validation_fails = True


def logging_if_validation_fails_enabled() -> bool:
    return _settings.log_if_validation_fails


def last_exchange() -> Optional[Exchange]:
    return _settings.last_exchange


def log_last_exchange_for_failure() -> None:
    """Log the most recent exchange if the global switch is on."""
    if not _settings.log_if_validation_fails or _settings.last_exchange is None:
        return
    logger.error(
        f"Validation failed for request:\n{_settings.last_exchange.describe()}"
    )


def reset_global_http_settings() -> None:
    """Restore process-wide defaults (used by unit tests)."""
    _settings.log_if_validation_fails = False
    _settings.last_exchange = None


def _truncate(content: str) -> str:
    if len(content) > MAX_RESPONSE_LENGTH:
        return (
            f"{content[:MAX_RESPONSE_LENGTH]}\n\n"
            f"... [Truncated, full length: {len(content)} chars] ..."
        )
    return content


class HttpClient:
    """
    HTTP client bound to one request/response specification pair.

    Usage:
        >>> spec = default_request_spec("http://localhost:3030")
        >>> with HttpClient(spec) as client:
        ...     response = client.get("/api/gastos-unicos")
        ...     print(response.json())
    """

    def __init__(
        self,
        request_spec: RequestSpecification,
        response_spec: Optional[ResponseSpecification] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """
        Args:
            request_spec: Request defaults applied to every call
            response_spec: Response logging policy and expectations
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (e.g. httpx.MockTransport)
        """
        self.request_spec = request_spec
        self.response_spec = response_spec or default_response_spec()
        self.timeout = timeout
        self._transport = transport
        self.session: Optional[httpx.Client] = None

    @property
    def base_url(self) -> str:
        return self.request_spec.base_url

    def __enter__(self) -> "HttpClient":
        """Enter context manager - initialize HTTP session."""
        self.session = httpx.Client(
            base_url=self.base_url,
            headers=self.request_spec.all_headers(),
            timeout=httpx.Timeout(self.timeout),
            transport=self._transport,
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit context manager - close HTTP session."""
        if self.session:
            self.session.close()
            self.session = None

    def request(
        self,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """
        Execute HTTP request and report it.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE, PATCH)
            url: Request URL (relative to base_url)
            **kwargs: Additional arguments passed to httpx.Client.request

        Returns:
            httpx.Response object

        Raises:
            HttpClientError: When used outside a context manager
            AssertionError: When the response spec's expectations are not met
        """
        if self.session is None:
            raise HttpClientError(
                "HttpClient must be used within a context manager. "
                "Use 'with HttpClient(spec) as client:'"
            )

        self._log_request(method, url, kwargs)
        response = self.session.request(method, url, **kwargs)

        exchange = self._record_exchange(method, url, kwargs, response)
        self._log_response(response)
        self._log_to_allure(exchange, kwargs.get("params"))
        self._check_response_spec(response)
        return response

    def get(self, url: str, **kwargs: Any) -> httpx.Response:
        """Execute GET request."""
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs: Any) -> httpx.Response:
        """Execute POST request."""
        return self.request("POST", url, **kwargs)

    def put(self, url: str, **kwargs: Any) -> httpx.Response:
        """Execute PUT request."""
        return self.request("PUT", url, **kwargs)

    def patch(self, url: str, **kwargs: Any) -> httpx.Response:
        """Execute PATCH request."""
        return self.request("PATCH", url, **kwargs)

    def delete(self, url: str, **kwargs: Any) -> httpx.Response:
        """Execute DELETE request."""
        return self.request("DELETE", url, **kwargs)

    def _full_url(self, url: str) -> str:
        return f"{self.base_url.rstrip('/')}/{url.lstrip('/')}"

    def _merged_headers(self, kwargs: Dict[str, Any]) -> Dict[str, Any]:
        headers = self.request_spec.all_headers()
        headers.update(kwargs.get("headers") or {})
        return headers

    def _log_request(self, method: str, url: str, kwargs: Dict[str, Any]) -> None:
        detail = self.request_spec.log_detail
        if not detail.enabled:
            return

        logger.info(f"Request: {method} {self._full_url(url)}")
        if detail.includes_headers:
            logger.debug(f"Request headers: {self._redact_headers(self._merged_headers(kwargs))}")
        if detail.includes_body and kwargs.get("json") is not None:
            logger.debug(f"Request body: {self._redact_body(kwargs['json'])}")

    def _log_response(self, response: httpx.Response) -> None:
        detail = self.response_spec.log_detail
        if not detail.enabled:
            return

        logger.info(f"Response: {response.status_code} {response.reason_phrase}")
        if detail.includes_headers:
            logger.debug(f"Response headers: {self._redact_headers(dict(response.headers))}")
        if detail.includes_body:
            logger.debug(f"Response body: {_truncate(response.text or '<empty>')}")

    def _record_exchange(
        self,
        method: str,
        url: str,
        kwargs: Dict[str, Any],
        response: httpx.Response,
    ) -> Exchange:
        full_url = self._full_url(url)
        params = kwargs.get("params")
        if params:
            query_string = "&".join(
                f"{k}={v}" for k, v in params.items() if v is not None
            )
            if query_string:
                full_url = f"{full_url}?{query_string}"

        try:
            elapsed_ms = response.elapsed.total_seconds() * 1000
        except RuntimeError:
            elapsed_ms = 0.0

        exchange = Exchange(
            method=method,
            url=full_url,
            request_headers=self._redact_headers(self._merged_headers(kwargs)),
            request_body=self._redact_body(kwargs.get("json")),
            status_code=response.status_code,
            response_headers=self._redact_headers(dict(response.headers)),
            response_body=response.text or "<empty>",
            elapsed_ms=elapsed_ms,
        )
        _settings.last_exchange = exchange
        return exchange

    def _check_response_spec(self, response: httpx.Response) -> None:
        problems = self.response_spec.mismatches(
            response.status_code, response.headers.get("content-type")
        )
        if problems:
            log_last_exchange_for_failure()
            raise AssertionError("; ".join(problems))

    def _log_to_allure(
        self,
        exchange: Exchange,
        params: Optional[Dict[str, Any]],
    ) -> None:
        """
        Log HTTP request/response to Allure report.

        Attaches:
            - Request URL with query parameters
            - Request headers
            - Request body (if present)
            - cURL command for reproduction
            - Response status
            - Response body (truncated if too long)
        """
        status_icon = "✅" if exchange.status_code < 400 else "❌"
        path = exchange.url[len(self.base_url.rstrip("/")):] or "/"
        step_title = f"{status_icon} {exchange.method} {path} → {exchange.status_code}"

        with allure.step(step_title):
            allure.attach(
                exchange.url,
                name="🔗 Request URL",
                attachment_type=AttachmentType.TEXT
            )

            if exchange.request_headers:
                allure.attach(
                    json.dumps(exchange.request_headers, ensure_ascii=False, indent=2),
                    name="📤 Request Headers",
                    attachment_type=AttachmentType.JSON
                )

            if exchange.request_body:
                allure.attach(
                    json.dumps(exchange.request_body, ensure_ascii=False, indent=2, default=str),
                    name="📤 Request Body",
                    attachment_type=AttachmentType.JSON
                )

            if params:
                allure.attach(
                    json.dumps(params, ensure_ascii=False, indent=2, default=str),
                    name="📤 Query Params",
                    attachment_type=AttachmentType.JSON
                )

            allure.attach(
                self._build_curl(
                    exchange.method, exchange.url,
                    exchange.request_headers, exchange.request_body,
                ),
                name="🔧 cURL Command",
                attachment_type=AttachmentType.TEXT
            )

            allure.attach(
                f"{status_icon} {exchange.status_code}",
                name="📥 Response Status",
                attachment_type=AttachmentType.TEXT
            )

            try:
                response_content = json.dumps(
                    json.loads(exchange.response_body), ensure_ascii=False, indent=2
                )
            except (json.JSONDecodeError, ValueError):
                response_content = exchange.response_body

            allure.attach(
                _truncate(response_content),
                name="📥 Response Body",
                attachment_type=AttachmentType.JSON
            )

    def _redact_headers(self, headers: Dict[str, Any]) -> Dict[str, Any]:
        """
        Mask sensitive header values before logging.
        """
        masked = {}
        for key, value in headers.items():
            if key.lower() in SENSITIVE_HEADERS:
                masked[key] = MASKED
            else:
                masked[key] = value
        return masked

    def _redact_body(self, payload: Any) -> Any:
        """
        Recursively mask sensitive fields in request bodies.
        """
        if isinstance(payload, dict):
            redacted = {}
            for key, value in payload.items():
                if any(token in key.lower() for token in SENSITIVE_BODY_KEYS):
                    redacted[key] = MASKED
                else:
                    redacted[key] = self._redact_body(value)
            return redacted
        if isinstance(payload, list):
            return [self._redact_body(item) for item in payload]
        return payload

    def _build_curl(
        self,
        method: str,
        url: str,
        headers: Dict[str, Any],
        body: Any,
    ) -> str:
        """
        Build cURL command for request reproduction.

        Headers and body are expected to be redacted already.
        """
        parts = [f"curl -X {method}"]

        for key, value in headers.items():
            parts.append(f"-H '{key}: {value}'")

        if body:
            body_json = json.dumps(body, ensure_ascii=False, default=str)
            parts.append(f"-d '{body_json}'")

        parts.append(f"'{url}'")

        return " \\\n  ".join(parts)


__all__ = [
    "Exchange",
    "HttpClient",
    "HttpClientError",
    "enable_logging_of_request_and_response_if_validation_fails",
    "last_exchange",
    "log_last_exchange_for_failure",
    "logging_if_validation_fails_enabled",
    "reset_global_http_settings",
]
