"""
================================================================================
Request / Response Specifications
================================================================================

Reusable, immutable bundles of HTTP defaults shared by every API test.

A RequestSpecification carries the base URL, content negotiation headers,
extra default headers and the request logging policy. A
ResponseSpecification carries the response logging policy and optional
expectations checked after each exchange.

Specifications are frozen: every "modification" returns a new instance,
so a spec handed to one test can never leak headers into another.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional


JSON_CONTENT_TYPE = "application/json"
AUTHORIZATION_HEADER = "Authorization"


class LogDetail(str, Enum):
    """How much of a request or response gets logged."""
    ALL = "all"
    HEADERS = "headers"
    BODY = "body"
    STATUS = "status"
    NONE = "none"

    @property
    def includes_headers(self) -> bool:
        return self in (LogDetail.ALL, LogDetail.HEADERS)

    @property
    def includes_body(self) -> bool:
        return self in (LogDetail.ALL, LogDetail.BODY)

    @property
    def enabled(self) -> bool:
        return self is not LogDetail.NONE


def _frozen_headers(headers: Optional[Mapping[str, str]]) -> Mapping[str, str]:
    return MappingProxyType(dict(headers or {}))


@dataclass(frozen=True)
class RequestSpecification:
    """Immutable request defaults."""
    base_url: str
    content_type: Optional[str] = JSON_CONTENT_TYPE
    accept: Optional[str] = JSON_CONTENT_TYPE
    headers: Mapping[str, str] = field(default_factory=lambda: _frozen_headers(None))
    log_detail: LogDetail = LogDetail.ALL

    def __post_init__(self) -> None:
        if not isinstance(self.headers, MappingProxyType):
            object.__setattr__(self, "headers", _frozen_headers(self.headers))

    def header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup."""
        for key, value in self.headers.items():
            if key.lower() == name.lower():
                return value
        return None

    def has_header(self, name: str) -> bool:
        return self.header(name) is not None

    def with_header(self, name: str, value: str) -> "RequestSpecification":
        """Derive a spec with ``name`` set to ``value`` (replacing any casing of it)."""
        headers = {k: v for k, v in self.headers.items() if k.lower() != name.lower()}
        headers[name] = value
        return replace(self, headers=_frozen_headers(headers))

    def without_header(self, name: str) -> "RequestSpecification":
        headers = {k: v for k, v in self.headers.items() if k.lower() != name.lower()}
        return replace(self, headers=_frozen_headers(headers))

    def with_log_detail(self, log_detail: LogDetail) -> "RequestSpecification":
        return replace(self, log_detail=log_detail)

    def all_headers(self) -> Dict[str, str]:
        """Headers as sent on the wire: content negotiation first, then extras."""
        result: Dict[str, str] = {}
        if self.content_type:
            result["Content-Type"] = self.content_type
        if self.accept:
            result["Accept"] = self.accept
        result.update(self.headers)
        return result


@dataclass(frozen=True)
class ResponseSpecification:
    """Immutable response defaults and expectations."""
    log_detail: LogDetail = LogDetail.ALL
    expected_status_code: Optional[int] = None
    expected_content_type: Optional[str] = None

    def mismatches(self, status_code: int, content_type: Optional[str]) -> list:
        """Describe every expectation the response fails to meet."""
        problems = []
        if (
            self.expected_status_code is not None
            and status_code != self.expected_status_code
        ):
            problems.append(
                f"Expected status code {self.expected_status_code} but got {status_code}"
            )
        if self.expected_content_type is not None and (
            not content_type or self.expected_content_type not in content_type
        ):
            problems.append(
                f"Expected content type '{self.expected_content_type}' "
                f"but got '{content_type}'"
            )
        return problems


class RequestSpecBuilder:
    """
    Fluent builder for RequestSpecification.

    Usage:
        >>> spec = (
        ...     RequestSpecBuilder()
        ...     .set_base_url("https://staging.example.com")
        ...     .set_content_type(JSON_CONTENT_TYPE)
        ...     .set_accept(JSON_CONTENT_TYPE)
        ...     .log(LogDetail.ALL)
        ...     .build()
        ... )
    """

    def __init__(self) -> None:
        self._base_url = ""
        self._content_type: Optional[str] = None
        self._accept: Optional[str] = None
        self._headers: Dict[str, str] = {}
        self._log_detail = LogDetail.NONE

    def set_base_url(self, base_url: str) -> "RequestSpecBuilder":
        self._base_url = base_url
        return self

    def set_content_type(self, content_type: str) -> "RequestSpecBuilder":
        self._content_type = content_type
        return self

    def set_accept(self, accept: str) -> "RequestSpecBuilder":
        self._accept = accept
        return self

    def add_header(self, name: str, value: str) -> "RequestSpecBuilder":
        self._headers[name] = value
        return self

    def log(self, log_detail: LogDetail) -> "RequestSpecBuilder":
        self._log_detail = log_detail
        return self

    def build(self) -> RequestSpecification:
        return RequestSpecification(
            base_url=self._base_url,
            content_type=self._content_type,
            accept=self._accept,
            headers=self._headers,
            log_detail=self._log_detail,
        )


class ResponseSpecBuilder:
    """Fluent builder for ResponseSpecification."""

    def __init__(self) -> None:
        self._log_detail = LogDetail.NONE
        self._expected_status_code: Optional[int] = None
        self._expected_content_type: Optional[str] = None

    def log(self, log_detail: LogDetail) -> "ResponseSpecBuilder":
        self._log_detail = log_detail
        return self

    def expect_status_code(self, status_code: int) -> "ResponseSpecBuilder":
        self._expected_status_code = status_code
        return self

    def expect_content_type(self, content_type: str) -> "ResponseSpecBuilder":
        self._expected_content_type = content_type
        return self

    def build(self) -> ResponseSpecification:
        return ResponseSpecification(
            log_detail=self._log_detail,
            expected_status_code=self._expected_status_code,
            expected_content_type=self._expected_content_type,
        )


def default_request_spec(base_url: str) -> RequestSpecification:
    """JSON in, JSON out, log everything."""
    return (
        RequestSpecBuilder()
        .set_base_url(base_url)
        .set_content_type(JSON_CONTENT_TYPE)
        .set_accept(JSON_CONTENT_TYPE)
        .log(LogDetail.ALL)
        .build()
    )


def default_response_spec() -> ResponseSpecification:
    return ResponseSpecBuilder().log(LogDetail.ALL).build()


__all__ = [
    "AUTHORIZATION_HEADER",
    "JSON_CONTENT_TYPE",
    "LogDetail",
    "RequestSpecBuilder",
    "RequestSpecification",
    "ResponseSpecBuilder",
    "ResponseSpecification",
    "default_request_spec",
    "default_response_spec",
]
