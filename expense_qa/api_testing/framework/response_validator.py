# ================================================================================
# Response Validator
# ================================================================================
#
# Utilities for validating API responses of the expense tracking API.
#
# Two layers:
#   - Rule-based validation of a parsed body (ValidationRule / validate)
#   - Response-level checks raising AssertionError directly
#     (status code, content type, response time, field presence, ...)
#
# Field paths are JSONPath expressions parsed by jsonpath_ng, e.g.
# "data.id", "data[0].monto", "$.data.descripcion".
#
# ================================================================================

import re
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Tuple

import allure
import httpx
from jsonpath_ng import parse as jsonpath_parse
from jsonpath_ng.exceptions import JSONPathError
from loguru import logger

from .http_client import log_last_exchange_for_failure


DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}")
DATE_FORMATS = (
    "%Y-%m-%d",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S.%f%z",
)


class ValidationType(Enum):
    """Enumeration of supported validation types."""
    EQUAL = "equal"
    NOT_EQUAL = "not_equal"
    EXISTS = "exists"
    IS_NULL = "is_null"
    IS_NOT_NULL = "is_not_null"
    CONTAINS = "contains"
    REGEX_MATCH = "regex_match"
    LENGTH_EQUAL = "length_equal"
    LENGTH_GREATER_THAN = "length_greater_than"
    TYPE_CHECK = "type_check"
    RANGE = "range"
    POSITIVE = "positive"
    IN_LIST = "in_list"


@dataclass
class ValidationRule:
    """
    A single validation rule applied to a response field.

    Attributes:
        field: JSONPath of the field to validate
        validation_type: The type of validation to perform
        expected: The expected value or pattern
        description: Human-readable description of the validation
        required: Whether the field must exist
    """
    field: str
    validation_type: ValidationType
    expected: Any = None
    description: str = ""
    required: bool = True


@dataclass
class ValidationResult:
    """Outcome of applying one ValidationRule."""
    passed: bool
    rule: ValidationRule
    actual_value: Any = None
    error_message: str = ""


class FieldNotFound(KeyError):
    """Raised when a JSONPath matches nothing."""


def find_values(data: Any, path: str) -> List[Any]:
    """
    All values matched by a JSONPath expression.

    Raises:
        ValueError: If the expression cannot be parsed
    """
    try:
        expression = jsonpath_parse(path)
    except JSONPathError as e:
        raise ValueError(f"Invalid field path '{path}': {e}") from e
    return [match.value for match in expression.find(data)]


def get_value(data: Any, path: str) -> Any:
    """First value matched by ``path``; raises FieldNotFound if none."""
    values = find_values(data, path)
    if not values:
        raise FieldNotFound(path)
    return values[0]


def _parse_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as e:
        _fail(f"Response body is not valid JSON: {e}")


def _fail(message: str) -> None:
    logger.error(message)
    log_last_exchange_for_failure()
    raise AssertionError(message)


class ResponseValidator:
    """
    Response validator for the expense API tests.

    Example:
        validator = ResponseValidator()
        validator.validate_status_code(response, 201)
        validator.validate_field_exists(response, "data.id")
        validator.validate_and_assert(response.json(), [
            ValidationRule("data.descripcion", ValidationType.EQUAL, "Reparación auto"),
            ValidationRule("data.monto", ValidationType.POSITIVE),
        ])
    """

    def __init__(self):
        """Initialize the response validator."""
        self._validation_handlers = {
            ValidationType.EQUAL: self._validate_equal,
            ValidationType.NOT_EQUAL: self._validate_not_equal,
            ValidationType.EXISTS: self._validate_exists,
            ValidationType.IS_NULL: self._validate_is_null,
            ValidationType.IS_NOT_NULL: self._validate_is_not_null,
            ValidationType.CONTAINS: self._validate_contains,
            ValidationType.REGEX_MATCH: self._validate_regex_match,
            ValidationType.LENGTH_EQUAL: self._validate_length_equal,
            ValidationType.LENGTH_GREATER_THAN: self._validate_length_greater_than,
            ValidationType.TYPE_CHECK: self._validate_type_check,
            ValidationType.RANGE: self._validate_range,
            ValidationType.POSITIVE: self._validate_positive,
            ValidationType.IN_LIST: self._validate_in_list,
        }

    # ------------------------------------------------------------------
    # Rule-based validation
    # ------------------------------------------------------------------

    def validate(
        self,
        response_data: Dict[str, Any],
        rules: List[ValidationRule]
    ) -> List[ValidationResult]:
        """
        Validate response data against a list of validation rules.

        Returns:
            List of ValidationResult objects, one for each rule
        """
        results = []
        for rule in rules:
            result = self._apply_rule(response_data, rule)
            results.append(result)

            status_icon = "✅" if result.passed else "❌"
            log_msg = f"{status_icon} {rule.description or rule.field}: {result.passed}"
            if result.passed:
                logger.debug(log_msg)
            else:
                logger.warning(f"{log_msg} - {result.error_message}")

        self._attach_validation_summary(results)
        return results

    def validate_and_assert(
        self,
        response_data: Dict[str, Any],
        rules: List[ValidationRule],
    ) -> None:
        """
        Validate response and raise assertion error if any rule fails.

        Raises:
            AssertionError: If any validation rule fails
        """
        results = self.validate(response_data, rules)
        failures = [r for r in results if not r.passed]

        if failures:
            error_text = "\n".join(
                f"- {f.rule.field}: {f.error_message}" for f in failures
            )
            _fail(
                f"Response validation failed ({len(failures)}/{len(results)} rules):\n"
                f"{error_text}"
            )

    def _apply_rule(
        self,
        response_data: Dict[str, Any],
        rule: ValidationRule
    ) -> ValidationResult:
        """Apply a single validation rule to the response data."""
        try:
            actual_value = get_value(response_data, rule.field)
        except FieldNotFound:
            if rule.required:
                return ValidationResult(
                    passed=False,
                    rule=rule,
                    error_message=f"Required field not found: {rule.field}"
                )
            return ValidationResult(
                passed=True,
                rule=rule,
                error_message=f"Optional field not found: {rule.field}"
            )
        except ValueError as e:
            return ValidationResult(passed=False, rule=rule, error_message=str(e))

        handler = self._validation_handlers.get(rule.validation_type)
        if handler is None:
            return ValidationResult(
                passed=False,
                rule=rule,
                actual_value=actual_value,
                error_message=f"Unknown validation type: {rule.validation_type}"
            )

        try:
            passed, error_message = handler(actual_value, rule.expected)
        except (AttributeError, TypeError, ValueError) as e:
            passed, error_message = False, f"Validation error: {e}"

        return ValidationResult(
            passed=passed,
            rule=rule,
            actual_value=actual_value,
            error_message=error_message
        )

    # ------------------------------------------------------------------
    # Response-level checks
    # ------------------------------------------------------------------

    @allure.step("Validate status code is {expected_status_code}")
    def validate_status_code(self, response: httpx.Response, expected_status_code: int) -> None:
        if response.status_code != expected_status_code:
            _fail(
                f"Expected status code {expected_status_code} "
                f"but got {response.status_code}"
            )

    @allure.step("Validate response time is less than {max_response_time_ms}ms")
    def validate_response_time(self, response: httpx.Response, max_response_time_ms: float) -> None:
        elapsed_ms = response.elapsed.total_seconds() * 1000
        if elapsed_ms >= max_response_time_ms:
            _fail(
                f"Response time {elapsed_ms:.0f}ms exceeds {max_response_time_ms}ms"
            )

    @allure.step("Validate content type is {expected_content_type}")
    def validate_content_type(self, response: httpx.Response, expected_content_type: str) -> None:
        content_type = response.headers.get("content-type", "")
        if expected_content_type not in content_type:
            _fail(
                f"Expected content type '{expected_content_type}' but got '{content_type}'"
            )

    @allure.step("Validate response contains required headers")
    def validate_required_headers(self, response: httpx.Response, *header_names: str) -> None:
        missing = [name for name in header_names if name not in response.headers]
        if missing:
            _fail(f"Missing required headers: {', '.join(missing)}")

    @allure.step("Validate response body is not empty")
    def validate_body_not_empty(self, response: httpx.Response) -> None:
        if not response.content or not response.content.strip():
            _fail("Response body is empty")

    @allure.step("Validate field {field_path} exists in response")
    def validate_field_exists(self, response: httpx.Response, field_path: str) -> None:
        """Passes when the path matches at least one node, even a null one."""
        if not find_values(_parse_json(response), field_path):
            _fail(f"Field '{field_path}' not found in response")

    @allure.step("Validate field {field_path} equals {expected_value}")
    def validate_field_value(self, response: httpx.Response, field_path: str, expected_value: Any) -> None:
        actual = self._required_value(response, field_path)
        passed, error = self._validate_equal(actual, expected_value)
        if not passed:
            _fail(f"Field '{field_path}': {error}")

    @allure.step("Validate field {field_path} contains {expected_value}")
    def validate_field_contains(self, response: httpx.Response, field_path: str, expected_value: str) -> None:
        actual = self._required_value(response, field_path)
        passed, error = self._validate_contains(actual, expected_value)
        if not passed:
            _fail(f"Field '{field_path}': {error}")

    @allure.step("Validate array field {field_path} has size {expected_size}")
    def validate_array_size(self, response: httpx.Response, field_path: str, expected_size: int) -> None:
        actual = self._required_value(response, field_path)
        if not isinstance(actual, list):
            _fail(f"Field '{field_path}' is not an array")
        if len(actual) != expected_size:
            _fail(f"Expected array '{field_path}' size {expected_size}, got {len(actual)}")

    @allure.step("Validate array field {field_path} is not empty")
    def validate_array_not_empty(self, response: httpx.Response, field_path: str) -> None:
        actual = self._required_value(response, field_path)
        if not isinstance(actual, list) or not actual:
            _fail(f"Expected non-empty array at '{field_path}', got {actual!r}")

    @allure.step("Validate numeric field {field_path} is positive")
    def validate_positive_number(self, response: httpx.Response, field_path: str) -> None:
        actual = self._required_value(response, field_path)
        passed, error = self._validate_positive(actual, None)
        if not passed:
            _fail(f"Field '{field_path}': {error}")

    @allure.step("Validate date field {field_path} format")
    def validate_date_format(self, response: httpx.Response, field_path: str) -> None:
        actual = self._required_value(response, field_path)
        if not is_valid_date(actual):
            _fail(f"Field '{field_path}' is not a valid date: {actual!r}")

    def _required_value(self, response: httpx.Response, field_path: str) -> Any:
        try:
            return get_value(_parse_json(response), field_path)
        except FieldNotFound:
            _fail(f"Field '{field_path}' not found in response")

    # ------------------------------------------------------------------
    # Validation handlers
    # ------------------------------------------------------------------

    def _validate_equal(self, actual: Any, expected: Any) -> Tuple[bool, str]:
        """
        Equality. When one side is a real number, a numeric string on the
        other side compares by value ("500.00" == 500 for amounts). Two
        strings always compare as text.
        """
        if (_is_real_number(actual) or _is_real_number(expected)) and \
                _is_number(actual) and _is_number(expected):
            passed = float(actual) == float(expected)
        else:
            passed = actual == expected
        error = "" if passed else f"Expected '{expected}', got '{actual}'"
        return passed, error

    def _validate_not_equal(self, actual: Any, expected: Any) -> Tuple[bool, str]:
        passed, _ = self._validate_equal(actual, expected)
        return (not passed), ("" if not passed else f"Expected not equal to '{expected}'")

    def _validate_exists(self, actual: Any, expected: Any) -> Tuple[bool, str]:
        # Reaching the handler means the path matched
        return True, ""

    def _validate_is_null(self, actual: Any, expected: Any) -> Tuple[bool, str]:
        passed = actual is None
        return passed, ("" if passed else f"Expected null, got '{actual}'")

    def _validate_is_not_null(self, actual: Any, expected: Any) -> Tuple[bool, str]:
        passed = actual is not None
        return passed, ("" if passed else "Expected non-null value, got null")

    def _validate_contains(self, actual: Any, expected: Any) -> Tuple[bool, str]:
        if isinstance(actual, list):
            passed = expected in actual
        else:
            passed = str(expected) in str(actual)
        return passed, ("" if passed else f"'{actual}' does not contain '{expected}'")

    def _validate_regex_match(self, actual: Any, expected: str) -> Tuple[bool, str]:
        try:
            passed = re.match(expected, str(actual)) is not None
        except re.error as e:
            return False, f"Invalid regex pattern: {e}"
        return passed, ("" if passed else f"'{actual}' does not match pattern '{expected}'")

    def _validate_length_equal(self, actual: Any, expected: int) -> Tuple[bool, str]:
        actual_len = len(actual) if hasattr(actual, '__len__') else 0
        passed = actual_len == expected
        return passed, ("" if passed else f"Expected length {expected}, got {actual_len}")

    def _validate_length_greater_than(self, actual: Any, expected: int) -> Tuple[bool, str]:
        actual_len = len(actual) if hasattr(actual, '__len__') else 0
        passed = actual_len > expected
        return passed, ("" if passed else f"Expected length > {expected}, got {actual_len}")

    def _validate_type_check(self, actual: Any, expected: str) -> Tuple[bool, str]:
        type_map = {
            'string': str,
            'int': int,
            'integer': int,
            'number': (int, float),
            'bool': bool,
            'boolean': bool,
            'list': list,
            'array': list,
            'dict': dict,
            'object': dict,
            'null': type(None),
        }
        if not isinstance(expected, str):
            return False, f"Type name must be a string, got {expected!r}"
        expected_type = type_map.get(expected.lower())
        if expected_type is None:
            return False, f"Unknown type: {expected}"

        passed = isinstance(actual, expected_type)
        if expected_type in (int, (int, float)) and isinstance(actual, bool):
            passed = False
        return passed, ("" if passed else f"Expected type {expected}, got {type(actual).__name__}")

    def _validate_range(self, actual: Any, expected: Dict) -> Tuple[bool, str]:
        min_val = expected.get('min')
        max_val = expected.get('max')
        value = float(actual)

        if min_val is not None and value < min_val:
            return False, f"Value {actual} is less than minimum {min_val}"
        if max_val is not None and value > max_val:
            return False, f"Value {actual} is greater than maximum {max_val}"
        return True, ""

    def _validate_positive(self, actual: Any, expected: Any) -> Tuple[bool, str]:
        if not _is_number(actual):
            return False, f"Expected a number, got '{actual}'"
        passed = float(actual) > 0
        return passed, ("" if passed else f"Expected positive number, got {actual}")

    def _validate_in_list(self, actual: Any, expected: List) -> Tuple[bool, str]:
        passed = actual in expected
        return passed, ("" if passed else f"'{actual}' not in {expected}")

    def _attach_validation_summary(self, results: List[ValidationResult]) -> None:
        """Attach validation summary to Allure report."""
        passed_count = sum(1 for r in results if r.passed)

        summary_lines = [
            f"Total Rules: {len(results)}",
            f"Passed: {passed_count}",
            f"Failed: {len(results) - passed_count}",
            "",
            "Details:",
            "-" * 40
        ]
        for result in results:
            status = "✅ PASS" if result.passed else "❌ FAIL"
            line = f"{status} | {result.rule.field}"
            if not result.passed:
                line += f" | {result.error_message}"
            summary_lines.append(line)

        allure.attach(
            "\n".join(summary_lines),
            name="Validation Summary",
            attachment_type=allure.attachment_type.TEXT
        )


def _is_real_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    """Numbers and numeric strings ("500.00"); booleans are not numbers."""
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float, Decimal)):
        return True
    if isinstance(value, str):
        try:
            float(value)
        except ValueError:
            return False
        return True
    return False


def is_valid_date(value: Any) -> bool:
    """``YYYY-MM-DD`` optionally followed by a time part and a ``Z`` or ``+HH:MM`` offset."""
    if not isinstance(value, str) or not DATE_PATTERN.match(value):
        return False
    candidate = value.rstrip("Z")
    for fmt in DATE_FORMATS:
        try:
            datetime.strptime(candidate, fmt)
            return True
        except ValueError:
            continue
    return False


__all__ = [
    "FieldNotFound",
    "ResponseValidator",
    "ValidationResult",
    "ValidationRule",
    "ValidationType",
    "find_values",
    "get_value",
    "is_valid_date",
]
