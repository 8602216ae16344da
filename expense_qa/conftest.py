"""
================================================================================
Root Pytest Configuration
================================================================================

This module provides the pytest configuration for the expense API harness.
It registers common markers and tags collected items.

================================================================================
"""

import pytest


def pytest_configure(config):
    """Configure pytest with project-wide custom markers."""

    # Priority markers
    config.addinivalue_line(
        "markers", "P0: Critical priority tests - must pass for deployment"
    )
    config.addinivalue_line(
        "markers", "P1: High priority tests - important functionality"
    )
    config.addinivalue_line(
        "markers", "P2: Medium priority tests - edge cases and minor features"
    )

    # Test type markers
    config.addinivalue_line(
        "markers", "smoke: Quick verification tests"
    )
    config.addinivalue_line(
        "markers", "regression: Full regression test suite"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests simulating user flows"
    )
    config.addinivalue_line(
        "markers", "unit: Offline tests of the harness itself"
    )
    config.addinivalue_line(
        "markers", "requires_external: Tests requiring a live expense API"
    )

    # Domain markers
    config.addinivalue_line(
        "markers", "api: API-specific tests"
    )
    config.addinivalue_line(
        "markers", "gastos_unicos: Tests related to one-off expenses"
    )
    config.addinivalue_line(
        "markers", "gastos_recurrentes: Tests related to recurring expenses"
    )
    config.addinivalue_line(
        "markers", "debitos_automaticos: Tests related to automatic debits"
    )
    config.addinivalue_line(
        "markers", "auth: Tests related to authentication"
    )


def pytest_collection_modifyitems(config, items):
    """
    Tag collected items by location.

    Everything under api_testing/tests talks to the live API.
    """
    for item in items:
        path = item.path.as_posix()
        if "api_testing" in path:
            item.add_marker(pytest.mark.api)
            item.add_marker(pytest.mark.requires_external)

        if "/unit/" in path:
            item.add_marker(pytest.mark.unit)


def pytest_report_header(config):
    """Add custom header to pytest output."""
    return [
        "",
        "=" * 60,
        "Expense API QA Harness",
        "=" * 60,
        "",
    ]
