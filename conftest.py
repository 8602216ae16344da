"""
Repository-level pytest configuration (showcase-safe).

Why this exists:
  - Provide safe defaults for demo environments (no secrets embedded)
  - Keep live API suites opt-in: they need a running expense API
  - Keep behavior explicit and discoverable

Important:
  Values below are placeholders. Real projects should load secrets from a
  secure secret manager in CI/CD.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Generator

import pytest


LIVE_ENV_FLAG = "RUN_LIVE_API_TESTS"


def pytest_addoption(parser):
    parser.addoption(
        "--run-live",
        action="store_true",
        default=False,
        help="Run suites marked requires_external against a live expense API",
    )


def _live_enabled(config) -> bool:
    return config.getoption("--run-live") or os.environ.get(LIVE_ENV_FLAG) == "1"


@pytest.hookimpl(trylast=True)
def pytest_collection_modifyitems(config, items):
    """Skip live API suites unless explicitly requested."""
    if _live_enabled(config):
        return

    skip_live = pytest.mark.skip(
        reason=f"needs a live API: pass --run-live or set {LIVE_ENV_FLAG}=1"
    )
    for item in items:
        if "requires_external" in item.keywords:
            item.add_marker(skip_live)


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return repo root path."""
    return Path(__file__).parent


@pytest.fixture(scope="session", autouse=True)
def _demo_safe_env_defaults() -> Generator[None, None, None]:
    """
    Set demo-safe environment defaults if not already provided by the user/CI.

    This keeps local runs predictable.
    """
    defaults = {
        "TEST_ENV": "local",
    }

    for k, v in defaults.items():
        os.environ.setdefault(k, v)

    yield
