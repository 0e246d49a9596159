"""
Pytest configuration and fixtures for containersecurity tests.
"""

from __future__ import annotations

import logging
import os
from io import StringIO
from typing import Dict, Generator
from unittest.mock import MagicMock

import pytest

from containersecurity.config import reset_config
from containersecurity.logger import BuildLogger


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture(scope="session")
def test_env() -> Dict[str, str]:
    """Test environment variables."""
    return {
        "CONTAINERSECURITY_CREDENTIALS_FILE": "/nonexistent/credentials.yaml",
        "CONTAINERSECURITY_LOG_LEVEL": "warning",
    }


@pytest.fixture(autouse=True)
def set_test_env(test_env: Dict[str, str]) -> Generator[None, None, None]:
    """Set test environment variables and a fresh config for each test."""
    original = {}
    for key, value in test_env.items():
        original[key] = os.environ.get(key)
        os.environ[key] = value
    reset_config()

    yield

    reset_config()
    for key, value in original.items():
        if value is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = value


@pytest.fixture(autouse=True)
def reset_package_logger() -> Generator[None, None, None]:
    """Drop handlers installed by configure_logging (e.g. by CLI tests)."""
    yield
    package_logger = logging.getLogger("containersecurity")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)


# ============================================================================
# Identifier Fixtures
# ============================================================================

CREDENTIALS_ID = "test-robot"
PROJECT_ID = "test-project"
ATTESTOR_PROJECT_ID = "policy-project"
ATTESTOR_ID = "qa-attestor"
PUBLIC_KEY_ID = (
    "projects/policy-project/locations/global/keyRings/ring"
    "/cryptoKeys/signer/cryptoKeyVersions/1"
)
DIGEST = "sha256:" + "a" * 64
CONTAINER_URI = "gcr.io/test-project/app"
REFERENCE = f"{CONTAINER_URI}@{DIGEST}"


@pytest.fixture
def public_key_id() -> str:
    return PUBLIC_KEY_ID


@pytest.fixture
def reference() -> str:
    return REFERENCE


# ============================================================================
# Client Fixtures
# ============================================================================


@pytest.fixture
def mock_factory() -> MagicMock:
    """A ClientFactory stand-in; configure the client methods per test."""
    return MagicMock(name="ClientFactory")


@pytest.fixture
def factory_supplier(mock_factory: MagicMock) -> MagicMock:
    """Supplier returning ``mock_factory`` for any credentials ID."""
    return MagicMock(name="get_client_factory", return_value=mock_factory)


# ============================================================================
# Build Logger Fixtures
# ============================================================================


@pytest.fixture
def console() -> StringIO:
    return StringIO()


@pytest.fixture
def build_logger(console: StringIO) -> BuildLogger:
    return BuildLogger(stream=console, project=PROJECT_ID)
