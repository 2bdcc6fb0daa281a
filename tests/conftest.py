"""Root conftest shared by all tests."""

import pytest

from cryptofolio.system import LoggerFactory


@pytest.fixture(autouse=True)
def reset_logging():
    """Leave no handlers or structlog configuration behind between tests."""
    yield
    LoggerFactory.reset()
