"""Shared pytest configuration and fixtures for Fractal tests."""

import logging

import pytest

# Import HTTP mocking fixtures from fixtures module
pytest_plugins = ["tests.fixtures.mock_http"]

MANAGED_ENV_VARS = (
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
    "GOOGLE_API_KEY",
    "OPENAI_MODEL",
    "ANTHROPIC_MODEL",
    "GOOGLE_MODEL",
    "OPENAI_BASE_URL",
    "ANTHROPIC_BASE_URL",
    "GOOGLE_BASE_URL",
    "HOST",
    "PORT",
    "LOG_LEVEL",
    "REQUEST_TIMEOUT",
    "FRACTAL_DEFAULT_TEMPERATURE",
    "FRACTAL_DEFAULT_MAX_TOKENS",
    "FRACTAL_STREAMING_MAX_TOKENS",
    "FRACTAL_STREAM_MODE",
    "FRACTAL_CACHE_MAX_SIZE",
    "FRACTAL_MIN_RENDER_LENGTH",
    "FRACTAL_MAX_HISTORY_ENTRIES",
)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: marks tests as unit tests (fast, no external deps)")
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests (component wiring, HTTP mocked)"
    )


def pytest_collection_modifyitems(config, items):
    """Add markers to tests based on their location."""
    for item in items:
        path = str(item.fspath)
        if "tests/unit/" in path:
            item.add_marker(pytest.mark.unit)
        elif "tests/api/" in path or "tests/cli/" in path:
            item.add_marker(pytest.mark.integration)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Start every test without credentials or Fractal settings in the environment."""
    for name in MANAGED_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture(autouse=True)
def restore_root_logging():
    """configure_root_logging replaces root handlers; put them back after each test."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def openai_api_key(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "test-openai-key")
    return "test-openai-key"


@pytest.fixture
def google_api_key(monkeypatch):
    monkeypatch.setenv("GOOGLE_API_KEY", "test-google-key")
    return "test-google-key"
