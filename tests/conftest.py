"""
Global test configuration and shared fixtures.
"""

import logging
import os

import pytest

from fetchpipe.core.request import FetchRequest
from fetchpipe.pipeline.classifier import DefaultClassifier
from fetchpipe.pipeline.contexts import ManualContext
from fetchpipe.pipeline.decoders import JSONDecoder
from tests.helpers import Recorder


# --- Environment Isolation (Autouse) ---
@pytest.fixture(autouse=True)
def isolate_fetchpipe_env(request, monkeypatch):
    """Ensure a clean FETCHPIPE_* environment for each test.

    Escape hatch: @pytest.mark.allow_env_pollution keeps the current env.
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return
    for key in list(os.environ.keys()):
        if key.startswith("FETCHPIPE_"):
            monkeypatch.delenv(key, raising=False)


# --- Logging Fixtures ---
@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Sets the log level for noisy external libraries to WARNING."""
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


# --- Test Environment Markers ---
def pytest_configure(config):
    """Configure custom markers for test organization."""
    markers = [
        "unit: Fast, isolated unit tests",
        "integration: Component integration tests with mocked HTTP",
        "slow: Tests that take >1 second",
        "allow_env_pollution: Keep FETCHPIPE_* variables from the real environment",
    ]
    for marker in markers:
        config.addinivalue_line("markers", marker)


# --- Core Fixtures ---


@pytest.fixture
def decode_ctx():
    """Manually drained decode context."""
    return ManualContext("decode")


@pytest.fixture
def callback_ctx():
    """Manually drained callback context."""
    return ManualContext("callback")


@pytest.fixture
def recorder():
    """Callback recording outcomes and the context they ran on."""
    return Recorder()


@pytest.fixture
def classifier():
    """Default classifier with the 200..299 range."""
    return DefaultClassifier()


@pytest.fixture
def json_decoder():
    """Plain JSON decoder."""
    return JSONDecoder()


@pytest.fixture
def items_request():
    """GET request to /items."""
    return FetchRequest.build("https://api.example.com/items")
