"""Pytest configuration and fixtures for telemetry tests."""

import os
import threading
from unittest.mock import patch

import pytest

from firezone_telemetry.config import TelemetryConfig
from firezone_telemetry.context import TelemetryContext


class FakeSession:
    """Session handle recorded by FakeTransport."""

    def __init__(self, release_tag, distribution_tag, enable_hang_tracking):
        self.release_tag = release_tag
        self.distribution_tag = distribution_tag
        self.enable_hang_tracking = enable_hang_tracking
        self.environment = None
        self.user = None
        self.closed = False


class FakeTransport:
    """In-memory transport that records every call."""

    def __init__(self):
        self._lock = threading.Lock()
        self.sessions = []
        self.submitted = []
        self.fail_submit = False
        self.fail_open = False

    def open(self, dsn, release_tag, distribution_tag, enable_hang_tracking):
        if self.fail_open:
            raise ConnectionError("transport unavailable")
        session = FakeSession(release_tag, distribution_tag, enable_hang_tracking)
        self.sessions.append(session)
        return session

    def set_scope_environment(self, session, environment):
        session.environment = environment

    def set_scope_user(self, session, user_id, data):
        # Written field by field so an unsynchronized caller could tear it
        session.user = {}
        session.user["id"] = user_id
        session.user["data"] = dict(data)

    def submit(self, session, error):
        if self.fail_submit:
            raise ConnectionError("ingestion endpoint unreachable")
        assert not session.closed
        user = dict(session.user) if session.user is not None else None
        with self._lock:
            self.submitted.append((error, session.environment, user))

    def close(self, session):
        session.closed = True


@pytest.fixture
def clean_env():
    """Provide a clean environment without telemetry-related variables."""
    env_vars_to_clear = [
        "DO_NOT_TRACK",
        "FIREZONE_TELEMETRY_ENABLED",
        "FIREZONE_TELEMETRY_DSN",
        "FIREZONE_TELEMETRY_SAMPLE_RATE",
        "FIREZONE_TELEMETRY_HANG_TRACKING",
        "FIREZONE_APP_VERSION",
    ]

    original = {var: os.environ.get(var) for var in env_vars_to_clear}

    for var in env_vars_to_clear:
        if var in os.environ:
            del os.environ[var]

    yield

    for var, value in original.items():
        if value is not None:
            os.environ[var] = value
        elif var in os.environ:
            del os.environ[var]


@pytest.fixture
def mock_sentry():
    """Mock sentry_sdk for testing."""
    with patch("firezone_telemetry.transport.sentry_sdk") as mock:
        yield mock


@pytest.fixture
def transport():
    """Provide a recording transport."""
    return FakeTransport()


@pytest.fixture
def config():
    """Provide a reporting-enabled configuration."""
    return TelemetryConfig(dsn="https://test@example.com/1", app_version="1.2.3")


@pytest.fixture
def telemetry(transport, config):
    """Provide an uninitialized telemetry context on macOS."""
    return TelemetryContext(
        transport,
        config,
        platform="darwin",
        marketplace_probe=lambda: False,
    )


@pytest.fixture
def initialized_telemetry(telemetry):
    """Provide an initialized telemetry context."""
    telemetry.initialize(enable_hang_tracking=True)
    return telemetry
