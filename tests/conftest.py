"""
Pytest configuration and shared fixtures.

Contains common test fixtures and push doubles for all test modules.
"""

from typing import Any, Callable, Dict, List

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from crashrelay.config import Settings
from crashrelay.core.exceptions import DeliveryError
from crashrelay.main import create_app
from crashrelay.models.push import PushRecord

TEST_AUTH_TOKEN = "token"


class PushRecorder:
    """Pusher that records every push."""

    def __init__(self) -> None:
        self.pushes: List[PushRecord] = []

    async def push(self, record: PushRecord) -> None:
        self.pushes.append(record)


class PushFailer:
    """Pusher that fails every push."""

    def __init__(self, error: Exception) -> None:
        self.error = error
        self.attempts = 0

    async def push(self, record: PushRecord) -> None:
        self.attempts += 1
        raise self.error


@pytest.fixture
def test_settings() -> Settings:
    """Explicit test configuration, independent of env vars."""
    return Settings(
        crashlytics_auth_token=TEST_AUTH_TOKEN,
        humio_ingest_token="ingest-token",
        humio_url="http://localhost:8080",
        timeout_seconds=1.0,
    )


@pytest.fixture
def fixed_clock() -> Callable[[], int]:
    """Clock fixed at the Unix epoch."""
    return lambda: 0


@pytest.fixture
def push_recorder() -> PushRecorder:
    return PushRecorder()


@pytest.fixture
def push_failer() -> PushFailer:
    return PushFailer(DeliveryError("some unknown error"))


@pytest.fixture
def test_app(test_settings: Settings, push_recorder: PushRecorder, fixed_clock: Callable[[], int]) -> FastAPI:
    """App wired to the push recorder and the fixed clock."""
    return create_app(test_settings, pusher=push_recorder, now=fixed_clock)


@pytest.fixture
def test_client(test_app: FastAPI) -> TestClient:
    """FastAPI test client for the recorder-backed app."""
    return TestClient(test_app)


@pytest.fixture
def verification_webhook() -> Dict[str, Any]:
    """Crashlytics verification ping."""
    return {
        "event": "verification",
        "payload_type": "none",
    }


@pytest.fixture
def issue_webhook() -> Dict[str, Any]:
    """Crashlytics issue impact change event."""
    return {
        "event": "issue_impact_change",
        "payload_type": "issue",
        "payload": {
            "display_id": 123,
            "title": "Issue Title",
            "method": "methodName of issue",
            "impact_level": 2,
            "crashes_count": 54,
            "impacted_devices_count": 16,
            "url": "http://crashlytics.com/full/url/to/issue",
        },
    }
