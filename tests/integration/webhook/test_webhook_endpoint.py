"""
Integration tests for the /webhook endpoint.

Tests the full request pipeline using FastAPI TestClient with a recording
pusher and a clock fixed at the Unix epoch.
"""

import json
from typing import Any, Dict

import pytest
from fastapi.testclient import TestClient

from crashrelay.config import Settings
from crashrelay.core.exceptions import DeliveryError
from crashrelay.core.pusher import HumioPusher
from crashrelay.main import create_app
from crashrelay.models.push import PushRecord

WEBHOOK_URL = "/webhook?token=token"


class TestWebhookEndpoint:
    """Test status codes and pushes for the webhook endpoint."""

    @pytest.mark.parametrize("method", ["GET", "PUT", "PATCH", "DELETE", "TRACE"])
    def test_non_post_rejected(
        self,
        test_client: TestClient,
        push_recorder,
        issue_webhook: Dict[str, Any],
        method: str,
    ) -> None:
        """Test non-POST requests are 400 whatever the body."""
        response = test_client.request(method, WEBHOOK_URL, content=json.dumps(issue_webhook))

        assert response.status_code == 400
        assert push_recorder.pushes == []

    def test_empty_body_rejected(self, test_client: TestClient, push_recorder) -> None:
        """Test POST without a body is a 400."""
        response = test_client.post(WEBHOOK_URL, content=b"")

        assert response.status_code == 400
        assert push_recorder.pushes == []

    def test_invalid_payload_rejected(self, test_client: TestClient, push_recorder) -> None:
        """Test POST with a non-JSON body is a 400."""
        response = test_client.post(WEBHOOK_URL, content=b"some payload")

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert push_recorder.pushes == []

    def test_wrong_shape_rejected(self, test_client: TestClient, push_recorder) -> None:
        """Test POST with a JSON array is a 400."""
        response = test_client.post(WEBHOOK_URL, content=b'[{"payload_type": "issue"}]')

        assert response.status_code == 400
        assert push_recorder.pushes == []

    def test_verification_payload_acknowledged(
        self,
        test_client: TestClient,
        push_recorder,
        verification_webhook: Dict[str, Any],
    ) -> None:
        """Test non-issue payloads are 200 and not pushed."""
        response = test_client.post(WEBHOOK_URL, json=verification_webhook)

        assert response.status_code == 200
        assert push_recorder.pushes == []

    def test_null_payload_type_acknowledged(self, test_client: TestClient, push_recorder) -> None:
        """Test a null payload type is valid JSON that is not an issue."""
        response = test_client.post(WEBHOOK_URL, content=b'{"payload_type": null}')

        assert response.status_code == 200
        assert push_recorder.pushes == []

    def test_null_event_name_pushed(self, test_client: TestClient, push_recorder) -> None:
        """Test a null event name does not stop an issue from being pushed."""
        response = test_client.post(
            WEBHOOK_URL,
            content=b'{"event": null, "payload_type": "issue", "payload": {"a": 1}}',
        )

        assert response.status_code == 200
        assert push_recorder.pushes == [PushRecord(type="issue", timestamp=0, data={"a": 1})]

    def test_issue_payload_pushed(
        self,
        test_client: TestClient,
        push_recorder,
        issue_webhook: Dict[str, Any],
    ) -> None:
        """Test issue payloads are pushed with the payload as data."""
        response = test_client.post(WEBHOOK_URL, json=issue_webhook)

        assert response.status_code == 200
        assert push_recorder.pushes == [
            PushRecord(
                type="issue",
                timestamp=0,
                data={
                    "display_id": 123.0,
                    "title": "Issue Title",
                    "method": "methodName of issue",
                    "impact_level": 2.0,
                    "crashes_count": 54.0,
                    "impacted_devices_count": 16.0,
                    "url": "http://crashlytics.com/full/url/to/issue",
                },
            )
        ]

    def test_issue_payload_timestamp_from_clock(
        self,
        test_settings: Settings,
        push_recorder,
        issue_webhook: Dict[str, Any],
    ) -> None:
        """Test the pushed timestamp is the injected clock in milliseconds."""
        app = create_app(test_settings, pusher=push_recorder, now=lambda: 1_700_000_000_123_456_789)

        response = TestClient(app).post(WEBHOOK_URL, json=issue_webhook)

        assert response.status_code == 200
        assert push_recorder.pushes[0].timestamp == 1_700_000_000_123

    @pytest.mark.parametrize(
        "error",
        [DeliveryError("some unknown error"), RuntimeError("boom")],
        ids=["delivery error", "unexpected error"],
    )
    def test_push_failure_still_acknowledged(
        self,
        test_settings: Settings,
        push_failer,
        fixed_clock,
        error: Exception,
    ) -> None:
        """Test a failing pusher never turns into an error status."""
        push_failer.error = error
        app = create_app(test_settings, pusher=push_failer, now=fixed_clock)

        response = TestClient(app).post(
            WEBHOOK_URL,
            json={
                "event": "issue_impact_change",
                "payload_type": "issue",
                "payload": {"title": "Issue Title"},
            },
        )

        assert response.status_code == 200
        assert push_failer.attempts == 1

    def test_independent_apps(self, push_recorder, fixed_clock, verification_webhook: Dict[str, Any]) -> None:
        """Test two differently configured apps do not share tokens."""
        first = create_app(
            Settings(crashlytics_auth_token="first", humio_ingest_token="i", humio_url="http://a"),
            pusher=push_recorder,
            now=fixed_clock,
        )
        second = create_app(
            Settings(crashlytics_auth_token="second", humio_ingest_token="i", humio_url="http://b"),
            pusher=push_recorder,
            now=fixed_clock,
        )

        assert TestClient(first).post("/webhook?token=first", json=verification_webhook).status_code == 200
        assert TestClient(first).post("/webhook?token=second", json=verification_webhook).status_code == 401
        assert TestClient(second).post("/webhook?token=second", json=verification_webhook).status_code == 200


class TestServiceEndpoints:
    """Test health and metrics endpoints."""

    def test_liveness(self, test_client: TestClient) -> None:
        response = test_client.get("/healthz")

        assert response.status_code == 200
        assert response.json()["status"] == "alive"
        assert response.json()["service"] == "crashrelay"

    def test_metrics_count_outcomes(
        self,
        test_client: TestClient,
        issue_webhook: Dict[str, Any],
        verification_webhook: Dict[str, Any],
    ) -> None:
        test_client.post(WEBHOOK_URL, json=issue_webhook)
        test_client.post(WEBHOOK_URL, json=verification_webhook)
        test_client.post(WEBHOOK_URL, content=b"some payload")

        response = test_client.get("/metrics")

        assert response.status_code == 200
        body = response.text
        assert 'crashrelay_webhooks_received_total{outcome="forwarded"} 1.0' in body
        assert 'crashrelay_webhooks_received_total{outcome="filtered"} 1.0' in body
        assert 'crashrelay_webhooks_received_total{outcome="rejected"} 1.0' in body


class TestLifespan:
    """Test the Humio session lifecycle."""

    def test_humio_pusher_built_at_startup(self, test_settings: Settings) -> None:
        app = create_app(test_settings)
        assert app.state.relay is None

        with TestClient(app):
            pusher = app.state.relay.pusher
            assert isinstance(pusher, HumioPusher)
            assert str(pusher.ingest_url) == "http://localhost:8080/api/v1/ingest/humio-structured"

        assert pusher.session.closed
        assert app.state.relay is None
