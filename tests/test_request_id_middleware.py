from __future__ import annotations

import uuid

from fastapi.testclient import TestClient

from tiered_ratelimit.main import app


client = TestClient(app)


def test_preserves_incoming_uuid_request_id():
    incoming_id = str(uuid.uuid4())
    resp = client.get("/health", headers={"X-Request-ID": incoming_id})

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID") == incoming_id


def test_replaces_non_uuid_request_id():
    resp = client.get("/health", headers={"X-Request-ID": "test-request-id-123"})

    generated = resp.headers.get("X-Request-ID")
    assert generated != "test-request-id-123"
    uuid.UUID(generated)


def test_generates_request_id_when_missing():
    resp = client.get("/health")

    assert resp.status_code == 200
    generated = resp.headers.get("X-Request-ID")
    assert generated
    uuid.UUID(generated)

    duration = resp.headers.get("X-Request-Duration-ms")
    assert duration is not None


def test_error_body_carries_request_id():
    incoming_id = str(uuid.uuid4())
    resp = client.get("/v1/profile", headers={"X-Request-ID": incoming_id})

    assert resp.status_code == 401
    assert resp.json()["error"]["request_id"] == incoming_id
    assert resp.headers.get("X-Request-ID") == incoming_id
