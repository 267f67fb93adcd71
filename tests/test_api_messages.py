"""HTTP tests for /v1/api/messages: guards, validation, error shape and CRUD."""

import pytest
from fastapi.testclient import TestClient

from tests.conftest import AUTH_HEADERS

BASE = "/v1/api/messages"


def create(client, **overrides):
    body = {"conversationId": "c1", "senderId": "u1", "content": "hello world"}
    body.update(overrides)
    return client.post(BASE, json=body, headers=AUTH_HEADERS)


# =============================================================================
# Guards
# =============================================================================

@pytest.mark.parametrize("authorization,message", [
    (None, "Missing authentication token"),
    ("Token abc", "Invalid authentication token format"),
    ("Bearer invalid", "Invalid token"),
])
def test_auth_failures_are_401(client, authorization, message):
    headers = {"x-tenant-id": "tenant-a"}
    if authorization is not None:
        headers["Authorization"] = authorization

    response = client.get(f"{BASE}/m1", headers=headers)

    assert response.status_code == 401
    assert response.json()["message"] == message
    assert response.json()["error"] == "Unauthorized"


@pytest.mark.parametrize("tenant", [None, ""])
def test_missing_tenant_is_403(client, tenant):
    headers = {"Authorization": "Bearer test-token"}
    if tenant is not None:
        headers["x-tenant-id"] = tenant

    response = client.get(f"{BASE}/m1", headers=headers)

    assert response.status_code == 403
    assert response.json()["error"] == "Forbidden"


def test_tenant_is_checked_before_token(client):
    response = client.post(BASE, json={})

    assert response.status_code == 403


# =============================================================================
# Validation and error shape
# =============================================================================

def test_missing_fields_are_listed(client):
    response = client.post(BASE, json={"conversationId": "c1"}, headers=AUTH_HEADERS)

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Bad Request"
    assert "body.senderId: Field required" in body["message"]
    assert "body.content: Field required" in body["message"]


def test_empty_content_is_rejected(client):
    response = create(client, content="")

    assert response.status_code == 400
    assert any(m.startswith("body.content:") for m in response.json()["message"])


def test_unknown_fields_are_rejected(client):
    response = create(client, tenantId="tenant-b")

    assert response.status_code == 400
    assert any(m.startswith("body.tenantId:") for m in response.json()["message"])


def test_error_body_shape(client):
    headers = {**AUTH_HEADERS, "x-correlation-id": "corr-123"}

    response = client.get(f"{BASE}/missing", headers=headers)

    assert response.status_code == 404
    body = response.json()
    assert body["status"] == 404
    assert body["message"] == 'Message with ID "missing" not found'
    assert body["error"] == "Not Found"
    assert body["path"] == f"{BASE}/missing"
    assert body["correlationId"] == "corr-123"
    assert body["timestamp"].endswith("Z")
    assert response.headers["x-correlation-id"] == "corr-123"


def test_correlation_id_is_generated(client):
    response = client.get(f"{BASE}/missing", headers=AUTH_HEADERS)

    assert response.headers["x-correlation-id"]
    assert "correlationId" not in response.json()


def test_request_id_is_used_as_correlation_id(client):
    response = client.get(f"{BASE}/missing", headers={**AUTH_HEADERS, "x-request-id": "req-9"})

    assert response.headers["x-correlation-id"] == "req-9"


def test_unknown_route_uses_error_shape(client):
    response = client.get("/v1/api/nowhere", headers=AUTH_HEADERS)

    assert response.status_code == 404
    assert response.json()["path"] == "/v1/api/nowhere"


def test_unhandled_store_failure_is_500(api_app, repository):
    repository.configure_failure("save", "mongo down")

    with TestClient(api_app, raise_server_exceptions=False) as raw_client:
        response = create(raw_client)

    assert response.status_code == 500
    assert response.json()["status"] == 500
    assert response.json()["error"] == "ConnectionError"


# =============================================================================
# CRUD
# =============================================================================

def test_create_returns_message(client, repository):
    response = create(client, metadata={"priority": "high"})

    assert response.status_code == 201
    assert response.json()["status"] == 201
    body = response.json()["data"]
    assert set(body) == {"id", "conversationId", "senderId", "content", "timestamp", "metadata"}
    assert body["conversationId"] == "c1"
    assert body["metadata"] == {"priority": "high"}
    assert ("tenant-a", body["id"]) in repository.messages


def test_create_publishes_event(client, transport):
    message_id = create(client).json()["data"]["id"]

    record = transport.published[-1]
    assert record.value["type"] == "message.created"
    assert record.value["payload"]["id"] == message_id
    assert record.value["payload"]["tenantId"] == "tenant-a"


def test_create_succeeds_when_publish_fails(client, transport):
    transport.configure_failure("publish", "broker down")

    assert create(client).status_code == 201


def test_get_message(client):
    message_id = create(client).json()["data"]["id"]

    response = client.get(f"{BASE}/{message_id}", headers=AUTH_HEADERS)

    assert response.status_code == 200
    assert set(response.json()) == {"status", "data"}
    assert response.json()["status"] == 200
    assert response.json()["data"]["content"] == "hello world"


def test_get_is_tenant_isolated(client):
    message_id = create(client).json()["data"]["id"]

    response = client.get(f"{BASE}/{message_id}", headers={**AUTH_HEADERS, "x-tenant-id": "tenant-b"})

    assert response.status_code == 404


def test_update_message(client):
    message_id = create(client, metadata={"a": 1}).json()["data"]["id"]

    response = client.put(
        f"{BASE}/{message_id}", json={"content": "edited", "metadata": {"b": 2}}, headers=AUTH_HEADERS
    )

    assert response.status_code == 200
    body = response.json()["data"]
    assert body["content"] == "edited"
    assert body["metadata"] == {"a": 1, "b": 2}
    assert client.get(f"{BASE}/{message_id}", headers=AUTH_HEADERS).json()["data"]["content"] == "edited"


def test_update_missing_message_is_404(client):
    response = client.put(f"{BASE}/nope", json={"content": "x"}, headers=AUTH_HEADERS)

    assert response.status_code == 404
    assert response.json()["message"] == 'Message with ID "nope" not found'


def test_delete_message(client, transport):
    message_id = create(client).json()["data"]["id"]

    response = client.delete(f"{BASE}/{message_id}", headers=AUTH_HEADERS)

    assert response.status_code == 204
    assert response.content == b""
    assert client.get(f"{BASE}/{message_id}", headers=AUTH_HEADERS).status_code == 404
    assert transport.published[-1].value["type"] == "message.deleted"


def test_delete_missing_message_is_404(client):
    assert client.delete(f"{BASE}/nope", headers=AUTH_HEADERS).status_code == 404
