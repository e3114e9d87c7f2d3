# FILE: tests/test_api.py
"""HTTP surface tests"""
import pytest
from fastapi.testclient import TestClient

from teletext.app import app
from teletext.services.container import set_services


class RateLimited(Exception):
    status_code = 429


@pytest.fixture
def client(services):
    set_services(services)
    with TestClient(app) as test_client:
        yield test_client


def test_root(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["start_page"] == "100"


def test_get_page(client):
    response = client.get("/page/100")
    assert response.status_code == 200
    assert response.headers["cache-control"] == "no-store"

    data = response.json()
    assert data["success"] is True
    assert data["page"]["id"] == "100"
    assert len(data["page"]["rows"]) == 24
    assert data["page"]["links"][0]["targetPage"] == "200"
    assert "additionalPages" not in data


@pytest.mark.parametrize("path, status, code", [
    ("/page/920", 400, "INVALID_PAGE"),
    ("/page/abc", 400, "INVALID_PAGE"),
    ("/page/100-1", 404, "PAGE_NOT_FOUND"),
    ("/page/450", 500, "ADAPTER_ERROR"),
    ("/page/100?colour=red", 400, "INVALID_PARAMETERS"),
])
def test_page_errors(client, path, status, code):
    response = client.get(path)
    assert response.status_code == status
    body = response.json()
    assert body["success"] is False
    assert body["code"] == code
    assert body["error"]


def test_paginated_response_has_additional_pages(client):
    response = client.get("/page/801", params={"target": "100"})
    data = response.json()
    assert data["page"]["id"] == "801"
    assert data["additionalPages"][0]["id"] == "801-1"


def test_quiz_over_http(client):
    start = client.get("/page/602").json()
    session_id = start["contextId"]
    assert start["page"]["meta"]["sessionId"] == session_id

    response = client.post("/page/602", json={"textInput": "1", "contextId": session_id})
    assert response.status_code == 200
    assert response.json()["contextId"] == session_id


def test_post_body_validation(client):
    response = client.post("/page/602", json={})
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_PARAMETERS"

    response = client.post("/page/602", json={"textInput": "1", "extra": True})
    assert response.status_code == 400


def test_post_to_page_without_input(client):
    response = client.post("/page/100", json={"textInput": "hello"})
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_PARAMETERS"


def test_body_size_limit(client):
    response = client.post(
        "/page/500", content=b"x" * 20000, headers={"content-type": "application/json"}
    )
    assert response.status_code == 413
    assert response.json()["code"] == "BODY_TOO_LARGE"
    assert response.headers["cache-control"] == "no-store"


def test_ai_endpoint(client, provider):
    provider.script.append("Forty columns, twenty-four rows.")
    response = client.post("/ai", json={"mode": "chat", "parameters": {"question": "How big is a page?"}})
    assert response.status_code == 200

    data = response.json()
    assert data["success"] is True
    assert data["contextId"].startswith("ctx_")
    assert data["pages"][0]["id"] == "500-1"
    assert data["pages"][0]["meta"]["aiContextId"] == data["contextId"]


def test_ai_endpoint_rejects_unknown_mode(client):
    response = client.post("/ai", json={"mode": "poetry"})
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_PARAMETERS"


def test_ai_rate_limit_is_429(client, provider):
    provider.script.extend([RateLimited("429")] * 4)
    response = client.post("/ai", json={"mode": "chat", "parameters": {"question": "busy?"}})
    assert response.status_code == 429
    assert response.json()["code"] == "RATE_LIMIT_EXCEEDED"


def test_ai_provider_failure_is_502(client, provider):
    provider.script.append(ValueError("upstream exploded"))
    response = client.post("/ai", json={"mode": "chat", "parameters": {"question": "hello?"}})
    assert response.status_code == 502
    assert response.json()["code"] == "EXTERNAL_API_ERROR"


def test_delete_conversation(client):
    context_id = client.post("/ai", json={"mode": "chat", "parameters": {"question": "hi"}}).json()["contextId"]

    response = client.delete(f"/conversation/{context_id}")
    assert response.json() == {"success": True, "message": "Conversation deleted"}

    response = client.delete(f"/conversation/{context_id}")
    assert response.json()["success"] is True
    assert "not found" in response.json()["message"]


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["provider"] == "fake"
    assert data["ai_available"] is True
    assert data["store_backend"] == "memory"
    assert "conversations" in data["store_entries"]
